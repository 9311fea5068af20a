"""
Naming rules: keyword repositioning on display names.

The module-level functions are pure and shared by the display composer.
NamingRuleService persists rules per list kind.

A rule moves a keyword to the front (PREFIX) or the end (SUFFIX) of a
name. Matching is whole-word and case-insensitive; a keyword inside
parentheses counts ("Zitronen (Bio Demeter)").

    apply_naming_rules("Banane Bio", [Bio/PREFIX])            -> "Bio Banane"
    apply_naming_rules("Zitronen (Bio Demeter)", [Bio/PREFIX]) -> "Bio Zitronen (Demeter)"
    apply_naming_rules("Bionda", [Bio/PREFIX])                -> "Bionda"
"""

import re
from datetime import datetime, timezone
from typing import Iterable
import structlog

from config import get_supabase_client, ListKind, get_list_config
from models.naming_rule import (
    NamingRule,
    NamingRuleCreate,
    NamingRuleUpdate,
    RulePosition,
)
from models.plu import PLUItem
from exceptions import DatabaseError, NamingRuleNotFoundError, ValidationError

logger = structlog.get_logger(__name__)


# ===================
# PURE RULE ENGINE
# ===================

def _word_regex(keyword: str) -> re.Pattern:
    # Boundaries: start/end, whitespace or parentheses
    return re.compile(
        r"(?<![^\s(])" + re.escape(keyword) + r"(?![^\s)])",
        re.IGNORECASE
    )


def _removal_regex(keyword: str) -> re.Pattern:
    # Group 1 keeps the leading boundary so an opening parenthesis survives
    return re.compile(
        r"(^|[\s(]+)" + re.escape(keyword) + r"(?![^\s)])",
        re.IGNORECASE
    )


def _tidy(name: str) -> str:
    name = re.sub(r"\(\s+", "(", name)
    name = re.sub(r"\s+\)", ")", name)
    name = re.sub(r"\(\s*\)", " ", name)
    return re.sub(r"\s+", " ", name).strip()


def name_contains_keyword(name: str, keyword: str) -> bool:
    """
    True if the keyword occurs as a whole word (case-insensitive).

    Matches "Bio", "(Bio)", "Bio Banane", "Banane Bio".
    Does not match "Bionda" or "Biologie".
    """
    keyword = (keyword or "").strip()
    if not keyword or not name:
        return False
    return _word_regex(keyword).search(name) is not None


def strip_keyword(name: str, keyword: str) -> str:
    """Remove every whole-word occurrence of the keyword, dropping emptied parentheses."""
    keyword = keyword.strip()

    def _replace(match: re.Match) -> str:
        return " (" if "(" in match.group(1) else " "

    return _tidy(_removal_regex(keyword).sub(_replace, name))


def is_already_correct(name: str, keyword: str, position: RulePosition) -> bool:
    """True if the keyword already stands at the rule's edge of the name."""
    lower_name = name.lower()
    lower_keyword = keyword.strip().lower()

    if lower_name == lower_keyword:
        return True
    if RulePosition(position) == RulePosition.PREFIX:
        return (
            lower_name.startswith(lower_keyword + " ")
            or lower_name.startswith(lower_keyword + "(")
        )
    return (
        lower_name.endswith(" " + lower_keyword)
        or lower_name.endswith("(" + lower_keyword + ")")
    )


def _keyword_key(keyword: str) -> str:
    return " ".join(keyword.split()).casefold()


def keywords_overlap(first: str, second: str) -> bool:
    """
    True if two different keywords share a word ("Bio" / "Bio Demeter").

    Rules with overlapping keywords can rewrite each other's output, so
    only one of them may be active at a time.
    """
    first_key, second_key = _keyword_key(first), _keyword_key(second)
    if not first_key or not second_key or first_key == second_key:
        return False
    return bool(set(first_key.split()) & set(second_key.split()))


def place_keyword(base: str, keyword: str, position: RulePosition) -> str:
    """Put the keyword in front of (PREFIX) or behind (SUFFIX) an already stripped name."""
    keyword = keyword.strip()
    if not base:
        return keyword
    if RulePosition(position) == RulePosition.PREFIX:
        return f"{keyword} {base}"
    return f"{base} {keyword}"


def _active_rules(rules: Iterable[NamingRule]) -> list[NamingRule]:
    # Later rules for the same keyword win, like a left-to-right fold would
    by_keyword: dict[str, NamingRule] = {}
    for rule in rules:
        if not rule.is_active or not rule.keyword.strip():
            continue
        key = _keyword_key(rule.keyword)
        by_keyword.pop(key, None)
        by_keyword[key] = rule
    return list(by_keyword.values())


def _strip_all(name: str, rules: list[NamingRule]) -> tuple[str, set[str]]:
    """
    Strip keywords until none is left in the name.

    Longer keywords go first and the scan restarts after every strip,
    since removing one keyword can join the words of another.
    Returns the bare name and the keys of the keywords actually removed.
    """
    ordered = sorted(rules, key=lambda r: len(_keyword_key(r.keyword)), reverse=True)
    base = name
    removed: set[str] = set()

    progress = True
    while progress:
        progress = False
        for rule in ordered:
            if not name_contains_keyword(base, rule.keyword):
                continue
            stripped = strip_keyword(base, rule.keyword)
            if stripped == base:
                continue
            base = stripped
            removed.add(_keyword_key(rule.keyword))
            progress = True
            break

    return base, removed


def apply_naming_rules(name: str, rules: Iterable[NamingRule]) -> str:
    """
    Apply active rules, in the given (creation) order, to a name.

    Every keyword found is stripped first, then the removed ones are
    re-inserted rule by rule: a PREFIX rule prepends, a SUFFIX rule
    appends. With two prefix rules A then B the result reads "B A name".
    As long as active keywords share no words (NamingRuleService enforces
    this) the output is a fixed point: applying the same rules again
    returns it unchanged.
    """
    if not name:
        return name

    active = _active_rules(rules)
    matched = [r for r in active if name_contains_keyword(name, r.keyword)]
    if not matched:
        return name

    if all(is_already_correct(name, r.keyword, r.position) for r in matched):
        return name

    base, removed = _strip_all(name, active)

    result = base
    for rule in active:
        if _keyword_key(rule.keyword) in removed:
            result = place_keyword(result, rule.keyword, rule.position)
    return result


def apply_rules_to_items(
    items: Iterable[PLUItem],
    rules: Iterable[NamingRule]
) -> list[dict]:
    """
    Compute display name updates for stored items.

    Starts from system_name, skips manually renamed items and returns
    {"id", "display_name"} only where the name actually changes.
    """
    rules = [r for r in rules if r.is_active]
    if not rules:
        return []

    updates = []
    for item in items:
        if item.is_manually_renamed:
            continue
        new_name = apply_naming_rules(item.system_name, rules)
        if new_name != (item.display_name or item.system_name):
            updates.append({"id": item.id, "display_name": new_name})
    return updates


# ===================
# PERSISTENCE
# ===================

class NamingRuleService:
    """
    Naming rule storage for one list kind.

    Rules are returned in created_at order, which is their application order.
    """

    def __init__(self, list_kind: ListKind = ListKind.PRODUCE):
        self.db = get_supabase_client()
        self.config = get_list_config(list_kind)
        self.table = self.config.naming_rules_table

    def get_all(self, active_only: bool = False) -> list[NamingRule]:
        """Get rules ordered by creation time."""
        logger.debug("getting_naming_rules", list_kind=self.config.kind.value, active_only=active_only)

        try:
            query = self.db.table(self.table).select("*")
            if active_only:
                query = query.eq("is_active", True)
            result = query.order("created_at").execute()
            return [NamingRule(**row) for row in result.data]

        except Exception as e:
            logger.error("get_naming_rules_failed", error=str(e))
            raise DatabaseError("select", str(e))

    def create(self, data: NamingRuleCreate) -> NamingRule:
        """
        Create a rule; it applies after all existing rules.

        Raises:
            ValidationError: An active rule's keyword shares a word with this one
        """
        logger.info("creating_naming_rule", keyword=data.keyword, position=data.position.value)
        if data.is_active:
            self._check_overlap(data.keyword, self.get_all(active_only=True))

        try:
            result = (
                self.db.table(self.table)
                .insert({
                    "keyword": data.keyword,
                    "position": data.position.value,
                    "is_active": data.is_active,
                    "created_at": datetime.now(timezone.utc).isoformat(),
                })
                .execute()
            )
            rule = NamingRule(**result.data[0])
            logger.info("naming_rule_created", rule_id=rule.id)
            return rule

        except Exception as e:
            logger.error("create_naming_rule_failed", keyword=data.keyword, error=str(e))
            raise DatabaseError("insert", str(e))

    def update(self, rule_id: str, data: NamingRuleUpdate) -> NamingRule:
        """
        Update provided fields of a rule.

        Raises:
            NamingRuleNotFoundError: Unknown rule id
            ValidationError: The updated rule would overlap another active rule
        """
        update_data = data.model_dump(exclude_none=True, mode="json")
        logger.info("updating_naming_rule", rule_id=rule_id, fields=list(update_data))

        rules = self.get_all()
        current = next((r for r in rules if r.id == rule_id), None)
        if current is None:
            raise NamingRuleNotFoundError(rule_id)

        keyword = data.keyword if data.keyword is not None else current.keyword
        is_active = data.is_active if data.is_active is not None else current.is_active
        if is_active:
            others = [r for r in rules if r.is_active and r.id != rule_id]
            self._check_overlap(keyword, others)

        try:
            result = (
                self.db.table(self.table)
                .update(update_data)
                .eq("id", rule_id)
                .execute()
            )
        except Exception as e:
            logger.error("update_naming_rule_failed", rule_id=rule_id, error=str(e))
            raise DatabaseError("update", str(e))

        if not result.data:
            raise NamingRuleNotFoundError(rule_id)
        return NamingRule(**result.data[0])

    def _check_overlap(self, keyword: str, active_rules: list[NamingRule]) -> None:
        clashes = sorted({r.keyword for r in active_rules if keywords_overlap(keyword, r.keyword)})
        if clashes:
            logger.warning("naming_rule_overlap_rejected", keyword=keyword, clashes=clashes)
            raise ValidationError(
                "Keyword shares a word with an active rule",
                code="OVERLAPPING_KEYWORD",
                details={"keyword": keyword, "conflicting_keywords": clashes}
            )

    def delete(self, rule_id: str) -> None:
        """Delete a rule."""
        logger.info("deleting_naming_rule", rule_id=rule_id)

        try:
            self.db.table(self.table).delete().eq("id", rule_id).execute()
        except Exception as e:
            logger.error("delete_naming_rule_failed", rule_id=rule_id, error=str(e))
            raise DatabaseError("delete", str(e))

    def apply_to_version(self, version_id: str) -> int:
        """
        Persist rule-derived display names for every item of a version.

        Returns:
            Number of items updated
        """
        rules = self.get_all(active_only=True)

        try:
            result = (
                self.db.table(self.config.items_table)
                .select("*")
                .eq("version_id", version_id)
                .execute()
            )
            items = [PLUItem(**row) for row in result.data]

            updates = apply_rules_to_items(items, rules)
            for update in updates:
                (
                    self.db.table(self.config.items_table)
                    .update({"display_name": update["display_name"]})
                    .eq("id", update["id"])
                    .execute()
                )

        except Exception as e:
            logger.error("apply_naming_rules_failed", version_id=version_id, error=str(e))
            raise DatabaseError("update", str(e))

        logger.info("naming_rules_applied", version_id=version_id, updated=len(updates))
        return len(updates)


# Singleton instances per list kind
_naming_rule_services: dict[ListKind, NamingRuleService] = {}

def get_naming_rule_service(list_kind: ListKind = ListKind.PRODUCE) -> NamingRuleService:
    """Get or create NamingRuleService instance."""
    list_kind = ListKind(list_kind)
    if list_kind not in _naming_rule_services:
        _naming_rule_services[list_kind] = NamingRuleService(list_kind)
    return _naming_rule_services[list_kind]
