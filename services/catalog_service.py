"""
Catalog service: list data that outlives versions.

Custom products, hidden PLUs and categories are global per list kind.
Item renames and category assignments touch stored items of the active
version; these are the only item fields that change after publish.
"""

from datetime import datetime, timezone
from typing import Iterable, Optional
import structlog

from config import get_supabase_client, ListKind, get_list_config
from models.catalog import (
    CategoryResponse,
    CategoryRule,
    CustomProductCreate,
    CustomProductResponse,
    HiddenItemResponse,
)
from models.plu import PLUItem
from models.version import VersionStatus
from exceptions import (
    CustomProductNotFoundError,
    CustomProductPLUExistsError,
    DatabaseError,
    ItemNotFoundError,
)

logger = structlog.get_logger(__name__)


def apply_category_rules(
    items: Iterable[PLUItem],
    rules: Iterable[CategoryRule],
    only_unassigned: bool = True
) -> dict[str, str]:
    """
    Match items to categories by substring.

    Rules are tried in created_at order; the first match wins. The
    display name is searched, falling back to the system name.

    Returns:
        item id -> category id, only where the category changes
    """
    ordered = sorted(
        (r for r in rules if r.keyword),
        key=lambda r: r.created_at.timestamp() if r.created_at else 0.0
    )
    changes: dict[str, str] = {}

    for item in items:
        if only_unassigned and item.category_id is not None:
            continue

        name = item.display_name or item.system_name or ""
        for rule in ordered:
            haystack = name if rule.case_sensitive else name.lower()
            needle = rule.keyword if rule.case_sensitive else rule.keyword.lower()
            if needle in haystack:
                if rule.category_id != item.category_id:
                    changes[item.id] = rule.category_id
                break

    return changes


class CatalogService:
    """
    Custom products, hidden items, categories and item edits
    for one list kind.
    """

    def __init__(self, list_kind: ListKind = ListKind.PRODUCE):
        self.db = get_supabase_client()
        self.config = get_list_config(list_kind)

    # ===================
    # CUSTOM PRODUCTS
    # ===================

    def get_custom_products(self) -> list[CustomProductResponse]:
        """All custom products, oldest first."""
        try:
            result = (
                self.db.table(self.config.custom_products_table)
                .select("*")
                .order("created_at")
                .execute()
            )
            return [CustomProductResponse(**row) for row in result.data]

        except Exception as e:
            logger.error("get_custom_products_failed", error=str(e))
            raise DatabaseError("select", str(e))

    def create_custom_product(
        self,
        data: CustomProductCreate,
        created_by: Optional[str] = None
    ) -> CustomProductResponse:
        """
        Add a custom product.

        Raises:
            CustomProductPLUExistsError: PLU already in the active master list
                or used by another custom product
        """
        logger.info("creating_custom_product", plu=data.plu, list_kind=self.config.kind.value)

        if data.plu in self._active_master_plus():
            raise CustomProductPLUExistsError(data.plu, "master")
        if any(p.plu == data.plu for p in self.get_custom_products()):
            raise CustomProductPLUExistsError(data.plu, "custom")

        try:
            result = (
                self.db.table(self.config.custom_products_table)
                .insert({
                    "plu": data.plu,
                    "name": data.name,
                    "item_type": data.item_type.value,
                    "price": data.price,
                    "category_id": data.category_id,
                    "created_by": created_by,
                    "created_at": datetime.now(timezone.utc).isoformat(),
                })
                .execute()
            )
            product = CustomProductResponse(**result.data[0])

        except Exception as e:
            logger.error("create_custom_product_failed", plu=data.plu, error=str(e))
            raise DatabaseError("insert", str(e))

        logger.info("custom_product_created", product_id=product.id, plu=product.plu)
        return product

    def delete_custom_product(self, product_id: str) -> None:
        """
        Delete a custom product.

        Raises:
            CustomProductNotFoundError: If it doesn't exist
        """
        try:
            result = (
                self.db.table(self.config.custom_products_table)
                .delete()
                .eq("id", product_id)
                .execute()
            )
        except Exception as e:
            logger.error("delete_custom_product_failed", product_id=product_id, error=str(e))
            raise DatabaseError("delete", str(e))

        if not result.data:
            raise CustomProductNotFoundError(product_id)
        logger.info("custom_product_deleted", product_id=product_id)

    # ===================
    # HIDDEN ITEMS
    # ===================

    def get_hidden_items(self) -> list[HiddenItemResponse]:
        """All hidden PLUs."""
        try:
            result = (
                self.db.table(self.config.hidden_items_table)
                .select("*")
                .order("plu")
                .execute()
            )
            return [HiddenItemResponse(**row) for row in result.data]

        except Exception as e:
            logger.error("get_hidden_items_failed", error=str(e))
            raise DatabaseError("select", str(e))

    def get_hidden_plus(self) -> set[str]:
        """Hidden PLUs as a set for the composer."""
        return {item.plu for item in self.get_hidden_items()}

    def hide(self, plu: str, hidden_by: Optional[str] = None) -> HiddenItemResponse:
        """Hide a PLU. Hiding an already hidden PLU returns the existing entry."""
        for item in self.get_hidden_items():
            if item.plu == plu:
                return item

        try:
            result = (
                self.db.table(self.config.hidden_items_table)
                .insert({
                    "plu": plu,
                    "hidden_by": hidden_by,
                    "created_at": datetime.now(timezone.utc).isoformat(),
                })
                .execute()
            )
        except Exception as e:
            logger.error("hide_item_failed", plu=plu, error=str(e))
            raise DatabaseError("insert", str(e))

        logger.info("item_hidden", plu=plu, list_kind=self.config.kind.value)
        return HiddenItemResponse(**result.data[0])

    def unhide(self, plu: str) -> bool:
        """
        Show a PLU again.

        Returns:
            True if an entry was removed
        """
        try:
            result = (
                self.db.table(self.config.hidden_items_table)
                .delete()
                .eq("plu", plu)
                .execute()
            )
        except Exception as e:
            logger.error("unhide_item_failed", plu=plu, error=str(e))
            raise DatabaseError("delete", str(e))

        logger.info("item_unhidden", plu=plu, removed=bool(result.data))
        return bool(result.data)

    # ===================
    # CATEGORIES
    # ===================

    def get_categories(self) -> list[CategoryResponse]:
        """Categories in display order."""
        try:
            result = (
                self.db.table(self.config.categories_table)
                .select("*")
                .order("order_index")
                .execute()
            )
            return [CategoryResponse(**row) for row in result.data]

        except Exception as e:
            logger.error("get_categories_failed", error=str(e))
            raise DatabaseError("select", str(e))

    def get_category_rules(self) -> list[CategoryRule]:
        """Category rules in application order."""
        try:
            result = (
                self.db.table(self.config.category_rules_table)
                .select("*")
                .order("created_at")
                .execute()
            )
            return [CategoryRule(**row) for row in result.data]

        except Exception as e:
            logger.error("get_category_rules_failed", error=str(e))
            raise DatabaseError("select", str(e))

    def assign_categories_by_rules(self, version_id: str, only_unassigned: bool = True) -> int:
        """
        Persist rule-based category assignments for a version's items.

        Returns:
            Number of items updated
        """
        try:
            result = (
                self.db.table(self.config.items_table)
                .select("*")
                .eq("version_id", version_id)
                .execute()
            )
            items = [PLUItem(**row) for row in result.data]
        except Exception as e:
            logger.error("load_items_for_category_rules_failed", version_id=version_id, error=str(e))
            raise DatabaseError("select", str(e))

        changes = apply_category_rules(items, self.get_category_rules(), only_unassigned)

        try:
            for item_id, category_id in changes.items():
                (
                    self.db.table(self.config.items_table)
                    .update({"category_id": category_id})
                    .eq("id", item_id)
                    .execute()
                )
        except Exception as e:
            logger.error("assign_categories_failed", version_id=version_id, error=str(e))
            raise DatabaseError("update", str(e))

        logger.info("categories_assigned", version_id=version_id, updated=len(changes))
        return len(changes)

    # ===================
    # ITEM EDITS
    # ===================

    def set_item_category(self, item_id: str, category_id: Optional[str]) -> PLUItem:
        """Assign a category manually (None clears it)."""
        return self._update_item(item_id, {"category_id": category_id})

    def rename_item(self, item_id: str, display_name: str) -> PLUItem:
        """Manual rename; naming rules skip the item from now on."""
        logger.info("renaming_item", item_id=item_id)
        return self._update_item(item_id, {
            "display_name": display_name,
            "is_manually_renamed": True,
        })

    def reset_item_name(self, item_id: str) -> PLUItem:
        """Drop a manual rename; naming rules apply again."""
        logger.info("resetting_item_name", item_id=item_id)
        return self._update_item(item_id, {
            "display_name": None,
            "is_manually_renamed": False,
        })

    def _update_item(self, item_id: str, update_data: dict) -> PLUItem:
        try:
            result = (
                self.db.table(self.config.items_table)
                .update(update_data)
                .eq("id", item_id)
                .execute()
            )
        except Exception as e:
            logger.error("update_item_failed", item_id=item_id, error=str(e))
            raise DatabaseError("update", str(e))

        if not result.data:
            raise ItemNotFoundError(item_id)
        return PLUItem(**result.data[0])

    def _active_master_plus(self) -> set[str]:
        try:
            versions = (
                self.db.table(self.config.versions_table)
                .select("id")
                .eq("status", VersionStatus.ACTIVE.value)
                .execute()
            )
            if not versions.data:
                return set()
            items = (
                self.db.table(self.config.items_table)
                .select("plu")
                .eq("version_id", versions.data[0]["id"])
                .execute()
            )
            return {row["plu"] for row in items.data}

        except Exception as e:
            logger.error("get_active_master_plus_failed", error=str(e))
            raise DatabaseError("select", str(e))


# Singleton instances per list kind
_catalog_services: dict[ListKind, CatalogService] = {}

def get_catalog_service(list_kind: ListKind = ListKind.PRODUCE) -> CatalogService:
    """Get or create CatalogService instance."""
    list_kind = ListKind(list_kind)
    if list_kind not in _catalog_services:
        _catalog_services[list_kind] = CatalogService(list_kind)
    return _catalog_services[list_kind]
