"""
Display list composition.

Builds the list every viewer sees from stored data:

    master items + custom products - hidden PLUs + naming rules = display list

build_display_list() is pure and cheap, so it runs on every render and
every settings change. Nothing it produces is persisted.
"""

from typing import Optional
import structlog

from config import ListKind, get_list_config
from models.display import (
    DisplayInput,
    DisplayItem,
    DisplayList,
    DisplayStats,
    SortMode,
)
from models.plu import PLUStatus
from services.naming_rule_service import apply_naming_rules, get_naming_rule_service
from services.version_service import get_version_service
from services.catalog_service import get_catalog_service
from services.layout_settings_service import get_layout_settings_service
from utils.text_utils import german_sort_key
from utils.week_utils import current_week_and_year, iso_week_and_year, weeks_between
from exceptions import VersionNotFoundError

logger = structlog.get_logger(__name__)

# Uncategorized items sort after every category
_UNCATEGORIZED_ORDER = float("inf")


def build_display_list(data: DisplayInput) -> DisplayList:
    """
    Compose the display list.

    Steps, in this order:
    1. Master items; NEW_PRODUCT_YELLOW decays to UNCHANGED once the
       version is mark_yellow_weeks old
    2. Custom products whose PLU is not a master PLU (master wins); their
       "new" window starts at their own creation week
    3. Drop hidden PLUs
    4. Naming rules (manually renamed items are skipped)
    5. Category names
    6. Sort
    7. Stats
    """
    weeks_since_version = weeks_between(
        data.version_week, data.version_year,
        data.current_week, data.current_year
    )

    # 1.
    items: list[DisplayItem] = []
    for item in data.master_items:
        status = item.status
        if status == PLUStatus.NEW_PRODUCT_YELLOW and weeks_since_version >= data.mark_yellow_weeks:
            status = PLUStatus.UNCHANGED
        items.append(DisplayItem(
            id=item.id,
            plu=item.plu,
            system_name=item.system_name,
            display_name=item.display_name or item.system_name,
            item_type=item.item_type,
            status=status,
            old_plu=item.old_plu,
            category_id=item.category_id,
            price=item.price,
            is_custom=False,
            is_manually_renamed=item.is_manually_renamed,
        ))

    # 2.
    master_plus = {item.plu for item in data.master_items}
    for product in data.custom_products:
        if product.plu in master_plus:
            continue
        added_week, added_year = iso_week_and_year(product.created_at)
        weeks_since_added = weeks_between(added_week, added_year, data.current_week, data.current_year)
        items.append(DisplayItem(
            id=product.id,
            plu=product.plu,
            system_name=product.name,
            display_name=product.name,
            item_type=product.item_type,
            status=(
                PLUStatus.NEW_PRODUCT_YELLOW
                if weeks_since_added < data.mark_yellow_weeks
                else PLUStatus.UNCHANGED
            ),
            category_id=product.category_id,
            price=product.price,
            is_custom=True,
            created_by=product.created_by,
        ))

    # 3.
    items = [item for item in items if item.plu not in data.hidden_plus]

    # 4.
    active_rules = [rule for rule in data.naming_rules if rule.is_active]
    if active_rules:
        items = [
            item if item.is_manually_renamed
            else item.model_copy(update={
                "display_name": apply_naming_rules(item.display_name, active_rules)
            })
            for item in items
        ]

    # 5.
    category_names = {c.id: c.name for c in data.categories}
    items = [
        item.model_copy(update={"category_name": category_names.get(item.category_id)})
        if item.category_id else item
        for item in items
    ]

    # 6.
    if data.sort_mode == SortMode.BY_CATEGORY:
        category_order = {c.id: c.order_index for c in data.categories}
        items.sort(key=lambda i: (
            category_order.get(i.category_id, _UNCATEGORIZED_ORDER),
            german_sort_key(i.display_name),
        ))
    else:
        items.sort(key=lambda i: german_sort_key(i.display_name))

    # 7.
    stats = DisplayStats(
        total=len(items),
        hidden=len(data.hidden_plus),
        new=sum(1 for i in items if i.status == PLUStatus.NEW_PRODUCT_YELLOW),
        changed=sum(1 for i in items if i.status == PLUStatus.PLU_CHANGED_RED),
        custom=sum(1 for i in items if i.is_custom),
    )

    return DisplayList(items=items, stats=stats)


class DisplayService:
    """
    Loads everything the composer needs for one list kind.

    Feature flags in the layout settings switch off custom products,
    hidden items, categories or naming rules for the whole list.
    """

    def __init__(self, list_kind: ListKind = ListKind.PRODUCE):
        self.config = get_list_config(list_kind)
        self.versions = get_version_service(list_kind)
        self.catalog = get_catalog_service(list_kind)
        self.rules = get_naming_rule_service(list_kind)
        self.layout = get_layout_settings_service(list_kind)

    def get_display_input(
        self,
        version_id: Optional[str] = None,
        sort_mode: Optional[SortMode] = None
    ) -> DisplayInput:
        """
        Gather composer input for a version (active version by default).

        Raises:
            VersionNotFoundError: No version given and none active
        """
        if version_id:
            version = self.versions.get_by_id(version_id)
        else:
            version = self.versions.get_active() or self.versions.ensure_active_version()
            if version is None:
                raise VersionNotFoundError("active")

        layout = self.layout.get()
        current_week, current_year = current_week_and_year()

        return DisplayInput(
            master_items=self.versions.get_items([version.id]),
            custom_products=self.catalog.get_custom_products() if layout.features_custom_products else [],
            hidden_plus=self.catalog.get_hidden_plus() if layout.features_hidden_items else set(),
            naming_rules=self.rules.get_all(active_only=True) if layout.features_naming_rules else [],
            categories=self.catalog.get_categories() if layout.features_categories else [],
            sort_mode=sort_mode or layout.sort_mode,
            mark_yellow_weeks=layout.mark_yellow_weeks,
            version_week=version.week_number,
            version_year=version.year,
            current_week=current_week,
            current_year=current_year,
        )

    def get_display_list(
        self,
        version_id: Optional[str] = None,
        sort_mode: Optional[SortMode] = None
    ) -> DisplayList:
        """Load and compose the display list."""
        data = self.get_display_input(version_id, sort_mode)
        result = build_display_list(data)
        logger.info(
            "display_list_built",
            list_kind=self.config.kind.value,
            sort_mode=data.sort_mode.value,
            **result.stats.model_dump()
        )
        return result


# Singleton instances per list kind
_display_services: dict[ListKind, DisplayService] = {}

def get_display_service(list_kind: ListKind = ListKind.PRODUCE) -> DisplayService:
    """Get or create DisplayService instance."""
    list_kind = ListKind(list_kind)
    if list_kind not in _display_services:
        _display_services[list_kind] = DisplayService(list_kind)
    return _display_services[list_kind]
