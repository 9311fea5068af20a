"""
List kind configuration.

The produce list and the bakery list share one engine. Everything that
differs between them (table names, item types, feature flags) lives here.
"""

from dataclasses import dataclass
from enum import Enum


class ListKind(str, Enum):
    """Independent product lists, each with its own storage."""
    PRODUCE = "produce"
    BAKERY = "bakery"


# Shared between both lists
PROFILES_TABLE = "profiles"

# PLU codes are exactly five digits
PLU_PATTERN = r"^\d{5}$"


@dataclass(frozen=True)
class ListConfig:
    """Storage identifiers and feature flags for one list kind."""

    kind: ListKind
    versions_table: str
    items_table: str
    custom_products_table: str
    hidden_items_table: str
    naming_rules_table: str
    categories_table: str
    category_rules_table: str
    layout_settings_table: str
    notifications_table: str
    item_types: tuple[str, ...] = ("PIECE", "WEIGHT")
    notifications_enabled: bool = True

    @property
    def has_multiple_item_types(self) -> bool:
        return len(self.item_types) > 1


def _build_config(kind: ListKind, prefix: str, item_types: tuple[str, ...]) -> ListConfig:
    return ListConfig(
        kind=kind,
        versions_table=f"{prefix}versions",
        items_table=f"{prefix}master_plu_items",
        custom_products_table=f"{prefix}custom_products",
        hidden_items_table=f"{prefix}hidden_items",
        naming_rules_table=f"{prefix}naming_rules",
        categories_table=f"{prefix}categories",
        category_rules_table=f"{prefix}category_rules",
        layout_settings_table=f"{prefix}layout_settings",
        notifications_table=f"{prefix}version_notifications",
        item_types=item_types,
    )


LIST_CONFIGS: dict[ListKind, ListConfig] = {
    ListKind.PRODUCE: _build_config(ListKind.PRODUCE, "", ("PIECE", "WEIGHT")),
    # Bakery goods are sold by the piece only
    ListKind.BAKERY: _build_config(ListKind.BAKERY, "bakery_", ("PIECE",)),
}


def get_list_config(kind: ListKind | str) -> ListConfig:
    """
    Resolve the configuration for a list kind.

    Raises:
        ValueError: If the kind is unknown
    """
    return LIST_CONFIGS[ListKind(kind)]
