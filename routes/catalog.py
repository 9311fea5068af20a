"""
Catalog API routes: custom products, hidden items, categories, item edits.

Mounted under /api/{list_kind}.
"""

from fastapi import APIRouter, Query
from fastapi.responses import Response
from typing import Optional

from config import ListKind
from models.catalog import (
    CategoryResponse,
    CustomProductCreate,
    CustomProductResponse,
    HiddenItemResponse,
    HideItemRequest,
    ItemCategoryRequest,
    ItemRenameRequest,
)
from models.plu import PLUItem
from services.catalog_service import get_catalog_service
from routes.errors import handle_error

router = APIRouter()


# ===================
# CUSTOM PRODUCTS
# ===================

@router.get("/custom-products", response_model=list[CustomProductResponse])
async def list_custom_products(list_kind: ListKind):
    """All custom products."""
    try:
        return get_catalog_service(list_kind).get_custom_products()
    except Exception as e:
        return handle_error(e)


@router.post("/custom-products", response_model=CustomProductResponse, status_code=201)
async def create_custom_product(
    list_kind: ListKind,
    data: CustomProductCreate,
    created_by: Optional[str] = Query(None)
):
    """
    Add a custom product.

    Raises:
        409: PLU already used by the master list or another custom product
    """
    try:
        return get_catalog_service(list_kind).create_custom_product(data, created_by)
    except Exception as e:
        return handle_error(e)


@router.delete("/custom-products/{product_id}", status_code=204)
async def delete_custom_product(list_kind: ListKind, product_id: str):
    """Delete a custom product."""
    try:
        get_catalog_service(list_kind).delete_custom_product(product_id)
        return Response(status_code=204)
    except Exception as e:
        return handle_error(e)


# ===================
# HIDDEN ITEMS
# ===================

@router.get("/hidden-items", response_model=list[HiddenItemResponse])
async def list_hidden_items(list_kind: ListKind):
    """All hidden PLUs."""
    try:
        return get_catalog_service(list_kind).get_hidden_items()
    except Exception as e:
        return handle_error(e)


@router.post("/hidden-items", response_model=HiddenItemResponse, status_code=201)
async def hide_item(list_kind: ListKind, data: HideItemRequest):
    """Hide a PLU from display (data is kept)."""
    try:
        return get_catalog_service(list_kind).hide(data.plu, data.hidden_by)
    except Exception as e:
        return handle_error(e)


@router.delete("/hidden-items/{plu}", status_code=204)
async def unhide_item(list_kind: ListKind, plu: str):
    """Show a hidden PLU again."""
    try:
        get_catalog_service(list_kind).unhide(plu)
        return Response(status_code=204)
    except Exception as e:
        return handle_error(e)


# ===================
# CATEGORIES
# ===================

@router.get("/categories", response_model=list[CategoryResponse])
async def list_categories(list_kind: ListKind):
    """Categories in display order."""
    try:
        return get_catalog_service(list_kind).get_categories()
    except Exception as e:
        return handle_error(e)


# ===================
# ITEM EDITS
# ===================

@router.put("/items/{item_id}/name", response_model=PLUItem)
async def rename_item(list_kind: ListKind, item_id: str, data: ItemRenameRequest):
    """Manual rename; naming rules no longer apply to this item."""
    try:
        return get_catalog_service(list_kind).rename_item(item_id, data.display_name)
    except Exception as e:
        return handle_error(e)


@router.delete("/items/{item_id}/name", response_model=PLUItem)
async def reset_item_name(list_kind: ListKind, item_id: str):
    """Drop a manual rename."""
    try:
        return get_catalog_service(list_kind).reset_item_name(item_id)
    except Exception as e:
        return handle_error(e)


@router.put("/items/{item_id}/category", response_model=PLUItem)
async def set_item_category(list_kind: ListKind, item_id: str, data: ItemCategoryRequest):
    """Assign or clear an item's category."""
    try:
        return get_catalog_service(list_kind).set_item_category(item_id, data.category_id)
    except Exception as e:
        return handle_error(e)
