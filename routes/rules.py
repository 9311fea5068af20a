"""
Naming rule API routes.

Mounted under /api/{list_kind}/rules.
"""

from fastapi import APIRouter, Query
from fastapi.responses import Response

from config import ListKind
from models.naming_rule import NamingRule, NamingRuleCreate, NamingRuleUpdate
from services.naming_rule_service import get_naming_rule_service
from routes.errors import handle_error

router = APIRouter()


@router.get("", response_model=list[NamingRule])
async def list_rules(
    list_kind: ListKind,
    active_only: bool = Query(False, description="Only active rules")
):
    """Rules in application order."""
    try:
        return get_naming_rule_service(list_kind).get_all(active_only=active_only)
    except Exception as e:
        return handle_error(e)


@router.post("", response_model=NamingRule, status_code=201)
async def create_rule(list_kind: ListKind, data: NamingRuleCreate):
    """Create a rule; it applies after existing rules."""
    try:
        return get_naming_rule_service(list_kind).create(data)
    except Exception as e:
        return handle_error(e)


@router.patch("/{rule_id}", response_model=NamingRule)
async def update_rule(list_kind: ListKind, rule_id: str, data: NamingRuleUpdate):
    """
    Update a rule (e.g. toggle is_active).

    Raises:
        404: Rule not found
    """
    try:
        return get_naming_rule_service(list_kind).update(rule_id, data)
    except Exception as e:
        return handle_error(e)


@router.delete("/{rule_id}", status_code=204)
async def delete_rule(list_kind: ListKind, rule_id: str):
    """Delete a rule."""
    try:
        get_naming_rule_service(list_kind).delete(rule_id)
        return Response(status_code=204)
    except Exception as e:
        return handle_error(e)
