"""Bottle inventory endpoints.

Handlers only translate between HTTP and the inventory store: they parse ids,
scope every call to the current user, and map absent results to 404.
"""

import logging

from fastapi import APIRouter, HTTPException, Response, status

from cellarbook.models.bottle import Bottle
from cellarbook.schemas.bottle import (
    BottleCreate,
    BottleResponse,
    BottleUpdate,
    CellarSummary,
    VintageStockAdd,
)
from cellarbook.services.auth import RequireAuth
from cellarbook.services.inventory import InventoryStore, parse_bottle_id

from ._common import InventoryStoreDep

logger = logging.getLogger(__name__)

router = APIRouter()


def _not_found(bottle_id: int) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Wine with ID {bottle_id} not found",
    )


def _to_response(bottle: Bottle, store: InventoryStore) -> BottleResponse:
    return BottleResponse.from_bottle(bottle, store.is_vintage_tracked(bottle.category))


@router.get("", response_model=list[BottleResponse])
async def list_bottles(
    current_user: RequireAuth,
    store: InventoryStoreDep,
    category: str | None = None,
) -> list[BottleResponse]:
    """List the current user's bottles, optionally for one category."""
    if category:
        bottles = await store.list_by_category(category, owner_id=current_user.id)
    else:
        bottles = await store.list_bottles(owner_id=current_user.id)
    return [_to_response(b, store) for b in bottles]


@router.get("/summary", response_model=CellarSummary)
async def cellar_summary(
    current_user: RequireAuth,
    store: InventoryStoreDep,
) -> CellarSummary:
    """Bottle totals per category for the current user."""
    totals = await store.category_totals(current_user.id)
    return CellarSummary(total_bottles=sum(totals.values()), by_category=totals)


@router.get("/category/{category}", response_model=list[BottleResponse])
async def list_bottles_by_category(
    category: str,
    current_user: RequireAuth,
    store: InventoryStoreDep,
) -> list[BottleResponse]:
    """List the current user's bottles in one category (exact match)."""
    bottles = await store.list_by_category(category, owner_id=current_user.id)
    return [_to_response(b, store) for b in bottles]


@router.get("/{bottle_id}", response_model=BottleResponse)
async def get_bottle(
    bottle_id: str,
    current_user: RequireAuth,
    store: InventoryStoreDep,
) -> BottleResponse:
    """Get one bottle."""
    parsed_id = parse_bottle_id(bottle_id)
    bottle = await store.get(parsed_id, owner_id=current_user.id)
    if bottle is None:
        raise _not_found(parsed_id)
    return _to_response(bottle, store)


@router.post("", response_model=BottleResponse, status_code=status.HTTP_201_CREATED)
async def create_bottle(
    payload: BottleCreate,
    current_user: RequireAuth,
    store: InventoryStoreDep,
) -> BottleResponse:
    """Add a bottle to the current user's inventory."""
    bottle = await store.create(payload.model_dump(mode="json"), owner_id=current_user.id)
    return _to_response(bottle, store)


@router.patch("/{bottle_id}", response_model=BottleResponse)
async def update_bottle(
    bottle_id: str,
    payload: BottleUpdate,
    current_user: RequireAuth,
    store: InventoryStoreDep,
) -> BottleResponse:
    """Update only the supplied fields of a bottle."""
    parsed_id = parse_bottle_id(bottle_id)
    bottle = await store.update(
        parsed_id,
        payload.model_dump(mode="json", exclude_unset=True),
        owner_id=current_user.id,
    )
    if bottle is None:
        raise _not_found(parsed_id)
    return _to_response(bottle, store)


@router.delete("/{bottle_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_bottle(
    bottle_id: str,
    current_user: RequireAuth,
    store: InventoryStoreDep,
) -> Response:
    """Remove a bottle from the inventory."""
    parsed_id = parse_bottle_id(bottle_id)
    if not await store.delete(parsed_id, owner_id=current_user.id):
        raise _not_found(parsed_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{bottle_id}/vintages", response_model=BottleResponse)
async def add_vintage_stock(
    bottle_id: str,
    payload: VintageStockAdd,
    current_user: RequireAuth,
    store: InventoryStoreDep,
) -> BottleResponse:
    """Add bottles of one vintage; an existing entry for that year is topped up."""
    parsed_id = parse_bottle_id(bottle_id)
    bottle = await store.add_vintage_stock(
        parsed_id, payload.vintage, payload.stock, owner_id=current_user.id
    )
    if bottle is None:
        raise _not_found(parsed_id)
    return _to_response(bottle, store)


@router.delete("/{bottle_id}/vintages/{vintage}", response_model=BottleResponse)
async def remove_vintage(
    bottle_id: str,
    vintage: int,
    current_user: RequireAuth,
    store: InventoryStoreDep,
) -> BottleResponse:
    """Remove one vintage year from a bottle."""
    parsed_id = parse_bottle_id(bottle_id)
    bottle = await store.remove_vintage(parsed_id, vintage, owner_id=current_user.id)
    if bottle is None:
        raise _not_found(parsed_id)
    return _to_response(bottle, store)
