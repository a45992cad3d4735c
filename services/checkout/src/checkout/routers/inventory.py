"""
Store inventory API router for VoxPay.

Read-only access to the demo catalogue and the item → intent quote the
assistant would propose.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query

from checkout.inventory import find_item, list_items, quote
from checkout.schemas import InventoryMatchResponse, InventoryResponse

router = APIRouter(prefix="/inventory", tags=["inventory"])


@router.get("", response_model=InventoryResponse)
async def get_inventory() -> InventoryResponse:
    items = list_items()
    return InventoryResponse(items=items, total=len(items))


@router.get("/search", response_model=InventoryMatchResponse)
async def search_inventory(q: str = Query(..., min_length=1)) -> InventoryMatchResponse:
    item = find_item(q)
    intent = quote(q)
    if item is None or intent is None:
        raise HTTPException(status_code=404, detail=f"No item matches '{q}'")
    return InventoryMatchResponse(item=item, intent=intent)
