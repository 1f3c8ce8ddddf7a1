"""Price endpoints.

Routes
------
POST /food-item-price   Body: {"foodItem": "西红柿"}   → item price lookup
GET  /food-prices                                     → latest bulletin tables
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from pricewatch.models import PriceQueryFailure

router = APIRouter()

_STATUS_BY_REASON = {
    "invalid_input": 400,
    "no_bulletin": 200,
    "fetch_failed": 500,
}


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class FoodItemPriceRequest(BaseModel):
    foodItem: Optional[str] = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _respond(result: Any) -> JSONResponse:
    status = 200
    if isinstance(result, PriceQueryFailure):
        status = _STATUS_BY_REASON.get(result.reason, 500)
    return JSONResponse(result.to_dict(), status_code=status)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/food-item-price")
def food_item_price(body: FoodItemPriceRequest, request: Request) -> JSONResponse:
    """Look up *foodItem* in the most recent price bulletin."""
    pipeline = request.app.state.pipeline
    return _respond(pipeline.get_food_item_price(body.foodItem or ""))


@router.get("/food-prices")
def food_prices(request: Request) -> JSONResponse:
    """Return the latest bulletin's tables and the ten newest bulletin links."""
    pipeline = request.app.state.pipeline
    return _respond(pipeline.get_latest_prices())
