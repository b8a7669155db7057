"""Gateway statistics route."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from agent_payment_gateway.api.deps import get_gateway
from agent_payment_gateway.gateway import Gateway
from agent_payment_gateway.schemas.gateway import StatsResponse

router = APIRouter(prefix="/api/v1", tags=["Stats"])


@router.get("/stats", response_model=StatsResponse, summary="Earnings and activity")
async def get_stats(gateway: Gateway = Depends(get_gateway)) -> StatsResponse:
    """Aggregates recomputed from the stores on every call."""
    return StatsResponse.model_validate(await gateway.stats.snapshot())
