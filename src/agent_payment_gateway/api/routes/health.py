"""Health check and agent discovery endpoints.

/health reports liveness plus a few cheap counters; it is used by Docker
healthchecks and load balancers. /.well-known/agent.json is the A2A agent
card other agents fetch to discover what this gateway offers and how to pay.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from agent_payment_gateway import __version__
from agent_payment_gateway.api.deps import get_gateway
from agent_payment_gateway.gateway import Gateway
from agent_payment_gateway.logging_config import get_logger
from agent_payment_gateway.schemas.gateway import HealthResponse

router = APIRouter(tags=["Health"])
logger = get_logger(__name__)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Returns the health status of the gateway and its storage backend.",
)
async def health_check(gateway: Gateway = Depends(get_gateway)) -> HealthResponse:
    """Report liveness, storage connectivity and basic counters."""
    status = "ok"
    storage = gateway.settings.storage_backend

    if gateway.settings.uses_database:
        from agent_payment_gateway.infrastructure.database.engine import ping_db

        try:
            await ping_db()
        except Exception as exc:
            status = "degraded"
            logger.error("health.db_check_failed", error=str(exc))

    stats = await gateway.stats.snapshot()
    return HealthResponse(
        status=status,
        version=__version__,
        network=gateway.settings.solana_network,
        storage=storage,
        agents=stats.agents,
        services=stats.services,
        payments=stats.payments_total,
        running_tasks=gateway.supervisor.running,
        uptime_seconds=round(gateway.uptime_seconds, 3),
    )


@router.get(
    "/.well-known/agent.json",
    summary="A2A agent card",
    description="Machine-readable description of the gateway and its services.",
)
async def agent_card(gateway: Gateway = Depends(get_gateway)) -> dict:
    """Describe the gateway and every listed service for agent discovery."""
    base_url = gateway.settings.app_public_url.rstrip("/")
    services = await gateway.registry.list_services()
    return {
        "name": "Agent Payment Gateway",
        "description": (
            "Pay-per-task gateway for AI agents. Payments settle on Solana and "
            "are verified on-chain before any work runs."
        ),
        "url": base_url,
        "version": __version__,
        "capabilities": {"streaming": False, "pushNotifications": False},
        "payment": {
            "chain": "solana",
            "network": gateway.settings.solana_network,
            "verification": "on-chain",
            "flow": [
                f"POST {base_url}/api/v1/payments",
                f"POST {base_url}/api/v1/payments/{{payment_id}}/verify",
                f"POST {base_url}/api/v1/tasks",
            ],
        },
        "skills": [
            {
                "id": service.id,
                "name": service.name,
                "description": service.description,
                "agent": service.agent_name,
                "price": str(service.price),
                "asset": service.asset.value,
            }
            for service in services
        ],
    }
