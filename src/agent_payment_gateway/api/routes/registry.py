"""Agent and service registry REST API routes.

Routes:
    POST   /api/v1/agents          - Register an agent
    GET    /api/v1/agents          - List agents
    GET    /api/v1/agents/{id}     - Get an agent
    POST   /api/v1/services        - List a priced service for an agent
    GET    /api/v1/services        - List services
    GET    /api/v1/services/{id}   - Get a service
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from agent_payment_gateway.api.deps import get_gateway
from agent_payment_gateway.gateway import Gateway
from agent_payment_gateway.schemas.gateway import (
    AgentResponse,
    CreateServiceRequest,
    RegisterAgentRequest,
    ServiceResponse,
)

router = APIRouter(prefix="/api/v1", tags=["Registry"])


# ---------------------------------------------------------------------------
# Agents
# ---------------------------------------------------------------------------


@router.post(
    "/agents",
    response_model=AgentResponse,
    status_code=201,
    summary="Register an agent",
)
async def register_agent(
    request: RegisterAgentRequest,
    gateway: Gateway = Depends(get_gateway),
) -> AgentResponse:
    agent = await gateway.registry.register_agent(
        name=request.name,
        wallet=request.wallet,
        skills=request.skills,
    )
    return AgentResponse.model_validate(agent)


@router.get("/agents", response_model=list[AgentResponse], summary="List agents")
async def list_agents(gateway: Gateway = Depends(get_gateway)) -> list[AgentResponse]:
    agents = await gateway.registry.list_agents()
    return [AgentResponse.model_validate(a) for a in agents]


@router.get("/agents/{agent_id}", response_model=AgentResponse, summary="Get an agent")
async def get_agent(agent_id: str, gateway: Gateway = Depends(get_gateway)) -> AgentResponse:
    agent = await gateway.registry.get_agent(agent_id)
    return AgentResponse.model_validate(agent)


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


@router.post(
    "/services",
    response_model=ServiceResponse,
    status_code=201,
    summary="List a priced service",
)
async def create_service(
    request: CreateServiceRequest,
    gateway: Gateway = Depends(get_gateway),
) -> ServiceResponse:
    """Create a service; its payee wallet is taken from the owning agent."""
    service = await gateway.registry.create_service(
        agent_id=request.agent_id,
        name=request.name,
        price=request.price,
        asset=request.asset,
        description=request.description,
    )
    return ServiceResponse.model_validate(service)


@router.get("/services", response_model=list[ServiceResponse], summary="List services")
async def list_services(gateway: Gateway = Depends(get_gateway)) -> list[ServiceResponse]:
    services = await gateway.registry.list_services()
    return [ServiceResponse.model_validate(s) for s in services]


@router.get(
    "/services/{service_id}",
    response_model=ServiceResponse,
    summary="Get a service",
)
async def get_service(
    service_id: str, gateway: Gateway = Depends(get_gateway)
) -> ServiceResponse:
    service = await gateway.registry.get_service(service_id)
    return ServiceResponse.model_validate(service)
