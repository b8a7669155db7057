"""Task execution REST API routes.

Routes:
    POST   /api/v1/tasks        - Execute a task against a verified payment (402 otherwise)
    GET    /api/v1/tasks        - List tasks
    GET    /api/v1/tasks/{id}   - Get task details and, once completed, its output
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from agent_payment_gateway.api.deps import get_gateway
from agent_payment_gateway.gateway import Gateway
from agent_payment_gateway.schemas.gateway import (
    ExecuteTaskRequest,
    TaskDispatchResponse,
    TaskResponse,
)

router = APIRouter(prefix="/api/v1/tasks", tags=["Tasks"])


@router.post(
    "",
    response_model=TaskDispatchResponse,
    status_code=201,
    summary="Execute a paid task",
    responses={402: {"description": "The payment is not verified"}},
)
async def execute_task(
    request: ExecuteTaskRequest | None = None,
    gateway: Gateway = Depends(get_gateway),
) -> TaskDispatchResponse:
    """Admit the task and run it in the background; poll GET /tasks/{id}."""
    request = request or ExecuteTaskRequest()
    task = await gateway.execution.execute(request.payment_id, request.input)
    return TaskDispatchResponse(
        task_id=task.id,
        payment_id=task.payment_id,
        status=task.status,
        message=f"Task accepted by {task.service_name}; poll /api/v1/tasks/{task.id}",
    )


@router.get("", response_model=list[TaskResponse], summary="List tasks")
async def list_tasks(gateway: Gateway = Depends(get_gateway)) -> list[TaskResponse]:
    tasks = await gateway.execution.list_tasks()
    return [TaskResponse.model_validate(t) for t in tasks]


@router.get("/{task_id}", response_model=TaskResponse, summary="Get a task")
async def get_task(task_id: str, gateway: Gateway = Depends(get_gateway)) -> TaskResponse:
    task = await gateway.execution.get_task(task_id)
    return TaskResponse.model_validate(task)
