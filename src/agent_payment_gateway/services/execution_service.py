"""Execution Service - the gate between a verified payment and the work it buys.

`execute` is the ONLY code path that creates tasks, and it admits a request
only when the payment's status is exactly `verified`. Admitted tasks are run
by the TaskSupervisor in the background; the caller gets the task id back
immediately and polls for the result.

Task lifecycle (guarded by TaskStateMachine):
    processing -> completed   backend returned within the timeout
    processing -> abandoned   backend timed out, raised, or was cancelled
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from agent_payment_gateway.domain.enums import TaskStatus
from agent_payment_gateway.domain.exceptions import (
    InvalidArgumentError,
    PaymentNotFoundError,
    PaymentNotVerifiedError,
    TaskNotFoundError,
)
from agent_payment_gateway.domain.models import Task, utcnow
from agent_payment_gateway.domain.state_machine import TaskStateMachine, validate_transition
from agent_payment_gateway.logging_config import get_logger

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from agent_payment_gateway.domain.execution_protocol import ExecutionBackend
    from agent_payment_gateway.domain.models import Payment, Service
    from agent_payment_gateway.domain.store_protocol import Store
    from agent_payment_gateway.services.registry_service import RegistryService

logger = get_logger(__name__)


class TaskSupervisor:
    """Runs admitted tasks as asyncio tasks with a timeout boundary.

    Every task it starts ends in exactly one of `on_complete` or `on_abandon`.
    """

    def __init__(self, backend: ExecutionBackend, timeout_seconds: float = 60.0) -> None:
        self._backend = backend
        self._timeout = timeout_seconds
        self._running: set[asyncio.Task] = set()
        # task id -> abandon callback, until the task's outcome is recorded
        self._unsettled: dict[str, Callable[[str, str], Awaitable[Any]]] = {}

    def start(self, task: Task, service: Service, on_complete, on_abandon) -> asyncio.Task:
        self._unsettled[task.id] = on_abandon
        job = asyncio.create_task(
            self._run(task, service, on_complete, on_abandon),
            name=f"gateway-task-{task.id}",
        )
        self._running.add(job)
        job.add_done_callback(self._running.discard)
        return job

    async def _run(self, task: Task, service: Service, on_complete, on_abandon) -> None:
        try:
            output = await asyncio.wait_for(
                self._backend.run(service, task.input), timeout=self._timeout
            )
        except TimeoutError:
            await on_abandon(task.id, f"Execution timed out after {self._timeout}s")
        except asyncio.CancelledError:
            await on_abandon(task.id, "Execution cancelled")
            raise
        except Exception as exc:
            logger.exception("task.backend_error", task_id=task.id)
            await on_abandon(task.id, f"Execution failed: {exc}")
        else:
            try:
                await on_complete(task.id, output)
            except asyncio.CancelledError:
                await self._abandon_quietly(
                    on_abandon, task.id, "Execution cancelled while recording completion"
                )
                raise
            except Exception:
                logger.exception("task.completion_failed", task_id=task.id)
        finally:
            self._unsettled.pop(task.id, None)

    @property
    def running(self) -> int:
        return len(self._running)

    async def join(self) -> None:
        """Wait until every started task has finished."""
        while self._running:
            await asyncio.gather(*list(self._running), return_exceptions=True)

    async def shutdown(self) -> None:
        """Cancel outstanding tasks; each is recorded as abandoned."""
        for job in list(self._running):
            job.cancel()
        await asyncio.gather(*list(self._running), return_exceptions=True)

        # Jobs cancelled before their first step never ran their own handler.
        while self._unsettled:
            task_id, on_abandon = self._unsettled.popitem()
            await self._abandon_quietly(on_abandon, task_id, "Execution cancelled before start")

    @staticmethod
    async def _abandon_quietly(on_abandon, task_id: str, reason: str) -> None:
        try:
            await on_abandon(task_id, reason)
        except Exception:
            logger.exception("task.abandon_failed", task_id=task_id, reason=reason)


class ExecutionService:
    """Admits execution requests for verified payments and tracks their tasks."""

    def __init__(
        self,
        payments: Store[Payment],
        tasks: Store[Task],
        registry: RegistryService,
        supervisor: TaskSupervisor,
    ) -> None:
        self._payments = payments
        self._tasks = tasks
        self._registry = registry
        self._supervisor = supervisor

    async def execute(self, payment_id: str | None, task_input: Any = None) -> Task:
        """Admit a task for a verified payment and dispatch it asynchronously.

        Raises:
            InvalidArgumentError: `payment_id` is empty.
            PaymentNotFoundError: The payment does not exist.
            PaymentNotVerifiedError: The payment status is not `verified`.
            ServiceNotFoundError: The payment's service no longer exists.
        """
        if not payment_id:
            raise InvalidArgumentError("payment_id is required")

        payment = await self._payments.get(payment_id)
        if payment is None:
            raise PaymentNotFoundError(payment_id)

        if not payment.is_verified:
            logger.info(
                "task.rejected_unverified",
                payment_id=payment_id,
                status=payment.status,
            )
            raise PaymentNotVerifiedError(payment_id, payment.status.value)

        service = await self._registry.get_service(payment.service_id)

        task = await self._tasks.create(
            Task(
                payment_id=payment.id,
                service_id=service.id,
                service_name=service.name,
                payer_id=payment.payer_id,
                payee_id=payment.payee_id,
                input=task_input if task_input is not None else {},
            )
        )
        self._supervisor.start(task, service, self.complete_task, self.abandon_task)

        logger.info(
            "task.dispatched",
            task_id=task.id,
            payment_id=payment.id,
            service_id=service.id,
        )
        return task

    async def complete_task(self, task_id: str, output: Any) -> Task:
        """Record a finished task and bump its service's completed counter."""

        def _complete(task: Task) -> None:
            task.status = TaskStatus(
                validate_transition(TaskStateMachine, task.status.value, "complete")
            )
            task.output = output
            task.completed_at = utcnow()

        task = await self._update_or_raise(task_id, _complete)
        await self._registry.record_task_completed(task.service_id)
        logger.info("task.completed", task_id=task_id, service_id=task.service_id)
        return task

    async def abandon_task(self, task_id: str, reason: str) -> Task:
        """Record that a task will never complete."""

        def _abandon(task: Task) -> None:
            task.status = TaskStatus(
                validate_transition(TaskStateMachine, task.status.value, "abandon")
            )
            task.error = reason
            task.completed_at = utcnow()

        task = await self._update_or_raise(task_id, _abandon)
        logger.warning("task.abandoned", task_id=task_id, reason=reason)
        return task

    async def get_task(self, task_id: str) -> Task:
        task = await self._tasks.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    async def list_tasks(self) -> list[Task]:
        return await self._tasks.list()

    async def _update_or_raise(self, task_id: str, mutate) -> Task:
        try:
            return await self._tasks.update(task_id, mutate)
        except KeyError as err:
            raise TaskNotFoundError(task_id) from err
