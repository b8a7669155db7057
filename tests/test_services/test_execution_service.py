"""Tests for the execution gate and the TaskSupervisor.

The gate admits a task if and only if the payment is verified; admitted
tasks always end as `completed` or `abandoned`.
"""

from __future__ import annotations

import asyncio

import pytest

from agent_payment_gateway.domain.enums import TaskStatus
from agent_payment_gateway.domain.exceptions import (
    InvalidArgumentError,
    InvalidStateTransitionError,
    PaymentNotFoundError,
    PaymentNotVerifiedError,
    TaskNotFoundError,
)
from agent_payment_gateway.infrastructure.execution_backend import SimulatedExecutionBackend
from agent_payment_gateway.services.execution_service import TaskSupervisor
from tests.conftest import STRANGER_WALLET, transfer_record


@pytest.fixture
async def verified_payment(gateway, ledger, payment):
    ledger.add(transfer_record("sig-ok", 1_000_000))
    await gateway.verification.verify(payment.id, "sig-ok")
    return await gateway.payments.get_payment(payment.id)


class TestGate:
    @pytest.mark.asyncio
    async def test_pending_payment_is_rejected(self, gateway, backend, payment) -> None:
        with pytest.raises(PaymentNotVerifiedError) as exc_info:
            await gateway.execution.execute(payment.id, {"text": "hi"})

        assert exc_info.value.status == "pending"
        assert await gateway.execution.list_tasks() == []
        assert backend.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("record_kwargs", "status"),
        [
            ({"lamports": 950_000}, "underpaid"),
            ({"lamports": 1_000_000, "succeeded": False}, "failed"),
            ({"lamports": 1_000_000, "payee": STRANGER_WALLET}, "wrong_recipient"),
        ],
    )
    async def test_negative_outcomes_are_rejected(
        self, gateway, ledger, payment, record_kwargs, status
    ) -> None:
        ledger.add(transfer_record("sig", **record_kwargs))
        await gateway.verification.verify(payment.id, "sig")

        with pytest.raises(PaymentNotVerifiedError) as exc_info:
            await gateway.execution.execute(payment.id)
        assert exc_info.value.status == status

    @pytest.mark.asyncio
    async def test_unknown_payment(self, gateway) -> None:
        with pytest.raises(PaymentNotFoundError):
            await gateway.execution.execute("ghost")

    @pytest.mark.asyncio
    async def test_missing_payment_id(self, gateway) -> None:
        with pytest.raises(InvalidArgumentError):
            await gateway.execution.execute(None)

    @pytest.mark.asyncio
    async def test_verified_payment_is_admitted(self, gateway, backend, verified_payment) -> None:
        backend.hold()
        task = await gateway.execution.execute(verified_payment.id, {"text": "hi"})

        assert task.status == TaskStatus.PROCESSING
        assert task.payment_id == verified_payment.id
        assert task.input == {"text": "hi"}

        backend.release.set()
        await gateway.supervisor.join()

    @pytest.mark.asyncio
    async def test_missing_input_defaults_to_empty(self, gateway, verified_payment) -> None:
        task = await gateway.execution.execute(verified_payment.id)
        assert task.input == {}
        await gateway.supervisor.join()

    @pytest.mark.asyncio
    async def test_verified_payment_admits_repeat_executions(
        self, gateway, verified_payment
    ) -> None:
        first = await gateway.execution.execute(verified_payment.id)
        second = await gateway.execution.execute(verified_payment.id)
        await gateway.supervisor.join()

        assert first.id != second.id


class TestCompletion:
    @pytest.mark.asyncio
    async def test_task_completes_with_output(self, gateway, service, verified_payment) -> None:
        task = await gateway.execution.execute(verified_payment.id, {"text": "hi"})
        await gateway.supervisor.join()

        done = await gateway.execution.get_task(task.id)
        assert done.status == TaskStatus.COMPLETED
        assert done.output == {"result": "done: Summarize text", "input": {"text": "hi"}}
        assert done.completed_at is not None
        assert (await gateway.registry.get_service(service.id)).tasks_completed == 1

    @pytest.mark.asyncio
    async def test_backend_error_abandons(self, gateway, backend, verified_payment) -> None:
        backend.error = RuntimeError("provider crashed")
        task = await gateway.execution.execute(verified_payment.id)
        await gateway.supervisor.join()

        done = await gateway.execution.get_task(task.id)
        assert done.status == TaskStatus.ABANDONED
        assert "provider crashed" in done.error

    @pytest.mark.asyncio
    async def test_timeout_abandons(self, gateway, backend, verified_payment) -> None:
        backend.hold()
        task = await gateway.execution.execute(verified_payment.id)
        await gateway.supervisor.join()

        done = await gateway.execution.get_task(task.id)
        assert done.status == TaskStatus.ABANDONED
        assert "timed out" in done.error

    @pytest.mark.asyncio
    async def test_shutdown_abandons_in_flight(self, gateway, backend, verified_payment) -> None:
        backend.hold()
        task = await gateway.execution.execute(verified_payment.id)
        await asyncio.sleep(0)

        await gateway.supervisor.shutdown()

        done = await gateway.execution.get_task(task.id)
        assert done.status == TaskStatus.ABANDONED
        assert gateway.supervisor.running == 0

    @pytest.mark.asyncio
    async def test_shutdown_before_first_step_still_abandons(
        self, gateway, backend, verified_payment
    ) -> None:
        task = await gateway.execution.execute(verified_payment.id)

        await gateway.supervisor.shutdown()

        done = await gateway.execution.get_task(task.id)
        assert done.status == TaskStatus.ABANDONED
        assert backend.calls == []

    @pytest.mark.asyncio
    async def test_completed_task_cannot_be_abandoned(self, gateway, verified_payment) -> None:
        task = await gateway.execution.execute(verified_payment.id)
        await gateway.supervisor.join()

        with pytest.raises(InvalidStateTransitionError):
            await gateway.execution.abandon_task(task.id, "late")

    @pytest.mark.asyncio
    async def test_unknown_task(self, gateway) -> None:
        with pytest.raises(TaskNotFoundError):
            await gateway.execution.get_task("ghost")


class TestSimulatedBackend:
    @pytest.mark.asyncio
    async def test_echoes_input(self, service) -> None:
        output = await SimulatedExecutionBackend(delay_seconds=0).run(service, {"q": 1})

        assert output["input"] == {"q": 1}
        assert output["processed_by"] == "Summarizer"
        assert "Summarize text" in output["result"]

    @pytest.mark.asyncio
    async def test_supervisor_runs_simulated_backend(self, service) -> None:
        completed: list[tuple[str, dict]] = []

        async def on_complete(task_id, output):
            completed.append((task_id, output))

        async def on_abandon(task_id, reason):
            raise AssertionError(reason)

        class _Task:
            id = "t-1"
            input = {"q": 1}

        supervisor = TaskSupervisor(SimulatedExecutionBackend(delay_seconds=0), timeout_seconds=1)
        supervisor.start(_Task(), service, on_complete, on_abandon)
        await supervisor.join()

        assert completed[0][0] == "t-1"

    @pytest.mark.asyncio
    async def test_cancel_while_recording_completion_abandons(self, service) -> None:
        recording = asyncio.Event()
        abandoned: list[tuple[str, str]] = []

        async def on_complete(task_id, output):
            recording.set()
            await asyncio.Event().wait()

        async def on_abandon(task_id, reason):
            abandoned.append((task_id, reason))

        class _Task:
            id = "t-1"
            input = {}

        supervisor = TaskSupervisor(SimulatedExecutionBackend(delay_seconds=0), timeout_seconds=1)
        supervisor.start(_Task(), service, on_complete, on_abandon)
        await recording.wait()

        await supervisor.shutdown()

        assert abandoned == [("t-1", "Execution cancelled while recording completion")]
        assert supervisor.running == 0
