"""Application services - use case orchestration."""

from agent_payment_gateway.services.execution_service import ExecutionService, TaskSupervisor
from agent_payment_gateway.services.payment_service import PaymentInstructions, PaymentService
from agent_payment_gateway.services.registry_service import RegistryService
from agent_payment_gateway.services.stats_service import GatewayStats, StatsService
from agent_payment_gateway.services.verification_service import VerificationService

__all__ = [
    "ExecutionService",
    "GatewayStats",
    "PaymentInstructions",
    "PaymentService",
    "RegistryService",
    "StatsService",
    "TaskSupervisor",
    "VerificationService",
]
