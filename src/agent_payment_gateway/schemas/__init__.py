"""Pydantic API schemas."""

from agent_payment_gateway.schemas.gateway import (
    AgentResponse,
    CreateServiceRequest,
    ExecuteTaskRequest,
    HealthResponse,
    InitiatePaymentRequest,
    InitiatePaymentResponse,
    PaymentInstructionsResponse,
    PaymentResponse,
    PaymentStatusResponse,
    RegisterAgentRequest,
    ServiceResponse,
    StatsResponse,
    TaskDispatchResponse,
    TaskResponse,
    VerificationResponse,
    VerifyPaymentRequest,
)

__all__ = [
    "AgentResponse",
    "CreateServiceRequest",
    "ExecuteTaskRequest",
    "HealthResponse",
    "InitiatePaymentRequest",
    "InitiatePaymentResponse",
    "PaymentInstructionsResponse",
    "PaymentResponse",
    "PaymentStatusResponse",
    "RegisterAgentRequest",
    "ServiceResponse",
    "StatsResponse",
    "TaskDispatchResponse",
    "TaskResponse",
    "VerificationResponse",
    "VerifyPaymentRequest",
]
