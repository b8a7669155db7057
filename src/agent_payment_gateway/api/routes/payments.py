"""Payment REST API routes.

Routes:
    POST   /api/v1/payments              - Initiate a payment for a service
    GET    /api/v1/payments              - List payments
    GET    /api/v1/payments/{id}         - Get payment details
    GET    /api/v1/payments/{id}/status  - Lightweight status check
    POST   /api/v1/payments/{id}/verify  - Verify a claimed transaction on-chain

A verification attempt that ends in any outcome is a 200, including the
negative ones (not_found, failed, wrong_recipient, underpaid); only an
oracle failure (`error`) is reported as a 500 so clients know to retry.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from agent_payment_gateway.api.deps import get_gateway
from agent_payment_gateway.domain.enums import VerificationResult
from agent_payment_gateway.gateway import Gateway
from agent_payment_gateway.schemas.gateway import (
    InitiatePaymentRequest,
    InitiatePaymentResponse,
    PaymentInstructionsResponse,
    PaymentResponse,
    PaymentStatusResponse,
    VerificationResponse,
    VerifyPaymentRequest,
)

router = APIRouter(prefix="/api/v1/payments", tags=["Payments"])


@router.post(
    "",
    response_model=InitiatePaymentResponse,
    status_code=201,
    summary="Initiate a payment",
)
async def initiate_payment(
    request: InitiatePaymentRequest,
    gateway: Gateway = Depends(get_gateway),
) -> InitiatePaymentResponse:
    """Create a pending payment and return where to send funds."""
    payment, instructions = await gateway.payments.initiate_payment(
        service_id=request.service_id,
        payer_id=request.payer_id,
    )
    return InitiatePaymentResponse(
        payment_id=payment.id,
        status=payment.status,
        instructions=PaymentInstructionsResponse.model_validate(instructions),
    )


@router.get("", response_model=list[PaymentResponse], summary="List payments")
async def list_payments(gateway: Gateway = Depends(get_gateway)) -> list[PaymentResponse]:
    payments = await gateway.payments.list_payments()
    return [PaymentResponse.model_validate(p) for p in payments]


@router.get("/{payment_id}", response_model=PaymentResponse, summary="Get a payment")
async def get_payment(
    payment_id: str, gateway: Gateway = Depends(get_gateway)
) -> PaymentResponse:
    payment = await gateway.payments.get_payment(payment_id)
    return PaymentResponse.model_validate(payment)


@router.get(
    "/{payment_id}/status",
    response_model=PaymentStatusResponse,
    summary="Lightweight payment status check",
)
async def get_payment_status(
    payment_id: str, gateway: Gateway = Depends(get_gateway)
) -> PaymentStatusResponse:
    """Status plus the verification events that can still fire."""
    payment = await gateway.payments.get_payment(payment_id)
    allowed = await gateway.verification.get_allowed_events(payment_id)
    return PaymentStatusResponse(
        payment_id=payment.id,
        status=payment.status,
        tx_signature=payment.tx_signature,
        allowed_events=allowed,
    )


@router.post(
    "/{payment_id}/verify",
    response_model=VerificationResponse,
    summary="Verify a payment on-chain",
    responses={500: {"description": "The ledger could not be queried; retry later"}},
)
async def verify_payment(
    payment_id: str,
    response: Response,
    request: VerifyPaymentRequest | None = None,
    gateway: Gateway = Depends(get_gateway),
) -> VerificationResponse:
    """Check the claimed transaction against the ledger and record the outcome."""
    outcome = await gateway.verification.verify(
        payment_id,
        request.tx_signature if request is not None else None,
    )
    if outcome.result == VerificationResult.VERIFICATION_ERROR:
        response.status_code = 500

    return VerificationResponse(
        payment_id=outcome.payment_id,
        result=outcome.result.value,
        status=outcome.status,
        verified=outcome.is_verified,
        tx_signature=outcome.tx_signature,
        message=outcome.message,
        asset=outcome.asset,
        expected=outcome.expected,
        received=outcome.received,
        slot=outcome.slot,
        block_time=outcome.block_time,
        verified_at=outcome.verified_at,
        error=outcome.error,
    )
