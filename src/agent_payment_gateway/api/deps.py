"""FastAPI dependency injection providers.

Route handlers take the wired Gateway via Depends(get_gateway) instead of
building services per request; the gateway lives on app.state.
"""

from __future__ import annotations

from fastapi import Request

from agent_payment_gateway.gateway import Gateway


def get_gateway(request: Request) -> Gateway:
    """Provide the Gateway attached to the running application."""
    return request.app.state.gateway
