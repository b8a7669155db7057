"""Database infrastructure - engine, ORM models, and repositories."""

from agent_payment_gateway.infrastructure.database.engine import (
    close_db,
    create_tables,
    get_session_factory,
    init_db,
    ping_db,
)
from agent_payment_gateway.infrastructure.database.orm_models import (
    AgentModel,
    Base,
    PaymentModel,
    ServiceModel,
    TaskModel,
)
from agent_payment_gateway.infrastructure.database.repositories import (
    AgentRepository,
    PaymentRepository,
    ServiceRepository,
    SqlRepository,
    TaskRepository,
)

__all__ = [
    "AgentModel",
    "AgentRepository",
    "Base",
    "PaymentModel",
    "PaymentRepository",
    "ServiceModel",
    "ServiceRepository",
    "SqlRepository",
    "TaskModel",
    "TaskRepository",
    "close_db",
    "create_tables",
    "get_session_factory",
    "init_db",
    "ping_db",
]
