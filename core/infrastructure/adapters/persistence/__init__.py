"""In-memory persistence adapters."""
from .in_memory_repositories import (
    InMemoryOrderRepository,
    InMemoryPaymentRepository,
    InMemoryStore,
)
from .in_memory_unit_of_work import InMemoryUnitOfWork

__all__ = [
    "InMemoryOrderRepository",
    "InMemoryPaymentRepository",
    "InMemoryStore",
    "InMemoryUnitOfWork",
]
