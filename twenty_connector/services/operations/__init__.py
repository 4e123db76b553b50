# Operations package: importing the resource modules registers their handlers
from twenty_connector.services.operations import company, note, opportunity, person, task
from twenty_connector.services.operations.base import (
    OperationContext,
    build_context,
    get_operation,
    list_operations,
    operation,
)
from twenty_connector.services.operations.executor import execute_batch

__all__ = [
    "OperationContext",
    "build_context",
    "execute_batch",
    "get_operation",
    "list_operations",
    "operation",
    "company",
    "note",
    "opportunity",
    "person",
    "task",
]
