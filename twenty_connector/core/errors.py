"""Error taxonomy shared by the client, the reconciliation engine and the API layer.

Categories:
- ConfigurationError: credentials missing or malformed (fail fast)
- InvalidInputError and subclasses: caller input rejected before any request
- OperationError: remote failure re-raised with operation/resource context
"""

from __future__ import annotations

from typing import List, Optional


class TwentyConnectorError(RuntimeError):
    """Base error for everything raised by this package."""


class ConfigurationError(TwentyConnectorError):
    """Twenty 자격 증명(domain/API key) 누락 또는 형식 오류"""


class InvalidInputError(TwentyConnectorError):
    """입력 검증 실패 (요청 전 즉시 실패)"""


class InvalidUuidError(InvalidInputError):
    def __init__(self, value: Optional[str], label: str = "id") -> None:
        super().__init__(
            f'Invalid UUID format for {label}: "{value}". '
            'Must be a valid UUID (e.g., "123e4567-e89b-12d3-a456-426614174000")'
        )
        self.value = value
        self.label = label


class MissingRequiredParameter(InvalidInputError):
    def __init__(self, name: str, message: Optional[str] = None) -> None:
        super().__init__(message or f"{name} is required but was not provided.")
        self.name = name


class UnsupportedSearchMethod(InvalidInputError):
    def __init__(self, search_by: str, resource: Optional[str] = None) -> None:
        suffix = f" for {resource}" if resource else ""
        super().__init__(f"Unsupported search method{suffix}: {search_by}")
        self.search_by = search_by
        self.resource = resource


class FieldNotFound(InvalidInputError):
    def __init__(self, field_name: str, tried_fields: List[str]) -> None:
        super().__init__(f'Field "{field_name}" not found. Tried: {", ".join(tried_fields)}.')
        self.field_name = field_name
        self.tried_fields = tried_fields


class OperationError(TwentyConnectorError):
    """Remote failure wrapped with the operation and resource that triggered it."""

    def __init__(self, operation: str, message: str, *, resource: Optional[str] = None) -> None:
        super().__init__(f"Failed to {operation}: {message}")
        self.operation = operation
        self.resource = resource


class RecordCreationError(OperationError):
    pass
