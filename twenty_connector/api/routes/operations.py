"""
Operation API Routes

POST /api/operations/{resource}/{operation} - items 배치 실행 (person:create, company:update, ...)
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from twenty_connector.api.dependencies import get_twenty_client, to_http_exception
from twenty_connector.core.errors import TwentyConnectorError
from twenty_connector.services.operations import execute_batch
from twenty_connector.services.twenty_client import TwentyClient

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/operations", tags=["operations"])


class OperationRequest(BaseModel):
    """Batch of parameter items for one resource:operation."""

    model_config = ConfigDict(populate_by_name=True)

    items: List[Dict[str, Any]] = Field(default_factory=lambda: [{}])
    continue_on_fail: bool = Field(default=False, alias="continueOnFail")


class OperationResponse(BaseModel):
    resource: str
    operation: str
    results: List[Dict[str, Any]]


@router.post("/{resource}/{operation}", response_model=OperationResponse)
async def run_operation(
    resource: str,
    operation: str,
    request: OperationRequest,
    client: TwentyClient = Depends(get_twenty_client),
) -> OperationResponse:
    try:
        results = await execute_batch(
            client,
            resource,
            operation,
            request.items,
            continue_on_fail=request.continue_on_fail,
        )
    except TwentyConnectorError as exc:
        logger.warning(f"{resource}:{operation} failed: {exc}")
        raise to_http_exception(exc) from exc

    return OperationResponse(resource=resource, operation=operation, results=results)
