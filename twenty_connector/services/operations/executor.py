from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Sequence

from twenty_connector.core.errors import OperationError, TwentyConnectorError
from twenty_connector.services.operations.base import (
    Handler,
    OperationContext,
    build_context,
    get_operation,
)
from twenty_connector.services.twenty_client import TwentyClient, TwentyClientError

logger = logging.getLogger(__name__)


async def _run_item(
    handler: Handler,
    ctx: OperationContext,
    params: Mapping[str, Any],
    resource: str,
    operation_name: str,
) -> Dict[str, Any]:
    try:
        return await handler(ctx, params)
    except TwentyClientError as exc:
        logger.error(f"Twenty API error during {resource}:{operation_name}: {exc}")
        raise OperationError(f"{operation_name} {resource}", str(exc), resource=resource) from exc


async def execute_batch(
    client: TwentyClient,
    resource: str,
    operation_name: str,
    items: Sequence[Mapping[str, Any]],
    *,
    continue_on_fail: bool = False,
) -> List[Dict[str, Any]]:
    """
    아이템 목록에 오퍼레이션을 순차 실행

    continue_on_fail 이면 아이템별 에러를 결과에 기록하고 계속 진행,
    아니면 첫 에러에서 중단한다.
    """
    handler = get_operation(resource, operation_name)
    ctx = build_context(client)
    results: List[Dict[str, Any]] = []

    logger.info(f"Executing {resource}:{operation_name} for {len(items)} item(s)")
    for index, params in enumerate(items):
        try:
            results.append(await _run_item(handler, ctx, params, resource, operation_name))
        except Exception as exc:
            if not continue_on_fail:
                raise
            if isinstance(exc, TwentyConnectorError):
                logger.warning("Item %s failed for %s:%s: %s", index, resource, operation_name, exc)
            else:
                logger.exception(f"Unexpected error in item {index} for {resource}:{operation_name}")
            results.append(
                {
                    "error": str(exc),
                    "resource": resource,
                    "operation": operation_name,
                    "success": False,
                }
            )
    return results
