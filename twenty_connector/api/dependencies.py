from __future__ import annotations

import logging
from typing import AsyncIterator, Optional

from fastapi import Header, HTTPException, status

from twenty_connector.core.errors import (
    ConfigurationError,
    InvalidInputError,
    OperationError,
    TwentyConnectorError,
)
from twenty_connector.services.twenty_client import TwentyClient, TwentyClientError, build_twenty_client

logger = logging.getLogger(__name__)


async def get_twenty_client(
    x_twenty_domain: Optional[str] = Header(None, alias="X-Twenty-Domain"),
    x_twenty_api_key: Optional[str] = Header(None, alias="X-Twenty-API-Key"),
) -> AsyncIterator[TwentyClient]:
    """요청 단위 Twenty 클라이언트 (헤더 자격 증명 우선, 없으면 환경 설정)"""
    try:
        client = build_twenty_client(x_twenty_domain, x_twenty_api_key)
    except ConfigurationError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc

    try:
        yield client
    finally:
        await client.close()


def to_http_exception(exc: TwentyConnectorError) -> HTTPException:
    """패키지 에러 -> HTTP 상태 코드 매핑"""
    if isinstance(exc, InvalidInputError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, (TwentyClientError, OperationError)):
        logger.error(f"Twenty API failure: {exc}")
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
