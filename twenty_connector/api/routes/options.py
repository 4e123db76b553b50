"""
Load Options API Routes

GET /api/options/{resource}             - [{name, value}] 선택 목록 (최대 100건)
GET /api/options/fields/{object_name}   - 오브젝트 메타데이터 필드
"""
from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from twenty_connector.api.dependencies import get_twenty_client, to_http_exception
from twenty_connector.core.errors import TwentyConnectorError
from twenty_connector.services.load_options import LoadOptionsService
from twenty_connector.services.twenty_client import TwentyClient

router = APIRouter(prefix="/options", tags=["options"])


@router.get("/fields/{object_name}")
async def list_object_fields(
    object_name: str,
    client: TwentyClient = Depends(get_twenty_client),
) -> List[Dict[str, Any]]:
    try:
        return await LoadOptionsService(client).list_fields(object_name)
    except TwentyConnectorError as exc:
        raise to_http_exception(exc) from exc


@router.get("/{resource}")
async def list_resource_options(
    resource: str,
    client: TwentyClient = Depends(get_twenty_client),
) -> List[Dict[str, Any]]:
    try:
        return await LoadOptionsService(client).list_resource(resource)
    except TwentyConnectorError as exc:
        raise to_http_exception(exc) from exc
