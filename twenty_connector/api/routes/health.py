from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends

from twenty_connector.api.dependencies import get_twenty_client
from twenty_connector.services.operations import list_operations
from twenty_connector.services.twenty_client import TwentyClient

router = APIRouter(tags=["health"])


@router.get("/health")
def read_health() -> dict:
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/status")
async def read_status(client: TwentyClient = Depends(get_twenty_client)) -> Dict[str, Any]:
    """
    Twenty 연결 상태 및 사용 가능한 오퍼레이션 목록

    자격 증명 테스트와 동일한 스키마 쿼리로 연결 여부를 확인한다.
    """
    connected = await client.health_check()
    return {
        "ready": connected,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "twentyDomain": client.base_url,
        "operations": list_operations(),
    }
