"""
Twenty 연결 확인 스크립트

자격 증명으로 스키마 쿼리를 실행하고, 옵션으로 필드 이름 해석 결과를 출력합니다.

    python scripts/verify_connection.py --domain crm.example.com --api-key ...
    python scripts/verify_connection.py --object person --field instagram
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional

from twenty_connector.core.errors import TwentyConnectorError
from twenty_connector.services.field_resolver import FieldResolver
from twenty_connector.services.twenty_client import build_twenty_client

LOGGER = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")


async def verify(domain: Optional[str], api_key: Optional[str], object_type: str, field: Optional[str]) -> bool:
    client = build_twenty_client(domain, api_key)
    async with client:
        LOGGER.info(f"Twenty 도메인: {client.base_url}")
        if not await client.health_check():
            LOGGER.error("연결 실패: 자격 증명 또는 도메인을 확인하세요")
            return False
        LOGGER.info("연결 성공")

        if field:
            resolution = await FieldResolver(client).resolve(object_type, field)
            LOGGER.info(
                "필드 해석: %s -> %s (exists=%s, fallback=%s, tried=%s)",
                field,
                resolution.resolved_field,
                resolution.field_exists,
                resolution.fallback_used,
                resolution.tried_fields,
            )
    return True


def main() -> None:
    parser = argparse.ArgumentParser(description="Twenty CRM 연결 확인")
    parser.add_argument("--domain", help="Twenty 도메인 (기본: TWENTY_DOMAIN)")
    parser.add_argument("--api-key", help="Twenty API 키 (기본: TWENTY_API_KEY)")
    parser.add_argument("--object", default="person", help="필드 해석 대상 오브젝트 (기본: person)")
    parser.add_argument("--field", help="해석할 필드 이름 (예: instagram)")
    args = parser.parse_args()

    try:
        ok = asyncio.run(verify(args.domain, args.api_key, args.object, args.field))
    except TwentyConnectorError as e:
        LOGGER.error(f"확인 실패: {e}")
        ok = False
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
