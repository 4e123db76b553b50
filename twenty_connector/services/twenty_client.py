"""
Twenty CRM API Client

- GraphQL (/graphql): 조회/생성/수정/삭제 전부
- REST (/rest/...): 레거시 경로, 브래킷 필터 문법 지원
- Metadata REST (/rest/metadata/...): 오브젝트 필드 목록
- Bearer 토큰 인증, 재시도 없음 (실패는 호출자에게 그대로 전달)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from twenty_connector.core.config import get_settings
from twenty_connector.core.errors import ConfigurationError, TwentyConnectorError
from twenty_connector.utils.validation import (
    PATH_UUID_PATTERN,
    prepare_request_body,
    validate_uuid,
)

logger = logging.getLogger(__name__)

SCHEMA_PROBE_QUERY = "query { __schema { types { name } } }"


class TwentyClientError(TwentyConnectorError):
    """Twenty API 일반 에러 (HTTP/네트워크)"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class GraphQLError(TwentyClientError):
    """응답 본문의 errors[] (HTTP 200 포함)"""

    def __init__(self, errors: List[dict], status_code: Optional[int] = None):
        messages = "; ".join(str(err.get("message", err)) for err in errors) or "unknown error"
        super().__init__(f"GraphQL Error: {messages}", status_code)
        self.errors = errors


class TwentyClient:
    """
    Twenty CRM API 클라이언트

    호출(요청)마다 별도 인스턴스를 사용하며 인스턴스 간 공유 상태는 없다.
    """

    def __init__(
        self,
        domain: str,
        api_key: str,
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not domain or not api_key:
            raise ConfigurationError("Twenty domain/API key required")

        normalized = domain.strip().rstrip("/")
        if not normalized.startswith(("http://", "https://")):
            normalized = f"https://{normalized}"

        self.base_url = normalized
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """HTTP 클라이언트 반환 (lazy init)"""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """클라이언트 종료"""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "TwentyClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # =========================================================================
    # GraphQL
    # =========================================================================

    async def graphql(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """GraphQL 요청 실행 후 data 반환 (errors[]가 있으면 예외)"""
        payload: Dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        body = await self._request("POST", "/graphql", json=payload)
        if not isinstance(body, dict):
            raise TwentyClientError("Unexpected GraphQL response payload")

        errors = body.get("errors")
        if errors:
            raise GraphQLError(errors)
        return body.get("data") or {}

    # =========================================================================
    # REST (legacy)
    # =========================================================================

    async def rest(
        self,
        method: str,
        resource: str,
        record_id: Optional[str] = None,
        *,
        body: Optional[Dict[str, Any]] = None,
        filter: Optional[str] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        REST 요청 (/rest/<resource>[/<id>])

        Args:
            filter: 브래킷 연산자 문자열 (예: name[ilike]:"%acme%")
        """
        method = method.upper()
        path = f"/rest/{resource.strip('/')}"
        if record_id is not None:
            path = f"{path}/{validate_uuid(record_id, 'id')}"

        query: Dict[str, Any] = dict(params or {})
        if filter:
            query["filter"] = filter

        json_body = None
        if body:
            json_body = prepare_request_body(body, require_id=method == "POST")

        return await self._request(method, path, json=json_body, params=query or None)

    async def metadata(
        self,
        endpoint: str,
        *,
        filter: Optional[str] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """메타데이터 조회 (/rest/metadata/<endpoint>)"""
        query: Dict[str, Any] = dict(params or {})
        if filter:
            query["filter"] = filter
        return await self._request("GET", f"/rest/metadata/{endpoint.strip('/')}", params=query or None)

    # =========================================================================
    # Health Check
    # =========================================================================

    async def health_check(self) -> bool:
        """API 연결 확인 (자격 증명 테스트와 동일한 스키마 쿼리)"""
        try:
            await self.graphql(SCHEMA_PROBE_QUERY)
            return True
        except TwentyClientError as e:
            logger.error(f"Health check failed: {e}")
            return False

    # =========================================================================
    # Internal Methods
    # =========================================================================

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """HTTP 요청 실행 (단일 시도, 재시도 없음)"""
        match = PATH_UUID_PATTERN.search(path)
        if match:
            validate_uuid(match.group(1), "path id")

        try:
            client = await self._get_client()
            response = await client.request(method, path, json=json, params=params)
        except httpx.TimeoutException as e:
            logger.warning(f"Twenty request timeout {method} {path}: {e}")
            raise TwentyClientError(f"Request timeout: {e}") from e
        except httpx.HTTPError as e:
            logger.error(f"HTTP error {method} {path}: {e}")
            raise TwentyClientError(f"HTTP error: {e}") from e

        if response.status_code >= 400:
            raise TwentyClientError(
                f"Twenty API {method} {path} failed: {response.status_code} {self._error_detail(response)}",
                status_code=response.status_code,
            )

        if not response.content:
            return {}
        return response.json()

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text
        if isinstance(body, dict):
            if body.get("message"):
                return str(body["message"])
            errors = body.get("errors")
            if isinstance(errors, list) and errors:
                return "; ".join(str(err.get("message", err)) if isinstance(err, dict) else str(err) for err in errors)
        return response.text


def build_twenty_client(domain: Optional[str] = None, api_key: Optional[str] = None) -> TwentyClient:
    """요청 헤더 자격 증명 우선, 없으면 환경 설정 사용"""
    settings = get_settings()
    domain = domain or settings.twenty_domain
    api_key = api_key or settings.twenty_api_key
    if not domain or not api_key:
        raise ConfigurationError("Twenty API 설정이 필요합니다 (TWENTY_DOMAIN / TWENTY_API_KEY)")
    return TwentyClient(domain, api_key, timeout=settings.twenty_timeout_seconds)
