"""Input validation helpers (UUID, email, domain, required values)."""

from __future__ import annotations

import re
import uuid
from typing import Any, Dict, Optional

from twenty_connector.core.errors import InvalidUuidError, MissingRequiredParameter

# Twenty 서버와 동일한 UUID 규칙 (version 1-5, variant 8-b)
UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

# REST 경로에 포함된 UUID 형태 토큰 (버전/variant 검사 전 단계)
PATH_UUID_PATTERN = re.compile(
    r"/([0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12})",
    re.IGNORECASE,
)

EMAIL_PATTERN = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)

DOMAIN_PATTERN = re.compile(
    r"^[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?(\.[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)

# 요청 바디에서 UUID 검증 대상 필드
UUID_FIELDS = (
    "companyId",
    "personId",
    "opportunityId",
    "accountOwnerId",
    "workspaceMemberId",
    "authorId",
    "assigneeId",
    "pointOfContactId",
    "noteId",
    "taskId",
)


def is_valid_uuid(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    return bool(UUID_PATTERN.match(value))


def validate_uuid(value: Any, label: str = "id") -> str:
    if not is_valid_uuid(value):
        raise InvalidUuidError(value, label)
    return value


def generate_uuid() -> str:
    return str(uuid.uuid4())


def is_valid_email(email: Any) -> bool:
    if not email or not isinstance(email, str):
        return False
    return bool(EMAIL_PATTERN.match(email.strip()))


def normalize_domain(domain: Any) -> Optional[str]:
    """
    도메인 정규화

    "https://www.Example.com/path" -> "example.com"
    형식이 올바르지 않으면 None
    """
    if not domain or not isinstance(domain, str):
        return None

    normalized = domain.strip().lower()
    normalized = re.sub(r"^https?://", "", normalized)
    normalized = re.sub(r"^www\.", "", normalized)
    normalized = normalized.split("/")[0]

    if not DOMAIN_PATTERN.match(normalized):
        return None
    return normalized


def require(value: Any, name: str) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise MissingRequiredParameter(name)
    return value


def prepare_request_body(body: Dict[str, Any], require_id: bool = False) -> Dict[str, Any]:
    """
    mutation 입력 데이터 준비

    - 생성(require_id=True) 시 id가 없으면 UUID4 생성
    - id 및 알려진 *Id 필드는 UUID 형식 검증
    - None 값은 제거
    """
    prepared = {key: value for key, value in body.items() if value is not None}

    if require_id or "id" in prepared:
        record_id = prepared.get("id")
        prepared["id"] = validate_uuid(record_id, "id") if record_id else generate_uuid()

    for field in UUID_FIELDS:
        if field in prepared:
            validate_uuid(prepared[field], field)

    return prepared
