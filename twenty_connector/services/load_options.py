"""
Load options

선택 목록용 {name, value} 쌍과 오브젝트 메타데이터 필드 조회
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from twenty_connector.core.config import get_settings
from twenty_connector.core.errors import InvalidInputError, OperationError
from twenty_connector.repositories.record_repository import RecordRepository
from twenty_connector.services.filters import equals, to_rest_filter
from twenty_connector.services.graphql_queries import ENTITY_KINDS, EntityKind
from twenty_connector.services.operations.base import person_label
from twenty_connector.services.twenty_client import TwentyClient, TwentyClientError

logger = logging.getLogger(__name__)

OPTION_RESOURCES = ("person", "company", "opportunity", "note", "task")


def resolve_option_kind(resource: str) -> EntityKind:
    """'company' / 'companies' / 'Companies' 모두 허용"""
    key = (resource or "").strip()
    for kind_key in OPTION_RESOURCES:
        kind = ENTITY_KINDS[kind_key]
        if key.lower() in (kind.key.lower(), kind.collection.lower()):
            return kind
    raise InvalidInputError(f"Unsupported options resource: {resource}")


def option_label(kind: EntityKind, record: Dict[str, Any]) -> str:
    if kind.label_field and record.get(kind.label_field):
        return str(record[kind.label_field])
    if kind.key == "person":
        label = person_label(record)
        if label:
            return label
    return f"{kind.type_name} {str(record.get('id', ''))[:8]}"


class LoadOptionsService:
    def __init__(self, client: TwentyClient, *, limit: Optional[int] = None) -> None:
        self.client = client
        self.repository = RecordRepository(client)
        self.limit = limit or get_settings().twenty_options_limit

    async def list_resource(self, resource: str) -> List[Dict[str, str]]:
        kind = resolve_option_kind(resource)
        try:
            page = await self.repository.find_many(kind.key, limit=self.limit)
        except TwentyClientError as exc:
            raise OperationError(f"load {kind.collection}", str(exc), resource=kind.key) from exc
        return [{"name": option_label(kind, record), "value": record["id"]} for record in page.records]

    async def list_fields(self, object_name: str) -> List[Dict[str, Any]]:
        """메타데이터 REST 로 오브젝트 필드 목록 조회 (name, label, type)"""
        name = (object_name or "").strip()
        if not name:
            raise InvalidInputError("objectName is required")
        try:
            body = await self.client.metadata(
                "fields",
                filter=to_rest_filter([equals("object.nameSingular", name)]),
                params={"limit": self.limit},
            )
        except TwentyClientError as exc:
            raise OperationError(f"load fields of {name}", str(exc), resource=name) from exc

        if isinstance(body, list):
            fields = body
        else:
            fields = ((body or {}).get("data") or {}).get("fields") or []
        logger.info("Loaded %s metadata fields for %s", len(fields), name)
        return [
            {
                "name": field.get("label") or field.get("name"),
                "value": field.get("name"),
                "type": field.get("type"),
            }
            for field in fields
            if field.get("name")
        ]
