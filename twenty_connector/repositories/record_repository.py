"""
Twenty Record Repository
GraphQL CRUD over Twenty objects (people, companies, opportunities, notes, tasks, ...)
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from twenty_connector.core.errors import OperationError
from twenty_connector.services.graphql_queries import (
    build_create_mutation,
    build_delete_mutation,
    build_find_query,
    build_get_query,
    build_update_mutation,
    connection_nodes,
    get_kind,
)
from twenty_connector.services.twenty_client import TwentyClient
from twenty_connector.utils.validation import prepare_request_body, validate_uuid

logger = logging.getLogger(__name__)


@dataclass
class RecordPage:
    records: List[Dict[str, Any]]
    total_count: int
    has_next_page: bool


class RecordRepository:
    def __init__(self, client: TwentyClient):
        self.client = client

    async def find_many(
        self,
        kind_key: str,
        *,
        filter: Optional[Dict[str, Any]] = None,
        limit: int = 50,
        include_related: bool = False,
        order_by: Optional[list] = None,
    ) -> RecordPage:
        kind = get_kind(kind_key)
        variables: Dict[str, Any] = {"first": limit}
        if filter:
            variables["filter"] = filter
        if order_by:
            variables["orderBy"] = order_by

        data = await self.client.graphql(build_find_query(kind, include_related), variables)
        connection = data.get(kind.collection) or {}
        records = connection_nodes(connection)
        page_info = connection.get("pageInfo") or {}
        total = connection.get("totalCount")
        return RecordPage(
            records=records,
            total_count=total if isinstance(total, int) else len(records),
            has_next_page=bool(page_info.get("hasNextPage")),
        )

    async def get(self, kind_key: str, record_id: str, *, include_related: bool = False) -> Optional[Dict[str, Any]]:
        kind = get_kind(kind_key)
        validate_uuid(record_id, f"{kind_key} id")
        data = await self.client.graphql(
            build_get_query(kind, include_related),
            {"filter": {"id": {"eq": record_id}}},
        )
        return data.get(kind.single)

    async def create(self, kind_key: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        kind = get_kind(kind_key)
        data = prepare_request_body(payload, require_id=True)
        logger.info(f"Creating {kind.type_name} id={data['id']}")
        result = await self.client.graphql(build_create_mutation(kind), {"data": data})
        record = result.get(f"create{kind.type_name}")
        if not record or not record.get("id"):
            raise OperationError(f"create {kind_key}", "no record returned by the create mutation", resource=kind_key)
        return record

    async def update(self, kind_key: str, record_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        kind = get_kind(kind_key)
        validate_uuid(record_id, f"{kind_key} id")
        data = prepare_request_body({k: v for k, v in payload.items() if k != "id"})
        logger.info(f"Updating {kind.type_name} id={record_id} fields={sorted(data)}")
        result = await self.client.graphql(build_update_mutation(kind), {"id": record_id, "data": data})
        return result.get(f"update{kind.type_name}") or {}

    async def delete(self, kind_key: str, record_id: str) -> Optional[str]:
        kind = get_kind(kind_key)
        validate_uuid(record_id, f"{kind_key} id")
        logger.info(f"Deleting {kind.type_name} id={record_id}")
        result = await self.client.graphql(build_delete_mutation(kind), {"id": record_id})
        deleted = result.get(f"delete{kind.type_name}") or {}
        return deleted.get("id")
