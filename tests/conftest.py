import copy
import re
import uuid
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from twenty_connector.api.dependencies import get_twenty_client
from twenty_connector.main import app
from twenty_connector.services.graphql_queries import ENTITY_KINDS
from twenty_connector.services.twenty_client import GraphQLError


# Configure anyio to use only asyncio backend
@pytest.fixture
def anyio_backend():
    return "asyncio"


OPERATORS = {"eq", "neq", "like", "ilike", "in", "is"}
OPERATION_NAME = re.compile(r"^\s*(?:query|mutation)\s+(\w+)", re.MULTILINE)


def _like_to_regex(pattern: str, case_insensitive: bool) -> "re.Pattern[str]":
    parts = []
    for char in pattern:
        if char == "%":
            parts.append(".*")
        elif char == "_":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("^" + "".join(parts) + "$", (re.IGNORECASE if case_insensitive else 0) | re.DOTALL)


def _apply_operator(value: Any, operator: str, expected: Any) -> bool:
    if operator == "eq":
        return value == expected
    if operator == "neq":
        return value != expected
    if operator == "in":
        return value in expected
    if operator == "is":
        return (value is None) == (expected == "NULL")
    if value is None:
        return False
    return bool(_like_to_regex(str(expected), operator == "ilike").match(str(value)))


def matches_filter(record: Optional[Dict[str, Any]], flt: Optional[Dict[str, Any]]) -> bool:
    """Twenty 필터 객체(eq/like/ilike/and/or 중첩)를 레코드에 적용"""
    if not flt:
        return True
    for key, condition in flt.items():
        if key == "and":
            if not all(matches_filter(record, item) for item in condition):
                return False
            continue
        if key == "or":
            if not any(matches_filter(record, item) for item in condition):
                return False
            continue
        value = (record or {}).get(key)
        if isinstance(condition, dict) and set(condition) & OPERATORS:
            if not all(_apply_operator(value, op, expected) for op, expected in condition.items()):
                return False
        elif not isinstance(value, dict) or not matches_filter(value, condition):
            return False
    return True


def _deep_merge(target: Dict[str, Any], patch: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in patch.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _deep_merge(target[key], value)
        else:
            target[key] = copy.deepcopy(value)
    return target


class FakeTwenty:
    """
    메모리 기반 Twenty GraphQL 스텁

    Find*/Get*/Create*/Update*/Delete*/IntrospectType 오퍼레이션 이름으로 분기한다.
    """

    base_url = "https://crm.example.com"

    def __init__(self) -> None:
        self.records: Dict[str, List[Dict[str, Any]]] = {key: [] for key in ENTITY_KINDS}
        self.schema_fields: Dict[str, List[str]] = {}
        self.introspection_error: Optional[Exception] = None
        self.fail_creates: Dict[str, Exception] = {}
        self.null_creates: set = set()
        self.metadata_fields: List[Dict[str, Any]] = []
        self.healthy = True
        self.calls: List[tuple] = []
        self.closed = False

        self._routes = {}
        for kind in ENTITY_KINDS.values():
            self._routes[f"Find{kind.plural_type}"] = ("find", kind)
            self._routes[f"Get{kind.type_name}"] = ("get", kind)
            self._routes[f"Create{kind.type_name}"] = ("create", kind)
            self._routes[f"Update{kind.type_name}"] = ("update", kind)
            self._routes[f"Delete{kind.type_name}"] = ("delete", kind)

    # ------------------------------------------------------------------
    # Test helpers
    # ------------------------------------------------------------------

    def seed(self, kind_key: str, record: Dict[str, Any]) -> Dict[str, Any]:
        stored = {"id": str(uuid.uuid4()), **copy.deepcopy(record)}
        self.records[kind_key].append(stored)
        return stored

    def operations(self, prefix: str = "") -> List[str]:
        return [name for name, _ in self.calls if name.startswith(prefix)]

    # ------------------------------------------------------------------
    # TwentyClient surface
    # ------------------------------------------------------------------

    async def graphql(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        variables = variables or {}
        match = OPERATION_NAME.search(query)
        name = match.group(1) if match else "anonymous"
        self.calls.append((name, copy.deepcopy(variables)))

        if name == "IntrospectType":
            return self._introspect(variables["name"])

        action, kind = self._routes[name]
        return getattr(self, f"_{action}")(kind, variables)

    async def metadata(self, endpoint: str, *, filter=None, params=None):
        self.calls.append((f"metadata:{endpoint}", {"filter": filter, "params": params}))
        return {"data": {"fields": copy.deepcopy(self.metadata_fields)}}

    async def health_check(self) -> bool:
        return self.healthy

    async def close(self) -> None:
        self.closed = True

    # ------------------------------------------------------------------
    # Operation handlers
    # ------------------------------------------------------------------

    def _introspect(self, type_name: str) -> Dict[str, Any]:
        if self.introspection_error is not None:
            raise self.introspection_error
        fields = self.schema_fields.get(type_name)
        if fields is None:
            return {"__type": None}
        return {"__type": {"name": type_name, "fields": [{"name": field} for field in fields]}}

    def _find(self, kind, variables):
        matched = [r for r in self.records[kind.key] if matches_filter(r, variables.get("filter"))]
        first = variables.get("first") or len(matched)
        page = matched[:first]
        return {
            kind.collection: {
                "totalCount": len(matched),
                "pageInfo": {"hasNextPage": len(matched) > first},
                "edges": [{"node": copy.deepcopy(record)} for record in page],
            }
        }

    def _get(self, kind, variables):
        for record in self.records[kind.key]:
            if matches_filter(record, variables.get("filter")):
                return {kind.single: copy.deepcopy(record)}
        return {kind.single: None}

    def _create(self, kind, variables):
        if kind.key in self.fail_creates:
            raise self.fail_creates[kind.key]
        if kind.key in self.null_creates:
            return {f"create{kind.type_name}": None}
        record = copy.deepcopy(variables["data"])
        self.records[kind.key].append(record)
        return {f"create{kind.type_name}": copy.deepcopy(record)}

    def _update(self, kind, variables):
        for record in self.records[kind.key]:
            if record["id"] == variables["id"]:
                _deep_merge(record, variables["data"])
                return {f"update{kind.type_name}": copy.deepcopy(record)}
        raise GraphQLError([{"message": f"Record {variables['id']} not found"}])

    def _delete(self, kind, variables):
        for record in list(self.records[kind.key]):
            if record["id"] == variables["id"]:
                self.records[kind.key].remove(record)
                return {f"delete{kind.type_name}": {"id": record["id"]}}
        return {f"delete{kind.type_name}": None}


@pytest.fixture()
def fake_twenty() -> FakeTwenty:
    return FakeTwenty()


@pytest.fixture()
def test_client(fake_twenty):
    app.dependency_overrides[get_twenty_client] = lambda: fake_twenty
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.pop(get_twenty_client, None)

