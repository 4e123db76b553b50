from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence

from twenty_connector.core.errors import FieldNotFound, InvalidInputError, MissingRequiredParameter
from twenty_connector.models.entity import FieldResolution
from twenty_connector.services.filters import RELATION_SUFFIX
from twenty_connector.services.graphql_queries import INTROSPECT_TYPE_QUERY
from twenty_connector.services.twenty_client import TwentyClient, TwentyClientError

logger = logging.getLogger(__name__)

OBJECT_TYPE_NAMES = {
    "person": "Person",
    "company": "Company",
    "opportunity": "Opportunity",
    "note": "Note",
    "task": "Task",
}


@dataclass(frozen=True)
class CandidateStrategy:
    name: str
    build: Callable[[str], str]


# 우선순위 고정: exact -> +Link -> lowercase -> lowercase+Link
CANDIDATE_STRATEGIES: Sequence[CandidateStrategy] = (
    CandidateStrategy("exact", lambda value: value),
    CandidateStrategy("link_suffix", lambda value: f"{value}{RELATION_SUFFIX}"),
    CandidateStrategy("lowercase", lambda value: value.lower()),
    CandidateStrategy("lowercase_link_suffix", lambda value: f"{value.lower()}{RELATION_SUFFIX}"),
)


def generate_candidates(field_input: str) -> List[str]:
    candidates: List[str] = []
    for strategy in CANDIDATE_STRATEGIES:
        candidate = strategy.build(field_input)
        if candidate not in candidates:
            candidates.append(candidate)
    return candidates


def match_candidate(candidates: Iterable[str], available: Iterable[str]) -> Optional[str]:
    available_set = set(available)
    for candidate in candidates:
        if candidate in available_set:
            return candidate
    return None


def resolve_type_name(object_type: str) -> str:
    if object_type in OBJECT_TYPE_NAMES.values():
        return object_type
    try:
        return OBJECT_TYPE_NAMES[object_type.lower()]
    except (KeyError, AttributeError):
        raise InvalidInputError(f'Type "{object_type}" not found in schema') from None


class FieldResolver:
    """Resolve user-typed field names against schema introspection."""

    def __init__(self, client: TwentyClient) -> None:
        self.client = client

    async def list_fields(self, type_name: str) -> List[str]:
        data = await self.client.graphql(INTROSPECT_TYPE_QUERY, {"name": type_name})
        schema_type = data.get("__type")
        if not schema_type:
            raise TwentyClientError(f'Type "{type_name}" not found in schema')
        return [item["name"] for item in schema_type.get("fields") or [] if item.get("name")]

    async def resolve(self, object_type: str, field_input: str) -> FieldResolution:
        field_input = (field_input or "").strip()
        if not field_input:
            raise MissingRequiredParameter("fieldName")

        type_name = resolve_type_name(object_type)
        candidates = generate_candidates(field_input)

        try:
            available = await self.list_fields(type_name)
        except TwentyClientError as exc:
            logger.warning(
                "Introspection failed for %s, trying field %r without validation: %s",
                type_name,
                candidates[0],
                exc,
            )
            return FieldResolution(
                resolved_field=candidates[0],
                field_exists=False,
                tried_fields=candidates,
                fallback_used=True,
            )

        resolved = match_candidate(candidates, available)
        return FieldResolution(
            resolved_field=resolved,
            field_exists=resolved is not None,
            tried_fields=candidates,
        )

    async def require(self, object_type: str, field_input: str) -> str:
        """Resolve or raise FieldNotFound when the field is genuinely absent."""
        resolution = await self.resolve(object_type, field_input)
        if not resolution.usable:
            raise FieldNotFound(field_input, resolution.tried_fields)
        return resolution.resolved_field
