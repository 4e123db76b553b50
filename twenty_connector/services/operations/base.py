"""
Operation registry

resource:operation 키로 핸들러를 등록하고 조회한다.
핸들러 시그니처: async def handler(ctx: OperationContext, params: Mapping) -> dict
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Tuple

from twenty_connector.core.errors import FieldNotFound, InvalidInputError
from twenty_connector.models.entity import MatchResult, SearchCriterion
from twenty_connector.repositories.record_repository import RecordRepository
from twenty_connector.services.field_resolver import FieldResolver
from twenty_connector.services.filters import equals, is_relation_field
from twenty_connector.services.finder import UnifiedFinder
from twenty_connector.services.payloads import link
from twenty_connector.services.reconciler import Reconciler
from twenty_connector.services.record_updater import RecordUpdater
from twenty_connector.services.twenty_client import TwentyClient
from twenty_connector.utils.validation import require


@dataclass
class OperationContext:
    client: TwentyClient
    repository: RecordRepository
    resolver: FieldResolver
    finder: UnifiedFinder
    reconciler: Reconciler
    updater: RecordUpdater


def build_context(client: TwentyClient) -> OperationContext:
    repository = RecordRepository(client)
    resolver = FieldResolver(client)
    finder = UnifiedFinder(client, repository=repository, field_resolver=resolver)
    return OperationContext(
        client=client,
        repository=repository,
        resolver=resolver,
        finder=finder,
        reconciler=Reconciler(finder, repository),
        updater=RecordUpdater(finder, repository),
    )


Handler = Callable[[OperationContext, Mapping[str, Any]], Awaitable[Dict[str, Any]]]

_REGISTRY: Dict[Tuple[str, str], Handler] = {}


def operation(resource: str, name: str) -> Callable[[Handler], Handler]:
    def decorator(func: Handler) -> Handler:
        _REGISTRY[(resource, name)] = func
        return func

    return decorator


def get_operation(resource: str, name: str) -> Handler:
    try:
        return _REGISTRY[(resource, name)]
    except KeyError:
        raise InvalidInputError(f"Unknown resource:operation combination: {resource}:{name}") from None


def list_operations() -> List[str]:
    return sorted(f"{resource}:{name}" for resource, name in _REGISTRY)


# =============================================================================
# Parameter helpers
# =============================================================================


def param(params: Mapping[str, Any], name: str, default: Any = None) -> Any:
    value = params.get(name)
    return default if value is None else value


def required_param(params: Mapping[str, Any], name: str) -> Any:
    return require(params.get(name), name)


def int_param(params: Mapping[str, Any], name: str, default: int) -> int:
    value = param(params, name, default)
    try:
        number = int(value)
    except (TypeError, ValueError):
        number = 0
    if isinstance(value, bool) or number < 1:
        raise InvalidInputError(f"Invalid {name}: {value}. Must be a positive integer")
    return number


def search_criterion(
    params: Mapping[str, Any],
    method_key: str = "searchBy",
    value_key: str = "searchValue",
) -> SearchCriterion:
    return SearchCriterion(
        method=required_param(params, method_key),
        value=str(required_param(params, value_key)),
        field_path=params.get("customFieldPath"),
    )


async def resolve_custom_fields(
    ctx: OperationContext,
    resource: str,
    custom_fields: Optional[List[Mapping[str, Any]]],
) -> Dict[str, Any]:
    """[{fieldName, fieldValue}] -> {resolvedField: value}; 링크 필드는 {primaryLinkUrl: value}"""
    resolved: Dict[str, Any] = {}
    for item in custom_fields or []:
        field_name = item.get("fieldName")
        if not field_name or item.get("fieldValue") is None:
            continue
        resolution = await ctx.resolver.resolve(resource, field_name)
        if not resolution.usable:
            raise FieldNotFound(field_name, resolution.tried_fields)
        value = item["fieldValue"]
        field = resolution.resolved_field
        resolved[field] = link(value) if is_relation_field(field) else value
    return resolved


def person_label(person: Optional[Mapping[str, Any]]) -> str:
    name = (person or {}).get("name") or {}
    return f"{name.get('firstName') or ''} {name.get('lastName') or ''}".strip()


def find_output(match: MatchResult, record_key: str, label: str, found_label: str) -> Dict[str, Any]:
    """finder 결과 -> find 오퍼레이션 공통 응답"""
    return {
        "found": match.found,
        record_key: match.record,
        "confidence": match.confidence,
        "recordId": match.record_id,
        "searchMethod": match.search_method,
        "searchValue": match.search_value,
        "totalMatches": match.total_matches,
        "message": (
            f"{label} found: {found_label}".strip()
            if match.found
            else f"No {label.lower()} found with {match.search_method}: {match.search_value}"
        ),
    }


# =============================================================================
# Related record lookups (must be found)
# =============================================================================


async def lookup_company_id(ctx: OperationContext, company_name: str) -> str:
    match = await ctx.finder.find("company", "name", company_name, include_related=False)
    if not match.found:
        raise InvalidInputError(f"Company not found: {company_name}")
    return match.record_id


async def lookup_person_id(ctx: OperationContext, email: str) -> str:
    match = await ctx.finder.find("person", "email", email, include_related=False)
    if not match.found:
        raise InvalidInputError(f"Point of contact not found: {email}")
    return match.record_id


async def lookup_workspace_member_id(ctx: OperationContext, email: str) -> str:
    page = await ctx.repository.find_many(
        "workspaceMember",
        filter=equals("userEmail", email.strip().lower()).to_graphql(),
        limit=1,
    )
    if not page.records:
        raise InvalidInputError(f"Account owner not found: {email}")
    return page.records[0]["id"]
