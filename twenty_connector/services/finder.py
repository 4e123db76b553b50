"""
Unified Finder

(searchBy, searchValue) -> 엔티티별 백엔드 필터 -> 조회 -> 신뢰도(confidence) 부여

신뢰도는 계산값이 아닌 고정 규칙표:
- 0건            -> 0.0  (found=False)
- 1건            -> 0.95
- 2건 이상        -> 0.8  (백엔드가 반환한 첫 번째 레코드)
- 정확 일치 우선   -> 1.0  (opportunity 이름 검색, 자연키 검증)
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from twenty_connector.core.config import get_settings
from twenty_connector.core.errors import (
    InvalidInputError,
    MissingRequiredParameter,
    UnsupportedSearchMethod,
)
from twenty_connector.models.entity import MatchResult, SearchCriterion
from twenty_connector.repositories.record_repository import RecordRepository
from twenty_connector.services import filters
from twenty_connector.services.field_resolver import FieldResolver
from twenty_connector.services.twenty_client import TwentyClient
from twenty_connector.utils.validation import is_valid_email, normalize_domain, validate_uuid

logger = logging.getLogger(__name__)

CONFIDENCE_NONE = 0.0
CONFIDENCE_AMBIGUOUS = 0.8
CONFIDENCE_UNIQUE = 0.95
CONFIDENCE_EXACT = 1.0

MAX_FIELD_PATH_SEGMENTS = 3

SEARCH_METHODS: Dict[str, Tuple[str, ...]] = {
    "person": ("email", "phone", "customField", "id"),
    "company": ("name", "domain", "customField", "id"),
    "opportunity": ("name", "customField", "id"),
    "task": ("title", "customField", "id"),
}

# 이름 검색 결과에서 대소문자 무시 정확 일치를 우선하는 (resource, searchBy)
EXACT_PREFERENCE = {
    ("opportunity", "name"): "name",
}


def _lower(value: Any) -> str:
    return str(value or "").strip().lower()


def _record_email(record: Dict[str, Any]) -> str:
    return _lower((record.get("emails") or {}).get("primaryEmail"))


def _record_domain(record: Dict[str, Any]) -> Optional[str]:
    return normalize_domain((record.get("domainName") or {}).get("primaryLinkUrl"))


def domain_variants(domain: str) -> List[str]:
    """정규화 도메인이 primaryLinkUrl 에 저장될 수 있는 형태들"""
    return [
        domain,
        f"https://{domain}",
        f"http://{domain}",
        f"https://www.{domain}",
        f"http://www.{domain}",
    ]


def score_matches(
    records: Sequence[Dict[str, Any]],
    *,
    exact_field: Optional[str] = None,
    search_value: Optional[str] = None,
) -> Tuple[Optional[Dict[str, Any]], float]:
    """Pick the candidate record and its confidence from the fixed rule table."""
    if not records:
        return None, CONFIDENCE_NONE

    if exact_field and search_value is not None:
        wanted = _lower(search_value)
        for record in records:
            if _lower(record.get(exact_field)) == wanted:
                return record, CONFIDENCE_EXACT

    if len(records) == 1:
        return records[0], CONFIDENCE_UNIQUE
    return records[0], CONFIDENCE_AMBIGUOUS


class UnifiedFinder:
    def __init__(
        self,
        client: TwentyClient,
        *,
        repository: Optional[RecordRepository] = None,
        field_resolver: Optional[FieldResolver] = None,
        limit: Optional[int] = None,
    ) -> None:
        self.client = client
        self.repository = repository or RecordRepository(client)
        self.field_resolver = field_resolver or FieldResolver(client)
        self.limit = limit or get_settings().twenty_search_limit

    async def find(
        self,
        resource: str,
        search_by: str,
        search_value: str,
        *,
        custom_field_path: Optional[str] = None,
        include_related: bool = True,
        order_by: Optional[list] = None,
    ) -> MatchResult:
        search_value = str(search_value) if search_value is not None else ""
        records = await self._search(
            resource,
            search_by,
            search_value,
            custom_field_path=custom_field_path,
            include_related=include_related,
            order_by=order_by,
        )

        record, confidence = score_matches(
            records,
            exact_field=EXACT_PREFERENCE.get((resource, search_by)),
            search_value=search_value,
        )
        return MatchResult(
            found=record is not None,
            record=record,
            confidence=confidence,
            total_matches=len(records),
            search_method=search_by,
            search_value=search_value,
        )

    async def find_criterion(self, resource: str, criterion: SearchCriterion, **kwargs) -> MatchResult:
        return await self.find(
            resource,
            criterion.method,
            criterion.value,
            custom_field_path=criterion.field_path,
            **kwargs,
        )

    async def find_exact(self, resource: str, key: str, value: str) -> MatchResult:
        """
        자연키(natural key) 정확 일치 조회 - find-or-create 판단용

        부분 일치 검색과 달리 백엔드 필터 자체를 정확 일치(email eq, name 와일드카드 없는 ilike,
        domain 저장 형태별 eq 의 or)로 보내고, 결과를 키 기준으로 다시 검증한다.
        검증된 레코드만 신뢰도 1.0으로 반환하고, 그 외에는 found=False.
        """
        if key == "email":
            if not is_valid_email(value):
                raise InvalidInputError(f"Invalid email format: {value}")
            wanted = _lower(value)
            records = await self._exact_candidates(
                resource, key, filters.equals("emails.primaryEmail", wanted).to_graphql()
            )
            matches = [record for record in records if _record_email(record) == wanted]
        elif key == "domain":
            wanted = normalize_domain(value)
            if not wanted:
                raise InvalidInputError("Invalid domain format")
            clauses = [filters.equals("domainName.primaryLinkUrl", variant) for variant in domain_variants(wanted)]
            records = await self._exact_candidates(resource, key, filters.to_graphql_filter(clauses, filters.OR))
            matches = [record for record in records if _record_domain(record) == wanted]
        elif key == "name":
            wanted = _lower(value)
            if not wanted:
                raise MissingRequiredParameter("name")
            records = await self._exact_candidates(resource, key, filters.iequals("name", value.strip()).to_graphql())
            matches = [record for record in records if _lower(record.get("name")) == wanted]
        else:
            raise UnsupportedSearchMethod(key, resource)

        if not matches:
            return MatchResult(found=False, total_matches=0, search_method=key, search_value=value)
        return MatchResult(
            found=True,
            record=matches[0],
            confidence=CONFIDENCE_EXACT,
            total_matches=len(matches),
            search_method=key,
            search_value=value,
        )

    async def _exact_candidates(self, resource: str, key: str, filter: Dict[str, Any]) -> List[Dict[str, Any]]:
        if key not in SEARCH_METHODS.get(resource, ()):
            raise UnsupportedSearchMethod(key, resource)
        logger.info(f"Exact lookup {resource} by {key}")
        page = await self.repository.find_many(resource, filter=filter, limit=self.limit)
        return page.records

    async def _search(
        self,
        resource: str,
        search_by: str,
        search_value: str,
        *,
        custom_field_path: Optional[str] = None,
        include_related: bool = False,
        order_by: Optional[list] = None,
    ) -> List[Dict[str, Any]]:
        methods = SEARCH_METHODS.get(resource)
        if methods is None:
            raise InvalidInputError(f"Search is not supported for resource: {resource}")
        if search_by not in methods:
            raise UnsupportedSearchMethod(search_by, resource)
        if not search_value.strip():
            raise MissingRequiredParameter("searchValue")

        clause, post_filter = await self._build_clause(resource, search_by, search_value, custom_field_path)

        logger.info(f"Searching {resource} by {search_by}")
        page = await self.repository.find_many(
            resource,
            filter=clause.to_graphql(),
            limit=self.limit,
            include_related=include_related,
            order_by=order_by,
        )
        records = page.records
        if post_filter is not None:
            records = [record for record in records if post_filter(record)]
        return records

    async def _build_clause(
        self,
        resource: str,
        search_by: str,
        search_value: str,
        custom_field_path: Optional[str],
    ) -> Tuple[filters.FilterClause, Optional[Callable[[Dict[str, Any]], bool]]]:
        if search_by == "email":
            return filters.equals("emails.primaryEmail", search_value.strip().lower()), None
        if search_by == "phone":
            return filters.equals("phones.primaryPhoneNumber", search_value.strip()), None
        if search_by == "name":
            return filters.contains("name", search_value.strip()), None
        if search_by == "title":
            return filters.contains("title", search_value.strip()), None
        if search_by == "id":
            return filters.equals("id", validate_uuid(search_value.strip(), f"{resource} id")), None
        if search_by == "domain":
            normalized = normalize_domain(search_value)
            if not normalized:
                raise InvalidInputError("Invalid domain format")
            clause = filters.contains("domainName.primaryLinkUrl", normalized)
            return clause, lambda record: _record_domain(record) == normalized
        if search_by == "customField":
            return await self._custom_field_clause(resource, search_value, custom_field_path), None
        raise UnsupportedSearchMethod(search_by, resource)

    async def _custom_field_clause(
        self,
        resource: str,
        search_value: str,
        custom_field_path: Optional[str],
    ) -> filters.FilterClause:
        if not custom_field_path or not custom_field_path.strip():
            raise MissingRequiredParameter(
                "customFieldPath",
                "Custom field path is required when searching by custom field",
            )
        segments = filters.split_path(custom_field_path.strip())
        if not segments or len(segments) > MAX_FIELD_PATH_SEGMENTS:
            raise InvalidInputError(
                f'Invalid custom field path "{custom_field_path}": use at most {MAX_FIELD_PATH_SEGMENTS} segments'
            )

        resolved = await self.field_resolver.require(resource, segments[0])
        return filters.custom_field_clause(resolved, segments[1:], search_value)
