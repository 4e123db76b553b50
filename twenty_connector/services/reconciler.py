"""
Find-or-create reconciliation

자연키(natural key)당 논리 엔티티가 하나만 존재하도록 보장한다.
- person: email
- company: domain -> name (domain 우선)
- opportunity: name

신뢰도 1.0(정확 일치 검증)일 때만 기존 레코드를 반환하고, 그 외에는 새로 생성한다.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from twenty_connector.core.errors import RecordCreationError
from twenty_connector.models.entity import MatchResult, ReconcileResult
from twenty_connector.repositories.record_repository import RecordRepository
from twenty_connector.services.finder import CONFIDENCE_EXACT, UnifiedFinder
from twenty_connector.services.payloads import (
    build_company_payload,
    build_opportunity_payload,
    build_person_payload,
    with_creation_defaults,
)
from twenty_connector.services.twenty_client import TwentyClientError
from twenty_connector.utils.validation import normalize_domain

logger = logging.getLogger(__name__)

FIND_THRESHOLD = CONFIDENCE_EXACT


def _is_confident(result: MatchResult) -> bool:
    return result.found and result.confidence >= FIND_THRESHOLD


class Reconciler:
    def __init__(self, finder: UnifiedFinder, repository: Optional[RecordRepository] = None) -> None:
        self.finder = finder
        self.repository = repository or finder.repository

    async def find_or_create_person(
        self, data: Mapping[str, Any], *, extra: Optional[Mapping[str, Any]] = None
    ) -> ReconcileResult:
        email = data.get("email") or (data.get("emails") or {}).get("primaryEmail")
        if email:
            existing = await self.finder.find_exact("person", "email", email)
            if _is_confident(existing):
                logger.info(f"Person already exists for email, id={existing.record_id}")
                return ReconcileResult("found", existing.record, existing.confidence, found_by="email")

        record = await self._create("person", {**build_person_payload(data), **(extra or {})})
        return ReconcileResult("created", record, CONFIDENCE_EXACT)

    async def find_or_create_company(
        self, data: Mapping[str, Any], *, extra: Optional[Mapping[str, Any]] = None
    ) -> ReconcileResult:
        domain = data.get("domain") or (data.get("domainName") or {}).get("primaryLinkUrl")
        name = data.get("name")

        if domain and not normalize_domain(domain):
            # 형식이 잘못된 도메인은 조회 불가로 보고 이름 조회로 넘어감
            logger.warning(f"Skipping domain lookup, invalid domain: {domain}")
        elif domain:
            by_domain = await self.finder.find_exact("company", "domain", domain)
            if _is_confident(by_domain):
                logger.info(f"Company found by domain, id={by_domain.record_id}")
                return ReconcileResult("found", by_domain.record, by_domain.confidence, found_by="domain")

        if name:
            by_name = await self.finder.find_exact("company", "name", name)
            if _is_confident(by_name):
                logger.info(f"Company found by name, id={by_name.record_id}")
                return ReconcileResult("found", by_name.record, by_name.confidence, found_by="name")

        record = await self._create("company", {**build_company_payload(data), **(extra or {})})
        return ReconcileResult("created", record, CONFIDENCE_EXACT)

    async def find_or_create_opportunity(
        self, data: Mapping[str, Any], *, extra: Optional[Mapping[str, Any]] = None
    ) -> ReconcileResult:
        name = data.get("name")
        if name:
            existing = await self.finder.find_exact("opportunity", "name", name)
            if _is_confident(existing):
                logger.info(f"Opportunity already exists, id={existing.record_id}")
                return ReconcileResult("found", existing.record, existing.confidence, found_by="name")

        record = await self._create("opportunity", {**build_opportunity_payload(data), **(extra or {})})
        return ReconcileResult("created", record, CONFIDENCE_EXACT)

    async def _create(self, kind: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            return await self.repository.create(kind, with_creation_defaults(kind, payload))
        except TwentyClientError as exc:
            logger.error(f"Create {kind} failed: {exc}")
            raise RecordCreationError(f"create {kind}", str(exc), resource=kind) from exc
