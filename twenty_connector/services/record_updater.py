from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from twenty_connector.core.errors import MissingRequiredParameter
from twenty_connector.models.entity import DeleteResult, UpdateResult
from twenty_connector.repositories.record_repository import RecordRepository
from twenty_connector.services.finder import UnifiedFinder
from twenty_connector.services.payloads import merge_patch
from twenty_connector.utils.validation import validate_uuid

logger = logging.getLogger(__name__)

NOT_FOUND = "not found"
LOW_CONFIDENCE_UPDATE = "No exact match found, update cancelled"
LOW_CONFIDENCE_DELETE = "No exact match found, delete cancelled"


class RecordUpdater:
    """Locate a record (natural key or id), then patch or delete it.

    Absence is reported as a soft failure so batch callers can keep going.
    """

    def __init__(self, finder: UnifiedFinder, repository: Optional[RecordRepository] = None) -> None:
        self.finder = finder
        self.repository = repository or finder.repository

    async def update_by_key(
        self,
        resource: str,
        search_by: str,
        search_value: str,
        patch: Mapping[str, Any],
        *,
        custom_field_path: Optional[str] = None,
        min_confidence: float = 0.0,
    ) -> UpdateResult:
        match = await self.finder.find(
            resource,
            search_by,
            search_value,
            custom_field_path=custom_field_path,
            include_related=False,
        )
        if not match.found:
            logger.warning(f"Update skipped, {resource} not found by {search_by}")
            return UpdateResult(updated=False, error=NOT_FOUND)
        if match.confidence < min_confidence:
            logger.warning(f"Update skipped, {resource} match confidence {match.confidence} < {min_confidence}")
            return UpdateResult(updated=False, error=LOW_CONFIDENCE_UPDATE, confidence=match.confidence)

        return await self.apply_patch(resource, match.record, patch, confidence=match.confidence)

    async def update_by_id(self, resource: str, record_id: str, patch: Mapping[str, Any]) -> UpdateResult:
        validate_uuid(record_id, f"{resource} id")
        existing = await self.repository.get(resource, record_id)
        if not existing:
            return UpdateResult(updated=False, error=NOT_FOUND)
        return await self.apply_patch(resource, existing, patch, confidence=1.0)

    async def delete_by_key(
        self,
        resource: str,
        search_by: str,
        search_value: str,
        *,
        custom_field_path: Optional[str] = None,
        min_confidence: float = 0.0,
    ) -> DeleteResult:
        match = await self.finder.find(
            resource,
            search_by,
            search_value,
            custom_field_path=custom_field_path,
            include_related=False,
        )
        if not match.found:
            return DeleteResult(deleted=False, error=NOT_FOUND)
        if match.confidence < min_confidence:
            return DeleteResult(deleted=False, error=LOW_CONFIDENCE_DELETE, confidence=match.confidence)

        deleted_id = await self.repository.delete(resource, match.record_id)
        return DeleteResult(deleted=True, record_id=deleted_id or match.record_id, confidence=match.confidence)

    async def delete_by_id(self, resource: str, record_id: str) -> DeleteResult:
        validate_uuid(record_id, f"{resource} id")
        deleted_id = await self.repository.delete(resource, record_id)
        if not deleted_id:
            return DeleteResult(deleted=False, record_id=record_id, error=NOT_FOUND)
        return DeleteResult(deleted=True, record_id=deleted_id, confidence=1.0)

    async def apply_patch(
        self,
        resource: str,
        existing: Dict[str, Any],
        patch: Mapping[str, Any],
        *,
        confidence: float,
    ) -> UpdateResult:
        if not patch:
            raise MissingRequiredParameter("update data", "No update data provided")
        data = merge_patch(existing, patch)
        updated = await self.repository.update(resource, existing["id"], data)
        return UpdateResult(
            updated=True,
            record=updated,
            original_record=existing,
            confidence=confidence,
        )
