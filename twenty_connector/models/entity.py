from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class SearchCriterion:
    method: str
    value: str
    field_path: Optional[str] = None


@dataclass
class MatchResult:
    found: bool
    record: Optional[Dict[str, Any]] = None
    confidence: float = 0.0
    total_matches: int = 0
    search_method: Optional[str] = None
    search_value: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.found:
            self.record = None
            self.confidence = 0.0

    @property
    def record_id(self) -> Optional[str]:
        return self.record.get("id") if self.record else None


@dataclass
class FieldResolution:
    resolved_field: Optional[str]
    field_exists: bool
    tried_fields: List[str] = field(default_factory=list)
    fallback_used: bool = False

    @property
    def usable(self) -> bool:
        return self.field_exists or self.fallback_used


@dataclass
class ReconcileResult:
    action: str  # 'found' | 'created'
    record: Optional[Dict[str, Any]]
    confidence: float
    found_by: Optional[str] = None

    @property
    def created(self) -> bool:
        return self.action == "created"


@dataclass
class UpdateResult:
    updated: bool
    record: Optional[Dict[str, Any]] = None
    original_record: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    confidence: float = 0.0


@dataclass
class DeleteResult:
    deleted: bool
    record_id: Optional[str] = None
    error: Optional[str] = None
    confidence: float = 0.0
