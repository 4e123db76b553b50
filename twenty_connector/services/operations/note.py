"""
Note operations

create (대상 person/company 1개 이상) / list / update / delete
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping

from twenty_connector.core.errors import InvalidInputError, MissingRequiredParameter, OperationError
from twenty_connector.services.filters import equals
from twenty_connector.services.operations.base import OperationContext, operation, required_param
from twenty_connector.services.payloads import body_v2
from twenty_connector.services.twenty_client import TwentyClientError
from twenty_connector.utils.validation import is_valid_uuid, validate_uuid

logger = logging.getLogger(__name__)

NOTE_TARGET_TYPES = {"person": "personId", "company": "companyId"}


def _validate_targets(targets: List[Mapping[str, Any]]) -> None:
    if not targets:
        raise InvalidInputError("At least one target (person or company) must be specified for the note")

    for index, target in enumerate(targets, start=1):
        target_type = target.get("targetType")
        id_field = NOTE_TARGET_TYPES.get(target_type)
        if id_field is None:
            raise InvalidInputError(
                f'Invalid target type "{target_type}" in target {index}. Must be "person" or "company".'
            )
        if not is_valid_uuid(target.get(id_field)):
            raise InvalidInputError(f"Invalid {target_type} ID format in target {index}. Must be a valid UUID.")


@operation("note", "create")
async def create_note(ctx: OperationContext, params: Mapping[str, Any]) -> Dict[str, Any]:
    title = required_param(params, "title")
    targets = params.get("targets") or []
    # 쓰기 전에 모든 대상을 먼저 검증
    _validate_targets(targets)

    note = await ctx.repository.create("note", {"title": title, "bodyV2": body_v2(params.get("body"))})
    note_id = note["id"]

    created_targets = []
    target_errors = []
    for index, target in enumerate(targets, start=1):
        target_type = target["targetType"]
        id_field = NOTE_TARGET_TYPES[target_type]
        try:
            created = await ctx.repository.create("noteTarget", {"noteId": note_id, id_field: target[id_field]})
        except (TwentyClientError, OperationError) as exc:
            logger.warning(f"Note target {index} failed for note {note_id}: {exc}")
            target_errors.append(
                {"target": index, "targetType": target_type, "targetId": target[id_field], "error": str(exc)}
            )
            continue
        created_targets.append({**created, "targetType": target_type, "targetId": target[id_field]})

    message = f"Note created successfully and assigned to {len(created_targets)} target(s)"
    if target_errors:
        message += f" ({len(target_errors)} targets failed)"

    result = {
        "success": True,
        "note": {**note, "targets": created_targets},
        "noteId": note_id,
        "targetCount": len(created_targets),
        "message": message,
    }
    if target_errors:
        result["targetErrors"] = target_errors
    return result


@operation("note", "list")
async def list_notes(ctx: OperationContext, params: Mapping[str, Any]) -> Dict[str, Any]:
    list_by = required_param(params, "listNotesBy")
    id_field = NOTE_TARGET_TYPES.get(list_by)
    if id_field is None:
        raise InvalidInputError(f'Invalid listNotesBy option: {list_by}. Must be "person" or "company".')
    target_id = validate_uuid(params.get(id_field), f"{list_by} id")

    page = await ctx.repository.find_many(
        "noteTarget",
        filter=equals(id_field, target_id).to_graphql(),
        limit=ctx.finder.limit,
        include_related=True,
    )
    notes = [target["note"] for target in page.records if target.get("note")]
    return {
        "success": True,
        "listType": list_by,
        "targetId": target_id,
        "notes": notes,
        "totalCount": len(notes),
        "message": f"Found {len(notes)} note(s) for {list_by} ID: {target_id}",
    }


@operation("note", "update")
async def update_note(ctx: OperationContext, params: Mapping[str, Any]) -> Dict[str, Any]:
    note_id = validate_uuid(params.get("noteId"), "note id")

    patch: Dict[str, Any] = {}
    if params.get("title"):
        patch["title"] = params["title"]
    if params.get("body"):
        patch["bodyV2"] = body_v2(params["body"])
    if not patch:
        raise MissingRequiredParameter(
            "title or body",
            "No update data provided. Please specify at least one field to update (title or body).",
        )

    result = await ctx.updater.update_by_id("note", note_id, patch)
    if not result.updated:
        return {
            "success": False,
            "noteId": note_id,
            "error": result.error,
            "message": f"Failed to update note with ID: {note_id}",
        }
    return {
        "success": True,
        "note": result.record,
        "noteId": note_id,
        "updatedFields": ["body" if key == "bodyV2" else key for key in patch],
        "message": "Note updated successfully",
    }


@operation("note", "delete")
async def delete_note(ctx: OperationContext, params: Mapping[str, Any]) -> Dict[str, Any]:
    note_id = validate_uuid(params.get("noteId"), "note id")
    result = await ctx.updater.delete_by_id("note", note_id)
    if not result.deleted:
        return {
            "success": False,
            "noteId": note_id,
            "error": result.error,
            "message": f"Failed to delete note with ID: {note_id}",
        }
    return {"success": True, "deletedNoteId": result.record_id, "message": "Note deleted successfully"}
