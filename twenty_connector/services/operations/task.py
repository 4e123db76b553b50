"""
Task operations

create (대상 person/company/opportunity 선택) / update / delete / find / list
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping

from twenty_connector.core.errors import InvalidInputError, InvalidUuidError, OperationError
from twenty_connector.services import filters
from twenty_connector.services.operations.base import (
    OperationContext,
    find_output,
    int_param,
    operation,
    required_param,
    search_criterion,
)
from twenty_connector.services.payloads import body_v2
from twenty_connector.services.twenty_client import TwentyClientError
from twenty_connector.utils.validation import validate_uuid

logger = logging.getLogger(__name__)

TASK_STATUSES = ("TODO", "IN_PROGRESS", "DONE")
TASK_TARGET_TYPES = {"person": "personId", "company": "companyId", "opportunity": "opportunityId"}
DEFAULT_LIST_LIMIT = 50


def _status(value: Any) -> str:
    if value not in TASK_STATUSES:
        raise InvalidInputError(f"Invalid task status: {value}. Must be one of {', '.join(TASK_STATUSES)}")
    return value


def _task_fields(params: Mapping[str, Any]) -> Dict[str, Any]:
    fields: Dict[str, Any] = {}
    if params.get("title"):
        fields["title"] = params["title"]
    if params.get("body"):
        fields["bodyV2"] = body_v2(params["body"])
    if params.get("dueAt"):
        fields["dueAt"] = params["dueAt"]
    if params.get("status"):
        fields["status"] = _status(params["status"])
    if params.get("position") is not None:
        fields["position"] = params["position"]
    if params.get("assigneeId"):
        fields["assigneeId"] = validate_uuid(params["assigneeId"], "assignee id")
    return fields


@operation("task", "create")
async def create_task(ctx: OperationContext, params: Mapping[str, Any]) -> Dict[str, Any]:
    data = {
        "status": "TODO",
        "position": 0,
        **_task_fields(params),
        "title": required_param(params, "title"),
    }
    task = await ctx.repository.create("task", data)
    task_id = task["id"]

    created_targets = []
    target_errors = []
    for index, target in enumerate(params.get("targets") or []):
        target_type = target.get("targetType")
        id_field = TASK_TARGET_TYPES.get(target_type)
        if id_field is None or not target.get(id_field):
            continue
        try:
            target_id = validate_uuid(target[id_field], f"{target_type} id")
            created = await ctx.repository.create("taskTarget", {"taskId": task_id, id_field: target_id})
        except (InvalidUuidError, OperationError, TwentyClientError) as exc:
            logger.warning(f"Task target {index} failed for task {task_id}: {exc}")
            target_errors.append({"index": index, "type": target_type, "error": str(exc)})
            continue
        created_targets.append({**created, "targetType": target_type})

    result = {"success": True, "task": {**task, "targets": created_targets}}
    if target_errors:
        result["targetErrors"] = target_errors
    return result


@operation("task", "update")
async def update_task(ctx: OperationContext, params: Mapping[str, Any]) -> Dict[str, Any]:
    task_id = validate_uuid(params.get("taskId"), "task id")
    patch = _task_fields(params)
    if not patch:
        return {"updated": False, "message": "No fields to update provided"}

    result = await ctx.updater.update_by_id("task", task_id, patch)
    return {"success": result.updated, "task": result.record, "error": result.error}


@operation("task", "delete")
async def delete_task(ctx: OperationContext, params: Mapping[str, Any]) -> Dict[str, Any]:
    task_id = validate_uuid(params.get("taskId"), "task id")
    result = await ctx.updater.delete_by_id("task", task_id)
    return {"success": result.deleted, "taskId": result.record_id, "error": result.error}


@operation("task", "find")
async def find_task(ctx: OperationContext, params: Mapping[str, Any]) -> Dict[str, Any]:
    match = await ctx.finder.find_criterion("task", search_criterion(params))
    return find_output(match, "task", "Task", (match.record or {}).get("title") or "")


@operation("task", "list")
async def list_tasks(ctx: OperationContext, params: Mapping[str, Any]) -> Dict[str, Any]:
    page = await ctx.repository.find_many(
        "task",
        limit=int_param(params, "limit", DEFAULT_LIST_LIMIT),
        include_related=True,
        order_by=filters.parse_order_by(params.get("orderBy")),
    )
    return {
        "tasks": page.records,
        "totalCount": page.total_count,
        "hasNextPage": page.has_next_page,
    }
