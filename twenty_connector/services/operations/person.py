"""
Person operations

find / create / update / delete / listByCompany / sync
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping

from twenty_connector.core.errors import InvalidInputError
from twenty_connector.services.filters import equals
from twenty_connector.services.operations.base import (
    OperationContext,
    find_output,
    lookup_company_id,
    operation,
    param,
    person_label,
    required_param,
    resolve_custom_fields,
    search_criterion,
)
from twenty_connector.services.payloads import build_person_payload
from twenty_connector.utils.validation import validate_uuid

logger = logging.getLogger(__name__)

SYNC_SCALAR_FIELDS = ("city", "position", "jobTitle")


@operation("person", "find")
async def find_person(ctx: OperationContext, params: Mapping[str, Any]) -> Dict[str, Any]:
    match = await ctx.finder.find_criterion("person", search_criterion(params))
    return find_output(match, "person", "Person", person_label(match.record))


@operation("person", "create")
async def create_person(ctx: OperationContext, params: Mapping[str, Any]) -> Dict[str, Any]:
    if not params.get("firstName"):
        raise InvalidInputError("First Name is required for creating a person.")

    result = await ctx.reconciler.find_or_create_person(params)
    label = f"{params['firstName']} {params.get('lastName') or ''}".strip()
    return {
        "created": result.created,
        "action": result.action,
        "person": result.record,
        "confidence": result.confidence,
        "recordId": (result.record or {}).get("id"),
        "message": f"Person created: {label}" if result.created else f"Person already exists: {label}",
    }


@operation("person", "update")
async def update_person(ctx: OperationContext, params: Mapping[str, Any]) -> Dict[str, Any]:
    search_by = required_param(params, "updateSearchBy")
    search_value = required_param(params, "updateSearchValue")

    patch = build_person_payload(params)
    if params.get("companyName"):
        patch["companyId"] = await lookup_company_id(ctx, params["companyName"])
    patch.update(await resolve_custom_fields(ctx, "person", params.get("customFields")))

    result = await ctx.updater.update_by_key(
        "person",
        search_by,
        search_value,
        patch,
        custom_field_path=params.get("customFieldPath"),
    )
    return {
        "updated": result.updated,
        "person": result.record,
        "originalPerson": result.original_record,
        "searchMethod": search_by,
        "searchValue": search_value,
        "recordId": (result.record or {}).get("id"),
        "message": f"Person updated: {search_value}" if result.updated else f"Update failed: {result.error}",
        "error": result.error,
    }


@operation("person", "delete")
async def delete_person(ctx: OperationContext, params: Mapping[str, Any]) -> Dict[str, Any]:
    search_by = required_param(params, "updateSearchBy")
    search_value = required_param(params, "updateSearchValue")

    result = await ctx.updater.delete_by_key(
        "person",
        search_by,
        search_value,
        custom_field_path=params.get("customFieldPath"),
    )
    return {
        "deleted": result.deleted,
        "personId": result.record_id,
        "searchMethod": search_by,
        "searchValue": search_value,
        "confidence": result.confidence,
        "message": (
            f"Person deleted: {search_value}"
            if result.deleted
            else f"Person not found with {search_by}: {search_value}"
        ),
        "error": result.error,
    }


@operation("person", "listByCompany")
async def list_people_by_company(ctx: OperationContext, params: Mapping[str, Any]) -> Dict[str, Any]:
    company_search_by = param(params, "companySearchBy", "name")
    identifier = required_param(params, "companyIdentifier")

    if company_search_by == "name":
        match = await ctx.finder.find("company", "name", identifier, include_related=False)
        if not match.found:
            return {
                "companyId": None,
                "people": [],
                "totalCount": 0,
                "error": "Company not found",
                "message": f"Company not found: {identifier}",
            }
        company_id = match.record_id
    elif company_search_by in ("uuid", "id"):
        company_id = validate_uuid(identifier, "company id")
    else:
        raise InvalidInputError(f'Invalid companySearchBy: {company_search_by}. Must be "name" or "uuid".')

    page = await ctx.repository.find_many(
        "person",
        filter=equals("companyId", company_id).to_graphql(),
        limit=ctx.finder.limit,
    )
    return {
        "companyId": company_id,
        "companySearchBy": company_search_by,
        "companyIdentifier": identifier,
        "people": page.records,
        "totalCount": page.total_count,
        "message": f"Found {page.total_count} people in company",
    }


@operation("person", "sync")
async def sync_person(ctx: OperationContext, params: Mapping[str, Any]) -> Dict[str, Any]:
    """
    외부 데이터와 연락처 동기화

    - 이메일로 찾지 못하면 생성 (action=created)
    - 찾으면 city/position/jobTitle/name/phone 변경분만 업데이트 (action=updated)
    - 변경분이 없으면 action=no_changes
    """
    email = required_param(params, "email")
    external = {key: value for key, value in params.items() if key != "email" and value is not None}

    existing = await ctx.finder.find_exact("person", "email", email)
    if not existing.found:
        created = await ctx.reconciler.find_or_create_person({"email": email, **external})
        return {
            "action": "created",
            "person": created.record,
            "recordId": (created.record or {}).get("id"),
            "changes": sorted(external),
        }

    person = existing.record
    changes = []
    patch: Dict[str, Any] = {}

    for field in SYNC_SCALAR_FIELDS:
        if external.get(field) not in (None, "") and external[field] != person.get(field):
            patch[field] = external[field]
            changes.append(field)

    if external.get("firstName") or external.get("lastName"):
        current = person.get("name") or {}
        first = external.get("firstName") or current.get("firstName") or ""
        last = external.get("lastName") or current.get("lastName") or ""
        if first != (current.get("firstName") or "") or last != (current.get("lastName") or ""):
            patch["name"] = {"firstName": first, "lastName": last}
            changes.append("name")

    if external.get("phone"):
        current_phone = (person.get("phones") or {}).get("primaryPhoneNumber") or ""
        if external["phone"] != current_phone:
            patch["phones"] = {"primaryPhoneNumber": external["phone"]}
            changes.append("phone")

    if not changes:
        return {"action": "no_changes", "person": person, "recordId": person.get("id"), "changes": []}

    logger.info(f"Syncing person {person.get('id')}: {changes}")
    result = await ctx.updater.apply_patch("person", person, patch, confidence=existing.confidence)
    return {
        "action": "updated",
        "person": result.record,
        "recordId": (result.record or {}).get("id"),
        "changes": changes,
    }
