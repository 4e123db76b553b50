"""
Opportunity operations

find / create / update / delete / list
"""

from __future__ import annotations

from typing import Any, Dict, Mapping

from twenty_connector.services import filters
from twenty_connector.services.operations.base import (
    OperationContext,
    find_output,
    int_param,
    lookup_company_id,
    lookup_person_id,
    operation,
    param,
    required_param,
    search_criterion,
)
from twenty_connector.services.payloads import build_opportunity_payload
from twenty_connector.utils.validation import validate_uuid

DEFAULT_LIST_LIMIT = 50
DEFAULT_ORDER_BY = "createdAt:DESC"


async def _relation_ids(ctx: OperationContext, params: Mapping[str, Any]) -> Dict[str, Any]:
    ids: Dict[str, Any] = {}
    if params.get("companyName"):
        ids["companyId"] = await lookup_company_id(ctx, params["companyName"])
    if params.get("pointOfContactEmail"):
        ids["pointOfContactId"] = await lookup_person_id(ctx, params["pointOfContactEmail"])
    return ids


@operation("opportunity", "find")
async def find_opportunity(ctx: OperationContext, params: Mapping[str, Any]) -> Dict[str, Any]:
    match = await ctx.finder.find_criterion("opportunity", search_criterion(params))
    return find_output(match, "opportunity", "Opportunity", (match.record or {}).get("name") or "")


@operation("opportunity", "create")
async def create_opportunity(ctx: OperationContext, params: Mapping[str, Any]) -> Dict[str, Any]:
    name = params.get("name") or required_param(params, "opportunityName")
    result = await ctx.reconciler.find_or_create_opportunity(
        {**params, "name": name},
        extra=await _relation_ids(ctx, params),
    )
    return {
        "created": result.created,
        "action": result.action,
        "opportunity": result.record,
        "confidence": result.confidence,
        "recordId": (result.record or {}).get("id"),
        "message": f"Opportunity created: {name}" if result.created else f"Opportunity already exists: {name}",
    }


@operation("opportunity", "update")
async def update_opportunity(ctx: OperationContext, params: Mapping[str, Any]) -> Dict[str, Any]:
    search_by = required_param(params, "updateSearchBy")
    search_value = required_param(params, "updateSearchValue")
    patch = {**build_opportunity_payload(params), **await _relation_ids(ctx, params)}

    result = await ctx.updater.update_by_key(
        "opportunity",
        search_by,
        search_value,
        patch,
        custom_field_path=params.get("customFieldPath"),
    )
    return {
        "updated": result.updated,
        "opportunity": result.record,
        "originalOpportunity": result.original_record,
        "searchMethod": search_by,
        "searchValue": search_value,
        "recordId": (result.record or {}).get("id"),
        "message": f"Opportunity updated: {search_value}" if result.updated else f"Update failed: {result.error}",
        "error": result.error,
    }


@operation("opportunity", "delete")
async def delete_opportunity(ctx: OperationContext, params: Mapping[str, Any]) -> Dict[str, Any]:
    search_by = required_param(params, "updateSearchBy")
    search_value = required_param(params, "updateSearchValue")

    result = await ctx.updater.delete_by_key(
        "opportunity",
        search_by,
        search_value,
        custom_field_path=params.get("customFieldPath"),
    )
    return {
        "deleted": result.deleted,
        "opportunityId": result.record_id,
        "searchMethod": search_by,
        "searchValue": search_value,
        "confidence": result.confidence,
        "message": (
            f"Opportunity deleted: {search_value}"
            if result.deleted
            else f"Opportunity not found with {search_by}: {search_value}"
        ),
        "error": result.error,
    }


@operation("opportunity", "list")
async def list_opportunities(ctx: OperationContext, params: Mapping[str, Any]) -> Dict[str, Any]:
    applied: Dict[str, Any] = {}
    clauses = []

    if params.get("stage"):
        applied["stage"] = params["stage"]
        clauses.append(filters.equals("stage", params["stage"]))
    for key in ("companyId", "pointOfContactId"):
        if params.get(key):
            applied[key] = validate_uuid(params[key], key)
            clauses.append(filters.equals(key, params[key]))
    if params.get("searchTerm"):
        applied["searchTerm"] = params["searchTerm"]
        clauses.append(filters.contains("name", params["searchTerm"]))

    page = await ctx.repository.find_many(
        "opportunity",
        filter=filters.to_graphql_filter(clauses),
        limit=int_param(params, "limit", DEFAULT_LIST_LIMIT),
        include_related=True,
        order_by=filters.parse_order_by(param(params, "orderBy", DEFAULT_ORDER_BY)),
    )
    return {
        "opportunities": page.records,
        "totalCount": page.total_count,
        "hasNextPage": page.has_next_page,
        "returnedCount": len(page.records),
        "filters": applied,
        "message": f"Found {len(page.records)} opportunities ({page.total_count} total)",
    }
