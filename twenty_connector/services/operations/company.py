"""
Company operations

find / create / update / delete / intelligence
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping

from twenty_connector.services.graphql_queries import connection_nodes
from twenty_connector.services.operations.base import (
    OperationContext,
    find_output,
    lookup_workspace_member_id,
    operation,
    required_param,
    resolve_custom_fields,
    search_criterion,
)
from twenty_connector.services.payloads import build_company_payload
from twenty_connector.utils.validation import validate_uuid

logger = logging.getLogger(__name__)

# 회사 수정은 모호한 결과(0.8)까지, 삭제는 유일 매치(0.95) 이상만 허용
UPDATE_MIN_CONFIDENCE = 0.8
DELETE_MIN_CONFIDENCE = 0.9

CLOSED_STAGES = ("CLOSED_WON", "CLOSED_LOST")
KEY_CONTACT_LIMIT = 5
MICROS = 1_000_000


async def _lookup_fields(ctx: OperationContext, params: Mapping[str, Any]) -> Dict[str, Any]:
    """accountOwnerEmail 및 customFields 를 실제 필드 값으로 변환"""
    fields: Dict[str, Any] = {}
    if params.get("accountOwnerEmail"):
        fields["accountOwnerId"] = await lookup_workspace_member_id(ctx, params["accountOwnerEmail"])
    fields.update(await resolve_custom_fields(ctx, "company", params.get("customFields")))
    return fields


@operation("company", "find")
async def find_company(ctx: OperationContext, params: Mapping[str, Any]) -> Dict[str, Any]:
    match = await ctx.finder.find_criterion("company", search_criterion(params))
    return find_output(match, "company", "Company", (match.record or {}).get("name") or "")


@operation("company", "create")
async def create_company(ctx: OperationContext, params: Mapping[str, Any]) -> Dict[str, Any]:
    name = params.get("name") or required_param(params, "companyName")
    result = await ctx.reconciler.find_or_create_company(
        {**params, "name": name},
        extra=await _lookup_fields(ctx, params),
    )
    return {
        "created": result.created,
        "action": result.action,
        "company": result.record,
        "confidence": result.confidence,
        "foundBy": result.found_by,
        "recordId": (result.record or {}).get("id"),
        "message": f"Company created: {name}" if result.created else f"Company already exists: {name}",
    }


@operation("company", "update")
async def update_company(ctx: OperationContext, params: Mapping[str, Any]) -> Dict[str, Any]:
    search_by = required_param(params, "updateSearchBy")
    search_value = required_param(params, "updateSearchValue")
    patch = {**build_company_payload(params), **await _lookup_fields(ctx, params)}

    result = await ctx.updater.update_by_key(
        "company",
        search_by,
        search_value,
        patch,
        custom_field_path=params.get("customFieldPath"),
        min_confidence=UPDATE_MIN_CONFIDENCE,
    )
    return {
        "updated": result.updated,
        "company": result.record,
        "originalCompany": result.original_record,
        "searchMethod": search_by,
        "searchValue": search_value,
        "confidence": result.confidence,
        "recordId": (result.record or {}).get("id"),
        "message": f"Company updated: {search_value}" if result.updated else f"Update failed: {result.error}",
        "error": result.error,
    }


@operation("company", "delete")
async def delete_company(ctx: OperationContext, params: Mapping[str, Any]) -> Dict[str, Any]:
    search_by = required_param(params, "updateSearchBy")
    search_value = required_param(params, "updateSearchValue")

    result = await ctx.updater.delete_by_key(
        "company",
        search_by,
        search_value,
        custom_field_path=params.get("customFieldPath"),
        min_confidence=DELETE_MIN_CONFIDENCE,
    )
    return {
        "deleted": result.deleted,
        "companyId": result.record_id,
        "searchMethod": search_by,
        "searchValue": search_value,
        "confidence": result.confidence,
        "message": (
            f"Company deleted: {search_value}"
            if result.deleted
            else f"Company not found or no exact match with {search_by}: {search_value}"
        ),
        "error": result.error,
    }


@operation("company", "intelligence")
async def company_intelligence(ctx: OperationContext, params: Mapping[str, Any]) -> Dict[str, Any]:
    """회사 요약: 기본 정보, 담당자(최대 5명), 영업 기회 합계"""
    company_id = validate_uuid(required_param(params, "companyId"), "company id")
    company = await ctx.repository.get("company", company_id, include_related=True)
    if not company:
        return {"found": False, "company": None}

    people = connection_nodes(company.get("people"))
    opportunities = connection_nodes(company.get("opportunities"))
    total_micros = sum(((opp.get("amount") or {}).get("amountMicros") or 0) for opp in opportunities)

    return {
        "found": True,
        "company": company,
        "intelligence": {
            "basicInfo": {
                "name": company.get("name"),
                "domain": (company.get("domainName") or {}).get("primaryLinkUrl"),
                "address": company.get("address"),
                "employees": company.get("employees"),
                "annualRecurringRevenue": company.get("annualRecurringRevenue"),
            },
            "teamInfo": {
                "totalPeople": len(people),
                "keyContacts": [
                    {
                        "name": person.get("name"),
                        "email": (person.get("emails") or {}).get("primaryEmail"),
                        "position": person.get("position"),
                    }
                    for person in people[:KEY_CONTACT_LIMIT]
                ],
            },
            "salesInfo": {
                "totalOpportunities": len(opportunities),
                "activeOpportunities": sum(
                    1 for opp in opportunities if opp.get("stage") and opp["stage"] not in CLOSED_STAGES
                ),
                "totalValue": total_micros / MICROS,
            },
            "lastActivity": company.get("updatedAt"),
        },
    }
