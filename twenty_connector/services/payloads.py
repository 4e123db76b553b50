"""Map flat caller fields onto the nested shapes Twenty mutations expect."""

from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Optional

ADDRESS_FIELDS = (
    "addressStreet1",
    "addressStreet2",
    "addressCity",
    "addressPostcode",
    "addressState",
    "addressCountry",
)

DEFAULT_CURRENCY = "USD"


def _supplied(data: Mapping[str, Any], key: str) -> bool:
    return data.get(key) is not None


def _pick(data: Mapping[str, Any], keys: Iterable[str]) -> Dict[str, Any]:
    return {key: data[key] for key in keys if _supplied(data, key)}


def link(url: Optional[str]) -> Optional[Dict[str, str]]:
    if not url:
        return None
    return {"primaryLinkUrl": url}


def domain_link(domain: Optional[str]) -> Optional[Dict[str, str]]:
    if not domain:
        return None
    domain = domain.strip()
    return link(domain if domain.startswith("http") else f"https://{domain}")


def body_v2(markdown: Optional[str]) -> Optional[Dict[str, str]]:
    if markdown is None:
        return None
    return {"markdown": markdown}


def merge_patch(existing: Optional[Mapping[str, Any]], patch: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Overlay ``patch`` on ``existing`` key by key, recursing into nested dicts.

    Only keys present in ``patch`` are returned; omitted nested sub-fields keep
    the existing values.
    """
    existing = existing or {}
    merged: Dict[str, Any] = {}
    for key, value in patch.items():
        current = existing.get(key)
        if isinstance(value, Mapping) and isinstance(current, Mapping):
            merged[key] = {**current, **merge_patch(current, value)}
        else:
            merged[key] = value
    return merged


def build_person_payload(data: Mapping[str, Any]) -> Dict[str, Any]:
    payload: Dict[str, Any] = {}

    if isinstance(data.get("name"), Mapping):
        payload["name"] = dict(data["name"])
    else:
        name = _pick(data, ("firstName", "lastName"))
        if name:
            payload["name"] = name

    if isinstance(data.get("emails"), Mapping):
        payload["emails"] = dict(data["emails"])
    elif _supplied(data, "email"):
        payload["emails"] = {"primaryEmail": str(data["email"]).strip().lower()}

    if isinstance(data.get("phones"), Mapping):
        payload["phones"] = dict(data["phones"])
    else:
        phones = {}
        if _supplied(data, "phone"):
            phones["primaryPhoneNumber"] = data["phone"]
        if _supplied(data, "phoneCountryCode"):
            phones["primaryPhoneCountryCode"] = data["phoneCountryCode"]
        if _supplied(data, "phoneCallingCode"):
            phones["primaryPhoneCallingCode"] = data["phoneCallingCode"]
        if phones:
            payload["phones"] = phones

    payload.update(_pick(data, ("jobTitle", "city", "avatarUrl", "position", "companyId")))

    linkedin = data.get("linkedinLink") or link(data.get("linkedinUrl"))
    if linkedin:
        payload["linkedinLink"] = linkedin
    x_link = data.get("xLink") or link(data.get("xUrl"))
    if x_link:
        payload["xLink"] = x_link

    return payload


def build_company_payload(data: Mapping[str, Any]) -> Dict[str, Any]:
    payload: Dict[str, Any] = _pick(data, ("name", "employees", "accountOwnerId"))

    domain = data.get("domainName") or domain_link(data.get("domain"))
    if domain:
        payload["domainName"] = domain

    if isinstance(data.get("address"), Mapping):
        payload["address"] = dict(data["address"])
    else:
        address = _pick(data, ADDRESS_FIELDS)
        if address:
            payload["address"] = address

    if isinstance(data.get("annualRecurringRevenue"), Mapping):
        payload["annualRecurringRevenue"] = dict(data["annualRecurringRevenue"])
    else:
        revenue = {}
        if _supplied(data, "annualRecurringRevenueMicros"):
            revenue["amountMicros"] = data["annualRecurringRevenueMicros"]
        if _supplied(data, "currencyCode"):
            revenue["currencyCode"] = data["currencyCode"]
        if revenue:
            payload["annualRecurringRevenue"] = revenue

    linkedin = data.get("linkedinLink") or link(data.get("companyLinkedinUrl") or data.get("linkedinUrl"))
    if linkedin:
        payload["linkedinLink"] = linkedin
    x_link = data.get("xLink") or link(data.get("companyXUrl") or data.get("xUrl"))
    if x_link:
        payload["xLink"] = x_link

    return payload


def build_opportunity_payload(data: Mapping[str, Any]) -> Dict[str, Any]:
    payload: Dict[str, Any] = _pick(data, ("name", "closeDate", "stage", "companyId", "pointOfContactId"))

    if isinstance(data.get("amount"), Mapping):
        payload["amount"] = dict(data["amount"])
    else:
        amount = {}
        if _supplied(data, "amount"):
            amount["amountMicros"] = data["amount"]
        if _supplied(data, "currencyCode"):
            amount["currencyCode"] = data["currencyCode"]
        if amount:
            payload["amount"] = amount

    return payload


def with_creation_defaults(kind: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    """Fill defaults the create mutations expect but updates must not force."""
    result = dict(payload)
    if kind == "company" and "annualRecurringRevenue" in result:
        result["annualRecurringRevenue"] = {
            "amountMicros": 0,
            "currencyCode": DEFAULT_CURRENCY,
            **result["annualRecurringRevenue"],
        }
    if kind == "opportunity" and "amount" in result:
        result["amount"] = {"amountMicros": 0, "currencyCode": DEFAULT_CURRENCY, **result["amount"]}
    if kind == "person" and "name" in result:
        result["name"] = {"firstName": "", "lastName": "", **result["name"]}
    return result
