import pytest

from twenty_connector.core.errors import RecordCreationError
from twenty_connector.services.finder import UnifiedFinder
from twenty_connector.services.reconciler import Reconciler
from twenty_connector.services.twenty_client import GraphQLError
from twenty_connector.utils.validation import is_valid_uuid


pytestmark = pytest.mark.anyio


def _reconciler(fake):
    return Reconciler(UnifiedFinder(fake))


async def test_person_find_or_create_is_idempotent(fake_twenty):
    reconciler = _reconciler(fake_twenty)
    data = {"firstName": "Alice", "lastName": "Kim", "email": "Alice@Example.com", "jobTitle": "CTO"}

    first = await reconciler.find_or_create_person(data)
    second = await reconciler.find_or_create_person(data)

    assert first.action == "created"
    assert first.created is True
    assert is_valid_uuid(first.record["id"])
    assert first.record["emails"] == {"primaryEmail": "alice@example.com"}
    assert first.record["name"] == {"firstName": "Alice", "lastName": "Kim"}

    assert second.action == "found"
    assert second.found_by == "email"
    assert second.confidence == 1.0
    assert second.record["id"] == first.record["id"]
    assert len(fake_twenty.records["person"]) == 1


async def test_person_without_email_is_always_created(fake_twenty):
    reconciler = _reconciler(fake_twenty)
    await reconciler.find_or_create_person({"firstName": "NoMail"})
    await reconciler.find_or_create_person({"firstName": "NoMail"})
    assert len(fake_twenty.records["person"]) == 2


async def test_company_domain_takes_precedence_over_name(fake_twenty):
    existing = fake_twenty.seed(
        "company", {"name": "Acme Corporation", "domainName": {"primaryLinkUrl": "https://acme.com"}}
    )

    result = await _reconciler(fake_twenty).find_or_create_company({"name": "Acme", "domain": "acme.com"})

    assert result.action == "found"
    assert result.found_by == "domain"
    assert result.record["id"] == existing["id"]
    assert fake_twenty.operations("Create") == []


async def test_company_falls_back_to_exact_name(fake_twenty):
    existing = fake_twenty.seed("company", {"name": "Globex"})

    result = await _reconciler(fake_twenty).find_or_create_company({"name": "globex", "domain": "globex.io"})

    assert result.action == "found"
    assert result.found_by == "name"
    assert result.record["id"] == existing["id"]


async def test_company_partial_name_match_creates(fake_twenty):
    fake_twenty.seed("company", {"name": "Initech Holdings"})

    result = await _reconciler(fake_twenty).find_or_create_company({"name": "Initech", "domain": "initech.com"})

    assert result.action == "created"
    assert result.record["domainName"] == {"primaryLinkUrl": "https://initech.com"}
    assert len(fake_twenty.records["company"]) == 2


async def test_company_creation_defaults_revenue_currency(fake_twenty):
    result = await _reconciler(fake_twenty).find_or_create_company(
        {"name": "Umbrella", "annualRecurringRevenueMicros": 5_000_000}
    )
    assert result.record["annualRecurringRevenue"] == {"amountMicros": 5_000_000, "currencyCode": "USD"}


async def test_opportunity_reconciles_by_exact_name(fake_twenty):
    reconciler = _reconciler(fake_twenty)
    fake_twenty.seed("opportunity", {"name": "Renewal 2025 Q1"})

    created = await reconciler.find_or_create_opportunity({"name": "Renewal 2025", "amount": 1000})
    found = await reconciler.find_or_create_opportunity({"name": "RENEWAL 2025"})

    assert created.action == "created"
    assert created.record["amount"] == {"amountMicros": 1000, "currencyCode": "USD"}
    assert found.action == "found"
    assert found.record["id"] == created.record["id"]


async def test_extra_fields_are_passed_to_create(fake_twenty):
    result = await _reconciler(fake_twenty).find_or_create_company(
        {"name": "Hooli"}, extra={"tagline": "Making the world a better place"}
    )
    assert result.record["tagline"] == "Making the world a better place"


async def test_create_failure_raises_record_creation_error(fake_twenty):
    fake_twenty.fail_creates["person"] = GraphQLError([{"message": "Duplicate email"}])

    with pytest.raises(RecordCreationError) as exc_info:
        await _reconciler(fake_twenty).find_or_create_person({"firstName": "Eve", "email": "eve@example.com"})

    assert "Failed to create person" in str(exc_info.value)
    assert isinstance(exc_info.value.__cause__, GraphQLError)


async def test_company_exact_name_found_past_first_page_of_partial_matches(fake_twenty):
    for index in range(60):
        fake_twenty.seed("company", {"name": f"Acme {index}"})
    existing = fake_twenty.seed("company", {"name": "Acme"})

    result = await _reconciler(fake_twenty).find_or_create_company({"name": "acme"})

    assert result.action == "found"
    assert result.found_by == "name"
    assert result.record["id"] == existing["id"]
    assert [c for c in fake_twenty.records["company"] if c["name"] == "Acme"] == [existing]


async def test_company_domain_found_among_many_subdomains(fake_twenty):
    for index in range(60):
        fake_twenty.seed("company", {"name": f"Shop {index}", "domainName": {"primaryLinkUrl": f"https://shop{index}.acme.com"}})
    existing = fake_twenty.seed("company", {"name": "Acme", "domainName": {"primaryLinkUrl": "https://www.acme.com"}})

    result = await _reconciler(fake_twenty).find_or_create_company({"name": "Acme Store", "domain": "ACME.com"})

    assert result.action == "found"
    assert result.found_by == "domain"
    assert result.record["id"] == existing["id"]
    assert fake_twenty.operations("Create") == []


async def test_company_invalid_domain_falls_back_to_name(fake_twenty):
    existing = fake_twenty.seed("company", {"name": "Globex"})

    result = await _reconciler(fake_twenty).find_or_create_company({"name": "Globex", "domain": "not a domain!"})

    assert result.action == "found"
    assert result.found_by == "name"
    assert result.record["id"] == existing["id"]


async def test_opportunity_exact_name_found_past_first_page(fake_twenty):
    for index in range(55):
        fake_twenty.seed("opportunity", {"name": f"Renewal {index}"})
    existing = fake_twenty.seed("opportunity", {"name": "Renewal"})

    result = await _reconciler(fake_twenty).find_or_create_opportunity({"name": "Renewal"})

    assert result.action == "found"
    assert result.record["id"] == existing["id"]
