import pytest

from twenty_connector.core.errors import FieldNotFound, InvalidInputError, MissingRequiredParameter
from twenty_connector.services.field_resolver import FieldResolver, generate_candidates, match_candidate
from twenty_connector.services.twenty_client import GraphQLError


pytestmark = pytest.mark.anyio


def test_generate_candidates_fixed_order():
    assert generate_candidates("Instagram") == ["Instagram", "InstagramLink", "instagram", "instagramLink"]


def test_generate_candidates_dedupes_preserving_first_occurrence():
    assert generate_candidates("instagram") == ["instagram", "instagramLink"]


def test_match_candidate_respects_priority():
    candidates = ["Website", "WebsiteLink", "website", "websiteLink"]
    assert match_candidate(candidates, ["websiteLink", "website"]) == "website"
    assert match_candidate(candidates, ["name"]) is None


async def test_resolve_link_suffix(fake_twenty):
    fake_twenty.schema_fields["Person"] = ["id", "name", "instagramLink"]
    resolution = await FieldResolver(fake_twenty).resolve("person", "instagram")

    assert resolution.resolved_field == "instagramLink"
    assert resolution.field_exists is True
    assert resolution.fallback_used is False
    assert resolution.tried_fields == ["instagram", "instagramLink"]


async def test_resolve_accepts_type_names_and_aliases(fake_twenty):
    fake_twenty.schema_fields["Company"] = ["tagline"]
    resolver = FieldResolver(fake_twenty)

    assert (await resolver.resolve("Company", "tagline")).field_exists
    assert (await resolver.resolve("COMPANY", "Tagline")).resolved_field == "tagline"


async def test_resolve_absent_field(fake_twenty):
    fake_twenty.schema_fields["Person"] = ["id", "name"]
    resolution = await FieldResolver(fake_twenty).resolve("person", "shoeSize")

    assert resolution.resolved_field is None
    assert resolution.field_exists is False
    assert resolution.fallback_used is False

    with pytest.raises(FieldNotFound) as exc_info:
        await FieldResolver(fake_twenty).require("person", "shoeSize")
    assert exc_info.value.tried_fields == ["shoeSize", "shoeSizeLink", "shoesize", "shoesizeLink"]


async def test_resolve_falls_back_when_introspection_fails(fake_twenty):
    fake_twenty.introspection_error = GraphQLError([{"message": "Forbidden"}])
    resolution = await FieldResolver(fake_twenty).resolve("person", "Instagram")

    assert resolution.resolved_field == "Instagram"
    assert resolution.field_exists is False
    assert resolution.fallback_used is True
    assert await FieldResolver(fake_twenty).require("person", "Instagram") == "Instagram"


async def test_resolve_falls_back_when_type_missing(fake_twenty):
    resolution = await FieldResolver(fake_twenty).resolve("note", "title")
    assert resolution.fallback_used is True


async def test_resolve_rejects_empty_input(fake_twenty):
    with pytest.raises(MissingRequiredParameter):
        await FieldResolver(fake_twenty).resolve("person", "  ")
    assert fake_twenty.calls == []


async def test_resolve_rejects_unknown_object_type(fake_twenty):
    with pytest.raises(InvalidInputError):
        await FieldResolver(fake_twenty).resolve("invoice", "total")
