import pytest

from twenty_connector.core.errors import InvalidUuidError, MissingRequiredParameter
from twenty_connector.utils.validation import (
    generate_uuid,
    is_valid_email,
    is_valid_uuid,
    normalize_domain,
    prepare_request_body,
    require,
    validate_uuid,
)

VALID_ID = "123e4567-e89b-12d3-a456-426614174000"


@pytest.mark.parametrize(
    "value",
    [
        VALID_ID,
        VALID_ID.upper(),
        "c9bf9e57-1685-4c89-bafb-ff5af830be8a",
    ],
)
def test_is_valid_uuid_accepts(value):
    assert is_valid_uuid(value) is True


@pytest.mark.parametrize(
    "value",
    [
        "123e4567-e89b-62d3-a456-426614174000",  # version nibble 6
        "123e4567-e89b-12d3-c456-426614174000",  # variant nibble c
        "123e4567e89b-12d3-a456-426614174000",  # missing hyphen group
        "not-a-uuid",
        "",
        None,
        12345,
    ],
)
def test_is_valid_uuid_rejects(value):
    assert is_valid_uuid(value) is False


def test_validate_uuid_error_names_label():
    with pytest.raises(InvalidUuidError) as exc_info:
        validate_uuid("abc", "company id")
    assert "company id" in str(exc_info.value)
    assert exc_info.value.value == "abc"


def test_generate_uuid_passes_validation():
    assert is_valid_uuid(generate_uuid())


def test_normalize_domain_strips_scheme_www_and_path():
    assert normalize_domain("https://www.Example.com/path") == "example.com"
    assert normalize_domain("  http://acme.io  ") == "acme.io"
    assert normalize_domain("sub.acme.co.kr/about?x=1") == "sub.acme.co.kr"


@pytest.mark.parametrize("value", ["", None, "https://", "bad_domain!.com", "-acme.com"])
def test_normalize_domain_invalid_returns_none(value):
    assert normalize_domain(value) is None


def test_is_valid_email():
    assert is_valid_email("alice@example.com")
    assert not is_valid_email("alice@")
    assert not is_valid_email("")
    assert not is_valid_email(None)


def test_require_rejects_blank_values():
    assert require("x", "name") == "x"
    with pytest.raises(MissingRequiredParameter):
        require("   ", "name")
    with pytest.raises(MissingRequiredParameter):
        require(None, "name")


def test_prepare_request_body_generates_id_and_drops_none():
    prepared = prepare_request_body({"name": "Acme", "employees": None}, require_id=True)
    assert is_valid_uuid(prepared["id"])
    assert "employees" not in prepared


def test_prepare_request_body_validates_known_id_fields():
    with pytest.raises(InvalidUuidError):
        prepare_request_body({"companyId": "company-1"})

    prepared = prepare_request_body({"companyId": VALID_ID})
    assert prepared == {"companyId": VALID_ID}
