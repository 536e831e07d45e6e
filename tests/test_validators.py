import pytest

from placegate.errors import ValidationIssue
from placegate.validators import is_local_host, normalize_host, normalize_key, normalize_lang


def test_normalize_host():
    assert normalize_host("Etyek.Example.com:443") == "etyek.example.com"
    assert normalize_host("etyek.example.com, proxy.internal") == "etyek.example.com"
    assert normalize_host("[::1]:8000") == "::1"
    assert normalize_host("") is None
    assert normalize_host(None) is None


def test_is_local_host():
    assert is_local_host("localhost")
    assert is_local_host("localhost.localdomain")
    assert is_local_host("10.0.0.7")
    assert is_local_host("::1")
    assert not is_local_host("etyek.local")
    assert not is_local_host("testserver")


def test_normalize_lang():
    assert normalize_lang(" EN ", supported=("hu", "en"), fallbacks=("hu",)) == "en"
    assert normalize_lang("", supported=("hu", "en"), fallbacks=("de", "en")) == "en"
    assert normalize_lang(None, supported=("hu", "en"), fallbacks=()) == "hu"

    with pytest.raises(ValidationIssue) as excinfo:
        normalize_lang("fr", supported=("hu", "en"))
    assert excinfo.value.data == {"supported": ["hu", "en"]}


def test_normalize_key():
    assert normalize_key(None, "slug") == ""
    assert normalize_key("  wine-tours ", "slug") == "wine-tours"

    with pytest.raises(ValidationIssue) as excinfo:
        normalize_key("x" * 300, "slug")
    assert excinfo.value.error_type == "max_length"
