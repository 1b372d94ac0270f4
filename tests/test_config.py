import pytest

from warddost.config import get_settings


@pytest.fixture
def fresh_settings():
    get_settings.cache_clear()
    yield get_settings
    get_settings.cache_clear()


def test_environment_overrides(monkeypatch, fresh_settings):
    monkeypatch.setenv("AUTHORITY_SIGNUP_EMAILS", "EE@bbmp.gov.in, ae@bbmp.gov.in")
    monkeypatch.setenv("STATUS_TRANSITION_POLICY", "Strict")
    monkeypatch.setenv("MAX_PAGE_SIZE", "50")
    settings = fresh_settings()
    assert settings.authority_signup_emails == frozenset({"ee@bbmp.gov.in", "ae@bbmp.gov.in"})
    assert settings.status_transition_policy == "strict"
    assert settings.max_page_size == 50


def test_defaults(fresh_settings):
    settings = fresh_settings()
    assert settings.status_transition_policy == "permissive"
    assert settings.jwt_algorithm == "HS256"
    assert settings.storage_provider == "local"


def test_unknown_policy_is_rejected(monkeypatch, fresh_settings):
    monkeypatch.setenv("STATUS_TRANSITION_POLICY", "chaotic")
    with pytest.raises(ValueError):
        fresh_settings()
