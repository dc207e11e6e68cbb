from __future__ import annotations

import pytest

from identity_admin.config import REQUIRED_VARIABLES, ConfigurationError, Settings, get_settings

ENV = {
    "POSTGRES_URL": "postgresql://identity:identity@db:5432/identity",
    "JWT_ISSUER": "identity-admin",
    "JWT_AUDIENCE": "identity-admin.clients",
    "JWT_SECRET": "a-signing-secret-of-at-least-32-bytes",
    "ADMIN_NAME": "Root",
    "ADMIN_INITIALS": "ADM",
    "ADMIN_PASSWORD": "seed",
}


def test_from_env_reads_required_values_and_defaults():
    settings = Settings.from_env(ENV)
    assert settings.database_url == ENV["POSTGRES_URL"]
    assert settings.bootstrap_admin.initials == "ADM"
    assert settings.jwt_validate_issuer and settings.jwt_validate_audience
    assert settings.jwt_ttl_seconds == 3600
    assert settings.password_hash_rounds == 12
    assert settings.rate_limit_backend == "memory"


def test_missing_variables_are_all_reported():
    env = {key: value for key, value in ENV.items() if key not in {"JWT_SECRET", "ADMIN_PASSWORD"}}
    env["ADMIN_NAME"] = ""
    with pytest.raises(ConfigurationError) as excinfo:
        Settings.from_env(env)
    message = str(excinfo.value)
    for name in ("JWT_SECRET", "ADMIN_PASSWORD", "ADMIN_NAME"):
        assert name in message
    assert "POSTGRES_URL" not in message


def test_every_required_variable_is_enforced():
    for name in REQUIRED_VARIABLES:
        env = {key: value for key, value in ENV.items() if key != name}
        with pytest.raises(ConfigurationError, match=name):
            Settings.from_env(env)


def test_issuer_and_audience_checks_are_explicit_switches():
    settings = Settings.from_env({**ENV, "JWT_VALIDATE_ISSUER": "false", "JWT_VALIDATE_AUDIENCE": "0"})
    config = settings.token_config()
    assert config.validate_issuer is False
    assert config.validate_audience is False
    assert config.secret == ENV["JWT_SECRET"]


@pytest.mark.parametrize("name, value", [("JWT_TTL_SECONDS", "soon"), ("JWT_VALIDATE_AUDIENCE", "maybe")])
def test_unparseable_optional_values_fail(name, value):
    with pytest.raises(ConfigurationError, match=name):
        Settings.from_env({**ENV, name: value})


def test_repr_hides_secrets():
    text = repr(Settings.from_env(ENV))
    assert ENV["JWT_SECRET"] not in text
    assert ENV["POSTGRES_URL"] not in text
    assert ENV["ADMIN_PASSWORD"] not in text


def test_get_settings_reads_process_environment(monkeypatch):
    for key, value in ENV.items():
        monkeypatch.setenv(key, value)
    get_settings.cache_clear()
    try:
        assert get_settings().jwt_issuer == "identity-admin"
    finally:
        get_settings.cache_clear()
