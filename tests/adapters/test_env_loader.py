"""Environment settings adapter tests.

The scenarios cover prefix naming, defaults, profile parsing and numeric
coercion, plus randomised profile lists, to prove the adapter keeps matching
the documented environment rules.
"""

from __future__ import annotations

import string

import pytest
from hypothesis import given
from hypothesis import strategies as st

from lib_reloadable_config.adapters.env.default import (
    ProviderSettings,
    default_env_prefix,
    load_settings,
    parse_profiles,
)


def test_default_env_prefix() -> None:
    assert default_env_prefix("lib-reloadable-config") == "LIB_RELOADABLE_CONFIG"


def test_defaults_when_nothing_is_set() -> None:
    settings = load_settings({"OTHER": "ignored"})
    assert settings == ProviderSettings()
    assert settings.profiles == ("default", "dev")
    assert settings.reload_interval == 60.0


def test_values_are_read_under_the_prefix() -> None:
    environ = {
        "LIB_RELOADABLE_CONFIG_PROFILE": "prod",
        "LIB_RELOADABLE_CONFIG_PATH": "/etc/orders",
        "LIB_RELOADABLE_CONFIG_FILE": "application.toml",
        "LIB_RELOADABLE_CONFIG_RELOAD_INTERVAL": "15",
        "LIB_RELOADABLE_CONFIG_SERVER_URI": "https://config.example.com",
        "LIB_RELOADABLE_CONFIG_SERVER_USERNAME": "svc",
        "LIB_RELOADABLE_CONFIG_SERVER_PASSWORD": "pw",
        "LIB_RELOADABLE_CONFIG_SERVER_TIMEOUT": "2.5",
    }
    settings = load_settings(environ)
    assert settings.profiles == ("default", "prod")
    assert settings.config_path == "/etc/orders"
    assert settings.file_name == "application.toml"
    assert settings.reload_interval == 15.0
    assert settings.server_uri == "https://config.example.com"
    assert (settings.server_username, settings.server_password) == ("svc", "pw")
    assert settings.server_timeout == 2.5


def test_password_is_kept_out_of_repr() -> None:
    settings = load_settings({"APP_SERVER_PASSWORD": "hunter2"}, prefix="APP")
    assert "hunter2" not in repr(settings)


def test_blank_values_fall_back_to_defaults() -> None:
    assert load_settings({"APP_PATH": "  "}, prefix="APP").config_path == "config"


@pytest.mark.parametrize("raw", ["soon", "true", "-1"])
def test_invalid_numbers_name_the_variable(raw: str) -> None:
    with pytest.raises(ValueError, match="APP_RELOAD_INTERVAL"):
        load_settings({"APP_RELOAD_INTERVAL": raw}, prefix="APP")


def test_profiles_put_default_first_once() -> None:
    assert parse_profiles("qa,default, eu") == ("default", "qa", "eu")
    assert parse_profiles("") == ("default",)


@given(st.lists(st.text(alphabet=string.ascii_lowercase, min_size=1, max_size=6), max_size=5))
def test_parsed_profiles_always_start_with_default(names: list[str]) -> None:
    profiles = parse_profiles(",".join(names))
    assert profiles[0] == "default"
    assert profiles.count("default") == 1
    assert [name for name in names if name != "default"] == list(profiles[1:])
