from pathlib import Path

import pytest
import yaml

from e2e_toolkit.common import ConfigurationError, Settings
from e2e_toolkit.common.settings import PROJECT_ROOT


def _write_config(directory: Path, name: str, data: dict) -> None:
    (directory / name).write_text(yaml.dump(data), encoding="utf-8")


def test_defaults_when_config_dir_is_empty(tmp_path):
    settings = Settings.load(config_dir=tmp_path, environ={})

    assert settings.env == "development"
    assert settings.browser_name == "chromium"
    assert settings.headless is True
    assert settings.action_timeout == 10000
    assert settings.captcha_max_retries == 3
    assert settings.captcha_retry_delay == 2.0
    assert settings.llm_endpoint is None


def test_environment_yaml_overrides_base_yaml(tmp_path):
    _write_config(tmp_path, "config.yaml", {
        "app": {"base_url": "http://base.example.com"},
        "browser": {"name": "firefox", "viewport": {"width": 1280, "height": 720}},
        "timeouts": {"action": 4000},
    })
    _write_config(tmp_path, "staging.yaml", {
        "app": {"base_url": "https://staging.example.com"},
    })

    settings = Settings.load(config_dir=tmp_path, env="staging", environ={})

    assert settings.env == "staging"
    assert settings.is_staging()
    assert settings.base_url == "https://staging.example.com"
    assert settings.browser_name == "firefox"
    assert settings.action_timeout == 4000
    assert settings.viewport == {"width": 1280, "height": 720}


def test_environment_variables_win_and_are_converted(tmp_path):
    _write_config(tmp_path, "config.yaml", {"browser": {"headless": True}, "captcha": {"enabled": False}})
    environ = {
        "TEST_ENV": "qa",
        "BASE_URL": "http://env.example.com",
        "HEADLESS": "false",
        "ACTION_TIMEOUT": "2500",
        "CAPTCHA_SOLVER_ENABLED": "yes",
        "CAPTCHA_RETRY_DELAY": "0.5",
        "BROWSER_LAUNCH_ARGS": "--ignore-certificate-errors, --no-sandbox",
    }

    settings = Settings.load(config_dir=tmp_path, environ=environ)

    assert settings.env == "qa"
    assert settings.base_url == "http://env.example.com"
    assert settings.headless is False
    assert settings.action_timeout == 2500
    assert settings.captcha_solver_enabled is True
    assert settings.captcha_retry_delay == 0.5
    assert settings.launch_args == ("--ignore-certificate-errors", "--no-sandbox")
    assert settings.ignore_https_errors


def test_invalid_yaml_is_a_configuration_error(tmp_path):
    (tmp_path / "config.yaml").write_text("app: [unclosed", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        Settings.load(config_dir=tmp_path, environ={})


def test_non_mapping_yaml_is_a_configuration_error(tmp_path):
    (tmp_path / "config.yaml").write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        Settings.load(config_dir=tmp_path, environ={})


def test_resolve_path_is_project_root_based(tmp_path):
    settings = Settings()

    assert settings.resolve_path("reports/screenshots") == PROJECT_ROOT / "reports" / "screenshots"
    assert settings.resolve_path(str(tmp_path)) == tmp_path


def test_viewport_is_none_without_dimensions():
    assert Settings(viewport_width=None).viewport is None
    assert not Settings(launch_args=()).ignore_https_errors


def test_shipped_config_loads():
    settings = Settings.load(environ={})

    assert settings.locators_dir == "testsuites/ui_testing/locators"
    assert settings.resolve_path(settings.locators_dir).is_dir()
    assert settings.resolve_path(settings.scenarios_dir).is_dir()
