"""
================================================================================
Framework Settings
================================================================================

Read-only configuration object for the E2E framework.

Configuration hierarchy (highest to lowest priority):
    1. Environment variables (BASE_URL, LLM_PROVIDER, ...)
    2. Environment-specific YAML (config/<TEST_ENV>.yaml)
    3. Base YAML (config/config.yaml)
    4. Built-in defaults

A `Settings` instance is built once per process (see the `settings` fixture
in the UI conftest) and passed explicitly to every component that needs it.
There is no module-level singleton.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml
from loguru import logger

from .errors import ConfigurationError


PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_CONFIG_DIR = PROJECT_ROOT / "config"
DEFAULT_ENV = "development"

# Settings field -> (dot path in YAML, environment variable)
_FIELD_SOURCES: Dict[str, Tuple[str, str]] = {
    "base_url": ("app.base_url", "BASE_URL"),
    "api_base_url": ("app.api_base_url", "API_BASE_URL"),
    "username": ("app.username", "UI_USERNAME"),
    "password": ("app.password", "UI_PASSWORD"),
    "browser_name": ("browser.name", "BROWSER"),
    "headless": ("browser.headless", "HEADLESS"),
    "launch_args": ("browser.launch_args", "BROWSER_LAUNCH_ARGS"),
    "viewport_width": ("browser.viewport.width", "VIEWPORT_WIDTH"),
    "viewport_height": ("browser.viewport.height", "VIEWPORT_HEIGHT"),
    "default_timeout": ("timeouts.default", "DEFAULT_TIMEOUT"),
    "action_timeout": ("timeouts.action", "ACTION_TIMEOUT"),
    "default_retry_attempts": ("retries.default_attempts", "DEFAULT_RETRY_ATTEMPTS"),
    "llm_provider": ("llm.provider", "LLM_PROVIDER"),
    "llm_endpoint": ("llm.endpoint", "LLM_ENDPOINT"),
    "llm_api_key": ("llm.api_key", "LLM_API_KEY"),
    "local_llm_model": ("llm.local_model", "LOCAL_LLM_MODEL_NAME"),
    "openai_model": ("llm.openai_model", "OPENAI_MODEL_NAME"),
    "captcha_solver_enabled": ("captcha.enabled", "CAPTCHA_SOLVER_ENABLED"),
    "captcha_max_retries": ("captcha.max_retries", "CAPTCHA_MAX_RETRIES"),
    "captcha_retry_delay": ("captcha.retry_delay", "CAPTCHA_RETRY_DELAY"),
    "locators_dir": ("paths.locators_dir", "LOCATORS_DIR"),
    "scenarios_dir": ("paths.scenarios_dir", "SCENARIOS_DIR"),
    "screenshots_dir": ("paths.screenshots_dir", "SCREENSHOTS_DIR"),
    "log_level": ("logging.level", "LOG_LEVEL"),
    "log_file": ("logging.file", "LOG_FILE"),
}


@dataclass(frozen=True)
class Settings:
    """
    Immutable framework configuration.

    Paths are stored as given (usually relative to the project root);
    use `resolve_path()` to get an absolute path.
    """

    env: str = DEFAULT_ENV
    base_url: str = "http://localhost:3000"
    api_base_url: str = "http://localhost:8080/api"
    username: Optional[str] = None
    password: Optional[str] = None
    browser_name: str = "chromium"
    headless: bool = True
    launch_args: Tuple[str, ...] = ()
    viewport_width: Optional[int] = 1920
    viewport_height: Optional[int] = 1080
    default_timeout: int = 30000
    action_timeout: int = 10000
    default_retry_attempts: int = 2
    llm_provider: str = "local"
    llm_endpoint: Optional[str] = None
    llm_api_key: Optional[str] = None
    local_llm_model: str = "llava"
    openai_model: str = "gpt-4o-mini"
    captcha_solver_enabled: bool = False
    captcha_max_retries: int = 3
    captcha_retry_delay: float = 2.0
    locators_dir: str = "testsuites/ui_testing/locators"
    scenarios_dir: str = "testsuites/ui_testing/features"
    screenshots_dir: str = "reports/screenshots"
    log_level: str = "INFO"
    log_file: Optional[str] = None
    project_root: Path = field(default=PROJECT_ROOT, compare=False)

    # =========================================================================
    # Loading
    # =========================================================================

    @classmethod
    def load(
        cls,
        config_dir: Optional[Path] = None,
        env: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "Settings":
        """
        Build settings from YAML files and environment variables.

        Args:
            config_dir: Directory with config.yaml / <env>.yaml
            env: Environment name; defaults to TEST_ENV or "development"
            environ: Environment mapping (defaults to os.environ)

        Returns:
            Settings instance

        Raises:
            ConfigurationError: When a YAML file exists but cannot be parsed
        """
        environ = os.environ if environ is None else environ
        config_dir = Path(config_dir) if config_dir else DEFAULT_CONFIG_DIR
        env = env or environ.get("TEST_ENV", DEFAULT_ENV)

        raw: Dict[str, Any] = _read_yaml(config_dir / "config.yaml")
        env_path = config_dir / f"{env}.yaml"
        if env_path.exists():
            raw = _deep_merge(raw, _read_yaml(env_path))
            logger.debug(f"Merged environment config: {env_path}")
        else:
            logger.debug(f"No environment config for '{env}' in {config_dir}")

        defaults = {f.name: f.default for f in fields(cls)}
        values: Dict[str, Any] = {"env": env}

        for name, (dot_path, env_key) in _FIELD_SOURCES.items():
            default = defaults[name]
            env_value = environ.get(env_key)
            if env_value is not None:
                value = _convert_type(env_value, default)
            else:
                value = _get_nested(raw, dot_path, default)
            if name == "launch_args":
                value = _as_args(value)
            values[name] = value

        settings = cls(**values)
        logger.info(
            f"Configuration loaded: env={settings.env}, base_url={settings.base_url}, "
            f"browser={settings.browser_name}, llm_provider={settings.llm_provider}, "
            f"captcha_solver_enabled={settings.captcha_solver_enabled}"
        )
        return settings

    # =========================================================================
    # Helpers
    # =========================================================================

    def resolve_path(self, value: str) -> Path:
        """Return `value` as an absolute path (relative paths are project-root based)."""
        path = Path(value)
        if not path.is_absolute():
            path = self.project_root / path
        return path

    @property
    def viewport(self) -> Optional[Dict[str, int]]:
        """Viewport mapping for new browser contexts, or None for the device default."""
        if self.viewport_width and self.viewport_height:
            return {"width": int(self.viewport_width), "height": int(self.viewport_height)}
        return None

    @property
    def ignore_https_errors(self) -> bool:
        return "--ignore-certificate-errors" in self.launch_args

    def is_development(self) -> bool:
        return self.env == "development"

    def is_staging(self) -> bool:
        return self.env == "staging"

    def is_production(self) -> bool:
        return self.env == "production"


def _read_yaml(path: Path) -> Dict[str, Any]:
    """Load a YAML mapping; missing file yields an empty mapping."""
    if not path.exists():
        logger.warning(f"Configuration file not found: {path}. Using defaults and environment variables.")
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            content = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in configuration file: {path}", cause=e, context={"path": str(path)}) from e
    if not isinstance(content, dict):
        raise ConfigurationError(f"Configuration file must contain a mapping: {path}", context={"path": str(path)})
    logger.debug(f"Loaded configuration from: {path}")
    return content


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge two dictionaries, with override taking precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _get_nested(data: Dict[str, Any], dot_path: str, default: Any) -> Any:
    value: Any = data
    for part in dot_path.split("."):
        if isinstance(value, dict) and part in value:
            value = value[part]
        else:
            return default
    return default if value is None else value


def _convert_type(value: str, reference: Any) -> Any:
    """
    Convert an environment string to the type of the reference default.

    Environment variables are always strings.
    """
    if reference is None:
        return value
    if isinstance(reference, bool):
        return value.lower() in ("true", "1", "yes", "on")
    if isinstance(reference, int):
        try:
            return int(value)
        except ValueError:
            return value
    if isinstance(reference, float):
        try:
            return float(value)
        except ValueError:
            return value
    return value


def _as_args(value: Any) -> Tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        return tuple(arg.strip() for arg in value.split(",") if arg.strip())
    return tuple(str(arg).strip() for arg in value)


__all__ = [
    "Settings",
    "PROJECT_ROOT",
    "DEFAULT_CONFIG_DIR",
]
