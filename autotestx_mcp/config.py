"""
Runtime configuration for repair sessions.

Values come from constructor arguments or, via RepairConfig.from_env(), from
AUTOTESTX_* environment variables (a .env file in the working directory is
loaded first).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace

from dotenv import load_dotenv

from .constants import (
    AI_MAX_TOKENS,
    AI_TEMPERATURE,
    DEFAULT_INSTALL_TIMEOUT_MS,
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_PACKAGE_MANAGER,
    DEFAULT_PROVIDER,
    DEFAULT_SESSION_TIMEOUT_MS,
    DEFAULT_TEST_TIMEOUT_MS,
)
from .core.oracle import OracleConfig

API_KEY_VARIABLES = {
    "openai": "OPENAI_API_KEY",
    "google": "GOOGLE_API_KEY",
}


@dataclass(frozen=True)
class RepairConfig:
    """
    Settings for a repair or generate-and-repair session.

    Attributes:
        provider: Oracle provider name (see OracleRegistry)
        model: Model name (provider default if None)
        api_key: Provider API key (provider env var if None)
        max_iterations: Upper bound on test runs per session
        test_command: Override for test command detection
        test_timeout_ms: Timeout for each test run
        install_timeout_ms: Timeout for dependency installs
        session_timeout_ms: Overall session timeout (services only)
        default_package_manager: Install command when no manifest signal exists
        lock_project: Hold an advisory lock on the project during a session
        prompt_dir: Directory of prompt template overrides
    """
    provider: str = DEFAULT_PROVIDER
    model: str | None = None
    api_key: str | None = None
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    test_command: str | None = None
    test_timeout_ms: int = DEFAULT_TEST_TIMEOUT_MS
    install_timeout_ms: int = DEFAULT_INSTALL_TIMEOUT_MS
    session_timeout_ms: int = DEFAULT_SESSION_TIMEOUT_MS
    default_package_manager: str = DEFAULT_PACKAGE_MANAGER
    lock_project: bool = True
    prompt_dir: str | None = None
    temperature: float = AI_TEMPERATURE
    max_tokens: int = AI_MAX_TOKENS

    def __post_init__(self):
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be at least 1, got {self.max_iterations}")

    @classmethod
    def from_env(cls, load_env_file: bool = True, **overrides) -> RepairConfig:
        """Build a config from AUTOTESTX_* variables; keyword overrides win."""

        if load_env_file:
            load_dotenv()

        provider = (overrides.get("provider") or os.getenv("AUTOTESTX_PROVIDER", DEFAULT_PROVIDER)).lower()
        values = {
            "provider": provider,
            "model": os.getenv("AUTOTESTX_MODEL") or None,
            "api_key": os.getenv(API_KEY_VARIABLES.get(provider, "")) or None,
            "max_iterations": _env_int("AUTOTESTX_MAX_ITERATIONS", DEFAULT_MAX_ITERATIONS),
            "test_command": os.getenv("AUTOTESTX_TEST_COMMAND") or None,
            "test_timeout_ms": _env_int("AUTOTESTX_TEST_TIMEOUT_MS", DEFAULT_TEST_TIMEOUT_MS),
            "install_timeout_ms": _env_int("AUTOTESTX_INSTALL_TIMEOUT_MS", DEFAULT_INSTALL_TIMEOUT_MS),
            "session_timeout_ms": _env_int("AUTOTESTX_SESSION_TIMEOUT_MS", DEFAULT_SESSION_TIMEOUT_MS),
            "default_package_manager": os.getenv("AUTOTESTX_DEFAULT_PACKAGE_MANAGER", DEFAULT_PACKAGE_MANAGER),
            "lock_project": os.getenv("AUTOTESTX_LOCK_PROJECT", "1").lower() not in ("0", "false", "no"),
            "prompt_dir": os.getenv("AUTOTESTX_PROMPT_DIR") or None,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def with_overrides(self, **overrides) -> RepairConfig:
        """Copy with the non-None overrides applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def oracle_config(self) -> OracleConfig:
        return OracleConfig(
            api_key=self.api_key,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens
        )


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
