"""Explicit oracle registry, created once per process and disposed at shutdown."""

from __future__ import annotations

import logging

from ..errors import OracleConfigurationError
from .base import BaseOracle, OracleConfig
from .google_oracle import GoogleOracle
from .openai_oracle import OpenAIOracle

logger = logging.getLogger(__name__)

BUILTIN_PROVIDERS: dict[str, type[BaseOracle]] = {
    "openai": OpenAIOracle,
    "google": GoogleOracle,
}


class OracleRegistry:
    """
    Provider name -> initialized oracle instance.

    Usage:
        registry = OracleRegistry()
        oracle = await registry.get("openai", OracleConfig(model="gpt-4o-mini"))
        ...
        await registry.aclose()
    """

    def __init__(self, providers: dict[str, type[BaseOracle]] | None = None):
        self._providers = {
            name.lower(): cls
            for name, cls in (providers or BUILTIN_PROVIDERS).items()
        }
        self._instances: dict[str, BaseOracle] = {}

    @property
    def providers(self) -> list[str]:
        return sorted(self._providers)

    def register(self, name: str, oracle_cls: type[BaseOracle]) -> None:
        self._providers[name.lower()] = oracle_cls

    async def get(self, name: str, config: OracleConfig | None = None) -> BaseOracle:
        """
        Return the cached oracle for `name`, creating it on first use.

        Raises:
            OracleConfigurationError: Unknown provider or failed initialization
        """
        key = name.lower()
        if key in self._instances:
            return self._instances[key]

        oracle_cls = self._providers.get(key)
        if oracle_cls is None:
            raise OracleConfigurationError(
                f"Unsupported oracle provider: {name}. Available: {', '.join(self.providers)}"
            )

        oracle = oracle_cls()
        await oracle.initialize(config or OracleConfig())
        self._instances[key] = oracle
        logger.info(f"Created {oracle.name} oracle")
        return oracle

    async def aclose(self) -> None:
        """Dispose every created oracle."""

        for key, oracle in list(self._instances.items()):
            try:
                await oracle.aclose()
            except Exception as e:
                logger.warning(f"Error closing {oracle.name} oracle: {e}")
            del self._instances[key]
