"""Base class and shared types for text-completion oracles."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from ...constants import AI_MAX_TOKENS, AI_TEMPERATURE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OracleConfig:
    """Settings passed to an oracle at initialization."""
    api_key: str | None = None
    model: str | None = None
    temperature: float = AI_TEMPERATURE
    max_tokens: int = AI_MAX_TOKENS


@dataclass(frozen=True)
class OracleResponse:
    """Typed reply from an oracle: content on success, error otherwise."""
    success: bool
    content: str = ""
    error: str | None = None


class BaseOracle(ABC):
    """A text-completion provider. Subclasses never raise from generate()."""

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    async def initialize(self, config: OracleConfig) -> None:
        """Prepare the client; raise OracleConfigurationError if impossible."""

    @abstractmethod
    async def generate(self, prompt: str) -> OracleResponse:
        """Complete `prompt`."""

    async def aclose(self) -> None:
        """Release any client resources."""

    def handle_error(self, error: Exception) -> OracleResponse:
        message = str(error)
        logger.error(f"{self.name} oracle error: {message}")
        return OracleResponse(success=False, content="", error=message)
