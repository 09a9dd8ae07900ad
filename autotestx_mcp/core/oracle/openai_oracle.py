"""OpenAI-backed oracle."""

from __future__ import annotations

import logging
import os

from openai import AsyncOpenAI

from ...constants import DEFAULT_AI_MODEL
from ..errors import OracleConfigurationError
from .base import BaseOracle, OracleConfig, OracleResponse

logger = logging.getLogger(__name__)


class OpenAIOracle(BaseOracle):
    """Chat-completions oracle (api key from config or OPENAI_API_KEY)."""

    def __init__(self):
        super().__init__("OpenAI")
        self.client: AsyncOpenAI | None = None
        self.config: OracleConfig | None = None

    async def initialize(self, config: OracleConfig) -> None:
        api_key = config.api_key or os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise OracleConfigurationError(
                f"Missing API key for {self.name} oracle. Set OPENAI_API_KEY environment variable."
            )

        self.config = config
        self.model = config.model or DEFAULT_AI_MODEL
        self.client = AsyncOpenAI(api_key=api_key)
        logger.info(f"{self.name} oracle initialized with model: {self.model}")

    async def generate(self, prompt: str) -> OracleResponse:
        if self.client is None or self.config is None:
            return self.handle_error(RuntimeError(f"{self.name} oracle not initialized"))

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.config.temperature,
                max_tokens=self.config.max_tokens
            )
            content = response.choices[0].message.content or ""
            return OracleResponse(success=True, content=content)
        except Exception as e:
            return self.handle_error(e)

    async def aclose(self) -> None:
        if self.client is not None:
            await self.client.close()
            self.client = None
