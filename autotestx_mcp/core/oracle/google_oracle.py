"""Google Generative AI oracle (optional extra: autotestx-mcp[google])."""

from __future__ import annotations

import asyncio
import logging
import os

from ...constants import DEFAULT_GOOGLE_MODEL
from ..errors import OracleConfigurationError
from .base import BaseOracle, OracleConfig, OracleResponse

logger = logging.getLogger(__name__)


class GoogleOracle(BaseOracle):
    """Gemini oracle; the SDK is imported lazily so it stays optional."""

    def __init__(self):
        super().__init__("Google AI")
        self._genai = None
        self._model = None
        self.config: OracleConfig | None = None

    async def initialize(self, config: OracleConfig) -> None:
        api_key = config.api_key or os.getenv("GOOGLE_API_KEY")
        if not api_key:
            raise OracleConfigurationError(
                f"Missing API key for {self.name} oracle. Set GOOGLE_API_KEY environment variable."
            )

        try:
            import google.generativeai as genai
        except ImportError as e:
            raise OracleConfigurationError(
                "google-generativeai not installed. Run: pip install autotestx-mcp[google]"
            ) from e

        genai.configure(api_key=api_key)
        model_name = config.model or DEFAULT_GOOGLE_MODEL
        self._genai = genai
        self._model = genai.GenerativeModel(model_name)
        self.config = config
        logger.info(f"{self.name} oracle initialized with model: {model_name}")

    async def generate(self, prompt: str) -> OracleResponse:
        if self._model is None or self.config is None:
            return self.handle_error(RuntimeError(f"{self.name} oracle not initialized"))

        try:
            generation_config = self._genai.types.GenerationConfig(
                temperature=self.config.temperature,
                max_output_tokens=self.config.max_tokens
            )
            response = await asyncio.to_thread(
                self._model.generate_content,
                prompt,
                generation_config=generation_config
            )
            return OracleResponse(success=True, content=response.text)
        except Exception as e:
            return self.handle_error(e)
