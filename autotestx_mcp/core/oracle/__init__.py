"""Oracle module - text-completion providers, registry and prompts."""

from .base import BaseOracle, OracleConfig, OracleResponse
from .google_oracle import GoogleOracle
from .openai_oracle import OpenAIOracle
from .prompts import PromptBuilder
from .registry import BUILTIN_PROVIDERS, OracleRegistry

__all__ = [
    "BaseOracle",
    "OracleConfig",
    "OracleResponse",
    "OpenAIOracle",
    "GoogleOracle",
    "OracleRegistry",
    "BUILTIN_PROVIDERS",
    "PromptBuilder",
]
