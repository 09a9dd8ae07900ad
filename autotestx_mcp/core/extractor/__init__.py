"""
Response Extractor - typed actions from oracle replies.

Parses critical-file lists, generated test files and code updates out of
the tagged-block protocol, with a fenced-code-block fallback for updates.
"""

from .extractor import ResponseExtractor
from .models import (
    CodeUpdate,
    DependencyNode,
    FallbackUpdates,
    NoUpdates,
    StructuredUpdates,
    TestFile,
    UpdateExtraction,
)

__all__ = [
    # Models
    "TestFile",
    "CodeUpdate",
    "DependencyNode",
    "StructuredUpdates",
    "FallbackUpdates",
    "NoUpdates",
    "UpdateExtraction",
    # Extractor
    "ResponseExtractor",
]
