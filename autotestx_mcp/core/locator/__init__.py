"""Error locator module - fault localization from test output."""

from .locator import ErrorLocator, is_test_file
from .models import SourceBundle, SourceFile, SourceLabel

__all__ = [
    "ErrorLocator",
    "is_test_file",
    "SourceBundle",
    "SourceFile",
    "SourceLabel",
]
