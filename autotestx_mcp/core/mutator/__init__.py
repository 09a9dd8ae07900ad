"""Code mutator module - writes code updates to the project."""

from .mutator import CodeMutator

__all__ = [
    "CodeMutator",
]
