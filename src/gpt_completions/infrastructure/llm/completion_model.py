"""Completion model protocol and a static adapter for tests and offline runs."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol


class CompletionModelPort(Protocol):
    """Protocol for best-effort prompt completion against a language model."""

    async def completions(self, prompt: str, temperature: float) -> set[str]:
        """Return post-processed completions, or an empty set on failure."""


class StaticCompletionModel:
    """Test-friendly model returning the same completions for every prompt."""

    def __init__(self, completions: Iterable[str] = ()) -> None:
        self._completions = frozenset(completions)

    async def completions(self, prompt: str, temperature: float) -> set[str]:
        _ = prompt, temperature
        return set(self._completions)
