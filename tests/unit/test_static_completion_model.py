from __future__ import annotations

import pytest

from gpt_completions.infrastructure.llm.completion_model import (
    CompletionModelPort,
    StaticCompletionModel,
)


async def _complete_with(model: CompletionModelPort, prompt: str) -> set[str]:
    return await model.completions(prompt, 0.0)


@pytest.mark.asyncio
async def test_static_model_returns_fixed_completions_for_any_prompt() -> None:
    model = StaticCompletionModel(["a", "b", "a"])

    assert await _complete_with(model, "first") == {"a", "b"}
    assert await _complete_with(model, "second") == {"a", "b"}


@pytest.mark.asyncio
async def test_static_model_returns_fresh_sets() -> None:
    model = StaticCompletionModel(["a"])

    result = await model.completions("prompt", 0.5)
    result.add("mutated")

    assert await model.completions("prompt", 0.5) == {"a"}


@pytest.mark.asyncio
async def test_static_model_defaults_to_no_completions() -> None:
    assert await StaticCompletionModel().completions("prompt", 0.0) == set()
