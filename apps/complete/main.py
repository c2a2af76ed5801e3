"""gpt-complete entrypoint: complete a prompt read from stdin."""

from __future__ import annotations

import asyncio
import sys
from typing import TextIO

from gpt_completions.config.settings import ConfigurationError, load_settings
from gpt_completions.infrastructure.llm.openai_client import (
    CompletionError,
    OpenAiCompletionModel,
    OpenAiHttpTransportPort,
)
from gpt_completions.infrastructure.logging import configure_logging


async def complete_prompt(*, model: OpenAiCompletionModel, prompt: str) -> str:
    """Request a single completion and return it, or an empty string when none came back."""

    responses = await model.query(prompt, {"n": 1})
    return next(iter(responses), "")


def run(
    *,
    stdin: TextIO,
    stdout: TextIO,
    stderr: TextIO,
    transport: OpenAiHttpTransportPort | None = None,
) -> int:
    """Run one stdin-to-stdout completion and return the process exit status."""

    try:
        settings = load_settings()
        configure_logging(level=settings.log_level)
        model = OpenAiCompletionModel.from_settings(settings, transport=transport)
    except ConfigurationError as error:
        stderr.write(f"{error}\n")
        return 1

    prompt = stdin.read()
    try:
        completion = asyncio.run(complete_prompt(model=model, prompt=prompt))
    except (CompletionError, ValueError) as error:
        stderr.write(f"{error}\n")
        return 1

    stdout.write(f"{completion}\n")
    return 0


def main() -> None:
    """Complete stdin with GPT-4 and print the first completion."""

    raise SystemExit(run(stdin=sys.stdin, stdout=sys.stdout, stderr=sys.stderr))


if __name__ == "__main__":
    main()
