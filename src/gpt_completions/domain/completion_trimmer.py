"""Post-processing applied to raw model completions before they reach callers."""

from __future__ import annotations

import re

_FENCED_BLOCK = re.compile(
    r"^(?:```|~~~)[\w+.#-]*[ \t]*\n(?P<body>.*?)\n?(?:```|~~~)$",
    re.DOTALL,
)
_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = frozenset(_OPENERS.values())
_QUOTES = frozenset("'\"`")


def strip_code_fence(text: str) -> str:
    """Return the fenced body when the whole text is one Markdown code block."""

    stripped = text.strip()
    match = _FENCED_BLOCK.match(stripped)
    if match is None:
        return stripped
    return match.group("body")


def cut_at_unbalanced_close(text: str) -> str:
    """Cut text before the first closing bracket that has no opener in the text.

    Brackets inside quoted string literals and `//` or `/* */` comments are ignored.
    """

    expected: list[str] = []
    quote: str | None = None
    escaped = False
    index = 0
    while index < len(text):
        char = text[index]
        if quote is not None:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
        elif text.startswith("//", index):
            index = _end_of_comment(text, index + 2, "\n")
            continue
        elif text.startswith("/*", index):
            index = _end_of_comment(text, index + 2, "*/")
            continue
        elif char in _QUOTES:
            quote = char
        elif char in _OPENERS:
            expected.append(_OPENERS[char])
        elif char in _CLOSERS:
            if not expected or expected[-1] != char:
                return text[:index]
            expected.pop()
        index += 1
    return text


def _end_of_comment(text: str, start: int, terminator: str) -> int:
    end = text.find(terminator, start)
    return len(text) if end < 0 else end + len(terminator)


def trim_completion(completion: str) -> str:
    """Clean one raw completion: unwrap code fences and drop overrun text."""

    body = strip_code_fence(completion)
    return cut_at_unbalanced_close(body).rstrip()
