"""OpenAI chat-completions adapter returning deduplicated completion sets."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import Protocol
from urllib.error import HTTPError as UrllibHTTPError
from urllib.request import Request, urlopen

from pydantic import ValidationError

from gpt_completions.application.dto.chat_completion_models import (
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatMessage,
)
from gpt_completions.config.settings import ConfigurationError, Settings, build_settings
from gpt_completions.domain.completion_options import (
    CompletionOptions,
    OptionsInput,
    coerce_options,
    merge_completion_options,
)
from gpt_completions.domain.completion_trimmer import trim_completion

OPENAI_CHAT_COMPLETIONS_URL = "https://api.openai.com/v1/chat/completions"
OPENAI_MODEL = "gpt-4"
_DEFAULT_TIMEOUT_SECONDS = 60.0

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OpenAiHttpResponse:
    """Normalized HTTP response data returned by OpenAI transports."""

    status_code: int
    reason: str
    body_bytes: bytes


class OpenAiHttpTransportPort(Protocol):
    """Transport protocol used by the OpenAI completion model."""

    async def request(
        self,
        *,
        method: str,
        url: str,
        headers: dict[str, str],
        body: bytes | None,
        timeout_seconds: float,
    ) -> OpenAiHttpResponse:
        """Execute one HTTP request and return normalized response data."""


class CompletionError(RuntimeError):
    """Base class for failures while requesting completions."""


class TransportError(CompletionError):
    """Raised when the request never produced an HTTP response."""


class HttpError(CompletionError):
    """Raised when the provider answers with a non-2xx status."""

    def __init__(self, *, status_code: int, reason: str, details: str = "") -> None:
        super().__init__(f"Request failed with status {status_code} and message {reason}")
        self.status_code = status_code
        self.reason = reason
        self.details = details


class EmptyResponseError(CompletionError):
    """Raised when a successful response carries no payload."""


class MalformedResponseError(CompletionError):
    """Raised when the response payload does not match the expected schema."""


class UrllibOpenAiHttpTransport:
    """urllib-based async transport implementation for OpenAI HTTP calls."""

    async def request(
        self,
        *,
        method: str,
        url: str,
        headers: dict[str, str],
        body: bytes | None,
        timeout_seconds: float,
    ) -> OpenAiHttpResponse:
        """Execute HTTP request in a worker thread and normalize HTTP errors."""

        return await asyncio.to_thread(
            self._request_sync,
            method=method,
            url=url,
            headers=headers,
            body=body,
            timeout_seconds=timeout_seconds,
        )

    def _request_sync(
        self,
        *,
        method: str,
        url: str,
        headers: dict[str, str],
        body: bytes | None,
        timeout_seconds: float,
    ) -> OpenAiHttpResponse:
        request = Request(url=url, data=body, headers=headers, method=method)
        try:
            with urlopen(request, timeout=timeout_seconds) as response:
                return OpenAiHttpResponse(
                    status_code=int(response.getcode()),
                    reason=str(response.reason or ""),
                    body_bytes=response.read(),
                )
        except UrllibHTTPError as error:
            return OpenAiHttpResponse(
                status_code=int(error.code),
                reason=str(error.reason or ""),
                body_bytes=error.read(),
            )
        except OSError as error:
            raise TransportError(f"transport connection failure: {error}") from error


class OpenAiCompletionModel:
    """Client for the OpenAI GPT-4 chat-completions endpoint.

    Options merge in three layers: built-in defaults, the instance options
    given here, and the options passed to each `query` call.
    """

    def __init__(
        self,
        instance_options: OptionsInput = None,
        *,
        api_key: str | None = None,
        transport: OpenAiHttpTransportPort | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        if api_key is None:
            settings = build_settings()
            api_key = settings.openai_api_key
            if timeout_seconds is None:
                timeout_seconds = settings.openai_timeout_seconds
        api_key_value = api_key.strip()
        if not api_key_value:
            raise ConfigurationError("Please set the OPENAI_API_KEY environment variable.")

        self._api_key = api_key_value
        self._instance_options = coerce_options(instance_options)
        self._transport = transport or UrllibOpenAiHttpTransport()
        self._timeout_seconds = (
            _DEFAULT_TIMEOUT_SECONDS if timeout_seconds is None else timeout_seconds
        )
        logger.info("openai_completion_model_ready model=%s", OPENAI_MODEL)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        instance_options: OptionsInput = None,
        *,
        transport: OpenAiHttpTransportPort | None = None,
    ) -> OpenAiCompletionModel:
        """Build a model from already loaded settings."""

        return cls(
            instance_options,
            api_key=settings.openai_api_key,
            transport=transport,
            timeout_seconds=settings.openai_timeout_seconds,
        )

    @property
    def model_name(self) -> str:
        return OPENAI_MODEL

    @property
    def instance_options(self) -> CompletionOptions:
        return self._instance_options

    async def query(self, prompt: str, options: OptionsInput = None) -> set[str]:
        """Query OpenAI for completions of `prompt`.

        Returns the set of completions with surrounding whitespace stripped.
        Raises CompletionError subclasses for transport, status and payload
        failures; nothing is retried.
        """

        if not isinstance(prompt, str) or not prompt:
            raise ValueError("prompt must be a non-empty string")

        effective = merge_completion_options(self._instance_options, options)
        payload = ChatCompletionRequest(
            model=OPENAI_MODEL,
            messages=[ChatMessage(role="user", content=prompt)],
            max_tokens=effective.max_tokens,
            temperature=effective.temperature,
            n=effective.n,
            top_p=effective.top_p,
            stop=list(effective.stop) if effective.stop is not None else None,
        )

        started = time.perf_counter()
        response = await self._post(payload.model_dump_json().encode("utf-8"))
        logger.info(
            "openai_query_timing elapsed_ms=%.1f prompt_length=%s options=%s",
            (time.perf_counter() - started) * 1000.0,
            len(prompt),
            effective.model_dump_json(),
        )
        return _extract_completions(response)

    async def completions(self, prompt: str, temperature: float) -> set[str]:
        """Get trimmed completions, or an empty set and a warning on any failure."""

        try:
            raw_completions = await self.query(prompt, {"temperature": temperature})
            return {trim_completion(completion) for completion in raw_completions}
        except Exception as error:  # noqa: BLE001
            logger.warning("completions_failed error=%s", error)
            return set()

    async def _post(self, body: bytes) -> OpenAiHttpResponse:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
        }
        try:
            return await self._transport.request(
                method="POST",
                url=OPENAI_CHAT_COMPLETIONS_URL,
                headers=headers,
                body=body,
                timeout_seconds=self._timeout_seconds,
            )
        except TransportError:
            raise
        except Exception as error:  # noqa: BLE001
            raise TransportError(f"chat_completions transport failure: {error}") from error


def _extract_completions(response: OpenAiHttpResponse) -> set[str]:
    if response.status_code < 200 or response.status_code >= 300:
        raise HttpError(
            status_code=response.status_code,
            reason=response.reason,
            details=_decode_error_payload(response.body_bytes),
        )

    if not response.body_bytes.strip():
        raise EmptyResponseError("Response data is empty")
    try:
        decoded = json.loads(response.body_bytes.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as error:
        raise MalformedResponseError("chat_completions returned invalid JSON payload") from error
    if decoded is None:
        raise EmptyResponseError("Response data is empty")
    if not isinstance(decoded, dict):
        raise MalformedResponseError("chat_completions returned non-object JSON payload")

    try:
        parsed = ChatCompletionResponse.model_validate(decoded)
    except ValidationError as error:
        raise MalformedResponseError(
            "chat_completions response has invalid choices payload"
        ) from error
    return {content.strip() for content in parsed.contents()}


def _decode_error_payload(payload: bytes) -> str:
    if not payload:
        return "empty response body"
    try:
        decoded = payload.decode("utf-8")
    except UnicodeDecodeError:
        return "<binary>"
    return decoded[:200]
