"""HTTP client reading cookbook index pages through a vision chat-completions API."""

from __future__ import annotations

import asyncio
import base64
import json
import re
import threading
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from cookdex.adapters.http_resilience import ResilienceConfig, ResilientClient
from cookdex.config import VisionConfig, get_vision_config
from cookdex.domain.errors import ExtractionFailedError
from cookdex.domain.ports.extraction import PageExtractor

from .schema import ChatCompletionResponse, ErrorResponse, ExtractionPayload
from .translator import parse_entries

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from cookdex.domain.model import ExtractedEntry

log = getLogger(__name__)

EXTRACTION_PROMPT = (
    "You are an OCR and information extraction assistant. "
    "You will be given a single cookbook index page as an embedded base64 image data URL. "
    "Extract a list of recipes with their ingredient keyword and page number. "
    "Respond ONLY with strict JSON using this schema: {\n"
    '  "recipes": [\n'
    '    { "ingredient": string, "recipeName": string, "pageNumber": number, '
    '"confidence": number }\n'
    "  ]\n"
    "}.\n"
    "Notes: If a value is ambiguous, make your best guess and lower confidence. "
    "Confidence is a float between 0 and 1. No markdown, no extra text.\n\n"
)

_FENCE = re.compile(r"^```[a-zA-Z]*\s*(.*?)\s*```$", re.DOTALL)


def image_to_data_url(image_data: bytes, content_type: str) -> str:
    encoded = base64.b64encode(image_data).decode("ascii")
    return f"data:{content_type};base64,{encoded}"


def strip_code_fence(text: str) -> str:
    stripped = text.strip()
    match = _FENCE.match(stripped)
    return match.group(1) if match else stripped


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def _default_config() -> VisionConfig:
    return get_vision_config()


@dataclass(slots=True)
class VisionPageExtractor:
    """Page extractor backed by an OpenAI-compatible ``/chat/completions`` endpoint.

    Requests from every calling thread run on one background event loop and
    share one ``ResilientClient``, so its rate limiter and connection pool
    cover the extractor's whole lifetime. Call ``close`` (or use the extractor
    as a context manager) to stop the loop.
    """

    config: VisionConfig = field(default_factory=_default_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    _loop: asyncio.AbstractEventLoop | None = field(default=None, init=False, repr=False)
    _thread: threading.Thread | None = field(default=None, init=False, repr=False)
    _client: ResilientClient | None = field(default=None, init=False, repr=False)
    _guard: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def __enter__(self) -> VisionPageExtractor:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def extract(self, image_data: bytes, content_type: str) -> list[ExtractedEntry]:
        future = asyncio.run_coroutine_threadsafe(
            self._extract_async(image_data, content_type), self._running_loop()
        )
        return future.result()

    def close(self) -> None:
        with self._guard:
            loop, thread, client = self._loop, self._thread, self._client
            self._loop = self._thread = self._client = None
        if loop is None or thread is None:
            return
        try:
            if client is not None:
                asyncio.run_coroutine_threadsafe(client.aclose(), loop).result()
        finally:
            loop.call_soon_threadsafe(loop.stop)
            thread.join()
            loop.close()
        log.debug("Vision extractor closed")

    def _running_loop(self) -> asyncio.AbstractEventLoop:
        with self._guard:
            if self._loop is None:
                loop = asyncio.new_event_loop()
                thread = threading.Thread(
                    target=loop.run_forever, name="vision-extractor", daemon=True
                )
                thread.start()
                self._loop, self._thread = loop, thread
            return self._loop

    def _shared_client(self) -> ResilientClient:
        # only called from the loop thread
        if self._client is None:
            self._client = self.client_factory(self.config.resilience)
        return self._client

    def build_request(self, image_data: bytes, content_type: str) -> dict[str, object]:
        message_content = [
            {"type": "text", "text": EXTRACTION_PROMPT},
            {
                "type": "image_url",
                "image_url": {"url": image_to_data_url(image_data, content_type)},
            },
        ]
        return {
            "model": self.config.model,
            "temperature": 0,
            "messages": [{"role": "user", "content": message_content}],
        }

    async def _extract_async(self, image_data: bytes, content_type: str) -> list[ExtractedEntry]:
        response = await self._perform_request(
            client=self._shared_client(), body=self.build_request(image_data, content_type)
        )
        return self._parse_response(response)

    async def _perform_request(
        self,
        *,
        client: ResilientClient,
        body: dict[str, object],
    ) -> httpx.Response:
        try:
            return await client.post(
                "chat/completions",
                json=body,
                headers={"Authorization": f"Bearer {self.config.api_key}"},
            )
        except httpx.HTTPError as exc:
            log.warning("Vision request failed: %r", exc)
            raise ExtractionFailedError(f"Vision request failed: {exc}") from exc

    def _parse_response(self, response: httpx.Response) -> list[ExtractedEntry]:
        if response.is_error:
            raise ExtractionFailedError(self._error_message(response))

        try:
            completion = ChatCompletionResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise ExtractionFailedError("Unexpected vision response payload") from exc

        content = completion.content
        if not content:
            raise ExtractionFailedError("Vision response contained no content")

        try:
            payload = ExtractionPayload.model_validate(json.loads(strip_code_fence(content)))
        except (ValueError, ValidationError) as exc:
            log.debug("Unparseable vision content: %r", content)
            raise ExtractionFailedError("Vision response was not valid extraction JSON") from exc

        return parse_entries(payload)

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            error = ErrorResponse.model_validate(response.json())
        except (ValueError, ValidationError):
            return f"Vision service returned HTTP {response.status_code}"
        log.error("Vision API error %s: %s", response.status_code, error.error.message)
        return f"Vision service returned HTTP {response.status_code}: {error.error.message}"


if TYPE_CHECKING:
    _extractor_check: PageExtractor = VisionPageExtractor()
