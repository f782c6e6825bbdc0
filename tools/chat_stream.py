"""Streaming chat-completion client over server-sent events."""

import json
import logging
from enum import Enum
from typing import Callable, Optional

import httpx
from httpx_sse import SSEError, aconnect_sse

from config.exceptions import GenerationCancelledError, StreamError
from config.settings import Settings
from tools.cancellation import CancelToken, run_cancellable

logger = logging.getLogger(__name__)

_DONE_SENTINEL = "[DONE]"


class StreamOutcome(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


def user_message(content: str) -> dict:
    return {"role": "user", "content": content}


def _extract_delta(data: str) -> Optional[str]:
    """Return choices[0].delta.content from one SSE data line, or None."""
    data = data.strip()
    if not data or data == _DONE_SENTINEL:
        return None
    try:
        parsed = json.loads(data)
    except json.JSONDecodeError:
        logger.debug("Skipping non-JSON frame: %s", data[:100])
        return None
    try:
        content = parsed["choices"][0]["delta"]["content"]
    except (KeyError, IndexError, TypeError):
        return None
    if isinstance(content, str) and content:
        return content
    return None


class _CompletionGuard:
    """Lets exactly one of on_complete / on_error fire, at most once."""

    def __init__(self, on_complete: Callable[[], None], on_error: Callable[[Exception], None]):
        self._on_complete = on_complete
        self._on_error = on_error
        self._done = False

    @property
    def done(self) -> bool:
        return self._done

    def complete(self) -> bool:
        if self._done:
            return False
        self._done = True
        self._on_complete()
        return True

    def fail(self, error: Exception) -> bool:
        if self._done:
            return False
        self._done = True
        self._on_error(error)
        return True


class StreamingChatClient:
    """Posts chat messages and assembles the streamed reply.

    Callers always receive the full accumulated text in ``on_update``,
    never the raw delta.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or Settings()
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=self.settings.request_timeout)
        self.total_calls = 0

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> "StreamingChatClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def stream(
        self,
        messages: list[dict],
        on_update: Callable[[str], None],
        on_complete: Callable[[], None],
        on_error: Callable[[Exception], None],
        cancel_token: Optional[CancelToken] = None,
    ) -> StreamOutcome:
        """Stream a completion, reporting through callbacks.

        Args:
            messages: Role-tagged messages ({"role", "content"}).
            on_update: Called with the full text so far after every delta.
            on_complete: Called once when the stream ends cleanly.
            on_error: Called once with a StreamError on failure.
            cancel_token: Optional token; when it fires neither
                on_complete nor on_error is called.

        Returns:
            How the stream ended.
        """
        guard = _CompletionGuard(on_complete, on_error)
        self.total_calls += 1

        try:
            text = await run_cancellable(self._consume(messages, on_update), cancel_token)
        except GenerationCancelledError:
            logger.info("Chat stream cancelled")
            return StreamOutcome.CANCELLED
        except StreamError as e:
            logger.warning("Chat stream failed: %s", e)
            guard.fail(e)
            return StreamOutcome.FAILED

        logger.debug("Chat stream completed: %d chars", len(text))
        guard.complete()
        return StreamOutcome.COMPLETED

    async def collect(
        self,
        messages: list[dict],
        on_update: Optional[Callable[[str], None]] = None,
        cancel_token: Optional[CancelToken] = None,
    ) -> str:
        """Stream a completion and return the final text.

        Raises:
            StreamError: If the stream fails.
            GenerationCancelledError: If ``cancel_token`` fires.
        """
        latest = ""
        failures: list[Exception] = []

        def _update(text: str) -> None:
            nonlocal latest
            latest = text
            if on_update:
                on_update(text)

        outcome = await self.stream(
            messages,
            on_update=_update,
            on_complete=lambda: None,
            on_error=failures.append,
            cancel_token=cancel_token,
        )
        if outcome is StreamOutcome.CANCELLED:
            raise GenerationCancelledError()
        if outcome is StreamOutcome.FAILED:
            raise failures[0]
        return latest

    async def _consume(self, messages: list[dict], on_update: Callable[[str], None]) -> str:
        url = self.settings.endpoint_url(self.settings.chat_endpoint)
        payload = {
            "messages": [{"role": m["role"], "content": m["content"]} for m in messages],
            "enable_thinking": self.settings.enable_thinking,
        }
        headers = {"X-App-Id": self.settings.app_id}
        text = ""

        logger.debug("Chat stream request: url=%s, messages=%d", url, len(messages))

        try:
            async with aconnect_sse(self._http, "POST", url, json=payload, headers=headers) as event_source:
                response = event_source.response
                if response.is_error:
                    await response.aread()
                    raise StreamError(
                        f"Chat endpoint returned HTTP {response.status_code}",
                        status_code=response.status_code,
                    )
                async for sse in event_source.aiter_sse():
                    # One event may carry several data lines
                    for data in sse.data.split("\n"):
                        delta = _extract_delta(data)
                        if delta:
                            text += delta
                            on_update(text)
        except (httpx.HTTPError, SSEError) as e:
            raise StreamError(f"Chat stream failed: {e}") from e

        return text
