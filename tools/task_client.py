"""Shared plumbing for the submit-then-poll task APIs (image, speech)."""

import asyncio
import logging
from typing import Callable, Optional

import httpx

from config.exceptions import (
    MalformedResponseError,
    TaskFailedError,
    TaskTimeoutError,
    UpstreamStatusError,
    UpstreamTransportError,
)
from config.settings import Settings
from models.enums import TaskState
from models.task import GenerationTask

logger = logging.getLogger(__name__)


def _as_float(value) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


class TaskApiClient:
    """Base class for upstream task clients.

    Subclasses implement ``query`` and call ``_poll`` with their own
    attempt/interval budget.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or Settings()
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=self.settings.request_timeout)

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def query(self, task_id: str) -> GenerationTask:
        raise NotImplementedError

    async def _post(self, path: str, payload: dict) -> dict:
        """POST JSON and return the ``data`` object of a status-0 envelope.

        Raises:
            UpstreamTransportError: Network failure or non-2xx response.
            UpstreamStatusError: Envelope ``status`` is not 0.
            MalformedResponseError: Body is not the expected envelope.
        """
        url = self.settings.endpoint_url(path)
        try:
            response = await self._http.post(
                url, json=payload, headers={"X-App-Id": self.settings.app_id},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise UpstreamTransportError(f"Request to {path} failed: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise MalformedResponseError(
                "Upstream returned a non-JSON body", raw_response=response.text,
            ) from e
        if not isinstance(body, dict):
            raise MalformedResponseError("Upstream body is not an object", raw_response=response.text)

        status = body.get("status")
        if status != 0:
            raise UpstreamStatusError(
                status if isinstance(status, int) else -1,
                body.get("msg") or "",
            )

        data = body.get("data")
        if not isinstance(data, dict):
            raise MalformedResponseError("Upstream response has no data object", raw_response=response.text)
        return data

    async def _poll(
        self,
        task_id: str,
        max_attempts: int,
        interval: float,
        on_progress: Optional[Callable[[GenerationTask], None]] = None,
    ) -> str:
        """Poll ``query`` until the task succeeds, fails, or the budget runs out.

        Transport errors are retried until the final attempt, where they
        propagate. Explicit failures and malformed successes raise at once.
        """
        for attempt in range(max_attempts):
            is_last = attempt == max_attempts - 1
            try:
                task = await self.query(task_id)
            except UpstreamTransportError as e:
                if is_last:
                    raise
                logger.warning(
                    "Poll %d/%d for task %s failed, continuing: %s",
                    attempt + 1, max_attempts, task_id, e,
                )
                await asyncio.sleep(interval)
                continue

            if on_progress:
                on_progress(task)

            if task.state.is_terminal:
                if task.state is TaskState.FAILED:
                    raise TaskFailedError(task_id, task.error or "")
                if not task.result_url:
                    raise MalformedResponseError(f"Task {task_id} succeeded without a result url")
                logger.info("Task %s succeeded after %d polls", task_id, attempt + 1)
                return task.result_url

            logger.debug(
                "Task %s %s (%.0f%%), poll %d/%d",
                task_id, task.state.value, task.progress, attempt + 1, max_attempts,
            )
            if not is_last:
                await asyncio.sleep(interval)

        raise TaskTimeoutError(task_id, max_attempts)
