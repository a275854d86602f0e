from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Iterable, Optional, Set

from .exceptions import SourceError

logger = logging.getLogger(__name__)

# source(query, context) -> entries or awaitable of entries
Source = Callable[[str, Any], Any]


class SearchController:
    """Issue searches against a candidate source and keep only the latest.

    Every call to :meth:`run` takes a new token from a monotonically
    increasing counter. A completion is delivered to ``on_result`` (or
    ``on_error``) only when its token is still the last one issued; anything
    older is dropped. In-flight searches are never cancelled since the source
    may not support it.
    """

    def __init__(
        self,
        source: Source,
        on_result: Callable[[str, Iterable[Any]], None],
        on_error: Callable[[SourceError], None],
        *,
        context: Any = None,
        spawn: Optional[Callable[[Awaitable[None]], "asyncio.Future[None]"]] = None,
    ) -> None:
        self._source = source
        self._on_result = on_result
        self._on_error = on_error
        self._context = context
        self._spawn = spawn or asyncio.ensure_future
        self._tasks: Set["asyncio.Future[None]"] = set()
        self.last_token = 0

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def is_current(self, token: int) -> bool:
        return token == self.last_token

    def run(self, query: str) -> int:
        self.last_token += 1
        token = self.last_token
        try:
            result = self._source(query, self._context)
        except Exception as exc:
            self._fail(token, query, exc)
            return token

        if inspect.isawaitable(result):
            task = self._spawn(self._wait(token, query, result))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        else:
            self._deliver(token, query, result)
        return token

    async def _wait(self, token: int, query: str, pending: Awaitable[Any]) -> None:
        try:
            result = await pending
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self._fail(token, query, exc)
            return
        self._deliver(token, query, result)

    def _deliver(self, token: int, query: str, result: Any) -> None:
        if not self.is_current(token):
            logger.debug("dropping stale result for %r (token %d, last %d)", query, token, self.last_token)
            return
        self._on_result(query, result or ())

    def _fail(self, token: int, query: str, exc: Exception) -> None:
        if not self.is_current(token):
            logger.debug("dropping stale failure for %r: %s", query, exc)
            return
        logger.debug("source failed for %r", query, exc_info=exc)
        self._on_error(SourceError(query, exc))

    async def drain(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
