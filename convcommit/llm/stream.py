"""Incremental delivery of backend output.

Every backend hands its output to the rest of the pipeline as a DeltaStream:
one producer task drains the backend's native response (a token stream or a
single complete reply) into a bounded queue, and exactly one consumer reads
it back with ``async for``. ``aggregate`` is that consumer.
"""

import asyncio
import logging
from typing import AsyncIterable, AsyncIterator, Awaitable, Optional, TypeVar

from convcommit.config import STREAM_QUEUE_SIZE
from convcommit.llm.exceptions import StreamError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Queued by the producer after the last delta
_END = object()


class _Failure:
    """Queued by the producer when the source raised."""

    def __init__(self, error: Exception):
        self.error = error


async def _aclose(source: object) -> None:
    aclose = getattr(source, "aclose", None)
    if aclose is not None:
        await aclose()


async def until_cancelled(awaitable: Awaitable[T], cancel: Optional[asyncio.Event]) -> T:
    """Await a backend call unless the cancel event is set first.

    Used for the setup phase of a generation (connecting, sending the
    request, waiting for the first chunk), before a DeltaStream exists.

    Args:
        awaitable: The pending backend call.
        cancel: Event that, once set, abandons the call.

    Returns:
        The call's result.

    Raises:
        StreamError: With cancelled=True if the event was set before the call finished.
    """
    if cancel is None:
        return await awaitable

    call = asyncio.ensure_future(awaitable)
    if cancel.is_set():
        call.cancel()
        await asyncio.wait({call})
        raise StreamError("generation cancelled", cancelled=True)

    waiter = asyncio.ensure_future(cancel.wait())
    try:
        done, _ = await asyncio.wait({call, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        waiter.cancel()
        if not call.done():
            call.cancel()
            await asyncio.wait({call})
            # A call that ignored cancellation may still have failed
            if not call.cancelled() and call.exception() is not None:
                logger.debug("Abandoned backend call failed: %s", call.exception())

    if call in done:
        return call.result()

    logger.debug("Backend call cancelled during setup")
    raise StreamError("generation cancelled", cancelled=True)


async def single_delta(text: str) -> AsyncIterator[str]:
    """Present one complete response as a stream of exactly one delta."""
    yield text


class DeltaStream:
    """Single-producer, single-consumer stream of text deltas.

    The producer task starts as soon as the stream is created. The stream
    ends when the source is exhausted, when the source raises (surfaced as
    StreamError), or when ``cancel`` is set (surfaced as a StreamError with
    ``cancelled=True``). In every case the producer task is finished once
    the consumer has seen the end, or once ``aclose()`` returns.
    """

    def __init__(
        self,
        source: AsyncIterable[str],
        cancel: Optional[asyncio.Event] = None,
        maxsize: int = STREAM_QUEUE_SIZE,
    ):
        self._source = source
        self._cancel = cancel if cancel is not None else asyncio.Event()
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._finished = False
        self._producer = asyncio.create_task(self._produce())

    @property
    def closed(self) -> bool:
        """True once the producer task has finished."""
        return self._producer.done()

    async def _produce(self) -> None:
        try:
            async for delta in self._source:
                await self._queue.put(delta)
        except Exception as e:
            logger.debug("Stream source failed: %s", e)
            await self._queue.put(_Failure(e))
        else:
            await self._queue.put(_END)
        finally:
            try:
                await _aclose(self._source)
            except Exception as e:
                logger.debug("Failed to close stream source: %s", e)

    def __aiter__(self) -> "DeltaStream":
        return self

    async def __anext__(self) -> str:
        if self._finished:
            raise StopAsyncIteration

        item = await self._next_item()

        if item is _END:
            self._finished = True
            raise StopAsyncIteration
        if isinstance(item, _Failure):
            self._finished = True
            raise StreamError(f"Stream failed: {item.error}") from item.error
        return item

    async def _next_item(self) -> object:
        if not self._cancel.is_set():
            if not self._queue.empty():
                return self._queue.get_nowait()

            getter = asyncio.ensure_future(self._queue.get())
            waiter = asyncio.ensure_future(self._cancel.wait())
            try:
                await asyncio.wait({getter, waiter}, return_when=asyncio.FIRST_COMPLETED)
            finally:
                getter.cancel()
                waiter.cancel()

            if not self._cancel.is_set():
                return getter.result()

        logger.debug("Stream cancelled, stopping producer")
        await self.aclose()
        raise StreamError("generation cancelled", cancelled=True)

    async def aclose(self) -> None:
        """Stop the producer and wait for it to finish."""
        self._finished = True
        if not self._producer.done():
            self._producer.cancel()
        await asyncio.wait({self._producer})


async def aggregate(stream: AsyncIterable[str]) -> str:
    """Drain a stream and concatenate its deltas in emission order.

    Args:
        stream: The stream returned by a backend's generate().

    Returns:
        All deltas joined with no separator.

    Raises:
        StreamError: If the stream fails or is cancelled; partial text is discarded.
    """
    parts: list[str] = []
    try:
        async for delta in stream:
            parts.append(delta)
    finally:
        await _aclose(stream)
    return "".join(parts)
