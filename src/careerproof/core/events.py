from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterable, AsyncIterator, Awaitable, Callable, Iterable

from pydantic import BaseModel, TypeAdapter

from careerproof.errors import ChannelClosedError
from careerproof.types import ProgressRecord

logger = logging.getLogger(__name__)

NDJSON_MEDIA_TYPE = "application/x-ndjson"

_RECORD_ADAPTER: TypeAdapter[ProgressRecord] = TypeAdapter(ProgressRecord)
_RUNNING_PRODUCERS: set[asyncio.Task[None]] = set()

Producer = Callable[["ProgressChannel"], Awaitable[None]]


def encode_record(record: BaseModel) -> bytes:
    payload = record.model_dump(by_alias=True, mode="json")
    return (json.dumps(payload, ensure_ascii=False, separators=(",", ":")) + "\n").encode("utf-8")


class ProgressChannel:
    """Single-producer, single-consumer byte pipe carrying NDJSON progress records.

    The producer calls ``send`` and must call ``close`` on every exit path.
    The consumer iterates ``stream()``. Once the consumer detaches, further
    sends raise ``ChannelClosedError``.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[bytes | None] = asyncio.Queue()
        self._closed = False
        self._detached = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def detached(self) -> bool:
        return self._detached

    async def send(self, record: BaseModel) -> None:
        if self._detached:
            raise ChannelClosedError("progress consumer disconnected")
        if self._closed:
            raise ChannelClosedError("progress channel already closed")
        await self._queue.put(encode_record(record))

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._queue.put(None)

    def detach(self) -> None:
        if not self._closed:
            self._detached = True

    async def stream(self) -> AsyncIterator[bytes]:
        while True:
            chunk = await self._queue.get()
            if chunk is None:
                return
            yield chunk


async def _run_producer(producer: Producer, channel: ProgressChannel) -> None:
    try:
        await producer(channel)
    except ChannelClosedError:
        logger.info("Progress consumer went away; producer stopped")
    except Exception:
        logger.exception("Progress producer failed outside its own error handling")
    finally:
        await channel.close()


async def stream_from_producer(producer: Producer) -> AsyncIterator[bytes]:
    """Start ``producer`` as a task and yield the bytes it writes until it closes the channel."""
    channel = ProgressChannel()
    task = asyncio.create_task(_run_producer(producer, channel))
    _RUNNING_PRODUCERS.add(task)
    task.add_done_callback(_RUNNING_PRODUCERS.discard)
    try:
        async for chunk in channel.stream():
            yield chunk
    finally:
        channel.detach()


class NDJSONDecoder:
    """Incremental decoder that buffers partial lines until a full record arrives."""

    def __init__(self) -> None:
        self._buffer = b""

    def feed(self, chunk: bytes | str) -> list[ProgressRecord]:
        if isinstance(chunk, str):
            chunk = chunk.encode("utf-8")
        self._buffer += chunk
        records: list[ProgressRecord] = []
        while b"\n" in self._buffer:
            line, self._buffer = self._buffer.split(b"\n", 1)
            if line.strip():
                records.append(_RECORD_ADAPTER.validate_json(line))
        return records

    def flush(self) -> list[ProgressRecord]:
        line, self._buffer = self._buffer, b""
        if not line.strip():
            return []
        return [_RECORD_ADAPTER.validate_json(line)]


async def iter_ndjson_records(chunks: AsyncIterable[bytes]) -> AsyncIterator[ProgressRecord]:
    decoder = NDJSONDecoder()
    async for chunk in chunks:
        for record in decoder.feed(chunk):
            yield record
    for record in decoder.flush():
        yield record


def parse_ndjson(chunks: Iterable[bytes | str]) -> list[ProgressRecord]:
    decoder = NDJSONDecoder()
    records: list[ProgressRecord] = []
    for chunk in chunks:
        records.extend(decoder.feed(chunk))
    records.extend(decoder.flush())
    return records
