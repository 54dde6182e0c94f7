import asyncio

import pytest

from careerproof.core.events import (
    NDJSONDecoder,
    ProgressChannel,
    encode_record,
    parse_ndjson,
    stream_from_producer,
)
from careerproof.errors import ChannelClosedError
from careerproof.types import CompleteEvent, ErrorEvent, ProgressEvent


def test_records_encode_as_single_ndjson_lines() -> None:
    assert encode_record(CompleteEvent(run_id="r-1")) == b'{"type":"complete","runId":"r-1"}\n'
    line = encode_record(ProgressEvent(message="Saving draft...", step=3, total=3))
    assert line == b'{"type":"progress","message":"Saving draft...","step":3,"total":3}\n'


def test_decoder_buffers_partial_lines() -> None:
    decoder = NDJSONDecoder()
    first = decoder.feed(b'{"type":"progress","message":"a","step":1,"total":3}\n{"type":"comp')
    assert [record.type for record in first] == ["progress"]

    second = decoder.feed('lete","runId":"abc"}\n')
    assert len(second) == 1
    assert isinstance(second[0], CompleteEvent)
    assert second[0].run_id == "abc"
    assert decoder.flush() == []


def test_parse_ndjson_accepts_a_trailing_record_without_newline() -> None:
    records = parse_ndjson([b'{"type":"error","message":"boom"}'])
    assert records == [ErrorEvent(message="boom")]


def test_send_after_close_or_detach_raises() -> None:
    async def scenario() -> None:
        closed = ProgressChannel()
        await closed.close()
        await closed.close()
        with pytest.raises(ChannelClosedError):
            await closed.send(ErrorEvent(message="late"))

        detached = ProgressChannel()
        detached.detach()
        with pytest.raises(ChannelClosedError):
            await detached.send(ErrorEvent(message="nobody listening"))

    asyncio.run(scenario())


def test_stream_ends_even_when_producer_crashes() -> None:
    async def producer(channel: ProgressChannel) -> None:
        await channel.send(ProgressEvent(message="working", step=1, total=2))
        raise RuntimeError("unexpected")

    async def scenario() -> list[bytes]:
        return [chunk async for chunk in stream_from_producer(producer)]

    chunks = asyncio.run(scenario())
    assert [record.type for record in parse_ndjson(chunks)] == ["progress"]


def test_consumer_disconnect_stops_the_producer() -> None:
    sent: list[int] = []

    async def scenario() -> bytes:
        finished = asyncio.Event()

        async def producer(channel: ProgressChannel) -> None:
            try:
                for index in range(5):
                    await channel.send(ProgressEvent(message=str(index), step=index + 1, total=5))
                    sent.append(index)
                    await asyncio.sleep(0)
            finally:
                finished.set()

        stream = stream_from_producer(producer)
        first = await stream.__anext__()
        await stream.aclose()
        await asyncio.wait_for(finished.wait(), timeout=1)
        return first

    first = asyncio.run(scenario())
    assert parse_ndjson([first])[0].message == "0"
    assert len(sent) < 5
