import asyncio

import pytest

from fakes import FakeUploadServer, patterned
from kodoup.common.chunker import split_blocks
from kodoup.engine.block import BlockUploader
from kodoup.engine.coordinator import BlockCoordinator, _ErrorLatch
from kodoup.errors import AggregateUploadError, ProtocolError


def _slow_first_block(kind: str, body: bytes) -> float:
    # block 0 carries zero bytes, every later block a non-zero marker
    return 0.05 if body[:1] == b"\x00" else 0.0


def test_results_follow_block_order_not_completion_order() -> None:
    server = FakeUploadServer(delay=_slow_first_block)
    data = patterned(40, block_size=10)
    finished = []

    class RecordingUploader(BlockUploader):
        async def upload(self, block):
            result = await super().upload(block)
            finished.append(block.index)
            return result

    async def scenario():
        uploader = RecordingUploader(server.api(), token="tok", host=server.host, chunk_size=5)
        return await BlockCoordinator(uploader).run(split_blocks(data, 10))

    results = asyncio.run(scenario())

    assert finished[-1] == 0
    assert len(results) == 4
    for index, result in enumerate(results):
        block_id = server.contexts[result.ctx]
        assert bytes(server.blocks[block_id].data) == data[index * 10:(index + 1) * 10]


def test_empty_block_list() -> None:
    server = FakeUploadServer()

    async def scenario():
        uploader = BlockUploader(server.api(), token="tok", host=server.host, chunk_size=5)
        return await BlockCoordinator(uploader).run([])

    assert asyncio.run(scenario()) == []
    assert server.requests == []


def test_first_failure_is_latched_and_siblings_cancelled() -> None:
    def fail_second_chunk(kind, chunk, body):
        if kind == "bput" and chunk == 1:
            return (400, "bad chunk")
        return None

    def delay(kind, body):
        return 0.0 if body[:1] == b"\x01" else 0.05

    server = FakeUploadServer(fail_when=fail_second_chunk, delay=delay)
    data = patterned(30, block_size=10)

    async def scenario():
        uploader = BlockUploader(server.api(), token="tok", host=server.host, chunk_size=5)
        coordinator = BlockCoordinator(uploader)
        with pytest.raises(AggregateUploadError) as excinfo:
            await coordinator.run(split_blocks(data, 10))
        requests_at_failure = len(server.requests)
        await asyncio.sleep(0.1)
        return excinfo.value, requests_at_failure

    error, requests_at_failure = asyncio.run(scenario())

    assert error.block_index == 1
    assert isinstance(error.cause, ProtocolError)
    assert str(error.cause) == "bad chunk"
    assert error.__cause__ is error.cause
    # cancelled siblings never get to their second chunk
    assert len(server.requests) == requests_at_failure
    assert server.count("bput") == 1


def test_siblings_keep_running_without_cancellation() -> None:
    def fail_block_zero(kind, chunk, body):
        if kind == "mkblk" and body[:1] == b"\x00":
            return (401, "expired token")
        return None

    server = FakeUploadServer(fail_when=fail_block_zero, delay=lambda kind, body: 0.01)
    data = patterned(20, block_size=10)

    async def scenario():
        uploader = BlockUploader(server.api(), token="tok", host=server.host, chunk_size=5)
        coordinator = BlockCoordinator(uploader, cancel_on_failure=False)
        with pytest.raises(AggregateUploadError) as excinfo:
            await coordinator.run(split_blocks(data, 10))
        await asyncio.sleep(0.1)
        return excinfo.value

    error = asyncio.run(scenario())
    assert error.block_index == 0
    assert str(error.cause) == "expired token"
    # block 1 completed in the background; its result was discarded
    assert [bytes(state.data) for state in server.blocks.values()].count(data[10:]) == 1
    assert server.count("bput") == 1
    assert server.count("mkfile") == 0


def test_error_latch_keeps_first_failure_pair() -> None:
    latch = _ErrorLatch()
    first = ProtocolError("first", status_code=401)
    assert latch.first is None
    assert latch.set(2, first) is True
    assert latch.set(0, ProtocolError("second", status_code=500)) is False
    assert latch.first == (2, first)
