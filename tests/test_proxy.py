import asyncio
import sys

import pytest

from sshkit.proxy import Stream

ECHO = (
    "import sys; "
    "data = sys.stdin.buffer.read(); "
    "sys.stdout.buffer.write(data); "
    "sys.stdout.flush()"
)


async def _read_all(stream):
    chunks = []
    while True:
        chunk = await stream.read(1024)
        if not chunk:
            return b"".join(chunks)
        chunks.append(chunk)


async def _echo_handler(reader, writer):
    data = await reader.read()
    writer.write(data)
    await writer.drain()
    writer.close()
    await writer.wait_closed()


@pytest.mark.asyncio
async def test_proxy_command_round_trip():
    stream = await Stream.proxy_command(sys.executable, ["-c", ECHO])
    async with stream:
        assert stream.is_child is True
        written = await stream.write(b"hello proxy")
        await stream.flush()
        await stream.shutdown()
        assert written == len(b"hello proxy")
        assert await _read_all(stream) == b"hello proxy"


@pytest.mark.asyncio
async def test_proxy_write_after_shutdown_fails():
    stream = await Stream.proxy_command(sys.executable, ["-c", ECHO])
    async with stream:
        await stream.shutdown()
        with pytest.raises(BrokenPipeError):
            await stream.write(b"late")


@pytest.mark.asyncio
async def test_proxy_missing_command_raises():
    with pytest.raises(OSError):
        await Stream.proxy_command("/nonexistent/definitely-not-here", [])


@pytest.mark.asyncio
async def test_tcp_round_trip():
    server = await asyncio.start_server(_echo_handler, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    try:
        stream = await Stream.tcp_connect(("127.0.0.1", port))
        async with stream:
            assert stream.is_child is False
            await stream.write(b"over tcp")
            await stream.shutdown()
            assert await _read_all(stream) == b"over tcp"
            with pytest.raises(BrokenPipeError):
                await stream.write(b"x")
    finally:
        server.close()
        await server.wait_closed()


@pytest.mark.asyncio
async def test_tcp_connect_refused():
    server = await asyncio.start_server(_echo_handler, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    server.close()
    await server.wait_closed()
    with pytest.raises(OSError):
        await Stream.tcp_connect(("127.0.0.1", port))