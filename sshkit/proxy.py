"""A byte stream to an SSH server, over TCP or through a proxy command."""

from __future__ import annotations

import asyncio
from typing import Sequence


class Stream:
    """Either a TCP connection or the stdin/stdout pipes of a proxy process."""

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        process: asyncio.subprocess.Process | None = None,
    ) -> None:
        self._reader = reader
        self._writer = writer
        self._process = process
        self._write_shut = False

    @classmethod
    async def tcp_connect(cls, addr: tuple[str, int]) -> Stream:
        """Open a direct TCP connection to ``addr`` (a host and port pair)."""
        host, port = addr[0], addr[1]
        reader, writer = await asyncio.open_connection(host, port)
        return cls(reader, writer, None)

    @classmethod
    async def proxy_command(cls, cmd: str, args: Sequence[str]) -> Stream:
        """Start ``cmd`` with ``args`` and talk through its stdin and stdout."""
        process = await asyncio.create_subprocess_exec(
            cmd,
            *args,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
        )
        assert process.stdin is not None and process.stdout is not None
        return cls(process.stdout, process.stdin, process)

    @property
    def is_child(self) -> bool:
        """True if this stream goes through a proxy process."""
        return self._process is not None

    async def read(self, n: int = -1) -> bytes:
        """Read up to ``n`` bytes; an empty result means end of stream."""
        return await self._reader.read(n)

    async def write(self, data: bytes) -> int:
        """Send ``data`` and wait until it can be taken; returns its length."""
        if self._write_shut or self._writer.is_closing():
            raise BrokenPipeError("stream is shut down for writing")
        self._writer.write(data)
        await self._writer.drain()
        return len(data)

    async def flush(self) -> None:
        """Wait until buffered data has been handed to the transport."""
        if not self._write_shut and not self._writer.is_closing():
            await self._writer.drain()

    async def shutdown(self) -> None:
        """Close the writing side, signalling end of input to the peer."""
        if self._write_shut:
            return
        self._write_shut = True
        if self._process is not None:
            self._writer.close()
            try:
                await self._writer.wait_closed()
            except (BrokenPipeError, ConnectionResetError):
                pass
        elif self._writer.can_write_eof():
            await self._writer.drain()
            self._writer.write_eof()

    async def close(self) -> None:
        """Close the stream and, for a proxy, make sure its process is gone."""
        self._write_shut = True
        if not self._writer.is_closing():
            self._writer.close()
        try:
            await self._writer.wait_closed()
        except (BrokenPipeError, ConnectionResetError):
            pass
        process = self._process
        if process is not None and process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass
            await process.wait()

    async def __aenter__(self) -> Stream:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()