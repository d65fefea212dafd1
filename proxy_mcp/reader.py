"""Line-delimited JSON-RPC input from stdin."""

import asyncio
import logging
import os
import stat
import sys
from typing import AsyncIterator, BinaryIO, Optional, Set, TextIO, Union

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 64 * 1024

# Strong references to running file readers.
_file_feeders: Set[asyncio.Task] = set()


async def _feed_from_file(reader: asyncio.StreamReader, stream: BinaryIO) -> None:
    loop = asyncio.get_running_loop()
    while True:
        chunk = await loop.run_in_executor(None, stream.read, READ_CHUNK_SIZE)
        if not chunk:
            break
        reader.feed_data(chunk)
    reader.feed_eof()


async def open_stdin(limit: int, stdin: Optional[Union[TextIO, BinaryIO]] = None) -> asyncio.StreamReader:
    """Read from stdin asynchronously.

    Pipes, sockets and terminals are read through the event loop. A regular
    file (``mcp-http-proxy URL < requests.jsonl``) cannot be, so it is read in
    a worker thread instead.
    """
    stdin = stdin if stdin is not None else sys.stdin
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader(limit=limit)

    if stat.S_ISREG(os.fstat(stdin.fileno()).st_mode):
        stream = getattr(stdin, "buffer", stdin)
        task = asyncio.create_task(_feed_from_file(reader, stream))
        _file_feeders.add(task)
        task.add_done_callback(_file_feeders.discard)
        return reader

    protocol = asyncio.StreamReaderProtocol(reader)
    await loop.connect_read_pipe(lambda: protocol, stdin)
    return reader


async def iter_lines(reader: asyncio.StreamReader) -> AsyncIterator[bytes]:
    """Yields non-blank lines until EOF, without their line terminators.

    A line longer than the reader's limit is skipped in full, including the
    part that arrives after the limit was hit.
    """
    discarding = False
    while True:
        try:
            line = await reader.readuntil(b"\n")
        except asyncio.IncompleteReadError as e:
            # EOF; a last line without a newline is still a message.
            if discarding or not e.partial:
                return
            line = e.partial
        except asyncio.LimitOverrunError as e:
            await reader.readexactly(e.consumed)
            if not discarding:
                logger.warning("Discarded input line longer than the line size limit")
            discarding = True
            continue

        if discarding:
            discarding = False
            continue

        line = line.rstrip(b"\r\n")
        if not line.strip():
            continue
        yield line
