"""The stdio to HTTP pipeline.

Each input line runs through parse, POST, translate and write as its own
asyncio task. The reader keeps consuming input while earlier requests are in
flight, up to ``max_in_flight`` concurrent requests.
"""

import asyncio
import logging
from typing import Optional, Set

from proxy_mcp.config import ProxySettings
from proxy_mcp.forwarder import HttpForwarder
from proxy_mcp.reader import iter_lines
from proxy_mcp.translator import TranslationDecision, parse_request, translate
from proxy_mcp.writer import LineWriter

logger = logging.getLogger(__name__)


class StdioHttpProxy:
    def __init__(self, settings: ProxySettings, forwarder: HttpForwarder, writer: LineWriter):
        self.settings = settings
        self.forwarder = forwarder
        self.writer = writer
        self._slots = asyncio.Semaphore(settings.max_in_flight)
        self._tasks: Set[asyncio.Task] = set()
        self._read_task: Optional[asyncio.Task] = None
        self._stopping = False

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    async def handle_line(self, line: bytes) -> Optional[TranslationDecision]:
        """Forwards one line and translates the response.

        Returns None when the request never got a response.
        """
        request = parse_request(line)
        if request is None:
            logger.debug("Input line is not a JSON object, forwarding as-is")

        body = await self.forwarder.forward(line)
        if body is None:
            return None
        return translate(request, body)

    async def _dispatch(self, seq: int, line: bytes) -> None:
        output = None
        try:
            decision = await self.handle_line(line)
            if decision is not None:
                output = decision.output
        except Exception:
            logger.exception("Unexpected error while handling request")
        finally:
            # The slot stays taken until the response is written.
            self.writer.complete(seq, output, done=self._slots.release)

    async def _read_loop(self, reader: asyncio.StreamReader) -> None:
        async for line in iter_lines(reader):
            await self._slots.acquire()
            seq = self.writer.reserve()
            task = asyncio.create_task(self._dispatch(seq, line))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def run(self, reader: asyncio.StreamReader) -> None:
        """Processes input until EOF or stop().

        At EOF, waits for the requests still in flight so their responses are
        written. After stop(), in-flight requests are abandoned.
        """
        self._read_task = asyncio.create_task(self._read_loop(reader))
        try:
            await self._read_task
        except asyncio.CancelledError:
            if not self._stopping:
                raise

        if self._stopping:
            # Already cancelled by stop(); only let them unwind.
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
            return

        if self._tasks:
            logger.info("Input closed, waiting for %d in-flight request(s)", len(self._tasks))
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        else:
            logger.info("Input closed")

    def stop(self) -> None:
        """Stops reading input and cancels in-flight requests."""
        if self._stopping:
            return
        self._stopping = True
        logger.info("Shutting down ...")
        if self._read_task is not None:
            self._read_task.cancel()
        for task in list(self._tasks):
            task.cancel()
