"""Protocol output to stdout.

Only JSON-RPC lines are ever written here. Diagnostics go through logging,
which writes to stderr.
"""

import logging
from typing import BinaryIO, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

Done = Optional[Callable[[], None]]


class LineWriter:
    """Writes one response per completed request.

    Every dispatched request reserves a sequence number first. With
    preserve_order, a completed response is held back until all earlier
    reservations have completed, so responses come out in request order.
    A reservation completed with None (dropped, failed) emits nothing but
    still releases the responses queued behind it.

    The optional ``done`` callback passed to complete() runs once that
    response has been written or discarded, not when it was queued. The
    proxy releases its in-flight slot there, which also caps how many
    responses can wait behind a slow request.

    Response bodies are written as received. A body containing newlines
    (pretty-printed JSON) is passed through as is and so spans several
    stdout lines; only trailing line terminators are normalised.
    """

    def __init__(self, stream: BinaryIO, preserve_order: bool = True):
        self.stream = stream
        self.preserve_order = preserve_order
        self._next_reservation = 0
        self._next_to_write = 0
        self._pending: Dict[int, Tuple[Optional[bytes], Done]] = {}

    @property
    def pending(self) -> int:
        """Number of completed responses waiting on an earlier request."""
        return len(self._pending)

    def reserve(self) -> int:
        seq = self._next_reservation
        self._next_reservation += 1
        return seq

    def complete(self, seq: int, payload: Optional[bytes], done: Done = None) -> None:
        if not self.preserve_order:
            self._write(payload, done)
            return

        self._pending[seq] = (payload, done)
        while self._next_to_write in self._pending:
            payload, done = self._pending.pop(self._next_to_write)
            self._next_to_write += 1
            self._write(payload, done)

    def _write(self, payload: Optional[bytes], done: Done) -> None:
        try:
            self._emit(payload)
        finally:
            if done is not None:
                done()

    def _emit(self, payload: Optional[bytes]) -> None:
        if payload is None:
            return
        line = payload.rstrip(b"\r\n")
        if not line.strip():
            logger.warning("Empty response body, nothing written")
            return
        # A single write per response keeps concurrent completions from interleaving.
        self.stream.write(line + b"\n")
        self.stream.flush()
