"""Stop-marker ("anti-prompt") truncation for streamed model output.

Local models tend to keep going after their answer and start writing the next
``User:`` turn themselves. The filter watches the raw chunk stream for any
configured marker and cuts the output right before it, even when the runtime
splits the marker across several chunks.

Usage:
    stop_filter = AntiPromptFilter({"User:"}, redundancy_length=5)
    for safe_text in stop_filter.filter(raw_chunks):
        print(safe_text, end="")
"""

import logging
from typing import Iterable, Iterator

logger = logging.getLogger(__name__)

DEFAULT_REDUNDANCY_LENGTH = 5


class _RingBuffer:
    """Fixed-capacity character buffer addressed by a head index and a size."""

    def __init__(self, capacity: int):
        self.capacity = capacity
        self._slots: list[str] = [""] * max(capacity, 1)
        self._head = 0
        self._size = 0

    def __len__(self) -> int:
        return self._size

    def text(self) -> str:
        end = self._head + self._size
        if end <= len(self._slots):
            return "".join(self._slots[self._head:end])
        return "".join(self._slots[self._head:]) + "".join(self._slots[:end - len(self._slots)])

    def extend(self, text: str) -> None:
        if self._size + len(text) > self.capacity:
            raise ValueError(f"Ring buffer overflow: {self._size + len(text)} > {self.capacity}")
        tail = (self._head + self._size) % len(self._slots)
        for ch in text:
            self._slots[tail] = ch
            tail = (tail + 1) % len(self._slots)
        self._size += len(text)

    def drain(self, count: int) -> None:
        """Drop ``count`` characters from the front."""
        count = min(count, self._size)
        self._head = (self._head + count) % len(self._slots)
        self._size -= count

    def clear(self) -> None:
        self._head = 0
        self._size = 0


class AntiPromptFilter:
    """Streaming transform that emits only text confirmed to be marker-free.

    Each incoming chunk is appended to the pending tail. If a complete marker
    is present, and no earlier position could still grow into a longer one,
    the text before it is emitted and the filter finishes. If not,
    the longest tail that could still grow into a marker is withheld, together
    with ``redundancy_length`` extra characters, and everything before it is
    emitted. The pending tail never exceeds ``longest_marker - 1 +
    redundancy_length`` characters, so work per chunk is linear in its size.

    Args:
        stop_markers: Literal strings that end the turn. Empty strings are ignored.
        redundancy_length: Extra trailing characters held back as a safety margin.
    """

    def __init__(self, stop_markers: Iterable[str], redundancy_length: int = DEFAULT_REDUNDANCY_LENGTH):
        if redundancy_length < 0:
            raise ValueError("redundancy_length must be >= 0")
        self.stop_markers = frozenset(m for m in stop_markers if m)
        self.redundancy_length = redundancy_length
        self._longest = max((len(m) for m in self.stop_markers), default=0)
        self._prefixes = {m[:i] for m in self.stop_markers for i in range(1, len(m))}
        self._buffer = _RingBuffer(max(self._longest - 1, 0) + redundancy_length)
        self._finished = False
        self.matched_marker: str | None = None

    @property
    def finished(self) -> bool:
        """True once a marker was found or the stream was flushed."""
        return self._finished

    @property
    def pending(self) -> str:
        """Text received but not yet released."""
        return self._buffer.text()

    def feed(self, chunk: str) -> str:
        """Consume one raw chunk and return the text that is now safe to emit."""
        if self._finished or not chunk:
            return ""

        pending_len = len(self._buffer)
        window = self._buffer.text() + chunk

        position, marker = self._find_marker(window)
        partial = self._partial_match_length(window)
        # An earlier start that could still grow into a longer marker wins
        if marker is not None and len(window) - partial >= position:
            logger.debug(f"Stop marker {marker!r} found at offset {position}; truncating turn")
            self._finished = True
            self.matched_marker = marker
            self._buffer.clear()
            return window[:position]

        keep = min(len(window), partial + self.redundancy_length)
        cut = len(window) - keep
        if cut <= pending_len:
            self._buffer.drain(cut)
            self._buffer.extend(chunk)
        else:
            self._buffer.clear()
            self._buffer.extend(chunk[cut - pending_len:])
        return window[:cut]

    def flush(self) -> str:
        """End of stream: release whatever is still held back."""
        if self._finished:
            return ""
        self._finished = True
        remaining = self._buffer.text()
        self._buffer.clear()
        position, marker = self._find_marker(remaining)
        if marker is not None:
            self.matched_marker = marker
            return remaining[:position]
        return remaining

    def filter(self, chunks: Iterable[str]) -> Iterator[str]:
        """Pull raw chunks and yield safe, non-empty text until a marker or the end."""
        for chunk in chunks:
            safe = self.feed(chunk)
            if safe:
                yield safe
            if self._finished:
                return
        tail = self.flush()
        if tail:
            yield tail

    def _find_marker(self, window: str) -> tuple[int, str | None]:
        best_pos, best_marker = -1, None
        for marker in self.stop_markers:
            pos = window.find(marker)
            if pos != -1 and (best_marker is None or pos < best_pos):
                best_pos, best_marker = pos, marker
        return best_pos, best_marker

    def _partial_match_length(self, window: str) -> int:
        """Length of the longest suffix of ``window`` that is a strict prefix of a marker."""
        for length in range(min(len(window), self._longest - 1), 0, -1):
            if window[-length:] in self._prefixes:
                return length
        return 0
