"""User turns against the active session.

``chat`` returns the whole reply; ``chat_stream`` yields it chunk by chunk.
Both route the runtime's raw output through ``AntiPromptFilter`` and hold
the session exclusively for the duration of the turn.
"""

import logging
import threading
import time
from typing import Iterator

from ..models.message import Message
from ..utils import prompts
from .anti_prompt import AntiPromptFilter
from .session import ConversationSession, SessionManager

logger = logging.getLogger(__name__)


class CancellationToken:
    """Cooperative stop signal, checked by the stream at chunk boundaries."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


def _is_blank(text: str | None) -> bool:
    return text is None or not text.strip()


class GenerationStream:
    """Drives one user turn at a time against a ``SessionManager``'s session."""

    def __init__(self, sessions: SessionManager):
        self.sessions = sessions

    def chat(self, text: str) -> str:
        """Send ``text`` and return the complete, marker-free reply.

        Blank input and a missing session are answered with fixed sentinel
        strings instead of exceptions.

        Raises:
            SessionBusyError: If another turn is in flight.
        """
        if _is_blank(text):
            return prompts.UNREADABLE_INPUT_MESSAGE
        with self.sessions.turn() as session:
            if session is None:
                return prompts.MODEL_NOT_CONFIGURED_MESSAGE
            return "".join(self._run_turn(session, text, None))

    def chat_stream(self, text: str, cancellation: CancellationToken | None = None) -> Iterator[str]:
        """Send ``text`` and lazily yield marker-free chunks of the reply.

        Blank input yields the input sentinel once. Without a ready session the
        sequence is empty. Setting ``cancellation`` stops the stream quietly at
        the next chunk boundary. The session stays locked until the stream is
        exhausted or closed.

        Raises:
            SessionBusyError: On first iteration, if another turn is in flight.
        """
        if _is_blank(text):
            yield prompts.UNREADABLE_INPUT_MESSAGE
            return
        with self.sessions.turn() as session:
            if session is None:
                logger.debug("chat_stream called without a ready session; yielding nothing")
                return
            yield from self._run_turn(session, text, cancellation)

    def _run_turn(self, session: ConversationSession, text: str, cancellation: CancellationToken | None) -> Iterator[str]:
        if cancellation is not None and cancellation.cancelled:
            logger.debug("Turn cancelled before generation started")
            return

        config = session.config
        user_message = Message.user(text)
        session.record(user_message)
        stop_filter = AntiPromptFilter(config.stop_markers, config.redundancy_length)

        raw_chunks = None
        emitted: list[str] = []
        chunk_count = 0
        failed = False
        start_time = time.time()
        try:
            raw_chunks = iter(self.sessions.runtime.generate(
                session.handle,
                session.history,
                config.max_tokens,
                stop=sorted(config.stop_markers),
                temperature=config.temperature,
                top_p=config.top_p,
            ))
            while not stop_filter.finished:
                # Cancellation is checked before every pull
                if cancellation is not None and cancellation.cancelled:
                    logger.debug(f"Turn cancelled after {chunk_count} chunks")
                    break
                chunk = next(raw_chunks, None)
                if chunk is None:
                    safe = stop_filter.flush()
                else:
                    chunk_count += 1
                    safe = stop_filter.feed(chunk)
                if safe:
                    emitted.append(safe)
                    yield safe
        except Exception:
            failed = True
            logger.exception("Error during generation")
            raise
        finally:
            close = getattr(raw_chunks, "close", None)
            if callable(close):
                close()
            if failed:
                session.discard(user_message)
            else:
                session.record(Message.assistant("".join(emitted)))
            elapsed = time.time() - start_time
            logger.debug(
                f"Turn finished: {chunk_count} raw chunks in {elapsed:.2f}s, "
                f"stop marker={stop_filter.matched_marker!r}"
            )
