"""Ownership of the single conversation session.

``SessionManager`` builds the session from the assembled system prompt and a
``GenerationConfig``, hands it out one turn at a time, and rebuilds it when
``setup`` is called again (last call wins). A single lock serializes turns and
rebuilds; a call that finds the lock taken fails fast with ``SessionBusyError``
instead of waiting, so raw chunks from two turns can never mix.
"""

import contextlib
import logging
import threading
from enum import Enum
from typing import Any, Iterator, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..clients.base import ModelRuntime
from ..errors import ModelLoadError, SessionBusyError
from ..models.message import Message
from ..utils import prompts
from .anti_prompt import DEFAULT_REDUNDANCY_LENGTH
from .prompt_assembler import PromptAssembler

logger = logging.getLogger(__name__)


class GenerationConfig(BaseModel):
    """Model and generation settings a session is built from. Immutable."""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    model_path: str = ""
    context_size: int = Field(default=1024, gt=0)
    gpu_layers: int = Field(default=0, ge=-1)
    max_tokens: int = Field(default=256, gt=0)
    stop_markers: frozenset[str] = Field(default_factory=lambda: frozenset(prompts.DEFAULT_STOP_MARKERS))
    suppress_commentary: bool = True
    redundancy_length: int = Field(default=DEFAULT_REDUNDANCY_LENGTH, ge=0)
    temperature: float = Field(default=0.8, ge=0)
    top_p: float = Field(default=0.95, gt=0, le=1)

    @field_validator("stop_markers", mode="before")
    @classmethod
    def _drop_empty_markers(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = [value]
        if isinstance(value, (list, tuple, set, frozenset)):
            return frozenset(m for m in value if m)
        return value

    @property
    def has_model_path(self) -> bool:
        return bool(self.model_path and self.model_path.strip())


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    GENERATING = "generating"


class ConversationSession:
    """System messages, turn history and runtime handles for one conversation."""

    def __init__(self, config: GenerationConfig, initial_messages: Sequence[Message], handle: Any, model_handle: Any = None):
        self.config = config
        self.initial_messages: tuple[Message, ...] = tuple(initial_messages)
        self.handle = handle
        self.model_handle = model_handle
        self._history: list[Message] = []

    @property
    def history(self) -> tuple[Message, ...]:
        """Read-only view of the user/assistant turns."""
        return tuple(self._history)

    def record(self, message: Message) -> None:
        self._history.append(message)

    def discard(self, message: Message) -> None:
        """Drop ``message`` if it is the latest turn (used when a turn fails)."""
        if self._history and self._history[-1] is message:
            self._history.pop()

    def __repr__(self) -> str:
        return f"ConversationSession(model_path={self.config.model_path!r}, system_messages={len(self.initial_messages)}, turns={len(self._history)})"


class SessionManager:
    """Owns the one active ``ConversationSession``.

    Args:
        runtime: Model runtime used to load weights and create sessions. May
            be assigned later; it is only needed once a model path is set.
        assembler: Source of the system messages; read at every ``setup``.
    """

    def __init__(self, runtime: ModelRuntime | None, assembler: PromptAssembler | None = None):
        self.runtime = runtime
        self.assembler = assembler or PromptAssembler()
        self._session: ConversationSession | None = None
        self._lock = threading.Lock()
        self._generating = False

    @property
    def state(self) -> SessionState:
        if self._session is None:
            return SessionState.UNINITIALIZED
        return SessionState.GENERATING if self._generating else SessionState.READY

    @property
    def is_ready(self) -> bool:
        return self._session is not None

    def current_session(self) -> ConversationSession | None:
        """The active session, or None while uninitialized."""
        return self._session

    def setup(self, config: GenerationConfig) -> None:
        """Build a new session from ``config``, replacing any previous one.

        A blank model path is not an error: the manager ends up uninitialized
        and the chat entry points answer with a "not configured" sentinel.

        Raises:
            ModelLoadError: If the runtime cannot load the model or build the
                session. The previous session, if any, stays active.
            SessionBusyError: If a turn is in flight.
        """
        if not self._lock.acquire(blocking=False):
            raise SessionBusyError("setup")
        try:
            if not config.has_model_path:
                logger.warning("No model path configured; session left uninitialized")
                self._replace(None)
                return

            if self.runtime is None:
                raise ModelLoadError(config.model_path, "no model runtime configured")

            logger.debug(f"Loading model for new session: {config.model_path}")
            try:
                model_handle = self.runtime.load_model(config.model_path, config.context_size, config.gpu_layers)
            except ModelLoadError:
                raise
            except Exception as e:
                raise ModelLoadError(config.model_path, str(e)) from e

            messages = [Message.system(text) for text in self.assembler.render(suppress_commentary=config.suppress_commentary)]
            try:
                handle = self.runtime.create_session(model_handle, messages)
            except Exception as e:
                self.runtime.unload(model_handle)
                raise ModelLoadError(config.model_path, f"could not create session: {e}") from e

            self._replace(ConversationSession(config, messages, handle, model_handle))
            logger.info(f"Session ready with {len(messages)} system messages")
        finally:
            self._lock.release()

    @contextlib.contextmanager
    def turn(self) -> Iterator[ConversationSession | None]:
        """Hold the session exclusively for one turn.

        Yields the active session, or None if uninitialized.

        Raises:
            SessionBusyError: If another turn or a setup holds the session.
        """
        if not self._lock.acquire(blocking=False):
            raise SessionBusyError()
        try:
            session = self._session
            self._generating = session is not None
            yield session
        finally:
            self._generating = False
            self._lock.release()

    def close(self) -> None:
        """Drop the session and release the model."""
        with self._lock:
            self._replace(None)

    def _replace(self, session: ConversationSession | None) -> None:
        previous, self._session = self._session, session
        if previous is not None:
            logger.debug(f"Discarding previous session with {len(previous.history)} turns")
            if self.runtime is not None and (session is None or previous.model_handle is not session.model_handle):
                self.runtime.unload(previous.model_handle)
