from abc import ABC, abstractmethod
from typing import Any, Iterator, Sequence

from ..models.message import Message


class ModelRuntime(ABC):
    """Abstract local model runtime.

    The session layer only needs three things from a runtime: load weights,
    build a session around the initial system messages, and stream raw text
    for a turn.
    """

    @abstractmethod
    def load_model(self, model_path: str, context_size: int, gpu_layers: int) -> Any:
        """Load model weights and return an opaque model handle.

        Raises:
            ModelLoadError: If the weights or the context cannot be created.
        """

    @abstractmethod
    def create_session(self, model_handle: Any, initial_messages: Sequence[Message]) -> Any:
        """Return an opaque session handle bound to the model and system messages."""

    @abstractmethod
    def generate(
        self,
        session_handle: Any,
        turns: Sequence[Message],
        max_tokens: int,
        stop: Sequence[str] | None = None,
        temperature: float | None = None,
        top_p: float | None = None,
    ) -> Iterator[str]:
        """Stream raw text chunks for the next assistant reply.

        Args:
            session_handle: Handle returned by ``create_session``.
            turns: Conversation turns so far, ending with the new user message.
            max_tokens: Generation budget for this reply.
            stop: Stop markers the runtime may honour natively.
            temperature: Sampling temperature; None keeps the runtime default.
            top_p: Nucleus sampling cutoff; None keeps the runtime default.
        """

    def unload(self, model_handle: Any) -> None:
        """Release a model handle. Runtimes without explicit cleanup can ignore this."""
