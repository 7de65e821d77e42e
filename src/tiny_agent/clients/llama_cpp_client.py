import contextlib
import gc
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Sequence

from .base import ModelRuntime
from ..errors import ModelLoadError
from ..models.message import Message

try:
    from llama_cpp import Llama
    _llama_cpp_available = True
except ImportError:
    Llama = None
    _llama_cpp_available = False

logger = logging.getLogger(__name__)


@dataclass
class LlamaCppSession:
    """Session handle: the loaded model plus the system messages it was built with."""
    model: Any
    initial_messages: tuple[Message, ...] = field(default_factory=tuple)


class LlamaCppRuntime(ModelRuntime):
    """Runs GGUF models in-process using llama-cpp-python."""

    def __init__(self, temperature: float = 0.8, top_p: float = 0.95, n_batch: int = 512, flash_attn: bool = False):
        if not _llama_cpp_available:
            raise ImportError(
                "`llama-cpp-python` not found. Install it following instructions: "
                "https://github.com/abetlen/llama-cpp-python#installation"
            )
        self.temperature = temperature
        self.top_p = top_p
        self.n_batch = n_batch
        self.flash_attn = flash_attn

    def load_model(self, model_path: str, context_size: int, gpu_layers: int) -> Any:
        """Loads the GGUF model, suppressing C++ library stderr."""
        model_load_params = {
            "model_path": model_path,
            "n_ctx": context_size,
            "n_gpu_layers": gpu_layers,  # 0 for CPU-only, -1 for all layers
            "n_batch": min(self.n_batch, context_size),
            "flash_attn": self.flash_attn,
            # Let llama.cpp pick the chat format from GGUF metadata
            "chat_format": None,
            "verbose": False,
        }
        if logger.isEnabledFor(logging.DEBUG):
            log_params = {k: v for k, v in model_load_params.items() if k != 'model_path'}
            logger.debug(f"llama.cpp model load parameters (excluding path): {log_params}")

        try:
            with open(os.devnull, 'w') as fnull, contextlib.redirect_stderr(fnull):
                model = Llama(**model_load_params)
        except Exception as e:
            logger.error(f"Error loading GGUF model {model_path}: {e}")
            raise ModelLoadError(model_path, str(e)) from e

        logger.info(f"Model loaded: {model_path} (context={context_size}, gpu_layers={gpu_layers if gpu_layers != -1 else 'All'})")
        return model

    def create_session(self, model_handle: Any, initial_messages: Sequence[Message]) -> LlamaCppSession:
        return LlamaCppSession(model=model_handle, initial_messages=tuple(initial_messages))

    def generate(
        self,
        session_handle: LlamaCppSession,
        turns: Sequence[Message],
        max_tokens: int,
        stop: Sequence[str] | None = None,
        temperature: float | None = None,
        top_p: float | None = None,
    ) -> Iterator[str]:
        """Stream raw text chunks from llama.cpp for the next assistant reply."""
        api_messages = [msg.to_api_format() for msg in (*session_handle.initial_messages, *turns)]
        generation_params = {
            "messages": api_messages,
            "max_tokens": max_tokens,
            "temperature": self.temperature if temperature is None else temperature,
            "top_p": self.top_p if top_p is None else top_p,
            "stream": True,
        }
        if stop:
            generation_params["stop"] = list(stop)

        if logger.isEnabledFor(logging.DEBUG):
            log_params = {k: v for k, v in generation_params.items() if k != 'messages'}
            logger.debug(f"Llama.cpp request parameters: {log_params} ({len(api_messages)} messages)")

        raw_stream = session_handle.model.create_chat_completion(**generation_params)
        yield from self._iterate_llama_cpp_chunks(raw_stream)

    def _iterate_llama_cpp_chunks(self, stream: Iterator[Dict[str, Any]]) -> Iterator[str]:
        """Extracts content delta from llama.cpp stream chunks."""
        for chunk in stream:
            delta = chunk.get('choices', [{}])[0].get('delta', {})
            content = delta.get('content')
            if content:
                yield content

    def unload(self, model_handle: Any) -> None:
        """Free the model's native memory."""
        if model_handle is None:
            return
        close = getattr(model_handle, "close", None)
        if callable(close):
            try:
                close()
            except Exception as e:
                logger.warning(f"Error during model unload: {e}")
        gc.collect()
