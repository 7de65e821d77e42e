import os

import pytest

from tiny_agent.clients.base import ModelRuntime


class FakeRuntime(ModelRuntime):
    """Scripted runtime: each ``generate`` call replays the next list of chunks."""

    def __init__(self, replies=None, load_error=None, session_error=None, generate_error=None):
        self.replies = list(replies or [])
        self.load_error = load_error
        self.session_error = session_error
        self.generate_error = generate_error
        self.loaded = []
        self.sessions = []
        self.requests = []
        self.unloaded = []
        self.pulled = 0
        self.closed_streams = 0

    def load_model(self, model_path, context_size, gpu_layers):
        self.loaded.append((model_path, context_size, gpu_layers))
        if self.load_error is not None:
            raise self.load_error
        return f"model:{model_path}:{len(self.loaded)}"

    def create_session(self, model_handle, initial_messages):
        if self.session_error is not None:
            raise self.session_error
        self.sessions.append([m.content for m in initial_messages])
        return {"model": model_handle, "messages": tuple(initial_messages)}

    def generate(self, session_handle, turns, max_tokens, stop=None, temperature=None, top_p=None):
        self.requests.append({
            "handle": session_handle,
            "turns": [(m.role, m.content) for m in turns],
            "max_tokens": max_tokens,
            "stop": stop,
            "temperature": temperature,
            "top_p": top_p,
        })
        if self.generate_error is not None:
            raise self.generate_error
        chunks = self.replies.pop(0) if self.replies else []
        return self._stream(chunks)

    def _stream(self, chunks):
        try:
            for chunk in chunks:
                if isinstance(chunk, Exception):
                    raise chunk
                self.pulled += 1
                yield chunk
        finally:
            self.closed_streams += 1

    def unload(self, model_handle):
        self.unloaded.append(model_handle)


@pytest.fixture
def make_runtime():
    return FakeRuntime


@pytest.fixture
def runtime():
    return FakeRuntime()


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep the developer's TINY_AGENT_* settings out of the tests."""
    for key in list(os.environ):
        if key.startswith("TINY_AGENT_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    yield
