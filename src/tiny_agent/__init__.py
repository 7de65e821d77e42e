from .core import TinyAgent, GenerationConfig, CancellationToken
from .errors import TinyAgentError, ModelLoadError, SessionBusyError

__all__ = ["TinyAgent", "GenerationConfig", "CancellationToken", "TinyAgentError", "ModelLoadError", "SessionBusyError"]
