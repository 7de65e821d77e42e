from .base import ModelRuntime

# Import LlamaCppRuntime conditionally
try:
    from llama_cpp import Llama  # Check if base library is installed
    from .llama_cpp_client import LlamaCppRuntime
    _llama_cpp_available = True
except ImportError:
    LlamaCppRuntime = None  # type: ignore # Set to None if unavailable
    _llama_cpp_available = False

__all__ = ['ModelRuntime']
if _llama_cpp_available and LlamaCppRuntime:
    __all__.append('LlamaCppRuntime')

del _llama_cpp_available
