import importlib.util
import logging
import os
from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from tiny_agent.core.anti_prompt import DEFAULT_REDUNDANCY_LENGTH
from tiny_agent.core.session import GenerationConfig
from tiny_agent.utils import prompts

logger = logging.getLogger(__name__)


def is_llama_cpp_available() -> bool:
    return importlib.util.find_spec("llama_cpp") is not None


def get_default_config_dir() -> Path:
    env_path = os.environ.get("TINY_AGENT_CONFIG_DIR")
    if env_path:
        return Path(env_path).expanduser().resolve()
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME", os.path.expanduser("~/.config"))
    return Path(xdg_config_home) / "tiny-agent"


DEFAULT_CONFIG_DIR = get_default_config_dir()
DOTENV_PATH = DEFAULT_CONFIG_DIR / ".env"
DEFAULT_PROFILE_PATH = DEFAULT_CONFIG_DIR / "agent.yaml"


class Config(BaseSettings):
    # --- Model Settings --- #
    MODEL_PATH: str = Field(default="", description="Local path to a GGUF model file (Set via TINY_AGENT_MODEL_PATH)")
    MODEL_REPO_ID: Optional[str] = Field(default=None, description="Hugging Face repo to fetch the GGUF from when MODEL_PATH is not set")
    MODEL_FILENAME: Optional[str] = Field(default=None, description="GGUF filename inside MODEL_REPO_ID")
    MODEL_CACHE_DIR: str = Field(default=os.path.expanduser("~/.cache/tiny_agent/models"), description="Directory to cache downloaded GGUF models")
    CONTEXT_SIZE: int = Field(default=1024, description="Context size in tokens")
    GPU_LAYERS: int = Field(default=0, description="Number of layers to offload to GPU (0 for CPU-only, -1 for all)")

    # --- Generation Settings --- #
    MAX_TOKENS: int = Field(default=256, description="Maximum tokens generated per reply")
    TEMPERATURE: float = Field(default=0.8, description="Sampling temperature")
    TOP_P: float = Field(default=0.95, description="Nucleus sampling top-p")
    STOP_MARKERS: List[str] = Field(default_factory=lambda: list(prompts.DEFAULT_STOP_MARKERS), description="Anti-prompts that end a reply (JSON list in env)")
    REDUNDANCY_LENGTH: int = Field(default=DEFAULT_REDUNDANCY_LENGTH, description="Extra characters held back while streaming")
    SUPPRESS_AI_COMMENTS: bool = Field(default=True, description="Ask the model to return only the expected output")

    # --- Agent Settings --- #
    AGENT_PROFILE_PATH: str = Field(default=str(DEFAULT_PROFILE_PATH), description="Path to the agent profile YAML file")

    # --- UI/Interaction Settings --- #
    VERBOSE: bool = Field(default=False, description="Verbose mode for debugging")
    PLAIN_OUTPUT: bool = Field(default=False, description="Use plain text output without Rich formatting")
    NO_STREAM: bool = Field(default=False, description="Disable streaming output")

    model_config = SettingsConfigDict(
        env_prefix="TINY_AGENT_",
        env_file=DOTENV_PATH,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra='ignore'
    )

    def to_generation_config(self, model_path: str | None = None) -> GenerationConfig:
        """Build the immutable settings a session is created from."""
        return GenerationConfig(
            model_path=self.MODEL_PATH if model_path is None else model_path,
            context_size=self.CONTEXT_SIZE,
            gpu_layers=self.GPU_LAYERS,
            max_tokens=self.MAX_TOKENS,
            stop_markers=self.STOP_MARKERS,
            suppress_commentary=self.SUPPRESS_AI_COMMENTS,
            redundancy_length=self.REDUNDANCY_LENGTH,
            temperature=self.TEMPERATURE,
            top_p=self.TOP_P,
        )
