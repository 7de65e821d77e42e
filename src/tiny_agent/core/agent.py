import logging
from typing import Any, Callable, Iterable, Iterator

from ..clients.base import ModelRuntime
from ..errors import ModelLoadError
from ..profile import AgentProfile
from ..tools import Tool, format_tool_catalog
from ..utils import prompts
from .anti_prompt import DEFAULT_REDUNDANCY_LENGTH
from .generation import CancellationToken, GenerationStream
from .prompt_assembler import PromptAssembler, SectionKind
from .session import ConversationSession, GenerationConfig, SessionManager, SessionState

logger = logging.getLogger(__name__)


def _default_runtime() -> ModelRuntime:
    from ..clients.llama_cpp_client import LlamaCppRuntime
    return LlamaCppRuntime()


class TinyAgent:
    """Chat agent over a local model: prompt sections in, filtered replies out.

    Typical use:

        agent = TinyAgent("Supriya", "Receptionist")
        agent.add_sys_message("You are a helpful chatbot agent.")
        agent.add_context_data(company_info)
        agent.expected_output("JSON", template)
        agent.setup("models/gemma-2-2b-it-Q4_K_M.gguf")
        print(agent.chat("Introduce yourself."))

    Args:
        agent_name: Name used in the identity section. Blank keeps ``ChatBot``.
        agent_role: Role used in the role section. Blank keeps ``Messenger``.
        runtime: Model runtime. When omitted a llama.cpp runtime is created
            on the first ``setup`` that has a model path.
        runtime_factory: Builds the runtime lazily; defaults to llama.cpp.
    """

    def __init__(
        self,
        agent_name: str = "",
        agent_role: str = "",
        runtime: ModelRuntime | None = None,
        runtime_factory: Callable[[], ModelRuntime] | None = None,
    ):
        self.assembler = PromptAssembler()
        self.assembler.set_section(SectionKind.IDENTITY, prompts.DEFAULT_AGENT_NAME)
        self.assembler.set_section(SectionKind.ROLE, prompts.DEFAULT_AGENT_ROLE)
        self.assembler.set_section(SectionKind.IDENTITY, agent_name)
        self.assembler.set_section(SectionKind.ROLE, agent_role)
        self._runtime_factory = runtime_factory or _default_runtime
        self.sessions = SessionManager(runtime, self.assembler)
        self.stream = GenerationStream(self.sessions)

    @classmethod
    def from_profile(cls, profile: AgentProfile, **kwargs: Any) -> "TinyAgent":
        """Create an agent with every section the profile defines."""
        agent = cls(profile.name, profile.role, **kwargs)
        agent.add_sys_message(profile.system_message)
        agent.add_context_data(profile.context)
        if profile.tools:
            agent.add_tool_json(profile.tools)
        agent.add_agent_roles_task(profile.tasks)
        if profile.output_format:
            agent.expected_output(profile.output_format, profile.output_template)
        return agent

    @property
    def agent_name(self) -> str:
        return self.assembler.get_section(SectionKind.IDENTITY)

    @property
    def agent_role(self) -> str:
        return self.assembler.get_section(SectionKind.ROLE)

    # --- Prompt sections --- #

    def add_sys_message(self, system_msg: str) -> None:
        """Free-form system message. Blank input is ignored."""
        self.assembler.set_section(SectionKind.SYSTEM_MESSAGE, system_msg)

    def add_context_data(self, rag_or_context_data: str) -> None:
        """Retrieved or reference text, added under a ``Context Data:`` heading."""
        self.assembler.set_section(SectionKind.CONTEXT, rag_or_context_data)

    def add_tool_json(self, tools: str | Tool | dict | Iterable[Tool | dict] | None) -> None:
        """Tool metadata, added under a ``Tools Data:`` heading."""
        self.assembler.set_section(SectionKind.TOOLS, format_tool_catalog(tools))

    def add_agent_roles_task(self, tasks: str) -> None:
        self.assembler.set_section(SectionKind.TASKS, tasks)

    def expected_output(self, format: str = "json", template: str = "") -> None:
        """Expected output format (e.g. "json" or "text") and optional template/schema."""
        self.assembler.set_expected_output(format, template)

    def system_messages(self, suppress_ai_comments: bool = True) -> list[str]:
        """Preview of the system messages the next ``setup`` would use."""
        return self.assembler.render(suppress_commentary=suppress_ai_comments)

    # --- Session --- #

    def setup(
        self,
        model_path: str,
        context_size: int = 1024,
        gpu_layers: int = 0,
        max_tokens: int = 256,
        suppress_ai_comments: bool = True,
        stop_markers: Iterable[str] | None = None,
        redundancy_length: int = DEFAULT_REDUNDANCY_LENGTH,
        temperature: float = 0.8,
        top_p: float = 0.95,
    ) -> None:
        """Load the model and (re)build the conversation session.

        A blank ``model_path`` returns quietly and leaves the agent
        unconfigured; ``chat`` then answers with a "not configured" message.

        Raises:
            ModelLoadError: If the model cannot be loaded.
            SessionBusyError: If a reply is still being generated.
        """
        config = GenerationConfig(
            model_path=model_path or "",
            context_size=context_size,
            gpu_layers=gpu_layers,
            max_tokens=max_tokens,
            stop_markers=prompts.DEFAULT_STOP_MARKERS if stop_markers is None else stop_markers,
            suppress_commentary=suppress_ai_comments,
            redundancy_length=redundancy_length,
            temperature=temperature,
            top_p=top_p,
        )
        self.configure(config)

    def configure(self, config: GenerationConfig) -> None:
        """Same as ``setup`` but from a prepared ``GenerationConfig``."""
        if config.has_model_path and self.sessions.runtime is None:
            try:
                self.sessions.runtime = self._runtime_factory()
            except ImportError as e:
                raise ModelLoadError(config.model_path, str(e)) from e
        self.sessions.setup(config)

    @property
    def session(self) -> ConversationSession | None:
        return self.sessions.current_session()

    @property
    def state(self) -> SessionState:
        return self.sessions.state

    def chat(self, input: str) -> str:
        return self.stream.chat(input)

    def chat_stream(self, input: str, cancellation: CancellationToken | None = None) -> Iterator[str]:
        return self.stream.chat_stream(input, cancellation)

    def close(self) -> None:
        self.sessions.close()
