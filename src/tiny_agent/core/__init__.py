"""Core agent components.

- AntiPromptFilter: streaming stop-marker truncation
- PromptAssembler: fixed-order system prompt sections
- SessionManager: the single conversation session and its lock
- GenerationStream: one user turn, aggregated or streamed
- TinyAgent: facade tying the pieces together
"""

from .anti_prompt import AntiPromptFilter
from .prompt_assembler import PromptAssembler, PromptSection, SectionKind, SECTION_ORDER
from .session import ConversationSession, GenerationConfig, SessionManager, SessionState
from .generation import CancellationToken, GenerationStream
from .agent import TinyAgent

__all__ = [
    "AntiPromptFilter",
    "PromptAssembler",
    "PromptSection",
    "SectionKind",
    "SECTION_ORDER",
    "ConversationSession",
    "GenerationConfig",
    "SessionManager",
    "SessionState",
    "CancellationToken",
    "GenerationStream",
    "TinyAgent",
]
