import time

ROLE_SYSTEM = "system"
ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"


class Message:
    """One entry in a conversation: a system section or a user/assistant turn."""

    def __init__(self, role: str, content: str, timestamp: float | None = None):
        self.role = role
        self.content = content
        self.timestamp = timestamp if timestamp else time.time()

    @classmethod
    def system(cls, content: str) -> 'Message':
        return cls(ROLE_SYSTEM, content)

    @classmethod
    def user(cls, content: str) -> 'Message':
        return cls(ROLE_USER, content)

    @classmethod
    def assistant(cls, content: str) -> 'Message':
        return cls(ROLE_ASSISTANT, content)

    @classmethod
    def from_dict(cls, data: dict) -> 'Message':
        """Create a Message from a dictionary"""
        content = data.get("content", "")
        if isinstance(content, list):
            # Multimodal payloads: keep only the text parts
            content = " ".join(item.get("text", "") for item in content if item.get("type") == "text")
        return cls(data.get("role", ROLE_USER), str(content), data.get("timestamp"))

    def to_dict(self) -> dict:
        return {"role": self.role, "content": self.content, "timestamp": self.timestamp}

    def to_api_format(self) -> dict:
        """Convert to the chat-completion message format (without timestamp)"""
        return {"role": self.role, "content": self.content}

    def __repr__(self) -> str:
        preview = self.content if len(self.content) <= 40 else self.content[:37] + "..."
        return f"Message(role={self.role!r}, content={preview!r})"
