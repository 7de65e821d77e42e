from tiny_agent.models.message import Message


def test_message_initialization():
    msg = Message(role="user", content="Hello, world!")
    assert msg.role == "user"
    assert msg.content == "Hello, world!"
    assert msg.timestamp is not None


def test_message_constructors():
    assert Message.system("s").role == "system"
    assert Message.user("u").role == "user"
    assert Message.assistant("a").role == "assistant"


def test_message_from_dict():
    data = {"role": "assistant", "content": "Hello, user!", "timestamp": 1234567890}
    msg = Message.from_dict(data)
    assert msg.role == "assistant"
    assert msg.content == "Hello, user!"
    assert msg.timestamp == 1234567890


def test_message_from_dict_multimodal_keeps_text():
    data = {"role": "user", "content": [{"type": "text", "text": "look"}, {"type": "image_url", "image_url": {}}]}
    assert Message.from_dict(data).content == "look"


def test_message_to_dict():
    msg = Message(role="user", content="Test message")
    msg_dict = msg.to_dict()
    assert msg_dict["role"] == "user"
    assert msg_dict["content"] == "Test message"
    assert "timestamp" in msg_dict


def test_message_to_api_format():
    msg = Message(role="assistant", content="API response")
    assert msg.to_api_format() == {"role": "assistant", "content": "API response"}


def test_message_repr_truncates():
    assert "..." in repr(Message.user("x" * 100))
