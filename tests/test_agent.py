import json

import pytest

from tiny_agent import TinyAgent
from tiny_agent.core.session import SessionState
from tiny_agent.errors import ModelLoadError
from tiny_agent.profile import AgentProfile
from tiny_agent.tools import Tool, ToolParameter
from tiny_agent.utils import prompts


def test_default_identity():
    agent = TinyAgent()
    assert agent.agent_name == "ChatBot"
    assert agent.agent_role == "Messenger"
    assert agent.system_messages()[:2] == [
        "As a bot agent, your name is ChatBot.",
        "You are a bot agent and your role is Messenger.",
    ]


def test_blank_name_keeps_default():
    agent = TinyAgent("  ", "Receptionist")
    assert agent.agent_name == "ChatBot"
    assert agent.agent_role == "Receptionist"


def test_sections_render_in_fixed_order():
    agent = TinyAgent("Supriya", "Receptionist")
    agent.expected_output("JSON", '{"ResponseText": ""}')
    agent.add_agent_roles_task("1. Answer questions.")
    agent.add_tool_json('{"tool": "GetWeather"}')
    agent.add_context_data("Name: Mayon technologies")
    agent.add_sys_message("You are a helpful chatbot agent.")

    messages = agent.system_messages(suppress_ai_comments=True)
    assert messages == [
        "As a bot agent, your name is Supriya.",
        "You are a bot agent and your role is Receptionist.",
        "You are a helpful chatbot agent.",
        "Context Data:\n    Name: Mayon technologies",
        'Tools Data:\n    {"tool": "GetWeather"}',
        "Your primary role's tasks are as follows:\n1. Answer questions.",
        'Expected output format: JSON with the template: {"ResponseText": ""}',
        "Return only the JSON output. Do not include any additional comments or notes.",
    ]
    assert len(agent.system_messages(suppress_ai_comments=False)) == 7


def test_add_tool_json_from_tool_objects():
    agent = TinyAgent()
    agent.add_tool_json([Tool("GetWeather", "Current weather", [ToolParameter("city", "string")])])
    tools_text = agent.assembler.get_section("tools")
    assert json.loads(tools_text)[0]["name"] == "GetWeather"
    assert agent.system_messages()[-1].startswith("Tools Data:\n")


def test_chat_before_setup_returns_sentinels():
    agent = TinyAgent()
    assert agent.chat("Hi") == prompts.MODEL_NOT_CONFIGURED_MESSAGE
    assert list(agent.chat_stream("Hi")) == []
    assert agent.chat("") == prompts.UNREADABLE_INPUT_MESSAGE


def test_setup_with_blank_path_does_not_create_runtime():
    def factory():
        raise AssertionError("runtime should not be created")

    agent = TinyAgent(runtime_factory=factory)
    agent.setup("")
    assert agent.state is SessionState.UNINITIALIZED
    assert agent.session is None
    assert agent.chat("anything") == prompts.MODEL_NOT_CONFIGURED_MESSAGE


def test_setup_and_chat(make_runtime):
    runtime = make_runtime([["Hello! I'm Supriya.", "\nUser: hi"]])
    agent = TinyAgent("Supriya", "Receptionist", runtime=runtime)
    agent.add_sys_message("Be kind.")
    agent.setup("model.gguf", context_size=2048, max_tokens=64)

    assert agent.state is SessionState.READY
    assert runtime.loaded == [("model.gguf", 2048, 0)]
    assert runtime.sessions[0] == agent.system_messages()
    assert agent.chat(prompts.DEFAULT_FIRST_MESSAGE) == "Hello! I'm Supriya.\n"
    assert runtime.requests[0]["max_tokens"] == 64


def test_sections_added_after_setup_apply_on_next_setup(make_runtime):
    runtime = make_runtime()
    agent = TinyAgent(runtime=runtime)
    agent.setup("model.gguf")
    agent.add_context_data("late data")
    assert len(runtime.sessions[0]) == 2
    agent.setup("model.gguf")
    assert runtime.sessions[1][-1] == "Context Data:\n    late data"


def test_runtime_factory_is_lazy(runtime):
    created = []

    def factory():
        created.append(True)
        return runtime

    agent = TinyAgent(runtime_factory=factory)
    assert created == []
    agent.setup("model.gguf")
    agent.setup("model.gguf")
    assert created == [True]


def test_missing_runtime_library_becomes_load_error():
    def factory():
        raise ImportError("llama_cpp missing")

    agent = TinyAgent(runtime_factory=factory)
    with pytest.raises(ModelLoadError, match="llama_cpp missing"):
        agent.setup("model.gguf")


def test_close_releases_session(runtime):
    agent = TinyAgent(runtime=runtime)
    agent.setup("model.gguf")
    agent.close()
    assert agent.session is None
    assert len(runtime.unloaded) == 1


def test_from_profile():
    profile = AgentProfile(
        name="Supriya",
        role="Receptionist",
        system_message="Be kind.",
        tools=[{"name": "GetWeather"}],
        output_format="JSON",
        output_template="{}",
    )
    agent = TinyAgent.from_profile(profile)
    messages = agent.system_messages()
    assert messages[0] == "As a bot agent, your name is Supriya."
    assert messages[2] == "Be kind."
    assert json.loads(messages[3].split("\n", 1)[1]) == [{"name": "GetWeather"}]
    assert messages[4] == "Expected output format: JSON with the template: {}"


def test_from_profile_empty_keeps_defaults():
    agent = TinyAgent.from_profile(AgentProfile())
    assert agent.agent_name == "ChatBot"
    assert len(agent.system_messages()) == 2


@pytest.mark.parametrize("tools", [None, [], ""])
def test_add_tool_json_ignores_empty_input(tools):
    agent = TinyAgent()
    agent.add_tool_json('{"tool": "x"}')
    agent.add_tool_json(tools)
    assert agent.assembler.get_section("tools") == '{"tool": "x"}'


def test_setup_passes_sampling_settings(make_runtime):
    runtime = make_runtime([["ok"]])
    agent = TinyAgent(runtime=runtime)
    agent.setup("model.gguf", temperature=0.2, top_p=0.7)
    agent.chat("hi")
    assert runtime.requests[0]["temperature"] == 0.2
    assert runtime.requests[0]["top_p"] == 0.7
