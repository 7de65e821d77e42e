import itertools
import random

from tiny_agent.core.prompt_assembler import SECTION_ORDER, PromptAssembler, SectionKind

SAMPLE_TEXT = {
    SectionKind.IDENTITY: "Supriya",
    SectionKind.ROLE: "Receptionist",
    SectionKind.SYSTEM_MESSAGE: "You are a helpful chatbot agent.",
    SectionKind.CONTEXT: "Company: Acme\nOpen: 9-5",
    SectionKind.TOOLS: '[{"name": "lookup"}]',
    SectionKind.TASKS: "1. Greet visitors\n2. Book meetings",
    SectionKind.OUTPUT_FORMAT: "JSON",
    SectionKind.SUPPRESSION_DIRECTIVE: "Only JSON, please.",
}


def _kinds(assembler, suppress=False):
    return [section.kind for section in assembler.sections(suppress)]


def test_order_is_independent_of_call_order():
    subset = list(SAMPLE_TEXT)[:6]
    for ordering in itertools.permutations(subset):
        assembler = PromptAssembler()
        for kind in ordering:
            assembler.set_section(kind, SAMPLE_TEXT[kind])
        assert _kinds(assembler) == subset


def test_order_with_all_sections_shuffled():
    rng = random.Random(7)
    reference = None
    for _ in range(50):
        kinds = list(SAMPLE_TEXT)
        rng.shuffle(kinds)
        assembler = PromptAssembler()
        for kind in kinds:
            assembler.set_section(kind, SAMPLE_TEXT[kind])
        rendered = assembler.render()
        reference = reference or rendered
        assert rendered == reference
        assert _kinds(assembler) == list(SECTION_ORDER)


def test_last_write_wins():
    assembler = PromptAssembler()
    assembler.set_section(SectionKind.TOOLS, "first")
    assembler.set_section(SectionKind.TOOLS, "second")
    assert assembler.render() == ["Tools Data:\n    second"]


def test_blank_text_keeps_previous_value():
    assembler = PromptAssembler()
    assert assembler.set_section("system_message", "Be brief.")
    assert not assembler.set_section("system_message", "   ")
    assert not assembler.set_section("system_message", None)
    assert assembler.get_section(SectionKind.SYSTEM_MESSAGE) == "Be brief."


def test_identity_and_role_framing():
    assembler = PromptAssembler()
    assembler.set_section(SectionKind.ROLE, "Receptionist")
    assembler.set_section(SectionKind.IDENTITY, "Supriya")
    assert assembler.render() == [
        "As a bot agent, your name is Supriya.",
        "You are a bot agent and your role is Receptionist.",
    ]


def test_tools_section_contains_heading_and_payload():
    assembler = PromptAssembler()
    assembler.set_section(SectionKind.TOOLS, '{"tool":"x"}')
    (text,) = assembler.render()
    assert text.startswith("Tools Data:\n")
    assert '{"tool":"x"}' in text


def test_context_is_indented_under_heading():
    assembler = PromptAssembler()
    assembler.set_section(SectionKind.CONTEXT, "line one\n\nline two")
    assert assembler.render() == ["Context Data:\n    line one\n\n    line two"]


def test_tasks_heading():
    assembler = PromptAssembler()
    assembler.set_section(SectionKind.TASKS, "\n1. Greet\n")
    assert assembler.render() == ["Your primary role's tasks are as follows:\n1. Greet"]


def test_output_format_with_template():
    assembler = PromptAssembler()
    assembler.set_expected_output("JSON", '  {"answer": ""}  ')
    assert assembler.output_template == '{"answer": ""}'
    assert assembler.render() == ['Expected output format: JSON with the template: {"answer": ""}']


def test_setting_format_again_drops_template():
    assembler = PromptAssembler()
    assembler.set_expected_output("JSON", "{}")
    assembler.set_section(SectionKind.OUTPUT_FORMAT, "text")
    assert assembler.output_template == ""
    assert assembler.render() == ["Expected output format: text"]


def test_suppression_directive_requires_output_format():
    assembler = PromptAssembler()
    assembler.set_section(SectionKind.SYSTEM_MESSAGE, "Hi")
    assert assembler.render(suppress_commentary=True) == ["Hi"]

    assembler.set_expected_output("JSON")
    rendered = assembler.render(suppress_commentary=True)
    assert rendered[-1] == "Return only the JSON output. Do not include any additional comments or notes."
    assert len(assembler.render(suppress_commentary=False)) == 2


def test_explicit_directive_takes_precedence():
    assembler = PromptAssembler()
    assembler.set_expected_output("JSON")
    assembler.set_section(SectionKind.SUPPRESSION_DIRECTIVE, "Answer in JSON only.")
    assert assembler.render(suppress_commentary=True)[-1] == "Answer in JSON only."
    assert assembler.render(suppress_commentary=False)[-1] == "Answer in JSON only."


def test_render_does_not_mutate():
    assembler = PromptAssembler()
    for kind, text in SAMPLE_TEXT.items():
        assembler.set_section(kind, text)
    assert assembler.render(True) == assembler.render(True)


def test_clear():
    assembler = PromptAssembler()
    assembler.set_expected_output("JSON", "{}")
    assembler.clear()
    assert assembler.render(True) == []
    assert assembler.output_template == ""


def test_unknown_kind_is_ignored():
    assembler = PromptAssembler()
    assert not assembler.set_section("footer", "text")
    assert assembler.get_section("footer") is None
    assert assembler.render() == []


def test_non_text_section_is_ignored():
    assembler = PromptAssembler()
    assembler.set_section(SectionKind.CONTEXT, "kept")
    assert not assembler.set_section(SectionKind.CONTEXT, 42)
    assert assembler.get_section(SectionKind.CONTEXT) == "kept"
