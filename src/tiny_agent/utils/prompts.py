DEFAULT_AGENT_NAME = "ChatBot"
DEFAULT_AGENT_ROLE = "Messenger"

IDENTITY_TEMPLATE = "As a bot agent, your name is {name}."
ROLE_TEMPLATE = "You are a bot agent and your role is {role}."
CONTEXT_HEADING = "Context Data:"
TOOLS_HEADING = "Tools Data:"
TASKS_HEADING = "Your primary role's tasks are as follows:"
OUTPUT_FORMAT_TEMPLATE = "Expected output format: {format}"
OUTPUT_TEMPLATE_SUFFIX = " with the template: {template}"
SUPPRESSION_DIRECTIVE = "Return only the {format} output. Do not include any additional comments or notes."

# Caller-facing sentinels; a chat UI renders these as the assistant reply
UNREADABLE_INPUT_MESSAGE = "Unable to read the message."
MODEL_NOT_CONFIGURED_MESSAGE = (
    "The model is not configured correctly. Check your model path and settings to ensure correct operation."
)

# "User:" stops the model before it starts simulating the next user message
DEFAULT_STOP_MARKERS = ("User:", "Assistant", "<|end_of_turn|>")

DEFAULT_FIRST_MESSAGE = "Introduce yourself."
