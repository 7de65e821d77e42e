"""Agent profiles.

A profile is a YAML file holding the prompt sections of one agent, so a
personality can be reused without code:

    name: Supriya
    role: Receptionist
    system_message: You are a helpful chatbot agent to respond to user's queries.
    context: |
      Company Information:
        Name: Mayon technologies
    tools:
      - name: GetWeather
        description: To get current weather
    tasks: |
      1. Answer general questions.
    output_format: JSON
    output_template: '{"Response_Type": "General | RAG | Tool_Call", "ResponseText": ""}'
"""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError

from .errors import ProfileError

logger = logging.getLogger(__name__)


class AgentProfile(BaseModel):
    """Prompt sections for one agent. Every field is optional."""

    model_config = ConfigDict(extra="ignore")

    name: str = ""
    role: str = ""
    system_message: str = ""
    context: str = ""
    tools: str | list[Any] | dict[str, Any] | None = None
    tasks: str = ""
    output_format: str = ""
    output_template: str = ""


def load_agent_profile(path: str | Path) -> AgentProfile:
    """Load an agent profile from YAML.

    A missing file yields an empty profile so the agent still starts with its
    default identity.

    Raises:
        ProfileError: If the file exists but is not a valid profile.
    """
    profile_path = Path(path).expanduser()
    if not profile_path.is_file():
        logger.warning(f"Agent profile not found at {profile_path}; using defaults")
        return AgentProfile()

    try:
        with open(profile_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ProfileError(f"Error parsing agent profile {profile_path}: {e}") from e
    except OSError as e:
        raise ProfileError(f"Error reading agent profile {profile_path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ProfileError(f"Invalid format in {profile_path}: expected a mapping of section names")

    try:
        profile = AgentProfile(**data)
    except ValidationError as e:
        raise ProfileError(f"Invalid agent profile {profile_path}: {e}") from e

    logger.debug(f"Loaded agent profile from {profile_path} (name={profile.name or 'default'})")
    return profile
