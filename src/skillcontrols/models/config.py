"""Configuration settings and the default prompt catalog."""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import ConfigDict
from pydantic_settings import BaseSettings

# =============================================================================
# Prompt Catalog - default user-facing strings
# =============================================================================

DEFAULT_PROMPTS: dict[str, str] = {
    # ValueControl prompts
    "value_control.prompt.value_set": "OK, {value}.",
    "value_control.prompt.value_changed": "OK, I changed it to {value}.",
    "value_control.prompt.invalid_value_with_reason": (
        "Sorry, {value} is not a valid choice because {reason}."
    ),
    "value_control.prompt.invalid_value": "Sorry, {value} is not a valid choice.",
    "value_control.prompt.request_value": "What value would you like?",
    "value_control.prompt.request_changed_value": "What should I change it to?",
    "value_control.prompt.confirm_value": "Was that {value}?",
    "value_control.prompt.value_affirmed": "Great.",
    "value_control.prompt.value_disaffirmed": "My mistake.",
    # ValueControl reprompts
    "value_control.reprompt.value_set": "OK, {value}.",
    "value_control.reprompt.value_changed": "OK, I changed it to {value}.",
    "value_control.reprompt.invalid_value_with_reason": (
        "Sorry, {value} is not a valid choice because {reason}."
    ),
    "value_control.reprompt.invalid_value": "Sorry, {value} is not a valid choice.",
    "value_control.reprompt.request_value": "What value would you like?",
    "value_control.reprompt.request_changed_value": "What should I change it to?",
    "value_control.reprompt.confirm_value": "Was that {value}?",
    "value_control.reprompt.value_affirmed": "Great.",
    "value_control.reprompt.value_disaffirmed": "My mistake.",
    # NumberControl
    "number_control.prompt.request_value": "What number?",
    "number_control.reason.not_a_number": "it is not a number",
    "number_control.reason.below_minimum": "it must be at least {minimum}",
    "number_control.reason.above_maximum": "it must be at most {maximum}",
    # DateControl
    "date_control.prompt.request_value": "What date?",
    "date_control.reason.invalid_date": "it is not a date I understand",
    # ListControl
    "list_control.prompt.request_value": "What is your selection?",
    "list_control.prompt.suggestions": "Some suggestions are {suggestions}.",
    "list_control.reason.not_in_list": "it is not one of the options",
    "list_control.conjunction": "or",
}


class PromptCatalog:
    """Lookup table of default prompt strings.

    Loads overrides from a YAML file (a flat mapping of catalog key to string)
    and falls back to the built-in English defaults for missing keys.
    """

    def __init__(self, overrides: dict[str, str] | None = None) -> None:
        self._prompts: dict[str, str] = {**DEFAULT_PROMPTS, **(overrides or {})}

    @classmethod
    def from_file(cls, path: str | Path | None) -> "PromptCatalog":
        """Build a catalog from an optional YAML override file."""
        if not path:
            return cls()
        path = Path(path)
        if not path.exists():
            return cls()
        with open(path) as f:
            data: Any = yaml.safe_load(f) or {}
        return cls({str(k): str(v) for k, v in data.items()})

    def get(self, key: str, **kwargs: Any) -> str:
        """Get a formatted prompt string.

        Args:
            key: Catalog key, e.g. 'value_control.prompt.value_set'.
            **kwargs: Values substituted into the template.

        Raises:
            KeyError: If the key is unknown.
        """
        template = self._prompts[key]
        return template.format(**kwargs) if kwargs else template

    def __contains__(self, key: str) -> bool:
        return key in self._prompts


# =============================================================================
# Application Settings
# =============================================================================


class CanHandleThrowBehavior(str, Enum):
    """What to do when an exception escapes ``can_handle``."""

    RETHROW = "rethrow"  # Propagate to the caller
    RETURN_FALSE = "return_false"  # Report the turn as not handled
    CUSTOM = "custom"  # Handle the turn with the manager's error hook


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables."""

    model_config = ConfigDict(
        env_prefix="SKILLCONTROLS_",
        env_file=".env",
        extra="ignore",
    )

    env: str = "development"
    log_level: str = "INFO"

    # Error containment
    can_handle_throw_behavior: CanHandleThrowBehavior = CanHandleThrowBehavior.CUSTOM
    fallback_message: str = "Sorry, something went wrong. Please try again later."
    unhandled_message: str = "Unable to find a suitable request handler."

    # Prompts
    prompts_file: str = ""

    # Session state
    state_attribute_key: str = "__controlState"
    session_ttl_seconds: int = 3600


def get_settings() -> Settings:
    """Get a fresh settings instance."""
    return Settings()


@lru_cache
def get_prompt_catalog() -> PromptCatalog:
    """Get the cached prompt catalog for the configured prompts file."""
    return PromptCatalog.from_file(get_settings().prompts_file)
