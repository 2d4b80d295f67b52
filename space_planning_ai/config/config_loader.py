"""
Configuration loader for Space Planning AI.
This module loads planning parameters from data files and advisor
settings from the environment, and provides a clean API for accessing
configuration throughout the project.
"""

import os
import json
import logging
from typing import Dict, Any, Optional

from dotenv import load_dotenv

from space_planning_ai.advisors.base_advisor import AdvisorError, BaseAdvisor
from space_planning_ai.core.pipeline import DEFAULT_PARAMETERS

logger = logging.getLogger(__name__)

# Move up three directories from this file to get to project root
BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
DATA_DIR = os.path.join(BASE_DIR, "data")

# Sub-directories for configuration data
PLANNING_DIR = os.path.join(DATA_DIR, "planning")
BRIEFS_DIR = os.path.join(DATA_DIR, "briefs")

ADVISOR_KINDS = ("none", "openai")

# Default planning parameters if no file overrides them
DEFAULT_PLANNING_PARAMETERS: Dict[str, Any] = dict(DEFAULT_PARAMETERS)


def _load_json_file(filepath: str, default: Any = None) -> Any:
    """
    Load a JSON file with error handling.

    Args:
        filepath: Path to the JSON file
        default: Default value to return if file doesn't exist or has errors

    Returns:
        Loaded JSON data or default value
    """
    if not os.path.exists(filepath):
        return default
    try:
        with open(filepath, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"Could not read {filepath}: {e}")
        return default


def get_planning_parameters(name: str = "default") -> Dict[str, Any]:
    """
    Get planning parameters.

    Args:
        name: Name of the parameter file in data/planning, or a path to a JSON file

    Returns:
        Dictionary of planning parameters
    """
    if name.endswith(".json"):
        filepath = name
    else:
        filepath = os.path.join(PLANNING_DIR, f"{name}.json")

    loaded = _load_json_file(filepath, {})
    if not isinstance(loaded, dict):
        logger.warning(f"Ignoring {filepath}: expected a JSON object")
        loaded = {}

    result = dict(DEFAULT_PLANNING_PARAMETERS)
    for key, value in loaded.items():
        if key in DEFAULT_PLANNING_PARAMETERS:
            result[key] = value
        else:
            logger.debug(f"Unknown planning parameter '{key}' in {filepath}")

    return result


def get_advisor_settings() -> Dict[str, Any]:
    """
    Get advisor settings from the environment (and a .env file if present).

    Returns:
        Dictionary with api_key, model, timeout and base_url
    """
    load_dotenv()

    timeout = os.getenv("SPACE_PLANNING_ADVISOR_TIMEOUT", "")
    try:
        timeout_value = (
            float(timeout) if timeout else DEFAULT_PLANNING_PARAMETERS["advisor_timeout"]
        )
    except ValueError:
        logger.warning(f"Invalid SPACE_PLANNING_ADVISOR_TIMEOUT '{timeout}', using default")
        timeout_value = DEFAULT_PLANNING_PARAMETERS["advisor_timeout"]

    return {
        "api_key": os.getenv("OPENAI_API_KEY", ""),
        "model": os.getenv("SPACE_PLANNING_MODEL", "gpt-4o-mini"),
        "timeout": timeout_value,
        "base_url": os.getenv("OPENAI_BASE_URL") or None,
    }


def create_advisor(
    kind: str = "none", settings: Optional[Dict[str, Any]] = None
) -> Optional[BaseAdvisor]:
    """
    Build an advisor by name.

    Args:
        kind: "none" or "openai"
        settings: Advisor settings (defaults to get_advisor_settings())

    Returns:
        BaseAdvisor or None for "none"

    Raises:
        ValueError: Unknown advisor kind
        AdvisorError: The advisor cannot be configured (e.g. missing API key)
    """
    if kind not in ADVISOR_KINDS:
        raise ValueError(f"Unknown advisor '{kind}', expected one of {ADVISOR_KINDS}")
    if kind == "none":
        return None

    settings = settings or get_advisor_settings()
    if not settings.get("api_key"):
        raise AdvisorError("OPENAI_API_KEY is not set")

    # Imported here so the OpenAI client is only built when requested
    from space_planning_ai.advisors.openai_advisor import OpenAIAdvisor

    return OpenAIAdvisor(
        api_key=settings["api_key"],
        model=settings.get("model", "gpt-4o-mini"),
        timeout=settings.get("timeout", DEFAULT_PLANNING_PARAMETERS["advisor_timeout"]),
        base_url=settings.get("base_url"),
    )


def save_default_files():
    """
    Create default data files if they don't exist.
    This is useful for first-time setup.
    """
    os.makedirs(PLANNING_DIR, exist_ok=True)
    planning_file = os.path.join(PLANNING_DIR, "default.json")
    if not os.path.exists(planning_file):
        with open(planning_file, "w", encoding="utf-8") as f:
            json.dump(DEFAULT_PLANNING_PARAMETERS, f, indent=2)
