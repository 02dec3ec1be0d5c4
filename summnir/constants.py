"""Shared constants for summnir runs and job directories."""

from __future__ import annotations

PROGRAM_NAME = "summnir"
VERSION = "0.1.0"

DEFAULT_CHARACTER_ENCODING = "utf-8"
DEFAULT_FILE_PATTERN = "**/*"

DEFAULT_MODEL = "gpt-4o"
ALLOWED_MODELS: tuple[str, ...] = (
    "gpt-4o",
    "gpt-4o-mini",
    "o1-preview",
    "o1-mini",
    "o3-mini",
    "o3-preview",
    "o1-pro",
    "o1-preview-2024-09-12",
)

DEFAULT_CONFIG_DIR = f"./.{PROGRAM_NAME}"
DEFAULT_CONTEXT_DIR = "./context"
DEFAULT_ACTIVITY_DIR = "./activity"
DEFAULT_SUMMARY_DIR = "./summary"

DEFAULT_HISTORY_MONTHS = 1
DEFAULT_SUMMARY_MONTHS = 1

PROGRAM_CONFIG_FILE = "config.yaml"
JOB_CONFIG_FILE = "config.yaml"
JOB_PERSONA_PROMPT_FILE = "persona.md"
JOB_INSTRUCTIONS_PROMPT_FILE = "instructions.md"
JOB_REQUIRED_FILES: tuple[str, ...] = (
    JOB_CONFIG_FILE,
    JOB_PERSONA_PROMPT_FILE,
    JOB_INSTRUCTIONS_PROMPT_FILE,
)

# o1-preview and o1-mini accept neither system nor developer messages
USER_PERSONA_MODELS: tuple[str, ...] = ("o1-preview", "o1-mini", "o1-preview-2024-09-12")
DEVELOPER_PERSONA_PREFIXES: tuple[str, ...] = ("o1", "o3")

OUTPUT_SUMMARY_KEY = "summary"
OUTPUT_COMPLETION_KEY = "completion"
OUTPUT_INPUTS_KEY = "inputs"


__all__ = [
    "ALLOWED_MODELS",
    "DEFAULT_ACTIVITY_DIR",
    "DEFAULT_CHARACTER_ENCODING",
    "DEFAULT_CONFIG_DIR",
    "DEFAULT_CONTEXT_DIR",
    "DEFAULT_FILE_PATTERN",
    "DEFAULT_HISTORY_MONTHS",
    "DEFAULT_MODEL",
    "DEFAULT_SUMMARY_DIR",
    "DEFAULT_SUMMARY_MONTHS",
    "DEVELOPER_PERSONA_PREFIXES",
    "JOB_CONFIG_FILE",
    "JOB_INSTRUCTIONS_PROMPT_FILE",
    "JOB_PERSONA_PROMPT_FILE",
    "JOB_REQUIRED_FILES",
    "OUTPUT_COMPLETION_KEY",
    "OUTPUT_INPUTS_KEY",
    "OUTPUT_SUMMARY_KEY",
    "PROGRAM_CONFIG_FILE",
    "PROGRAM_NAME",
    "USER_PERSONA_MODELS",
    "VERSION",
]
