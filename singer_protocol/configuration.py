"""Settings of the Singer protocol tools, from JSON files and environment variables."""

from __future__ import annotations

import json
import logging
import os
import typing as t
from dataclasses import asdict, dataclass, fields
from pathlib import Path

import jsonschema
from dotenv import find_dotenv
from dotenv.main import DotEnv

from singer_protocol.exceptions import ConfigValidationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "SINGER_PROTOCOL_"
TRUTHY = ("true", "1", "yes", "on")

CONFIG_JSONSCHEMA: dict[str, t.Any] = {
    "type": "object",
    "properties": {
        "batch_enabled": {
            "type": "boolean",
            "description": "Decode BATCH messages instead of treating them as unknown.",
        },
        "require_key_properties": {
            "type": "boolean",
            "description": "Reject records that lack a key property of their stream.",
        },
        "validate_records": {
            "type": "boolean",
            "description": "Validate record bodies against their stream's schema.",
        },
        "validate_formats": {
            "type": "boolean",
            "description": "Also validate JSON Schema string formats.",
        },
        "fail_fast": {
            "type": "boolean",
            "description": "Stop at the first line that cannot be decoded.",
        },
        "log_level": {
            "type": "string",
            "enum": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        },
        "log_format": {
            "type": "string",
            "enum": ["console", "json"],
        },
        "metrics_log_level": {
            "type": "string",
            "enum": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        },
    },
    "additionalProperties": False,
}


@dataclass
class CodecConfig:
    """Settings of a reading session."""

    batch_enabled: bool = True
    require_key_properties: bool = False
    validate_records: bool = False
    validate_formats: bool = False
    fail_fast: bool = False
    log_level: str = "INFO"
    log_format: str = "console"
    metrics_log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: t.Mapping[str, t.Any]) -> CodecConfig:
        """Build settings from a configuration dictionary.

        Args:
            data: A configuration dictionary.

        Returns:
            The settings, with defaults for every missing key.
        """
        validate_config(data)
        names = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in names})

    def to_dict(self) -> dict[str, t.Any]:
        """Return a dictionary representation of the settings.

        Returns:
            The settings as a configuration dictionary.
        """
        return asdict(self)

    def merge(self, **overrides: t.Any) -> CodecConfig:
        """Return a copy with the non-None overrides applied.

        Args:
            overrides: Setting values, usually from command line options.

        Returns:
            The merged settings.
        """
        data = self.to_dict()
        data.update({key: value for key, value in overrides.items() if value is not None})
        return type(self).from_dict(data)


def _format_validation_error(error: jsonschema.ValidationError) -> str:
    """Format a JSON Schema validation error.

    Args:
        error: A JSON Schema validation error.

    Returns:
        A formatted error message.
    """
    result = f"{error.message}"

    if error.path:
        result += f" in config[{']['.join(repr(index) for index in error.path)}]"

    return result


def validate_config(config: t.Mapping[str, t.Any]) -> None:
    """Validate a configuration dictionary.

    Args:
        config: The configuration dictionary.

    Raises:
        ConfigValidationError: If the configuration does not match
            :data:`CONFIG_JSONSCHEMA`.
    """
    validator = jsonschema.Draft7Validator(CONFIG_JSONSCHEMA)
    errors = [
        _format_validation_error(e) for e in validator.iter_errors(dict(config))
    ]
    if errors:
        summary = f"Config validation failed: {'; '.join(errors)}"
        raise ConfigValidationError(summary, errors=errors)


def parse_environment_config(
    config_schema: dict[str, t.Any],
    prefix: str,
    dotenv_path: str | None = None,
) -> dict[str, t.Any]:
    """Parse configuration from environment variables.

    Args:
        config_schema: A JSON Schema dictionary for the configuration.
        prefix: Prefix for environment variables.
        dotenv_path: Path to a .env file. If None, will try to find one in increasingly
            higher folders.

    Returns:
        A configuration dictionary.
    """
    result: dict[str, t.Any] = {}

    if not dotenv_path:
        dotenv_path = find_dotenv(usecwd=True)

    if dotenv_path:
        logger.debug("Loading configuration from %s", dotenv_path)
        DotEnv(dotenv_path).set_as_environment_variables()

    for config_key, schema in config_schema.get("properties", {}).items():
        env_var_name = prefix + config_key.upper().replace("-", "_")
        if env_var_name not in os.environ:
            continue

        env_var_value = os.environ[env_var_name]
        logger.debug(
            "Parsing '%s' config from env variable '%s'.",
            config_key,
            env_var_name,
        )
        if schema.get("type") == "boolean":
            result[config_key] = env_var_value.lower() in TRUTHY
        elif schema.get("type") == "integer":
            result[config_key] = int(env_var_value)
        elif schema.get("type") in {"array", "object"}:
            result[config_key] = json.loads(env_var_value)
        elif (
            "enum" in schema
            and env_var_value not in schema["enum"]
            and env_var_value.upper() in schema["enum"]
        ):
            # Log levels are accepted in any case
            result[config_key] = env_var_value.upper()
        else:
            result[config_key] = env_var_value
    return result


def read_json_file(path: Path) -> dict[str, t.Any]:
    """Read a JSON configuration file.

    Args:
        path: Path of the file.

    Returns:
        The configuration dictionary.

    Raises:
        ConfigValidationError: If the file does not hold a JSON object.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        msg = f"Config file '{path}' is not valid JSON: {exc}"
        raise ConfigValidationError(msg, errors=[msg]) from exc

    if not isinstance(data, dict):
        msg = f"Config file '{path}' must hold a JSON object"
        raise ConfigValidationError(msg, errors=[msg])
    return data


def merge_config_sources(
    inputs: t.Iterable[str],
    config_schema: dict[str, t.Any] = CONFIG_JSONSCHEMA,
    env_prefix: str = ENV_PREFIX,
) -> dict[str, t.Any]:
    """Merge configuration from multiple sources into a single dictionary.

    Args:
        inputs: A sequence of configuration sources (file paths or ENV).
        config_schema: A JSON Schema dictionary for the configuration.
        env_prefix: Prefix for environment variables.

    Raises:
        FileNotFoundError: If any of config files does not exist.

    Returns:
        A single configuration dictionary.
    """
    config: dict[str, t.Any] = {}
    for config_input in inputs:
        if config_input == "ENV":
            env_config = parse_environment_config(config_schema, prefix=env_prefix)
            config.update(env_config)
            continue

        config_path = Path(config_input)

        if not config_path.is_file():
            msg = (
                f"Could not locate config file at '{config_path}'. Please check that "
                "the file exists."
            )
            raise FileNotFoundError(msg)

        config.update(read_json_file(config_path))

    return config


def load_config(inputs: t.Iterable[str]) -> CodecConfig:
    """Load and validate settings from configuration sources.

    Args:
        inputs: A sequence of configuration sources (file paths or ENV).

    Returns:
        The settings.
    """
    return CodecConfig.from_dict(merge_config_sources(inputs))
