"""Gate configuration loading.

Finds the project's gate config, validates it against CONFIG_SCHEMA,
applies defaults, drops disabled gates and returns the remaining gates
in run order.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import jsonschema

from .common import DEFAULT_ORDER
from .gates.result import GateSpec

logger = logging.getLogger(__name__)

# Searched in order; the first one found wins
CONFIG_FILES = ["gate.config.json", ".gaterc.json", ".gaterc"]

CONFIG_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "ralph-gate config",
    "type": "object",
    "required": ["gates"],
    "properties": {
        "gates": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["name", "command"],
                "properties": {
                    "name": {"type": "string"},
                    "command": {"type": "string"},
                    "description": {"type": "string"},
                    "order": {"type": "number"},
                    "enabled": {"type": "boolean"},
                    "blocking": {"type": "boolean"},
                },
            },
        },
        "failFast": {"type": "boolean"},
        "outputPath": {"type": "string"},
    },
}


class ConfigError(Exception):
    """Raised when a config file exists but cannot be used."""

    def __init__(self, message: str, path: Optional[Path] = None):
        self.path = path
        super().__init__(f"Invalid config: {message}")


@dataclass
class GateConfig:
    """A loaded, validated gate configuration."""

    gates: list[GateSpec] = field(default_factory=list)
    fail_fast: bool = True
    output_path: Optional[str] = None
    config_path: Optional[Path] = None

    def find_gate(self, name: str) -> Optional[GateSpec]:
        """Get a gate by name."""
        for gate in self.gates:
            if gate.name == name:
                return gate
        return None


def find_config_file(cwd: Path) -> Optional[Path]:
    """Return the first config file present in a directory."""
    for filename in CONFIG_FILES:
        path = Path(cwd) / filename
        if path.is_file():
            return path
    return None


def _schema_message(error: jsonschema.ValidationError) -> str:
    """Describe a schema violation with its location in the document."""
    location = "".join(
        f"[{p}]" if isinstance(p, int) else f".{p}" for p in error.absolute_path
    )
    if location:
        return f"{location.lstrip('.')}: {error.message}"
    return error.message


def _check_required(raw_gate: dict) -> None:
    """Reject blank names and commands, which the schema alone allows."""
    name = raw_gate.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ValueError("Gate is missing required field: name.")
    command = raw_gate.get("command")
    if not isinstance(command, str) or not command.strip():
        raise ValueError(f"Gate '{name}' is missing required field: command.")


def parse_config(data: object, path: Optional[Path] = None) -> GateConfig:
    """Validate a parsed config document and build a GateConfig.

    Args:
        data: Parsed JSON document.
        path: File the document came from (for error messages).

    Raises:
        ConfigError: If the document is not a valid config.
    """
    filename = path.name if path else "config"

    if not isinstance(data, dict):
        raise ConfigError(f"expected object in {filename}.", path)
    if not isinstance(data.get("gates"), list):
        raise ConfigError(f"missing required 'gates' array in {filename}.", path)

    # Required fields are checked first so their messages stay specific.
    for raw_gate in data["gates"]:
        if not isinstance(raw_gate, dict):
            raise ConfigError("Gate entries must be objects.", path)
        try:
            _check_required(raw_gate)
        except ValueError as e:
            raise ConfigError(str(e), path) from e

    validator = jsonschema.Draft7Validator(CONFIG_SCHEMA)
    errors = sorted(validator.iter_errors(data), key=lambda e: list(e.absolute_path))
    if errors:
        raise ConfigError(f"{_schema_message(errors[0])} in {filename}.", path)

    gates = []
    for raw_gate in data["gates"]:
        if not raw_gate.get("enabled", True):
            continue
        gates.append(
            GateSpec(
                name=raw_gate["name"],
                command=raw_gate["command"],
                order=raw_gate.get("order", DEFAULT_ORDER),
                blocking=raw_gate.get("blocking", True),
                description=raw_gate.get("description"),
            )
        )

    # sorted() is stable: equal orders keep declaration order.
    gates = sorted(gates, key=lambda g: g.order)

    return GateConfig(
        gates=gates,
        fail_fast=data.get("failFast", True),
        output_path=data.get("outputPath"),
        config_path=path,
    )


def load_config(cwd: Optional[Path] = None) -> Optional[GateConfig]:
    """Find and load the gate config for a directory.

    Args:
        cwd: Directory to search (default: current directory).

    Returns:
        GateConfig, or None if no config file exists.

    Raises:
        ConfigError: If a config file exists but is unreadable or invalid.
    """
    path = find_config_file(Path(cwd) if cwd is not None else Path.cwd())
    if path is None:
        logger.debug("No gate config found")
        return None

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"unable to read {path.name}: {e}", path) from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigError(f"malformed JSON in {path.name}: {e}", path) from e

    config = parse_config(data, path)
    logger.debug("Loaded %d gates from %s", len(config.gates), path)
    return config
