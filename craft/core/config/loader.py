"""
Configuration loader — reads a template's craft config into a TemplateSpec.

Two forms are accepted at the template root, checked in this order:

    craft.yaml / craft.yml   structured form (YAML)
    craft.spec               legacy line form, one ``path: directive`` per line

A broken configuration never aborts a run: the loader warns and falls
back to the defaults.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

import yaml

from craft.core.models.spec import (
    LINE_CONFIG_FILE,
    STRUCTURED_CONFIG_FILES,
    Directive,
    TemplateSpec,
    default_spec,
    normalize_path,
)

logger = logging.getLogger(__name__)

# Directives a structured config may declare; ``merge`` is reserved for the manifest
STRUCTURED_DIRECTIVES = (Directive.IGNORE, Directive.DELETE, Directive.REPLACE)

_LINE_RE = re.compile(r"^\s*(?P<path>[^:]+?)\s*:\s*(?P<directive>\S+)\s*$")


class ConfigError(Exception):
    """Raised when a template's craft configuration cannot be parsed."""


def find_config_file(template_dir: Path) -> Path | None:
    """Return the first craft config present in the template root, if any."""
    for name in (*STRUCTURED_CONFIG_FILES, LINE_CONFIG_FILE):
        candidate = template_dir / name
        if candidate.is_file():
            return candidate
    return None


def load_spec(template_dir: Path) -> TemplateSpec:
    """Build the run's spec: defaults overlaid by the template's config.

    Args:
        template_dir: Root of the cloned template.

    Returns:
        The merged TemplateSpec. Defaults when no config exists or when
        the config cannot be read.
    """
    defaults = default_spec()

    path = find_config_file(template_dir)
    if path is None:
        logger.debug("No craft configuration in %s, using defaults", template_dir)
        return defaults

    logger.info("Using craft configuration from %s.", path.name)

    try:
        overrides = read_config(path)
    except ConfigError as e:
        logger.warning("Failed to read %s. Using defaults.", path.name)
        logger.warning("%s", e)
        return defaults

    return defaults.with_overrides(overrides)


def read_config(path: Path) -> dict[str, Directive]:
    """Parse one config file into path → directive overrides.

    Raises:
        ConfigError: If the file cannot be read or is malformed.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    if path.name == LINE_CONFIG_FILE:
        return parse_line_config(raw)

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    return parse_structured_config(data)


def parse_structured_config(data: Any) -> dict[str, Directive]:
    """Parse the structured form.

    Expected shape::

        spec:
          ignore: README.md
          delete:
            - src/logo.svg
          replace: [public/index.html]
    """
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping, got {type(data).__name__}")

    section = data.get("spec")
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigError(f"Expected 'spec' to be a mapping, got {type(section).__name__}")

    overrides: dict[str, Directive] = {}
    for name, value in section.items():
        if name not in STRUCTURED_DIRECTIVES:
            logger.warning("Invalid directive: %s.", name)
            continue

        directive = Directive(name)
        values = value if isinstance(value, list) else [value]
        for item in values:
            # bool is an int subclass, both are accepted as path names
            if isinstance(item, (str, int, float)):
                overrides[normalize_path(_scalar_str(item))] = directive
            else:
                logger.warning("Invalid value for directive %s: %r.", name, item)

    return overrides


def parse_line_config(text: str) -> dict[str, Directive]:
    """Parse the legacy line form (``path: directive``, ``#`` comments)."""
    overrides: dict[str, Directive] = {}

    for lineno, line in enumerate(text.splitlines(), start=1):
        if not line.strip() or line.startswith("#"):
            continue

        match = _LINE_RE.match(line)
        if match is None:
            logger.warning("Ignoring malformed line %d: %r", lineno, line)
            continue

        path = normalize_path(match.group("path"))
        token = match.group("directive")
        try:
            directive = Directive(token)
        except ValueError:
            logger.warning("Invalid directive %s for %s on line %d.", token, path, lineno)
            continue

        overrides[path] = directive

    return overrides


def _scalar_str(value: str | int | float | bool) -> str:
    """Stringify a YAML scalar the way it was written (true, not True)."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
