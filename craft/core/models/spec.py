"""
Template spec — the path-to-directive policy for one run.

The spec decides, for each path relative to the template root, whether
the template copy is ignored, deleted from the generated app, copied over
it, or (for the manifest only) merged with it.

Specs are immutable. ``default_spec()`` builds the baseline mapping and
``with_overrides()`` returns a new spec with explicit entries layered on
top, so the defaults are never mutated in place.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from enum import StrEnum
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, field_validator

MANIFEST_FILE = "package.json"
LOCK_FILE = "package-lock.json"
DEPENDENCY_DIR = "node_modules"
VCS_DIR = ".git"

# Names under which a template may ship its own craft configuration
STRUCTURED_CONFIG_FILES = ("craft.yaml", "craft.yml")
LINE_CONFIG_FILE = "craft.spec"
CONFIG_FILES = (*STRUCTURED_CONFIG_FILES, LINE_CONFIG_FILE)


class Directive(StrEnum):
    """What to do with a template path."""

    IGNORE = "ignore"
    DELETE = "delete"
    REPLACE = "replace"
    MERGE = "merge"


def normalize_path(path: str) -> str:
    """Rewrite forward slashes to the host separator and drop trailing ones."""
    normalized = path.strip().replace("/", os.sep)
    return normalized.rstrip(os.sep) or normalized


class TemplateSpec(BaseModel):
    """Immutable mapping of relative path → Directive."""

    model_config = ConfigDict(frozen=True, validate_default=True)

    entries: Mapping[str, Directive] = {}

    @field_validator("entries", mode="after")
    @classmethod
    def _freeze(cls, value: Mapping[str, Directive]) -> Mapping[str, Directive]:
        return MappingProxyType(dict(value))

    # ── Mapping-style access ────────────────────────────────────

    def __contains__(self, path: object) -> bool:
        return path in self.entries

    def get(self, path: str) -> Directive | None:
        """Directive for an exact (normalized) path, or None."""
        return self.entries.get(path)

    def paths(self) -> list[str]:
        return list(self.entries)

    def paths_with(self, directive: Directive) -> list[str]:
        """All paths carrying the given directive, in insertion order."""
        return [p for p, d in self.entries.items() if d == directive]

    def skips(self, path: str) -> bool:
        """Whether a template path must not be copied.

        Anything with a directive other than ``replace`` is skipped.
        Paths absent from the spec are copied.
        """
        directive = self.entries.get(path)
        return directive is not None and directive != Directive.REPLACE

    @property
    def merges_manifest(self) -> bool:
        return self.entries.get(MANIFEST_FILE) == Directive.MERGE

    # ── Functional merge ────────────────────────────────────────

    def with_overrides(self, overrides: Mapping[str, Directive]) -> TemplateSpec:
        """Return a new spec where ``overrides`` win over existing entries."""
        merged = dict(self.entries)
        merged.update(overrides)
        return TemplateSpec(entries=merged)

    def to_dict(self) -> dict[str, str]:
        return {path: directive.value for path, directive in self.entries.items()}


def default_spec() -> TemplateSpec:
    """The spec every run starts from before the template's own config."""
    entries: dict[str, Directive] = {
        DEPENDENCY_DIR: Directive.IGNORE,
        MANIFEST_FILE: Directive.MERGE,
        LOCK_FILE: Directive.IGNORE,
        VCS_DIR: Directive.IGNORE,
    }
    for name in CONFIG_FILES:
        entries[name] = Directive.IGNORE
    return TemplateSpec(entries=entries)
