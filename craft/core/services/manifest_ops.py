"""
Manifest reconciliation — merge the template's package.json into the app's.

The generated app's dependency versions always win: template dependencies
already present in the app are never reinstalled, downgraded or
duplicated. Fields follow the same precedence (app over template) except
for ``scripts``, where template entries win over the app's, and
``eslintConfig``, where the template's value is taken whenever it has one.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from craft.adapters.registry import AdapterRegistry
from craft.core.models.action import Action, Receipt
from craft.core.models.spec import MANIFEST_FILE, TemplateSpec

logger = logging.getLogger(__name__)

ADAPTER = "manifest"


def read_manifest(path: Path) -> dict[str, Any] | None:
    """Load a package.json, or None when missing or not a JSON object."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        logger.debug("No manifest at %s", path)
        return None
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning("Cannot read %s: %s", path, e)
        return None

    if not isinstance(data, dict):
        logger.warning("Expected a JSON object in %s, got %s", path, type(data).__name__)
        return None
    return data


def missing_dependencies(
    template: dict[str, Any],
    app: dict[str, Any],
) -> dict[str, str]:
    """Template dependencies whose names the app does not declare yet."""
    template_deps = template.get("dependencies") or {}
    app_deps = app.get("dependencies") or {}
    return {
        name: version
        for name, version in template_deps.items()
        if name not in app_deps
    }


def merge_manifests(template: dict[str, Any], app: dict[str, Any]) -> dict[str, Any]:
    """Merge two manifests; see the module docstring for precedence."""
    merged = {**template, **app}

    merged["scripts"] = {**(app.get("scripts") or {}), **(template.get("scripts") or {})}

    eslint_config = template.get("eslintConfig")
    if eslint_config is None:
        eslint_config = app.get("eslintConfig")
    if eslint_config is None:
        merged.pop("eslintConfig", None)
    else:
        merged["eslintConfig"] = eslint_config

    return merged


def render_manifest(manifest: dict[str, Any]) -> str:
    """Serialize the way npm does: 2-space indent, trailing newline."""
    return json.dumps(manifest, indent=2, ensure_ascii=False) + "\n"


def reconcile_manifest(
    spec: TemplateSpec,
    template_dir: Path,
    project_root: Path,
    registry: AdapterRegistry,
    dry_run: bool = False,
    operation_id: str = "",
) -> Receipt:
    """Install template-only dependencies and rewrite the app's package.json.

    Returns:
        ``skipped`` when the spec does not merge the manifest or either
        manifest is unreadable; ``failed`` when npm install or the write
        fails; ``ok`` otherwise, with the installed packages in
        ``metadata["installed"]``. Dry runs return ``skipped`` with the
        packages a real run would install in ``metadata["packages"]``.
    """
    action_id = f"{operation_id}:manifest"

    if not spec.merges_manifest:
        return Receipt.skip(
            adapter=ADAPTER,
            action_id=action_id,
            reason=f"{MANIFEST_FILE} directive is {spec.get(MANIFEST_FILE)}",
        )

    template = read_manifest(template_dir / MANIFEST_FILE)
    if template is None:
        return Receipt.skip(ADAPTER, action_id, reason=f"Template has no usable {MANIFEST_FILE}")

    app_path = project_root / MANIFEST_FILE
    app = read_manifest(app_path)
    if app is None and dry_run:
        # a dry run never generates the app, so every template dependency is a candidate
        return _dry_run_receipt(action_id, missing_dependencies(template, {}), generated=False)
    if app is None:
        return Receipt.skip(ADAPTER, action_id, reason=f"App has no usable {MANIFEST_FILE}")

    to_install = missing_dependencies(template, app)
    if to_install:
        install = registry.execute_action(
            Action(
                id=f"{operation_id}:install",
                adapter="node",
                label="npm install",
                params={
                    "operation": "install",
                    "packages": to_install,
                    "cwd": str(project_root),
                },
            ),
            project_root=str(project_root),
            dry_run=dry_run,
        )
        if install.failed:
            return install
    else:
        logger.info("No template dependencies to install")

    if dry_run:
        return _dry_run_receipt(action_id, to_install, generated=True)

    # npm rewrote the app manifest with the new dependencies
    app = read_manifest(app_path)
    if app is None:
        return Receipt.failure(
            ADAPTER,
            action_id,
            error=f"{app_path} unreadable after install",
        )

    write = registry.execute_action(
        Action(
            id=f"{operation_id}:write-manifest",
            adapter="filesystem",
            label=MANIFEST_FILE,
            params={
                "operation": "write",
                "path": MANIFEST_FILE,
                "content": render_manifest(merge_manifests(template, app)),
            },
        ),
        project_root=str(project_root),
    )
    if write.failed:
        return write

    return Receipt.success(
        ADAPTER,
        action_id,
        output=f"Merged {MANIFEST_FILE}",
        label=MANIFEST_FILE,
        metadata={"installed": sorted(to_install), "path": str(app_path)},
    )


def _dry_run_receipt(action_id: str, packages: dict[str, str], generated: bool) -> Receipt:
    """What a real run would install, without touching the app.

    ``generated`` is False when the app does not exist yet; ``packages``
    then holds every template dependency, some of which the generator may
    already provide.
    """
    return Receipt.skip(
        ADAPTER,
        action_id,
        reason=f"[dry-run] Would merge {MANIFEST_FILE}",
        metadata={
            "installed": sorted(packages),
            "packages": dict(packages),
            "generated": generated,
            "dry_run": True,
        },
    )
