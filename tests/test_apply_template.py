"""
Tests for the apply-template pipeline, end to end with mocked git and node.
"""

import json
from pathlib import Path

import pytest

import craft.core.use_cases.apply_template as apply_module
from craft.adapters.base import ExecutionContext
from craft.core.models.spec import default_spec
from craft.core.use_cases.apply_template import (
    RunContext,
    apply_template,
    clone_template,
    copy_files,
    delete_files,
)

from conftest import write_file, write_json

TEMPLATE_URL = "https://example.com/react-template.git"


def fake_create_app(ctx: ExecutionContext) -> None:
    root = Path(ctx.params["cwd"]) / ctx.params["name"]
    write_json(root, "package.json", {
        "name": ctx.params["name"],
        "dependencies": {"react": "^18.2.0"},
        "scripts": {"start": "react-scripts start"},
    })
    write_file(root, "src/App.js", "generated app")
    write_file(root, "src/logo.svg", "<svg/>")
    write_file(root, "src/index.js", "generated index")
    write_file(root, "README.md", "generated readme")


def fake_clone(ctx: ExecutionContext) -> None:
    dest = Path(ctx.params["dest"])
    write_file(dest, ".git/HEAD", "ref: refs/heads/main")
    write_file(dest, "node_modules/junk/index.js")
    write_file(dest, "craft.yaml", "spec:\n  delete: src/logo.svg\n  ignore: README.md\n")
    write_file(dest, "README.md", "template readme")
    write_file(dest, "src/App.js", "template app")
    write_file(dest, ".eslintrc", "{}")
    write_json(dest, "package.json", {
        "name": "template",
        "dependencies": {"react": "^17.0.0", "lodash": "^4.0.0"},
        "scripts": {"lint": "eslint src"},
    })


def fake_npm_install(ctx: ExecutionContext) -> None:
    path = Path(ctx.params["cwd"]) / "package.json"
    manifest = json.loads(path.read_text())
    manifest["dependencies"].update(ctx.params["packages"])
    path.write_text(json.dumps(manifest))


@pytest.fixture(autouse=True)
def fixed_operation_id(monkeypatch):
    monkeypatch.setattr(apply_module, "generate_operation_id", lambda: "op-test")


@pytest.fixture
def scripted(registry, node_mock, git_mock):
    """Registry whose node and git mocks leave real files behind."""
    node_mock.set_side_effect("op-test:generate", fake_create_app)
    node_mock.set_side_effect("op-test:install", fake_npm_install)
    git_mock.set_side_effect("op-test:clone", fake_clone)
    return registry


class TestApplyTemplate:
    def test_full_run(self, tmp_path: Path, scripted):
        result = apply_template("my-app", TEMPLATE_URL, registry=scripted, cwd=tmp_path)

        assert result.ok, result.error
        app = tmp_path / "my-app"
        assert result.project_root == app
        assert (app / "src" / "App.js").read_text() == "template app"
        assert (app / "src" / "index.js").read_text() == "generated index"
        assert not (app / "src" / "logo.svg").exists()
        assert (app / "README.md").read_text() == "generated readme"
        assert (app / ".eslintrc").exists()
        assert not (app / ".git").exists()
        assert not (app / "node_modules").exists()
        assert not (app / "craft.yaml").exists()

        manifest = json.loads((app / "package.json").read_text())
        assert manifest["name"] == "my-app"
        assert manifest["dependencies"] == {"react": "^18.2.0", "lodash": "^4.0.0"}
        assert manifest["scripts"] == {"start": "react-scripts start", "lint": "eslint src"}

        assert result.deletions.labels() == ["src/logo.svg"]
        assert result.copies.labels() == [".eslintrc", "src"]
        assert result.manifest.metadata["installed"] == ["lodash"]

    def test_commands_requested(self, tmp_path: Path, scripted, node_mock, git_mock):
        apply_template("my-app", TEMPLATE_URL, registry=scripted, cwd=tmp_path, use_npx=False)

        (generate,) = node_mock.calls_for("create-app")
        assert generate.params["name"] == "my-app"
        assert generate.params["use_npx"] is False
        assert generate.params["cwd"] == str(tmp_path)

        (clone,) = git_mock.calls_for("clone")
        assert clone.params["url"] == TEMPLATE_URL

    def test_scratch_released(self, tmp_path: Path, scripted, git_mock):
        apply_template("my-app", TEMPLATE_URL, registry=scripted, cwd=tmp_path)
        scratch = Path(git_mock.calls_for("clone")[0].params["dest"])
        assert not scratch.exists()

    def test_progress_events(self, tmp_path: Path, scripted):
        events: list[tuple[str, object]] = []
        apply_template(
            "my-app", TEMPLATE_URL, registry=scripted, cwd=tmp_path,
            on_progress=lambda e, p: events.append((e, p)),
        )
        stages = [p for e, p in events if e == "stage"]
        assert stages == ["generate", "template", "delete", "copy", "install"]
        assert ("config", "craft.yaml") in events
        assert sorted(p.label for e, p in events if e == "copied") == [".eslintrc", "src"]
        assert [p.label for e, p in events if e == "deleted"] == ["src/logo.svg"]

    def test_dry_run_touches_nothing(self, tmp_path: Path, scripted, node_mock):
        result = apply_template("my-app", TEMPLATE_URL, registry=scripted, cwd=tmp_path, dry_run=True)

        assert result.ok
        assert node_mock.call_count == 0
        assert not (tmp_path / "my-app").exists()
        assert result.copies.skipped == 2
        assert result.deletions.skipped == 1
        assert result.manifest.metadata["packages"] == {"react": "^17.0.0", "lodash": "^4.0.0"}

    def test_generate_failure_aborts(self, tmp_path: Path, scripted, node_mock, git_mock):
        node_mock.set_failure(
            "op-test:generate",
            error="Command exited with code 1",
            command="npx create-react-app my-app",
        )
        result = apply_template("my-app", TEMPLATE_URL, registry=scripted, cwd=tmp_path)

        assert not result.ok
        assert result.failed_command == "npx create-react-app my-app"
        assert not result.unexpected
        assert git_mock.call_count == 0

    def test_clone_failure_aborts(self, tmp_path: Path, scripted, git_mock):
        git_mock.set_failure(
            "op-test:clone",
            error="Command exited with code 128",
            command=f"git clone {TEMPLATE_URL} /tmp/craft-x",
        )
        result = apply_template("my-app", TEMPLATE_URL, registry=scripted, cwd=tmp_path)

        assert not result.ok
        assert result.failed_command.startswith("git clone")
        assert result.copies is None
        assert (tmp_path / "my-app" / "src" / "logo.svg").exists()
        scratch = Path(git_mock.call_log[0].params["dest"])
        assert not scratch.exists()

    def test_install_failure_aborts(self, tmp_path: Path, scripted, node_mock):
        node_mock.set_failure("op-test:install", command="npm install --save --loglevel error lodash@^4.0.0")
        result = apply_template("my-app", TEMPLATE_URL, registry=scripted, cwd=tmp_path)

        assert not result.ok
        assert result.failed_command.startswith("npm install")
        assert (tmp_path / "my-app" / "src" / "App.js").read_text() == "template app"
        manifest = json.loads((tmp_path / "my-app" / "package.json").read_text())
        assert "lint" not in manifest["scripts"]

    def test_unexpected_error(self, tmp_path: Path, scripted, monkeypatch):
        def explode(template_dir):
            raise RuntimeError("config exploded")

        monkeypatch.setattr(apply_module, "load_spec", explode)
        result = apply_template("my-app", TEMPLATE_URL, registry=scripted, cwd=tmp_path)

        assert not result.ok
        assert result.unexpected
        assert result.failed_command is None
        assert "config exploded" in result.error

    def test_to_dict(self, tmp_path: Path, scripted):
        data = apply_template("my-app", TEMPLATE_URL, registry=scripted, cwd=tmp_path).to_dict()
        assert data["ok"] is True
        assert data["spec"]["src/logo.svg"] == "delete"
        assert data["copies"]["succeeded"] == 2


class TestStages:
    def _ctx(self, tmp_path: Path, **kwargs) -> RunContext:
        return RunContext(
            project_name="my-app",
            project_root=tmp_path / "my-app",
            template_url=TEMPLATE_URL,
            operation_id="op-test",
            **kwargs,
        )

    def test_clone_needs_scratch(self, tmp_path: Path, registry):
        with pytest.raises(ValueError, match="scratch"):
            clone_template(self._ctx(tmp_path), registry)

    def test_delete_needs_spec(self, tmp_path: Path, registry):
        with pytest.raises(ValueError, match="spec"):
            delete_files(self._ctx(tmp_path), registry)

    def test_copy_needs_scratch(self, tmp_path: Path, registry):
        with pytest.raises(ValueError, match="scratch"):
            copy_files(self._ctx(tmp_path, spec=default_spec()), registry)

    def test_copy_with_context(self, tmp_path: Path, registry):
        template = tmp_path / "template"
        write_file(template, "a.txt", "A")
        (tmp_path / "my-app").mkdir()

        report = copy_files(self._ctx(tmp_path, spec=default_spec(), scratch_dir=template), registry)

        assert report.labels() == ["a.txt"]
        assert (tmp_path / "my-app" / "a.txt").read_text() == "A"
