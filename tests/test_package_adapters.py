"""
Tests for the host tool adapters — apt, python, node, git.

No test here runs a real package manager: subprocess.run is replaced
with a recorder that returns scripted results.
"""

import subprocess
from pathlib import Path

import pytest

from aipt.adapters.base import ExecutionContext
from aipt.adapters.languages.node import NodeAdapter
from aipt.adapters.languages.python import PythonAdapter
from aipt.adapters.packages.apt import AptAdapter
from aipt.adapters.vcs.git import GitAdapter
from aipt.core.models.action import Action


class FakeRun:
    """Stand-in for subprocess.run that records every call."""

    def __init__(self):
        self.calls: list[dict] = []
        self.results: dict[str, tuple[int, str, str]] = {}

    def script(self, needle: str, returncode: int = 0, stdout: str = "", stderr: str = ""):
        """Return the given result for any command containing ``needle``."""
        self.results[needle] = (returncode, stdout, stderr)

    def __call__(self, cmd, **kwargs):
        self.calls.append({"cmd": cmd, **kwargs})
        text = cmd if isinstance(cmd, str) else " ".join(cmd)
        returncode, stdout, stderr = 0, "", ""
        for needle, result in self.results.items():
            if needle in text:
                returncode, stdout, stderr = result
                break
        return subprocess.CompletedProcess(cmd, returncode, stdout, stderr)

    @property
    def commands(self) -> list:
        return [c["cmd"] for c in self.calls]


@pytest.fixture
def fake_run(monkeypatch: pytest.MonkeyPatch) -> FakeRun:
    fake = FakeRun()
    monkeypatch.setattr(subprocess, "run", fake)
    return fake


def _ctx(adapter: str, **params) -> ExecutionContext:
    action = Action(id=f"{adapter}-test", adapter=adapter, params=params)
    return ExecutionContext(action=action, params=params)


# ── APT ──────────────────────────────────────────────────────────────


class TestAptAdapter:
    def test_build_commands(self):
        build = AptAdapter.build_command
        assert build({"operation": "update"}) == ["apt-get", "update", "-y"]
        assert build({"operation": "purge", "packages": ["totem"]}) == [
            "apt-get", "purge", "-y", "totem",
        ]
        assert build({"operation": "autoremove"}) == ["apt-get", "autoremove", "-y", "--purge"]
        assert build({"operation": "clean"}) == ["apt-get", "clean"]

    def test_install_no_recommends(self):
        cmd = AptAdapter.build_command(
            {"operation": "install", "packages": ["git", "jq"], "no_install_recommends": True}
        )
        assert cmd == ["apt-get", "install", "-y", "--no-install-recommends", "git", "jq"]

    def test_validate_requires_packages(self):
        ok, err = AptAdapter().validate(_ctx("apt", operation="install"))
        assert not ok
        assert "packages" in err

    def test_validate_unknown_operation(self):
        ok, _ = AptAdapter().validate(_ctx("apt", operation="dist-upgrade"))
        assert not ok

    def test_execute_is_noninteractive(self, fake_run: FakeRun):
        receipt = AptAdapter().execute(_ctx("apt", operation="update"))
        assert receipt.ok
        assert fake_run.calls[0]["env"]["DEBIAN_FRONTEND"] == "noninteractive"
        assert fake_run.calls[0]["timeout"] is None

    def test_execute_failure_carries_stderr(self, fake_run: FakeRun):
        fake_run.script("purge", returncode=100, stderr="E: Unable to locate package nope")
        receipt = AptAdapter().execute(_ctx("apt", operation="purge", packages=["nope"]))
        assert receipt.failed
        assert "Unable to locate package" in receipt.error
        assert receipt.metadata["return_code"] == 100

    def test_timeout_is_failure(self, monkeypatch: pytest.MonkeyPatch):
        def slow(cmd, **kwargs):
            raise subprocess.TimeoutExpired(cmd, kwargs.get("timeout", 0))

        monkeypatch.setattr(subprocess, "run", slow)
        receipt = AptAdapter().execute(_ctx("apt", operation="update", timeout=5))
        assert receipt.failed
        assert "timed out after 5s" in receipt.error


# ── Python ───────────────────────────────────────────────────────────


class TestPythonAdapter:
    def test_venv_command(self):
        cmd = PythonAdapter.build_command({"operation": "venv", "path": "/opt/ai-pt/venv"})
        assert cmd == ["python3", "-m", "venv", "/opt/ai-pt/venv"]

    def test_pip_install_uses_named_interpreter(self):
        cmd = PythonAdapter.build_command(
            {
                "operation": "pip_install",
                "python": "/opt/ai-pt/venv/bin/python",
                "packages": ["pip", "wheel"],
                "upgrade": True,
            }
        )
        assert cmd == [
            "/opt/ai-pt/venv/bin/python", "-m", "pip", "install", "--upgrade", "pip", "wheel",
        ]

    def test_pip_install_editable_no_cache(self):
        cmd = PythonAdapter.build_command(
            {
                "operation": "pip_install",
                "python": "/v/bin/python",
                "editable": "/opt/ai-pt/counterfit",
                "no_cache_dir": True,
            }
        )
        assert cmd == [
            "/v/bin/python", "-m", "pip", "install", "--no-cache-dir", "-e", "/opt/ai-pt/counterfit",
        ]

    def test_run_code(self):
        cmd = PythonAdapter.build_command({"operation": "run_code", "python": "/v/bin/python", "code": "pass"})
        assert cmd == ["/v/bin/python", "-c", "pass"]

    def test_validate_pip_needs_packages_or_editable(self):
        ok, _ = PythonAdapter().validate(_ctx("python", operation="pip_install"))
        assert not ok
        ok, _ = PythonAdapter().validate(_ctx("python", operation="pip_install", editable="/x"))
        assert ok

    def test_version(self, fake_run: FakeRun):
        fake_run.script("--version", stdout="Python 3.12.8\n")
        assert PythonAdapter().version() == "3.12.8"

    def test_execute_pip_has_no_timeout_by_default(self, fake_run: FakeRun):
        PythonAdapter().execute(_ctx("python", operation="pip_install", packages=["garak"]))
        assert fake_run.calls[0]["timeout"] is None

    def test_execute_pip_timeout_opt_in(self, fake_run: FakeRun):
        PythonAdapter().execute(
            _ctx("python", operation="pip_install", packages=["garak"], timeout=7200)
        )
        assert fake_run.calls[0]["timeout"] == 7200


# ── Node ─────────────────────────────────────────────────────────────


class TestNodeAdapter:
    PARAMS = {
        "operation": "ensure_runtime",
        "setup_url": "https://deb.nodesource.com/setup_18.x",
        "version_pattern": r"^v1[89]|^v2[0-9]",
    }

    def test_validate_bad_pattern(self):
        ok, err = NodeAdapter().validate(_ctx("node", **{**self.PARAMS, "version_pattern": "("}))
        assert not ok
        assert "version_pattern" in err

    def test_compatible_runtime_is_skipped(self, fake_run: FakeRun, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr("aipt.adapters.languages.node.shutil.which", lambda _: "/usr/bin/node")
        fake_run.script("node -v", stdout="v20.11.0\n")
        receipt = NodeAdapter().execute(_ctx("node", **self.PARAMS))
        assert receipt.skipped
        assert receipt.metadata["node_version"] == "v20.11.0"
        assert fake_run.commands == [["node", "-v"]]

    def test_old_runtime_runs_vendor_setup(self, fake_run: FakeRun, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr("aipt.adapters.languages.node.shutil.which", lambda _: "/usr/bin/node")
        fake_run.script("node -v", stdout="v12.22.9\n")
        receipt = NodeAdapter().execute(_ctx("node", **self.PARAMS))
        assert receipt.ok
        assert receipt.metadata["previous_version"] == "v12.22.9"
        setup, install = fake_run.calls[1], fake_run.calls[2]
        assert setup["cmd"] == [
            "bash", "-c",
            "set -o pipefail; curl -fsSL https://deb.nodesource.com/setup_18.x | bash -",
        ]
        assert setup["shell"] is False
        assert install["cmd"] == ["apt-get", "install", "-y", "nodejs"]
        assert install["env"]["DEBIAN_FRONTEND"] == "noninteractive"

    def test_missing_runtime_setup_failure_stops(self, fake_run: FakeRun, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr("aipt.adapters.languages.node.shutil.which", lambda _: None)
        fake_run.script("curl", returncode=22, stderr="curl: (22) 404")
        receipt = NodeAdapter().execute(_ctx("node", **self.PARAMS))
        assert receipt.failed
        assert len(fake_run.calls) == 1

    def test_unreachable_setup_url_fails_before_apt(self, fake_run: FakeRun, monkeypatch: pytest.MonkeyPatch):
        # With pipefail, bash exits with curl's status (7: connection refused)
        monkeypatch.setattr("aipt.adapters.languages.node.shutil.which", lambda _: None)
        fake_run.script("pipefail", returncode=7, stderr="curl: (7) Failed to connect")
        params = {**self.PARAMS, "setup_url": "http://127.0.0.1:9/setup_18.x"}
        receipt = NodeAdapter().execute(_ctx("node", **params))
        assert receipt.failed
        assert "Failed to connect" in receipt.error
        assert ["apt-get", "install", "-y", "nodejs"] not in fake_run.commands

    def test_setup_url_is_quoted(self, fake_run: FakeRun, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr("aipt.adapters.languages.node.shutil.which", lambda _: None)
        params = {**self.PARAMS, "setup_url": "https://example.test/setup?a=1&b=2"}
        NodeAdapter().execute(_ctx("node", **params))
        script = fake_run.calls[0]["cmd"][2]
        assert "'https://example.test/setup?a=1&b=2'" in script

    def test_no_timeout_by_default(self, fake_run: FakeRun, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr("aipt.adapters.languages.node.shutil.which", lambda _: None)
        NodeAdapter().execute(_ctx("node", **self.PARAMS))
        assert all(call["timeout"] is None for call in fake_run.calls)

    def test_install_global(self, fake_run: FakeRun):
        receipt = NodeAdapter().execute(_ctx("node", operation="install_global", packages=["promptfoo"]))
        assert receipt.ok
        assert fake_run.commands == [["npm", "install", "-g", "promptfoo"]]


# ── Git ──────────────────────────────────────────────────────────────


class TestGitAdapter:
    def test_validate(self):
        ok, _ = GitAdapter().validate(_ctx("git", operation="clone", url="u"))
        assert not ok
        ok, _ = GitAdapter().validate(_ctx("git", operation="pull", url="u", dest="/d"))
        assert not ok

    def test_clone_records_revision(self, fake_run: FakeRun, tmp_path: Path):
        fake_run.script("rev-parse", stdout="0123abcd\n")
        dest = tmp_path / "counterfit"
        receipt = GitAdapter().execute(
            _ctx("git", operation="clone", url="https://example.com/c.git", dest=str(dest))
        )
        assert receipt.ok
        assert receipt.metadata["revision"] == "0123abcd"
        assert fake_run.commands[0] == ["git", "clone", "https://example.com/c.git", str(dest)]

    def test_existing_checkout_is_left_alone(self, fake_run: FakeRun, tmp_path: Path):
        fake_run.script("rev-parse", stdout="feedface\n")
        dest = tmp_path / "counterfit"
        dest.mkdir()
        receipt = GitAdapter().execute(_ctx("git", operation="clone", url="u", dest=str(dest)))
        assert receipt.skipped
        assert receipt.metadata["revision"] == "feedface"
        assert not any("clone" in c for c in fake_run.commands)

    def test_clone_failure(self, fake_run: FakeRun, tmp_path: Path):
        fake_run.script("clone", returncode=128, stderr="fatal: repository not found")
        receipt = GitAdapter().execute(
            _ctx("git", operation="clone", url="u", dest=str(tmp_path / "x"))
        )
        assert receipt.failed
        assert "repository not found" in receipt.error
        assert "revision" not in receipt.metadata

    def test_revision_unreadable(self, fake_run: FakeRun, tmp_path: Path):
        fake_run.script("rev-parse", returncode=128)
        assert GitAdapter().revision(tmp_path) is None
