"""
Tests for CLI commands — run, plan, status, and global options.
"""

import json
import textwrap
from pathlib import Path

import pytest
from click.testing import CliRunner

from aipt.core.models.state import HostState
from aipt.core.persistence.state_file import default_state_path, save_state
from aipt.core.use_cases.provision import ProvisionResult
from aipt.main import cli


@pytest.fixture
def config(tmp_path: Path) -> Path:
    """Profile override that keeps every host path under tmp_path."""
    host = tmp_path / "host"
    path = tmp_path / "profile.yml"
    path.write_text(textwrap.dedent(f"""\
        profile:
          base_dir: {host}/opt/ai-pt
          bin_dir: {host}/usr/local/bin
          applications_dir: {host}/usr/share/applications
          desktop_directories_dir: {host}/usr/share/desktop-directories
          menus_merged_dir: {host}/etc/xdg/menus/applications-merged
          state_dir: {host}/var/lib/aipt
    """))
    return path


class TestCLIGlobal:
    """Tests for global CLI behavior."""

    def test_help(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "AI pen-testing host provisioner" in result.output
        for command in ("run", "plan", "status"):
            assert command in result.output

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "aipt-setup" in result.output
        assert "0.1.0" in result.output

    @pytest.mark.usefixtures("as_user")
    def test_bare_invocation_runs_provisioning(self, config: Path):
        result = CliRunner().invoke(cli, ["--config", str(config)])
        assert result.exit_code == 1
        assert "Please run as root" in result.output

    def test_bad_config(self, tmp_path: Path):
        result = CliRunner().invoke(cli, ["--config", str(tmp_path / "nope.yml"), "plan"])
        assert result.exit_code == 1
        assert "not found" in result.output


class TestRunCommand:
    @pytest.mark.usefixtures("as_user")
    def test_non_root_refused(self, config: Path, tmp_path: Path):
        result = CliRunner().invoke(cli, ["--config", str(config), "run"])
        assert result.exit_code == 1
        assert "Please run as root (e.g. sudo aipt-setup)." in result.output
        assert "[*]" not in result.output
        assert not (tmp_path / "host").exists()

    @pytest.mark.usefixtures("as_user")
    def test_mock_run_prints_steps(self, config: Path, tmp_path: Path):
        result = CliRunner().invoke(cli, ["--config", str(config), "run", "--mock"])
        assert result.exit_code == 0
        assert "[*] Updating APT indexes..." in result.output
        assert "[*] Final cleanup..." in result.output
        assert "[mock] Result: ok" in result.output
        # The closing summary is only printed for real runs
        assert "environment ready" not in result.output
        assert not (tmp_path / "host").exists()

    @pytest.mark.usefixtures("as_user")
    def test_dry_run(self, config: Path):
        result = CliRunner().invoke(cli, ["--config", str(config), "run", "--dry-run"])
        assert result.exit_code == 0
        assert "[dry-run] Result: ok" in result.output

    @pytest.mark.usefixtures("as_user")
    def test_quiet_hides_steps(self, config: Path):
        result = CliRunner().invoke(cli, ["--quiet", "--config", str(config), "run", "--mock"])
        assert result.exit_code == 0
        assert "[*]" not in result.output

    @pytest.mark.usefixtures("as_user")
    def test_json(self, config: Path):
        result = CliRunner().invoke(cli, ["--config", str(config), "run", "--mock", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["report"]["status"] == "ok"
        assert data["venv_dir"].endswith("/opt/ai-pt/venv")
        assert data["actions_planned"] > 0

    @pytest.mark.usefixtures("as_user")
    def test_json_privilege_error(self, config: Path):
        result = CliRunner().invoke(cli, ["--config", str(config), "run", "--json"])
        assert result.exit_code == 1
        assert json.loads(result.output)["error_kind"] == "privilege"

    @pytest.mark.usefixtures("as_user")
    def test_missing_report_is_an_error(self, config: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(
            "aipt.core.use_cases.provision.run_provision", lambda **_: ProvisionResult()
        )
        result = CliRunner().invoke(cli, ["--config", str(config), "run", "--mock"])
        assert result.exit_code == 1
        assert not isinstance(result.exception, AssertionError)
        assert "produced no report" in result.output


class TestPlanCommand:
    def test_plan_lists_actions(self, config: Path):
        result = CliRunner().invoke(cli, ["--config", str(config), "plan"])
        assert result.exit_code == 0
        assert "Installing Python AI security libraries into venv..." in result.output
        assert "toolkits:libraries [required]" in result.output
        assert "remove:purge [best-effort]" in result.output
        assert "vigil-server.py exists" in result.output
        assert "`promptfoo` on PATH" in result.output

    def test_plan_json(self, config: Path):
        result = CliRunner().invoke(cli, ["--config", str(config), "plan", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        steps = [s["step"] for s in data["steps"]]
        assert steps[0] == "refresh" and steps[-1] == "cleanup"
        first = data["steps"][0]["actions"][0]
        assert first["id"] == "refresh:update"
        assert first["policy"] == "required"
        assert "params" not in first

    def test_plan_with_shell_variables_in_exec_line(self, config: Path):
        with config.open("a") as f:
            f.write(
                "  desktop_entries:\n"
                "    - file_name: garak-home.desktop\n"
                "      name: garak (home)\n"
                "      exec_line: /usr/bin/env bash -lc \"cd ${HOME} && {bin_dir}/garak\"\n"
            )
        result = CliRunner().invoke(cli, ["--config", str(config), "plan"])
        assert result.exit_code == 0, result.output
        assert "desktop:garak-home.desktop" in result.output


class TestStatusCommand:
    def test_not_provisioned(self, config: Path):
        result = CliRunner().invoke(cli, ["--config", str(config), "status"])
        assert result.exit_code == 0
        assert "Not provisioned yet." in result.output

    def test_after_run(self, config: Path, tmp_path: Path):
        state = HostState(hostname="pt-box")
        state.last_operation.operation_id = "op-20260101-000000-abcdef"
        state.last_operation.status = "degraded"
        state.last_operation.failed_actions = ["remove:purge"]
        state.set_checkout("counterfit", path="/opt/ai-pt/counterfit", revision="0123456789abcdef")
        save_state(state, default_state_path(tmp_path / "host" / "var" / "lib" / "aipt"))

        result = CliRunner().invoke(cli, ["--config", str(config), "status"])
        assert result.exit_code == 0
        assert "op-20260101-000000-abcdef" in result.output
        assert "degraded" in result.output
        assert "✗ remove:purge" in result.output
        assert "counterfit @ 0123456789ab" in result.output

    def test_json(self, config: Path):
        result = CliRunner().invoke(cli, ["--config", str(config), "status", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["provisioned"] is False
        assert "apt" in data["adapters"]
