"""Tests for the promote-tool command line interface."""

import json

import pytest
import yaml
from click.testing import CliRunner

from promote_tool.cli.main import cli
from promote_tool.constants import ExitCode
from promote_tool.models import PromotionEdge

from .conftest import make_config


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def invoke(runner, project_dir):
    def _invoke(*args):
        return runner.invoke(cli, list(args), catch_exceptions=False)
    return _invoke


@pytest.fixture
def released(invoke):
    """1.0.0 running in development"""
    assert invoke("release", "add", "1.0.0").exit_code == 0
    assert invoke("deploy", "--env", "development", "--version", "1.0.0").exit_code == 0
    return invoke


def ungated(project_dir):
    """Rewrite the project config without soak time on staging -> production"""
    config = make_config(promotions=[
        PromotionEdge(source="development", target="staging"),
        PromotionEdge(source="staging", target="production", requires_approval=True),
    ])
    (project_dir / ".promote-tool.yaml").write_text(
        yaml.dump(config.to_dict(), sort_keys=False), encoding="utf-8"
    )


class TestGlobalOptions:
    """Group-level behaviour."""

    def test_help(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "promote" in result.output
        assert "rollback" in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "1.0.0" in result.output

    def test_outside_project(self, runner, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("PROMOTE_TOOL_CONFIG", raising=False)

        result = runner.invoke(cli, ["status"])

        assert result.exit_code == ExitCode.ERROR
        assert "No project configuration found" in result.output

    def test_explicit_config(self, runner, project_dir, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(cli, ["-c", str(project_dir / ".promote-tool.yaml"), "status"])
        assert result.exit_code == 0
        assert "staging" in result.output


class TestInit:
    """init writes a starter configuration."""

    def test_creates_config(self, runner, tmp_path):
        target = tmp_path / "infra"
        target.mkdir()

        result = runner.invoke(cli, ["init", str(target), "--name", "shop"])

        assert result.exit_code == 0
        data = yaml.safe_load((target / ".promote-tool.yaml").read_text(encoding="utf-8"))
        assert data["project"]["name"] == "shop"
        assert set(data["environments"]) == {"development", "staging", "production"}

    def test_existing_config_untouched(self, runner, project_dir):
        before = (project_dir / ".promote-tool.yaml").read_text(encoding="utf-8")

        result = runner.invoke(cli, ["init"])

        assert result.exit_code == 0
        assert "already initialized" in result.output
        assert (project_dir / ".promote-tool.yaml").read_text(encoding="utf-8") == before

    def test_force_overwrites(self, runner, project_dir):
        result = runner.invoke(cli, ["init", "--force", "--name", "fresh"])
        assert result.exit_code == 0
        assert (project_dir / ".promote-tool.yaml.bak").exists()


class TestRelease:
    """release add / list / show."""

    def test_add_and_show(self, invoke):
        result = invoke("release", "add", "1.4.0", "-c", "api=1.4.0", "-c", "db-schema=12.0.0",
                        "--changelog", "CHANGELOG.md#140")
        assert result.exit_code == 0
        assert "Recorded release 1.4.0" in result.output

        shown = invoke("-q", "release", "show", "1.4.0", "--output", "json")
        data = json.loads(shown.output)
        assert data["components"] == {"api": "1.4.0", "db-schema": "12.0.0"}
        assert data["deployed_to"] == []

    def test_duplicate(self, invoke):
        invoke("release", "add", "1.0.0")
        result = invoke("release", "add", "v1.0.0")
        assert result.exit_code == ExitCode.PRECONDITION_FAILED
        assert "already exists" in result.output

    def test_invalid_version(self, invoke):
        result = invoke("release", "add", "latest")
        assert result.exit_code == ExitCode.PRECONDITION_FAILED
        assert "Invalid version" in result.output

    def test_malformed_component(self, runner, project_dir):
        result = runner.invoke(cli, ["release", "add", "1.0.0", "-c", "api"])
        assert result.exit_code == 2
        assert "NAME=VERSION" in result.output

    def test_list(self, invoke):
        for version in ("1.0.0", "1.2.0", "1.1.0"):
            invoke("release", "add", version)
        result = invoke("release", "list", "--output", "brief")
        assert result.output.split() == ["1.2.0", "1.1.0", "1.0.0"]

    def test_show_unknown(self, invoke):
        result = invoke("release", "show", "9.9.9")
        assert result.exit_code == ExitCode.PRECONDITION_FAILED


class TestDeployAndPromote:
    """deploy, promote and the exit codes they report."""

    def test_deploy(self, released):
        result = released("-q", "status", "--env", "development", "--output", "json")
        data = json.loads(result.output)
        assert data["current_version"] == "1.0.0"
        assert data["locked"] is False
        assert data["last_attempt"]["kind"] == "deploy"
        assert data["last_attempt"]["actor"] == "tester"

    def test_deploy_to_non_entry(self, invoke):
        invoke("release", "add", "1.0.0")
        result = invoke("-q", "deploy", "--env", "staging", "--version", "1.0.0", "--output", "json")
        assert result.exit_code == ExitCode.PRECONDITION_FAILED
        data = json.loads(result.output)
        assert data["failed_step"] == "precondition"
        assert data["errors"][0]["code"] == "PT015"

    def test_promote(self, released):
        result = released("promote", "--from", "development", "--to", "staging", "--actor", "alice")

        assert result.exit_code == ExitCode.COMMITTED
        assert "Promoted 1.0.0" in result.output

        history = json.loads(released("-q", "history", "--env", "staging", "--output", "json").output)
        assert history[0]["kind"] == "promotion"
        assert history[0]["actor"] == "alice"

    def test_promote_json(self, released):
        result = released("-q", "promote", "--from", "development", "--to", "staging",
                          "--output", "json")
        data = json.loads(result.output)
        assert data["status"] == "committed"
        assert data["exit_code"] == 0
        assert data["source_env"] == "development"

    def test_promote_denied(self, released):
        result = released("promote", "--from", "development", "--to", "production")
        assert result.exit_code == ExitCode.POLICY_DENIED
        assert "NoSuchEdge" in result.output

    def test_approval_flow(self, released, project_dir):
        ungated(project_dir)
        released("promote", "--from", "development", "--to", "staging")

        denied = released("promote", "--from", "staging", "--to", "production")
        assert denied.exit_code == ExitCode.POLICY_DENIED
        assert "ApprovalRequired" in denied.output

        token = released("approve", "--to", "production", "--version", "1.0.0", "-t").output.strip()
        result = released("promote", "--from", "staging", "--to", "production", "--approval", token)
        assert result.exit_code == ExitCode.COMMITTED

    def test_approval_token_from_environment(self, released, project_dir, monkeypatch):
        ungated(project_dir)
        released("promote", "--from", "development", "--to", "staging")
        token = released("approve", "--to", "production", "--version", "1.0.0", "-t").output.strip()

        monkeypatch.setenv("PROMOTE_TOOL_APPROVAL_TOKEN", token)
        result = released("promote", "--from", "staging", "--to", "production")
        assert result.exit_code == ExitCode.COMMITTED

    def test_approve_unknown_environment(self, invoke):
        result = invoke("approve", "--to", "qa", "--version", "1.0.0")
        assert result.exit_code == ExitCode.PRECONDITION_FAILED

    def test_approve_without_secret(self, invoke, project_dir):
        config = make_config(approval_secret=None)
        (project_dir / ".promote-tool.yaml").write_text(yaml.dump(config.to_dict()), encoding="utf-8")
        result = invoke("approve", "--to", "production", "--version", "1.0.0")
        assert result.exit_code == ExitCode.ERROR

    def test_lock_held(self, released, project_dir):
        from promote_tool.core.locks import EnvironmentLockManager

        locks = EnvironmentLockManager(project_dir / ".promote-tool" / "locks")
        with locks.hold("staging", "someone else"):
            result = released("-q", "promote", "--from", "development", "--to", "staging",
                              "--output", "json")
        assert result.exit_code == ExitCode.LOCK_HELD
        data = json.loads(result.output)
        assert data["failed_step"] == "lock"
        assert "someone else" in data["errors"][0]["context"]["holder"]


class TestRollbackAndStatus:
    """rollback, status and history."""

    def test_rollback(self, released):
        released("release", "add", "1.1.0")
        released("deploy", "--env", "development", "--version", "1.1.0")

        result = released("rollback", "--env", "development")

        assert result.exit_code == ExitCode.COMMITTED
        assert "Rolled back development" in result.output
        status = json.loads(released("-q", "status", "--env", "development", "--output", "json").output)
        assert status["current_version"] == "1.0.0"

        kinds = [r["kind"] for r in json.loads(
            released("-q", "history", "--env", "development", "--output", "json").output
        )]
        assert kinds[:2] == ["rollback", "pre_rollback_snapshot"]

    def test_rollback_help_lists_exit_codes(self, runner):
        result = runner.invoke(cli, ["rollback", "--help"])
        assert result.exit_code == 0
        assert "Exit codes:" in result.output
        assert "6  verification failed, manual rollback required" in result.output

    def test_rollback_without_prior_version(self, released):
        result = released("rollback", "--env", "development")
        assert result.exit_code == ExitCode.PRECONDITION_FAILED
        assert "No prior version" in result.output

    def test_status_table(self, released):
        result = released("status")
        assert result.exit_code == 0
        assert "development" in result.output
        assert "production" in result.output

    def test_status_unknown_environment(self, invoke):
        result = invoke("status", "--env", "qa")
        assert result.exit_code == ExitCode.PRECONDITION_FAILED

    def test_history_limit(self, released):
        released("release", "add", "1.1.0")
        released("deploy", "--env", "development", "--version", "1.1.0")
        records = json.loads(released("-q", "history", "-n", "1", "--output", "json").output)
        assert len(records) == 1
        assert records[0]["to_version"] == "1.1.0"

    def test_history_empty(self, invoke):
        result = invoke("history")
        assert result.exit_code == 0
        assert "No transitions recorded" in result.output
