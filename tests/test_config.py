"""Tests for configuration models, ConfigService and Workspace wiring."""

import textwrap
from pathlib import Path

import pytest
import yaml

from promote_tool.api.exceptions import ConfigError, ProjectNotFoundError
from promote_tool.constants import ChangeClass
from promote_tool.executors import CommandExecutor, NoopExecutor
from promote_tool.models import Config
from promote_tool.probes import HttpProbe
from promote_tool.services import ConfigService, Workspace, find_project_root

CONFIG_YAML = textwrap.dedent("""\
    version: "1.0"
    project:
      name: shop-infra
    ledger:
      path: state/infrastructure-version.json
      history_limit: 5
    environments:
      development:
        deploy:
          command: ./deploy.sh {environment} {version}
          cwd: infra
        probes:
          - name: web
            type: http
            url: https://dev.example.com/health
            expected_status: [200, 404]
            timeout: 10s
      production:
        deploy_timeout: 30m
    promotions:
      - from: development
        to: production
        allowed_changes: [minor, patch]
        soak_time: 24h
        requires_approval: true
    approval:
      secret: ${SHOP_APPROVAL_SECRET}
""")


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    monkeypatch.setenv("SHOP_APPROVAL_SECRET", "from-env")
    monkeypatch.delenv("PROMOTE_TOOL_CONFIG", raising=False)
    monkeypatch.delenv("PROMOTE_TOOL_APPROVAL_SECRET", raising=False)
    path = tmp_path / ".promote-tool.yaml"
    path.write_text(CONFIG_YAML, encoding="utf-8")
    return path


class TestConfigModel:
    """Config.from_dict parsing and validation."""

    def test_parse(self, config_file):
        config = ConfigService(config_file).load_config()

        assert config.project_name == "shop-infra"
        assert config.ledger.history_limit == 5
        dev = config.get_environment("development")
        assert dev.deploy.command == "./deploy.sh {environment} {version}"
        assert dev.probes[0].expected_status == [200, 404]
        assert dev.probes[0].timeout == 10
        assert config.get_environment("production").deploy_timeout == 1800

        edge = config.get_edge("development", "production")
        assert edge.allowed_changes == frozenset({ChangeClass.MINOR, ChangeClass.PATCH})
        assert edge.soak_time == 86400
        assert edge.requires_approval
        assert config.get_edge("production", "development") is None

    def test_entry_environments(self, config_file):
        config = ConfigService(config_file).load_config()
        assert config.is_entry_environment("development")
        assert not config.is_entry_environment("production")
        assert not config.is_entry_environment("qa")

    @pytest.mark.parametrize("data,message", [
        ({"environments": {}}, "at least one environment"),
        ({"environments": {"dev": {}}, "promotions": [{"from": "dev", "to": "prod"}]},
         "undeclared environment"),
        ({"environments": {"dev": {}}, "promotions": [{"from": "dev", "to": "dev"}]}, "loops"),
        ({"environments": {"a": {}, "b": {}},
          "promotions": [{"from": "a", "to": "b"}, {"from": "a", "to": "b"}]}, "Duplicate"),
        ({"environments": {"dev": {}}, "promotions": [{"from": "dev"}]}, "missing"),
        ({"environments": {"dev": {"deploy": {"type": "ansible"}}}}, "Unsupported deploy type"),
        ({"environments": {"dev": {"deploy": {"type": "command"}}}}, "requires 'command'"),
        ({"environments": {"dev": {"probes": [{"name": "web", "type": "http"}]}}}, "requires 'url'"),
        ({"environments": {"Bad Name": {}}}, "Invalid environment name"),
        ({"environments": {"a": {}, "b": {}},
          "promotions": [{"from": "a", "to": "b", "allowed_changes": ["huge"]}]}, "huge"),
        ({"environments": {"dev": {}}, "promotions": "dev -> prod"}, "must be a list"),
        ({"environments": {"dev": {}}, "promotions": ["dev"]}, "must be a mapping"),
        ({"environments": {"dev": {"probes": {"name": "web"}}}}, "must be a list"),
    ])
    def test_invalid(self, data, message):
        with pytest.raises(ConfigError, match=message):
            Config.from_dict(data)

    def test_empty_sections(self, tmp_path):
        path = tmp_path / ".promote-tool.yaml"
        path.write_text(textwrap.dedent("""\
            environments:
              development:
                probes:
            promotions:
        """), encoding="utf-8")

        config = ConfigService(path).load_config()

        assert config.promotions == []
        assert config.get_environment("development").probes == []

    def test_round_trip(self):
        config = Config.default("demo")
        assert Config.from_dict(config.to_dict()) == config


class TestConfigService:
    """Locating, loading and saving .promote-tool.yaml."""

    def test_expands_environment_variables(self, config_file):
        config = ConfigService(config_file).load_config()
        assert config.approval_secret == "from-env"

    def test_secret_falls_back_to_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("PROMOTE_TOOL_APPROVAL_SECRET", "fallback")
        path = tmp_path / ".promote-tool.yaml"
        path.write_text(yaml.dump(Config.default("demo").to_dict()), encoding="utf-8")
        assert ConfigService(path).load_config().approval_secret == "fallback"

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / ".promote-tool.yaml"
        path.write_text("environments: [unclosed", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            ConfigService(path).load_config()

    def test_missing_file(self, tmp_path):
        with pytest.raises(ProjectNotFoundError):
            ConfigService(tmp_path / ".promote-tool.yaml").load_config()

    def test_find_project_root_walks_up(self, config_file):
        nested = config_file.parent / "infra" / "modules"
        nested.mkdir(parents=True)
        assert find_project_root(nested) == config_file.parent.resolve()

    def test_discover_precedence(self, config_file, tmp_path, monkeypatch):
        other = tmp_path / "other.yaml"
        other.write_text(CONFIG_YAML, encoding="utf-8")

        assert ConfigService.discover(start_path=config_file.parent).config_path == config_file

        monkeypatch.setenv("PROMOTE_TOOL_CONFIG", str(other))
        assert ConfigService.discover(start_path=config_file.parent).config_path == other

        assert ConfigService.discover(config_file).config_path == config_file

    def test_discover_nothing(self, tmp_path, monkeypatch):
        monkeypatch.delenv("PROMOTE_TOOL_CONFIG", raising=False)
        empty = tmp_path / "empty"
        empty.mkdir()
        with pytest.raises(ProjectNotFoundError):
            ConfigService.discover(start_path=empty)
        with pytest.raises(ProjectNotFoundError, match="not found"):
            ConfigService.discover(empty / "missing.yaml")

    def test_save_writes_backup(self, config_file):
        service = ConfigService(config_file)
        config = service.load_config()
        config.project_name = "renamed"

        written = service.save_config()

        assert written == config_file
        assert Path(str(config_file) + ".bak").read_text(encoding="utf-8") == CONFIG_YAML
        reloaded = ConfigService(config_file).load_config()
        assert reloaded.project_name == "renamed"

    def test_save_without_config(self, tmp_path):
        with pytest.raises(ValueError):
            ConfigService(tmp_path / ".promote-tool.yaml").save_config()


class TestWorkspace:
    """Workspace builds collaborators from the loaded configuration."""

    def test_paths_resolve_against_project_root(self, config_file):
        workspace = Workspace.load(config_file)
        root = config_file.parent.resolve()

        assert workspace.ledger_path == root / "state" / "infrastructure-version.json"
        assert workspace.state_dir == root / ".promote-tool"
        assert workspace.ledger.history_limit == 5
        assert workspace.locks.lock_dir == root / ".promote-tool" / "locks"

    def test_executors(self, config_file):
        workspace = Workspace.load(config_file)
        root = config_file.parent.resolve()

        dev = workspace.executors["development"]
        assert isinstance(dev, CommandExecutor)
        assert dev.cwd == root / "infra"
        assert isinstance(workspace.executors["production"], NoopExecutor)

    def test_verifier(self, config_file):
        workspace = Workspace.load(config_file)
        [probe] = workspace.verifier.probes_for("development")
        assert isinstance(probe, HttpProbe)
        assert probe.timeout == 10
        assert workspace.verifier.probes_for("production") == []

    def test_services_share_collaborators(self, config_file):
        workspace = Workspace.load(config_file)
        promotion = workspace.promotion_service()
        rollback = workspace.rollback_service()

        assert promotion.ledger is rollback.ledger is workspace.ledger
        assert promotion.locks is rollback.locks
        assert promotion.policy.approvals.configured
