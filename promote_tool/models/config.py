"""Configuration data models"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .environment import PromotionEdge
from ..api.exceptions import ConfigError
from ..constants import (
    CONFIG_VERSION,
    DEFAULT_DEPLOY_TIMEOUT,
    DEFAULT_ENVIRONMENTS,
    DEFAULT_HISTORY_LIMIT,
    DEFAULT_LEDGER_FILE,
    DEFAULT_STATE_DIR,
    DEFAULT_UNDO_TIMEOUT,
    DEFAULT_VERIFY_TIMEOUT,
    ENVIRONMENT_NAME_PATTERN,
    ExecutorType,
    ProbeType,
)
from ..utils.time_utils import parse_duration


def _list_section(data: Dict[str, Any], key: str) -> List[Any]:
    """Read a list-valued key, treating an empty YAML value as an empty list"""
    value = data.get(key) or []
    if not isinstance(value, list):
        raise ConfigError(f"'{key}' must be a list, got {type(value).__name__}")
    return value


@dataclass
class ExecutorConfig:
    """How an environment is deployed"""

    type: str = ExecutorType.NOOP.value
    command: Optional[str] = None
    undo_command: Optional[str] = None
    cwd: Optional[str] = None
    env: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        """Validate executor configuration"""
        try:
            executor_type = ExecutorType(self.type)
        except ValueError:
            raise ConfigError(f"Unsupported deploy type: {self.type}")

        if executor_type == ExecutorType.COMMAND and not self.command:
            raise ConfigError("Command deploy requires 'command'")

    @property
    def executor_type(self) -> ExecutorType:
        return ExecutorType(self.type)

    def to_dict(self) -> Dict[str, Any]:
        data = {"type": self.type}
        if self.command:
            data["command"] = self.command
        if self.undo_command:
            data["undo_command"] = self.undo_command
        if self.cwd:
            data["cwd"] = self.cwd
        if self.env:
            data["env"] = self.env
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'ExecutorConfig':
        if not data:
            return cls()
        return cls(
            type=data.get("type", ExecutorType.COMMAND.value if data.get("command") else ExecutorType.NOOP.value),
            command=data.get("command"),
            undo_command=data.get("undo_command"),
            cwd=data.get("cwd"),
            env={k: str(v) for k, v in (data.get("env") or {}).items()},
        )


@dataclass
class ProbeConfig:
    """Health probe definition"""

    name: str
    type: str
    url: Optional[str] = None
    expected_status: List[int] = field(default_factory=lambda: [200])
    command: Optional[str] = None
    timeout: Optional[float] = None
    options: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        try:
            probe_type = ProbeType(self.type)
        except ValueError:
            raise ConfigError(f"Probe '{self.name}': unsupported type {self.type}")

        if probe_type == ProbeType.HTTP and not self.url:
            raise ConfigError(f"HTTP probe '{self.name}' requires 'url'")
        elif probe_type == ProbeType.COMMAND and not self.command:
            raise ConfigError(f"Command probe '{self.name}' requires 'command'")

    @property
    def probe_type(self) -> ProbeType:
        return ProbeType(self.type)

    def to_dict(self) -> Dict[str, Any]:
        data = {"name": self.name, "type": self.type}
        if self.url:
            data["url"] = self.url
            data["expected_status"] = self.expected_status
        if self.command:
            data["command"] = self.command
        if self.timeout is not None:
            data["timeout"] = self.timeout
        if self.options:
            data["options"] = self.options
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProbeConfig':
        if not isinstance(data, dict) or "name" not in data or "type" not in data:
            raise ConfigError(f"Probe requires 'name' and 'type': {data}")

        expected = data.get("expected_status", [200])
        if isinstance(expected, int):
            expected = [expected]

        timeout = data.get("timeout")
        return cls(
            name=data["name"],
            type=data["type"],
            url=data.get("url"),
            expected_status=[int(code) for code in expected],
            command=data.get("command"),
            timeout=parse_duration(timeout) if timeout is not None else None,
            options=data.get("options") or {},
        )


@dataclass
class EnvironmentConfig:
    """Per-environment settings"""

    name: str
    description: Optional[str] = None
    deploy: ExecutorConfig = field(default_factory=ExecutorConfig)
    probes: List[ProbeConfig] = field(default_factory=list)
    deploy_timeout: float = DEFAULT_DEPLOY_TIMEOUT
    verify_timeout: float = DEFAULT_VERIFY_TIMEOUT
    undo_timeout: float = DEFAULT_UNDO_TIMEOUT

    def __post_init__(self):
        if not ENVIRONMENT_NAME_PATTERN.match(self.name):
            raise ConfigError(f"Invalid environment name: {self.name!r}")

        names = [p.name for p in self.probes]
        duplicates = {n for n in names if names.count(n) > 1}
        if duplicates:
            raise ConfigError(
                f"Environment '{self.name}' has duplicate probes: {', '.join(sorted(duplicates))}"
            )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "deploy": self.deploy.to_dict(),
            "probes": [p.to_dict() for p in self.probes],
            "deploy_timeout": self.deploy_timeout,
            "verify_timeout": self.verify_timeout,
            "undo_timeout": self.undo_timeout,
        }
        if self.description:
            data["description"] = self.description
        return data

    @classmethod
    def from_dict(cls, name: str, data: Optional[Dict[str, Any]]) -> 'EnvironmentConfig':
        data = data or {}
        return cls(
            name=name,
            description=data.get("description"),
            deploy=ExecutorConfig.from_dict(data.get("deploy")),
            probes=[ProbeConfig.from_dict(p) for p in _list_section(data, "probes")],
            deploy_timeout=parse_duration(data.get("deploy_timeout", DEFAULT_DEPLOY_TIMEOUT)),
            verify_timeout=parse_duration(data.get("verify_timeout", DEFAULT_VERIFY_TIMEOUT)),
            undo_timeout=parse_duration(data.get("undo_timeout", DEFAULT_UNDO_TIMEOUT)),
        )


@dataclass
class LedgerConfig:
    """Ledger location and retention"""

    path: str = DEFAULT_LEDGER_FILE
    state_dir: str = DEFAULT_STATE_DIR
    history_limit: int = DEFAULT_HISTORY_LIMIT

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "state_dir": self.state_dir,
            "history_limit": self.history_limit,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'LedgerConfig':
        data = data or {}
        history_limit = int(data.get("history_limit", DEFAULT_HISTORY_LIMIT))
        if history_limit < 1:
            raise ConfigError("ledger.history_limit must be at least 1")
        return cls(
            path=data.get("path", DEFAULT_LEDGER_FILE),
            state_dir=data.get("state_dir", DEFAULT_STATE_DIR),
            history_limit=history_limit,
        )


@dataclass
class Config:
    """Complete project configuration (.promote-tool.yaml)"""

    project_name: str
    version: str = CONFIG_VERSION
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    environments: Dict[str, EnvironmentConfig] = field(default_factory=dict)
    promotions: List[PromotionEdge] = field(default_factory=list)
    approval_secret: Optional[str] = None

    def __post_init__(self):
        """Validate promotion edges against declared environments"""
        seen = set()
        for edge in self.promotions:
            for env in (edge.source, edge.target):
                if env not in self.environments:
                    raise ConfigError(
                        f"Promotion {edge.source} -> {edge.target} references "
                        f"undeclared environment '{env}'"
                    )
            if edge.source == edge.target:
                raise ConfigError(f"Promotion edge loops on '{edge.source}'")
            if edge.key in seen:
                raise ConfigError(f"Duplicate promotion edge {edge.source} -> {edge.target}")
            seen.add(edge.key)

    def get_environment(self, name: str) -> Optional[EnvironmentConfig]:
        return self.environments.get(name)

    def get_edge(self, source: str, target: str) -> Optional[PromotionEdge]:
        for edge in self.promotions:
            if edge.source == source and edge.target == target:
                return edge
        return None

    def incoming_edges(self, environment: str) -> List[PromotionEdge]:
        return [e for e in self.promotions if e.target == environment]

    def is_entry_environment(self, environment: str) -> bool:
        """Entry environments receive releases directly rather than by promotion"""
        return environment in self.environments and not self.incoming_edges(environment)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        data = {
            "version": self.version,
            "project": {"name": self.project_name},
            "ledger": self.ledger.to_dict(),
            "environments": {
                name: env.to_dict() for name, env in self.environments.items()
            },
            "promotions": [e.to_dict() for e in self.promotions],
        }
        if self.approval_secret:
            data["approval"] = {"secret": self.approval_secret}
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Config':
        """Create from dictionary"""
        if not isinstance(data, dict):
            raise ConfigError("Configuration must be a mapping")

        environments = data.get("environments") or {}
        if not isinstance(environments, dict) or not environments:
            raise ConfigError("Configuration must declare at least one environment")

        approval = data.get("approval") or {}
        return cls(
            project_name=(data.get("project") or {}).get("name", ""),
            version=str(data.get("version", CONFIG_VERSION)),
            ledger=LedgerConfig.from_dict(data.get("ledger")),
            environments={
                name: EnvironmentConfig.from_dict(name, env_data)
                for name, env_data in environments.items()
            },
            promotions=[PromotionEdge.from_dict(e) for e in _list_section(data, "promotions")],
            approval_secret=approval.get("secret") or None,
        )

    @classmethod
    def default(cls, project_name: str) -> 'Config':
        """Starter configuration: development -> staging -> production"""
        environments = {name: EnvironmentConfig(name=name) for name in DEFAULT_ENVIRONMENTS}
        promotions = [
            PromotionEdge(source="development", target="staging"),
            PromotionEdge(source="staging", target="production",
                          soak_time=parse_duration("24h"), requires_approval=True),
        ]
        return cls(project_name=project_name, environments=environments, promotions=promotions)
