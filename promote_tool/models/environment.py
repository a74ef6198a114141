# promote_tool/models/environment.py
"""Environment state and promotion edge models"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, FrozenSet, Optional, Tuple

from .version import Version
from ..api.exceptions import ConfigError
from ..constants import ChangeClass
from ..utils.time_utils import format_duration, format_timestamp, parse_duration, parse_timestamp


@dataclass(frozen=True)
class EnvironmentState:
    """Currently deployed version of one environment"""
    name: str
    current_version: Version
    updated_at: datetime
    history: Tuple[Version, ...] = ()  # prior versions, most recent last

    def advance(self, new_version: Version, at: datetime, history_limit: int) -> 'EnvironmentState':
        """Return the state after switching to new_version"""
        history = self.history
        if new_version != self.current_version:
            history = (history + (self.current_version,))[-history_limit:] if history_limit > 0 else ()
        return replace(self, current_version=new_version, updated_at=at, history=history)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'current_version': str(self.current_version),
            'updated_at': format_timestamp(self.updated_at),
            'history': [str(v) for v in self.history],
        }

    @classmethod
    def from_dict(cls, name: str, data: Dict[str, Any]) -> 'EnvironmentState':
        return cls(
            name=name,
            current_version=Version.parse(data['current_version']),
            updated_at=parse_timestamp(data['updated_at']),
            history=tuple(Version.parse(v) for v in data.get('history', [])),
        )


ALL_CHANGE_CLASSES = frozenset(ChangeClass)


@dataclass(frozen=True)
class PromotionEdge:
    """Configured promotion path between two environments"""
    source: str
    target: str
    allowed_changes: FrozenSet[ChangeClass] = field(default=ALL_CHANGE_CLASSES)
    soak_time: float = 0.0  # seconds
    requires_approval: bool = False

    @property
    def key(self) -> Tuple[str, str]:
        return self.source, self.target

    def describe(self) -> str:
        parts = [f"{self.source} → {self.target}"]
        if self.soak_time:
            parts.append(f"soak {format_duration(self.soak_time)}")
        if self.requires_approval:
            parts.append("approval required")
        if self.allowed_changes != ALL_CHANGE_CLASSES:
            parts.append("changes: " + ", ".join(sorted(c.value for c in self.allowed_changes)))
        return ", ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'from': self.source,
            'to': self.target,
            'allowed_changes': sorted(c.value for c in self.allowed_changes),
            'soak_time': self.soak_time,
            'requires_approval': self.requires_approval,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PromotionEdge':
        """Create from a ``promotions`` entry of the project config"""
        if not isinstance(data, dict):
            raise ConfigError(f"Promotion edge must be a mapping: {data!r}")
        try:
            source = data['from']
            target = data['to']
        except KeyError as e:
            raise ConfigError(f"Promotion edge is missing {e.args[0]!r}: {data}")

        allowed = data.get('allowed_changes')
        if allowed is None:
            allowed_changes = ALL_CHANGE_CLASSES
        else:
            try:
                allowed_changes = frozenset(ChangeClass(c) for c in allowed)
            except ValueError as e:
                raise ConfigError(f"Promotion {source} -> {target}: {e}")

        return cls(
            source=source,
            target=target,
            allowed_changes=allowed_changes,
            soak_time=parse_duration(data.get('soak_time', 0)),
            requires_approval=bool(data.get('requires_approval', False)),
        )
