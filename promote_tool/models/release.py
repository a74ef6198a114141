# promote_tool/models/release.py
"""Release models"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, Iterator, Optional

from .version import Version
from ..api.exceptions import ValidationError
from ..constants import COMPONENT_NAME_PATTERN, ErrorCode
from ..utils.time_utils import parse_timestamp, format_timestamp


class ComponentVersionSet(Mapping):
    """Read-only mapping of component name to Version"""

    def __init__(self, components: Optional[Mapping[str, Any]] = None):
        items: Dict[str, Version] = {}
        for name, version in (components or {}).items():
            if not COMPONENT_NAME_PATTERN.match(name):
                raise ValidationError(
                    f"Invalid component name: {name!r}",
                    ErrorCode.CONFIG_FORMAT_ERROR
                )
            items[name] = Version.parse(version)
        self._items = MappingProxyType(items)

    def __getitem__(self, name: str) -> Version:
        return self._items[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other) -> bool:
        if isinstance(other, ComponentVersionSet):
            return dict(self._items) == dict(other._items)
        if isinstance(other, Mapping):
            return dict(self._items) == dict(other)
        return NotImplemented

    def __hash__(self):
        return hash(frozenset(self._items.items()))

    def __repr__(self) -> str:
        inner = ", ".join(f"{k}={v}" for k, v in sorted(self._items.items()))
        return f"ComponentVersionSet({inner})"

    def to_dict(self) -> Dict[str, str]:
        return {name: str(version) for name, version in sorted(self._items.items())}


@dataclass(frozen=True)
class Release:
    """A cut release; never mutated once recorded"""
    version: Version
    components: ComponentVersionSet = field(default_factory=ComponentVersionSet)
    released_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    changelog: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            'version': str(self.version),
            'components': self.components.to_dict(),
            'released_at': format_timestamp(self.released_at),
            'changelog': self.changelog,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Release':
        """Create from dictionary"""
        return cls(
            version=Version.parse(data['version']),
            components=ComponentVersionSet(data.get('components', {})),
            released_at=parse_timestamp(data['released_at']),
            changelog=data.get('changelog', ""),
        )

    @classmethod
    def create(cls,
               version: str,
               components: Optional[Mapping[str, str]] = None,
               changelog: str = "",
               released_at: Optional[datetime] = None) -> 'Release':
        """Build a release from plain strings"""
        return cls(
            version=Version.parse(version),
            components=ComponentVersionSet(components),
            released_at=released_at or datetime.now(timezone.utc),
            changelog=changelog,
        )