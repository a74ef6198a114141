# promote_tool/models/version.py
"""Semantic version value type"""

from dataclasses import dataclass
from functools import total_ordering
from typing import Optional, Tuple

from ..api.exceptions import ValidationError
from ..constants import VERSION_PATTERN


def _identifier_key(identifier: str) -> Tuple[int, object]:
    # Numeric identifiers sort numerically and below alphanumeric ones
    if identifier.isdigit():
        return 0, int(identifier)
    return 1, identifier


@total_ordering
@dataclass(frozen=True)
class Version:
    """Immutable semantic version

    Ordered by (major, minor, patch). A pre-release sorts before the release
    it precedes. Build metadata only breaks ties so that ordering stays
    consistent with equality.
    """
    major: int
    minor: int
    patch: int
    prerelease: Optional[str] = None
    build: Optional[str] = None

    @classmethod
    def parse(cls, value: str) -> 'Version':
        """Parse a version string such as ``1.2.0``, ``v2.0.0-rc.1`` or ``1.0.0+build.5``

        Raises:
            ValidationError: If the string is not a semantic version
        """
        if isinstance(value, Version):
            return value

        match = VERSION_PATTERN.match(str(value).strip())
        if not match:
            raise ValidationError(f"Invalid version: {value!r} (expected MAJOR.MINOR.PATCH)")

        return cls(
            major=int(match.group('major')),
            minor=int(match.group('minor')),
            patch=int(match.group('patch')),
            prerelease=match.group('prerelease'),
            build=match.group('build'),
        )

    @property
    def core(self) -> Tuple[int, int, int]:
        return self.major, self.minor, self.patch

    def _precedence_key(self):
        if self.prerelease is None:
            pre_key = (1, ())
        else:
            pre_key = (0, tuple(_identifier_key(p) for p in self.prerelease.split('.')))
        return self.core, pre_key, self.build or ""

    def __lt__(self, other):
        if not isinstance(other, Version):
            return NotImplemented
        return self._precedence_key() < other._precedence_key()

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += f"-{self.prerelease}"
        if self.build:
            text += f"+{self.build}"
        return text
