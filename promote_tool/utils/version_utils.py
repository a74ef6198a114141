"""Version management utilities"""

from typing import Optional

from ..constants import ChangeClass
from ..models.version import Version


def classify_change(current: Optional[Version], candidate: Version) -> Optional[ChangeClass]:
    """
    Classify the change from current to candidate

    Args:
        current: Currently deployed version (None when nothing is deployed)
        candidate: Version about to be deployed

    Returns:
        The most significant component that differs, or None when there is
        nothing to compare against or the versions share major, minor,
        patch and pre-release
    """
    if current is None:
        return None

    if candidate.major != current.major:
        return ChangeClass.MAJOR
    if candidate.minor != current.minor:
        return ChangeClass.MINOR
    if candidate.patch != current.patch:
        return ChangeClass.PATCH
    if candidate.prerelease != current.prerelease:
        return ChangeClass.PRERELEASE
    return None
