"""CLI commands"""

from . import init
from . import release
from . import deploy
from . import promote
from . import rollback
from . import status
from . import history
from . import approve

__all__ = [
    "init",
    "release",
    "deploy",
    "promote",
    "rollback",
    "status",
    "history",
    "approve",
]
