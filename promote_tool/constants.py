"""Global constants for promote-tool"""

from enum import Enum, IntEnum
import re

APP_NAME = "promote-tool"
LOG_FORMAT = "%(message)s"

# Version related
LEDGER_SCHEMA_VERSION = "1.0"
CONFIG_VERSION = "1.0"

# Project identification
PROJECT_CONFIG_FILE = ".promote-tool.yaml"

# Ledger and state layout
DEFAULT_LEDGER_FILE = "infrastructure-version.json"
DEFAULT_STATE_DIR = ".promote-tool"
LOCKS_DIR = "locks"
LEDGER_LOCK_SUFFIX = ".lock"
DEFAULT_HISTORY_LIMIT = 5

# Timeouts (seconds)
DEFAULT_DEPLOY_TIMEOUT = 1800
DEFAULT_VERIFY_TIMEOUT = 60
DEFAULT_UNDO_TIMEOUT = 1800
TIMEOUT_GRACE = 5  # extra wait before abandoning a collaborator that ignores its timeout

# Default environment chain
DEFAULT_ENVIRONMENTS = ["development", "staging", "production"]

# Environment variables
ENV_CONFIG_PATH = "PROMOTE_TOOL_CONFIG"
ENV_LOG_LEVEL = "PROMOTE_TOOL_LOG_LEVEL"
ENV_APPROVAL_SECRET = "PROMOTE_TOOL_APPROVAL_SECRET"
ENV_ACTOR = "PROMOTE_TOOL_ACTOR"
ENV_DEPLOY_ENVIRONMENT = "PROMOTE_TOOL_ENVIRONMENT"
ENV_DEPLOY_VERSION = "PROMOTE_TOOL_VERSION"


class ChangeClass(Enum):
    """Kind of version change between two releases"""
    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"
    PRERELEASE = "prerelease"


class ExecutorType(Enum):
    COMMAND = "command"
    NOOP = "noop"


class ProbeType(Enum):
    HTTP = "http"
    COMMAND = "command"


class ExitCode(IntEnum):
    """Stable process exit codes, one per failure reason"""
    COMMITTED = 0
    ERROR = 1
    POLICY_DENIED = 2
    DEPLOY_FAILED = 3
    VERIFICATION_FAILED = 4
    LOCK_HELD = 5
    MANUAL_ROLLBACK_REQUIRED = 6
    PRECONDITION_FAILED = 7


# Error codes
class ErrorCode:
    CONFIG_FORMAT_ERROR = "PT001"
    PROJECT_NOT_FOUND = "PT002"
    VERSION_FORMAT_ERROR = "PT003"
    UNKNOWN_ENVIRONMENT = "PT004"
    UNKNOWN_VERSION = "PT005"
    DUPLICATE_VERSION = "PT006"
    LEDGER_INCONSISTENT = "PT007"
    POLICY_DENIED = "PT008"
    TRANSITION_IN_PROGRESS = "PT009"
    DEPLOY_FAILED = "PT010"
    DEPLOY_TIMEOUT = "PT011"
    VERIFICATION_FAILED = "PT012"
    UNDO_FAILED = "PT013"
    NO_PRIOR_VERSION = "PT014"
    NOT_AN_ENTRY_ENVIRONMENT = "PT015"
    LEDGER_CORRUPT = "PT016"
    ROLLBACK_TARGET_NOT_OLDER = "PT017"


# Validation patterns
VERSION_PATTERN = re.compile(
    r"^[vV]?(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<prerelease>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"$"
)
ENVIRONMENT_NAME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9_-]*$")
COMPONENT_NAME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9_.-]*$")
DURATION_PATTERN = re.compile(r"^\s*(?P<value>\d+(?:\.\d+)?)\s*(?P<unit>[smhdw]?)\s*$")

DURATION_UNITS = {
    "": 1,
    "s": 1,
    "m": 60,
    "h": 3600,
    "d": 86400,
    "w": 604800,
}

# Display constants
EMOJI_SUCCESS = "✓"
EMOJI_ERROR = "✗"
EMOJI_WARNING = "⚠"
EMOJI_ARROW = "→"
EMOJI_LOCK = "🔒"
EMOJI_ROCKET = "🚀"

# Messages templates
MSG_PROMOTION_COMMITTED = f"{EMOJI_SUCCESS} Promoted {{version}}: {{source}} {EMOJI_ARROW} {{target}}"
MSG_DEPLOY_COMMITTED = f"{EMOJI_SUCCESS} Deployed {{version}} to {{target}}"
MSG_ROLLBACK_COMMITTED = f"{EMOJI_SUCCESS} Rolled back {{target}}: {{from_version}} {EMOJI_ARROW} {{to_version}}"
MSG_LOCK_HELD = f"{EMOJI_LOCK} Another transition is in progress for {{environment}}"
MSG_MANUAL_ROLLBACK = (
    f"{EMOJI_WARNING} {{environment}} is deployed but unverified. "
    "Manual rollback required."
)
