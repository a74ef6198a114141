"""Exception definitions for promote-tool API"""

from ..constants import ErrorCode


class PromoteToolError(Exception):
    """Base exception for promote-tool"""

    def __init__(self, message: str, error_code: str = None):
        super().__init__(message)
        self.error_code = error_code


class ConfigError(PromoteToolError):
    """Configuration error"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.CONFIG_FORMAT_ERROR)


class ProjectNotFoundError(ConfigError):
    """Project configuration not found"""

    def __init__(self, message: str = None):
        if message is None:
            message = (
                "No project configuration found. Please ensure:\n"
                "1. You are in a project directory\n"
                "2. The project root contains .promote-tool.yaml\n"
                "3. Or use --config to specify the configuration file\n"
                "\n"
                "Initialize a new project: promote-tool init"
            )
        super().__init__(message)
        self.error_code = ErrorCode.PROJECT_NOT_FOUND


class ValidationError(PromoteToolError):
    """Invalid input value"""

    def __init__(self, message: str, error_code: str = ErrorCode.VERSION_FORMAT_ERROR):
        super().__init__(message, error_code)


class LedgerError(PromoteToolError):
    """Version ledger error"""
    pass


class UnknownEnvironmentError(LedgerError):
    """Environment is not configured"""

    def __init__(self, environment: str):
        super().__init__(f"Unknown environment: {environment}", ErrorCode.UNKNOWN_ENVIRONMENT)
        self.environment = environment


class UnknownVersionError(LedgerError):
    """No release recorded for version"""

    def __init__(self, version):
        super().__init__(f"No release recorded for version {version}", ErrorCode.UNKNOWN_VERSION)
        self.version = version


class DuplicateVersionError(LedgerError):
    """Release already recorded"""

    def __init__(self, version):
        super().__init__(f"Release {version} already exists", ErrorCode.DUPLICATE_VERSION)
        self.version = version


class LedgerInconsistencyError(LedgerError):
    """Ledger contents violate an invariant.

    Never expected at runtime; raising it means there is a bug.
    """

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.LEDGER_INCONSISTENT)


class LedgerCorruptError(LedgerError):
    """Ledger file cannot be parsed"""

    def __init__(self, path, reason: str):
        super().__init__(f"Cannot read ledger {path}: {reason}", ErrorCode.LEDGER_CORRUPT)
        self.path = path


class TransitionError(PromoteToolError):
    """Environment transition error"""
    pass


class TransitionInProgressError(TransitionError):
    """Another transition holds the environment lock"""

    def __init__(self, environment: str, holder: str = None):
        message = f"Transition already in progress for environment {environment}"
        if holder:
            message += f" (held by {holder})"
        super().__init__(message, ErrorCode.TRANSITION_IN_PROGRESS)
        self.environment = environment
        self.holder = holder


class NoPriorVersionError(TransitionError):
    """Nothing older to roll back to"""

    def __init__(self, environment: str):
        super().__init__(
            f"No prior version to roll back to for environment {environment}",
            ErrorCode.NO_PRIOR_VERSION
        )
        self.environment = environment
