"""Exception taxonomy for testwarden."""


class TestwardenError(Exception):
    """Base class for all testwarden errors."""


class ParseError(TestwardenError):
    """A test file cannot be structurally modeled (malformed syntax, undecodable bytes)."""

    def __init__(self, path: str, message: str, line: int | None = None) -> None:
        self.path = path
        self.message = message
        self.line = line
        location = f"{path}:{line}" if line is not None else path
        super().__init__(f"{location}: {message}")


class SourceReadError(TestwardenError):
    """A test file or input path cannot be read (missing path, permissions)."""

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}")


class RuleExecutionError(TestwardenError):
    """A rule raised while evaluating a test unit."""

    def __init__(self, rule_id: str, unit: str, cause: BaseException) -> None:
        self.rule_id = rule_id
        self.unit = unit
        self.cause = cause
        super().__init__(
            f"rule {rule_id} failed on {unit}: {type(cause).__name__}: {cause}")


class ConfigurationError(TestwardenError):
    """Invalid rule selection or malformed configuration. Raised before any file is read."""


class AnalysisCancelled(TestwardenError):
    """The analysis run was cancelled; no report is produced."""

    def __init__(self, path: str | None = None) -> None:
        self.path = path
        suffix = f" before {path}" if path else ""
        super().__init__(f"analysis cancelled{suffix}")
