"""Error taxonomy for simpack builds.

Every fatal failure derives from SimpackError so the CLI can report it with a
single handler. OptionalResourceAbsent is the only error the orchestrator
catches and downgrades (it skips the dependent output).
"""


class SimpackError(Exception):
    """Base class for all simpack build failures."""

    pass


class PreconditionError(SimpackError):
    """Raised when a build request or the workspace is invalid.

    Checked before any transformation work begins.
    """

    pass


class MissingRequiredDataError(SimpackError):
    """Raised when data the build cannot do without is absent (e.g. the title string)."""

    pass


class ToolInvocationError(SimpackError):
    """Raised when an external tool (npx, git, r.js) exits unsuccessfully.

    Attributes:
        cmd: The command that was run
        returncode: Process exit code (None if the tool could not be started)
        stderr: Captured error output of the tool
    """

    def __init__(self, message: str, cmd: list[str], returncode: int | None, stderr: str = ""):
        super().__init__(message)
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr


class TransformError(SimpackError):
    """Raised when the code transformer or compressor reports an error.

    The underlying tool message is part of the exception text.
    """

    pass


class OptionalResourceAbsent(SimpackError):
    """Raised when an optional input (e.g. a screenshot) does not exist."""

    pass
