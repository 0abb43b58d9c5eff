"""Error types raised when driving the tf command-line tool."""

from __future__ import annotations


class TfvcError(Exception):
    """Base error carrying the failed command and whatever output it produced."""

    def __init__(
        self,
        message: str,
        command: str,
        args: list[str] | None = None,
        exit_code: int | None = None,
        output: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.command = command
        self.args_list = list(args or [])
        self.exit_code = exit_code
        self.output = output

    def to_dict(self) -> dict:
        return {
            "type": type(self).__name__,
            "message": self.message,
            "command": self.command,
            "args": self.args_list,
            "exit_code": self.exit_code,
            "output": self.output,
        }


class WorkspaceError(TfvcError):
    """No workspace root could be resolved."""

    def __init__(self, message: str):
        super().__init__(message, "workspace")


class ConfigurationError(TfvcError):
    """Tool path or settings are invalid."""

    def __init__(self, message: str):
        super().__init__(message, "config")


class CommandError(TfvcError):
    """The tool exited non-zero or could not be spawned.

    ``auth_failure`` is set when the captured output looks like an
    authentication problem. It only changes what gets logged, callers handle
    it like any other command failure.
    """

    def __init__(
        self,
        message: str,
        command: str,
        args: list[str] | None = None,
        exit_code: int | None = None,
        output: str | None = None,
        auth_failure: bool = False,
    ):
        super().__init__(message, command, args, exit_code, output)
        self.auth_failure = auth_failure

    @classmethod
    def from_command_failure(
        cls,
        command: str,
        args: list[str],
        exit_code: int | None,
        output: str,
        auth_failure: bool = False,
    ) -> CommandError:
        message = f"TFVC command failed: {command} {' '.join(args)}".rstrip()
        if exit_code is not None:
            message += f"\nExit code: {exit_code}"
        if output:
            message += f"\nOutput: {output}"
        return cls(message, command, args, exit_code, output, auth_failure=auth_failure)

    @classmethod
    def wrap(cls, message: str, command: str, args: list[str], cause: Exception) -> CommandError:
        """Re-raise a lower-level failure under an operation name."""
        auth_failure = getattr(cause, "auth_failure", False)
        return cls(message, command, args, None, str(cause), auth_failure=auth_failure)
