from dataclasses import dataclass
from typing import Any


@dataclass
class ErrorEnvelope:
    code: str
    message: str
    type: str
    command: str

    def as_dict(self) -> dict[str, Any]:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "type": self.type,
                "command": self.command,
            }
        }


class ReleaseError(Exception):
    def __init__(self, code: str, error_type: str, message: str):
        super().__init__(message)
        self.code = code
        self.error_type = error_type
        self.message = message

    def envelope(self, command: str) -> ErrorEnvelope:
        return ErrorEnvelope(
            code=self.code, message=self.message, type=self.error_type, command=command
        )


class ConfigError(ReleaseError):
    """Raised for malformed or inconsistent release configuration."""

    def __init__(self, message: str, code: str = "config_invalid"):
        super().__init__(code, "config", message)


class MissingInputError(ConfigError):
    """Raised in CI mode when a required input has no value."""

    def __init__(self, input_name: str):
        super().__init__(f"Missing required input: {input_name}", code="missing_input")
        self.input_name = input_name


class GitError(ReleaseError):
    def __init__(self, message: str, code: str = "git_failed"):
        super().__init__(code, "git", message)


class GitCommandError(GitError):
    def __init__(self, command: list[str], returncode: int, output: str):
        self.command = command
        self.returncode = returncode
        self.output = output
        super().__init__(
            f"command failed ({returncode}): {' '.join(command)}: {output.strip()}",
            code="git_command_failed",
        )


class CommitParseError(GitError):
    def __init__(self, message: str):
        super().__init__(message, code="commit_unparseable")


class TemplateError(ReleaseError):
    """Raised when a changelog template fails to parse or render."""

    def __init__(self, message: str, template_name: str = "content"):
        super().__init__("template_invalid", "template", f"{template_name} template: {message}")
        self.template_name = template_name


class ChangelogParseError(ReleaseError):
    """Raised when a previous changelog lacks the separator markers."""

    def __init__(self, message: str):
        super().__init__("changelog_unparseable", "changelog", message)


class ChangelogIOError(ReleaseError):
    def __init__(self, message: str):
        super().__init__("changelog_io_failed", "io", message)


class ReleaseAborted(ReleaseError):
    def __init__(self, message: str = "Aborted by user"):
        super().__init__("aborted", "user", message)
