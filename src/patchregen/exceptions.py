"""Custom exceptions for patchregen."""

from pathlib import Path
from typing import Optional, Union


class RegenError(Exception):
    """Base exception for all patchregen errors."""

    pass


class ValidationError(RegenError):
    """Raised for user-correctable problems.

    The message should name the option or flag that resolves the problem.
    """

    pass


class ConfigError(ValidationError):
    """Raised when settings or a workflow config file are invalid."""

    pass


class RepoError(RegenError):
    """Raised when reading from or writing to a repository fails."""

    def __init__(self, message: str, stderr: Optional[str] = None):
        """
        Initialize repository error.

        Args:
            message: Error message
            stderr: Optional stderr of the failing command
        """
        super().__init__(message)
        self.stderr = stderr


class PatchError(RegenError):
    """Raised when generating or reversing patches fails."""

    pass


class InsideGitDirError(RegenError):
    """Raised when patch tooling is asked to work inside a git working copy."""

    def __init__(self, message: str, path: Union[str, Path], git_dir_path: Union[str, Path]):
        """
        Initialize inside-git-dir error.

        Args:
            message: Error message
            path: Directory the tooling was asked to operate in
            git_dir_path: Top level of the enclosing git working copy
        """
        super().__init__(message)
        self.path = Path(path)
        self.git_dir_path = Path(git_dir_path)


def check_condition(condition: bool, message: str) -> None:
    """Raise ValidationError with message unless condition holds."""
    if not condition:
        raise ValidationError(message)
