"""Thin wrappers around the git CLI used by the patch tooling and local git collaborators."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Union

from ..config import settings
from ..exceptions import InsideGitDirError, PatchError, RepoError

logger = logging.getLogger(__name__)


def run_git(
    args: List[str],
    cwd: Union[str, Path],
    env: Optional[Dict[str, str]] = None,
    check: bool = True,
    input: Optional[Union[str, bytes]] = None,
    text: bool = True,
) -> subprocess.CompletedProcess:
    """
    Run a git command.

    Args:
        args: Git command arguments (e.g., ['rev-parse', 'HEAD'])
        cwd: Working directory
        env: Full environment for the subprocess (None = inherit)
        check: Raise RepoError on non-zero exit
        input: Data sent to stdin
        text: Decode stdout/stderr as text

    Returns:
        CompletedProcess result

    Raises:
        RepoError: If the command fails (check=True) or times out
    """
    cmd = [settings.git_binary] + args
    logger.debug(f"[Git] Running: {' '.join(cmd)} (cwd={cwd})")

    try:
        result = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=env,
            input=input,
            capture_output=True,
            text=text,
            timeout=settings.git_timeout_seconds,
        )
    except subprocess.TimeoutExpired:
        raise RepoError(f"git {args[0]} timed out after {settings.git_timeout_seconds}s")
    except OSError as e:
        raise RepoError(f"Could not run {settings.git_binary}: {e}")

    if check and result.returncode != 0:
        stderr = result.stderr if text else result.stderr.decode("utf-8", errors="replace")
        raise RepoError(f"git {' '.join(args[:2])} failed: {stderr.strip()}", stderr=stderr)

    return result


def find_enclosing_git_dir(path: Path, env: Optional[Dict[str, str]] = None) -> Optional[Path]:
    """Return the top level of the git working copy containing path, if any."""
    result = run_git(["rev-parse", "--show-toplevel"], cwd=path, env=env, check=False)
    if result.returncode != 0:
        return None
    toplevel = result.stdout.strip()
    return Path(toplevel) if toplevel else None


def ensure_not_inside_git_dir(path: Path, env: Optional[Dict[str, str]] = None) -> None:
    """
    Refuse to run patch tooling inside a git working copy.

    git apply resolves paths against the repository top level when run inside
    one, so patches would silently land in (or be skipped for) the wrong files.

    Raises:
        InsideGitDirError: If path is inside a git working copy
    """
    git_dir = find_enclosing_git_dir(path, env)
    if git_dir is not None:
        raise InsideGitDirError(
            f"{path} is inside git repository {git_dir}", path=path, git_dir_path=git_dir
        )


def apply_patch_file(
    directory: Path,
    patch_file: Path,
    reverse: bool = False,
    env: Optional[Dict[str, str]] = None,
) -> None:
    """
    Apply a unified diff to the files under directory.

    Args:
        directory: Tree the patch paths are relative to (a/ and b/ prefixed)
        patch_file: Patch to apply
        reverse: Apply the inverse of the patch
        env: Environment for git

    Raises:
        InsideGitDirError: If directory is inside a git working copy
        PatchError: If git apply rejects the patch
    """
    ensure_not_inside_git_dir(directory, env)

    cmd = ["apply", "-p1", "--whitespace=nowarn"]
    if reverse:
        cmd.append("-R")
    cmd.append(str(patch_file.resolve()))

    result = run_git(cmd, cwd=directory, env=env, check=False)
    if result.returncode != 0:
        action = "reverse" if reverse else "apply"
        raise PatchError(f"Failed to {action} {patch_file.name} on {directory}: {result.stderr.strip()}")


def rev_parse(repo_path: Path, rev: str, env: Optional[Dict[str, str]] = None) -> Optional[str]:
    """Commit id for rev, or None if it does not resolve to a commit."""
    result = run_git(
        ["rev-parse", "--verify", "--quiet", f"{rev}^{{commit}}"], cwd=repo_path, env=env, check=False
    )
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None
