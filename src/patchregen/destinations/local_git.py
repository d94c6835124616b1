"""
Local git destination.

Reads destination content at any revision straight from the object database
and pushes regenerated trees as commits built with a temporary index, so the
repository's working tree and current branch are never touched.

Regenerated changes land on ``refs/heads/<push_branch>`` (default
``regen/<workflow name>``) as a child of the target revision.
"""

from __future__ import annotations

import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ..config import settings
from ..exceptions import RepoError
from ..file_glob import Glob
from ..patching.diff_utils import list_tree_files
from ..patching.git_tools import rev_parse, run_git

logger = logging.getLogger(__name__)

MODE_EXECUTABLE = "100755"
MODE_SYMLINK = "120000"
MODE_REGULAR = "100644"


def _read_batch_blobs(repo_path: Path, shas: List[str], env: Optional[Dict[str, str]]) -> Dict[str, bytes]:
    """Read many blobs with a single ``git cat-file --batch``."""
    if not shas:
        return {}

    unique = list(dict.fromkeys(shas))
    request = ("\n".join(unique) + "\n").encode("ascii")
    output = run_git(["cat-file", "--batch"], cwd=repo_path, env=env, input=request, text=False).stdout

    blobs: Dict[str, bytes] = {}
    pos = 0
    for sha in unique:
        header_end = output.index(b"\n", pos)
        header = output[pos:header_end].decode("ascii").split()
        if len(header) < 3 or header[1] == "missing":
            raise RepoError(f"Object {sha} missing from {repo_path}")
        size = int(header[2])
        start = header_end + 1
        blobs[sha] = output[start:start + size]
        pos = start + size + 1
    return blobs


class GitDestinationReader:
    """Destination content of a local repository at one revision."""

    def __init__(self, repo_path: Path, revision: str, env: Optional[Dict[str, str]] = None):
        self.repo_path = repo_path
        self.revision = revision
        self.env = env

    def list_files(self, selector: Glob) -> List[Tuple[str, str, str]]:
        """(mode, sha, path) for every blob at the revision matching selector."""
        args = ["ls-tree", "-r", "-z", "--full-tree", self.revision]
        roots = selector.roots()
        if roots != [""]:
            args += ["--"] + roots

        output = run_git(args, cwd=self.repo_path, env=self.env, text=False).stdout
        entries = []
        for raw in output.split(b"\0"):
            if not raw:
                continue
            meta, path_bytes = raw.split(b"\t", 1)
            mode, obj_type, sha = meta.decode("ascii").split()
            path = path_bytes.decode("utf-8")
            # Submodule entries are commits, not content
            if obj_type != "blob" or not selector.matches(path):
                continue
            entries.append((mode, sha, path))
        return entries

    def copy_destination_files_to_directory(self, selector: Glob, directory: Path) -> None:
        entries = self.list_files(selector)
        blobs = _read_batch_blobs(self.repo_path, [sha for _, sha, _ in entries], self.env)

        for mode, sha, path in entries:
            dest = directory / path
            dest.parent.mkdir(parents=True, exist_ok=True)
            if dest.is_symlink() or dest.exists():
                dest.unlink()

            data = blobs[sha]
            if mode == MODE_SYMLINK:
                os.symlink(data.decode("utf-8"), dest)
                continue

            dest.write_bytes(data)
            if mode == MODE_EXECUTABLE:
                dest.chmod(0o755)

        logger.debug(
            f"[LocalGit] Copied {len(entries)} file(s) at {self.revision} matching {selector} into {directory}"
        )


class LocalGitPatchRegenerator:
    """Patch regeneration capability of a local git destination."""

    def __init__(self, destination: "LocalGitDestination"):
        self.destination = destination

    def infer_regen_target(self) -> Optional[str]:
        return self.destination.rev_parse(self.destination.ref)

    def infer_regen_baseline(self) -> Optional[str]:
        target = self.infer_regen_target()
        if target is None:
            return None
        return self.destination.rev_parse(f"{target}^")

    def update_change(self, workflow_name: str, tree: Path, selector: Glob, target: str) -> str:
        """
        Commit tree (restricted to selector) on top of target and move the push branch.

        Files matching selector that are missing from tree are deleted in the new
        commit; files outside selector are kept as they are in target.

        Returns:
            Id of the new commit, or target itself when nothing changed
        """
        dest = self.destination
        branch = dest.push_branch or f"regen/{workflow_name}"

        with tempfile.TemporaryDirectory(prefix="patchregen-index-") as tmp:
            env = dest.git_env(GIT_INDEX_FILE=str(Path(tmp) / "index"))
            repo = dest.repo_path

            run_git(["read-tree", target], cwd=repo, env=env)

            listed = run_git(["ls-files", "-z"], cwd=repo, env=env).stdout.split("\0")
            stale = [p for p in listed if p and selector.matches(p)]
            if stale:
                run_git(
                    ["update-index", "-z", "--force-remove", "--stdin"],
                    cwd=repo,
                    env=env,
                    input="\0".join(stale) + "\0",
                )

            records = self._index_records(tree, selector, env)
            if records:
                run_git(
                    ["update-index", "-z", "--index-info"],
                    cwd=repo,
                    env=env,
                    input="".join(records),
                )

            tree_sha = run_git(["write-tree"], cwd=repo, env=env).stdout.strip()
            target_tree = run_git(["rev-parse", f"{target}^{{tree}}"], cwd=repo, env=env).stdout.strip()
            if tree_sha == target_tree:
                logger.info(f"[LocalGit] Regenerated tree for {workflow_name} matches {target}; nothing to push")
                return target

            message = f"Regenerate patches for {workflow_name}\n\nRegenerate-Target: {target}\n"
            commit = run_git(
                ["commit-tree", tree_sha, "-p", target, "-F", "-"], cwd=repo, env=env, input=message
            ).stdout.strip()
            run_git(["update-ref", f"refs/heads/{branch}", commit], cwd=repo, env=env)

        logger.info(f"[LocalGit] Pushed {commit} to {branch} (target {target})")
        return commit

    def _index_records(self, tree: Path, selector: Glob, env: Dict[str, str]) -> List[str]:
        repo = self.destination.repo_path
        regular: List[Tuple[str, Path]] = []
        records: List[str] = []

        for rel, path in list_tree_files(tree, selector).items():
            if path.is_symlink():
                sha = run_git(
                    ["hash-object", "-w", "--stdin"], cwd=repo, env=env, input=os.readlink(path)
                ).stdout.strip()
                records.append(f"{MODE_SYMLINK} {sha}\t{rel}\0")
            else:
                regular.append((rel, path))

        if regular:
            paths_input = "\n".join(str(p) for _, p in regular) + "\n"
            shas = run_git(
                ["hash-object", "-w", "--no-filters", "--stdin-paths"], cwd=repo, env=env, input=paths_input
            ).stdout.split()
            for (rel, path), sha in zip(regular, shas):
                mode = MODE_EXECUTABLE if os.access(path, os.X_OK) else MODE_REGULAR
                records.append(f"{mode} {sha}\t{rel}\0")

        return records


class LocalGitDestination:
    """Destination backed by a git repository on the local filesystem."""

    def __init__(
        self,
        repo_path: Path,
        ref: str = "HEAD",
        push_branch: Optional[str] = None,
        hash_function: str = "sha256",
        env: Optional[Dict[str, str]] = None,
    ):
        """
        Args:
            repo_path: Repository root
            ref: Reference the regen target is inferred from
            push_branch: Branch receiving regenerated changes (default regen/<workflow>)
            hash_function: hashlib algorithm used for snapshot patches
            env: Base environment for git commands (default: os.environ)
        """
        self.repo_path = Path(repo_path)
        self.ref = ref
        self.push_branch = push_branch
        self.hash_function = hash_function
        self.env = env

    def git_env(self, **overrides: str) -> Dict[str, str]:
        env = dict(self.env if self.env is not None else os.environ)
        env.setdefault("GIT_AUTHOR_NAME", settings.git_author_name)
        env.setdefault("GIT_AUTHOR_EMAIL", settings.git_author_email)
        env.setdefault("GIT_COMMITTER_NAME", settings.git_author_name)
        env.setdefault("GIT_COMMITTER_EMAIL", settings.git_author_email)
        env.update(overrides)
        return env

    def rev_parse(self, rev: str) -> Optional[str]:
        return rev_parse(self.repo_path, rev, self.env)

    def get_patch_regenerator(self) -> LocalGitPatchRegenerator:
        return LocalGitPatchRegenerator(self)

    def get_destination_reader(self, revision: str) -> GitDestinationReader:
        return GitDestinationReader(self.repo_path, revision, self.env)

    def last_label_value(self, label: str) -> Optional[str]:
        """
        Latest value of a ``<label>: <value>`` line in commit messages reachable from ref.

        Returns:
            The value, or None when no commit carries the label (or ref is unborn)
        """
        result = run_git(
            ["log", "--format=%B%x00", self.ref], cwd=self.repo_path, env=self.env, check=False
        )
        if result.returncode != 0:
            return None

        pattern = re.compile(rf"^{re.escape(label)}:\s*(\S+)\s*$", re.MULTILINE)
        for message in result.stdout.split("\0"):
            matches = pattern.findall(message)
            if matches:
                return matches[-1]
        return None
