"""Pytest configuration and fixtures for patchregen tests"""

import subprocess
import sys
from pathlib import Path
from typing import Dict, List, Optional

import pytest

# Ensure src directory is in Python path before any imports
project_root = Path(__file__).resolve().parent.parent
src_path = project_root / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from patchregen.file_glob import Glob  # noqa: E402
from patchregen.patching.diff_utils import list_tree_files  # noqa: E402


def write_tree(root: Path, files: Dict[str, object]) -> Path:
    """Write {relative path: str | bytes} under root."""
    root.mkdir(parents=True, exist_ok=True)
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_bytes(content.encode("utf-8"))
    return root


def read_tree(root: Path) -> Dict[str, bytes]:
    """Read every regular file under root as {relative path: bytes}."""
    return {rel: path.read_bytes() for rel, path in list_tree_files(root).items()}


def git(repo: Path, *args: str, input: Optional[str] = None) -> str:
    result = subprocess.run(
        ["git", *args], cwd=repo, check=True, capture_output=True, text=True, input=input
    )
    return result.stdout.strip()


def init_repo(repo_path: Path) -> Path:
    """Create an empty git repository with a test identity."""
    repo_path.mkdir(parents=True, exist_ok=True)
    git(repo_path, "init", "-q")
    git(repo_path, "config", "user.email", "test@test.com")
    git(repo_path, "config", "user.name", "Test User")
    git(repo_path, "config", "commit.gpgsign", "false")
    return repo_path


def commit_tree(repo: Path, files: Dict[str, object], message: str, delete: List[str] = ()) -> str:
    """Write files (and remove paths in delete), commit everything and return the commit id."""
    write_tree(repo, files)
    for rel in delete:
        (repo / rel).unlink()
    git(repo, "add", "-A")
    git(repo, "commit", "-q", "--allow-empty", "-m", message)
    return git(repo, "rev-parse", "HEAD")


class FakeReader:
    """In-memory destination content at one revision."""

    def __init__(self, files: Dict[str, bytes]):
        self.files = files

    def copy_destination_files_to_directory(self, selector: Glob, directory: Path) -> None:
        write_tree(directory, {rel: data for rel, data in self.files.items() if selector.matches(rel)})


class FakeRegenerator:
    """Records update_change calls and the tree content pushed."""

    def __init__(self, target: Optional[str] = None, baseline: Optional[str] = None):
        self.target = target
        self.baseline = baseline
        self.calls = []
        self.pushed: Optional[Dict[str, bytes]] = None

    def infer_regen_target(self) -> Optional[str]:
        return self.target

    def infer_regen_baseline(self) -> Optional[str]:
        return self.baseline

    def update_change(self, workflow_name: str, tree: Path, selector: Glob, target: str):
        self.calls.append((workflow_name, tree, selector, target))
        self.pushed = {rel: data for rel, data in read_tree(tree).items() if selector.matches(rel)}
        return f"pushed-{target}"


class FakeDestination:
    """Destination whose revisions are plain dicts of file contents."""

    def __init__(
        self,
        revisions: Dict[str, Dict[str, object]],
        regenerator: Optional[FakeRegenerator] = None,
        hash_function: str = "sha256",
    ):
        self.revisions = {
            rev: {rel: c if isinstance(c, bytes) else c.encode("utf-8") for rel, c in files.items()}
            for rev, files in revisions.items()
        }
        self.regenerator = regenerator
        self.hash_function = hash_function
        self.readers_requested: List[str] = []

    def get_patch_regenerator(self) -> Optional[FakeRegenerator]:
        return self.regenerator

    def get_destination_reader(self, revision: str) -> FakeReader:
        self.readers_requested.append(revision)
        return FakeReader(self.revisions[revision])


class FakeRunner:
    """Migration runner that writes a fixed tree per origin revision."""

    def __init__(
        self,
        output_dir: Path,
        trees: Dict[str, Dict[str, object]],
        last_imported: Optional[str] = "o1",
        resolved: str = "o2",
        history: bool = True,
    ):
        self.output_dir = output_dir
        self.trees = trees
        self.last_imported = last_imported
        self.resolved = resolved
        self.history = history
        self.imports = []

    def resolve(self, source_ref: Optional[str]) -> str:
        return source_ref or self.resolved

    def supports_history(self) -> bool:
        return self.history

    def last_imported_revision(self) -> Optional[str]:
        return self.last_imported

    def import_and_transform(self, last_revision, current_revision, reader_supplier) -> Path:
        self.imports.append((last_revision, current_revision, reader_supplier))
        write_tree(self.output_dir, self.trees[current_revision])
        return self.output_dir


@pytest.fixture
def workdir(tmp_path):
    """Staging root outside any git repository."""
    return tmp_path / "work"


@pytest.fixture
def temp_repo(tmp_path):
    """Create a temporary git repository for testing."""
    return init_repo(tmp_path / "dest_repo")
