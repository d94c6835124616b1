"""Content-addressed snapshot patch codec.

A snapshot patch captures the delta between two whole trees as a single
artifact:

- ``file_hashes``: hash of every selected file in the post-image tree, so a
  tree can be checked before the patch is reversed against it;
- ``entries``: one record per changed file carrying either a git-style text
  diff or, for binary content, the base64 encoded pre-image.

Serialized form is a UTF-8 JSON document (``to_bytes`` / ``from_bytes``).
"""

from __future__ import annotations

import base64
import hashlib
import json
import logging
import os
import tempfile
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Dict, List, Optional

from ..config import settings
from ..exceptions import PatchError
from ..file_glob import Glob
from .diff_utils import is_binary, list_tree_files, unified_diff
from .git_tools import apply_patch_file

logger = logging.getLogger(__name__)

SNAPSHOT_FORMAT_VERSION = 1

ENCODING_DIFF = "diff"
ENCODING_BASE64 = "base64"


def hash_bytes(data: bytes, hash_function: str) -> str:
    """Hex digest of data with a hashlib algorithm name."""
    try:
        hasher = hashlib.new(hash_function)
    except ValueError:
        raise PatchError(f"Unsupported hash function for snapshot patch: {hash_function}")
    hasher.update(data)
    return hasher.hexdigest()


@dataclass
class SnapshotEntry:
    """Change record for one file."""

    path: str
    operation: str  # add, delete, modify
    before_hash: Optional[str]
    after_hash: Optional[str]
    encoding: str
    payload: str


class SnapshotPatch:
    """Whole-tree delta, reversible as a unit."""

    def __init__(self, hash_function: str, file_hashes: Dict[str, str], entries: List[SnapshotEntry]):
        self.hash_function = hash_function
        self.file_hashes = file_hashes
        self.entries = entries

    @classmethod
    def generate(cls, one: Path, other: Path, hash_function: str, selector: Glob) -> "SnapshotPatch":
        """
        Compute the snapshot patch turning tree one into tree other.

        Args:
            one: Pre-image tree
            other: Post-image tree
            hash_function: hashlib algorithm name (supplied by the destination)
            selector: Files that take part in the snapshot
        """
        before_files = list_tree_files(one, selector)
        after_files = list_tree_files(other, selector)

        file_hashes: Dict[str, str] = {}
        after_contents: Dict[str, bytes] = {}
        for rel, path in after_files.items():
            data = path.read_bytes()
            after_contents[rel] = data
            file_hashes[rel] = hash_bytes(data, hash_function)

        entries: List[SnapshotEntry] = []
        for rel in sorted(set(before_files) | set(after_files)):
            before = before_files[rel].read_bytes() if rel in before_files else None
            after = after_contents.get(rel)
            if before == after:
                continue

            if before is None:
                operation = "add"
            elif after is None:
                operation = "delete"
            else:
                operation = "modify"

            binary = (before is not None and is_binary(before)) or (after is not None and is_binary(after))
            if binary:
                encoding = ENCODING_BASE64
                payload = base64.b64encode(before).decode("ascii") if before is not None else ""
            else:
                encoding = ENCODING_DIFF
                payload = unified_diff(
                    rel,
                    before.decode("utf-8") if before is not None else None,
                    after.decode("utf-8") if after is not None else None,
                    settings.diff_context_lines,
                )

            entries.append(
                SnapshotEntry(
                    path=rel,
                    operation=operation,
                    before_hash=hash_bytes(before, hash_function) if before is not None else None,
                    after_hash=file_hashes.get(rel),
                    encoding=encoding,
                    payload=payload,
                )
            )

        logger.info(
            f"[Snapshot] {len(entries)} changed file(s), {len(file_hashes)} file(s) hashed with {hash_function}"
        )
        return cls(hash_function, file_hashes, entries)

    def to_bytes(self) -> bytes:
        document = {
            "version": SNAPSHOT_FORMAT_VERSION,
            "hash_function": self.hash_function,
            "file_hashes": self.file_hashes,
            "entries": [asdict(e) for e in self.entries],
        }
        return (json.dumps(document, indent=2, sort_keys=True) + "\n").encode("utf-8")

    @classmethod
    def from_bytes(cls, data: bytes) -> "SnapshotPatch":
        try:
            document = json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise PatchError(f"Malformed snapshot patch: {e}")

        if not isinstance(document, dict) or document.get("version") != SNAPSHOT_FORMAT_VERSION:
            raise PatchError(
                f"Unsupported snapshot patch version: {document.get('version') if isinstance(document, dict) else None}"
            )

        try:
            entries = [SnapshotEntry(**raw) for raw in document["entries"]]
            return cls(document["hash_function"], dict(document["file_hashes"]), entries)
        except (KeyError, TypeError) as e:
            raise PatchError(f"Malformed snapshot patch: {e}")

    def mismatched_files(self, tree: Path) -> List[str]:
        """Paths whose content in tree differs from the recorded post-image."""
        mismatched = []
        for rel, expected in sorted(self.file_hashes.items()):
            path = tree / rel
            if not path.is_file() or hash_bytes(path.read_bytes(), self.hash_function) != expected:
                mismatched.append(rel)
        return mismatched

    def reverse(self, target: Path, env: Optional[Dict[str, str]] = None) -> None:
        """
        Turn a post-image tree back into the pre-image, in place.

        Raises:
            PatchError: If target does not match the recorded post-image, or git apply fails
            InsideGitDirError: If target is inside a git working copy
        """
        mismatched = self.mismatched_files(target)
        if mismatched:
            shown = ", ".join(mismatched[:10])
            raise PatchError(
                f"Snapshot patch does not match {target}: {len(mismatched)} file(s) differ ({shown})"
            )

        diff_text = "".join(e.payload for e in self.entries if e.encoding == ENCODING_DIFF)
        if diff_text:
            fd, tmp_name = tempfile.mkstemp(prefix="snapshot-", suffix=".diff")
            try:
                with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                    f.write(diff_text)
                apply_patch_file(target, Path(tmp_name), reverse=True, env=env)
            finally:
                os.unlink(tmp_name)

        for entry in self.entries:
            if entry.encoding != ENCODING_BASE64:
                continue
            path = target / entry.path
            if entry.operation == "add":
                path.unlink()
            else:
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_bytes(base64.b64decode(entry.payload))

        logger.info(f"[Snapshot] Reversed {len(self.entries)} change(s) on {target}")


def generate_snapshot(one: Path, other: Path, hash_function: str, selector: Glob) -> bytes:
    """Serialized snapshot patch from tree one to tree other."""
    return SnapshotPatch.generate(one, other, hash_function, selector).to_bytes()
