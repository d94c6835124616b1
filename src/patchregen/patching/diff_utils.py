"""Diff helpers shared by the autopatch and snapshot codecs.

Diffs are produced with difflib in git's extended format (``diff --git``
header, ``new file mode`` / ``deleted file mode`` lines, ``/dev/null`` sides)
so ``git apply`` can apply and reverse them, including file creation,
deletion and missing trailing newlines. Binary content gets a
``GIT binary patch`` with literal pre- and post-images instead.
"""

from __future__ import annotations

import base64
import difflib
import hashlib
import re
import zlib
from pathlib import Path
from typing import Dict, List, Optional

from ..file_glob import Glob

NO_NEWLINE_MARKER = "\\ No newline at end of file\n"

_HUNK_HEADER_RE = re.compile(r"^@@ -\d+(?:,\d+)? \+\d+(?:,\d+)? @@")

NULL_OID = "0" * 40
GIT_BINARY_MARKER = "GIT binary patch\n"

# Bytes of deflated data per base85 line in git binary patches
_BINARY_LINE_BYTES = 52


def list_tree_files(root: Path, selector: Optional[Glob] = None) -> Dict[str, Path]:
    """
    List regular files under root keyed by ``/``-separated relative path.

    Args:
        root: Tree root (missing roots yield no files)
        selector: Optional glob the relative paths must match

    Returns:
        Mapping of relative path to absolute path, sorted by relative path
    """
    files: Dict[str, Path] = {}
    if not root.is_dir():
        return files

    for path in sorted(root.rglob("*")):
        if not path.is_file():
            continue
        rel = path.relative_to(root).as_posix()
        if selector is None or selector.matches(rel):
            files[rel] = path
    return files


def is_binary(data: bytes) -> bool:
    """Treat NUL bytes or undecodable UTF-8 as binary content."""
    if b"\0" in data:
        return True
    try:
        data.decode("utf-8")
    except UnicodeDecodeError:
        return True
    return False


def split_lines(text: str) -> List[str]:
    """Split on '\\n' only, keeping line endings (CR and other separators stay in the line)."""
    parts = text.split("\n")
    lines = [part + "\n" for part in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def unified_diff(
    path: str,
    before: Optional[str],
    after: Optional[str],
    context_lines: int = 3,
) -> str:
    """
    Generate a git-style unified diff for one file.

    Args:
        path: Tree-relative path used on both sides
        before: Old content, None if the file did not exist
        after: New content, None if the file was deleted

    Returns:
        Diff text, empty string when nothing changed
    """
    if before == after:
        return ""

    out: List[str] = [f"diff --git a/{path} b/{path}\n"]
    if before is None:
        out.append("new file mode 100644\n")
    elif after is None:
        out.append("deleted file mode 100644\n")

    old_lines = split_lines(before or "")
    new_lines = split_lines(after or "")
    if not old_lines and not new_lines:
        # Creation or deletion of an empty file has no hunks
        return "".join(out)

    fromfile = "/dev/null" if before is None else f"a/{path}"
    tofile = "/dev/null" if after is None else f"b/{path}"

    for line in difflib.unified_diff(old_lines, new_lines, fromfile, tofile, n=context_lines):
        if line.endswith("\n"):
            out.append(line)
        else:
            out.append(line + "\n" + NO_NEWLINE_MARKER)

    return "".join(out)


def git_blob_id(data: bytes) -> str:
    """Object id git assigns to a blob with this content."""
    return hashlib.sha1(b"blob %d\0" % len(data) + data).hexdigest()


def _binary_literal(data: bytes) -> str:
    """One ``literal`` section: deflated data as length-prefixed base85 lines."""
    deflated = zlib.compress(data)
    out = [f"literal {len(data)}\n"]
    for start in range(0, len(deflated), _BINARY_LINE_BYTES):
        chunk = deflated[start:start + _BINARY_LINE_BYTES]
        size = len(chunk)
        size_char = chr(ord("A") + size - 1) if size <= 26 else chr(ord("a") + size - 27)
        out.append(size_char + base64.b85encode(chunk, pad=True).decode("ascii") + "\n")
    out.append("\n")
    return "".join(out)


def binary_diff(path: str, before: Optional[bytes], after: Optional[bytes]) -> str:
    """
    Generate a ``GIT binary patch`` for one file.

    Both directions are stored as literals and the index line carries full
    object ids, so ``git apply`` (and ``git apply -R``) can verify and apply it.

    Args:
        path: Tree-relative path used on both sides
        before: Old content, None if the file did not exist
        after: New content, None if the file was deleted

    Returns:
        Diff text, empty string when nothing changed
    """
    if before == after:
        return ""

    old_id = git_blob_id(before) if before is not None else NULL_OID
    new_id = git_blob_id(after) if after is not None else NULL_OID

    out: List[str] = [f"diff --git a/{path} b/{path}\n"]
    if before is None:
        out.append("new file mode 100644\n")
        out.append(f"index {old_id}..{new_id}\n")
    elif after is None:
        out.append("deleted file mode 100644\n")
        out.append(f"index {old_id}..{new_id}\n")
    else:
        out.append(f"index {old_id}..{new_id} 100644\n")

    out.append(GIT_BINARY_MARKER)
    out.append(_binary_literal(after or b""))
    out.append(_binary_literal(before or b""))
    return "".join(out)


def strip_file_names_and_line_numbers(diff_text: str) -> str:
    """
    Remove file names and hunk positions from a single-file diff.

    The result documents the change but can no longer be applied, which is
    why regeneration falls back to the import baseline for such patches.
    """
    out: List[str] = []
    in_header = True
    for line in diff_text.splitlines(keepends=True):
        if line.startswith("diff --git "):
            in_header = True
            continue
        if line == GIT_BINARY_MARKER:
            in_header = False
        if line.startswith("@@"):
            in_header = False
            out.append(_HUNK_HEADER_RE.sub("@@", line, count=1))
            continue
        if in_header:
            continue
        out.append(line)
    return "".join(out)
