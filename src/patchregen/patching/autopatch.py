"""Per-file patch (autopatch) generation and reversal.

Layout: for a content file ``<prefix>/<sub>`` the patch lives at
``<prefix>/<directory>/<sub><suffix>`` inside the tree. Each patch is a
standalone git-style diff that can be reversed on its own.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional

from ..config import settings
from ..file_glob import Glob
from .diff_utils import (
    binary_diff,
    is_binary,
    list_tree_files,
    strip_file_names_and_line_numbers,
    unified_diff,
)
from .git_tools import apply_patch_file

logger = logging.getLogger(__name__)


def patch_directory(directory_prefix: str, directory: str) -> str:
    """Tree-relative directory holding the patch files."""
    parts = [p.strip("/") for p in (directory_prefix, directory) if p and p.strip("/")]
    return "/".join(parts)


def autopatch_glob(directory_prefix: str, directory: str) -> Glob:
    """Glob selecting every file in the patch directory."""
    return Glob.create([f"{patch_directory(directory_prefix, directory)}/**"])


def _read_text(path: Optional[Path]) -> Optional[str]:
    if path is None:
        return None
    return path.read_bytes().decode("utf-8")


def generate_patch_files(
    one: Path,
    other: Path,
    directory_prefix: str,
    directory: str,
    verbose: bool,
    header: Optional[str],
    suffix: str,
    output_root: Path,
    strip_file_names_and_line_numbers_flag: bool,
    glob: Glob,
) -> List[Path]:
    """
    Write one patch per file that differs between two trees.

    Args:
        one: Pristine tree (pre-image)
        other: Patched tree (post-image)
        directory_prefix: Only files under this prefix get patches
        directory: Patch directory, relative to directory_prefix
        verbose: Log every generated diff
        header: Optional text placed at the top of each patch
        suffix: Patch file name suffix
        output_root: Tree the patch directory is created in
        strip_file_names_and_line_numbers_flag: Drop file names and hunk positions
        glob: Files to consider

    Returns:
        Paths of the written patch files
    """
    prefix = directory_prefix.strip("/")
    patch_dir = patch_directory(directory_prefix, directory)
    selector = Glob.difference(glob, autopatch_glob(directory_prefix, directory))

    before_files = list_tree_files(one, selector)
    after_files = list_tree_files(other, selector)

    written: List[Path] = []
    binary_files: List[str] = []

    for rel in sorted(set(before_files) | set(after_files)):
        if prefix and not rel.startswith(prefix + "/"):
            continue

        before_path = before_files.get(rel)
        after_path = after_files.get(rel)
        before_bytes = before_path.read_bytes() if before_path else None
        after_bytes = after_path.read_bytes() if after_path else None
        if before_bytes == after_bytes:
            continue

        if (before_bytes is not None and is_binary(before_bytes)) or (
            after_bytes is not None and is_binary(after_bytes)
        ):
            binary_files.append(rel)
            diff = binary_diff(rel, before_bytes, after_bytes)
        else:
            diff = unified_diff(
                rel, _read_text(before_path), _read_text(after_path), settings.diff_context_lines
            )
        if strip_file_names_and_line_numbers_flag:
            diff = strip_file_names_and_line_numbers(diff)

        sub_path = rel[len(prefix) + 1:] if prefix else rel
        patch_path = output_root / patch_dir / f"{sub_path}{suffix}"
        patch_path.parent.mkdir(parents=True, exist_ok=True)

        content = diff
        if header:
            content = (header if header.endswith("\n") else header + "\n") + diff
        patch_path.write_text(content, encoding="utf-8", newline="")
        written.append(patch_path)

        if verbose:
            logger.info(f"[Autopatch] Patch for {rel}:\n{content}")

    if binary_files:
        logger.info(f"[Autopatch] Wrote binary patches for: {', '.join(binary_files)}")

    logger.info(f"[Autopatch] Generated {len(written)} patch file(s) in {output_root / patch_dir}")
    return written


def reverse_patch_files(
    target: Path,
    patch_holding_dir: Path,
    suffix: str,
    env: Optional[Dict[str, str]] = None,
) -> List[Path]:
    """
    Reverse every patch file found under patch_holding_dir against target.

    Args:
        target: Tree holding the patched content
        patch_holding_dir: Directory the patch files were copied into
        suffix: Only files with this suffix are treated as patches
        env: Environment for git

    Returns:
        The patch files that were reversed

    Raises:
        InsideGitDirError: If target is inside a git working copy
        PatchError: If a patch does not reverse cleanly
    """
    patches = sorted(
        p for p in patch_holding_dir.rglob("*") if p.is_file() and p.name.endswith(suffix)
    )
    if not patches:
        logger.info(f"[Autopatch] No patch files under {patch_holding_dir}")
        return []

    for patch_file in patches:
        logger.debug(f"[Autopatch] Reversing {patch_file.relative_to(patch_holding_dir)}")
        apply_patch_file(target, patch_file, reverse=True, env=env)

    logger.info(f"[Autopatch] Reversed {len(patches)} patch file(s) on {target}")
    return patches
