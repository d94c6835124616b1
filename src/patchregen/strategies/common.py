"""Helpers shared by the baseline strategies and the regeneration engine."""

from contextlib import contextmanager
from typing import Iterator

from ..exceptions import InsideGitDirError, ValidationError
from ..file_glob import Glob
from ..models import RegenerationRequest
from ..patching.autopatch import autopatch_glob


def snapshot_glob(request: RegenerationRequest) -> Glob:
    """Glob selecting only the snapshot patch file."""
    return Glob.create([request.snapshot_patch_path.strip("/")])


def content_selector(request: RegenerationRequest) -> Glob:
    """Destination files minus every patch artifact (autopatch directory, snapshot file)."""
    selector = request.destination_files
    if request.autopatch is not None:
        selector = Glob.difference(
            selector,
            autopatch_glob(request.autopatch.directory_prefix, request.autopatch.directory),
        )
    return Glob.difference(selector, snapshot_glob(request))


@contextmanager
def staging_conflicts_as_validation(action: str) -> Iterator[None]:
    """Turn InsideGitDirError into a ValidationError naming both paths."""
    try:
        yield
    except InsideGitDirError as e:
        raise ValidationError(
            f"Could not {action} because temporary directory {e.path} is inside git "
            f"repository {e.git_dir_path}. Use a --workdir outside of any git repository. "
            f"Error received is {e}"
        ) from e
