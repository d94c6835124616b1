"""Origin import runners."""

from .local_git import GitOriginImportRunner

__all__ = ["GitOriginImportRunner"]
