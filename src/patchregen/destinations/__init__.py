"""Destination implementations."""

from .local_git import GitDestinationReader, LocalGitDestination, LocalGitPatchRegenerator

__all__ = ["GitDestinationReader", "LocalGitDestination", "LocalGitPatchRegenerator"]
