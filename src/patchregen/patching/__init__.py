"""Patch tooling used by regeneration.

This package contains:
- diff_utils: git-style unified diffs and tree listing helpers
- git_tools: git CLI wrappers (git apply, working copy detection)
- autopatch: per-file patch generation and reversal
- snapshot: content-addressed snapshot patch codec
"""
