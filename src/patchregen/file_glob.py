"""Path selectors over tree-relative file paths.

A ``Glob`` is a set of include patterns minus exclude patterns, evaluated with
``fnmatch`` against ``/``-separated relative paths. ``*`` may cross directory
separators; a ``**/`` segment additionally matches zero directories, so
``**/*.py`` selects ``setup.py`` as well as ``src/pkg/mod.py``.

Globs compose with ``Glob.difference`` (also ``a - b``), which is how content
files are separated from patch-artifact files.
"""

from __future__ import annotations

from fnmatch import fnmatchcase
from typing import Iterable, List


def _expand_double_star(pattern: str) -> List[str]:
    """Return pattern plus every variant with one or more '**/' segments dropped."""
    variants = [pattern]
    i = 0
    while i < len(variants):
        current = variants[i]
        start = 0
        while True:
            idx = current.find("**/", start)
            if idx < 0:
                break
            candidate = current[:idx] + current[idx + 3:]
            if candidate not in variants:
                variants.append(candidate)
            start = idx + 3
        i += 1
    return variants


def _pattern_matches(pattern: str, path: str) -> bool:
    return any(fnmatchcase(path, variant) for variant in _expand_double_star(pattern))


class Glob:
    """Include/exclude path selector. Immutable and hashable.

    Attributes:
        include: Patterns a path must match (at least one)
        exclude: Patterns a path must not match
        subtracted: Globs removed via ``difference``
    """

    __slots__ = ("include", "exclude", "subtracted")

    def __init__(
        self,
        include: Iterable[str] = ("**",),
        exclude: Iterable[str] = (),
        subtracted: Iterable["Glob"] = (),
    ):
        object.__setattr__(self, "include", tuple(include))
        object.__setattr__(self, "exclude", tuple(exclude))
        object.__setattr__(self, "subtracted", tuple(subtracted))

    def __setattr__(self, name, value):
        raise AttributeError("Glob is immutable")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Glob):
            return NotImplemented
        return (self.include, self.exclude, self.subtracted) == (
            other.include,
            other.exclude,
            other.subtracted,
        )

    def __hash__(self) -> int:
        return hash((self.include, self.exclude, self.subtracted))

    def __repr__(self) -> str:
        return f"Glob(include={self.include!r}, exclude={self.exclude!r}, subtracted={self.subtracted!r})"

    @classmethod
    def create(cls, include: Iterable[str], exclude: Iterable[str] = ()) -> "Glob":
        return cls(include=tuple(include), exclude=tuple(exclude))

    @classmethod
    def all_files(cls) -> "Glob":
        return cls(include=("**",))

    @staticmethod
    def difference(first: "Glob", second: "Glob") -> "Glob":
        """Glob matching paths selected by first but not by second."""
        return Glob(
            include=first.include,
            exclude=first.exclude,
            subtracted=first.subtracted + (second,),
        )

    def __sub__(self, other: "Glob") -> "Glob":
        return Glob.difference(self, other)

    def matches(self, rel_path: str) -> bool:
        """Check whether a tree-relative path is selected."""
        path = rel_path.replace("\\", "/").lstrip("/")
        if not any(_pattern_matches(p, path) for p in self.include):
            return False
        if any(_pattern_matches(p, path) for p in self.exclude):
            return False
        return not any(g.matches(path) for g in self.subtracted)

    def roots(self) -> List[str]:
        """Literal directory prefixes that contain every included path.

        An empty string means the whole tree. Used to narrow repository
        listings before pattern matching.
        """
        roots: List[str] = []
        for pattern in self.include:
            parts = pattern.split("/")
            literal: List[str] = []
            for part in parts[:-1]:
                if any(ch in part for ch in "*?["):
                    break
                literal.append(part)
            else:
                if not any(ch in parts[-1] for ch in "*?["):
                    literal = parts
            roots.append("/".join(literal))

        if "" in roots:
            return [""]

        # Drop roots nested under another root
        unique = sorted(set(roots))
        result: List[str] = []
        for root in unique:
            if not any(root.startswith(r + "/") for r in result):
                result.append(root)
        return result

    def __str__(self) -> str:
        text = f"glob(include={list(self.include)}"
        if self.exclude:
            text += f", exclude={list(self.exclude)}"
        text += ")"
        for other in self.subtracted:
            text += f" - {other}"
        return text
