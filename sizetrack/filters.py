from __future__ import annotations

import re
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import PurePosixPath

_BRACE_RE = re.compile(r"\{([^{}]*)\}")


def _normalize_pattern(pattern: str) -> str:
    normalized = pattern.strip().replace("\\", "/")
    if normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized


def expand_braces(pattern: str) -> list[str]:
    """Expand ``{a,b}`` alternations, innermost group first.

    ``expand_braces("**/*.{js,css}")`` returns ``["**/*.js", "**/*.css"]``.
    """
    match = _BRACE_RE.search(pattern)
    if match is None:
        return [pattern]
    head, tail = pattern[: match.start()], pattern[match.end() :]
    expanded: list[str] = []
    for option in match.group(1).split(","):
        expanded.extend(expand_braces(f"{head}{option}{tail}"))
    return expanded


def _match_parts(parts: tuple[str, ...], pattern_parts: tuple[str, ...]) -> bool:
    if not pattern_parts:
        return not parts
    head, rest = pattern_parts[0], pattern_parts[1:]
    if head == "**":
        # zero or more whole segments
        return any(_match_parts(parts[index:], rest) for index in range(len(parts) + 1))
    if not parts:
        return False
    return fnmatchcase(parts[0], head) and _match_parts(parts[1:], rest)


def _match_pattern(path: str, pattern: str) -> bool:
    pattern_parts = tuple(part for part in pattern.split("/") if part)
    if not pattern_parts:
        return False
    return _match_parts(PurePosixPath(path).parts, pattern_parts)


@dataclass(frozen=True, slots=True)
class PathFilter:
    include_patterns: tuple[str, ...] = ()
    exclude_patterns: tuple[str, ...] = ()

    def matches(self, path: str) -> bool:
        path = _normalize_pattern(path)
        if self.include_patterns and not any(
            _match_pattern(path, pattern) for pattern in self.include_patterns
        ):
            return False
        if any(_match_pattern(path, pattern) for pattern in self.exclude_patterns):
            return False
        return True

    def filter(self, paths) -> list[str]:
        return [path for path in paths if self.matches(path)]


def build_path_filter(pattern: str | None = None, exclude: str | None = None) -> PathFilter:
    include = tuple(
        expanded for expanded in expand_braces(_normalize_pattern(pattern or "")) if expanded
    )
    excluded = tuple(
        expanded for expanded in expand_braces(_normalize_pattern(exclude or "")) if expanded
    )
    return PathFilter(include_patterns=include, exclude_patterns=excluded)
