"""Route pattern compilation, matching and specificity ordering.

Pattern syntax::

    "/about"              -> literal segment
    "/projects/:id"       -> ":id" matches exactly one non-empty segment
    "/docs/:rest*"        -> ":rest*" matches one or more trailing segments

Patterns are compiled once into a tuple of ``PathSegment`` values.  The
route table is kept in specificity order so that a linear scan taking the
first structural match always yields the most specific route.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

from warble.errors import ConfigurationError
from warble.routing.types import RouteConfig

SegmentKind = Literal["static", "param", "wildcard"]

# Rank per segment kind; lower sorts first.
_KIND_RANK: dict[SegmentKind, int] = {"static": 0, "param": 1, "wildcard": 2}

_PARAM_RE = re.compile(r"^:(\w+)(\*?)$")

# "[id]" in a filename becomes ":id" in the pattern
_BRACKET_RE = re.compile(r"\[([^\]]+)\]")
_ROUTE_SUFFIX_RE = re.compile(r"\.(page|error|redirect)\.(py|html|md|css)$")
_PAGE_FILE_RE = re.compile(r"\.page\.(py|html|md|css)$")


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of a route pattern.

    Static:   ``about``  (kind="static")
    Param:    ``:id``    (kind="param", name="id")
    Wildcard: ``:rest*`` (kind="wildcard", name="rest")
    """

    value: str
    kind: SegmentKind = "static"
    name: str | None = None


def split_path(path: str) -> list[str]:
    """Split a URL path into non-empty segments. Trailing slashes vanish."""
    return [p for p in path.strip("/").split("/") if p]


def parse_pattern(pattern: str) -> tuple[PathSegment, ...]:
    """Parse a route pattern into segments.

    Raises ``ConfigurationError`` for patterns that do not start with ``/``,
    malformed parameters, or a wildcard that is not the last segment.
    """
    if not pattern.startswith("/"):
        msg = f"Route pattern must start with '/': {pattern!r}"
        raise ConfigurationError(msg)

    parts = split_path(pattern)
    segments: list[PathSegment] = []
    for index, part in enumerate(parts):
        if not part.startswith(":"):
            segments.append(PathSegment(value=part))
            continue

        param = _PARAM_RE.match(part)
        if param is None:
            msg = f"Invalid parameter segment {part!r} in route pattern {pattern!r}"
            raise ConfigurationError(msg)

        name, star = param.groups()
        if star and index != len(parts) - 1:
            msg = f"Wildcard {part!r} must be the last segment of {pattern!r}"
            raise ConfigurationError(msg)
        segments.append(
            PathSegment(value=part, kind="wildcard" if star else "param", name=name),
        )
    return tuple(segments)


@dataclass(frozen=True, slots=True)
class CompiledPattern:
    """A route pattern ready for matching."""

    pattern: str
    segments: tuple[PathSegment, ...]

    @classmethod
    def compile(cls, pattern: str) -> CompiledPattern:
        return cls(pattern=pattern, segments=parse_pattern(pattern))

    def match(self, path: str) -> dict[str, str] | None:
        """Match a URL path, returning captured params or ``None``."""
        return self.match_parts(split_path(path))

    def match_parts(self, parts: list[str]) -> dict[str, str] | None:
        params: dict[str, str] = {}
        for index, segment in enumerate(self.segments):
            if segment.kind == "wildcard":
                rest = parts[index:]
                if not rest:
                    return None
                params[segment.name or "rest"] = "/".join(rest)
                return params

            if index >= len(parts):
                return None

            part = parts[index]
            if segment.kind == "param":
                params[segment.name or ""] = part
            elif part != segment.value:
                return None

        if len(parts) != len(self.segments):
            return None
        return params


def specificity_key(pattern: str) -> tuple[tuple[int, ...], int, int, str]:
    """Sort key: lower sorts first (more specific).

    1. Segment kinds compared depth by depth: static < param < wildcard.
    2. More literal segments first.
    3. Longer pattern first.
    4. Pattern text, so the order is total.
    """
    segments = split_path(pattern)
    ranks = tuple(_KIND_RANK[_segment_kind(s)] for s in segments)
    literals = sum(1 for r in ranks if r == 0)
    return ranks, -literals, -len(pattern), pattern


def sort_by_specificity(routes: list[RouteConfig] | tuple[RouteConfig, ...]) -> list[RouteConfig]:
    """Return *routes* ordered most-specific first. Idempotent."""
    return sorted(routes, key=lambda route: specificity_key(route.pattern))


def _segment_kind(segment: str) -> SegmentKind:
    if segment.startswith(":"):
        return "wildcard" if segment.endswith("*") else "param"
    return "static"


# ---------------------------------------------------------------------------
# File naming conventions
# ---------------------------------------------------------------------------


def file_path_to_pattern(relative_path: str) -> str:
    """Convert a routes-relative file path to a route pattern.

    Examples::

        index.page.py                -> /
        about.page.md                -> /about
        projects/[id].page.py        -> /projects/:id
        projects/[id]/tasks.page.py  -> /projects/:id/tasks
        docs/index.page.md           -> /docs/:rest*

    A directory index below the root becomes a wildcard so unmatched
    children fall back to it.  The root index stays exact.
    """
    stem = _ROUTE_SUFFIX_RE.sub("", relative_path.lstrip("/"))

    is_directory_index = stem.endswith("/index")
    if stem == "index":
        stem = ""
    elif is_directory_index:
        stem = stem.removesuffix("/index")

    pattern = "/" + _BRACKET_RE.sub(r":\1", stem)
    if is_directory_index:
        pattern += "/:rest*"
    return pattern


def get_route_type(filename: str) -> Literal["page", "error", "redirect"] | None:
    """Route type implied by a filename, or ``None`` for unrelated files."""
    if filename.endswith((".page.py", ".page.html", ".page.md")):
        return "page"
    if filename.endswith(".error.py"):
        return "error"
    if filename.endswith(".redirect.py"):
        return "redirect"
    return None


def get_page_file_type(filename: str) -> Literal["py", "html", "md", "css"] | None:
    """File slot for a ``*.page.*`` filename."""
    match = _PAGE_FILE_RE.search(filename)
    if match is None:
        return None
    return match.group(1)  # type: ignore[return-value]


def parent_pattern(pattern: str) -> str | None:
    """Pattern with the last segment removed; ``None`` for one-segment patterns."""
    segments = split_path(pattern)
    if len(segments) <= 1:
        return None
    return "/" + "/".join(segments[:-1])
