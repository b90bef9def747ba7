"""
Declarative routing table for the gateway.

Every inbound path family is described by one ``RouteGroup``: a literal
prefix, zero or more exact entries and exactly one catch-all entry.
A single resolver walks the table; there are no per-endpoint handlers.

Pattern syntax:
    /api/citas/stats             literal path
    /api/notificaciones/:id      ``:name`` matches one non-empty segment
    /api/citas/*rest             catch-all, captures the rest of the path
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

CATCH_ALL_MARKER = "*rest"

MatchKind = Literal["exact", "catch_all"]


def _split(path: str) -> list[str]:
    """Split a path into segments, ignoring one trailing slash."""
    if len(path) > 1 and path.endswith("/"):
        path = path[:-1]
    return path.split("/")


@dataclass(frozen=True)
class RouteEntry:
    """
    A rule mapping an inbound method + path pattern to a downstream path.

    Attributes:
        pattern: Inbound path pattern
        target: Downstream path template using the same parameter names
        methods: Upper-case HTTP methods, or None for any method
    """

    pattern: str
    target: str
    methods: frozenset[str] | None

    def __post_init__(self) -> None:
        if not self.pattern.startswith("/"):
            raise ValueError(f"Route pattern must start with '/': {self.pattern}")
        if self.methods is not None:
            object.__setattr__(self, "methods", frozenset(m.upper() for m in self.methods))

        params = set(self.param_names)
        for segment in _split(self.target):
            if segment.startswith(":") and segment[1:] not in params:
                raise ValueError(
                    f"Target {self.target} references unknown parameter {segment} "
                    f"(pattern {self.pattern})"
                )
        if CATCH_ALL_MARKER in self.target and not self.is_catch_all:
            raise ValueError(f"Only catch-all entries may use {CATCH_ALL_MARKER}: {self.target}")

    @property
    def is_catch_all(self) -> bool:
        """Whether this entry captures the remainder of the path."""
        return self.pattern.endswith("/" + CATCH_ALL_MARKER)

    @property
    def prefix(self) -> str:
        """Literal prefix of a catch-all pattern (the pattern itself otherwise)."""
        if self.is_catch_all:
            return self.pattern[: -len(CATCH_ALL_MARKER) - 1]
        return self.pattern

    @property
    def param_names(self) -> list[str]:
        return [segment[1:] for segment in _split(self.pattern) if segment.startswith(":")]

    @property
    def specificity(self) -> int:
        """Number of literal segments; higher wins between competing exact entries."""
        return sum(1 for segment in _split(self.pattern) if not segment.startswith(":"))

    def allows(self, method: str) -> bool:
        """Whether the entry accepts a method; HEAD is accepted wherever GET is."""
        if self.methods is None:
            return True
        method = method.upper()
        if method == "HEAD":
            return "HEAD" in self.methods or "GET" in self.methods
        return method in self.methods

    def match_exact(self, path: str) -> dict[str, str] | None:
        """
        Match a concrete path against an exact pattern.

        Returns:
            Captured parameters, or None when the path does not match
        """
        pattern_segments = _split(self.pattern)
        path_segments = _split(path)
        if len(pattern_segments) != len(path_segments):
            return None

        params: dict[str, str] = {}
        for expected, actual in zip(pattern_segments, path_segments, strict=True):
            if expected.startswith(":"):
                if not actual:
                    return None
                params[expected[1:]] = actual
            elif expected != actual:
                return None
        return params

    def render_target(self, params: dict[str, str]) -> str:
        """Substitute captured parameters into the target template."""
        segments = [
            params[segment[1:]] if segment.startswith(":") else segment
            for segment in _split(self.target)
        ]
        return "/".join(segments)

    def render_catch_all(self, remainder: str) -> str:
        """Append the captured remainder to the target template."""
        return self.target.replace(CATCH_ALL_MARKER, remainder)


@dataclass(frozen=True)
class RouteGroup:
    """All routes sharing one logical resource prefix."""

    name: str
    prefix: str
    catch_all: RouteEntry
    exact: tuple[RouteEntry, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not self.catch_all.is_catch_all:
            raise ValueError(f"Group {self.name} needs a catch-all entry, got {self.catch_all.pattern}")
        if self.catch_all.prefix != self.prefix:
            raise ValueError(
                f"Catch-all {self.catch_all.pattern} does not belong to prefix {self.prefix}"
            )
        for entry in self.exact:
            if entry.is_catch_all:
                raise ValueError(f"Group {self.name} has more than one catch-all entry")
            if not self.owns(entry.pattern):
                raise ValueError(f"Entry {entry.pattern} is outside group prefix {self.prefix}")

        # Most specific first; sorted() is stable so table order breaks ties.
        ordered = tuple(sorted(self.exact, key=lambda entry: -entry.specificity))
        object.__setattr__(self, "exact", ordered)

    def owns(self, path: str) -> bool:
        """Whether a path falls under this group's prefix."""
        return path == self.prefix or path.startswith(self.prefix + "/")

    def entries(self) -> Iterator[RouteEntry]:
        yield from self.exact
        yield self.catch_all


@dataclass(frozen=True)
class RouteMatch:
    """Result of resolving a request against the table."""

    group: RouteGroup
    entry: RouteEntry
    target_path: str
    params: dict[str, str]
    kind: MatchKind


class RouteTable:
    """Ordered collection of route groups with a single resolver."""

    def __init__(self, groups: Iterable[RouteGroup]) -> None:
        self.groups: tuple[RouteGroup, ...] = tuple(groups)

        seen: set[str] = set()
        for group in self.groups:
            if group.prefix in seen:
                raise ValueError(f"Duplicate route group prefix: {group.prefix}")
            seen.add(group.prefix)

    def __len__(self) -> int:
        return sum(1 for _ in self.entries())

    def entries(self) -> Iterator[tuple[RouteGroup, RouteEntry]]:
        """Iterate every (group, entry) pair in table order."""
        for group in self.groups:
            for entry in group.entries():
                yield group, entry

    def find_group(self, path: str) -> RouteGroup | None:
        """Return the group with the longest prefix owning the path."""
        candidates = [group for group in self.groups if group.owns(path)]
        if not candidates:
            return None
        return max(candidates, key=lambda group: len(group.prefix))

    def resolve(self, method: str, path: str) -> RouteMatch | None:
        """
        Resolve a request to exactly one downstream path.

        Exact entries are tried first, then the group's catch-all.

        Args:
            method: Inbound HTTP method
            path: Inbound path, without query string

        Returns:
            The match, or None when no entry applies
        """
        group = self.find_group(path)
        if group is None:
            return None

        for entry in group.exact:
            if not entry.allows(method):
                continue
            params = entry.match_exact(path)
            if params is not None:
                return RouteMatch(
                    group=group,
                    entry=entry,
                    target_path=entry.render_target(params),
                    params=params,
                    kind="exact",
                )

        catch_all = group.catch_all
        if path.startswith(group.prefix + "/") and catch_all.allows(method):
            remainder = path[len(group.prefix) + 1 :]
            return RouteMatch(
                group=group,
                entry=catch_all,
                target_path=catch_all.render_catch_all(remainder),
                params={"rest": remainder},
                kind="catch_all",
            )

        return None


def _exact(methods: str, path: str) -> RouteEntry:
    """Exact entry forwarded to the identical downstream path."""
    return RouteEntry(pattern=path, target=path, methods=frozenset(methods.split(",")))


def _group(name: str, prefix: str, *exact: RouteEntry) -> RouteGroup:
    """Group whose catch-all forwards the remainder under the same prefix."""
    catch_all = RouteEntry(
        pattern=f"{prefix}/{CATCH_ALL_MARKER}",
        target=f"{prefix}/{CATCH_ALL_MARKER}",
        methods=None,
    )
    return RouteGroup(name=name, prefix=prefix, catch_all=catch_all, exact=tuple(exact))


DEFAULT_ROUTE_GROUPS: tuple[RouteGroup, ...] = (
    _group("auth", "/api/auth"),
    _group(
        "estudiantes",
        "/api/estudiantes",
        _exact("GET", "/api/estudiantes"),
        _exact("GET", "/api/estudiantes/stats"),
        _exact("GET", "/api/estudiantes/proximos-6-meses"),
        _exact("POST", "/api/estudiantes"),
        _exact("PUT", "/api/estudiantes/:id"),
    ),
    _group(
        "citas",
        "/api/citas",
        _exact("GET", "/api/citas"),
        _exact("GET", "/api/citas/stats"),
        _exact("POST", "/api/citas"),
    ),
    _group(
        "historial",
        "/api/historial",
        _exact("GET", "/api/historial"),
        _exact("GET", "/api/historial/stats"),
    ),
    _group(
        "conversaciones",
        "/api/conversaciones",
        _exact("GET", "/api/conversaciones"),
    ),
    _group(
        "encuestas",
        "/api/encuestas",
        _exact("GET", "/api/encuestas"),
        _exact("GET", "/api/encuestas/stats"),
        _exact("POST", "/api/encuestas"),
    ),
    _group(
        "stats",
        "/api/stats",
        _exact("GET", "/api/stats/dashboard"),
        _exact("GET", "/api/stats/satisfaccion"),
        _exact("GET", "/api/stats/conversaciones"),
    ),
    _group(
        "config",
        "/api/config",
        _exact("GET", "/api/config/whatsapp"),
        _exact("GET", "/api/config/plantillas"),
    ),
    _group(
        "webhook",
        "/api/webhook",
        _exact("GET,POST", "/api/webhook/whatsapp"),
    ),
    _group(
        "notificaciones",
        "/api/notificaciones",
        _exact("GET", "/api/notificaciones"),
        _exact("GET", "/api/notificaciones/no-leidas"),
        _exact("GET", "/api/notificaciones/count"),
        _exact("POST", "/api/notificaciones"),
        _exact("PUT", "/api/notificaciones/leer-todas"),
        _exact("PUT", "/api/notificaciones/:id/leer"),
        _exact("DELETE", "/api/notificaciones/:id"),
    ),
)


def build_default_route_table() -> RouteTable:
    """Build the routing table for the SOF-IA dashboard API."""
    return RouteTable(DEFAULT_ROUTE_GROUPS)
