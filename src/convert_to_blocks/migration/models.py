"""Domain models for the bulk-migration supervisor."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

DEFAULT_POST_TYPES: frozenset[str] = frozenset({"post", "page"})
UNBOUNDED_PER_PAGE = -1
FIRST_PAGE = 1
_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


class SupervisorState(str, Enum):
    """Lifecycle states of one supervised migration run."""

    IDLE = "idle"
    VALIDATING = "validating"
    STARTING = "starting"
    POLLING = "polling"
    DRAINING = "draining"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class MigrationOptions:
    """Normalized options for one migration run."""

    post_types: frozenset[str] = DEFAULT_POST_TYPES
    per_page: int = UNBOUNDED_PER_PAGE
    page: int = FIRST_PAGE
    only: frozenset[int] | None = None
    catalog_mode: bool = False
    reset: bool = False

    @classmethod
    def from_raw(  # noqa: PLR0913
        cls,
        *,
        post_type: str | Iterable[str] | None = None,
        per_page: object = None,
        page: object = None,
        only: str | Iterable[object] | None = None,
        catalog: object = None,
        reset: object = None,
    ) -> MigrationOptions:
        """Build options from loosely typed CLI input."""

        return cls(
            post_types=_parse_post_types(post_type),
            per_page=_parse_per_page(per_page),
            page=_parse_page(page),
            only=_parse_only(only),
            catalog_mode=parse_bool(catalog),
            reset=parse_bool(reset),
        )

    @property
    def unbounded(self) -> bool:
        return self.per_page == UNBOUNDED_PER_PAGE

    def to_payload(self) -> dict[str, Any]:
        """JSON-safe representation persisted alongside executor state."""

        return {
            "post_types": sorted(self.post_types),
            "per_page": self.per_page,
            "page": self.page,
            "only": sorted(self.only) if self.only is not None else None,
            "catalog": self.catalog_mode,
        }

    def summary(self) -> str:
        return (
            f"Posts Per Page: {self.per_page}, Page: {self.page}, "
            f"Catalog: {'true' if self.catalog_mode else 'false'}"
        )


@dataclass(frozen=True, slots=True)
class MigrationStatus:
    """Read-only snapshot of executor-owned progress."""

    running: bool
    total: int = 0
    cursor: int = 0
    progress: int = 0
    active: str = ""

    @classmethod
    def idle(cls) -> MigrationStatus:
        return cls(running=False)


@dataclass(slots=True)
class TickState:
    """Supervisor-local rendering state for the current run."""

    ticks_emitted: int = 0
    last_seen_progress: int = 0


@dataclass(slots=True)
class MigrationReport:
    """Outcome of one completed supervised run."""

    token: str
    total: int
    ticks_emitted: int
    polls: int
    transport_retries: int = 0
    options: MigrationOptions = field(default_factory=MigrationOptions)


def parse_bool(value: object) -> bool:
    """Interpret CLI-style boolean flags; anything unrecognized is false."""

    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, int):
        return value != 0
    return str(value).strip().lower() in _TRUE_VALUES


def _parse_post_types(value: str | Iterable[str] | None) -> frozenset[str]:
    if value is None:
        return DEFAULT_POST_TYPES
    parts = value.split(",") if isinstance(value, str) else value
    normalized = frozenset(part.strip() for part in parts if part and part.strip())
    return normalized or DEFAULT_POST_TYPES


def _parse_per_page(value: object) -> int:
    parsed = _parse_int(value)
    if parsed is None or parsed == 0:
        return UNBOUNDED_PER_PAGE
    return max(UNBOUNDED_PER_PAGE, parsed)


def _parse_page(value: object) -> int:
    parsed = _parse_int(value)
    if parsed is None or parsed == 0:
        return FIRST_PAGE
    return max(FIRST_PAGE, parsed)


def _parse_int(value: object) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError as error:
        raise ValueError(f"Expected an integer, got {value!r}") from error


def _parse_only(value: str | Iterable[object] | None) -> frozenset[int] | None:
    if value is None:
        return None
    parts = value.split(",") if isinstance(value, str) else value
    ids: set[int] = set()
    for part in parts:
        token = str(part).strip()
        if not token:
            continue
        try:
            ids.add(int(token))
        except ValueError as error:
            raise ValueError(f"Invalid post id in --only: {token!r}") from error
    return frozenset(ids) or None
