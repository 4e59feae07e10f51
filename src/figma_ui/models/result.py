"""Diagnostics and pass results."""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from figma_ui.core.cache import Dependency
    from figma_ui.core.raster.rasterizer import GeneratedImage
    from figma_ui.models.output import OutputNode


class LogLevel(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class LogEntry:
    """A non-fatal problem found while converting a page."""

    level: LogLevel
    message: str
    node_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"level": self.level.value, "message": self.message, "node_id": self.node_id}


@dataclass
class PageResult:
    """The output tree of one imported page and every diagnostic raised for it."""

    page_id: str
    name: str
    root: "OutputNode"
    all_logs: list[LogEntry] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "page_id": self.page_id,
            "name": self.name,
            "logs": [entry.to_dict() for entry in self.all_logs],
            "tree": self.root.to_dict(),
        }


@dataclass
class ImportResult:
    """Outcome of one import pass.

    Either ``pages`` holds every imported page and ``error`` is None, or the
    pass was aborted: ``pages`` is empty, ``error`` holds the cause and
    ``logs`` holds the diagnostics gathered before the abort.
    """

    pages: tuple[PageResult, ...] = ()
    images: dict[str, "GeneratedImage"] = field(default_factory=dict)
    dependencies: dict[str, "Dependency"] = field(default_factory=dict)
    logs: tuple[LogEntry, ...] = ()
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> tuple[PageResult, ...]:
        """Return the imported pages, raising the abort cause if there is one."""
        if self.error is not None:
            raise self.error
        return self.pages
