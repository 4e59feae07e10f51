"""Exceptions raised while importing a design document."""


class FigmaImportError(Exception):
    """Base class for import failures."""


class ConversionError(FigmaImportError):
    """A converter could not produce a node."""

    def __init__(self, message: str, *, node_id: str | None = None) -> None:
        super().__init__(message)
        self.node_id = node_id


class RasterizationError(FigmaImportError):
    """Geometry could not be turned into an image (degenerate or zero-size)."""


class DuplicateAssetError(FigmaImportError, KeyError):
    """A cache key was produced twice within one pass."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""
