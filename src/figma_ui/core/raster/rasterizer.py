"""Rasterize filled and stroked node geometry into images.

Each paint becomes one shape drawn over the previous ones: fills first, in
order, then one stroked shape per stroke paint. Shapes are tessellated into
triangles, rendered supersampled and scaled down so the image fits the
configured texture size.
"""

import hashlib
import math
from dataclasses import dataclass, field

import numpy as np
from loguru import logger
from PIL import Image, ImageDraw

from figma_ui.config import (
    DEFAULT_FILTER_MODE,
    DEFAULT_GRADIENT_RESOLUTION,
    DEFAULT_PIXELS_PER_UNIT,
    DEFAULT_SAMPLE_COUNT,
    DEFAULT_TEXTURE_SIZE,
    DEFAULT_WRAP_MODE,
    FILTER_MODES,
    STROKE_PADDING_FACTOR,
    STROKE_PADDING_MIN,
    WRAP_MODES,
)
from figma_ui.core.raster.contours import (
    Contour,
    TessellationOptions,
    clamp_radii,
    ellipse_contour,
    line_contour,
    path_contours,
    polygon_contour,
    rectangle_contour,
    star_contour,
)
from figma_ui.core.raster.tessellator import Mesh, fill_mesh, stroke_mesh
from figma_ui.errors import RasterizationError
from figma_ui.models.node import (
    CornerRadii,
    EllipseNode,
    Filled,
    FrameNode,
    GradientKind,
    GradientPaint,
    LineNode,
    Paint,
    PolygonNode,
    RectangleNode,
    SceneNode,
    SolidPaint,
    StarNode,
    UnsupportedPaint,
    Vec2,
    VectorNode,
)


@dataclass(frozen=True)
class RasterOptions:
    texture_size: int = DEFAULT_TEXTURE_SIZE
    sample_count: int = DEFAULT_SAMPLE_COUNT
    tessellation: TessellationOptions = field(default_factory=TessellationOptions)
    wrap_mode: str = DEFAULT_WRAP_MODE
    filter_mode: str = DEFAULT_FILTER_MODE
    pixels_per_unit: float = DEFAULT_PIXELS_PER_UNIT
    gradient_resolution: int = DEFAULT_GRADIENT_RESOLUTION

    def __post_init__(self) -> None:
        if self.texture_size <= 0:
            msg = f"texture_size must be positive, got {self.texture_size!r}"
            raise ValueError(msg)
        if self.sample_count <= 0:
            msg = f"sample_count must be positive, got {self.sample_count!r}"
            raise ValueError(msg)
        if self.wrap_mode not in WRAP_MODES:
            msg = f"Unknown wrap mode {self.wrap_mode!r}, expected one of {WRAP_MODES!r}"
            raise ValueError(msg)
        if self.filter_mode not in FILTER_MODES:
            msg = f"Unknown filter mode {self.filter_mode!r}, expected one of {FILTER_MODES!r}"
            raise ValueError(msg)

    @property
    def supersampling(self) -> int:
        return max(1, round(math.sqrt(self.sample_count)))


@dataclass(frozen=True)
class Insets:
    """9-slice borders in pixels: edges that stay unscaled when stretched."""

    left: float
    top: float
    right: float
    bottom: float

    def scaled(self, ratio: float) -> "Insets":
        return Insets(self.left * ratio, self.top * ratio, self.right * ratio, self.bottom * ratio)


@dataclass(frozen=True)
class VectorShape:
    """Everything the rasterizer needs from a node."""

    contours: tuple[Contour, ...]
    fills: tuple[Paint, ...] = ()
    strokes: tuple[Paint, ...] = ()
    stroke_weight: float = 0.0
    stroke_dashes: tuple[float, ...] = ()
    even_odd: bool = False
    corners: CornerRadii | None = None

    @property
    def sliceable(self) -> bool:
        return self.corners is not None


def image_key(shape: VectorShape, options: RasterOptions) -> str:
    """Stable key for the image a shape renders to; equal shapes share an image."""
    digest = hashlib.sha1(repr((shape, options)).encode("utf-8")).hexdigest()
    return f"image-{digest[:16]}"


@dataclass
class GeneratedImage:
    """A rendered image plus the metadata needed to register it."""

    key: str
    name: str
    image: Image.Image
    ratio: float
    pixels_per_unit: float
    wrap_mode: str
    filter_mode: str
    insets: Insets | None = None
    hidden_fills: int = 0
    skipped_paints: tuple[str, ...] = ()

    @property
    def size(self) -> tuple[int, int]:
        return self.image.size

    def release(self) -> None:
        self.image.close()


def gradient_angle(handles: tuple[Vec2, ...]) -> float:
    """Angle in degrees between the positive x axis and the first two handles.

    The angle is unsigned (0..180). Fewer than two handles, or two equal
    handles, give 0.
    """
    if len(handles) < 2:
        return 0.0
    dx = handles[1].x - handles[0].x
    dy = handles[1].y - handles[0].y
    length = math.hypot(dx, dy)
    if length == 0:
        return 0.0
    cos_angle = max(-1.0, min(1.0, dx / length))
    return math.degrees(math.acos(cos_angle))


def border_insets(corners: CornerRadii, stroke_weight: float) -> Insets:
    """Each edge keeps its adjacent corner radii, and never less than the stroke padding."""
    padding = stroke_weight * STROKE_PADDING_FACTOR + STROKE_PADDING_MIN
    return Insets(
        left=max(corners.top_left, corners.bottom_left, padding),
        top=max(corners.top_left, corners.top_right, padding),
        right=max(corners.top_right, corners.bottom_right, padding),
        bottom=max(corners.bottom_left, corners.bottom_right, padding),
    )


def shape_for_node(node: SceneNode, options: RasterOptions) -> VectorShape | None:
    """Build the contours and paints of a node, None if it has nothing to draw.

    Hidden strokes are left out. Hidden fills are kept so the caller can
    disable the composited image.
    """
    if not isinstance(node, Filled):
        return None
    fill = node.fill
    strokes = tuple(p for p in fill.strokes if p.visible)
    if not fill.fills and not strokes:
        return None

    width, height = node.transform.width, node.transform.height
    tessellation = options.tessellation
    corners: CornerRadii | None = None
    even_odd = False

    if isinstance(node, (FrameNode, RectangleNode)):
        corners = clamp_radii(width, height, node.corners)
        contours = [rectangle_contour(width, height, corners, tessellation)]
    elif isinstance(node, VectorNode) and node.fill_geometry:
        contours = []
        for geometry in node.fill_geometry:
            contours += path_contours(geometry.path, tessellation)
        even_odd = any(g.winding_rule.upper() == "EVENODD" for g in node.fill_geometry)
    elif isinstance(node, EllipseNode):
        contours = [ellipse_contour(width, height, tessellation)]
    elif isinstance(node, StarNode):
        contours = [star_contour(width, height, node.point_count, node.inner_radius)]
    elif isinstance(node, PolygonNode):
        contours = [polygon_contour(width, height, node.point_count)]
    elif isinstance(node, LineNode):
        contours = [line_contour(width)]
    else:
        return None

    return VectorShape(
        contours=tuple(contours),
        fills=fill.fills,
        strokes=strokes,
        stroke_weight=(fill.stroke_weight or 0.0) if strokes else 0.0,
        stroke_dashes=fill.stroke_dashes,
        even_odd=even_odd,
        corners=corners,
    )


def _gradient_lut(paint: GradientPaint, resolution: int) -> np.ndarray:
    stops = sorted(paint.stops, key=lambda s: s.position)
    if not stops:
        return np.zeros((resolution, 4), dtype=np.float32)
    positions = [s.position for s in stops]
    samples = np.linspace(0.0, 1.0, resolution)
    channels = [
        np.interp(samples, positions, [getattr(s.color, c) for s in stops])
        for c in ("r", "g", "b", "a")
    ]
    return np.stack(channels, axis=-1).astype(np.float32)


def _paint_layer(
    paint: SolidPaint | GradientPaint,
    grid_u: np.ndarray,
    grid_v: np.ndarray,
    resolution: int,
) -> np.ndarray:
    """Straight-alpha RGBA layer for a paint over a grid of unit coordinates."""
    if isinstance(paint, SolidPaint):
        c = paint.color
        layer = np.empty(grid_u.shape + (4,), dtype=np.float32)
        layer[...] = (c.r, c.g, c.b, c.a * paint.opacity)
        return layer

    angle = math.radians(gradient_angle(paint.handles))
    if paint.kind is GradientKind.LINEAR:
        t = (grid_u - 0.5) * math.cos(angle) + (grid_v - 0.5) * math.sin(angle) + 0.5
    else:
        t = 2.0 * np.hypot(grid_u - 0.5, grid_v - 0.5)
    index = np.clip(t, 0.0, 1.0) * (resolution - 1)
    layer = _gradient_lut(paint, resolution)[np.rint(index).astype(np.int32)]
    layer[..., 3] *= paint.opacity
    return layer


class _Canvas:
    """Supersampled premultiplied RGBA accumulation buffer."""

    def __init__(
        self, bounds: tuple[float, float, float, float], scale: float, size: tuple[int, int]
    ) -> None:
        self.min_x, self.min_y = bounds[0], bounds[1]
        self.scale = scale
        self.width, self.height = size
        self.color = np.zeros((self.height, self.width, 3), dtype=np.float32)
        self.alpha = np.zeros((self.height, self.width), dtype=np.float32)

    def _to_pixels(self, point: tuple[float, float]) -> tuple[float, float]:
        return ((point[0] - self.min_x) * self.scale, (point[1] - self.min_y) * self.scale)

    def coverage(self, mesh: Mesh) -> np.ndarray:
        """Boolean mask of the pixels the mesh covers, honoring the fill rule."""
        winding = np.zeros((self.height, self.width), dtype=np.int32)
        for part in mesh.parts:
            mask_image = Image.new("L", (self.width, self.height), 0)
            draw = ImageDraw.Draw(mask_image)
            for triangle in part.triangles:
                draw.polygon([self._to_pixels(p) for p in triangle], fill=255)
            mask = np.asarray(mask_image) > 0
            mask_image.close()
            if mesh.even_odd:
                winding ^= mask.astype(np.int32)
            else:
                winding += mask.astype(np.int32) * part.winding
        return winding != 0

    def unit_grid(self, bounds: tuple[float, float, float, float]) -> tuple[np.ndarray, np.ndarray]:
        """Pixel centers mapped into the 0..1 square spanned by bounds."""
        xs = (np.arange(self.width, dtype=np.float32) + 0.5) / self.scale + self.min_x
        ys = (np.arange(self.height, dtype=np.float32) + 0.5) / self.scale + self.min_y
        span_x = max(bounds[2] - bounds[0], 1e-6)
        span_y = max(bounds[3] - bounds[1], 1e-6)
        grid_u, grid_v = np.meshgrid((xs - bounds[0]) / span_x, (ys - bounds[1]) / span_y)
        return grid_u, grid_v

    def draw(self, mask: np.ndarray, layer: np.ndarray) -> None:
        src_alpha = layer[..., 3] * mask
        keep = 1.0 - src_alpha
        self.color = layer[..., :3] * src_alpha[..., None] + self.color * keep[..., None]
        self.alpha = src_alpha + self.alpha * keep

    def to_image(self, factor: int) -> Image.Image:
        """Box-filter the supersampled buffer down by factor and un-premultiply."""
        height, width = self.height // factor, self.width // factor
        color = self.color.reshape(height, factor, width, factor, 3).mean(axis=(1, 3))
        alpha = self.alpha.reshape(height, factor, width, factor).mean(axis=(1, 3))
        safe_alpha = np.where(alpha > 0, alpha, 1.0)
        rgba = np.concatenate([color / safe_alpha[..., None], alpha[..., None]], axis=-1)
        data = np.clip(rgba * 255.0 + 0.5, 0, 255).astype(np.uint8)
        return Image.fromarray(data)


def rasterize(shape: VectorShape, options: RasterOptions, *, name: str) -> GeneratedImage:
    """Render a shape into an image no larger than options.texture_size.

    Raises:
        RasterizationError: The geometry covers no area or the scaled image
            would have a zero-sized edge.
    """
    contours = list(shape.contours)
    fill = fill_mesh(contours, even_odd=shape.even_odd)
    stroke = stroke_mesh(contours, shape.stroke_weight, shape.stroke_dashes)

    drawn: list[tuple[Paint, Mesh]] = [(p, fill) for p in shape.fills]
    if stroke.parts:
        drawn += [(p, stroke) for p in shape.strokes]

    bounds_list = [m.bounds() for m in (fill, stroke) if m.parts]
    if not bounds_list:
        msg = f"{name}: geometry covers no area"
        raise RasterizationError(msg)
    bounds = (
        min(b[0] for b in bounds_list),  # type: ignore[index]
        min(b[1] for b in bounds_list),  # type: ignore[index]
        max(b[2] for b in bounds_list),  # type: ignore[index]
        max(b[3] for b in bounds_list),  # type: ignore[index]
    )
    width, height = bounds[2] - bounds[0], bounds[3] - bounds[1]
    if width <= 0 or height <= 0:
        msg = f"{name}: zero-size geometry ({width!r} x {height!r})"
        raise RasterizationError(msg)

    ratio = min(options.texture_size / width, options.texture_size / height)
    size = (int(width * ratio), int(height * ratio))
    if size[0] == 0 or size[1] == 0:
        msg = f"{name}: image would be {size[0]}x{size[1]} pixels"
        raise RasterizationError(msg)

    ss = options.supersampling
    canvas = _Canvas(bounds, ratio * ss, (size[0] * ss, size[1] * ss))
    masks: dict[int, np.ndarray] = {}
    skipped: list[str] = []
    for paint, mesh in drawn:
        if isinstance(paint, UnsupportedPaint):
            skipped.append(paint.type_name)
            continue
        mask = masks.get(id(mesh))
        if mask is None:
            mask = masks[id(mesh)] = canvas.coverage(mesh)
        mesh_bounds = mesh.bounds() or bounds
        grid_u, grid_v = canvas.unit_grid(mesh_bounds)
        canvas.draw(mask, _paint_layer(paint, grid_u, grid_v, options.gradient_resolution))

    image = canvas.to_image(ss)
    del canvas, masks

    insets = None
    if shape.corners is not None:
        insets = border_insets(shape.corners, shape.stroke_weight).scaled(ratio)

    key = image_key(shape, options)
    logger.debug("Rasterized {} at {}x{} (ratio {:.3f})", name, size[0], size[1], ratio)
    return GeneratedImage(
        key=key,
        name=name,
        image=image,
        ratio=ratio,
        pixels_per_unit=options.pixels_per_unit * ratio,
        wrap_mode=options.wrap_mode,
        filter_mode=options.filter_mode,
        insets=insets,
        hidden_fills=sum(1 for p in shape.fills if not p.visible),
        skipped_paints=tuple(skipped),
    )
