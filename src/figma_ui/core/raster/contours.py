"""Build flattened closed contours for the shapes the rasterizer draws.

Coordinates are node-local, with the origin at the node's top-left corner
and y growing downwards.
"""

import math
from dataclasses import dataclass

from svgpathtools import Line, parse_path

from figma_ui.config import DEFAULT_MAX_CORD_DEVIATION, DEFAULT_STEP_DISTANCE
from figma_ui.models.node import CornerRadii

Point = tuple[float, float]


@dataclass(frozen=True)
class TessellationOptions:
    """Tolerances used when curves are replaced by straight segments."""

    step_distance: float = DEFAULT_STEP_DISTANCE
    max_cord_deviation: float = DEFAULT_MAX_CORD_DEVIATION

    def segments_for_arc(self, radius: float, angle: float) -> int:
        """Number of chords needed to follow an arc within tolerance."""
        if radius <= 0 or angle <= 0:
            return 0
        by_step = math.ceil(radius * angle / self.step_distance) if self.step_distance > 0 else 1
        by_cord = 1
        if 0 < self.max_cord_deviation < radius:
            by_cord = math.ceil(angle / (2 * math.acos(1 - self.max_cord_deviation / radius)))
        return max(by_step, by_cord, 1)


@dataclass(frozen=True)
class Contour:
    points: tuple[Point, ...]
    closed: bool = True

    @property
    def is_degenerate(self) -> bool:
        return len(self.points) < (3 if self.closed else 2)

    def signed_area(self) -> float:
        """Shoelace area; positive for clockwise contours in y-down space."""
        area = 0.0
        pts = self.points
        for i, (x0, y0) in enumerate(pts):
            x1, y1 = pts[(i + 1) % len(pts)]
            area += x0 * y1 - x1 * y0
        return area / 2


def clamp_radii(width: float, height: float, radii: CornerRadii) -> CornerRadii:
    """Scale radii down uniformly so adjacent corners never overlap."""
    tl, tr, br, bl = (
        max(radii.top_left, 0.0),
        max(radii.top_right, 0.0),
        max(radii.bottom_right, 0.0),
        max(radii.bottom_left, 0.0),
    )
    scale = 1.0
    for total, edge in ((tl + tr, width), (bl + br, width), (tl + bl, height), (tr + br, height)):
        if total > edge > 0:
            scale = min(scale, edge / total)
    return CornerRadii(tl * scale, tr * scale, br * scale, bl * scale)


def _arc(
    cx: float, cy: float, radius: float, start: float, end: float, options: TessellationOptions
) -> list[Point]:
    count = options.segments_for_arc(radius, abs(end - start))
    if count == 0:
        return [(cx, cy)]
    return [
        (
            cx + radius * math.cos(start + (end - start) * i / count),
            cy + radius * math.sin(start + (end - start) * i / count),
        )
        for i in range(count + 1)
    ]


def rectangle_contour(
    width: float, height: float, radii: CornerRadii, options: TessellationOptions
) -> Contour:
    """Clockwise rounded rectangle honoring each corner's radius."""
    r = clamp_radii(width, height, radii)
    half_pi = math.pi / 2
    points: list[Point] = []
    points += _arc(r.top_left, r.top_left, r.top_left, math.pi, 3 * half_pi, options)
    points += _arc(width - r.top_right, r.top_right, r.top_right, -half_pi, 0.0, options)
    points += _arc(
        width - r.bottom_right, height - r.bottom_right, r.bottom_right, 0.0, half_pi, options
    )
    points += _arc(r.bottom_left, height - r.bottom_left, r.bottom_left, half_pi, math.pi, options)
    return Contour(points=_dedupe(points))


def ellipse_contour(width: float, height: float, options: TessellationOptions) -> Contour:
    rx, ry = width / 2, height / 2
    count = max(options.segments_for_arc(max(rx, ry), 2 * math.pi), 8)
    points = [
        (rx + rx * math.cos(2 * math.pi * i / count), ry + ry * math.sin(2 * math.pi * i / count))
        for i in range(count)
    ]
    return Contour(points=tuple(points))


def polygon_contour(width: float, height: float, point_count: int) -> Contour:
    """Regular polygon inscribed in the node bounds, first vertex at top center."""
    count = max(point_count, 3)
    rx, ry = width / 2, height / 2
    points = [
        (
            rx + rx * math.sin(2 * math.pi * i / count),
            ry - ry * math.cos(2 * math.pi * i / count),
        )
        for i in range(count)
    ]
    return Contour(points=tuple(points))


def star_contour(width: float, height: float, point_count: int, inner_radius: float) -> Contour:
    count = max(point_count, 3)
    rx, ry = width / 2, height / 2
    points = []
    for i in range(count * 2):
        scale = 1.0 if i % 2 == 0 else inner_radius
        angle = math.pi * i / count
        points.append((rx + rx * scale * math.sin(angle), ry - ry * scale * math.cos(angle)))
    return Contour(points=tuple(points))


def line_contour(width: float) -> Contour:
    return Contour(points=((0.0, 0.0), (width, 0.0)), closed=False)


def path_contours(path_data: str, options: TessellationOptions) -> list[Contour]:
    """Flatten SVG path data into one contour per continuous subpath."""
    contours: list[Contour] = []
    if not path_data.strip():
        return contours
    for subpath in parse_path(path_data).continuous_subpaths():
        if len(subpath) == 0:
            continue
        points: list[Point] = []
        for segment in subpath:
            if isinstance(segment, Line):
                samples = 1
            else:
                length = segment.length()
                samples = max(math.ceil(length / options.step_distance), 1)
            start = 0 if not points else 1
            for i in range(start, samples + 1):
                p = segment.point(i / samples)
                points.append((p.real, p.imag))
        closed = subpath.isclosed()
        if closed and len(points) > 1 and points[0] == points[-1]:
            points.pop()
        contours.append(Contour(points=_dedupe(points), closed=closed))
    return contours


def _dedupe(points: list[Point]) -> tuple[Point, ...]:
    out: list[Point] = []
    for p in points:
        if not out or math.dist(p, out[-1]) > 1e-9:
            out.append(p)
    if len(out) > 1 and math.dist(out[0], out[-1]) <= 1e-9:
        out.pop()
    return tuple(out)
