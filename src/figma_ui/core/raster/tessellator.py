"""Turn flattened contours into triangle meshes for filling and stroking."""

import math
from dataclasses import dataclass, field

from figma_ui.core.raster.contours import Contour, Point

Triangle = tuple[Point, Point, Point]

_EPSILON = 1e-9


@dataclass
class MeshPart:
    """Triangles covering one contour, with that contour's winding direction."""

    triangles: list[Triangle]
    winding: int = 1


@dataclass
class Mesh:
    parts: list[MeshPart] = field(default_factory=list)
    even_odd: bool = False

    @property
    def triangle_count(self) -> int:
        return sum(len(p.triangles) for p in self.parts)

    def bounds(self) -> tuple[float, float, float, float] | None:
        """(min_x, min_y, max_x, max_y) of every vertex, None for an empty mesh."""
        xs: list[float] = []
        ys: list[float] = []
        for part in self.parts:
            for tri in part.triangles:
                for x, y in tri:
                    xs.append(x)
                    ys.append(y)
        if not xs:
            return None
        return min(xs), min(ys), max(xs), max(ys)


def _cross(o: Point, a: Point, b: Point) -> float:
    return (a[0] - o[0]) * (b[1] - o[1]) - (a[1] - o[1]) * (b[0] - o[0])


def _inside(p: Point, a: Point, b: Point, c: Point) -> bool:
    d1 = _cross(a, b, p)
    d2 = _cross(b, c, p)
    d3 = _cross(c, a, p)
    has_neg = d1 < -_EPSILON or d2 < -_EPSILON or d3 < -_EPSILON
    has_pos = d1 > _EPSILON or d2 > _EPSILON or d3 > _EPSILON
    return not (has_neg and has_pos)


def _is_convex(points: list[Point]) -> bool:
    count = len(points)
    return all(
        _cross(points[i - 1], points[i], points[(i + 1) % count]) >= -_EPSILON
        for i in range(count)
    )


def triangulate(points: tuple[Point, ...] | list[Point]) -> list[Triangle]:
    """Ear-clip a simple polygon.

    Self-intersecting input never stalls: once no ear can be found, the
    remaining vertices are closed with a fan.
    """
    if len(points) < 3:
        return []
    area = Contour(points=tuple(points)).signed_area()
    if abs(area) < _EPSILON:
        return []
    indices = list(range(len(points)))
    if area < 0:
        indices.reverse()

    if _is_convex([points[i] for i in indices]):
        anchor = points[indices[0]]
        return [
            (anchor, points[indices[j]], points[indices[j + 1]])
            for j in range(1, len(indices) - 1)
        ]

    triangles: list[Triangle] = []
    while len(indices) > 3:
        count = len(indices)
        for i in range(count):
            a = points[indices[i - 1]]
            b = points[indices[i]]
            c = points[indices[(i + 1) % count]]
            if _cross(a, b, c) <= _EPSILON:
                continue
            if any(
                _inside(points[j], a, b, c)
                for j in indices
                if points[j] not in (a, b, c)
            ):
                continue
            triangles.append((a, b, c))
            del indices[i]
            break
        else:
            anchor = points[indices[0]]
            for j in range(1, len(indices) - 1):
                triangles.append((anchor, points[indices[j]], points[indices[j + 1]]))
            return triangles
    triangles.append(tuple(points[i] for i in indices))  # type: ignore[arg-type]
    return triangles


def fill_mesh(contours: list[Contour], *, even_odd: bool = False) -> Mesh:
    mesh = Mesh(even_odd=even_odd)
    for contour in contours:
        if not contour.closed or contour.is_degenerate:
            continue
        triangles = triangulate(contour.points)
        if triangles:
            winding = 1 if contour.signed_area() > 0 else -1
            mesh.parts.append(MeshPart(triangles=triangles, winding=winding))
    return mesh


def dash_polyline(
    points: tuple[Point, ...], closed: bool, pattern: tuple[float, ...]
) -> list[list[Point]]:
    """Split a polyline into the visible runs of a dash pattern."""
    if not pattern or sum(pattern) <= 0:
        return [list(points) + ([points[0]] if closed else [])]
    path = list(points) + ([points[0]] if closed else [])
    if len(pattern) % 2:
        pattern = pattern * 2

    runs: list[list[Point]] = []
    current: list[Point] = [path[0]]
    index, remaining, drawing = 0, pattern[0], True
    for p0, p1 in zip(path, path[1:]):
        seg_len = math.dist(p0, p1)
        travelled = 0.0
        while seg_len - travelled > remaining:
            travelled += remaining
            t = travelled / seg_len
            cut = (p0[0] + (p1[0] - p0[0]) * t, p0[1] + (p1[1] - p0[1]) * t)
            if drawing:
                current.append(cut)
                runs.append(current)
            current = [cut]
            drawing = not drawing
            index = (index + 1) % len(pattern)
            remaining = pattern[index]
        remaining -= seg_len - travelled
        if drawing:
            current.append(p1)
    if drawing and len(current) > 1:
        runs.append(current)
    return runs


def _offset(p: Point, normal: Point, distance: float) -> Point:
    return (p[0] + normal[0] * distance, p[1] + normal[1] * distance)


def _stroke_polyline(polyline: list[Point], half_width: float, closed: bool) -> list[Triangle]:
    """Quads along each segment plus bevel wedges at every joint."""
    triangles: list[Triangle] = []
    normals: list[Point] = []
    for p0, p1 in zip(polyline, polyline[1:]):
        length = math.dist(p0, p1)
        if length < _EPSILON:
            normals.append(normals[-1] if normals else (0.0, 0.0))
            continue
        n = (-(p1[1] - p0[1]) / length, (p1[0] - p0[0]) / length)
        normals.append(n)
        a, b = _offset(p0, n, half_width), _offset(p1, n, half_width)
        c, d = _offset(p1, n, -half_width), _offset(p0, n, -half_width)
        triangles += [(a, b, c), (a, c, d)]

    joints = range(1, len(normals)) if not closed else range(len(normals))
    for i in joints:
        n0, n1 = normals[i - 1], normals[i]
        p = polyline[i]
        triangles.append((p, _offset(p, n0, half_width), _offset(p, n1, half_width)))
        triangles.append((p, _offset(p, n0, -half_width), _offset(p, n1, -half_width)))
    return triangles


def stroke_mesh(contours: list[Contour], width: float, dashes: tuple[float, ...] = ()) -> Mesh:
    """Mesh of a centered stroke of the given width along every contour."""
    mesh = Mesh()
    if width <= 0:
        return mesh
    for contour in contours:
        if len(contour.points) < 2:
            continue
        closed = contour.closed and not dashes
        for run in dash_polyline(contour.points, contour.closed, dashes):
            triangles = _stroke_polyline(run, width / 2, closed)
            if triangles:
                mesh.parts.append(MeshPart(triangles=triangles))
    return mesh
