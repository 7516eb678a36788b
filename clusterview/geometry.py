from __future__ import annotations

import numpy as np
from matplotlib.path import Path as MplPath

# corner offsets of the square drawn around every hull member
_BOX = np.array([[-1.0, -1.0], [-1.0, 1.0], [1.0, -1.0], [1.0, 1.0]])


def _cross(o: np.ndarray, a: np.ndarray, b: np.ndarray) -> float:
    return (a[0] - o[0]) * (b[1] - o[1]) - (a[1] - o[1]) * (b[0] - o[0])


def convex_hull(points) -> np.ndarray:
    """Andrew's monotone chain.

    Returns the hull vertices in counter-clockwise order starting from the
    lowest-left point, without repeating the first vertex and without
    collinear vertices. Fewer than three distinct points are returned as-is
    (sorted, de-duplicated).
    """
    pts = np.asarray(points, dtype=float).reshape(-1, 2)
    if len(pts) == 0:
        return pts
    pts = np.unique(pts, axis=0)          # lexicographic (x, y) order
    if len(pts) < 3:
        return pts

    lower: list[np.ndarray] = []
    for p in pts:
        while len(lower) >= 2 and _cross(lower[-2], lower[-1], p) <= 0:
            lower.pop()
        lower.append(p)

    upper: list[np.ndarray] = []
    for p in pts[::-1]:
        while len(upper) >= 2 and _cross(upper[-2], upper[-1], p) <= 0:
            upper.pop()
        upper.append(p)

    return np.array(lower[:-1] + upper[:-1])


def polygon_area(polygon) -> float:
    """Signed shoelace area, positive for counter-clockwise polygons."""
    poly = np.asarray(polygon, dtype=float).reshape(-1, 2)
    if len(poly) < 3:
        return 0.0
    x, y = poly[:, 0], poly[:, 1]
    return 0.5 * float(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1)))


def box_corners(points, margin: float) -> np.ndarray:
    """Four corners of a ``2 * margin`` square around each point."""
    pts = np.asarray(points, dtype=float).reshape(-1, 2)
    return (pts[:, None, :] + _BOX[None, :, :] * margin).reshape(-1, 2)


def points_in_polygon(polygon, points, radius: float = 0.0) -> np.ndarray:
    """Boolean mask of ``points`` lying inside (or on) a closed polygon."""
    path = MplPath(np.asarray(polygon, dtype=float), closed=False)
    # a positive radius grows a CCW path in matplotlib, so boundary points count
    return path.contains_points(np.asarray(points, dtype=float).reshape(-1, 2),
                                radius=radius)


def smooth_closed(polygon, tension: float = 0.0, samples: int = 8) -> np.ndarray:
    """Sample a closed cardinal spline through the polygon vertices.

    ``tension`` 0 gives a Catmull-Rom curve, 1 gives straight segments.
    Returns ``len(polygon) * samples`` points; the curve is implicitly closed.
    """
    poly = np.asarray(polygon, dtype=float).reshape(-1, 2)
    n = len(poly)
    if n < 3:
        return poly.copy()

    k = (1.0 - tension) / 6.0
    p0 = np.roll(poly, 1, axis=0)
    p1 = poly
    p2 = np.roll(poly, -1, axis=0)
    p3 = np.roll(poly, -2, axis=0)
    c1 = p1 + k * (p2 - p0)
    c2 = p2 - k * (p3 - p1)

    t = np.linspace(0.0, 1.0, samples, endpoint=False)[None, :, None]
    mt = 1.0 - t
    curve = (mt ** 3 * p1[:, None, :] + 3 * mt ** 2 * t * c1[:, None, :]
             + 3 * mt * t ** 2 * c2[:, None, :] + t ** 3 * p2[:, None, :])
    return curve.reshape(-1, 2)
