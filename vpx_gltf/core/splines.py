# File: core/splines.py
# Purpose: Drag-point curve subdivision (non-uniform Catmull-Rom)
# Notes:
# - Curves are subdivided recursively until each span is flat within `accuracy`
#   (squared doubled triangle area compared against accuracy, not accuracy²)
# - Smooth drag points pull their neighbours in as tangent control points
# - Open curves (ramps) end with the last drag point; closed loops do not repeat the first

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .schema import DragPoint


COINCIDENT_EPSILON = 1e-6
MIN_KNOT_DISTANCE = 1e-4


def detail_level_to_accuracy(detail_level: float) -> float:
    """detail 10 -> 4.0 (finest), detail 7 -> ~63.5, detail 0 -> ~1.86e7"""
    return 4.0 * math.pow(10.0, (10.0 - detail_level) / 1.5)


@dataclass
class RenderVertex:
    """Subdivided curve vertex"""
    x: float
    y: float
    z: float = 0.0
    smooth: bool = False
    slingshot: bool = False
    control_point: bool = False


# ==================== Catmull-Rom ====================

def _cubic_coeffs(x0: float, x1: float, t0: float, t1: float) -> Tuple[float, float, float, float]:
    return (
        x0,
        t0,
        -3.0 * x0 + 3.0 * x1 - 2.0 * t0 - t1,
        2.0 * x0 - 2.0 * x1 + t0 + t1,
    )


def _catmull_coeffs(x0, x1, x2, x3, dt0, dt1, dt2):
    t1 = (x1 - x0) / dt0 - (x2 - x0) / (dt0 + dt1) + (x2 - x1) / dt1
    t2 = (x2 - x1) / dt1 - (x3 - x1) / (dt1 + dt2) + (x3 - x2) / dt2
    return _cubic_coeffs(x1, x2, t1 * dt1, t2 * dt1)


class CatmullCurve:
    """
    Centripetal Catmull-Rom segment between p1 and p2, parameterised on [0, 1].
    Works for 2D or 3D points (z defaults to 0).
    """

    def __init__(self, p0, p1, p2, p3):
        def knot(a, b):
            d2 = sum((b[k] - a[k]) ** 2 for k in range(3))
            return math.sqrt(math.sqrt(d2))

        p0, p1, p2, p3 = (self._as3(p) for p in (p0, p1, p2, p3))
        dt0, dt1, dt2 = knot(p0, p1), knot(p1, p2), knot(p2, p3)

        # repeated control points
        if dt1 < MIN_KNOT_DISTANCE:
            dt1 = 1.0
        if dt0 < MIN_KNOT_DISTANCE:
            dt0 = dt1
        if dt2 < MIN_KNOT_DISTANCE:
            dt2 = dt1

        self._coeffs = [
            _catmull_coeffs(p0[k], p1[k], p2[k], p3[k], dt0, dt1, dt2) for k in range(3)
        ]

    @staticmethod
    def _as3(p) -> Tuple[float, float, float]:
        if isinstance(p, (RenderVertex, DragPoint)):
            return (p.x, p.y, p.z)
        return (p[0], p[1], p[2] if len(p) > 2 else 0.0)

    def get_point_at(self, t: float) -> Tuple[float, float, float]:
        t2 = t * t
        t3 = t2 * t
        return tuple(c3 * t3 + c2 * t2 + c1 * t + c0 for (c0, c1, c2, c3) in self._coeffs)


def flat_with_accuracy(v1: RenderVertex, v2: RenderVertex, vmid: RenderVertex,
                       accuracy: float, use_z: bool = False) -> bool:
    """True when vmid deviates from the chord v1-v2 by less than accuracy"""
    if not use_z:
        dblarea = (vmid.x - v1.x) * (v2.y - v1.y) - (v2.x - v1.x) * (vmid.y - v1.y)
        return dblarea * dblarea < accuracy
    a = (vmid.x - v1.x, vmid.y - v1.y, vmid.z - v1.z)
    b = (v2.x - v1.x, v2.y - v1.y, v2.z - v1.z)
    cx = a[1] * b[2] - a[2] * b[1]
    cy = a[2] * b[0] - a[0] * b[2]
    cz = a[0] * b[1] - a[1] * b[0]
    return cx * cx + cy * cy + cz * cz < accuracy


def _recurse_smooth_line(curve: CatmullCurve, t1: float, t2: float,
                         vt1: RenderVertex, vt2: RenderVertex,
                         out: List[RenderVertex], accuracy: float, use_z: bool) -> None:
    # explicit stack keeps the left-to-right output order of the recursive form
    stack = [(t1, t2, vt1, vt2)]
    while stack:
        a, b, va, vb = stack.pop()
        t_mid = (a + b) * 0.5
        x, y, z = curve.get_point_at(t_mid)
        vmid = RenderVertex(x, y, z, smooth=True)
        if flat_with_accuracy(va, vb, vmid, accuracy, use_z):
            out.append(va)
        else:
            stack.append((t_mid, b, vmid, vb))
            stack.append((a, t_mid, va, vmid))


def _subdivide(drag_points: Sequence[DragPoint], accuracy: float, loop: bool,
               use_z: bool) -> List[RenderVertex]:
    count = len(drag_points)
    if count < 2:
        return []

    out: List[RenderVertex] = []
    endpoint = count if loop else count - 1
    for i in range(endpoint):
        pdp1 = drag_points[i]
        pdp2 = drag_points[(i + 1) % count]

        if abs(pdp1.x - pdp2.x) < COINCIDENT_EPSILON and abs(pdp1.y - pdp2.y) < COINCIDENT_EPSILON:
            continue

        if pdp1.smooth:
            iprev = (i + count - 1) % count if loop else max(i - 1, 0)
        else:
            iprev = i

        if pdp2.smooth:
            inext = (i + 2) % count if loop else min(i + 2, count - 1)
        else:
            inext = (i + 1) % count

        pdp0 = drag_points[iprev]
        pdp3 = drag_points[inext]
        curve = CatmullCurve(pdp0, pdp1, pdp2, pdp3)

        z1 = pdp1.z if use_z else 0.0
        z2 = pdp2.z if use_z else 0.0
        rend1 = RenderVertex(pdp1.x, pdp1.y, z1, smooth=pdp1.smooth,
                             slingshot=pdp1.is_slingshot, control_point=True)
        rend2 = RenderVertex(pdp2.x, pdp2.y, z2, smooth=pdp2.smooth,
                             slingshot=pdp2.is_slingshot, control_point=True)
        _recurse_smooth_line(curve, 0.0, 1.0, rend1, rend2, out, accuracy, use_z)

    if not loop and out:
        last = drag_points[-1]
        out.append(RenderVertex(last.x, last.y, last.z if use_z else 0.0,
                                smooth=last.smooth, control_point=True))
    return out


def get_rg_vertex_2d(drag_points: Sequence[DragPoint], accuracy: float,
                     loop: bool = True) -> List[RenderVertex]:
    """Subdivided outline of a wall / rubber / flasher"""
    return _subdivide(drag_points, accuracy, loop, use_z=False)


def get_rg_vertex_3d(drag_points: Sequence[DragPoint], accuracy: float) -> List[RenderVertex]:
    """Subdivided open centre curve of a ramp (z carries the drag-point z)"""
    return _subdivide(drag_points, accuracy, loop=False, use_z=True)


# ==================== 路径查询 ====================

def closest_point_on_polyline(vertices: Sequence[RenderVertex], x: float,
                              y: float) -> Optional[Tuple[Tuple[float, float], int]]:
    """
    Closest point on an open polyline whose perpendicular foot lies inside a
    segment. Returns ((px, py), segment_index) or None when (x, y) is beside
    no segment.
    """
    best = None
    best_dist = float('inf')
    for i in range(len(vertices) - 1):
        a, b = vertices[i], vertices[i + 1]
        dx, dy = b.x - a.x, b.y - a.y
        seg2 = dx * dx + dy * dy
        if seg2 <= 0.0:
            continue
        t = ((x - a.x) * dx + (y - a.y) * dy) / seg2
        if t < 0.0 or t > 1.0:
            continue
        px, py = a.x + t * dx, a.y + t * dy
        dist = (x - px) ** 2 + (y - py) ** 2
        if dist < best_dist:
            best_dist = dist
            best = ((px, py), i)
    return best
