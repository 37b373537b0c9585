# File: core/surface.py
# Purpose: 表面高度查询 (wall / ramp the object is attached to)
# Notes:
# - Built once per export from the object model; read-only afterwards and
#   shipped to worker processes as-is
# - Names are matched case-insensitively, like the editor does
# - Unknown surface name -> SurfaceLookupError (object skipped by the dispatcher)

from typing import Dict, Iterable, NamedTuple, Optional, Tuple

from .exceptions import SurfaceLookupError
from .schema import ObjectKind, Ramp, TableObject, Wall
from .splines import (
    RenderVertex,
    closest_point_on_polyline,
    detail_level_to_accuracy,
    get_rg_vertex_3d,
)


class SurfaceHeight(NamedTuple):
    height: float
    on_path: bool = True


class _RampSurface(NamedTuple):
    curve: Tuple[RenderVertex, ...]
    height_bottom: float
    height_top: float


class SurfaceLookup:
    """
    表面高度表

    empty name -> 0 (playfield)
    wall       -> height_top
    ramp       -> height at the closest point of the centre curve
    """

    def __init__(self, walls: Optional[Dict[str, float]] = None,
                 ramps: Optional[Dict[str, _RampSurface]] = None):
        self._walls = walls or {}
        self._ramps = ramps or {}

    @classmethod
    def from_objects(cls, objects: Iterable[TableObject]):
        walls: Dict[str, float] = {}
        ramps: Dict[str, _RampSurface] = {}
        accuracy = detail_level_to_accuracy(10.0)
        for obj in objects:
            key = obj.name.lower()
            if obj.kind is ObjectKind.WALL:
                walls[key] = obj.height_top
            elif obj.kind is ObjectKind.RAMP:
                curve = tuple(get_rg_vertex_3d(obj.drag_points, accuracy))
                ramps[key] = _RampSurface(curve, obj.height_bottom, obj.height_top)
        return cls(walls, ramps)

    def __contains__(self, name: str) -> bool:
        key = name.lower()
        return key in self._walls or key in self._ramps

    def lookup(self, name: str, x: float = 0.0, y: float = 0.0) -> SurfaceHeight:
        if not name:
            return SurfaceHeight(0.0)

        key = name.lower()
        if key in self._walls:
            return SurfaceHeight(self._walls[key])
        if key in self._ramps:
            return self._ramp_height(self._ramps[key], x, y)
        raise SurfaceLookupError(f"referenced surface '{name}' does not exist")

    def height(self, name: str, x: float = 0.0, y: float = 0.0) -> float:
        return self.lookup(name, x, y).height

    @staticmethod
    def _ramp_height(ramp: _RampSurface, x: float, y: float) -> SurfaceHeight:
        curve = ramp.curve
        middle = (ramp.height_bottom + ramp.height_top) * 0.5
        if len(curve) < 2:
            return SurfaceHeight(middle, on_path=False)

        found = closest_point_on_polyline(curve, x, y)
        if found is None:
            return SurfaceHeight(middle, on_path=False)

        (px, py), seg = found
        total = 0.0
        start = 0.0
        for i in range(1, len(curve)):
            length = ((curve[i].x - curve[i - 1].x) ** 2 + (curve[i].y - curve[i - 1].y) ** 2) ** 0.5
            if i <= seg:
                start += length
            total += length
        start += ((px - curve[seg].x) ** 2 + (py - curve[seg].y) ** 2) ** 0.5

        if total <= 0.0:
            return SurfaceHeight(ramp.height_bottom)
        pct = start / total
        return SurfaceHeight(curve[seg].z + pct * (ramp.height_top - ramp.height_bottom) + ramp.height_bottom)
