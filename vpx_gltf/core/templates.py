# -*- coding: utf-8 -*-
"""
VPX glTF Exporter - Mesh Templates

- Per-kind reference meshes built procedurally once per process
  (functools.lru_cache) and held as immutable tuples
- Generators call MeshTemplate.to_mesh() to get a fresh, mutable copy;
  a template is never modified after creation
- Coordinates are Z-up; sizes are either unit (scaled by a radius/length/size
  at instance time) or already in VPU, as noted per template
"""

from __future__ import annotations
import math
from functools import lru_cache
from typing import NamedTuple, Optional, Tuple

from .geometry import (
    cap_polygon,
    extrude_sides,
    make_box,
    make_disc,
    make_uv_sphere,
    merge_meshes,
    revolve_profile,
    sweep_tube,
    transform_mesh,
)
from .schema import GateType, KickerType, Mesh, TargetType, TriggerShape


class MeshTemplate(NamedTuple):
    positions: Tuple[Tuple[float, float, float], ...]
    normals: Tuple[Tuple[float, float, float], ...]
    uvs: Tuple[Tuple[float, float], ...]
    indices: Tuple[int, ...]
    roles: Optional[Tuple[str, ...]] = None

    @classmethod
    def freeze(cls, mesh: Mesh, roles=None) -> "MeshTemplate":
        return cls(tuple(mesh.positions), tuple(mesh.normals), tuple(mesh.uvs),
                   tuple(mesh.indices), tuple(roles) if roles is not None else None)

    def to_mesh(self) -> Mesh:
        return Mesh(positions=list(self.positions), normals=list(self.normals),
                    uvs=list(self.uvs), indices=list(self.indices))

    @property
    def vertex_count(self) -> int:
        return len(self.positions)


def _shift(mesh: Mesh, dx: float = 0.0, dy: float = 0.0, dz: float = 0.0) -> Mesh:
    return transform_mesh(mesh, lambda p: (p[0] + dx, p[1] + dy, p[2] + dz))


# =========================
# Flipper
# =========================

FLIPPER_ARC_POINTS = 13
FLIPPER_BASE_RADIUS = 0.100762
FLIPPER_TIP_RADIUS = 0.101425
FLIPPER_TIP_CENTER_Y = 0.786319
FLIPPER_Z_BOTTOM = 0.003753
FLIPPER_Z_TOP = 1.004253

ROLE_BASE = "base"
ROLE_TIP = "tip"


def flipper_arc(role: str) -> Tuple[Tuple[float, float], ...]:
    """
    Reference arc of 13 points: the base arc runs (-r, 0) -> (0, -r) -> (r, 0),
    the tip arc (r, cy) -> (0, cy + r) -> (-r, cy). Both counter-clockwise.
    """
    pts = []
    for k in range(FLIPPER_ARC_POINTS):
        if role == ROLE_BASE:
            a = math.pi + math.pi * k / (FLIPPER_ARC_POINTS - 1)
            pts.append((FLIPPER_BASE_RADIUS * math.cos(a), FLIPPER_BASE_RADIUS * math.sin(a)))
        else:
            a = math.pi * k / (FLIPPER_ARC_POINTS - 1)
            pts.append((FLIPPER_TIP_RADIUS * math.cos(a),
                        FLIPPER_TIP_CENTER_Y + FLIPPER_TIP_RADIUS * math.sin(a)))
    return tuple(pts)


@lru_cache(maxsize=None)
def flipper_template() -> MeshTemplate:
    """
    Flipper bat: base arc + tip arc outline, side walls and both caps.
    Every vertex is tagged with the arc it belongs to, which drives the
    radius fix-up at instance time.
    """
    base = flipper_arc(ROLE_BASE)
    tip = flipper_arc(ROLE_TIP)
    outline = list(base) + list(tip)
    smooth = [0 < k < FLIPPER_ARC_POINTS - 1 for k in range(FLIPPER_ARC_POINTS)] * 2

    perimeter = [0.0]
    for i in range(1, len(outline)):
        perimeter.append(perimeter[-1] + math.dist(outline[i - 1], outline[i]))
    total = perimeter[-1] + math.dist(outline[-1], outline[0])
    tex_u = [p / total for p in perimeter]

    sides = extrude_sides(outline, FLIPPER_Z_BOTTOM, FLIPPER_Z_TOP, smooth=smooth, tex_u=tex_u)
    top = cap_polygon(outline, FLIPPER_Z_TOP,
                      uv_fn=lambda x, y: (0.5 + x, y / (FLIPPER_TIP_CENTER_Y + FLIPPER_TIP_RADIUS)))
    bottom = cap_polygon(outline, FLIPPER_Z_BOTTOM, facing_up=False,
                         uv_fn=lambda x, y: (0.5 + x, y / (FLIPPER_TIP_CENTER_Y + FLIPPER_TIP_RADIUS)))
    mesh = merge_meshes([sides, top, bottom])

    roles = [ROLE_BASE if p[1] < FLIPPER_TIP_CENTER_Y * 0.5 else ROLE_TIP for p in mesh.positions]
    return MeshTemplate.freeze(mesh, roles)


# =========================
# Triggers
# =========================

def _stadium_path(half_length: float, radius: float, steps: int = 8, arch: float = 0.0):
    """Closed racetrack loop in XY (optionally arched in Z along Y)"""
    pts = []
    for k in range(steps + 1):
        a = math.pi * k / steps
        pts.append((radius * math.cos(a), half_length + radius * math.sin(a)))
    for k in range(steps + 1):
        a = math.pi + math.pi * k / steps
        pts.append((radius * math.cos(a), -half_length + radius * math.sin(a)))
    span = half_length + radius
    return [(x, y, arch * math.cos(0.5 * math.pi * y / span)) for x, y in pts]


@lru_cache(maxsize=None)
def trigger_template(shape: TriggerShape) -> Optional[MeshTemplate]:
    """
    Five templates shared by seven shapes (None has no mesh):
      WireA/WireB/WireC -> simple wire loop (VPU)
      WireD             -> narrow arched loop (VPU)
      Inder             -> flat bar (VPU)
      Star              -> star prism (unit, scaled by radius)
      Button            -> dome (unit, scaled by radius)
    """
    if shape is TriggerShape.NONE:
        return None
    if shape in (TriggerShape.WIRE_A, TriggerShape.WIRE_B, TriggerShape.WIRE_C):
        mesh = sweep_tube(_stadium_path(18.0, 8.0), 1.0, segments=6, closed=True)
    elif shape is TriggerShape.WIRE_D:
        mesh = sweep_tube(_stadium_path(20.0, 4.5, arch=6.0), 1.0, segments=6, closed=True)
    elif shape is TriggerShape.INDER:
        mesh = make_box((-5.0, -26.0, -1.5), (5.0, 26.0, 1.5))
    elif shape is TriggerShape.STAR:
        outline = []
        for k in range(10):
            r = 1.0 if k % 2 == 0 else 0.45
            a = math.pi * 0.5 + math.pi * k / 5.0
            outline.append((r * math.cos(a), r * math.sin(a)))
        mesh = merge_meshes([
            extrude_sides(outline, 0.0, 0.15),
            cap_polygon(outline, 0.15, uv_fn=lambda x, y: (0.5 + 0.5 * x, 0.5 + 0.5 * y)),
        ])
    elif shape is TriggerShape.BUTTON:
        profile = [(0.0, 1.0)]
        for k in range(1, 7):
            a = 0.5 * math.pi * k / 6.0
            profile.append((0.25 * math.sin(a), math.cos(a)))
        mesh = revolve_profile(profile, 24)
    else:
        raise ValueError(f"unhandled trigger shape: {shape}")
    return MeshTemplate.freeze(mesh)


# =========================
# Light bulb / socket (unit, scaled by mesh radius)
# =========================

@lru_cache(maxsize=None)
def bulb_template() -> MeshTemplate:
    profile = [(0.25, 0.3), (0.45, 0.42), (0.7, 0.45), (0.95, 0.4), (1.1, 0.28), (1.2, 0.14), (1.25, 0.0)]
    return MeshTemplate.freeze(revolve_profile(profile, 16))


@lru_cache(maxsize=None)
def socket_template() -> MeshTemplate:
    profile = [(0.0, 0.45), (0.2, 0.45), (0.25, 0.35), (0.25, 0.0)]
    return MeshTemplate.freeze(revolve_profile(profile, 16))


# =========================
# Ball (unit sphere, scaled by radius)
# =========================

@lru_cache(maxsize=None)
def ball_template() -> MeshTemplate:
    return MeshTemplate.freeze(make_uv_sphere(1.0, 16, 32))


# =========================
# Bumper parts (unit: xy scaled by radius, z by height scale)
# =========================

BUMPER_PROFILES = {
    "base": [(0.0, 1.0), (0.08, 1.0), (0.1, 0.9), (0.1, 0.0)],
    "socket": [(0.1, 0.85), (0.3, 0.55), (0.3, 0.0)],
    "ring": [(0.3, 0.62), (0.6, 0.62), (0.6, 0.5)],
    "cap": [(0.85, 1.0), (0.95, 0.95), (1.0, 0.6), (1.0, 0.0)],
}


@lru_cache(maxsize=None)
def bumper_template(part: str) -> MeshTemplate:
    return MeshTemplate.freeze(revolve_profile(BUMPER_PROFILES[part], 32))


# =========================
# Kicker (unit, scaled by radius)
# =========================

KICKER_PROFILES = {
    KickerType.HOLE: [(0.0, 1.0), (-1.0, 1.0), (-1.0, 0.0)],
    KickerType.HOLE_SIMPLE: [(0.0, 1.0), (-0.6, 1.0), (-0.6, 0.0)],
    KickerType.CUP: [(0.0, 1.15), (0.12, 1.05), (0.12, 1.0), (-1.0, 0.9), (-1.0, 0.0)],
    KickerType.CUP2: [(0.0, 1.1), (0.08, 1.02), (0.08, 1.0), (-0.8, 0.85), (-0.8, 0.0)],
    KickerType.WILLIAMS: [(0.0, 1.2), (0.2, 1.05), (0.2, 1.0), (-1.0, 1.0), (-1.0, 0.0)],
    KickerType.GOTTLIEB: [(0.0, 1.1), (0.1, 1.0), (-0.9, 0.95), (-0.9, 0.0)],
}


@lru_cache(maxsize=None)
def kicker_template(kicker_type: KickerType) -> Optional[MeshTemplate]:
    if kicker_type is KickerType.INVISIBLE:
        return None
    return MeshTemplate.freeze(revolve_profile(KICKER_PROFILES[kicker_type], 32))


@lru_cache(maxsize=None)
def kicker_plate_template() -> MeshTemplate:
    return MeshTemplate.freeze(make_disc(1.0, 32))


# =========================
# Hit / drop targets (unit, scaled by size)
# =========================

TARGET_BOXES = {
    TargetType.DROP_TARGET_BEVELED: ((-1.0, -0.12, 0.0), (1.0, 0.12, 1.6)),
    TargetType.DROP_TARGET_SIMPLE: ((-1.0, -0.08, 0.0), (1.0, 0.08, 1.5)),
    TargetType.DROP_TARGET_FLAT_SIMPLE: ((-1.0, -0.05, 0.0), (1.0, 0.05, 1.2)),
    TargetType.HIT_TARGET_RECTANGLE: ((-0.8, -0.1, 0.2), (0.8, 0.1, 1.4)),
    TargetType.HIT_FAT_TARGET_RECTANGLE: ((-0.8, -0.25, 0.2), (0.8, 0.25, 1.4)),
    TargetType.HIT_FAT_TARGET_SQUARE: ((-0.6, -0.25, 0.2), (0.6, 0.25, 1.4)),
    TargetType.HIT_TARGET_SLIM: ((-0.4, -0.1, 0.2), (0.4, 0.1, 1.4)),
    TargetType.HIT_FAT_TARGET_SLIM: ((-0.4, -0.25, 0.2), (0.4, 0.25, 1.4)),
}

DROP_TARGETS = (
    TargetType.DROP_TARGET_BEVELED,
    TargetType.DROP_TARGET_SIMPLE,
    TargetType.DROP_TARGET_FLAT_SIMPLE,
)


@lru_cache(maxsize=None)
def target_template(target_type: TargetType) -> MeshTemplate:
    if target_type is TargetType.HIT_TARGET_ROUND:
        face = revolve_profile([(-0.1, 0.6), (0.1, 0.6), (0.1, 0.0)], 24, axis='y')
        post = make_box((-0.1, -0.1, 0.0), (0.1, 0.1, 0.3))
        return MeshTemplate.freeze(merge_meshes([_shift(face, dz=0.9), post]))
    lo, hi = TARGET_BOXES[target_type]
    return MeshTemplate.freeze(make_box(lo, hi))


# =========================
# Gates and spinners (unit, scaled by length; pivot at z = 0)
# =========================

GATE_WIRE_RADIUS = 0.012

GATE_WIRE_PATHS = {
    GateType.WIRE_W: [(-0.5, 0.0, 0.0), (-0.5, 0.0, -0.8), (-0.25, 0.0, -0.6),
                      (0.0, 0.0, -0.8), (0.25, 0.0, -0.6), (0.5, 0.0, -0.8), (0.5, 0.0, 0.0)],
    GateType.WIRE_RECTANGLE: [(-0.5, 0.0, 0.0), (-0.5, 0.0, -0.8), (0.5, 0.0, -0.8), (0.5, 0.0, 0.0)],
}

GATE_PLATES = {
    GateType.PLATE: ((-0.5, -0.01, -0.8), (0.5, 0.01, 0.0)),
    GateType.LONG_PLATE: ((-0.5, -0.01, -1.0), (0.5, 0.01, 0.0)),
}


@lru_cache(maxsize=None)
def gate_wire_template(gate_type: GateType) -> MeshTemplate:
    if gate_type in GATE_WIRE_PATHS:
        return MeshTemplate.freeze(sweep_tube(GATE_WIRE_PATHS[gate_type], GATE_WIRE_RADIUS, segments=6))
    lo, hi = GATE_PLATES[gate_type]
    return MeshTemplate.freeze(make_box(lo, hi))


@lru_cache(maxsize=None)
def bracket_template() -> MeshTemplate:
    """Two posts either side of the pivot, shared by gates and spinners"""
    left = make_box((-0.56, -0.03, -0.9), (-0.52, 0.03, 0.06))
    right = make_box((0.52, -0.03, -0.9), (0.56, 0.03, 0.06))
    axle = make_box((-0.56, -0.015, -0.015), (0.56, 0.015, 0.015))
    return MeshTemplate.freeze(merge_meshes([left, right, axle]))


@lru_cache(maxsize=None)
def spinner_plate_template() -> MeshTemplate:
    return MeshTemplate.freeze(make_box((-0.5, -0.015, -0.55), (0.5, 0.015, -0.05)))
