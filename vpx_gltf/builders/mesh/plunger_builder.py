# -*- coding: utf-8 -*-
"""
柱塞网格构建器

Flat          -> {name}Flat（带端盖的圆柱）
Modern/Custom -> {name}Rod, {name}Spring, {name}Ring, {name}Tip

局部坐标：柱塞沿 Y 轴，尖端朝向 -Y（球台方向），节点位于 (x, y, 表面高度)。
纹理 v 分区：Tip 0-0.24, Ring 0.25-0.5, Rod 0.51-0.74, Spring 0.76-0.98
"""

import math
from typing import List, NamedTuple, Tuple

from .base_builder import BuildContext, MeshBuilder, offset_mesh
from ...core.exceptions import GeometryError
from ...core.geometry import revolve_profile, sweep_tube
from ...core.schema import Mesh, MeshPart, Plunger, PlungerType
from ...writers.audit_writer import ErrorCode


LATHE_SEGMENTS = 16
SPRING_SEGMENTS_PER_TURN = 24
SPRING_WIRE_SEGMENTS = 6

DEFAULT_TIP_SHAPE = Plunger.tip_shape


class TipPoint(NamedTuple):
    y: float  # 距尖端前沿的位置
    r: float  # 半径（宽度的倍数）


def parse_tip_shape(tip_shape: str) -> List[TipPoint]:
    """
    Parse "pos diam; pos diam; ..." into (position, radius) points sorted by
    position. Diameters are halved; tokens that are not two numbers are ignored.
    """
    points = []
    for segment in tip_shape.split(';'):
        fields = segment.split()
        if len(fields) < 2:
            continue
        try:
            y, d = float(fields[0]), float(fields[1])
        except ValueError:
            continue
        points.append(TipPoint(y, d * 0.5))
    points.sort(key=lambda p: p.y)
    return points


def _lathe_y(profile: List[Tuple[float, float]], tv_range: Tuple[float, float],
             z_center: float) -> Mesh:
    """Revolve (y, radius) pairs about the plunger axis"""
    mesh = revolve_profile(profile, LATHE_SEGMENTS, axis='y', tv_range=tv_range, u_offset=0.51)
    return offset_mesh(mesh, 0.0, 0.0, z_center)


def _helix(y_start: float, y_end: float, radius: float, turns: float,
           z_center: float) -> List[Tuple[float, float, float]]:
    steps = max(int(turns * SPRING_SEGMENTS_PER_TURN), 2)
    path = []
    for i in range(steps + 1):
        t = i / steps
        angle = t * turns * 2.0 * math.pi
        path.append((radius * math.cos(angle), y_start + (y_end - y_start) * t,
                     z_center + radius * math.sin(angle)))
    return path


class PlungerBuilder(MeshBuilder):
    """柱塞构建器"""

    @staticmethod
    def build(plunger: Plunger, ctx: BuildContext) -> List[MeshPart]:
        if plunger.width <= 0.0:
            raise GeometryError(f"plunger width must be positive, got {plunger.width}",
                                code=ErrorCode.GEO002)

        surface = ctx.surface_height(plunger)
        translation = (plunger.position[0], plunger.position[1], surface)
        z_center = plunger.z_adjust + plunger.height * 0.5
        rod_r = plunger.width * plunger.rod_diam * 0.5
        y_tip = -plunger.stroke

        def part(suffix: str, mesh: Mesh) -> MeshPart:
            return MeshBuilder.part(plunger, f"{plunger.name}{suffix}", mesh, plunger.material,
                                    plunger.image, translation=translation)

        if plunger.plunger_type is PlungerType.FLAT:
            # 两端封闭
            profile = [(y_tip, 0.0), (y_tip, rod_r), (0.0, rod_r), (0.0, 0.0)]
            return MeshBuilder.visible_parts([part("Flat", _lathe_y(profile, (0.0, 1.0), z_center))])

        tip = parse_tip_shape(plunger.tip_shape)
        if not tip:
            ctx.warn(ErrorCode.GEO005,
                     f"plunger tip shape {plunger.tip_shape!r} has no usable points, using the default")
            tip = parse_tip_shape(DEFAULT_TIP_SHAPE)
        tip_length = tip[-1].y

        y_ring_bottom = y_tip + tip_length + plunger.ring_gap
        y_ring_top = y_ring_bottom + plunger.ring_width
        y_rod_base = -plunger.height + plunger.stroke
        if y_rod_base <= y_ring_top:
            y_rod_base = y_ring_top + rod_r

        w = plunger.width
        tip_profile = [(y_tip + tip[0].y, 0.0)] + [(y_tip + p.y, p.r * w) for p in tip]
        ring_r = w * plunger.ring_diam * 0.5
        ring_profile = [(y_ring_bottom, rod_r), (y_ring_bottom, ring_r),
                        (y_ring_top, ring_r), (y_ring_top, rod_r)]
        rod_profile = [(y_ring_top, rod_r), (y_rod_base, rod_r), (y_rod_base, 0.0)]

        spring_r = w * 0.5 * plunger.spring_diam
        turns = plunger.spring_loops + plunger.spring_end_loops
        spring = Mesh()
        if turns > 0.0 and plunger.spring_gauge > 0.0:
            path = _helix(y_ring_top, y_rod_base, spring_r, turns, z_center)
            spring = sweep_tube(path, plunger.spring_gauge, SPRING_WIRE_SEGMENTS, tv_range=(0.76, 0.98))

        parts = [
            part("Rod", _lathe_y(rod_profile, (0.51, 0.74), z_center)),
            part("Spring", spring),
            part("Ring", _lathe_y(ring_profile, (0.25, 0.5), z_center)),
            part("Tip", _lathe_y(tip_profile, (0.0, 0.24), z_center)),
        ]
        return MeshBuilder.visible_parts(parts)
