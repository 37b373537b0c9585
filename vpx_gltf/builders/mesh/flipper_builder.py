# -*- coding: utf-8 -*-
"""
挡板网格构建器

参考网格 (flipper_template) 的底端/尖端圆弧顶点按半径重新排布 ("fix-up")，
法线沿用参考网格原值；
然后依次执行：Z 轴 180° 旋转 -> 高度缩放 -> 起始角旋转。
挡板中心 + 表面高度作为节点平移。
"""

import math
from typing import List, Tuple

from .base_builder import BuildContext, MeshBuilder
from ...core.exceptions import GeometryError
from ...core.schema import Flipper, Mesh, MeshPart, Vec2
from ...core.templates import FLIPPER_TIP_CENTER_Y, ROLE_BASE, flipper_template
from ...writers.audit_writer import ErrorCode


BASE_CENTER = (0.0, 0.0)
TIP_CENTER = (0.0, FLIPPER_TIP_CENTER_Y)
BASE_MID_ANGLE = -math.pi * 0.5
TIP_MID_ANGLE = math.pi * 0.5


def fix_angle_scale(flipper: Flipper) -> float:
    """Share of the half-circle the arcs are skewed by, so both arcs meet the tangent sides"""
    if flipper.flipper_radius_max == 0.0:
        return 0.0
    sin_angle = (flipper.base_radius - flipper.end_radius) / flipper.flipper_radius_max
    sin_angle = max(-1.0, min(sin_angle, 1.0))
    return math.asin(sin_angle) / (math.pi * 0.5)


def apply_fix(position: Tuple[float, float], center: Vec2, mid_angle: float, radius: float,
              new_center: Vec2, angle_scale: float) -> Vec2:
    """
    Move one arc vertex onto a circle of `radius` around `new_center`.

    The vertex angle is pulled towards the arc's mid angle by angle_scale;
    it is first brought to the sign of mid_angle.
    """
    v_angle = math.atan2(position[1] - center[1], position[0] - center[0])
    if mid_angle < 0.0:
        if v_angle > 0.0:
            v_angle -= math.pi * 2.0
    elif v_angle < 0.0:
        v_angle += math.pi * 2.0

    sign = 1.0 if mid_angle > 0.0 else -1.0
    v_angle -= (v_angle - mid_angle) * angle_scale * sign
    return math.cos(v_angle) * radius + new_center[0], math.sin(v_angle) * radius + new_center[1]


def flipper_mesh(flipper: Flipper, base_radius: float, end_radius: float,
                 z_scale: float, z_offset: float, tv_offset: float = 0.0) -> Mesh:
    """
    One flipper shell in local space (pivot at the origin).

    参数:
        base_radius / end_radius: 底端 / 尖端圆弧半径
        z_scale / z_offset: 参考网格 z (0..1) -> z * z_scale + z_offset
        tv_offset: 纹理 v 偏移（橡胶使用纹理下半部分）

    返回:
        Mesh
    """
    template = flipper_template()
    angle_scale = fix_angle_scale(flipper)
    tip_center = (0.0, flipper.flipper_radius_max)

    start = math.radians(flipper.start_angle)
    sin_a, cos_a = math.sin(start), math.cos(start)

    mesh = Mesh()
    for i, role in enumerate(template.roles):
        px, py, pz = template.positions[i]
        nx, ny, nz = template.normals[i]
        if role == ROLE_BASE:
            px, py = apply_fix((px, py), BASE_CENTER, BASE_MID_ANGLE, base_radius,
                               BASE_CENTER, angle_scale)
        else:
            px, py = apply_fix((px, py), TIP_CENTER, TIP_MID_ANGLE, end_radius,
                               tip_center, angle_scale)

        # Z 轴 180°
        px, py, nx, ny = -px, -py, -nx, -ny
        pz = pz * z_scale + z_offset

        # 起始角
        x = px * cos_a - py * sin_a
        y = px * sin_a + py * cos_a
        rnx = nx * cos_a - ny * sin_a
        rny = nx * sin_a + ny * cos_a

        mesh.positions.append((x, y, pz))
        mesh.normals.append((rnx, rny, nz))
        tu, tv = template.uvs[i]
        mesh.uvs.append((tu, tv + tv_offset))
    mesh.indices = list(template.indices)
    return mesh


class FlipperBuilder(MeshBuilder):
    """挡板构建器：{name}Base + {name}Rubber（橡胶厚度 > 0 时）"""

    @staticmethod
    def build(flipper: Flipper, ctx: BuildContext) -> List[MeshPart]:
        if flipper.base_radius <= 0.0 or flipper.end_radius <= 0.0:
            raise GeometryError(
                f"flipper radii must be positive (base={flipper.base_radius}, end={flipper.end_radius})",
                code=ErrorCode.GEO002)

        surface = ctx.surface_height(flipper)
        translation = (flipper.position[0], flipper.position[1], surface)
        thickness = max(flipper.rubber_thickness, 0.0)

        base_radius = flipper.base_radius - thickness
        end_radius = flipper.end_radius - thickness
        if base_radius <= 0.0 or end_radius <= 0.0:
            raise GeometryError("flipper rubber is thicker than the flipper radius", code=ErrorCode.GEO002)

        parts = [MeshBuilder.part(
            flipper, f"{flipper.name}Base",
            flipper_mesh(flipper, base_radius, end_radius, flipper.height, 0.0),
            flipper.material, flipper.image, translation=translation,
        )]

        if thickness > 0.0:
            parts.append(MeshBuilder.part(
                flipper, f"{flipper.name}Rubber",
                flipper_mesh(flipper, base_radius + thickness, end_radius + thickness,
                             flipper.rubber_width, flipper.rubber_height, tv_offset=0.5),
                flipper.rubber_material, None, translation=translation,
            ))

        return MeshBuilder.visible_parts(parts)
