# -*- coding: utf-8 -*-
"""
弹射器 / 目标 / 踢球洞网格构建器

- Bumper: Base / Socket / Ring / Cap 四个部件，各自可见性与材质
- HitTarget: 按目标类型选择模板，按 scale 缩放，落下的目标下沉
- Kicker: 主体模板 + {name}Plate（近黑色的布尔切割辅助面），顶点直接烘焙到世界坐标
"""

from typing import List

from mathutils import Matrix, Vector

from .base_builder import BuildContext, MeshBuilder, place_mesh, transmission_factor
from ...core.coordinate_converter import rotation_z, scale_matrix
from ...core.exceptions import GeometryError
from ...core.schema import Bumper, HitTarget, Kicker, KickerType, MeshPart
from ...core.templates import (
    DROP_TARGETS,
    bumper_template,
    kicker_plate_template,
    kicker_template,
    target_template,
)
from ...writers.audit_writer import ErrorCode


DROP_TARGET_LIMIT = 52.0

KICKER_PLATE_TINT = (0.02, 0.02, 0.02, 1.0)

KICKER_TINTS = {
    KickerType.CUP: (0.75, 0.75, 0.78, 1.0),
    KickerType.CUP2: (0.75, 0.75, 0.78, 1.0),
    KickerType.WILLIAMS: (0.72, 0.53, 0.25, 1.0),
    KickerType.GOTTLIEB: (0.45, 0.42, 0.40, 1.0),
    KickerType.HOLE: (0.36, 0.25, 0.15, 1.0),
    KickerType.HOLE_SIMPLE: (0.36, 0.25, 0.15, 1.0),
}


class BumperBuilder(MeshBuilder):
    """弹射器构建器"""

    @staticmethod
    def build(bumper: Bumper, ctx: BuildContext) -> List[MeshPart]:
        if bumper.radius <= 0.0:
            raise GeometryError(f"bumper radius must be positive, got {bumper.radius}",
                                code=ErrorCode.GEO002)

        surface = ctx.surface_height(bumper)
        translation = (bumper.position[0], bumper.position[1], surface)
        matrix = rotation_z(bumper.rotation) @ scale_matrix(bumper.radius, bumper.radius, bumper.height_scale)

        parts = []
        for key, suffix, visible, material in (
            ("base", "Base", bumper.is_base_visible, bumper.base_material),
            ("socket", "Socket", bumper.is_socket_visible, bumper.socket_material),
            ("ring", "Ring", bumper.is_ring_visible, bumper.ring_material),
            ("cap", "Cap", bumper.is_cap_visible, bumper.cap_material),
        ):
            if not visible:
                continue
            mesh = place_mesh(bumper_template(key).to_mesh(), matrix)
            parts.append(MeshBuilder.part(bumper, f"{bumper.name}{suffix}", mesh, material,
                                          translation=translation))
        return MeshBuilder.visible_parts(parts)


class TargetBuilder(MeshBuilder):
    """目标构建器"""

    @staticmethod
    def build(target: HitTarget, ctx: BuildContext) -> List[MeshPart]:
        sx, sy, sz = target.scale
        if sx == 0.0 or sy == 0.0 or sz == 0.0:
            raise GeometryError(f"target scale must be non-zero, got {target.scale}", code=ErrorCode.GEO002)

        # 目标没有附着表面：position.z 即绝对底部高度
        x, y, z = target.position
        if target.is_dropped and target.target_type in DROP_TARGETS:
            z -= DROP_TARGET_LIMIT

        matrix = rotation_z(target.rotation) @ scale_matrix(sx, sy, sz)
        mesh = place_mesh(target_template(target.target_type).to_mesh(), matrix)
        part = MeshBuilder.part(target, target.name, mesh, target.material, target.image,
                                transmission_factor=transmission_factor(target.disable_lighting_below),
                                translation=(x, y, z))
        return MeshBuilder.visible_parts([part])


class KickerBuilder(MeshBuilder):
    """踢球洞构建器（Invisible 类型不产生网格）"""

    @staticmethod
    def build(kicker: Kicker, ctx: BuildContext) -> List[MeshPart]:
        template = kicker_template(kicker.kicker_type)
        if template is None:
            return []
        if kicker.radius <= 0.0:
            raise GeometryError(f"kicker radius must be positive, got {kicker.radius}",
                                code=ErrorCode.GEO002)

        surface = ctx.surface_height(kicker)
        r = kicker.radius
        matrix = (
            Matrix.Translation(Vector((kicker.position[0], kicker.position[1], surface)))
            @ rotation_z(kicker.rotation)
            @ scale_matrix(r, r, r)
        )

        body = place_mesh(template.to_mesh(), matrix)
        plate = place_mesh(kicker_plate_template().to_mesh(), matrix)
        parts = [
            MeshBuilder.part(kicker, f"{kicker.name}Kicker", body, kicker.material,
                             color_tint=KICKER_TINTS[kicker.kicker_type]),
            MeshBuilder.part(kicker, f"{kicker.name}Plate", plate, kicker.material,
                             color_tint=KICKER_PLATE_TINT),
        ]
        return MeshBuilder.visible_parts(parts)
