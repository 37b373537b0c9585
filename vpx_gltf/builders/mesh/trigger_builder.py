# -*- coding: utf-8 -*-
"""
触发器 / 灯泡网格构建器
"""

from typing import List

from .base_builder import BuildContext, MeshBuilder, place_mesh
from ...config.constants import LIGHT_Z_NUDGE_MM
from ...core.coordinate_converter import mm_to_vpu, rotation_x, rotation_z, scale_matrix
from ...core.exceptions import GeometryError
from ...core.geometry import oriented_mesh
from ...core.schema import Light, MeshPart, Trigger, TriggerShape
from ...core.templates import bulb_template, socket_template, trigger_template
from ...writers.audit_writer import ErrorCode


# 形状 -> (Z 偏移, X 轴预旋转角度)
TRIGGER_Z_OFFSET = {
    TriggerShape.BUTTON: 5.0,
    TriggerShape.WIRE_C: -19.0,
}

TRIGGER_X_ROTATION = {
    TriggerShape.WIRE_B: -23.0,
    TriggerShape.WIRE_C: 140.0,
}

RADIUS_SCALED_SHAPES = (TriggerShape.BUTTON, TriggerShape.STAR)

THICK_WIRE_SHAPES = (
    TriggerShape.WIRE_A,
    TriggerShape.WIRE_B,
    TriggerShape.WIRE_C,
    TriggerShape.WIRE_D,
    TriggerShape.INDER,
)

BULB_TINT = (1.0, 1.0, 1.0, 0.2)
SOCKET_TINT = (0.094, 0.094, 0.094, 1.0)


class TriggerBuilder(MeshBuilder):
    """
    触发器构建器（None 形状不产生网格）

    顶点顺序：X 预旋转 + Z 旋转 -> 世界 XY 缩放（Button/Star 按半径整体缩放）
    -> 沿旋转后的法线外推 wire_thickness（VPU 绝对值）。
    """

    @staticmethod
    def build(trigger: Trigger, ctx: BuildContext) -> List[MeshPart]:
        template = trigger_template(trigger.shape)
        if template is None:
            return []

        if trigger.shape in RADIUS_SCALED_SHAPES:
            if trigger.radius <= 0.0:
                raise GeometryError(f"trigger radius must be positive, got {trigger.radius}",
                                    code=ErrorCode.GEO002)
            sx = sy = sz = trigger.radius
        else:
            sx, sy, sz = trigger.scale_x, trigger.scale_y, 1.0

        rotation = rotation_z(trigger.rotation) @ rotation_x(TRIGGER_X_ROTATION.get(trigger.shape, 0.0))
        rotated = place_mesh(template.to_mesh(), rotation)

        thickness = trigger.wire_thickness if trigger.shape in THICK_WIRE_SHAPES else 0.0
        positions = []
        for p, n in zip(rotated.positions, rotated.normals):
            positions.append((p[0] * sx + n[0] * thickness,
                              p[1] * sy + n[1] * thickness,
                              p[2] * sz + n[2] * thickness))
        mesh = oriented_mesh(positions, rotated.normals, rotated.uvs, rotated.indices)

        surface = ctx.surface_height(trigger)
        translation = (trigger.position[0], trigger.position[1],
                       surface + TRIGGER_Z_OFFSET.get(trigger.shape, 0.0))
        part = MeshBuilder.part(trigger, trigger.name, mesh, trigger.material, trigger.image,
                                translation=translation)
        return MeshBuilder.visible_parts([part])


def light_base_height(light: Light, ctx: BuildContext) -> float:
    """Surface height under the light, lifted 10 mm when it would sit on the playfield plane"""
    z = ctx.surface_height(light)
    if abs(z) < 1e-3:
        z = mm_to_vpu(LIGHT_Z_NUDGE_MM)
    return z


class LightBuilder(MeshBuilder):
    """灯泡构建器：{name}_bulb + {name}_socket"""

    @staticmethod
    def build(light: Light, ctx: BuildContext) -> List[MeshPart]:
        if light.is_backglass or not light.show_bulb_mesh:
            return []
        if light.mesh_radius <= 0.0:
            raise GeometryError(f"bulb mesh radius must be positive, got {light.mesh_radius}",
                                code=ErrorCode.GEO002)

        r = light.mesh_radius
        matrix = scale_matrix(r, r, r)
        translation = (light.position[0], light.position[1], light_base_height(light, ctx))

        parts = [
            MeshBuilder.part(light, f"{light.name}_bulb", place_mesh(bulb_template().to_mesh(), matrix),
                             light.material, color_tint=BULB_TINT, translation=translation),
            MeshBuilder.part(light, f"{light.name}_socket", place_mesh(socket_template().to_mesh(), matrix),
                             light.material, color_tint=SOCKET_TINT, metallic_override=1.0,
                             translation=translation),
        ]
        return MeshBuilder.visible_parts(parts)
