# -*- coding: utf-8 -*-
"""
旋转片 / 闸门网格构建器
模板按长度缩放，绕 Z 轴旋转，节点位于 表面高度 + height
"""

from typing import List

from .base_builder import BuildContext, MeshBuilder, place_mesh
from ...core.coordinate_converter import rotation_z, scale_matrix
from ...core.exceptions import GeometryError
from ...core.schema import Gate, MeshPart, Spinner
from ...core.templates import bracket_template, gate_wire_template, spinner_plate_template
from ...writers.audit_writer import ErrorCode


def _pivot_matrix(length: float, rotation: float):
    return rotation_z(rotation) @ scale_matrix(length, length, length)


class SpinnerBuilder(MeshBuilder):
    """旋转片构建器：{name}Bracket（可选）+ {name}Plate"""

    @staticmethod
    def build(spinner: Spinner, ctx: BuildContext) -> List[MeshPart]:
        if spinner.length <= 0.0:
            raise GeometryError(f"spinner length must be positive, got {spinner.length}",
                                code=ErrorCode.GEO002)

        surface = ctx.surface_height(spinner)
        translation = (spinner.position[0], spinner.position[1], surface + spinner.height)
        matrix = _pivot_matrix(spinner.length, spinner.rotation)

        parts = []
        if spinner.show_bracket:
            parts.append(MeshBuilder.part(spinner, f"{spinner.name}Bracket",
                                          place_mesh(bracket_template().to_mesh(), matrix),
                                          translation=translation))
        parts.append(MeshBuilder.part(spinner, f"{spinner.name}Plate",
                                      place_mesh(spinner_plate_template().to_mesh(), matrix),
                                      spinner.material, spinner.image, translation=translation))
        return MeshBuilder.visible_parts(parts)


class GateBuilder(MeshBuilder):
    """闸门构建器：{name}Bracket（可选）+ {name}Wire（按闸门类型选择模板）"""

    @staticmethod
    def build(gate: Gate, ctx: BuildContext) -> List[MeshPart]:
        if gate.length <= 0.0:
            raise GeometryError(f"gate length must be positive, got {gate.length}", code=ErrorCode.GEO002)

        surface = ctx.surface_height(gate)
        translation = (gate.position[0], gate.position[1], surface + gate.height)
        matrix = _pivot_matrix(gate.length, gate.rotation)

        parts = []
        if gate.show_bracket:
            parts.append(MeshBuilder.part(gate, f"{gate.name}Bracket",
                                          place_mesh(bracket_template().to_mesh(), matrix),
                                          gate.material, translation=translation))
        parts.append(MeshBuilder.part(gate, f"{gate.name}Wire",
                                      place_mesh(gate_wire_template(gate.gate_type).to_mesh(), matrix),
                                      gate.material, translation=translation))
        return MeshBuilder.visible_parts(parts)
