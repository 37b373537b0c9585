# -*- coding: utf-8 -*-
"""
球网格构建器

单位球模板按半径缩放，球心作为节点平移（不查询表面高度）。
球体材质强制为金属；非白色的球颜色作为色调。
"""

from typing import List, Optional

from .base_builder import BuildContext, MeshBuilder, place_mesh
from ...core.coordinate_converter import scale_matrix
from ...core.exceptions import GeometryError
from ...core.schema import RGBA, Ball, MeshPart
from ...core.templates import ball_template
from ...writers.audit_writer import ErrorCode


WHITE = (255, 255, 255)


def ball_tint(ball: Ball) -> Optional[RGBA]:
    if ball.color == WHITE:
        return None
    r, g, b = ball.color
    return (r / 255.0, g / 255.0, b / 255.0, 1.0)


class BallBuilder(MeshBuilder):
    """球构建器：{name}（贴花模式下 image_decal 作为基础色纹理）"""

    @staticmethod
    def build(ball: Ball, ctx: BuildContext) -> List[MeshPart]:
        if ball.radius <= 0.0:
            raise GeometryError(f"ball radius must be positive, got {ball.radius}", code=ErrorCode.GEO002)

        r = ball.radius
        mesh = place_mesh(ball_template().to_mesh(), scale_matrix(r, r, r))
        texture = ball.image_decal if ball.decal_mode else None
        part = MeshBuilder.part(ball, ball.name, mesh, ball.material, texture,
                                color_tint=ball_tint(ball), metallic_override=1.0,
                                translation=tuple(ball.position))
        return MeshBuilder.visible_parts([part])
