# -*- coding: utf-8 -*-
"""
墙体网格构建器
拖拽点轮廓 -> {name}Top（三角化顶面）+ {name}Side（侧壁）
"""

import math
from typing import List, Sequence

from .base_builder import BuildContext, MeshBuilder, transmission_factor
from ...config.constants import WALL_ACCURACY
from ...core.exceptions import GeometryError
from ...core.geometry import AREA_EPSILON, cap_polygon, ensure_counter_clockwise, extrude_sides, signed_area
from ...core.schema import DragPoint, MeshPart, Wall
from ...core.splines import RenderVertex, get_rg_vertex_2d
from ...writers.audit_writer import ErrorCode


def side_texture_coords(vertices: Sequence[RenderVertex],
                        drag_points: Sequence[DragPoint]) -> List[float]:
    """
    Side-wall tu per render vertex.

    Auto-textured walls spread 0..1 over the outline length. When any drag
    point carries a manual texture coordinate, control points take the
    authored value and the vertices between them interpolate by length.
    """
    count = len(vertices)
    lengths = [0.0]
    for i in range(1, count + 1):
        a, b = vertices[i - 1], vertices[i % count]
        lengths.append(lengths[-1] + math.hypot(b.x - a.x, b.y - a.y))
    total = lengths[-1] or 1.0

    if all(dp.has_auto_texture for dp in drag_points):
        return [lengths[i] / total for i in range(count)]

    # 控制点按顺序对应拖拽点（跳过重合点）
    anchors = []
    dp_iter = iter(drag_points)
    for i, v in enumerate(vertices):
        if not v.control_point:
            continue
        for dp in dp_iter:
            if abs(dp.x - v.x) < 1e-6 and abs(dp.y - v.y) < 1e-6:
                tex = dp.tex_coord if not dp.has_auto_texture else lengths[i] / total
                anchors.append((i, tex))
                break

    if not anchors:
        return [lengths[i] / total for i in range(count)]

    def run_length(i: int) -> float:
        # 绕回后的累计长度
        return lengths[i] if i <= count else lengths[count] + lengths[i - count]

    tex_u = [0.0] * count
    for k, (start, u0) in enumerate(anchors):
        end, u1 = anchors[(k + 1) % len(anchors)]
        if end <= start:
            end += count
            if u1 <= u0:
                u1 += 1.0
        span = run_length(end) - run_length(start)
        for i in range(start, end):
            t = (run_length(i) - run_length(start)) / span if span > 0.0 else 0.0
            tex_u[i % count] = u0 + (u1 - u0) * t
    return tex_u


class WallBuilder(MeshBuilder):
    """墙体构建器"""

    @staticmethod
    def build(wall: Wall, ctx: BuildContext) -> List[MeshPart]:
        """
        构建墙体

        参数:
            wall: Wall - 墙体对象
            ctx: BuildContext - 生成上下文

        返回:
            List[MeshPart] - 顶面与侧壁（各自可见时）
        """
        if not wall.is_top_bottom_visible and not wall.is_side_visible:
            return []

        if len(wall.drag_points) < 3:
            raise GeometryError(
                f"wall outline needs at least 3 drag points, got {len(wall.drag_points)}",
                code=ErrorCode.GEO003)

        vertices = get_rg_vertex_2d(wall.drag_points, WALL_ACCURACY, loop=True)
        if len(vertices) < 3:
            raise GeometryError(f"wall outline has only {len(vertices)} distinct points",
                                code=ErrorCode.GEO003)

        points = [(v.x, v.y) for v in vertices]
        if abs(signed_area(points)) < AREA_EPSILON:
            raise GeometryError("wall outline has zero area", code=ErrorCode.GEO004)

        tex_u = side_texture_coords(vertices, wall.drag_points)
        points, smooth, tex_u = ensure_counter_clockwise(points, [v.smooth for v in vertices], tex_u)

        factor = transmission_factor(wall.disable_lighting_below)
        parts = []

        if wall.is_top_bottom_visible:
            cfg = ctx.config
            inv_w = 1.0 / ((cfg.right - cfg.left) or 1.0)
            inv_h = 1.0 / ((cfg.bottom - cfg.top) or 1.0)
            top = cap_polygon(points, wall.height_top,
                              uv_fn=lambda x, y: ((x - cfg.left) * inv_w, (y - cfg.top) * inv_h))
            parts.append(MeshBuilder.part(wall, f"{wall.name}Top", top, wall.material, wall.image,
                                          transmission_factor=factor))

        if wall.is_side_visible:
            side = extrude_sides(points, wall.height_bottom, wall.height_top, smooth, tex_u)
            parts.append(MeshBuilder.part(wall, f"{wall.name}Side", side,
                                          wall.side_material or wall.material, wall.side_image,
                                          transmission_factor=factor))

        return MeshBuilder.visible_parts(parts)
