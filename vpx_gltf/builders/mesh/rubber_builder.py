# -*- coding: utf-8 -*-
"""
橡胶圈 / 闪光板网格构建器

两者都围绕自身中心旋转 (rot_x, rot_y, rotation)，中心作为节点平移
"""

from typing import List

from .base_builder import BuildContext, MeshBuilder, place_mesh
from ...core.coordinate_converter import rotation_x, rotation_y, rotation_z
from ...core.exceptions import GeometryError
from ...core.geometry import AREA_EPSILON, bounds, cap_polygon, signed_area, sweep_tube
from ...core.schema import Flasher, MeshPart, Rubber
from ...core.splines import detail_level_to_accuracy, get_rg_vertex_2d
from ...writers.audit_writer import ErrorCode


RUBBER_SEGMENTS = 8


def _rotation(rot_x: float, rot_y: float, rot_z: float):
    """Z * Y * X applied to column vectors: X first, then Y, then Z"""
    return rotation_z(rot_z) @ rotation_y(rot_y) @ rotation_x(rot_x)


class RubberBuilder(MeshBuilder):
    """橡胶圈构建器"""

    @staticmethod
    def build(rubber: Rubber, ctx: BuildContext) -> List[MeshPart]:
        if rubber.thickness <= 0.0:
            raise GeometryError(f"rubber thickness must be positive, got {rubber.thickness}",
                                code=ErrorCode.GEO002)
        if len(rubber.drag_points) < 2:
            raise GeometryError(
                f"rubber path needs at least 2 drag points, got {len(rubber.drag_points)}",
                code=ErrorCode.GEO003)

        vertices = get_rg_vertex_2d(rubber.drag_points, detail_level_to_accuracy(10.0), loop=True)
        if len(vertices) < 2:
            raise GeometryError("rubber path collapses to a single point", code=ErrorCode.GEO003)

        (min_x, min_y), (max_x, max_y) = bounds([(v.x, v.y) for v in vertices])
        cx, cy = (min_x + max_x) * 0.5, (min_y + max_y) * 0.5

        path = [(v.x - cx, v.y - cy, 0.0) for v in vertices]
        mesh = sweep_tube(path, rubber.thickness * 0.5, RUBBER_SEGMENTS, closed=True)
        if rubber.rot_x or rubber.rot_y or rubber.rotation:
            mesh = place_mesh(mesh, _rotation(rubber.rot_x, rubber.rot_y, rubber.rotation))

        part = MeshBuilder.part(rubber, rubber.name, mesh, rubber.material, rubber.image,
                                translation=(cx, cy, rubber.height))
        return MeshBuilder.visible_parts([part])


class FlasherBuilder(MeshBuilder):
    """闪光板构建器（平面多边形）"""

    @staticmethod
    def build(flasher: Flasher, ctx: BuildContext) -> List[MeshPart]:
        if len(flasher.drag_points) < 3:
            raise GeometryError(
                f"flasher outline needs at least 3 drag points, got {len(flasher.drag_points)}",
                code=ErrorCode.GEO003)

        vertices = get_rg_vertex_2d(flasher.drag_points, detail_level_to_accuracy(10.0), loop=True)
        points = [(v.x, v.y) for v in vertices]
        if len(points) < 3:
            raise GeometryError(f"flasher outline has only {len(points)} distinct points",
                                code=ErrorCode.GEO003)
        if abs(signed_area(points)) < AREA_EPSILON:
            raise GeometryError("flasher outline has zero area", code=ErrorCode.GEO004)

        # 纹理坐标取轮廓包围盒
        (min_x, min_y), (max_x, max_y) = bounds(points)
        inv_w = 1.0 / (max_x - min_x) if max_x - min_x > 1e-6 else 1.0
        inv_h = 1.0 / (max_y - min_y) if max_y - min_y > 1e-6 else 1.0

        cx, cy = flasher.position[0], flasher.position[1]
        local = [(x - cx, y - cy) for x, y in points]
        mesh = cap_polygon(local, 0.0,
                           uv_fn=lambda x, y: ((x + cx - min_x) * inv_w, (y + cy - min_y) * inv_h))
        if flasher.rot_x or flasher.rot_y or flasher.rotation:
            mesh = place_mesh(mesh, _rotation(flasher.rot_x, flasher.rot_y, flasher.rotation))

        r, g, b = flasher.color
        tint = (r / 255.0, g / 255.0, b / 255.0, max(0.0, min(flasher.alpha / 100.0, 1.0)))
        part = MeshBuilder.part(flasher, flasher.name, mesh, flasher.material, flasher.image_a,
                                color_tint=tint, translation=(cx, cy, flasher.height))
        return MeshBuilder.visible_parts([part])
