# -*- coding: utf-8 -*-
"""
贴花 / 图元 / 球台面网格构建器
"""

from typing import List

from .base_builder import BuildContext, MeshBuilder, place_mesh, transmission_factor
from ...config.constants import DECAL_Z_OFFSET, IMPLICIT_PLAYFIELD_NAME, PLAYFIELD_PRIMITIVE_NAME
from ...core.coordinate_converter import primitive_local_matrix, rotate_2d
from ...core.exceptions import GeometryError, UnsupportedFeatureError
from ...core.geometry import make_quad
from ...core.schema import Decal, DecalType, Mesh, MeshPart, Playfield, Primitive, TableConfig
from ...writers.audit_writer import ErrorCode


def is_playfield_primitive(obj) -> bool:
    return isinstance(obj, Primitive) and obj.name.lower() == PLAYFIELD_PRIMITIVE_NAME


class DecalBuilder(MeshBuilder):
    """贴花构建器：单个四边形，节点位于表面高度 + 0.2"""

    @staticmethod
    def build(decal: Decal, ctx: BuildContext) -> List[MeshPart]:
        if decal.is_backglass:
            raise UnsupportedFeatureError("backglass decals are screen-space overlays",
                                          code=ErrorCode.UNS002)
        if decal.decal_type is DecalType.TEXT:
            raise UnsupportedFeatureError(f"text decal {decal.text!r} needs runtime text layout",
                                          code=ErrorCode.UNS001)
        if not decal.image:
            raise GeometryError("image decal has no image", code=ErrorCode.GEO001)
        if decal.width <= 0.0 or decal.height <= 0.0:
            raise GeometryError(f"decal size must be positive, got {decal.width} x {decal.height}",
                                code=ErrorCode.GEO002)

        hw, hh = decal.width * 0.5, decal.height * 0.5
        corners = []
        for x, y in ((-hw, -hh), (hw, -hh), (-hw, hh), (hw, hh)):
            rx, ry = rotate_2d(x, y, decal.rotation)
            corners.append((rx, ry, 0.0))
        mesh = make_quad(corners, [(0.0, 0.0), (1.0, 0.0), (0.0, 1.0), (1.0, 1.0)])

        surface = ctx.surface_height(decal)
        part = MeshBuilder.part(decal, decal.name, mesh, decal.material, decal.image,
                                translation=(decal.position[0], decal.position[1], surface + DECAL_Z_OFFSET))
        return MeshBuilder.visible_parts([part])


class PrimitiveBuilder(MeshBuilder):
    """图元构建器：作者网格 + 旋转/平移/缩放组合，节点平移为 position"""

    @staticmethod
    def build(primitive: Primitive, ctx: BuildContext) -> List[MeshPart]:
        verts = primitive.vertices
        if not verts or not primitive.indices:
            raise GeometryError("primitive has no mesh data", code=ErrorCode.GEO001)
        if len(primitive.indices) % 3:
            raise GeometryError(f"primitive index count {len(primitive.indices)} is not a multiple of 3",
                                code=ErrorCode.GEO001)
        bad = [i for i in primitive.indices if i < 0 or i >= len(verts)]
        if bad:
            raise GeometryError(f"primitive index {bad[0]} out of range for {len(verts)} vertices",
                                code=ErrorCode.GEO001)
        if len(primitive.rot_and_tra) < 9:
            raise GeometryError("primitive rot_and_tra needs 9 values", code=ErrorCode.GEO001)

        source = Mesh(
            positions=[(v[0], v[1], v[2]) for v in verts],
            normals=[(v[3], v[4], v[5]) for v in verts],
            uvs=[(v[6], v[7]) for v in verts],
            indices=list(primitive.indices),
        )
        mesh = place_mesh(source, primitive_local_matrix(primitive.scale, primitive.rot_and_tra))

        part = MeshBuilder.part(primitive, primitive.name, mesh, primitive.material, primitive.image,
                                transmission_factor=transmission_factor(primitive.disable_lighting_below),
                                translation=tuple(primitive.position),
                                is_playfield=is_playfield_primitive(primitive))
        return MeshBuilder.visible_parts([part])


def playfield_quad(left: float, top: float, right: float, bottom: float, z: float = 0.0) -> Mesh:
    """Table-bounds quad, uv (0, 0) at (left, top) and (1, 1) at (right, bottom)"""
    if right <= left or bottom <= top:
        raise GeometryError(f"playfield bounds are empty ({left}, {top}, {right}, {bottom})",
                            code=ErrorCode.GEO002)
    corners = [(left, top, z), (right, top, z), (left, bottom, z), (right, bottom, z)]
    return make_quad(corners, [(0.0, 0.0), (1.0, 0.0), (0.0, 1.0), (1.0, 1.0)])


class PlayfieldBuilder(MeshBuilder):
    """球台面构建器（显式对象或由球台边界生成的隐式四边形）"""

    @staticmethod
    def build(playfield: Playfield, ctx: BuildContext) -> List[MeshPart]:
        cfg = ctx.config
        mesh = playfield_quad(playfield.left, playfield.top, playfield.right, playfield.bottom,
                              playfield.position[2])
        part = MeshBuilder.part(playfield, playfield.name or IMPLICIT_PLAYFIELD_NAME, mesh,
                                playfield.material or cfg.playfield_material,
                                playfield.image or cfg.image, is_playfield=True)
        return [part]

    @staticmethod
    def implicit(config: TableConfig) -> MeshPart:
        mesh = playfield_quad(config.left, config.top, config.right, config.bottom)
        return MeshPart(name=IMPLICIT_PLAYFIELD_NAME, mesh=mesh,
                        material_name=config.playfield_material or None,
                        texture_name=config.image or None, is_playfield=True)
