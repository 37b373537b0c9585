# -*- coding: utf-8 -*-
"""
网格构建器基础设施
BuildContext 携带每个对象生成时的只读输入与警告列表；
MeshBuilder 定义所有按类型构建器的统一接口
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from mathutils import Matrix

from ...config.constants import LAYER_NODE_PREFIX, TRANSMISSION_SCALE
from ...config.export_settings import GenerationOptions
from ...core.coordinate_converter import transform_normals, transform_points
from ...core.geometry import oriented_mesh
from ...core.schema import AuditEntry, Mesh, MeshPart, TableConfig, TableObject
from ...core.surface import SurfaceLookup
from ...writers.audit_writer import ErrorCode, make_entry


class BuildContext:
    """
    单个对象的生成上下文

    config/surfaces/options 在所有对象之间共享且只读；
    issues 只属于当前对象，随 GenerationResult 一起返回主进程。
    """

    def __init__(self, config: TableConfig, surfaces: SurfaceLookup,
                 options: Optional[GenerationOptions] = None, object_name: str = ""):
        self.config = config
        self.surfaces = surfaces
        self.options = options or GenerationOptions()
        self.object_name = object_name
        self.issues: List[AuditEntry] = []

    def warn(self, code: str, message: str) -> None:
        self.issues.append(make_entry(code, message, self.object_name))

    def surface_height(self, obj: TableObject, x: Optional[float] = None,
                       y: Optional[float] = None) -> float:
        """Height of the surface the object sits on (raises SurfaceLookupError)"""
        px = obj.position[0] if x is None else x
        py = obj.position[1] if y is None else y
        result = self.surfaces.lookup(obj.surface, px, py)
        if not result.on_path:
            self.warn(ErrorCode.SRF002,
                      f"object lies off the path of ramp '{obj.surface}', using its mean height")
        return result.height


def layer_name(obj: TableObject) -> Optional[str]:
    """Layer_{name} for named editor layers, Layer_{n} (1-based) otherwise"""
    if obj.editor_layer_name:
        return f"{LAYER_NODE_PREFIX}{obj.editor_layer_name}"
    if obj.editor_layer is not None:
        return f"{LAYER_NODE_PREFIX}{obj.editor_layer + 1}"
    return None


def transmission_factor(disable_lighting_below: Optional[float]) -> Optional[float]:
    """dlb 0 -> 0.3 (most light through), dlb >= 1 -> no transmission"""
    if disable_lighting_below is None or disable_lighting_below >= 1.0:
        return None
    return (1.0 - disable_lighting_below) * TRANSMISSION_SCALE


def place_mesh(mesh: Mesh, matrix: Matrix) -> Mesh:
    """Transform positions and normals (inverse-transpose), re-aligning winding"""
    return oriented_mesh(
        transform_points(matrix, mesh.positions),
        transform_normals(matrix, mesh.normals),
        list(mesh.uvs),
        mesh.indices,
    )


def offset_mesh(mesh: Mesh, dx: float, dy: float, dz: float) -> Mesh:
    mesh.positions = [(p[0] + dx, p[1] + dy, p[2] + dz) for p in mesh.positions]
    return mesh


class MeshBuilder(ABC):
    """
    按类型网格构建器基类

    build() 是纯函数：读对象与上下文，返回零个或多个 MeshPart。
    无法生成时抛出 GeometryError / UnsupportedFeatureError，由调度器记录为警告。
    """

    @staticmethod
    @abstractmethod
    def build(obj: TableObject, ctx: BuildContext) -> List[MeshPart]:
        ...

    @staticmethod
    def part(obj: TableObject, name: str, mesh: Mesh, material: Optional[str] = None,
             texture: Optional[str] = None, **extra) -> MeshPart:
        return MeshPart(
            name=name,
            mesh=mesh,
            material_name=material or None,
            texture_name=texture or None,
            layer_name=layer_name(obj),
            part_group_name=obj.part_group_name,
            **extra,
        )

    @staticmethod
    def visible_parts(parts: Sequence[MeshPart]) -> List[MeshPart]:
        return [p for p in parts if not p.mesh.is_empty()]
