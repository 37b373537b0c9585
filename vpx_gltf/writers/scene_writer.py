# File: writers/scene_writer.py
# Purpose: 场景组装器（MeshPart / 相机 / 灯光 -> glTF 文档 + BIN 缓冲区）
# Notes:
# - 单线程终结阶段：所有对象网格生成完毕后才分配 bufferView 偏移
# - 每个 MeshPart 一个节点 + 一个网格（一个 triangles 图元）
# - 顶点数 <= 65535 使用 UNSIGNED_SHORT 索引，否则 UNSIGNED_INT
# - 根节点顺序：无图层网格、TableLight0/1、无图层 GI 灯、图层组节点（首次出现顺序）、相机
# - 组装完成后运行结构校验，违规即 ExportIntegrityError，不写出任何字节

import struct
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..config.constants import (
    COMPONENT_FLOAT,
    COMPONENT_UNSIGNED_INT,
    COMPONENT_UNSIGNED_SHORT,
    EXT_LIGHTS_PUNCTUAL,
    EXT_MATERIALS_TRANSMISSION,
    GLTF_MODE_TRIANGLES,
    GROUP_BY_NONE,
    GROUP_BY_PART_GROUP,
    MAX_UNSIGNED_SHORT_VERTICES,
    TARGET_ARRAY_BUFFER,
    TARGET_ELEMENT_ARRAY_BUFFER,
)
from ..config.export_settings import ExportSettings
from ..core.coordinate_converter import CoordinateConverter
from ..core.exceptions import ExportIntegrityError
from ..core.io.glb_writer import BufferBuilder, GlbContainerWriter, pack_floats, pack_indices
from ..core.schema import CameraDef, MeshPart, PointLightDef, TableModel
from ..core.validator import ensure_valid, validate_mesh
from .audit_writer import AuditLogger, ErrorCode
from .material_writer import MaterialWriter


GENERATOR = "vpx-gltf-exporter"
GLTF_VERSION = "2.0"
SCENE_NAME = "Table"


def _f32(values: Sequence[float]) -> List[float]:
    """Round to float32 so accessor bounds match the packed data"""
    return list(struct.unpack('<%df' % len(values), struct.pack('<%df' % len(values), *values)))


def position_bounds(positions: Sequence[Sequence[float]]) -> Tuple[List[float], List[float]]:
    mins = [min(p[i] for p in positions) for i in range(3)]
    maxs = [max(p[i] for p in positions) for i in range(3)]
    return _f32(mins), _f32(maxs)


class SceneWriter:
    """
    SceneWriter
    -----------
    把按创作顺序排列的 MeshPart 与相机、灯光组装成 glTF 文档。

    使用方式:
        writer = SceneWriter(model, settings, audit)
        document, binary = writer.assemble(parts, cameras, table_lights, gi_lights)
        data = writer.to_glb(document, binary)
    """

    def __init__(self, model: TableModel, settings: ExportSettings,
                 audit: Optional[AuditLogger] = None):
        self.model = model
        self.settings = settings
        self.audit = audit or AuditLogger()
        self.converter = CoordinateConverter(settings.unit_scale)

        self.buffer = BufferBuilder()
        self.materials = MaterialWriter(model.config, model.materials, model.images,
                                        self.buffer, self.audit)
        self.nodes: List[Dict[str, Any]] = []
        self.meshes: List[Dict[str, Any]] = []
        self.accessors: List[Dict[str, Any]] = []
        self.cameras: List[Dict[str, Any]] = []
        self.lights: List[Dict[str, Any]] = []

    # ---------------------------
    # 分组
    # ---------------------------

    def _grouping_enabled(self) -> bool:
        mode = self.settings.group_by
        if mode == GROUP_BY_PART_GROUP:
            self.audit.warning(ErrorCode.SCN001,
                               "grouping by part group is not supported, grouping by layer instead")
        return mode != GROUP_BY_NONE

    # ---------------------------
    # 网格
    # ---------------------------

    def _add_accessor(self, data: bytes, target: int, component_type: int, count: int,
                      type_: str, bounds: Optional[Tuple[List[float], List[float]]] = None) -> int:
        view = self.buffer.add_view(data, target=target)
        accessor: Dict[str, Any] = {
            "bufferView": view,
            "byteOffset": 0,
            "componentType": component_type,
            "count": count,
            "type": type_,
        }
        if bounds is not None:
            accessor["min"], accessor["max"] = bounds
        self.accessors.append(accessor)
        return len(self.accessors) - 1

    def _add_mesh(self, part: MeshPart) -> int:
        mesh = part.mesh
        count = mesh.vertex_count
        positions = self.converter.convert_positions(mesh.positions)
        normals = self.converter.convert_normals(mesh.normals)
        indices = self.converter.convert_indices(mesh.indices)

        index_type = (COMPONENT_UNSIGNED_SHORT if count <= MAX_UNSIGNED_SHORT_VERTICES
                      else COMPONENT_UNSIGNED_INT)

        attributes = {
            "POSITION": self._add_accessor(pack_floats(positions), TARGET_ARRAY_BUFFER,
                                           COMPONENT_FLOAT, count, "VEC3", position_bounds(positions)),
            "NORMAL": self._add_accessor(pack_floats(normals), TARGET_ARRAY_BUFFER,
                                         COMPONENT_FLOAT, count, "VEC3"),
            "TEXCOORD_0": self._add_accessor(pack_floats(mesh.uvs), TARGET_ARRAY_BUFFER,
                                             COMPONENT_FLOAT, count, "VEC2"),
        }
        primitive: Dict[str, Any] = {
            "attributes": attributes,
            "indices": self._add_accessor(pack_indices(indices, index_type), TARGET_ELEMENT_ARRAY_BUFFER,
                                          index_type, len(indices), "SCALAR"),
            "mode": GLTF_MODE_TRIANGLES,
        }
        material = self.materials.material_index(part)
        if material is not None:
            primitive["material"] = material

        self.meshes.append({"name": part.name, "primitives": [primitive]})
        return len(self.meshes) - 1

    def _add_node(self, node: Dict[str, Any]) -> int:
        self.nodes.append(node)
        return len(self.nodes) - 1

    # ---------------------------
    # 相机 / 灯光
    # ---------------------------

    def _add_light(self, light: PointLightDef) -> int:
        entry: Dict[str, Any] = {
            "name": light.name,
            "type": "point",
            "color": list(light.color),
            "intensity": light.intensity,
        }
        if light.range is not None:
            entry["range"] = light.range
        self.lights.append(entry)
        return self._add_node({
            "name": light.name,
            "translation": list(light.translation),
            "extensions": {EXT_LIGHTS_PUNCTUAL: {"light": len(self.lights) - 1}},
        })

    def _add_camera(self, camera: CameraDef) -> int:
        self.cameras.append({
            "name": camera.name,
            "type": "perspective",
            "perspective": {
                "aspectRatio": camera.aspect_ratio,
                "yfov": camera.yfov,
                "znear": camera.znear,
                "zfar": camera.zfar,
            },
        })
        return self._add_node({
            "name": camera.name,
            "camera": len(self.cameras) - 1,
            "translation": list(camera.translation),
            "rotation": list(camera.rotation),
        })

    # ---------------------------
    # 组装
    # ---------------------------

    def assemble(self, parts: Sequence[MeshPart], cameras: Sequence[CameraDef] = (),
                 table_lights: Sequence[PointLightDef] = (),
                 gi_lights: Sequence[PointLightDef] = ()) -> Tuple[Dict[str, Any], bytes]:
        """
        组装 glTF 文档

        参数:
            parts: 按创作顺序排列的网格部件
            cameras: 相机定义
            table_lights: TableLight0/1
            gi_lights: GI 点光源

        返回:
            (document, binary) - JSON 结构与 BIN 块内容
        """
        problems = []
        for part in parts:
            problems.extend(validate_mesh(part.name, part.mesh))
        if problems:
            raise ExportIntegrityError(problems)

        grouped = self._grouping_enabled()
        roots: List[int] = []
        layers: Dict[str, List[int]] = {}

        for part in parts:
            if part.mesh.is_empty():
                self.audit.warning(ErrorCode.SCN002, "mesh is empty, node skipped", part.name)
                continue
            node: Dict[str, Any] = {"name": part.name, "mesh": self._add_mesh(part)}
            if part.translation is not None:
                node["translation"] = list(self.converter.convert_position(part.translation))
            index = self._add_node(node)
            if grouped and part.layer_name:
                layers.setdefault(part.layer_name, []).append(index)
            else:
                roots.append(index)

        for light in table_lights:
            roots.append(self._add_light(light))

        for light in gi_lights:
            index = self._add_light(light)
            if grouped and light.layer_name:
                layers.setdefault(light.layer_name, []).append(index)
            else:
                roots.append(index)

        for name, children in layers.items():
            roots.append(self._add_node({"name": name, "children": children}))

        for camera in cameras:
            roots.append(self._add_camera(camera))

        binary = self.buffer.getvalue()
        document = self._document(roots, len(binary))
        return document, binary

    def _document(self, roots: List[int], binary_length: int) -> Dict[str, Any]:
        document: Dict[str, Any] = {
            "asset": {"version": GLTF_VERSION, "generator": GENERATOR},
            "scene": 0,
            "scenes": [{"name": SCENE_NAME, "nodes": roots}],
        }
        extensions_used = [EXT_LIGHTS_PUNCTUAL]
        if self.materials.uses_transmission:
            extensions_used.append(EXT_MATERIALS_TRANSMISSION)
        document["extensionsUsed"] = extensions_used

        for key, table in (("nodes", self.nodes), ("meshes", self.meshes),
                           ("accessors", self.accessors),
                           ("bufferViews", self.buffer.buffer_views),
                           ("cameras", self.cameras)):
            if table:
                document[key] = table
        document.update(self.materials.to_gltf())
        if binary_length:
            document["buffers"] = [{"byteLength": binary_length}]
        document["extensions"] = {EXT_LIGHTS_PUNCTUAL: {"lights": self.lights}}
        return document

    def to_glb(self, document: Dict[str, Any], binary: bytes) -> bytes:
        """校验后编码为 GLB 字节流"""
        ensure_valid(document, len(binary))
        return GlbContainerWriter.build(document, binary)
