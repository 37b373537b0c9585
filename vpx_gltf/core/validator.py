# File: core/validator.py
# Purpose: 结构校验器，保证组装好的 glTF 文档与二进制缓冲区自洽
# Notes:
# - 网格：属性数组长度一致、三角形索引 < 顶点数
# - 访问器：bufferView 引用有效、字节范围不越界
# - bufferView：范围落在 BIN 缓冲区内，4 字节对齐
# - 引用表：节点/网格/材质/纹理/相机/灯光索引有效，且没有孤立条目
# - 任何违规都是组装器缺陷 -> ExportIntegrityError，不写出任何字节

import math
from typing import Any, Dict, List, Sequence

from .exceptions import ExportIntegrityError
from .schema import Mesh
from ..config.constants import (
    COMPONENT_FLOAT,
    COMPONENT_UNSIGNED_INT,
    COMPONENT_UNSIGNED_SHORT,
    EXT_LIGHTS_PUNCTUAL,
)


COMPONENT_SIZES = {
    COMPONENT_FLOAT: 4,
    COMPONENT_UNSIGNED_SHORT: 2,
    COMPONENT_UNSIGNED_INT: 4,
}

TYPE_COMPONENTS = {
    "SCALAR": 1,
    "VEC2": 2,
    "VEC3": 3,
    "VEC4": 4,
}


# ---------------------------
# 网格校验
# ---------------------------

def validate_mesh(name: str, mesh: Mesh) -> List[str]:
    errors: List[str] = []
    count = len(mesh.positions)
    if len(mesh.normals) != count or len(mesh.uvs) != count:
        errors.append(
            f"网格 {name}: attribute lengths differ (positions={count}, "
            f"normals={len(mesh.normals)}, uvs={len(mesh.uvs)})"
        )
    if len(mesh.indices) % 3:
        errors.append(f"网格 {name}: index count {len(mesh.indices)} is not a multiple of 3")
    bad = [i for i in mesh.indices if i < 0 or i >= count]
    if bad:
        errors.append(f"网格 {name}: triangle index {bad[0]} out of range for {count} vertices")
    if any(not math.isfinite(c) for p in mesh.positions for c in p):
        errors.append(f"网格 {name}: non-finite vertex position")
    return errors


# ---------------------------
# 访问器 / bufferView
# ---------------------------

def _check_index(errors: List[str], table: Sequence, idx: Any, what: str) -> bool:
    if not isinstance(idx, int) or idx < 0 or idx >= len(table):
        errors.append(f"{what} references missing entry {idx!r} (table size {len(table)})")
        return False
    return True


def validate_buffer_layout(document: Dict[str, Any], binary_length: int) -> List[str]:
    errors: List[str] = []
    buffers = document.get("buffers", [])
    views = document.get("bufferViews", [])
    accessors = document.get("accessors", [])

    for i, buf in enumerate(buffers):
        if buf.get("byteLength", 0) > binary_length:
            errors.append(f"buffer {i} declares {buf.get('byteLength')} bytes, BIN chunk holds {binary_length}")

    for i, view in enumerate(views):
        if not _check_index(errors, buffers, view.get("buffer"), f"bufferView {i}"):
            continue
        offset = view.get("byteOffset", 0)
        end = offset + view.get("byteLength", 0)
        if offset % 4:
            errors.append(f"bufferView {i} offset {offset} is not 4-byte aligned")
        if end > buffers[view["buffer"]].get("byteLength", 0):
            errors.append(f"bufferView {i} range [{offset}, {end}) exceeds buffer length")

    for i, acc in enumerate(accessors):
        if not _check_index(errors, views, acc.get("bufferView"), f"accessor {i}"):
            continue
        size = COMPONENT_SIZES.get(acc.get("componentType"))
        comps = TYPE_COMPONENTS.get(acc.get("type"))
        if size is None or comps is None:
            errors.append(f"accessor {i} has unsupported layout {acc.get('componentType')}/{acc.get('type')}")
            continue
        view = views[acc["bufferView"]]
        stride = view.get("byteStride", size * comps)
        count = acc.get("count", 0)
        needed = acc.get("byteOffset", 0) + (stride * (count - 1) + size * comps if count else 0)
        if needed > view.get("byteLength", 0):
            errors.append(f"accessor {i} needs {needed} bytes, bufferView holds {view.get('byteLength', 0)}")
    return errors


# ---------------------------
# 引用表
# ---------------------------

def validate_references(document: Dict[str, Any]) -> List[str]:
    errors: List[str] = []
    nodes = document.get("nodes", [])
    meshes = document.get("meshes", [])
    materials = document.get("materials", [])
    accessors = document.get("accessors", [])
    textures = document.get("textures", [])
    images = document.get("images", [])
    samplers = document.get("samplers", [])
    cameras = document.get("cameras", [])
    lights = document.get("extensions", {}).get(EXT_LIGHTS_PUNCTUAL, {}).get("lights", [])

    used_meshes, used_materials, used_accessors = set(), set(), set()
    used_textures, used_views = set(), set()

    for scene in document.get("scenes", []):
        for n in scene.get("nodes", []):
            _check_index(errors, nodes, n, "scene")

    for i, node in enumerate(nodes):
        for child in node.get("children", []):
            _check_index(errors, nodes, child, f"node {i} child")
        if "mesh" in node and _check_index(errors, meshes, node["mesh"], f"node {i} mesh"):
            used_meshes.add(node["mesh"])
        if "camera" in node:
            _check_index(errors, cameras, node["camera"], f"node {i} camera")
        light = node.get("extensions", {}).get(EXT_LIGHTS_PUNCTUAL, {}).get("light")
        if light is not None:
            _check_index(errors, lights, light, f"node {i} light")

    for m, mesh in enumerate(meshes):
        for p, prim in enumerate(mesh.get("primitives", [])):
            where = f"mesh {m} primitive {p}"
            for attr, acc in prim.get("attributes", {}).items():
                if _check_index(errors, accessors, acc, f"{where} {attr}"):
                    used_accessors.add(acc)
            if "indices" in prim and _check_index(errors, accessors, prim["indices"], f"{where} indices"):
                used_accessors.add(prim["indices"])
            if "material" in prim and _check_index(errors, materials, prim["material"], f"{where} material"):
                used_materials.add(prim["material"])

    for i, mat in enumerate(materials):
        tex = mat.get("pbrMetallicRoughness", {}).get("baseColorTexture")
        if tex is not None and _check_index(errors, textures, tex.get("index"), f"material {i} texture"):
            used_textures.add(tex["index"])

    for i, tex in enumerate(textures):
        _check_index(errors, images, tex.get("source"), f"texture {i} source")
        if "sampler" in tex:
            _check_index(errors, samplers, tex["sampler"], f"texture {i} sampler")

    for i, img in enumerate(images):
        if _check_index(errors, document.get("bufferViews", []), img.get("bufferView"), f"image {i}"):
            used_views.add(img["bufferView"])

    for acc in accessors:
        if isinstance(acc.get("bufferView"), int):
            used_views.add(acc["bufferView"])

    # 孤立条目
    for label, table, used in (
        ("mesh", meshes, used_meshes),
        ("material", materials, used_materials),
        ("accessor", accessors, used_accessors),
        ("texture", textures, used_textures),
        ("bufferView", document.get("bufferViews", []), used_views),
    ):
        orphans = sorted(set(range(len(table))) - used)
        if orphans:
            errors.append(f"unreferenced {label} entries: {orphans}")
    return errors


# ---------------------------
# 综合校验
# ---------------------------

def validate_document(document: Dict[str, Any], binary_length: int) -> List[str]:
    errors: List[str] = []
    errors.extend(validate_buffer_layout(document, binary_length))
    errors.extend(validate_references(document))
    return errors


def ensure_valid(document: Dict[str, Any], binary_length: int) -> None:
    """Raise ExportIntegrityError when the assembled scene is inconsistent"""
    errors = validate_document(document, binary_length)
    if errors:
        raise ExportIntegrityError(errors)
