# File: writers/material_writer.py
# Purpose: 材质与纹理表（MeshPart -> glTF materials / textures / images / samplers）
# Notes:
# - 颜色 rgb/255，opacity_active 时 alpha = opacity；Metal -> metallic 1
# - glTF roughness = 1 - VPX roughness；alpha < 1 -> alphaMode BLEND；全部双面
# - 透射：每个透射系数一个派生材质 {base}_transmission_{factor:.3f}
# - 着色部件（灯泡、灯座、踢球洞、闪光板）按 (基础材质, 颜色) 派生材质
# - 只嵌入 playfield 图像；其它图像每个名称记录一次 TEX003 警告
# - 同一 key 的材质只生成一次，索引按首次使用顺序分配

import io
from typing import Any, Dict, List, Optional, Sequence, Tuple

from PIL import Image, UnidentifiedImageError

from ..config.constants import (
    EXT_MATERIALS_TRANSMISSION,
    FILTER_LINEAR,
    FILTER_LINEAR_MIPMAP_LINEAR,
    PLAYFIELD_MATERIAL_NAME,
    WRAP_REPEAT,
)
from ..core.io.glb_writer import BufferBuilder
from ..core.schema import ImageAsset, MaterialDef, MaterialType, MeshPart, RGBA, TableConfig
from .audit_writer import AuditLogger, ErrorCode


PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
JPEG_SIGNATURE = b"\xff\xd8\xff"

DEFAULT_MATERIAL_NAME = "default"
DEFAULT_ROUGHNESS = 0.5

PLAYFIELD_REFLECTION_THRESHOLD = 0.1
PLAYFIELD_ROUGHNESS_MAX = 0.20
PLAYFIELD_ROUGHNESS_MIN = 0.03
PLAYFIELD_REFLECTION_SLOPE = 0.17

MaterialKey = Tuple[Any, ...]  # (material, tint, transmission, metallic, playfield[, texture])


def _clamp01(value: float) -> float:
    return max(0.0, min(value, 1.0))


def playfield_roughness(reflection_strength: float, material: Optional[MaterialDef]) -> float:
    """Reflective playfields get a glossy finish; otherwise the material's own roughness"""
    if reflection_strength > PLAYFIELD_REFLECTION_THRESHOLD:
        return max(PLAYFIELD_ROUGHNESS_MIN,
                   min(PLAYFIELD_ROUGHNESS_MAX - reflection_strength * PLAYFIELD_REFLECTION_SLOPE,
                       PLAYFIELD_ROUGHNESS_MAX))
    if material is not None:
        return _clamp01(1.0 - material.roughness)
    return DEFAULT_ROUGHNESS


def encode_image(image: ImageAsset) -> Tuple[bytes, str]:
    """
    PNG / JPEG are embedded untouched; anything Pillow can read is
    re-encoded as PNG. Raises OSError for undecodable data.
    """
    data = image.data
    if not data:
        raise OSError(f"image '{image.name}' has no decoded data")
    if data.startswith(PNG_SIGNATURE):
        return data, "image/png"
    if data.startswith(JPEG_SIGNATURE):
        return data, "image/jpeg"

    try:
        with Image.open(io.BytesIO(data)) as img:
            if img.mode not in ("RGB", "RGBA", "L", "LA"):
                img = img.convert("RGBA")
            out = io.BytesIO()
            img.save(out, format="PNG")
    except UnidentifiedImageError as exc:
        raise OSError(f"image '{image.name}' could not be decoded: {exc}") from exc
    return out.getvalue(), "image/png"


class MaterialWriter:
    """
    MaterialWriter
    --------------
    收集场景用到的材质，按需生成派生材质并嵌入 playfield 纹理。

    使用方式:
        writer = MaterialWriter(model.config, model.materials, model.images, buffer, audit)
        index = writer.material_index(part)   # -> glTF material index or None
        document.update(writer.to_gltf())
    """

    def __init__(self, config: TableConfig, materials: Sequence[MaterialDef],
                 images: Sequence[ImageAsset], buffer: BufferBuilder,
                 audit: Optional[AuditLogger] = None):
        self.config = config
        self.buffer = buffer
        self.audit = audit or AuditLogger()
        self._defs: Dict[str, MaterialDef] = {m.name.lower(): m for m in materials}
        self._images: Dict[str, ImageAsset] = {i.name.lower(): i for i in images}

        self.materials: List[Dict[str, Any]] = []
        self.textures: List[Dict[str, Any]] = []
        self.images: List[Dict[str, Any]] = []
        self.samplers: List[Dict[str, Any]] = []

        self._material_index: Dict[MaterialKey, int] = {}
        self._texture_index: Dict[str, Optional[int]] = {}
        self._warned: set = set()
        self.uses_transmission = False

    # ---------------------------
    # 查询
    # ---------------------------

    def _lookup(self, name: Optional[str], object_name: Optional[str]) -> Optional[MaterialDef]:
        if not name:
            return None
        found = self._defs.get(name.lower())
        if found is None:
            self._warn_once(("mat", name.lower()), ErrorCode.MAT001,
                            f"material '{name}' does not exist, using defaults", object_name)
        return found

    def _warn_once(self, key, code: str, message: str, object_name: Optional[str] = None) -> None:
        if key in self._warned:
            return
        self._warned.add(key)
        self.audit.warning(code, message, object_name)

    # ---------------------------
    # 材质
    # ---------------------------

    def material_index(self, part: MeshPart) -> Optional[int]:
        """glTF material index for a part (None: no material at all)"""
        if part.is_playfield:
            return self._playfield_material(part)

        if (not part.material_name and part.color_tint is None
                and part.transmission_factor is None and part.metallic_override is None):
            self._note_texture(part)
            return None

        self._note_texture(part)
        key = (part.material_name.lower() if part.material_name else None, part.color_tint,
               part.transmission_factor, part.metallic_override, False)
        if key in self._material_index:
            return self._material_index[key]

        source = self._lookup(part.material_name, part.name)
        material = self._base_material(part.material_name, source)
        name = material["name"]
        pbr = material["pbrMetallicRoughness"]

        if part.color_tint is not None:
            r, g, b, a = part.color_tint
            pbr["baseColorFactor"] = [r, g, b, a]
            name += "_tint_%.3f_%.3f_%.3f_%.3f" % (r, g, b, a)
        if part.metallic_override is not None:
            pbr["metallicFactor"] = part.metallic_override
            name += "_metallic_%.2f" % part.metallic_override
        if part.transmission_factor is not None:
            material["extensions"] = {
                EXT_MATERIALS_TRANSMISSION: {"transmissionFactor": part.transmission_factor}
            }
            name += "_transmission_%.3f" % part.transmission_factor
            self.uses_transmission = True

        material["name"] = name
        if pbr["baseColorFactor"][3] < 1.0:
            material["alphaMode"] = "BLEND"
        return self._add(key, material)

    def _base_material(self, name: Optional[str], source: Optional[MaterialDef]) -> Dict[str, Any]:
        if source is None:
            color = [1.0, 1.0, 1.0, 1.0]
            metallic = 0.0
            roughness = DEFAULT_ROUGHNESS
        else:
            r, g, b = source.base_color
            alpha = _clamp01(source.opacity) if source.opacity_active else 1.0
            color = [r / 255.0, g / 255.0, b / 255.0, alpha]
            metallic = 1.0 if source.material_type is MaterialType.METAL else 0.0
            roughness = _clamp01(1.0 - source.roughness)
        material = {
            "name": name or DEFAULT_MATERIAL_NAME,
            "pbrMetallicRoughness": {
                "baseColorFactor": color,
                "metallicFactor": metallic,
                "roughnessFactor": roughness,
            },
            "doubleSided": True,
        }
        if color[3] < 1.0:
            material["alphaMode"] = "BLEND"
        return material

    def _playfield_material(self, part: MeshPart) -> int:
        key = (part.material_name.lower() if part.material_name else None, None, None, None, True)
        texture = self._playfield_texture(part.texture_name, part.name)
        key = key + (texture,)
        if key in self._material_index:
            return self._material_index[key]

        source = self._lookup(part.material_name, part.name)
        material = self._base_material(part.material_name or PLAYFIELD_MATERIAL_NAME, source)
        pbr = material["pbrMetallicRoughness"]
        pbr["roughnessFactor"] = playfield_roughness(self.config.playfield_reflection_strength, source)
        if texture is not None:
            pbr["baseColorTexture"] = {"index": texture}
            pbr["baseColorFactor"] = [1.0, 1.0, 1.0, pbr["baseColorFactor"][3]]
        return self._add(key, material)

    def _add(self, key, material: Dict[str, Any]) -> int:
        self.materials.append(material)
        index = len(self.materials) - 1
        self._material_index[key] = index
        return index

    # ---------------------------
    # 纹理
    # ---------------------------

    def _note_texture(self, part: MeshPart) -> None:
        if part.texture_name:
            self._warn_once(("tex", part.texture_name.lower()), ErrorCode.TEX003,
                            f"image '{part.texture_name}' is not embedded "
                            f"(only the playfield texture is exported)", part.name)

    def _playfield_texture(self, name: Optional[str], object_name: Optional[str]) -> Optional[int]:
        if not name:
            return None
        key = name.lower()
        if key in self._texture_index:
            return self._texture_index[key]

        index = None
        image = self._images.get(key)
        if image is None:
            self.audit.warning(ErrorCode.TEX001, f"playfield image '{name}' does not exist", object_name)
        else:
            try:
                data, mime = encode_image(image)
            except OSError as exc:
                self.audit.warning(ErrorCode.TEX002, str(exc), object_name)
            else:
                index = self._embed(image.name, data, mime)
        self._texture_index[key] = index
        return index

    def _embed(self, name: str, data: bytes, mime: str) -> int:
        if not self.samplers:
            self.samplers.append({
                "magFilter": FILTER_LINEAR,
                "minFilter": FILTER_LINEAR_MIPMAP_LINEAR,
                "wrapS": WRAP_REPEAT,
                "wrapT": WRAP_REPEAT,
            })
        view = self.buffer.add_view(data)
        self.images.append({"name": name, "bufferView": view, "mimeType": mime})
        self.textures.append({"sampler": 0, "source": len(self.images) - 1})
        return len(self.textures) - 1

    # ---------------------------
    # 输出
    # ---------------------------

    def to_gltf(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for key, table in (("materials", self.materials), ("textures", self.textures),
                           ("images", self.images), ("samplers", self.samplers)):
            if table:
                out[key] = table
        return out
