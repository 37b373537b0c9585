# -*- coding: utf-8 -*-
"""
VPX -> glTF constants
"""

# 单位换算 (Visual Pinball unit -> meters)
# 1 VPU = 25.4 * 1.0625 / 50 mm
VPU_TO_MM = 25.4 * 1.0625 / 50.0
VPU_TO_METERS = VPU_TO_MM / 1000.0

# GLB container
GLB_MAGIC = 0x46546C67  # "glTF"
GLB_VERSION = 2
GLB_HEADER_SIZE = 12
GLB_CHUNK_HEADER_SIZE = 8
GLB_CHUNK_JSON = 0x4E4F534A  # "JSON"
GLB_CHUNK_BIN = 0x004E4942  # "BIN\0"

# glTF enums
GLTF_MODE_TRIANGLES = 4
COMPONENT_FLOAT = 5126
COMPONENT_UNSIGNED_SHORT = 5123
COMPONENT_UNSIGNED_INT = 5125
TARGET_ARRAY_BUFFER = 34962
TARGET_ELEMENT_ARRAY_BUFFER = 34963
FILTER_LINEAR = 9729
FILTER_LINEAR_MIPMAP_LINEAR = 9987
WRAP_REPEAT = 10497

MAX_UNSIGNED_SHORT_VERTICES = 65535

# glTF extensions
EXT_LIGHTS_PUNCTUAL = "KHR_lights_punctual"
EXT_MATERIALS_TRANSMISSION = "KHR_materials_transmission"

# Playfield
PLAYFIELD_PRIMITIVE_NAME = "playfield_mesh"
PLAYFIELD_MATERIAL_NAME = "__playfield__"
IMPLICIT_PLAYFIELD_NAME = "playfield_mesh"

# 几何偏移 (VPU)
DECAL_Z_OFFSET = 0.2
LIGHT_Z_NUDGE_MM = 10.0
WALL_ACCURACY = 4.0

# 透明度
TRANSMISSION_SCALE = 0.3

# 场景灯光默认值 (VPU / 引擎亮度单位)
DEFAULT_LIGHT_HEIGHT = 1000.0
DEFAULT_LIGHT_RANGE = 3000.0
DEFAULT_LIGHT_EMISSION_SCALE = 1000000.0
DEFAULT_GLOBAL_EMISSION_SCALE = 1.0
LIGHT_INTENSITY_SCALE = 0.001
MAX_LIGHT_RANGE_METERS = 100.0

# 相机
CAMERA_ASPECT = 16.0 / 9.0
FIT_CAMERA_DISTANCE_SCALE = 0.47
CAMERA_ZNEAR = 0.01
CAMERA_ZFAR = 100.0

# 分组
LAYER_NODE_PREFIX = "Layer_"
GROUP_BY_LAYER = "layer"
GROUP_BY_NONE = "none"
GROUP_BY_PART_GROUP = "part_group"

CAMERA_FIT_SIMPLE = "simple"
CAMERA_FIT_ACCURATE = "accurate"

# 文件扩展名
EXT_GLB = ".glb"
EXT_AUDIT = "audit.log"
