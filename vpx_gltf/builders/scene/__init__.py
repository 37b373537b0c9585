# -*- coding: utf-8 -*-
"""场景构建器模块（相机 / 灯光）"""

from .camera_builder import CameraBuilder
from .lighting_builder import LightingBuilder

__all__ = [
    'CameraBuilder',
    'LightingBuilder',
]
