# -*- coding: utf-8 -*-
# File: core/__init__.py
# Purpose: Core 模块初始化

"""
VPX glTF Exporter Core Module
包含核心数据结构、几何库、坐标转换、GLB 写入器和校验器
"""

__all__ = [
    'schema',
    'exceptions',
    'coordinate_converter',
    'geometry',
    'splines',
    'surface',
    'templates',
    'glb_writer',
    'validator',
]
