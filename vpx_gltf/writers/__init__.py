# File: writers/__init__.py
# Purpose: Writers 模块初始化

"""
VPX glTF Exporter Writers Module
材质、场景与审计日志写入器
"""

__all__ = [
    'material_writer',
    'scene_writer',
    'audit_writer',
]
