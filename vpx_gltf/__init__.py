# File: __init__.py
# Purpose: VPX glTF Exporter 主入口
# Notes:
# - export_glb(): 已解码的球台模型 -> GLB 字节流（可选写出文件与 audit.log）
# - 记录读取、命令行与贴图烘焙不在本包范围内

from typing import Any, Dict, Optional, Union

from .config.export_settings import ExportSettings
from .core.exceptions import (
    ExportError,
    ExportIntegrityError,
    GeometryError,
    SurfaceLookupError,
    UnsupportedFeatureError,
)
from .core.schema import TableModel
from .exporters.base_exporter import ExportResult
from .exporters.glb_exporter import GlbExporter
from .utils.logger import Logger

__version__ = "1.0.0"


def export_glb(model: TableModel,
               settings: Union[ExportSettings, Dict[str, Any], None] = None,
               output_path: Optional[str] = None,
               logger: Optional[Logger] = None) -> ExportResult:
    """
    导出球台为 GLB

    参数:
        model: 已解码的球台模型
        settings: ExportSettings 或选项字典（None 使用默认值）
        output_path: 输出文件路径（None 表示只返回字节流）
        logger: 日志记录器

    返回:
        ExportResult - data / files / audit / warning_count
    """
    if settings is None:
        settings = ExportSettings()
    elif isinstance(settings, dict):
        settings = ExportSettings.from_dict(settings)
    return GlbExporter(output_path, logger).export(model, settings)


__all__ = [
    'export_glb',
    'ExportSettings',
    'ExportResult',
    'GlbExporter',
    'TableModel',
    'ExportError',
    'ExportIntegrityError',
    'GeometryError',
    'SurfaceLookupError',
    'UnsupportedFeatureError',
]
