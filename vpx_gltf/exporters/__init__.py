# -*- coding: utf-8 -*-
"""导出器模块"""

from .base_exporter import BaseExporter, ExportResult
from .glb_exporter import GlbExporter

__all__ = [
    'BaseExporter',
    'ExportResult',
    'GlbExporter',
]
