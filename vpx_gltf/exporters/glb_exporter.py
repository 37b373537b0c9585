# File: exporters/glb_exporter.py
# Purpose: GLB 导出器（网格生成 -> 相机/灯光 -> 场景组装 -> 校验 -> 写出）
# Notes:
# - 结构校验（组装后 + 重新解析 GLB）失败时抛出 ExportIntegrityError，不写出任何字节
# - write_audit 打开时在 GLB 旁边写出 {stem}.audit.log

import os
from typing import List

from .base_exporter import BaseExporter, ExportResult
from ..builders.scene import CameraBuilder, LightingBuilder
from ..config.constants import EXT_AUDIT, EXT_GLB
from ..config.export_settings import ExportSettings
from ..core.exceptions import ExportIntegrityError
from ..core.schema import TableModel
from ..export_processor import ExportProcessor
from ..utils.logger import Logger
from ..validators.structure_checker import GlbStructureChecker
from ..writers.audit_writer import AuditLogger
from ..writers.scene_writer import SceneWriter


def audit_path_for(output_path: str) -> str:
    stem = output_path[:-len(EXT_GLB)] if output_path.lower().endswith(EXT_GLB) else output_path
    return f"{stem}.{EXT_AUDIT}"


class GlbExporter(BaseExporter):
    """
    GlbExporter
    -----------
    使用方式:
        exporter = GlbExporter("out/table.glb", Logger())
        result = exporter.export(model, settings)
        print(result.warning_count)
    """

    def build_data(self, model: TableModel, settings: ExportSettings) -> ExportResult:
        audit = AuditLogger()
        logger = self.logger or Logger(verbose=settings.verbose)

        parts = ExportProcessor(settings, audit, logger).generate(model)
        cameras = CameraBuilder.build_all(model.config, settings, audit)
        table_lights = LightingBuilder.table_lights(model.config, settings)
        gi_lights = LightingBuilder.gi_lights(model.objects, settings)

        writer = SceneWriter(model, settings, audit)
        document, binary = writer.assemble(parts, cameras, table_lights, gi_lights)
        data = writer.to_glb(document, binary)

        if settings.auto_validate:
            report = GlbStructureChecker().check_bytes(data)
            if not GlbStructureChecker.is_valid(report):
                raise ExportIntegrityError(report["errors"])

        logger.info(f"场景: {len(writer.nodes)} 个节点, {len(writer.meshes)} 个网格, "
                    f"{len(writer.materials.materials)} 个材质, {len(data)} 字节")
        return ExportResult(data=data, audit=audit)

    def write_files(self, result: ExportResult, settings: ExportSettings) -> List[str]:
        if not self.output_path:
            return []

        files = []
        directory = os.path.dirname(self.output_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.output_path, "wb") as f:
            f.write(result.data)
        files.append(self.output_path)

        if settings.write_audit:
            files.append(result.audit.save(audit_path_for(self.output_path)))
        return files
