# File: export_processor.py
# Purpose: 网格生成处理器（逐对象生成 -> 按创作顺序汇总）
# Notes:
# - 串行或 ProcessPoolExecutor 并行，两种模式输出完全一致
# - 结果按 index 重新排序；子进程中的警告随结果返回，按对象顺序并入审计日志
# - 没有显式 playfield（Playfield 对象或名为 playfield_mesh 的图元）时追加隐式四边形

from concurrent.futures import ProcessPoolExecutor, as_completed
from typing import List, Optional

from .builders.mesh import PlayfieldBuilder
from .builders.mesh.decal_builder import is_playfield_primitive
from .config.constants import IMPLICIT_PLAYFIELD_NAME
from .config.export_settings import ExportSettings, GenerationOptions
from .core.exceptions import GeometryError
from .core.schema import GenerationResult, MeshPart, ObjectKind, TableModel
from .core.surface import SurfaceLookup
from .export_dispatcher import ExportDispatcher
from .utils.logger import Logger
from .writers.audit_writer import AuditLogger


def has_explicit_playfield(model: TableModel) -> bool:
    return any(obj.kind is ObjectKind.PLAYFIELD or is_playfield_primitive(obj)
               for obj in model.objects)


class ExportProcessor:
    """
    网格生成处理器

    使用方式:
        processor = ExportProcessor(settings, audit, logger)
        parts = processor.generate(model)
    """

    def __init__(self, settings: ExportSettings, audit: AuditLogger,
                 logger: Optional[Logger] = None):
        self.settings = settings
        self.audit = audit
        self.logger = logger or Logger(verbose=settings.verbose)

    def generate(self, model: TableModel) -> List[MeshPart]:
        """
        生成全部网格部件

        参数:
            model: 已解码的球台模型

        返回:
            按创作顺序排列的 MeshPart 列表（必要时末尾追加隐式 playfield）
        """
        dispatcher = ExportDispatcher(model.config, SurfaceLookup.from_objects(model.objects),
                                      GenerationOptions.from_settings(self.settings))

        if self.settings.parallel and len(model.objects) > 1:
            results = self._generate_parallel(dispatcher, model)
        else:
            results = [dispatcher.dispatch(i, obj) for i, obj in enumerate(model.objects)]

        parts: List[MeshPart] = []
        for result in results:
            self.audit.record(result.issues)
            for entry in result.issues:
                self.logger.echo(entry.severity, entry.message, entry.object_name, entry.code)
            parts.extend(result.parts)

        if not has_explicit_playfield(model):
            try:
                parts.append(PlayfieldBuilder.implicit(model.config))
            except GeometryError as e:
                self.audit.warning(e.code, f"implicit playfield skipped: {e}", IMPLICIT_PLAYFIELD_NAME)

        self.logger.info(f"生成 {len(parts)} 个网格部件（{len(model.objects)} 个对象）")
        return parts

    def _generate_parallel(self, dispatcher: ExportDispatcher,
                           model: TableModel) -> List[GenerationResult]:
        results: List[GenerationResult] = []
        with ProcessPoolExecutor(max_workers=self.settings.max_workers) as executor:
            futures = {
                executor.submit(dispatcher.dispatch, i, obj): i
                for i, obj in enumerate(model.objects)
            }
            for future in as_completed(futures):
                results.append(future.result())
        results.sort(key=lambda r: r.index)
        return results
