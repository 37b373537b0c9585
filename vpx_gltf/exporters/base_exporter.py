# -*- coding: utf-8 -*-
"""
基础导出器（抽象类）
定义导出流程模板
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

from ..config.export_settings import ExportSettings
from ..core.exceptions import ExportError
from ..core.schema import TableModel
from ..utils.logger import Logger
from ..writers.audit_writer import AuditLogger


@dataclass
class ExportResult:
    """导出结果：GLB 字节流、写出的文件与审计日志"""
    data: bytes
    audit: AuditLogger
    files: List[str] = field(default_factory=list)

    @property
    def warning_count(self) -> int:
        return self.audit.warning_count


class BaseExporter(ABC):
    """
    基础导出器
    使用模板方法模式定义导出流程
    """

    def __init__(self, output_path: Optional[str] = None, logger: Optional[Logger] = None):
        """
        初始化导出器

        参数:
            output_path: str - 输出文件路径（None 表示只返回字节流）
            logger: Logger - 日志记录器
        """
        self.output_path = output_path
        self.logger = logger

    def export(self, model: TableModel, settings: ExportSettings) -> ExportResult:
        """
        导出流程模板方法

        参数:
            model: TableModel - 已解码的球台模型
            settings: ExportSettings - 导出配置

        返回:
            ExportResult - 导出结果
        """
        try:
            # 1. 验证
            self.validate(model, settings)

            # 2. 构建数据
            result = self.build_data(model, settings)

            # 3. 写入文件
            result.files = self.write_files(result, settings)

            # 4. 后处理
            self.post_process(result, settings)
            return result

        except ExportError as e:
            if self.logger:
                self.logger.error("导出失败: {0}".format(e))
            raise

    def validate(self, model: TableModel, settings: ExportSettings) -> None:
        """
        验证模型和设置（设置非法时抛出 ValueError）
        """
        problems = settings.validate()
        if problems:
            raise ValueError("; ".join(problems))

        if not model.objects and self.logger:
            self.logger.warning("球台没有任何对象，只导出球台面、相机与灯光")

    @abstractmethod
    def build_data(self, model: TableModel, settings: ExportSettings) -> ExportResult:
        """
        构建导出数据（子类实现）
        """
        pass

    @abstractmethod
    def write_files(self, result: ExportResult, settings: ExportSettings) -> List[str]:
        """
        写入文件（子类实现）

        返回:
            List[str] - 写入的文件路径列表
        """
        pass

    def post_process(self, result: ExportResult, settings: ExportSettings) -> None:
        """
        后处理（可选，子类可覆盖）
        """
        if self.logger:
            self.logger.info("{0}，共生成{1}个文件".format(result.audit.summary(), len(result.files)))
