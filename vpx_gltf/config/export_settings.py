# -*- coding: utf-8 -*-
"""
导出配置数据类
将调用方传入的配置转换为内部配置对象
"""

from typing import Any, Dict, List, Optional

from .constants import (
    VPU_TO_METERS,
    GROUP_BY_LAYER,
    GROUP_BY_NONE,
    GROUP_BY_PART_GROUP,
    CAMERA_FIT_SIMPLE,
    CAMERA_FIT_ACCURATE,
)


class ExportSettings:
    """全局导出配置"""

    GROUP_BY_CHOICES = (GROUP_BY_LAYER, GROUP_BY_NONE, GROUP_BY_PART_GROUP)
    CAMERA_FIT_CHOICES = (CAMERA_FIT_SIMPLE, CAMERA_FIT_ACCURATE)

    def __init__(self):
        self.unit_scale = VPU_TO_METERS  # VPU -> 米
        self.camera_fit_mode = CAMERA_FIT_SIMPLE
        self.group_by = GROUP_BY_LAYER
        self.include_invisible = False
        self.parallel = False
        self.max_workers: Optional[int] = None
        self.auto_validate = True
        self.write_audit = False
        self.verbose = False

    @classmethod
    def from_dict(cls, options: Dict[str, Any]):
        """从字典 (例如 CLI/API 层的选项) 创建配置对象"""
        settings = cls()
        for key, value in options.items():
            if not hasattr(settings, key):
                raise ValueError(f"Unknown export setting: {key}")
            setattr(settings, key, value)
        problems = settings.validate()
        if problems:
            raise ValueError("; ".join(problems))
        return settings

    def validate(self) -> List[str]:
        """返回配置问题列表（空列表表示合法）"""
        problems = []
        if not self.unit_scale or self.unit_scale <= 0.0:
            problems.append(f"unit_scale must be positive, got {self.unit_scale}")
        if self.group_by not in self.GROUP_BY_CHOICES:
            problems.append(f"group_by must be one of {self.GROUP_BY_CHOICES}, got {self.group_by!r}")
        if self.camera_fit_mode not in self.CAMERA_FIT_CHOICES:
            problems.append(
                f"camera_fit_mode must be one of {self.CAMERA_FIT_CHOICES}, got {self.camera_fit_mode!r}"
            )
        if self.max_workers is not None and self.max_workers < 1:
            problems.append(f"max_workers must be >= 1, got {self.max_workers}")
        return problems


class GenerationOptions:
    """传递给每个网格生成器的只读选项（可被子进程 pickle）"""

    def __init__(self, include_invisible: bool = False):
        self.include_invisible = include_invisible

    @classmethod
    def from_settings(cls, settings: ExportSettings):
        return cls(include_invisible=settings.include_invisible)
