# File: writers/audit_writer.py
# Purpose: 生成 audit.log，记录导出过程中的警告、错误与信息
# Notes:
# - 错误码体系：GEO（几何）、SRF（表面）、MAT（材质）、TEX（纹理）、CAM（相机）、
#   SCN（场景）、UNS（不支持的功能）
# - 严重性：ERROR / WARNING / INFO
# - 格式：时间戳 | 严重性 | 错误码 | 消息 | 对象名
# - 子进程产生的条目通过 record() 按原始顺序并入

import time
from typing import Iterable, List, Optional

from ..core.schema import AuditEntry


SEVERITY_ERROR = "ERROR"
SEVERITY_WARNING = "WARNING"
SEVERITY_INFO = "INFO"


def _now() -> str:
    return time.strftime("%Y-%m-%d %H:%M:%S", time.localtime())


def make_entry(code: str, message: str, object_name: Optional[str] = None,
               severity: str = SEVERITY_WARNING) -> AuditEntry:
    """Create a timestamped entry (used where no AuditLogger is at hand, e.g. in workers)"""
    return AuditEntry(code=code, message=message, severity=severity,
                      object_name=object_name, timestamp=_now())


class AuditLogger:
    """
    AuditLogger
    -----------
    收集导出过程的所有警告、错误与信息，可写出 audit.log。

    使用方式:
        audit = AuditLogger("output/table.audit.log")
        audit.info("开始导出", "Table1")
        audit.warning(ErrorCode.GEO003, "outline needs 3 points", "Wall1")
        audit.save()
    """

    def __init__(self, default_path: Optional[str] = None):
        self.default_path = default_path
        self.entries: List[AuditEntry] = []

    def info(self, message: str, object_name: Optional[str] = None) -> None:
        self.entries.append(make_entry("", message, object_name, SEVERITY_INFO))

    def warning(self, code: str, message: str, object_name: Optional[str] = None) -> None:
        """可恢复的问题：对象或部件被跳过 / 使用了回退值"""
        self.entries.append(make_entry(code, message, object_name, SEVERITY_WARNING))

    def error(self, code: str, message: str, object_name: Optional[str] = None) -> None:
        self.entries.append(make_entry(code, message, object_name, SEVERITY_ERROR))

    def record(self, entries: Iterable[AuditEntry]) -> None:
        """并入已生成的条目（保持传入顺序）"""
        self.entries.extend(entries)

    def save(self, filepath: Optional[str] = None) -> str:
        """保存 audit.log 到文件"""
        path = filepath or self.default_path
        if not path:
            raise ValueError("AuditLogger.save() needs a file path")
        with open(path, "w", encoding="utf-8") as f:
            f.write("# VPX glTF Export Audit Log\n")
            f.write(f"# Generated: {_now()}\n")
            f.write("# Format: [Timestamp] [Severity] [Code] Message | Object\n")
            f.write("#" + "=" * 70 + "\n\n")

            for entry in self.entries:
                f.write(self.format_entry(entry) + "\n")
        return path

    @staticmethod
    def format_entry(entry: AuditEntry) -> str:
        line = f"[{entry.timestamp}] [{entry.severity}]"
        if entry.code:
            line += f" [{entry.code}]"
        line += f" {entry.message}"
        if entry.object_name:
            line += f" | Object: {entry.object_name}"
        return line

    def count(self, severity: str) -> int:
        return sum(e.severity == severity for e in self.entries)

    @property
    def warning_count(self) -> int:
        return self.count(SEVERITY_WARNING)

    def codes(self) -> List[str]:
        return [e.code for e in self.entries if e.code]

    def summary(self) -> str:
        return (f"导出完成: {self.count(SEVERITY_ERROR)} 错误, {self.warning_count} 警告, "
                f"{self.count(SEVERITY_INFO)} 信息")


# ==================== 错误码定义 ====================

class ErrorCode:
    """错误码枚举"""

    # 几何错误 GEO***
    GEO001 = "GEO001"  # 退化几何（无法生成网格）
    GEO002 = "GEO002"  # 参数非法（半径/宽度 <= 0）
    GEO003 = "GEO003"  # 控制点不足
    GEO004 = "GEO004"  # 三角化失败 / 零面积轮廓
    GEO005 = "GEO005"  # 柱塞尖端轮廓为空，使用默认轮廓

    # 表面错误 SRF***
    SRF001 = "SRF001"  # 引用的表面不存在
    SRF002 = "SRF002"  # 对象不在坡道路径上，使用平均高度

    # 材质错误 MAT***
    MAT001 = "MAT001"  # 引用的材质不存在

    # 纹理错误 TEX***
    TEX001 = "TEX001"  # 引用的图像不存在
    TEX002 = "TEX002"  # 图像无法解码
    TEX003 = "TEX003"  # 非 playfield 纹理未嵌入

    # 相机错误 CAM***
    CAM001 = "CAM001"  # accurate 视锥拟合不支持，回退到 simple

    # 场景错误 SCN***
    SCN001 = "SCN001"  # part_group 分组不支持，回退到 layer
    SCN002 = "SCN002"  # 网格为空，已跳过

    # 不支持的功能 UNS***
    UNS001 = "UNS001"  # 文字贴花
    UNS002 = "UNS002"  # 背板（屏幕空间）对象
    UNS003 = "UNS003"  # 未知的形状/类型枚举
