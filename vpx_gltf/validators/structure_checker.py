# -*- coding: utf-8 -*-
"""
VPX glTF Exporter - Structure Checker
GLB 文件级结构校验器（导出完成后重新解析字节流）
- 头部：magic / version / 声明总长度 == 实际长度
- 块：长度 4 字节对齐，JSON 块在前，BIN 块（可选）在后
- JSON：可解析，accessor / bufferView 范围落在 BIN 块内
"""

import json
import os
import struct
from typing import Any, Dict

from ..config.constants import (
    GLB_CHUNK_BIN,
    GLB_CHUNK_HEADER_SIZE,
    GLB_CHUNK_JSON,
    GLB_HEADER_SIZE,
    GLB_MAGIC,
    GLB_VERSION,
)
from ..core.validator import validate_buffer_layout


CHUNK_NAMES = {
    GLB_CHUNK_JSON: "JSON",
    GLB_CHUNK_BIN: "BIN",
}


class GlbStructureChecker:
    def __init__(self, verbose: bool = False):
        self.verbose = verbose

    def check_file(self, filepath: str) -> Dict[str, Any]:
        if not os.path.exists(filepath):
            return {"filepath": filepath, "chunks": [], "errors": [f"文件不存在: {filepath}"],
                    "warnings": [], "document": None}
        with open(filepath, "rb") as f:
            report = self.check_bytes(f.read())
        report["filepath"] = filepath
        return report

    def check_bytes(self, data: bytes) -> Dict[str, Any]:
        """
        校验 GLB 字节流

        返回:
            {
                "filepath": Optional[str],
                "chunks": List[Dict],   # type / length / start
                "errors": List[str],
                "warnings": List[str],
                "document": Optional[dict]
            }
        """
        report: Dict[str, Any] = {
            "filepath": None,
            "chunks": [],
            "errors": [],
            "warnings": [],
            "document": None,
        }
        errors = report["errors"]

        if len(data) < GLB_HEADER_SIZE:
            errors.append(f"文件过短: {len(data)} 字节")
            return report

        magic, version, total = struct.unpack_from("<III", data, 0)
        if magic != GLB_MAGIC:
            errors.append(f"magic 错误: {magic:#010x}")
            return report
        if version != GLB_VERSION:
            errors.append(f"版本错误: 期望 {GLB_VERSION}, 实际 {version}")
        if total != len(data):
            errors.append(f"声明总长度 {total} 与实际长度 {len(data)} 不一致")

        json_bytes = None
        bin_length = 0
        offset = GLB_HEADER_SIZE
        while offset < len(data):
            if offset + GLB_CHUNK_HEADER_SIZE > len(data):
                errors.append(f"块头被截断 (offset={offset})")
                break
            length, chunk_type = struct.unpack_from("<II", data, offset)
            start = offset + GLB_CHUNK_HEADER_SIZE
            end = start + length
            report["chunks"].append({"type": CHUNK_NAMES.get(chunk_type, hex(chunk_type)),
                                     "length": length, "start": start})

            if length % 4:
                errors.append(f"块 {CHUNK_NAMES.get(chunk_type, hex(chunk_type))} 长度 {length} 未按 4 字节对齐")
            if end > len(data):
                errors.append(f"块越界: [{start}, {end}) 超出文件长度 {len(data)}")
                break

            index = len(report["chunks"]) - 1
            if chunk_type == GLB_CHUNK_JSON:
                if index != 0:
                    errors.append("JSON 块必须是第一个块")
                json_bytes = data[start:end]
            elif chunk_type == GLB_CHUNK_BIN:
                if index != 1:
                    errors.append("BIN 块必须紧跟 JSON 块")
                bin_length = length
            else:
                report["warnings"].append(f"未知块类型: {chunk_type:#010x}")
            offset = end

        if json_bytes is None:
            errors.append("缺少 JSON 块")
            return report

        try:
            document = json.loads(json_bytes.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            errors.append(f"JSON 块无法解析: {e}")
            return report

        report["document"] = document
        errors.extend(validate_buffer_layout(document, bin_length))

        if self.verbose:
            for chunk in report["chunks"]:
                print(f"[GLB] {chunk['type']}: {chunk['length']} 字节 @ {chunk['start']}")
        return report

    @staticmethod
    def is_valid(report: Dict[str, Any]) -> bool:
        return not report["errors"]
