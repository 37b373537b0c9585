# -*- coding: utf-8 -*-
"""
VPX glTF Exporter - GLB Writer

- Centralizes binary writing with explicit little-endian layout and 4-byte alignment
- BufferBuilder packs vertex/index/image blobs into the single BIN chunk and
  records one bufferView per blob (every view starts on a 4-byte boundary)
- GlbContainerWriter frames the JSON + BIN chunks behind the 12-byte header;
  chunk lengths include their padding and are known before anything is written
"""

from __future__ import annotations
import io
import json
import struct
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Dict, List, Optional, Sequence

from ..exceptions import ExportIntegrityError
from ...config.constants import (
    COMPONENT_UNSIGNED_INT,
    COMPONENT_UNSIGNED_SHORT,
    GLB_CHUNK_BIN,
    GLB_CHUNK_HEADER_SIZE,
    GLB_CHUNK_JSON,
    GLB_HEADER_SIZE,
    GLB_MAGIC,
    GLB_VERSION,
)


ALIGNMENT = 4


def padded_length(length: int, boundary: int = ALIGNMENT) -> int:
    return (length + boundary - 1) // boundary * boundary


# =========================
# Scalar / bulk writer
# =========================

@dataclass
class BinaryWriter:
    """
    Minimalistic little-endian writer with alignment padding.
    """
    stream: BinaryIO

    def write_u32(self, v: int) -> None:
        self.stream.write(struct.pack('<I', v & 0xFFFFFFFF))

    def write_bytes(self, data: bytes) -> None:
        self.stream.write(data)

    def align(self, boundary: int = ALIGNMENT, pad: bytes = b'\x00') -> None:
        pos = self.stream.tell()
        count = (boundary - (pos % boundary)) % boundary
        if count:
            self.stream.write(pad * count)

    def tell(self) -> int:
        return self.stream.tell()


# =========================
# Blob packing
# =========================

def pack_floats(values: Sequence[Sequence[float]]) -> bytes:
    """Flatten (x, y[, z]) tuples into little-endian float32"""
    flat = [c for v in values for c in v]
    return struct.pack('<%df' % len(flat), *flat)


def pack_indices(indices: Sequence[int], component_type: int) -> bytes:
    if component_type == COMPONENT_UNSIGNED_SHORT:
        return struct.pack('<%dH' % len(indices), *indices)
    if component_type == COMPONENT_UNSIGNED_INT:
        return struct.pack('<%dI' % len(indices), *indices)
    raise ValueError(f"unsupported index component type: {component_type}")


@dataclass
class BufferBuilder:
    """
    Accumulates the BIN chunk payload.

    add_view() appends a blob at the next 4-byte boundary and returns the index
    of the bufferView describing it.
    """
    buffer_views: List[Dict[str, Any]] = field(default_factory=list)
    _stream: io.BytesIO = field(default_factory=io.BytesIO)

    def __post_init__(self):
        self._writer = BinaryWriter(self._stream)

    def add_view(self, data: bytes, target: Optional[int] = None,
                 byte_stride: Optional[int] = None) -> int:
        self._writer.align(ALIGNMENT)
        offset = self._writer.tell()
        self._writer.write_bytes(data)
        view: Dict[str, Any] = {"buffer": 0, "byteOffset": offset, "byteLength": len(data)}
        if byte_stride:
            view["byteStride"] = byte_stride
        if target is not None:
            view["target"] = target
        self.buffer_views.append(view)
        return len(self.buffer_views) - 1

    def getvalue(self) -> bytes:
        return self._stream.getvalue()


# =========================
# Container
# =========================

class GlbContainerWriter:
    """
    GLB layout:
        header  : magic u32 | version u32 | total length u32
        chunk 0 : length u32 | "JSON" | UTF-8 JSON padded with spaces
        chunk 1 : length u32 | "BIN\\0" | payload padded with zeros
    """

    @staticmethod
    def encode_json(document: Dict[str, Any]) -> bytes:
        return json.dumps(document, separators=(',', ':'), ensure_ascii=False).encode('utf-8')

    @classmethod
    def build(cls, document: Dict[str, Any], binary: bytes) -> bytes:
        json_bytes = cls.encode_json(document)
        json_len = padded_length(len(json_bytes))
        bin_len = padded_length(len(binary))

        total = GLB_HEADER_SIZE + GLB_CHUNK_HEADER_SIZE + json_len
        if binary:
            total += GLB_CHUNK_HEADER_SIZE + bin_len

        stream = io.BytesIO()
        w = BinaryWriter(stream)
        w.write_u32(GLB_MAGIC)
        w.write_u32(GLB_VERSION)
        w.write_u32(total)

        w.write_u32(json_len)
        w.write_u32(GLB_CHUNK_JSON)
        w.write_bytes(json_bytes)
        w.align(ALIGNMENT, pad=b' ')

        if binary:
            w.write_u32(bin_len)
            w.write_u32(GLB_CHUNK_BIN)
            w.write_bytes(binary)
            w.align(ALIGNMENT)

        data = stream.getvalue()
        if len(data) != total:
            raise ExportIntegrityError([f"GLB length mismatch: declared {total}, wrote {len(data)}"])
        return data
