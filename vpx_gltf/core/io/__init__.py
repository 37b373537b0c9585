# -*- coding: utf-8 -*-
"""Binary container I/O"""

from .glb_writer import BinaryWriter, BufferBuilder, GlbContainerWriter

__all__ = [
    'BinaryWriter',
    'BufferBuilder',
    'GlbContainerWriter',
]
