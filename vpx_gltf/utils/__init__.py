# -*- coding: utf-8 -*-
"""工具模块"""

from .logger import Logger

__all__ = [
    'Logger',
]
