# -*- coding: utf-8 -*-
"""校验器模块"""

from .structure_checker import GlbStructureChecker

__all__ = [
    'GlbStructureChecker',
]
