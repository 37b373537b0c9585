# -*- coding: utf-8 -*-
"""网格构建器模块"""

from .base_builder import BuildContext, MeshBuilder
from .wall_builder import WallBuilder
from .ramp_builder import RampBuilder
from .rubber_builder import FlasherBuilder, RubberBuilder
from .flipper_builder import FlipperBuilder
from .spinner_builder import GateBuilder, SpinnerBuilder
from .bumper_builder import BumperBuilder, KickerBuilder, TargetBuilder
from .trigger_builder import LightBuilder, TriggerBuilder
from .plunger_builder import PlungerBuilder
from .decal_builder import DecalBuilder, PlayfieldBuilder, PrimitiveBuilder
from .ball_builder import BallBuilder

__all__ = [
    'BuildContext',
    'MeshBuilder',
    'WallBuilder',
    'RampBuilder',
    'RubberBuilder',
    'FlasherBuilder',
    'FlipperBuilder',
    'SpinnerBuilder',
    'GateBuilder',
    'BumperBuilder',
    'TargetBuilder',
    'KickerBuilder',
    'TriggerBuilder',
    'LightBuilder',
    'PlungerBuilder',
    'DecalBuilder',
    'PrimitiveBuilder',
    'PlayfieldBuilder',
    'BallBuilder',
]
