# File: export_dispatcher.py
# Purpose: 导出调度器，根据对象类型选择对应的网格构建器
# Notes:
# - 每种 ObjectKind 一个分支，穷举匹配；未知类型 -> UNS003
# - 不可见对象在 include_invisible 关闭时直接跳过（不记录警告）
# - GeometryError / UnsupportedFeatureError 按对象捕获，记录为警告，对象跳过
# - 调度器本身可被 pickle，直接提交到工作进程

from typing import List

from .builders.mesh import (
    BallBuilder,
    BuildContext,
    BumperBuilder,
    DecalBuilder,
    FlasherBuilder,
    FlipperBuilder,
    GateBuilder,
    KickerBuilder,
    LightBuilder,
    PlayfieldBuilder,
    PlungerBuilder,
    PrimitiveBuilder,
    RampBuilder,
    RubberBuilder,
    SpinnerBuilder,
    TargetBuilder,
    TriggerBuilder,
    WallBuilder,
)
from .config.export_settings import GenerationOptions
from .core.exceptions import GeometryError, UnsupportedFeatureError
from .core.schema import GenerationResult, MeshPart, ObjectKind, TableConfig, TableObject
from .core.surface import SurfaceLookup
from .writers.audit_writer import ErrorCode


class ExportDispatcher:
    """
    ExportDispatcher
    ----------------
    导出调度器，负责：
    1. 根据对象类型选择对应的构建器
    2. 把构建器抛出的可恢复错误转换为警告
    3. 返回带创作顺序索引的 GenerationResult

    使用方式:
        dispatcher = ExportDispatcher(model.config, SurfaceLookup.from_objects(model.objects), options)
        result = dispatcher.dispatch(0, model.objects[0])
    """

    def __init__(self, config: TableConfig, surfaces: SurfaceLookup, options: GenerationOptions):
        self.config = config
        self.surfaces = surfaces
        self.options = options

    def dispatch(self, index: int, obj: TableObject) -> GenerationResult:
        """
        生成单个对象的网格部件

        参数:
            index: 对象在球台中的创作顺序
            obj: 表对象

        返回:
            GenerationResult - 部件与警告
        """
        result = GenerationResult(index=index, object_name=obj.name)
        if not obj.is_visible and not self.options.include_invisible:
            return result

        ctx = BuildContext(self.config, self.surfaces, self.options, obj.name)
        try:
            result.parts = self._build(obj, ctx)
        except (GeometryError, UnsupportedFeatureError) as e:
            ctx.warn(e.code, f"{obj.kind.value} skipped: {e}")
            result.parts = []
        result.issues = ctx.issues
        return result

    @staticmethod
    def _build(obj: TableObject, ctx: BuildContext) -> List[MeshPart]:
        kind = obj.kind

        if kind is ObjectKind.WALL:
            return WallBuilder.build(obj, ctx)

        elif kind is ObjectKind.RAMP:
            return RampBuilder.build(obj, ctx)

        elif kind is ObjectKind.RUBBER:
            return RubberBuilder.build(obj, ctx)

        elif kind is ObjectKind.FLASHER:
            return FlasherBuilder.build(obj, ctx)

        elif kind is ObjectKind.FLIPPER:
            return FlipperBuilder.build(obj, ctx)

        elif kind is ObjectKind.SPINNER:
            return SpinnerBuilder.build(obj, ctx)

        elif kind is ObjectKind.BUMPER:
            return BumperBuilder.build(obj, ctx)

        elif kind is ObjectKind.TARGET:
            return TargetBuilder.build(obj, ctx)

        elif kind is ObjectKind.GATE:
            return GateBuilder.build(obj, ctx)

        elif kind is ObjectKind.TRIGGER:
            return TriggerBuilder.build(obj, ctx)

        elif kind is ObjectKind.LIGHT:
            return LightBuilder.build(obj, ctx)

        elif kind is ObjectKind.PLUNGER:
            return PlungerBuilder.build(obj, ctx)

        elif kind is ObjectKind.KICKER:
            return KickerBuilder.build(obj, ctx)

        elif kind is ObjectKind.DECAL:
            return DecalBuilder.build(obj, ctx)

        elif kind is ObjectKind.PRIMITIVE:
            return PrimitiveBuilder.build(obj, ctx)

        elif kind is ObjectKind.PLAYFIELD:
            return PlayfieldBuilder.build(obj, ctx)

        elif kind is ObjectKind.BALL:
            return BallBuilder.build(obj, ctx)

        else:
            raise UnsupportedFeatureError(f"unknown object kind: {kind!r}", code=ErrorCode.UNS003)
