# -*- coding: utf-8 -*-
"""
灯光构建器

- TableLight0/1: 球台上方的两个点光源（来自球台灯光设置）
- GI 灯光: 名称以 "gi" 开头的 Light 对象，各自一个点光源，归入所在图层
"""

import math
from typing import Iterable, List

from ..mesh.base_builder import layer_name
from ...config.constants import LIGHT_INTENSITY_SCALE, LIGHT_Z_NUDGE_MM, MAX_LIGHT_RANGE_METERS
from ...config.export_settings import ExportSettings
from ...core.coordinate_converter import CoordinateConverter, mm_to_vpu
from ...core.schema import Light, ObjectKind, PointLightDef, TableConfig, TableObject


GI_PREFIX = "gi"
GI_INTENSITY_SCALE = 0.1
GI_INTENSITY_MIN = 0.01
GI_INTENSITY_MAX = 10.0


def is_gi_light(obj: TableObject) -> bool:
    return obj.kind is ObjectKind.LIGHT and obj.name.lower().startswith(GI_PREFIX) and not obj.is_backglass


class LightingBuilder:
    """灯光构建器"""

    @staticmethod
    def table_lights(config: TableConfig, settings: ExportSettings) -> List[PointLightDef]:
        converter = CoordinateConverter(settings.unit_scale)
        r, g, b = (c / 255.0 for c in config.light0_emission)
        intensity = (config.light_emission_scale * config.global_emission_scale
                     * LIGHT_INTENSITY_SCALE * (r + g + b) / 3.0)
        light_range = min(converter.convert_scale(config.light_range), MAX_LIGHT_RANGE_METERS)
        center_x = (config.left + config.right) * 0.5

        lights = []
        for i, depth in enumerate((config.bottom / 3.0, config.bottom * 2.0 / 3.0)):
            lights.append(PointLightDef(
                name=f"TableLight{i}",
                translation=converter.convert_position((center_x, depth, config.light_height)),
                color=(r, g, b),
                intensity=intensity,
                range=light_range,
            ))
        return lights

    @staticmethod
    def gi_lights(objects: Iterable[TableObject], settings: ExportSettings) -> List[PointLightDef]:
        converter = CoordinateConverter(settings.unit_scale)
        lights = []
        for obj in objects:
            if not is_gi_light(obj):
                continue
            if not obj.is_visible and not settings.include_invisible:
                continue
            lights.append(LightingBuilder.gi_light(obj, converter))
        return lights

    @staticmethod
    def gi_light(light: Light, converter: CoordinateConverter) -> PointLightDef:
        x, y = light.position[0], light.position[1]
        z = light.height or 0.0
        if abs(z) < 1e-3:
            z = mm_to_vpu(LIGHT_Z_NUDGE_MM)

        if light.drag_points:
            reach = max(math.hypot(dp.x - x, dp.y - y) for dp in light.drag_points)
        else:
            reach = light.falloff_radius

        return PointLightDef(
            name=light.name,
            translation=converter.convert_position((x, y, z)),
            color=tuple(c / 255.0 for c in light.color),
            intensity=max(GI_INTENSITY_MIN, min(light.intensity * GI_INTENSITY_SCALE, GI_INTENSITY_MAX)),
            range=converter.convert_scale(reach) if reach > 0.0 else None,
            layer_name=layer_name(light),
        )
