# -*- coding: utf-8 -*-
"""
相机构建器
从球台视图设置 (desktop / fullscreen / FSS) 构建三个透视相机
"""

import math
from typing import List, NamedTuple, Optional, Tuple

from ...config.constants import (
    CAMERA_ASPECT,
    CAMERA_FIT_ACCURATE,
    CAMERA_ZFAR,
    CAMERA_ZNEAR,
    FIT_CAMERA_DISTANCE_SCALE,
)
from ...config.export_settings import ExportSettings
from ...core.coordinate_converter import CoordinateConverter
from ...core.schema import CameraDef, CameraMode, TableConfig, ViewLayoutMode, ViewSetup
from ...writers.audit_writer import AuditLogger, ErrorCode


class FittedCamera(NamedTuple):
    x: float
    y: float
    z: float


def table_corners(config: TableConfig) -> List[Tuple[float, float, float]]:
    """8 corners of the table box: playfield plane and glass-top plane"""
    corners = []
    for z in (0.0, config.glass_top_height):
        for y in (config.top, config.bottom):
            for x in (config.left, config.right):
                corners.append((x, y, z))
    return corners


def fit_camera_to_vertices(vertices, aspect: float, rotation: float, inclination: float,
                           fov: float, xlatez: float = 0.0, layback: float = 0.0) -> FittedCamera:
    """
    Camera position that frames all vertices.

    参数:
        vertices: 源坐标顶点 (VPU)
        aspect: 宽高比
        rotation / inclination: 弧度
        fov: 垂直视场角（度）
        xlatez: 额外的 Z 平移
        layback: 后倾角（度）

    返回:
        FittedCamera - 视图空间中的相机中心 (x, y) 与距离 z
    """
    rrotsin, rrotcos = math.sin(rotation), math.cos(rotation)
    rincsin, rinccos = math.sin(inclination), math.cos(inclination)

    slopey = math.tan(0.5 * math.radians(fov))
    slopex = slopey * aspect
    layback_tan = -math.tan(0.5 * math.radians(layback))

    max_y = max_x = -math.inf
    min_y = min_x = math.inf
    for vx, vy, vz in vertices:
        vy = vy + layback_tan * vz

        # 绕 X 轴（倾角）
        vy, vz = rinccos * vy - rincsin * vz, rincsin * vy + rinccos * vz
        # 绕 Z 轴（旋转）
        vx, vy = rrotcos * vx - rrotsin * vy, rrotsin * vx + rrotcos * vy

        max_y = max(max_y, vy + slopey * vz)
        min_y = min(min_y, vy - slopey * vz)
        max_x = max(max_x, vx + slopex * vz)
        min_x = min(min_x, vx - slopex * vz)

    ydist = (max_y - min_y) / (slopey * 2.0)
    xdist = (max_x - min_x) / (slopex * 2.0)
    return FittedCamera((max_x + min_x) * 0.5, (max_y + min_y) * 0.5, max(ydist, xdist) + xlatez)


def pitch_from_inclination(inclination: float) -> float:
    """Look-at percentage -> pitch from horizontal (radians): 0% looks straight down"""
    return math.radians(90.0 * (1.0 - inclination / 100.0))


class CameraBuilder:
    """相机构建器"""

    @staticmethod
    def build_all(config: TableConfig, settings: ExportSettings,
                  audit: Optional[AuditLogger] = None) -> List[CameraDef]:
        if settings.camera_fit_mode == CAMERA_FIT_ACCURATE and audit is not None:
            audit.warning(ErrorCode.CAM001,
                          "accurate camera fit is not supported, framing the table bounds instead")

        converter = CoordinateConverter(settings.unit_scale)
        return [
            CameraBuilder.build(CameraMode.DESKTOP.value, config.view_desktop, config, converter),
            CameraBuilder.build(CameraMode.FULLSCREEN.value, config.view_fullscreen, config, converter),
            CameraBuilder.build(CameraMode.FSS.value, config.view_fss, config, converter),
        ]

    @staticmethod
    def build(name: str, view: ViewSetup, config: TableConfig,
              converter: CoordinateConverter) -> CameraDef:
        pitch = pitch_from_inclination(view.inclination)
        fov = max(view.fov, 1.0)
        legacy = view.layout_mode is ViewLayoutMode.LEGACY

        fit = fit_camera_to_vertices(table_corners(config), CAMERA_ASPECT, 0.0, pitch, fov)

        distance = fit.z * FIT_CAMERA_DISTANCE_SCALE
        if legacy:
            distance *= (view.scale_x + view.scale_y) * 0.5

        look_x = (config.left + config.right) * 0.5
        look_y = (config.top + config.bottom) * 0.5
        cos_p, sin_p = math.cos(pitch), math.sin(pitch)

        x = look_x
        y = look_y + distance * cos_p
        z = distance * sin_p

        if legacy:
            # 偏移在屏幕空间：x 横向，y 屏幕上方，z 沿视线远离球台
            x += view.offset_x
            y += view.offset_y * sin_p + view.offset_z * cos_p
            z += view.offset_y * cos_p + view.offset_z * sin_p
        else:
            # 偏移沿视线：y 沿视线，z 为世界高度
            x += view.offset_x
            y += view.offset_y * cos_p
            z += view.offset_y * sin_p + view.offset_z

        return CameraDef(
            name=name,
            translation=converter.convert_position((x, y, z)),
            rotation=converter.pitch_quaternion(pitch),
            yfov=math.radians(fov),
            aspect_ratio=CAMERA_ASPECT,
            znear=CAMERA_ZNEAR,
            zfar=CAMERA_ZFAR,
        )
