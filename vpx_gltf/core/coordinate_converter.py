# File: core/coordinate_converter.py
# Purpose: 坐标系转换（VPX left-handed Z-up, VPU → glTF right-handed Y-up, meters）
# Notes:
# - VPX (X, Y, Z) → glTF (X, Z, Y): the swap is a reflection, so triangle
#   winding is reversed when indices are written
# - Rotation composition follows the engine's row-vector matrix order
# - Unit scale only touches positions/sizes, never angles or UVs

import math
from typing import Iterable, List, Sequence, Tuple

from mathutils import Matrix, Quaternion, Vector

from ..config.constants import VPU_TO_METERS, VPU_TO_MM


# ==================== 单位换算 ====================

def vpu_to_m(value: float) -> float:
    return value * VPU_TO_METERS


def m_to_vpu(value: float) -> float:
    return value / VPU_TO_METERS


def vpu_to_mm(value: float) -> float:
    return value * VPU_TO_MM


def mm_to_vpu(value: float) -> float:
    return value / VPU_TO_MM


# ==================== 旋转组合 ====================

def rotation_x(degrees: float) -> Matrix:
    return Matrix.Rotation(math.radians(degrees), 4, 'X')


def rotation_y(degrees: float) -> Matrix:
    return Matrix.Rotation(math.radians(degrees), 4, 'Y')


def rotation_z(degrees: float) -> Matrix:
    return Matrix.Rotation(math.radians(degrees), 4, 'Z')


def compose_rotation_zyx(rot_x: float, rot_y: float, rot_z: float) -> Matrix:
    """
    Combined rotation that applies Z first, then Y, then X.

    The engine writes this as RotZ * RotY * RotX with row vectors; with
    mathutils column vectors the same transform is Rx @ Ry @ Rz.
    """
    return rotation_x(rot_x) @ rotation_y(rot_y) @ rotation_z(rot_z)


def apply_rotations_sequentially(vector: Sequence[float], rot_x: float, rot_y: float,
                                 rot_z: float) -> Vector:
    """Rotate by Z, then Y, then X as discrete operations"""
    v = Vector(vector)
    for matrix in (rotation_z(rot_z), rotation_y(rot_y), rotation_x(rot_x)):
        v = matrix.to_3x3() @ v
    return v


def scale_matrix(sx: float, sy: float, sz: float) -> Matrix:
    return Matrix.Diagonal(Vector((sx, sy, sz, 1.0)))


def primitive_local_matrix(size: Sequence[float], rot_and_tra: Sequence[float]) -> Matrix:
    """
    Primitive transform without the final position translation.

    Engine order (row vectors):
        Scale(size) * Translate(tra) * RotZ(r2) * RotY(r1) * RotX(r0)
                    * RotZ(o8) * RotY(o7) * RotX(o6)
    """
    rt = rot_and_tra
    translate = Matrix.Translation(Vector((rt[3], rt[4], rt[5])))
    return (
        compose_rotation_zyx(rt[6], rt[7], rt[8])
        @ compose_rotation_zyx(rt[0], rt[1], rt[2])
        @ translate
        @ scale_matrix(size[0], size[1], size[2])
    )


def normal_matrix(matrix: Matrix) -> Matrix:
    """Inverse-transpose of the 3x3 part, for transforming normals"""
    return matrix.to_3x3().inverted_safe().transposed()


def transform_points(matrix: Matrix, points: Iterable[Sequence[float]]) -> List[Tuple[float, float, float]]:
    out = []
    for p in points:
        v = matrix @ Vector((p[0], p[1], p[2]))
        out.append((v.x, v.y, v.z))
    return out


def transform_normals(matrix: Matrix, normals: Iterable[Sequence[float]]) -> List[Tuple[float, float, float]]:
    nm = normal_matrix(matrix)
    out = []
    for n in normals:
        v = nm @ Vector((n[0], n[1], n[2]))
        if v.length > 0.0:
            v.normalize()
        out.append((v.x, v.y, v.z))
    return out


def rotate_2d(x: float, y: float, degrees: float) -> Tuple[float, float]:
    a = math.radians(degrees)
    s, c = math.sin(a), math.cos(a)
    return (x * c - y * s, x * s + y * c)


class CoordinateConverter:
    """
    坐标系转换器

    VPX (X right, Y towards player, Z up) → glTF (X right, Y up, Z towards viewer)

    转换规则：
        VPX (X, Y, Z) → glTF (X, Z, Y) * unit_scale

    矩阵形式（行列式为 -1，镜像）：
        [ 1  0  0 ]
        [ 0  0  1 ]
        [ 0  1  0 ]
    """

    CONVERSION_MATRIX = Matrix((
        (1.0, 0.0, 0.0),
        (0.0, 0.0, 1.0),
        (0.0, 1.0, 0.0)
    ))

    def __init__(self, unit_scale: float = VPU_TO_METERS):
        self.unit_scale = unit_scale

    @property
    def flips_winding(self) -> bool:
        return self.CONVERSION_MATRIX.determinant() < 0.0

    def convert_position(self, pos: Sequence[float]) -> Tuple[float, float, float]:
        """
        转换位置向量

        参数:
            pos: VPX 位置 (X, Y, Z)，单位 VPU

        返回:
            glTF 位置 (X, Z, Y)，单位米
        """
        s = self.unit_scale
        return (pos[0] * s, pos[2] * s, pos[1] * s)

    @staticmethod
    def convert_normal(normal: Sequence[float]) -> Tuple[float, float, float]:
        """转换法线向量（仅轴交换，无缩放）"""
        return (normal[0], normal[2], normal[1])

    def convert_scale(self, value: float) -> float:
        return value * self.unit_scale

    @staticmethod
    def convert_triangle(i0: int, i1: int, i2: int) -> Tuple[int, int, int]:
        """Reverse winding to compensate for the mirroring axis swap"""
        return (i0, i2, i1)

    def convert_positions(self, positions: Iterable[Sequence[float]]) -> List[Tuple[float, float, float]]:
        return [self.convert_position(p) for p in positions]

    def convert_normals(self, normals: Iterable[Sequence[float]]) -> List[Tuple[float, float, float]]:
        return [self.convert_normal(n) for n in normals]

    def convert_indices(self, indices: Sequence[int]) -> List[int]:
        out = []
        for t in range(0, len(indices), 3):
            out.extend(self.convert_triangle(indices[t], indices[t + 1], indices[t + 2]))
        return out

    @staticmethod
    def pitch_quaternion(pitch_radians: float) -> Tuple[float, float, float, float]:
        """
        Camera orientation: rotation of -pitch about the glTF X axis.

        返回:
            glTF 四元数 (x, y, z, w)
        """
        q = Quaternion((1.0, 0.0, 0.0), -pitch_radians)
        return (q.x, q.y, q.z, q.w)
