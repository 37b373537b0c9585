import math

import pytest
from mathutils import Vector

from vpx_gltf.config.constants import VPU_TO_METERS
from vpx_gltf.core.coordinate_converter import (
    CoordinateConverter,
    apply_rotations_sequentially,
    compose_rotation_zyx,
    m_to_vpu,
    mm_to_vpu,
    primitive_local_matrix,
    rotate_2d,
    vpu_to_m,
    vpu_to_mm,
)


@pytest.mark.parametrize("angles", [
    (0.0, 0.0, 0.0),
    (30.0, 0.0, 0.0),
    (0.0, 45.0, 90.0),
    (12.5, -73.0, 210.0),
    (90.0, 90.0, 90.0),
])
def test_combined_rotation_matches_sequential(angles):
    v = (0.3, -1.7, 2.25)
    expected = apply_rotations_sequentially(v, *angles)
    actual = compose_rotation_zyx(*angles).to_3x3() @ Vector(v)
    assert (actual - expected).length == pytest.approx(0.0, abs=1e-9)


def test_unit_scale_constant():
    assert VPU_TO_METERS == pytest.approx(0.00053975)
    assert vpu_to_m(1000.0) == pytest.approx(0.53975)


def test_light_nudge_is_ten_millimetres():
    assert vpu_to_m(mm_to_vpu(10.0)) == pytest.approx(0.010)


def test_unit_helpers_invert_each_other():
    assert m_to_vpu(vpu_to_m(123.0)) == pytest.approx(123.0)
    assert vpu_to_mm(50.0) == pytest.approx(25.4 * 1.0625)


def test_position_swaps_axes_and_scales():
    conv = CoordinateConverter(0.5)
    assert conv.convert_position((2.0, 4.0, 6.0)) == (1.0, 3.0, 2.0)
    assert conv.convert_normal((0.0, 0.0, 1.0)) == (0.0, 1.0, 0.0)


def test_indices_reverse_winding():
    conv = CoordinateConverter()
    assert conv.flips_winding
    assert conv.convert_indices([0, 1, 2, 3, 4, 5]) == [0, 2, 1, 3, 5, 4]


def test_pitch_quaternion_is_rotation_about_x():
    x, y, z, w = CoordinateConverter.pitch_quaternion(math.pi / 2)
    assert y == pytest.approx(0.0)
    assert z == pytest.approx(0.0)
    assert x == pytest.approx(-math.sin(math.pi / 4))
    assert w == pytest.approx(math.cos(math.pi / 4))


def test_rotate_2d_quarter_turn():
    x, y = rotate_2d(1.0, 0.0, 90.0)
    assert x == pytest.approx(0.0, abs=1e-12)
    assert y == pytest.approx(1.0)


def test_primitive_matrix_scales_before_translating():
    rot_and_tra = (0.0, 0.0, 0.0, 10.0, 0.0, 0.0, 0.0, 0.0, 0.0)
    m = primitive_local_matrix((2.0, 2.0, 2.0), rot_and_tra)
    p = m @ Vector((1.0, 0.0, 0.0))
    assert tuple(p) == pytest.approx((12.0, 0.0, 0.0))
