import math

import pytest

from conftest import square
from vpx_gltf.builders.mesh import (
    BallBuilder,
    BumperBuilder,
    FlasherBuilder,
    GateBuilder,
    PrimitiveBuilder,
    SpinnerBuilder,
    TargetBuilder,
)
from vpx_gltf.core.exceptions import GeometryError
from vpx_gltf.core.schema import (
    Ball,
    Bumper,
    DragPoint,
    Flasher,
    Gate,
    GateType,
    HitTarget,
    Primitive,
    Spinner,
    TargetType,
    Wall,
)


PLATFORM = Wall(name="Platform", drag_points=square(0.0, 0.0, 500.0), height_top=40.0)


def names(parts):
    return [p.name for p in parts]


# ---------------------------
# Bumper
# ---------------------------

def test_bumper_parts_and_materials(ctx):
    bumper = Bumper(name="B1", position=(300.0, 300.0, 0.0), cap_material="CapMat",
                    ring_material="Steel")
    parts = BumperBuilder.build(bumper, ctx)
    assert names(parts) == ["B1Base", "B1Socket", "B1Ring", "B1Cap"]
    assert parts[3].material_name == "CapMat"
    assert parts[2].material_name == "Steel"
    assert parts[0].material_name is None
    assert all(p.translation == (300.0, 300.0, 0.0) for p in parts)


def test_bumper_parts_toggle_individually(ctx):
    bumper = Bumper(name="B2", is_socket_visible=False, is_cap_visible=False)
    assert names(BumperBuilder.build(bumper, ctx)) == ["B2Base", "B2Ring"]


def test_bumper_sits_on_its_surface(make_ctx):
    ctx = make_ctx((PLATFORM,))
    (base,) = BumperBuilder.build(Bumper(name="B3", surface="Platform", is_socket_visible=False,
                                         is_ring_visible=False, is_cap_visible=False), ctx)
    assert base.translation[2] == pytest.approx(40.0)


def test_bumper_radius_must_be_positive(ctx):
    with pytest.raises(GeometryError) as err:
        BumperBuilder.build(Bumper(name="B4", radius=0.0), ctx)
    assert err.value.code == "GEO002"


# ---------------------------
# Targets
# ---------------------------

@pytest.mark.parametrize("target_type", list(TargetType))
def test_every_target_type_has_a_mesh(ctx, target_type):
    (part,) = TargetBuilder.build(HitTarget(name="T", target_type=target_type), ctx)
    assert part.mesh.vertex_count > 0
    assert part.mesh.triangle_count > 0


def test_dropped_target_sinks(ctx):
    up = TargetBuilder.build(HitTarget(name="T", position=(0.0, 0.0, 0.0)), ctx)[0]
    down = TargetBuilder.build(HitTarget(name="T", position=(0.0, 0.0, 0.0), is_dropped=True), ctx)[0]
    assert down.translation[2] < up.translation[2]

    hit = HitTarget(name="H", target_type=TargetType.HIT_TARGET_ROUND, is_dropped=True)
    assert TargetBuilder.build(hit, ctx)[0].translation[2] == 0.0


def test_target_height_is_absolute(make_ctx):
    ctx = make_ctx((PLATFORM,))
    target = HitTarget(name="T", position=(50.0, 60.0, 12.0), surface="Platform")
    assert TargetBuilder.build(target, ctx)[0].translation == (50.0, 60.0, 12.0)


def test_target_scale_must_be_non_zero(ctx):
    with pytest.raises(GeometryError):
        TargetBuilder.build(HitTarget(name="T", scale=(32.0, 0.0, 32.0)), ctx)


# ---------------------------
# Spinner / Gate
# ---------------------------

def test_spinner_parts(make_ctx):
    ctx = make_ctx((PLATFORM,))
    spinner = Spinner(name="S", position=(100.0, 100.0, 0.0), surface="Platform", material="Steel")
    parts = SpinnerBuilder.build(spinner, ctx)
    assert names(parts) == ["SBracket", "SPlate"]
    assert parts[1].translation == (100.0, 100.0, 40.0 + 60.0)
    assert names(SpinnerBuilder.build(Spinner(name="S", show_bracket=False), ctx)) == ["SPlate"]


@pytest.mark.parametrize("gate_type", list(GateType))
def test_gate_wire_per_type(ctx, gate_type):
    parts = GateBuilder.build(Gate(name="G", gate_type=gate_type), ctx)
    assert names(parts) == ["GBracket", "GWire"]
    assert parts[1].mesh.triangle_count > 0


def test_gate_length_must_be_positive(ctx):
    with pytest.raises(GeometryError):
        GateBuilder.build(Gate(name="G", length=0.0), ctx)


# ---------------------------
# Flasher
# ---------------------------

def test_flasher_tint_and_placement(ctx):
    flasher = Flasher(name="F", position=(150.0, 150.0, 0.0), drag_points=square(), height=80.0,
                      color=(255, 0, 0), alpha=50.0, image_a="flash")
    (part,) = FlasherBuilder.build(flasher, ctx)
    assert part.color_tint == pytest.approx((1.0, 0.0, 0.0, 0.5))
    assert part.translation == (150.0, 150.0, 80.0)
    assert part.texture_name == "flash"
    us = [uv[0] for uv in part.mesh.uvs]
    assert min(us) == pytest.approx(0.0) and max(us) == pytest.approx(1.0)


def test_flasher_needs_three_points(ctx):
    flasher = Flasher(name="F", drag_points=(DragPoint(0.0, 0.0), DragPoint(10.0, 0.0)))
    with pytest.raises(GeometryError) as err:
        FlasherBuilder.build(flasher, ctx)
    assert err.value.code == "GEO003"


# ---------------------------
# Primitive
# ---------------------------

TRIANGLE = (
    (0.0, 0.0, 0.0, 0.0, 0.0, 1.0, 0.0, 0.0),
    (10.0, 0.0, 0.0, 0.0, 0.0, 1.0, 1.0, 0.0),
    (0.0, 10.0, 0.0, 0.0, 0.0, 1.0, 0.0, 1.0),
)


def test_primitive_is_scaled_and_translated(ctx):
    primitive = Primitive(name="P", position=(5.0, 6.0, 7.0), scale=(2.0, 2.0, 2.0),
                          vertices=TRIANGLE, indices=(0, 2, 1))
    (part,) = PrimitiveBuilder.build(primitive, ctx)
    assert part.translation == (5.0, 6.0, 7.0)
    assert max(p[0] for p in part.mesh.positions) == pytest.approx(20.0)
    assert not part.is_playfield
    # winding follows the authored normals
    a, b, c = (part.mesh.positions[i] for i in part.mesh.indices)
    cross_z = (b[0] - a[0]) * (c[1] - a[1]) - (b[1] - a[1]) * (c[0] - a[0])
    assert cross_z > 0.0


def test_playfield_primitive_is_flagged(ctx):
    primitive = Primitive(name="Playfield_Mesh", vertices=TRIANGLE, indices=(0, 1, 2))
    assert PrimitiveBuilder.build(primitive, ctx)[0].is_playfield


@pytest.mark.parametrize("indices", [(), (0, 1), (0, 1, 9)])
def test_malformed_primitives_are_rejected(ctx, indices):
    with pytest.raises(GeometryError) as err:
        PrimitiveBuilder.build(Primitive(name="P", vertices=TRIANGLE, indices=indices), ctx)
    assert err.value.code == "GEO001"


# ---------------------------
# Ball
# ---------------------------

def test_ball_sphere_at_its_centre(ctx):
    ball = Ball(name="Captive", position=(400.0, 900.0, 25.0), radius=25.0, material="Steel")
    (part,) = BallBuilder.build(ball, ctx)
    assert part.name == "Captive"
    assert part.translation == (400.0, 900.0, 25.0)
    assert part.material_name == "Steel"
    assert part.metallic_override == 1.0
    assert part.color_tint is None
    for p, n in zip(part.mesh.positions, part.mesh.normals):
        assert math.hypot(*p) == pytest.approx(25.0)
        assert p[0] * n[0] + p[1] * n[1] + p[2] * n[2] > 0.0


def test_ball_triangles_face_outwards(ctx):
    (part,) = BallBuilder.build(Ball(name="B", radius=10.0), ctx)
    mesh = part.mesh
    assert mesh.triangle_count > 0
    for t in range(0, len(mesh.indices), 3):
        a, b, c = (mesh.positions[i] for i in mesh.indices[t:t + 3])
        ab = [b[k] - a[k] for k in range(3)]
        ac = [c[k] - a[k] for k in range(3)]
        cross = (ab[1] * ac[2] - ab[2] * ac[1], ab[2] * ac[0] - ab[0] * ac[2], ab[0] * ac[1] - ab[1] * ac[0])
        centre = [(a[k] + b[k] + c[k]) / 3.0 for k in range(3)]
        assert sum(cross[k] * centre[k] for k in range(3)) > 0.0


def test_ball_colour_and_decal(ctx):
    ball = Ball(name="B", color=(255, 0, 0), image_decal="logo", decal_mode=True)
    (part,) = BallBuilder.build(ball, ctx)
    assert part.color_tint == pytest.approx((1.0, 0.0, 0.0, 1.0))
    assert part.texture_name == "logo"

    scratches = Ball(name="B", image_decal="scratches")
    assert BallBuilder.build(scratches, ctx)[0].texture_name is None


def test_ball_radius_must_be_positive(ctx):
    with pytest.raises(GeometryError) as err:
        BallBuilder.build(Ball(name="B", radius=0.0), ctx)
    assert err.value.code == "GEO002"
