import pytest

from vpx_gltf.core.coordinate_converter import CoordinateConverter
from vpx_gltf.core.exceptions import GeometryError
from vpx_gltf.core.geometry import (
    cap_polygon,
    dot3,
    extrude_sides,
    face_normal,
    make_box,
    signed_area,
    sub3,
    sweep_tube,
    triangulate_polygon,
)


L_SHAPE = [(0.0, 0.0), (4.0, 0.0), (4.0, 1.0), (1.0, 1.0), (1.0, 3.0), (0.0, 3.0)]


def triangle_areas(points, indices):
    return [signed_area([points[indices[t]], points[indices[t + 1]], points[indices[t + 2]]])
            for t in range(0, len(indices), 3)]


@pytest.mark.parametrize("outline", [L_SHAPE, list(reversed(L_SHAPE))])
def test_triangulation_is_counter_clockwise(outline):
    tri = triangulate_polygon(outline)
    assert len(tri) == 3 * (len(outline) - 2)
    assert all(a > 0.0 for a in triangle_areas(outline, tri))
    assert sum(triangle_areas(outline, tri)) == pytest.approx(abs(signed_area(outline)))


def test_triangulation_rejects_degenerate_outlines():
    with pytest.raises(GeometryError) as err:
        triangulate_polygon([(0.0, 0.0), (1.0, 1.0)])
    assert err.value.code == "GEO003"

    with pytest.raises(GeometryError) as err:
        triangulate_polygon([(0.0, 0.0), (1.0, 1.0), (2.0, 2.0)])
    assert err.value.code == "GEO004"


def test_comb_outline_with_collinear_points():
    # U-shaped notch plus a collinear point on the bottom edge
    comb = [(0.0, 0.0), (3.0, 0.0), (6.0, 0.0), (6.0, 4.0), (4.0, 4.0), (4.0, 1.0),
            (2.0, 1.0), (2.0, 4.0), (0.0, 4.0)]
    tri = triangulate_polygon(list(reversed(comb)))
    areas = triangle_areas(list(reversed(comb)), tri)
    assert all(a > 0.0 for a in areas)
    assert sum(areas) == pytest.approx(abs(signed_area(comb)))
    assert max(tri) < len(comb)


def test_bottom_cap_faces_down():
    mesh = cap_polygon(L_SHAPE, 0.0, facing_up=False)
    for t in range(0, len(mesh.indices), 3):
        a, b, c = (mesh.positions[i] for i in mesh.indices[t:t + 3])
        assert face_normal(a, b, c)[2] < 0.0


def _centroid(points):
    n = len(points)
    return tuple(sum(p[k] for p in points) / n for k in range(3))


@pytest.mark.parametrize("mesh_factory", [
    lambda: extrude_sides(L_SHAPE, 0.0, 2.0),
    lambda: make_box((-1.0, -2.0, 0.0), (1.0, 2.0, 3.0)),
    lambda: sweep_tube([(0.0, 0.0, 0.0), (10.0, 0.0, 0.0), (10.0, 10.0, 0.0)], 1.0),
])
def test_winding_survives_coordinate_conversion(mesh_factory):
    mesh = mesh_factory()
    conv = CoordinateConverter(1.0)
    positions = conv.convert_positions(mesh.positions)
    normals = conv.convert_normals(mesh.normals)
    indices = conv.convert_indices(mesh.indices)

    for t in range(0, len(indices), 3):
        i0, i1, i2 = indices[t:t + 3]
        fn = face_normal(positions[i0], positions[i1], positions[i2])
        vn = tuple(normals[i0][k] + normals[i1][k] + normals[i2][k] for k in range(3))
        assert dot3(fn, vn) > 0.0


def test_box_normals_point_away_from_centre():
    mesh = make_box((-1.0, -1.0, -1.0), (1.0, 1.0, 1.0))
    conv = CoordinateConverter(1.0)
    positions = conv.convert_positions(mesh.positions)
    indices = conv.convert_indices(mesh.indices)
    centre = _centroid(positions)
    for t in range(0, len(indices), 3):
        tri = [positions[i] for i in indices[t:t + 3]]
        fn = face_normal(*tri)
        assert dot3(fn, sub3(_centroid(tri), centre)) > 0.0
