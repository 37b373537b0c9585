import math

import pytest

from vpx_gltf.builders.scene import CameraBuilder, LightingBuilder
from vpx_gltf.builders.scene.camera_builder import fit_camera_to_vertices, pitch_from_inclination, table_corners
from vpx_gltf.builders.scene.lighting_builder import is_gi_light
from vpx_gltf.config.constants import VPU_TO_METERS
from vpx_gltf.config.export_settings import ExportSettings
from vpx_gltf.core.exceptions import ExportIntegrityError
from vpx_gltf.core.geometry import make_box
from vpx_gltf.core.schema import (
    DragPoint,
    Light,
    Mesh,
    MeshPart,
    TableConfig,
    TableModel,
    ViewLayoutMode,
    ViewSetup,
    Wall,
)
from vpx_gltf.writers.audit_writer import AuditLogger
from vpx_gltf.writers.scene_writer import SceneWriter


# ---------------------------
# Cameras
# ---------------------------

def test_three_cameras(config, settings):
    cameras = CameraBuilder.build_all(config, settings)
    assert [c.name for c in cameras] == ["DesktopCamera", "FullscreenCamera", "FssCamera"]
    for cam in cameras:
        assert cam.znear == 0.01 and cam.zfar == 100.0
        assert cam.aspect_ratio == pytest.approx(16.0 / 9.0)
        # camera is above the playfield
        assert cam.translation[1] > 0.0


def test_accurate_fit_falls_back_with_warning(config):
    settings = ExportSettings.from_dict({"camera_fit_mode": "accurate"})
    audit = AuditLogger()
    accurate = CameraBuilder.build_all(config, settings, audit)
    assert audit.codes() == ["CAM001"]
    simple = CameraBuilder.build_all(config, ExportSettings())
    assert [c.translation for c in accurate] == [c.translation for c in simple]


def test_pitch_from_inclination():
    assert pitch_from_inclination(0.0) == pytest.approx(math.pi / 2)
    assert pitch_from_inclination(100.0) == pytest.approx(0.0)


def test_fit_covers_wider_table_with_more_distance(config):
    narrow = fit_camera_to_vertices(table_corners(config), 16 / 9, 0.0, 0.5, 45.0)
    wide = fit_camera_to_vertices(table_corners(TableConfig(right=2000.0)), 16 / 9, 0.0, 0.5, 45.0)
    assert wide.z >= narrow.z
    assert len(table_corners(config)) == 8


def test_fit_layback_shears_raised_corners(config):
    flat = fit_camera_to_vertices(table_corners(config), 16 / 9, 0.0, 0.0, 45.0)
    sheared = fit_camera_to_vertices(table_corners(config), 16 / 9, 0.0, 0.0, 45.0, layback=30.0)
    assert sheared.y < flat.y
    assert sheared.x == pytest.approx(flat.x)


def test_legacy_scale_moves_camera_back():
    near = TableConfig(view_desktop=ViewSetup(inclination=50.0))
    far = TableConfig(view_desktop=ViewSetup(inclination=50.0, scale_x=2.0, scale_y=2.0))
    settings = ExportSettings()
    a = CameraBuilder.build_all(near, settings)[0]
    b = CameraBuilder.build_all(far, settings)[0]
    assert b.translation[1] > a.translation[1]


def test_legacy_fit_ignores_layback():
    upright = TableConfig(view_desktop=ViewSetup(inclination=50.0))
    leaning = TableConfig(view_desktop=ViewSetup(inclination=50.0, layback=30.0))
    settings = ExportSettings()
    a = CameraBuilder.build_all(upright, settings)[0]
    b = CameraBuilder.build_all(leaning, settings)[0]
    assert b.translation == pytest.approx(a.translation)
    assert b.rotation == pytest.approx(a.rotation)


def test_camera_mode_height_offset():
    base = TableConfig(view_desktop=ViewSetup(layout_mode=ViewLayoutMode.CAMERA, inclination=50.0))
    raised = TableConfig(view_desktop=ViewSetup(layout_mode=ViewLayoutMode.CAMERA, inclination=50.0,
                                                offset_z=100.0))
    settings = ExportSettings()
    a = CameraBuilder.build_all(base, settings)[0]
    b = CameraBuilder.build_all(raised, settings)[0]
    assert b.translation[1] - a.translation[1] == pytest.approx(100.0 * VPU_TO_METERS)


# ---------------------------
# Lights
# ---------------------------

def test_table_lights(config, settings):
    lights = LightingBuilder.table_lights(config, settings)
    assert [l.name for l in lights] == ["TableLight0", "TableLight1"]
    assert lights[0].intensity == pytest.approx(1000000.0 * 1.0 * 0.001)
    assert lights[0].range == pytest.approx(3000.0 * VPU_TO_METERS)
    cx = (config.left + config.right) / 2 * VPU_TO_METERS
    assert lights[0].translation[0] == pytest.approx(cx)
    assert lights[0].translation[1] == pytest.approx(config.light_height * VPU_TO_METERS)
    assert lights[1].translation[2] == pytest.approx(config.bottom * 2 / 3 * VPU_TO_METERS)


def test_table_light_range_is_capped(settings):
    lights = LightingBuilder.table_lights(TableConfig(light_range=1e9), settings)
    assert lights[0].range == 100.0


def test_gi_lights(settings):
    objects = (
        Light(name="GI_1", position=(100.0, 200.0, 0.0), intensity=3.0, editor_layer_name="GI",
              drag_points=(DragPoint(100.0, 300.0), DragPoint(160.0, 200.0))),
        Light(name="gi_off", is_visible=False),
        Light(name="gi_back", is_backglass=True),
        Light(name="Insert1"),
        Wall(name="gi_wall"),
    )
    assert [is_gi_light(o) for o in objects] == [True, True, False, False, False]
    (gi,) = LightingBuilder.gi_lights(objects, settings)
    assert gi.name == "GI_1"
    assert gi.intensity == pytest.approx(0.3)
    assert gi.range == pytest.approx(100.0 * VPU_TO_METERS)
    assert gi.translation[1] == pytest.approx(0.010)
    assert gi.layer_name == "Layer_GI"

    hidden = LightingBuilder.gi_lights(objects, ExportSettings.from_dict({"include_invisible": True}))
    assert [l.name for l in hidden] == ["GI_1", "gi_off"]


def test_gi_intensity_is_clamped(settings):
    converter_lights = LightingBuilder.gi_lights([Light(name="gi_hot", intensity=1000.0),
                                                 Light(name="gi_dim", intensity=0.0)], settings)
    assert [l.intensity for l in converter_lights] == [10.0, 0.01]


# ---------------------------
# Scene writer
# ---------------------------

def box_part(name, layer=None, translation=None):
    return MeshPart(name=name, mesh=make_box((0.0, 0.0, 0.0), (10.0, 10.0, 10.0)),
                    layer_name=layer, translation=translation)


def assemble(parts, group_by="layer", **kwargs):
    settings = ExportSettings.from_dict({"group_by": group_by})
    audit = AuditLogger()
    writer = SceneWriter(TableModel(), settings, audit)
    document, binary = writer.assemble(parts, **kwargs)
    return writer, document, binary, audit


def root_names(document):
    return [document["nodes"][i]["name"] for i in document["scenes"][0]["nodes"]]


def test_layer_grouping_order(config, settings):
    parts = [box_part("A", "Layer_1"), box_part("B"), box_part("C", "Layer_Walls"), box_part("D", "Layer_1")]
    lights = LightingBuilder.table_lights(config, settings)
    cameras = CameraBuilder.build_all(config, settings)
    _, document, _, _ = assemble(parts, cameras=cameras, table_lights=lights)

    assert root_names(document) == ["B", "TableLight0", "TableLight1", "Layer_1", "Layer_Walls",
                                    "DesktopCamera", "FullscreenCamera", "FssCamera"]
    layer1 = next(n for n in document["nodes"] if n["name"] == "Layer_1")
    assert [document["nodes"][i]["name"] for i in layer1["children"]] == ["A", "D"]
    assert document["extensionsUsed"] == ["KHR_lights_punctual"]
    assert len(document["extensions"]["KHR_lights_punctual"]["lights"]) == 2


def test_flat_and_part_group_modes():
    parts = [box_part("A", "Layer_1"), box_part("B")]
    _, document, _, audit = assemble(parts, group_by="none")
    assert root_names(document) == ["A", "B"]
    assert audit.entries == []

    _, document, _, audit = assemble(parts, group_by="part_group")
    assert root_names(document) == ["B", "Layer_1"]
    assert audit.codes() == ["SCN001"]


def test_node_translation_is_converted():
    _, document, _, _ = assemble([box_part("A", translation=(100.0, 200.0, 30.0))])
    t = document["nodes"][0]["translation"]
    assert t == pytest.approx([100.0 * VPU_TO_METERS, 30.0 * VPU_TO_METERS, 200.0 * VPU_TO_METERS])


def test_accessors_and_index_type():
    writer, document, binary, _ = assemble([box_part("A")])
    prim = document["meshes"][0]["primitives"][0]
    assert prim["mode"] == 4
    pos = document["accessors"][prim["attributes"]["POSITION"]]
    assert pos["count"] == 24
    assert pos["max"] == pytest.approx([10.0 * VPU_TO_METERS] * 3)
    assert pos["min"] == [0.0, 0.0, 0.0]
    assert document["accessors"][prim["indices"]]["componentType"] == 5123
    assert document["buffers"][0]["byteLength"] == len(binary)
    for view in document["bufferViews"]:
        assert view["byteOffset"] % 4 == 0


def test_large_meshes_use_32bit_indices():
    count = 70000
    mesh = Mesh(positions=[(float(i), 0.0, float(i % 7)) for i in range(count)],
                normals=[(0.0, 0.0, 1.0)] * count,
                uvs=[(0.0, 0.0)] * count,
                indices=[0, 1, count - 1])
    _, document, _, _ = assemble([MeshPart(name="Big", mesh=mesh)])
    prim = document["meshes"][0]["primitives"][0]
    assert document["accessors"][prim["indices"]]["componentType"] == 5125


def test_empty_meshes_are_skipped_with_warning():
    _, document, _, audit = assemble([MeshPart(name="Nothing", mesh=Mesh()), box_part("A")])
    assert root_names(document) == ["A"]
    assert audit.codes() == ["SCN002"]


def test_out_of_range_index_is_fatal():
    broken = box_part("Broken")
    broken.mesh.indices[-1] = 999
    settings = ExportSettings()
    writer = SceneWriter(TableModel(), settings, AuditLogger())
    with pytest.raises(ExportIntegrityError) as err:
        writer.assemble([broken])
    assert "out of range" in str(err.value)


def test_corrupted_document_is_rejected_before_encoding():
    writer, document, binary, _ = assemble([box_part("A")])
    document["accessors"][0]["count"] = 10_000
    with pytest.raises(ExportIntegrityError):
        writer.to_glb(document, binary)
