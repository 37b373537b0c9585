import dataclasses
import struct

import pytest
from pygltflib import GLTF2

from vpx_gltf import export_glb
from vpx_gltf.config.constants import GLB_MAGIC, IMPLICIT_PLAYFIELD_NAME
from vpx_gltf.core.schema import Ball, Primitive, TableModel, Wall
from vpx_gltf.exporters.glb_exporter import audit_path_for
from vpx_gltf.export_processor import has_explicit_playfield
from vpx_gltf.validators.structure_checker import GlbStructureChecker


QUAD_VERTICES = (
    (0.0, 0.0, 0.0, 0.0, 0.0, 1.0, 0.0, 0.0),
    (952.0, 0.0, 0.0, 0.0, 0.0, 1.0, 1.0, 0.0),
    (952.0, 2162.0, 0.0, 0.0, 0.0, 1.0, 1.0, 1.0),
    (0.0, 2162.0, 0.0, 0.0, 0.0, 1.0, 0.0, 1.0),
)


def load(path):
    gltf = GLTF2().load_binary(str(path))
    return gltf, gltf.binary_blob()


def node_names(gltf):
    return [n.name for n in gltf.nodes]


def test_round_trip_through_pygltflib(table_model, tmp_path):
    path = tmp_path / "table.glb"
    result = export_glb(table_model, output_path=str(path))
    assert result.files == [str(path)]
    assert path.read_bytes() == result.data

    gltf, blob = load(path)
    assert gltf.asset.version == "2.0"
    assert gltf.scenes[gltf.scene].name == "Table"
    assert "KHR_lights_punctual" in gltf.extensionsUsed
    assert len(gltf.cameras) == 3
    assert len(gltf.extensions["KHR_lights_punctual"]["lights"]) == 3

    names = node_names(gltf)
    for expected in ("Wall1Top", "Wall1Side", "Ramp1", "LeftFlipperBase", "LeftFlipperRubber", "Bulb1_bulb", "Bulb1_socket",
                     "TableLight0", "gi_left", "Layer_1", "Layer_Walls", "FssCamera"):
        assert expected in names

    for accessor in gltf.accessors:
        view = gltf.bufferViews[accessor.bufferView]
        assert view.byteOffset + view.byteLength <= len(blob)
        assert accessor.count > 0


def test_glb_header_and_chunks(table_model):
    data = export_glb(table_model).data
    magic, version, total = struct.unpack_from("<III", data, 0)
    assert (magic, version, total) == (GLB_MAGIC, 2, len(data))

    json_length, json_type = struct.unpack_from("<II", data, 12)
    assert json_type == 0x4E4F534A
    assert json_length % 4 == 0
    bin_length, bin_type = struct.unpack_from("<II", data, 20 + json_length)
    assert bin_type == 0x004E4942
    assert 28 + json_length + bin_length == len(data)

    report = GlbStructureChecker().check_bytes(data)
    assert GlbStructureChecker.is_valid(report)
    assert [c["type"] for c in report["chunks"]] == ["JSON", "BIN"]


def test_light_at_playfield_level_is_nudged(table_model, tmp_path):
    path = tmp_path / "table.glb"
    export_glb(table_model, output_path=str(path))
    gltf, _ = load(path)
    bulb = next(n for n in gltf.nodes if n.name == "Bulb1_bulb")
    assert bulb.translation[1] == pytest.approx(0.010, abs=1e-6)
    gi = next(n for n in gltf.nodes if n.name == "gi_left")
    assert gi.translation[1] == pytest.approx(0.010, abs=1e-6)


def test_layers_group_their_members(table_model, tmp_path):
    path = tmp_path / "table.glb"
    export_glb(table_model, output_path=str(path))
    gltf, _ = load(path)
    by_name = {n.name: n for n in gltf.nodes}
    layer1 = [gltf.nodes[i].name for i in by_name["Layer_1"].children]
    assert layer1 == ["Wall1Top", "Wall1Side", "OnWallTop", "OnWallSide"]
    assert [gltf.nodes[i].name for i in by_name["Layer_Walls"].children] == ["Wall2Top", "Wall2Side"]
    assert [gltf.nodes[i].name for i in by_name["Layer_GI"].children] == ["gi_left"]


def test_transmission_extension_follows_materials(table_model):
    with_dlb = export_glb(table_model).data
    report = GlbStructureChecker().check_bytes(with_dlb)
    assert "KHR_materials_transmission" in report["document"]["extensionsUsed"]

    objects = tuple(dataclasses.replace(o, disable_lighting_below=None) if isinstance(o, Wall) else o
                    for o in table_model.objects)
    plain = export_glb(dataclasses.replace(table_model, objects=objects)).data
    report = GlbStructureChecker().check_bytes(plain)
    assert report["document"]["extensionsUsed"] == ["KHR_lights_punctual"]


def test_implicit_playfield_is_appended_last(table_model):
    assert not has_explicit_playfield(table_model)
    document = GlbStructureChecker().check_bytes(export_glb(table_model).data)["document"]
    mesh_nodes = [n["name"] for n in document["nodes"] if "mesh" in n]
    assert mesh_nodes[-1] == IMPLICIT_PLAYFIELD_NAME
    assert mesh_nodes.count(IMPLICIT_PLAYFIELD_NAME) == 1

    playfield = next(n for n in document["nodes"] if n["name"] == IMPLICIT_PLAYFIELD_NAME)
    primitive = document["meshes"][playfield["mesh"]]["primitives"][0]
    material = document["materials"][primitive["material"]]
    assert material["pbrMetallicRoughness"]["baseColorTexture"] == {"index": 0}
    assert document["images"][0]["mimeType"] == "image/png"


def test_explicit_playfield_primitive_replaces_implicit(table_model):
    explicit = Primitive(name="playfield_mesh", vertices=QUAD_VERTICES, indices=(0, 1, 2, 0, 2, 3),
                         material="Playfield", image="pf_image")
    model = dataclasses.replace(table_model, objects=(explicit,) + table_model.objects)
    assert has_explicit_playfield(model)

    document = GlbStructureChecker().check_bytes(export_glb(model).data)["document"]
    mesh_nodes = [n["name"] for n in document["nodes"] if "mesh" in n]
    assert mesh_nodes.count("playfield_mesh") == 1
    assert mesh_nodes[0] == "playfield_mesh"


def test_ball_is_exported_as_metallic_sphere(table_model):
    ball = Ball(name="CaptiveBall", position=(476.0, 1000.0, 25.0), radius=25.0)
    model = dataclasses.replace(table_model, objects=table_model.objects + (ball,))
    document = GlbStructureChecker().check_bytes(export_glb(model).data)["document"]
    node = next(n for n in document["nodes"] if n["name"] == "CaptiveBall")
    assert node["translation"] == pytest.approx([476.0 * 0.00053975, 25.0 * 0.00053975, 1000.0 * 0.00053975])
    primitive = document["meshes"][node["mesh"]]["primitives"][0]
    assert document["materials"][primitive["material"]]["pbrMetallicRoughness"]["metallicFactor"] == 1.0


def test_serial_and_parallel_output_match(table_model):
    serial = export_glb(table_model, {"parallel": False})
    parallel = export_glb(table_model, {"parallel": True, "max_workers": 2})
    assert serial.data == parallel.data
    assert serial.audit.codes() == parallel.audit.codes()


def test_export_is_deterministic(table_model):
    assert export_glb(table_model).data == export_glb(table_model).data


def test_audit_file_is_written(table_model, tmp_path):
    bad_wall = Wall(name="Broken", drag_points=table_model.objects[0].drag_points[:2])
    model = dataclasses.replace(table_model, objects=table_model.objects + (bad_wall,))
    path = tmp_path / "out" / "table.glb"

    result = export_glb(model, {"write_audit": True}, output_path=str(path))
    audit_path = tmp_path / "out" / "table.audit.log"
    assert result.files == [str(path), str(audit_path)]
    assert "GEO003" in result.audit.codes()
    text = audit_path.read_text(encoding="utf-8")
    assert "GEO003" in text and "Broken" in text


def test_audit_path_for():
    assert audit_path_for("/tmp/a/table.glb") == "/tmp/a/table.audit.log"
    assert audit_path_for("table.GLB") == "table.audit.log"
    assert audit_path_for("table") == "table.audit.log"


def test_empty_table_still_exports():
    data = export_glb(TableModel()).data
    report = GlbStructureChecker().check_bytes(data)
    assert GlbStructureChecker.is_valid(report)
    names = [n["name"] for n in report["document"]["nodes"]]
    assert names[0] == IMPLICIT_PLAYFIELD_NAME
    assert "DesktopCamera" in names


def test_unknown_setting_is_rejected(table_model):
    with pytest.raises(ValueError):
        export_glb(table_model, {"no_such_option": 1})


def test_structure_checker_reads_files(table_model, tmp_path):
    path = tmp_path / "table.glb"
    export_glb(table_model, output_path=str(path))
    report = GlbStructureChecker().check_file(str(path))
    assert report["filepath"] == str(path)
    assert GlbStructureChecker.is_valid(report)

    truncated = tmp_path / "broken.glb"
    truncated.write_bytes(path.read_bytes()[:40])
    assert not GlbStructureChecker.is_valid(GlbStructureChecker().check_file(str(truncated)))
    assert GlbStructureChecker().check_file(str(tmp_path / "missing.glb"))["errors"]
