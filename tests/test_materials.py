import pytest

from conftest import bmp_bytes, png_bytes
from vpx_gltf.config.constants import PLAYFIELD_MATERIAL_NAME
from vpx_gltf.core.io.glb_writer import BufferBuilder
from vpx_gltf.core.schema import ImageAsset, Mesh, MeshPart, TableConfig
from vpx_gltf.writers.audit_writer import AuditLogger
from vpx_gltf.writers.material_writer import MaterialWriter, encode_image, playfield_roughness


def part(name="P", **kwargs):
    return MeshPart(name=name, mesh=Mesh(), **kwargs)


@pytest.fixture
def make_writer(config, materials):
    def _make(images=(), cfg=None):
        audit = AuditLogger()
        writer = MaterialWriter(cfg or config, materials, images, BufferBuilder(), audit)
        return writer, audit
    return _make


def test_base_material_mapping(make_writer):
    writer, _ = make_writer()
    steel = writer.materials[writer.material_index(part(material_name="Steel"))]
    pbr = steel["pbrMetallicRoughness"]
    assert steel["name"] == "Steel"
    assert pbr["metallicFactor"] == 1.0
    assert pbr["roughnessFactor"] == pytest.approx(0.1)
    assert pbr["baseColorFactor"] == pytest.approx([200 / 255, 200 / 255, 210 / 255, 1.0])
    assert steel["doubleSided"] is True
    assert "alphaMode" not in steel

    plastic = writer.materials[writer.material_index(part(material_name="Plastic"))]
    assert plastic["alphaMode"] == "BLEND"
    assert plastic["pbrMetallicRoughness"]["baseColorFactor"][3] == pytest.approx(0.5)


def test_materials_are_shared_case_insensitively(make_writer):
    writer, _ = make_writer()
    a = writer.material_index(part(material_name="Steel"))
    b = writer.material_index(part(material_name="steel"))
    assert a == b
    assert len(writer.materials) == 1


def test_transmission_variants_are_distinct(make_writer):
    writer, _ = make_writer()
    plain = writer.material_index(part(material_name="Steel"))
    t1 = writer.material_index(part(material_name="Steel", transmission_factor=0.15))
    t2 = writer.material_index(part(material_name="Steel", transmission_factor=0.3))
    again = writer.material_index(part(material_name="Steel", transmission_factor=0.15))
    assert len({plain, t1, t2}) == 3
    assert again == t1
    assert writer.materials[t1]["name"] == "Steel_transmission_0.150"
    ext = writer.materials[t2]["extensions"]["KHR_materials_transmission"]
    assert ext["transmissionFactor"] == pytest.approx(0.3)
    assert writer.uses_transmission


def test_tinted_variants(make_writer):
    writer, _ = make_writer()
    bulb = writer.material_index(part(material_name="Steel", color_tint=(1.0, 1.0, 1.0, 0.2)))
    socket = writer.material_index(part(material_name="Steel", color_tint=(0.094, 0.094, 0.094, 1.0),
                                        metallic_override=1.0))
    assert bulb != socket
    assert writer.materials[bulb]["alphaMode"] == "BLEND"
    assert writer.materials[bulb]["pbrMetallicRoughness"]["baseColorFactor"] == [1.0, 1.0, 1.0, 0.2]
    assert writer.materials[socket]["pbrMetallicRoughness"]["metallicFactor"] == 1.0


def test_missing_material_warns_once(make_writer):
    writer, audit = make_writer()
    first = writer.material_index(part(material_name="Nope"))
    writer.material_index(part(material_name="Nope", color_tint=(1.0, 0.0, 0.0, 1.0)))
    assert audit.codes() == ["MAT001"]
    assert writer.materials[first]["pbrMetallicRoughness"]["baseColorFactor"] == [1.0, 1.0, 1.0, 1.0]


def test_part_without_material(make_writer):
    writer, _ = make_writer()
    assert writer.material_index(part()) is None
    assert writer.to_gltf() == {}


def test_non_playfield_textures_warn_once_per_image(make_writer):
    writer, audit = make_writer(images=(ImageAsset("decal", data=png_bytes()),))
    writer.material_index(part("A", material_name="Steel", texture_name="decal"))
    writer.material_index(part("B", material_name="Plastic", texture_name="Decal"))
    assert audit.codes() == ["TEX003"]
    assert writer.textures == []
    assert all("baseColorTexture" not in m["pbrMetallicRoughness"] for m in writer.materials)


def test_playfield_texture_is_embedded(make_writer):
    data = png_bytes()
    writer, audit = make_writer(images=(ImageAsset("pf_image", data=data),))
    index = writer.material_index(part("playfield_mesh", material_name="Playfield",
                                       texture_name="pf_image", is_playfield=True))
    material = writer.materials[index]
    pbr = material["pbrMetallicRoughness"]
    assert pbr["baseColorTexture"] == {"index": 0}
    assert pbr["baseColorFactor"] == [1.0, 1.0, 1.0, 1.0]
    assert writer.images[0]["mimeType"] == "image/png"
    assert writer.samplers == [{"magFilter": 9729, "minFilter": 9987, "wrapS": 10497, "wrapT": 10497}]
    assert writer.buffer.getvalue()[:len(data)] == data
    assert audit.entries == []


def test_playfield_without_material_name(make_writer):
    cfg = TableConfig()
    writer, _ = make_writer(cfg=cfg)
    index = writer.material_index(part("playfield_mesh", is_playfield=True))
    assert writer.materials[index]["name"] == PLAYFIELD_MATERIAL_NAME
    assert writer.materials[index]["pbrMetallicRoughness"]["roughnessFactor"] == 0.5


def test_missing_and_broken_playfield_images(make_writer):
    writer, audit = make_writer()
    index = writer.material_index(part("pf", texture_name="ghost", is_playfield=True))
    assert "baseColorTexture" not in writer.materials[index]["pbrMetallicRoughness"]
    assert audit.codes() == ["TEX001"]

    writer, audit = make_writer(images=(ImageAsset("junk", data=b"not an image at all"),))
    writer.material_index(part("pf", texture_name="junk", is_playfield=True))
    assert audit.codes() == ["TEX002"]
    assert writer.images == []


def test_other_formats_are_transcoded_to_png():
    data, mime = encode_image(ImageAsset("bmp", data=bmp_bytes()))
    assert mime == "image/png"
    assert data.startswith(b"\x89PNG")

    jpeg = b"\xff\xd8\xff\xe0" + b"\x00" * 16
    assert encode_image(ImageAsset("jpg", data=jpeg)) == (jpeg, "image/jpeg")

    with pytest.raises(OSError):
        encode_image(ImageAsset("empty"))


@pytest.mark.parametrize("strength, expected", [
    (0.0, 0.8),
    (0.5, 0.20 - 0.5 * 0.17),
    (1.0, 0.03),
])
def test_playfield_roughness(materials, strength, expected):
    playfield = materials[0]
    assert playfield_roughness(strength, playfield) == pytest.approx(expected)
