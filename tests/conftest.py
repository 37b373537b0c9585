import io

import pytest
from PIL import Image

from vpx_gltf.builders.mesh import BuildContext
from vpx_gltf.config.export_settings import ExportSettings, GenerationOptions
from vpx_gltf.core.schema import (
    DragPoint,
    Flipper,
    ImageAsset,
    Light,
    MaterialDef,
    MaterialType,
    Ramp,
    TableConfig,
    TableModel,
    Trigger,
    TriggerShape,
    Wall,
)
from vpx_gltf.core.surface import SurfaceLookup


def square(x0=100.0, y0=100.0, size=100.0, clockwise=False):
    pts = [(x0, y0), (x0 + size, y0), (x0 + size, y0 + size), (x0, y0 + size)]
    if clockwise:
        pts.reverse()
    return tuple(DragPoint(x, y) for x, y in pts)


def png_bytes(size=(4, 4), color=(200, 30, 30)):
    out = io.BytesIO()
    Image.new("RGB", size, color).save(out, format="PNG")
    return out.getvalue()


def bmp_bytes(size=(4, 4), color=(30, 200, 30)):
    out = io.BytesIO()
    Image.new("RGB", size, color).save(out, format="BMP")
    return out.getvalue()


@pytest.fixture
def config():
    return TableConfig(playfield_material="Playfield", image="pf_image")


@pytest.fixture
def settings():
    return ExportSettings()


@pytest.fixture
def make_ctx(config):
    def _make(objects=(), include_invisible=False, name="obj"):
        return BuildContext(config, SurfaceLookup.from_objects(objects),
                            GenerationOptions(include_invisible), name)
    return _make


@pytest.fixture
def ctx(make_ctx):
    return make_ctx()


@pytest.fixture
def materials():
    return (
        MaterialDef("Playfield", base_color=(128, 100, 60), roughness=0.2),
        MaterialDef("Plastic", base_color=(255, 0, 0), roughness=0.7,
                    opacity=0.5, opacity_active=True),
        MaterialDef("Steel", base_color=(200, 200, 210), material_type=MaterialType.METAL,
                    roughness=0.9),
    )


@pytest.fixture
def table_model(config, materials):
    objects = (
        Wall(name="Wall1", drag_points=square(), material="Plastic", editor_layer=0,
             disable_lighting_below=0.5),
        Wall(name="Wall2", drag_points=square(400.0, 400.0, 80.0, clockwise=True),
             material="Plastic", editor_layer_name="Walls"),
        Ramp(name="Ramp1", drag_points=(DragPoint(300.0, 1500.0), DragPoint(300.0, 1000.0),
                                        DragPoint(350.0, 600.0)),
             height_bottom=0.0, height_top=60.0, material="Plastic"),
        Flipper(name="LeftFlipper", position=(300.0, 1800.0, 0.0), material="Steel",
                rubber_material="Plastic"),
        Trigger(name="Trigger1", position=(500.0, 1200.0, 0.0), shape=TriggerShape.STAR,
                material="Steel"),
        Light(name="Bulb1", position=(600.0, 900.0, 0.0), show_bulb_mesh=True,
              material="Plastic"),
        Light(name="gi_left", position=(100.0, 1700.0, 0.0), intensity=5.0,
              editor_layer_name="GI"),
        Wall(name="OnWall", drag_points=square(700.0, 300.0, 50.0), surface="Wall1",
             material="Plastic", editor_layer=0),
    )
    images = (ImageAsset("pf_image", data=png_bytes()),)
    return TableModel(config=config, objects=objects, materials=materials, images=images)
