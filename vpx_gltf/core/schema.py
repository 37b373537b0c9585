# File: core/schema.py
# Purpose: VPX table object model and export data structures (dataclass)
# Notes:
# - TableObject variants are frozen: generators derive new meshes, never mutate input
# - One variant per object kind, dispatched exhaustively by export_dispatcher
# - Mesh / MeshPart are the per-export mutable outputs
# - AuditEntry records warnings collected during an export pass

from dataclasses import dataclass, field
from typing import ClassVar, List, Optional, Tuple
from enum import Enum

from ..config.constants import (
    DEFAULT_GLOBAL_EMISSION_SCALE,
    DEFAULT_LIGHT_EMISSION_SCALE,
    DEFAULT_LIGHT_HEIGHT,
    DEFAULT_LIGHT_RANGE,
)


Vec2 = Tuple[float, float]
Vec3 = Tuple[float, float, float]
Color = Tuple[int, int, int]
RGBA = Tuple[float, float, float, float]


# ==================== 枚举类型 ====================

class ObjectKind(Enum):
    """Table object kind"""
    WALL = "wall"
    RAMP = "ramp"
    RUBBER = "rubber"
    FLASHER = "flasher"
    FLIPPER = "flipper"
    SPINNER = "spinner"
    BUMPER = "bumper"
    TARGET = "target"
    GATE = "gate"
    TRIGGER = "trigger"
    LIGHT = "light"
    PLUNGER = "plunger"
    KICKER = "kicker"
    DECAL = "decal"
    PRIMITIVE = "primitive"
    PLAYFIELD = "playfield"
    BALL = "ball"


class RampType(Enum):
    FLAT = "flat"
    FOUR_WIRE = "four_wire"
    TWO_WIRE = "two_wire"
    THREE_WIRE_LEFT = "three_wire_left"
    THREE_WIRE_RIGHT = "three_wire_right"
    ONE_WIRE = "one_wire"


class RampImageAlignment(Enum):
    WORLD = "world"
    WRAP = "wrap"


class TriggerShape(Enum):
    NONE = "none"
    WIRE_A = "wire_a"
    STAR = "star"
    WIRE_B = "wire_b"
    BUTTON = "button"
    WIRE_C = "wire_c"
    WIRE_D = "wire_d"
    INDER = "inder"


class KickerType(Enum):
    INVISIBLE = "invisible"
    HOLE = "hole"
    CUP = "cup"
    HOLE_SIMPLE = "hole_simple"
    WILLIAMS = "williams"
    GOTTLIEB = "gottlieb"
    CUP2 = "cup2"


class PlungerType(Enum):
    MODERN = "modern"
    FLAT = "flat"
    CUSTOM = "custom"


class TargetType(Enum):
    DROP_TARGET_BEVELED = "drop_target_beveled"
    DROP_TARGET_SIMPLE = "drop_target_simple"
    DROP_TARGET_FLAT_SIMPLE = "drop_target_flat_simple"
    HIT_TARGET_ROUND = "hit_target_round"
    HIT_TARGET_RECTANGLE = "hit_target_rectangle"
    HIT_FAT_TARGET_RECTANGLE = "hit_fat_target_rectangle"
    HIT_FAT_TARGET_SQUARE = "hit_fat_target_square"
    HIT_TARGET_SLIM = "hit_target_slim"
    HIT_FAT_TARGET_SLIM = "hit_fat_target_slim"


class GateType(Enum):
    WIRE_W = "wire_w"
    WIRE_RECTANGLE = "wire_rectangle"
    PLATE = "plate"
    LONG_PLATE = "long_plate"


class DecalType(Enum):
    TEXT = "text"
    IMAGE = "image"


class MaterialType(Enum):
    BASIC = "basic"
    METAL = "metal"


class ViewLayoutMode(Enum):
    LEGACY = "legacy"
    CAMERA = "camera"
    WINDOW = "window"


class CameraMode(Enum):
    """View camera exported for each cabinet layout"""
    DESKTOP = "DesktopCamera"
    FULLSCREEN = "FullscreenCamera"
    FSS = "FssCamera"


# ==================== Table objects ====================

@dataclass(frozen=True)
class DragPoint:
    """Authored outline point"""
    x: float
    y: float
    z: float = 0.0
    smooth: bool = False
    is_slingshot: bool = False
    has_auto_texture: bool = True
    tex_coord: float = 0.0


@dataclass(frozen=True)
class TableObject:
    """
    Fields shared by every table object.

    position is the object's anchor (centre for most kinds); rotation is the
    Z rotation in degrees; scale is the per-axis size multiplier. surface names
    the wall/ramp the object sits on (empty = playfield).
    """
    kind: ClassVar[ObjectKind]

    name: str = ""
    position: Vec3 = (0.0, 0.0, 0.0)
    rotation: float = 0.0
    scale: Vec3 = (1.0, 1.0, 1.0)
    is_visible: bool = True
    surface: str = ""
    material: str = ""
    image: str = ""
    editor_layer: Optional[int] = None
    editor_layer_name: Optional[str] = None
    part_group_name: Optional[str] = None


@dataclass(frozen=True)
class Wall(TableObject):
    kind: ClassVar[ObjectKind] = ObjectKind.WALL

    drag_points: Tuple[DragPoint, ...] = ()
    height_bottom: float = 0.0
    height_top: float = 50.0
    side_material: str = ""
    side_image: str = ""
    is_top_bottom_visible: bool = True
    is_side_visible: bool = True
    disable_lighting_below: Optional[float] = None


@dataclass(frozen=True)
class Ramp(TableObject):
    kind: ClassVar[ObjectKind] = ObjectKind.RAMP

    drag_points: Tuple[DragPoint, ...] = ()
    height_bottom: float = 0.0
    height_top: float = 50.0
    width_bottom: float = 75.0
    width_top: float = 60.0
    ramp_type: RampType = RampType.FLAT
    image_alignment: RampImageAlignment = RampImageAlignment.WORLD
    image_walls: bool = True
    left_wall_height_visible: float = 0.0
    right_wall_height_visible: float = 0.0
    wire_diameter: float = 8.0
    wire_distance_x: float = 38.0
    wire_distance_y: float = 88.0
    disable_lighting_below: Optional[float] = None


@dataclass(frozen=True)
class Rubber(TableObject):
    kind: ClassVar[ObjectKind] = ObjectKind.RUBBER

    drag_points: Tuple[DragPoint, ...] = ()
    height: float = 25.0
    thickness: float = 8.0
    rot_x: float = 0.0
    rot_y: float = 0.0


@dataclass(frozen=True)
class Flasher(TableObject):
    kind: ClassVar[ObjectKind] = ObjectKind.FLASHER

    drag_points: Tuple[DragPoint, ...] = ()
    height: float = 50.0
    rot_x: float = 0.0
    rot_y: float = 0.0
    color: Color = (255, 255, 255)
    alpha: float = 100.0
    image_a: str = ""
    image_b: str = ""


@dataclass(frozen=True)
class Flipper(TableObject):
    kind: ClassVar[ObjectKind] = ObjectKind.FLIPPER

    base_radius: float = 21.5
    end_radius: float = 13.0
    flipper_radius_max: float = 130.0
    height: float = 50.0
    start_angle: float = 121.0
    end_angle: float = 70.0
    rubber_material: str = ""
    rubber_thickness: float = 7.0
    rubber_height: float = 19.0
    rubber_width: float = 24.0


@dataclass(frozen=True)
class Spinner(TableObject):
    kind: ClassVar[ObjectKind] = ObjectKind.SPINNER

    height: float = 60.0
    length: float = 80.0
    show_bracket: bool = True


@dataclass(frozen=True)
class Bumper(TableObject):
    kind: ClassVar[ObjectKind] = ObjectKind.BUMPER

    radius: float = 45.0
    height_scale: float = 90.0
    base_material: str = ""
    socket_material: str = ""
    ring_material: str = ""
    cap_material: str = ""
    is_base_visible: bool = True
    is_socket_visible: bool = True
    is_ring_visible: bool = True
    is_cap_visible: bool = True


@dataclass(frozen=True)
class HitTarget(TableObject):
    kind: ClassVar[ObjectKind] = ObjectKind.TARGET

    scale: Vec3 = (32.0, 32.0, 32.0)
    target_type: TargetType = TargetType.DROP_TARGET_SIMPLE
    is_dropped: bool = False
    disable_lighting_below: Optional[float] = None


@dataclass(frozen=True)
class Gate(TableObject):
    kind: ClassVar[ObjectKind] = ObjectKind.GATE

    gate_type: GateType = GateType.WIRE_W
    length: float = 100.0
    height: float = 50.0
    show_bracket: bool = True


@dataclass(frozen=True)
class Trigger(TableObject):
    kind: ClassVar[ObjectKind] = ObjectKind.TRIGGER

    shape: TriggerShape = TriggerShape.WIRE_A
    radius: float = 25.0
    scale_x: float = 1.0
    scale_y: float = 1.0
    wire_thickness: float = 0.0


@dataclass(frozen=True)
class Light(TableObject):
    kind: ClassVar[ObjectKind] = ObjectKind.LIGHT

    height: Optional[float] = None
    falloff_radius: float = 50.0
    intensity: float = 1.0
    color: Color = (255, 169, 87)
    is_backglass: bool = False
    show_bulb_mesh: bool = False
    mesh_radius: float = 20.0
    drag_points: Tuple[DragPoint, ...] = ()


@dataclass(frozen=True)
class Plunger(TableObject):
    kind: ClassVar[ObjectKind] = ObjectKind.PLUNGER

    plunger_type: PlungerType = PlungerType.MODERN
    width: float = 25.0
    height: float = 20.0
    z_adjust: float = 0.0
    stroke: float = 80.0
    tip_shape: str = "0 .34; 2 .6; 3 .64; 5 .7; 7 .84; 8 .88; 9 .9; 11 .92; 14 .92; 39 .84"
    rod_diam: float = 0.6
    ring_gap: float = 2.0
    ring_diam: float = 0.94
    ring_width: float = 3.0
    spring_diam: float = 0.77
    spring_gauge: float = 1.38
    spring_loops: float = 8.0
    spring_end_loops: float = 2.5


@dataclass(frozen=True)
class Kicker(TableObject):
    kind: ClassVar[ObjectKind] = ObjectKind.KICKER

    kicker_type: KickerType = KickerType.HOLE
    radius: float = 25.0


@dataclass(frozen=True)
class Decal(TableObject):
    kind: ClassVar[ObjectKind] = ObjectKind.DECAL

    decal_type: DecalType = DecalType.IMAGE
    width: float = 100.0
    height: float = 100.0
    text: str = ""
    is_backglass: bool = False


@dataclass(frozen=True)
class Primitive(TableObject):
    """
    Authored mesh. position is the world translation, scale the size, and
    rot_and_tra holds rotX/Y/Z (0-2), translation (3-5), object rotX/Y/Z (6-8).
    """
    kind: ClassVar[ObjectKind] = ObjectKind.PRIMITIVE

    rot_and_tra: Tuple[float, ...] = (0.0,) * 9
    vertices: Tuple[Tuple[float, ...], ...] = ()  # (x, y, z, nx, ny, nz, tu, tv)
    indices: Tuple[int, ...] = ()
    disable_lighting_below: Optional[float] = None


@dataclass(frozen=True)
class Playfield(TableObject):
    """Explicitly authored playfield surface (a quad over the given bounds)"""
    kind: ClassVar[ObjectKind] = ObjectKind.PLAYFIELD

    left: float = 0.0
    top: float = 0.0
    right: float = 1000.0
    bottom: float = 2000.0


@dataclass(frozen=True)
class Ball(TableObject):
    """Captive ball: position is the ball centre, image_decal the logo/scratches image"""
    kind: ClassVar[ObjectKind] = ObjectKind.BALL

    radius: float = 25.0
    color: Color = (255, 255, 255)
    image_decal: str = ""
    decal_mode: bool = False


# ==================== Table level data ====================

@dataclass(frozen=True)
class ViewSetup:
    """One cabinet view layout (desktop / fullscreen / FSS)"""
    layout_mode: ViewLayoutMode = ViewLayoutMode.LEGACY
    fov: float = 45.0
    inclination: float = 0.0
    layback: float = 0.0
    rotation: float = 0.0
    offset_x: float = 0.0
    offset_y: float = 0.0
    offset_z: float = 0.0
    scale_x: float = 1.0
    scale_y: float = 1.0
    scale_z: float = 1.0


FSS_DEFAULT_VIEW = ViewSetup(
    fov=45.0, inclination=52.0,
    offset_x=0.0, offset_y=30.0, offset_z=-50.0,
    scale_x=1.2, scale_y=1.1, scale_z=1.0,
)


@dataclass(frozen=True)
class TableConfig:
    left: float = 0.0
    top: float = 0.0
    right: float = 952.0
    bottom: float = 2162.0
    glass_top_height: float = 400.0
    glass_bottom_height: float = 210.0
    playfield_material: str = ""
    image: str = ""
    playfield_reflection_strength: float = 0.0
    light_height: float = DEFAULT_LIGHT_HEIGHT
    light_range: float = DEFAULT_LIGHT_RANGE
    light_emission_scale: float = DEFAULT_LIGHT_EMISSION_SCALE
    global_emission_scale: float = DEFAULT_GLOBAL_EMISSION_SCALE
    env_emission_scale: float = 1.0
    light_ambient: Color = (25, 25, 25)
    light0_emission: Color = (255, 255, 255)
    view_desktop: ViewSetup = ViewSetup()
    view_fullscreen: ViewSetup = ViewSetup()
    view_fss: ViewSetup = FSS_DEFAULT_VIEW


@dataclass(frozen=True)
class MaterialDef:
    """Source material definition"""
    name: str
    base_color: Color = (255, 255, 255)
    material_type: MaterialType = MaterialType.BASIC
    roughness: float = 0.5
    opacity: float = 1.0
    opacity_active: bool = False


@dataclass(frozen=True)
class ImageAsset:
    """Decoded image asset keyed by name"""
    name: str
    path: str = ""
    data: bytes = b""


@dataclass(frozen=True)
class TableModel:
    config: TableConfig = TableConfig()
    objects: Tuple[TableObject, ...] = ()
    materials: Tuple[MaterialDef, ...] = ()
    images: Tuple[ImageAsset, ...] = ()


# ==================== Export data ====================

@dataclass
class Mesh:
    """
    Generated mesh in source units (VPU, Z-up).
    Triangles wind counter-clockwise around their outward normal.
    """
    positions: List[Vec3] = field(default_factory=list)
    normals: List[Vec3] = field(default_factory=list)
    uvs: List[Vec2] = field(default_factory=list)
    indices: List[int] = field(default_factory=list)  # flat triangle list

    @property
    def vertex_count(self) -> int:
        return len(self.positions)

    @property
    def triangle_count(self) -> int:
        return len(self.indices) // 3

    def is_empty(self) -> bool:
        return not self.positions or not self.indices

    def append(self, other: "Mesh") -> None:
        """Append another mesh, re-basing its indices"""
        base = len(self.positions)
        self.positions.extend(other.positions)
        self.normals.extend(other.normals)
        self.uvs.extend(other.uvs)
        self.indices.extend(i + base for i in other.indices)


@dataclass
class MeshPart:
    """One exported node: a mesh plus its material/placement metadata"""
    name: str
    mesh: Mesh
    material_name: Optional[str] = None
    texture_name: Optional[str] = None
    color_tint: Optional[RGBA] = None
    transmission_factor: Optional[float] = None
    metallic_override: Optional[float] = None
    layer_name: Optional[str] = None
    part_group_name: Optional[str] = None
    translation: Optional[Vec3] = None  # source units
    is_playfield: bool = False


@dataclass
class AuditEntry:
    """审计日志条目"""
    code: str
    message: str
    severity: str = "WARNING"
    object_name: Optional[str] = None
    timestamp: str = ""


@dataclass
class GenerationResult:
    """Output of one object's generator, returned across process boundaries"""
    index: int
    object_name: str
    parts: List[MeshPart] = field(default_factory=list)
    issues: List[AuditEntry] = field(default_factory=list)


@dataclass
class CameraDef:
    """Perspective camera in export space (meters, Y-up)"""
    name: str
    translation: Vec3
    rotation: Tuple[float, float, float, float]  # quaternion (x, y, z, w)
    yfov: float
    aspect_ratio: float
    znear: float
    zfar: float


@dataclass
class PointLightDef:
    """KHR_lights_punctual point light in export space"""
    name: str
    translation: Vec3  # meters, Y-up
    color: Tuple[float, float, float]
    intensity: float
    range: Optional[float] = None
    layer_name: Optional[str] = None
