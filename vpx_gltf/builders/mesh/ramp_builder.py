# -*- coding: utf-8 -*-
"""
坡道网格构建器

- 平面坡道：地板 + 可选左右侧壁，宽度从底到顶插值，高度沿路径长度插值
- 金属线坡道（1-4 根线）：沿偏移曲线扫掠圆管
"""

from typing import List, NamedTuple, Tuple

from .base_builder import BuildContext, MeshBuilder, transmission_factor
from ...core.exceptions import GeometryError
from ...core.geometry import compute_normals, dot3, face_normal, merge_meshes, sweep_tube
from ...core.schema import Mesh, MeshPart, Ramp, RampImageAlignment, RampType, Vec2
from ...core.splines import RenderVertex, detail_level_to_accuracy, get_rg_vertex_3d
from ...writers.audit_writer import ErrorCode


RAMP_DETAIL_LEVEL = 10.0
WIRE_SEGMENTS = 8
WIRE_RAISE = 3.0


class RampOutline(NamedTuple):
    """Offset outline of a ramp centre curve"""
    right: List[Vec2]
    left: List[Vec2]
    middle: List[Vec2]
    heights: List[float]
    ratios: List[float]  # 1 at the bottom end, 0 at the top end


def ramp_outline(ramp: Ramp, vertices: List[RenderVertex], include_width: bool) -> RampOutline:
    """
    Offset the centre curve to both sides.

    Corner normals are mitred: the two neighbouring edges are shifted
    outwards and intersected, so the ramp keeps its width through bends.
    Wire ramps use the wire spacing instead of the authored widths.
    """
    count = len(vertices)
    lengths = [0.0]
    for i in range(1, count):
        a, b = vertices[i - 1], vertices[i]
        lengths.append(lengths[-1] + ((b.x - a.x) ** 2 + (b.y - a.y) ** 2) ** 0.5)
    total = lengths[-1]

    if ramp.ramp_type is RampType.ONE_WIRE:
        fixed_width = ramp.wire_diameter
    else:
        fixed_width = ramp.wire_distance_x

    out = RampOutline([], [], [], [], [])
    for i in range(count):
        vmid = vertices[i]
        vprev = vertices[i - 1] if i > 0 else vmid
        vnext = vertices[i + 1] if i < count - 1 else vmid

        # 邻边右旋法线
        v1n = _unit(vprev.y - vmid.y, vmid.x - vprev.x)
        v2n = _unit(vmid.y - vnext.y, vnext.x - vmid.x)

        if i == 0:
            normal = v2n
        elif i == count - 1:
            normal = v1n
        elif abs(v1n[0] - v2n[0]) < 1e-4 and abs(v1n[1] - v2n[1]) < 1e-4:
            normal = v1n
        else:
            normal = _mitre(vprev, vmid, vnext, v1n, v2n)

        pct = lengths[i] / total if total > 0.0 else 0.0
        if include_width:
            width = ramp.width_bottom + (ramp.width_top - ramp.width_bottom) * pct
        else:
            width = fixed_width
        half = width * 0.5

        out.right.append((vmid.x + normal[0] * half, vmid.y + normal[1] * half))
        out.left.append((vmid.x - normal[0] * half, vmid.y - normal[1] * half))
        out.middle.append((vmid.x, vmid.y))
        out.heights.append(vmid.z + pct * (ramp.height_top - ramp.height_bottom) + ramp.height_bottom)
        out.ratios.append(1.0 - pct)
    return out


def _unit(x: float, y: float) -> Vec2:
    length = (x * x + y * y) ** 0.5
    if length <= 0.0:
        return (0.0, 0.0)
    return (x / length, y / length)


def _mitre(vprev, vmid, vnext, v1n: Vec2, v2n: Vec2) -> Vec2:
    """Intersection of the two edges shifted out along their normals, relative to vmid"""
    a = vprev.y - vmid.y
    b = vmid.x - vprev.x
    c = a * (v1n[0] - vprev.x) + b * (v1n[1] - vprev.y)

    d = vnext.y - vmid.y
    e = vmid.x - vnext.x
    f = d * (v2n[0] - vnext.x) + e * (v2n[1] - vnext.y)

    det = a * e - b * d
    if abs(det) < 1e-12:
        return v1n
    inv = 1.0 / det
    ix = (b * f - e * c) * inv
    iy = (c * d - a * f) * inv
    return (vmid.x - ix, vmid.y - iy)


def _strip(rail_a, rail_b, z_a, z_b, uv_a, uv_b) -> Mesh:
    """Two rails -> quad strip, triangles (2i, 2i+1, 2i+3), (2i, 2i+3, 2i+2)"""
    mesh = Mesh()
    for i in range(len(rail_a)):
        mesh.positions.append((rail_a[i][0], rail_a[i][1], z_a[i]))
        mesh.positions.append((rail_b[i][0], rail_b[i][1], z_b[i]))
        mesh.uvs.append(uv_a[i])
        mesh.uvs.append(uv_b[i])
    for i in range(len(rail_a) - 1):
        mesh.indices.extend((2 * i, 2 * i + 1, 2 * i + 3, 2 * i, 2 * i + 3, 2 * i + 2))
    mesh.normals = compute_normals(mesh.positions, mesh.indices)
    return mesh


def _face_towards(mesh: Mesh, direction) -> Mesh:
    """Flip every triangle when the summed face normal points away from direction"""
    total = [0.0, 0.0, 0.0]
    idx = mesh.indices
    for t in range(0, len(idx), 3):
        n = face_normal(mesh.positions[idx[t]], mesh.positions[idx[t + 1]], mesh.positions[idx[t + 2]])
        total[0] += n[0]
        total[1] += n[1]
        total[2] += n[2]
    if dot3(total, direction) < 0.0:
        mesh.indices = [idx[t + k] for t in range(0, len(idx), 3) for k in (0, 2, 1)]
        mesh.normals = compute_normals(mesh.positions, mesh.indices)
    return mesh


class RampBuilder(MeshBuilder):
    """坡道构建器"""

    @staticmethod
    def build(ramp: Ramp, ctx: BuildContext) -> List[MeshPart]:
        if ramp.width_bottom == 0.0 and ramp.width_top == 0.0:
            raise GeometryError("ramp has zero width at both ends", code=ErrorCode.GEO002)
        if len(ramp.drag_points) < 2:
            raise GeometryError(
                f"ramp path needs at least 2 drag points, got {len(ramp.drag_points)}",
                code=ErrorCode.GEO003)

        vertices = get_rg_vertex_3d(ramp.drag_points, detail_level_to_accuracy(RAMP_DETAIL_LEVEL))
        if len(vertices) < 2:
            raise GeometryError("ramp path collapses to a single point", code=ErrorCode.GEO003)

        if ramp.ramp_type is RampType.FLAT:
            mesh = RampBuilder._flat(ramp, vertices, ctx)
        else:
            mesh = RampBuilder._wires(ramp, vertices)

        part = MeshBuilder.part(ramp, ramp.name, mesh, ramp.material, ramp.image,
                                transmission_factor=transmission_factor(ramp.disable_lighting_below))
        return MeshBuilder.visible_parts([part])

    @staticmethod
    def _flat(ramp: Ramp, vertices: List[RenderVertex], ctx: BuildContext) -> Mesh:
        outline = ramp_outline(ramp, vertices, include_width=True)
        count = len(vertices)
        cfg = ctx.config

        if ramp.image_alignment is RampImageAlignment.WORLD:
            inv_w = 1.0 / ((cfg.right - cfg.left) or 1.0)
            inv_h = 1.0 / ((cfg.bottom - cfg.top) or 1.0)
            uv_right = [(p[0] * inv_w, p[1] * inv_h) for p in outline.right]
            uv_left = [(p[0] * inv_w, p[1] * inv_h) for p in outline.left]
        else:
            uv_right = [(1.0, r) for r in outline.ratios]
            uv_left = [(0.0, r) for r in outline.ratios]

        floor = _face_towards(
            _strip(outline.right, outline.left, outline.heights, outline.heights, uv_right, uv_left),
            (0.0, 0.0, 1.0))
        meshes = [floor]

        for rail, wall_height, tu in (
            (outline.right, ramp.right_wall_height_visible, 1.0),
            (outline.left, ramp.left_wall_height_visible, 0.0),
        ):
            if wall_height <= 0.0:
                continue
            tops = [h + wall_height for h in outline.heights]
            if ramp.image_walls:
                uv = [(tu, r) for r in outline.ratios]
            else:
                uv = [(0.0, 0.0)] * count
            wall = _strip(rail, rail, outline.heights, tops, uv, uv)
            # 侧壁朝外
            mid = count // 2
            outward = (rail[mid][0] - outline.middle[mid][0], rail[mid][1] - outline.middle[mid][1], 0.0)
            meshes.append(_face_towards(wall, outward))

        return merge_meshes(meshes)

    @staticmethod
    def _wires(ramp: Ramp, vertices: List[RenderVertex]) -> Mesh:
        outline = ramp_outline(ramp, vertices, include_width=False)
        radius = ramp.wire_diameter * 0.5
        upper = ramp.wire_distance_y * 0.5

        def path(rail, raise_by) -> List[Tuple[float, float, float]]:
            return [(p[0], p[1], h + raise_by) for p, h in zip(rail, outline.heights)]

        kind = ramp.ramp_type
        if kind is RampType.ONE_WIRE:
            paths = [path(outline.middle, 0.0)]
        else:
            paths = [path(outline.right, WIRE_RAISE), path(outline.left, WIRE_RAISE)]
            if kind in (RampType.THREE_WIRE_LEFT, RampType.FOUR_WIRE):
                paths.append(path(outline.left, upper))
            if kind in (RampType.THREE_WIRE_RIGHT, RampType.FOUR_WIRE):
                paths.append(path(outline.right, upper))

        return merge_meshes([sweep_tube(p, radius, WIRE_SEGMENTS) for p in paths])
