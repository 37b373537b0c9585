# -*- coding: utf-8 -*-
"""
VPX glTF Exporter - Geometry Library

- Signed-area orientation test and counter-clockwise normalisation
- Earcut triangulation of simple (possibly concave) polygons
- Smooth vertex normals, winding re-alignment against authored normals
- Extrusion (side walls + caps), lathe / revolution, tube sweep
- Boxes, quads, discs and UV spheres

All functions work in source units with the Z axis up. Triangles are emitted
counter-clockwise around their outward normal.
"""

from __future__ import annotations
import math
from typing import Callable, List, Optional, Sequence, Tuple

import mapbox_earcut as earcut
import numpy as np

from .exceptions import GeometryError
from .schema import Mesh, Vec2, Vec3


AREA_EPSILON = 1e-6
CROSS_EPSILON = 1e-9


# ====== Vector helpers ======

def sub3(a: Sequence[float], b: Sequence[float]) -> Vec3:
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def cross3(a: Sequence[float], b: Sequence[float]) -> Vec3:
    return (
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    )


def dot3(a: Sequence[float], b: Sequence[float]) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def normalize3(v: Sequence[float], fallback: Vec3 = (0.0, 0.0, 1.0)) -> Vec3:
    length = math.sqrt(v[0] * v[0] + v[1] * v[1] + v[2] * v[2])
    if length <= 0.0:
        return fallback
    return (v[0] / length, v[1] / length, v[2] / length)


def normalize2(v: Sequence[float]) -> Vec2:
    length = math.hypot(v[0], v[1])
    if length <= 0.0:
        return (0.0, 0.0)
    return (v[0] / length, v[1] / length)


def face_normal(a: Sequence[float], b: Sequence[float], c: Sequence[float]) -> Vec3:
    """Unnormalised right-hand-rule normal of triangle (a, b, c)"""
    return cross3(sub3(b, a), sub3(c, a))


# ====== Orientation ======

def signed_area(points: Sequence[Sequence[float]]) -> float:
    """Shoelace signed area in the XY plane; positive = counter-clockwise"""
    n = len(points)
    area = 0.0
    for i in range(n):
        x1, y1 = points[i][0], points[i][1]
        x2, y2 = points[(i + 1) % n][0], points[(i + 1) % n][1]
        area += x1 * y2 - x2 * y1
    return area * 0.5


def ensure_counter_clockwise(points: Sequence, *parallel: Sequence) -> Tuple[list, ...]:
    """
    Return the polygon (and any per-point parallel lists) in counter-clockwise
    order, independent of the authored order.
    """
    if signed_area(points) >= 0.0:
        return (list(points),) + tuple(list(p) for p in parallel)
    return (list(reversed(points)),) + tuple(list(reversed(p)) for p in parallel)


def _cross2(a: Sequence[float], b: Sequence[float], c: Sequence[float]) -> float:
    return (b[0] - a[0]) * (c[1] - a[1]) - (b[1] - a[1]) * (c[0] - a[0])


# ====== Triangulation ======

def triangulate_polygon(points: Sequence[Sequence[float]]) -> List[int]:
    """
    Earcut triangulation (mapbox_earcut) of a simple, possibly concave polygon.

    Every returned triangle (indices into ``points``) is counter-clockwise,
    independent of the authored order. Raises GeometryError for fewer than
    3 points, zero area, or outlines earcut cannot resolve.
    """
    n = len(points)
    if n < 3:
        raise GeometryError(f"polygon needs at least 3 points, got {n}", code="GEO003")

    if abs(signed_area(points)) < AREA_EPSILON:
        raise GeometryError("polygon has zero area (collinear or coincident points)", code="GEO004")

    coords = np.array([(p[0], p[1]) for p in points], dtype=np.float64)
    ring_end = np.array([n], dtype=np.uint32)
    raw = earcut.triangulate_float64(coords, ring_end)

    triangles: List[int] = []
    for t in range(0, len(raw), 3):
        i0, i1, i2 = int(raw[t]), int(raw[t + 1]), int(raw[t + 2])
        cross = _cross2(points[i0], points[i1], points[i2])
        if cross > CROSS_EPSILON:
            triangles.extend((i0, i1, i2))
        elif cross < -CROSS_EPSILON:
            triangles.extend((i0, i2, i1))

    if not triangles:
        raise GeometryError("polygon could not be triangulated (self-intersecting outline?)",
                            code="GEO004")
    return triangles


# ====== Normals / winding ======

def compute_normals(positions: Sequence[Vec3], indices: Sequence[int]) -> List[Vec3]:
    """Smooth vertex normals: sum of normalised face normals, renormalised"""
    acc = [[0.0, 0.0, 0.0] for _ in positions]
    for t in range(0, len(indices) - 2, 3):
        i0, i1, i2 = indices[t], indices[t + 1], indices[t + 2]
        n = face_normal(positions[i0], positions[i1], positions[i2])
        length = math.sqrt(dot3(n, n))
        if length <= 0.0:
            continue
        n = (n[0] / length, n[1] / length, n[2] / length)
        for i in (i0, i1, i2):
            acc[i][0] += n[0]
            acc[i][1] += n[1]
            acc[i][2] += n[2]
    return [normalize3(v) for v in acc]


def align_winding_to_normals(positions: Sequence[Vec3], normals: Sequence[Vec3],
                             indices: Sequence[int]) -> List[int]:
    """
    Re-order every triangle so its right-hand-rule normal agrees with the
    authored vertex normals. Triangles without a usable normal keep their order.
    """
    out: List[int] = []
    for t in range(0, len(indices) - 2, 3):
        i0, i1, i2 = indices[t], indices[t + 1], indices[t + 2]
        fn = face_normal(positions[i0], positions[i1], positions[i2])
        vn = (
            normals[i0][0] + normals[i1][0] + normals[i2][0],
            normals[i0][1] + normals[i1][1] + normals[i2][1],
            normals[i0][2] + normals[i1][2] + normals[i2][2],
        )
        if dot3(fn, vn) < 0.0:
            out.extend((i0, i2, i1))
        else:
            out.extend((i0, i1, i2))
    return out


def oriented_mesh(positions: List[Vec3], normals: List[Vec3], uvs: List[Vec2],
                  indices: Sequence[int]) -> Mesh:
    return Mesh(positions=positions, normals=normals, uvs=uvs,
                indices=align_winding_to_normals(positions, normals, indices))


# ====== Builders ======

def cap_polygon(points: Sequence[Sequence[float]], z: float,
                uv_fn: Optional[Callable[[float, float], Vec2]] = None,
                facing_up: bool = True) -> Mesh:
    """Flat triangulated cap at height z, facing +Z (or -Z)"""
    tri = triangulate_polygon(points)
    nz = 1.0 if facing_up else -1.0
    positions = [(p[0], p[1], z) for p in points]
    normals = [(0.0, 0.0, nz)] * len(points)
    uvs = [uv_fn(p[0], p[1]) if uv_fn else (0.0, 0.0) for p in points]
    if not facing_up:
        tri = [tri[i + k] for i in range(0, len(tri), 3) for k in (0, 2, 1)]
    return Mesh(positions=positions, normals=list(normals), uvs=uvs, indices=list(tri))


def extrude_sides(points: Sequence[Sequence[float]], bottom: float, top: float,
                  smooth: Optional[Sequence[bool]] = None,
                  tex_u: Optional[Sequence[float]] = None) -> Mesh:
    """
    Side walls of a closed counter-clockwise outline: four vertices per edge
    (p1 bottom, p2 bottom, p2 top, p1 top). Edge normals are averaged at
    smooth points; tv is 1 at the bottom and 0 at the top.
    """
    count = len(points)
    smooth = smooth or [False] * count
    edge_normals = []
    for i in range(count):
        p1, p2 = points[i], points[(i + 1) % count]
        edge_normals.append(normalize2((p2[1] - p1[1], -(p2[0] - p1[0]))))

    mesh = Mesh()
    for i in range(count):
        nxt = (i + 1) % count
        prev = (i - 1) % count
        n0 = normalize2((edge_normals[prev][0] + edge_normals[i][0],
                         edge_normals[prev][1] + edge_normals[i][1])) if smooth[i] else edge_normals[i]
        n1 = normalize2((edge_normals[i][0] + edge_normals[nxt][0],
                         edge_normals[i][1] + edge_normals[nxt][1])) if smooth[nxt] else edge_normals[i]
        p1, p2 = points[i], points[nxt]
        u1 = tex_u[i] if tex_u else 0.0
        u2 = tex_u[nxt] if tex_u else 0.0
        if tex_u and nxt == 0 and u2 <= u1:
            u2 += 1.0
        base = len(mesh.positions)
        mesh.positions.extend([
            (p1[0], p1[1], bottom), (p2[0], p2[1], bottom),
            (p2[0], p2[1], top), (p1[0], p1[1], top),
        ])
        mesh.normals.extend([(n0[0], n0[1], 0.0), (n1[0], n1[1], 0.0),
                             (n1[0], n1[1], 0.0), (n0[0], n0[1], 0.0)])
        mesh.uvs.extend([(u1, 1.0), (u2, 1.0), (u2, 0.0), (u1, 0.0)])
        mesh.indices.extend([base, base + 1, base + 2, base, base + 2, base + 3])
    return mesh


def revolve_profile(profile: Sequence[Tuple[float, float]], segments: int,
                    axis: str = 'z', tv_range: Tuple[float, float] = (0.0, 1.0),
                    u_offset: float = 0.0) -> Mesh:
    """
    Lathe: revolve (axial, radius) pairs about the given axis ('z' or 'y').

    The outward normal of each profile span is (d_axial, -d_radius), so a
    profile walked towards increasing axial position faces outwards.
    """
    if len(profile) < 2:
        raise GeometryError("lathe profile needs at least 2 points", code="GEO003")
    if segments < 3:
        raise GeometryError("lathe needs at least 3 segments", code="GEO003")

    span_normals = []
    for k in range(len(profile) - 1):
        dh = profile[k + 1][0] - profile[k][0]
        dr = profile[k + 1][1] - profile[k][1]
        span_normals.append(normalize2((dh, -dr)))
    point_normals = []
    for k in range(len(profile)):
        if k == 0:
            point_normals.append(span_normals[0])
        elif k == len(profile) - 1:
            point_normals.append(span_normals[-1])
        else:
            a, b = span_normals[k - 1], span_normals[k]
            avg = normalize2((a[0] + b[0], a[1] + b[1]))
            point_normals.append(avg if avg != (0.0, 0.0) else a)

    total = sum(math.hypot(profile[k + 1][0] - profile[k][0], profile[k + 1][1] - profile[k][1])
                for k in range(len(profile) - 1)) or 1.0
    tv0, tv1 = tv_range

    mesh = Mesh()
    run = 0.0
    ring = segments + 1
    for k, (h, r) in enumerate(profile):
        if k > 0:
            run += math.hypot(h - profile[k - 1][0], r - profile[k - 1][1])
        tv = tv0 + (tv1 - tv0) * run / total
        n_radial, n_axial = point_normals[k]
        for j in range(ring):
            theta = 2.0 * math.pi * j / segments
            c, s = math.cos(theta), math.sin(theta)
            if axis == 'z':
                mesh.positions.append((r * c, r * s, h))
                mesh.normals.append(normalize3((n_radial * c, n_radial * s, n_axial)))
            else:
                mesh.positions.append((r * c, h, r * s))
                mesh.normals.append(normalize3((n_radial * c, n_axial, n_radial * s)))
            mesh.uvs.append((u_offset + j / segments, tv))

    indices = []
    for k in range(len(profile) - 1):
        for j in range(segments):
            a = k * ring + j
            b = a + 1
            c = a + ring + 1
            d = a + ring
            indices.extend((a, b, c, a, c, d))
    mesh.indices = align_winding_to_normals(mesh.positions, mesh.normals, indices)
    return mesh


def _frame_for(tangent: Vec3) -> Tuple[Vec3, Vec3]:
    ref = (0.0, 0.0, 1.0) if abs(tangent[2]) < 0.9 else (1.0, 0.0, 0.0)
    side = normalize3(cross3(tangent, ref))
    up = normalize3(cross3(side, tangent))
    return side, up


def sweep_tube(path: Sequence[Vec3], radius: float, segments: int = 8,
               closed: bool = False, tv_range: Tuple[float, float] = (0.0, 1.0)) -> Mesh:
    """Circular tube swept along a 3D polyline (open tubes are not capped)"""
    count = len(path)
    if count < 2:
        raise GeometryError("tube path needs at least 2 points", code="GEO003")
    if radius <= 0.0:
        raise GeometryError(f"tube radius must be positive, got {radius}", code="GEO002")

    mesh = Mesh()
    ring = segments + 1
    for i in range(count):
        if closed:
            prev, nxt = path[(i - 1) % count], path[(i + 1) % count]
        else:
            prev, nxt = path[max(i - 1, 0)], path[min(i + 1, count - 1)]
        tangent = normalize3(sub3(nxt, prev), fallback=(1.0, 0.0, 0.0))
        side, up = _frame_for(tangent)
        tv = tv_range[0] + (tv_range[1] - tv_range[0]) * i / max(count - 1, 1)
        p = path[i]
        for j in range(ring):
            theta = 2.0 * math.pi * j / segments
            c, s = math.cos(theta), math.sin(theta)
            n = (side[0] * c + up[0] * s, side[1] * c + up[1] * s, side[2] * c + up[2] * s)
            mesh.positions.append((p[0] + n[0] * radius, p[1] + n[1] * radius, p[2] + n[2] * radius))
            mesh.normals.append(n)
            mesh.uvs.append((j / segments, tv))

    rings = count if closed else count - 1
    indices = []
    for i in range(rings):
        i2 = (i + 1) % count
        for j in range(segments):
            a = i * ring + j
            b = a + 1
            c = i2 * ring + j + 1
            d = i2 * ring + j
            indices.extend((a, b, c, a, c, d))
    mesh.indices = align_winding_to_normals(mesh.positions, mesh.normals, indices)
    return mesh


def make_box(min_corner: Vec3, max_corner: Vec3) -> Mesh:
    """Axis-aligned box, 4 vertices per face, outward normals"""
    x0, y0, z0 = min_corner
    x1, y1, z1 = max_corner
    faces = [
        ((1.0, 0.0, 0.0), [(x1, y0, z0), (x1, y1, z0), (x1, y1, z1), (x1, y0, z1)]),
        ((-1.0, 0.0, 0.0), [(x0, y1, z0), (x0, y0, z0), (x0, y0, z1), (x0, y1, z1)]),
        ((0.0, 1.0, 0.0), [(x1, y1, z0), (x0, y1, z0), (x0, y1, z1), (x1, y1, z1)]),
        ((0.0, -1.0, 0.0), [(x0, y0, z0), (x1, y0, z0), (x1, y0, z1), (x0, y0, z1)]),
        ((0.0, 0.0, 1.0), [(x0, y0, z1), (x1, y0, z1), (x1, y1, z1), (x0, y1, z1)]),
        ((0.0, 0.0, -1.0), [(x0, y1, z0), (x1, y1, z0), (x1, y0, z0), (x0, y0, z0)]),
    ]
    mesh = Mesh()
    for normal, corners in faces:
        base = len(mesh.positions)
        mesh.positions.extend(corners)
        mesh.normals.extend([normal] * 4)
        mesh.uvs.extend([(0.0, 1.0), (1.0, 1.0), (1.0, 0.0), (0.0, 0.0)])
        mesh.indices.extend([base, base + 1, base + 2, base, base + 2, base + 3])
    mesh.indices = align_winding_to_normals(mesh.positions, mesh.normals, mesh.indices)
    return mesh


def make_quad(corners: Sequence[Vec3], uvs: Sequence[Vec2], normal: Vec3 = (0.0, 0.0, 1.0)) -> Mesh:
    """
    Quad from four corners in strip order (0, 1, 2, 3) emitted as
    triangles [0, 1, 2] and [2, 1, 3].
    """
    positions = [tuple(c) for c in corners]
    normals = [normal] * 4
    indices = align_winding_to_normals(positions, normals, [0, 1, 2, 2, 1, 3])
    return Mesh(positions=positions, normals=list(normals), uvs=list(uvs), indices=indices)


def make_disc(radius: float, segments: int, z: float = 0.0, facing_up: bool = True) -> Mesh:
    points = [(radius * math.cos(2.0 * math.pi * j / segments),
               radius * math.sin(2.0 * math.pi * j / segments)) for j in range(segments)]
    return cap_polygon(points, z,
                       uv_fn=lambda x, y: (0.5 + 0.5 * x / radius, 0.5 + 0.5 * y / radius),
                       facing_up=facing_up)


def make_uv_sphere(radius: float, rings: int = 16, segments: int = 32) -> Mesh:
    """Latitude/longitude sphere about the origin; the seam column is duplicated for UVs"""
    if radius <= 0.0:
        raise GeometryError(f"sphere radius must be positive, got {radius}", code="GEO002")
    mesh = Mesh()
    for k in range(rings + 1):
        theta = math.pi * k / rings
        for j in range(segments + 1):
            phi = 2.0 * math.pi * j / segments
            n = (math.sin(theta) * math.cos(phi), math.sin(theta) * math.sin(phi), math.cos(theta))
            mesh.positions.append((n[0] * radius, n[1] * radius, n[2] * radius))
            mesh.normals.append(n)
            mesh.uvs.append((j / segments, k / rings))

    row = segments + 1
    for k in range(rings):
        for j in range(segments):
            a = k * row + j
            b, c, d = a + row, a + row + 1, a + 1
            if k < rings - 1:
                mesh.indices.extend((a, b, c))
            if k > 0:
                mesh.indices.extend((a, c, d))
    return mesh


def transform_mesh(mesh: Mesh, fn: Callable[[Vec3], Vec3],
                   normal_fn: Optional[Callable[[Vec3], Vec3]] = None) -> Mesh:
    """
    New mesh with positions mapped by fn (and normals by normal_fn). Winding is
    re-aligned afterwards, so mirroring maps are safe.
    """
    positions = [fn(p) for p in mesh.positions]
    normals = [normalize3(normal_fn(n)) if normal_fn else n for n in mesh.normals]
    return oriented_mesh(positions, normals, list(mesh.uvs), mesh.indices)


def merge_meshes(meshes: Sequence[Mesh]) -> Mesh:
    out = Mesh()
    for m in meshes:
        out.append(m)
    return out


def bounds(points: Sequence[Sequence[float]]) -> Tuple[Tuple[float, ...], Tuple[float, ...]]:
    dims = len(points[0])
    lo = tuple(min(p[d] for p in points) for d in range(dims))
    hi = tuple(max(p[d] for p in points) for d in range(dims))
    return lo, hi
