"""GeoJSON parsing, feature classification, and mesh generation.

Converts OpenStreetMap-style GeoJSON features into flat triangle meshes in
local meters: road LineStrings become constant-width ribbons, and building,
landuse, water and plaza Polygons become ear-clipped fills. Polygons with
interior rings (courtyards, islands) are filled around their holes with
shapely's constrained Delaunay triangulation.
"""

import json
import re
import warnings
from pathlib import Path

import numpy as np

from .mesh import Mesh, merge_meshes, write_obj, write_stl
from .projection import to_meters_batch
from .ribbon import build_ribbon
from .triangulate import triangulate


# Road widths in meters, keyed by OSM ``highway`` value
ROAD_WIDTHS = {
    "motorway": 10.0,
    "trunk": 10.0,
    "primary": 10.0,
    "secondary": 8.0,
    "residential": 6.0,
    "service": 4.0,
    "footway": 2.5,
    "path": 2.0,
    "default": 6.0,
}

# Mesh name prefix per feature kind
KIND_PREFIXES = {
    "road": "Road",
    "plaza": "Plaza",
    "building": "Building",
    "landuse": "Landuse",
    "water": "WaterBody",
}


class ImportedFeature:
    """One generated mesh and the feature it came from."""

    __slots__ = ("name", "kind", "mesh", "properties")

    def __init__(self, name, kind, mesh, properties=None):
        self.name = name
        self.kind = kind
        self.mesh = mesh
        self.properties = properties or {}

    def __repr__(self):
        return f"ImportedFeature({self.name!r}, kind={self.kind!r}, mesh={self.mesh!r})"


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

_GEOMETRY_TYPES = ("Point", "MultiPoint", "LineString", "MultiLineString",
                   "Polygon", "MultiPolygon", "GeometryCollection")


def _read_geojson(source):
    """Parse a GeoJSON file path, JSON text, or already-parsed object."""
    if isinstance(source, str) and source.lstrip().startswith("{"):
        return json.loads(source)
    if isinstance(source, (str, Path)):
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"GeoJSON file not found: {path}")
        with open(path) as f:
            return json.load(f)
    return source


def _split_geometry(geometry):
    """Yield ``(type, coordinates)`` for every LineString or Polygon part.

    Multi* geometries are split into their parts and GeometryCollections
    are walked recursively. Points and empty parts produce no mesh and are
    dropped here.
    """
    gtype = geometry.get("type", "")
    if gtype == "GeometryCollection":
        for member in geometry.get("geometries") or []:
            if isinstance(member, dict):
                yield from _split_geometry(member)
        return

    coords = geometry.get("coordinates") or []
    if gtype in ("MultiLineString", "MultiPolygon"):
        for part in coords:
            if part:
                yield gtype[len("Multi"):], part
    elif gtype in ("LineString", "Polygon") and coords:
        yield gtype, coords


def _load_geojson(geojson):
    """Load GeoJSON and list its meshable parts.

    Parameters
    ----------
    geojson : str, Path, or dict
        File path, raw GeoJSON text, or parsed GeoJSON object.

    Returns
    -------
    list of (str, list, dict)
        One ``(geometry_type, coordinates, properties)`` entry per
        LineString or Polygon part, in document order. Bare geometries get
        empty properties.
    """
    obj = _read_geojson(geojson)
    if not isinstance(obj, dict):
        raise TypeError(f"Expected dict, str, or Path, got {type(obj)}")

    gtype = obj.get("type")

    if gtype == "FeatureCollection":
        parts = []
        for feature in obj.get("features") or []:
            parts.extend(_load_geojson(feature))
        return parts

    if gtype == "Feature":
        geom = obj.get("geometry")
        if not isinstance(geom, dict):
            return []
        props = obj.get("properties") or {}
        return [(t, c, props) for t, c in _split_geometry(geom)]

    if gtype in _GEOMETRY_TYPES:
        return [(t, c, {}) for t, c in _split_geometry(obj)]

    raise ValueError(f"Unsupported GeoJSON type: {gtype}")


def _label(value):
    """Tag value as a mesh name component, e.g. ``living street`` -> ``living-street``."""
    if value is None:
        return "unknown"
    s = re.sub(r"[^a-zA-Z0-9]+", "-", str(value)).strip("-")
    return s or "unknown"


def _tag(properties, name):
    """Non-empty string tag value or None."""
    value = properties.get(name)
    if value is None or value == "":
        return None
    return str(value)


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def road_width(highway, widths=None):
    """Ribbon width in meters for an OSM ``highway`` value.

    *widths* overrides entries of :data:`ROAD_WIDTHS`; unknown highway
    types fall back to the ``"default"`` entry.
    """
    table = dict(ROAD_WIDTHS)
    if widths:
        table.update(widths)
    return float(table.get(highway, table["default"]))


def classify_feature(geometry_type, properties):
    """Decide what kind of mesh a primitive geometry becomes.

    Parameters
    ----------
    geometry_type : str
        Primitive GeoJSON type (``"LineString"`` or ``"Polygon"``; Multi*
        types should be flattened first).
    properties : dict
        Feature properties (OSM tags).

    Returns
    -------
    str or None
        One of ``"road"``, ``"plaza"``, ``"building"``, ``"landuse"``,
        ``"water"``, or None when the feature is not imported.
    """
    props = properties or {}
    highway = _tag(props, "highway")

    if geometry_type == "LineString":
        return "road" if highway else None

    if geometry_type == "Polygon":
        if highway or _tag(props, "area") == "yes":
            return "plaza"
        if _tag(props, "building"):
            return "building"
        if _tag(props, "landuse") == "grass":
            return "landuse"
        if _tag(props, "natural") or _tag(props, "waterway"):
            return "water"

    return None


# ---------------------------------------------------------------------------
# Coordinate conversion
# ---------------------------------------------------------------------------

def _iter_positions(coords):
    """Yield every [lon, lat, ...] position in a nested coordinate array."""
    if not coords:
        return
    if isinstance(coords[0], (int, float)):
        yield coords
        return
    for c in coords:
        yield from _iter_positions(c)


def _features_origin(parts):
    positions = []
    for _, coords, _ in parts:
        positions.extend(p[:2] for p in _iter_positions(coords))
    if not positions:
        return 0.0, 0.0
    arr = np.asarray(positions, dtype=np.float64)
    lon_min, lat_min = arr.min(axis=0)
    lon_max, lat_max = arr.max(axis=0)
    return float((lat_min + lat_max) / 2.0), float((lon_min + lon_max) / 2.0)


def geojson_origin(geojson):
    """Bounding-box center of all mesh coordinates, as ``(lat, lon)``.

    Points are not imported and do not count.

    Parameters
    ----------
    geojson : str, Path, or dict
        Anything accepted by the importer.

    Returns
    -------
    tuple of float
        ``(0.0, 0.0)`` when the input holds no coordinates.
    """
    return _features_origin(_load_geojson(geojson))


def _project(coords, origin_lat, origin_lon, meters_to_unit):
    return to_meters_batch(coords, origin_lat, origin_lon) * meters_to_unit


# ---------------------------------------------------------------------------
# Mesh generators
# ---------------------------------------------------------------------------

def _open_ring(ring):
    """(N, 2) float64 ring without its GeoJSON closing duplicate."""
    ring = np.asarray(ring, dtype=np.float64).reshape(-1, 2)
    if len(ring) > 3 and np.array_equal(ring[0], ring[-1]):
        ring = ring[:-1]
    return ring


def _fill_with_holes(exterior, holes):
    """Constrained Delaunay fill of an exterior ring with its holes cut out.

    Self-intersecting input is repaired with ``shapely.make_valid`` first,
    which may add vertices where edges cross. Triangles are wound
    counter-clockwise like the ear-clipped fills.
    """
    try:
        import shapely
    except ImportError:
        raise ImportError(
            "shapely >= 2.1 is required to triangulate polygons with holes. "
            "Install with: pip install 'shapely>=2.1'"
        )

    polygon = shapely.Polygon(exterior, holes=holes)
    if not polygon.is_valid:
        parts = shapely.get_parts(shapely.get_parts(shapely.make_valid(polygon)))
        polys = [p for p in parts if p.geom_type == "Polygon" and not p.is_empty]
        if not polys:
            return Mesh.empty()
        polygon = shapely.multipolygons(polys)

    tri_geoms = shapely.get_parts(shapely.constrained_delaunay_triangles(polygon))
    if len(tri_geoms) == 0:
        return Mesh.empty()

    # Each triangle is a closed 4-point ring; shared corners are exact copies
    corners = shapely.get_coordinates(tri_geoms).reshape(-1, 4, 2)[:, :3]
    xy, inverse = np.unique(corners.reshape(-1, 2), axis=0, return_inverse=True)
    tris = inverse.reshape(-1, 3).astype(np.int32)

    a = xy[tris[:, 0]]
    b = xy[tris[:, 1]]
    c = xy[tris[:, 2]]
    cross = (b[:, 0] - a[:, 0]) * (c[:, 1] - a[:, 1]) - (b[:, 1] - a[:, 1]) * (c[:, 0] - a[:, 0])
    cw = cross < 0
    tris[cw] = tris[cw][:, ::-1]

    verts = np.zeros((len(xy), 3), dtype=np.float32)
    verts[:, :2] = xy
    return Mesh(verts, tris)


def _polygon_to_fill_mesh(rings_xy):
    """Triangulate a polygon into a flat fill mesh.

    A polygon without holes is ear-clipped over its exterior ring, so the
    mesh vertices are the ring vertices in input order. Polygons with
    interior rings are filled by :func:`_fill_with_holes` with the holes
    left open.

    Returns
    -------
    mesh : Mesh
    complete : bool
        False when the triangulation stopped early on degenerate input.
    """
    if not rings_xy:
        return Mesh.empty(), True
    exterior = _open_ring(rings_xy[0])
    if len(exterior) < 3:
        return Mesh.empty(), True

    holes = [h for h in map(_open_ring, rings_xy[1:])
             if len(np.unique(h, axis=0)) >= 3]
    if holes and len(np.unique(exterior, axis=0)) >= 3:
        mesh = _fill_with_holes(exterior, holes)
        return mesh, not mesh.is_empty

    tris, complete = triangulate(exterior, return_status=True)
    if not tris:
        return Mesh.empty(), complete

    verts = np.zeros((len(exterior), 3), dtype=np.float32)
    verts[:, :2] = exterior
    return Mesh(verts, np.array(tris, dtype=np.int32)), complete


def import_geojson(geojson, origin_lat=None, origin_lon=None,
                   meters_to_unit=1.0, road_widths=None, merge=False):
    """Convert GeoJSON features to named meshes in local coordinates.

    Parameters
    ----------
    geojson : str, Path, or dict
        File path, GeoJSON text, or parsed GeoJSON object.
    origin_lat, origin_lon : float, optional
        Projection origin in degrees. Defaults to the bounding-box center
        of the input (see :func:`geojson_origin`).
    meters_to_unit : float, optional
        Scale applied to projected meters. Default is 1.0.
    road_widths : dict, optional
        Overrides for :data:`ROAD_WIDTHS`.
    merge : bool, optional
        If True, combine all meshes of the same kind into one feature
        named ``<Prefix>_merged``. Default is False.

    Returns
    -------
    dict
        ``{'features': [ImportedFeature, ...], 'counts': {kind: n},
        'partial': [name, ...]}``. *partial* names the returned features
        whose triangulation stopped early; with ``merge=True`` these are
        the merged features that contain them.

    Notes
    -----
    Area polygons that yield no triangles at all are skipped with a
    warning and do not use up a name.
    """
    parts = _load_geojson(geojson)

    if origin_lat is None or origin_lon is None:
        c_lat, c_lon = _features_origin(parts)
        origin_lat = c_lat if origin_lat is None else origin_lat
        origin_lon = c_lon if origin_lon is None else origin_lon

    counts = {kind: 0 for kind in KIND_PREFIXES}
    imported = []
    partial = []

    for gtype, coords, props in parts:
        kind = classify_feature(gtype, props)
        if kind is None:
            continue

        complete = True
        if kind == "road":
            highway = _tag(props, "highway")
            xy = _project(coords, origin_lat, origin_lon, meters_to_unit)
            mesh = build_ribbon(xy, road_width(highway, road_widths))
            name = f"Road_{_label(highway)}_{counts['road']}"
        else:
            rings = [_project(r, origin_lat, origin_lon, meters_to_unit)
                     for r in coords]
            mesh, complete = _polygon_to_fill_mesh(rings)
            name = f"{KIND_PREFIXES[kind]}_{counts[kind]}"

        if mesh.is_empty:
            if not complete:
                warnings.warn(
                    f"Skipping {kind} polygon that could not be triangulated "
                    "(degenerate or self-intersecting ring).",
                    stacklevel=2,
                )
            continue

        feature = ImportedFeature(name, kind, mesh, props)
        if not complete:
            warnings.warn(
                f"Polygon {name} could not be fully triangulated: "
                f"{mesh.triangle_count} of {mesh.vertex_count - 2} triangles "
                "(degenerate or self-intersecting ring).",
                stacklevel=2,
            )
            partial.append(feature)
        imported.append(feature)
        counts[kind] += 1

    if merge:
        merged = []
        for kind, prefix in KIND_PREFIXES.items():
            meshes = [f.mesh for f in imported if f.kind == kind]
            if meshes:
                merged.append(ImportedFeature(f"{prefix}_merged", kind,
                                              merge_meshes(meshes)))
        imported = merged
        partial_names = list(dict.fromkeys(
            f"{KIND_PREFIXES[f.kind]}_merged" for f in partial))
    else:
        partial_names = [f.name for f in partial]

    return {'features': imported, 'counts': counts, 'partial': partial_names}


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------

_WRITERS = {"obj": write_obj, "stl": write_stl}


def export_meshes(result, folder, fmt="obj"):
    """Write every imported mesh to ``<folder>/Meshes/<name>.<fmt>``.

    Parameters
    ----------
    result : dict or list of ImportedFeature
        Return value of :func:`import_geojson`, or its feature list.
    folder : str or Path
        Output root; created if missing.
    fmt : {'obj', 'stl'}
        Mesh file format.

    Returns
    -------
    list of Path
        Written file paths, in feature order.
    """
    writer = _WRITERS.get(fmt)
    if writer is None:
        raise ValueError(f"Unsupported mesh format: {fmt!r} "
                         f"(expected one of {sorted(_WRITERS)})")

    features = result['features'] if isinstance(result, dict) else result
    mesh_dir = Path(folder) / "Meshes"
    mesh_dir.mkdir(parents=True, exist_ok=True)

    paths = []
    for feat in features:
        path = mesh_dir / f"{feat.name}.{fmt}"
        writer(path, feat.mesh)
        paths.append(path)
    return paths
