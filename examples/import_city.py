"""Convert an OpenStreetMap GeoJSON export into OBJ/STL meshes.

Roads become flat ribbons sized by their ``highway`` tag; buildings, grass,
water and pedestrian areas become ear-clipped fills. Everything is projected
to local meters around the data's bounding-box center unless an origin is
given.

Usage:
    python import_city.py enschede.geojson --out build --format obj
    python import_city.py enschede.geojson --origin 52.2210 6.8910 --merge
"""

import warnings

import numpy as np

from geoimport import export_meshes, geojson_origin, import_geojson


def summarize(result):
    """Print per-kind counts and the overall extent of the imported meshes."""
    print("Imported features:")
    for kind, n in result['counts'].items():
        print(f"  {kind:10s} {n:5d}")

    features = result['features']
    if not features:
        print("Nothing to export.")
        return

    lows = np.array([f.mesh.bounds[0] for f in features])
    highs = np.array([f.mesh.bounds[1] for f in features])
    lo = lows.min(axis=0)
    hi = highs.max(axis=0)
    verts = sum(f.mesh.vertex_count for f in features)
    tris = sum(f.mesh.triangle_count for f in features)
    print(f"Extent: {hi[0] - lo[0]:.1f} x {hi[1] - lo[1]:.1f} units, "
          f"{verts} vertices, {tris} triangles")

    if result['partial']:
        print(f"{len(result['partial'])} area(s) only partially triangulated:")
        for name in result['partial']:
            print(f"  {name}")


if __name__ == "__main__":
    import argparse
    parser = argparse.ArgumentParser(description="GeoJSON to mesh importer")
    parser.add_argument("geojson", help="Path to a GeoJSON file")
    parser.add_argument("--out", default="build",
                        help="Output folder (meshes go to <out>/Meshes)")
    parser.add_argument("--format", default="obj", choices=["obj", "stl"])
    parser.add_argument("--origin", nargs=2, type=float, metavar=("LAT", "LON"),
                        help="Projection origin (default: bounding-box center)")
    parser.add_argument("--scale", type=float, default=1.0,
                        help="World units per meter")
    parser.add_argument("--merge", action="store_true",
                        help="Combine meshes of each kind into one")
    args = parser.parse_args()

    if args.origin:
        origin_lat, origin_lon = args.origin
    else:
        origin_lat, origin_lon = geojson_origin(args.geojson)
    print(f"Origin: lat={origin_lat:.6f} lon={origin_lon:.6f}")

    with warnings.catch_warnings():
        # Partial triangulations are listed in the summary instead
        warnings.simplefilter("ignore", UserWarning)
        result = import_geojson(args.geojson, origin_lat, origin_lon,
                                meters_to_unit=args.scale, merge=args.merge)

    summarize(result)
    paths = export_meshes(result, args.out, fmt=args.format)
    print(f"Wrote {len(paths)} mesh file(s) to {args.out}/Meshes")
