from .projection import (
    EARTH_RADIUS,
    to_meters,
    to_meters_batch,
    to_lonlat,
)
from .triangulate import triangulate, signed_area, triangles_area
from .ribbon import build_ribbon
from .mesh import (
    Mesh,
    compute_bounds,
    compute_normals,
    merge_meshes,
    write_stl,
    write_obj,
)
from .geojson import (
    ROAD_WIDTHS,
    ImportedFeature,
    classify_feature,
    road_width,
    geojson_origin,
    import_geojson,
    export_meshes,
)

__version__ = "0.1.0"
