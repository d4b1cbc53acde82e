"""Equirectangular projection of geographic coordinates to local meters.

A first-order flat-Earth approximation around a fixed origin: longitude
deltas are scaled by the cosine of the origin latitude. Accurate enough for
city-block sized imports; no ellipsoidal or Mercator correction is applied.
"""

import math

import numpy as np


EARTH_RADIUS = 6378137.0  # WGS84 equatorial radius in meters


def to_meters(lat, lon, origin_lat, origin_lon):
    """Project one (lat, lon) pair to (east, north) meters from the origin.

    Parameters
    ----------
    lat, lon : float
        Point latitude and longitude in degrees.
    origin_lat, origin_lon : float
        Projection origin in degrees.

    Returns
    -------
    tuple of float
        ``(east, north)`` in meters. The origin itself maps to ``(0.0, 0.0)``.
    """
    east = EARTH_RADIUS * math.radians(lon - origin_lon) * math.cos(math.radians(origin_lat))
    north = EARTH_RADIUS * math.radians(lat - origin_lat)
    return east, north


def to_meters_batch(lonlat, origin_lat, origin_lon):
    """Project a sequence of GeoJSON-ordered (lon, lat) pairs.

    Parameters
    ----------
    lonlat : array-like
        Nx2 (or NxK, extra columns such as altitude are ignored) array of
        ``[lon, lat, ...]`` coordinates. May be empty.
    origin_lat, origin_lon : float
        Projection origin in degrees.

    Returns
    -------
    np.ndarray
        (N, 2) float64 array of ``(east, north)`` meters, same order as the
        input.
    """
    coords = np.asarray(lonlat, dtype=np.float64)
    if coords.size == 0:
        return np.empty((0, 2), dtype=np.float64)
    if coords.ndim == 1:
        coords = coords.reshape(1, -1)

    lons = coords[:, 0]
    lats = coords[:, 1]
    cos0 = math.cos(math.radians(origin_lat))

    east = EARTH_RADIUS * np.radians(lons - origin_lon) * cos0
    north = EARTH_RADIUS * np.radians(lats - origin_lat)
    return np.column_stack([east, north])


def to_lonlat(east, north, origin_lat, origin_lon):
    """Inverse of :func:`to_meters` for the same origin.

    Returns
    -------
    tuple of float
        ``(lon, lat)`` in degrees, GeoJSON order.
    """
    lat = origin_lat + math.degrees(north / EARTH_RADIUS)
    lon = origin_lon + math.degrees(
        east / (EARTH_RADIUS * math.cos(math.radians(origin_lat))))
    return lon, lat
