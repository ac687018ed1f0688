"""
Spherical Geometry Helpers - Radius Queries Without a Geo Extension

Points are stored as unit vectors on the sphere. Two points lie within
distance d of each other exactly when the dot product of their unit vectors
is at least cos(d / R), so a radius query becomes plain arithmetic that any
SQL backend can evaluate:

    loc_x * cx + loc_y * cy + loc_z * cz >= cos(d / R)

A latitude band of ±degrees(d / R) around the centre is added as a cheap
prefilter that can use the (latitude, longitude) index.

Key Functions:
    - unit_vector(): (lon, lat) in degrees → (x, y, z)
    - min_dot_for_radius(): radius in metres → dot-product threshold
    - latitude_band(): radius in metres → (lat_min, lat_max)
    - great_circle_distance_m(): distance between two (lon, lat) points
"""

from typing import Tuple

import numpy as np

# Mean Earth radius (IUGG), metres
EARTH_RADIUS_M = 6_371_008.8


def unit_vector(longitude: float, latitude: float) -> Tuple[float, float, float]:
    """Convert a longitude/latitude pair in degrees to a unit vector."""
    lon, lat = np.radians(longitude), np.radians(latitude)
    return (
        float(np.cos(lat) * np.cos(lon)),
        float(np.cos(lat) * np.sin(lon)),
        float(np.sin(lat)),
    )


def angular_radius(radius_m: float) -> float:
    """Central angle in radians subtended by an arc of radius_m."""
    return radius_m / EARTH_RADIUS_M


def min_dot_for_radius(radius_m: float) -> float:
    """Smallest unit-vector dot product that is still within radius_m."""
    theta = angular_radius(radius_m)
    if theta >= np.pi:
        return -1.0
    return float(np.cos(theta))


def latitude_band(latitude: float, radius_m: float) -> Tuple[float, float]:
    """Latitude range that contains every point within radius_m of latitude."""
    delta = float(np.degrees(angular_radius(radius_m)))
    return max(-90.0, latitude - delta), min(90.0, latitude + delta)


def great_circle_distance_m(
    lon1: float, lat1: float, lon2: float, lat2: float
) -> float:
    """Spherical distance in metres between two (lon, lat) points."""
    a = np.array(unit_vector(lon1, lat1))
    b = np.array(unit_vector(lon2, lat2))
    dot = np.clip(np.dot(a, b), -1.0, 1.0)
    return float(np.arccos(dot) * EARTH_RADIUS_M)
