# src/Services/distance.py
"""
Distance Estimator - great-circle distance between two GPS positions.

Pure function, no state. Used by the telemetry aggregator for the distance
increment between consecutive journey samples.
"""

from math import radians, sin, cos, sqrt, atan2

# Mean Earth radius in kilometers
EARTH_RADIUS_KM = 6371.0


def great_circle_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance between two points using the haversine formula.

    Formula:
        a = sin²(Δlat/2) + cos(lat1) * cos(lat2) * sin²(Δlon/2)
        c = 2 * atan2(√a, √(1−a))
        d = R * c

    Args:
        lat1: Latitude of point 1 (decimal degrees)
        lon1: Longitude of point 1 (decimal degrees)
        lat2: Latitude of point 2 (decimal degrees)
        lon2: Longitude of point 2 (decimal degrees)

    Returns:
        float: Distance in kilometers

    Examples:
        >>> great_circle_km(0.0, 0.0, 0.0, 1.0)
        111.19...

        >>> great_circle_km(10.5, -74.8, 10.5, -74.8)
        0.0

    Notes:
        - Spherical Earth (R = 6371 km)
        - Symmetric: swapping the two points gives the same result
        - No special handling of antipodes or the date line beyond the formula
    """
    lat1_rad = radians(lat1)
    lat2_rad = radians(lat2)
    delta_lat = radians(lat2 - lat1)
    delta_lon = radians(lon2 - lon1)

    a = sin(delta_lat / 2) ** 2 + cos(lat1_rad) * cos(lat2_rad) * sin(delta_lon / 2) ** 2
    # Rounding can push a marginally above 1 for near-antipodal points
    a = min(1.0, a)
    c = 2 * atan2(sqrt(a), sqrt(1 - a))

    return EARTH_RADIUS_KM * c
