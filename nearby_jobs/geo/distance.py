"""Great-circle distance between two coordinates."""

import math

from nearby_jobs.domain.models import Coordinate

# Earth mean radius
EARTH_RADIUS_KM = 6371.0


def haversine_km(a: Coordinate, b: Coordinate) -> float:
    """Compute the great-circle distance in kilometres between two points.

    Uses the haversine formula with the Earth's mean radius. The result is
    symmetric in its arguments and zero for identical points. Inputs are not
    range-checked.

    Args:
        a: First coordinate
        b: Second coordinate

    Returns:
        Distance in kilometres

    Example:
        >>> equator = Coordinate(latitude=0.0, longitude=0.0)
        >>> north = Coordinate(latitude=1.0, longitude=0.0)
        >>> round(haversine_km(equator, north), 2)
        111.19
    """
    phi1 = math.radians(a.latitude)
    phi2 = math.radians(b.latitude)
    delta_phi = math.radians(b.latitude - a.latitude)
    delta_lambda = math.radians(b.longitude - a.longitude)

    h = (
        math.sin(delta_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2
    )
    # Rounding can push h a hair past 1 for near-antipodal points
    h = min(max(h, 0.0), 1.0)

    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(h), math.sqrt(1 - h))
