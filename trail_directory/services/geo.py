"""Great-circle radius search over rows with latitude/longitude columns."""

import math

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Distance in km between two WGS84 points."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlmb = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(a)))


def bounding_box(lat: float, lon: float, radius_km: float) -> tuple[float, float, float, float]:
    """(min_lat, max_lat, min_lon, max_lon) enclosing the radius circle."""
    dlat = math.degrees(radius_km / EARTH_RADIUS_KM)
    cos_lat = math.cos(math.radians(lat))
    if cos_lat < 1e-6:
        dlon = 180.0
    else:
        dlon = min(180.0, math.degrees(radius_km / (EARTH_RADIUS_KM * cos_lat)))
    return max(-90.0, lat - dlat), min(90.0, lat + dlat), lon - dlon, lon + dlon


def box_filters(lat: float, lon: float, radius_km: float) -> list[tuple[str, str, float]]:
    """Query filters for the bounding box. Longitude is left open across the antimeridian."""
    min_lat, max_lat, min_lon, max_lon = bounding_box(lat, lon, radius_km)
    filters = [("gte", "latitude", min_lat), ("lte", "latitude", max_lat)]
    if min_lon >= -180.0 and max_lon <= 180.0:
        filters += [("gte", "longitude", min_lon), ("lte", "longitude", max_lon)]
    return filters


def within_radius(rows: list[dict], lat: float, lon: float, radius_km: float,
                  limit: int | None = None) -> list[dict]:
    """Rows within *radius_km*, nearest first, each with a distance_km key."""
    hits = []
    for row in rows:
        if row.get("latitude") is None or row.get("longitude") is None:
            continue
        d = haversine_km(lat, lon, float(row["latitude"]), float(row["longitude"]))
        if d <= radius_km:
            hits.append({**row, "distance_km": round(d, 2)})
    hits.sort(key=lambda r: r["distance_km"])
    return hits[:limit] if limit else hits
