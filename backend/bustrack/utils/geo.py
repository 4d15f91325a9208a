"""Utilitaires géographiques / Geographic utilities.

Distance, cap et ETA avec facteur trafic / Distance, bearing and traffic-aware ETA.
"""

import math
from dataclasses import dataclass

EARTH_RADIUS_M = 6_371_000.0


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Distance Haversine en metres / Haversine distance in meters."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)
    a = math.sin(dlat / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlon / 2) ** 2
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def haversine(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Distance Haversine en km / Haversine distance in km."""
    return haversine_m(lat1, lon1, lat2, lon2) / 1000.0


def bearing_deg(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Cap initial 0-360 du point 1 vers le point 2 / Initial bearing from point 1 to point 2.

    Points confondus -> 0 / Coincident points -> 0.
    """
    if lat1 == lat2 and lon1 == lon2:
        return 0.0
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dlon = math.radians(lon2 - lon1)
    y = math.sin(dlon) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(dlon)
    bearing = (math.degrees(math.atan2(y, x)) + 360.0) % 360.0
    # -1e-15 % 360 donne 360.0 / -1e-15 % 360 yields 360.0
    return 0.0 if bearing >= 360.0 else bearing


def bounding_box(lat: float, lon: float, radius_km: float) -> tuple[float, float, float, float]:
    """
    Boîte englobante autour d'un point / Bounding box around a point.
    Retourne (lat_min, lat_max, lon_min, lon_max).
    """
    delta_lat = radius_km / 111.0
    delta_lon = radius_km / (111.0 * max(math.cos(math.radians(lat)), 1e-6))
    return (lat - delta_lat, lat + delta_lat, lon - delta_lon, lon + delta_lon)


def is_valid_coordinate(lat, lon) -> bool:
    """Latitude/longitude finies et dans les bornes / Finite and in-range coordinates."""
    if isinstance(lat, bool) or isinstance(lon, bool):
        return False
    if not isinstance(lat, (int, float)) or not isinstance(lon, (int, float)):
        return False
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return False
    return -90 <= lat <= 90 and -180 <= lon <= 180


# ─── ETA ───

@dataclass(frozen=True)
class Eta:
    """Temps de trajet estime / Estimated travel time (totaux / totals)."""
    hours: float
    minutes: float
    seconds: float
    formatted: str
    distance_km: float
    speed_kmh: float
    indeterminate: bool = False


def format_duration(total_minutes: float) -> str:
    """Texte lisible pour une duree en minutes / Human-readable text for a duration in minutes."""
    minutes = math.floor(total_minutes)
    seconds = round((total_minutes - minutes) * 60)
    if seconds == 60:
        minutes += 1
        seconds = 0

    if minutes > 60:
        return f"{minutes // 60}h {minutes % 60}m"
    if minutes > 0:
        text = f"{minutes}m"
        if seconds > 0 and minutes < 5:
            text += f" {seconds}s"
        return text
    return f"{seconds}s"


def eta_from_distance(distance_m: float, speed_kmh: float) -> Eta:
    """ETA a vitesse moyenne constante / ETA at constant average speed.

    Vitesse <= 0 -> resultat indetermine / Speed <= 0 -> indeterminate result.
    """
    distance_km = distance_m / 1000.0
    if speed_kmh <= 0:
        return Eta(
            hours=math.inf,
            minutes=math.inf,
            seconds=math.inf,
            formatted="unknown",
            distance_km=distance_km,
            speed_kmh=speed_kmh,
            indeterminate=True,
        )

    hours = distance_km / speed_kmh
    minutes = hours * 60
    return Eta(
        hours=hours,
        minutes=minutes,
        seconds=minutes * 60,
        formatted=format_duration(minutes),
        distance_km=distance_km,
        speed_kmh=speed_kmh,
    )


# Heures de pointe / Peak hours: 7-10 et 17-20 inclus
PEAK_HOURS = frozenset({7, 8, 9, 10, 17, 18, 19, 20})
MODERATE_HOURS = frozenset(range(11, 17))


def traffic_factor(hour: int) -> float:
    """Facteur multiplicateur de vitesse selon l'heure locale / Speed factor by local hour."""
    if hour in PEAK_HOURS:
        return 0.7
    if hour in MODERATE_HOURS:
        return 0.9
    if hour >= 22 or hour <= 6:
        return 1.3
    return 1.0


def traffic_condition(factor: float) -> str:
    """Libelle du trafic / Traffic condition label."""
    if factor <= 0.7:
        return "Heavy Traffic"
    if factor <= 0.9:
        return "Moderate Traffic"
    if factor >= 1.2:
        return "Light Traffic"
    return "Normal Traffic"


def eta_with_traffic(distance_m: float, base_speed_kmh: float, hour: int) -> Eta:
    """ETA avec vitesse ajustee au trafic / ETA with traffic-adjusted speed."""
    return eta_from_distance(distance_m, base_speed_kmh * traffic_factor(hour))
