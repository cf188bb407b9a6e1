# app/utils/geo_utils.py
"""좌표 거리 계산 유틸리티. 좌표는 latitude/longitude 키(또는 속성)를 가진 객체입니다."""
import math
from typing import Any, Dict, Tuple

EARTH_RADIUS_KM = 6371


def _lat_lon(point: Any) -> Tuple[float, float]:
    if isinstance(point, dict):
        return float(point['latitude']), float(point['longitude'])
    return float(point.latitude), float(point.longitude)


def distance_km(point1: Any, point2: Any) -> float:
    """Haversine 공식으로 두 지점 사이의 거리(km)를 계산합니다."""
    lat1, lon1 = _lat_lon(point1)
    lat2, lon2 = _lat_lon(point2)

    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)

    a = (math.sin(d_lat / 2) ** 2
         + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def is_within_radius(center: Any, point: Any, radius_km: float) -> bool:
    return distance_km(center, point) <= radius_km


def bounding_box(center: Any, radius_km: float) -> Dict[str, Dict[str, float]]:
    """중심점과 반경으로 남서/북동 경계 좌표를 계산합니다."""
    lat, lon = _lat_lon(center)
    rad_dist = radius_km / EARTH_RADIUS_KM
    rad_lat = math.radians(lat)
    rad_lon = math.radians(lon)

    # 극지방 근처에서는 경도 범위가 전체로 넓어집니다.
    cos_lat = math.cos(rad_lat)
    ratio = math.sin(rad_dist) / cos_lat if cos_lat > 0 else 1.0
    delta_lon = math.asin(min(1.0, ratio))

    return {
        'southwest': {
            'latitude': math.degrees(rad_lat - rad_dist),
            'longitude': math.degrees(rad_lon - delta_lon),
        },
        'northeast': {
            'latitude': math.degrees(rad_lat + rad_dist),
            'longitude': math.degrees(rad_lon + delta_lon),
        },
    }
