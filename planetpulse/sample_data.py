"""Bundled datasets used when the live feed is unavailable or not applicable."""

from __future__ import annotations

import datetime as _dt
import time
from typing import Any, Dict, List, Optional

from .constants import MILLIS_PER_DAY
from .models import Entity

# (magnitude, place, days ago, longitude, latitude, depth km)
_EARTHQUAKE_ROWS = (
    (5.2, "Tokyo, Japan", 1, 139.6917, 35.6895, 45),
    (4.8, "Los Angeles, California", 2, -118.2437, 34.0522, 12),
    (6.1, "Lima, Peru", 3, -77.0428, -12.0464, 78),
    (3.5, "Istanbul, Turkey", 4, 28.9784, 41.0082, 10),
    (7.2, "Manila, Philippines", 5, 120.9842, 14.5995, 120),
    (4.2, "Santiago, Chile", 6, -70.6693, -33.4489, 55),
    (5.8, "Jakarta, Indonesia", 7, 106.8456, -6.2088, 95),
    (3.9, "Mexico City, Mexico", 8, -99.1332, 19.4326, 8),
    (5.5, "Christchurch, New Zealand", 9, 172.6362, -43.5321, 25),
    (4.6, "Athens, Greece", 10, 23.7275, 37.9838, 15),
    (6.5, "Anchorage, Alaska", 11, -149.9003, 61.2181, 35),
    (4.1, "Taipei, Taiwan", 12, 121.5654, 25.0330, 18),
    (5.0, "Port-au-Prince, Haiti", 13, -72.3388, 18.5944, 22),
    (6.8, "Kathmandu, Nepal", 14, 85.3240, 27.7172, 15),
    (3.8, "San Francisco, California", 15, -122.4194, 37.7749, 8),
)


def earthquake_sample_collection(now_millis: Optional[int] = None) -> Dict[str, Any]:
    """GeoJSON feature collection with events spread over the last 15 days."""
    now = int(time.time() * 1000) if now_millis is None else int(now_millis)
    features: List[Dict[str, Any]] = []
    for index, (mag, place, days_ago, lon, lat, depth) in enumerate(_EARTHQUAKE_ROWS):
        features.append(
            {
                "type": "Feature",
                "id": f"sample-{index:02d}",
                "properties": {"mag": mag, "place": place, "time": now - days_ago * MILLIS_PER_DAY},
                "geometry": {"type": "Point", "coordinates": [lon, lat, depth]},
            }
        )
    return {"type": "FeatureCollection", "features": features}


_CITY_ROWS: tuple = (
    {
        "id": "nyc", "name": "New York City", "country": "United States", "region": "North America",
        "lat": 40.7128, "lon": -74.006, "metrics": {"population": 19.6, "emissions": 165, "renewables": 62},
        "note": "Service-heavy economy with aggressive efficiency mandates.",
        "category": "Mega City", "updated": "2024-11-01",
    },
    {
        "id": "ldn", "name": "London", "country": "United Kingdom", "region": "Europe",
        "lat": 51.5072, "lon": -0.1276, "metrics": {"population": 9.7, "emissions": 91, "renewables": 74},
        "note": "Transit-first policies continue to lower per-capita emissions.",
        "category": "Global Hub", "updated": "2024-10-21",
    },
    {
        "id": "lag", "name": "Lagos", "country": "Nigeria", "region": "Africa",
        "lat": 6.5244, "lon": 3.3792, "metrics": {"population": 15.3, "emissions": 43, "renewables": 28},
        "note": "Rapid growth driven by services + light manufacturing.",
        "category": "Emerging City", "updated": "2024-09-15",
    },
    {
        "id": "syd", "name": "Sydney", "country": "Australia", "region": "Oceania",
        "lat": -33.8688, "lon": 151.2093, "metrics": {"population": 5.3, "emissions": 58, "renewables": 58},
        "note": "Grid increasingly powered by renewables + storage.",
        "category": "Coastal City", "updated": "2024-08-18",
    },
    {
        "id": "tok", "name": "Tokyo", "country": "Japan", "region": "Asia",
        "lat": 35.6762, "lon": 139.6503, "metrics": {"population": 37.4, "emissions": 210, "renewables": 42},
        "note": "Dense transit and electrification offset heavy industry output.",
        "category": "Mega City", "updated": "2024-11-12",
    },
    {
        "id": "del", "name": "Delhi", "country": "India", "region": "Asia",
        "lat": 28.7041, "lon": 77.1025, "metrics": {"population": 32.9, "emissions": 185, "renewables": 35},
        "note": "Manufacturing boom with accelerating solar adoption.",
        "category": "Mega City", "updated": "2024-07-30",
    },
    {
        "id": "sao", "name": "São Paulo", "country": "Brazil", "region": "South America",
        "lat": -23.5558, "lon": -46.6396, "metrics": {"population": 22.6, "emissions": 126, "renewables": 55},
        "note": "Biofuels blending policy keeps emissions moderate.",
        "category": "Mega City", "updated": "2024-10-04",
    },
    {
        "id": "ber", "name": "Berlin", "country": "Germany", "region": "Europe",
        "lat": 52.52, "lon": 13.405, "metrics": {"population": 3.6, "emissions": 32, "renewables": 78},
        "note": "District heating upgrades cut baseload demand.",
        "category": "Sustainable City", "updated": "2024-06-12",
    },
    {
        "id": "cai", "name": "Cairo", "country": "Egypt", "region": "Africa",
        "lat": 30.0444, "lon": 31.2357, "metrics": {"population": 20.1, "emissions": 97, "renewables": 30},
        "note": "Energy mix balancing natural gas with solar build-out.",
        "category": "Mega City", "updated": "2024-05-28",
    },
    {
        "id": "van", "name": "Vancouver", "country": "Canada", "region": "North America",
        "lat": 49.2827, "lon": -123.1207, "metrics": {"population": 2.8, "emissions": 22, "renewables": 83},
        "note": "Hydro-backed grid keeps emissions among the lowest.",
        "category": "Sustainable City", "updated": "2024-09-02",
    },
)


def _date_to_millis(text: str) -> int:
    moment = _dt.datetime.strptime(text, "%Y-%m-%d").replace(tzinfo=_dt.timezone.utc)
    return int(moment.timestamp() * 1000)


def city_entities() -> List[Entity]:
    return [
        Entity(
            id=row["id"],
            longitude=row["lon"],
            latitude=row["lat"],
            depth_or_elevation=None,
            timestamp_millis=_date_to_millis(row["updated"]),
            metric_values=dict(row["metrics"]),
            display_label=row["name"],
            extra={
                "country": row["country"],
                "region": row["region"],
                "category": row["category"],
                "note": row["note"],
            },
        )
        for row in _CITY_ROWS
    ]


__all__ = ["earthquake_sample_collection", "city_entities"]
