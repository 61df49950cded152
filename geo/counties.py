from __future__ import annotations

import re
from types import MappingProxyType


_QUALIFIER_RE = re.compile(r"^(?:Neurologic|Respiratory)\s+", flags=re.IGNORECASE)
_WS_RE = re.compile(r"\s+")

# County-seat style pins, keyed "County, ST".
COUNTY_COORDS: MappingProxyType[str, tuple[float, float]] = MappingProxyType(
    {
        "Lancaster County, PA": (40.0379, -76.3055),
        "Payne County, OK": (36.1156, -97.0584),
        "Logan County, OK": (35.8784, -97.4253),
        "Rocky View County, AB": (51.2, -114.2),
        "Harris County, TX": (29.7604, -95.3698),
        "Erath County, TX": (32.2207, -98.2023),
        "Lee County, TX": (30.1822, -96.9369),
        "Randall County, TX": (34.977, -101.918),
        "Parker County, TX": (32.7593, -97.7973),
        "Hyde County, SD": (44.5214, -99.4454),
        "Love County, OK": (33.9387, -97.1167),
        "Eddy County, NM": (32.4207, -104.2288),
        "McLennan County, TX": (31.5493, -97.1467),
        "Hood County, TX": (32.4421, -97.7942),
        "Wise County, TX": (33.234, -97.5867),
        "Dona Ana County, NM": (32.3199, -106.7637),
        "Larimer County, CO": (40.5853, -105.0844),
        "Fort Bend County, TX": (29.5822, -95.7608),
        "Bell County, TX": (31.056, -97.4645),
        "Mayes County, OK": (36.3084, -95.3161),
        "Wharton County, TX": (29.3119, -96.103),
        "Montgomery County, TX": (30.3119, -95.4561),
        "East Baton Rouge Parish, LA": (30.4515, -91.1871),
        "St. Mary's County, MD": (38.2918, -76.6352),
        "Red Deer County, AB": (52.2681, -113.8112),
        "Regional Municipality of Waterloo, ON": (43.4643, -80.5204),
        "Regional Municipality of Halton, ON": (43.4675, -79.6877),
        "Oklahoma County, OK": (35.4676, -97.5164),
        "Waller County, TX": (30.0972, -96.0783),
        "McClain County, OK": (35.0137, -97.3614),
        "Madison County, OH": (39.8864, -83.4483),
        "Northumberland County, PA": (40.862, -76.7944),
        "Maricopa County, AZ": (33.4484, -112.074),
        "Spokane County, WA": (47.6588, -117.426),
        "Beaverhead County, MT": (45.2166, -112.636),
        "Waupaca County, WI": (44.358, -89.0859),
    }
)


def normalize_county_name(name: str) -> str:
    """Drop a leading clinical qualifier ("Neurologic Payne County") and tidy spacing."""
    cleaned = _QUALIFIER_RE.sub("", name.strip())
    return _WS_RE.sub(" ", cleaned).strip()


def county_key(county_raw: str | None, state: str | None) -> str | None:
    if not county_raw or not state:
        return None
    return f"{normalize_county_name(county_raw)}, {state.strip()}"


def resolve_county_coords(
    county_raw: str | None, state: str | None
) -> tuple[float | None, float | None]:
    key = county_key(county_raw, state)
    if key is None:
        return (None, None)
    coords = COUNTY_COORDS.get(key)
    if coords is None:
        return (None, None)
    return coords
