from __future__ import annotations

import re
from collections.abc import Sequence

from bs4 import BeautifulSoup

from geo.counties import normalize_county_name, resolve_county_coords
from normalize.normalize import (
    category_from_disease,
    collapse_whitespace,
    iso_from_date_label,
    parse_count,
)
from store.outbreaks import OutbreakRecord


DISEASE_FAMILY = "Equine Herpesvirus"

_COUNTY_STATE_RE = re.compile(r"([A-Za-z\s]+ County),\s*([A-Z]{2})\b")
_ALERT_ID_RE = re.compile(r"Alert ID:\s*(\d+)", flags=re.IGNORECASE)
_OUTBREAK_ID_RE = re.compile(r"Outbreak Identifier:\s*(\d+)", flags=re.IGNORECASE)
_DATE_RE = re.compile(
    r"(?:January|February|March|April|May|June|July|August|September|October"
    r"|November|December)\s+\d{1,2},\s+\d{4}"
)
_STATUS_FALLBACK_RE = re.compile(
    r"Confirmed Case\(s\)[^:]*?(?=\s*Source:)"
    r"|Confirmed Case\(s\)"
    r"|Quarantine Released"
    r"|Outbreak Update",
    flags=re.IGNORECASE,
)
_SOURCE_RE = re.compile(r"Source:\s*(.+?)\s*Number\b", flags=re.IGNORECASE)
_FACILITY_RE = re.compile(r"Facility Type:\s*(.*?)\s*Comments:", flags=re.IGNORECASE)
_COMMENTS_RE = re.compile(
    r"Comments:\s*(.*?)\s*(?:Previous Alerts:|Search for County|$)",
    flags=re.IGNORECASE,
)

_COUNT_LABELS = {
    "num_confirmed": "Confirmed",
    "num_suspected": "Suspected",
    "num_exposed": "Exposed",
    "num_euthanized": "Euthanized",
}
_COUNT_RES = {
    field: re.compile(rf"Number {label}:\s*(\w+)", flags=re.IGNORECASE)
    for field, label in _COUNT_LABELS.items()
}


def _group_or_none(match: re.Match[str] | None, group: int = 1) -> str | None:
    if match is None:
        return None
    value = match.group(group).strip()
    return value or None


def extract_disease(link_texts: Sequence[str]) -> str | None:
    for text in link_texts:
        text = text.strip()
        if text.startswith(DISEASE_FAMILY):
            return text
    return None


def extract_county_state(text: str) -> tuple[str | None, str | None]:
    match = _COUNTY_STATE_RE.search(text)
    if match is None:
        return (None, None)
    county = normalize_county_name(match.group(1)) or None
    return (county, match.group(2))


def extract_alert_id(text: str) -> str | None:
    return _group_or_none(_ALERT_ID_RE.search(text))


def extract_outbreak_identifier(text: str) -> str | None:
    return _group_or_none(_OUTBREAK_ID_RE.search(text))


def extract_date_label(text: str) -> str | None:
    match = _DATE_RE.search(text)
    return match.group(0) if match is not None else None


def extract_status(text: str, date_label: str | None) -> str | None:
    """Status sits between the posting date and "Source:"; otherwise look for a known phrase."""
    if date_label:
        between_re = re.compile(
            re.escape(date_label) + r"\s+(.+?)\s*Source:", flags=re.IGNORECASE
        )
        status = _group_or_none(between_re.search(text))
        if status:
            return status
    match = _STATUS_FALLBACK_RE.search(text)
    if match is None:
        return None
    return match.group(0).strip() or None


def extract_source(text: str) -> str | None:
    return _group_or_none(_SOURCE_RE.search(text))


def extract_count(text: str, field: str) -> int | None:
    match = _COUNT_RES[field].search(text)
    if match is None:
        return None
    return parse_count(match.group(1))


def extract_facility_type(text: str) -> str | None:
    return _group_or_none(_FACILITY_RE.search(text))


def extract_comments(text: str) -> str | None:
    return _group_or_none(_COMMENTS_RE.search(text))


def extract_alert(
    text: str | None,
    link_texts: Sequence[str] = (),
    *,
    source_url: str | None = None,
) -> OutbreakRecord:
    """Build a candidate record from flattened alert-page text.

    Every field comes from its own rule and degrades to None on a miss, so a
    malformed section never blocks the others. ``category``, ``reported_at_utc``
    and the coordinates are derived from already-extracted fields only.
    """
    text = text or ""

    disease = extract_disease(link_texts)
    county, state = extract_county_state(text)
    date_label = extract_date_label(text)
    lat, lng = resolve_county_coords(county, state)

    return OutbreakRecord(
        alert_id=extract_alert_id(text),
        outbreak_identifier=extract_outbreak_identifier(text),
        disease=disease,
        category=category_from_disease(disease),
        state=state,
        county=county,
        date_label=date_label,
        reported_at_utc=iso_from_date_label(date_label),
        status=extract_status(text, date_label),
        source=extract_source(text),
        num_confirmed=extract_count(text, "num_confirmed"),
        num_suspected=extract_count(text, "num_suspected"),
        num_exposed=extract_count(text, "num_exposed"),
        num_euthanized=extract_count(text, "num_euthanized"),
        facility_type=extract_facility_type(text),
        comments=extract_comments(text),
        raw_text=text,
        lat=lat,
        lng=lng,
        source_url=source_url,
    )


def _soup(html: str) -> BeautifulSoup:
    soup = BeautifulSoup(html, "html.parser")
    for el in soup(["script", "style", "noscript"]):
        el.decompose()
    return soup


def _body_text(soup: BeautifulSoup) -> str:
    root = soup.body if soup.body is not None else soup
    return collapse_whitespace(root.get_text(" "))


def page_text(html: str) -> str:
    return _body_text(_soup(html))


def parse_alert_html(html: str, *, source_url: str | None = None) -> OutbreakRecord:
    soup = _soup(html)
    link_texts = [collapse_whitespace(a.get_text(" ")) for a in soup.find_all("a")]
    return extract_alert(_body_text(soup), link_texts, source_url=source_url)
