from __future__ import annotations

from urllib.parse import urljoin

from bs4 import BeautifulSoup


ALERT_LINK_MARKER = "/alerts?alertID="


def parse_alert_links(
    html: str,
    *,
    base_url: str,
    marker: str = ALERT_LINK_MARKER,
    limit: int = 10,
) -> list[str]:
    soup = BeautifulSoup(html, "html.parser")
    urls: list[str] = []
    seen: set[str] = set()
    for a in soup.find_all("a", href=True):
        href = str(a["href"]).strip()
        if marker not in href:
            continue
        url = urljoin(base_url, href)
        if url in seen:
            continue
        seen.add(url)
        urls.append(url)
        if len(urls) >= limit:
            break
    return urls
