from __future__ import annotations

import httpx

from ingest.errors import FetchError


def build_timeout(read_seconds: float) -> httpx.Timeout:
    return httpx.Timeout(connect=5.0, read=read_seconds, write=5.0, pool=5.0)


async def fetch_page(
    client: httpx.AsyncClient,
    *,
    url: str,
    user_agent: str,
    timeout_seconds: float = 15.0,
) -> str:
    headers = {
        "User-Agent": user_agent,
        "Accept": "text/html,application/xhtml+xml,*/*;q=0.8",
    }
    try:
        response = await client.get(
            url, headers=headers, timeout=build_timeout(timeout_seconds)
        )
    except httpx.TimeoutException as e:
        raise FetchError("timeout", url=url) from e
    except httpx.RequestError as e:
        raise FetchError(f"request_error:{e.__class__.__name__}", url=url) from e

    if not response.is_success:
        raise FetchError(
            f"http_{response.status_code}", url=url, status_code=response.status_code
        )
    return response.text
