# wdtp/utils/http.py
import httpx
from typing import Optional

async def post_form(
    url: str,
    data: dict,
    headers: Optional[dict] = None,
    timeout: float = 10.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.Response:
    """POST an urlencoded form; raises httpx.HTTPStatusError on non-2xx."""
    async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
        r = await client.post(url, data=data, headers=headers)
        r.raise_for_status()
        return r
