"""Low-level HTTP send used by the API client and the offline queue replay."""

from typing import Any

import httpx


class ApiError(Exception):
    """The server answered with an error status."""

    def __init__(self, status_code: int, text: str) -> None:
        super().__init__(f"{status_code}: {text}")
        self.status_code = status_code
        self.text = text


def raise_for_status(resp: httpx.Response) -> None:
    if resp.is_error:
        raise ApiError(resp.status_code, resp.text or resp.reason_phrase)


async def send_http_request(
    http: httpx.AsyncClient,
    method: str,
    url: str,
    body: Any = None,
    token: str | None = None,
    headers: dict[str, str] | None = None,
) -> httpx.Response:
    """Send one request; raises ``ApiError`` on 4xx/5xx and lets
    ``httpx.TransportError`` (connection, timeout) propagate."""
    merged: dict[str, str] = {}
    if token:
        merged["Authorization"] = f"Bearer {token}"
    if headers:
        merged.update(headers)
    resp = await http.request(
        method,
        url,
        json=body,
        headers=merged,
    )
    raise_for_status(resp)
    return resp
