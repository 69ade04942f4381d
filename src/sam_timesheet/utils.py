"""Shared HTTP utilities: client construction, error wrapping, cookie harvesting."""

import httpx

from sam_timesheet.errors import ProtocolError, RateLimitError, TransportError
from sam_timesheet.logging import get_logger

log = get_logger(__name__)

DEFAULT_TIMEOUT = 5.0


async def _log_request(request: httpx.Request) -> None:
    log.info("request_sent", method=request.method, url=str(request.url))


def create_client(
    base_url: str,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Build the portal client.

    Redirects are never followed: the login endpoint signals success with a
    302 and the timesheet endpoint must not silently land on the login page.
    """
    return httpx.AsyncClient(
        base_url=base_url,
        follow_redirects=False,
        timeout=httpx.Timeout(timeout),
        transport=transport,
        event_hooks={"request": [_log_request]},
    )


async def send(client: httpx.AsyncClient, method: str, url: str, **kwargs) -> httpx.Response:
    """Issue one request, turning httpx failures into TransportError."""
    try:
        return await client.request(method, url, **kwargs)
    except httpx.TimeoutException as e:
        log.warning("request_timeout", method=method, url=url, error=str(e))
        raise TransportError(f"{method} {url} timed out: {e}") from e
    except httpx.HTTPError as e:
        log.warning("request_failed", method=method, url=url, error=str(e), type=type(e).__name__)
        raise TransportError(f"{method} {url} failed: {e}") from e


def unexpected_status(response: httpx.Response) -> TransportError:
    """Build the error for a status code the caller didn't expect."""
    request = response.request
    message = f"{request.method} {request.url.path} returned HTTP {response.status_code}"
    if response.status_code == 429:
        return RateLimitError(message, status_code=429)
    return TransportError(message, status_code=response.status_code)


def first_cookie(response: httpx.Response) -> str:
    """Return the ``name=value`` part of the first Set-Cookie header.

    Raises:
        ProtocolError: If the response sets no cookie.
    """
    cookies = response.headers.get_list("set-cookie")
    if not cookies:
        raise ProtocolError(
            f"{response.request.url.path} returned HTTP {response.status_code} without a cookie"
        )
    return cookies[0].split(";", 1)[0].strip()
