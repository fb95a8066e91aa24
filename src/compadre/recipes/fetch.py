"""Download recipe pages without letting a URL reach internal hosts.

Both the submitted URL and every redirect target must use http(s) and
resolve only to public addresses.
"""

import html
import ipaddress
import logging
import re
import socket
from urllib.parse import urlparse

import httpx

from ..errors import CompadreError

logger = logging.getLogger(__name__)

ALLOWED_SCHEMES = ("http", "https")

# Not covered by the ipaddress.is_* properties on every Python version
_SHARED_ADDRESS_SPACE = ipaddress.ip_network("100.64.0.0/10")

_INVISIBLE = re.compile(r"<(script|style|noscript)\b.*?</\1>", re.IGNORECASE | re.DOTALL)
_MARKUP = re.compile(r"<[^>]+>")
_SPACES = re.compile(r"\s+")


class FetchError(CompadreError):
    """The page could not be retrieved or was not allowed."""


def is_private_ip(ip: str) -> bool:
    """True for anything that is not a routable public address, including garbage."""
    try:
        addr = ipaddress.ip_address(ip)
    except ValueError:
        return True
    if addr.version == 4 and addr in _SHARED_ADDRESS_SPACE:
        return True
    return (
        addr.is_private
        or addr.is_loopback
        or addr.is_link_local
        or addr.is_reserved
        or addr.is_unspecified
        or addr.is_multicast
    )


def _check_resolved(hostname: str) -> str | None:
    try:
        infos = socket.getaddrinfo(hostname, None, socket.AF_UNSPEC, socket.SOCK_STREAM)
    except socket.gaierror as e:
        return f"DNS resolution failed: {e}"
    if not infos:
        return f"Could not resolve hostname: {hostname}"

    blocked = next((info[4][0] for info in infos if is_private_ip(info[4][0])), None)
    if blocked is not None:
        return f"Blocked: {hostname} resolves to private IP {blocked}"
    return None


def validate_url(url: str) -> tuple[bool, str | None]:
    """Check scheme, host and DNS resolution. Returns (valid, error_message)."""
    parsed = urlparse(url)
    scheme = parsed.scheme.lower()
    if scheme not in ALLOWED_SCHEMES:
        return False, f"Scheme not allowed: {parsed.scheme}. Use http or https."
    if not parsed.hostname:
        return False, "URL must have a hostname"

    error = _check_resolved(parsed.hostname)
    return error is None, error


def html_to_text(markup: str) -> str:
    """Visible text of an HTML document, whitespace collapsed."""
    stripped = _MARKUP.sub(" ", _INVISIBLE.sub(" ", markup))
    return _SPACES.sub(" ", html.unescape(stripped)).strip()


class PageFetcher:
    """Fetches a page over httpx and returns at most ``max_chars`` of text.

    ``transport`` is passed straight to httpx.AsyncClient so tests can use
    httpx.MockTransport.
    """

    def __init__(
        self,
        timeout: float = 10.0,
        max_chars: int = 50_000,
        max_redirects: int = 5,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout = timeout
        self.max_chars = max_chars
        self.max_redirects = max_redirects
        self.transport = transport

    @staticmethod
    async def _guard_redirect(response: httpx.Response) -> None:
        if not response.is_redirect:
            return
        target = response.url.join(response.headers.get("location", ""))
        valid, error = validate_url(str(target))
        if not valid:
            raise FetchError(f"Redirect refused: {error}")

    async def fetch(self, url: str) -> str:
        """Return the visible text at ``url``.

        Raises:
            FetchError: The URL or a redirect target is not allowed, the
                request failed, or the server answered with a non-2xx status.
        """
        valid, error = validate_url(url)
        if not valid:
            raise FetchError(error or f"Invalid URL: {url}")

        client = httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            max_redirects=self.max_redirects,
            transport=self.transport,
            event_hooks={"response": [self._guard_redirect]},
        )
        try:
            async with client:
                response = await client.get(url)
        except httpx.TimeoutException as e:
            raise FetchError(f"Request timed out after {self.timeout}s") from e
        except httpx.TooManyRedirects as e:
            raise FetchError(f"Too many redirects (max {self.max_redirects})") from e
        except httpx.RequestError as e:
            raise FetchError(f"Request failed: {e}") from e

        if not response.is_success:
            raise FetchError(f"HTTP {response.status_code}")

        if "html" in response.headers.get("content-type", ""):
            text = html_to_text(response.text)
        else:
            text = response.text.strip()
        if len(text) > self.max_chars:
            logger.debug("Truncating %s from %d chars", url, len(text))
        return text[: self.max_chars]
