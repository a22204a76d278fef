"""Small helpers for signing, query strings and TLS setup."""

from __future__ import annotations

import hashlib
import hmac
import ssl
from collections.abc import Iterable, Mapping
from urllib.parse import quote_plus


def hmac_sha256(key: bytes, value: bytes) -> bytes:
    """Return the HMAC-SHA256 digest of ``value`` under ``key``."""
    return hmac.new(key, value, hashlib.sha256).digest()


def get_sorted_url_query_string(param: Mapping[str, str]) -> str:
    """Join ``key=value`` pairs sorted by key, with values query-escaped."""
    return "&".join(
        f"{key}={quote_plus(param[key], safe='')}" for key in sorted(param)
    )


def contains_element(elements: Iterable[str], target: str) -> bool:
    """Tell whether ``target`` is among ``elements``."""
    return target in elements


def build_tls_config(root_ca: bytes | None) -> ssl.SSLContext:
    """Build a client TLS context.

    Without a root CA the peer is not verified. With one, only that CA is
    trusted, the peer is verified and TLS 1.2 is the lowest version allowed.
    Certificates that cannot be parsed are ignored.
    """
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    if not root_ca:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
        return context

    context.check_hostname = True
    context.verify_mode = ssl.CERT_REQUIRED
    context.minimum_version = ssl.TLSVersion.TLSv1_2
    pem = root_ca.decode("ascii", errors="ignore")
    try:
        context.load_verify_locations(cadata=pem)
    except ssl.SSLError:
        pass
    return context