"""
HTTP client factory for talking to a mite account.
"""
from __future__ import annotations
from typing import Optional, Tuple
import httpx


def create_http_client(
    timeout: float = 20.0,
    verify: bool = True,
    auth: Optional[Tuple[str, str]] = None,
    transport: Optional[httpx.BaseTransport] = None,
    **kwargs
) -> httpx.Client:
    """
    Create a configured HTTP client with:
    - Timeout defaults (20s, 10s connect)
    - TLS verification toggle
    - Optional basic auth
    - No transport level retries
    - Redirects followed (an http:// account url answers with 301)

    Headers are not set here: every request carries its own.
    """
    timeout_config = httpx.Timeout(timeout, connect=10.0)

    if transport is None:
        transport = httpx.HTTPTransport(retries=0, verify=verify)

    return httpx.Client(
        timeout=timeout_config,
        verify=verify,
        auth=auth,
        follow_redirects=True,
        transport=transport,
        **kwargs
    )
