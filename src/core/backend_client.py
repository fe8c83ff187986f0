"""
Backend HTTP client setup with lazy initialization.
"""

import httpx

from core.config import BACKEND_API_TOKEN, BACKEND_API_URL, BACKEND_TIMEOUT_SECONDS

_backend_client: httpx.AsyncClient | None = None


def build_headers() -> dict[str, str]:
    headers = {"Accept": "application/json"}
    if BACKEND_API_TOKEN:
        headers["Authorization"] = f"Bearer {BACKEND_API_TOKEN}"
    return headers


def get_backend_client() -> httpx.AsyncClient:
    """Get or create the backend client (lazy initialization)."""
    global _backend_client
    if _backend_client is None:
        _backend_client = httpx.AsyncClient(
            base_url=BACKEND_API_URL,
            headers=build_headers(),
            timeout=BACKEND_TIMEOUT_SECONDS,
        )
    return _backend_client


async def close_backend_client() -> None:
    global _backend_client
    if _backend_client is not None:
        await _backend_client.aclose()
        _backend_client = None
