"""HTTP session factory for the doctor API.

Pattern: requests.Session with connection pooling. Retries are disabled:
every failed call is surfaced to the caller, who decides whether to re-issue
it.
"""
import requests
from requests.adapters import HTTPAdapter


def create_http_session(pool_size: int = 10) -> requests.Session:
    """
    Create HTTP session with connection pooling.

    Args:
        pool_size: Connections kept per host (default: 10)

    Returns:
        Configured requests.Session
    """
    session = requests.Session()

    adapter = HTTPAdapter(
        max_retries=0,
        pool_connections=pool_size,
        pool_maxsize=pool_size,
    )
    session.mount("http://", adapter)
    session.mount("https://", adapter)

    return session
