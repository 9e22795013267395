# services/http.py
import os
from typing import Any, Dict, Optional

import requests

from core.errors import (
    NetworkError,
    NotFound,
    ServerError,
    Unauthenticated,
    Unauthorized,
    Forbidden,
)
from core.logger import get_logger

logger = get_logger(__name__)

USER_AGENT = os.getenv("HTTP_USER_AGENT", "storefront-client/0.1")
# Seconds; 0 leaves requests' own default (no timeout) in place
HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "30"))

SESSION = requests.Session()
SESSION.headers.update({"User-Agent": USER_AGENT, "Accept": "application/json"})


def auth_headers(credential: Optional[str]) -> Dict[str, str]:
    if not credential:
        raise Unauthenticated("No credential available for remote call.")
    return {
        "Authorization": f"Bearer {credential}",
        "Content-Type": "application/json",
    }


def _raise_for_status(resp: requests.Response, method: str, url: str) -> None:
    status = resp.status_code
    if 200 <= status < 300:
        return
    detail = f"{method} {url} -> {status}"
    if status == 403:
        raise Forbidden(detail, status_code=status)
    if status == 401:
        raise Unauthorized(detail, status_code=status)
    if status == 404:
        raise NotFound(detail, status_code=status)
    raise ServerError(detail, status_code=status)


def request_json(
    method: str,
    url: str,
    credential: Optional[str],
    body: Optional[Dict[str, Any]] = None,
) -> Any:
    """
    Issue one authenticated request and return the decoded JSON body.

    Returns None for an empty or non-JSON success body; callers decide
    whether that is acceptable.
    """
    headers = auth_headers(credential)
    try:
        resp = SESSION.request(
            method,
            url,
            headers=headers,
            json=body,
            timeout=HTTP_TIMEOUT or None,
        )
    except requests.RequestException as e:
        logger.warning("%s %s failed: %s", method, url, e)
        raise NetworkError(f"{method} {url}: {e}") from e

    _raise_for_status(resp, method, url)

    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError:
        logger.debug("%s %s returned a non-JSON body.", method, url)
        return None
