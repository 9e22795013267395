# services/account.py
from typing import Any, Dict, Optional

from core.errors import Malformed, Unauthenticated
from core.logger import get_logger

from .http import request_json
from .mutations import ACCOUNT_BASE_URL

logger = get_logger(__name__)


def fetch_profile(credential: Optional[str], base_url: str = ACCOUNT_BASE_URL) -> Dict[str, Any]:
    """Return the signed-in user's profile; a 401 surfaces as Unauthorized."""
    if not credential:
        raise Unauthenticated("A credential is required to view the profile.")

    data = request_json("GET", f"{base_url.rstrip('/')}/profile", credential)
    if not isinstance(data, dict):
        raise Malformed("Profile payload is not an object.")
    return data
