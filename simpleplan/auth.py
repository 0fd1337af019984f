import hmac
import os

from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader

DEFAULT_API_KEY = "your-secret-key-change-me"

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


def get_api_key() -> str:
    """Configured API key (read on every request so it can be rotated)"""
    return os.getenv("SIMPLEPLAN_API_KEY", DEFAULT_API_KEY)


async def verify_api_key(api_key: str = Security(api_key_header)):
    """Reject requests without the configured X-API-Key header"""
    if not api_key or not hmac.compare_digest(api_key, get_api_key()):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API Key"
        )
    return api_key
