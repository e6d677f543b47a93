from .config import settings
from .security import create_access_token, decode_access_token

__all__ = [
    "settings",
    "create_access_token",
    "decode_access_token",
]
