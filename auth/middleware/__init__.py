"""Request authentication dependencies."""
from .auth_middleware import get_current_user_id, decode_token

__all__ = ["get_current_user_id", "decode_token"]
