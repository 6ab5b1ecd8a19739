"""Authentication token helpers."""

from .auth_tokens import decode_token, extract_bearer_token, generate_token

__all__ = ["generate_token", "decode_token", "extract_bearer_token"]
