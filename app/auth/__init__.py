from .jwt_handler import (
    create_access_token,
    hash_password,
    verify_password,
    verify_token,
)

__all__ = [
    "create_access_token",
    "hash_password",
    "verify_password",
    "verify_token",
]
