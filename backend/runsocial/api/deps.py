"""
Shared API dependencies.
"""

from fastapi import Header


async def get_caller_id(x_user_id: str = Header(..., alias="X-User-Id")) -> str:
    """
    Authenticated caller's user ID.

    Authentication happens upstream; the gateway forwards the resolved
    identity in the X-User-Id header.
    """
    return x_user_id
