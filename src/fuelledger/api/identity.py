"""Caller identity for audit stamps.

Authentication happens upstream; the gateway forwards the operator id in
X-User-ID. It is only ever written into *_by columns.
"""

from fastapi import Header


async def get_current_user_id(
    x_user_id: str | None = Header(None, alias="X-User-ID", max_length=100),
) -> str | None:
    if x_user_id is None:
        return None
    return x_user_id.strip() or None
