from typing import Optional

from fastapi import Header

DEFAULT_ACTOR = "system"


def get_actor(x_user: Optional[str] = Header(None)) -> str:
    """Identify who is making the change, for audit rows and created_by/updated_by columns."""
    if not x_user or not x_user.strip():
        return DEFAULT_ACTOR
    return x_user.strip()
