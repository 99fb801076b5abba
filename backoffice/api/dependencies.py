from typing import Optional
from fastapi import Header

async def get_current_user_id(
    x_user_id: Optional[int] = Header(None, alias="X-User-Id")
) -> Optional[int]:
    """Acting user for created_by / approved_by; authentication happens upstream"""
    return x_user_id
