from fastapi import Header

from booking_engine.domain.entities.user import CurrentUser


def get_current_user(
    x_user_id: str | None = Header(None),
    x_user_type: str | None = Header(None),
    x_user_name: str | None = Header(None),
) -> CurrentUser | None:
    """Identity forwarded by the authenticating gateway. None means anonymous."""
    if not x_user_id:
        return None
    return CurrentUser(id=x_user_id, user_type=(x_user_type or "").lower(), full_name=x_user_name)
