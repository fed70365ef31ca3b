from fastapi import Header

from fairway.models.db.user import User
from fairway.sql.users import get_user_by_id
from fairway.utils.errors import ErrorCode, FairwayError
from fairway.utils.id_types import UserId


async def user_authenticated(x_user_id: int | None = Header(default=None)) -> User:
    """
    Resolve the calling user.

    Authentication happens upstream, which forwards the verified user ID in `X-User-Id`.
    """
    if x_user_id is None:
        raise FairwayError(ErrorCode.UNAUTHORIZED, "Missing authenticated user")

    user = await get_user_by_id(UserId(x_user_id))
    if user is None:
        raise FairwayError(ErrorCode.UNAUTHORIZED, "Unknown user", {"user_id": x_user_id})
    return user
