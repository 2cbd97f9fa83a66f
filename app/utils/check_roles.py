# app/utils/check_roles.py
from typing import Callable, Iterable
from functools import wraps

from app.core.exceptions import AuthError


def require_role(roles: Iterable[str]):
    """
    Route decorator restricting access to ``roles``.
    The route must declare ``_user=Depends(get_current_user)``.
    """
    allowed = {r.lower() for r in roles}

    def decorator(func: Callable):
        @wraps(func)
        async def wrapper(*args, _user, **kwargs):
            if _user is None:
                raise AuthError("Not authenticated")
            if (_user.role or "").lower() not in allowed:
                raise AuthError("Permission denied", status_code=403)
            return await func(*args, _user=_user, **kwargs)
        return wrapper
    return decorator
