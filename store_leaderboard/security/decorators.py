from __future__ import annotations

from collections.abc import Callable
from functools import wraps
from typing import Any

from flask import jsonify
from flask_jwt_extended import get_jwt, verify_jwt_in_request

from store_leaderboard.api.responses import error_response

FORBIDDEN_MESSAGE = "You do not have permission to perform this action"


def _forbidden() -> Any:
    body, status = error_response(FORBIDDEN_MESSAGE, 403)
    return jsonify(body), status


def _claim_set(name: str) -> set[str]:
    verify_jwt_in_request()
    return set(get_jwt().get(name, []))


def require_permissions(*required_permissions: str) -> Callable[..., Any]:
    """Allow the call only when the token carries every listed permission."""
    required_set = set(required_permissions)

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            if not required_set.issubset(_claim_set("permissions")):
                return _forbidden()
            return func(*args, **kwargs)

        return wrapper

    return decorator


def require_any_permission(*accepted_permissions: str) -> Callable[..., Any]:
    """Allow the call when the token carries at least one listed permission."""
    accepted_set = set(accepted_permissions)

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            if not accepted_set.intersection(_claim_set("permissions")):
                return _forbidden()
            return func(*args, **kwargs)

        return wrapper

    return decorator
