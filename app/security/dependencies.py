from __future__ import annotations

import logging
from collections.abc import Callable

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.authz.context import Viewer
from app.authz.errors import AuthenticationError, AuthorizationError
from app.authz.resolver import resolve_viewer
from app.authz.roles import Action
from app.authz.store import PermissionCache
from app.db.session import get_db
from app.logging_config import AUDIT_LOGGER_NAME
from app.models.security import User
from app.security.auth import decode_user_id, extract_bearer_token, load_user
from app.settings import Settings, get_settings

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger(AUDIT_LOGGER_NAME)


def get_permission_cache(request: Request) -> PermissionCache:
    cache = getattr(request.app.state, "permission_cache", None)
    if cache is None:
        raise RuntimeError("Permission cache not configured. Did app startup run?")
    return cache


def get_viewer(
    request: Request,
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db),
) -> Viewer:
    """
    Global dependency: resolve who is asking and which role they act as.

    Registered on the app so a bad token or a forbidden "view as" override
    rejects every route. FastAPI caches the result per request, so routes
    that also depend on it do not resolve twice.
    """

    override = request.headers.get(settings.acting_role_header)
    user: User | None = None

    try:
        token = extract_bearer_token(request)
        if token is None:
            viewer = resolve_viewer(None, None, override)
        else:
            user = load_user(db, decode_user_id(token, settings.jwt_secret, settings.jwt_algorithm))
            viewer = resolve_viewer(user.id, user.role, override)
    except AuthenticationError as exc:
        audit_logger.warning("Authentication failed path=%s method=%s reason=%s", request.url.path, request.method, exc)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    except AuthorizationError as exc:
        audit_logger.warning(
            "Rejected role override path=%s method=%s user_id=%s requested=%r",
            request.url.path,
            request.method,
            user.id if user else None,
            override,
        )
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc

    request.state.user = user
    request.state.viewer = viewer
    return viewer


def get_current_user(request: Request, viewer: Viewer = Depends(get_viewer)) -> User:
    user = getattr(request.state, "user", None)
    if user is None or not viewer.is_authenticated:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return user


def require_permission(resource_key: str, action: Action) -> Callable[..., Viewer]:
    """
    Route dependency: the acting role must hold `action` on `resource_key`.

    Missing rules deny. Anonymous callers get 401 (log in and retry),
    authenticated ones 403.
    """

    def dependency(
        viewer: Viewer = Depends(get_viewer),
        cache: PermissionCache = Depends(get_permission_cache),
    ) -> Viewer:
        if cache.can(viewer.role, resource_key, action):
            logger.debug("Access granted role=%s resource=%s action=%s", viewer.role.value, resource_key, action.value)
            return viewer

        audit_logger.warning(
            "Access denied user_id=%s role=%s resource=%s action=%s",
            viewer.id,
            viewer.role.value,
            resource_key,
            action.value,
        )
        if not viewer.is_authenticated:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Login required")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Role {viewer.role.value!r} lacks {action.value!r} permission on {resource_key!r}",
        )

    return dependency
