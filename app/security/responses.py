from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from fastapi import Request, Response, status
from fastapi.encoders import jsonable_encoder

from app.authz.etag import compute_list_etag, if_none_match_satisfied
from app.settings import get_settings


def private_cache_headers(etag: str) -> dict[str, str]:
    # Responses differ per viewer: never share them between users.
    return {
        "ETag": etag,
        "Cache-Control": "private, no-cache",
        "Vary": f"Authorization, {get_settings().acting_role_header}",
    }


def not_modified_or_tag(request: Request, response: Response, payload: Sequence[Any]) -> Response | None:
    """
    Tag an already *filtered* list payload.

    Returns a 304 response when the client's If-None-Match still matches,
    otherwise sets the cache headers on `response` and returns None.
    """

    etag = compute_list_etag(jsonable_encoder(payload))
    headers = private_cache_headers(etag)
    if if_none_match_satisfied(request.headers.get("if-none-match"), etag):
        return Response(status_code=status.HTTP_304_NOT_MODIFIED, headers=headers)
    response.headers.update(headers)
    return None
