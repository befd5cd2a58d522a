import base64
import json
from typing import List, NamedTuple

from starlette.requests import Request
from starlette.responses import Response

TOAST_COOKIE = "toast"


class Toast(NamedTuple):
    kind: str  # success | error | info
    message: str


def flash(response: Response, kind: str, message: str) -> Response:
    """Queue a toast for the next page rendered after a redirect."""
    raw = base64.urlsafe_b64encode(json.dumps([kind, message]).encode("utf-8")).decode("ascii")
    response.set_cookie(TOAST_COOKIE, raw.rstrip("="), httponly=True, samesite="lax")
    return response


def read_flashed(request: Request) -> List[Toast]:
    raw = request.cookies.get(TOAST_COOKIE)
    if not raw:
        return []
    try:
        kind, message = json.loads(base64.urlsafe_b64decode((raw + "=" * (-len(raw) % 4)).encode("ascii")))
    except (ValueError, TypeError):
        return []
    return [Toast(str(kind), str(message))]


def clear_flashed(request: Request, response: Response) -> Response:
    if TOAST_COOKIE in request.cookies:
        response.delete_cookie(TOAST_COOKIE)
    return response
