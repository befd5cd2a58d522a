import base64
import json
import os
from typing import Dict, Optional

from filelock import FileLock, Timeout
from starlette.requests import Request
from starlette.responses import Response

ACCESS_TOKEN_COOKIE = "access_token"
REFRESH_TOKEN_COOKIE = "refresh_token"
USER_COOKIE = "user"


class CredentialError(Exception):
    pass


class CredentialStore:
    """
    Where the bearer token pair and the cached user profile live between requests.
    Subclasses decide the medium; call sites only see this interface.
    """

    @property
    def access_token(self) -> Optional[str]:
        raise NotImplementedError

    @property
    def refresh_token(self) -> Optional[str]:
        raise NotImplementedError

    @property
    def user(self) -> Optional[Dict]:
        raise NotImplementedError

    def save(self, access_token: str, refresh_token: str, user: Dict) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError


class MemoryCredentialStore(CredentialStore):
    def __init__(self, access_token: Optional[str] = None, refresh_token: Optional[str] = None, user: Optional[Dict] = None):
        self._access = access_token
        self._refresh = refresh_token
        self._user = user

    @property
    def access_token(self):
        return self._access

    @property
    def refresh_token(self):
        return self._refresh

    @property
    def user(self):
        return self._user

    def save(self, access_token, refresh_token, user):
        self._access, self._refresh, self._user = access_token, refresh_token, user

    def clear(self):
        self._access = self._refresh = self._user = None


def _encode(obj: Dict) -> str:
    raw = base64.urlsafe_b64encode(json.dumps(obj).encode("utf-8")).decode("ascii")
    return raw.rstrip("=")


def _decode(value: str) -> Optional[Dict]:
    try:
        padded = value + "=" * (-len(value) % 4)
        return json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
    except (ValueError, TypeError):
        return None


class CookieCredentialStore(CredentialStore):
    """
    Browser-side storage. Reads come from the incoming request's cookies;
    writes are staged until apply() copies them onto the outgoing response.
    """

    def __init__(self, request: Request, secure: bool = False):
        self.request = request
        self.secure = secure
        self._staged: Optional[Dict] = None
        self._cleared = False

    @property
    def access_token(self):
        if self._cleared:
            return None
        if self._staged:
            return self._staged["access_token"]
        return self.request.cookies.get(ACCESS_TOKEN_COOKIE) or None

    @property
    def refresh_token(self):
        if self._cleared:
            return None
        if self._staged:
            return self._staged["refresh_token"]
        return self.request.cookies.get(REFRESH_TOKEN_COOKIE) or None

    @property
    def user(self):
        if self._cleared:
            return None
        if self._staged:
            return self._staged["user"]
        raw = self.request.cookies.get(USER_COOKIE)
        return _decode(raw) if raw else None

    def save(self, access_token, refresh_token, user):
        self._staged = {"access_token": access_token, "refresh_token": refresh_token, "user": user}
        self._cleared = False

    def clear(self):
        self._staged = None
        self._cleared = True

    def apply(self, response: Response) -> Response:
        if self._cleared:
            for name in (ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE, USER_COOKIE):
                response.delete_cookie(name)
        elif self._staged:
            opts = {"httponly": True, "samesite": "lax", "secure": self.secure}
            response.set_cookie(ACCESS_TOKEN_COOKIE, self._staged["access_token"], **opts)
            response.set_cookie(REFRESH_TOKEN_COOKIE, self._staged["refresh_token"], **opts)
            response.set_cookie(USER_COOKIE, _encode(self._staged["user"]), **opts)
        return response


class FileCredentialStore(CredentialStore):
    """
    JSON file store for command line use. The file is re-read on every access
    and guarded by a lock file so concurrent CLI invocations don't interleave writes.
    """

    def __init__(self, path: str, lock_timeout: float = 10):
        self.path = os.path.expanduser(path)
        self.lock = FileLock(self.path + ".lock")
        self.lock_timeout = lock_timeout

    def _read(self) -> Dict:
        if not os.path.isdir(os.path.dirname(self.path) or "."):
            return {}
        try:
            with self.lock.acquire(timeout=self.lock_timeout):
                if not os.path.exists(self.path):
                    return {}
                with open(self.path, "r", encoding="utf-8") as f:
                    return json.load(f)
        except Timeout:
            raise CredentialError(f"Could not acquire credential lock: {self.path}.lock")
        except ValueError:
            raise CredentialError(f"Credential file is corrupt: {self.path}")

    @property
    def access_token(self):
        return self._read().get("accessToken")

    @property
    def refresh_token(self):
        return self._read().get("refreshToken")

    @property
    def user(self):
        return self._read().get("user")

    def save(self, access_token, refresh_token, user):
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        try:
            with self.lock.acquire(timeout=self.lock_timeout):
                with open(self.path, "w", encoding="utf-8") as f:
                    json.dump({"accessToken": access_token, "refreshToken": refresh_token, "user": user}, f)
                os.chmod(self.path, 0o600)
        except Timeout:
            raise CredentialError(f"Could not acquire credential lock: {self.path}.lock")

    def clear(self):
        try:
            with self.lock.acquire(timeout=self.lock_timeout):
                if os.path.exists(self.path):
                    os.remove(self.path)
        except Timeout:
            raise CredentialError(f"Could not acquire credential lock: {self.path}.lock")
