import requests
from fastapi import APIRouter, Depends

from erp_admin.api.deps import get_http_session
from erp_admin.config import settings
from erp_admin.utils.log import get_logger

router = APIRouter()
log = get_logger("health")

HEALTH_PROBE_TIMEOUT = 5


@router.get("/health", tags=["health"])
def health(session: requests.Session = Depends(get_http_session)):
    backend_ok = False
    try:
        # any HTTP answer, even an error status, means the backend is up
        session.get(settings.API_BASE_URL, timeout=settings.API_TIMEOUT_SECONDS or HEALTH_PROBE_TIMEOUT)
        backend_ok = True
    except requests.RequestException as e:
        log.warning(f"backend unreachable: {e}")
        backend_ok = False

    return {
        "status": "ok" if backend_ok else "degraded",
        "backend": backend_ok,
    }
