from contextlib import asynccontextmanager

import uvicorn
from apscheduler.schedulers.background import BackgroundScheduler
from fastapi import FastAPI, Request
from fastapi.responses import RedirectResponse

from erp_admin.api.deps import LoginRequired
from erp_admin.api.health import router as health_router
from erp_admin.api.routes_auth import router as auth_router
from erp_admin.api.routes_dashboard import router as dashboard_router
from erp_admin.api.routes_products import router as products_router
from erp_admin.config import settings
from erp_admin.navigation import BreadcrumbProvider
from erp_admin.repositories.query_cache import QueryCacheRegistry
from erp_admin.utils.log import get_logger

log = get_logger("app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # scheduler for dropping idle query cache entries
    scheduler = BackgroundScheduler()

    def gc_job():
        dropped = app.state.query_caches.collect_garbage(settings.QUERY_CACHE_IDLE_SECONDS)
        if dropped:
            log.debug(f"query cache gc dropped {dropped} entries")

    scheduler.add_job(
        gc_job, "interval", seconds=settings.QUERY_CACHE_GC_INTERVAL_SECONDS, id="query_cache_gc"
    )
    scheduler.start()

    try:
        yield
    finally:
        scheduler.shutdown(wait=False)


app = FastAPI(title="Warehouse ERP System", version="0.1.0", lifespan=lifespan)

# per-token query caches shared by all requests
app.state.query_caches = QueryCacheRegistry(stale_seconds=settings.QUERY_STALE_SECONDS)

app.add_middleware(BreadcrumbProvider)


@app.exception_handler(LoginRequired)
async def login_required_handler(request: Request, exc: LoginRequired):
    return RedirectResponse("/login", status_code=303)


app.include_router(health_router, prefix="/api", tags=["health"])

app.include_router(auth_router, tags=["auth"])

app.include_router(dashboard_router, tags=["dashboard"])

app.include_router(products_router, tags=["products"])


if __name__ == "__main__":
    uvicorn.run("erp_admin.main:app", host=settings.APP_HOST, port=settings.APP_PORT)
