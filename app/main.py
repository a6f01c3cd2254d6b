from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.middleware.sessions import SessionMiddleware

import app.db.base  # noqa: F401
from app.api.main import api_router
from app.core.errors import StudentsError, register_exception_handlers
from app.core.logging import configure_logging, get_logger
from app.core.security import CSPMiddleware
from app.core.settings import settings
from app.db import dispose_engine
from app.middlewares.telemetry import RequestContextMiddleware
from app.version import version_info
from app.web.routes import students as web_students
from app.web.templating import BASE_DIR, render

configure_logging(json=settings.LOG_JSON, level=settings.LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # o engine nasce sob demanda (get_engine); aqui só garantimos o dispose
    yield
    dispose_engine()


app = FastAPI(
    title="Student Records",
    debug=settings.DEBUG,
    lifespan=lifespan,
    docs_url=f"{settings.API_PREFIX}/docs",
    openapi_url=f"{settings.API_PREFIX}/openapi.json",
)
app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")

# --- Middlewares de contexto/log
app.add_middleware(RequestContextMiddleware)

# --- CORS
allowed_origins = []
for host in settings.ALLOWED_HOSTS.split(","):
    _host = host.strip()
    if not _host:
        continue
    # aceita tanto com quanto sem protocolo
    if _host.startswith("http"):
        allowed_origins.append(_host)
    else:
        allowed_origins.append(f"http://{_host}")
        allowed_origins.append(f"https://{_host}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins or ["*"] if settings.DEBUG else allowed_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Accept", "X-Request-ID"],
)

# --- SESSÃO (flash messages das páginas)
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SESSION_SECRET,
    session_cookie="students_session",
    same_site="lax",
    https_only=settings.SECURE_COOKIES,
)
app.add_middleware(CSPMiddleware)


def _is_api(request: Request) -> bool:
    return request.url.path.startswith(settings.API_PREFIX)


def _html_error(request: Request, exc: StudentsError):
    ctx = {"status_code": exc.status_code, "message": exc.message}
    return render(request, "pages/error.html", ctx, status_code=exc.status_code)


register_exception_handlers(app, html_error=_html_error, is_api=_is_api)

app.include_router(api_router)
app.include_router(web_students.router)


@app.get("/version", tags=["ops"])
def version():
    get_logger().info("version.check")
    return {**version_info(), "env": settings.APP_ENV.value}
