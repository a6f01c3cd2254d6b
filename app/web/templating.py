from pathlib import Path
from urllib.parse import urlencode

from fastapi import Request
from fastapi.templating import Jinja2Templates

from app.version import APP_VERSION
from app.web.flash import pop_flash

BASE_DIR = Path(__file__).resolve().parent
TEMPLATES_DIR = BASE_DIR / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.add_extension("jinja2.ext.do")


def _fmt_dt(value) -> str:
    if not value:
        return "-"
    return value.strftime("%Y-%m-%d %H:%M")


def _or_dash(value) -> str:
    return "-" if value in (None, "") else str(value)


# Globais/filters comuns a TODO o app
templates.env.globals.update({"app_version": APP_VERSION})
templates.env.filters["dt"] = _fmt_dt
templates.env.filters["or_dash"] = _or_dash
templates.env.filters["urlencode_params"] = lambda params: urlencode(
    {k: v for k, v in params.items() if v not in (None, "")}
)


def render(request: Request, name: str, context: dict, status_code: int = 200):
    """Atalho: injeta flash/nonce no contexto e retorna TemplateResponse."""
    context.setdefault("flash", pop_flash(request))
    context.setdefault("csp_nonce", getattr(request.state, "csp_nonce", ""))
    return templates.TemplateResponse(request, name, context, status_code=status_code)
