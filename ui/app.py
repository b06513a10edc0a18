"""
QA insights dashboard. Proxies the analytics API (/api/agent/team, /api/grammar/*, /api/tone/*,
/api/conversation*) with validation and a TTL cache, serves built panels and pages
(/api/panels/*, /api/pages/*) and the in-memory log buffer (/api/logs).
"""

import base64
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from dotenv import load_dotenv
load_dotenv(PROJECT_ROOT / ".env")

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import FileResponse, JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

from api import proxy
from api.errors import UpstreamError, ValidationError
from api.log_buffer import install as install_log_buffer
from api.log_buffer import log_buffer
from panels import build_panel, registered_panels
from panels.pages import PAGES, build_page
from visualization import plot_to_bytes

STATIC_DIR = Path(__file__).resolve().parent / "static"

logger = logging.getLogger(__name__)

# Project loggers at INFO, captured by the rolling buffer behind /api/logs
install_log_buffer()

NO_STORE_HEADERS = {"Cache-Control": "no-store, max-age=0"}
CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


class DashboardFilters(BaseModel):
    """Query filters shared by panels and pages; unset fields are left out."""

    from_date: str | None = None
    to_date: str | None = None
    time_range: str | None = None
    agent_id: str | None = None
    team_id: str | None = None
    topic: str | None = None
    error_type: str | None = None
    error_code: str | None = None
    search: str | None = None
    conversation_id: str | None = None
    chart_type: str | None = None

    def as_dict(self) -> dict:
        return {k: v for k, v in self.model_dump().items() if v not in (None, "")}


app = FastAPI(title="QA Insights Dashboard")


def _error(status_code: int, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


@app.exception_handler(ValidationError)
def handle_validation_error(request: Request, exc: ValidationError):
    return _error(exc.status_code, str(exc))


@app.exception_handler(UpstreamError)
def handle_upstream_error(request: Request, exc: UpstreamError):
    return _error(exc.status_code, exc.message)


@app.exception_handler(HTTPException)
def handle_http_exception(request: Request, exc: HTTPException):
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
def handle_unexpected_error(request: Request, exc: Exception):
    logger.error("Unhandled error path=%s error=%s", request.url.path, exc, exc_info=exc)
    return _error(500, str(exc) or "Internal server error")


@app.get("/api/health")
def health():
    return {"status": "ok", "panels": registered_panels(), "pages": list(PAGES)}


# --- Analytics proxy ---


@app.get("/api/agent/team")
def get_team_map():
    return proxy.team_map()


@app.get("/api/agents")
def get_agents():
    return proxy.agents()


@app.get("/api/grammar/bar")
def get_grammar_bar(
    from_date: str | None = None,
    to_date: str | None = None,
    error_code: str | None = None,
    is_team: bool = False,
):
    return proxy.grammar_bar(from_date, to_date, error_code, is_team)


@app.get("/api/grammar/pie")
def get_grammar_pie(
    from_date: str | None = None,
    to_date: str | None = None,
    error_code: str | None = None,
    agent_id: str | None = None,
):
    return proxy.grammar_pie(from_date, to_date, error_code, agent_id)


@app.get("/api/grammar/trends")
def get_grammar_trends(
    from_date: str | None = None,
    to_date: str | None = None,
    error_code: str | None = None,
    is_team: bool = False,
):
    return proxy.grammar_trends(from_date, to_date, error_code, is_team)


@app.get("/api/grammar/mapper")
def get_grammar_mapper():
    return proxy.grammar_mapper()


@app.get("/api/tone/agent")
def get_tone_agent(from_date: str | None = None, to_date: str | None = None, agent_id: str | None = None):
    return proxy.tone_agent(from_date, to_date, agent_id)


@app.get("/api/tone/analysis")
def get_tone_analysis(
    from_date: str | None = None,
    to_date: str | None = None,
    agent_id: str | None = None,
    is_positive: bool = False,
):
    return proxy.tone_analysis(from_date, to_date, agent_id, is_positive)


@app.get("/api/tone/shift")
def get_tone_shift(from_date: str | None = None, to_date: str | None = None, agent_id: str | None = None):
    return proxy.tone_shift(from_date, to_date, agent_id)


@app.get("/api/tone/agent/alert")
def get_tone_alerts(from_date: str | None = None, to_date: str | None = None, agent_id: str | None = None):
    return proxy.tone_alerts(from_date, to_date, agent_id)


@app.get("/api/tone/multi/customer")
def get_tone_multi_customer(from_date: str | None = None, to_date: str | None = None, agent_id: str | None = None):
    return proxy.tone_multi_customer(from_date, to_date, agent_id)


@app.get("/api/tone/mapper")
def get_tone_mapper():
    return proxy.tone_mapper()


@app.get("/api/conversations")
def get_conversations(from_date: str | None = None, to_date: str | None = None, agent_id: str | None = None):
    """Conversation heads; never cached by the browser and callable cross-origin."""
    headers = {**NO_STORE_HEADERS, **CORS_HEADERS}
    try:
        heads = proxy.conversations(from_date, to_date, agent_id)
    except ValidationError as e:
        return _error(e.status_code, str(e), headers)
    except UpstreamError as e:
        return _error(e.status_code, e.message, headers)
    return JSONResponse(content=heads, headers=headers)


@app.options("/api/conversations")
def preflight_conversations():
    return Response(status_code=200, headers=CORS_HEADERS)


@app.get("/api/conversation")
def get_conversation(conversation_id: str | None = None):
    return proxy.conversation(conversation_id)


@app.get("/api/conversation/analysis")
def get_conversation_analysis(conversation_id: str | None = None):
    return proxy.conversation_analysis(conversation_id)


# --- Panels and pages ---


def _build_panel_or_404(panel_id: str, filters: DashboardFilters) -> dict:
    if panel_id not in registered_panels():
        raise HTTPException(status_code=404, detail=f"Unknown panel: {panel_id}")
    return build_panel(panel_id, filters.as_dict())


@app.get("/api/panels/{panel_id}.png")
def get_panel_png(panel_id: str, filters: DashboardFilters = Depends()):
    """Panel chart as a PNG image."""
    panel = _build_panel_or_404(panel_id, filters)
    try:
        png = plot_to_bytes(panel)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    return Response(content=png, media_type="image/png")


@app.get("/api/panels/{panel_id}")
def get_panel(panel_id: str, filters: DashboardFilters = Depends()):
    """
    Built panel as JSON. Chart panels with data also carry the rendered chart
    as imageBase64 (PNG), like the dashboard cards display it.
    """
    panel = _build_panel_or_404(panel_id, filters)
    if panel.get("chartType") and not panel.get("empty"):
        try:
            panel["imageBase64"] = base64.b64encode(plot_to_bytes(panel)).decode("ascii")
        except ValueError as e:
            logger.warning("Chart render skipped panel=%s error=%s", panel_id, e)
    return panel


@app.get("/api/pages/{page}")
def get_page(page: str, filters: DashboardFilters = Depends()):
    if page not in PAGES:
        raise HTTPException(status_code=404, detail=f"Unknown page: {page}")
    return build_page(page, filters.as_dict())


# --- Logs ---


@app.get("/api/logs")
def get_logs(level: str | None = None, route: str | None = None, count: int = 100):
    if count < 1:
        raise ValidationError("count must be a positive integer")
    if level:
        try:
            entries = log_buffer.by_level(level, count)
        except ValueError as e:
            raise ValidationError(str(e)) from e
    elif route:
        entries = log_buffer.by_route(route, count)
    else:
        entries = log_buffer.recent(count)
    return {"logs": entries, "count": len(entries), "capacity": log_buffer.capacity}


@app.delete("/api/logs")
def clear_logs():
    log_buffer.clear()
    logger.info("Log buffer cleared")
    return {"cleared": True}


if STATIC_DIR.is_dir():
    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

    @app.get("/")
    def index():
        return FileResponse(STATIC_DIR / "index.html")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("ui.app:app", host="127.0.0.1", port=8000, reload=False)
