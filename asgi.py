"""
asgi.py -- Application assembly for the members portal.

This is the ONLY file that imports from both api/ and web/. It joins the two
independent layers into a single ASGI app without coupling them to each other.

It also owns error rendering by path: /api/ requests keep api/main.py's JSON
envelope, everything else gets an HTML page from web/routes.py.

Run with:  uvicorn asgi:app --reload
           python main.py serve
"""

from pathlib import Path

from fastapi import Request
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.main import (
    app,
    generic_exception_handler,
    http_exception_handler,
    log_unhandled_exception,
    store_unavailable_handler,
)
from auth.errors import StoreUnavailableError
from web.routes import render_status_page
from web.routes import router as web_router

app.include_router(web_router, tags=["Web UI"])
app.mount("/static", StaticFiles(directory=str(Path(__file__).parent / "web" / "static")), name="static")


def _wants_json(request: Request) -> bool:
    return request.url.path.startswith("/api/")


async def _http_exception(request: Request, exc: StarletteHTTPException):
    if _wants_json(request):
        return await http_exception_handler(request, exc)
    return render_status_page(request, exc.status_code)


async def _store_unavailable(request: Request, exc: StoreUnavailableError):
    if _wants_json(request):
        return await store_unavailable_handler(request, exc)
    return render_status_page(request, 503)


async def _unhandled(request: Request, exc: Exception):
    if _wants_json(request):
        return await generic_exception_handler(request, exc)
    log_unhandled_exception(request)
    return render_status_page(request, 500)


app.add_exception_handler(StarletteHTTPException, _http_exception)
app.add_exception_handler(StoreUnavailableError, _store_unavailable)
app.add_exception_handler(Exception, _unhandled)
