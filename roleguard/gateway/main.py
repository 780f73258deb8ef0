from __future__ import annotations

import os
from typing import Optional

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from roleguard import __version__
from roleguard.access.routes import RouteAccessMatcher
from roleguard.common.metrics import REG
from roleguard.gateway.guard import RouteAccessMiddleware
from roleguard.gateway.routers import access


def create_app(matcher: Optional[RouteAccessMatcher] = None) -> FastAPI:
    app = FastAPI(title="roleguard", version=__version__)

    # dashboard pages are gated by the route table; API endpoints by permission dependencies
    app.add_middleware(RouteAccessMiddleware, matcher=matcher)

    app.include_router(access.router)

    @app.get("/healthz")
    async def healthz():
        return {"ok": True}

    @app.get("/metrics")
    async def metrics():
        return PlainTextResponse(REG.render_text(), media_type="text/plain; version=0.0.4")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn  # type: ignore

    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("ROLEGUARD_PORT", "8080")))
