from __future__ import annotations

from dotenv import load_dotenv

load_dotenv()

import logging  # noqa: E402
from contextlib import asynccontextmanager  # noqa: E402
from typing import Optional  # noqa: E402

from fastapi import FastAPI, Request  # noqa: E402
from fastapi.responses import JSONResponse  # noqa: E402

from app.api.routes_connectors import router as connectors_router  # noqa: E402
from app.api.routes_health import router as health_router  # noqa: E402
from app.api.routes_jobs import router as jobs_router  # noqa: E402
from app.api.routes_quality import router as quality_router  # noqa: E402
from app.api.routes_suggestions import router as suggestions_router  # noqa: E402
from app.core.config import Settings, settings as default_settings  # noqa: E402
from app.core.errors import PipelineError  # noqa: E402
from app.core.logging import configure_logging  # noqa: E402
from app.db.session import AsyncSessionLocal, init_db  # noqa: E402
from app.generation.adapter import build_draft_generator  # noqa: E402
from app.generation.contracts import DraftGenerator  # noqa: E402
from app.runtime.dispatcher import Dispatcher, DispatchPolicy, JobQueueWorker  # noqa: E402
from app.runtime.queue import InMemoryJobQueue  # noqa: E402

logger = logging.getLogger(__name__)


def build_dispatcher(settings: Settings, *, generator: Optional[DraftGenerator] = None) -> Dispatcher:
    policy = DispatchPolicy.from_flags(
        queue_autorun=settings.automation_queue_autorun,
        run_immediate=settings.automation_run_immediate,
    )
    return Dispatcher(
        policy=policy,
        generator=generator or build_draft_generator(settings),
        queue=InMemoryJobQueue() if policy == DispatchPolicy.QUEUED else None,
    )


def create_app(settings: Optional[Settings] = None, *, generator: Optional[DraftGenerator] = None) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings.log_level)
    dispatcher = build_dispatcher(settings, generator=generator)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await init_db()
        queue = dispatcher.queue
        if queue is not None:
            JobQueueWorker(session_factory=AsyncSessionLocal, generator=dispatcher.generator).attach(queue)
            queue.start()
        logger.info("dispatch policy: %s", dispatcher.policy.value)
        yield
        if queue is not None:
            await queue.stop()

    app = FastAPI(title="Documentation Generation Pipeline", version="0.1.0", lifespan=lifespan)
    app.state.dispatcher = dispatcher

    @app.exception_handler(PipelineError)
    async def handle_pipeline_error(request: Request, exc: PipelineError):
        return JSONResponse(
            status_code=exc.http_status, content={"detail": exc.message, "code": exc.code, **exc.context()}
        )

    app.include_router(health_router)
    app.include_router(connectors_router)
    app.include_router(jobs_router)
    app.include_router(suggestions_router)
    app.include_router(quality_router)
    return app


app = create_app()
