"""Process one generation job outside the API.

    python -m app.runtime.worker <job_id> [--tenant <tenant_id>]

Exits 0 when the job was processed (or was already finished), 1 when it failed.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Optional, Sequence

from dotenv import load_dotenv
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import settings
from app.core.errors import PipelineError
from app.core.logging import configure_logging
from app.db.session import AsyncSessionLocal, engine, init_db
from app.domain.job_service import process_job
from app.generation.adapter import build_draft_generator
from app.generation.contracts import DraftGenerator

logger = logging.getLogger(__name__)


async def run_job(
    job_id: str,
    *,
    tenant_id: Optional[str],
    session_factory: async_sessionmaker[AsyncSession],
    generator: DraftGenerator,
) -> int:
    logger.info("processing job %s", job_id)
    async with session_factory() as session:
        try:
            details = await process_job(session, job_id=job_id, tenant_id=tenant_id, generator=generator)
        except PipelineError as e:
            logger.error("job %s not processed: %s", job_id, e.message)
            return 1
        except Exception:
            logger.exception("failed to process job %s", job_id)
            return 1
    logger.info("job %s is %s", job_id, details.job.status.value)
    return 0


async def _run(args: argparse.Namespace) -> int:
    await init_db()
    try:
        return await run_job(
            args.job_id,
            tenant_id=args.tenant,
            session_factory=AsyncSessionLocal,
            generator=build_draft_generator(settings),
        )
    finally:
        await engine.dispose()


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Process one generation job outside the API.")
    parser.add_argument("job_id", help="Id of the job to process.")
    parser.add_argument(
        "--tenant",
        default=None,
        help="Tenant that owns the job (omit for global jobs).",
    )
    args = parser.parse_args(argv)

    load_dotenv()
    configure_logging(settings.log_level)
    return asyncio.run(_run(args))


if __name__ == "__main__":
    raise SystemExit(main())
