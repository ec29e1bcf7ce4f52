import asyncio
import logging

from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from .db import SessionLocal, init_db
from .cleanup import purge_stale_records
from .settings import settings
from . import sessions
from .routers import health
from .routers import auth
from .routers import session
from .routers import task
from .routers import progress

logging.basicConfig(
	level=settings.log_level.upper(),
	format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="ScholarPrep API")
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(session.router)
app.include_router(task.router)
app.include_router(progress.router)


@app.get("/", include_in_schema=False)
async def redirect_root_to_docs():
	return RedirectResponse(url="/docs")


@app.get("/info")
def root():
	return {"status": "ok", "gemini_configured": bool(settings.gemini_api_key), "model": settings.gemini_model}


def _run_cleanup() -> None:
	db = SessionLocal()
	try:
		for username in purge_stale_records(db):
			sessions.forget(username)
	except Exception:
		logger.exception("Stale record cleanup failed")
	finally:
		db.close()


async def _cleanup_watcher():
	# Once at startup, then daily
	while True:
		_run_cleanup()
		await asyncio.sleep(24 * 60 * 60)


@app.on_event("startup")
async def startup_event():
	init_db()
	asyncio.create_task(_cleanup_watcher())
