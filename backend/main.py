import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings

logging.basicConfig(level=settings.LOG_LEVEL.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
for noisy in ("sqlalchemy.engine", "httpcore", "httpx", "multipart"):
    logging.getLogger(noisy).setLevel(logging.WARNING)

from app.core.database import init_db
from app.api import accounts, auth, health, imports, journal, statistics, tags, trades, watchlists

logger = logging.getLogger(__name__)

init_db()

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Trading journal: accounts, trades, CSV import and performance statistics",
)

# Credentialed requests need explicit origins
cors_origins = [settings.FRONTEND_URL]
if settings.DEBUG:
    cors_origins += ["http://localhost:3000", "http://127.0.0.1:3000"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for module in (health, auth, accounts, trades, imports, statistics, journal, tags, watchlists):
    app.include_router(module.router)

logger.info("%s %s ready (debug=%s)", settings.APP_NAME, settings.APP_VERSION, settings.DEBUG)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
