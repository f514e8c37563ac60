from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from prometheus_client import make_asgi_app

from .engines.template_seed import load_seed_templates
from .routers.templates import router as templates_router
from .settings import settings
from .utils.db import count_templates, init_db, insert_template

logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
logger = logging.getLogger(__name__)


def seed_default_templates() -> int:
    if not settings.SEED_DEFAULT_TEMPLATES or count_templates() > 0:
        return 0
    templates = load_seed_templates(Path(settings.DEFAULT_TEMPLATES_PATH))
    for t in templates:
        insert_template(t)
    logger.info("seeded %d default template(s)", len(templates))
    return len(templates)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    Path(settings.BACKGROUNDS_DIR).mkdir(parents=True, exist_ok=True)
    seed_default_templates()
    logger.info("template store ready at %s (env: %s)", settings.DB_PATH, settings.ENV)
    yield


app = FastAPI(title="Certificate Template Core", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(templates_router)

@app.get("/health")
def health():
    return {"ok": True, "service": "certificate-template-core", "version": app.version}

app.mount("/metrics", make_asgi_app())

# Uploaded backgrounds.
app.mount(
    settings.BACKGROUNDS_URL,
    StaticFiles(directory=settings.BACKGROUNDS_DIR, check_dir=False),
    name="backgrounds",
)
