"""FastAPI application entry point."""

import os
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from web.routes import sync, webhooks

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("web.startup")
    yield
    logger.info("web.shutdown")


app = FastAPI(
    title="rulesync",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS for the admin frontend
frontend_origin = os.getenv("FRONTEND_ORIGIN", "http://localhost:3000")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[frontend_origin],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Mount routes
app.include_router(sync.router)
app.include_router(webhooks.router)


@app.get("/api/health")
async def health():
    return {"status": "ok"}
