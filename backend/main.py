"""
FastAPI backend for CallRail → Google Ads conversion sync.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.routes.conversions import router as conversions_router
from callvalue.config import load_config

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Built once per process and shared by every request
    if getattr(app.state, "config", None) is None:
        app.state.config = load_config()
    yield


app = FastAPI(
    title="CallRail Conversion Sync API",
    description="Tiered conversion values from CallRail calls for Google Ads",
    version="3.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["Content-Type"],
)

app.include_router(conversions_router)


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "ok"}
