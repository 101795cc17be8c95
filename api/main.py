"""FastAPI service exposing product card extraction."""
from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from extractor import ExtractionService, ExtractorConfig
from extractor.errors import FetchError, InvalidInputError

BASE_DIR = Path(__file__).resolve().parents[1]
load_dotenv(BASE_DIR / ".env")

logging.basicConfig(
    level=os.getenv("EXTRACT_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
LOGGER = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Accept",
    "Access-Control-Max-Age": "86400",
}

app = FastAPI(title="Product Card Extractor")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["Content-Type", "Accept"],
    max_age=86400,
)


@lru_cache(maxsize=1)
def get_service() -> ExtractionService:
    """Process-wide extraction service (override in tests)."""
    return ExtractionService(ExtractorConfig.from_env())


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": message},
        headers={"Cache-Control": "no-store"},
    )


@app.exception_handler(InvalidInputError)
def invalid_input_handler(request: Request, exc: InvalidInputError) -> JSONResponse:
    LOGGER.info("Rejected %s: %s", request.url.path, exc)
    return _error(400, str(exc))


@app.exception_handler(FetchError)
def fetch_error_handler(request: Request, exc: FetchError) -> JSONResponse:
    return _error(500, str(exc))


@app.get("/health", response_class=Response)
def health() -> Response:
    return Response(content="ok", media_type="text/plain")


@app.get("/extract")
def extract(
    url: Optional[str] = None,
    service: ExtractionService = Depends(get_service),
) -> JSONResponse:
    result = service.extract(url or "")
    return JSONResponse(content=result.to_public(), headers={"Cache-Control": "no-store"})


@app.get("/api/parse")
def parse_alias(
    url: Optional[str] = None,
    service: ExtractionService = Depends(get_service),
) -> JSONResponse:
    return extract(url=url, service=service)


@app.options("/extract")
@app.options("/api/parse")
def preflight() -> Response:
    return Response(status_code=200, headers=CORS_HEADERS)
