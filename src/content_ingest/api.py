# -*- coding: utf-8 -*-
"""
FastAPI API for the content ingestion service.
"""
import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, File, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from . import __version__
from .acquisition import ContentAcquisitionService
from .config import settings
from .document_parser import parse_document
from .errors import AllProvidersExhausted, InvalidTarget
from .logging_config import setup_logging
from .middleware import RequestIDMiddleware
from .models import (
    DocumentResponse,
    ErrorResponse,
    HealthResponse,
    PostResponse,
    ProviderErrorResponse,
    StructureRequest,
    TranslateRequest,
    TranslateResponse,
)
from .structurer import document_structurer

# Setup structured logging
setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Share one outbound HTTP client for the lifetime of the app."""
    logger.info("Starting content ingestion service", extra={"version": __version__})
    async with httpx.AsyncClient(
            timeout=settings.PROVIDER_TIMEOUT / 1000,
            follow_redirects=True,
    ) as client:
        _app.state.acquisition = ContentAcquisitionService(client=client)
        yield
    logger.info("Shutting down content ingestion service")


app = FastAPI(
    title="Content Ingestion Service",
    description="Fallback acquisition of posts and translations, and document structuring",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if settings.DOCS_ENABLED else None,
    redoc_url="/redoc" if settings.DOCS_ENABLED else None,
)

# Middleware stack (order matters: last added = first executed)
app.add_middleware(GZipMiddleware, minimum_size=settings.GZIP_MIN_SIZE)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIDMiddleware)


def get_acquisition_service(request: Request) -> ContentAcquisitionService:
    service = getattr(request.app.state, "acquisition", None)
    if service is None:
        # App used without its lifespan (e.g. a bare TestClient)
        service = ContentAcquisitionService()
        request.app.state.acquisition = service
    return service


@app.exception_handler(InvalidTarget)
async def invalid_target_handler(_request: Request, exc: InvalidTarget) -> JSONResponse:
    logger.info("Rejected invalid target", extra={"error": str(exc)})
    return JSONResponse(status_code=400, content=ErrorResponse(error=str(exc)).model_dump())


@app.exception_handler(AllProvidersExhausted)
async def exhausted_handler(_request: Request, exc: AllProvidersExhausted) -> JSONResponse:
    body = ErrorResponse(
        error=str(exc),
        errors=[ProviderErrorResponse(provider=p, reason=r) for p, r in exc.errors],
    )
    return JSONResponse(status_code=502, content=body.model_dump())


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Service health endpoint."""
    return HealthResponse(status="healthy", version=__version__)


@app.get("/posts", response_model=PostResponse)
async def fetch_post(
        request: Request,
        url: str = Query(..., min_length=1, description="Post URL"),
) -> PostResponse:
    """
    Fetch a social-media post and its reply thread.

    - **url**: Post URL (primary domain or a known mirror)
    """
    service = get_acquisition_service(request)
    result = await service.fetch_post(url)
    post = result.unwrap()

    logger.info(
        "Post fetched",
        extra={"source": result.source, "thread_length": len(post.thread)},
    )
    return PostResponse.from_post(post, result.errors)


@app.post("/translate", response_model=TranslateResponse)
async def translate(request: Request, body: TranslateRequest) -> TranslateResponse:
    """Translate text through the translation mirrors."""
    service = get_acquisition_service(request)
    result = await service.fetch_translation(body.text, body.source_lang, body.target_lang)
    translation = result.unwrap()

    return TranslateResponse(
        translated_text=translation.text,
        source=result.source,
        source_lang=translation.source_lang,
        target_lang=translation.target_lang,
        truncated=translation.truncated,
        errors=[ProviderErrorResponse(provider=p, reason=r) for p, r in result.errors],
    )


@app.post("/documents/structure", response_model=DocumentResponse)
async def structure_document(body: StructureRequest) -> DocumentResponse:
    """Structure already-decoded document text."""
    document = document_structurer.structure(body.text, page_count=body.page_count)
    return DocumentResponse.from_document(document)


@app.post("/documents/parse", response_model=DocumentResponse)
async def parse_uploaded_document(file: UploadFile = File(...)) -> DocumentResponse:
    """Decode an uploaded PDF or Word file and structure it."""
    data = await file.read()
    logger.info(
        "Document upload received",
        extra={"upload_name": (file.filename or "")[:80], "size": len(data)},
    )
    document = await run_in_threadpool(parse_document, file.filename or "", data)
    return DocumentResponse.from_document(document)
