from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional

from fastapi import FastAPI, File, Request, UploadFile, status
from fastapi.exceptions import RequestValidationError
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse

from .llm import CONNECTED, InferenceUnavailable, OllamaClient
from .pipeline import MappingPipeline
from .schemas import ProcessRequest, SaveResultRequest
from .settings import DATA_DIR, AppConfig, load_config
from .storage import FileStore, NotFoundError, StorageError
from .templates import render_index

LOG_FILE = DATA_DIR / "server.log"


def _configure_logging(log_file: Path = LOG_FILE) -> logging.Logger:
    logger = logging.getLogger("datamapper")
    if logger.handlers:
        return logger
    log_file.parent.mkdir(parents=True, exist_ok=True)
    logger.setLevel(logging.DEBUG)
    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    file_handler = RotatingFileHandler(
        log_file, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"
    )
    file_handler.setFormatter(formatter)
    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)
    logger.addHandler(file_handler)
    logger.addHandler(stream_handler)
    logger.propagate = False
    logger.debug("Logging initialised, writing to %s", log_file)
    return logger


logger = _configure_logging()


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request."
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    detail = first.get("msg", "invalid value")
    return f"Invalid request: {location} {detail}" if location else f"Invalid request: {detail}"


def create_app(
    config: Optional[AppConfig] = None,
    *,
    client: Optional[OllamaClient] = None,
) -> FastAPI:
    """
    Build the API around explicit configuration.

    ``client`` replaces the Ollama client; a stand-in must provide ``generate``,
    ``list_models`` and ``ping``.
    """
    if config is None:
        config = load_config()
    store = FileStore(config.upload_dir, config.results_dir)
    inference = client if client is not None else OllamaClient(config.ollama_url, timeout=config.timeout)
    pipeline = MappingPipeline(store, inference)
    status_error = f"Cannot connect to Ollama. Make sure it's running on {config.ollama_url}"

    app = FastAPI(title="AI Data Mapper")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.config = config
    app.state.store = store
    app.state.client = inference
    app.state.pipeline = pipeline

    @app.exception_handler(RequestValidationError)
    async def on_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        message = _validation_message(exc)
        logger.debug("Rejected %s %s: %s", request.method, request.url.path, message)
        return _error(message, status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(Exception)
    async def on_unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Server error on %s %s", request.method, request.url.path)
        return _error("Internal server error", status.HTTP_500_INTERNAL_SERVER_ERROR)

    @app.on_event("startup")
    async def on_startup() -> None:
        logger.info("Application startup complete.")
        connection = await run_in_threadpool(inference.ping)
        logger.info("Ollama at %s is %s", config.ollama_url, connection)

    @app.get("/", response_class=HTMLResponse)
    async def index() -> HTMLResponse:
        return HTMLResponse(render_index(default_model=config.default_model))

    @app.get("/api/health")
    async def health() -> JSONResponse:
        return JSONResponse({"status": "ok", "message": "Server is running"})

    @app.get("/api/ollama/status")
    def ollama_status() -> JSONResponse:
        try:
            models = inference.list_models()
        except InferenceUnavailable:
            return JSONResponse(
                {"status": "disconnected", "error": status_error},
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        return JSONResponse({"status": CONNECTED, "models": models})

    @app.get("/api/models")
    def list_models() -> JSONResponse:
        try:
            models: List = inference.list_models()
        except InferenceUnavailable:
            return _error("Failed to fetch models", status.HTTP_500_INTERNAL_SERVER_ERROR)
        return JSONResponse(models)

    @app.post("/api/upload")
    async def upload(
        template: Optional[UploadFile] = File(None),
        data: Optional[UploadFile] = File(None),
    ) -> JSONResponse:
        if template is None or data is None:
            return _error(
                "Both template and data files are required", status.HTTP_400_BAD_REQUEST
            )
        stored = {}
        # A failed data write leaves the already stored template in place.
        try:
            for field_name, upload_file in (("template", template), ("data", data)):
                content = await upload_file.read()
                record = store.store(field_name, upload_file.filename or field_name, content)
                stored[field_name] = record.to_dict()
        except StorageError:
            logger.exception("Upload error")
            return _error("File upload failed", status.HTTP_500_INTERNAL_SERVER_ERROR)
        logger.info(
            "Uploaded template=%s data=%s",
            stored["template"]["filename"],
            stored["data"]["filename"],
        )
        return JSONResponse({"message": "Files uploaded successfully", "files": stored})

    @app.post("/api/process")
    def process(body: ProcessRequest) -> JSONResponse:
        if not body.template_path or not body.data_path:
            return _error(
                "Template and data file paths are required", status.HTTP_400_BAD_REQUEST
            )
        model = body.model or config.default_model
        try:
            result = pipeline.map(body.template_path, body.data_path, model)
        except (StorageError, InferenceUnavailable) as exc:
            logger.error("Processing error: %s", exc)
            return _error(
                str(exc) or "Failed to process data mapping",
                status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        return JSONResponse(result.to_dict())

    @app.post("/api/save-result")
    def save_result(body: SaveResultRequest) -> JSONResponse:
        if not body.content or not body.filename:
            return _error("Content and filename are required", status.HTTP_400_BAD_REQUEST)
        try:
            store.save(body.filename, body.content)
        except StorageError:
            logger.exception("Save error")
            return _error("Failed to save file", status.HTTP_500_INTERNAL_SERVER_ERROR)
        logger.info("Saved result %s", body.filename)
        return JSONResponse(
            {
                "success": True,
                "message": "File saved successfully",
                "filename": body.filename,
            }
        )

    @app.get("/api/download/{filename}")
    def download(filename: str):
        try:
            path = store.locate(filename)
        except NotFoundError:
            return _error("File not found", status.HTTP_404_NOT_FOUND)
        return FileResponse(path, filename=path.name)

    return app


app = create_app()

# Convenience include for uvicorn.
__all__ = ["app", "create_app"]
