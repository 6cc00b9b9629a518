"""
FastAPI Server for pulseboard

Thin HTTP surface over the ingestion engine and the display adapter.
"""

import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Optional
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from core.config import Config, get_config
from core.database import AggregateStore, create_store
from core.errors import DatasetNotFoundError, InputError, PulseboardError
from sentiment.display import DatasetDisplay
from sentiment.pipeline import IngestionEngine, IngestionOptions
from sentiment.scoring import Scorer, VaderScorer

logger = logging.getLogger("pulseboard.api")

# Global instances
config: Optional[Config] = None
store: Optional[AggregateStore] = None
engine: Optional[IngestionEngine] = None
display: Optional[DatasetDisplay] = None


def build_scorer() -> Scorer:
    return VaderScorer()


def _error(status_code: int, exc: PulseboardError) -> HTTPException:
    return HTTPException(status_code=status_code, detail=exc.to_payload())


def _require_ready() -> None:
    if engine is None or display is None:
        raise HTTPException(
            status_code=503,
            detail={"error": "unavailable", "message": "Aggregate store is not ready"},
        )


async def _spool_upload(upload: UploadFile, upload_dir: Path, chunk_bytes: int) -> Path:
    """Copy the upload to a temp file in fixed-size chunks"""
    upload_dir.mkdir(parents=True, exist_ok=True)
    fd, raw_path = tempfile.mkstemp(prefix="upload-", suffix=".csv", dir=upload_dir)
    path = Path(raw_path)
    with os.fdopen(fd, "wb") as out:
        while True:
            chunk = await upload.read(chunk_bytes)
            if not chunk:
                break
            out.write(chunk)
    return path


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    global config, store, engine, display

    # Startup
    logger.info("Starting pulseboard API...")
    config = get_config()
    store = create_store(config)
    store.open()
    engine = IngestionEngine(store, build_scorer(), chunk_size=config.ingest.chunk_size)
    display = DatasetDisplay(store)
    logger.info("pulseboard API started (%s store)", store.backend_name)

    yield

    # Shutdown
    logger.info("Shutting down pulseboard API...")
    store.close()
    config = store = engine = display = None


app = FastAPI(
    title="pulseboard API",
    description="Sentiment histogram ingestion and display",
    version="0.1.0",
    lifespan=lifespan,
)

# Charts are embedded from other origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ==================== REST Endpoints ====================

# --- Health Check ---
@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy" if store is not None else "starting",
        "store": store.backend_name if store is not None else None,
        "timestamp": datetime.now().isoformat(),
    }


# --- Ingestion ---
@app.post("/api/ingest")
async def ingest_dataset(
    csv_file: Optional[UploadFile] = File(None),
    post_column: Optional[str] = Form(None),
    chart_title: Optional[str] = Form(None),
):
    """Score an uploaded CSV and store its 11-bin histogram"""
    if csv_file is None or not csv_file.filename:
        raise _error(400, InputError("No CSV file detected."))
    _require_ready()

    options = IngestionOptions.from_params(
        {
            "text_column": post_column or config.ingest.default_text_column,
            "project_title": chart_title or config.ingest.default_project_title,
        }
    )

    try:
        tmp_path = await _spool_upload(csv_file, config.upload_dir, config.ingest.upload_chunk_bytes)
    except OSError as e:
        logger.exception("Could not spool upload %s", csv_file.filename)
        raise HTTPException(status_code=500, detail={"error": "ingestion_error", "message": str(e)})
    finally:
        await csv_file.close()

    try:
        result = await engine.run_async(tmp_path, options, cleanup_path=tmp_path)
    except PulseboardError as exc:
        logger.warning("Ingestion of %s failed: %s", csv_file.filename, exc.message)
        raise _error(500, exc)

    return {
        "success": True,
        "id": result.id,
        "bins": result.histogram,
        "rows": result.rows,
        "truncated_rows": result.truncated_rows,
        "mode": store.backend_name,
    }


# --- Display ---
@app.get("/api/display/{dataset_id}")
def get_dataset_display(dataset_id: int):
    """Read-only aggregate row for embedded charts"""
    _require_ready()
    try:
        return display.get_display(dataset_id)
    except DatasetNotFoundError as exc:
        raise _error(404, exc)
    except PulseboardError as exc:
        raise _error(500, exc)


@app.get("/api/display/{dataset_id}/chart")
def get_dataset_chart(dataset_id: int):
    """Labelled bucket series for the same record"""
    _require_ready()
    try:
        return display.get_chart(dataset_id)
    except DatasetNotFoundError as exc:
        raise _error(404, exc)
    except PulseboardError as exc:
        raise _error(500, exc)


def run_server(host: str = "127.0.0.1", port: int = 8420):
    """Run the API server"""
    import uvicorn
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
