# !!!
# TO RUN THE SERVER: uvicorn app:app --host 0.0.0.0 --port 8000
# !!!

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from config_app import CONFIG_PATH, DB_PATH, MAX_UPLOAD_MB, MIN_SCORE, TOP_SONGS_ENTROPY
from recognizers.bandpeak import BandPeakRecognizer, InvalidSongIdError, load_config
from recognizers.logs import log_detail, log_section, log_step, log_success, setup_logging

log = setup_logging()

AUDIO_SUFFIXES = {".wav", ".flac", ".ogg", ".mp3"}


def build_recognizer() -> BandPeakRecognizer:
    """Load the configuration and the saved index; both failures are fatal."""
    log_section("📦 Loading Recognizer")

    log_step(1, "Loading configuration...")
    log_detail("Config path", CONFIG_PATH)
    params = load_config(CONFIG_PATH)

    log_step(2, "Loading fingerprint index...")
    log_detail("Database path", DB_PATH)
    recognizer = BandPeakRecognizer(params, db_path=DB_PATH, min_score=MIN_SCORE,
                                    top_songs_entropy=TOP_SONGS_ENTROPY)
    recognizer.load()
    log_success(f"Index loaded: {recognizer.num_indexed_songs} songs")
    return recognizer


async def _save_upload(file: UploadFile) -> str:
    """Write an upload to a temp file (soundfile wants a path) and return the path."""
    suffix = Path(file.filename or "").suffix.lower() or ".wav"
    if suffix not in AUDIO_SUFFIXES:
        log.warning(f"Invalid file format '{suffix}'")
        raise HTTPException(status_code=400, detail=f"Unsupported audio format '{suffix}'.")

    content = await file.read()
    if not content:
        log.warning("Empty file upload rejected")
        raise HTTPException(status_code=400, detail="Empty upload.")
    if len(content) > MAX_UPLOAD_MB * 1024 * 1024:
        raise HTTPException(status_code=413, detail=f"Upload larger than {MAX_UPLOAD_MB} MB.")

    with tempfile.NamedTemporaryFile(delete=False, suffix=suffix) as tmp:
        tmp.write(content)
    log_detail("File size", f"{len(content) / 1024:.1f} KB")
    return tmp.name


def _cleanup(tmp_path: Optional[str]):
    if tmp_path and os.path.exists(tmp_path):
        os.remove(tmp_path)
        log.debug("Temporary file cleaned up")


def create_app(recognizer: Optional[BandPeakRecognizer] = None) -> FastAPI:
    recognizer = recognizer or build_recognizer()
    app = FastAPI(title="bandprint API", version="1.0")

    @app.get("/health")
    def health() -> Dict[str, str]:
        log.debug("Health check requested")
        return {"status": "ok"}

    @app.get("/songs")
    def songs() -> Dict[str, Any]:
        return {"songs": recognizer.index.songs, "stats": recognizer.index.stats()}

    @app.post("/index")
    async def index(song_id: str = Form(...), file: UploadFile = File(...)) -> JSONResponse:
        log.info(f"➕ New indexing request for '{song_id}'")
        tmp_path = None
        try:
            tmp_path = await _save_upload(file)
            observations = await run_in_threadpool(recognizer.index_song, Path(tmp_path), song_id)
            await run_in_threadpool(recognizer.save)
        except HTTPException:
            raise
        except InvalidSongIdError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except RuntimeError as e:
            # soundfile could not decode the upload
            log.warning(f"Could not decode upload: {e}")
            raise HTTPException(status_code=400, detail="Could not decode audio.")
        except Exception as e:
            log.error(f"Indexing failed: {e}")
            raise
        finally:
            _cleanup(tmp_path)

        log_success(f"Indexed '{song_id}' ({observations} observations)")
        return JSONResponse({"song_id": song_id, "observations": observations})

    @app.post("/recognize")
    async def recognize(file: UploadFile = File(...)) -> JSONResponse:
        log.info("🎧 New recognition request received")
        log_detail("Filename", file.filename or "unknown")
        tmp_path = None
        try:
            tmp_path = await _save_upload(file)
            song_id, confidence, meta = await run_in_threadpool(recognizer.recognize, Path(tmp_path))
        except HTTPException:
            raise
        except RuntimeError as e:
            log.warning(f"Could not decode upload: {e}")
            raise HTTPException(status_code=400, detail="Could not decode audio.")
        except Exception as e:
            log.error(f"Recognition failed: {e}")
            raise
        finally:
            _cleanup(tmp_path)

        if song_id:
            log_success(f"Match found: '{song_id}' (confidence: {confidence:.2%})")
        else:
            log.warning("No match found")

        return JSONResponse(
            {
                "matched": song_id is not None,
                "song_id": song_id,
                "confidence": confidence,
                "score": meta["best_song_score"],
                "offset": meta["best_song_offset"],
            }
        )

    log_section("🚀 Server Ready")
    return app


app = create_app()
