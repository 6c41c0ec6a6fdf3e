#!/usr/bin/env python3
"""
GlitchCombo — FastAPI Backend
Holds one source image per session and re-renders it through the stage
pipeline whenever the stage set, config, or flip changes.
"""

import asyncio
import logging
import sys
import os
from pathlib import Path

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from fastapi import FastAPI, UploadFile, File, HTTPException
from fastapi.responses import Response
from pydantic import BaseModel

from core.config import ConfigError, EffectConfig, configure_logging
from core.image_io import encode_png, export_filename, frame_to_data_url, load_image
from core.safety import MAX_FILE_MB, SafetyError, check_extension, validate_stage_count
from core.scheduler import RenderScheduler
from core.slots import PresetStore, SlotError
from effects import STAGE_ORDER, list_stages, normalize_stages
from presets import BUILT_IN_PRESETS

logger = logging.getLogger(__name__)

app = FastAPI(title="GlitchCombo")

MAX_UPLOAD_SIZE = int(MAX_FILE_MB * 1024 * 1024)
PREVIEW_TIMEOUT_SECONDS = 30

# In-memory state for current session
_state = {
    "source": None,
    "source_name": None,
    "stages": frozenset(),
    "config": EffectConfig(),
    "flip": False,
}
_state_lock = asyncio.Lock()

_scheduler = RenderScheduler()
slots = PresetStore()

# Structured error recovery hints for user-facing errors
ERROR_RECOVERY = {
    "no_image": {"code": "NO_IMAGE", "hint": "Load an image file first.", "action": "load_file"},
    "no_render": {"code": "NO_RENDER", "hint": "Enable a stage or refresh the preview before exporting.", "action": "preview"},
    "upload_failed": {"code": "UPLOAD_FAILED", "hint": "Check the file format and try again.", "action": "retry"},
    "file_too_large": {"code": "FILE_TOO_LARGE", "hint": f"Maximum upload size is {MAX_FILE_MB:.0f}MB.", "action": None},
    "invalid_config": {"code": "INVALID_CONFIG", "hint": "Check stage names and parameter types.", "action": "reset"},
    "too_many_stages": {"code": "TOO_MANY_STAGES", "hint": "Send each stage id once.", "action": None},
    "superseded": {"code": "SUPERSEDED", "hint": "A newer preview request replaced this one.", "action": None},
    "processing_failed": {"code": "PROCESSING_FAILED", "hint": "Try disabling the last stage or resetting parameters.", "action": "undo"},
    "invalid_slot": {"code": "INVALID_SLOT", "hint": f"Slots are numbered 0-{slots.slots - 1}.", "action": None},
    "slot_empty": {"code": "SLOT_EMPTY", "hint": "Save the current look into this slot first.", "action": "save"},
}


def _error_detail(key: str, message: str) -> dict:
    """Build structured error detail dict for the frontend."""
    recovery = ERROR_RECOVERY.get(key, {})
    return {
        "detail": message,
        "code": recovery.get("code", "UNKNOWN"),
        "hint": recovery.get("hint", ""),
        "action": recovery.get("action"),
    }


class RenderState(BaseModel):
    stages: list[str] = []
    config: dict = {}
    flip: bool = False


def _parse_state(req: RenderState) -> tuple:
    try:
        validate_stage_count(req.stages)
    except SafetyError as e:
        raise HTTPException(status_code=400, detail=_error_detail("too_many_stages", str(e)))
    try:
        return normalize_stages(req.stages), EffectConfig.from_dict(req.config), req.flip
    except ConfigError as e:
        raise HTTPException(status_code=400, detail=_error_detail("invalid_config", str(e)))


def _result_payload(result) -> dict:
    return {
        "preview": frame_to_data_url(result.frame),
        "width": result.width,
        "height": result.height,
        "executed": result.executed,
        "skipped": result.skipped,
        "errors": result.errors,
        "flip": result.flip,
    }


async def _render(source, config, stages, flip) -> dict:
    """Queue a render on the scheduler and wait for it off the event loop."""
    ticket = _scheduler.request(source, config, stages, flip)
    finished = await asyncio.to_thread(ticket.wait, PREVIEW_TIMEOUT_SECONDS)
    if ticket.cancelled:
        raise HTTPException(status_code=409, detail=_error_detail("superseded", "Preview superseded"))
    if not finished:
        raise HTTPException(status_code=504, detail=_error_detail(
            "processing_failed", f"Preview timed out after {PREVIEW_TIMEOUT_SECONDS}s"))
    if ticket.error is not None:
        raise HTTPException(status_code=500, detail=_error_detail(
            "processing_failed", f"Stage processing failed: {str(ticket.error)[:100]}"))
    return _result_payload(ticket.result)


@app.get("/api/health")
async def health_check():
    return {"status": "ok"}


@app.get("/api/stages")
async def get_stages():
    """Stages in execution order with labels, aliases and default params."""
    return {"order": list(STAGE_ORDER), "stages": list_stages()}


@app.get("/api/status")
async def render_status():
    """Poll whether a render is in flight."""
    last = _scheduler.last_result
    return {
        "status": _scheduler.status,
        "has_image": _state["source"] is not None,
        "source_name": _state["source_name"],
        "last_render": None if last is None else {
            "width": last.width,
            "height": last.height,
            "executed": last.executed,
            "skipped": last.skipped,
        },
    }


@app.post("/api/upload")
async def upload_image(file: UploadFile = File(...)):
    """Upload an image; oversized images are downscaled to fit 1200px."""
    if not file.filename:
        raise HTTPException(status_code=400, detail="No filename provided")
    try:
        check_extension(file.filename)
    except SafetyError as e:
        raise HTTPException(status_code=400, detail=_error_detail("upload_failed", str(e)))

    data = bytearray()
    while chunk := await file.read(1024 * 1024):  # 1MB chunks
        data.extend(chunk)
        if len(data) > MAX_UPLOAD_SIZE:
            raise HTTPException(status_code=413, detail=_error_detail(
                "file_too_large", f"File too large. Maximum size: {MAX_FILE_MB:.0f}MB"))

    try:
        frame = await asyncio.to_thread(load_image, bytes(data))
    except Exception as e:
        logger.warning("Could not decode upload %s: %s", file.filename, e)
        raise HTTPException(status_code=400, detail=_error_detail("upload_failed", f"Could not decode image: {e}"))

    async with _state_lock:
        _state["source"] = frame
        _state["source_name"] = Path(file.filename).name
        _scheduler.request(frame, _state["config"], _state["stages"], _state["flip"])

    h, w = frame.shape[:2]
    logger.info("Loaded %s (%dx%d)", file.filename, w, h)
    return {
        "status": "ok",
        "width": w,
        "height": h,
        "preview": frame_to_data_url(frame),
    }


@app.post("/api/preview")
async def preview(req: RenderState):
    """Render the session image with the given stages, config and flip."""
    if _state["source"] is None:
        raise HTTPException(status_code=400, detail=_error_detail("no_image", "No image loaded"))
    stages, config, flip = _parse_state(req)

    async with _state_lock:
        _state["stages"], _state["config"], _state["flip"] = stages, config, flip
        source = _state["source"]
    return await _render(source, config, stages, flip)


@app.get("/api/export")
async def export_png():
    """Download the last rendered frame as PNG."""
    result = _scheduler.last_result
    if result is None:
        raise HTTPException(status_code=400, detail=_error_detail("no_render", "Nothing rendered yet"))
    png = await asyncio.to_thread(encode_png, result.frame)
    filename = export_filename()
    return Response(
        content=png,
        media_type="image/png",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.get("/api/presets")
async def list_presets():
    """Built-in looks plus the contents of every save slot."""
    return {
        "built_in": [{**p, "source": "built-in"} for p in BUILT_IN_PRESETS],
        "slots": [None if p is None else p.to_dict() for p in slots.list()],
    }


@app.post("/api/presets/{slot}")
async def save_slot(slot: int, req: RenderState | None = None):
    """Save the given state (or the live session state) into a slot."""
    if req is not None:
        stages, config, flip = _parse_state(req)
    else:
        stages, config, flip = _state["stages"], _state["config"], _state["flip"]
    try:
        preset = slots.save(slot, stages, config, flip)
    except SlotError as e:
        raise HTTPException(status_code=400, detail=_error_detail("invalid_slot", str(e)))
    return {"status": "ok", "slot": slot, "preset": preset.to_dict()}


@app.post("/api/presets/{slot}/load")
async def load_slot(slot: int):
    """Restore a slot into the live session and re-render if an image is loaded."""
    try:
        preset = slots.load(slot)
    except SlotError as e:
        raise HTTPException(status_code=400, detail=_error_detail("invalid_slot", str(e)))
    if preset is None:
        raise HTTPException(status_code=404, detail=_error_detail("slot_empty", f"Slot {slot} is empty"))

    async with _state_lock:
        _state["stages"], _state["config"], _state["flip"] = preset.active_stages, preset.config, preset.flip
        source = _state["source"]

    result = {"status": "ok", "slot": slot, "preset": preset.to_dict()}
    if source is not None:
        result["render"] = await _render(source, preset.config, preset.active_stages, preset.flip)
    return result


@app.delete("/api/presets/{slot}")
async def clear_slot(slot: int):
    try:
        had = slots.clear(slot)
    except SlotError as e:
        raise HTTPException(status_code=400, detail=_error_detail("invalid_slot", str(e)))
    return {"status": "ok", "slot": slot, "cleared": had}


def start(host: str = "127.0.0.1", port: int = 7860):
    import uvicorn
    configure_logging()
    print(f"GlitchCombo — launching at http://{host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level="warning")


if __name__ == "__main__":
    start()
