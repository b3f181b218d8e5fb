"""FastAPI endpoints exposing the difficulty adjustment projection"""

from fastapi import FastAPI, Query
from fastapi.responses import JSONResponse
import time
import logging

from ..consensus.targets import (
    InvalidBitsError,
    bits_from_hex,
    compact_to_target,
    target_to_difficulty,
)
from ..difficulty_adjustment import DifficultyAdjustmentApi

logger = logging.getLogger("WebAPI")

app = FastAPI(title="Difficulty Retarget Explorer")

# Store reference to the facade (will be set on startup)
api = None


def set_api(difficulty_api: DifficultyAdjustmentApi):
    """Set the global facade reference"""
    global api
    api = difficulty_api


@app.get("/api/v1/difficulty-adjustment")
async def get_difficulty_adjustment():
    """Projection of the next difficulty retarget"""
    snapshot = api.get_difficulty_adjustment() if api else None
    if snapshot is None:
        return JSONResponse(
            {"error": "Difficulty adjustment not yet available"}, status_code=503
        )
    return JSONResponse(snapshot.to_dict())


@app.get("/api/v1/difficulty-adjustment/bits")
async def get_bits_difference(
    old: str = Query(..., description="Previous bits (hex)"),
    new: str = Query(..., description="New bits (hex)"),
):
    """Clamped difficulty % change between two compact targets"""
    if not api:
        return JSONResponse({"error": "Explorer not initialized"}, status_code=503)
    try:
        old_bits = bits_from_hex(old)
        new_bits = bits_from_hex(new)
        change = api.bits_difference(old_bits, new_bits)
        difficulty = target_to_difficulty(compact_to_target(new_bits))
    except InvalidBitsError as e:
        return JSONResponse({"error": str(e)}, status_code=400)
    return JSONResponse({"change": change, "difficulty": difficulty})


@app.get("/api/health")
async def health_check():
    """Simple health check endpoint"""
    height = api.provider.current_height() if api else None
    return JSONResponse(
        {"status": "ok", "timestamp": int(time.time()), "height": height}
    )
