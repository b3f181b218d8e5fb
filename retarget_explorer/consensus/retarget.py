"""
Difficulty retarget projection for the explorer UI.

Two views exist, selected by activation height:

* legacy: periodic retarget modelled on a fixed-length epoch
* per-block: Digishield-style retarget recalculated every block
"""

import logging
import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from .params import (
    BLOCK_SECONDS_TARGET,
    DIGI_MAX_DOWN,
    DIGI_MAX_UP,
    LEGACY_EPOCH_BLOCK_LENGTH,
    LEGACY_LAST_BLOCK_INDEX,
    LEGACY_MAX_DOWN,
    LEGACY_MAX_UP,
    LEGACY_QUARTER_DIVISOR,
    LEGACY_QUARTER_WINDOW,
    TESTNET_MAX_BLOCK_SECONDS,
    Era,
    era_for,
    is_testnet,
)
from .targets import pct_change_from_bits

logger = logging.getLogger(__name__)

_CAMEL_FIELDS = {
    "progress_percent": "progressPercent",
    "difficulty_change": "difficultyChange",
    "estimated_retarget_date": "estimatedRetargetDate",
    "remaining_blocks": "remainingBlocks",
    "remaining_time": "remainingTime",
    "previous_retarget": "previousRetarget",
    "previous_time": "previousTime",
    "next_retarget_height": "nextRetargetHeight",
    "time_avg": "timeAvg",
    "adjusted_time_avg": "adjustedTimeAvg",
    "time_offset": "timeOffset",
    "expected_blocks": "expectedBlocks",
}


@dataclass(frozen=True)
class RetargetContext:
    """Inputs to one estimation. Times are unix seconds."""

    epoch_start_time: int
    now: int
    block_height: int
    previous_retarget: float
    network: str
    latest_block_timestamp: int
    quarter_epoch_time: Optional[int] = None
    # Bits of the tip and its parent, only read in the per-block era
    latest_bits: Optional[int] = None
    previous_bits: Optional[int] = None

    @property
    def era(self) -> Era:
        return era_for(self.block_height, self.network)


@dataclass(frozen=True)
class RetargetSnapshot:
    progress_percent: float  # 0..100
    difficulty_change: float  # %
    estimated_retarget_date: int  # ms epoch
    remaining_blocks: int
    remaining_time: int  # ms
    previous_retarget: float  # %
    previous_time: int  # s epoch
    next_retarget_height: int
    time_avg: int  # ms
    adjusted_time_avg: int  # ms
    time_offset: int  # ms, testnet UX tweak
    expected_blocks: float

    def to_dict(self) -> Dict[str, Any]:
        """Render with the field names the explorer frontend reads."""
        return {_CAMEL_FIELDS[k]: v for k, v in asdict(self).items()}


def clamp_difficulty_change(raw: float, era: Era) -> float:
    if era is Era.LEGACY:
        return max(min(raw, LEGACY_MAX_UP), LEGACY_MAX_DOWN)
    return max(min(raw, DIGI_MAX_UP), DIGI_MAX_DOWN)


def bits_difference(old_bits: int, new_bits: int, *, height: int, network: str) -> float:
    """Difficulty % change between two bits values, clamped for the era at `height`."""
    raw = pct_change_from_bits(old_bits, new_bits)
    return clamp_difficulty_change(raw, era_for(height, network))


def _change_for_block_time(seconds_per_block: float) -> float:
    # A zero timespan projects an unbounded increase; the clamp caps it.
    if seconds_per_block == 0:
        return math.inf
    return (BLOCK_SECONDS_TARGET / seconds_per_block - 1) * 100


def estimate(ctx: RetargetContext) -> RetargetSnapshot:
    era = ctx.era
    logger.debug(
        "Estimating retarget at height %d on %s (%s era)",
        ctx.block_height,
        ctx.network,
        era.value,
    )
    if era is Era.LEGACY:
        return _estimate_legacy(ctx)
    return _estimate_per_block(ctx)


def _estimate_legacy(ctx: RetargetContext) -> RetargetSnapshot:
    epoch_len = LEGACY_EPOCH_BLOCK_LENGTH
    height = ctx.block_height
    now = ctx.now

    diff_seconds = max(0, now - ctx.epoch_start_time)
    blocks_in_epoch = height % epoch_len if height >= 0 else 0
    progress_percent = (blocks_in_epoch / epoch_len) * 100 if height >= 0 else 100
    remaining_blocks = epoch_len - blocks_in_epoch
    next_retarget_height = height + remaining_blocks if height >= 0 else 0
    expected_blocks = diff_seconds / BLOCK_SECONDS_TARGET

    # On the last block of a 2016-block epoch, measure to the block itself
    end_time = ctx.latest_block_timestamp if blocks_in_epoch == LEGACY_LAST_BLOCK_INDEX else now
    actual_timespan = end_time - ctx.epoch_start_time

    time_avg_secs = diff_seconds / blocks_in_epoch if blocks_in_epoch else BLOCK_SECONDS_TARGET
    adjusted_time_avg_secs = time_avg_secs

    if ctx.quarter_epoch_time and blocks_in_epoch < LEGACY_QUARTER_WINDOW:
        time_last_epoch = ctx.epoch_start_time - ctx.quarter_epoch_time
        adjusted_time_last_epoch = time_last_epoch * (1 + ctx.previous_retarget / 100)
        adjusted_time_span = diff_seconds + adjusted_time_last_epoch
        adjusted_time_avg_secs = adjusted_time_span / LEGACY_QUARTER_WINDOW
        raw_change = _change_for_block_time(adjusted_time_span / LEGACY_QUARTER_DIVISOR)
    else:
        raw_change = _change_for_block_time(actual_timespan / (blocks_in_epoch + 1))

    difficulty_change = clamp_difficulty_change(raw_change, Era.LEGACY)
    logger.debug("Legacy change raw=%s clamped=%s", raw_change, difficulty_change)

    time_offset = 0
    if is_testnet(ctx.network):
        time_avg_secs = min(time_avg_secs, TESTNET_MAX_BLOCK_SECONDS)
        seconds_since_last_block = now - ctx.latest_block_timestamp
        if seconds_since_last_block + time_avg_secs > TESTNET_MAX_BLOCK_SECONDS:
            time_offset = -min(seconds_since_last_block, TESTNET_MAX_BLOCK_SECONDS) * 1000

    time_avg = math.floor(time_avg_secs * 1000)
    adjusted_time_avg = math.floor(adjusted_time_avg_secs * 1000)
    remaining_time = remaining_blocks * adjusted_time_avg

    return RetargetSnapshot(
        progress_percent=progress_percent,
        difficulty_change=difficulty_change,
        estimated_retarget_date=remaining_time + now * 1000,
        remaining_blocks=remaining_blocks,
        remaining_time=remaining_time,
        previous_retarget=ctx.previous_retarget,
        previous_time=ctx.epoch_start_time,
        next_retarget_height=next_retarget_height,
        time_avg=time_avg,
        adjusted_time_avg=adjusted_time_avg,
        time_offset=time_offset,
        expected_blocks=expected_blocks,
    )


def _estimate_per_block(ctx: RetargetContext) -> RetargetSnapshot:
    per_block_change = 0.0
    if ctx.latest_bits is not None and ctx.previous_bits is not None:
        raw = pct_change_from_bits(ctx.previous_bits, ctx.latest_bits)
        per_block_change = clamp_difficulty_change(raw, Era.PER_BLOCK)
        logger.debug("Per-block change raw=%s clamped=%s", raw, per_block_change)

    time_avg_secs = max(1, ctx.now - ctx.latest_block_timestamp) or BLOCK_SECONDS_TARGET
    # The next retarget is always one block away
    adjusted_time_avg = BLOCK_SECONDS_TARGET * 1000
    remaining_time = adjusted_time_avg

    return RetargetSnapshot(
        progress_percent=100,
        difficulty_change=per_block_change,
        estimated_retarget_date=ctx.now * 1000 + remaining_time,
        remaining_blocks=1,
        remaining_time=remaining_time,
        # Kept from the legacy era so the UI stays continuous
        previous_retarget=ctx.previous_retarget,
        previous_time=ctx.epoch_start_time,
        next_retarget_height=ctx.block_height + 1,
        time_avg=math.floor(time_avg_secs * 1000),
        adjusted_time_avg=adjusted_time_avg,
        time_offset=0,
        expected_blocks=1,
    )
