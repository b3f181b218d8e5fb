"""Difficulty adjustment summary built from the live block cache"""

import logging
import time
from typing import Optional, Protocol, Sequence

from .consensus.retarget import (
    RetargetContext,
    RetargetSnapshot,
    bits_difference,
    estimate,
)

logger = logging.getLogger(__name__)


class BlockLike(Protocol):
    bits: int
    timestamp: int


class BlockDataProvider(Protocol):
    """Read interface of the block-data source (see state.blocks)"""

    def current_height(self) -> int: ...

    def recent_blocks(self) -> Sequence[BlockLike]: ...

    def last_difficulty_adjustment_time(self) -> Optional[int]: ...

    def previous_difficulty_retarget_percent(self) -> Optional[float]: ...

    def quarter_epoch_reference_time(self) -> Optional[int]: ...


class DifficultyAdjustmentApi:
    def __init__(self, provider: BlockDataProvider, network: str):
        self.provider = provider
        self.network = network

    def get_difficulty_adjustment(self, now: Optional[int] = None) -> Optional[RetargetSnapshot]:
        """
        Project the next retarget from the provider's current state.

        Returns None while the provider has no adjustment baseline or no
        blocks yet.
        """
        da_time = self.provider.last_difficulty_adjustment_time()
        previous_retarget = self.provider.previous_difficulty_retarget_percent()
        block_height = int(self.provider.current_height() or 0)
        blocks = self.provider.recent_blocks()
        latest = blocks[-1] if blocks else None
        previous = blocks[-2] if len(blocks) > 1 else None

        if latest is None or da_time is None or previous_retarget is None:
            logger.debug(
                "Difficulty adjustment unavailable (blocks=%d, da_time=%s, previous=%s)",
                len(blocks),
                da_time,
                previous_retarget,
            )
            return None

        if now is None:
            now = int(time.time())

        ctx = RetargetContext(
            epoch_start_time=da_time,
            now=now,
            block_height=block_height,
            previous_retarget=previous_retarget,
            network=self.network,
            latest_block_timestamp=latest.timestamp,
            quarter_epoch_time=self.provider.quarter_epoch_reference_time(),
            latest_bits=latest.bits,
            previous_bits=previous.bits if previous is not None else None,
        )
        return estimate(ctx)

    def bits_difference(self, old_bits: int, new_bits: int) -> float:
        """Clamped difficulty % change for the era at the current tip"""
        return bits_difference(
            old_bits,
            new_bits,
            height=int(self.provider.current_height() or 0),
            network=self.network,
        )
