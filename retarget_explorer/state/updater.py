import asyncio
import logging
from aiohttp import ClientSession
from ..rpc import node as rpc_node
from ..consensus.targets import bits_from_hex
from .blocks import BlockRecord, InMemoryBlockCache

logger = logging.getLogger(__name__)


async def _fetch_block(http: ClientSession, node_url: str, height: int) -> BlockRecord:
    block_hash = await rpc_node.getblockhash(http, node_url, height)
    header = await rpc_node.getblockheader(http, node_url, block_hash)
    return BlockRecord(
        height=int(header["height"]),
        hash=header["hash"],
        bits=bits_from_hex(header["bits"]),
        timestamp=int(header["time"]),
    )


async def update_once(cache: InMemoryBlockCache, settings, http: ClientSession) -> int:
    """
    Bring the cache up to the node's tip.

    Returns the number of blocks appended.
    """
    info = await rpc_node.getblockchaininfo(http, settings.node_url)
    tip_height = int(info["blocks"])
    window_start = max(0, tip_height - cache.max_blocks + 1)

    cached = cache.recent_blocks()
    start = window_start
    if cached:
        last = cached[-1]
        if last.height <= tip_height:
            node_hash = await rpc_node.getblockhash(http, settings.node_url, last.height)
            if node_hash == last.hash:
                start = max(window_start, last.height + 1)
            else:
                logger.warning(
                    "Cached tip %d (%s) no longer on active chain, refetching",
                    last.height,
                    last.hash,
                )

    added = 0
    for height in range(start, tip_height + 1):
        cache.add_block(await _fetch_block(http, settings.node_url, height))
        added += 1

    if added:
        logger.debug("Block cache updated to height %d (+%d)", tip_height, added)
    return added


async def updater_loop(cache: InMemoryBlockCache, settings):
    async with ClientSession() as http:
        while True:
            try:
                await update_once(cache, settings, http)
            except Exception as e:
                logger.critical("Block cache updater error: %s", e)
                await asyncio.sleep(5)

            # Push notifications cover new blocks; poll only as a fallback
            if getattr(settings, "enable_zmq", False):
                await asyncio.sleep(max(settings.poll_interval, 30.0))
            else:
                await asyncio.sleep(settings.poll_interval)
