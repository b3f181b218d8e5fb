import asyncio
from .config import Settings
from .difficulty_adjustment import DifficultyAdjustmentApi
from .logging_setup import setup_logging
from .state.blocks import get_block_cache
from .state.updater import update_once, updater_loop
from .zmq.listener import BlockNotifier


def run_with_settings(settings: Settings):
    logger = setup_logging(settings.log_level)
    logger.info("Starting difficulty retarget explorer (%s)", settings.network)

    if settings.enable_zmq:
        logger.debug("ZMQ enabled - node: %s", settings.node_zmq_endpoint)
    else:
        logger.info("ZMQ disabled - using polling only")

    cache = get_block_cache(max_blocks=settings.cache_blocks, network=settings.network)
    difficulty_api = DifficultyAdjustmentApi(cache, settings.network)

    async def main():
        import uvicorn
        from aiohttp import ClientSession
        from .web.api import app, set_api

        set_api(difficulty_api)
        logger.info("Starting API on %s:%d", settings.api_host, settings.api_port)
        config = uvicorn.Config(
            app, host=settings.api_host, port=settings.api_port, log_level="warning"
        )
        server = uvicorn.Server(config)

        async with ClientSession() as http:

            async def on_block(block_hash: str):
                logger.debug("ZMQ: new block %s, refreshing cache", block_hash)
                await update_once(cache, settings, http)

            tasks = [
                asyncio.create_task(updater_loop(cache, settings)),
                asyncio.create_task(server.serve()),
            ]
            if settings.enable_zmq:
                notifier = BlockNotifier(settings.node_zmq_endpoint, on_block)
                tasks.append(asyncio.create_task(notifier.start()))

            # Wait for any task to complete or fail
            await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)

    asyncio.run(main())


def run_from_env():
    run_with_settings(Settings())
