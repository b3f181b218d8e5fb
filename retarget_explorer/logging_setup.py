import coloredlogs, logging

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
VALID_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Third-party loggers that are noise below these levels
QUIET_LOGGERS = {
    "asyncio": logging.INFO,
    "aiohttp.access": logging.WARNING,
    "uvicorn.access": logging.WARNING,
}


def setup_logging(log_level="INFO"):
    """
    Install coloredlogs on the root logger.

    Args:
        log_level: level name, case-insensitive, or a bool (True=DEBUG)

    Returns:
        The explorer's application logger
    """
    if isinstance(log_level, bool):
        log_level = "DEBUG" if log_level else "INFO"

    log_level = str(log_level).upper()
    if log_level not in VALID_LEVELS:
        print(f"Invalid log level '{log_level}'. Using 'INFO'. Valid levels: {VALID_LEVELS}")
        log_level = "INFO"

    level_const = getattr(logging, log_level)
    logging.getLogger().setLevel(level_const)
    coloredlogs.install(level=log_level, fmt=LOG_FORMAT, milliseconds=True)

    for name, level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)

    logger = logging.getLogger("Retarget-Explorer")
    logger.setLevel(level_const)
    return logger
