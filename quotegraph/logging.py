"""Logging setup for the quotegraph CLI.

The configured level applies to the ``quotegraph`` logger hierarchy only.
Third-party loggers (requests/urllib3, markdown-it) stay at WARNING unless
the level is DEBUG, so HTTP retries show up in verbose runs and nowhere else.

What each level shows for quotegraph:
- ERROR: fatal CLI errors
- WARNING: dropped records, failed issue fetches, discarded refreshes
- INFO: refresh progress and pool sizes
- DEBUG: per-pass resolution counts and quote disambiguation

Configure via config.yaml (logging.level, logging.format), env
(LOGGING_LEVEL, LOGGING_FORMAT) or ``quotegraph --verbose``.
"""

import logging

from quotegraph.config import LoggingConfig

PACKAGE_LOGGER = "quotegraph"
THIRD_PARTY_LOGGERS = ("urllib3", "requests", "markdown_it")
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

LOG = logging.getLogger("quotegraph.logging")


def resolve_level(name: str) -> int | None:
    """Numeric level for a level name (any case), None if unknown."""
    return logging.getLevelNamesMapping().get((name or "").strip().upper())


def configure_logging(config: LoggingConfig, verbose: bool = False) -> int:
    """Install one stderr handler on the root logger and set package levels.

    Returns the level applied to the quotegraph loggers. Unknown level
    names fall back to INFO with a warning.
    """
    level = logging.DEBUG if verbose else resolve_level(config.level)
    unknown = level is None
    if unknown:
        level = logging.INFO
    logging.basicConfig(level=logging.WARNING, format=config.format or DEFAULT_FORMAT, force=True)
    logging.getLogger(PACKAGE_LOGGER).setLevel(level)
    third_party = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in THIRD_PARTY_LOGGERS:
        logging.getLogger(name).setLevel(third_party)
    if unknown:
        LOG.warning("Unknown log level %r, using INFO", config.level)
    return level
