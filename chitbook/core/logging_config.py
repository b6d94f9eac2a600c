import logging


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once for the service process."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    # Driver chatter is rarely useful next to ledger events
    logging.getLogger("pymongo").setLevel(logging.WARNING)
