"""Logging setup shared by the API process and scripts."""
import logging

_FORMAT = "%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Configure the root logger with a single console handler.

    Calling it again only adjusts the level, so app factories used by
    tests don't stack duplicate handlers.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    if not any(getattr(h, "_fieldnotes", False) for h in root_logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        handler._fieldnotes = True
        root_logger.addHandler(handler)

    # apscheduler logs every tick at INFO
    logging.getLogger("apscheduler").setLevel(logging.WARNING)
    return root_logger
