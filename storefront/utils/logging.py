import logging

from rich.logging import RichHandler

ROOT = "storefront"


def _root() -> logging.Logger:
    root = logging.getLogger(ROOT)

    if not root.handlers:
        handler = RichHandler(
            show_time=True,
            show_level=True,
            show_path=False,
            rich_tracebacks=True,
            log_time_format="[%X]",
        )
        handler.setFormatter(logging.Formatter("[%(name)s]  %(message)s"))
        root.addHandler(handler)
        root.setLevel(logging.INFO)
        root.propagate = False

    return root


def configure_logging(level: str) -> None:
    """
    Sets the level for every storefront logger. Called once at process start
    with `Settings.log_level`; unknown names fall back to INFO.
    """
    resolved = logging.getLevelName(level.upper())
    _root().setLevel(resolved if isinstance(resolved, int) else logging.INFO)


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Returns a logger that writes through the shared RichHandler.

    Module loggers are children of the `storefront` logger, so they follow
    whatever level `configure_logging` set.
    """
    _root()
    if not name or name == ROOT:
        return logging.getLogger(ROOT)
    if not name.startswith(ROOT + "."):
        name = f"{ROOT}.{name}"
    return logging.getLogger(name)
