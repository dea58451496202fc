import logging

grey = "\x1b[38;20m"
yellow = "\x1b[33;20m"
red = "\x1b[31;20m"
bold_red = "\x1b[31;1m"
blue = "\x1b[34m"
reset = "\x1b[0m"

COLORS = {
    logging.DEBUG: blue,
    logging.INFO: grey,
    logging.WARNING: yellow,
    logging.ERROR: red,
    logging.CRITICAL: bold_red,
}


class ColorFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        color = COLORS.get(record.levelno, grey)
        formatter = logging.Formatter(f"{color}%(levelname)s{reset} %(name)s: %(message)s")
        return formatter.format(record)


def setup_logging(level: int, root_log_name: str = __name__.split(".")[0]) -> None:
    logger = logging.getLogger(root_log_name)
    logger.setLevel(level)

    if any(isinstance(h, logging.StreamHandler) for h in logger.handlers):
        return

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(ColorFormatter())
    logger.addHandler(handler)
