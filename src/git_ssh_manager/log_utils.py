import inspect
import logging


class ClassNameFilter(logging.Filter):
    """
    Add a `class_name` attribute to the LogRecord by looking for the
    instance (self) or class (cls) of the logging call in the stack.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.class_name = "<no-class>"

        frame = inspect.currentframe()
        try:
            while frame:
                # Matching on the function name is good enough here.
                if frame.f_code.co_name == record.funcName:
                    local_self = frame.f_locals.get("self")
                    if local_self is not None:
                        record.class_name = type(local_self).__name__
                        break

                    local_cls = frame.f_locals.get("cls")
                    if isinstance(local_cls, type):
                        record.class_name = local_cls.__name__
                        break

                frame = frame.f_back
        finally:
            del frame

        return True


class CallerFormatter(logging.Formatter):
    """
    Formatter showing:
    - level
    - time
    - file and line number
    - class and function
    - message
    """

    default_format = (
        "[%(levelname)s] %(asctime)s "
        "%(filename)s:%(lineno)d "
        "%(class_name)s.%(funcName)s : "
        "%(message)s"
    )

    def __init__(self, fmt: str | None = None, datefmt: str | None = None):
        if fmt is None:
            fmt = self.default_format
        super().__init__(fmt=fmt, datefmt=datefmt, style='%')


def init_logging(level: str | int = logging.DEBUG) -> None:
    """Initialize logging configuration for the application."""

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.addFilter(ClassNameFilter())
    console_handler.setFormatter(CallerFormatter())
    root_logger.addHandler(console_handler)

    # httpx logs every request at INFO, including token endpoint URLs.
    logging.getLogger("httpx").setLevel(logging.WARNING)
