from .debounce import CancelToken, Debouncer, schedule_after
from .log import configure_logging


__all__ = ["CancelToken", "Debouncer", "schedule_after", "configure_logging"]
