from .errors import FindReplaceError, EmptyQuery, InvalidPattern, UndoEmpty
from .search import (
    Scope,
    Query,
    Selection,
    Match,
    ScanOutcome,
    SearchOutcome,
    DocumentChange,
    BatchResult,
    UndoEntry,
    UndoOutcome,
)
from .setting import Settings, PanelSettings, get_settings, reload_settings

__all__ = [
    # Errors
    "FindReplaceError", "EmptyQuery", "InvalidPattern", "UndoEmpty",
    # Search related
    "Scope", "Query", "Selection", "Match", "ScanOutcome", "SearchOutcome",
    # Replace related
    "DocumentChange", "BatchResult", "UndoEntry", "UndoOutcome",
    # Settings
    "Settings", "PanelSettings", "get_settings", "reload_settings",
]
