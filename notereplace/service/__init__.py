from .session import FindReplaceSession, ScanRun


__all__ = ["FindReplaceSession", "ScanRun"]
