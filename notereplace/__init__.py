from .service import FindReplaceSession
from .tool import IDocumentHost, LocalVault


__all__ = ["FindReplaceSession", "IDocumentHost", "LocalVault"]
