from .host import IDocumentHost, LocalVault


__all__ = [
    # Interfaces
    "IDocumentHost",
    # Implementations
    "LocalVault",
]
