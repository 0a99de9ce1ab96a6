"""Interface every state store backend implements."""

from typing import Any, Optional, Protocol


class StateStore(Protocol):
    """
    Versioned single-document store with compare-and-set writes.

    Version tokens are opaque. A write must carry the token returned by the
    read it is based on; ``None`` means "the document does not exist yet".
    """

    name: str

    async def read(self) -> tuple[Optional[dict[str, Any]], Optional[str]]:
        """Return (document, version), or (None, None) when nothing is stored."""
        ...

    async def write(self, document: dict[str, Any], version: Optional[str]) -> Optional[str]:
        """
        Store ``document`` if the current version still equals ``version``.

        Returns:
            The new version token

        Raises:
            Conflict: If the stored version moved on since ``version`` was read
            StoreUnavailable: On transport failures
        """
        ...

    async def close(self) -> None:
        ...
