from __future__ import annotations

from typing import Any, Dict, Optional

NO_DATA = "Todos Not Available"


# PUBLIC_INTERFACE
def message_envelope(message: str, data: Optional[Any] = None) -> Dict[str, Any]:
    """
    Build the standard success envelope for mutating endpoints.

    Args:
        message: Human-readable outcome, e.g. "Todo Created Successfully".
        data: Optional payload; omitted from the envelope when None.

    Returns:
        Dict with key ``message`` and, when given, ``data``.
    """
    envelope: Dict[str, Any] = {"message": message}
    if data is not None:
        envelope["data"] = data
    return envelope


# PUBLIC_INTERFACE
def no_data_envelope() -> Dict[str, str]:
    """Sentinel body returned by the list endpoint when the collection is empty."""
    return {"data": NO_DATA}
