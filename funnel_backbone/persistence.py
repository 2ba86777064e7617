"""Funnel persistence: JSON encoding and the startup load.

The saved, exported and imported documents all share one shape::

    {"nodes": [...], "edges": [...]}

Only the presence of both keys is checked before the entries are handed to
the models; anything the models reject is reported as a parse error too.
"""

import json
import logging

from pydantic import ValidationError

from funnel_backbone.adapters.storage import KeyValueStore
from funnel_backbone.errors import FunnelParseError, StorageError
from funnel_backbone.models.funnel import FunnelState

logger = logging.getLogger(__name__)

STORAGE_KEY = "funnel-builder-state"
EXPORT_INDENT = 2


def parse_funnel(text: str | bytes) -> FunnelState:
    """Parse a funnel document.

    Raises:
        FunnelParseError: if the text is not JSON, is not an object, lacks
            ``nodes`` or ``edges``, or holds entries the models reject.
    """
    try:
        document = json.loads(text)
    except (TypeError, ValueError, RecursionError) as exc:
        raise FunnelParseError(f"funnel is not valid JSON: {exc}") from exc

    if not isinstance(document, dict):
        raise FunnelParseError("funnel document must be a JSON object")
    missing = [key for key in ("nodes", "edges") if document.get(key) is None]
    if missing:
        raise FunnelParseError(f"funnel document is missing {', '.join(missing)}")

    try:
        return FunnelState.model_validate(
            {"nodes": document["nodes"], "edges": document["edges"]}
        )
    except RecursionError as exc:
        raise FunnelParseError("funnel document is nested too deeply") from exc
    except ValidationError as exc:
        raise FunnelParseError(
            f"funnel document has {exc.error_count()} invalid field(s)"
        ) from exc


def dump_funnel(state: FunnelState, indent: int | None = None) -> str:
    """Encode a funnel as JSON. Unset optional fields are left out."""
    return state.model_dump_json(by_alias=True, indent=indent)


def load_initial_state(storage: KeyValueStore, key: str = STORAGE_KEY) -> FunnelState:
    """Read the saved funnel, falling back to an empty one.

    Never raises: a missing key, unreadable storage and corrupt contents
    all give an empty funnel.
    """
    try:
        saved = storage.get(key)
        if saved:
            return parse_funnel(saved)
    except (FunnelParseError, StorageError) as exc:
        logger.error("Failed to load funnel state: %s", exc)
    return FunnelState()
