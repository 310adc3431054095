"""Schema-version checks shared by the genome codecs."""

import logging
import warnings
from typing import Any, Mapping

from evocore.errors import SerializationVersionMismatch

logger = logging.getLogger(__name__)


def resolve_schema_version(data: Mapping[str, Any], *, current: int, kind: str) -> int:
    """Return the payload's schema version, warning when it is older.

    A missing version is treated as version 1. Older payloads are loaded with
    documented default-fill; a :class:`SerializationVersionMismatch` warning is
    emitted so the caller knows fields were filled. Payloads from a newer
    version are rejected.

    Raises:
        SerializationVersionMismatch: If the payload is newer than ``current``
    """
    raw = data.get("schema_version")
    try:
        version = 1 if raw is None else int(raw)
    except (TypeError, ValueError):
        raise SerializationVersionMismatch(
            f"{kind}: unreadable schema_version {raw!r}"
        ) from None

    if version > current:
        raise SerializationVersionMismatch(
            f"{kind}: schema_version {version} is newer than supported version {current}"
        )
    if version < current:
        message = (
            f"{kind}: upgrading schema_version {version} -> {current} with default-filled fields"
        )
        logger.warning(message)
        warnings.warn(message, SerializationVersionMismatch, stacklevel=3)
    return version
