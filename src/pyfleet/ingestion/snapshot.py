"""Latest-positions snapshot ingestion + parsing."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from pyfleet._constants import LATEST_POSITIONS_ENDPOINT
from pyfleet._transport import Transport
from pyfleet.exceptions import NetworkError
from pyfleet.models.entity import Entity

_logger = logging.getLogger(__name__)


def parse_entities(decoded: Any) -> list[Entity]:
    """Parse a snapshot body, skipping individual entries that don't validate."""
    if not isinstance(decoded, list):
        raise NetworkError(
            f"Unexpected snapshot body: expected a list, got {type(decoded).__name__}",
            endpoint=LATEST_POSITIONS_ENDPOINT,
        )

    entities: list[Entity] = []
    for item in decoded:
        try:
            entities.append(Entity.model_validate(item))
        except ValidationError:
            _logger.debug("Skipping snapshot entry that failed validation", exc_info=True)
    return entities


async def fetch_latest_positions(transport: Transport) -> list[Entity]:
    """Fetch and parse the full current state of every entity."""
    decoded = await transport.get_json(LATEST_POSITIONS_ENDPOINT)
    return parse_entities(decoded)
