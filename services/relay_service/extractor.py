from __future__ import annotations

import json
import logging

from pydantic import ValidationError

from services.relay_service.errors import MalformedUpstreamJSON, UnexpectedUpstreamShape
from services.relay_service.models import Choice, UpstreamEnvelope

logger = logging.getLogger(__name__)


def extract_answer(body: bytes | str) -> str:
    """
    Pull ``choices[0].message.content`` out of a completion envelope.

    Every shape violation collapses into UnexpectedUpstreamShape; which field
    was wrong is only logged. Choices after the first are not inspected.
    """
    try:
        data = json.loads(body)
    except (ValueError, RecursionError) as exc:
        logger.error("Error parsing JSON response: %s", exc)
        raise MalformedUpstreamJSON(str(exc)) from exc

    if not isinstance(data, dict):
        logger.error("Upstream JSON is a %s, not an object", type(data).__name__)
        raise MalformedUpstreamJSON(f"expected a JSON object, got {type(data).__name__}")

    try:
        envelope = UpstreamEnvelope.model_validate(data)
        choice = Choice.model_validate(envelope.choices[0])
    except ValidationError as exc:
        logger.error(
            "Unexpected response structure from API: %s",
            exc.errors(include_url=False, include_input=False),
        )
        raise UnexpectedUpstreamShape() from exc

    if len(envelope.choices) > 1:
        logger.debug("Ignoring %d additional choices", len(envelope.choices) - 1)

    return choice.message.content
