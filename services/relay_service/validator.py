from __future__ import annotations

import json
import logging

from pydantic import ValidationError

from services.relay_service.errors import InvalidBody, InvalidQuestion
from services.relay_service.models import IncomingRequest

logger = logging.getLogger(__name__)


def parse_question(raw_body: bytes | str) -> str:
    """
    Decode a /chat/ request body and return its question unchanged.

    Raises InvalidBody when the body is not a JSON object and InvalidQuestion
    when ``question`` is missing, not a string, or blank.
    """
    try:
        data = json.loads(raw_body)
    except (ValueError, RecursionError) as exc:
        logger.warning("Error parsing request body: %s", exc)
        raise InvalidBody() from exc

    if not isinstance(data, dict):
        logger.warning("Request body is not a JSON object (got %s)", type(data).__name__)
        raise InvalidBody()

    try:
        request = IncomingRequest.model_validate(data)
    except ValidationError as exc:
        logger.warning("Rejected question: %s", exc.errors(include_url=False))
        raise InvalidQuestion() from exc

    return request.question
