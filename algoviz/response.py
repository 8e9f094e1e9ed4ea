import copy
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import jsonschema

logger = logging.getLogger(__name__)


class InvalidResponseError(ValueError):
    """Raised when a payload does not satisfy the AlgorithmResponse contract."""


@dataclass(frozen=True)
class AlgorithmStep:
    index: int
    title: str = ""
    description: str = ""
    code: Optional[str] = None
    data: Any = None
    highlights: Tuple[Any, ...] = ()
    action: Optional[str] = None


@dataclass(frozen=True)
class AlgorithmResponse:
    title: str
    explanation: str = ""
    complexity: str = ""
    steps: Tuple[AlgorithmStep, ...] = ()
    sample_data: Any = None

    def __len__(self) -> int:
        return len(self.steps)

    @property
    def last_index(self) -> int:
        return len(self.steps) - 1


def load_schema() -> dict:
    """Load the AlgorithmResponse JSON schema shipped next to this module."""
    schema_path = Path(__file__).parent / "response_schema.json"
    with open(schema_path, "r", encoding="utf-8") as f:
        return json.load(f)


def validate_payload(payload: Any, schema: Optional[dict] = None) -> Tuple[bool, str]:
    """
    Check a decoded payload against the response schema.

    Returns:
        (is_valid, error_message)
    """
    try:
        jsonschema.validate(instance=payload, schema=schema or load_schema())
        return True, ""
    except jsonschema.ValidationError as e:
        return False, e.message


def _step_from_dict(position: int, raw: Dict[str, Any]) -> AlgorithmStep:
    highlights = raw.get("highlights") or ()
    return AlgorithmStep(
        # Wire payloads number steps from 1 in "step"; positions are authoritative.
        index=position,
        title=str(raw.get("title") or ""),
        description=str(raw.get("description") or ""),
        code=raw.get("code") or None,
        data=copy.deepcopy(raw.get("data")),
        highlights=tuple(highlights),
        action=raw.get("action") or None,
    )


def response_from_dict(payload: Any) -> AlgorithmResponse:
    """Build an immutable AlgorithmResponse from a decoded JSON payload."""
    ok, error = validate_payload(payload)
    if not ok:
        raise InvalidResponseError(f"Invalid algorithm response: {error}")

    steps = tuple(_step_from_dict(i, raw) for i, raw in enumerate(payload["steps"]))
    response = AlgorithmResponse(
        title=payload["title"],
        explanation=payload.get("explanation", "") or "",
        complexity=payload.get("complexity", "") or "",
        steps=steps,
        sample_data=copy.deepcopy(payload.get("sampleData")),
    )
    logger.debug("Loaded '%s' with %d steps", response.title, len(steps))
    return response


def load_response(json_path: Union[str, Path]) -> AlgorithmResponse:
    with open(json_path, "r", encoding="utf-8") as f:
        try:
            payload = json.load(f)
        except json.JSONDecodeError as e:
            raise InvalidResponseError(f"{json_path} is not valid JSON: {e}") from e
    return response_from_dict(payload)
