"""
JSON extraction from model responses.

The generator answers in prose with the graph inside a ```json fenced block,
sometimes with comments and trailing commas that strict JSON rejects.
"""
import re
import json
import logging
from typing import Any

logger = logging.getLogger(__name__)

JSON_BLOCK_PATTERN = re.compile(r"```json[ \t]*\r?\n([\s\S]*?)\r?\n[ \t]*```")
# `//` after a colon is kept so URLs inside strings survive
LINE_COMMENT_PATTERN = re.compile(r"(?<!:)//.*$", re.MULTILINE)
BLOCK_COMMENT_PATTERN = re.compile(r"/\*[\s\S]*?\*/")
TRAILING_COMMA_OBJECT = re.compile(r",\s*}")
TRAILING_COMMA_ARRAY = re.compile(r",\s*]")


class JSONExtractionError(ValueError):
    """Raised when no parseable JSON block is found"""
    pass


def clean_json_text(json_string: str) -> str:
    """Strip comments and trailing commas."""
    json_string = LINE_COMMENT_PATTERN.sub("", json_string)
    json_string = BLOCK_COMMENT_PATTERN.sub("", json_string)
    json_string = TRAILING_COMMA_OBJECT.sub("}", json_string)
    json_string = TRAILING_COMMA_ARRAY.sub("]", json_string)
    return json_string.strip()


def extract_and_parse_json(text: str) -> Any:
    """
    Extract the first ```json block from text and parse it.

    Raises:
        JSONExtractionError: If there is no block or it is not valid JSON
    """
    match = JSON_BLOCK_PATTERN.search(text or "")
    if not match or not match.group(1).strip():
        raise JSONExtractionError("No JSON block found in the response")

    json_string = clean_json_text(match.group(1))
    logger.debug(f"Extracted JSON: {json_string[:200]}...")

    try:
        return json.loads(json_string)
    except json.JSONDecodeError as e:
        raise JSONExtractionError(f"Could not parse JSON from the response: {e}") from e
