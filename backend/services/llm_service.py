"""
LLM Service for Graph Generation

Asks the model for a process graph (products and transformations) and turns
the answer into validated records. Graph building and layout happen elsewhere.
"""

import openai
import os
import logging
from typing import Any, List, Optional
from dotenv import load_dotenv
from pydantic import ValidationError

from schemas.process_graph import Record, GraphPayload
from utils.json_extraction import extract_and_parse_json, JSONExtractionError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4.1"

GRAPH_LAYOUT_PROMPT = """Ты аналитик технологических процессов. Построй граф процесса из продуктов и преобразований.

Верни ТОЛЬКО один блок ```json с объектом вида:
{
  "nodes": [
    {
      "Id узла": "p1",
      "Тип": "Продукт",
      "Название": "Сырьё",
      "Описание": "Краткое описание",
      "Входы": [],
      "Выходы": []
    },
    {
      "Id узла": "t1",
      "Тип": "Преобразование",
      "Название": "Переработка",
      "Описание": "Краткое описание",
      "Входы": ["p1"],
      "Выходы": ["p2"]
    }
  ]
}

ПРАВИЛА:
- "Тип" только "Продукт" или "Преобразование"
- "Входы" и "Выходы" заполняются только у преобразований и содержат "Id узла" продуктов
- Каждый "Id узла" уникален
- Каждый продукт, упомянутый во входах или выходах, должен быть описан отдельным узлом"""


class GraphGenerationError(Exception):
    """Raised when the model answer cannot be turned into records"""
    pass


def parse_graph_response(text: str) -> List[Record]:
    """Parse a model answer into records."""
    try:
        data: Any = extract_and_parse_json(text)
    except JSONExtractionError as e:
        raise GraphGenerationError(str(e)) from e

    if isinstance(data, list):
        data = {"nodes": data}

    try:
        payload = GraphPayload.model_validate(data)
    except ValidationError as e:
        raise GraphGenerationError(f"Generated graph has an invalid shape: {e}") from e

    logger.info(f"Parsed {len(payload.nodes)} records from the model answer")
    return payload.nodes


class LLMService:
    """
    Service for generating process graphs from a free-text prompt.
    """

    def __init__(self, model: Optional[str] = None):
        load_dotenv()
        self.model = model or os.getenv("OPENAI_MODEL", DEFAULT_MODEL)
        self._client: Optional[openai.OpenAI] = None

    @property
    def client(self) -> openai.OpenAI:
        # Created on first use so the app starts without an API key
        if self._client is None:
            self._client = openai.OpenAI(api_key=os.getenv("OPENAI_API_KEY"))
        return self._client

    async def generate_records(self, prompt: str) -> List[Record]:
        """
        Generate the record list for a prompt.

        Raises:
            GraphGenerationError: If the request fails or the answer is unusable
        """
        logger.info(f"Requesting graph generation ({self.model}), prompt: {prompt[:80]!r}")

        try:
            response = self.client.responses.create(
                model=self.model,
                input=f"{GRAPH_LAYOUT_PROMPT}, вот сам промт - {prompt}",
                tools=[{"type": "web_search_preview"}],
            )
        except openai.OpenAIError as e:
            logger.error(f"LLM graph generation error: {str(e)}")
            raise GraphGenerationError(f"Graph generation request failed: {str(e)}") from e

        text = response.output_text
        if not text:
            raise GraphGenerationError("The model returned an empty answer")

        return parse_graph_response(text)
