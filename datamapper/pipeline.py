from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Protocol

from .storage import FileStore, utcnow

logger = logging.getLogger("datamapper.pipeline")

PROMPT_TEMPLATE = """You are an expert data mapper. I need you to map data from the input file to match the template structure.

TEMPLATE STRUCTURE:
{template}

INPUT DATA:
{data}

Instructions:
1. Analyze the template structure and identify all placeholders/variables
2. Map the input data to fill these placeholders appropriately
3. Maintain the exact template format and structure
4. If data is missing, use "N/A" or appropriate default values
5. Return ONLY the filled template, no explanations

OUTPUT:"""


class TextGenerator(Protocol):
    def generate(self, prompt: str, model: str) -> str:
        ...


@dataclass
class MappingResult:
    text: str
    timestamp: str = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, object]:
        return {"success": True, "result": self.text, "timestamp": self.timestamp}


def build_prompt(template: str, data: str) -> str:
    return PROMPT_TEMPLATE.format(template=template, data=data)


class MappingPipeline:
    """
    Reads a template and a data file, asks the model to fill the one from the other,
    and returns the trimmed answer. Nothing about the model output is validated.
    """

    def __init__(self, store: FileStore, client: TextGenerator) -> None:
        self.store = store
        self.client = client

    def map(self, template_path: str | Path, data_path: str | Path, model: str) -> MappingResult:
        template = self.store.read(template_path)
        data = self.store.read(data_path)
        prompt = build_prompt(template, data)
        logger.info(
            "Mapping %s with %s (model=%s prompt=%d chars)",
            data_path,
            template_path,
            model,
            len(prompt),
        )
        response = self.client.generate(prompt, model)
        result = MappingResult(text=response.strip())
        logger.debug("Model %s returned %d chars", model, len(result.text))
        return result
