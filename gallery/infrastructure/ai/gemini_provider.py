import json
import logging
from typing import List

import google.generativeai as genai

from ...config import settings
from ...exceptions import AnalysisUnavailableError
from ...application.ports.ai_provider import ImageAnalyzer, ImageAnalysis

logger = logging.getLogger(__name__)

ANALYZE_PROMPT = """
Describe this photo for a personal gallery and check it for quality defects.
Reply with a single JSON object and nothing else:
{"description": string, "tags": [string], "isDefective": boolean, "defectType": string or null}
Defect types: blurry, duplicate, low quality, accidental.
"""

CATEGORIZE_PROMPT = """
Pick the most appropriate folder for this photo from the list below.
Reply with the folder name only.
Folders: {folders}
"""


def _strip_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = text.strip("`")
        if text.lower().startswith("json"):
            text = text[4:]
    return text.strip()


class GeminiImageAnalyzer(ImageAnalyzer):
    def __init__(self, model_name: str = None) -> None:
        if not settings.GEMINI_API_KEY:
            logger.warning("GEMINI_API_KEY not configured")
        genai.configure(api_key=settings.GEMINI_API_KEY)
        self.model = genai.GenerativeModel(model_name or settings.GEMINI_MODEL)

    def _generate(self, prompt: str, image_bytes: bytes, mime_type: str) -> str:
        try:
            result = self.model.generate_content([
                prompt,
                {"mime_type": mime_type, "data": image_bytes},
            ])
            return getattr(result, "text", str(result))
        except Exception as e:
            logger.error(f"Gemini request failed: {e}")
            raise AnalysisUnavailableError("AI analysis unavailable") from e

    def analyze(self, image_bytes: bytes, mime_type: str) -> ImageAnalysis:
        raw = self._generate(ANALYZE_PROMPT, image_bytes, mime_type)
        try:
            payload = json.loads(_strip_fences(raw))
        except json.JSONDecodeError as e:
            logger.warning(f"Unparsable analysis response: {raw[:200]!r}")
            raise AnalysisUnavailableError("AI analysis returned an invalid response") from e
        if not isinstance(payload, dict):
            raise AnalysisUnavailableError("AI analysis returned an invalid response")
        is_defective = bool(payload.get("isDefective", False))
        return ImageAnalysis(
            description=str(payload.get("description") or ""),
            tags=[str(t) for t in payload.get("tags") or [] if str(t).strip()],
            is_defective=is_defective,
            defect_type=(payload.get("defectType") or None) if is_defective else None,
        )

    def categorize(self, image_bytes: bytes, mime_type: str, folder_names: List[str]) -> str:
        prompt = CATEGORIZE_PROMPT.format(folders=", ".join(folder_names))
        return _strip_fences(self._generate(prompt, image_bytes, mime_type)).strip('"\'')
