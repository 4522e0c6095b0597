import google.generativeai as genai

from app.core.config import Settings


class GeminiTextService:
    """
    Thin wrapper around a Gemini model used for short text classification.
    """

    def __init__(self, api_key: str, model_name: str):
        genai.configure(api_key=api_key)
        self.model = genai.GenerativeModel(model_name)

    async def generate_content(self, prompt: str) -> str:
        """
        Generates content using Gemini model.
        """
        response = await self.model.generate_content_async(prompt)
        return response.text


def build_text_service(settings: Settings):
    """Gemini client when configured for triage, otherwise None"""
    if settings.GEMINI_API_KEY and settings.TRIAGE_USE_AI:
        return GeminiTextService(settings.GEMINI_API_KEY, settings.GEMINI_MODEL)
    return None
