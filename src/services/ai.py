# generative AI assistant (Gemini); every call degrades to a fixed fallback
from __future__ import annotations

import asyncio
from typing import Iterable, Optional, Sequence

from google import genai
from google.genai import types

from store.errors import CollaboratorUnavailable
from store.models import Product, normalize_tags
from utils.config import Config
from utils.logger import get_logger

_logger = get_logger(__name__)

SUMMARY_UNAVAILABLE = "AI Assistant is unavailable."
CAPTION_UNAVAILABLE = "AI Service Unavailable"
ADMIN_UNAVAILABLE = "AI is not configured."


def catalog_context(products: Iterable[Product]) -> str:
    lines = []
    for p in products:
        comp = f" ({p.composition})" if p.composition else ""
        lines.append(
            f"- {p.brand_name}{comp}: {p.division}, Stock: {p.stock_status}, "
            f"Tags: {', '.join(p.tags)}"
        )
    return "\n".join(lines)


def product_names(products: Iterable[Product]) -> str:
    return ", ".join(
        f"{p.brand_name} ({p.composition})" if p.composition else p.brand_name
        for p in products
    )


class AIAssistant:
    """
    Read-only text and image queries against the AI provider.

    Nothing here retries; an unreachable, unconfigured or slow provider turns
    into the fallback value of the call.
    """

    def __init__(
        self,
        client=None,
        model: str = "gemini-2.5-flash",
        image_model: str = "gemini-2.5-flash-image",
        timeout: float = 15.0,
    ) -> None:
        self._client = client
        self.model = model
        self.image_model = image_model
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: Config) -> "AIAssistant":
        client = genai.Client(api_key=config.ai_api_key) if config.ai_api_key else None
        if client is None:
            _logger.info("No AI API key configured, AI features will use fallbacks")
        return cls(
            client=client,
            model=config.ai_model,
            image_model=config.ai_image_model,
            timeout=config.ai_timeout,
        )

    @property
    def available(self) -> bool:
        return self._client is not None

    async def _generate(self, contents, model: Optional[str] = None) -> str:
        if self._client is None:
            raise CollaboratorUnavailable("AI assistant", "missing API key")
        try:
            response = await asyncio.wait_for(
                self._client.aio.models.generate_content(
                    model=model or self.model, contents=contents
                ),
                self.timeout,
            )
        except TimeoutError:
            raise CollaboratorUnavailable("AI assistant", "timed out") from None
        except Exception as e:  # provider errors come in many shapes
            raise CollaboratorUnavailable("AI assistant", str(e)) from e
        return (response.text or "").strip()

    async def summarize_query(self, query: str, catalog: Sequence[Product]) -> str:
        prompt = f"""
You are a smart pharma assistant for a B2B ordering portal.

User Query: "{query}"

Here is the available Product Catalog:
{catalog_context(catalog)}

Task:
1. Identify which products from the catalog match the user's need (symptoms, generic name, brand, or medical context).
2. Provide a brief, professional recommendation list based strictly on the catalog above.
3. If no product matches, politely say so.
4. Keep the response short (under 50 words) and sales-oriented.
"""
        try:
            return await self._generate(prompt) or "I couldn't generate a response."
        except CollaboratorUnavailable as e:
            _logger.warning(f"Query summary failed: {e}")
            return SUMMARY_UNAVAILABLE

    async def caption(self, product: Product) -> str:
        comp = f' composed of "{product.composition}"' if product.composition else ""
        prompt = (
            "Write a short, professional, and catchy sales message (max 40 words) "
            "for a pharmaceutical distributor to share on WhatsApp about the product: "
            f'"{product.brand_name}"{comp}. Mention it is available at Janus Biotech. '
            "Add appropriate emojis."
        )
        try:
            return await self._generate(prompt) or CAPTION_UNAVAILABLE
        except CollaboratorUnavailable as e:
            _logger.warning(f"Caption failed: {e}")
            return CAPTION_UNAVAILABLE

    async def tags_for(self, name: str, composition: Optional[str] = None) -> tuple[str, ...]:
        contains = f' which contains "{composition}"' if composition else ""
        prompt = f"""
Generate 5-7 relevant search tags for the item: "{name}"{contains}.
Include: Common symptoms it treats (if medicine), Category (e.g. Antibiotic, Gift, Bag), and alternative common names.
Return ONLY a comma-separated list of keywords. No explanations.
Example Output: Acidity, Gastritis, Stomach Pain, PPI, Pantoprazole
"""
        try:
            text = await self._generate(prompt)
        except CollaboratorUnavailable as e:
            _logger.warning(f"Tag generation failed: {e}")
            return ()
        return normalize_tags(text.split(","))

    async def identify_from_image(
        self,
        image: bytes,
        catalog: Sequence[Product],
        mime_type: str = "image/jpeg",
    ) -> str:
        prompt = f"""
Analyze this image of a medicine or product.
1. Read the brand name or text from the package.
2. Check if it matches or is very similar to any product in this list: [{product_names(catalog)}].
3. If a match is found, return ONLY the Brand Name from the list.
4. If no exact match is found, return the most prominent text (Brand or Composition) found on the image.
"""
        contents = [types.Part.from_bytes(data=image, mime_type=mime_type), prompt]
        try:
            return await self._generate(contents, model=self.image_model)
        except CollaboratorUnavailable as e:
            _logger.warning(f"Visual search failed: {e}")
            return ""

    async def ask_admin(self, query: str, context: str) -> str:
        prompt = f"""
You are an intelligent Admin Assistant for a Pharma Company.
Current Data Context: {context}

Admin Query: {query}

Provide a professional, analytical, or creative response to help the admin.
"""
        try:
            return await self._generate(prompt) or "No response generated."
        except CollaboratorUnavailable as e:
            _logger.warning(f"Admin assistant failed: {e}")
            return ADMIN_UNAVAILABLE
