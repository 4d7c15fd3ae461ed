import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

from bookstore.book import Book
from bookstore.config import Settings, settings as default_settings
from bookstore.errors import ConfigurationError, ExternalServiceError
from bookstore.services.http_client import get_http_client

logger = logging.getLogger(__name__)

NOT_CONFIGURED_MESSAGE = "AI summary is not configured."
EMPTY_SUMMARY_MESSAGE = "No summary generated."
GUESS_MARKER = "Online information not found. Based on the title and author, here is a reasonable guess:"

PROMPT_TEMPLATE = """You are generating a short professional book description.

First, try to use your known public knowledge about this book
using the given title and author.

If you can confidently recognize this book (by title and author),
write a short factual description.

If you cannot confidently find known information about this book,
then start your answer exactly with this line:

{marker}

After that line, write a short guessed description.

Book details:
Title: {title}
Author: {author}
Genre: {genre}

Keep the description short (3-4 lines).
Do not mention AI, training data or model.
"""


def build_prompt(book: Book) -> str:
    """Fill the fixed instruction template with the book's title, author and genre."""
    return PROMPT_TEMPLATE.format(
        marker=GUESS_MARKER,
        title=book.title,
        author=book.author,
        genre=book.genre or "",
    )


def extract_summary_text(payload: Any) -> str:
    """Pull ``candidates[0].content.parts[0].text`` out of a generateContent response."""
    try:
        text = payload["candidates"][0]["content"]["parts"][0].get("text")
    except (KeyError, IndexError, TypeError, AttributeError):
        logger.warning("Gemini response did not contain a candidate text part")
        return EMPTY_SUMMARY_MESSAGE
    text = str(text or "").strip()
    return text or EMPTY_SUMMARY_MESSAGE


class SummaryEnricher:
    """Generates a short book description with the Gemini API.

    ``summarize`` never raises. A missing API key yields a fixed
    informational string without touching the network; provider errors are
    returned as text so they stay visible in the summary field.
    """

    def __init__(self, client: Optional[httpx.AsyncClient] = None, config: Optional[Settings] = None,
                 api_key: Optional[str] = None, timeout: Optional[float] = None) -> None:
        config = config or default_settings
        self.api_key = api_key if api_key is not None else config.gemini_api_key
        self.model = config.gemini_model
        self.base_url = config.gemini_base_url.rstrip("/")
        self.timeout = timeout if timeout is not None else config.gemini_timeout
        self._client = client

    def is_available(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = await get_http_client()
        return self._client

    async def _generate(self, prompt: str) -> Dict[str, Any]:
        """Send a single-turn request; returns the parsed JSON body of a 2xx response."""
        if not self.is_available():
            raise ConfigurationError("Gemini API key is not configured")

        client = await self._get_client()
        body = {"contents": [{"parts": [{"text": prompt}]}]}
        headers = {"x-goog-api-key": self.api_key, "Content-Type": "application/json"}

        try:
            response = await asyncio.wait_for(
                client.post(self.endpoint, json=body, headers=headers),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise ExternalServiceError(f"request timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise ExternalServiceError(f"{type(e).__name__}: {e}") from e

        if not response.is_success:
            logger.error("Gemini request failed: %s", response.status_code)
            raise ExternalServiceError(
                f"HTTP {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            return response.json()
        except ValueError:
            logger.error("Gemini returned a non-JSON body")
            return {}

    async def summarize(self, book: Book) -> str:
        """Return a displayable summary for ``book``; never raises."""
        if not self.is_available():
            return NOT_CONFIGURED_MESSAGE

        prompt = build_prompt(book)
        try:
            payload = await self._generate(prompt)
        except ConfigurationError:
            return NOT_CONFIGURED_MESSAGE
        except ExternalServiceError as e:
            logger.warning("Summary for book %s failed: %s", book.id, e)
            # The provider's own error payload is shown as the summary
            if e.body:
                return e.body
            return f"AI summary request failed: {e}"
        except Exception as e:
            logger.exception("Unexpected error while summarizing book %s", book.id)
            return f"AI summary request failed: {e}"

        summary = extract_summary_text(payload)
        logger.info("Summary generated for book %s (%d chars)", book.id, len(summary))
        return summary
