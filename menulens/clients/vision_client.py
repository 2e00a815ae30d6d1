"""
Google Cloud Vision OCR client with rate limiting using aiolimiter.
"""
from base64 import b64encode
from aiohttp import ClientError, ClientSession, ClientTimeout
from aiolimiter import AsyncLimiter
from typing import Any, Dict, List, Optional
from loguru import logger

from menulens.config import CONCURRENCY, GOOGLE_VISION_API_KEY, REQUEST_TIMEOUT, VISION_URL
from menulens.errors import ExternalServiceError
from menulens.models import OCRResult

DEFAULT_OCR_CONFIDENCE = 0.8


def parse_annotations(response: Dict[str, Any]) -> OCRResult:
    """
    Turn a Vision `images:annotate` response into an OCRResult.

    Empty or malformed responses produce an empty OCRResult.
    """
    responses = response.get("responses") if isinstance(response, dict) else None
    if not isinstance(responses, list) or not responses or not isinstance(responses[0], dict):
        return OCRResult()

    result = responses[0]
    text_annotations = result.get("textAnnotations") or []
    logo_annotations = result.get("logoAnnotations") or []
    if not text_annotations and not logo_annotations:
        return OCRResult()

    full_text = ""
    confidence = DEFAULT_OCR_CONFIDENCE
    if text_annotations:
        full_text = text_annotations[0].get("description", "") or ""
        confidence = text_annotations[0].get("score") or DEFAULT_OCR_CONFIDENCE

    texts: List[str] = [
        a.get("description", "") for a in text_annotations[1:]
        if len(a.get("description", "") or "") > 2
    ]
    texts.extend(a.get("description", "") for a in logo_annotations if a.get("description"))

    # Deduplicate, keep first occurrence order
    blocks = list(dict.fromkeys(texts))
    return OCRResult(full_text=full_text, blocks=blocks, confidence=float(confidence))


class VisionClient:
    """
    Client for Google Cloud Vision text and logo detection.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        url: str = VISION_URL,
        max_rate: int = CONCURRENCY,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self.api_key = api_key or GOOGLE_VISION_API_KEY
        if not self.api_key:
            raise ValueError("GOOGLE_VISION_API_KEY must be set in environment or config")
        self.url = url
        self.timeout = timeout
        self.rate_limiter = AsyncLimiter(max_rate=max_rate, time_period=1.0)
        self._session: Optional[ClientSession] = None

    async def _get_session(self) -> ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = ClientSession(timeout=ClientTimeout(total=self.timeout))
        return self._session

    async def extract_text(self, image_bytes: bytes) -> OCRResult:
        """
        Run OCR on an image.

        Args:
            image_bytes: Raw image content (JPEG/PNG).

        Returns:
            OCRResult: Full text plus individual blocks; empty for images without text.

        Raises:
            ExternalServiceError: On transport errors or non-200 statuses.
        """
        payload = {
            "requests": [
                {
                    "image": {"content": b64encode(image_bytes).decode("ascii")},
                    "features": [
                        {"type": "TEXT_DETECTION", "maxResults": 50},
                        {"type": "LOGO_DETECTION", "maxResults": 10},
                    ],
                }
            ]
        }

        async with self.rate_limiter:
            session = await self._get_session()
            try:
                async with session.post(self.url, params={"key": self.api_key}, json=payload) as resp:
                    if resp.status != 200:
                        detail = await resp.text()
                        raise ExternalServiceError(
                            f"Vision API error: status {resp.status}, body {detail[:200]}"
                        )
                    data = await resp.json()
            except ClientError as e:
                logger.debug(f"⚠️ Vision request failed: {e}")
                raise ExternalServiceError(f"Vision request failed: {e}") from e
            except ValueError as e:
                logger.debug(f"⚠️ Vision returned invalid JSON: {e}")
                raise ExternalServiceError("Invalid JSON from Vision API") from e

        return parse_annotations(data)

    async def close(self):
        """Close the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None
