"""
Gemini client implementation for text and image generation.

Communicates with the Generative Language REST API using httpx AsyncClient:
- POST /models/{model}:generateContent for both text and image output
- API key sent in the x-goog-api-key header
- Connection pooling via a lazily created persistent AsyncClient

Every failure is raised as a typed GenerationError, with the kind derived
from the HTTP status code or the httpx exception type. The client performs
no retries; wrap calls in a RetryExecutor (see GenerationService).
"""

import json
import time
from typing import Any, Dict, List, Optional, Type

import httpx
import structlog

from postia_generation.config import Settings
from postia_generation.errors.exceptions import (
    GenerationError,
    GenerationNetworkError,
    GenerationTimeoutError,
    GenerationValidationError,
    ImageProviderError,
    RateLimitError,
    TextProviderError,
)
from postia_generation.llm.base_client import BaseGenerativeClient
from postia_generation.models.llm_models import (
    ImageGenerationRequest,
    ImageGenerationResponse,
    TextGenerationRequest,
    TextGenerationResponse,
)

logger = structlog.get_logger(__name__)


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Retry-After header in seconds (HTTP-date form is ignored)."""
    if not value:
        return None
    try:
        return max(float(value), 0.0)
    except ValueError:
        return None


class GeminiClient(BaseGenerativeClient):
    """
    Gemini client using httpx for async HTTP communication.

    Status code mapping:
    - 429: RateLimitError carrying Retry-After as retry_after
    - 400, 422: GenerationValidationError (never retried)
    - 408: GenerationTimeoutError
    - 401, 403, 404 and other 4xx: provider error, retryable=False
    - 5xx: provider error (retryable)
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        text_model: str = "gemini-2.5-flash",
        image_model: str = "gemini-2.5-flash-image",
        timeout: int = 30,
        connection_limits: Optional[httpx.Limits] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **kwargs,
    ):
        """
        Args:
            api_key: Generative Language API key
            base_url: API base URL (versioned)
            text_model: Default model for text generation
            image_model: Default model for image generation
            timeout: Request timeout in seconds
            connection_limits: httpx pool limits (default: 10 max connections)
            transport: Custom httpx transport (tests use httpx.MockTransport)
        """
        super().__init__(base_url, timeout, **kwargs)
        self.api_key = api_key
        self.text_model = text_model
        self.image_model = image_model

        if connection_limits is None:
            connection_limits = httpx.Limits(
                max_keepalive_connections=5,
                max_connections=10,
                keepalive_expiry=30.0,
            )
        self._connection_limits = connection_limits
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "GeminiClient":
        return cls(
            api_key=settings.GEMINI_API_KEY,
            base_url=settings.GEMINI_BASE_URL,
            text_model=settings.GEMINI_TEXT_MODEL,
            image_model=settings.GEMINI_IMAGE_MODEL,
            timeout=settings.GEMINI_TIMEOUT,
            **kwargs,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                limits=self._connection_limits,
                transport=self._transport,
                headers={"x-goog-api-key": self.api_key},
            )
            logger.debug("Created new httpx AsyncClient")
        return self._client

    async def generate_text(self, request: TextGenerationRequest) -> TextGenerationResponse:
        """
        Generate text with generateContent.

        Payload:
        {
            "contents": [{"role": "user", "parts": [{"text": "..."}]}],
            "systemInstruction": {"parts": [{"text": "..."}]},
            "generationConfig": {"temperature": 0.7, "maxOutputTokens": 2048}
        }
        """
        model = request.model or self.text_model
        payload: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": request.prompt}]}],
            "generationConfig": {
                "temperature": request.temperature,
                "maxOutputTokens": request.max_output_tokens,
            },
        }
        if request.system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": request.system_instruction}]}

        start_time = time.time()
        data = await self._post(model, payload, TextProviderError)
        latency_ms = int((time.time() - start_time) * 1000)

        candidate = self._first_candidate(data, TextProviderError)
        text = "".join(part.get("text") or "" for part in self._parts(candidate))
        if not text.strip():
            raise TextProviderError(
                "Empty text response from Gemini",
                details={"model": model, "finish_reason": candidate.get("finishReason")},
            )

        usage = data.get("usageMetadata") or {}
        logger.info(
            "Gemini text generation successful",
            model=model,
            latency_ms=latency_ms,
            prompt_tokens=usage.get("promptTokenCount"),
            completion_tokens=usage.get("candidatesTokenCount"),
        )

        return TextGenerationResponse(
            text=text,
            model=data.get("modelVersion") or model,
            finish_reason=candidate.get("finishReason"),
            prompt_tokens=usage.get("promptTokenCount"),
            completion_tokens=usage.get("candidatesTokenCount"),
            latency_ms=latency_ms,
            raw_metadata={"response_id": data.get("responseId")},
        )

    async def generate_image(self, request: ImageGenerationRequest) -> ImageGenerationResponse:
        """Generate one image; the first inlineData part is returned."""
        model = request.model or self.image_model
        payload: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": request.prompt}]}],
            "generationConfig": {
                "responseModalities": ["IMAGE"],
                "imageConfig": {"aspectRatio": request.aspect_ratio},
            },
        }

        start_time = time.time()
        data = await self._post(model, payload, ImageProviderError)
        latency_ms = int((time.time() - start_time) * 1000)

        candidate = self._first_candidate(data, ImageProviderError)
        for part in self._parts(candidate):
            inline = part.get("inlineData")
            if isinstance(inline, dict) and inline.get("data"):
                logger.info("Gemini image generation successful", model=model, latency_ms=latency_ms)
                return ImageGenerationResponse(
                    image_base64=inline["data"],
                    mime_type=inline.get("mimeType") or "image/png",
                    model=data.get("modelVersion") or model,
                    latency_ms=latency_ms,
                )

        raise ImageProviderError(
            "Image generation returned no image data",
            details={"model": model, "finish_reason": candidate.get("finishReason")},
        )

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        logger.debug("Closed Gemini client")

    async def _post(
        self,
        model: str,
        payload: Dict[str, Any],
        provider_error: Type[GenerationError],
    ) -> Dict[str, Any]:
        client = await self._get_client()
        path = f"/models/{model}:generateContent"

        try:
            response = await client.post(path, json=payload)
        except httpx.TimeoutException as e:
            logger.warning("Gemini request timeout", model=model, timeout=self.timeout, error=str(e))
            raise GenerationTimeoutError(
                f"Request timeout after {self.timeout}s",
                details={"model": model, "timeout": self.timeout},
            ) from e
        except httpx.TransportError as e:
            logger.warning("Gemini network error", model=model, error=str(e))
            raise GenerationNetworkError(
                f"Network error: {e}",
                details={"model": model, "error_type": type(e).__name__},
            ) from e

        if not response.is_success:
            raise self._error_for_status(response, model, provider_error)

        try:
            data = response.json()
        except json.JSONDecodeError as e:
            logger.error("Failed to parse Gemini response JSON", model=model, error=str(e))
            raise provider_error(
                "Invalid JSON response from Gemini",
                details={"model": model, "parse_error": str(e)},
            ) from e

        if not isinstance(data, dict):
            raise provider_error(
                "Unexpected Gemini response body",
                details={"model": model, "body_type": type(data).__name__},
            )
        return data

    def _error_for_status(
        self,
        response: httpx.Response,
        model: str,
        provider_error: Type[GenerationError],
    ) -> GenerationError:
        status = response.status_code
        details = {"model": model, "status": status, "error": response.text[:500]}

        logger.error("Gemini HTTP error", model=model, status_code=status)

        if status == 429:
            return RateLimitError(
                "Gemini rate limit exceeded",
                details=details,
                retry_after=parse_retry_after(response.headers.get("retry-after")),
            )
        if status in (400, 422):
            return GenerationValidationError(f"Gemini rejected the request: {status}", details=details)
        if status == 408:
            return GenerationTimeoutError("Gemini request timed out (408)", details=details)
        if status >= 500:
            return provider_error(f"Gemini server error: {status}", details=details)
        return provider_error(f"Gemini client error: {status}", details=details, retryable=False)

    @staticmethod
    def _first_candidate(
        data: Dict[str, Any], provider_error: Type[GenerationError]
    ) -> Dict[str, Any]:
        feedback = data.get("promptFeedback") or {}
        block_reason = feedback.get("blockReason") if isinstance(feedback, dict) else None
        if block_reason:
            raise GenerationValidationError(
                f"Prompt blocked by Gemini: {block_reason}",
                details={"block_reason": block_reason},
            )
        candidates = data.get("candidates") or []
        if not isinstance(candidates, list) or not candidates:
            raise provider_error("Gemini returned no candidates", details={"response": data})
        if not isinstance(candidates[0], dict):
            raise provider_error("Malformed Gemini candidate", details={"response": data})
        return candidates[0]

    @staticmethod
    def _parts(candidate: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Content parts of a candidate; null or malformed content yields none."""
        content = candidate.get("content") or {}
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list):
            return []
        return [part for part in parts if isinstance(part, dict)]
