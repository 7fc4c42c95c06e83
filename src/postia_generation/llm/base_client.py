"""
Abstract base client for generative-AI providers.

Defines the interface that provider clients (Gemini, ...) implement. The
client owns transport and error typing only: it never retries and never
builds prompts. Retries belong to RetryExecutor; prompts arrive ready-made.
"""

from abc import ABC, abstractmethod

import structlog

from postia_generation.models.llm_models import (
    ImageGenerationRequest,
    ImageGenerationResponse,
    TextGenerationRequest,
    TextGenerationResponse,
)

logger = structlog.get_logger(__name__)


class BaseGenerativeClient(ABC):
    """
    Abstract base class for generative-AI clients.

    Implementations must raise GenerationError subclasses with the right
    ErrorKind, so retry decisions do not depend on message text:
    - GenerationNetworkError / GenerationTimeoutError for transport failures
    - RateLimitError for 429 / quota responses
    - TextProviderError / ImageProviderError for server-side failures
    - GenerationValidationError for rejected requests (never retried)
    """

    def __init__(self, base_url: str, timeout: int = 30, **kwargs):
        """
        Args:
            base_url: Provider API base URL
            timeout: Request timeout in seconds
            **kwargs: Additional provider-specific config
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.extra_config = kwargs

        logger.info(
            "Initialized generative client",
            client_class=self.__class__.__name__,
            base_url=self.base_url,
            timeout=timeout,
        )

    @abstractmethod
    async def generate_text(self, request: TextGenerationRequest) -> TextGenerationResponse:
        """
        Generate text for a publication.

        Raises:
            GenerationError subclass describing the failure
        """

    @abstractmethod
    async def generate_image(self, request: ImageGenerationRequest) -> ImageGenerationResponse:
        """
        Generate one image for a publication.

        Raises:
            GenerationError subclass describing the failure
        """

    async def close(self) -> None:
        """Release persistent connections. Default implementation does nothing."""
        logger.debug("Closing generative client", client_class=self.__class__.__name__)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(base_url={self.base_url}, timeout={self.timeout}s)"
