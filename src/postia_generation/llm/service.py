"""
Generation service: provider client calls composed with retry presets.

Text calls run under the text-generation preset, image calls under the
image-generation preset. Each call shape gets its own RetryExecutor so the
two can be tuned independently with ``update_config``.
"""

from typing import Any, Optional

import structlog

from postia_generation.config import Settings
from postia_generation.llm.base_client import BaseGenerativeClient
from postia_generation.models.llm_models import (
    ImageGenerationRequest,
    ImageGenerationResponse,
    TextGenerationRequest,
    TextGenerationResponse,
)
from postia_generation.monitoring.events import EventSink, PrometheusEventSink
from postia_generation.monitoring.notifications import Notifier
from postia_generation.retry.context import RetryResult
from postia_generation.retry.executor import RetryExecutor

logger = structlog.get_logger(__name__)

TEXT_LABEL = "text-generation"
IMAGE_LABEL = "image-generation"


class GenerationService:
    """
    Entry point used by campaign content generation.

    Attributes:
        client: Provider client (raises typed GenerationErrors)
        text_executor: Executor with the text-generation preset
        image_executor: Executor with the image-generation preset
    """

    def __init__(
        self,
        client: BaseGenerativeClient,
        text_executor: Optional[RetryExecutor] = None,
        image_executor: Optional[RetryExecutor] = None,
        event_sink: Optional[EventSink] = None,
        notifier: Optional[Notifier] = None,
    ):
        self.client = client
        self.text_executor = text_executor or RetryExecutor.for_text_generation(
            event_sink=event_sink, notifier=notifier
        )
        self.image_executor = image_executor or RetryExecutor.for_image_generation(
            event_sink=event_sink, notifier=notifier
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        client: BaseGenerativeClient,
        notifier: Optional[Notifier] = None,
    ) -> "GenerationService":
        event_sink = PrometheusEventSink() if settings.PROMETHEUS_ENABLED else None
        return cls(client, event_sink=event_sink, notifier=notifier)

    async def generate_text(
        self,
        request: TextGenerationRequest,
        label: str = TEXT_LABEL,
        **notice_context: Any,
    ) -> RetryResult[TextGenerationResponse]:
        """
        Generate text with retries.

        Raises:
            RetryExhausted: Terminal failure (cause = last client error)
        """
        result = await self.text_executor.execute_with_retry(
            lambda: self.client.generate_text(request),
            label,
            notice_context=notice_context,
        )
        logger.info(
            "Text generated",
            label=label,
            attempts=result.succeeded_on_attempt,
            model=result.value.model,
        )
        return result

    async def generate_image(
        self,
        request: ImageGenerationRequest,
        label: str = IMAGE_LABEL,
        **notice_context: Any,
    ) -> RetryResult[ImageGenerationResponse]:
        """
        Generate an image with retries.

        Raises:
            RetryExhausted: Terminal failure (cause = last client error)
        """
        result = await self.image_executor.execute_with_retry(
            lambda: self.client.generate_image(request),
            label,
            notice_context=notice_context,
        )
        logger.info(
            "Image generated",
            label=label,
            attempts=result.succeeded_on_attempt,
            model=result.value.model,
        )
        return result

    async def close(self) -> None:
        await self.client.close()
