"""
Request/response models for the generative-AI client.

These models are the standardized format exchanged with any
BaseGenerativeClient implementation. Prompt construction happens upstream;
the client only transports the final prompt text.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class TextGenerationRequest(BaseModel):
    """Request for a text completion (captions, copy, hashtags)."""
    model_config = ConfigDict(frozen=True)

    prompt: str = Field(..., min_length=1, description="Final prompt text")
    model: Optional[str] = Field(default=None, description="Model override (client default if None)")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0, description="Sampling temperature")
    max_output_tokens: int = Field(default=2048, ge=1, le=65536, description="Maximum tokens to generate")
    system_instruction: Optional[str] = Field(default=None, description="Optional system instruction")


class ImageGenerationRequest(BaseModel):
    """Request for a single generated image."""
    model_config = ConfigDict(frozen=True)

    prompt: str = Field(..., min_length=1, description="Image description prompt")
    model: Optional[str] = Field(default=None, description="Model override (client default if None)")
    aspect_ratio: str = Field(default="1:1", description="Target aspect ratio, e.g. '1:1', '9:16'")


class TextGenerationResponse(BaseModel):
    """Generated text plus metadata for audit/logging."""
    model_config = ConfigDict(frozen=True)

    text: str = Field(..., description="Generated text")
    model: str = Field(..., description="Model that produced the text")
    finish_reason: Optional[str] = Field(default=None, description="Provider finish reason")
    prompt_tokens: Optional[int] = Field(default=None, description="Tokens in prompt")
    completion_tokens: Optional[int] = Field(default=None, description="Tokens in completion")
    latency_ms: int = Field(..., ge=0, description="Generation latency in milliseconds")
    raw_metadata: Dict[str, Any] = Field(default_factory=dict, description="Provider-specific metadata")


class ImageGenerationResponse(BaseModel):
    """Generated image bytes (base64) plus metadata."""
    model_config = ConfigDict(frozen=True)

    image_base64: str = Field(..., description="Base64-encoded image data")
    mime_type: str = Field(default="image/png", description="Image MIME type")
    model: str = Field(..., description="Model that produced the image")
    latency_ms: int = Field(..., ge=0, description="Generation latency in milliseconds")
