"""
Generation resilience layer for Postia.

Wraps calls to the generative-AI provider (text and image generation for
scheduled social-media publications) with:
- Typed error classification (network, timeout, rate limit, provider, validation)
- Exponential backoff with jitter and per-call-shape presets
- Attempt metadata for audit, Prometheus metrics and user notifications

Architecture: httpx Gemini client + RetryExecutor + pluggable event/notification sinks
"""

__version__ = "0.1.0"
