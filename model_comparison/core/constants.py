"""Constants for model-comparison-service.

This module centralizes provider names, default endpoints, request limits
and MIME types so configuration, the registry and the HTTP transport agree
on the same values.

Usage:
    from model_comparison.core.constants import PROVIDER_OPENROUTER, MAX_PROMPT_LENGTH

Note: Endpoints and limits here are defaults. They can be overridden via
COMPARISON_* environment variables (see model_comparison.core.config).
"""

# =============================================================================
# Provider Names & Endpoints
# =============================================================================

PROVIDER_NANOGPT = "NanoGPT"
PROVIDER_OPENROUTER = "OpenRouter"

NANOGPT_BASE_URL = "https://nano-gpt.com/api/v1"
OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"

CHAT_COMPLETIONS_PATH = "/chat/completions"


# =============================================================================
# MIME Types
# =============================================================================

MIME_APPLICATION_JSON = "application/json"
MIME_TEXT_EVENT_STREAM = "text/event-stream"


# =============================================================================
# Domain Limits
# =============================================================================

MIN_PROMPT_LENGTH = 1
MAX_PROMPT_LENGTH = 50_000
CHARS_PER_TOKEN_ESTIMATE = 4  # Rough estimate: ~4 chars per token

MIN_MODEL_ID_LENGTH = 2
MAX_MODEL_ID_LENGTH = 200
FREE_TIER_SUFFIX = ":free"

MAX_MODELS_PER_COMPARISON = 3


# =============================================================================
# Request Payload Defaults
# =============================================================================

MIN_COMPLETION_TOKENS = 1000
MAX_COMPLETION_TOKENS = 4000
LARGE_PROMPT_CHARS = 2000  # Above this, always request MAX_COMPLETION_TOKENS
DEFAULT_TEMPERATURE = 0.7


# =============================================================================
# Service Defaults
# =============================================================================

DEFAULT_SERVICE_NAME = "model-comparison-service"
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_ENVIRONMENT = "development"
DEFAULT_EXECUTION_MODE = "parallel"
DEFAULT_HTTP_REFERER = "https://modelcomparisonstudio.com"
DEFAULT_APP_TITLE = "Model Comparison Studio"
