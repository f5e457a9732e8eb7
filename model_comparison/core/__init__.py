"""Core infrastructure for model-comparison-service.

Modules:
- config: Settings (pydantic-settings), get_settings()
- constants: Provider names, endpoints and limits
- exceptions: Error taxonomy
- logging: structlog configuration
"""

__all__: list[str] = []
