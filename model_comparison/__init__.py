"""model-comparison-service: side-by-side prompt comparison across LLM providers.

This package sends one prompt to up to three independently hosted models,
runs the calls under a configurable concurrency and timeout policy, and
returns an aggregate of the per-model outcomes.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
