"""LM Studio OSS readiness helpers.

Verifies a local LM Studio server is reachable, lists the models it serves,
and fetches the default open-weights model with the `lms` CLI when missing.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
