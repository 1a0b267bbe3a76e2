"""
Tron Configuration Package.

Provides Pydantic Settings loaded from environment variables.
"""

from tron_config.settings import Settings

__all__ = ["Settings"]
