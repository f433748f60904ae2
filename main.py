"""Cloud Function Entry Point - Root Module.

This is the root-level entry point for Google Cloud Functions.
It imports from the src package.
"""

from src.main import weather_alerts_poll

__all__ = [
    "weather_alerts_poll",
]
