"""Minimal chat proxy in front of the Gemini generateContent API."""

__version__ = "0.1.0"
