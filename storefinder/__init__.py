"""Store Finder: nearby franchise stores via Gemini with Google Maps grounding."""

__version__ = "0.1.0"
