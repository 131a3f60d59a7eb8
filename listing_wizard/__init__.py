"""Listing wizard - questionnaire flows for creating a real-estate listing."""

__version__ = "0.1.0"
