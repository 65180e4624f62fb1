"""Linkbio - link-in-bio pages with A/B tests and click analytics."""

__version__ = "0.1.0"
