"""Keeps remote search indexes in sync with headless CMS content."""
