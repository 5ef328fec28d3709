"""Schema projection and document transformation helpers."""
