"""Core services, configuration and shared types."""
