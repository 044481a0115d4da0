"""Core configuration for the TempoIQ client."""
