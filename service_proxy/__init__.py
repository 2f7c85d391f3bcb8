"""Read-through cache proxy service."""
