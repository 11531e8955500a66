"""API route modules."""

from social_publisher.api.routes import health, platforms, videos

__all__ = ["health", "platforms", "videos"]
