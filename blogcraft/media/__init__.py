"""Media module for stock photo search and markdown embedding."""

from .image_agent import ImageData, ImageRetrievalAgent, ImageSearchSummary

__all__ = ["ImageData", "ImageRetrievalAgent", "ImageSearchSummary"]
