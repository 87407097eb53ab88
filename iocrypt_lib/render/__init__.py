"""Format renderers and parsers."""

from .renderer import IO, RenderOptions

__all__ = ["IO", "RenderOptions"]
