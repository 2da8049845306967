from .pipeline import RenderOptions, RenderPipeline, RenderScene, RenderedMarker
from .surface import DrawingSurface, PainterSurface, QImageSurface, parse_color

__all__ = [
    "DrawingSurface",
    "PainterSurface",
    "QImageSurface",
    "RenderOptions",
    "RenderPipeline",
    "RenderScene",
    "RenderedMarker",
    "parse_color",
]
