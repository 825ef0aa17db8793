from .adapter import InkAdapter, InkRenderInstance

__all__ = ["InkAdapter", "InkRenderInstance"]
