from .adapter import PastelAdapter, PastelRenderInstance

__all__ = ["PastelAdapter", "PastelRenderInstance"]
