from .registry import StoreRegistry

__all__ = ["StoreRegistry"]
