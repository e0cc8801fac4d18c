from .reviews import Review

__all__ = ["Review"]
