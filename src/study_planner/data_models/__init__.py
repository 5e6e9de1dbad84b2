from .content import ContentItem

__all__ = ["ContentItem"]
