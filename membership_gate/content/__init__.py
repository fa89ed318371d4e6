"""
Lesson catalog consumed read-only by the gating endpoints.
"""

from .catalog import LessonCatalog, LessonRecord

__all__ = ["LessonCatalog", "LessonRecord"]
