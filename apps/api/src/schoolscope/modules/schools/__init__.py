"""
Schools module - School directory records.
"""

from schoolscope.modules.schools.models import EditableField, School
from schoolscope.modules.schools.repository import SchoolRepository

__all__ = ["EditableField", "School", "SchoolRepository"]
