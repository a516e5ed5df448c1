"""
Users module - Community members and administrators.
"""

from schoolscope.modules.users.models import User
from schoolscope.modules.users.repository import UserRepository

__all__ = ["User", "UserRepository"]
