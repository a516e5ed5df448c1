"""
School Edits module - Community proposals to change school details.

Workflow:
1. A signed-in user proposes a new value for one editable school field
2. The edit waits as PENDING
3. An admin approves (value written to the school) or rejects it
"""

from schoolscope.modules.school_edits.models import EditStatus, SchoolEdit
from schoolscope.modules.school_edits.router import router

__all__ = ["router", "EditStatus", "SchoolEdit"]
