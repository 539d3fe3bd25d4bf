"""
Todo list package.

Exposes the TodoStore and its record model for direct use; the FastAPI
application lives in todolist.main.
"""

from .models import Priority, TodoRecord  # noqa: F401
from .store import TodoStore  # noqa: F401
