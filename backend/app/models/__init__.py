# Models package init
"""
Importing this package registers every table with `Base.metadata`
(used by Alembic autogenerate and by the test fixtures).
"""

from app.models.post import Post
from app.models.user import User

__all__ = ["Post", "User"]
