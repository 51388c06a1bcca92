"""Repository layer - data access abstraction.

Repositories handle all database queries, providing a clean interface
for services. Services use repositories for data access rather than
querying SQLAlchemy models directly.

- Repositories: Pure data access (queries, inserts, conditional updates)
- Services: Token lifecycle rules that use repositories

Dependency direction: Services -> Repositories -> Models
"""

from .access_token_repository import AccessTokenRepository
from .exceptions import DuplicateError, RepositoryError

__all__ = [
    "AccessTokenRepository",
    "DuplicateError",
    "RepositoryError",
]
