"""Database initialization and persistence layer."""

from michelin_maps.db.engine import (
    DatabaseError,
    create_db_engine,
    get_database_url,
    get_engine,
    get_session_factory,
    init_db,
    reset_engine,
    run_migrations,
)
from michelin_maps.db.models import (
    Base,
    RestaurantAwardDB,
    RestaurantDB,
)
from michelin_maps.db.repositories import (
    AwardValidationError,
    RepositoryError,
    RestaurantRepository,
    RestaurantValidationError,
)

__all__ = [
    # Engine
    "DatabaseError",
    "create_db_engine",
    "get_database_url",
    "get_engine",
    "get_session_factory",
    "init_db",
    "reset_engine",
    "run_migrations",
    # Models
    "Base",
    "RestaurantDB",
    "RestaurantAwardDB",
    # Repositories
    "RestaurantRepository",
    "RepositoryError",
    "RestaurantValidationError",
    "AwardValidationError",
]
