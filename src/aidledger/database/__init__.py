"""Database layer for aidledger."""

from aidledger.database.base import Database
from aidledger.database.factories import create_sqlite_database
from aidledger.database.sqlalchemy_db import SQLAlchemyDatabase

__all__ = ["Database", "SQLAlchemyDatabase", "create_sqlite_database"]
