"""Relational store - SQLModel schema, transactions and named queries.

This module provides:
- Database: SQLite engine with WAL pragmas and transaction scopes
- StoreTransaction: insert/select/update primitives on one transaction
- models: table definitions (Package, Cluster, Attribute, ...)
- queries: named operations used by the loader and the generation helpers
"""

from zclgen.store.database import Database, StoreTransaction, begin_transaction
from zclgen.store.models import PackageType, ZclType
from zclgen.store.queries import register_package

__all__ = [
    "Database",
    "StoreTransaction",
    "begin_transaction",
    "register_package",
    "PackageType",
    "ZclType",
]
