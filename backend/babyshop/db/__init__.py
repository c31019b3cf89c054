"""
BabyShop Backend — SQL Adaptation Layer
========================================

What:  The only path from the services to SQL Server.
How:   placeholders.py  `?` → `:p0, :p1, ...`
       params.py        values → typed bind parameters
       connection.py    shared engine, retries, `query()`
       compose.py       WHERE/IN/paging helpers for services
       schema.py        startup DDL for the household tables

Not an ORM and not a transaction manager: every call is one auto-committed
statement returning a list of dicts.
"""

from babyshop.db.connection import Database

__all__ = ["Database"]
