"""The clinical-records schema, as discovered `m_NNN_*` migration modules.

SQL migrations carry one script per dialect: UP_SQL for SQLite and
UP_SQL_MYSQL for MySQL. Column additions are `upgrade()` callables that
work on both.
"""

SCHEMA_PACKAGE = __name__
