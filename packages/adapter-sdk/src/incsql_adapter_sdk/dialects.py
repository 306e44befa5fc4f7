"""Dialect name normalization shared by adapters and the planner."""

_DIALECT_ALIASES = {
    "postgresql": "postgres",
    "psycopg2": "postgres",
    "mssql": "tsql",
    "sqlserver": "tsql",
    "mariadb": "mysql",
}


def normalize_dialect(name: str) -> str:
    """Maps driver/engine names onto sqlglot dialect names."""
    key = (name or "").strip().lower()
    return _DIALECT_ALIASES.get(key, key)
