from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator

import mysql.connector
from werkzeug.security import generate_password_hash

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parent / "schema.sql"

DEMO_USERS = (
    {
        "name": "Admin Demo",
        "email": "admin@example.com",
        "password": "admin123",
        "role": "admin",
        "department": "Management",
        "permissions": "create,read,update,delete,manage_users,manage_attendance",
        "company": None,
    },
    {
        "name": "Client Demo",
        "email": "client@example.com",
        "password": "client123",
        "role": "client",
        "department": "Engineering",
        "permissions": None,
        "company": "Demo Corp",
    },
)


@contextmanager
def _connect(db_config: dict, *, with_database: bool = True) -> Iterator:
    kwargs = dict(
        host=str(db_config.get("host", "localhost")),
        port=int(db_config.get("port", 3306)),
        user=str(db_config.get("user", "root")),
        password=str(db_config.get("password", "")),
        use_pure=True,
    )
    if with_database:
        kwargs["database"] = str(db_config.get("database", "workforce_portal"))
    conn = mysql.connector.connect(**kwargs)
    try:
        yield conn
    finally:
        conn.close()


def _strip_create_db_and_use(sql: str) -> str:
    # schema.sql stays valid whatever the configured database name is
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _iter_sql_statements(sql: str) -> Iterable[str]:
    """Split a script on ';' outside of quoted strings. Lines starting with -- are dropped."""

    sql = "\n".join(line for line in sql.splitlines() if not line.lstrip().startswith("--"))
    buf: list[str] = []
    quote = None
    escape = False

    for ch in sql:
        if escape:
            escape = False
        elif ch == "\\":
            escape = True
        elif quote:
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif ch == ";":
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
            continue
        buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def ensure_database_exists(db_config: dict) -> None:
    name = str(db_config.get("database", "workforce_portal"))
    with _connect(db_config, with_database=False) as conn:
        cur = conn.cursor()
        cur.execute(f"CREATE DATABASE IF NOT EXISTS `{name}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci")
        conn.commit()


def apply_schema(db_config: dict, *, schema_path: str | Path = SCHEMA_PATH) -> None:
    ensure_database_exists(db_config)
    sql = _strip_create_db_and_use(Path(schema_path).read_text(encoding="utf-8"))

    with _connect(db_config) as conn:
        cur = conn.cursor()
        for stmt in _iter_sql_statements(sql):
            cur.execute(stmt)
        conn.commit()
    logger.info("Schema applied from %s", schema_path)


def ensure_demo_users(db_config: dict) -> None:
    """Create or refresh the demo admin and client accounts (keyed by email)."""

    with _connect(db_config) as conn:
        cur = conn.cursor(dictionary=True)
        for u in DEMO_USERS:
            password_hash = generate_password_hash(u["password"])
            cur.execute(
                """
                INSERT INTO users(name, email, password_hash, role, department, permissions, company)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    name=VALUES(name), password_hash=VALUES(password_hash), role=VALUES(role),
                    department=VALUES(department), permissions=VALUES(permissions), company=VALUES(company)
                """,
                (u["name"], u["email"], password_hash, u["role"], u["department"], u["permissions"], u["company"]),
            )
        conn.commit()
    logger.info("Demo users ready: %s", ", ".join(u["email"] for u in DEMO_USERS))


def list_tables(db_config: dict) -> list[str]:
    with _connect(db_config) as conn:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
