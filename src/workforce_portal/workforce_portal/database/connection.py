from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import mysql.connector


@dataclass
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    pool_size: int = 5
    pool_name: str = "workforce_portal"


class DatabaseConnection:
    """Process-wide connection factory backed by a mysql-connector pool.

    Each repository call borrows one connection and returns it on close, so a
    call is its own transaction and no connection outlives a request.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: DBConfig):
        self._config = config

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if cls._instance is None:
            cls._instance = DatabaseConnection(config)
        return cls._instance

    def connect(self):
        cfg = self._config
        kwargs = dict(
            host=cfg.host,
            port=int(cfg.port),
            user=cfg.user,
            password=cfg.password,
            database=cfg.database,
        )
        if cfg.pool_size > 0:
            kwargs.update(pool_name=cfg.pool_name, pool_size=int(cfg.pool_size))
        return mysql.connector.connect(**kwargs)
