# badaccounts/services/sqlserver.py

import re
import logging
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

logger = logging.getLogger(__name__)

_PROC_NAME_RE = re.compile(r"^[\w\[\]\.]+$")


def _connect(connection_string: str):
    # driver (and libodbc) only load when a connection is opened
    import pyodbc

    return pyodbc.connect(connection_string, autocommit=True)


def build_exec_sql(procedure: str, param_names: List[str]) -> str:
    """
    EXEC [dbo].[Proc] @a=?, @b=?

    Procedure names come from config, so only [schema].[name] style identifiers are allowed.
    """
    if not procedure or not _PROC_NAME_RE.match(procedure):
        raise ValueError(f"Invalid stored procedure name: {procedure!r}")
    args = ", ".join(f"@{p.lstrip('@')}=?" for p in param_names)
    return f"SET NOCOUNT ON; EXEC {procedure} {args}".rstrip()


class SqlServerGateway:
    """
    One pyodbc connection per phase. Use as a context manager:

        with SqlServerGateway(conn_str, timeout=300) as gw:
            df = gw.call_procedure_df("[dbo].[FindBadAccounts]", {...})
    """

    def __init__(self, connection_string: str, timeout: int = 300):
        self.connection_string = connection_string
        self.timeout = timeout
        self.conn = None
        self.cursor = None

    def open(self) -> "SqlServerGateway":
        if self.conn is not None:
            return self
        self.conn = _connect(self.connection_string)
        self.conn.timeout = self.timeout  # per-statement timeout, seconds
        self.cursor = self.conn.cursor()
        return self

    def __enter__(self) -> "SqlServerGateway":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close_connection()

    def _exec(self, sql: str, params: Tuple[Any, ...] = ()):
        if self.cursor is None:
            self.open()
        if params:
            return self.cursor.execute(sql, params)
        return self.cursor.execute(sql)

    def _first_result_set(self) -> Tuple[List[str], List[Any]]:
        # skip row-count messages / empty leading sets
        while self.cursor.description is None:
            if not self.cursor.nextset():
                return [], []
        cols = [desc[0] for desc in self.cursor.description]
        return cols, self.cursor.fetchall()

    def query_df(self, sql: str, params: Tuple[Any, ...] = ()) -> pd.DataFrame:
        self._exec(sql, params)
        cols, data = self._first_result_set()
        return pd.DataFrame([tuple(r) for r in data], columns=cols)

    def call_procedure_df(self, procedure: str, params: Optional[Dict[str, Any]] = None) -> pd.DataFrame:
        params = params or {}
        sql = build_exec_sql(procedure, list(params.keys()))
        logger.debug(f"[db] {sql} params={params}")
        return self.query_df(sql, tuple(params.values()))

    def execute_procedure(self, procedure: str, params: Optional[Dict[str, Any]] = None) -> None:
        params = params or {}
        sql = build_exec_sql(procedure, list(params.keys()))
        logger.debug(f"[db] {sql} params={params}")
        self._exec(sql, tuple(params.values()))
        # drain any result sets so the connection is free for the next call
        while self.cursor.nextset():
            pass

    def close_connection(self):
        """Close cursor + connection; safe to call twice."""
        if self.cursor is not None:
            try:
                self.cursor.close()
            except Exception as e:
                logger.warning(f"[db] cursor close failed: {e}")
            self.cursor = None
        if self.conn is not None:
            try:
                self.conn.close()
            except Exception as e:
                logger.warning(f"[db] connection close failed: {e}")
            self.conn = None
