"""
Database-backed SessionStore for production use (Postgres/Supabase).

Why: The auth provider already persists sessions in Postgres (`session`
table joined to `user`). Reading them directly lets the edge middleware
resolve a session without an extra HTTP hop, while the cookie stays an opaque
token.

Security:
- Intended to be used with a service role connection string; anon clients must
  not access the `session` table.
- Only `token` is ever accepted from the client; user id and role come from
  the joined `user` row.

Note: This module uses psycopg3. It is imported only when enabled via
`SESSIONS_BACKEND=db`. Tests use a fake psycopg module.
"""
from __future__ import annotations

from typing import Optional
import os
import re

try:
    import psycopg
    from psycopg import sql
    HAVE_PSYCOPG = True
except ImportError:  # pragma: no cover - optional dependency in dev
    psycopg = None  # type: ignore
    sql = None  # type: ignore
    HAVE_PSYCOPG = False

from .stores import SessionRecord

_TABLE_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}(?:\.[A-Za-z_][A-Za-z0-9_]{0,62})?$")


def _split_table(table: str) -> tuple[str, str]:
    if not _TABLE_RE.match(table or ""):
        raise ValueError("Invalid table name")
    if "." in table:
        schema, name = table.split(".", 1)
    else:
        schema, name = "public", table
    return schema, name


class DBSessionStore:
    """Postgres-backed session lookups over the auth provider's tables.

    Read and revoke only: the provider creates session rows at sign-in.

    Parameters
    ----------
    dsn:
        Psycopg3 connection string. Use a service role in Supabase.
    session_table:
        Table holding sessions (`token`, `user_id`, `expires_at`,
        `active_organization_id`). Defaults to `public.session`.
    user_table:
        Table holding users (`id`, `email`, `name`, `role`). Defaults to
        `public.user`.
    """

    def __init__(
        self,
        dsn: str | None = None,
        session_table: str = "public.session",
        user_table: str = "public.user",
    ) -> None:
        if not HAVE_PSYCOPG:
            raise RuntimeError("psycopg3 is required for DBSessionStore")
        self._dsn = dsn or os.getenv("DATABASE_URL") or os.getenv("SUPABASE_DB_URL", "")
        if not self._dsn:
            raise RuntimeError("No database DSN provided for DBSessionStore")
        self._session_table = _split_table(session_table)
        self._user_table = _split_table(user_table)

    def get(self, token: str) -> Optional[SessionRecord]:
        s_schema, s_name = self._session_table
        u_schema, u_name = self._user_table
        stmt = sql.SQL(
            "select s.token, s.user_id, u.email, u.name, u.role, "
            "extract(epoch from s.expires_at)::bigint, s.active_organization_id "
            "from {}.{} s join {}.{} u on u.id = s.user_id "
            "where s.token = %s and s.expires_at > now()"
        ).format(
            sql.Identifier(s_schema),
            sql.Identifier(s_name),
            sql.Identifier(u_schema),
            sql.Identifier(u_name),
        )
        with psycopg.connect(self._dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(stmt, (token,))
                row = cur.fetchone()
        if not row:
            return None
        return SessionRecord(
            token=row[0],
            user_id=row[1],
            email=row[2] or "",
            name=row[3] or "",
            role=row[4],
            expires_at=int(row[5]) if row[5] is not None else None,
            active_organization_id=row[6],
        )

    def delete(self, token: str) -> None:
        stmt = sql.SQL("delete from {}.{} where token = %s").format(
            *(sql.Identifier(part) for part in self._session_table)
        )
        with psycopg.connect(self._dsn, autocommit=True) as conn:
            with conn.cursor() as cur:
                cur.execute(stmt, (token,))
