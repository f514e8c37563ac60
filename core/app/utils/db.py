from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import List, Optional

from ..engines.template_codec import dumps, loads
from ..engines.template_types import Template
from ..settings import settings


def get_conn() -> sqlite3.Connection:
    db_path = Path(settings.DB_PATH)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    return conn

def init_db() -> None:
    with get_conn() as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS templates (
              id TEXT PRIMARY KEY,
              name TEXT NOT NULL,
              category TEXT,
              status TEXT,
              created_at TEXT NOT NULL,
              updated_at TEXT NOT NULL,
              document_json TEXT NOT NULL
            );
            """
        )
        conn.execute("CREATE INDEX IF NOT EXISTS idx_templates_status ON templates(status);")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_templates_category ON templates(category);")
        conn.commit()

def insert_template(template: Template) -> None:
    with get_conn() as conn:
        conn.execute(
            """
            INSERT INTO templates(id, name, category, status, created_at, updated_at, document_json)
            VALUES(?,?,?,?,?,?,?)
            """,
            (
                template.id,
                template.name,
                template.category,
                template.status,
                template.created_at,
                template.updated_at,
                dumps(template),
            ),
        )
        conn.commit()

def update_template(template: Template, expected_updated_at: Optional[str] = None) -> bool:
    """Overwrite a stored template.

    With `expected_updated_at` the write only happens if nobody else has
    changed the row since that version was read.
    """
    sql = "UPDATE templates SET name = ?, category = ?, status = ?, updated_at = ?, document_json = ? WHERE id = ?"
    params: list = [template.name, template.category, template.status, template.updated_at, dumps(template), template.id]
    if expected_updated_at is not None:
        sql += " AND updated_at = ?"
        params.append(expected_updated_at)
    with get_conn() as conn:
        cur = conn.execute(sql, params)
        conn.commit()
        return cur.rowcount == 1

def delete_template(template_id: str) -> bool:
    with get_conn() as conn:
        cur = conn.execute("DELETE FROM templates WHERE id = ?", (template_id,))
        conn.commit()
        return cur.rowcount == 1

def get_template(template_id: str) -> Optional[Template]:
    with get_conn() as conn:
        row = conn.execute("SELECT * FROM templates WHERE id = ?", (template_id,)).fetchone()
        if not row:
            return None
        return _row_to_template(row)

def list_templates(status: Optional[str] = None, category: Optional[str] = None) -> List[Template]:
    sql = "SELECT * FROM templates"
    where, params = [], []
    if status:
        where.append("status = ?")
        params.append(status)
    if category:
        where.append("category = ?")
        params.append(category)
    if where:
        sql += " WHERE " + " AND ".join(where)
    sql += " ORDER BY created_at DESC, id"
    with get_conn() as conn:
        return [_row_to_template(r) for r in conn.execute(sql, params).fetchall()]

def count_templates() -> int:
    with get_conn() as conn:
        return int(conn.execute("SELECT COUNT(*) FROM templates").fetchone()[0])

def _row_to_template(row: sqlite3.Row) -> Template:
    parsed = loads(row["document_json"])
    if not parsed.ok:
        raise ValueError(f"stored template {row['id']} is corrupt: {[e.message for e in parsed.errors]}")
    return parsed.value
