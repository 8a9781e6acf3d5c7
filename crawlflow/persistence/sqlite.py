"""SQLite implementation of the run repository."""

from __future__ import annotations

import asyncio
import json
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any

from .models import TERMINAL_STATUSES, RunInstance, StepRecord
from .repository import RunRepository


def _parse_ts(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class SQLiteRunRepository(RunRepository):
    """Persist run history using SQLite."""

    def __init__(self, db_path: str | Path):
        self.db_path = str(db_path)
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._ensure_schema()

    # ------------------------------------------------------------------
    # Schema management
    def _ensure_schema(self) -> None:
        cur = self._conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS runs (
                run_id TEXT PRIMARY KEY,
                workflow TEXT NOT NULL,
                status TEXT NOT NULL,
                error TEXT,
                created_at TEXT,
                finished_at TEXT
            )
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS step_history (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                run_id TEXT NOT NULL,
                step_index INTEGER NOT NULL,
                step_id TEXT,
                step_type TEXT,
                started_at TEXT,
                completed_at TEXT,
                ok INTEGER,
                error TEXT,
                UNIQUE (run_id, step_index)
            )
            """
        )
        self._conn.commit()

    # ------------------------------------------------------------------
    # Helper methods
    def _execute(self, query: str, *params: Any) -> None:
        cur = self._conn.cursor()
        cur.execute(query, params)
        self._conn.commit()

    def _fetchone(self, query: str, *params: Any) -> sqlite3.Row | None:
        cur = self._conn.cursor()
        cur.execute(query, params)
        return cur.fetchone()

    def _fetchall(self, query: str, *params: Any) -> list[sqlite3.Row]:
        cur = self._conn.cursor()
        cur.execute(query, params)
        return cur.fetchall()

    def _row_to_run(self, row: sqlite3.Row, steps: list[StepRecord]) -> RunInstance:
        return RunInstance(
            run_id=row["run_id"],
            workflow=json.loads(row["workflow"]),
            status=row["status"],
            error=row["error"],
            created_at=_parse_ts(row["created_at"]),
            finished_at=_parse_ts(row["finished_at"]),
            steps=steps,
        )

    # ------------------------------------------------------------------
    # Repository API
    async def create_run(self, run_id: str, workflow: dict | None = None) -> None:
        await asyncio.to_thread(
            self._execute,
            "INSERT OR REPLACE INTO runs (run_id, workflow, status, created_at) VALUES (?, ?, ?, ?)",
            run_id,
            json.dumps(workflow or {}),
            "queued",
            datetime.utcnow().isoformat(),
        )

    async def mark_run_status(
        self, run_id: str, status: str, error: str | None = None
    ) -> None:
        terminal = sorted(TERMINAL_STATUSES)
        finished_at = datetime.utcnow().isoformat() if status in TERMINAL_STATUSES else None
        await asyncio.to_thread(
            self._execute,
            """
            UPDATE runs
            SET status = ?, error = COALESCE(?, error), finished_at = COALESCE(?, finished_at)
            WHERE run_id = ? AND status NOT IN (?, ?)
            """,
            status,
            error,
            finished_at,
            run_id,
            *terminal,
        )

    async def mark_step_started(
        self,
        run_id: str,
        index: int,
        step_id: str | None = None,
        step_type: str | None = None,
    ) -> None:
        await asyncio.to_thread(
            self._execute,
            """
            INSERT OR IGNORE INTO step_history (run_id, step_index, step_id, step_type, started_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            run_id,
            index,
            step_id,
            step_type,
            datetime.utcnow().isoformat(),
        )

    async def mark_step_completed(
        self, run_id: str, index: int, ok: bool, error: str | None = None
    ) -> None:
        await asyncio.to_thread(
            self._execute,
            """
            UPDATE step_history
            SET completed_at = ?, ok = ?, error = ?
            WHERE run_id = ? AND step_index = ? AND completed_at IS NULL
            """,
            datetime.utcnow().isoformat(),
            int(ok),
            error,
            run_id,
            index,
        )

    async def get_run(self, run_id: str) -> RunInstance | None:
        row = await asyncio.to_thread(
            self._fetchone,
            "SELECT run_id, workflow, status, error, created_at, finished_at FROM runs WHERE run_id = ?",
            run_id,
        )
        if not row:
            return None
        step_rows = await asyncio.to_thread(
            self._fetchall,
            """
            SELECT id, run_id, step_index, step_id, step_type, started_at, completed_at, ok, error
            FROM step_history WHERE run_id = ? ORDER BY step_index
            """,
            run_id,
        )
        steps = [
            StepRecord(
                id=r["id"],
                run_id=r["run_id"],
                index=r["step_index"],
                step_id=r["step_id"],
                step_type=r["step_type"],
                started_at=_parse_ts(r["started_at"]),
                completed_at=_parse_ts(r["completed_at"]),
                ok=None if r["ok"] is None else bool(r["ok"]),
                error=r["error"],
            )
            for r in step_rows
        ]
        return self._row_to_run(row, steps)

    async def list_runs(self) -> list[RunInstance]:
        rows = await asyncio.to_thread(
            self._fetchall,
            "SELECT run_id, workflow, status, error, created_at, finished_at FROM runs ORDER BY created_at",
        )
        return [self._row_to_run(row, []) for row in rows]
