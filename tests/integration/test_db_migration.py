from __future__ import annotations

import os
import sqlite3
import subprocess
import sys
from pathlib import Path

EXPECTED_TABLES = {
    "users",
    "career_phases",
    "objectives",
    "evidence",
    "github_integrations",
    "evidence_compiler_drafts",
    "cv_generations",
    "interview_prep_problems",
    "interview_prep_sessions",
    "conversations",
    "conversation_messages",
}


def _tables(db_path: Path) -> set[str]:
    conn = sqlite3.connect(db_path)
    try:
        rows = conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
    finally:
        conn.close()
    return {row[0] for row in rows}


def test_alembic_upgrade_and_downgrade_full_schema(tmp_path: Path) -> None:
    repo_root = Path(__file__).resolve().parents[2]
    db_path = tmp_path / "migration_test.db"
    env = os.environ.copy()
    env["DATABASE_URL"] = f"sqlite:///{db_path}"

    subprocess.run(
        [sys.executable, "-m", "alembic", "-c", "alembic.ini", "upgrade", "head"],
        cwd=repo_root,
        env=env,
        check=True,
    )
    assert EXPECTED_TABLES <= _tables(db_path)

    subprocess.run(
        [sys.executable, "-m", "alembic", "-c", "alembic.ini", "downgrade", "base"],
        cwd=repo_root,
        env=env,
        check=True,
    )
    assert not (EXPECTED_TABLES & _tables(db_path))
