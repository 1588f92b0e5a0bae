#!/usr/bin/env python3
"""
Database migration runner for Supabase.

Applies the SQL files in migrations/ in filename order, records each one
with a checksum, and can verify that the stored procedures the API calls
exist.

Usage:
    python run_migrations.py              # Apply pending migrations
    python run_migrations.py --status     # Show migration status
    python run_migrations.py --dry-run    # Show what would run
    python run_migrations.py --verify     # Check the RPC functions exist

Configuration:
    Set SUPABASE_DB_URL in your .env file to the database URI from
    Supabase Dashboard → Settings → Database → Connection string.
"""

import argparse
import hashlib
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

import psycopg2
from psycopg2 import sql
from rich.console import Console
from rich.table import Table

from shared.config import get_settings

console = Console()

MIGRATIONS_DIR = Path(__file__).parent / "migrations"
MIGRATIONS_TABLE = "_migrations"

# Stored procedures called by the Supabase-backed services
REQUIRED_FUNCTIONS = (
    "consume_credits_v2",
    "refund_credits",
    "check_and_increment_batch_usage",
    "increment_email_provider_usage",
)


@dataclass(frozen=True)
class Migration:
    name: str
    path: Path
    checksum: str

    @classmethod
    def from_file(cls, path: Path) -> "Migration":
        return cls(name=path.name, path=path, checksum=checksum_of(path.read_text()))


@dataclass(frozen=True)
class AppliedMigration:
    name: str
    checksum: str
    applied_at: Optional[datetime] = None


def checksum_of(content: str) -> str:
    return hashlib.sha256(content.encode()).hexdigest()[:16]


def discover_migrations(directory: Path = MIGRATIONS_DIR) -> list[Migration]:
    """SQL files in the directory, in filename order."""
    if not directory.exists():
        return []
    return [Migration.from_file(p) for p in sorted(directory.glob("*.sql"))]


def plan_migrations(
    available: list[Migration],
    applied: dict[str, AppliedMigration],
) -> tuple[list[Migration], list[str]]:
    """
    Split migrations into pending ones and applied ones whose file changed.

    Returns:
        (pending, changed_names)
    """
    pending: list[Migration] = []
    changed: list[str] = []
    for migration in available:
        record = applied.get(migration.name)
        if record is None:
            pending.append(migration)
        elif record.checksum != migration.checksum:
            changed.append(migration.name)
    return pending, changed


def connect(db_url: str):
    """Open a connection to the Supabase Postgres database."""
    if not db_url:
        console.print("[red]Error:[/red] SUPABASE_DB_URL is not set.")
        sys.exit(1)
    try:
        return psycopg2.connect(db_url)
    except psycopg2.Error as e:
        console.print(f"[red]Database connection failed:[/red] {e}")
        sys.exit(1)


def ensure_migrations_table(conn) -> None:
    with conn.cursor() as cur:
        cur.execute(
            sql.SQL("""
                CREATE TABLE IF NOT EXISTS {} (
                    id SERIAL PRIMARY KEY,
                    name VARCHAR(255) NOT NULL UNIQUE,
                    checksum VARCHAR(64) NOT NULL,
                    applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
                )
            """).format(sql.Identifier(MIGRATIONS_TABLE))
        )
    conn.commit()


def fetch_applied(conn) -> dict[str, AppliedMigration]:
    with conn.cursor() as cur:
        cur.execute(
            sql.SQL("SELECT name, checksum, applied_at FROM {} ORDER BY name").format(
                sql.Identifier(MIGRATIONS_TABLE)
            )
        )
        return {
            row[0]: AppliedMigration(name=row[0], checksum=row[1], applied_at=row[2])
            for row in cur.fetchall()
        }


def apply_migration(conn, migration: Migration) -> None:
    """Run one migration and record it in a single transaction."""
    console.print(f"[blue]Running:[/blue] {migration.name}...")
    try:
        with conn.cursor() as cur:
            cur.execute(migration.path.read_text())
            cur.execute(
                sql.SQL("INSERT INTO {} (name, checksum) VALUES (%s, %s)").format(
                    sql.Identifier(MIGRATIONS_TABLE)
                ),
                (migration.name, migration.checksum),
            )
        conn.commit()
    except psycopg2.Error as e:
        conn.rollback()
        console.print(f"[red]✗[/red] {migration.name} failed: {e}")
        raise
    console.print(f"[green]✓[/green] {migration.name} applied")


def missing_functions(conn) -> list[str]:
    with conn.cursor() as cur:
        cur.execute(
            "SELECT proname FROM pg_proc WHERE proname = ANY(%s)",
            (list(REQUIRED_FUNCTIONS),),
        )
        present = {row[0] for row in cur.fetchall()}
    return [name for name in REQUIRED_FUNCTIONS if name not in present]


def show_status(applied: dict[str, AppliedMigration], pending: list[Migration]) -> None:
    if not applied and not pending:
        console.print("[dim]No migrations found.[/dim]")
        return

    table = Table(title="Migration Status")
    table.add_column("Migration", style="cyan")
    table.add_column("Status")
    table.add_column("Applied At")
    table.add_column("Checksum")
    for record in applied.values():
        applied_at = record.applied_at.strftime("%Y-%m-%d %H:%M:%S") if record.applied_at else ""
        table.add_row(record.name, "[green]Applied[/green]", applied_at, record.checksum)
    for migration in pending:
        table.add_row(migration.name, "[yellow]Pending[/yellow]", "", migration.checksum)
    console.print(table)


def main() -> None:
    parser = argparse.ArgumentParser(description="Run database migrations for Supabase")
    parser.add_argument("--status", action="store_true", help="Show migration status")
    parser.add_argument("--dry-run", action="store_true", help="List pending migrations only")
    parser.add_argument("--verify", action="store_true", help="Check required RPC functions exist")
    args = parser.parse_args()

    console.print("[bold]PixelPerfect Database Migrations[/bold]")

    conn = connect(get_settings().supabase_db_url)
    try:
        ensure_migrations_table(conn)
        applied = fetch_applied(conn)
        pending, changed = plan_migrations(discover_migrations(), applied)
        for name in changed:
            console.print(f"[yellow]Warning:[/yellow] {name} has changed since it was applied")

        if args.status:
            show_status(applied, pending)
        elif args.verify:
            missing = missing_functions(conn)
            if missing:
                console.print(f"[red]Missing functions:[/red] {', '.join(missing)}")
                sys.exit(1)
            console.print("[green]All required functions are present.[/green]")
        elif not pending:
            console.print("[green]All migrations are up to date![/green]")
        elif args.dry_run:
            for migration in pending:
                console.print(f"[cyan]Would run:[/cyan] {migration.name}")
        else:
            for migration in pending:
                apply_migration(conn, migration)
            console.print("[green]All migrations completed successfully![/green]")
    finally:
        conn.close()


if __name__ == "__main__":
    main()
