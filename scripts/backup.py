"""Simple backup utility script.

Usage (from repo root):
  python -m scripts.backup --dest backups/
"""
from __future__ import annotations
from datetime import datetime
from pathlib import Path
import click
from codevault.config import settings
from codevault.lib.db import Database, StorageError

@click.command()
@click.option('--dest', type=click.Path(file_okay=False, path_type=Path), default=Path('backups'), help='Destination directory for backups.')
@click.option('--db', 'db_path', type=click.Path(dir_okay=False, path_type=Path), default=None, help='Database to back up.')
def main(dest: Path, db_path: Path | None):
	source = settings.resolve_db_path(db_path)
	if source == settings.MEMORY_DB or not Path(source).exists():
		click.echo(f"No database at {source}; nothing to backup.")
		raise SystemExit(1)
	stamp = datetime.now().strftime('%Y%m%d_%H%M%S')
	target = dest / f"codevault_{stamp}.db"
	try:
		with Database(source) as db:
			db.backup(target)
	except StorageError as e:
		click.echo(f"Error: {e}")
		raise SystemExit(1)
	click.echo(f"Backup written: {target}")

if __name__ == '__main__':  # pragma: no cover
	main()
