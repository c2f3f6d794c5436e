"""SQLite connection, schema and transaction handling.

One `Database` owns the single connection shared by AuthStore and
VaultStore. The connection runs in autocommit mode: a lone statement is
atomic by itself, and multi-statement work goes through `transaction()`.
Callers must not issue mutating operations from several threads at once.
"""
from __future__ import annotations
import sqlite3, logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator
from codevault.config import MEMORY_DB, resolve_db_path

log = logging.getLogger(__name__)

class StorageError(Exception):
	pass

_NOW = "(strftime('%Y-%m-%d %H:%M:%f', 'now'))"

SCHEMA = f"""
CREATE TABLE IF NOT EXISTS User (
	username TEXT PRIMARY KEY CHECK(length(username) BETWEEN 1 AND 50),
	password_hash TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS Codebook (
	codebook_id INTEGER PRIMARY KEY AUTOINCREMENT,
	username TEXT NOT NULL,
	codebook_name TEXT NOT NULL CHECK(length(codebook_name) BETWEEN 1 AND 100),
	created_time TEXT NOT NULL DEFAULT {_NOW},
	FOREIGN KEY(username) REFERENCES User(username) ON DELETE CASCADE,
	UNIQUE(username, codebook_name)
);

CREATE TABLE IF NOT EXISTS PasswordEntry (
	entry_id INTEGER PRIMARY KEY AUTOINCREMENT,
	codebook_id INTEGER NOT NULL,
	created_time TEXT NOT NULL DEFAULT {_NOW},
	address TEXT NOT NULL CHECK(length(address) BETWEEN 1 AND 253),
	public_key BLOB NOT NULL CHECK(length(public_key) <= 4096),
	encrypted_password BLOB NOT NULL CHECK(length(encrypted_password) <= 512),
	notes TEXT CHECK(length(notes) <= 1024),
	FOREIGN KEY(codebook_id) REFERENCES Codebook(codebook_id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_entry_codebook ON PasswordEntry(codebook_id);
"""

class Database:
	def __init__(self, path: Path | str | None = None):
		self.path = resolve_db_path(path)
		self._conn: sqlite3.Connection | None = None
		self._in_transaction = False

	@property
	def conn(self) -> sqlite3.Connection:
		if self._conn is None:
			self.open()
		return self._conn

	def open(self) -> 'Database':
		if self._conn is not None: return self
		if self.path != MEMORY_DB:
			Path(self.path).parent.mkdir(parents=True, exist_ok=True)
		try:
			conn = sqlite3.connect(str(self.path), isolation_level=None)
			conn.row_factory = sqlite3.Row
			conn.execute('PRAGMA foreign_keys = ON')
			conn.execute('PRAGMA busy_timeout = 5000')
			if self.path != MEMORY_DB:
				conn.execute('PRAGMA journal_mode = WAL')
			conn.executescript(SCHEMA)
		except sqlite3.Error as e:
			log.error('Failed to open database %s: %s', self.path, e)
			raise StorageError(f'Failed to open database: {e}') from e
		self._conn = conn
		log.debug('Database opened: %s', self.path)
		return self

	def close(self) -> None:
		if self._conn is not None:
			self._conn.close(); self._conn = None
			log.debug('Database closed: %s', self.path)

	def __enter__(self) -> 'Database':
		return self.open()

	def __exit__(self, *exc) -> None:
		self.close()

	def execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
		try:
			return self.conn.execute(sql, params)
		except sqlite3.Error as e:
			log.error('Statement failed: %s', e)
			raise StorageError(f'Statement failed: {e}') from e

	def fetchone(self, sql: str, params: tuple = ()) -> sqlite3.Row | None:
		return self.execute(sql, params).fetchone()

	def fetchall(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
		return self.execute(sql, params).fetchall()

	@contextmanager
	def transaction(self) -> Iterator['Database']:
		"""BEGIN ... COMMIT; any exception rolls everything back and re-raises as StorageError."""
		if self._in_transaction:
			raise StorageError('Nested transactions are not supported')
		self.execute('BEGIN')
		self._in_transaction = True
		try:
			yield self
			self.execute('COMMIT')
		except Exception as e:
			try:
				self.conn.execute('ROLLBACK')
			except sqlite3.Error as rb:
				log.error('Rollback failed: %s', rb)
			log.error('Transaction rolled back: %s', e)
			if isinstance(e, StorageError): raise
			raise StorageError(f'Transaction failed: {e}') from e
		finally:
			self._in_transaction = False

	def backup(self, dest: Path | str) -> Path:
		"""Copy the live database to `dest` using SQLite's online backup API."""
		dest = Path(dest)
		dest.parent.mkdir(parents=True, exist_ok=True)
		target = sqlite3.connect(str(dest))
		try:
			self.conn.backup(target)
		except sqlite3.Error as e:
			raise StorageError(f'Backup failed: {e}') from e
		finally:
			target.close()
		log.info('Database backed up to %s', dest)
		return dest
