"""Vault storage: codebooks and password entries.

Entries carry envelopes produced by `codevault.lib.crypto`; this layer
stores and returns them as opaque bytes and never decrypts anything.
"""
from __future__ import annotations
import sqlite3, logging
from dataclasses import dataclass
from typing import List, Optional
from codevault.config import DEFAULT_PAGE_SIZE
from .db import Database
from .validation import ValidationError, validate_codebook_name, validate_entry_fields

log = logging.getLogger(__name__)

# Stored when the caller has no public key for an entry
PLACEHOLDER_PUBLIC_KEY = b'\x01'

@dataclass
class Codebook:
	id: int
	owner_username: str
	name: str
	created_time: str

	@classmethod
	def from_row(cls, row: sqlite3.Row) -> 'Codebook':
		return cls(row['codebook_id'], row['username'], row['codebook_name'], row['created_time'])

@dataclass
class PasswordEntry:
	id: int
	codebook_id: int
	address: str
	public_key: bytes
	encrypted_password: bytes
	notes: str
	created_time: str

	@classmethod
	def from_row(cls, row: sqlite3.Row) -> 'PasswordEntry':
		return cls(
			id=row['entry_id'], codebook_id=row['codebook_id'], address=row['address'],
			public_key=bytes(row['public_key']), encrypted_password=bytes(row['encrypted_password']),
			notes=row['notes'] or '', created_time=row['created_time']
		)

	@property
	def has_public_key(self) -> bool:
		return self.public_key != PLACEHOLDER_PUBLIC_KEY

_CODEBOOK_COLS = 'codebook_id, username, codebook_name, created_time'
_ENTRY_COLS = 'entry_id, codebook_id, address, public_key, encrypted_password, notes, created_time'

def fetch_user_codebooks(db: Database, username: str) -> List[Codebook]:
	rows = db.fetchall(
		f'SELECT {_CODEBOOK_COLS} FROM Codebook WHERE username = ? '
		'ORDER BY created_time DESC, codebook_id DESC',
		(username,)
	)
	return [Codebook.from_row(r) for r in rows]

def _as_blob(value) -> bytes:
	return value.encode('utf-8') if isinstance(value, str) else bytes(value)

def _escape_like(text: str) -> str:
	return text.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')

class VaultStore:
	def __init__(self, db: Database):
		self.db = db

	# --- codebooks ---

	def create_codebook(self, username: str, name: str) -> bool:
		"""Create a codebook; recreating an existing (username, name) is a no-op."""
		validate_codebook_name(name)
		cur = self.db.execute(
			'INSERT INTO Codebook (username, codebook_name) VALUES (?, ?) '
			'ON CONFLICT(username, codebook_name) DO NOTHING',
			(username, name)
		)
		if cur.rowcount:
			log.info('Codebook created: user=%s id=%s', username, cur.lastrowid)
		return True

	def codebook_exists(self, codebook_id: int) -> bool:
		return self.db.fetchone('SELECT 1 FROM Codebook WHERE codebook_id = ?', (codebook_id,)) is not None

	def get_codebook(self, codebook_id: int) -> Optional[Codebook]:
		row = self.db.fetchone(f'SELECT {_CODEBOOK_COLS} FROM Codebook WHERE codebook_id = ?', (codebook_id,))
		return Codebook.from_row(row) if row else None

	def get_codebook_id(self, username: str, name: str) -> Optional[int]:
		row = self.db.fetchone(
			'SELECT codebook_id FROM Codebook WHERE username = ? AND codebook_name = ?', (username, name)
		)
		return row['codebook_id'] if row else None

	def get_user_codebooks(self, username: str) -> List[Codebook]:
		return fetch_user_codebooks(self.db, username)

	def delete_codebook(self, codebook_id: int) -> bool:
		"""Delete a codebook and all of its entries atomically.

		Returns False if the codebook does not exist. Raises StorageError (after
		rolling back) if any statement fails.
		"""
		if not self.codebook_exists(codebook_id):
			return False
		with self.db.transaction() as tx:
			removed = tx.execute('DELETE FROM PasswordEntry WHERE codebook_id = ?', (codebook_id,)).rowcount
			tx.execute('DELETE FROM Codebook WHERE codebook_id = ?', (codebook_id,))
		log.info('Codebook deleted: id=%s (%d entries)', codebook_id, removed)
		return True

	# --- entries ---

	def add_entry(self, codebook_id: int, address: str, encrypted_password: bytes,
			notes: str = '', public_key=PLACEHOLDER_PUBLIC_KEY) -> int:
		"""Insert one entry and return its id.

		Length limits and the codebook reference are enforced by the schema;
		violations surface as StorageError.
		"""
		cur = self.db.execute(
			'INSERT INTO PasswordEntry (codebook_id, address, public_key, encrypted_password, notes) '
			'VALUES (?, ?, ?, ?, ?)',
			(codebook_id, address, _as_blob(public_key), _as_blob(encrypted_password), notes)
		)
		log.info('Entry added: codebook=%s id=%s', codebook_id, cur.lastrowid)
		return cur.lastrowid

	def update_entry(self, entry_id: int, address: str, public_key, encrypted_password,
			notes: str | None) -> bool:
		"""Replace all mutable fields of an entry. Returns False if no row matched."""
		validate_entry_fields(address, public_key, encrypted_password, notes)
		cur = self.db.execute(
			'UPDATE PasswordEntry SET address = ?, public_key = ?, encrypted_password = ?, notes = ? '
			'WHERE entry_id = ?',
			(address, _as_blob(public_key), _as_blob(encrypted_password), notes, entry_id)
		)
		if cur.rowcount == 0:
			return False
		log.info('Entry updated: id=%s', entry_id)
		return True

	def delete_entry(self, entry_id: int) -> bool:
		with self.db.transaction() as tx:
			removed = tx.execute('DELETE FROM PasswordEntry WHERE entry_id = ?', (entry_id,)).rowcount
		if removed:
			log.info('Entry deleted: id=%s', entry_id)
		return removed > 0

	def get_entry(self, entry_id: int) -> Optional[PasswordEntry]:
		row = self.db.fetchone(f'SELECT {_ENTRY_COLS} FROM PasswordEntry WHERE entry_id = ?', (entry_id,))
		return PasswordEntry.from_row(row) if row else None

	def get_entries(self, codebook_id: int, filter: str = '', page: int = 0,
			page_size: int = DEFAULT_PAGE_SIZE) -> List[PasswordEntry]:
		"""One page of a codebook's entries in insertion order.

		`filter` is a literal substring matched against address and notes.
		"""
		if page < 0: raise ValidationError('page must be >= 0')
		if page_size <= 0: raise ValidationError('page_size must be > 0')
		sql = f'SELECT {_ENTRY_COLS} FROM PasswordEntry WHERE codebook_id = ?'
		params: list = [codebook_id]
		if filter:
			pattern = f'%{_escape_like(filter)}%'
			sql += " AND (address LIKE ? ESCAPE '\\' OR notes LIKE ? ESCAPE '\\')"
			params += [pattern, pattern]
		sql += ' ORDER BY entry_id LIMIT ? OFFSET ?'
		params += [page_size, page * page_size]
		return [PasswordEntry.from_row(r) for r in self.db.fetchall(sql, tuple(params))]

	def count_entries(self, codebook_id: int) -> int:
		row = self.db.fetchone('SELECT COUNT(*) AS n FROM PasswordEntry WHERE codebook_id = ?', (codebook_id,))
		return row['n']
