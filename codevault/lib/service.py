"""Service layer consumed by presentation code (the CLI).

Wires AuthStore, VaultStore and CryptoModule over one Database and turns
their exceptions into result values. Plaintext passwords only exist here,
between the caller and CryptoModule: they are encrypted right before
VaultStore writes and decrypted right after VaultStore reads.
"""
from __future__ import annotations
import functools, logging
from dataclasses import dataclass, field
from typing import List, Optional
from codevault.config import DEFAULT_PAGE_SIZE, DEFAULT_PASSWORD_LENGTH, KdfParams
from .auth import AuthStore, AuthError
from .crypto import CryptoModule, CryptoError, DecryptionError
from .db import Database, StorageError
from .passgen import PasswordGenerator
from .results import Ok, NotFound, Invalid, Denied, StorageFailure, CryptoFailure, Result
from .validation import ValidationError, validate_password
from .vault import VaultStore, Codebook, PasswordEntry, PLACEHOLDER_PUBLIC_KEY

log = logging.getLogger(__name__)

LOGIN_FAILED = 'Invalid username or password'

@dataclass
class Session:
	"""An authenticated user. Holds no key material."""
	username: str
	codebooks: List[Codebook] = field(default_factory=list)

def _boundary(fn):
	@functools.wraps(fn)
	def wrapper(*args, **kwargs) -> Result:
		try:
			return fn(*args, **kwargs)
		except ValidationError as e:
			return Invalid(str(e))
		except DecryptionError as e:
			return CryptoFailure(str(e))
		except (CryptoError, AuthError) as e:
			return Invalid(str(e))
		except StorageError as e:
			log.error('%s failed: %s', fn.__name__, e)
			return StorageFailure(str(e))
	return wrapper

class VaultService:
	def __init__(self, db: Database, crypto: CryptoModule | None = None,
			kdf: KdfParams | None = None, hash_params: KdfParams | None = None):
		self.db = db
		self.crypto = crypto or CryptoModule(kdf)
		self.auth = AuthStore(db, hash_params)
		self.vault = VaultStore(db)

	# --- accounts ---

	@_boundary
	def register(self, username: str, password: str) -> Result:
		if not self.auth.register(username, password):
			return Denied('Username already exists')
		return Ok(True)

	@_boundary
	def login(self, username: str, password: str) -> Result:
		ok, codebooks = self.auth.login(username, password)
		if not ok:
			return Denied(LOGIN_FAILED)
		return Ok(Session(username, codebooks))

	# --- codebooks ---

	def _owned_codebook(self, session: Session, codebook_id: int) -> Optional[Codebook]:
		cb = self.vault.get_codebook(codebook_id)
		if cb is None or cb.owner_username != session.username:
			return None
		return cb

	def _owned_entry(self, session: Session, entry_id: int) -> Optional[PasswordEntry]:
		entry = self.vault.get_entry(entry_id)
		if entry is None or self._owned_codebook(session, entry.codebook_id) is None:
			return None
		return entry

	@_boundary
	def list_codebooks(self, session: Session) -> Result:
		session.codebooks = self.vault.get_user_codebooks(session.username)
		return Ok(session.codebooks)

	@_boundary
	def create_codebook(self, session: Session, name: str) -> Result:
		self.vault.create_codebook(session.username, name)
		cb = self.vault.get_codebook(self.vault.get_codebook_id(session.username, name))
		session.codebooks = self.vault.get_user_codebooks(session.username)
		return Ok(cb)

	@_boundary
	def delete_codebook(self, session: Session, codebook_id: int) -> Result:
		if self._owned_codebook(session, codebook_id) is None or not self.vault.delete_codebook(codebook_id):
			return NotFound(f'Codebook {codebook_id} not found')
		session.codebooks = [c for c in session.codebooks if c.id != codebook_id]
		return Ok(True)

	# --- entries ---

	@_boundary
	def add_entry(self, session: Session, codebook_id: int, address: str, password: str,
			master_password: str, notes: str = '', public_key=None) -> Result:
		if self._owned_codebook(session, codebook_id) is None:
			return NotFound(f'Codebook {codebook_id} not found')
		validate_password(password, 'Entry password')
		envelope = self.crypto.encrypt_text(master_password, password)
		entry_id = self.vault.add_entry(
			codebook_id, address, envelope, notes, public_key or PLACEHOLDER_PUBLIC_KEY
		)
		return Ok(entry_id)

	@_boundary
	def list_entries(self, session: Session, codebook_id: int, filter: str = '', page: int = 0,
			page_size: int = DEFAULT_PAGE_SIZE) -> Result:
		if self._owned_codebook(session, codebook_id) is None:
			return NotFound(f'Codebook {codebook_id} not found')
		return Ok(self.vault.get_entries(codebook_id, filter, page, page_size))

	@_boundary
	def get_entry(self, session: Session, entry_id: int) -> Result:
		entry = self._owned_entry(session, entry_id)
		return Ok(entry) if entry else NotFound(f'Entry {entry_id} not found')

	@_boundary
	def reveal_password(self, session: Session, entry_id: int, master_password: str) -> Result:
		entry = self._owned_entry(session, entry_id)
		if entry is None:
			return NotFound(f'Entry {entry_id} not found')
		return Ok(self.crypto.decrypt_text(master_password, entry.encrypted_password))

	@_boundary
	def update_entry(self, session: Session, entry_id: int, address: str, password: str,
			master_password: str, notes: str | None = None, public_key=None) -> Result:
		current = self._owned_entry(session, entry_id)
		if current is None:
			return NotFound(f'Entry {entry_id} not found')
		validate_password(password, 'Entry password')
		envelope = self.crypto.encrypt_text(master_password, password)
		if not self.vault.update_entry(entry_id, address, public_key or current.public_key, envelope,
				current.notes if notes is None else notes):
			return NotFound(f'Entry {entry_id} not found')
		return Ok(True)

	@_boundary
	def delete_entry(self, session: Session, entry_id: int) -> Result:
		if self._owned_entry(session, entry_id) is None or not self.vault.delete_entry(entry_id):
			return NotFound(f'Entry {entry_id} not found')
		return Ok(True)

	# --- generator ---

	def generate_password(self, length: int = DEFAULT_PASSWORD_LENGTH, extended: bool = False) -> Result:
		try:
			return Ok(PasswordGenerator(length).generate(use_extended_charset=extended))
		except ValueError as e:
			return Invalid(str(e))
