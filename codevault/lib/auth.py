"""Authentication: Argon2id password hashes and login verification."""
from __future__ import annotations
import logging
from argon2 import PasswordHasher, Type
from argon2.exceptions import HashingError, InvalidHashError, VerificationError
from codevault.config import KdfParams, hash_params
from .db import Database
from .validation import validate_username, validate_password
from .vault import Codebook, fetch_user_codebooks

log = logging.getLogger(__name__)

class AuthError(Exception):
	pass

def make_hasher(params: KdfParams | None = None) -> PasswordHasher:
	p = params or hash_params()
	return PasswordHasher(
		time_cost=p.time_cost, memory_cost=p.memory_cost, parallelism=p.parallelism,
		hash_len=32, salt_len=16, type=Type.ID
	)

def hash_password(password: str, hasher: PasswordHasher | None = None) -> str:
	if not password:
		raise AuthError('Empty password')
	try:
		return (hasher or make_hasher()).hash(password)
	except HashingError as e:
		raise AuthError(f'Password hashing failed: {e}') from e

def verify_password(password: str, hashed: str, hasher: PasswordHasher | None = None) -> bool:
	try:
		return (hasher or make_hasher()).verify(hashed, password)
	except (VerificationError, InvalidHashError):
		return False

class AuthStore:
	"""User registration and login over the shared database.

	Holds only the login hash; the vault's master password never passes
	through here.
	"""

	def __init__(self, db: Database, params: KdfParams | None = None):
		self.db = db
		self._hasher = make_hasher(params)
		self._dummy_hash: str | None = None

	def user_exists(self, username: str) -> bool:
		return self.db.fetchone('SELECT 1 FROM User WHERE username = ?', (username,)) is not None

	def register(self, username: str, password: str) -> bool:
		"""Create an account. Returns False if the username is taken."""
		validate_username(username)
		validate_password(password)
		if self.user_exists(username):
			log.info('Registration refused, username taken: %s', username)
			return False
		hashed = hash_password(password, self._hasher)
		cur = self.db.execute(
			'INSERT INTO User (username, password_hash) VALUES (?, ?) ON CONFLICT(username) DO NOTHING',
			(username, hashed)
		)
		if cur.rowcount == 0:
			return False
		log.info('User registered: %s', username)
		return True

	def login(self, username: str, password: str) -> tuple[bool, list[Codebook]]:
		"""Verify credentials; on success return the user's codebooks, newest first.

		Unknown user and wrong password give the same (False, []) result, and an
		unknown user still pays for one hash verification.
		"""
		row = self.db.fetchone('SELECT password_hash FROM User WHERE username = ?', (username,))
		if row is None:
			verify_password(password or '', self._get_dummy_hash(), self._hasher)
			ok = False
		else:
			ok = verify_password(password or '', row['password_hash'], self._hasher)
		if not ok:
			log.info('Login failed for %s', username)
			return False, []
		log.info('Login succeeded for %s', username)
		return True, fetch_user_codebooks(self.db, username)

	def get_user_codebooks(self, username: str) -> list[Codebook]:
		return fetch_user_codebooks(self.db, username)

	def _get_dummy_hash(self) -> str:
		if self._dummy_hash is None:
			self._dummy_hash = self._hasher.hash('codevault-timing-equaliser')
		return self._dummy_hash
