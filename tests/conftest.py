import pytest
from codevault.lib.db import Database
from codevault.lib.auth import AuthStore
from codevault.lib.vault import VaultStore

# Argon2 at its real cost takes hundreds of MiB per call; tests run it cheap.
FAST_ENV = {
    'VAULT_KDF_TIME_COST': '1',
    'VAULT_KDF_MEMORY_COST': '1024',
    'VAULT_HASH_TIME_COST': '1',
    'VAULT_HASH_MEMORY_COST': '2048',
}

@pytest.fixture(autouse=True)
def fast_kdf(monkeypatch, tmp_path):
    for k, v in FAST_ENV.items():
        monkeypatch.setenv(k, v)
    monkeypatch.setenv('VAULT_DB_PATH', str(tmp_path / 'vault.db'))

@pytest.fixture
def db():
    d = Database(':memory:').open()
    yield d
    d.close()

@pytest.fixture
def auth(db):
    return AuthStore(db)

@pytest.fixture
def vault(db):
    db.execute("INSERT INTO User (username, password_hash) VALUES ('alice', 'x'), ('bob', 'x')")
    return VaultStore(db)
