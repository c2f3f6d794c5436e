import pytest
from codevault.lib.crypto import CryptoModule
from codevault.lib.db import StorageError
from codevault.lib.validation import ValidationError
from codevault.lib.vault import PLACEHOLDER_PUBLIC_KEY

ENVELOPE = b'\x00' * 60

def count(db, table, where='1', params=()):
    return db.fetchone(f'SELECT COUNT(*) AS n FROM {table} WHERE {where}', params)['n']

def make_codebook(vault, name='Work', user='alice'):
    vault.create_codebook(user, name)
    return vault.get_codebook_id(user, name)

def test_create_codebook_is_idempotent(vault, db):
    assert vault.create_codebook('alice', 'Work') is True
    assert vault.create_codebook('alice', 'Work') is True
    assert count(db, 'Codebook') == 1

def test_same_name_for_different_users(vault, db):
    vault.create_codebook('alice', 'Work'); vault.create_codebook('bob', 'Work')
    assert count(db, 'Codebook') == 2
    assert vault.get_codebook_id('alice', 'Work') != vault.get_codebook_id('bob', 'Work')

@pytest.mark.parametrize('name', [
    'Work 1', 'Work.', 'a/b', 'Work\U0001F600', '', 'x' * 101, 'tab\there', 'quote"', "semi;colon",
])
def test_create_codebook_rejects_bad_names(vault, db, name):
    with pytest.raises(ValidationError):
        vault.create_codebook('alice', name)
    assert count(db, 'Codebook') == 0

@pytest.mark.parametrize('name', ['Work', '工作', '密码本_1', 'my-book_2', '@$!%*#?&', 'x' * 100])
def test_create_codebook_accepts_allowed_names(vault, name):
    assert vault.create_codebook('alice', name)
    assert vault.get_codebook_id('alice', name) is not None

def test_create_codebook_for_unknown_user_fails(vault):
    with pytest.raises(StorageError):
        vault.create_codebook('nobody', 'Work')

def test_user_codebooks_newest_first(vault):
    for name in ('A', 'B', 'C'):
        vault.create_codebook('alice', name)
    vault.create_codebook('bob', 'D')
    books = vault.get_user_codebooks('alice')
    assert [b.name for b in books] == ['C', 'B', 'A']
    assert vault.get_user_codebooks('nobody') == []

def test_get_codebook(vault):
    cid = make_codebook(vault)
    cb = vault.get_codebook(cid)
    assert (cb.id, cb.owner_username, cb.name) == (cid, 'alice', 'Work')
    assert cb.created_time
    assert vault.get_codebook(cid + 100) is None
    assert vault.get_codebook_id('alice', 'Missing') is None

def test_delete_codebook_cascades_entries(vault, db):
    cid = make_codebook(vault); other = make_codebook(vault, 'Home')
    vault.add_entry(cid, 'a.example', ENVELOPE); vault.add_entry(cid, 'b.example', ENVELOPE)
    keep = vault.add_entry(other, 'c.example', ENVELOPE)
    assert vault.delete_codebook(cid) is True
    assert not vault.codebook_exists(cid)
    assert count(db, 'PasswordEntry', 'codebook_id = ?', (cid,)) == 0
    assert vault.get_entry(keep) is not None

def test_delete_missing_codebook(vault):
    assert vault.delete_codebook(999) is False

@pytest.mark.parametrize('table', ['Codebook', 'PasswordEntry'])
def test_failed_delete_codebook_rolls_back(vault, db, table):
    cid = make_codebook(vault)
    e1 = vault.add_entry(cid, 'a.example', ENVELOPE); e2 = vault.add_entry(cid, 'b.example', ENVELOPE)
    db.execute(f"CREATE TRIGGER fail_delete BEFORE DELETE ON {table} BEGIN SELECT RAISE(ABORT, 'forced failure'); END")
    with pytest.raises(StorageError):
        vault.delete_codebook(cid)
    assert vault.codebook_exists(cid)
    assert vault.get_entry(e1) is not None and vault.get_entry(e2) is not None
    assert not db.conn.in_transaction
    db.execute('DROP TRIGGER fail_delete')
    assert vault.delete_codebook(cid)

def test_schema_cascade_on_direct_delete(vault, db):
    cid = make_codebook(vault)
    vault.add_entry(cid, 'a.example', ENVELOPE)
    db.execute('DELETE FROM Codebook WHERE codebook_id = ?', (cid,))
    assert count(db, 'PasswordEntry') == 0

def test_add_and_get_entry(vault):
    cid = make_codebook(vault)
    eid = vault.add_entry(cid, 'mail.example.com', ENVELOPE, 'personal')
    e = vault.get_entry(eid)
    assert (e.id, e.codebook_id, e.address, e.notes) == (eid, cid, 'mail.example.com', 'personal')
    assert e.encrypted_password == ENVELOPE
    assert e.public_key == PLACEHOLDER_PUBLIC_KEY and not e.has_public_key
    assert vault.get_entry(eid + 1) is None

def test_add_entry_with_public_key(vault):
    cid = make_codebook(vault)
    eid = vault.add_entry(cid, 'git.example', ENVELOPE, public_key='ssh-ed25519 AAAA')
    e = vault.get_entry(eid)
    assert e.public_key == b'ssh-ed25519 AAAA' and e.has_public_key

def test_add_entry_stores_real_envelope(vault):
    cid = make_codebook(vault)
    c = CryptoModule()
    env = c.encrypt_text('Master#Pass1', 'Aa1' + 'z' * 29)
    e = vault.get_entry(vault.add_entry(cid, 'site', env))
    assert c.decrypt_text('Master#Pass1', e.encrypted_password) == 'Aa1' + 'z' * 29

@pytest.mark.parametrize('address,envelope,notes', [
    ('x' * 254, ENVELOPE, ''),
    ('', ENVELOPE, ''),
    ('ok', b'\x00' * 513, ''),
    ('ok', ENVELOPE, 'n' * 1025),
])
def test_add_entry_schema_limits(vault, db, address, envelope, notes):
    cid = make_codebook(vault)
    with pytest.raises(StorageError):
        vault.add_entry(cid, address, envelope, notes)
    assert count(db, 'PasswordEntry') == 0

def test_add_entry_oversized_public_key(vault):
    cid = make_codebook(vault)
    with pytest.raises(StorageError):
        vault.add_entry(cid, 'ok', ENVELOPE, public_key=b'k' * 4097)

def test_add_entry_missing_codebook(vault):
    with pytest.raises(StorageError):
        vault.add_entry(12345, 'ok', ENVELOPE)

def test_update_entry(vault):
    cid = make_codebook(vault)
    eid = vault.add_entry(cid, 'old.example', ENVELOPE, 'old')
    assert vault.update_entry(eid, 'new.example', b'pk', b'\x01' * 70, 'new') is True
    e = vault.get_entry(eid)
    assert (e.address, e.public_key, e.encrypted_password, e.notes) == ('new.example', b'pk', b'\x01' * 70, 'new')

def test_update_missing_entry_changes_nothing(vault, db):
    cid = make_codebook(vault)
    eid = vault.add_entry(cid, 'a.example', ENVELOPE, 'n')
    before = db.fetchall('SELECT * FROM PasswordEntry')
    assert vault.update_entry(eid + 50, 'b.example', b'pk', ENVELOPE, 'x') is False
    assert [tuple(r) for r in db.fetchall('SELECT * FROM PasswordEntry')] == [tuple(r) for r in before]

@pytest.mark.parametrize('address,public_key,encrypted,notes', [
    ('', b'pk', ENVELOPE, ''),
    ('x' * 254, b'pk', ENVELOPE, ''),
    ('ok', b'', ENVELOPE, ''),
    ('ok', b'k' * 4097, ENVELOPE, ''),
    ('ok', b'pk', b'', ''),
    ('ok', b'pk', b'\x00' * 513, ''),
    ('ok', b'pk', ENVELOPE, 'n' * 1025),
])
def test_update_entry_validation(vault, address, public_key, encrypted, notes):
    cid = make_codebook(vault)
    eid = vault.add_entry(cid, 'a.example', ENVELOPE)
    with pytest.raises(ValidationError):
        vault.update_entry(eid, address, public_key, encrypted, notes)
    assert vault.get_entry(eid).address == 'a.example'

def test_update_entry_bounds_inclusive(vault):
    cid = make_codebook(vault)
    eid = vault.add_entry(cid, 'a.example', ENVELOPE)
    assert vault.update_entry(eid, 'x' * 253, b'k' * 4096, b'\x00' * 512, 'n' * 1024)

def test_delete_entry(vault, db):
    cid = make_codebook(vault)
    eid = vault.add_entry(cid, 'a.example', ENVELOPE)
    assert vault.delete_entry(eid) is True
    assert vault.delete_entry(eid) is False
    assert count(db, 'PasswordEntry') == 0
    assert vault.codebook_exists(cid)

def test_get_entries_empty(vault):
    cid = make_codebook(vault)
    assert vault.get_entries(cid, '', page=0, page_size=50) == []
    assert vault.get_entries(999) == []

def test_get_entries_pagination(vault):
    cid = make_codebook(vault)
    ids = [vault.add_entry(cid, f'site{i}.example', ENVELOPE) for i in range(5)]
    pages = [[e.id for e in vault.get_entries(cid, '', p, 2)] for p in range(4)]
    assert pages == [ids[0:2], ids[2:4], ids[4:5], []]
    assert vault.count_entries(cid) == 5

def test_get_entries_filter(vault):
    cid = make_codebook(vault); other = make_codebook(vault, 'Home')
    vault.add_entry(cid, 'mail.example.com', ENVELOPE, 'work mail')
    vault.add_entry(cid, 'bank.example.org', ENVELOPE, 'savings')
    vault.add_entry(cid, '50%_off.example', ENVELOPE)
    vault.add_entry(other, 'mail.other.com', ENVELOPE)
    assert [e.address for e in vault.get_entries(cid, 'mail')] == ['mail.example.com']
    assert [e.address for e in vault.get_entries(cid, 'savings')] == ['bank.example.org']
    assert [e.address for e in vault.get_entries(cid, '%_')] == ['50%_off.example']
    assert vault.get_entries(cid, 'nothing-like-this') == []

@pytest.mark.parametrize('page,page_size', [(-1, 10), (0, 0), (0, -5)])
def test_get_entries_bad_paging(vault, page, page_size):
    cid = make_codebook(vault)
    with pytest.raises(ValidationError):
        vault.get_entries(cid, '', page, page_size)

def test_update_entry_measures_str_blobs_in_bytes(vault):
    cid = make_codebook(vault)
    eid = vault.add_entry(cid, 'a.example', ENVELOPE)
    with pytest.raises(ValidationError):
        vault.update_entry(eid, 'a.example', '密' * 4096, ENVELOPE, '')
    assert vault.get_entry(eid).public_key == PLACEHOLDER_PUBLIC_KEY
    # 1365 * 3 bytes fits; notes are text and count characters
    assert vault.update_entry(eid, 'a.example', '密' * 1365, ENVELOPE, '注' * 1024)
    assert vault.get_entry(eid).public_key == ('密' * 1365).encode('utf-8')
