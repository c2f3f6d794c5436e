"""CLI commands implemented with click.

Every command that touches a codebook logs in first; nothing about the
session or the master password outlives the command.
"""
from __future__ import annotations
import logging, click
from codevault.config import LOG_LEVEL, LOG_FORMAT, DEFAULT_PAGE_SIZE, DEFAULT_PASSWORD_LENGTH
from codevault.lib.db import Database, StorageError
from codevault.lib.service import VaultService, Session

def _bail(message: str):
	click.echo(f'Error: {message}')
	raise SystemExit(1)

def _unwrap(result):
	if not result.ok:
		_bail(result.message)
	return result.value

def _login(svc: VaultService, username: str, password: str) -> Session:
	return _unwrap(svc.login(username, password))

def credentials(fn):
	fn = click.option('--password', prompt=True, hide_input=True, help='Account password.')(fn)
	return click.option('--username', prompt=True, help='Account name.')(fn)

def master_option(fn):
	return click.option('--master', prompt='Master password', hide_input=True,
		help='Master password protecting entry secrets.')(fn)

@click.group()
@click.option('--db', 'db_path', type=click.Path(dir_okay=False), default=None,
	help='Database file (defaults to $VAULT_DB_PATH or vault_data/codevault.db).')
@click.option('--verbose', is_flag=True, help='Debug logging.')
@click.pass_context
def cli(ctx, db_path, verbose):
	"""codevault: local credential vault"""
	logging.basicConfig(level=logging.DEBUG if verbose else LOG_LEVEL, format=LOG_FORMAT)
	db = Database(db_path)
	try:
		db.open()
	except StorageError as e:
		_bail(str(e))
	ctx.call_on_close(db.close)
	ctx.obj = VaultService(db)

@cli.command()
@click.option('--username', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.pass_obj
def register(svc: VaultService, username, password):
	"""Create a new account."""
	_unwrap(svc.register(username, password))
	click.echo(f'User {username} registered.')

@cli.command('codebooks')
@credentials
@click.pass_obj
def list_codebooks(svc: VaultService, username, password):
	"""List your codebooks, newest first."""
	session = _login(svc, username, password)
	if not session.codebooks:
		click.echo('No codebooks.')
	for cb in session.codebooks:
		click.echo(f'{cb.id}: {cb.name} ({cb.created_time})')

@cli.command('gen')
@click.option('--length', type=int, default=DEFAULT_PASSWORD_LENGTH, show_default=True)
@click.option('--extended', is_flag=True, help='Include punctuation.')
@click.pass_obj
def gen(svc: VaultService, length, extended):
	"""Print a random password."""
	click.echo(_unwrap(svc.generate_password(length, extended)))

# --- codebook subcommands ---

@cli.group()
def codebook():
	"""Manage codebooks."""

@codebook.command('create')
@click.argument('name')
@credentials
@click.pass_obj
def codebook_create(svc: VaultService, name, username, password):
	session = _login(svc, username, password)
	cb = _unwrap(svc.create_codebook(session, name))
	click.echo(f'Codebook {cb.id}: {cb.name}')

@codebook.command('delete')
@click.argument('codebook_id', type=int)
@credentials
@click.option('--yes', is_flag=True, help='Do not ask for confirmation.')
@click.pass_obj
def codebook_delete(svc: VaultService, codebook_id, username, password, yes):
	"""Delete a codebook and every entry in it."""
	session = _login(svc, username, password)
	if not yes:
		click.confirm(f'Delete codebook {codebook_id} and all its entries?', abort=True)
	_unwrap(svc.delete_codebook(session, codebook_id))
	click.echo(f'Codebook {codebook_id} deleted.')

# --- entry subcommands ---

@cli.group()
def entry():
	"""Manage password entries."""

@entry.command('add')
@click.argument('codebook_id', type=int)
@credentials
@click.option('--address', prompt=True)
@click.option('--secret', prompt='Entry password', hide_input=True, confirmation_prompt=True)
@click.option('--notes', default='')
@master_option
@click.pass_obj
def entry_add(svc: VaultService, codebook_id, username, password, address, secret, notes, master):
	session = _login(svc, username, password)
	entry_id = _unwrap(svc.add_entry(session, codebook_id, address, secret, master, notes))
	click.echo(f'Added entry {entry_id}.')

@entry.command('list')
@click.argument('codebook_id', type=int)
@credentials
@click.option('--filter', 'text', default='', help='Substring of address or notes.')
@click.option('--page', type=int, default=0, show_default=True)
@click.option('--page-size', type=int, default=DEFAULT_PAGE_SIZE, show_default=True)
@click.pass_obj
def entry_list(svc: VaultService, codebook_id, username, password, text, page, page_size):
	session = _login(svc, username, password)
	entries = _unwrap(svc.list_entries(session, codebook_id, text, page, page_size))
	if not entries:
		click.echo('No entries.')
	for e in entries:
		notes = f' - {e.notes}' if e.notes else ''
		click.echo(f'{e.id}: {e.address}{notes}')

@entry.command('show')
@click.argument('entry_id', type=int)
@credentials
@master_option
@click.pass_obj
def entry_show(svc: VaultService, entry_id, username, password, master):
	"""Decrypt and print one entry."""
	session = _login(svc, username, password)
	e = _unwrap(svc.get_entry(session, entry_id))
	secret = _unwrap(svc.reveal_password(session, entry_id, master))
	click.echo(f"ID: {e.id}\nAddress: {e.address}\nCreated: {e.created_time}\nNotes: {e.notes or '-'}\n---\n{secret}")

@entry.command('update')
@click.argument('entry_id', type=int)
@credentials
@click.option('--address', prompt=True)
@click.option('--secret', prompt='Entry password', hide_input=True, confirmation_prompt=True)
@click.option('--notes', default=None, help='New notes; omitted keeps the current ones.')
@master_option
@click.pass_obj
def entry_update(svc: VaultService, entry_id, username, password, address, secret, notes, master):
	session = _login(svc, username, password)
	_unwrap(svc.update_entry(session, entry_id, address, secret, master, notes))
	click.echo(f'Entry {entry_id} updated.')

@entry.command('delete')
@click.argument('entry_id', type=int)
@credentials
@click.pass_obj
def entry_delete(svc: VaultService, entry_id, username, password):
	session = _login(svc, username, password)
	_unwrap(svc.delete_entry(session, entry_id))
	click.echo(f'Entry {entry_id} deleted.')
