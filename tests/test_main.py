from click.testing import CliRunner
from codevault.cli.commands import cli
from codevault.lib.passgen import BASIC_CHARSET, EXTENDED_CHARSET

def test_cli_help():
	r = CliRunner().invoke(cli, ['--help'])
	assert r.exit_code == 0
	for name in ('register', 'codebooks', 'codebook', 'entry', 'gen'):
		assert name in r.output

def test_entry_help():
	r = CliRunner().invoke(cli, ['entry', '--help'])
	assert r.exit_code == 0
	for name in ('add', 'list', 'show', 'update', 'delete'):
		assert name in r.output

def test_gen_default_and_extended():
	r = CliRunner().invoke(cli, ['gen'])
	assert r.exit_code == 0
	pw = r.output.strip()
	assert len(pw) == 12 and set(pw) <= set(BASIC_CHARSET)
	r2 = CliRunner().invoke(cli, ['gen', '--length', '32', '--extended'])
	pw2 = r2.output.strip()
	assert len(pw2) == 32 and set(pw2) <= set(EXTENDED_CHARSET)

def test_gen_bad_length():
	r = CliRunner().invoke(cli, ['gen', '--length', '0'])
	assert r.exit_code == 1
	assert 'Error:' in r.output
