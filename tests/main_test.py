import pytest

from ccat.config import Config
from ccat.highlighter import Highlighter
from ccat.main import main


@pytest.fixture
def src(tmp_path):
    f = tmp_path.joinpath('example.py')
    f.write_text('def f():\n    return 1\n')
    return f


def test_main_highlights(src, capsys, bundled_catalog):
    assert main((str(src),)) == 0

    out, err = capsys.readouterr()
    expected = Highlighter(bundled_catalog).highlight_file(str(src), Config())
    assert out == expected
    assert err == ''


def test_main_line_numbers_and_syntax(src, capsys):
    assert main(('-l', '-s', 'Plain Text', str(src))) == 0

    out, _ = capsys.readouterr()
    assert out == (
        '   1 | \x1b[38;2;192;197;206mdef f():\n'
        '   2 | \x1b[38;2;192;197;206m    return 1\n'
    )


def test_main_theme(src, capsys):
    argv = ('--theme', 'Solarized (dark)', '-s', 'Plain Text', str(src))
    assert main(argv) == 0

    out, _ = capsys.readouterr()
    assert out.startswith('\x1b[38;2;131;148;150mdef f():\n')


def test_main_reset(src, capsys):
    assert main(('--reset', str(src))) == 0

    out, _ = capsys.readouterr()
    assert out.count('\x1b[0m\n') == 2


def test_main_list_themes(capsys):
    assert main(('--list-themes',)) == 0

    out, _ = capsys.readouterr()
    names = out.splitlines()
    assert 'base16-ocean.dark' in names
    assert names == sorted(names)


def test_main_list_syntaxes(capsys):
    assert main(('--list-syntaxes',)) == 0

    out, _ = capsys.readouterr()
    assert 'Python' in out.splitlines()
    assert 'Plain Text' in out.splitlines()


def test_main_extra_theme_dir(tmp_path, capsys):
    tmp_path.joinpath('mine.json').write_text(
        '{"colors": {"editor.foreground": "#010203"}}',
    )
    assert main(('--theme-dir', str(tmp_path), '--list-themes')) == 0

    out, _ = capsys.readouterr()
    assert 'mine' in out.splitlines()


@pytest.mark.parametrize(
    ('args', 'msg'),
    (
        pytest.param(('-t', 'nope'), "Theme 'nope' not found", id='theme'),
        pytest.param(('-s', 'Nope'), "Syntax 'Nope' not found", id='syntax'),
    ),
)
def test_main_not_found(src, capsys, args, msg):
    assert main((*args, str(src))) == 1

    out, err = capsys.readouterr()
    assert out == ''
    assert err == f'ccat: error: {msg}\n'


def test_main_missing_file(tmp_path, capsys):
    filename = str(tmp_path.joinpath('nope.py'))
    assert main((filename,)) == 1

    out, err = capsys.readouterr()
    assert out == ''
    assert err == f'ccat: error: File {filename!r} not found\n'


def test_main_filename_required(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(())
    assert excinfo.value.code == 2


def test_main_invalid_grammar_dir(src, tmp_path, capsys):
    grammar_dir = tmp_path.joinpath('grammars')
    grammar_dir.mkdir()
    bad = grammar_dir.joinpath('bad.json')
    bad.write_text('{"name": "X"}')

    assert main(('--grammar-dir', str(grammar_dir), str(src))) == 1

    out, err = capsys.readouterr()
    assert out == ''
    assert err.startswith(f'ccat: error: Failed to load {str(bad)!r}: ')
