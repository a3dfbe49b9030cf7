import gc
import re

import pytest

from ccat.config import Config
from ccat.errors import MissingFile
from ccat.errors import ReadError
from ccat.errors import SyntaxNotFound
from ccat.errors import ThemeNotFound
from ccat.highlight import State
from ccat.highlighter import Highlighter
from ccat.highlighter import read_file
from ccat.render import line_number_prefix

ESC_RE = re.compile(r'\x1b\[[0-9;]*m')

SRC = '''\
#!/usr/bin/env python3
import os


def main():  # entry
    return os.environ.get("HOME", 'x\\n')
'''


@pytest.fixture
def highlighter(bundled_catalog):
    return Highlighter(bundled_catalog)


def test_highlight_python(highlighter):
    ret = highlighter.highlight_content(
        'print("hi")\n', 'example.py', Config(),
    )
    assert ret == (
        '\x1b[38;2;150;181;180mprint'
        '\x1b[38;2;192;197;206m('
        '\x1b[38;2;163;190;140m"hi"'
        '\x1b[38;2;192;197;206m)\n'
    )


def test_highlight_with_line_numbers(highlighter):
    ret = highlighter.highlight_content(
        'print("hi")\n', 'example.py', Config(show_line_numbers=True),
    )
    assert ret.startswith('   1 | \x1b[38;2;')
    assert ESC_RE.sub('', ret) == '   1 | print("hi")\n'


def test_highlight_text_is_preserved(highlighter):
    ret = highlighter.highlight_content(SRC, 'example.py', Config())
    assert ESC_RE.sub('', ret) == SRC
    assert '\x1b[0m' not in ret


def test_highlight_reset(highlighter):
    ret = highlighter.highlight_content('a\nb\n', 'x.txt', Config(reset=True))
    assert ret.count('\x1b[0m\n') == 2


def test_iter_lines_yields_one_string_per_line(highlighter):
    lines = list(highlighter.iter_lines(SRC, 'example.py', Config()))
    assert len(lines) == SRC.count('\n')
    assert all(line.endswith('\n') for line in lines)


def test_plain_text_uses_the_default_foreground(highlighter):
    ret = highlighter.highlight_content(
        'hello\nworld\n', 'notes.unknownext', Config(),
    )
    assert ret == (
        '\x1b[38;2;192;197;206mhello\n'
        '\x1b[38;2;192;197;206mworld\n'
    )


def test_empty_content(highlighter):
    assert highlighter.highlight_content('', 'example.py', Config()) == ''


def test_unknown_theme_is_raised_before_output(highlighter):
    with pytest.raises(ThemeNotFound) as excinfo:
        highlighter.iter_lines('x\n', 'example.py', Config(theme='nope'))
    assert str(excinfo.value) == "Theme 'nope' not found"


def test_unknown_syntax(highlighter):
    with pytest.raises(SyntaxNotFound):
        highlighter.iter_lines('x\n', 'example.py', Config(force_syntax='Q'))


def test_available(highlighter):
    themes = highlighter.available_themes()
    assert themes == sorted(themes)
    assert 'base16-ocean.dark' in themes
    syntaxes = highlighter.available_syntaxes()
    assert syntaxes == sorted(syntaxes)
    assert 'Plain Text' in syntaxes


def test_highlight_file(highlighter, tmp_path):
    f = tmp_path.joinpath('example.py')
    f.write_bytes(b'x = 1\r\ny = 2\n')

    ret = highlighter.highlight_file(str(f), Config())

    assert ESC_RE.sub('', ret) == 'x = 1\r\ny = 2\n'


def test_read_file_missing(tmp_path):
    filename = str(tmp_path.joinpath('nope.py'))
    with pytest.raises(MissingFile) as excinfo:
        read_file(filename)
    assert str(excinfo.value) == f'File {filename!r} not found'


def test_read_file_not_utf8(tmp_path):
    f = tmp_path.joinpath('bad.py')
    f.write_bytes(b'\xff\xfe\x00')
    with pytest.raises(ReadError) as excinfo:
        read_file(str(f))
    assert not isinstance(excinfo.value, MissingFile)


def test_read_file_directory(tmp_path):
    with pytest.raises(ReadError):
        read_file(str(tmp_path))


def _live_states():
    gc.collect()
    return sum(1 for o in gc.get_objects() if type(o) is State)


def test_parse_state_does_not_outlive_the_run(highlighter):
    content = ''.join(f'x{i} = "{i}"  # {i}\n' for i in range(300))
    # compile the grammar first, the compiler keeps its root state
    highlighter.highlight_content('x = 1\n', 'warm.py', Config())
    before = _live_states()

    highlighter.highlight_content(content, 'a.py', Config())

    assert _live_states() <= before


def test_line_numbers_only_add_the_prefix(highlighter):
    without = list(highlighter.iter_lines(SRC, 'example.py', Config()))
    with_numbers = list(
        highlighter.iter_lines(
            SRC, 'example.py', Config(show_line_numbers=True),
        ),
    )

    assert len(with_numbers) == len(without)
    for lineno, (numbered, plain) in enumerate(zip(with_numbers, without), 1):
        assert numbered == line_number_prefix(lineno) + plain


def test_highlighting_is_repeatable(highlighter):
    first = highlighter.highlight_content(SRC, 'example.py', Config())
    second = highlighter.highlight_content(SRC, 'example.py', Config())
    assert first == second
