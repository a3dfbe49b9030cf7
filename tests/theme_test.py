import pytest

from ccat.theme import Color
from ccat.theme import Style
from ccat.theme import Theme

THEME = Theme.from_dct({
    'colors': {'foreground': '#100000', 'background': '#aaaaaa'},
    'tokenColors': [
        {'scope': 'foo.bar', 'settings': {'foreground': '#200000'}},
        {'scope': 'foo', 'settings': {'foreground': '#300000'}},
        {'scope': 'parent foo.bar', 'settings': {'foreground': '#400000'}},
        {'scope': 'baz, womp,', 'settings': {'fontStyle': 'bold italic'}},
    ],
})


def unhex(color):
    return f'#{hex(color.r << 16 | color.g << 8 | color.b)[2:]}'


@pytest.mark.parametrize(
    ('scope', 'expected'),
    (
        pytest.param(('',), '#100000', id='trivial'),
        pytest.param(('unknown',), '#100000', id='unknown'),
        pytest.param(('foo.bar',), '#200000', id='exact match'),
        pytest.param(('foo.baz',), '#300000', id='prefix match'),
        pytest.param(('src.diff', 'foo.bar'), '#200000', id='nested scope'),
        pytest.param(
            ('foo.bar', 'unrelated'), '#200000',
            id='nested scope not last one',
        ),
    ),
)
def test_select(scope, expected):
    ret = THEME.select(scope)
    assert unhex(ret.fg) == expected


def test_select_font_style():
    ret = THEME.select(('womp',))
    assert (ret.b, ret.i, ret.u) == (True, True, False)
    assert unhex(ret.fg) == '#100000'


@pytest.mark.parametrize(
    ('s', 'expected'),
    (
        pytest.param('#c0c5ce', Color(0xc0, 0xc5, 0xce), id='rrggbb'),
        pytest.param('#fa0', Color(0xff, 0xaa, 0x00), id='rgb'),
    ),
)
def test_color_parse(s, expected):
    assert Color.parse(s) == expected


def test_empty_theme_is_blank():
    assert Theme.from_dct({}).select(('source.python',)) == Style.blank()


def test_default_from_scopeless_rule():
    theme = Theme.from_dct({
        'tokenColors': [{'settings': {'foreground': '#123456'}}],
    })
    assert theme.default.fg == Color(0x12, 0x34, 0x56)


def test_from_filename_strips_comments(tmp_path):
    f = tmp_path.joinpath('t.json')
    f.write_text(
        '{\n'
        '  // line comment\n'
        '  "colors": {"editor.foreground": "#010203"}\n'
        '}\n',
    )
    theme = Theme.from_filename(str(f))
    assert theme.default.fg == Color(1, 2, 3)


def test_scope_list_and_descendant_selectors():
    theme = Theme.from_dct({
        'tokenColors': [
            {'scope': ['a', 'b c'], 'settings': {'foreground': '#010101'}},
        ],
    })
    assert theme.select(('a',)).fg == Color(1, 1, 1)
    assert theme.select(('c',)) == theme.default
    assert theme.select(('b',)) == theme.default
