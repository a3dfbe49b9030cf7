import functools
import json
import re
from typing import Any
from typing import Dict
from typing import List
from typing import NamedTuple
from typing import Optional
from typing import Tuple
from typing import TYPE_CHECKING

from ccat.fdict import FDict

if TYPE_CHECKING:
    from typing import Protocol
else:
    Protocol = object

Scope = Tuple[str, ...]

# whole-line `//` comments only, trailing ones are left alone
LINE_COMMENT = re.compile(r'^\s*//.*$', re.MULTILINE)


class Color(NamedTuple):
    r: int
    g: int
    b: int

    @classmethod
    def parse(cls, s: str) -> 'Color':
        if len(s) == 4:  # #rgb
            return cls(*(int(c * 2, 16) for c in s[1:]))
        return cls(r=int(s[1:3], 16), g=int(s[3:5], 16), b=int(s[5:7], 16))


class Style(NamedTuple):
    fg: Color
    bg: Color
    b: bool
    i: bool
    u: bool

    @classmethod
    def blank(cls) -> 'Style':
        return cls(
            fg=Color(0xff, 0xff, 0xff), bg=Color(0x00, 0x00, 0x00),
            b=False, u=False, i=False,
        )


class PartialStyle(NamedTuple):
    fg: Optional[Color] = None
    bg: Optional[Color] = None
    b: Optional[bool] = None
    u: Optional[bool] = None
    i: Optional[bool] = None

    def overlay_on(self, dct: Dict[str, Any]) -> None:
        for attr in self._fields:
            value = getattr(self, attr)
            if value is not None:
                dct[attr] = value

    @classmethod
    def from_dct(cls, dct: Dict[str, Any]) -> 'PartialStyle':
        kv = cls()._asdict()
        if 'foreground' in dct:
            kv['fg'] = Color.parse(dct['foreground'])
        if 'background' in dct:
            kv['bg'] = Color.parse(dct['background'])
        if 'fontStyle' in dct:
            font_style = dct['fontStyle'].split()
            kv['b'] = 'bold' in font_style
            kv['i'] = 'italic' in font_style
            kv['u'] = 'underline' in font_style
        return cls(**kv)


class _ThemeTrieNode(Protocol):
    @property
    def style(self) -> PartialStyle: ...
    @property
    def children(self) -> FDict[str, '_ThemeTrieNode']: ...


class ThemeTrieNode(NamedTuple):
    style: PartialStyle
    children: FDict[str, _ThemeTrieNode]

    @classmethod
    def from_dct(cls, dct: Dict[str, Any]) -> _ThemeTrieNode:
        children = FDict({
            k: ThemeTrieNode.from_dct(v) for k, v in dct['children'].items()
        })
        return cls(PartialStyle.from_dct(dct), children)


class Theme(NamedTuple):
    default: Style
    rules: _ThemeTrieNode

    @functools.lru_cache(maxsize=None)
    def select(self, scope: Scope) -> Style:
        if not scope:
            return self.default
        else:
            style = self.select(scope[:-1])._asdict()
            node = self.rules
            for part in scope[-1].split('.'):
                if part not in node.children:
                    break
                else:
                    node = node.children[part]
                    node.style.overlay_on(style)
            return Style(**style)

    @classmethod
    def from_dct(cls, data: Dict[str, Any]) -> 'Theme':
        root: Dict[str, Any] = {'children': {}}

        default = Style.blank()._asdict()
        colors = data.get('colors', {})
        fg = _first_color(colors, ('foreground', 'editor.foreground'))
        if fg is not None:
            default['fg'] = fg
        bg = _first_color(colors, ('background', 'editor.background'))
        if bg is not None:
            default['bg'] = bg

        for rule in data.get('tokenColors', ()):
            for scope in _rule_scopes(rule):
                if scope == '':
                    PartialStyle.from_dct(rule['settings']).overlay_on(default)
                else:
                    cur = root
                    for part in scope.split('.'):
                        cur = cur['children'].setdefault(
                            part, {'children': {}},
                        )
                    cur.update(rule['settings'])

        return cls(Style(**default), ThemeTrieNode.from_dct(root))

    @classmethod
    def from_filename(cls, filename: str) -> 'Theme':
        with open(filename, encoding='UTF-8') as f:
            contents = LINE_COMMENT.sub('', f.read())
        return cls.from_dct(json.loads(contents))


def _first_color(
        colors: Dict[str, str],
        keys: Tuple[str, ...],
) -> Optional[Color]:
    for k in keys:
        if k in colors:
            return Color.parse(colors[k])
    else:
        return None


def _rule_scopes(rule: Dict[str, Any]) -> List[str]:
    """the dotted scopes a `tokenColors` rule applies to

    a rule without a scope styles the default (`''`).  descendant selectors
    (`'meta.tag string'`) are dropped.
    """
    if 'scope' not in rule:
        return ['']
    elif isinstance(rule['scope'], str):
        scopes = [s.strip() for s in rule['scope'].split(',') if s.strip()]
    else:
        scopes = list(rule['scope'])
    return [s for s in scopes if ' ' not in s]
