import contextlib
import logging
import os.path
from typing import Callable
from typing import Dict
from typing import Iterable
from typing import List
from typing import Mapping
from typing import Optional
from typing import Sequence
from typing import TypeVar

import onigurumacffi

from ccat.errors import LoadError
from ccat.highlight import Compiler
from ccat.highlight import Grammar
from ccat.highlight import PLAIN_TEXT
from ccat.theme import Theme

logger = logging.getLogger(__name__)

T = TypeVar('T')

HERE = os.path.abspath(os.path.dirname(__file__))
GRAMMAR_DIR = os.path.join(HERE, 'data', 'grammars')
THEME_DIR = os.path.join(HERE, 'data', 'themes')


def _json_files(dirname: str) -> List[str]:
    if not os.path.isdir(dirname):
        logger.debug('skipping %s: not a directory', dirname)
        return []
    return [
        os.path.join(dirname, filename)
        for filename in sorted(os.listdir(dirname))
        if filename.endswith('.json')
    ]


def _theme_name(filename: str) -> str:
    name, _ = os.path.splitext(os.path.basename(filename))
    return name


def _load(func: Callable[[str], T], filename: str) -> T:
    try:
        return func(filename)
    except (
            OSError, KeyError, TypeError, ValueError, AttributeError,
            onigurumacffi.OnigError,
    ) as e:
        raise LoadError(filename, f'{type(e).__name__}: {e}') from e


class Catalog:
    """the loaded grammars and themes, read-only after construction

    lookups return `None` when nothing matches.  grammars are kept in the
    order of their names which is also the order the extension and
    first-line lookups try them.
    """

    def __init__(
            self,
            grammars: Iterable[Grammar],
            themes: Mapping[str, Theme],
    ) -> None:
        by_name = {PLAIN_TEXT: Grammar.blank()}
        for grammar in grammars:
            by_name[grammar.name] = grammar
        self._grammars = {name: by_name[name] for name in sorted(by_name)}
        self._scopes = {
            grammar.scope_name: grammar
            for grammar in self._grammars.values()
        }
        self._themes = {name: themes[name] for name in sorted(themes)}
        self._compilers: Dict[Grammar, Compiler] = {}

    @classmethod
    def load(
            cls,
            grammar_dirs: Sequence[str] = (),
            theme_dirs: Sequence[str] = (),
    ) -> 'Catalog':
        """load the bundled data, then each extra directory in order

        a later file replaces an earlier one of the same name.
        """
        grammars = [
            _load(Grammar.from_file, filename)
            for dirname in (GRAMMAR_DIR, *grammar_dirs)
            for filename in _json_files(dirname)
        ]
        themes = {
            _theme_name(filename): _load(Theme.from_filename, filename)
            for dirname in (THEME_DIR, *theme_dirs)
            for filename in _json_files(dirname)
        }
        ret = cls(grammars, themes)
        logger.debug(
            'loaded %d grammars and %d themes',
            len(ret._grammars), len(ret._themes),
        )
        return ret

    def find_grammar_by_name(self, name: str) -> Optional[Grammar]:
        return self._grammars.get(name)

    def find_grammar_by_extension(self, ext: str) -> Optional[Grammar]:
        for grammar in self._grammars.values():
            if grammar.matches_extension(ext):
                return grammar
        else:
            return None

    def find_grammar_by_first_line(self, content: str) -> Optional[Grammar]:
        if content.startswith('\ufeff'):
            content = content[1:]
        first_line, nl, _ = content.partition('\n')
        first_line += nl
        for grammar in self._grammars.values():
            if grammar.matches_first_line(first_line):
                return grammar
        else:
            return None

    def plain_text_grammar(self) -> Grammar:
        return self._grammars[PLAIN_TEXT]

    def find_theme_by_name(self, name: str) -> Optional[Theme]:
        return self._themes.get(name)

    def grammar_names(self) -> List[str]:
        return list(self._grammars)

    def theme_names(self) -> List[str]:
        return list(self._themes)

    def compiler_for(self, grammar: Grammar) -> Compiler:
        with contextlib.suppress(KeyError):
            return self._compilers[grammar]

        ret = self._compilers[grammar] = Compiler(grammar, self._scopes)
        return ret
