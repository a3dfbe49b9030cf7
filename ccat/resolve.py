import logging
import os.path
from typing import Callable
from typing import NamedTuple
from typing import Optional
from typing import Tuple

from ccat.catalog import Catalog
from ccat.config import Config
from ccat.errors import SyntaxNotFound
from ccat.highlight import Grammar
from ccat.overrides import EXTENSION_OVERRIDES

logger = logging.getLogger(__name__)


class Request(NamedTuple):
    content: str
    ext: str


Strategy = Callable[[Catalog, Request], Optional[Grammar]]


def file_extension(file_path: str) -> str:
    """`'a/b.PY'` => `'py'`; dotfiles such as `.bashrc` have no extension"""
    _, ext = os.path.splitext(os.path.basename(file_path))
    return ext[1:].lower()


def by_override(catalog: Catalog, request: Request) -> Optional[Grammar]:
    name = EXTENSION_OVERRIDES.get(request.ext)
    if name is None:
        return None
    else:
        return catalog.find_grammar_by_name(name)


def by_extension(catalog: Catalog, request: Request) -> Optional[Grammar]:
    return catalog.find_grammar_by_extension(request.ext)


def by_first_line(catalog: Catalog, request: Request) -> Optional[Grammar]:
    return catalog.find_grammar_by_first_line(request.content)


def plain_text(catalog: Catalog, request: Request) -> Optional[Grammar]:
    return catalog.plain_text_grammar()


STRATEGIES: Tuple[Strategy, ...] = (
    by_override,
    by_extension,
    by_first_line,
    plain_text,
)


def detect(catalog: Catalog, content: str, file_path: str) -> Grammar:
    request = Request(content, file_extension(file_path))
    for strategy in STRATEGIES:
        grammar = strategy(catalog, request)
        if grammar is not None:
            logger.debug(
                '%s: %s (%s)', file_path, grammar.name, strategy.__name__,
            )
            return grammar
    else:
        raise AssertionError('unreachable: plain text always matches')


def resolve(
        catalog: Catalog,
        content: str,
        file_path: str,
        config: Config,
) -> Grammar:
    if config.force_syntax is not None:
        grammar = catalog.find_grammar_by_name(config.force_syntax)
        if grammar is None:
            raise SyntaxNotFound(config.force_syntax)
        return grammar
    else:
        return detect(catalog, content, file_path)
