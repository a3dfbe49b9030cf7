"""line by line highlighting of a whole buffer

the parse state only lives inside `run`: every call starts from the
grammar's root state and threads the state of line *n* into line *n + 1*.
"""
from typing import Generator
from typing import List
from typing import NamedTuple
from typing import Tuple

import onigurumacffi

from ccat.catalog import Catalog
from ccat.errors import TokenizationError
from ccat.highlight import Grammar
from ccat.highlight import highlight_line
from ccat.highlight import Regions
from ccat.theme import Style
from ccat.theme import Theme


class StyleRun(NamedTuple):
    style: Style
    text: str


StyledLine = Tuple[int, Tuple[StyleRun, ...]]


def lines_with_endings(s: str) -> Generator[str, None, None]:
    pos = 0
    while pos < len(s):
        end = s.find('\n', pos)
        if end == -1:
            end = len(s)
        else:
            end += 1
        yield s[pos:end]
        pos = end


def _runs(theme: Theme, line: str, regions: Regions) -> Tuple[StyleRun, ...]:
    ret: List[StyleRun] = []
    for start, end, scope in regions:
        text = line[start:end]
        if not text:
            continue
        style = theme.select(scope)
        if ret and ret[-1].style == style:
            ret[-1] = StyleRun(style, ret[-1].text + text)
        else:
            ret.append(StyleRun(style, text))
    return tuple(ret)


def run(
        catalog: Catalog,
        grammar: Grammar,
        theme: Theme,
        content: str,
) -> Generator[StyledLine, None, None]:
    """yield `(lineno, runs)` for each line of `content`, 1-based

    any failure of the grammar aborts the whole run with `TokenizationError`.
    """
    if not content:
        return

    try:
        compiler = catalog.compiler_for(grammar)
    except (onigurumacffi.OnigError, KeyError) as e:
        raise TokenizationError(1) from e

    state = compiler.root_state
    for lineno, line in enumerate(lines_with_endings(content), 1):
        try:
            state, regions = highlight_line(compiler, state, line, lineno == 1)
        except (onigurumacffi.OnigError, KeyError) as e:
            raise TokenizationError(lineno) from e

        yield lineno, _runs(theme, line, regions)
