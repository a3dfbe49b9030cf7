from typing import Iterable

from ccat.config import Config
from ccat.session import StyleRun

C_TRUE = '\x1b[38;2;{r};{g};{b}m'
C_RESET = '\x1b[0m'


def line_number_prefix(lineno: int) -> str:
    return f'{lineno:4} | '


def render_line(
        lineno: int,
        runs: Iterable[StyleRun],
        config: Config,
) -> str:
    """format one highlighted line for a truecolor terminal

    only the foreground is colored and the line ending stays part of the
    last run's text.  no reset is written unless `config.reset` is set,
    in which case it goes right before the line ending.
    """
    parts = []
    if config.show_line_numbers:
        parts.append(line_number_prefix(lineno))
    for style, text in runs:
        parts.append(C_TRUE.format(**style.fg._asdict()))
        parts.append(text)
    ret = ''.join(parts)
    if config.reset:
        content = ret.rstrip('\r\n')
        ret = f'{content}{C_RESET}{ret[len(content):]}'
    return ret
