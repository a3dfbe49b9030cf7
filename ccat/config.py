from typing import NamedTuple
from typing import Optional

DEFAULT_THEME = 'base16-ocean.dark'


class Config(NamedTuple):
    theme: str = DEFAULT_THEME
    show_line_numbers: bool = False
    force_syntax: Optional[str] = None
    # emit a reset escape after every line
    reset: bool = False
