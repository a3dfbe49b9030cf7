import logging
from typing import Iterator
from typing import List
from typing import Optional

from ccat import session
from ccat.catalog import Catalog
from ccat.config import Config
from ccat.errors import MissingFile
from ccat.errors import ReadError
from ccat.errors import ThemeNotFound
from ccat.render import render_line
from ccat.resolve import resolve

logger = logging.getLogger(__name__)


def read_file(filename: str) -> str:
    try:
        with open(filename, encoding='UTF-8', newline='') as f:
            return f.read()
    except FileNotFoundError:
        raise MissingFile(filename)
    except (OSError, UnicodeDecodeError) as e:
        raise ReadError(filename, str(e))


class Highlighter:
    def __init__(self, catalog: Optional[Catalog] = None) -> None:
        self.catalog = Catalog.load() if catalog is None else catalog

    def available_themes(self) -> List[str]:
        return self.catalog.theme_names()

    def available_syntaxes(self) -> List[str]:
        return self.catalog.grammar_names()

    def iter_lines(
            self,
            content: str,
            file_path: str,
            config: Config,
    ) -> Iterator[str]:
        """rendered lines of `content`, produced as they are highlighted

        the theme and grammar are looked up before this returns so those
        errors happen before any output.
        """
        theme = self.catalog.find_theme_by_name(config.theme)
        if theme is None:
            raise ThemeNotFound(config.theme)
        grammar = resolve(self.catalog, content, file_path, config)
        logger.debug('highlighting %s as %s', file_path, grammar.name)

        return (
            render_line(lineno, runs, config)
            for lineno, runs in session.run(
                self.catalog, grammar, theme, content,
            )
        )

    def highlight_content(
            self,
            content: str,
            file_path: str,
            config: Config,
    ) -> str:
        return ''.join(self.iter_lines(content, file_path, config))

    def highlight_file(self, file_path: str, config: Config) -> str:
        content = read_file(file_path)
        return self.highlight_content(content, file_path, config)
