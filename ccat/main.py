import argparse
import logging
import sys
from typing import Optional
from typing import Sequence

from ccat.catalog import Catalog
from ccat.config import Config
from ccat.config import DEFAULT_THEME
from ccat.errors import CcatError
from ccat.highlighter import Highlighter
from ccat.highlighter import read_file


def _list(names: Sequence[str]) -> None:
    for name in names:
        print(name)


def _highlight_output(
        highlighter: Highlighter,
        filename: str,
        config: Config,
) -> int:
    content = read_file(filename)
    for line in highlighter.iter_lines(content, filename, config):
        sys.stdout.write(line)
        sys.stdout.flush()
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog='ccat',
        description=(
            'A colorized cat command for displaying source code files with '
            'syntax highlighting.'
        ),
    )
    parser.add_argument('filename', nargs='?', help='The file to display')
    parser.add_argument(
        '-t', '--theme', default=DEFAULT_THEME,
        help='Theme to use for highlighting (default: %(default)s)',
    )
    parser.add_argument(
        '-s', '--syntax',
        help='Force a specific syntax (overrides file extension detection)',
    )
    parser.add_argument(
        '-l', '--line-numbers', action='store_true', help='Show line numbers',
    )
    parser.add_argument(
        '--reset', action='store_true',
        help='Reset the terminal color at the end of every line',
    )
    parser.add_argument(
        '--grammar-dir', action='append', default=[],
        help='Additional directory of TextMate json grammars',
    )
    parser.add_argument(
        '--theme-dir', action='append', default=[],
        help='Additional directory of json themes',
    )
    parser.add_argument(
        '--list-themes', action='store_true', help='List available themes',
    )
    parser.add_argument(
        '--list-syntaxes', action='store_true',
        help='List available syntaxes',
    )
    parser.add_argument('-v', '--verbose', action='store_true')
    args = parser.parse_args(argv)

    logging.basicConfig(
        format='%(name)s: %(message)s',
        level=logging.DEBUG if args.verbose else logging.WARNING,
    )

    if not args.filename and not (args.list_themes or args.list_syntaxes):
        parser.error('the following arguments are required: filename')

    config = Config(
        theme=args.theme,
        show_line_numbers=args.line_numbers,
        force_syntax=args.syntax,
        reset=args.reset,
    )

    try:
        catalog = Catalog.load(args.grammar_dir, args.theme_dir)
        highlighter = Highlighter(catalog)

        if args.list_themes or args.list_syntaxes:
            if args.list_themes:
                _list(highlighter.available_themes())
            if args.list_syntaxes:
                _list(highlighter.available_syntaxes())
            return 0

        return _highlight_output(highlighter, args.filename, config)
    except CcatError as e:
        print(f'ccat: error: {e}', file=sys.stderr)
        return 1


if __name__ == '__main__':
    exit(main())
