class CcatError(Exception):
    """base class for the errors reported to the user"""


class NotFoundError(CcatError, LookupError):
    kind = 'Item'

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f'{self.kind} {self.name!r} not found'


class ThemeNotFound(NotFoundError):
    kind = 'Theme'


class SyntaxNotFound(NotFoundError):
    kind = 'Syntax'


class TokenizationError(CcatError):
    def __init__(self, lineno: int) -> None:
        super().__init__(lineno)
        self.lineno = lineno

    def __str__(self) -> str:
        return f'Failed to highlight line {self.lineno}'


class ReadError(CcatError):
    def __init__(self, filename: str, reason: str) -> None:
        super().__init__(filename, reason)
        self.filename = filename
        self.reason = reason

    def __str__(self) -> str:
        return f'Failed to read file {self.filename!r}: {self.reason}'


class MissingFile(ReadError):
    def __init__(self, filename: str) -> None:
        super().__init__(filename, 'no such file')

    def __str__(self) -> str:
        return f'File {self.filename!r} not found'


class LoadError(CcatError):
    """a grammar or theme file which could not be loaded"""

    def __init__(self, filename: str, reason: str) -> None:
        super().__init__(filename, reason)
        self.filename = filename
        self.reason = reason

    def __str__(self) -> str:
        return f'Failed to load {self.filename!r}: {self.reason}'
