import types
from typing import Mapping

# extension -> grammar name, checked before the grammars' own `fileTypes`
# where those are ambiguous (`.h`, `.cfg`, `.conf`, `.r`, ...)
EXTENSION_OVERRIDES: Mapping[str, str] = types.MappingProxyType({
    'c': 'C',
    'h': 'C',
    'cpp': 'C++',
    'cxx': 'C++',
    'cc': 'C++',
    'hpp': 'C++',
    'hxx': 'C++',
    'java': 'Java',
    'py': 'Python',
    'js': 'JavaScript',
    'ts': 'TypeScript',
    'rs': 'Rust',
    'go': 'Go',
    'php': 'PHP',
    'rb': 'Ruby',
    'cs': 'C#',
    'html': 'HTML',
    'css': 'CSS',
    'xml': 'XML',
    'json': 'JSON',
    'yaml': 'YAML',
    'yml': 'YAML',
    'md': 'Markdown',
    'sh': 'Bash',
    'bash': 'Bash',
    'zsh': 'Bash',
    'fish': 'Fish',
    'ps1': 'PowerShell',
    'sql': 'SQL',
    'r': 'R',
    'lua': 'Lua',
    'vim': 'VimL',
    'dockerfile': 'Dockerfile',
    'toml': 'TOML',
    'ini': 'INI',
    'cfg': 'INI',
    'conf': 'INI',
})
