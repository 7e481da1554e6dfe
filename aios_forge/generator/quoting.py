"""
Quoting helpers for generated YAML and TypeScript.

Every user-supplied string written into a YAML file goes through
yaml_str() or yaml_block(), so the generated files always parse back to
the original values.
"""

import re
import json
from typing import Iterable, List

# Characters PyYAML rejects or treats as line breaks inside a scalar.
_YAML_UNSAFE = re.compile('[\x7f-\x9f\u2028\u2029\ufeff\ufffe\uffff\ud800-\udfff]')


def yaml_str(value) -> str:
    """Render a value as a double-quoted YAML scalar."""
    text = json.dumps('' if value is None else str(value), ensure_ascii=False)
    return _YAML_UNSAFE.sub(lambda m: f"\\u{ord(m.group()):04x}", text)


def js_str(value) -> str:
    """Render a value as a double-quoted TypeScript string literal."""
    text = json.dumps('' if value is None else str(value), ensure_ascii=False)
    return text.replace('\u2028', '\\u2028').replace('\u2029', '\\u2029')


def sh_escape(value) -> str:
    """Escape a value for use inside a double-quoted shell string."""
    return re.sub(r'([\\"$`])', r'\\\1', comment(value))


def yaml_bool(value: bool) -> str:
    return 'true' if value else 'false'


def comment(value) -> str:
    """Flatten a value onto a single line for use inside a # comment."""
    return ' '.join(str(value or '').split())


def _fits_block(text: str) -> bool:
    if '\r' in text or '\t' in text or _YAML_UNSAFE.search(text):
        return False
    body = text.rstrip('\n')
    if not body.strip() or len(text) - len(body) > 1:
        return False
    return all(line.strip() or not line for line in body.split('\n'))


def yaml_block(key: str, text: str, indent: int = 2) -> str:
    """
    Render `key: value` using a literal block scalar.

    Empty values and values that a block scalar cannot carry exactly fall
    back to a double-quoted scalar on the same line.
    """
    text = text or ''
    if not _fits_block(text):
        return f"{key}: {yaml_str(text)}"

    body = text.rstrip('\n')
    raw_lines = body.split('\n')
    chomp = '' if text.endswith('\n') else '-'
    first = next(line for line in raw_lines if line)
    indicator = str(indent) if first.startswith(' ') else ''
    pad = ' ' * indent
    lines = [f"{pad}{line}" if line else '' for line in raw_lines]
    return f"{key}: |{indicator}{chomp}\n" + '\n'.join(lines)


def yaml_list(values: Iterable, indent: int = 2) -> str:
    """Render a block sequence of quoted strings, or an indented [] when empty."""
    pad = ' ' * indent
    items = [f"{pad}- {yaml_str(v)}" for v in values]
    return '\n'.join(items) if items else f"{pad}[]"


def yaml_flow_list(values: Iterable) -> str:
    return '[' + ', '.join(yaml_str(v) for v in values) + ']'


def unique(values: Iterable) -> List:
    """Deduplicate while keeping first-seen order."""
    seen = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result
