"""
Lexical Scanners
Small quote-aware helpers shared by the GDScript and TSCN parsers.
None of these raise: a miss is reported as -1, None or an empty list.
"""

import re
from typing import Iterable, Optional

IDENTIFIER_PATTERN = re.compile(r'[A-Za-z0-9_]+')
QUOTED_STRING_PATTERN = re.compile(r'(["\'])((?:\\.|(?!\1).)*)\1')

QUOTES = ('"', "'")
COMPARISON_PREFIXES = ('=', '!', '<', '>', ':')


def is_identifier_char(char: str) -> bool:
    return char.isalnum() or char == '_'


def _iter_unquoted(text: str, start: int = 0) -> Iterable[int]:
    """Yield indexes of characters that sit outside string literals."""
    quote = None
    escaped = False
    for i in range(start, len(text)):
        char = text[i]
        if quote:
            if escaped:
                escaped = False
            elif char == '\\':
                escaped = True
            elif char == quote:
                quote = None
            continue
        if char in QUOTES:
            quote = char
            continue
        yield i


def find_unquoted(text: str, delimiter: str, start: int = 0) -> int:
    """Index of the first delimiter outside a string literal, or -1."""
    for i in _iter_unquoted(text, start):
        if text.startswith(delimiter, i):
            return i
    return -1


def find_type_colon(text: str) -> int:
    """
    Index of the colon introducing a type annotation, or -1.
    The walrus ':=' is not a type colon, and a colon after the first
    assignment belongs to the value (dictionaries, lambdas).
    """
    for i in _iter_unquoted(text):
        char = text[i]
        if char == '=':
            return -1
        if char == ':':
            if text[i + 1:i + 2] == '=':
                return -1
            return i
    return -1


def find_assignment(text: str) -> tuple[int, str]:
    """Locate the first assignment operator outside strings, ':=' or '='."""
    for i in _iter_unquoted(text):
        if text[i] == ':' and text[i + 1:i + 2] == '=':
            return i, ':='
        if text[i] != '=':
            continue
        if text[i + 1:i + 2] == '=':
            return -1, ""
        if i > 0 and text[i - 1] in COMPARISON_PREFIXES:
            continue
        return i, '='
    return -1, ""


def strip_inline_comment(text: str) -> str:
    index = find_unquoted(text, '#')
    return text if index == -1 else text[:index]


def mask_strings(text: str) -> str:
    """Blank out string literal contents so patterns don't match inside them."""
    return QUOTED_STRING_PATTERN.sub(lambda m: m.group(1) + ' ' * len(m.group(2)) + m.group(1), text)


def code_part(line: str) -> str:
    """Line with comments removed and string contents masked."""
    return mask_strings(strip_inline_comment(line))


def tokenize_identifiers(text: str) -> list[str]:
    return IDENTIFIER_PATTERN.findall(text or "")


def indentation(line: str) -> int:
    return len(line) - len(line.lstrip(' \t'))


def extract_balanced(text: str, start: int, opener: str = '(', closer: str = ')') -> Optional[str]:
    """
    Return the text between the opener at `start` and its matching closer.
    Quoted sections are skipped. None when unbalanced or no opener at start.
    """
    if start < 0 or start >= len(text) or text[start] != opener:
        return None
    depth = 0
    for i in _iter_unquoted(text, start):
        char = text[i]
        if char == opener:
            depth += 1
        elif char == closer:
            depth -= 1
            if depth == 0:
                return text[start + 1:i]
    return None


def is_balanced(text: str, opener: str, closer: str) -> bool:
    """True when text is exactly one opener...closer group."""
    if not (text.startswith(opener) and text.endswith(closer)):
        return False
    inner = extract_balanced(text, 0, opener, closer)
    return inner is not None and len(inner) == len(text) - 2


def extract_attribute(header: str, name: str) -> Optional[str]:
    """Read `name="value"` (or an unquoted value) from a section header."""
    match = re.search(rf'(?<![\w/]){re.escape(name)}\s*=\s*', header)
    if not match:
        return None
    rest = header[match.end():]
    if rest[:1] in QUOTES:
        quoted = QUOTED_STRING_PATTERN.match(rest)
        return quoted.group(2) if quoted else None
    # ExtResource("1") / SubResource("x") / [groups] keep their balanced body
    paren = rest.find('(')
    if paren > 0 and re.match(r'^\w+$', rest[:paren]):
        inner = extract_balanced(rest, paren)
        if inner is not None:
            return rest[:paren + len(inner) + 2]
    if rest.startswith('['):
        inner = extract_balanced(rest, 0, '[', ']')
        if inner is not None:
            return f"[{inner}]"
    value = re.match(r'[^\s\]]+', rest)
    return value.group(0) if value else None


def extract_quoted_args(line: str, function: str, allow_member: bool = False) -> list[str]:
    """
    Quoted first arguments of `function("...")` calls in a line.
    A call preceded by an identifier character is skipped; so is a call
    preceded by '.' unless allow_member is set.
    """
    results = []
    pattern = re.compile(rf'{re.escape(function)}\s*\(\s*')
    masked = mask_strings(line)
    for match in pattern.finditer(line):
        start = match.start()
        # the name itself must not sit inside a string literal
        if masked[start:match.end()] != line[start:match.end()]:
            continue
        if start > 0:
            before = line[start - 1]
            if is_identifier_char(before):
                continue
            if before == '.' and not allow_member:
                continue
        quoted = QUOTED_STRING_PATTERN.match(line, match.end())
        if quoted:
            results.append(quoted.group(2))
    return results


def unique(items: Iterable) -> list:
    """Deduplicate while keeping first-seen order."""
    seen = set()
    result = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        result.append(item)
    return result
