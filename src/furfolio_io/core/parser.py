'''Delimited record parser.

Overview:
--------
Splits one line of comma-delimited text into fields, honouring RFC-4180-like
quoting, and provides the inverse escaping used by the exporter.

Quoting rules:
-------------
- A double quote outside a quoted field opens one.
- Inside a quoted field, two consecutive quotes produce one literal quote; a
  single quote closes the field.
- A comma outside a quoted field ends the current field.
- After splitting, each field is trimmed and any remaining doubled quotes
  collapse to one.
- An unterminated quote simply runs to the end of the line.

``parse_line`` is total: it never raises and always returns at least one field.

Example:
-------
```
>>> parse_line('Jane Smith,"101 Oak Ln, Apt 2","He said ""hi"""')
['Jane Smith', '101 Oak Ln, Apt 2', 'He said "hi"']
```
'''

from collections.abc import Iterable, Iterator

from ..constants import DELIMITER, FORMULA_PREFIXES, QUOTE, QUOTE_TRIGGERS

DelimitedRow = list[str]


def parse_line(line: str) -> DelimitedRow:
    """
    Split one line of delimited text into unescaped, trimmed fields.

    Args:
        line: A single line without its line terminator

    Returns:
        Ordered list of fields; at least one (possibly empty) field
    """
    fields: DelimitedRow = []
    current: list[str] = []
    in_quotes = False
    chars = iter(line)

    for char in chars:
        if char == QUOTE:
            if not in_quotes:
                in_quotes = True
                continue

            following = next(chars, None)
            if following == QUOTE:
                # Escaped quote inside a quoted field
                current.append(QUOTE)
                continue

            in_quotes = False
            if following == DELIMITER:
                fields.append("".join(current))
                current = []
            elif following is not None:
                current.append(following)
        elif char == DELIMITER and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(char)

    fields.append("".join(current))
    return [field.strip().replace(QUOTE * 2, QUOTE) for field in fields]


def escape_field(value: str, sanitize_formulas: bool = False) -> str:
    """
    Escape a field for delimited output.

    Internal quotes are doubled; the field is wrapped in quotes when it
    contains a delimiter, quote, or line break.

    Args:
        value: Raw field value
        sanitize_formulas: Prefix values a spreadsheet would evaluate with "'"

    Returns:
        Field text safe to join with the delimiter
    """
    if sanitize_formulas and value.startswith(FORMULA_PREFIXES):
        # Ref: https://owasp.org/www-community/attacks/CSV_Injection
        value = "'" + value

    if any(char in QUOTE_TRIGGERS for char in value):
        return QUOTE + value.replace(QUOTE, QUOTE * 2) + QUOTE
    return value


def join_fields(fields: Iterable[str], sanitize_formulas: bool = False) -> str:
    """Escape each field and join them into one delimited line."""
    return DELIMITER.join(escape_field(f, sanitize_formulas) for f in fields)


def iter_data_rows(text: str) -> Iterator[tuple[int, DelimitedRow]]:
    """
    Yield parsed data rows from delimited text.

    The first line is a header and is always discarded, as are blank lines.

    Args:
        text: Full delimited text

    Yields:
        (line_number, fields) with 1-based line numbers of the source text
    """
    lines = text.splitlines()
    for line_number, line in enumerate(lines[1:], start=2):
        if not line.strip():
            continue
        yield line_number, parse_line(line)
