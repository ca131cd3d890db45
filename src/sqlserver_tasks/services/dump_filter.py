"""Post-processing for schema dumps written by the vendor dump utility."""

import re
from typing import List, Optional, Tuple

USE_BATCH_RE = re.compile(r"^USE .*\nGO\n", flags=re.MULTILINE)
GO_RE = re.compile(r"^GO\n", flags=re.MULTILINE)
COLUMN_LINE_RE = re.compile(r"^(\t+)([(,].*)$", flags=re.MULTILINE)
NULLABLE_RE = re.compile(r"\s+((?:NOT\s+)?NULL)\s*$", flags=re.IGNORECASE)

# defncopy quirks: nvarchar lengths are reported in bytes and text keeps a size.
TYPE_FIXUPS: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"nvarchar\(8000\)"), "nvarchar(4000)"),
    (re.compile(r"nvarchar\(-1\)"), "nvarchar(max)"),
    (re.compile(r"text\(\d+\)"), "text"),
]


def strip_batches(dump: str) -> str:
    dump = USE_BATCH_RE.sub("", dump)
    return GO_RE.sub("", dump)


def fix_column_types(dump: str) -> str:
    for pattern, replacement in TYPE_FIXUPS:
        dump = pattern.sub(replacement, dump)
    return dump


def split_nullable(definition: str) -> Tuple[str, Optional[str]]:
    match = NULLABLE_RE.search(definition)
    if not match:
        return definition, None
    return definition[: match.start()], match.group(1)


def wrap_column_definition(definition: str) -> str:
    """Bracket the column name in a single ``( name type NULL`` definition.

    Every token between the leading ``(``/``,`` and the type token is part
    of the name, so names containing spaces stay together. Definitions that
    are already bracketed, or that carry no type after the name, come back
    untouched.
    """
    body, nullable = split_nullable(definition)
    parts = body.split()
    if len(parts) < 3:
        return definition

    lead, name, column_type = parts[0], " ".join(parts[1:-1]), parts[-1]
    if name.startswith("[") and name.endswith("]"):
        return definition

    wrapped = [lead, f"[{name}]", column_type]
    if nullable:
        wrapped.append(nullable)
    return " ".join(wrapped)


def wrap_column_names(dump: str) -> str:
    def _replace(match: re.Match) -> str:
        return match.group(1) + wrap_column_definition(match.group(2))

    return COLUMN_LINE_RE.sub(_replace, dump)


def normalize_dump(dump: str) -> str:
    """Apply every rewrite the dump needs before it can be loaded back."""
    dump = strip_batches(dump)
    dump = fix_column_types(dump)
    return wrap_column_names(dump)
