"""
Placeholder translation.

Services write SQL with positional `?` markers. SQLAlchemy's `text()`
construct wants named markers, so every `?` is rewritten left to right to
`:p0`, `:p1`, ... and the n-th value supplied by the caller binds to `pN`.

The scan is not SQL-aware: a `?` inside a quoted literal is rewritten too.
Keep literal question marks out of templates (pass them as parameters).

`to_engine_syntax()` changes nothing but the markers. `to_text_clause()` is
the form handed to `text()`: SQLAlchemy reads every `:word` in that string as
a bind name, so literal colons are escaped and a marker touching a word
character gets a separating space (`?AS` would otherwise read as `:p0AS`).
"""

import itertools
import re

MARKER = "?"

_MARKER_RE = re.compile(re.escape(MARKER))

# Characters that would merge with a bind name or hide it from text()
_NAME_BOUNDARY_RE = re.compile(r"[\w:\\]")


def parameter_name(index: int) -> str:
    return f"p{index}"


def count_placeholders(template: str) -> int:
    return template.count(MARKER)


def to_engine_syntax(template: str) -> str:
    """Rewrite each positional marker as a sequentially numbered named marker."""
    counter = itertools.count()
    return _MARKER_RE.sub(lambda _: ":" + parameter_name(next(counter)), template)


def _touches_name(char: str) -> bool:
    return bool(char) and _NAME_BOUNDARY_RE.match(char) is not None


def to_text_clause(template: str) -> str:
    """Named-marker form of `template` that `sqlalchemy.text()` parses exactly."""
    literals = [piece.replace(":", "\\:") for piece in template.split(MARKER)]
    parts = [literals[0]]
    for index, literal in enumerate(literals[1:]):
        before = " " if _touches_name(parts[-1][-1:]) else ""
        after = " " if _touches_name(literal[:1]) else ""
        parts.append(f"{before}:{parameter_name(index)}{after}{literal}")
    return "".join(parts)
