"""
Visual directive grammar.

Two directive forms are recognised in generated lesson text:

Inline:
    [CreateVisual: "a plant cell"]

Block (a label line followed by "Key: value" field lines):
    [CreateVisual:
      Subject: Biology
      Topic: Cell structure
      Focus: Labelled animal cell with nucleus and mitochondria
    ]

A block only counts as a directive when it yields a non-empty Focus or
Topic; otherwise the text is left alone.
"""

import re
from typing import Annotated, Iterator, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, Field

QUOTE_CHARS = ('"', "'", "“", "”")

INLINE_PATTERN = re.compile(
    r"\[CreateVisual:\s*"
    r"(?:\"(?P<double>[^\"\]]+)\"|'(?P<single>[^'\]]+)'|[“”](?P<curly>[^“”\"\]]+)[“”\"])"
    r"\s*\]"
)

BLOCK_LABEL_PATTERN = re.compile(
    r"^[ \t]*(?P<bracket>\[)?[ \t]*CreateVisual:[ \t]*(?P<rest>.*)$"
)

BLOCK_FIELD_PATTERN = re.compile(
    r"^[ \t]*(?:[-*•][ \t]*)?"
    r"(?P<key>subject|topic|focus|labels|style|type|title)[ \t]*:[ \t]*(?P<value>.*?)[ \t]*$",
    re.IGNORECASE,
)

BLOCK_CLOSE_PATTERN = re.compile(r"^[ \t]*\][ \t]*$")


class _DirectiveBase(BaseModel):
    matched_text: str
    start: int
    end: int
    description: str
    subject_override: Optional[str] = None


class InlineDirective(_DirectiveBase):
    kind: Literal["inline"] = "inline"


class BlockDirective(_DirectiveBase):
    kind: Literal["block"] = "block"


Directive = Annotated[Union[InlineDirective, BlockDirective], Field(discriminator="kind")]


def normalize_description(description: str) -> str:
    """Collapse runs of whitespace (including newlines) to single spaces."""
    return " ".join(description.split())


def _iter_lines(text: str) -> Iterator[Tuple[int, int, str]]:
    """Yield (start, end, body) per line; end excludes the line terminator."""
    position = 0
    for line in text.splitlines(keepends=True):
        body = line.rstrip("\r\n")
        yield position, position + len(body), body
        position += len(line)


def _read_field(body: str, bracketed: bool) -> Optional[Tuple[Optional[str], str, bool]]:
    """
    Interpret one line inside a block.

    Returns (key, value, closes_block), or None when the line is not part
    of the block. A standalone "]" closes a bracketed block with no field.
    """
    if bracketed and BLOCK_CLOSE_PATTERN.match(body):
        return None, "", True

    match = BLOCK_FIELD_PATTERN.match(body)
    if match is None:
        return None

    value = match.group("value")
    closes = False
    if bracketed and value.endswith("]"):
        value = value[:-1].rstrip()
        closes = True
    return match.group("key").lower(), value.strip(), closes


def parse_inline_directives(text: str) -> List[InlineDirective]:
    directives = []
    for match in INLINE_PATTERN.finditer(text):
        quoted = match.group("double") or match.group("single") or match.group("curly") or ""
        description = normalize_description(quoted)
        if not description:
            continue
        directives.append(
            InlineDirective(
                matched_text=match.group(0),
                start=match.start(),
                end=match.end(),
                description=description,
            )
        )
    return directives


def parse_block_directives(text: str) -> List[BlockDirective]:
    lines = list(_iter_lines(text))
    directives = []
    index = 0

    while index < len(lines):
        start, end, body = lines[index]
        index += 1

        label = BLOCK_LABEL_PATTERN.match(body)
        if label is None:
            continue
        rest = label.group("rest").strip()
        if rest.startswith(QUOTE_CHARS):
            # Inline form, handled by parse_inline_directives
            continue

        bracketed = label.group("bracket") is not None
        fields = {}
        block_end = end
        closed = False

        if rest:
            entry = _read_field(rest, bracketed)
            if entry is not None:
                key, value, closed = entry
                if key:
                    fields.setdefault(key, value)
            # "[CreateVisual: ...]" on one line never reaches into later lines
            if bracketed and rest.endswith("]"):
                closed = True

        while not closed and index < len(lines):
            _, line_end, line_body = lines[index]
            entry = _read_field(line_body, bracketed)
            if entry is None:
                break
            key, value, closed = entry
            if key:
                fields.setdefault(key, value)
            block_end = line_end
            index += 1

        description = normalize_description(fields.get("focus") or fields.get("topic") or "")
        if not description:
            continue

        directives.append(
            BlockDirective(
                matched_text=text[start:block_end],
                start=start,
                end=block_end,
                description=description,
                subject_override=fields.get("subject") or None,
            )
        )

    return directives


def parse_directives(text: str) -> List[Directive]:
    """All directives in text, ordered by position, with no overlapping spans."""
    if not text or "CreateVisual:" not in text:
        return []

    inline = parse_inline_directives(text)
    blocks = [
        block for block in parse_block_directives(text)
        if not any(block.start < d.end and d.start < block.end for d in inline)
    ]
    return sorted([*inline, *blocks], key=lambda directive: directive.start)
