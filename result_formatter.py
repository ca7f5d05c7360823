"""
Turns the model's loosely structured text into display blocks.

Each non-empty line becomes exactly one block. Rules are tried in RULES order
and the first match wins:

  1. "3. Title"          → SectionHeader("Title")
  2. "- Label: value"    → LabeledItem("Label", "value")   (split on first colon)
  3. "- item"            → ListItem("item")
  4. anything else       → Paragraph(line)
"""
import re
from typing import Annotated, Callable, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

_MARKDOWN_CHARS = re.compile(r"[*_#`]")
_NUMBERED       = re.compile(r"^\d+\.")
_NUMBER_PREFIX  = re.compile(r"^\d+\.\s*")


class SectionHeader(BaseModel):
    kind: Literal["section_header"] = "section_header"
    text: str


class LabeledItem(BaseModel):
    kind:  Literal["labeled_item"] = "labeled_item"
    label: str
    value: str


class ListItem(BaseModel):
    kind: Literal["list_item"] = "list_item"
    text: str


class Paragraph(BaseModel):
    kind: Literal["paragraph"] = "paragraph"
    text: str


DisplayBlock = Annotated[
    Union[SectionHeader, LabeledItem, ListItem, Paragraph],
    Field(discriminator="kind"),
]

display_blocks_adapter = TypeAdapter(list[DisplayBlock])


# ── Rules ─────────────────────────────────────────────────────────────────────
# Each rule returns a block for a cleaned line, or None if it does not apply.

def _section_header(line: str) -> Optional[SectionHeader]:
    if not _NUMBERED.match(line):
        return None
    return SectionHeader(text=_NUMBER_PREFIX.sub("", line, count=1))


def _labeled_item(line: str) -> Optional[LabeledItem]:
    if not (line.startswith("-") and ":" in line):
        return None
    label, value = line[1:].split(":", 1)
    return LabeledItem(label=label.strip(), value=value.strip())


def _list_item(line: str) -> Optional[ListItem]:
    if not line.startswith("-"):
        return None
    return ListItem(text=line[1:].strip())


def _paragraph(line: str) -> Paragraph:
    return Paragraph(text=line)


RULES: tuple[tuple[str, Callable[[str], Optional[BaseModel]]], ...] = (
    ("section_header", _section_header),
    ("labeled_item",   _labeled_item),
    ("list_item",      _list_item),
    ("paragraph",      _paragraph),
)


def clean_line(line: str) -> str:
    """Drop markdown emphasis/heading characters and surrounding whitespace."""
    return _MARKDOWN_CHARS.sub("", line).strip()


def format_line(line: str):
    """Return the block for one raw line, or None if the line is blank."""
    cleaned = clean_line(line)
    if not cleaned:
        return None
    for _name, rule in RULES:
        block = rule(cleaned)
        if block is not None:
            return block
    return None  # unreachable: the paragraph rule always matches


def format_analysis(text: str) -> list:
    """Parse analysis text into a list of display blocks (pure, deterministic)."""
    blocks = []
    for line in (text or "").split("\n"):
        block = format_line(line)
        if block is not None:
            blocks.append(block)
    return blocks


def dump_blocks(blocks: list) -> list[dict]:
    """JSON-ready representation of a block list."""
    return display_blocks_adapter.dump_python(blocks, mode="json")
