"""Notification rule compilation and matching logic (core domain).

A notification filter is an AND over condition blocks, and each block is an
OR over conditions. Conditions compare one named book field against a list
of words. Filters are built once from the rules file and never mutated, so a
single instance can be shared by every concurrent per-book task.
"""

from __future__ import annotations

import enum
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Iterable, Mapping, Optional, Tuple

from core.errors import (
    ConfigParseError,
    ConfigReadError,
    InvalidConditionKind,
    InvalidFieldName,
)
from core.models import Book

LOGGER = logging.getLogger(__name__)


def _timestamp(value: Optional[datetime]) -> str:
    return value.isoformat() if value else ""


# Canonical book field names, as written in rules, mapped to accessors.
FIELD_ACCESSORS: Dict[str, Callable[[Book], str]] = {
    "Isbn": lambda book: book.isbn,
    "Title": lambda book: book.title,
    "Url": lambda book: book.url,
    "Authors": lambda book: book.authors,
    "Publisher": lambda book: book.publisher,
    "Categories": lambda book: book.categories,
    "Ccode": lambda book: book.ccode,
    "Target": lambda book: book.target,
    "Format": lambda book: book.format,
    "Content": lambda book: book.content,
    "PubDate": lambda book: _timestamp(book.pub_date),
    "CreatedDate": lambda book: _timestamp(book.created_date),
    "LastUpdatedDate": lambda book: _timestamp(book.last_updated_date),
}

# Config keys accepted in ``filter_by`` besides the canonical names.
CONFIG_FIELD_NAMES: Dict[str, str] = {
    "isbn": "Isbn",
    "title": "Title",
    "url": "Url",
    "authors": "Authors",
    "publisher": "Publisher",
    "categories": "Categories",
    "ccode": "Ccode",
    "target": "Target",
    "format": "Format",
    "content": "Content",
    "pub_date": "PubDate",
    "created_date": "CreatedDate",
    "last_updated_date": "LastUpdatedDate",
}


def resolve_field_name(filter_by: str) -> str:
    """Map a rule's ``filter_by`` key to the canonical book field name."""

    if filter_by in FIELD_ACCESSORS:
        return filter_by
    try:
        return CONFIG_FIELD_NAMES[filter_by]
    except KeyError:
        raise InvalidFieldName(f"Invalid filter field: {filter_by!r}") from None


def get_field_value(book: Book, field_name: str) -> Optional[str]:
    """Return the string value of a named field, or None if there is no such field."""

    accessor = FIELD_ACCESSORS.get(field_name)
    if accessor is None:
        return None
    return accessor(book)


class ConditionKind(enum.Enum):
    CONTAIN = "contain"
    NOT_CONTAIN = "not_contain"
    NOT_START_WITH = "not_start_with"


@dataclass(frozen=True)
class Condition:
    """A single field/words predicate.

    ``contain`` is an exact match against any word, despite its name.
    When the field is unknown, positive conditions fail and negative ones pass.
    """

    kind: ConditionKind
    field: str
    words: Tuple[str, ...] = ()

    def match(self, book: Book) -> bool:
        value = get_field_value(book, self.field)

        if self.kind is ConditionKind.CONTAIN:
            if value is None:
                return False
            return any(value == word for word in self.words)

        if value is None:
            return True
        if self.kind is ConditionKind.NOT_CONTAIN:
            return all(value != word for word in self.words)
        return not any(value.startswith(word) for word in self.words)


@dataclass(frozen=True)
class ConditionBlock:
    """Conditions joined with OR."""

    conditions: Tuple[Condition, ...]

    def match_any(self, book: Book) -> bool:
        return any(condition.match(book) for condition in self.conditions)


@dataclass(frozen=True)
class NotificationFilter:
    """Condition blocks joined with AND.

    A filter with no blocks matches nothing, so an empty or unusable rules
    file never turns into "notify about every book".
    """

    blocks: Tuple[ConditionBlock, ...] = ()

    def is_match(self, book: Book) -> bool:
        if not self.blocks:
            return False
        return all(block.match_any(book) for block in self.blocks)

    @property
    def condition_count(self) -> int:
        return sum(len(block.conditions) for block in self.blocks)


def build_condition(raw: Mapping) -> Condition:
    """Build one condition from its rules-file entry.

    Raises InvalidFieldName or InvalidConditionKind for entries that cannot
    be used, and ConfigParseError when ``words`` is not a list.
    """

    field_name = resolve_field_name(str(raw.get("filter_by", "")))
    raw_kind = raw.get("type")
    try:
        kind = ConditionKind(raw_kind)
    except ValueError:
        raise InvalidConditionKind(f"Invalid filter type: {raw_kind!r}") from None
    raw_words = raw.get("words")
    if raw_words is not None and not isinstance(raw_words, (list, tuple)):
        raise ConfigParseError(f"Filter words must be a list, got {raw_words!r}")
    words = tuple(str(word) for word in raw_words or [])
    return Condition(kind=kind, field=field_name, words=words)


def build_filter(settings: Mapping) -> NotificationFilter:
    """Build a filter, skipping rules that reference unknown fields or types.

    Blocks that lose all of their conditions are dropped entirely, so they
    never act as an always-true or always-false placeholder.
    """

    blocks = []
    for block_index, raw_block in enumerate(settings.get("blocks") or []):
        conditions = []
        for raw_condition in raw_block.get("conditions") or []:
            try:
                conditions.append(build_condition(raw_condition))
            except (InvalidFieldName, InvalidConditionKind) as exc:
                LOGGER.warning("Skipping condition in block %s: %s", block_index, exc)
        if conditions:
            blocks.append(ConditionBlock(conditions=tuple(conditions)))
        else:
            LOGGER.warning("Dropping block %s: no usable conditions", block_index)
    return NotificationFilter(blocks=tuple(blocks))


def _check_shape(settings: object, path: str) -> None:
    if not isinstance(settings, dict):
        raise ConfigParseError(f"Filter settings {path} must be a JSON object")
    blocks = settings.get("blocks", [])
    if blocks is None:
        return
    if not isinstance(blocks, list):
        raise ConfigParseError(f"Filter settings {path}: 'blocks' must be a list")
    for block in blocks:
        if not isinstance(block, dict) or not isinstance(block.get("conditions", []), (list, type(None))):
            raise ConfigParseError(f"Filter settings {path}: each block needs a 'conditions' list")
        for condition in block.get("conditions") or []:
            if not isinstance(condition, dict):
                raise ConfigParseError(f"Filter settings {path}: conditions must be objects")
            for key in ("filter_by", "type"):
                if key in condition and not isinstance(condition[key], str):
                    raise ConfigParseError(f"Filter settings {path}: '{key}' must be a string")
            if not isinstance(condition.get("words"), (list, type(None))):
                raise ConfigParseError(f"Filter settings {path}: 'words' must be a list")


def load_filter(path: str) -> NotificationFilter:
    """Read the rules file and build the notification filter.

    I/O and JSON errors are fatal: the caller should stop the run instead of
    carrying on with a filter that silently matches nothing.
    """

    try:
        with open(path, "r", encoding="utf-8") as handle:
            settings = json.load(handle)
    except OSError as exc:
        raise ConfigReadError(f"Could not read {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigParseError(f"Could not parse {path}: {exc}") from exc

    _check_shape(settings, path)
    return build_filter(settings)


def describe_filter(notification_filter: NotificationFilter) -> Iterable[str]:
    """Yield one human-readable line per condition, grouped by block."""

    for index, block in enumerate(notification_filter.blocks, start=1):
        for condition in block.conditions:
            words = ", ".join(condition.words) or "-"
            yield f"block {index}: {condition.field} {condition.kind.value} [{words}]"
