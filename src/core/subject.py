"""C-code (classification code) decoding.

A C-code is four digits: the first names the target audience, the second
the physical format, and the last two the subject content. Each segment is
looked up in its own table; a segment missing from its table decodes to an
empty label rather than an error.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Dict

from core.errors import ConfigParseError, ConfigReadError, InvalidCode
from core.models import DecodedSubject

_DIGITS = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class SubjectDecoder:
    """Immutable lookup tables for the three C-code segments."""

    taishou: Dict[str, str] = field(default_factory=dict)
    keitai: Dict[str, str] = field(default_factory=dict)
    naiyou: Dict[str, str] = field(default_factory=dict)

    def decode(self, ccode: str) -> DecodedSubject:
        """Decode a C-code into target, format and content labels."""

        if not _DIGITS.fullmatch(ccode or ""):
            raise InvalidCode(f"Invalid Ccode! {ccode!r} cannot be converted to digits")
        if len(ccode) != 4:
            raise InvalidCode(f"Invalid Ccode! {ccode!r} is not 4 digits")

        return DecodedSubject(
            ccode=ccode,
            target=self.taishou.get(ccode[0], ""),
            format=self.keitai.get(ccode[1], ""),
            content=self.naiyou.get(ccode[2:], ""),
        )


def load_subject_decoder(path: str) -> SubjectDecoder:
    """Load the code table JSON (``taishou``/``keitai``/``naiyou`` maps)."""

    try:
        with open(path, "r", encoding="utf-8") as handle:
            raw = json.load(handle)
    except OSError as exc:
        raise ConfigReadError(f"Could not read code table {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigParseError(f"Could not parse code table {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigParseError(f"Code table {path} must be a JSON object")

    tables = {}
    for name in ("taishou", "keitai", "naiyou"):
        table = raw.get(name, {})
        if not isinstance(table, dict):
            raise ConfigParseError(f"Code table {path}: '{name}' must be an object")
        tables[name] = {str(key): str(value) for key, value in table.items()}

    return SubjectDecoder(**tables)
