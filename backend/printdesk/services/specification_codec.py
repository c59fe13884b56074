# Overview: Encode/decode order options to and from the newline-delimited specifications text.

"""
Specification Codec

An order's `specifications` field is a block of text: zero or more reserved
lines describing structured options, followed by the customer's own note.

    Paper Size: Long
    Print Type: Color
    Add Lamination: Yes
    Please staple each set.

Reserved lines, in the order they are written:

    Paper Size: <A4|Short|Long>       Print, Photocopy, Scanning
    Print Type: <Color|Black & White> Print, Scanning
    Copy Type: Standard               Photocopy
    Photo Size: Glossy <size>         Photo Development
    Add Lamination: Yes               any service, only when requested

Decoding is tolerant: a reserved prefix with a value it cannot parse, or any
other "Key: value" line, is kept as part of the note. A note line that
happens to begin with a reserved prefix is read back as an option; orders
therefore keep `options`/`notes` columns and only decode the text for rows
written before those columns existed.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict, replace
from typing import Any, Mapping

from ..models.orders import (
    SERVICE_PRINT,
    SERVICE_PHOTOCOPY,
    SERVICE_SCANNING,
    SERVICE_PHOTO_DEVELOPMENT,
)


PAPER_SIZES = ("A4", "Short", "Long")

COLOR = "color"
BLACK_AND_WHITE = "bw"
COLOR_OPTIONS = (BLACK_AND_WHITE, COLOR)

PREFIX_PAPER_SIZE = "Paper Size:"
PREFIX_PRINT_TYPE = "Print Type:"
PREFIX_SCAN_TYPE = "Scan Type:"  # written by older builds for Scanning orders
PREFIX_COPY_TYPE = "Copy Type:"
PREFIX_PHOTO_SIZE = "Photo Size:"
PREFIX_LAMINATION = "Add Lamination:"

COPY_TYPE_STANDARD = "Standard"
PHOTO_FINISH = "Glossy"

_PRINT_TYPE_LABELS = {COLOR: "Color", BLACK_AND_WHITE: "Black & White"}
_PRINT_TYPE_VALUES = {label.lower(): key for key, label in _PRINT_TYPE_LABELS.items()}
_PAPER_SIZE_VALUES = {size.lower(): size for size in PAPER_SIZES}

PAPER_SERVICES = (SERVICE_PRINT, SERVICE_PHOTOCOPY, SERVICE_SCANNING)
COLOR_SERVICES = (SERVICE_PRINT, SERVICE_SCANNING)

_OPTION_FIELDS = {"paper_size", "color_option", "photo_size", "add_lamination"}


@dataclass(frozen=True)
class OrderOptions:
    paper_size: str | None = None
    color_option: str | None = None
    photo_size: str | None = None
    add_lamination: bool = False

    def relevant_to(self, service: str) -> "OrderOptions":
        """Drop the options a service never writes, so stored options match the text."""
        return OrderOptions(
            paper_size=self.paper_size if service in PAPER_SERVICES else None,
            color_option=self.color_option if service in COLOR_SERVICES else None,
            photo_size=self.photo_size if service == SERVICE_PHOTO_DEVELOPMENT else None,
            add_lamination=self.add_lamination,
        )

    def merged(self, changes: Mapping[str, Any]) -> "OrderOptions":
        """Return a copy with every non-None value from `changes` applied."""
        updates = {key: value for key, value in changes.items() if value is not None and key in _OPTION_FIELDS}
        return replace(self, **updates)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "OrderOptions":
        if not data:
            return cls()
        return cls(
            paper_size=data.get("paper_size"),
            color_option=data.get("color_option"),
            photo_size=data.get("photo_size"),
            add_lamination=bool(data.get("add_lamination", False)),
        )


@dataclass(frozen=True)
class DecodedSpecifications:
    options: OrderOptions
    note: str


def encode_specifications(service: str, options: OrderOptions, note: str = "") -> str:
    lines: list[str] = []

    if service in PAPER_SERVICES and options.paper_size:
        lines.append(f"{PREFIX_PAPER_SIZE} {options.paper_size}")

    if service in COLOR_SERVICES and options.color_option:
        label = _PRINT_TYPE_LABELS[COLOR if options.color_option == COLOR else BLACK_AND_WHITE]
        lines.append(f"{PREFIX_PRINT_TYPE} {label}")

    if service == SERVICE_PHOTOCOPY:
        lines.append(f"{PREFIX_COPY_TYPE} {COPY_TYPE_STANDARD}")

    if service == SERVICE_PHOTO_DEVELOPMENT and options.photo_size:
        lines.append(f"{PREFIX_PHOTO_SIZE} {PHOTO_FINISH} {options.photo_size}")

    if options.add_lamination:
        lines.append(f"{PREFIX_LAMINATION} Yes")

    if note:
        lines.append(note)

    return "\n".join(lines)


def _value_after(line: str, prefix: str) -> str | None:
    if not line.startswith(prefix):
        return None
    return line[len(prefix):].strip()


def _parse_photo_size(value: str) -> str | None:
    if value.startswith(PHOTO_FINISH + " "):
        value = value[len(PHOTO_FINISH) + 1:].strip()
    return value or None


def decode_specifications(blob: str | None) -> DecodedSpecifications:
    fields: dict[str, Any] = {}
    residual: list[str] = []

    for line in (blob or "").split("\n"):
        text = line.rstrip("\r")

        value = _value_after(text, PREFIX_PAPER_SIZE)
        if value is not None and value.lower() in _PAPER_SIZE_VALUES:
            fields["paper_size"] = _PAPER_SIZE_VALUES[value.lower()]
            continue

        value = _value_after(text, PREFIX_PRINT_TYPE)
        if value is None:
            value = _value_after(text, PREFIX_SCAN_TYPE)
        if value is not None and value.lower() in _PRINT_TYPE_VALUES:
            fields["color_option"] = _PRINT_TYPE_VALUES[value.lower()]
            continue

        value = _value_after(text, PREFIX_COPY_TYPE)
        if value is not None and value == COPY_TYPE_STANDARD:
            continue

        value = _value_after(text, PREFIX_PHOTO_SIZE)
        if value is not None:
            size = _parse_photo_size(value)
            if size:
                fields["photo_size"] = size
                continue

        value = _value_after(text, PREFIX_LAMINATION)
        if value is not None and value.lower() in ("yes", "no"):
            fields["add_lamination"] = value.lower() == "yes"
            continue

        residual.append(line)

    note = "\n".join(residual)

    return DecodedSpecifications(options=OrderOptions(**fields), note=note)
