"""Minimal vCard parsing and contact property extraction."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

VCARD_PREFIX = "BEGIN:VCARD"
DEFAULT_CONTACT_NAME = "No name found"
DEFAULT_CONTACT_TELEPHONE = "123456789"


@dataclass(frozen=True)
class VCardProperty:
    """One content line of a vCard, e.g. `TEL;TYPE=cell:+391234`."""

    value: str
    params: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ContactProperties:
    name: str
    telephone: str


VCard = dict[str, list[VCardProperty]]


def is_vcard(payload: str) -> bool:
    return payload.startswith(VCARD_PREFIX)


def _unfold(text: str) -> list[str]:
    """Join continuation lines (leading space/tab) onto the previous line."""
    normalized = text.replace("\r\n", "\n").replace("\r", "\n")
    lines: list[str] = []
    for line in normalized.split("\n"):
        if line.startswith((" ", "\t")) and lines:
            lines[-1] += line[1:]
        else:
            lines.append(line)
    return lines


def _parse_params(raw_params: list[str]) -> dict[str, str]:
    params: dict[str, str] = {}
    for raw in raw_params:
        if not raw:
            continue
        name, sep, value = raw.partition("=")
        if sep:
            params[name.strip().lower()] = value.strip()
        else:
            # vCard 2.1 bare parameters such as `TEL;CELL:...`
            params.setdefault("type", raw.strip())
    return params


def parse_vcard(text: str) -> VCard:
    """Parse vCard text into lower-cased property names mapped to their entries in order.

    `BEGIN`, `END` and `VERSION` lines are structural and are not returned.
    Group prefixes (`item1.TEL`) are dropped.
    """
    card: VCard = {}
    for line in _unfold(text):
        if ":" not in line:
            continue
        head, _, value = line.partition(":")
        name, *raw_params = head.split(";")
        name = name.rsplit(".", 1)[-1].strip().lower()
        if not name or name in {"begin", "end", "version"}:
            continue
        card.setdefault(name, []).append(
            VCardProperty(value=value.strip(), params=_parse_params(raw_params))
        )
    return card


def last_non_blank(
    card: Mapping[str, Sequence[VCardProperty]],
    field_name: str,
    default: str,
) -> str:
    """Return the last non-blank value under `field_name`, else `default`."""
    value = default
    for entry in card.get(field_name) or ():
        if entry.value.strip():
            value = entry.value
    return value


def extract_contact_properties(card: Mapping[str, Sequence[VCardProperty]]) -> ContactProperties:
    return ContactProperties(
        name=last_non_blank(card, "fn", DEFAULT_CONTACT_NAME),
        telephone=last_non_blank(card, "tel", DEFAULT_CONTACT_TELEPHONE),
    )
