"""
Reader and writer for ``.rendercaps`` capability scripts.

A script holds one or more blocks of the form::

    render_system_capabilities "GeForce 8800"
    {
    	automipmap true
    	max_point_size 64
    	shader_profile vs_3_0
    }

Writing is exhaustive and deterministic: every flag and every scalar attribute
gets a line, shader profiles are emitted in sorted order. Reading dispatches
each body line through a fixed keyword table to a typed conversion.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import BinaryIO

from rendercaps.capabilities.errors import (
    ScriptStructureError,
    ScriptValueError,
    UnknownKeywordError,
)
from rendercaps.capabilities.model import (
    Capability,
    CapabilitySet,
    DriverVersion,
    GPUVendor,
)
from rendercaps.logging_config import get_logger

logger = get_logger(__name__)

HEADER_KEYWORD = "render_system_capabilities"
SCRIPT_EXTENSION = ".rendercaps"
COMMENT_PREFIX = "//"

_HEADER_RE = re.compile(rf'^{HEADER_KEYWORD}\s+"([^"]+)"$')
_INT_RE = re.compile(r"^[+-]?[0-9]+$")
_REAL_RE = re.compile(r"^[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?$")
_REAL_SPECIAL = {"inf", "+inf", "-inf", "nan"}


# =============================================================================
# Keyword dispatch table
# =============================================================================


class ValueKind(Enum):
    """How the value of a keyword is converted."""

    CAPABILITY = "capability"
    BOOL = "bool"
    INT = "int"
    REAL = "real"
    STRING = "string"
    STRING_SET = "string_set"
    VENDOR = "vendor"
    VERSION = "version"


@dataclass(frozen=True)
class Keyword:
    name: str
    kind: ValueKind
    attr: str | None = None
    capability: Capability | None = None


STRING_KEYWORDS = ("render_system_name", "device_name")
BOOL_KEYWORDS = ("non_pow2_textures_limited", "vertex_texture_units_shared")
INT_KEYWORDS = (
    "num_world_matrices",
    "num_texture_units",
    "stencil_buffer_bit_depth",
    "num_vertex_blend_matrices",
    "num_multi_render_targets",
    "vertex_program_constant_float_count",
    "vertex_program_constant_int_count",
    "vertex_program_constant_bool_count",
    "fragment_program_constant_float_count",
    "fragment_program_constant_int_count",
    "fragment_program_constant_bool_count",
    "num_vertex_texture_units",
)
REAL_KEYWORDS = ("max_point_size",)


def _build_keywords() -> Mapping[str, Keyword]:
    table: dict[str, Keyword] = {}
    for name in STRING_KEYWORDS:
        table[name] = Keyword(name, ValueKind.STRING, attr=name)
    table["vendor"] = Keyword("vendor", ValueKind.VENDOR, attr="vendor")
    table["driver_version"] = Keyword("driver_version", ValueKind.VERSION, attr="driver_version")
    for cap in Capability:
        table[cap.keyword] = Keyword(cap.keyword, ValueKind.CAPABILITY, capability=cap)
    for name in BOOL_KEYWORDS:
        table[name] = Keyword(name, ValueKind.BOOL, attr=name)
    for name in INT_KEYWORDS:
        table[name] = Keyword(name, ValueKind.INT, attr=name)
    for name in REAL_KEYWORDS:
        table[name] = Keyword(name, ValueKind.REAL, attr=name)
    table["shader_profile"] = Keyword("shader_profile", ValueKind.STRING_SET, attr="shader_profiles")
    return MappingProxyType(table)


KEYWORDS: Mapping[str, Keyword] = _build_keywords()


# =============================================================================
# Value formatting
# =============================================================================


def format_bool(value: bool) -> str:
    return "true" if value else "false"


def format_real(value: float) -> str:
    """Shortest decimal text that reads back as the same float.

    Exponent notation is expanded and a trailing ``.0`` is dropped, so
    ``99.5`` stays ``99.5`` and ``4.0`` becomes ``4``.
    """
    text = repr(float(value))
    if "e" in text or "E" in text:
        text = format(Decimal(text), "f")
    if text.endswith(".0"):
        text = text[:-2]
    return text


def _check_single_line(what: str, value: str) -> None:
    if value and value.splitlines() != [value]:
        raise ValueError(f"{what} must not contain line breaks: {value!r}")


def _check_string_value(keyword: str, value: str) -> None:
    _check_single_line(keyword, value)
    if value != value.strip():
        raise ValueError(f"{keyword} must not start or end with whitespace: {value!r}")


def _line(keyword: str, value: str) -> str:
    if not value:
        return f"\t{keyword}"
    return f"\t{keyword} {value}"


def _iter_body(caps: CapabilitySet) -> Iterator[str]:
    for keyword in STRING_KEYWORDS:
        value = getattr(caps, keyword)
        _check_string_value(keyword, value)
        yield _line(keyword, value)
    yield _line("vendor", caps.vendor.value)
    yield _line("driver_version", str(caps.driver_version))
    for cap in Capability:
        yield _line(cap.keyword, format_bool(cap in caps.flags))
    for keyword in BOOL_KEYWORDS:
        yield _line(keyword, format_bool(getattr(caps, keyword)))
    for keyword in INT_KEYWORDS:
        yield _line(keyword, str(int(getattr(caps, keyword))))
    for keyword in REAL_KEYWORDS:
        yield _line(keyword, format_real(getattr(caps, keyword)))
    for profile in sorted(caps.shader_profiles):
        if not profile or len(profile.split()) != 1 or profile != profile.strip():
            raise ValueError(f"shader profile must be a single non-empty token: {profile!r}")
        yield _line("shader_profile", profile)


def encode(caps: CapabilitySet, name: str) -> str:
    """Serialize ``caps`` as a script block registered under ``name``.

    Raises:
        ValueError: If the name cannot be quoted or a string value would
            break the line structure
    """
    if not name or '"' in name:
        raise ValueError(f"capability set name must be non-empty and free of quotes: {name!r}")
    _check_single_line("name", name)
    lines = [f'{HEADER_KEYWORD} "{name}"', "{"]
    lines.extend(_iter_body(caps))
    lines.append("}")
    return "\n".join(lines) + "\n"


def write_script(caps: CapabilitySet, name: str, path: Path | str) -> Path:
    """Write ``caps`` to ``path`` as a single-block script."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(encode(caps, name), encoding="utf-8", newline="\n")
    logger.debug("rendercaps_written", name=name, path=str(target))
    return target


# =============================================================================
# Parsing
# =============================================================================


def _single_token(keyword: Keyword, value: str, line: int, source: str | None) -> str:
    tokens = value.split()
    if len(tokens) != 1:
        raise ScriptValueError(
            f"keyword {keyword.name!r} expects exactly one value, got {len(tokens)}",
            line=line,
            source=source,
        )
    return tokens[0]


def _parse_bool(keyword: Keyword, token: str, line: int, source: str | None) -> bool:
    if token == "true":
        return True
    if token == "false":
        return False
    raise ScriptValueError(
        f"keyword {keyword.name!r} expects true or false, got {token!r}",
        line=line,
        source=source,
    )


def _apply(
    caps: CapabilitySet,
    text: str,
    line: int,
    strict: bool,
    source: str | None,
) -> None:
    parts = text.split(None, 1)
    name = parts[0]
    value = parts[1].strip() if len(parts) > 1 else ""

    keyword = KEYWORDS.get(name)
    if keyword is None:
        if strict:
            raise UnknownKeywordError(f"unknown keyword {name!r}", line=line, source=source)
        logger.warning("rendercaps_unknown_keyword", keyword=name, line=line, source=source)
        return

    kind = keyword.kind
    if kind is ValueKind.STRING:
        setattr(caps, keyword.attr, value)
        return
    if kind is ValueKind.VENDOR:
        setattr(caps, keyword.attr, GPUVendor.from_string(value))
        return

    token = _single_token(keyword, value, line, source)
    if kind is ValueKind.CAPABILITY:
        if _parse_bool(keyword, token, line, source):
            caps.set_capability(keyword.capability)
        else:
            caps.unset_capability(keyword.capability)
    elif kind is ValueKind.BOOL:
        setattr(caps, keyword.attr, _parse_bool(keyword, token, line, source))
    elif kind is ValueKind.INT:
        if not _INT_RE.match(token):
            raise ScriptValueError(
                f"keyword {name!r} expects an integer, got {token!r}", line=line, source=source
            )
        setattr(caps, keyword.attr, int(token))
    elif kind is ValueKind.REAL:
        if not (_REAL_RE.match(token) or token.lower() in _REAL_SPECIAL):
            raise ScriptValueError(
                f"keyword {name!r} expects a number, got {token!r}", line=line, source=source
            )
        setattr(caps, keyword.attr, float(token))
    elif kind is ValueKind.STRING_SET:
        getattr(caps, keyword.attr).add(token)
    elif kind is ValueKind.VERSION:
        try:
            setattr(caps, keyword.attr, DriverVersion.from_string(token))
        except ValueError as exc:
            raise ScriptValueError(str(exc), line=line, source=source) from exc


def decode_all(
    text: str,
    *,
    strict: bool = False,
    source: str | None = None,
) -> list[tuple[str, CapabilitySet]]:
    """Parse every capability block in ``text``.

    Blank lines and ``//`` comments are ignored. Unknown keywords are logged
    and skipped unless ``strict`` is set.

    Returns:
        ``(name, CapabilitySet)`` pairs in document order

    Raises:
        ScriptStructureError: Malformed header or braces
        ScriptValueError: A value does not convert to its keyword's type
        UnknownKeywordError: Unknown keyword while ``strict``
    """
    results: list[tuple[str, CapabilitySet]] = []
    name: str | None = None
    current: CapabilitySet | None = None
    header_line = 0

    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith(COMMENT_PREFIX):
            continue

        if current is not None:
            if line == "}":
                results.append((name, current))
                name, current = None, None
            elif line.startswith(("{", "}")):
                raise ScriptStructureError(f"unexpected {line[0]!r} inside block", line=lineno, source=source)
            else:
                _apply(current, line, lineno, strict, source)
            continue

        if name is not None:
            if line != "{":
                raise ScriptStructureError("expected '{' after header", line=lineno, source=source)
            current = CapabilitySet()
            continue

        match = _HEADER_RE.match(line)
        if match is None:
            raise ScriptStructureError(
                f'expected {HEADER_KEYWORD} "<name>", got {line!r}', line=lineno, source=source
            )
        name = match.group(1)
        header_line = lineno

    if name is not None:
        raise ScriptStructureError(
            f"unterminated block {name!r}", line=header_line, source=source
        )
    return results


def decode(
    text: str,
    *,
    strict: bool = False,
    source: str | None = None,
) -> tuple[str, CapabilitySet]:
    """Parse a script holding exactly one capability block."""
    blocks = decode_all(text, strict=strict, source=source)
    if len(blocks) != 1:
        raise ScriptStructureError(
            f"expected exactly one capability block, found {len(blocks)}", source=source
        )
    return blocks[0]


def parse_stream(
    stream: BinaryIO,
    *,
    strict: bool = False,
    source: str | None = None,
) -> list[tuple[str, CapabilitySet]]:
    """Read a UTF-8 script from a binary stream and parse all blocks."""
    text = stream.read().decode("utf-8-sig")
    return decode_all(text, strict=strict, source=source)
