"""
Outreach Roadmap - State Transitions
Field updates are resolved to a closed set of targets and applied by a
reducer that coerces the raw value and returns a new snapshot.
"""
import math
from dataclasses import dataclass

from engines.funnel import (
    SETTINGS, SETTINGS_FIELDS, SECTION_FIELDS, TOOL_SECTIONS, is_tool,
)


class UnknownField(ValueError):
    """Update target names a channel, section or field that does not exist."""


@dataclass(frozen=True)
class UpdateSettingsField:
    field: str


@dataclass(frozen=True)
class UpdateToolField:
    tool: str
    section: str
    field: str


def parse_target(payload):
    """Resolve a request body into an update target, once, at the call site."""
    if not isinstance(payload, dict):
        raise UnknownField('field required')
    field = payload.get('field')
    if not field:
        raise UnknownField('field required')
    if payload.get('tool') is None and payload.get('section') is None:
        return UpdateSettingsField(field=field)
    return UpdateToolField(tool=payload.get('tool'), section=payload.get('section'), field=field)


def coerce_number(raw):
    """Lenient numeric parse: blank, unparsable or non-finite input is 0; negatives clamp to 0."""
    if isinstance(raw, bool):
        return 0
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(value) or value < 0:
        return 0
    return int(value) if value.is_integer() else value


def _coerce(kind, raw):
    if kind is str:
        return '' if raw is None else str(raw)
    return coerce_number(raw)


def apply_field_update(state, target, raw_value):
    if isinstance(target, UpdateSettingsField):
        kind = SETTINGS_FIELDS.get(target.field)
        if kind is None:
            raise UnknownField(f"unknown settings field '{target.field}'")
        settings = {**state[SETTINGS], target.field: _coerce(kind, raw_value)}
        return {**state, SETTINGS: settings}

    if isinstance(target, UpdateToolField):
        if not is_tool(target.tool):
            raise UnknownField(f"unknown tool '{target.tool}'")
        if target.section not in TOOL_SECTIONS:
            raise UnknownField(f"unknown section '{target.section}'")
        kind = SECTION_FIELDS[target.section].get(target.field)
        if kind is None:
            raise UnknownField(f"unknown field '{target.section}.{target.field}'")
        tool_data = state[target.tool]
        section = {**tool_data[target.section], target.field: _coerce(kind, raw_value)}
        return {**state, target.tool: {**tool_data, target.section: section}}

    raise UnknownField(f"unsupported update target {target!r}")


def resolve_tool(tool):
    """Validated channel id."""
    if not is_tool(tool):
        raise UnknownField(f"unknown tool '{tool}'")
    return tool
