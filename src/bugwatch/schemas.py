"""JSON Schema for the operator configuration document."""

from __future__ import annotations

from typing import Any

_STRING_LIST: dict[str, Any] = {"type": "array", "items": {"type": "string"}}

CONFIG_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "bugwatch operator configuration",
    "type": "object",
    "properties": {
        "bugzilla": {
            "type": "object",
            "properties": {
                "base_url": {"type": "string"},
                "api_key": {"type": "string"},
                "classification": {"type": "string"},
                "product": {"type": "string"},
                "timeout": {"type": "number", "exclusiveMinimum": 0},
            },
            "additionalProperties": False,
        },
        "slack": {
            "type": "object",
            "properties": {
                "token": {"type": "string"},
                "channel": {"type": "string"},
                "admin_channel": {"type": "string"},
                "debug": {"type": "boolean"},
                "email_mapping": {
                    "type": "object",
                    "additionalProperties": {"type": "string"},
                },
            },
            "additionalProperties": False,
        },
        "release": {
            "type": "object",
            "properties": {
                "current_target_release": {"type": "string"},
                "target_releases": _STRING_LIST,
            },
            "required": ["current_target_release"],
        },
        "components": {
            "type": "object",
            "additionalProperties": {
                "type": "object",
                "properties": {
                    "lead": {"type": "string"},
                    "developers": _STRING_LIST,
                },
                "additionalProperties": False,
            },
        },
        "groups": {"type": "object", "additionalProperties": _STRING_LIST},
        "reporters": {
            "type": "object",
            "properties": {
                name: {
                    "type": "object",
                    "properties": {"components": _STRING_LIST},
                }
                for name in ("new", "blockers", "escalation")
            },
            "additionalProperties": False,
        },
        "state": {
            "type": "object",
            "properties": {"path": {"type": "string"}},
        },
        "logging": {
            "type": "object",
            "properties": {
                "json_enabled": {"type": "boolean"},
                "level": {"type": "string"},
            },
        },
    },
    "required": ["release"],
}


def get_config_schema() -> dict[str, Any]:
    return CONFIG_SCHEMA


__all__ = ["CONFIG_SCHEMA", "get_config_schema"]
