"""Pytest configuration for atlex tests."""

import logging

import pytest

from atlex._config import ENV_INCLUDE_BUNDLED, ENV_LEXICON_PATH, ENV_STRICT_FIELD_TYPES
from atlex._logging import configure_logging
from atlex.lexicon import BundledSource, LexiconRegistry, reset_default_registry


# =============================================================================
# Shared Lexicon documents
# =============================================================================

def _post_lexicon() -> dict:
    """A record Lexicon exercising most field types."""
    return {
        "lexicon": 1,
        "id": "app.example.post",
        "description": "A short text post.",
        "defs": {
            "main": {
                "type": "record",
                "key": "tid",
                "description": "Record containing a post.",
                "record": {
                    "type": "object",
                    "required": ["text", "createdAt"],
                    "nullable": ["subject"],
                    "properties": {
                        "text": {
                            "type": "string",
                            "maxLength": 3000,
                            "maxGraphemes": 300,
                            "description": "The primary post content.",
                        },
                        "createdAt": {"type": "string", "format": "datetime"},
                        "langs": {
                            "type": "array",
                            "maxLength": 3,
                            "items": {"type": "string", "format": "language"},
                        },
                        "facets": {
                            "type": "array",
                            "items": {"type": "ref", "ref": "app.bsky.richtext.facet"},
                        },
                        "reply": {"type": "ref", "ref": "#replyRef"},
                        "embed": {"type": "union", "refs": ["#images", "#external"]},
                        "subject": {"type": "string", "format": "at-uri"},
                        "visibility": {
                            "type": "string",
                            "enum": ["public", "followers"],
                            "default": "public",
                        },
                    },
                },
            },
            "replyRef": {
                "type": "object",
                "required": ["root", "parent"],
                "properties": {
                    "root": {"type": "ref", "ref": "com.atproto.repo.strongRef"},
                    "parent": {"type": "ref", "ref": "com.atproto.repo.strongRef"},
                },
            },
            "images": {
                "type": "object",
                "required": ["count"],
                "properties": {
                    "count": {"type": "integer", "minimum": 1, "maximum": 4},
                },
            },
            "external": {
                "type": "object",
                "required": ["uri"],
                "properties": {"uri": {"type": "string", "format": "uri"}},
            },
            "pinned": {"type": "token", "description": "A pinned post."},
        },
    }


def _rpc_lexicon() -> dict:
    """A procedure Lexicon with params, input and output."""
    return {
        "lexicon": 1,
        "id": "app.example.createThing",
        "defs": {
            "main": {
                "type": "procedure",
                "description": "Create a thing.",
                "parameters": {
                    "type": "params",
                    "required": ["repo"],
                    "properties": {
                        "repo": {"type": "string", "format": "at-identifier"},
                        "validate": {"type": "boolean"},
                    },
                },
                "input": {
                    "encoding": "application/json",
                    "schema": {
                        "type": "object",
                        "required": ["name"],
                        "properties": {"name": {"type": "string", "maxLength": 64}},
                    },
                },
                "output": {
                    "encoding": "application/json",
                    "schema": {"type": "ref", "ref": "com.atproto.repo.strongRef"},
                },
                "errors": [{"name": "InvalidName"}],
            }
        },
    }


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Clear atlex settings and rebuild the default registry for every test."""
    for name in (ENV_LEXICON_PATH, ENV_STRICT_FIELD_TYPES, ENV_INCLUDE_BUNDLED):
        monkeypatch.delenv(name, raising=False)
    reset_default_registry()
    yield
    reset_default_registry()


@pytest.fixture
def registry():
    """A fresh registry that can load the bundled Lexicons."""
    return LexiconRegistry([BundledSource()], strict=False)


@pytest.fixture
def post_lexicon():
    return _post_lexicon()


@pytest.fixture
def rpc_lexicon():
    return _rpc_lexicon()


@pytest.fixture
def post_bundle(registry):
    return registry.register(_post_lexicon())


@pytest.fixture
def rpc_bundle(registry):
    return registry.register(_rpc_lexicon())


@pytest.fixture
def log_calls():
    """Route atlex logging into a list of ``(level, message)`` tuples."""
    calls: list[tuple[str, str]] = []

    class CapturingLogger:
        def debug(self, msg, *a, **kw):
            calls.append(("debug", msg % a if a else msg))

        def info(self, msg, *a, **kw):
            calls.append(("info", msg % a if a else msg))

        def warning(self, msg, *a, **kw):
            calls.append(("warning", msg % a if a else msg))

        def error(self, msg, *a, **kw):
            calls.append(("error", msg % a if a else msg))

    configure_logging(CapturingLogger())
    yield calls
    configure_logging(logging.getLogger("atlex"))
