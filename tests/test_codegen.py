"""Tests for Python module generation from compiled Lexicons."""

import importlib
import sys
from pathlib import Path

import pytest

from atlex.lexicon import compile_lexicon, default_registry, generate_module, write_module
from atlex.lexicon._codegen import module_path


def _note_lexicon():
    return {
        "lexicon": 1,
        "id": "atlexgen.example.note",
        "defs": {
            "main": {
                "type": "record",
                "key": "tid",
                "description": "A note titled \"draft\"",
                "record": {
                    "type": "object",
                    "required": ["text"],
                    "properties": {
                        "text": {"type": "string", "description": "Body."},
                        "tags": {"type": "array", "items": {"type": "ref", "ref": "#tag"}},
                        "status": {"type": "string", "default": "draft"},
                    },
                },
            },
            "tag": {
                "type": "object",
                "required": ["name"],
                "properties": {"name": {"type": "string", "maxLength": 32}},
            },
            "archived": {"type": "token"},
        },
    }


@pytest.fixture
def generated_package(tmp_path, monkeypatch):
    """Make ``tmp_path`` importable and forget generated modules afterwards."""
    monkeypatch.syspath_prepend(str(tmp_path))
    yield tmp_path
    for name in list(sys.modules):
        if name == "atlexgen" or name.startswith("atlexgen."):
            del sys.modules[name]


class TestGenerateModule:
    def test_post_source(self, post_bundle):
        source = generate_module(post_bundle)
        assert "class Post(LexiconObject):" in source
        assert "class ReplyRef(LexiconObject):" in source
        assert "class Images(LexiconObject):" in source
        assert "class External(LexiconObject):" in source
        assert "PINNED = 'app.example.post#pinned'" in source
        assert "@dataclass(kw_only=True)" in source
        assert "_BUNDLE = default_registry().register(LEXICON)" in source
        assert "_BUNDLE.bind_value_class('main', Post)" in source
        assert "_BUNDLE.bind_value_class('replyRef', ReplyRef)" in source
        assert "    created_at: str\n" in source
        assert "    visibility: str | None = 'public'" in source
        assert "    type_: str = 'app.example.post'" in source
        compile(source, "app/example/post.py", "exec")

    def test_rpc_source(self, rpc_bundle):
        source = generate_module(rpc_bundle)
        assert "class CreateThing(LexiconObject):" in source
        assert "class Params(LexiconObject):" in source
        assert "class Input(LexiconObject):" in source
        assert "_BUNDLE.bind_value_class('params', Params)" in source
        assert "type_" not in source
        compile(source, "app/example/createThing.py", "exec")

    def test_docstrings_are_escaped(self):
        source = generate_module(compile_lexicon(_note_lexicon()))
        assert '"""A note titled "draft\\""""' in source
        compile(source, "atlexgen/example/note.py", "exec")

    def test_bundled_lexicons_render(self, registry):
        for nsid in ("com.atproto.repo.getRecord", "com.atproto.repo.uploadBlob",
                     "com.atproto.label.defs", "app.bsky.richtext.facet"):
            source = generate_module(registry.get(nsid))
            compile(source, str(module_path(nsid)), "exec")

    def test_document_is_embedded(self, post_bundle):
        source = generate_module(post_bundle)
        namespace = {}
        literal = source.split("LEXICON = ", 1)[1].split("\n\n_BUNDLE", 1)[0]
        exec(f"value = {literal}", namespace)
        assert namespace["value"] == post_bundle.document.to_dict()


class TestModulePath:
    @pytest.mark.parametrize(
        "nsid,expected",
        [
            ("com.atproto.repo.getRecord", Path("com/atproto/repo/getRecord.py")),
            ("app.bsky.feed.post", Path("app/bsky/feed/post.py")),
            ("com.my-app.thing", Path("com/my_app/thing.py")),
        ],
    )
    def test_module_path(self, nsid, expected):
        assert module_path(nsid) == expected


class TestWriteModule:
    def test_writes_nested_path(self, tmp_path, post_bundle):
        path = write_module(post_bundle, tmp_path)
        assert path == tmp_path / "app" / "example" / "post.py"
        assert path.read_text() == generate_module(post_bundle)

    def test_no_temporary_files_left(self, tmp_path, post_bundle):
        path = write_module(post_bundle, tmp_path)
        assert [p.name for p in path.parent.iterdir()] == ["post.py"]

    def test_overwrites(self, tmp_path, post_bundle):
        path = tmp_path / "app" / "example" / "post.py"
        path.parent.mkdir(parents=True)
        path.write_text("stale")
        write_module(post_bundle, tmp_path)
        assert path.read_text() != "stale"

    def test_logged(self, tmp_path, post_bundle, log_calls):
        write_module(post_bundle, tmp_path)
        assert any(
            level == "info" and msg.startswith("Generated app.example.post -> ")
            for level, msg in log_calls
        )


class TestGeneratedModuleImport:
    def test_import_registers_and_binds(self, generated_package):
        write_module(compile_lexicon(_note_lexicon()), generated_package)
        module = importlib.import_module("atlexgen.example.note")

        assert module.ARCHIVED == "atlexgen.example.note#archived"
        bundle = default_registry().get("atlexgen.example.note")
        assert bundle.value_class() is module.Note
        assert bundle.value_class("tag") is module.Tag

        note = module.Note.from_record({"text": "hi", "tags": [{"name": "x"}]})
        assert isinstance(note, module.Note)
        assert isinstance(note.tags[0], module.Tag)
        assert note.status == "draft"

    def test_generated_classes_serialize(self, generated_package):
        write_module(compile_lexicon(_note_lexicon()), generated_package)
        module = importlib.import_module("atlexgen.example.note")

        note = module.Note(text="hi", tags=[module.Tag(name="x")])
        assert note.to_record() == {
            "text": "hi",
            "tags": [{"name": "x", "$type": "atlexgen.example.note#tag"}],
            "status": "draft",
            "$type": "atlexgen.example.note",
        }
        with pytest.raises(TypeError):
            module.Note()
