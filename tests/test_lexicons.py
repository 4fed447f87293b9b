"""Tests for atlex.lexicons module: bundled Lexicon loading and listing."""

import json
from pathlib import Path

import pytest

from atlex.lexicon import LexiconDocument, LexiconRegistry
from atlex.lexicons import LEXICON_IDS, list_lexicons, load_lexicon

LEXICON_DIR = Path(__file__).resolve().parent.parent / "src" / "atlex" / "lexicons"


class TestLexiconIds:
    """Verify module constants."""

    def test_list_matches_constant(self):
        assert list_lexicons() == LEXICON_IDS

    def test_ids_are_unique(self):
        assert len(set(LEXICON_IDS)) == len(LEXICON_IDS)

    @pytest.mark.parametrize("lexicon_id", LEXICON_IDS)
    def test_file_exists(self, lexicon_id):
        path = LEXICON_DIR.joinpath(*lexicon_id.split(".")[:-1], f"{lexicon_id.split('.')[-1]}.json")
        assert path.exists(), f"Missing lexicon file: {path}"
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["id"] == lexicon_id
        assert data.get("lexicon") == 1


class TestLoadLexicon:
    """Tests for load_lexicon() function."""

    def test_nonexistent_raises_file_not_found(self):
        load_lexicon.cache_clear()
        with pytest.raises(FileNotFoundError, match="No bundled lexicon"):
            load_lexicon("com.example.nonexistent")

    def test_loads_strong_ref(self):
        data = load_lexicon("com.atproto.repo.strongRef")
        assert data["id"] == "com.atproto.repo.strongRef"
        assert data["defs"]["main"]["required"] == ["uri", "cid"]

    def test_is_cached(self):
        load_lexicon.cache_clear()
        first = load_lexicon("app.bsky.richtext.facet")
        assert load_lexicon("app.bsky.richtext.facet") is first
        assert load_lexicon.cache_info().hits >= 1


class TestBundledLexiconsCompile:
    @pytest.mark.parametrize("lexicon_id", LEXICON_IDS)
    def test_parses_and_compiles(self, lexicon_id):
        document = LexiconDocument.from_dict(load_lexicon(lexicon_id))
        bundle = LexiconRegistry(strict=True).register(document)
        assert bundle.id == lexicon_id
        assert len(bundle) > 0

    def test_facet_link(self, registry):
        assert registry.validate("app.bsky.richtext.facet#link", {"uri": "https://example.com"}).ok

    def test_self_labels(self, registry):
        result = registry.validate(
            "com.atproto.label.defs#selfLabels", {"values": [{"val": "x" * 200}]}
        )
        assert result.error.path == ("values", 0, "val")
