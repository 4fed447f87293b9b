"""Tests for generated value classes and value encoding."""

import dataclasses
import json
from typing import Any

import pytest

from atlex import LexiconCompileError, LexiconValidationError
from atlex.lexicon import LexiconObject, build_value_class, encode_value
from atlex.lexicon._values import ValueField, attribute_name, class_name

CID = "bafyreidfayvfuwqa7qlnopdjiqrxzs6blmoeu4rujcjtnci5beludirz2a"
URI = "at://did:plc:44ybard66vv44zksje25o7dz/app.example.post/3jwdwj2ctlk26"
STRONG_REF = {"uri": URI, "cid": CID}
CREATED = "2024-01-01T00:00:00Z"


class TestNames:
    @pytest.mark.parametrize(
        "key,expected",
        [
            ("text", "text"),
            ("createdAt", "created_at"),
            ("byteStart", "byte_start"),
            ("URLPath", "url_path"),
            ("$type", "type_"),
            ("from", "from_"),
            ("class", "class_"),
            ("match", "match_"),
            ("my-key", "my_key"),
            ("3d", "_3d"),
        ],
    )
    def test_attribute_name(self, key, expected):
        assert attribute_name(key) == expected

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("replyRef", "ReplyRef"),
            ("post", "Post"),
            ("cid-link", "CidLink"),
            ("3d", "Def3d"),
        ],
    )
    def test_class_name(self, value, expected):
        assert class_name(value) == expected


class TestEncodeValue:
    def test_bytes(self):
        assert encode_value(b"hi") == {"$bytes": "aGk"}

    def test_nested_containers(self):
        assert encode_value({"a": [b"hi", 1], "b": (None,)}) == {
            "a": [{"$bytes": "aGk"}, 1],
            "b": [None],
        }

    def test_plain_values_unchanged(self):
        for value in ("x", 1, True, None):
            assert encode_value(value) == value


class TestOmissionLaw:
    def test_optional_none_omitted_nullable_none_kept(self, post_bundle):
        Post = post_bundle.value_class("main")
        post = Post(text="hi", created_at=CREATED)
        assert post.to_record() == {
            "text": "hi",
            "createdAt": CREATED,
            "subject": None,
            "visibility": "public",
            "$type": "app.example.post",
        }

    def test_set_optional_fields_are_written(self, post_bundle):
        Post = post_bundle.value_class("main")
        post = Post(text="hi", created_at=CREATED, langs=["en"], subject=URI)
        record = post.to_record()
        assert record["langs"] == ["en"]
        assert record["subject"] == URI

    def test_required_fields_have_no_default(self, post_bundle):
        Post = post_bundle.value_class("main")
        with pytest.raises(TypeError):
            Post(text="hi")

    def test_keyword_only(self, post_bundle):
        Post = post_bundle.value_class("main")
        with pytest.raises(TypeError):
            Post("hi", CREATED)

    def test_class_metadata(self, post_bundle):
        Post = post_bundle.value_class("main")
        assert issubclass(Post, LexiconObject)
        assert Post.__lexicon_id__ == "app.example.post"
        assert Post.__schema_key__ == "main"
        assert Post.__enforced_keys__ == {"text", "createdAt"}
        assert Post.__omit_if_none__ == {"langs", "facets", "reply", "embed", "visibility"}
        assert Post.__lexicon_fields__[-1] == ("$type", "type_", "app.example.post")
        assert Post.__doc__ == "Record containing a post."

    def test_type_attribute(self, post_bundle):
        Post = post_bundle.value_class("main")
        assert Post(text="hi", created_at=CREATED).type_ == "app.example.post"

    def test_object_defs_carry_type(self, post_bundle):
        Images = post_bundle.value_class("images")
        assert Images(count=1).to_record() == {
            "count": 1,
            "$type": "app.example.post#images",
        }

    def test_to_json(self, post_bundle):
        Images = post_bundle.value_class("images")
        assert json.loads(Images(count=1).to_json()) == {
            "count": 1,
            "$type": "app.example.post#images",
        }

    def test_nested_objects_encoded(self, post_bundle, registry):
        Post = post_bundle.value_class("main")
        ReplyRef = post_bundle.value_class("replyRef")
        StrongRef = registry.get("com.atproto.repo.strongRef").value_class()
        ref = StrongRef(uri=URI, cid=CID)
        post = Post(text="hi", created_at=CREATED, reply=ReplyRef(root=ref, parent=ref))
        assert post.to_record()["reply"] == {
            "root": {**STRONG_REF, "$type": "com.atproto.repo.strongRef"},
            "parent": {**STRONG_REF, "$type": "com.atproto.repo.strongRef"},
            "$type": "app.example.post#replyRef",
        }


class TestFromRecord:
    def test_builds_instance(self, post_bundle):
        Post = post_bundle.value_class("main")
        post = Post.from_record({"text": "hi", "createdAt": CREATED, "extra": 1})
        assert isinstance(post, Post)
        assert post.text == "hi"
        assert post.created_at == CREATED
        assert post.visibility == "public"
        assert not hasattr(post, "extra")

    def test_hydrates_refs_and_unions(self, post_bundle, registry):
        Post = post_bundle.value_class("main")
        post = Post.from_record(
            {
                "text": "hi",
                "createdAt": CREATED,
                "reply": {"root": STRONG_REF, "parent": STRONG_REF},
                "embed": {"$type": "app.example.post#images", "count": 2},
                "facets": [
                    {
                        "index": {"byteStart": 0, "byteEnd": 2},
                        "features": [
                            {"$type": "app.bsky.richtext.facet#tag", "tag": "atproto"}
                        ],
                    }
                ],
            }
        )
        assert isinstance(post.reply, post_bundle.value_class("replyRef"))
        assert isinstance(post.reply.root, registry.get("com.atproto.repo.strongRef").value_class())
        assert isinstance(post.embed, post_bundle.value_class("images"))
        assert post.embed.count == 2

        facet_bundle = registry.get("app.bsky.richtext.facet")
        [facet] = post.facets
        assert isinstance(facet, facet_bundle.value_class())
        assert isinstance(facet.index, facet_bundle.value_class("byteSlice"))
        assert facet.index.byte_end == 2
        assert isinstance(facet.features[0], facet_bundle.value_class("tag"))

    def test_union_without_type_stays_dict(self, post_bundle):
        Post = post_bundle.value_class("main")
        post = Post.from_record({"text": "hi", "createdAt": CREATED, "embed": {"count": 2}})
        assert post.embed == {"count": 2}

    def test_invalid_raises(self, post_bundle):
        Post = post_bundle.value_class("main")
        with pytest.raises(LexiconValidationError) as exc_info:
            Post.from_record({"text": 1, "createdAt": CREATED})
        assert exc_info.value.path == ("text",)

    def test_bytes_roundtrip(self, registry):
        Label = registry.get("com.atproto.label.defs").value_class("label")
        label = Label.from_record(
            {
                "src": "did:plc:44ybard66vv44zksje25o7dz",
                "uri": URI,
                "val": "porn",
                "cts": CREATED,
                "sig": {"$bytes": "aGk"},
            }
        )
        assert label.sig == b"hi"
        assert label.to_record()["sig"] == {"$bytes": "aGk"}

    def test_roundtrip(self, post_bundle):
        Post = post_bundle.value_class("main")
        record = {
            "text": "hi",
            "createdAt": CREATED,
            "langs": ["en", "pt-BR"],
            "subject": None,
            "visibility": "followers",
            "$type": "app.example.post",
        }
        assert Post.from_record(record).to_record() == record

    def test_bundle_from_record(self, rpc_bundle):
        value = rpc_bundle.from_record(
            "main", {"params": {"repo": "alice.bsky.social"}, "input": {"name": "x"}}
        )
        assert isinstance(value.params, rpc_bundle.value_class("params"))
        assert isinstance(value.input, rpc_bundle.value_class("input"))
        assert value.to_record() == {
            "params": {"repo": "alice.bsky.social"},
            "input": {"name": "x"},
        }


class TestBuildValueClass:
    def test_fields_and_flags(self):
        cls = build_value_class(
            "Thing",
            "com.example.thing",
            "main",
            [
                ValueField("name", str, required=True),
                ValueField("note", Any, nullable=True),
                ValueField("count", Any, default=3),
            ],
        )
        assert dataclasses.is_dataclass(cls)
        assert cls.__enforced_keys__ == {"name"}
        assert cls.__omit_if_none__ == {"count"}
        assert cls(name="x").to_record() == {"name": "x", "note": None, "count": 3}
        assert cls(name="x", count=None).to_record() == {"name": "x", "note": None}

    def test_type_slot(self):
        cls = build_value_class(
            "Thing", "com.example.thing", "main", [], type_name="com.example.thing"
        )
        assert cls().to_record() == {"$type": "com.example.thing"}

    def test_attribute_collision(self):
        with pytest.raises(LexiconCompileError, match="both map to attribute"):
            build_value_class(
                "Thing",
                "com.example.thing",
                "main",
                [ValueField("createdAt", str), ValueField("created_at", str)],
            )

    @pytest.mark.parametrize("key", ["toJson", "to_record", "fromRecord", "_registry"])
    def test_property_cannot_shadow_methods(self, key):
        with pytest.raises(LexiconCompileError, match="which is reserved"):
            build_value_class("Thing", "com.example.thing", "main", [ValueField(key, str)])
