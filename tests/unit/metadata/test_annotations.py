"""Tests for field and class annotation helpers."""

from typing import Annotated

import pytest

from modelmeta.core.exceptions import RegistryError
from modelmeta.core.levels import DataLevel
from modelmeta.metadata.annotations import (
    annotate,
    autogen,
    basic,
    config,
    confidential,
    default,
    detail_to_basic,
    detail_to_short,
    field_options,
    important,
    index,
    level,
    mixin,
    never,
    optional,
    readonly,
    reference,
    required,
    short,
    short_to_basic,
    tag,
    virtual,
)
from modelmeta.metadata.registry import Registry
from modelmeta.runtime.model import StrictModel


class TestLevelHelpers:
    """Tests for the data level helpers."""

    @pytest.mark.parametrize(
        ("bag", "expected"),
        [
            (basic(), DataLevel.BASIC),
            (short(), DataLevel.SHORT),
            (confidential(), DataLevel.CONFIDENTIAL),
            (never(), DataLevel.NEVER),
            (level(15), 15),
        ],
    )
    def test_level(self, bag, expected):
        assert bag.options == {"level": expected}

    def test_pass_level_map_shortcuts(self):
        assert short_to_basic().options == {"level": 20, "pass_level_map": {20: 10}}
        assert detail_to_basic().options == {"level": 30, "pass_level_map": {30: 10}}
        assert detail_to_short().options == {"level": 30, "pass_level_map": {30: 20}}

    def test_levels_are_plain_ints(self):
        bag = level(DataLevel.SHORT, {DataLevel.DETAIL: DataLevel.BASIC})
        assert type(bag.options["level"]) is int
        assert all(type(k) is int for k in bag.options["pass_level_map"])


class TestValueHelpers:
    def test_simple_bags(self):
        assert default(3).options == {"default": 3}
        assert important().options == {"importance": 100}
        assert required().options == {"required": True}
        assert optional().options == {"required": False}
        assert readonly().options == {"readonly": True}
        assert autogen().options == {"readonly": True, "autogen": True}

    def test_field_options_merges_kwargs(self):
        assert field_options({"a": 1}, b=2).options == {"a": 1, "b": 2}

    def test_reference(self):
        assert reference().options == {"reference": True}
        assert reference("User", is_array=True).options == {
            "reference": True,
            "model": "User",
            "is_array": True,
        }

    def test_virtual(self):
        bag = virtual("Post", "_id", "author", count=True, match={"draft": False})
        assert bag.options == {
            "ref": "Post",
            "local_field": "_id",
            "foreign_field": "author",
            "just_one": False,
            "count": True,
            "match": {"draft": False},
        }


class TestOnModels:
    """Tests for helpers applied to registered models."""

    def test_tags_accumulate(self, registry: Registry):
        @registry.model
        class Doc(StrictModel):
            title: Annotated[str, tag("search"), tag(["sort", "facet"])]
            body: str

        fields = Doc.get_metadata().combined_fields
        assert fields["title"].tags == ["search", "sort", "facet"]
        assert fields["title"].has_tag("sort")
        assert fields["body"].has_no_tags

    def test_decorated_property(self, registry: Registry):
        @registry.model
        class Doc(StrictModel):
            title: str

            @property
            @short()
            @tag("computed")
            def slug(self) -> str:
                return self.title.lower()

        slug = Doc.get_metadata().combined_fields["slug"]
        assert slug.is_getter
        assert slug.level == DataLevel.SHORT
        assert slug.tags == ["computed"]

    def test_annotate_by_name(self, registry: Registry):
        @annotate("title", confidential(), tag("a"))
        @annotate("title", tag("b"))
        @registry.model
        class Doc(StrictModel):
            title: str

        # annotate runs after registration; resolution is lazy.
        title = Doc.get_metadata().combined_fields["title"]
        assert title.level == DataLevel.CONFIDENTIAL
        assert title.tags == ["b", "a"]

    def test_later_bag_overwrites(self, registry: Registry):
        @registry.model
        class Doc(StrictModel):
            title: Annotated[str, basic(), short()]

        assert Doc.get_metadata().combined_fields["title"].level == DataLevel.SHORT

    def test_class_default_becomes_default_option(self, registry: Registry):
        @registry.model
        class Doc(StrictModel):
            title: str = "untitled"

        assert Doc.modelize({}).title == "untitled"

    def test_index_accumulates(self, registry: Registry):
        @index({"b": 1})
        @index({"a": 1}, unique=True)
        @registry.model
        class Doc(StrictModel):
            a: str
            b: str

        assert Doc.get_metadata().config.options["indexes"] == [
            {"fields": {"b": 1}, "options": {}},
            {"fields": {"a": 1}, "options": {"unique": True}},
        ]

    def test_config_keys(self, registry: Registry):
        @config(default_level=DataLevel.SHORT, collection="docs")
        @registry.model
        class Doc(StrictModel):
            a: str

        cfg = Doc.get_metadata().config
        assert cfg.default_level == DataLevel.SHORT
        assert cfg.options["collection"] == "docs"

    def test_mixin_rejects_non_classes(self):
        with pytest.raises(RegistryError):
            mixin("NotAClass")
        with pytest.raises(RegistryError):
            mixin()
