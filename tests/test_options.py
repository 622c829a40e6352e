"""
Option Resolver, Field Selector and request policies.
"""

import pytest

from rapid.config import EngineConfig
from rapid.projection import (
    InvalidAssociation,
    ProjectionWarning,
    RequestOptions,
    Schema,
    SubOptions,
    check_associations,
    collect_warnings,
    resolve_options,
    select_fields,
    split_names,
)
from rapid.projection.options import UNSET, merge_raw, union


@pytest.fixture
def schema():
    return Schema.build(
        "Tester",
        attributes=("id", "name"),
        optional=("last_name",),
        associations=("product", "post"),
        default_associations=("product",),
    )


# ============================================================================
# split_names / merge_raw
# ============================================================================

class TestSplitNames:

    def test_comma_string(self):
        assert split_names("id, name,,id") == ("id", "name")

    def test_sequence_with_joined_items(self):
        assert split_names(["id,name", "title"]) == ("id", "name", "title")

    def test_unreadable_values_become_empty(self):
        assert split_names(5) == ()
        assert split_names(None) == ()
        assert split_names({"id": 1}) == ()

    def test_skips_nested_containers(self):
        assert split_names(["id", ["x"], None]) == ("id",)

    def test_union_preserves_order(self):
        assert union(("b", "a"), ("a", "c")) == ("b", "a", "c")


class TestMergeRaw:

    def test_aliases_fold_into_canonical_keys(self):
        merged = merge_raw({"fields": "id", "exclude": "name", "extraFields": "x", "currentUser": 3})
        assert merged == {"only": ("id",), "except": ("name",), "extra_fields": ("x",), "current_user": 3}

    def test_params_overlay_lists_and_scalars(self):
        merged = merge_raw({"only": "id", "flag": 1, "params": {"fields": "name", "flag": 2}})
        assert merged["only"] == ("id", "name")
        assert merged["flag"] == 2

    def test_params_cannot_set_protected_keys(self):
        merged = merge_raw({"params": {"current_user": "root", "key": "x", "currentUser": "root"}})
        assert "current_user" not in merged
        assert "key" not in merged

    def test_non_mapping_params_ignored(self):
        assert merge_raw({"params": "fields=id"}) == {}

    def test_empty(self):
        assert merge_raw(None) == {}
        assert merge_raw("junk") == {}


# ============================================================================
# resolve_options
# ============================================================================

class TestResolveOptions:

    def test_defaults_added(self, schema):
        options = resolve_options(schema, {})
        assert options.associations == ("product",)
        assert options.key is UNSET

    def test_only_implies_associations_and_optional(self, schema):
        options = resolve_options(schema, {"only": "id,post,last_name"})
        assert options.associations == ("post", "product")
        assert options.extra_fields == ("last_name",)

    def test_defaults_survive_only_by_default(self, schema):
        assert resolve_options(schema, {"only": "id"}, EngineConfig()).associations == ("product",)

    def test_defaults_yield_to_only_when_configured(self, schema):
        config = EngineConfig(default_associations_with_only=False)
        assert resolve_options(schema, {"only": "id"}, config).associations == ()

    def test_sub_options(self, schema):
        options = resolve_options(schema, {
            "post_fields": "id",
            "post_associations": ["author"],
            "post_extra_fields": "joke",
        })
        assert options.sub_options["post"] == SubOptions(
            fields=("id",), associations=("author",), extra_fields=("joke",),
        )
        assert "product" not in options.sub_options

    def test_empty_sub_options_are_absent(self, schema):
        assert resolve_options(schema, {"post_fields": ""}).sub_options == {}

    def test_nested_sub_options_are_lifted(self, schema):
        options = resolve_options(schema, {"post_fields": "id", "post_author_fields": "name"})
        assert options.child_raw("post") == {
            "only": ("id",),
            "author_fields": ("name",),
            "current_user": None,
        }

    def test_child_raw_carries_only_principal(self, schema):
        options = resolve_options(schema, {"only": "id", "current_user": "kai"})
        assert options.child_raw("product") == {"current_user": "kai"}

    def test_sub_options_only_for_declared_associations(self, schema):
        assert resolve_options(schema, {"comments_fields": "id"}).sub_options == {}

    def test_key_passes_through(self, schema):
        assert resolve_options(schema, {"key": None}).key is None


# ============================================================================
# select_fields
# ============================================================================

class TestSelectFields:

    def test_empty_options(self, schema):
        options = resolve_options(schema, {})
        assert select_fields(schema, options) == ("id", "name", "product")

    def test_only_filters_base_attributes(self, schema):
        options = RequestOptions(only=("name", "missing"))
        assert select_fields(schema, options) == ("name",)

    def test_except_ignored_with_only(self, schema):
        options = RequestOptions(only=("id",), exclude=("id",))
        assert select_fields(schema, options) == ("id",)

    def test_except(self, schema):
        assert select_fields(schema, RequestOptions(exclude=("id",))) == ("name",)

    def test_declaration_order(self, schema):
        options = RequestOptions(
            extra_fields=("last_name",),
            associations=("post", "product", "comments"),
        )
        assert select_fields(schema, options) == ("id", "name", "last_name", "product", "post")

    def test_deterministic(self, schema):
        options = resolve_options(schema, {"only": "post,id", "extra_fields": "last_name"})
        assert select_fields(schema, options) == select_fields(schema, options)


# ============================================================================
# Policies
# ============================================================================

class TestPolicies:

    def test_validation_off_ignores_unknown(self, schema):
        options = RequestOptions(associations=("comments",))
        check_associations(schema, options, EngineConfig())

    def test_validation_on_names_every_unknown(self, schema):
        options = RequestOptions(associations=("comments", "post", "likes", "tags"))
        with pytest.raises(InvalidAssociation) as exc_info:
            check_associations(schema, options, EngineConfig(validate_associations=True))
        assert exc_info.value.associations == ("comments", "likes", "tags")
        assert exc_info.value.message == "The 'comments', 'likes', and 'tags' associations do not exist."

    def test_warnings(self, schema):
        options = RequestOptions(extra_fields=("last_name", "nickname"))
        warnings = collect_warnings(schema, options, EngineConfig(warn_invalid_fields=True))
        assert warnings == [ProjectionWarning.invalid_optional_field("nickname")]

    def test_warnings_disabled(self, schema):
        options = RequestOptions(extra_fields=("nickname",))
        assert collect_warnings(schema, options, EngineConfig()) == []
