"""
Declarative document schemas (projection/documents.py).
"""

import json

import pytest

from rapid.config import ConfigError
from rapid.engine import ProjectionEngine
from rapid.projection import Projector, SchemaFault, build_registry, load_document, load_registry


SCHEMAS = {
    "schemas": {
        "tester": {
            "attributes": ["id", "name"],
            "optional": ["last_name"],
            "associations": ["product", "post"],
            "default_associations": ["product"],
        },
        "post": {
            "attributes": ["id", "title", "blurb"],
            "optional": ["joke"],
            "key": {"single": "post", "multiple": "posts"},
        },
    },
}

TESTER = {
    "type": "tester",
    "id": 1,
    "name": "Mike",
    "last_name": "Sea",
    "product": [],
    "post": {"type": "post", "id": 7, "title": "Hello", "blurb": "First post", "joke": "j"},
}


@pytest.fixture
def registry():
    return build_registry(SCHEMAS)


@pytest.fixture
def engine(registry):
    return ProjectionEngine(registry=registry)


class TestBuildRegistry:

    def test_projectors_per_kind(self, registry):
        tester = registry.for_kind("tester")
        assert issubclass(tester, Projector)
        assert tester.__name__ == "TesterProjector"
        assert tester.schema.name == "tester"
        assert tester.schema.default_associations == ("product",)

    def test_dispatch_on_type_key(self, registry):
        assert registry.lookup(TESTER) is registry.for_kind("tester")

    def test_custom_type_key(self):
        registry = build_registry({"type_key": "kind", "schemas": {"note": {"attributes": ["id"]}}})
        assert registry.lookup({"kind": "note", "id": 1}) is registry.for_kind("note")

    def test_empty_declaration(self):
        registry = build_registry({"schemas": {"blank": None}})
        assert registry.for_kind("blank").schema.fields == ()

    def test_unknown_keys(self):
        with pytest.raises(SchemaFault, match="unknown declaration keys"):
            build_registry({"schemas": {"x": {"attributes": ["id"], "colour": "red"}}})

    def test_missing_schemas(self):
        with pytest.raises(SchemaFault):
            build_registry({"tester": {}})

    def test_invalid_schema(self):
        with pytest.raises(SchemaFault):
            build_registry({"schemas": {"x": {"attributes": ["id"], "optional": ["id"]}}})


class TestProjectDocuments:

    def test_defaults(self, engine):
        assert engine.serialize(TESTER) == {"id": 1, "name": "Mike", "product": []}

    def test_nested_document(self, engine):
        data = engine.serialize(TESTER, extra_fields="last_name", associations="post", post_fields="id,title")
        assert data == {
            "id": 1,
            "name": "Mike",
            "last_name": "Sea",
            "product": [],
            "post": {"id": 7, "title": "Hello"},
        }

    def test_collection_key(self, engine):
        posts = [TESTER["post"], TESTER["post"]]
        assert engine.serialize(posts, only="id") == {"posts": [{"id": 7}, {"id": 7}]}

    def test_root_projector(self, engine, registry):
        untagged = {"id": 9, "title": "T", "blurb": "B"}
        assert engine.serialize(untagged, registry.for_kind("post")) == {
            "post": {"id": 9, "title": "T", "blurb": "B"},
        }


class TestLoadDocument:

    def test_yaml(self, tmp_path):
        path = tmp_path / "schemas.yaml"
        path.write_text("schemas:\n  note:\n    attributes: [id, body]\n")
        registry = load_registry(path)
        assert registry.for_kind("note").schema.attributes == ("id", "body")

    def test_json(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text(json.dumps(TESTER))
        assert load_document(path) == TESTER

    def test_missing(self, tmp_path):
        with pytest.raises(ConfigError):
            load_document(tmp_path / "nope.yaml")

    def test_unsupported(self, tmp_path):
        path = tmp_path / "data.xml"
        path.write_text("<x/>")
        with pytest.raises(ConfigError):
            load_document(path)

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text("{")
        with pytest.raises(ConfigError):
            load_document(path)
