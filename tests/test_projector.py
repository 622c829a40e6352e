"""
Schema declarations: Schema invariants, RootKey, Projector metaclass
compilation and the projector registry.
"""

from dataclasses import dataclass

import pytest

from rapid.projection import (
    CollectionProjector,
    Projector,
    ProjectorRegistry,
    RootKey,
    Schema,
    SchemaFault,
    default_registry,
    verify_permissions,
)
from rapid.projection.schema import expand_caches, expand_permissions, names


def allow(obj, principal, value):
    return True


# ============================================================================
# Schema
# ============================================================================

class TestSchema:

    def test_build_normalizes(self):
        schema = Schema.build("User", attributes=["id", "id", "name"], optional="email")
        assert schema.attributes == ("id", "name")
        assert schema.optional == ("email",)
        assert schema.fields == ("id", "name", "email")

    def test_overlap_rejected(self):
        with pytest.raises(SchemaFault, match="both attribute and optional field"):
            Schema.build("User", attributes=("id",), optional=("id",))

    def test_default_must_be_association(self):
        with pytest.raises(SchemaFault):
            Schema.build("User", associations=("posts",), default_associations=("profile",))

    def test_permission_for_unknown_field(self):
        with pytest.raises(SchemaFault):
            Schema.build("User", attributes=("id",), permissions={"email": allow})

    def test_permission_must_be_callable(self):
        with pytest.raises(SchemaFault):
            Schema.build("User", attributes=("email",), permissions={"email": "yes"})

    def test_cache_for_unknown_field(self):
        with pytest.raises(SchemaFault):
            Schema.build("User", attributes=("id",), caches=("email",))

    def test_immutable(self):
        schema = Schema.build("User", attributes=("id",))
        with pytest.raises(AttributeError):
            schema.attributes = ("name",)
        with pytest.raises(TypeError):
            schema.permissions["id"] = allow

    def test_queries(self):
        schema = Schema.build(
            "User",
            attributes=("id",),
            associations=("posts",),
            permissions={("id", "posts"): allow},
            caches=("associations",),
        )
        assert schema.is_association("posts")
        assert not schema.is_association("id")
        assert schema.is_cacheable("posts")
        assert not schema.is_cacheable("id")
        assert schema.permission_for("id") is allow
        assert schema.permission_for("missing") is None

    def test_expand_caches_groups(self):
        cacheable = expand_caches(("fields", "optional_fields", "posts"), ("id",), ("email",), ("posts", "tags"))
        assert cacheable == frozenset({"id", "email", "posts"})
        assert expand_caches(("all",), ("id",), ("email",), ("posts",)) == frozenset({"id", "email", "posts"})

    def test_expand_permissions_tuple_keys(self):
        assert expand_permissions({("a", "b"): allow, "c": allow}) == {"a": allow, "b": allow, "c": allow}

    def test_names(self):
        assert names(None) == ()
        assert names("id") == ("id",)


class TestRootKey:

    def test_string(self):
        assert RootKey.parse("user") == RootKey("user", "user")

    def test_mapping(self):
        key = RootKey.parse({"single": "user", "multiple": "users"})
        assert key.for_many(False) == "user"
        assert key.for_many(True) == "users"

    def test_pair(self):
        assert RootKey.parse(("user", "users")) == RootKey("user", "users")

    def test_invalid(self):
        with pytest.raises(TypeError):
            RootKey.parse(42)

    def test_schema_key_for(self):
        assert Schema.build("User", key="user").key_for(True) == "user"
        assert Schema.build("User").key_for(False) is None


# ============================================================================
# Projector metaclass
# ============================================================================

@dataclass
class Widget:
    id: int
    name: str
    color: str
    parts: list


class TestProjectorMeta:

    def test_all_fields_from_dataclass(self):
        class WidgetProjector(Projector):
            class Meta:
                model = Widget
                registry = ProjectorRegistry()
                attributes = "__all__"
                optional = ("color",)
                associations = ("parts",)

        schema = WidgetProjector.schema
        assert schema.name == "Widget"
        assert schema.attributes == ("id", "name")

    def test_omitted_attributes_use_dataclass(self):
        class WidgetProjector(Projector):
            class Meta:
                model = Widget
                registry = ProjectorRegistry()

        assert WidgetProjector.schema.attributes == ("id", "name", "color", "parts")

    def test_all_fields_needs_dataclass(self):
        class Plain:
            pass

        with pytest.raises(SchemaFault):
            class PlainProjector(Projector):
                class Meta:
                    model = Plain
                    registry = ProjectorRegistry()

    def test_invalid_declaration_fails_at_class_creation(self):
        with pytest.raises(SchemaFault):
            class BadProjector(Projector):
                class Meta:
                    attributes = ("id",)
                    default_associations = ("owner",)

    def test_name_defaults(self):
        class LooseProjector(Projector):
            class Meta:
                attributes = ("id",)

        class NamedProjector(Projector):
            class Meta:
                name = "Thing"
                attributes = ("id",)

        assert LooseProjector.schema.name == "LooseProjector"
        assert NamedProjector.schema.name == "Thing"

    def test_verify_permissions_decorator(self):
        class GuardedProjector(Projector):
            class Meta:
                attributes = ("id", "email", "phone")

            @verify_permissions("email", "phone")
            def owner_only(obj, principal, value):
                return principal == obj["id"]

        schema = GuardedProjector.schema
        assert schema.permission_for("email") is schema.permission_for("phone")
        assert not hasattr(GuardedProjector, "owner_only")
        assert not GuardedProjector.has_hook("owner_only")

    def test_verify_permissions_needs_fields(self):
        with pytest.raises(TypeError):
            verify_permissions()

    def test_hooks_collected(self):
        class HookedProjector(Projector):
            class Meta:
                attributes = ("id", "label", "size")

            def label(self):
                return "x"

            @property
            def size(self):
                return 1

            def _helper(self):
                return None

            @classmethod
            def factory(cls):
                return cls

        assert HookedProjector._hooks == frozenset({"label", "size"})
        assert not HookedProjector.has_hook("current_user")

    def test_inheritance(self):
        class BaseProjector(Projector):
            class Meta:
                attributes = ("id", "name")
                optional = ("email",)
                caches = ("fields",)

            def name(self):
                return "base"

        class ChildProjector(BaseProjector):
            class Meta:
                attributes = ("id",)

        class SameProjector(BaseProjector):
            pass

        child = ChildProjector.schema
        assert child.attributes == ("id",)
        assert child.optional == ("email",)
        assert child.cacheable == frozenset({"id"})
        assert ChildProjector.has_hook("name")
        assert SameProjector.schema.fields == BaseProjector.schema.fields
        assert SameProjector.schema.name == "SameProjector"

    def test_abstract_intermediate(self):
        class AbstractProjector(Projector):
            def shared(self):
                return 1

        class ConcreteProjector(AbstractProjector):
            class Meta:
                attributes = ("shared",)

        assert AbstractProjector.schema is None
        assert ConcreteProjector.has_hook("shared")

    def test_registration(self):
        reg = ProjectorRegistry()

        class WidgetProjector(Projector):
            class Meta:
                model = Widget
                kind = "widget"
                registry = reg
                attributes = ("id",)

        assert reg.lookup(Widget(1, "a", "b", [])) is WidgetProjector
        assert reg.for_kind("widget") is WidgetProjector
        assert ProjectorRegistry().lookup(Widget(1, "a", "b", [])) is None

    def test_empty_declared_registry_is_used(self):
        @dataclass
        class Gadget:
            id: int

        reg = ProjectorRegistry()
        assert len(reg) == 0

        class GadgetProjector(Projector):
            class Meta:
                model = Gadget
                registry = reg

        assert Gadget in reg
        assert Gadget not in default_registry
        assert reg.lookup(Gadget(1)) is GadgetProjector


# ============================================================================
# Registry
# ============================================================================

class Animal:
    pass


class Dog(Animal):
    pass


class TestRegistry:

    @pytest.fixture
    def registry(self):
        return ProjectorRegistry()

    @pytest.fixture
    def animal_projector(self):
        class AnimalProjector(Projector):
            class Meta:
                attributes = ()
        return AnimalProjector

    def test_mro_lookup(self, registry, animal_projector):
        registry.register(Animal, animal_projector)
        assert registry.lookup(Dog()) is animal_projector
        assert Animal in registry
        assert len(registry) == 1

    def test_kind_lookup(self, registry, animal_projector):
        registry.register_kind("animal", animal_projector)
        assert registry.lookup({"type": "animal"}) is animal_projector
        assert registry.lookup({"type": "plant"}) is None
        assert "animal" in registry

    def test_custom_type_key(self, animal_projector):
        registry = ProjectorRegistry(type_key="kind")
        registry.register_kind("animal", animal_projector)
        assert registry.lookup({"kind": "animal"}) is animal_projector

    def test_dunder_projector(self, registry, animal_projector):
        class Cat:
            __projector__ = animal_projector

        assert registry.lookup(Cat()) is animal_projector

    def test_homogeneous_collection(self, registry, animal_projector):
        registry.register(Animal, animal_projector)
        dispatched = registry.projector_for([Dog(), Animal()])
        assert dispatched == CollectionProjector(animal_projector)
        assert dispatched.many
        assert dispatched.schema is animal_projector.schema

    def test_mixed_or_empty_collection(self, registry, animal_projector):
        registry.register(Animal, animal_projector)
        assert registry.projector_for([Dog(), object()]) is None
        assert registry.projector_for([]) is None

    def test_unregister_and_clear(self, registry, animal_projector):
        registry.register(Animal, animal_projector)
        registry.register_kind("animal", animal_projector)
        assert registry.projectors() == [animal_projector]
        assert registry.unregister(Animal)
        assert not registry.unregister(Animal)
        registry.clear()
        assert len(registry) == 0
