"""
Shared test fixtures and helpers for the Rapid test suite.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from types import SimpleNamespace
from typing import Any, List, Optional

import pytest

from rapid.cache.backends.memory import MemoryBackend
from rapid.config import EngineConfig
from rapid.engine import ProjectionEngine
from rapid.projection import Projector, ProjectorRegistry, verify_permissions


# ============================================================================
# Domain objects
# ============================================================================

STAMP = datetime.datetime(2024, 1, 1, 12, 0, 0)


@dataclass
class Product:
    id: int
    name: str
    updated_at: datetime.datetime = STAMP


@dataclass
class Post:
    id: int
    title: str
    blurb: str
    joke: str = "knock knock"
    updated_at: datetime.datetime = STAMP


@dataclass
class Tester:
    id: int
    name: str
    last_name: str
    product: List[Product] = field(default_factory=list)
    post: Optional[Post] = None
    updated_at: datetime.datetime = STAMP


@dataclass
class Account:
    id: int
    email: str
    owner_id: int
    updated_at: datetime.datetime = STAMP


class FakeRedis:
    """Dict-backed stand-in for the parts of redis.Redis the backend uses."""

    def __init__(self):
        self.data = {}
        self.closed = False

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.data[key] = value
        return True

    def delete(self, key):
        return 1 if self.data.pop(key, None) is not None else 0

    def scan_iter(self, match):
        prefix = match.rstrip("*")
        return [k for k in list(self.data) if k.startswith(prefix)]

    def close(self):
        self.closed = True


class Article:
    """Plain object that counts reads of ``title``."""

    def __init__(self, id: int, title: str, updated_at: Any = STAMP):
        self.id = id
        self.updated_at = updated_at
        self._title = title
        self.title_reads = 0

    @property
    def title(self) -> str:
        self.title_reads += 1
        return self._title


# ============================================================================
# Projectors
# ============================================================================

REGISTRY = ProjectorRegistry()


class TesterProjector(Projector):
    class Meta:
        model = Tester
        registry = REGISTRY
        attributes = ("id", "name")
        optional = ("last_name",)
        associations = ("product", "post")
        default_associations = ("product",)


class PostProjector(Projector):
    class Meta:
        model = Post
        registry = REGISTRY
        attributes = ("id", "title", "blurb")
        optional = ("joke",)


class ProductProjector(Projector):
    class Meta:
        model = Product
        registry = REGISTRY
        attributes = "__all__"


class AccountProjector(Projector):
    class Meta:
        model = Account
        registry = REGISTRY
        attributes = ("id", "email")
        caches = ("email",)

    @verify_permissions("email")
    def is_owner(account, principal, value):
        return principal is not None and principal == account.owner_id


class ArticleProjector(Projector):
    class Meta:
        model = Article
        registry = REGISTRY
        attributes = ("id", "title")
        caches = ("fields",)


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def projectors():
    return SimpleNamespace(
        registry=REGISTRY,
        tester=TesterProjector,
        post=PostProjector,
        product=ProductProjector,
        account=AccountProjector,
        article=ArticleProjector,
    )


@pytest.fixture
def models():
    return SimpleNamespace(
        Tester=Tester,
        Post=Post,
        Product=Product,
        Account=Account,
        Article=Article,
    )


@pytest.fixture
def post():
    return Post(id=7, title="Hello", blurb="First post")


@pytest.fixture
def tester(post):
    return Tester(id=1, name="Mike", last_name="Sea", product=[], post=post)


@pytest.fixture
def config():
    return EngineConfig()


@pytest.fixture
def cache():
    return MemoryBackend(max_size=100)


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def make_engine(cache):
    """Build an engine over the test registry with a fresh memory cache."""
    def _make(**switches: Any) -> ProjectionEngine:
        return ProjectionEngine(EngineConfig(**switches), registry=REGISTRY, cache=cache)
    return _make


@pytest.fixture
def engine(make_engine):
    return make_engine()
