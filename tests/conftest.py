"""Shared fixtures: stores, builder, and a recording stand-in for the n8n client."""

import time

import pytest

from n8n_builder.builder.draft_builder import DraftBuilder
from n8n_builder.errors import RemoteError
from n8n_builder.knowledge.registry import build_knowledge_base
from n8n_builder.knowledge.validation import ValidationEngine
from n8n_builder.sessions.memory import InMemorySessionStore
from n8n_builder.sessions.redis_store import RedisSessionStore
from n8n_builder.workflow.node_types import build_node_type_registry


class FakeRedis:
    """Minimal in-process object answering the redis calls the session store makes."""

    def __init__(self):
        self.values = {}
        self.expiry = {}
        self.sets = {}
        self.set_calls = []

    def _alive(self, key):
        deadline = self.expiry.get(key)
        if deadline is not None and time.time() >= deadline:
            self.values.pop(key, None)
            self.expiry.pop(key, None)
        return key in self.values

    def get(self, key):
        return self.values[key] if self._alive(key) else None

    def set(self, key, value, ex=None):
        self.values[key] = value
        self.set_calls.append((key, ex))
        if ex is not None:
            self.expiry[key] = time.time() + ex
        else:
            self.expiry.pop(key, None)
        return True

    def delete(self, *keys):
        removed = 0
        for key in keys:
            if self._alive(key):
                removed += 1
            self.values.pop(key, None)
            self.expiry.pop(key, None)
        return removed

    def exists(self, key):
        return 1 if self._alive(key) else 0

    def sadd(self, key, *members):
        self.sets.setdefault(key, set()).update(members)
        return len(members)

    def srem(self, key, *members):
        current = self.sets.setdefault(key, set())
        removed = len(current & set(members))
        current.difference_update(members)
        return removed

    def smembers(self, key):
        return set(self.sets.get(key, set()))

    def pipeline(self):
        return FakePipeline(self)

    def close(self):
        pass


class FakePipeline:

    def __init__(self, redis):
        self.redis = redis
        self.calls = []

    def __getattr__(self, name):
        def _queue(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self
        return _queue

    def execute(self):
        results = [getattr(self.redis, name)(*args, **kwargs) for name, args, kwargs in self.calls]
        self.calls = []
        return results


class RecordingN8NClient:
    """Records create/activate calls; can be told to fail."""

    def __init__(self, fail_create=None, fail_activate=None):
        self.created = []
        self.activated = []
        self.fail_create = fail_create
        self.fail_activate = fail_activate

    def create_workflow(self, workflow):
        if self.fail_create is not None:
            raise self.fail_create
        self.created.append(workflow)
        return {"id": f"wf-{len(self.created)}", "name": workflow["name"], "active": False}

    def activate_workflow(self, workflow_id):
        if self.fail_activate is not None:
            raise self.fail_activate
        self.activated.append(workflow_id)
        return {"id": workflow_id, "active": True}


@pytest.fixture
def registry():
    return build_node_type_registry()


@pytest.fixture
def knowledge():
    return build_knowledge_base()


@pytest.fixture
def engine(knowledge):
    return ValidationEngine(knowledge)


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture(params=["memory", "redis"])
def store(request):
    if request.param == "memory":
        s = InMemorySessionStore(cleanup_interval_seconds=0)
    else:
        s = RedisSessionStore(client=FakeRedis())
    yield s
    s.close()


@pytest.fixture
def n8n_client():
    return RecordingN8NClient()


@pytest.fixture
def builder(registry, engine, n8n_client):
    store = InMemorySessionStore(cleanup_interval_seconds=0)
    yield DraftBuilder(store, registry, engine, n8n_client)
    store.close()


@pytest.fixture
def failing_remote():
    return RemoteError("n8n API error 500 for POST /workflows: boom", status_code=500,
                       code="N8N_HTTP_ERROR")
