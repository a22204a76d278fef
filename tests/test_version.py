from unittest import mock

import pytest

from cosikit import version
from cosikit.version import (
    AlreadyExistsError,
    ConfigMap,
    ConflictError,
    InMemoryConfigMapClient,
    NotFoundError,
    VERSION_CONFIG_MAP_NAME,
)


class _FailingCreateClient:
    def __init__(self):
        self.inner = InMemoryConfigMapClient()

    def get(self, namespace, name):
        return self.inner.get(namespace, name)

    def create(self, config_map):
        raise RuntimeError("create version cm failed")

    def update(self, config_map):
        return self.inner.update(config_map)


class _ConflictOnceClient:
    def __init__(self, inner):
        self.inner = inner
        self.update_calls = 0

    def get(self, namespace, name):
        return self.inner.get(namespace, name)

    def create(self, config_map):
        return self.inner.create(config_map)

    def update(self, config_map):
        self.update_calls += 1
        if self.update_calls == 1:
            raise ConflictError("modified")
        return self.inner.update(config_map)


class _BrokenUpdateClient(_ConflictOnceClient):
    def update(self, config_map):
        raise RuntimeError("disk full")


class _BrokenGetClient:
    def get(self, namespace, name):
        raise RuntimeError("unreachable")

    def create(self, config_map):
        raise AssertionError("create must not be called")

    def update(self, config_map):
        raise AssertionError("update must not be called")


def test_init_version_config_map_success():
    client = InMemoryConfigMapClient()
    version.init_version_config_map(client, "cosi-test", "v1.0.0", "cosi-test")
    stored = client.get("cosi-test", VERSION_CONFIG_MAP_NAME)
    assert stored.data == {"cosi-test": "v1.0.0"}
    assert stored.namespace == "cosi-test"


def test_init_version_config_map_create_failed():
    client = _FailingCreateClient()
    with pytest.raises(RuntimeError) as info:
        version.init_version_config_map(client, "cosi-test", "v1.0.0", "cosi-test")
    assert str(info.value) == (
        "create configMap [huawei-cosi-version] failed, error is [create version cm failed]"
    )


def test_init_keeps_other_entries():
    existing = ConfigMap(VERSION_CONFIG_MAP_NAME, "ns", {"other": "v0.1"})
    client = InMemoryConfigMapClient([existing])
    version.init_version_config_map(client, "driver", "v2.0.0", "ns")
    assert client.get("ns", VERSION_CONFIG_MAP_NAME).data == {"other": "v0.1", "driver": "v2.0.0"}


def test_init_overwrites_own_entry():
    existing = ConfigMap(VERSION_CONFIG_MAP_NAME, "ns", {"driver": "v1"})
    client = InMemoryConfigMapClient([existing])
    version.init_version_config_map(client, "driver", "v2", "ns")
    assert client.get("ns", VERSION_CONFIG_MAP_NAME).data == {"driver": "v2"}


def test_init_retries_on_conflict():
    client = _ConflictOnceClient(InMemoryConfigMapClient())
    with mock.patch("time.sleep") as sleep:
        version.init_version_config_map(client, "driver", "v3", "ns")
    assert client.update_calls == 2
    sleep.assert_called_once_with(1.0)
    assert client.get("ns", VERSION_CONFIG_MAP_NAME).data == {"driver": "v3"}


def test_init_update_failure_is_wrapped():
    client = _BrokenUpdateClient(InMemoryConfigMapClient())
    with pytest.raises(RuntimeError) as info:
        version.init_version_config_map(client, "driver", "v3", "ns")
    assert str(info.value) == (
        "update configMap [huawei-cosi-version] failed, error is [disk full]"
    )


def test_init_get_failure_is_wrapped():
    with pytest.raises(RuntimeError) as info:
        version.init_version_config_map(_BrokenGetClient(), "driver", "v3", "ns")
    assert str(info.value) == (
        "get configMap [huawei-cosi-version] failed, error is [unreachable]"
    )


def test_create_ignores_already_exists():
    existing = ConfigMap("cm", "ns", {"keep": "me"})
    client = InMemoryConfigMapClient([existing])
    version.create_version_config_map(client, "driver", "v1", "ns", "cm")
    assert client.get("ns", "cm").data == {"keep": "me"}


def test_create_new_config_map():
    client = InMemoryConfigMapClient()
    version.create_version_config_map(client, "driver", "v1", "ns", "cm")
    assert client.get("ns", "cm").data == {"driver": "v1"}


def test_in_memory_client_errors():
    client = InMemoryConfigMapClient()
    with pytest.raises(NotFoundError):
        client.get("ns", "missing")
    with pytest.raises(NotFoundError):
        client.update(ConfigMap("missing", "ns"))
    client.create(ConfigMap("cm", "ns", {}))
    with pytest.raises(AlreadyExistsError):
        client.create(ConfigMap("cm", "ns", {}))


def test_in_memory_client_detects_stale_update():
    client = InMemoryConfigMapClient([ConfigMap("cm", "ns", {})])
    first = client.get("ns", "cm")
    second = client.get("ns", "cm")
    first.data = {"a": "1"}
    client.update(first)
    second.data = {"b": "2"}
    with pytest.raises(ConflictError):
        client.update(second)
    assert client.get("ns", "cm").data == {"a": "1"}


def test_get_returns_copy():
    client = InMemoryConfigMapClient([ConfigMap("cm", "ns", {"a": "1"})])
    fetched = client.get("ns", "cm")
    fetched.data["a"] = "changed"
    assert client.get("ns", "cm").data == {"a": "1"}


def test_resolve_namespace_from_env(monkeypatch):
    monkeypatch.setenv("env-namepsace", "custom-ns")
    assert version.resolve_namespace() == "custom-ns"


def test_resolve_namespace_default(monkeypatch):
    monkeypatch.delenv("env-namepsace", raising=False)
    assert version.resolve_namespace() == "huawei-cosi"