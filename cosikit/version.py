"""Recording of component versions in a shared config map."""

from __future__ import annotations

import copy
import dataclasses
import os
import threading
import time
from dataclasses import dataclass
from typing import Protocol

from . import logger as log

VERSION_CONFIG_MAP_NAME = "huawei-cosi-version"
DEFAULT_NAMESPACE = "huawei-cosi"
NAMESPACE_ENV = "env-namepsace"

BUILD_VERSION = ""
BUILD_ARCH = ""

OS_ARCH = BUILD_ARCH
COSI_DRIVER_VERSION = BUILD_VERSION
LIVENESS_PROBE_VERSION = BUILD_VERSION

_CONFLICT_RETRY_SECONDS = 1.0
_mutex = threading.Lock()


class NotFoundError(LookupError):
    """The config map does not exist."""


class ConflictError(RuntimeError):
    """The config map changed since it was read."""


class AlreadyExistsError(RuntimeError):
    """A config map with that name already exists."""


@dataclass
class ConfigMap:
    """A named string-to-string map in a namespace."""

    name: str
    namespace: str
    data: dict[str, str] | None = None
    resource_version: int = 0


class ConfigMapClient(Protocol):
    def get(self, namespace: str, name: str) -> ConfigMap: ...

    def create(self, config_map: ConfigMap) -> ConfigMap: ...

    def update(self, config_map: ConfigMap) -> ConfigMap: ...


class InMemoryConfigMapClient:
    """A config map store kept in memory, with optimistic concurrency."""

    def __init__(self, config_maps: tuple[ConfigMap, ...] | list[ConfigMap] = ()) -> None:
        self._lock = threading.Lock()
        self._items: dict[tuple[str, str], ConfigMap] = {}
        for config_map in config_maps:
            stored = dataclasses.replace(copy.deepcopy(config_map), resource_version=1)
            self._items[(config_map.namespace, config_map.name)] = stored

    def get(self, namespace: str, name: str) -> ConfigMap:
        """Return a copy of the stored config map."""
        with self._lock:
            try:
                return copy.deepcopy(self._items[(namespace, name)])
            except KeyError:
                raise NotFoundError(f'configmaps "{name}" not found') from None

    def create(self, config_map: ConfigMap) -> ConfigMap:
        """Store a new config map."""
        key = (config_map.namespace, config_map.name)
        with self._lock:
            if key in self._items:
                raise AlreadyExistsError(f'configmaps "{config_map.name}" already exists')
            stored = dataclasses.replace(copy.deepcopy(config_map), resource_version=1)
            self._items[key] = stored
            return copy.deepcopy(stored)

    def update(self, config_map: ConfigMap) -> ConfigMap:
        """Replace a stored config map read at its current version."""
        key = (config_map.namespace, config_map.name)
        with self._lock:
            current = self._items.get(key)
            if current is None:
                raise NotFoundError(f'configmaps "{config_map.name}" not found')
            if config_map.resource_version != current.resource_version:
                raise ConflictError(
                    f'Operation cannot be fulfilled on configmaps "{config_map.name}": '
                    "the object has been modified"
                )
            stored = dataclasses.replace(
                copy.deepcopy(config_map), resource_version=current.resource_version + 1
            )
            self._items[key] = stored
            return copy.deepcopy(stored)


def resolve_namespace() -> str:
    """Return the namespace from the environment, or the default one."""
    return os.environ.get(NAMESPACE_ENV) or DEFAULT_NAMESPACE


def init_version_config_map(
    client: ConfigMapClient, container_name: str, version: str, namespace: str
) -> None:
    """Record ``version`` for ``container_name`` in the version config map."""
    with _mutex:
        log.info("Init version is [%s], osArch is [%s]", version, OS_ARCH)
        cm_name = VERSION_CONFIG_MAP_NAME

        try:
            client.get(namespace, cm_name)
        except NotFoundError:
            create_version_config_map(client, container_name, version, namespace, cm_name)
        except Exception as exc:
            raise RuntimeError(f"get configMap [{cm_name}] failed, error is [{exc}]") from exc

        while True:
            try:
                config_map = client.get(namespace, cm_name)
            except Exception as exc:
                raise RuntimeError(
                    f"get configMap [{cm_name}] failed, error is [{exc}]"
                ) from exc

            config_map.data = dict(config_map.data or {})
            config_map.data[container_name] = version
            try:
                client.update(config_map)
            except ConflictError:
                time.sleep(_CONFLICT_RETRY_SECONDS)
                continue
            except Exception as exc:
                raise RuntimeError(
                    f"update configMap [{cm_name}] failed, error is [{exc}]"
                ) from exc
            break


def create_version_config_map(
    client: ConfigMapClient, container_name: str, version: str, namespace: str, cm_name: str
) -> None:
    """Create the version config map; an existing one is left as it is."""
    config_map = ConfigMap(name=cm_name, namespace=namespace, data={container_name: version})
    try:
        client.create(config_map)
    except AlreadyExistsError:
        pass
    except Exception as exc:
        raise RuntimeError(f"create configMap [{cm_name}] failed, error is [{exc}]") from exc