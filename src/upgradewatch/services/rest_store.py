"""Object store backed by the cluster's REST API.

Maps object kinds to API paths and converts between JSON manifests and
TrackedObject snapshots. Each call is a single request: there is no
request-level retry, retries only happen through the pollers' tick loop.
"""

from dataclasses import dataclass
from typing import Any

import requests
from loguru import logger

from upgradewatch.core.objects import Condition, TrackedObject
from upgradewatch.exceptions import ObjectNotFoundError, ObjectStoreError


@dataclass(frozen=True)
class KindInfo:
    """API location of one object kind."""

    group: str
    version: str
    plural: str

    @property
    def api_version(self) -> str:
        return f"{self.group}/{self.version}" if self.group else self.version

    def collection_path(self, namespace: str) -> str:
        prefix = f"/apis/{self.group}/{self.version}" if self.group else "/api/v1"
        return f"{prefix}/namespaces/{namespace}/{self.plural}"


HARVESTER_GROUP = "harvesterhci.io"
RANCHER_MANAGEMENT_GROUP = "management.cattle.io"

DEFAULT_KINDS: dict[str, KindInfo] = {
    "VirtualMachineImage": KindInfo(HARVESTER_GROUP, "v1beta1", "virtualmachineimages"),
    "Upgrade": KindInfo(HARVESTER_GROUP, "v1beta1", "upgrades"),
    "Version": KindInfo(HARVESTER_GROUP, "v1beta1", "versions"),
    "ManagedChart": KindInfo(RANCHER_MANAGEMENT_GROUP, "v3", "managedcharts"),
}


def object_from_manifest(kind: str, manifest: dict[str, Any]) -> TrackedObject:
    """Convert a JSON manifest into a TrackedObject snapshot."""
    metadata = manifest.get("metadata") or {}
    status = manifest.get("status") or {}
    conditions = tuple(
        Condition.from_dict(c) for c in status.get("conditions") or []
    )
    return TrackedObject(
        kind=manifest.get("kind") or kind,
        namespace=metadata.get("namespace", ""),
        name=metadata.get("name", ""),
        generate_name=metadata.get("generateName", ""),
        labels=dict(metadata.get("labels") or {}),
        spec=dict(manifest.get("spec") or {}),
        conditions=conditions,
    )


def manifest_from_object(obj: TrackedObject, info: KindInfo) -> dict[str, Any]:
    """Build the JSON body used to create ``obj``."""
    metadata: dict[str, Any] = {"namespace": obj.namespace}
    if obj.name:
        metadata["name"] = obj.name
    else:
        metadata["generateName"] = obj.generate_name
    if obj.labels:
        metadata["labels"] = dict(obj.labels)
    return {
        "apiVersion": info.api_version,
        "kind": obj.kind,
        "metadata": metadata,
        "spec": dict(obj.spec),
    }


class RestObjectStore:
    """ObjectStoreProtocol implementation over HTTP using requests."""

    DEFAULT_TIMEOUT: float = 30.0

    def __init__(
        self,
        server: str,
        token: str | None = None,
        verify: bool | str = True,
        kinds: dict[str, KindInfo] | None = None,
        session: requests.Session | None = None,
        request_timeout: float = DEFAULT_TIMEOUT,
    ):
        """
        Args:
            server: API server base URL, e.g. https://10.10.0.10:6443
            token: Bearer token for authentication
            verify: TLS verification flag or path to a CA bundle
            kinds: Kind to API path mapping; defaults to DEFAULT_KINDS
            session: Optional preconfigured requests session
            request_timeout: Per-request timeout in seconds
        """
        self._server = server.rstrip("/")
        self._kinds = dict(kinds or DEFAULT_KINDS)
        self._request_timeout = request_timeout
        self._session = session or requests.Session()
        self._session.verify = verify
        self._session.headers["Accept"] = "application/json"
        if token:
            self._session.headers["Authorization"] = f"Bearer {token}"

    def _kind_info(self, kind: str) -> KindInfo:
        try:
            return self._kinds[kind]
        except KeyError:
            raise ObjectStoreError(f"Unknown object kind: {kind}") from None

    def _request(self, method: str, path: str, **kwargs) -> dict[str, Any]:
        url = f"{self._server}{path}"
        logger.debug(f"{method} {url}")
        try:
            response = self._session.request(
                method, url, timeout=self._request_timeout, **kwargs
            )
        except requests.RequestException as e:
            raise ObjectStoreError(f"{method} {path} failed: {e}") from e

        if response.status_code == 404:
            raise ObjectNotFoundError(self._error_message(response))
        if response.status_code >= 400:
            raise ObjectStoreError(
                f"{method} {path} returned {response.status_code}: "
                f"{self._error_message(response)}"
            )

        try:
            body = response.json()
        except ValueError as e:
            raise ObjectStoreError(f"{method} {path} returned invalid JSON") from e
        if not isinstance(body, dict):
            raise ObjectStoreError(
                f"{method} {path} returned {type(body).__name__}, expected an object"
            )
        return body

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or response.reason or ""
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return response.text

    def get(self, kind: str, namespace: str, name: str) -> TrackedObject:
        info = self._kind_info(kind)
        manifest = self._request("GET", f"{info.collection_path(namespace)}/{name}")
        return object_from_manifest(kind, manifest)

    def list(self, kind: str, namespace: str) -> list[TrackedObject]:
        info = self._kind_info(kind)
        path = info.collection_path(namespace)
        items = self._request("GET", path).get("items") or []
        if not isinstance(items, list) or not all(isinstance(i, dict) for i in items):
            raise ObjectStoreError(f"GET {path} returned malformed items")
        return [object_from_manifest(kind, item) for item in items]

    def create(self, obj: TrackedObject) -> TrackedObject:
        info = self._kind_info(obj.kind)
        manifest = self._request(
            "POST",
            info.collection_path(obj.namespace),
            json=manifest_from_object(obj, info),
        )
        return object_from_manifest(obj.kind, manifest)
