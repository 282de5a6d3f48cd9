"""
Resource names for the API registry hierarchy.

Every registry resource lives under a project:

    projects/{p}/locations/global/apis/{a}/versions/{v}/specs/{s}[@rev]
    projects/{p}/locations/global/apis/{a}/deployments/{d}[@rev]

Artifacts may hang off any of those levels. Identifiers match
``[a-z0-9-.]+``, so ``-`` is accepted everywhere as a wildcard id.
A name that stops at a collection keyword (``.../apis``) is a collection.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable

from ..errors import PatternError

LOCATION = "global"
WILDCARD = "-"

_ID = r"[a-z0-9.-]+"
_REV = r"[a-z0-9-]+"


class ResourceKind(str, Enum):
    PROJECT = "project"
    API = "api"
    VERSION = "version"
    SPEC = "spec"
    DEPLOYMENT = "deployment"
    ARTIFACT = "artifact"


@dataclass(frozen=True)
class ResourceName:
    """A parsed registry name, discriminated by ``kind``.

    Ids below the kind's own level are always empty. For artifacts,
    ``parent_kind`` records which level the artifact is attached to.
    """

    kind: ResourceKind
    project_id: str = ""
    api_id: str = ""
    version_id: str = ""
    spec_id: str = ""
    deployment_id: str = ""
    artifact_id: str = ""
    revision_id: str = ""
    parent_kind: ResourceKind | None = None
    collection: bool = False

    # --- rendering --------------------------------------------------------

    def _project_prefix(self) -> str:
        return f"projects/{self.project_id}/locations/{LOCATION}"

    def _api_str(self) -> str:
        return f"{self._project_prefix()}/apis/{self.api_id}"

    def _version_str(self) -> str:
        return f"{self._api_str()}/versions/{self.version_id}"

    def _spec_str(self) -> str:
        s = f"{self._version_str()}/specs/{self.spec_id}"
        return f"{s}@{self.revision_id}" if self.revision_id else s

    def _deployment_str(self) -> str:
        s = f"{self._api_str()}/deployments/{self.deployment_id}"
        return f"{s}@{self.revision_id}" if self.revision_id else s

    def _owner_str(self, kind: ResourceKind) -> str:
        if kind == ResourceKind.PROJECT:
            return self._project_prefix()
        if kind == ResourceKind.API:
            return self._api_str()
        if kind == ResourceKind.VERSION:
            return self._version_str()
        if kind == ResourceKind.SPEC:
            return self._spec_str()
        return self._deployment_str()

    def __str__(self) -> str:
        k = self.kind
        if k == ResourceKind.PROJECT:
            return "projects" if self.collection else f"projects/{self.project_id}"
        if self.collection:
            if k == ResourceKind.API:
                return f"{self._project_prefix()}/apis"
            if k == ResourceKind.VERSION:
                return f"{self._api_str()}/versions"
            if k == ResourceKind.SPEC:
                return f"{self._version_str()}/specs"
            if k == ResourceKind.DEPLOYMENT:
                return f"{self._api_str()}/deployments"
            return f"{self._owner_str(self.parent_kind or ResourceKind.PROJECT)}/artifacts"
        if k == ResourceKind.API:
            return self._api_str()
        if k == ResourceKind.VERSION:
            return self._version_str()
        if k == ResourceKind.SPEC:
            return self._spec_str()
        if k == ResourceKind.DEPLOYMENT:
            return self._deployment_str()
        return f"{self._owner_str(self.parent_kind or ResourceKind.PROJECT)}/artifacts/{self.artifact_id}"

    # --- hierarchy --------------------------------------------------------

    def parent(self) -> ResourceName | None:
        """Return the resource one level up, or None for projects."""
        k = self.kind
        if k == ResourceKind.PROJECT:
            return None
        if k == ResourceKind.API:
            return ResourceName(ResourceKind.PROJECT, project_id=self.project_id)
        if k == ResourceKind.VERSION:
            return ResourceName(ResourceKind.API, project_id=self.project_id, api_id=self.api_id)
        if k == ResourceKind.SPEC:
            return ResourceName(
                ResourceKind.VERSION,
                project_id=self.project_id,
                api_id=self.api_id,
                version_id=self.version_id,
            )
        if k == ResourceKind.DEPLOYMENT:
            return ResourceName(ResourceKind.API, project_id=self.project_id, api_id=self.api_id)
        return replace(self, kind=self.parent_kind or ResourceKind.PROJECT, artifact_id="", parent_kind=None, collection=False)

    def _has_level(self, level: ResourceKind) -> bool:
        """Whether this name has ``level`` as itself or an ancestor."""
        k = self.kind
        if k == ResourceKind.ARTIFACT:
            k = self.parent_kind or ResourceKind.PROJECT
            if level == ResourceKind.ARTIFACT:
                return True
        if level == k:
            return True
        if level == ResourceKind.API:
            return k in (ResourceKind.VERSION, ResourceKind.SPEC, ResourceKind.DEPLOYMENT)
        if level == ResourceKind.VERSION:
            return k == ResourceKind.SPEC
        return False

    def project(self) -> str:
        if not self.project_id:
            return ""
        return f"projects/{self.project_id}"

    def api(self) -> str:
        if not self._has_level(ResourceKind.API):
            return ""
        return str(self) if self.kind == ResourceKind.API else self._api_str()

    def version(self) -> str:
        if not self._has_level(ResourceKind.VERSION):
            return ""
        return str(self) if self.kind == ResourceKind.VERSION else self._version_str()

    def spec(self) -> str:
        if not self._has_level(ResourceKind.SPEC):
            return ""
        return str(self) if self.kind == ResourceKind.SPEC else self._spec_str()

    def deployment(self) -> str:
        if not self._has_level(ResourceKind.DEPLOYMENT):
            return ""
        return str(self) if self.kind == ResourceKind.DEPLOYMENT else self._deployment_str()

    def artifact(self) -> str:
        return str(self) if self.kind == ResourceKind.ARTIFACT else ""

    def ids(self) -> list[str]:
        """Ids from the project down to this resource, in order."""
        out = [self.project_id]
        owner = (self.parent_kind or ResourceKind.PROJECT) if self.kind == ResourceKind.ARTIFACT else self.kind
        if owner != ResourceKind.PROJECT:
            out.append(self.api_id)
        if owner in (ResourceKind.VERSION, ResourceKind.SPEC):
            out.append(self.version_id)
        if owner == ResourceKind.SPEC:
            out.append(self.spec_id)
        if owner == ResourceKind.DEPLOYMENT:
            out.append(self.deployment_id)
        if self.kind == ResourceKind.ARTIFACT:
            out.append(self.artifact_id)
        return out

    def is_pattern(self) -> bool:
        """True if any id or the revision is a wildcard."""
        return self.collection or WILDCARD in self.ids() or self.revision_id == WILDCARD


# --- parsing --------------------------------------------------------------

_P = rf"projects/(?P<project>{_ID})/locations/{LOCATION}"
_A = _P + rf"/apis/(?P<api>{_ID})"
_V = _A + rf"/versions/(?P<version>{_ID})"
_S = _V + rf"/specs/(?P<spec>{_ID})(?:@(?P<revision>{_REV}))?"
_D = _A + rf"/deployments/(?P<deployment>{_ID})(?:@(?P<revision>{_REV}))?"

_OWNER_FORMS = {
    ResourceKind.PROJECT: _P,
    ResourceKind.API: _A,
    ResourceKind.VERSION: _V,
    ResourceKind.SPEC: _S,
    ResourceKind.DEPLOYMENT: _D,
}

_NAME_FORMS: dict[ResourceKind, list[tuple[re.Pattern[str], ResourceKind | None]]] = {
    ResourceKind.PROJECT: [
        (re.compile(rf"^projects/(?P<project>{_ID})$"), None),
        (re.compile(rf"^{_P}$"), None),
    ],
    ResourceKind.API: [(re.compile(rf"^{_A}$"), None)],
    ResourceKind.VERSION: [(re.compile(rf"^{_V}$"), None)],
    ResourceKind.SPEC: [(re.compile(rf"^{_S}$"), None)],
    ResourceKind.DEPLOYMENT: [(re.compile(rf"^{_D}$"), None)],
    ResourceKind.ARTIFACT: [
        (re.compile(rf"^{form}/artifacts/(?P<artifact>{_ID})$"), owner) for owner, form in _OWNER_FORMS.items()
    ],
}

_COLLECTION_FORMS: dict[ResourceKind, list[tuple[re.Pattern[str], ResourceKind | None]]] = {
    ResourceKind.PROJECT: [(re.compile(r"^projects$"), None)],
    ResourceKind.API: [(re.compile(rf"^{_P}/apis$"), None)],
    ResourceKind.VERSION: [(re.compile(rf"^{_A}/versions$"), None)],
    ResourceKind.SPEC: [(re.compile(rf"^{_V}/specs$"), None)],
    ResourceKind.DEPLOYMENT: [(re.compile(rf"^{_A}/deployments$"), None)],
    ResourceKind.ARTIFACT: [(re.compile(rf"^{form}/artifacts$"), owner) for owner, form in _OWNER_FORMS.items()],
}


def _build(kind: ResourceKind, m: re.Match[str], owner: ResourceKind | None, collection: bool) -> ResourceName:
    groups = {k: (v or "") for k, v in m.groupdict().items()}
    return ResourceName(
        kind=kind,
        project_id=groups.get("project", ""),
        api_id=groups.get("api", ""),
        version_id=groups.get("version", ""),
        spec_id=groups.get("spec", ""),
        deployment_id=groups.get("deployment", ""),
        artifact_id=groups.get("artifact", ""),
        revision_id=groups.get("revision", ""),
        parent_kind=owner,
        collection=collection,
    )


def _parse(name: str, kind: ResourceKind, *, collection: bool) -> ResourceName:
    forms = (_COLLECTION_FORMS if collection else _NAME_FORMS)[kind]
    for regex, owner in forms:
        m = regex.match(name)
        if m:
            return _build(kind, m, owner, collection)
    what = f"{kind.value} collection" if collection else kind.value
    raise PatternError(f"invalid {what} name {name!r}")


def _parser(kind: ResourceKind, collection: bool) -> Callable[[str], ResourceName]:
    def parse(name: str) -> ResourceName:
        return _parse(name, kind, collection=collection)

    parse.__name__ = f"parse_{kind.value}{'_collection' if collection else ''}"
    return parse


parse_project = _parser(ResourceKind.PROJECT, False)
parse_api = _parser(ResourceKind.API, False)
parse_version = _parser(ResourceKind.VERSION, False)
parse_spec = _parser(ResourceKind.SPEC, False)
parse_deployment = _parser(ResourceKind.DEPLOYMENT, False)
parse_artifact = _parser(ResourceKind.ARTIFACT, False)

parse_project_collection = _parser(ResourceKind.PROJECT, True)
parse_api_collection = _parser(ResourceKind.API, True)
parse_version_collection = _parser(ResourceKind.VERSION, True)
parse_spec_collection = _parser(ResourceKind.SPEC, True)
parse_deployment_collection = _parser(ResourceKind.DEPLOYMENT, True)
parse_artifact_collection = _parser(ResourceKind.ARTIFACT, True)


def parse_name(name: str) -> ResourceName:
    """Parse an exact (non-collection) name of any kind."""
    for kind in ResourceKind:
        try:
            return _parse(name, kind, collection=False)
        except PatternError:
            continue
    raise PatternError(f"invalid resource name {name!r}")


def parse_collection(name: str) -> ResourceName:
    """Parse a collection name of any kind."""
    for kind in ResourceKind:
        try:
            return _parse(name, kind, collection=True)
        except PatternError:
            continue
    raise PatternError(f"invalid collection name {name!r}")
