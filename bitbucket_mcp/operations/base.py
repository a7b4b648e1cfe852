"""Building blocks for the operation table.

Each logical operation owns one binding per platform. A binding is a plain
function that turns an :class:`OperationCall` into a :class:`RequestPlan`;
the translator sends the plan and shapes the result. Bindings never do I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple
from urllib.parse import quote

from ..exceptions import InvalidArgumentsError
from ..platform_config import PlatformConfig, PlatformType

DEFAULT_PAGE_LIMIT = 25
DEFAULT_PAGE_START = 0

# Context modes for a binding.
CONTEXT_REQUIRED = "required"
CONTEXT_OPTIONAL = "optional"
CONTEXT_NONE = "none"


@dataclass(frozen=True)
class PlatformRequest:
    """One physical HTTP call, relative to the client's API base URL."""

    method: str
    path: str
    params: Optional[Dict[str, Any]] = None
    json_body: Any = None
    # Plain-text endpoints (diffs, raw files) are returned byte for byte.
    text: bool = False


@dataclass(frozen=True)
class RequestPlan:
    """The calls a binding needs and how to turn their results into one payload.

    ``requests`` are independent and sent concurrently; results keep request
    order. ``then`` receives those results and returns the next plan, for
    operations where one call depends on an earlier one. Without ``then``,
    ``message`` (a fixed confirmation) wins over ``combine``; with neither, a
    single result is returned as-is.
    """

    requests: Sequence[PlatformRequest] = ()
    combine: Optional[Callable[[List[Any]], Any]] = None
    message: Optional[str] = None
    then: Optional[Callable[[List[Any]], "RequestPlan"]] = None


def single(
    method: str,
    path: str,
    *,
    params: Optional[Dict[str, Any]] = None,
    json_body: Any = None,
    text: bool = False,
    message: Optional[str] = None,
    combine: Optional[Callable[[List[Any]], Any]] = None,
) -> RequestPlan:
    request = PlatformRequest(method, path, params=params, json_body=json_body, text=text)
    return RequestPlan(requests=(request,), message=message, combine=combine)


def static(payload: Any) -> RequestPlan:
    """A plan that answers without calling upstream."""

    return RequestPlan(combine=lambda _results: payload)


def compact(mapping: Mapping[str, Any]) -> Dict[str, Any]:
    """Drop ``None`` values so optional fields are omitted from bodies and queries."""

    return {k: v for k, v in mapping.items() if v is not None}


def segment(value: Any) -> str:
    return quote(str(value), safe="")


def path_segment(value: Any) -> str:
    """Quote a value that may legitimately contain ``/`` (file paths, branch names)."""

    return quote(str(value).strip("/"), safe="/")


@dataclass(frozen=True)
class OperationCall:
    """A single invocation, with its context already resolved."""

    operation: str
    args: Mapping[str, Any]
    config: PlatformConfig
    context: Optional[str] = None

    @property
    def platform_type(self) -> PlatformType:
        return self.config.platform_type

    @property
    def is_cloud(self) -> bool:
        return self.config.is_cloud

    @property
    def context_key(self) -> str:
        return self.config.context_key

    @property
    def api_base_url(self) -> str:
        return self.config.api_base_url

    def arg(self, name: str, default: Any = None) -> Any:
        value = self.args.get(name)
        return default if value is None else value

    @property
    def repository(self) -> str:
        return str(self.args["repository"])

    def repo_path(self, *parts: str) -> str:
        """``/repositories/{ws}/{repo}/...`` on cloud, ``/projects/{key}/repos/{repo}/...`` otherwise.

        ``parts`` are appended verbatim; quote user values before passing them.
        """

        if self.is_cloud:
            base = f"/repositories/{segment(self.context)}/{segment(self.repository)}"
        else:
            base = f"/projects/{segment(self.context)}/repos/{segment(self.repository)}"
        return "/".join([base, *parts]) if parts else base

    def page(self) -> Tuple[int, int]:
        limit = self.arg("limit", DEFAULT_PAGE_LIMIT)
        start = self.arg("start", DEFAULT_PAGE_START)
        if limit <= 0:
            raise InvalidArgumentsError(self.operation, "limit must be greater than 0", fields=["limit"])
        if start < 0:
            raise InvalidArgumentsError(self.operation, "start must not be negative", fields=["start"])
        return limit, start

    def page_params(self) -> Dict[str, int]:
        """Translate logical ``limit``/``start`` into the platform's pagination query."""

        limit, start = self.page()
        if self.is_cloud:
            return {"pagelen": limit, "page": start // limit + 1}
        return {"limit": limit, "start": start}


Builder = Callable[[OperationCall], RequestPlan]


@dataclass(frozen=True)
class PlatformBinding:
    build: Builder
    context: str = CONTEXT_REQUIRED


@dataclass(frozen=True)
class Operation:
    name: str
    description: str
    properties: Mapping[str, Any] = field(default_factory=dict)
    required: Tuple[str, ...] = ()
    cloud: Optional[PlatformBinding] = None
    server: Optional[PlatformBinding] = None
    read_only: bool = False

    def binding_for(self, platform_type: PlatformType) -> Optional[PlatformBinding]:
        return self.cloud if platform_type.is_cloud else self.server

    def platforms(self) -> List[PlatformType]:
        out: List[PlatformType] = []
        if self.cloud is not None:
            out.append(PlatformType.CLOUD)
        if self.server is not None:
            out.extend([PlatformType.SERVER, PlatformType.DATACENTER])
        return out

    def input_schema(self, platform_type: Optional[PlatformType] = None) -> Dict[str, Any]:
        """JSON schema for the tool's arguments.

        With a platform, only that platform's context key is listed. Without
        one, both keys are listed wherever a binding takes a context.
        """

        properties: Dict[str, Any] = {}
        if platform_type is None:
            if self.cloud is not None and self.cloud.context != CONTEXT_NONE:
                properties["workspace"] = dict(_CONTEXT_PROPERTIES["workspace"])
            if self.server is not None and self.server.context != CONTEXT_NONE:
                properties["project"] = dict(_CONTEXT_PROPERTIES["project"])
        else:
            binding = self.binding_for(platform_type)
            if binding is not None and binding.context != CONTEXT_NONE:
                key = "workspace" if platform_type.is_cloud else "project"
                properties[key] = dict(_CONTEXT_PROPERTIES[key])
        properties.update(self.properties)

        schema: Dict[str, Any] = {"type": "object", "properties": properties}
        if self.required:
            schema["required"] = list(self.required)
        return schema


_CONTEXT_PROPERTIES: Dict[str, Dict[str, Any]] = {
    "workspace": {
        "type": "string",
        "description": "Bitbucket Cloud workspace (defaults to BITBUCKET_DEFAULT_PROJECT)",
    },
    "project": {
        "type": "string",
        "description": "Bitbucket Server/Data Center project key (defaults to BITBUCKET_DEFAULT_PROJECT)",
    },
}

# Shared schema fragments.
REPOSITORY = {"repository": {"type": "string", "description": "Repository slug"}}
PAGINATION = {
    "limit": {"type": "integer", "minimum": 1, "description": "Page size (default 25)"},
    "start": {"type": "integer", "minimum": 0, "description": "Zero-based offset (default 0)"},
}


__all__ = [
    "CONTEXT_NONE",
    "CONTEXT_OPTIONAL",
    "CONTEXT_REQUIRED",
    "DEFAULT_PAGE_LIMIT",
    "DEFAULT_PAGE_START",
    "Operation",
    "OperationCall",
    "PAGINATION",
    "PlatformBinding",
    "PlatformRequest",
    "REPOSITORY",
    "RequestPlan",
    "compact",
    "path_segment",
    "segment",
    "single",
    "static",
]
