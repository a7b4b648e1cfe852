"""The operation table: every logical operation with its per-platform bindings."""

from __future__ import annotations

from typing import Dict, List

from . import (
    branches,
    build_status,
    commits,
    diffs,
    files,
    issues,
    keys,
    permissions,
    pipelines,
    pull_requests,
    repositories,
    search,
    tags,
    users,
    watchers,
    webhooks,
)
from .base import Operation, OperationCall, PlatformBinding, PlatformRequest, RequestPlan

_MODULES = (
    repositories,
    pull_requests,
    branches,
    commits,
    issues,
    webhooks,
    keys,
    tags,
    watchers,
    users,
    search,
    permissions,
    diffs,
    pipelines,
    build_status,
    files,
)


def _build_registry() -> Dict[str, Operation]:
    registry: Dict[str, Operation] = {}
    for module in _MODULES:
        for op in module.OPERATIONS:
            if op.name in registry:
                raise RuntimeError(f"Duplicate operation name: {op.name}")
            registry[op.name] = op
    return registry


OPERATIONS: Dict[str, Operation] = _build_registry()


def list_operations() -> List[Operation]:
    return list(OPERATIONS.values())


__all__ = [
    "OPERATIONS",
    "Operation",
    "OperationCall",
    "PlatformBinding",
    "PlatformRequest",
    "RequestPlan",
    "list_operations",
]
