"""Dispatch a logical operation to the configured Bitbucket platform.

:class:`OperationTranslator` is the single entry point the MCP server calls:
``await translator.execute(name, args)`` validates the call, sends the
platform-specific request(s) and returns the uniform result envelope::

    {"content": [{"type": "text", "text": "..."}]}

Validation failures are raised before any request is sent. Upstream
failures are raised as classified :class:`~bitbucket_mcp.exceptions.ApiError`
subclasses. Nothing is retried.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import Any, Dict, List, Mapping, Optional, Tuple

import httpx
import jsonschema

from .config import BASE_LOGGER
from .error_classifier import classify
from .exceptions import InvalidArgumentsError, MissingContextError, UnsupportedOperationError
from .operations import OPERATIONS
from .operations.base import (
    CONTEXT_NONE,
    CONTEXT_REQUIRED,
    Operation,
    OperationCall,
    PlatformBinding,
    PlatformRequest,
    RequestPlan,
)
from .platform_config import PlatformConfig
from .tool_logging import _record_bitbucket_request


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def _response_text(response: httpx.Response) -> str:
    """Decode a plain-text body without replacing undecodable bytes.

    A declared charset is honored. Without one, UTF-8 is tried first and
    latin-1 is the fallback, which maps every byte to one character.
    """

    if response.charset_encoding:
        return response.text
    try:
        return response.content.decode("utf-8")
    except UnicodeDecodeError:
        return response.content.decode("latin-1")


def envelope(payload: Any) -> Dict[str, Any]:
    """Wrap a payload as a single text content item.

    Strings (diffs, raw files, confirmations) pass through untouched; anything
    else is re-serialized as indented JSON.
    """

    if isinstance(payload, str):
        text = payload
    else:
        text = json.dumps(payload, indent=2, ensure_ascii=False)
    return {"content": [{"type": "text", "text": text}]}


class OperationTranslator:
    def __init__(
        self,
        config: PlatformConfig,
        client: httpx.AsyncClient,
        *,
        operations: Optional[Mapping[str, Operation]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._config = config
        self._client = client
        self._operations = OPERATIONS if operations is None else operations
        self._logger = logger or BASE_LOGGER

    @property
    def config(self) -> PlatformConfig:
        return self._config

    def operations(self) -> List[Operation]:
        return list(self._operations.values())

    def prepare(
        self,
        operation_name: str,
        raw_args: Optional[Mapping[str, Any]] = None,
    ) -> Tuple[PlatformBinding, OperationCall]:
        """Validate an invocation without sending anything upstream."""

        config = self._config
        op = self._operations.get(operation_name)
        if op is None:
            raise UnsupportedOperationError(operation_name)

        binding = op.binding_for(config.platform_type)
        if binding is None:
            raise UnsupportedOperationError(operation_name, config.platform_type.label)

        args = {k: v for k, v in (raw_args or {}).items() if v is not None}

        context: Optional[str] = None
        if binding.context != CONTEXT_NONE:
            supplied = args.get(config.context_key)
            context = supplied.strip() if isinstance(supplied, str) and supplied.strip() else None
            context = context or config.default_context
            if context is None and binding.context == CONTEXT_REQUIRED:
                raise MissingContextError(operation_name, config.context_key, config.platform_type.label)

        missing = [name for name in op.required if _is_missing(args.get(name))]
        if missing:
            raise InvalidArgumentsError(
                operation_name,
                f"missing required field(s): {', '.join(missing)}",
                fields=missing,
            )

        self._validate_types(op, args)

        call = OperationCall(operation=operation_name, args=args, config=config, context=context)
        return binding, call

    def _validate_types(self, op: Operation, args: Mapping[str, Any]) -> None:
        schema = op.input_schema(self._config.platform_type)
        schema.pop("required", None)
        validator_cls = jsonschema.validators.validator_for(schema)
        validator = validator_cls(schema)
        errors = sorted(validator.iter_errors(dict(args)), key=lambda e: list(e.absolute_path))
        if not errors:
            return

        fields: List[str] = []
        messages: List[str] = []
        for err in errors:
            field = ".".join(str(p) for p in err.absolute_path) or "<root>"
            if field not in fields:
                fields.append(field)
            messages.append(f"{field}: {err.message}")
        raise InvalidArgumentsError(op.name, "; ".join(messages), fields=fields)

    async def execute(
        self,
        operation_name: str,
        raw_args: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        binding, call = self.prepare(operation_name, raw_args)
        plan = binding.build(call)
        self._logger.detailed(  # type: ignore[attr-defined]
            "Executing %s on Bitbucket %s (%s=%s)",
            operation_name,
            call.platform_type.label,
            call.context_key,
            call.context,
        )
        payload = await self._run_plan(call, plan)
        return envelope(payload)

    async def _run_plan(self, call: OperationCall, plan: RequestPlan) -> Any:
        results = list(await asyncio.gather(*(self._send(req) for req in plan.requests)))
        if plan.then is not None:
            return await self._run_plan(call, plan.then(results))
        if plan.message is not None:
            return plan.message
        if plan.combine is not None:
            return plan.combine(results)
        if len(results) == 1:
            return results[0]
        return results

    async def _send(self, request: PlatformRequest) -> Any:
        kwargs: Dict[str, Any] = {}
        if request.params:
            kwargs["params"] = request.params
        if request.json_body is not None:
            kwargs["json"] = request.json_body
        if request.text:
            kwargs["headers"] = {"Accept": "text/plain"}

        started = time.perf_counter()
        try:
            response = await self._client.request(request.method, request.path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            classify(exc, self._config, logger=self._logger)
        except httpx.RequestError as exc:
            # No response arrived, so the client's response hook never ran.
            _record_bitbucket_request(
                status_code=None,
                duration_ms=int((time.perf_counter() - started) * 1000),
                error=True,
                method=request.method,
                url=f"{self._config.api_base_url}{request.path}",
                exc=exc,
            )
            classify(exc, self._config, logger=self._logger)

        if request.text:
            return _response_text(response)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    async def aclose(self) -> None:
        await self._client.aclose()


__all__ = ["OperationTranslator", "envelope"]
