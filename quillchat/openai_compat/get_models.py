"""Model listing for OpenAI-compatible providers.

``GET {base_url}/v1/models`` and return the non-empty string ids found under
``data``. An empty base URL yields an empty list without any I/O.
"""

from __future__ import annotations

from typing import Any, List, Optional

import httpx

from ..base.errors import CompletionError, CompletionMode, ErrorCode, classify_exception
from ..config.defaults import MODELS_PATH
from .helpers import bearer_headers, join_url

MODELS_FAILURE_MESSAGE = "Failed to fetch models."


def parse_model_ids(payload: Any) -> List[str]:
    """Extract model ids from a ``{"data": [{"id": ...}]}`` payload."""
    if not isinstance(payload, dict):
        return []
    data = payload.get("data")
    if not isinstance(data, list):
        return []
    ids: List[str] = []
    for item in data:
        model_id = item.get("id") if isinstance(item, dict) else None
        if isinstance(model_id, str) and model_id:
            ids.append(model_id)
    return ids


async def list_models(
    client: httpx.AsyncClient,
    base_url: str,
    api_key: Optional[str] = None,
) -> List[str]:
    """Return the model ids advertised by the provider.

    Raises:
        CompletionError: ``UPSTREAM_HTTP`` on a non-2xx status (message is the
            body text or the reason phrase), ``TRANSPORT``/``TIMEOUT`` when the
            provider cannot be reached, ``MALFORMED_FRAME`` on a non-JSON body.
    """
    if not base_url:
        return []
    try:
        response = await client.get(join_url(base_url, MODELS_PATH), headers=bearer_headers(api_key))
    except httpx.HTTPError as exc:
        raise CompletionError(
            str(exc) or MODELS_FAILURE_MESSAGE,
            CompletionMode.DIRECT,
            code=classify_exception(exc),
            raw=exc,
        ) from exc

    if not response.is_success:
        text = response.text
        raise CompletionError(
            text or response.reason_phrase or MODELS_FAILURE_MESSAGE,
            CompletionMode.DIRECT,
            code=ErrorCode.UPSTREAM_HTTP,
            status=response.status_code,
            detail=text or None,
        )
    try:
        payload = response.json()
    except ValueError as exc:
        raise CompletionError(
            "Model listing response was not valid JSON.",
            CompletionMode.DIRECT,
            code=ErrorCode.MALFORMED_FRAME,
            status=response.status_code,
            detail=response.text,
            raw=exc,
        ) from exc
    return parse_model_ids(payload)


__all__ = ["list_models", "parse_model_ids"]
