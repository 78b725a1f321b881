"""Response body formatting.

Two forms are produced from a ResultRecord:
- plain: the resolved id followed by a newline (text/plain)
- extended: a JSON object with the resolved id and diagnostic metadata

Zero framework dependencies; the HTTP adapter wraps these in responses.
"""

from typing import Any

from fastapi_handler_scopes.core.context import ResultRecord

PLAIN_MEDIA_TYPE = "text/plain"
JSON_MEDIA_TYPE = "application/json"


def render_plain(record: ResultRecord) -> str:
    """Render the plain body: the resolved id and a trailing newline.

    Examples:
        resolved_id "42" -> "42\\n"
    """
    return f"{record.resolved_id}\n"


def render_extended(record: ResultRecord) -> dict[str, Any]:
    """Render the extended JSON body.

    Args:
        record: The record to render.

    Returns:
        JSON-serializable dict. "id" is the resolved id, which differs from
        "requestedId" when the call observed another call's state.
    """
    return {
        "id": record.resolved_id,
        "requestedId": record.requested_id,
        "timeoutMs": record.delay_ms,
        "strategyName": record.strategy_name,
        "disciplineName": record.discipline_name,
        "scope": record.scope_name,
        "timestampMs": record.timestamp_ms,
        "handlerIdentity": record.handler_identity,
        "worker": record.worker_name,
    }


def wants_extended(accept: str | None, extended_flag: bool = False) -> bool:
    """Decide whether the caller asked for the extended form.

    The extended form is chosen when the explicit flag is set, or when the
    Accept header lists application/json. Wildcards ("*/*") keep the plain
    form.

    Examples:
        wants_extended(None) -> False
        wants_extended("*/*") -> False
        wants_extended("application/json") -> True
        wants_extended("text/html, application/json;q=0.9") -> True
        wants_extended("*/*", extended_flag=True) -> True
    """
    if extended_flag:
        return True
    if not accept:
        return False

    for part in accept.split(","):
        media_type = part.split(";", 1)[0].strip().lower()
        if media_type == JSON_MEDIA_TYPE:
            return True
    return False
