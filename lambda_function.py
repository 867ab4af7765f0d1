"""AWS Lambda entrypoint.

Design goals:
- Keep this file small and stable.
- Delegate all real logic to src/designproxy so that:
  - The same codebase can be used from CLI and from Lambda.
  - Lambda glue only translates events to ProxyRequest and back.

Expected event shapes:
1) API Gateway REST (v1): {"httpMethod": "POST", "body": "{...}", "requestContext": {"identity": {"sourceIp": ...}}}
2) API Gateway HTTP (v2) / function URL: {"requestContext": {"http": {"method": "POST", "sourceIp": ...}}, "body": "..."}
3) Direct invoke / local test (event is the JSON dict, or {"body": "..."}):
   {"type": "design", "prompt": "a calm spa bathroom"}

Return:
- statusCode: mirrors the dispatcher's status
- body: JSON string of the success payload or {"error", "kind", "details"?}
"""
import base64
import binascii
import json
from typing import Any, Dict, Optional

from src.designproxy.dispatcher import Dispatcher
from src.designproxy.logging_util import get_logger
from src.designproxy.types import ProxyRequest, ProxyResponse

logger = get_logger(__name__)

_dispatcher: Optional[Dispatcher] = None

JSON_HEADERS = {"Content-Type": "application/json"}

def _get_dispatcher() -> Dispatcher:
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = Dispatcher()
    return _dispatcher

def _is_gateway_event(event: Dict[str, Any]) -> bool:
    return "httpMethod" in event or "requestContext" in event

def _method(event: Dict[str, Any]) -> str:
    if "httpMethod" in event:
        return str(event.get("httpMethod") or "")
    http = (event.get("requestContext") or {}).get("http") or {}
    return str(http.get("method") or "")

def _header(event: Dict[str, Any], name: str) -> str:
    headers = event.get("headers") or {}
    for k, v in headers.items():
        if k.lower() == name.lower():
            return str(v or "")
    return ""

def _client_id(event: Dict[str, Any]) -> str:
    ctx = event.get("requestContext") or {}
    ip = (ctx.get("identity") or {}).get("sourceIp") or (ctx.get("http") or {}).get("sourceIp")
    if ip:
        return str(ip)
    forwarded = _header(event, "X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return "unknown"

def _body(event: Dict[str, Any]) -> Any:
    body = event.get("body")
    if body and event.get("isBase64Encoded"):
        try:
            return base64.b64decode(body)
        except (binascii.Error, ValueError):
            # Left as-is; parsing reports it as an invalid request.
            return body
    return body

def to_proxy_request(event: Any, context: Any = None) -> ProxyRequest:
    request_id = getattr(context, "aws_request_id", None)
    if not isinstance(event, dict):
        # Direct invoke with a non-object payload; parsing rejects it as invalid.
        return ProxyRequest(method="POST", body=event, client_id="direct-invoke", request_id=request_id)
    if not _is_gateway_event(event):
        body = event.get("body", event)
        return ProxyRequest(method="POST", body=body, client_id="direct-invoke", request_id=request_id)
    return ProxyRequest(method=_method(event), body=_body(event), client_id=_client_id(event), request_id=request_id)

def to_lambda_response(resp: ProxyResponse) -> Dict[str, Any]:
    return {
        "statusCode": resp.status,
        "headers": dict(JSON_HEADERS),
        "body": json.dumps(resp.body, ensure_ascii=False),
    }

def lambda_handler(event: Any, context: Any):
    try:
        req = to_proxy_request({} if event is None else event, context)
        return to_lambda_response(_get_dispatcher().handle(req))

    except Exception as e:
        logger.exception("lambda_handler fatal error: %s", e)
        return to_lambda_response(ProxyResponse(500, {"error": "Server error", "kind": "ServerError"}))
