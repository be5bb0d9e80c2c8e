"""
Request construction and response classification.

RequestBuilder turns an ActionRequest into a fully addressed, signed
PreparedRequest, and turns a raw (status, body) pair back into either a
result mapping or a ProtocolError/ParseError. It never performs I/O and
never retries.
"""
from __future__ import annotations

import re
from typing import Any, Callable, Dict, Mapping, Optional, Union

from .errors import ProtocolError
from .models import ActionRequest, PreparedRequest
from .responses import parse_structured_response
from .settings import Settings
from .signing import sign

__all__ = ["RequestBuilder"]

_XML_PROLOGUE = re.compile(rb"^<\?xml\s+")

Signer = Callable[..., Any]


class RequestBuilder:
    """
    Builds signed requests for one Settings instance.

    The signer is injectable so tests can pin the timestamp and nonce.
    """

    def __init__(self, settings: Settings, *, signer: Optional[Signer] = None):
        self.settings = settings
        self._sign = signer or sign

    def build_url(self, path: str) -> str:
        """
        Join scheme, host and path with exactly one slash between host and path.

        Examples:
            >>> RequestBuilder(Settings(host="ns.example.com", key_name="k", key="s")).build_url("/123/a/")
            'http://ns.example.com/123/a'
        """
        return f"{self.settings.scheme}://{self.settings.host}/{path.strip('/')}"

    def build(self, request: ActionRequest) -> PreparedRequest:
        auth = self._sign(request.target_path, request.query_fields(), self.settings)
        headers: Dict[str, str] = auth.as_headers()
        headers.update(request.headers)
        return PreparedRequest(
            url=self.build_url(request.target_path),
            method=request.method,
            headers=headers,
        )

    def classify(self, status_code: int, body: Union[bytes, str, None]) -> Mapping[str, Any]:
        """
        Map a response onto a result.

        Args:
            status_code: HTTP status of the response
            body: Raw response body (may be empty)

        Returns:
            {"status": status_code} for non-XML bodies, otherwise the parsed
            XML mapping

        Raises:
            ProtocolError: If status_code >= 300
            ParseError: If an XML body is malformed
        """
        if isinstance(body, str):
            body = body.encode("utf-8")
        body = body or b""

        if status_code >= 300:
            message = f"The server sent us the {status_code} code"
            text = body.decode("utf-8", errors="replace") if body else None
            if self.settings.verbose and text:
                message += f". Body: {text}"
            raise ProtocolError(message, status=status_code, body=text)

        if not _XML_PROLOGUE.match(body):
            return {"status": status_code}

        return parse_structured_response(body)
