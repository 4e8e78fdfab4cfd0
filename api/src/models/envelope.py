"""Uniform success/fail response wrapper returned by the tour controller."""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from api.src.errors import serialize_error

SUCCESS = "success"
FAIL = "fail"


@dataclass(frozen=True)
class ResponseEnvelope:
    """
    Response body for one request.

    A failed envelope keeps the raw error object in ``message``; it is only
    turned into a JSON-compatible form by ``to_dict``.
    """

    status: str
    data: Any = None
    message: Any = None
    results: Optional[int] = None

    @classmethod
    def success(cls, data: Any, results: Optional[int] = None) -> "ResponseEnvelope":
        return cls(status=SUCCESS, data=data, results=results)

    @classmethod
    def fail(cls, error: Any) -> "ResponseEnvelope":
        return cls(status=FAIL, message=error)

    def to_dict(self) -> Dict[str, Any]:
        if self.status == FAIL:
            return {"status": self.status, "message": serialize_error(self.message)}

        body: Dict[str, Any] = {"status": self.status}
        if self.results is not None:
            body["results"] = self.results
        body["data"] = self.data
        return body


@dataclass(frozen=True)
class ControllerResponse:
    """HTTP status code paired with the envelope to send."""

    status_code: int
    envelope: ResponseEnvelope
