"""Per-request context: correlation id and timing."""
import time
import uuid
from dataclasses import dataclass, field
from typing import Optional

REQUEST_ID_HEADER = "X-Request-ID"


@dataclass
class RequestContext:
    request_id: str
    started_at: float = field(default_factory=time.perf_counter)

    @classmethod
    def from_header(cls, header_value: Optional[str]) -> "RequestContext":
        # Accept a caller-supplied id only if it is short and printable.
        if header_value and len(header_value) <= 128 and header_value.isprintable():
            return cls(request_id=header_value)
        return cls(request_id=str(uuid.uuid4()))

    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self.started_at) * 1000
