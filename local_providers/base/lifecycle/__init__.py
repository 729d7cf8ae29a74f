"""Request lifecycle tracking (in-flight registry and its records)."""

from .in_flight_request import InFlightRequest
from .registry import RequestRegistry, new_request_id

__all__ = ["InFlightRequest", "RequestRegistry", "new_request_id"]
