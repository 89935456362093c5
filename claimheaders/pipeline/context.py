"""
Per-request pipeline state.

PipelineContext holds:
- The outbound request being mutated
- The current state of the request state machine
- The extracted token and its decoded sections
- One outcome per processed claim mapping
- The terminal error and the forward/reject decision
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from typing import Any
from typing import TYPE_CHECKING

from claimheaders.models import DecodedCredential
from claimheaders.models import MappingOutcome
from claimheaders.models import Rejection

if TYPE_CHECKING:
    from mitmproxy import http

    from claimheaders.errors import ClaimHeadersError


class PipelineState(str, Enum):
    START = "start"
    TOKEN_EXTRACTED = "token_extracted"
    DECODED = "decoded"
    MAPPINGS_PROCESSED = "mappings_processed"
    FORWARDED = "forwarded"
    ERROR_TERMINAL = "error_terminal"


class ErrorReason(str, Enum):
    MISSING_CREDENTIAL = "missing_credential"
    INVALID_CREDENTIAL = "invalid_credential"


# Allowed transitions; ERROR_TERMINAL and FORWARDED are final
_TRANSITIONS: dict[PipelineState, frozenset[PipelineState]] = {
    PipelineState.START: frozenset(
        {PipelineState.TOKEN_EXTRACTED, PipelineState.ERROR_TERMINAL}
    ),
    PipelineState.TOKEN_EXTRACTED: frozenset(
        {PipelineState.DECODED, PipelineState.ERROR_TERMINAL}
    ),
    PipelineState.DECODED: frozenset(
        {PipelineState.MAPPINGS_PROCESSED, PipelineState.ERROR_TERMINAL}
    ),
    PipelineState.MAPPINGS_PROCESSED: frozenset({PipelineState.FORWARDED}),
    PipelineState.FORWARDED: frozenset(),
    PipelineState.ERROR_TERMINAL: frozenset(),
}


@dataclass
class PipelineContext:
    """
    Context for a single request passing through the pipeline.

    Created fresh for every request and never shared between requests.
    """

    request: http.Request
    state: PipelineState = PipelineState.START

    # Populated as the state machine advances
    token: str | None = None
    credential: DecodedCredential | None = None
    outcomes: list[MappingOutcome] = field(default_factory=list)

    # Error state
    error_reason: ErrorReason | None = None
    error: ClaimHeadersError | None = None

    # Whether the request goes on to the upstream; rejection is set otherwise
    forward: bool = True
    rejection: Rejection | None = None

    def transition(self, state: PipelineState) -> None:
        """Move to the next state, refusing transitions the machine lacks."""
        if state not in _TRANSITIONS[self.state]:
            raise RuntimeError(
                f"invalid pipeline transition: {self.state.value} -> {state.value}"
            )
        self.state = state

    def fail(self, reason: ErrorReason, error: ClaimHeadersError | None = None) -> None:
        """Enter the error terminal state."""
        self.transition(PipelineState.ERROR_TERMINAL)
        self.error_reason = reason
        self.error = error

    def has_error(self) -> bool:
        """Check if the request ended in the error terminal state."""
        return self.state is PipelineState.ERROR_TERMINAL

    @property
    def injected_headers(self) -> list[str]:
        return [o.mapping.target_header_name for o in self.outcomes if o.injected]

    @property
    def failed_outcomes(self) -> list[MappingOutcome]:
        return [o for o in self.outcomes if not o.ok]

    def to_metadata(self) -> dict[str, Any]:
        """Summary stored on the flow for other addons and for debugging."""
        result: dict[str, Any] = {
            "state": self.state.value,
            "forward": self.forward,
            "mappings": [o.to_dict() for o in self.outcomes],
        }
        if self.error_reason is not None:
            result["error_reason"] = self.error_reason.value
        if self.error is not None:
            result["error"] = self.error.code
        return result
