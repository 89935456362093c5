"""
Pipeline executor that turns token claims into request headers.

For each request the Pipeline:
1. Reads the credential from the source header
2. Strips the prefix and decodes the token
3. Resolves, serializes and injects every configured claim mapping
4. Optionally removes the source header
5. Decides whether the request is forwarded or rejected

A failing claim mapping is recorded and skipped; only a missing or
undecodable credential ends the request early.
"""

from __future__ import annotations

import logging
from typing import Any
from typing import TYPE_CHECKING

from claimheaders.errors import DecodeError
from claimheaders.errors import InjectionError
from claimheaders.errors import ResolutionError
from claimheaders.errors import ResolutionErrorReason
from claimheaders.errors import SerializationError
from claimheaders.models import ClaimMapping
from claimheaders.models import DecodedCredential
from claimheaders.models import MappingOutcome
from claimheaders.models import Rejection
from claimheaders.models import Section
from claimheaders.pipeline.context import ErrorReason
from claimheaders.pipeline.context import PipelineContext
from claimheaders.pipeline.context import PipelineState
from claimheaders.pipeline.operations import decode_token
from claimheaders.pipeline.operations import inject_header
from claimheaders.pipeline.operations import resolve_path
from claimheaders.pipeline.operations import serialize_value
from claimheaders.pipeline.operations import strip_prefix

if TYPE_CHECKING:
    from mitmproxy import http

    from claimheaders.config import Config

logger = logging.getLogger(__name__)

REJECTION_MESSAGES = {
    ErrorReason.MISSING_CREDENTIAL: "missing JWT token",
    ErrorReason.INVALID_CREDENTIAL: "invalid JWT token",
}


class Pipeline:
    """
    Executes claim extraction and header injection for one config.

    Holds only the immutable Config; every call to execute() works on its
    own PipelineContext, so one Pipeline serves concurrent requests.
    """

    def __init__(self, config: Config, name: str = "claimheaders"):
        """
        Args:
            config: Validated configuration
            name: Instance name used as log prefix
        """
        self.config = config
        self.name = name

    def execute(self, request: http.Request) -> PipelineContext:
        """
        Run the pipeline on an outbound request, mutating its headers.

        Args:
            request: mitmproxy request

        Returns:
            PipelineContext describing what happened. context.forward tells
            the caller whether to pass the request on; when False,
            context.rejection holds the response to send instead.
        """
        context = PipelineContext(request=request)
        config = self.config

        header_value = request.headers.get(config.source_header_name)
        if not header_value:
            logger.warning(
                f"[{self.name}] Credential header not found: {config.source_header_name}"
            )
            return self._terminate(context, ErrorReason.MISSING_CREDENTIAL)

        context.token = strip_prefix(header_value, config.token_prefix)
        context.transition(PipelineState.TOKEN_EXTRACTED)

        try:
            context.credential = decode_token(context.token, strict=config.strict_mode)
        except DecodeError as e:
            logger.warning(f"[{self.name}] Token decode error: {e.message}")
            return self._terminate(context, ErrorReason.INVALID_CREDENTIAL, e)

        context.transition(PipelineState.DECODED)

        for mapping in config.claim_mappings:
            outcome = self._process_mapping(request, context.credential, mapping)
            context.outcomes.append(outcome)

        context.transition(PipelineState.MAPPINGS_PROCESSED)

        if config.remove_source_header and config.source_header_name in request.headers:
            del request.headers[config.source_header_name]

        context.transition(PipelineState.FORWARDED)
        return context

    def _process_mapping(
        self,
        request: http.Request,
        credential: DecodedCredential,
        mapping: ClaimMapping,
    ) -> MappingOutcome:
        """Resolve, serialize and inject a single mapping. Never raises."""
        outcome = MappingOutcome(mapping=mapping)

        try:
            section, value = self._resolve(credential, mapping)
        except ResolutionError as e:
            outcome.error = e
            if self.config.log_missing_claims:
                logger.warning(f"[{self.name}] Claim not found: {mapping.path} ({e.message})")
            else:
                logger.debug(f"[{self.name}] Claim not found: {mapping.path}")
            return outcome

        outcome.section = section

        try:
            header_value = serialize_value(value, mapping.list_render_mode)
        except SerializationError as e:
            outcome.error = e
            logger.warning(
                f"[{self.name}] Failed to convert claim {mapping.path}: {e.message}"
            )
            return outcome

        try:
            outcome.injected = inject_header(
                request,
                mapping.target_header_name,
                header_value,
                mapping.collision_policy,
                self.config.max_header_value_bytes,
            )
        except InjectionError as e:
            outcome.error = e
            logger.warning(
                f"[{self.name}] Failed to inject header {mapping.target_header_name}: {e.message}"
            )
            return outcome

        if outcome.injected:
            logger.debug(
                f"[{self.name}] Injected header {mapping.target_header_name} "
                f"from {section.value}.{mapping.path}"
            )
        return outcome

    def _resolve(
        self, credential: DecodedCredential, mapping: ClaimMapping
    ) -> tuple[Section, Any]:
        """
        Try each configured section in order.

        Raises:
            ResolutionError: the error from the last section tried
        """
        last_error: ResolutionError | None = None
        for section in self.config.sections:
            try:
                value = resolve_path(
                    credential.section(section),
                    mapping.path,
                    self.config.max_path_depth,
                )
            except ResolutionError as e:
                last_error = e
                continue
            return section, value

        if last_error is None:
            raise ResolutionError(
                ResolutionErrorReason.NOT_FOUND,
                f"claim not found: {mapping.path} (no sections configured)",
                mapping.path,
            )
        raise last_error

    def _terminate(
        self,
        context: PipelineContext,
        reason: ErrorReason,
        error: DecodeError | None = None,
    ) -> PipelineContext:
        """Apply fail-open or fail-closed handling to a request-fatal error."""
        context.fail(reason, error)

        if self.config.fail_open:
            context.forward = True
        else:
            context.forward = False
            context.rejection = Rejection(message=REJECTION_MESSAGES[reason])
        return context
