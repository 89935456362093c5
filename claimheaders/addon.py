"""
Main claimheaders addon for mitmproxy.

Decodes the JWT carried by each request (without verifying it), extracts the
configured claims and forwards them upstream as request headers.

Usage:
    mitmdump -s claimheaders/addon.py \
        --set claimheaders_enabled=true \
        --set claimheaders_config=~/claimheaders.json
"""

from __future__ import annotations

import json
import logging
import sys

from mitmproxy import ctx
from mitmproxy import exceptions
from mitmproxy import http

from claimheaders.config import Config
from claimheaders.errors import ConfigError
from claimheaders.models import Rejection
from claimheaders.pipeline import Pipeline

# Configure logging to output to stderr
logging.basicConfig(
    level=logging.INFO,
    format="[%(levelname)s] %(name)s: %(message)s",
    stream=sys.stderr,
)

logger = logging.getLogger(__name__)

# Metadata key for storing the pipeline summary on flows
CLAIMHEADERS_METADATA_KEY = "claimheaders"

PACKAGE_LOGGER = "claimheaders"


def make_rejection_response(rejection: Rejection) -> http.Response:
    """Build the JSON response sent instead of forwarding the request."""
    return http.Response.make(
        rejection.status_code,
        json.dumps(rejection.to_dict()),
        {"Content-Type": "application/json"},
    )


class ClaimHeadersAddon:
    """
    Mitmproxy addon that turns JWT claims into upstream request headers.

    Or load programmatically:
        from claimheaders import ClaimHeadersAddon
        addons = [ClaimHeadersAddon()]
    """

    name = "claimheaders"

    def __init__(self):
        self._config: Config | None = None
        self._pipeline: Pipeline | None = None
        self._enabled: bool = False

    @property
    def config(self) -> Config | None:
        return self._config

    def load(self, loader) -> None:
        """Register addon options."""
        loader.add_option(
            name="claimheaders_enabled",
            typespec=bool,
            default=False,
            help="Enable JWT claim to header injection",
        )
        loader.add_option(
            name="claimheaders_config",
            typespec=str,
            default="",
            help="Path to the claimheaders JSON config file",
        )

    def configure(self, updated: set[str]) -> None:
        """Handle configuration changes."""
        relevant_options = {"claimheaders_enabled", "claimheaders_config"}
        if not relevant_options.intersection(updated):
            return

        if not ctx.options.claimheaders_enabled:
            if self._enabled:
                logger.info("claimheaders addon disabled")
            self._cleanup()
            return

        config_path = ctx.options.claimheaders_config
        if not config_path:
            raise exceptions.OptionsError(
                "claimheaders_config must be set when claimheaders_enabled is true"
            )

        try:
            config = Config.from_file(config_path)
        except ConfigError as e:
            logger.error(f"Failed to load claimheaders config {config_path}")
            for error in e.errors:
                logger.error(f"  - {error}")
            self._cleanup()
            raise exceptions.OptionsError(e.message) from e

        self._config = config
        self._pipeline = Pipeline(config, name=self.name)
        self._enabled = True

        logging.getLogger(PACKAGE_LOGGER).setLevel(config.logging_level)

        logger.info(
            f"claimheaders ready: {len(config.claim_mappings)} mappings, "
            f"source={config.source_header_name}, "
            f"sections={[s.value for s in config.sections]}, "
            f"mode={'fail-open' if config.fail_open else 'fail-closed'}"
        )

    def request(self, flow: http.HTTPFlow) -> None:
        """Inject claim headers, or reject the request when fail-closed."""
        if not self._enabled or not self._pipeline:
            return

        # Another addon already answered this request
        if flow.response is not None:
            return

        # Restored if the pipeline raises part way through
        original_headers = flow.request.headers.fields

        try:
            context = self._pipeline.execute(flow.request)
        except Exception as e:
            logger.error(
                f"Error in request hook for {flow.request.pretty_host}: {e}",
                exc_info=True,
            )
            flow.request.headers = http.Headers(original_headers)
            if self._pipeline.config.fail_open:
                return
            flow.response = make_rejection_response(
                Rejection(message="credential processing failed")
            )
            return

        flow.metadata[CLAIMHEADERS_METADATA_KEY] = context.to_metadata()

        if not context.forward and context.rejection is not None:
            logger.info(
                f"Rejected {flow.request.method} {flow.request.path[:50]}: "
                f"{context.rejection.message}"
            )
            flow.response = make_rejection_response(context.rejection)

    def done(self) -> None:
        """Clean up on shutdown."""
        self._cleanup()

    def _cleanup(self) -> None:
        self._enabled = False
        self._pipeline = None
        self._config = None


# For use with `mitmdump -s .../claimheaders/addon.py`
addons = [ClaimHeadersAddon()]
