"""
The verified action pipeline.

Every externally triggered action runs the same steps in the same order:
verify the session, validate the input, then hand the identity and the
typed input to the operation's handler. A failing step stops the pipeline
before anything later runs, so an unverified caller never reaches
validation and invalid input never reaches the upstream API or the store.
"""

from typing import Any, Callable, Optional, Type, TypeVar

from pydantic import BaseModel

from ..context.identity import Identity, identity_log_scope
from ..services.session_verifier import SessionVerifier
from ..utils.logger import get_logger
from .input_validation import validate_input

R = TypeVar("R")


class ActionPipeline:
    """Runs handlers behind session verification and input validation."""

    def __init__(self, verifier: Optional[SessionVerifier] = None):
        self.verifier = verifier or SessionVerifier()
        self.logger = get_logger()

    def run(
        self,
        session_token: Optional[str],
        raw_payload: Any,
        schema: Type[BaseModel],
        handler: Callable[[Identity, Any], R],
        project_id: Optional[str] = None,
    ) -> R:
        """
        Verify, validate and execute.

        Args:
            session_token: Token issued by the host platform
            raw_payload: Untyped operation payload
            schema: Input model of the operation
            handler: Called with the verified identity and the validated input
            project_id: Project shown by the host UI

        Raises:
            AuthenticationError: Verification failed; nothing else ran
            ValidationError: The payload is invalid; the handler did not run
        """
        identity = self.verifier.verify(session_token, project_id=project_id)

        with identity_log_scope(identity):
            typed_input = validate_input(raw_payload, schema)
            return handler(identity, typed_input)
