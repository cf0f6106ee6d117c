"""
Session verification for requests coming from the host platform.

The host issues signed JWT session tokens. With a JWKS endpoint configured
the signing key is fetched from the identity host (asymmetric algorithms);
otherwise the token is checked against the shared extension secret (HS256).
Every failure, including an unreachable key endpoint, is an
AuthenticationError. Nothing is retried.
"""

from typing import Any, Dict, Optional

import jwt
from pydantic import ValidationError as PydanticValidationError

from ..config import IdentityConfig, get_config
from ..context.identity import Identity
from ..exceptions import AuthenticationError, ConfigurationError
from ..utils.logger import get_logger

CLAIM_EXTENSION_INSTANCE_ID = "extensionInstanceId"
CLAIM_EXTENSION_ID = "extensionId"
CLAIM_USER_ID = "sub"
CLAIM_CONTEXT_ID = "contextId"
CLAIM_PROJECT_ID = "projectId"

REQUIRED_CLAIMS = (CLAIM_EXTENSION_INSTANCE_ID, CLAIM_EXTENSION_ID, CLAIM_USER_ID, CLAIM_CONTEXT_ID)


def _optional_str(value: Any) -> Optional[str]:
    return str(value) if value not in (None, "") else None


class SessionVerifier:
    """Turns a session token into a verified Identity."""

    def __init__(
        self,
        identity_config: Optional[IdentityConfig] = None,
        jwk_client: Optional[jwt.PyJWKClient] = None,
    ):
        """
        Initialize the verifier.

        Args:
            identity_config: Verification settings (default: from config)
            jwk_client: Pre-built JWKS client, mainly for tests
        """
        self.config = identity_config or get_config().identity
        self._jwk_client = jwk_client
        self.logger = get_logger()

    def _get_jwk_client(self) -> jwt.PyJWKClient:
        if self._jwk_client is None:
            self._jwk_client = jwt.PyJWKClient(self.config.jwks_url)
        return self._jwk_client

    def _decode(self, session_token: str) -> Dict[str, Any]:
        options = {"require": ["exp"], "verify_aud": False}

        if self.config.jwks_url:
            try:
                signing_key = self._get_jwk_client().get_signing_key_from_jwt(session_token)
            except jwt.PyJWKClientConnectionError as e:
                raise AuthenticationError(
                    "Identity host key endpoint is unreachable", cause=e, reason="jwks_unreachable"
                )
            except jwt.PyJWTError as e:
                raise AuthenticationError(
                    "Session token signing key could not be resolved", cause=e, reason="unknown_key"
                )
            key: Any = signing_key.key
            algorithms = list(self.config.algorithms)
        elif self.config.extension_secret:
            key = self.config.extension_secret
            algorithms = ["HS256"]
        else:
            raise ConfigurationError(
                "Session verification not configured. Set SESSION_JWKS_URL or EXTENSION_SECRET.",
                setting="SESSION_JWKS_URL",
            )

        try:
            return jwt.decode(
                session_token,
                key,
                algorithms=algorithms,
                options=options,
                leeway=self.config.leeway_seconds,
            )
        except jwt.ExpiredSignatureError as e:
            raise AuthenticationError("Session token has expired", cause=e, reason="expired")
        except jwt.PyJWTError as e:
            raise AuthenticationError("Session token is invalid", cause=e, reason="invalid")

    def verify(self, session_token: Optional[str], project_id: Optional[str] = None) -> Identity:
        """
        Verify a session token and build the caller's identity.

        Args:
            session_token: Token issued by the host platform
            project_id: Project the host UI is showing; overrides the token's claim

        Returns:
            The verified Identity

        Raises:
            AuthenticationError: Missing, malformed, expired or foreign token
            ConfigurationError: Neither a JWKS URL nor a shared secret is configured
        """
        if not session_token or not session_token.strip():
            raise AuthenticationError("Session token missing", reason="missing")

        token = session_token.strip()
        if token.lower().startswith("bearer "):
            token = token[len("bearer ") :].strip()

        claims = self._decode(token)

        missing = [claim for claim in REQUIRED_CLAIMS if not claims.get(claim)]
        if missing:
            raise AuthenticationError(
                "Session token is missing required claims", reason="missing_claims", claims=missing
            )

        expected_extension_id = self.config.extension_id
        if expected_extension_id and claims[CLAIM_EXTENSION_ID] != expected_extension_id:
            raise AuthenticationError(
                "Session token was issued for another extension", reason="foreign_extension"
            )

        try:
            identity = Identity(
                extension_instance_id=str(claims[CLAIM_EXTENSION_INSTANCE_ID]),
                extension_id=str(claims[CLAIM_EXTENSION_ID]),
                user_id=str(claims[CLAIM_USER_ID]),
                context_id=str(claims[CLAIM_CONTEXT_ID]),
                project_id=project_id or _optional_str(claims.get(CLAIM_PROJECT_ID)),
            )
        except PydanticValidationError as e:
            raise AuthenticationError("Session token claims are malformed", cause=e, reason="invalid_claims")

        self.logger.debug(
            "Session verified",
            extra={"owner_id": identity.owner_id, "user_id": identity.user_id},
        )
        return identity
