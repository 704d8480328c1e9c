# jwt_util.py
"""Module to sign JWT-bearer assertions (RFC 7523) for a member identity."""

import logging
from logging import Logger
import textwrap
import time
from typing import Any, Dict, Optional
from uuid import uuid4

import jwt

from .utils import SigningFailure

PRIVATE_KEY_ARMOR = "PRIVATE KEY"
PUBLIC_KEY_ARMOR = "PUBLIC KEY"


def as_pem(key: str, armor: str) -> str:
    """Wrap the bare base64 body of a key in PEM armor, if it isn't already."""
    key = key.strip()
    if key.startswith("-----BEGIN"):
        return key
    body = "".join(key.split())
    lines = "\n".join(textwrap.wrap(body, 64))
    return f"-----BEGIN {armor}-----\n{lines}\n-----END {armor}-----\n"


class JwtUtil:
    """JwtUtil creates and checks the assertions we present to the token endpoint."""

    def __init__(self,
                 issuer: str,
                 private_key: str,
                 public_key: str,
                 audience: str,
                 expire_seconds: int = 60,
                 algorithm: str = "RS256",
                 logger: Optional[Logger] = None) -> None:
        """
        Create a JwtUtil object.

        issuer - The identity that issues (and signs) the assertions
        private_key - PEM text (or bare base64 body) of the signing key
        public_key - PEM text (or bare base64 body) of the verification key
        audience - The token endpoint that will receive the assertions
        expire_seconds - How long an assertion remains valid
        algorithm - The JWS algorithm used to sign the assertions
        logger - The object the JwtUtil should use for logging
        """
        if logger:
            self.logger = logger
        else:
            self.logger = logging.getLogger('classic_consumer.jwt_util')
            self.logger.addHandler(logging.NullHandler())
        self.issuer = issuer
        self.private_key = as_pem(private_key, PRIVATE_KEY_ARMOR)
        self.public_key = as_pem(public_key, PUBLIC_KEY_ARMOR)
        self.audience = audience
        self.expire_seconds = expire_seconds
        self.algorithm = algorithm

    def create_token_request_assertion(self, member_id: str) -> Optional[str]:
        """
        Create a signed assertion for the provided member.

        Returns None if the assertion could not be signed; the failure is logged.
        """
        now = int(time.time())
        claims = {
            "iss": self.issuer,
            "sub": member_id,
            "aud": self.audience,
            "iat": now,
            "nbf": now,
            "exp": now + self.expire_seconds,
            "jti": str(uuid4()),
        }
        try:
            return jwt.encode(claims, self.private_key, algorithm=self.algorithm)
        except Exception as e:
            SigningFailure(f"failed to sign assertion for member: {member_id}",
                           self.logger,
                           method="SIGN",
                           endpoint=self.audience,
                           error=e)
            return None

    def verify_assertion(self, assertion: str) -> Dict[str, Any]:
        """
        Decode and validate an assertion against our public key.

        Raises jwt.InvalidTokenError if the assertion is not valid.
        """
        return jwt.decode(assertion,
                          self.public_key,
                          algorithms=[self.algorithm],
                          audience=self.audience,
                          issuer=self.issuer)
