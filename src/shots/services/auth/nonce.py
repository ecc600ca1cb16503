"""Sign-in nonce generation and provider credential checks."""

import hashlib
import logging
import secrets
from dataclasses import dataclass

from jose import JWTError, jwt

from src.shots.services.auth.exceptions import CredentialError

logger = logging.getLogger(__name__)

NONCE_CHARSET = "0123456789ABCDEFGHIJKLMNOPQRSTUVXYZabcdefghijklmnopqrstuvwxyz-._"


@dataclass(frozen=True)
class ProviderCredential:
    """
    Result of a third-party sign-in sheet, as handed over by the client.

    Attributes:
        provider: Provider name understood by the identity service (e.g. "apple")
        id_token: OIDC identity token, raw bytes or already decoded text
        email: Email shared by the provider, only sent on first authorization
        full_name: Display name shared by the provider
    """

    provider: str = "apple"
    id_token: str | bytes | None = None
    email: str | None = None
    full_name: str | None = None


@dataclass(frozen=True)
class SignInRequirements:
    """Validated inputs for exchanging a provider credential for a session."""

    credential: ProviderCredential
    nonce: str
    id_token: str


def random_nonce(length: int = 32) -> str:
    """
    Generate a cryptographically random nonce.

    Args:
        length: Number of characters

    Returns:
        Random string drawn from ``NONCE_CHARSET``

    Raises:
        ValueError: If length is not positive
    """
    if length <= 0:
        raise ValueError(f"Nonce length must be positive, got {length}")
    return "".join(secrets.choice(NONCE_CHARSET) for _ in range(length))


def sha256_hex(text: str) -> str:
    """Hex-encoded SHA-256 digest of ``text``."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def check_credential(
    credential: ProviderCredential | None, nonce: str | None
) -> SignInRequirements:
    """
    Validate provider credential artifacts before any network call.

    The identity token is parsed without signature verification (the
    identity service verifies it); this only rejects tokens that can never
    succeed. When the token carries a ``nonce`` claim it must be the
    SHA-256 of the raw nonce issued for this sign-in.

    Args:
        credential: Credential returned by the provider sheet
        nonce: Raw nonce issued when the sign-in was requested

    Returns:
        SignInRequirements with the decoded token string

    Raises:
        CredentialError: If any artifact is missing or malformed

    Example:
        >>> nonce = random_nonce()
        >>> requirements = check_credential(ProviderCredential(id_token=token), nonce)
    """
    if credential is None:
        raise CredentialError("Authorization has no credentials.")
    if nonce is None:
        raise CredentialError(
            "Invalid state: a login callback was received but no login request was sent."
        )
    if not credential.id_token:
        raise CredentialError("Unable to fetch identity token.")

    id_token = credential.id_token
    if isinstance(id_token, bytes):
        try:
            id_token = id_token.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CredentialError(f"Unable to serialize token from data: {id_token!r}") from e

    try:
        claims = jwt.get_unverified_claims(id_token)
    except JWTError as e:
        raise CredentialError(f"Identity token is not a valid JWT: {e}") from e

    token_nonce = claims.get("nonce")
    if token_nonce is not None and token_nonce != sha256_hex(nonce):
        logger.warning(
            "Identity token nonce does not match the pending sign-in request",
            extra={"provider": credential.provider},
        )
        raise CredentialError("Identity token nonce does not match the sign-in request.")

    return SignInRequirements(credential=credential, nonce=nonce, id_token=id_token)
