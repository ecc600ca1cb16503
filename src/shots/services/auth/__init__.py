"""Identity provider access: sessions, sign-in credentials and session streams."""

from src.shots.services.auth.exceptions import AuthenticationError, CredentialError
from src.shots.services.auth.memory_provider import InMemoryIdentityProvider
from src.shots.services.auth.nonce import (
    ProviderCredential,
    SignInRequirements,
    check_credential,
    random_nonce,
    sha256_hex,
)
from src.shots.services.auth.provider import (
    IdentityProvider,
    ProviderRegistration,
    SupabaseIdentityProvider,
)
from src.shots.services.auth.session_listener import SessionListener, SessionStream

__all__ = [
    "AuthenticationError",
    "CredentialError",
    "IdentityProvider",
    "InMemoryIdentityProvider",
    "ProviderCredential",
    "ProviderRegistration",
    "SessionListener",
    "SessionStream",
    "SignInRequirements",
    "SupabaseIdentityProvider",
    "check_credential",
    "random_nonce",
    "sha256_hex",
]
