"""Authorization flow contract and the pieces every flow shares.

The main entry points are:

- :class:`AuthorizationFlow` -- abstract base class implemented by each grant.
- :class:`FlowRegistry` -- maps flow identifiers to flow classes and builds a
  flow from a :class:`~grantflow.models.ClientConfig`.
- :func:`create_default_registry` -- a registry pre-loaded with the built-in
  flows.
- :class:`TokenSet` -- the persisted access/refresh bundle.
- :class:`SecretStore` -- where tokens live between runs
  (:class:`FileSecretStore`, :class:`MemorySecretStore`).

Typical usage::

    from grantflow.auth import FileSecretStore, create_default_registry

    flow = create_default_registry().create(config, FileSecretStore(), transport)
    tokens = flow.load_tokens()
"""

from grantflow.auth.base import AuthorizationFlow
from grantflow.auth.credential_store import (
    FileSecretStore,
    MemorySecretStore,
    SecretEntry,
    SecretStore,
)
from grantflow.auth.manager import FlowRegistry, create_default_registry
from grantflow.auth.pkce import generate_pkce_pair, generate_state
from grantflow.auth.responses import (
    AuthorizationResponse,
    CallbackResponse,
    DeviceAuthorizationSession,
)
from grantflow.auth.tokens import NO_REFRESH_TOKEN, TokenSet

__all__ = [
    "AuthorizationFlow",
    "AuthorizationResponse",
    "CallbackResponse",
    "DeviceAuthorizationSession",
    "FileSecretStore",
    "FlowRegistry",
    "MemorySecretStore",
    "NO_REFRESH_TOKEN",
    "SecretEntry",
    "SecretStore",
    "TokenSet",
    "create_default_registry",
    "generate_pkce_pair",
    "generate_state",
]
