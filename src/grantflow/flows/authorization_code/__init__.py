"""OAuth 2.0 Authorization Code grant with a client secret.

See Also:
    :class:`~grantflow.flows.authorization_code.flow.AuthorizationCodeFlow`
    :mod:`grantflow.auth.base` for the shared flow contract.
"""

from grantflow.flows.authorization_code.flow import AuthorizationCodeFlow

__all__ = ["AuthorizationCodeFlow"]
