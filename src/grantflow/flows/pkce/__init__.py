"""Authorization Code grant with PKCE (:rfc:`7636`).

See Also:
    :class:`~grantflow.flows.pkce.flow.PKCEAuthorizationFlow`
    :mod:`grantflow.auth.pkce` for verifier and challenge generation.
"""

from grantflow.flows.pkce.flow import PKCEAuthorizationFlow

__all__ = ["PKCEAuthorizationFlow"]
