"""Concrete authorization flows.

- :class:`AuthorizationCodeFlow` -- ``authorization_code``
- :class:`PKCEAuthorizationFlow` -- ``pkce``
- :class:`DeviceCodeFlow` -- ``device_code``
"""

from grantflow.flows.authorization_code import AuthorizationCodeFlow
from grantflow.flows.device_code import DeviceCodeFlow, DeviceFlowState
from grantflow.flows.pkce import PKCEAuthorizationFlow

__all__ = [
    "AuthorizationCodeFlow",
    "DeviceCodeFlow",
    "DeviceFlowState",
    "PKCEAuthorizationFlow",
]
