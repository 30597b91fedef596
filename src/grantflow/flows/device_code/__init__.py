"""OAuth 2.0 Device Authorization Grant (:rfc:`8628`).

Designed for input-constrained or browserless devices.  The user is shown a
URL and a short code to enter on another device, then the flow polls for
authorization.

See Also:
    :class:`~grantflow.flows.device_code.flow.DeviceCodeFlow`
    :class:`~grantflow.auth.responses.DeviceAuthorizationSession`
"""

from grantflow.flows.device_code.flow import DeviceCodeFlow, DeviceFlowState

__all__ = ["DeviceCodeFlow", "DeviceFlowState"]
