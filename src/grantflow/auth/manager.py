"""Flow registry -- maps flow identifiers to flow classes.

The :class:`FlowRegistry` is the construction seam of the engine.  It keeps
a mapping from :class:`~grantflow.models.FlowType` values
(``"authorization_code"``, ``"pkce"``, ``"device_code"``) to concrete
:class:`~grantflow.auth.base.AuthorizationFlow` subclasses and builds a flow
from a :class:`~grantflow.models.ClientConfig`.

For most use cases, call :func:`create_default_registry` to get a registry
pre-loaded with every built-in flow.

See Also:
    :class:`~grantflow.auth.base.AuthorizationFlow` -- the flow contract.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Union

from grantflow.auth.base import AuthorizationFlow
from grantflow.auth.credential_store import SecretStore
from grantflow.client.transport import HTTPTransport
from grantflow.exceptions import ConfigError
from grantflow.models import ClientConfig, FlowType

logger = logging.getLogger(__name__)


class FlowRegistry:
    """Registry and factory for authorization flows.

    Flow classes are registered by their :attr:`~AuthorizationFlow.flow_type`.

    Example::

        registry = create_default_registry()
        flow = registry.create(config, FileSecretStore(), transport)
        print(flow.authorization_url)
    """

    def __init__(self) -> None:
        self._flows: dict[FlowType, type[AuthorizationFlow]] = {}

    def register(self, flow_cls: type[AuthorizationFlow]) -> None:
        """Register *flow_cls* under its ``flow_type``, replacing any previous one."""
        self._flows[flow_cls.flow_type] = flow_cls

    def get_flow_class(self, flow_type: Union[FlowType, str]) -> type[AuthorizationFlow]:
        """Look up the class registered for *flow_type*.

        Raises:
            ConfigError: If *flow_type* is unknown or has no registered class.
        """
        try:
            key = FlowType(flow_type)
        except ValueError:
            key = None
        flow_cls = self._flows.get(key) if key is not None else None
        if flow_cls is None:
            available = ", ".join(self.list_types()) or "(none)"
            raise ConfigError(
                f"No flow registered for type '{flow_type}'. Available types: {available}"
            )
        return flow_cls

    def create(
        self,
        config: ClientConfig,
        store: SecretStore,
        transport: HTTPTransport,
        flow_type: Optional[Union[FlowType, str]] = None,
        **kwargs: Any,
    ) -> AuthorizationFlow:
        """Build the flow for *config*.

        Args:
            config: Client registration details.
            store: Token store handed to the flow.
            transport: Shared HTTP transport.
            flow_type: Overrides ``config.flow``.
            **kwargs: Passed to the flow constructor (``clock``, ``sleep``).

        Raises:
            ConfigError: If the flow type is unknown or *config* is missing
                something the flow needs.
        """
        flow_cls = self.get_flow_class(flow_type or config.flow)
        logger.debug("Creating %s flow for client %s", flow_cls.flow_type.value, config.client_id)
        return flow_cls(config, store, transport, **kwargs)

    def list_types(self) -> list[str]:
        """Return the identifiers of all registered flows, sorted."""
        return sorted(flow_type.value for flow_type in self._flows)


def create_default_registry() -> FlowRegistry:
    """Create a :class:`FlowRegistry` with every built-in flow.

    - ``authorization_code`` -- :class:`~grantflow.flows.AuthorizationCodeFlow`
    - ``pkce`` -- :class:`~grantflow.flows.PKCEAuthorizationFlow`
    - ``device_code`` -- :class:`~grantflow.flows.DeviceCodeFlow`
    """
    from grantflow.flows import (
        AuthorizationCodeFlow,
        DeviceCodeFlow,
        PKCEAuthorizationFlow,
    )

    registry = FlowRegistry()
    registry.register(AuthorizationCodeFlow)
    registry.register(PKCEAuthorizationFlow)
    registry.register(DeviceCodeFlow)
    return registry
