"""grantflow -- client-side OAuth 2.0 authorization flows.

This package drives the three user-facing OAuth 2.0 grants a native or
command-line client needs: Authorization Code, Authorization Code with PKCE,
and the Device Authorization Grant.  Every flow persists its tokens in a
secret store, refreshes them shortly before they expire, and signs outgoing
requests with them.

Typical workflow::

    registry = create_default_registry()
    async with HTTPTransport() as transport:
        flow = registry.create(config, FileSecretStore(), transport)
        print(flow.authorization_url)           # send the user here
        await flow.authorization_response_handler(CallbackResponse(url=callback))
        response = await flow.authenticated_request(HTTPRequest(endpoint=api_url))

Modules:
    models: Pydantic models for client and transport configuration.
    config: XDG-aware client profile storage and credential sources.
    exceptions: Exception hierarchy rooted at :class:`GrantflowError`.
    auth: Flow contract, tokens, PKCE, secret stores, retry and polling.
    client: Request/response codec and the httpx-backed transport.
    flows: The concrete authorization flows.
"""

__version__ = "0.1.0"
