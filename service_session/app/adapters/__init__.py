"""
Adapters for the collaborators the verifier talks to over the network.

- delegation_client: the identity provider's token exchange endpoint.
- configuration: where the expiry policy comes from (settings or a remote
  JSON document).
"""
