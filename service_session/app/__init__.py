"""
Session service package.

Verifies a previously issued access token and keeps the session sliding:

- app.verifier: the verification state machine and ``verify_jwt`` entrypoint.
- app.validation: local checks (claim decoding, expiry evaluation).
- app.adapters: identity provider exchange and expiry policy providers.
- app.storage: persistence of the renewed access token.

Design notes:
- Importing the package performs no I/O and configures nothing; logging is
  configured by ``create_session_verifier``.
- Use the shared/ utilities for logging, metrics, tracing, and errors.
- The verifier is stateless between calls; the session store and the
  configuration provider own their own consistency.
"""
