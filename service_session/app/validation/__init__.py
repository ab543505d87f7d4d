"""
Token validation package.

Local, side-effect free checks run before any network access:

- expiry: the expiry evaluator (hard and soft expiry share one comparison).
- token_decoder: reads claims from a JWT without verifying its signature.

Neither module performs I/O; both are safe to call on every request.
"""
