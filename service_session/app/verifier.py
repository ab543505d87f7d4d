"""
Sliding-session verification.

``SessionVerifier.verify`` walks a fixed sequence of states:

    NO_TOKEN -> DECODE -> HARD_EXPIRY_CHECK -> LOAD_POLICY
        -> SOFT_EXPIRY_CHECK -> (DONE | EXCHANGE -> PERSIST -> DONE)

The first three states never touch the network, so a token that is already
expired is rejected even when configuration and the identity provider are
unreachable.
"""

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Optional

from shared.config import SessionConfig, get_config
from shared.errors import (
    ConfigurationUnavailableError,
    SessionException,
    SessionPersistenceError,
    TokenExpiredError,
    UnauthenticatedError,
)
from shared.logging import configure_logging, get_logger, reset_client_context, set_client_context
from shared.metrics import MetricsCollector, get_metrics_collector
from shared.tracing import get_tracer, traced_operation
from .adapters.configuration import (
    ConfigurationProvider,
    ExpiryPolicy,
    RemoteConfigurationProvider,
    SettingsConfigurationProvider,
)
from .adapters.delegation_client import DelegationClient
from .storage.user_config import SessionStore, UserConfigStore
from .validation.expiry import Clock, is_expired, utc_now
from .validation.token_decoder import DecodedToken, decode_claims

ACCESS_TOKEN_KEY = "accessToken"


class VerificationState(str, Enum):
    NO_TOKEN = "no_token"
    DECODE = "decode"
    HARD_EXPIRY_CHECK = "hard_expiry_check"
    LOAD_POLICY = "load_policy"
    SOFT_EXPIRY_CHECK = "soft_expiry_check"
    EXCHANGE = "exchange"
    PERSIST = "persist"
    DONE = "done"


@dataclass
class Verification:
    """Working state of one verify call."""
    token: Optional[str]
    client_id: str
    decoded: Optional[DecodedToken] = None
    policy: Optional[ExpiryPolicy] = None
    renewed_token: Optional[str] = None
    result: Optional[str] = None
    trail: List[VerificationState] = field(default_factory=list)


class SessionVerifier:
    """Verify an access token and renew it when it is close to expiring."""

    def __init__(self,
                 configuration_provider: ConfigurationProvider,
                 delegation_client: DelegationClient,
                 store: SessionStore,
                 clock: Clock = utc_now,
                 metrics: Optional[MetricsCollector] = None):
        self.configuration_provider = configuration_provider
        self.delegation_client = delegation_client
        self.store = store
        self.clock = clock
        self.metrics = metrics or get_metrics_collector("session")
        self.logger = get_logger("session.verifier")
        self.tracer = get_tracer("session.verifier")

        self._handlers: Dict[VerificationState, Callable[[Verification], Awaitable[VerificationState]]] = {
            VerificationState.NO_TOKEN: self._check_token_present,
            VerificationState.DECODE: self._decode,
            VerificationState.HARD_EXPIRY_CHECK: self._check_hard_expiry,
            VerificationState.LOAD_POLICY: self._load_policy,
            VerificationState.SOFT_EXPIRY_CHECK: self._check_soft_expiry,
            VerificationState.EXCHANGE: self._exchange,
            VerificationState.PERSIST: self._persist,
        }

    async def verify(self, token: Optional[str], client_id: str) -> str:
        """Return a usable token: ``token`` itself, or a renewed one.

        Raises a SessionException subclass when the session cannot be used.
        """
        verification = Verification(token=token, client_id=client_id)
        context_token = set_client_context(client_id)

        try:
            with traced_operation(self.tracer, "session.verify", {"client_id": client_id or ""}) as span:
                try:
                    await self._run(verification)
                except SessionException as e:
                    span.set_attribute("session.state", verification.trail[-1].value)
                    self.metrics.record_verification(e.code.lower())
                    self.logger.info(
                        "Session verification failed",
                        state=verification.trail[-1].value,
                        code=e.code
                    )
                    raise

                outcome = "renewed" if verification.renewed_token else "passthrough"
                span.set_attribute("session.state", VerificationState.DONE.value)
                span.set_attribute("session.outcome", outcome)
                self.metrics.record_verification(outcome)
                return verification.result
        finally:
            reset_client_context(context_token)

    async def _run(self, verification: Verification) -> None:
        state = VerificationState.NO_TOKEN
        while state is not VerificationState.DONE:
            verification.trail.append(state)
            state = await self._handlers[state](verification)
        verification.trail.append(state)

    async def _check_token_present(self, verification: Verification) -> VerificationState:
        if not verification.token:
            raise UnauthenticatedError()
        return VerificationState.DECODE

    async def _decode(self, verification: Verification) -> VerificationState:
        verification.decoded = decode_claims(verification.token)
        return VerificationState.HARD_EXPIRY_CHECK

    async def _check_hard_expiry(self, verification: Verification) -> VerificationState:
        expires_at = verification.decoded.expires_at
        if is_expired(expires_at, now=self.clock()):
            raise TokenExpiredError(details={"expired_at": expires_at.isoformat()})
        return VerificationState.LOAD_POLICY

    async def _load_policy(self, verification: Verification) -> VerificationState:
        try:
            verification.policy = await self.configuration_provider.get_configuration()
        except ConfigurationUnavailableError:
            raise
        except Exception as e:
            self.logger.error("Expiry policy unavailable", error=str(e))
            raise ConfigurationUnavailableError(
                f"Unable to load session configuration: {e}",
                details={"cause": str(e)}
            ) from e
        return VerificationState.SOFT_EXPIRY_CHECK

    async def _check_soft_expiry(self, verification: Verification) -> VerificationState:
        window = verification.policy.refresh_before_seconds
        if is_expired(verification.decoded.expires_at, window, now=self.clock()):
            self.logger.info(
                "Token inside refresh window, exchanging",
                refresh_before_seconds=window,
                expires_at=verification.decoded.expires_at.isoformat()
            )
            return VerificationState.EXCHANGE

        verification.result = verification.token
        return VerificationState.DONE

    async def _exchange(self, verification: Verification) -> VerificationState:
        with self.metrics.time_exchange():
            try:
                verification.renewed_token = await self.delegation_client.exchange(
                    verification.token,
                    verification.client_id
                )
            except SessionException as e:
                self.metrics.record_exchange(e.code.lower())
                raise
        self.metrics.record_exchange("success")
        return VerificationState.PERSIST

    async def _persist(self, verification: Verification) -> VerificationState:
        renewed = verification.renewed_token

        def _replace_access_token(record):
            record[ACCESS_TOKEN_KEY] = renewed
            return record

        try:
            await self.store.update(_replace_access_token)
        except Exception as e:
            self.logger.error("Failed to persist renewed token", error=str(e))
            raise SessionPersistenceError(
                f"Renewed token could not be saved: {e}",
                details={"cause": str(e)}
            ) from e

        verification.result = renewed
        return VerificationState.DONE


def create_session_verifier(config: Optional[SessionConfig] = None, **kwargs) -> SessionVerifier:
    """Build a verifier wired from settings.

    Keyword arguments override the default collaborators (``store``,
    ``configuration_provider``, ``delegation_client``, ``clock``, ``metrics``).
    """
    config = config or get_config()
    configure_logging(config.service_name, config.log_level, json_output=config.log_json)

    if "configuration_provider" not in kwargs:
        if config.configuration_url:
            kwargs["configuration_provider"] = RemoteConfigurationProvider(
                config.configuration_url,
                cache_ttl=config.configuration_cache_ttl,
                timeout=config.exchange_timeout
            )
        else:
            kwargs["configuration_provider"] = SettingsConfigurationProvider(config)

    kwargs.setdefault("delegation_client", DelegationClient(config.auth0_url, timeout=config.exchange_timeout))
    kwargs.setdefault("store", UserConfigStore(config.user_config_path))

    return SessionVerifier(**kwargs)


_default_verifiers: Dict[str, SessionVerifier] = {}
_verifiers_lock = threading.Lock()


def get_session_verifier(config: Optional[SessionConfig] = None) -> SessionVerifier:
    """Get the shared verifier for ``config``.

    Verifiers are built once per distinct configuration and reused, so the
    remote policy cache survives between calls and logging is configured
    only when a verifier is first built.
    """
    config = config or get_config()
    key = config.model_dump_json()

    with _verifiers_lock:
        verifier = _default_verifiers.get(key)
        if verifier is None:
            verifier = create_session_verifier(config)
            _default_verifiers[key] = verifier
        return verifier


async def verify_jwt(jwt: Optional[str], client_id: str, config: Optional[SessionConfig] = None) -> str:
    """Verify ``jwt`` and return either it or a renewed token."""
    verifier = get_session_verifier(config)
    return await verifier.verify(jwt, client_id)
