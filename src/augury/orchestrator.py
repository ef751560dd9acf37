"""
Signing-request orchestrator.

Wraps every namespace operation in one lifecycle:

    precondition check -> pending = True -> build -> [admission] -> request
    -> verify -> publish FormattedResult -> pending = False

Precondition failures (no client / no session) propagate to the caller and
leave state untouched. Everything that goes wrong after that point is
published as a FormattedResult with valid=False.

Single-flight: one pending flag and one result slot. Callers must serialize
their own invocations; overlapping calls race and the last writer wins. No
timeout is applied here. A hung peer keeps ``pending`` set until the
channel's own request returns, so wrap the channel with a timeout if that
matters.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Optional

from loguru import logger

from .config import Settings
from .errors import NotInitializedError, OperationalError, PreconditionError, RemoteCallError
from .models import ChainAccount, FormattedResult, RpcCall
from .namespaces import NAMESPACES, Operation, OperationContext, get_namespace
from .pneuma.rpc import EvmOracle, post_json
from .session import AccountDirectory, Session, SessionChannel
from .utils import now_ms

RequestOperation = Callable[[str, str], Awaitable[FormattedResult]]
RequestHandler = Callable[[str, str], Awaitable[None]]
ResultListener = Callable[[FormattedResult], None]


def _message(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


class Orchestrator:
    def __init__(
        self,
        client: Optional[SessionChannel] = None,
        session: Optional[Session] = None,
        directory: Optional[AccountDirectory] = None,
        settings: Optional[Settings] = None,
        evm: Optional[EvmOracle] = None,
        clock: Callable[[], int] = now_ms,
        http_post: Callable[..., Awaitable[Any]] = post_json,
    ) -> None:
        self.client = client
        self.session = session
        self.directory = directory or AccountDirectory()
        self.settings = settings or Settings()
        self.evm = evm or EvmOracle(self.settings, post=http_post)
        self._clock = clock
        self._http_post = http_post

        self._pending = False
        self._result: Optional[FormattedResult] = None
        self._listeners: list[ResultListener] = []

        self.rpc: dict[str, dict[str, RequestHandler]] = {
            name: {
                op_name: self.dispatch(self._bind(operation))
                for op_name, operation in namespace.operations.items()
            }
            for name, namespace in NAMESPACES.items()
        }

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def pending(self) -> bool:
        return self._pending

    @property
    def result(self) -> Optional[FormattedResult]:
        return self._result

    @property
    def is_testnet(self) -> bool:
        return self.settings.testnet

    @is_testnet.setter
    def is_testnet(self, value: bool) -> None:
        self.settings.testnet = bool(value)

    def subscribe(self, listener: ResultListener) -> Callable[[], None]:
        """Receive every published result. Returns an unsubscribe callable."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _publish(self, result: FormattedResult) -> None:
        self._result = result
        for listener in list(self._listeners):
            listener(result)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _require_session(self) -> tuple[SessionChannel, Session]:
        if self.client is None:
            raise NotInitializedError("WalletConnect is not initialized")
        if self.session is None:
            raise NotInitializedError("Session is not connected")
        return self.client, self.session

    def dispatch(self, operation: RequestOperation) -> RequestHandler:
        """Wrap ``operation`` in the pending/result lifecycle."""

        async def handler(chain_id: str, address: str) -> None:
            self._require_session()
            self._pending = True
            try:
                self._publish(await operation(chain_id, address))
            except PreconditionError:
                raise
            except Exception as exc:
                logger.opt(exception=exc).warning(
                    "rpc.request.failed chain={} address={}", chain_id, address
                )
                self._publish(FormattedResult(address=address, valid=False, result=_message(exc)))
            finally:
                self._pending = False

        return handler

    async def ping(self) -> None:
        client, session = self._require_session()
        self._pending = True
        try:
            try:
                await client.ping(session.topic)
                valid = True
            except Exception as exc:
                logger.opt(exception=exc).warning("session.ping.failed topic={}", session.topic)
                valid = False
            self._publish(
                FormattedResult(
                    method="ping",
                    valid=valid,
                    result="Ping succeeded" if valid else "Ping failed",
                )
            )
        finally:
            self._pending = False

    async def call(self, namespace: str, operation: str, chain_id: str, address: str) -> None:
        ns = get_namespace(namespace)
        if operation not in ns.operations:
            raise KeyError(
                f"Unknown operation '{operation}' for namespace '{namespace}'. "
                f"Available: {list(ns.operations)}"
            )
        await self.rpc[namespace][operation](chain_id, address)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def context(self) -> OperationContext:
        return OperationContext(
            directory=self.directory,
            settings=self.settings,
            evm=self.evm,
            clock=self._clock,
            http_post=self._http_post,
        )

    def _bind(self, operation: Operation) -> RequestOperation:
        async def run(chain_id: str, address: str) -> FormattedResult:
            return await self.execute(operation, chain_id, address)

        return run

    async def execute(self, operation: Operation, chain_id: str, address: str) -> FormattedResult:
        """Build, send and verify one request. Does not touch pending/result."""
        client, session = self._require_session()
        account = ChainAccount.from_chain_id(chain_id, address)
        ctx = self.context()
        method = operation.display_method

        prepared = await operation.build(ctx, account)

        if operation.admit is not None:
            refusal = operation.admit(ctx, account, prepared)
            if refusal is not None:
                logger.info("rpc.request.refused method={} chain={} reason={}", method, chain_id, refusal)
                return FormattedResult(method=method, address=address, valid=False, result=refusal)

        logger.debug("rpc.request method={} chain={} topic={}", operation.method, chain_id, session.topic)
        try:
            artifact = await client.request(
                session.topic, chain_id, RpcCall(operation.method, prepared.params)
            )
        except OperationalError:
            raise
        except Exception as exc:
            raise RemoteCallError(_message(exc)) from exc

        verdict = await operation.verify(ctx, account, prepared, artifact)
        logger.debug("rpc.request.done method={} chain={} valid={}", method, chain_id, verdict.valid)
        return FormattedResult(method=method, address=address, valid=verdict.valid, result=verdict.result)
