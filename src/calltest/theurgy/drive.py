"""
Theurgy Drive - Run the setData / getData round trip.

Flow:
1. Create the signer from the configured key
2. Open the JSON-RPC transport
3. Load the ABI artifact and bind the contract
4. send setData(value) and time it until the receipt arrives
5. call getData() and report the result

Any failure aborts the run; the original exception propagates unchanged.
A failed write never issues the read.
"""

from __future__ import annotations

import enum
import logging
import sys
import time
from dataclasses import dataclass, field
from typing import Any, Optional

import click

from ..config import Configuration, load_configuration
from ..errors import CallTestError
from ..pneuma.abi import ContractAbi, load_abi_file
from ..pneuma.contract import ContractBinding, bind
from ..pneuma.rpc import RpcTransport
from ..pneuma.tx import Receipt
from ..sigil.eth import create_signer

logger = logging.getLogger(__name__)

WRITE_METHOD = "setData"
READ_METHOD = "getData"
DEFAULT_VALUE = 20


class RunState(enum.Enum):
    UNCONFIGURED = "unconfigured"
    CONFIGURED = "configured"
    BOUND = "bound"
    SENT_PENDING = "sent(pending)"
    SENT_CONFIRMED = "sent(confirmed)"
    SENT_FAILED = "sent(failed)"
    QUERIED = "queried"
    DONE = "done"
    ABORTED = "aborted"


TERMINAL_STATES = frozenset({RunState.DONE, RunState.ABORTED})

_TRANSITIONS: dict[RunState, frozenset[RunState]] = {
    RunState.UNCONFIGURED: frozenset({RunState.CONFIGURED}),
    RunState.CONFIGURED: frozenset({RunState.BOUND}),
    RunState.BOUND: frozenset({RunState.SENT_PENDING}),
    RunState.SENT_PENDING: frozenset({RunState.SENT_CONFIRMED, RunState.SENT_FAILED}),
    RunState.SENT_CONFIRMED: frozenset({RunState.QUERIED}),
    RunState.SENT_FAILED: frozenset(),
    RunState.QUERIED: frozenset({RunState.DONE}),
    RunState.DONE: frozenset(),
    RunState.ABORTED: frozenset(),
}


@dataclass
class RunReport:
    """Outcome of one run."""
    receipt: Optional[Receipt] = None
    elapsed_ms: Optional[float] = None
    result: Any = None
    history: list[RunState] = field(default_factory=list)


class InvocationDriver:
    """
    One write call followed by one read call against a single contract.

    Args:
        config: Run configuration
        transport: Pre-built transport (default: one for ``config.endpoint``)
        abi: Pre-loaded ABI (default: loaded from ``config.abi_path``)
    """

    def __init__(
        self,
        config: Optional[Configuration],
        transport: Optional[RpcTransport] = None,
        abi: Optional[ContractAbi] = None,
    ) -> None:
        self.config = config
        self._transport = transport
        self._abi = abi
        self.state = RunState.UNCONFIGURED
        self.abort_reason: Optional[BaseException] = None
        self.report = RunReport(history=[self.state])

    def _advance(self, state: RunState) -> None:
        if state is not RunState.ABORTED and state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal run transition {self.state.value} -> {state.value}")
        if state is RunState.ABORTED and self.state in TERMINAL_STATES:
            raise RuntimeError(f"Run already finished ({self.state.value})")
        logger.info("Run state: %s -> %s", self.state.value, state.value)
        self.state = state
        self.report.history.append(state)

    def run(self, value: int = DEFAULT_VALUE) -> RunReport:
        """
        Execute the round trip.

        Args:
            value: Argument for setData

        Returns:
            RunReport with receipt, elapsed milliseconds and decoded result

        Raises:
            CallTestError: First failure of any stage, unchanged
        """
        if self.state is not RunState.UNCONFIGURED:
            raise RuntimeError("InvocationDriver.run() may only be called once")

        owns_transport = self._transport is None
        transport = self._transport
        try:
            if self.config is None:
                raise ValueError("No configuration supplied")
            self._advance(RunState.CONFIGURED)

            signer = create_signer(self.config.private_key)
            if transport is None:
                transport = RpcTransport(self.config.endpoint)
            abi = self._abi if self._abi is not None else load_abi_file(self.config.abi_path)
            contract = bind(abi, self.config.contract_address, transport, signer=signer)
            self._advance(RunState.BOUND)

            self._send(contract, value)

            self.report.result = contract.call(READ_METHOD)
            self._advance(RunState.QUERIED)
            self._advance(RunState.DONE)
            return self.report
        except BaseException as exc:
            self.abort_reason = exc
            self._advance(RunState.ABORTED)
            raise
        finally:
            if owns_transport and transport is not None:
                transport.close()

    def _send(self, contract: ContractBinding, value: int) -> None:
        self._advance(RunState.SENT_PENDING)
        start = time.perf_counter()
        try:
            receipt = contract.send(
                WRITE_METHOD,
                [value],
                gas_limit=self.config.gas_limit,
                timeout=self.config.receipt_timeout,
                poll_interval=self.config.poll_interval,
            )
        except BaseException:
            self._advance(RunState.SENT_FAILED)
            raise
        self.report.elapsed_ms = (time.perf_counter() - start) * 1000
        self.report.receipt = receipt
        self._advance(RunState.SENT_CONFIRMED)
        logger.info("%s confirmed in %.0f ms (tx %s)", WRITE_METHOD, self.report.elapsed_ms, receipt.tx_hash)


def run_demo(
    config: Configuration,
    value: int = DEFAULT_VALUE,
    transport: Optional[RpcTransport] = None,
    abi: Optional[ContractAbi] = None,
) -> RunReport:
    """Run the round trip once and return its report."""
    return InvocationDriver(config, transport=transport, abi=abi).run(value)


@click.command()
def drive() -> None:
    """
    Send setData(20) to the configured contract, then read getData().

    Prints the write latency in milliseconds, then the value read back.
    Configuration comes from the environment (and ./.env).
    """
    try:
        config = load_configuration()
        report = run_demo(config)
    except (CallTestError, ValueError) as exc:
        stage = getattr(exc, "stage", "run")
        click.secho(f"{stage} failed: {exc}", fg="red", err=True)
        sys.exit(getattr(exc, "exit_code", 1))

    click.echo(f"{report.elapsed_ms:.0f}")
    click.echo(f"data: {report.result}")
