from __future__ import annotations

import inspect
from collections.abc import Callable

from loguru import logger

from permit_stake.core.adapters.models import (
    OperationKind,
    TransactionEvent,
    TransactionStatus,
)
from permit_stake.core.constants.chains import explorer_tx_url

# Synchronous only; delivery never awaits.
NotificationSink = Callable[[TransactionEvent], None]

_MESSAGES: dict[tuple[OperationKind, TransactionStatus], str] = {
    (OperationKind.APPROVE, TransactionStatus.PENDING): "Approve pending",
    (OperationKind.APPROVE, TransactionStatus.CONFIRMED): "Approve confirmed",
    (OperationKind.APPROVE, TransactionStatus.FAILED): "Approve failed",
    (OperationKind.STAKE, TransactionStatus.PENDING): "Stake pending",
    (OperationKind.STAKE, TransactionStatus.CONFIRMED): "Stake confirmed",
    (OperationKind.STAKE, TransactionStatus.FAILED): "Stake failed",
    (OperationKind.HARVEST, TransactionStatus.PENDING): "Harvest pending",
    (OperationKind.HARVEST, TransactionStatus.CONFIRMED): "Harvest confirmed",
    (OperationKind.HARVEST, TransactionStatus.FAILED): "Harvest failed",
    (OperationKind.WITHDRAW, TransactionStatus.PENDING): "Withdraw pending",
    (OperationKind.WITHDRAW, TransactionStatus.CONFIRMED): "Withdraw confirmed",
    (OperationKind.WITHDRAW, TransactionStatus.FAILED): "Withdraw failed",
}


def make_event(
    operation: OperationKind,
    stage: TransactionStatus,
    chain_id: int,
    tx_hash: str,
    amount: str | None = None,
) -> TransactionEvent:
    return TransactionEvent(
        operation=operation,
        stage=stage,
        chain_id=int(chain_id),
        tx_hash=tx_hash,
        amount=amount,
        explorer_url=explorer_tx_url(chain_id, tx_hash),
    )


def describe_event(event: TransactionEvent) -> str:
    text = _MESSAGES[(event.operation, event.stage)]
    if event.amount is not None:
        text = f"{text}: {event.amount}"
    return f"{text} ({event.explorer_url or event.tx_hash})"


def log_notification(event: TransactionEvent) -> None:
    """Default sink: one log line per lifecycle stage."""
    level = "WARNING" if event.stage == TransactionStatus.FAILED else "INFO"
    logger.log(level, describe_event(event))


def is_async_sink(sink: Callable) -> bool:
    return inspect.iscoroutinefunction(sink) or inspect.iscoroutinefunction(
        getattr(sink, "__call__", None)
    )


def deliver(sink: NotificationSink, event: TransactionEvent) -> None:
    try:
        result = sink(event)
    except Exception:  # noqa: BLE001
        logger.exception(f"Notification sink failed for {event.operation} {event.tx_hash}")
        return
    if inspect.iscoroutine(result):
        result.close()
        logger.error(
            f"Notification sink returned a coroutine for {event.operation} "
            f"{event.tx_hash}; sinks must be synchronous"
        )
