from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from pydantic import ValidationError

from permit_stake.core.adapters.models import (
    OperationKind,
    TransactionEvent,
    TransactionStatus,
)
from permit_stake.core.notifications import (
    deliver,
    describe_event,
    is_async_sink,
    log_notification,
    make_event,
)

TX_HASH = "0x" + "ab" * 32


def test_make_event_links_explorer() -> None:
    event = make_event(OperationKind.STAKE, TransactionStatus.PENDING, 100, TX_HASH, "1.5")
    assert event.explorer_url == f"https://gnosisscan.io/tx/{TX_HASH}"
    assert event.amount == "1.5"


def test_make_event_unknown_chain_has_no_link() -> None:
    event = make_event(OperationKind.HARVEST, TransactionStatus.CONFIRMED, 5, TX_HASH)
    assert event.explorer_url is None
    assert describe_event(event) == f"Harvest confirmed ({TX_HASH})"


def test_events_are_immutable() -> None:
    event = make_event(OperationKind.HARVEST, TransactionStatus.PENDING, 1, TX_HASH)
    with pytest.raises(ValidationError):
        event.tx_hash = "0x00"


@pytest.mark.parametrize("operation", list(OperationKind))
@pytest.mark.parametrize("stage", list(TransactionStatus))
def test_every_lifecycle_stage_has_a_message(operation, stage) -> None:
    event = TransactionEvent(operation=operation, stage=stage, chain_id=1, tx_hash=TX_HASH)
    assert describe_event(event)


def test_describe_event_includes_amount() -> None:
    event = make_event(OperationKind.STAKE, TransactionStatus.PENDING, 1, TX_HASH, "2.0")
    assert describe_event(event) == (
        f"Stake pending: 2.0 (https://etherscan.io/tx/{TX_HASH})"
    )


@pytest.mark.parametrize(
    "stage,level",
    [
        (TransactionStatus.PENDING, "INFO"),
        (TransactionStatus.CONFIRMED, "INFO"),
        (TransactionStatus.FAILED, "WARNING"),
    ],
)
def test_log_notification_level(stage, level) -> None:
    event = make_event(OperationKind.WITHDRAW, stage, 1, TX_HASH)
    with patch("permit_stake.core.notifications.logger") as mock_logger:
        log_notification(event)
    mock_logger.log.assert_called_once_with(level, describe_event(event))


def test_deliver_swallows_sink_errors() -> None:
    event = make_event(OperationKind.APPROVE, TransactionStatus.FAILED, 1, TX_HASH)
    sink = MagicMock(side_effect=RuntimeError("boom"))
    with patch("permit_stake.core.notifications.logger") as mock_logger:
        deliver(sink, event)
    sink.assert_called_once_with(event)
    mock_logger.exception.assert_called_once()


class _AsyncCallableSink:
    async def __call__(self, event):
        return None


def test_is_async_sink() -> None:
    async def coroutine_sink(event):
        return None

    assert is_async_sink(coroutine_sink)
    assert is_async_sink(_AsyncCallableSink())
    assert not is_async_sink(log_notification)
    assert not is_async_sink([].append)


def test_deliver_closes_coroutine_results() -> None:
    event = make_event(OperationKind.HARVEST, TransactionStatus.CONFIRMED, 1, TX_HASH)
    calls = []

    async def _record(received):
        calls.append(received)

    with patch("permit_stake.core.notifications.logger") as mock_logger:
        deliver(lambda received: _record(received), event)

    assert calls == []
    mock_logger.error.assert_called_once()
    assert "synchronous" in mock_logger.error.call_args.args[0]
