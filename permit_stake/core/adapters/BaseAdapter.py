from __future__ import annotations

from abc import ABC
from typing import Any

from loguru import logger

from permit_stake.core.adapters.models import OperationKind, TransactionStatus
from permit_stake.core.notifications import (
    NotificationSink,
    deliver,
    is_async_sink,
    log_notification,
    make_event,
)


class BaseAdapter(ABC):
    adapter_type: str | None = None

    def __init__(
        self,
        name: str,
        config: dict[str, Any] | None = None,
        notification_sink: NotificationSink | None = None,
    ):
        if notification_sink is not None and is_async_sink(notification_sink):
            raise TypeError("notification_sink must be a synchronous callable")
        self.name = name
        self.config = config or {}
        self.notification_sink: NotificationSink = (
            notification_sink or log_notification
        )
        self.logger = logger.bind(adapter=self.__class__.__name__)

    def notify(
        self,
        operation: OperationKind,
        stage: TransactionStatus,
        chain_id: int,
        tx_hash: str,
        amount: str | None = None,
    ) -> None:
        """Fire-and-forget; sink failures are logged and never reach the caller."""
        deliver(
            self.notification_sink,
            make_event(operation, stage, chain_id, tx_hash, amount),
        )
