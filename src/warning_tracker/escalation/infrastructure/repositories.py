"""
Escalation Infrastructure Repositories
=======================================

JSON file storage for tickets and notifications.

The file keeps the layout used by earlier desktop versions of the tracker,
so existing data files load unchanged.
"""

import os
from pathlib import Path
from typing import Dict, List

from pydantic import ValidationError

from warning_tracker.config import Region
from warning_tracker.core import DataFileException
from warning_tracker.escalation.application import (
    ITrackerRepository, NotificationRecord, PersistedData, TicketRecord
)
from warning_tracker.escalation.domain import Notification, Ticket
from warning_tracker.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class JsonTrackerRepository(ITrackerRepository):
    """
    File-backed implementation of the tracker repository.

    State is held in memory and written out on save(). Writes go to a
    temporary file first and then replace the data file.
    """

    def __init__(self, path: Path):
        self._path = Path(path)
        self._tickets: Dict[Region, List[Ticket]] = {Region.EU: [], Region.GLOBAL: []}
        self._notifications: List[Notification] = []

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> None:
        """Load state from the data file. A missing file means an empty store."""
        if not self._path.exists():
            logger.info(f"Data file not found, starting empty: {self._path}")
            return

        try:
            data = PersistedData.model_validate_json(self._path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            raise DataFileException("load", self._path, e) from e

        self._tickets[Region.EU] = [r.to_domain(Region.EU) for r in data.eu]
        self._tickets[Region.GLOBAL] = [r.to_domain(Region.GLOBAL) for r in data.global_]
        self._notifications = [r.to_domain() for r in data.notifications]

        logger.info(
            "Data file loaded",
            extra={
                "path": str(self._path),
                "eu_tickets": len(self._tickets[Region.EU]),
                "global_tickets": len(self._tickets[Region.GLOBAL]),
                "notifications": len(self._notifications),
            }
        )

    def save(self) -> None:
        data = PersistedData(
            eu=[TicketRecord.from_domain(t) for t in self._tickets[Region.EU]],
            global_=[TicketRecord.from_domain(t) for t in self._tickets[Region.GLOBAL]],
            notifications=[NotificationRecord.from_domain(n) for n in self._notifications],
        )
        payload = data.model_dump_json(by_alias=True, indent=2)

        tmp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(payload, encoding="utf-8")
            os.replace(tmp_path, self._path)
        except OSError as e:
            raise DataFileException("save", self._path, e) from e

    def get_tickets(self, region: Region) -> List[Ticket]:
        return list(self._tickets[region])

    def replace_tickets(self, region: Region, tickets: List[Ticket]) -> None:
        self._tickets[region] = list(tickets)

    def get_notifications(self) -> List[Notification]:
        return list(self._notifications)

    def replace_notifications(self, notifications: List[Notification]) -> None:
        self._notifications = list(notifications)
