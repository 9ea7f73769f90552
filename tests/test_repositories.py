import json

import pytest

from warning_tracker.config import Region, Severity, TicketStatus
from warning_tracker.core import ConfigurationException, RepositoryException
from warning_tracker.escalation.domain import EscalationConfig, Notification
from warning_tracker.escalation.infrastructure import EscalationConfigManager, JsonTrackerRepository

from tests.helpers import at

LEGACY_FILE = {
    "eu": [
        {
            "id": 1705309200000.5,
            "ticketNumber": "TKT-1",
            "title": "Printer jam",
            "label": "Bug",
            "severity": "High",
            "region": "EU",
            "status": "Warning 1 Sent",
            "createdAt": "2024-01-10T09:00:00.000Z",
            "lastModified": "2024-01-15T09:00:00.000Z",
            "warningTrackingStart": "2024-01-15T09:00:00.000Z",
            "warning1SentAt": "2024-01-15T09:00:00.000Z",
            "preWarningStatus": "In Progress Support",
            "hasDraftEmail": True
        }
    ],
    "global": [
        {
            "id": "g-1",
            "ticketNumber": "TKT-2",
            "title": "VPN",
            "status": "Pending Initial Contact",
            "lastModified": "not a date",
            "createdAt": ""
        }
    ],
    "notifications": [
        {
            "id": 1705309200001.25,
            "ticketNumber": "TKT-1",
            "region": "EU",
            "message": "Ticket #TKT-1 escalated to Pending Warning 1",
            "timestamp": "2024-01-12T09:00:00.000Z",
            "read": False
        }
    ]
}


class TestJsonTrackerRepository:
    def test_loads_legacy_file(self, tmp_path):
        path = tmp_path / "tickets.json"
        path.write_text(json.dumps(LEGACY_FILE), encoding="utf-8")
        repository = JsonTrackerRepository(path)

        repository.load()

        [eu] = repository.get_tickets(Region.EU)
        assert eu.id == "1705309200000.5"
        assert eu.ticket_number == "TKT-1"
        assert eu.severity == Severity.HIGH
        assert eu.status == TicketStatus.WARNING_1_SENT
        assert eu.warning1_sent_at == at(15)
        assert eu.warning2_sent_at is None
        assert eu.pre_warning_status == TicketStatus.IN_PROGRESS_SUPPORT
        assert eu.has_draft_email is True

        [gl] = repository.get_tickets(Region.GLOBAL)
        assert gl.region == Region.GLOBAL
        assert gl.severity == Severity.MEDIUM
        assert gl.last_modified is None
        assert gl.created_at is None

        [notification] = repository.get_notifications()
        assert notification.id == "1705309200001.25"
        assert notification.timestamp == at(12)

    def test_save_writes_camel_case_layout(self, repository, make_ticket):
        repository.replace_tickets(Region.EU, [make_ticket(
            ticket_number="TKT-1",
            status=TicketStatus.PENDING_WARNING_1,
            pre_warning_status=TicketStatus.IN_PROGRESS_SUPPORT
        )])
        repository.replace_notifications([Notification(
            id="n-1", ticket_number="TKT-1", region=Region.EU,
            message="Ticket #TKT-1 escalated to Pending Warning 1", timestamp=at(15)
        )])

        repository.save()

        data = json.loads(repository.path.read_text(encoding="utf-8"))
        assert set(data) == {"eu", "global", "notifications"}
        assert data["global"] == []
        stored = data["eu"][0]
        assert stored["ticketNumber"] == "TKT-1"
        assert stored["status"] == "Pending Warning 1"
        assert stored["preWarningStatus"] == "In Progress Support"
        assert "lastModified" in stored
        assert data["notifications"][0]["ticketNumber"] == "TKT-1"

    def test_save_then_load(self, repository, make_ticket):
        tickets = [make_ticket(), make_ticket(status=TicketStatus.WARNING_2_SENT, warning2_sent_at=at(16))]
        repository.replace_tickets(Region.GLOBAL, [
            make_ticket(region=Region.GLOBAL, note="call back")
        ])
        repository.replace_tickets(Region.EU, tickets)
        repository.save()

        reloaded = JsonTrackerRepository(repository.path)
        reloaded.load()

        assert reloaded.get_tickets(Region.EU) == tickets
        assert reloaded.get_tickets(Region.GLOBAL)[0].note == "call back"
        assert not repository.path.with_name("tickets.json.tmp").exists()

    def test_save_creates_parent_directory(self, tmp_path):
        repository = JsonTrackerRepository(tmp_path / "data" / "tickets.json")
        repository.save()
        assert repository.path.exists()

    def test_missing_file_is_empty(self, repository):
        repository.load()

        assert repository.get_tickets(Region.EU) == []
        assert repository.get_tickets(Region.GLOBAL) == []
        assert repository.get_notifications() == []

    @pytest.mark.parametrize("content", ["{not json", '{"eu": [{"id": "x"}]}'])
    def test_corrupt_file_raises(self, repository, content):
        repository.path.write_text(content, encoding="utf-8")

        with pytest.raises(RepositoryException):
            repository.load()

    def test_returned_lists_are_copies(self, repository, make_ticket):
        repository.replace_tickets(Region.EU, [make_ticket()])

        repository.get_tickets(Region.EU).clear()

        assert len(repository.get_tickets(Region.EU)) == 1


class TestEscalationConfigManager:
    def test_missing_file_uses_defaults(self, tmp_path):
        manager = EscalationConfigManager()

        config = manager.load(tmp_path / "missing.yaml")

        assert config == EscalationConfig()
        assert manager.get_config().thresholds.pending_warning_3 == 3

    def test_loads_yaml(self, tmp_path):
        path = tmp_path / "escalation.yaml"
        path.write_text(
            "thresholds:\n"
            "  pending_warning_3: 4\n"
            "default_restore_status: In Progress Support\n",
            encoding="utf-8"
        )

        config = EscalationConfigManager().load(path)

        assert config.thresholds.pending_warning_3 == 4
        assert config.thresholds.pending_warning_1 == 2
        assert config.default_restore_status == TicketStatus.IN_PROGRESS_SUPPORT

    @pytest.mark.parametrize("content", [
        "thresholds:\n  pending_warning_1: 0\n",
        "default_restore_status: Warning 3 Sent\n",
        "thresholds: [1, 2\n",
        "- just a list\n",
    ])
    def test_invalid_file_raises(self, tmp_path, content):
        path = tmp_path / "escalation.yaml"
        path.write_text(content, encoding="utf-8")

        with pytest.raises(ConfigurationException):
            EscalationConfigManager().load(path)

    def test_failed_reload_keeps_previous_config(self, tmp_path):
        path = tmp_path / "escalation.yaml"
        path.write_text("thresholds:\n  pending_warning_3: 4\n", encoding="utf-8")
        manager = EscalationConfigManager()
        manager.load(path)

        path.write_text("thresholds:\n  pending_warning_3: 5\n", encoding="utf-8")
        assert manager.reload() is True
        assert manager.config.thresholds.pending_warning_3 == 5

        path.write_text("thresholds:\n  pending_warning_3: -1\n", encoding="utf-8")
        assert manager.reload() is False
        assert manager.config.thresholds.pending_warning_3 == 5

    def test_reload_with_shorter_later_hop_keeps_previous_config(self, tmp_path):
        path = tmp_path / "escalation.yaml"
        path.write_text("thresholds:\n  pending_warning_3: 4\n", encoding="utf-8")
        manager = EscalationConfigManager()
        manager.load(path)

        path.write_text(
            "thresholds:\n  pending_warning_1: 5\n  pending_warning_2: 2\n",
            encoding="utf-8"
        )

        assert manager.reload() is False
        assert manager.config.thresholds.model_dump() == {
            "pending_warning_1": 2, "pending_warning_2": 2, "pending_warning_3": 4,
        }

    def test_config_before_load(self):
        with pytest.raises(RuntimeError):
            EscalationConfigManager().config

    def test_editor_rename_triggers_reload(self, tmp_path):
        from watchdog.events import FileMovedEvent
        from warning_tracker.escalation.infrastructure.config_watcher import _ConfigFileEvents

        path = tmp_path / "escalation.yaml"
        path.write_text("thresholds:\n  pending_warning_3: 4\n", encoding="utf-8")
        manager = EscalationConfigManager()
        manager.load(path)
        handler = _ConfigFileEvents(manager, path)

        swap = tmp_path / ".escalation.yaml.swp"
        swap.write_text("thresholds:\n  pending_warning_3: 6\n", encoding="utf-8")
        swap.replace(path)
        handler.on_any_event(FileMovedEvent(str(swap), str(path)))

        assert manager.config.thresholds.pending_warning_3 == 6

    def test_unrelated_file_is_ignored(self, tmp_path):
        from watchdog.events import FileModifiedEvent
        from warning_tracker.escalation.infrastructure.config_watcher import _ConfigFileEvents

        path = tmp_path / "escalation.yaml"
        path.write_text("thresholds:\n  pending_warning_3: 4\n", encoding="utf-8")
        manager = EscalationConfigManager()
        manager.load(path)
        handler = _ConfigFileEvents(manager, path)

        path.write_text("thresholds:\n  pending_warning_3: 6\n", encoding="utf-8")
        handler.on_any_event(FileModifiedEvent(str(tmp_path / "other.yaml")))

        assert manager.config.thresholds.pending_warning_3 == 4
