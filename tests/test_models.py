from datetime import datetime

import pytest

from tasks_api.models import format_wire_date, parse_wire_date, task_from_wire, task_to_wire


def stored_task(**overrides):
    task = {
        "id": 4,
        "completion_state": True,
        "title": "Title",
        "description": "Desc",
        "expertise": "nurse",
        "patient_id": 2,
        "created_at": datetime(2024, 3, 9, 17, 45),
        "deleted_at": datetime(2024, 4, 1),
    }
    task.update(overrides)
    return task


class TestWireDates:
    def test_format(self):
        assert format_wire_date(datetime(2024, 3, 9, 23, 59)) == "2024-03-09"
        assert format_wire_date(None) == ""

    def test_parse(self):
        assert parse_wire_date("2024-03-09") == datetime(2024, 3, 9)
        assert parse_wire_date("") is None
        assert parse_wire_date(None) is None

    @pytest.mark.parametrize("value", ["09-03-2024", "2024-13-01", "2024-03-09T10:00:00", "soon"])
    def test_parse_rejects_other_formats(self, value):
        with pytest.raises(ValueError, match="created_at"):
            parse_wire_date(value)


class TestTaskMapping:
    def test_to_wire_hides_deleted_at(self):
        wire = task_to_wire(stored_task())
        assert wire == {
            "id": 4,
            "completion_state": True,
            "title": "Title",
            "description": "Desc",
            "expertise": "nurse",
            "patient_id": 2,
            "created_at": "2024-03-09",
        }

    def test_from_wire_fills_defaults(self):
        task = task_from_wire({"title": "T", "expertise": "e", "patient_id": 3})
        assert task["id"] == 0
        assert task["completion_state"] is False
        assert task["description"] == ""
        assert task["created_at"] is None
        assert task["deleted_at"] is None

    def test_from_wire_propagates_parse_errors(self):
        with pytest.raises(ValueError):
            task_from_wire({"title": "T", "created_at": "March 9th"})
