import pytest
import sys
from datetime import date
from pathlib import Path
import tempfile
import os
import json

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from roster_planner.data_manager import (
    DataManager,
    DataFileCorruptedError,
    DataValidationError,
    Cell,
    DutyCode,
    LeaveSymbol,
    ScenarioChoice,
    StaffingRequirements,
    ThursdayMode,
    ThursdayScenario,
    CLEAR_ALL,
)


@pytest.fixture
def data_manager():
    """Fixture for a clean, isolated DataManager instance for each test."""
    with tempfile.NamedTemporaryFile(
        mode="w", suffix=".json", delete=False
    ) as temp_file:
        temp_path = temp_file.name
        json.dump({}, temp_file)

    dm = DataManager(temp_path)
    yield dm
    os.unlink(temp_path)


def test_new_file_gets_default_roster(data_manager):
    config = data_manager.get_config()
    assert config.staff_ids == [str(i) for i in range(1, 9)]
    assert config.requirements == StaffingRequirements(5, 5, 5, 5)
    assert config.thursday_mode == ThursdayMode.AUTO
    assert not config.jan1_workday
    assert len(data_manager.get_employees()) == 8
    assert data_manager.get_active_scenario() == ScenarioChoice()


def test_add_and_delete_employee_updates_staff_list(data_manager):
    """
    Why this is important: the generator only schedules ids listed in the
    month configuration, so adding or deleting someone must keep both in step.
    """
    emp = data_manager.add_employee("Alice", custom_target=30)
    assert emp.id == "9"
    assert "9" in data_manager.get_config().staff_ids

    assert data_manager.delete_employee("9")
    assert "9" not in data_manager.get_config().staff_ids
    assert data_manager.get_employee_by_id("9") is None


def test_last_employee_cannot_be_deleted(data_manager):
    for emp_id in [str(i) for i in range(1, 8)]:
        assert data_manager.delete_employee(emp_id)
    assert not data_manager.delete_employee("8")
    assert len(data_manager.get_employees()) == 1


def test_update_employee_target_override(data_manager):
    assert data_manager.update_employee("1", name="Alicia", custom_target=30)
    emp = data_manager.get_employee_by_id("1")
    assert (emp.name, emp.custom_target) == ("Alicia", 30)
    assert emp.effective_target(44) == 30

    data_manager.update_employee("1", custom_target=None)
    assert data_manager.get_employee_by_id("1").custom_target is None
    assert not data_manager.update_employee("42", name="Nobody")


def test_round_trip_keeps_cells_flags_targets_and_scenario(data_manager):
    config = data_manager.get_config()
    config.year, config.month = 2027, 1
    config.thursday_mode = ThursdayMode.B
    config.holiday_start = date(2027, 1, 25)
    config.holiday_end = date(2027, 1, 29)
    config.jan1_workday = True
    data_manager.set_config(config)

    data_manager.apply_tool("1", date(2027, 1, 4), "BL", None)
    data_manager.apply_tool("2", date(2027, 1, 4), None, "C")
    data_manager.update_employee("3", custom_target=12)
    data_manager.set_active_scenario(ScenarioChoice(ThursdayScenario.C, True))
    data_manager.save_data()

    reloaded = DataManager(data_manager.data_file)
    reloaded_config = reloaded.get_config()
    assert reloaded_config.thursday_mode == ThursdayMode.B
    assert (reloaded_config.holiday_start, reloaded_config.holiday_end) == (date(2027, 1, 25), date(2027, 1, 29))
    assert reloaded_config.jan1_workday

    emp1 = reloaded.get_employee_by_id("1")
    assert emp1.shifts["2027-01-04"] == Cell.of_symbol(LeaveSymbol.BEREAVEMENT)
    assert emp1.is_manual("2027-01-04")
    assert emp1.quota_deduction == 2
    assert reloaded.get_employee_by_id("2").shifts["2027-01-04"] == Cell.of_duties([DutyCode.C])
    assert reloaded.get_employee_by_id("3").custom_target == 12
    assert reloaded.get_active_scenario() == ScenarioChoice(ThursdayScenario.C, True)


def test_broken_data_raises(tmp_path):
    """A corrupt file with no backup must not be silently replaced."""
    bad = tmp_path / "bad.json"
    bad.write_text("{ not valid json }")
    with pytest.raises((DataValidationError, DataFileCorruptedError)):
        DataManager(str(bad))


def test_invalid_cell_content_raises(tmp_path):
    bad = tmp_path / "bad_cell.json"
    bad.write_text(json.dumps({"employees": [{"id": "1", "name": "X", "shifts": {"2027-01-04": ["Q"]}}]}))
    with pytest.raises(DataFileCorruptedError):
        DataManager(str(bad))


def test_recovery_from_backup(tmp_path):
    """
    Why this is important: a crash mid-write must not lose the roster. Saving
    keeps the previous file as .bak, and loading falls back to it.
    """
    data_file = tmp_path / "roster.json"
    dm = DataManager(str(data_file))
    dm.update_employee("1", name="Survivor")
    dm.save_data()
    dm.save_data()  # second save leaves the first on disk as .bak

    data_file.write_text("{ truncated")

    recovered = DataManager(str(data_file))
    assert recovered.get_employee_by_id("1").name == "Survivor"


def test_missing_file_recovers_from_backup(tmp_path):
    data_file = tmp_path / "roster.json"
    dm = DataManager(str(data_file))
    dm.update_employee("2", name="Kept")
    dm.save_data()
    dm.save_data()

    data_file.unlink()
    assert DataManager(str(data_file)).get_employee_by_id("2").name == "Kept"


def test_legacy_file_is_migrated(tmp_path):
    """
    Why this is important: files written by older versions used integer ids,
    a holiday count instead of a date range, and had no Jan 1 policy.
    """
    old_file = tmp_path / "old.json"
    old_file.write_text(json.dumps({
        "config": {"year": 2025, "month": 3, "staffIds": [1, 2], "yearHolidayCount": 3},
        "employees": [
            {"id": 1, "name": "Old", "shifts": {"2025-03-03": ["A", "B"]}},
            {"id": 2, "name": "Older", "shifts": {}, "manualEntries": None},
        ]
    }))

    dm = DataManager(str(old_file))

    config = dm.get_config()
    assert config.staff_ids == ["1", "2"]
    assert not config.jan1_workday
    assert "yearHolidayCount" not in dm.data["config"]

    old = dm.get_employee_by_id("1")
    assert old.assigned_duty_count == 2
    assert old.manual_entries == {}
    assert dm.get_employee_by_id("2").manual_entries == {}


def test_backup_export_and_import(data_manager, tmp_path):
    backup_path = tmp_path / "backup.json"
    data_manager.apply_tool("1", date(2027, 11, 3), "SL", None)
    data_manager.set_active_scenario(ScenarioChoice(ThursdayScenario.B, False))

    assert data_manager.export_backup(str(backup_path))
    backup = json.loads(backup_path.read_text())
    assert backup["version"] == "1.0"
    assert backup["activeThursdayScenario"] == "B"
    assert backup["usedTuesdayReduction"] is False
    assert isinstance(backup["timestamp"], int)

    data_manager.clear_month(2027, 11, CLEAR_ALL)
    assert "2027-11-03" not in data_manager.get_employee_by_id("1").shifts

    data_manager.import_backup(str(backup_path))
    assert data_manager.get_employee_by_id("1").shifts["2027-11-03"] == Cell.of_symbol(LeaveSymbol.SPECIAL)
    assert data_manager.get_active_scenario() == ScenarioChoice(ThursdayScenario.B, False)


def test_import_rejects_unreadable_backup(data_manager, tmp_path):
    broken = tmp_path / "broken.json"
    broken.write_text("not json")
    with pytest.raises(DataFileCorruptedError):
        data_manager.import_backup(str(broken))

    wrong_scenario = tmp_path / "wrong.json"
    wrong_scenario.write_text(json.dumps({"activeThursdayScenario": "Z"}))
    with pytest.raises(DataValidationError):
        data_manager.import_backup(str(wrong_scenario))


def test_backup_export_to_missing_directory_fails(data_manager, tmp_path):
    assert not data_manager.export_backup(str(tmp_path / "missing" / "backup.json"))
