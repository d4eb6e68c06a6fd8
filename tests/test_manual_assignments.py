import pytest
from datetime import date
from pathlib import Path
import sys
import tempfile
import os
import json
import random

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from roster_planner.data_manager import (
    DataManager,
    Cell,
    DutyCode,
    LeaveSymbol,
    ScenarioChoice,
    ThursdayScenario,
    CLEAR_ALL,
    CLEAR_GENERATED,
    ERASER_TOOL,
    POSITIONAL_X_TOOL,
    TRIPLE_DUTY,
    date_key,
    edit_cell,
    resolve_tool,
)
from roster_planner.scheduler_logic import ShiftScheduler

YEAR, MONTH = 2027, 11
DAY = date(YEAR, MONTH, 3)
KEY = date_key(DAY)


@pytest.fixture
def data_manager():
    """Fixture for a clean DataManager instance for each test."""
    with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as temp_file:
        temp_path = temp_file.name
        json.dump({}, temp_file)

    dm = DataManager(temp_path)
    config = dm.get_config()
    config.year, config.month = YEAR, MONTH
    dm.set_config(config)
    yield dm
    os.unlink(temp_path)


def duties(*codes):
    return Cell.of_duties(DutyCode(c) for c in codes)


# Tool resolution

def test_tool_resolution():
    assert resolve_tool(None, "B") == DutyCode.B
    assert resolve_tool("A", "C") == DutyCode.A
    assert resolve_tool(POSITIONAL_X_TOOL, "C") == DutyCode.XC
    assert resolve_tool(POSITIONAL_X_TOOL, None) is None
    assert resolve_tool("SL", "A") == LeaveSymbol.SPECIAL
    assert resolve_tool(ERASER_TOOL, None) == ERASER_TOOL
    assert resolve_tool("nonsense", None) is None


# Cell edits

def test_duty_toggle_adds_in_slot_order():
    changed, cell = edit_cell(duties("C"), "A")
    assert changed
    assert cell == duties("A", "C")
    assert cell.label() == "AC"


def test_duty_toggle_removes_and_empties():
    assert edit_cell(duties("B"), "B") == (True, None)


def test_exemption_replaces_its_duty():
    _, cell = edit_cell(duties("A", "B"), POSITIONAL_X_TOOL, "A")
    assert cell == duties("Xa", "B")
    _, cell = edit_cell(cell, "A")
    assert cell == duties("A", "B")


def test_symbol_replaces_cell_and_duty_replaces_symbol():
    _, cell = edit_cell(duties("A", "B", "C"), "WL")
    assert cell == Cell.of_symbol(LeaveSymbol.WEDDING)
    _, cell = edit_cell(cell, None, "C")
    assert cell == duties("C")


def test_eraser_on_slot_and_whole_cell():
    _, cell = edit_cell(duties("A", "B", "C"), ERASER_TOOL, "B")
    assert cell == duties("A", "C")
    _, cell = edit_cell(duties("Xa", "B"), ERASER_TOOL, "A")
    assert cell == duties("B")
    assert edit_cell(Cell.of_symbol(LeaveSymbol.OFF), ERASER_TOOL, "A") == (True, None)
    assert edit_cell(duties("A"), ERASER_TOOL) == (True, None)


def test_invalid_cells_are_rejected():
    with pytest.raises(ValueError):
        Cell(duties=())
    with pytest.raises(ValueError):
        Cell(duties=(DutyCode.A, DutyCode.XA))


# Stored edits

def test_apply_tool_marks_manual_and_updates_counters(data_manager):
    emp = data_manager.apply_tool("1", DAY, None, "A")
    emp = data_manager.apply_tool("1", DAY, None, "B")

    assert emp.shifts[KEY] == duties("A", "B")
    assert emp.is_manual(KEY)
    assert emp.assigned_duty_count == 2


def test_apply_tool_symbol_sets_deduction(data_manager):
    emp = data_manager.apply_tool("2", DAY, "SL", "A")
    assert emp.quota_deduction == 2
    assert emp.assigned_duty_count == 0


def test_emptied_cell_drops_manual_flag(data_manager):
    data_manager.apply_tool("1", DAY, None, "A")
    emp = data_manager.apply_tool("1", DAY, ERASER_TOOL, None)

    assert KEY not in emp.shifts
    assert not emp.is_manual(KEY)


def test_manual_assignment_persists(data_manager):
    data_manager.apply_tool("3", DAY, POSITIONAL_X_TOOL, "C")
    data_manager.save_data()

    reloaded = DataManager(data_manager.data_file)
    emp = reloaded.get_employee_by_id("3")
    assert emp.shifts[KEY] == duties("Xc")
    assert emp.is_manual(KEY)


def test_unknown_employee_edit_is_ignored(data_manager):
    assert data_manager.apply_tool("99", DAY, None, "A") is None


# Generation against stored manual data

def test_generation_respects_stored_manual_cells(data_manager):
    data_manager.apply_tool("1", DAY, "ML", None)
    data_manager.apply_tool("2", DAY, None, "A")

    scheduler = ShiftScheduler(rng=random.Random(3))
    result = scheduler.generate_schedule(data_manager.get_config(), data_manager.get_employees())
    assert data_manager.apply_generation_result(result)

    assert data_manager.get_employee_by_id("1").shifts[KEY] == Cell.of_symbol(LeaveSymbol.MATERNITY)
    assert data_manager.get_employee_by_id("2").shifts[KEY] == duties("A")
    assert data_manager.get_stats()["totalDemand"] == result.statistics.total_demand
    assert data_manager.get_active_scenario() == result.scenario


# Month clearing

def seed_month(data_manager):
    """One manual duty, one manual leave, one generated triple, one cell in another month"""
    data_manager.apply_tool("1", DAY, None, "A")
    data_manager.apply_tool("2", DAY, "SL", None)
    employees = data_manager.get_employees()
    employees[2].shifts[KEY] = TRIPLE_DUTY
    employees[2].shifts["2027-12-01"] = TRIPLE_DUTY
    data_manager.save_employees(employees)
    data_manager.set_active_scenario(ScenarioChoice(ThursdayScenario.C, True))


def test_clear_generated_keeps_manual_and_leave(data_manager):
    seed_month(data_manager)
    result = data_manager.clear_month(YEAR, MONTH, CLEAR_GENERATED)

    assert result["cleared_count"] == 1
    assert data_manager.get_employee_by_id("1").shifts[KEY] == duties("A")
    assert data_manager.get_employee_by_id("2").shifts[KEY] == Cell.of_symbol(LeaveSymbol.SPECIAL)
    assert KEY not in data_manager.get_employee_by_id("3").shifts
    assert data_manager.get_active_scenario() == ScenarioChoice(ThursdayScenario.C, True)


def test_clear_all_empties_month_only(data_manager):
    seed_month(data_manager)
    result = data_manager.clear_month(YEAR, MONTH, CLEAR_ALL)

    assert result["cleared_count"] == 3
    for emp in data_manager.get_employees():
        assert KEY not in emp.shifts
        assert not emp.manual_entries
    assert data_manager.get_employee_by_id("3").shifts["2027-12-01"] == TRIPLE_DUTY
    assert data_manager.get_active_scenario() == ScenarioChoice()


def test_clear_rejects_unknown_mode(data_manager):
    with pytest.raises(ValueError):
        data_manager.clear_month(YEAR, MONTH, "everything")
