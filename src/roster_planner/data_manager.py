"""
Data Manager for Roster Planner

Holds the roster data model (cells, employees, month configuration), the
manual cell-editing rules, and JSON persistence with backup recovery.
"""

import json
import logging
from datetime import datetime, date
from typing import Dict, List, Optional, Any, Tuple, Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


APP_VERSION = "1.0.0"
BACKUP_VERSION = "1.0"

CLEAR_GENERATED = "generated"
CLEAR_ALL = "all"

ERASER_TOOL = "eraser"
POSITIONAL_X_TOOL = "X"


class DataManagerError(Exception):
    """Base exception for DataManager operations"""
    pass


class DataFileCorruptedError(DataManagerError):
    """Raised when the data file is corrupted"""
    pass


class DataFileNotFoundError(DataManagerError):
    """Raised when the data file is not found"""
    pass


class DataSaveError(DataManagerError):
    """Raised when saving data fails"""
    pass


class DataValidationError(DataManagerError):
    """Raised when data validation fails"""
    pass


class DutyCode(Enum):
    """Duty letters a cell can hold. X-variants mark a slot as exempted."""
    A = "A"
    B = "B"
    C = "C"
    XA = "Xa"
    XB = "Xb"
    XC = "Xc"

    @property
    def slot(self) -> 'DutyCode':
        return _SLOT_OF[self]

    @property
    def is_working(self) -> bool:
        return self in (DutyCode.A, DutyCode.B, DutyCode.C)

    @property
    def exemption(self) -> 'DutyCode':
        return _EXEMPTION_OF[self.slot]


_SLOT_OF = {
    DutyCode.A: DutyCode.A, DutyCode.XA: DutyCode.A,
    DutyCode.B: DutyCode.B, DutyCode.XB: DutyCode.B,
    DutyCode.C: DutyCode.C, DutyCode.XC: DutyCode.C,
}
_EXEMPTION_OF = {DutyCode.A: DutyCode.XA, DutyCode.B: DutyCode.XB, DutyCode.C: DutyCode.XC}
_SLOT_ORDER = {DutyCode.A: 1, DutyCode.B: 2, DutyCode.C: 3}

SLOTS = (DutyCode.A, DutyCode.B, DutyCode.C)


class LeaveSymbol(Enum):
    """Non-duty cell markers"""
    CLOSED = "X"
    OFF = "O"
    SPECIAL = "SL"
    WEDDING = "WL"
    MATERNITY = "ML"
    NEW_YEAR = "NY"
    BEREAVEMENT = "BL"

    @property
    def deduction(self) -> int:
        return SYMBOL_DEDUCTIONS[self]


# Duty points removed from an employee's target per symbol.
# New-year leave deducts nothing since the base target already excludes those days.
SYMBOL_DEDUCTIONS = {
    LeaveSymbol.CLOSED: 0,
    LeaveSymbol.OFF: 0,
    LeaveSymbol.SPECIAL: 2,
    LeaveSymbol.WEDDING: 2,
    LeaveSymbol.MATERNITY: 2,
    LeaveSymbol.NEW_YEAR: 0,
    LeaveSymbol.BEREAVEMENT: 2,
}


class ThursdayScenario(Enum):
    A = "A"  # A=5, B=5
    B = "B"  # A=5, B=4
    C = "C"  # A=4, B=4


class ThursdayMode(Enum):
    AUTO = "Auto"
    A = "A"
    B = "B"
    C = "C"

    def as_scenario(self) -> Optional[ThursdayScenario]:
        if self is ThursdayMode.AUTO:
            return None
        return ThursdayScenario(self.value)


SCENARIO_DESCRIPTIONS = {
    ThursdayScenario.A: "Scenario A (early 5, mid 5)",
    ThursdayScenario.B: "Scenario B (early 5, mid 4)",
    ThursdayScenario.C: "Scenario C (early 4, mid 4)",
}


@dataclass(frozen=True)
class Cell:
    """Content of one roster cell: a non-empty duty set or a single leave symbol"""
    duties: Tuple[DutyCode, ...] = ()
    symbol: Optional[LeaveSymbol] = None

    def __post_init__(self):
        if self.symbol is not None:
            if self.duties:
                raise ValueError("A cell cannot hold both duties and a leave symbol")
            return
        if not self.duties:
            raise ValueError("A duty cell must hold at least one duty")
        if len(set(self.duties)) != len(self.duties):
            raise ValueError(f"Duplicate duties in cell: {self.duties}")
        for duty in self.duties:
            if duty.is_working and duty.exemption in self.duties:
                raise ValueError(f"Duty {duty.value} and its exemption cannot coexist")

    @classmethod
    def of_duties(cls, duties: Iterable[DutyCode]) -> 'Cell':
        unique = list(dict.fromkeys(duties))
        unique.sort(key=lambda d: _SLOT_ORDER[d.slot])
        return cls(duties=tuple(unique))

    @classmethod
    def of_symbol(cls, symbol: LeaveSymbol) -> 'Cell':
        return cls(symbol=symbol)

    @property
    def is_leave(self) -> bool:
        return self.symbol is not None

    @property
    def working_duties(self) -> List[DutyCode]:
        return [d for d in self.duties if d.is_working]

    @property
    def deduction(self) -> int:
        return self.symbol.deduction if self.symbol else 0

    @property
    def is_triple_duty(self) -> bool:
        return len(self.duties) == 3 and set(self.duties) == set(SLOTS)

    def covers(self, slot: DutyCode) -> bool:
        return slot in self.duties

    def label(self) -> str:
        if self.symbol is not None:
            return self.symbol.value
        return "".join(d.value for d in self.duties)

    def to_json(self) -> Any:
        if self.symbol is not None:
            return self.symbol.value
        return [d.value for d in self.duties]

    @classmethod
    def from_json(cls, raw: Any) -> 'Cell':
        try:
            if isinstance(raw, list):
                return cls.of_duties(DutyCode(v) for v in raw)
            if isinstance(raw, str):
                return cls.of_symbol(LeaveSymbol(raw))
        except ValueError as e:
            raise DataValidationError(f"Invalid cell content {raw!r}: {e}")
        raise DataValidationError(f"Invalid cell content {raw!r}")


TRIPLE_DUTY = Cell.of_duties(SLOTS)
DOUBLE_DUTY_BC = Cell.of_duties((DutyCode.B, DutyCode.C))
DOUBLE_DUTY_AB = Cell.of_duties((DutyCode.A, DutyCode.B))
SINGLE_DUTY_A = Cell.of_duties((DutyCode.A,))


def date_key(day: date) -> str:
    return day.strftime("%Y-%m-%d")


def parse_date_key(key: str) -> Optional[date]:
    """Parse a YYYY-MM-DD key, tolerating missing zero padding"""
    try:
        parts = key.split('-')
        if len(parts) != 3:
            logging.error(f"Invalid date key: {key}")
            return None
        return date(int(parts[0]), int(parts[1]), int(parts[2]))
    except (ValueError, IndexError) as e:
        logging.error(f"Failed to parse date key {key}: {e}")
        return None


def key_in_month(key: str, year: int, month: int) -> bool:
    parsed = parse_date_key(key)
    return parsed is not None and parsed.year == year and parsed.month == month


@dataclass
class Employee:
    """Employee with a date-keyed cell map and derived monthly counters"""
    id: str
    name: str
    shifts: Dict[str, Cell] = field(default_factory=dict)
    manual_entries: Dict[str, bool] = field(default_factory=dict)
    custom_target: Optional[int] = None
    # Derived from cell content for one month, see recalculate_stats()
    assigned_duty_count: int = 0
    quota_deduction: int = 0

    def is_manual(self, key: str) -> bool:
        return bool(self.manual_entries.get(key))

    def recalculate_stats(self, year: int, month: int) -> 'Employee':
        """Recompute duty count and deduction for the given month from cell content"""
        duty_count = 0
        deduction = 0
        for key, cell in self.shifts.items():
            if not key_in_month(key, year, month):
                continue
            if cell.is_leave:
                deduction += cell.deduction
            else:
                duty_count += len(cell.working_duties)
        self.assigned_duty_count = duty_count
        self.quota_deduction = deduction
        return self

    def effective_target(self, base_target: int) -> int:
        target = self.custom_target if self.custom_target is not None else base_target
        return target - self.quota_deduction

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "name": self.name,
            "shifts": {key: cell.to_json() for key, cell in self.shifts.items()},
            "manualEntries": {key: True for key, flag in self.manual_entries.items() if flag},
        }
        if self.custom_target is not None:
            data["customTarget"] = self.custom_target
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Employee':
        return cls(
            id=str(data["id"]),
            name=data.get("name", f"Employee {data['id']}"),
            shifts={key: Cell.from_json(raw) for key, raw in data.get("shifts", {}).items()},
            manual_entries={key: True for key, flag in (data.get("manualEntries") or {}).items() if flag},
            custom_target=data.get("customTarget")
        )


@dataclass
class StaffingRequirements:
    """Required headcount per slot on standard weekdays and Saturdays"""
    standard_a: int = 5
    standard_b: int = 5
    standard_c: int = 5
    saturday_a: int = 5

    @property
    def standard_total(self) -> int:
        return self.standard_a + self.standard_b + self.standard_c

    def to_dict(self) -> Dict[str, int]:
        return {
            "reqStandardA": self.standard_a,
            "reqStandardB": self.standard_b,
            "reqStandardC": self.standard_c,
            "reqSaturdayA": self.saturday_a,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StaffingRequirements':
        return cls(
            standard_a=int(data.get("reqStandardA", 5)),
            standard_b=int(data.get("reqStandardB", 5)),
            standard_c=int(data.get("reqStandardC", 5)),
            saturday_a=int(data.get("reqSaturdayA", 5))
        )


@dataclass
class MonthConfig:
    """Scheduling configuration for one target month"""
    year: int
    month: int  # 1-12
    staff_ids: List[str] = field(default_factory=list)
    requirements: StaffingRequirements = field(default_factory=StaffingRequirements)
    thursday_mode: ThursdayMode = ThursdayMode.AUTO
    holiday_start: Optional[date] = None
    holiday_end: Optional[date] = None
    jan1_workday: bool = False

    @property
    def month_key(self) -> str:
        return f"{self.year}-{self.month:02d}"

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "year": self.year,
            "month": self.month,
            "staffIds": list(self.staff_ids),
            "thursdayMode": self.thursday_mode.value,
            "yearHolidayStart": self.holiday_start.isoformat() if self.holiday_start else "",
            "yearHolidayEnd": self.holiday_end.isoformat() if self.holiday_end else "",
            "jan1WorkDay": self.jan1_workday,
        }
        data.update(self.requirements.to_dict())
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MonthConfig':
        def parse_optional_date(value: Optional[str]) -> Optional[date]:
            if not value:
                return None
            try:
                return date.fromisoformat(value)
            except ValueError:
                logging.error(f"Ignoring invalid holiday date {value!r}")
                return None

        try:
            thursday_mode = ThursdayMode(data.get("thursdayMode", "Auto"))
        except ValueError:
            logging.error(f"Unknown Thursday mode {data.get('thursdayMode')!r}, using Auto")
            thursday_mode = ThursdayMode.AUTO

        return cls(
            year=int(data["year"]),
            month=int(data["month"]),
            staff_ids=[str(i) for i in data.get("staffIds", [])],
            requirements=StaffingRequirements.from_dict(data),
            thursday_mode=thursday_mode,
            holiday_start=parse_optional_date(data.get("yearHolidayStart")),
            holiday_end=parse_optional_date(data.get("yearHolidayEnd")),
            # Older files predate the Jan 1 policy
            jan1_workday=bool(data.get("jan1WorkDay", False))
        )

    @classmethod
    def default(cls, staff_count: int = 8) -> 'MonthConfig':
        today = date.today()
        return cls(
            year=today.year,
            month=today.month,
            staff_ids=[str(i) for i in range(1, staff_count + 1)]
        )


@dataclass
class ScenarioChoice:
    """Thursday scenario and Tuesday reduction chosen for a generation run"""
    thursday: ThursdayScenario = ThursdayScenario.A
    tuesday_reduction: bool = False

    def describe(self) -> str:
        text = SCENARIO_DESCRIPTIONS[self.thursday]
        if self.tuesday_reduction:
            text += " + Tuesday reduction"
        return text

    def to_dict(self) -> Dict[str, Any]:
        return {"thursday": self.thursday.value, "tuesdayReduction": self.tuesday_reduction}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'ScenarioChoice':
        if not data:
            return cls()
        return cls(
            thursday=ThursdayScenario(data.get("thursday", "A")),
            tuesday_reduction=bool(data.get("tuesdayReduction", False))
        )


# Manual cell editing

def toggle_duty(cell: Optional[Cell], duty: DutyCode) -> Optional[Cell]:
    """Toggle one duty code in a cell. A leave symbol is replaced by the duty."""
    current = list(cell.duties) if cell is not None and not cell.is_leave else []
    if duty in current:
        current.remove(duty)
    else:
        # A working duty and its exemption are mutually exclusive
        counterpart = duty.exemption if duty.is_working else duty.slot
        current = [d for d in current if d != counterpart]
        current.append(duty)
    if not current:
        return None
    return Cell.of_duties(current)


def erase_slot(cell: Optional[Cell], slot: DutyCode) -> Optional[Cell]:
    """Remove a slot's duty and exemption from a duty cell"""
    if cell is None or cell.is_leave:
        return None
    remaining = [d for d in cell.duties if d.slot != slot.slot]
    if not remaining:
        return None
    return Cell.of_duties(remaining)


def resolve_tool(tool: Optional[str], slot: Optional[str]) -> Optional[Any]:
    """
    Map a toolbar selection plus the clicked slot to an edit action.

    Returns ERASER_TOOL, a LeaveSymbol, a DutyCode, or None when the click
    has no effect.
    """
    if tool == ERASER_TOOL:
        return ERASER_TOOL

    if tool and tool not in ("A", "B", "C", POSITIONAL_X_TOOL):
        try:
            return LeaveSymbol(tool)
        except ValueError:
            pass

    target = tool if tool else slot
    if target == POSITIONAL_X_TOOL:
        if slot not in ("A", "B", "C"):
            return None
        return DutyCode(slot).exemption
    try:
        return DutyCode(target) if target else None
    except ValueError:
        return None


def edit_cell(cell: Optional[Cell], tool: Optional[str], slot: Optional[str] = None) -> Tuple[bool, Optional[Cell]]:
    """
    Apply a toolbar tool to a cell.

    Returns (changed, new_cell); new_cell None means the cell is now empty.
    """
    action = resolve_tool(tool, slot)
    if action is None:
        return False, cell
    if action == ERASER_TOOL:
        if cell is not None and not cell.is_leave and slot in ("A", "B", "C"):
            return True, erase_slot(cell, DutyCode(slot))
        return True, None
    if isinstance(action, LeaveSymbol):
        return True, Cell.of_symbol(action)
    return True, toggle_duty(cell, action)


_UNSET = object()


class DataManager:
    """Manages roster persistence, manual edits and backups"""

    def __init__(self, data_file: str = "data/roster_data.json"):
        if data_file == "data/roster_data.json":
            # Use path relative to the project directory
            data_file = Path(__file__).parent.parent.parent / "data" / "roster_data.json"
        self.data_file = Path(data_file)
        self.data = self._load_or_create_data()

    def _load_or_create_data(self) -> Dict[str, Any]:
        """Load existing data or create default structure with recovery from backup"""
        backup_file = self.data_file.with_suffix('.bak')
        if self.data_file.exists():
            try:
                with open(self.data_file, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                return self._validate_and_migrate_data(data)
            except (json.JSONDecodeError, IOError, DataValidationError) as e:
                logging.error(f"Error loading main data file {self.data_file}: {e}")
                if not backup_file.exists():
                    raise DataFileCorruptedError(f"Main data file corrupted and no backup available: {e}")
                return self._recover_from_backup(backup_file)
        if backup_file.exists():
            logging.info(f"Main data file missing, attempting recovery from backup {backup_file}")
            return self._recover_from_backup(backup_file)
        logging.info("No data file found, creating default data")
        return self._create_default_data()

    def _recover_from_backup(self, backup_file: Path) -> Dict[str, Any]:
        try:
            logging.info(f"Attempting recovery from backup file {backup_file}")
            with open(backup_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
            data = self._validate_and_migrate_data(data)
            backup_file.replace(self.data_file)
            logging.info("Successfully recovered data from backup")
            return data
        except (json.JSONDecodeError, IOError, DataValidationError) as backup_e:
            logging.error(f"Backup file also corrupted: {backup_e}")
            logging.info("Creating default data due to corrupted files")
            return self._create_default_data()

    def _validate_and_migrate_data(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Validate and migrate data structure to current version"""
        if not isinstance(data, dict):
            raise DataValidationError("Data file root must be an object")

        default_data = self._create_default_data()
        for key in default_data:
            if key not in data:
                data[key] = default_data[key]

        config = data["config"]
        # Legacy field from versions that counted year holidays instead of a date range
        config.pop("yearHolidayCount", None)
        if "jan1WorkDay" not in config:
            config["jan1WorkDay"] = False

        for emp in data.get("employees", []):
            emp["id"] = str(emp["id"])
            if not emp.get("manualEntries"):
                emp["manualEntries"] = {}
            # Parse every cell once so bad content surfaces at load time
            for raw in emp.get("shifts", {}).values():
                Cell.from_json(raw)

        return data

    def _create_default_data(self) -> Dict[str, Any]:
        """Create default data structure with the default roster of eight"""
        config = MonthConfig.default()
        return {
            "settings": {
                "appVersion": APP_VERSION,
                "lastUsedMonth": datetime.now().strftime("%Y-%m"),
                "dataFile": str(self.data_file)
            },
            "config": config.to_dict(),
            "employees": [
                Employee(id=emp_id, name=f"Employee {emp_id}").to_dict()
                for emp_id in config.staff_ids
            ],
            "stats": None,
            "activeScenario": ScenarioChoice().to_dict()
        }

    def _validate_saved_data(self) -> bool:
        """Validate that the saved data file matches current data"""
        try:
            if not self.data_file.exists():
                raise DataFileNotFoundError(f"Saved data file {self.data_file} does not exist")

            with open(self.data_file, 'r', encoding='utf-8') as f:
                saved_data = json.load(f)

            for key in ["settings", "config", "employees", "activeScenario"]:
                if key not in saved_data:
                    raise DataValidationError(f"Required section '{key}' missing from saved data")

            if saved_data.get("settings", {}).get("appVersion") != self.data.get("settings", {}).get("appVersion"):
                raise DataValidationError("App version mismatch in saved data")

            return True

        except (json.JSONDecodeError, IOError) as e:
            raise DataValidationError(f"Failed to validate saved data: {e}")

    def save_data(self) -> bool:
        """Save current data to file atomically with validation"""
        temp_file = None
        backup_file = self.data_file.with_suffix('.bak')

        try:
            self.data_file.parent.mkdir(parents=True, exist_ok=True)
            if self.data_file.exists():
                self.data_file.replace(backup_file)

            temp_file = self.data_file.with_suffix('.tmp')
            with open(temp_file, 'w', encoding='utf-8') as f:
                json.dump(self.data, f, indent=2, ensure_ascii=False)

            temp_file.replace(self.data_file)
            self._validate_saved_data()
            return True

        except DataValidationError as e:
            logging.error(f"Data validation failed after save: {e}", exc_info=True)
            if backup_file.exists():
                try:
                    backup_file.replace(self.data_file)
                except OSError as restore_e:
                    logging.error(f"Failed to restore from backup: {restore_e}", exc_info=True)
            raise DataSaveError(f"Save operation failed validation: {e}")

        except (IOError, OSError) as e:
            logging.error(f"I/O error during save operation: {e}", exc_info=True)
            raise DataSaveError(f"Failed to save data due to I/O error: {e}")

        except (TypeError, ValueError) as e:
            logging.error(f"Unexpected error during save operation: {e}", exc_info=True)
            raise DataSaveError(f"Unexpected error during save: {e}")

        finally:
            if temp_file and temp_file.exists():
                try:
                    temp_file.unlink()
                except OSError as cleanup_e:
                    logging.error(f"Failed to clean up temporary file {temp_file}: {cleanup_e}", exc_info=True)

    # Configuration
    def get_config(self) -> MonthConfig:
        return MonthConfig.from_dict(self.data["config"])

    def set_config(self, config: MonthConfig):
        self.data["config"] = config.to_dict()
        self.set_setting("lastUsedMonth", config.month_key)

    # Employee Management
    def get_employees(self, year: Optional[int] = None, month: Optional[int] = None) -> List[Employee]:
        """Get employees, with counters recomputed for the given (or configured) month"""
        if year is None or month is None:
            config = self.get_config()
            year, month = config.year, config.month
        return [Employee.from_dict(emp_data).recalculate_stats(year, month)
                for emp_data in self.data.get("employees", [])]

    def get_employee_by_id(self, emp_id: str) -> Optional[Employee]:
        for emp in self.get_employees():
            if emp.id == str(emp_id):
                return emp
        return None

    def _store_employee(self, employee: Employee):
        for i, emp_data in enumerate(self.data.setdefault("employees", [])):
            if str(emp_data["id"]) == employee.id:
                self.data["employees"][i] = employee.to_dict()
                return
        self.data["employees"].append(employee.to_dict())

    def save_employees(self, employees: List[Employee]):
        """Replace stored employee records, keeping the given order"""
        self.data["employees"] = [emp.to_dict() for emp in employees]

    def add_employee(self, name: Optional[str] = None, custom_target: Optional[int] = None) -> Employee:
        """Add new employee to the roster and to the configured staff list"""
        existing_ids = []
        for emp_data in self.data.get("employees", []):
            try:
                existing_ids.append(int(emp_data["id"]))
            except ValueError:
                continue
        next_id = str(max(existing_ids, default=0) + 1)

        employee = Employee(id=next_id, name=name or f"Employee {next_id}", custom_target=custom_target)
        self._store_employee(employee)

        config = self.get_config()
        config.staff_ids.append(next_id)
        self.set_config(config)
        logging.info(f"Added employee {employee.name} ({next_id})")
        return employee

    def update_employee(self, emp_id: str, name: Optional[str] = None, custom_target: Any = _UNSET) -> bool:
        """Update name and/or custom target. Pass custom_target=None to clear the override."""
        employee = self.get_employee_by_id(emp_id)
        if employee is None:
            return False
        if name is not None:
            employee.name = name
        if custom_target is not _UNSET:
            employee.custom_target = None if custom_target is None else int(custom_target)
        self._store_employee(employee)
        return True

    def delete_employee(self, emp_id: str) -> bool:
        """Remove an employee; the last remaining employee cannot be removed"""
        employees = self.data.get("employees", [])
        if len(employees) <= 1:
            return False
        remaining = [e for e in employees if str(e["id"]) != str(emp_id)]
        if len(remaining) == len(employees):
            return False
        self.data["employees"] = remaining
        config = self.get_config()
        config.staff_ids = [i for i in config.staff_ids if i != str(emp_id)]
        self.set_config(config)
        return True

    # Cell editing
    def apply_tool(self, emp_id: str, day: date, tool: Optional[str], slot: Optional[str] = None) -> Optional[Employee]:
        """Apply a toolbar tool to one cell and mark it manual (or drop it when empty)"""
        employee = self.get_employee_by_id(emp_id)
        if employee is None:
            return None
        key = date_key(day)
        try:
            changed, new_cell = edit_cell(employee.shifts.get(key), tool, slot)
        except ValueError as e:
            logging.error(f"Rejected edit {tool!r} on {key} for {employee.name}: {e}")
            return employee
        if not changed:
            return employee

        if new_cell is None:
            employee.shifts.pop(key, None)
            employee.manual_entries.pop(key, None)
        else:
            employee.shifts[key] = new_cell
            employee.manual_entries[key] = True
        self._store_employee(employee)
        return employee.recalculate_stats(day.year, day.month)

    def clear_month(self, year: int, month: int, mode: str = CLEAR_GENERATED) -> Dict[str, Any]:
        """
        Clear cells of one month.

        Args:
            mode: CLEAR_GENERATED removes non-manual duty cells only;
                  CLEAR_ALL removes every cell and manual flag of the month.

        Returns:
            Dict with information about cleared cells
        """
        if mode not in (CLEAR_GENERATED, CLEAR_ALL):
            raise ValueError(f"Unsupported clear mode: {mode}")

        cleared_count = 0
        employees = [Employee.from_dict(e) for e in self.data.get("employees", [])]
        for emp in employees:
            for key in list(emp.shifts):
                if not key_in_month(key, year, month):
                    continue
                if mode == CLEAR_ALL:
                    del emp.shifts[key]
                    emp.manual_entries.pop(key, None)
                    cleared_count += 1
                elif not emp.shifts[key].is_leave and not emp.is_manual(key):
                    del emp.shifts[key]
                    cleared_count += 1
        self.save_employees(employees)

        if mode == CLEAR_ALL:
            self.set_active_scenario(ScenarioChoice())

        logging.info(f"Cleared {cleared_count} cells for {year}-{month:02d} (mode={mode})")
        return {
            "cleared_count": cleared_count,
            "mode": mode,
            "message": f"Cleared {cleared_count} cells"
        }

    # Generation results
    def get_active_scenario(self) -> ScenarioChoice:
        return ScenarioChoice.from_dict(self.data.get("activeScenario"))

    def set_active_scenario(self, scenario: ScenarioChoice):
        self.data["activeScenario"] = scenario.to_dict()

    def get_stats(self) -> Optional[Dict[str, int]]:
        return self.data.get("stats")

    def set_stats(self, stats: Optional[Dict[str, int]]):
        self.data["stats"] = stats

    def apply_generation_result(self, result) -> bool:
        """Store a GenerationResult's employees, stats and scenario, then save"""
        self.save_employees(result.employees)
        self.set_stats(result.statistics.to_dict())
        self.set_active_scenario(result.scenario)
        return self.save_data()

    # Backups
    def export_backup(self, output_path: str) -> bool:
        """Write the full working state to a standalone backup file"""
        backup = {
            "config": self.data["config"],
            "employees": self.data["employees"],
            "stats": self.data.get("stats"),
            "activeThursdayScenario": self.get_active_scenario().thursday.value,
            "usedTuesdayReduction": self.get_active_scenario().tuesday_reduction,
            "version": BACKUP_VERSION,
            "timestamp": int(datetime.now().timestamp() * 1000)
        }
        try:
            with open(output_path, 'w', encoding='utf-8') as f:
                json.dump(backup, f, indent=2, ensure_ascii=False)
            return True
        except (IOError, OSError) as e:
            logging.error(f"Error writing backup {output_path}: {e}", exc_info=True)
            return False

    def import_backup(self, input_path: str):
        """Replace the working state with a backup file's content"""
        try:
            with open(input_path, 'r', encoding='utf-8') as f:
                backup = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            raise DataFileCorruptedError(f"Cannot read backup {input_path}: {e}")

        if not isinstance(backup, dict):
            raise DataValidationError("Backup root must be an object")

        data = dict(self.data)
        if backup.get("config"):
            data["config"] = backup["config"]
        if backup.get("employees") is not None:
            data["employees"] = backup["employees"]
        if backup.get("stats"):
            data["stats"] = backup["stats"]
        scenario = self.get_active_scenario()
        if backup.get("activeThursdayScenario"):
            try:
                scenario.thursday = ThursdayScenario(backup["activeThursdayScenario"])
            except ValueError as e:
                raise DataValidationError(f"Invalid scenario in backup: {e}")
        if backup.get("usedTuesdayReduction") is not None:
            scenario.tuesday_reduction = bool(backup["usedTuesdayReduction"])
        data["activeScenario"] = scenario.to_dict()

        self.data = self._validate_and_migrate_data(data)
        logging.info(f"Imported backup from {input_path}")

    # Settings Management
    def get_setting(self, key: str, default=None):
        """Get application setting"""
        return self.data.get("settings", {}).get(key, default)

    def set_setting(self, key: str, value):
        """Set application setting"""
        self.data.setdefault("settings", {})[key] = value
