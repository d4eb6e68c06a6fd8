"""
User Interface for Roster Planner

CustomTkinter-based GUI with a month roster grid, cell editing tools,
month settings, background generation and a statistics/warnings dashboard.
"""

import customtkinter as ctk
from tkinter import messagebox, filedialog
from datetime import date
import calendar
from typing import Dict, List, Optional, Callable
import threading
import logging

from .data_manager import (
    DataManager,
    DataManagerError,
    Employee,
    LeaveSymbol,
    MonthConfig,
    StaffingRequirements,
    ThursdayMode,
    CLEAR_ALL,
    CLEAR_GENERATED,
    ERASER_TOOL,
    POSITIONAL_X_TOOL,
    SLOTS,
    date_key,
)
from .calendar_rules import (
    WEEKDAY_NAMES,
    config_base_target,
    get_monthly_special_holidays,
    get_special_holiday_name,
    is_working_day,
    month_dates,
)
from .scheduler_logic import (
    ShiftScheduler,
    GenerationResult,
    calculate_overview_stats,
    validate_schedule,
)
from .reporting import ExportManager

logger = logging.getLogger(__name__)


# Configure CustomTkinter
ctk.set_appearance_mode("light")
ctk.set_default_color_theme("blue")

MAX_WARNING_LINES = 3

NO_TOOL = "Slot"
TOOL_LABELS = {
    NO_TOOL: None,
    "A": "A",
    "B": "B",
    "C": "C",
    "X (slot)": POSITIONAL_X_TOOL,
    "Eraser": ERASER_TOOL,
}
# The closed symbol shares its code with the positional X tool
TOOL_LABELS.update({f"{symbol.value} (leave)": symbol.value for symbol in LeaveSymbol
                    if symbol is not LeaveSymbol.CLOSED})

CELL_COLORS = {
    "empty": "#f0f0f0",
    "duty": "#cfe2ff",
    "manual": "#9ec5fe",
    "exempt": "#e2e3e5",
    "leave": "#fff3cd",
    "closed_day": "#d3d3d3",
}


def format_warning_lines(warnings: List[str], limit: int = MAX_WARNING_LINES) -> str:
    """First few warnings plus a count of the rest"""
    if not warnings:
        return "All slots covered"
    lines = [f"• {w}" for w in warnings[:limit]]
    if len(warnings) > limit:
        lines.append(f"... and {len(warnings) - limit} more ({len(warnings)} total)")
    return "\n".join(lines)


class ClearRosterDialog(ctk.CTkToplevel):
    """Dialog for choosing how much of the month to clear"""

    def __init__(self, parent, config: MonthConfig, callback: Callable = None):
        super().__init__(parent)
        self.config = config
        self.callback = callback
        self.result = None

        self.title("Clear Roster")
        self.geometry("460x300")
        self.transient(parent)
        self.grab_set()

        self._create_widgets()

        # Center on parent
        self.update_idletasks()
        x = parent.winfo_x() + (parent.winfo_width() // 2) - (self.winfo_width() // 2)
        y = parent.winfo_y() + (parent.winfo_height() // 2) - (self.winfo_height() // 2)
        self.geometry(f"+{x}+{y}")

    def _create_widgets(self):
        main_frame = ctk.CTkFrame(self)
        main_frame.pack(fill="both", expand=True, padx=20, pady=20)

        ctk.CTkLabel(
            main_frame,
            text=f"🗑️ Clear {calendar.month_name[self.config.month]} {self.config.year}",
            font=ctk.CTkFont(size=16, weight="bold")
        ).pack(pady=(0, 10))

        info_text = (
            "• Generated only: removes duties placed by the generator,\n"
            "  keeping manual cells and leave symbols\n"
            "• Everything: removes every cell of this month and resets\n"
            "  the Thursday scenario"
        )
        ctk.CTkLabel(main_frame, text=info_text, justify="left").pack(anchor="w", padx=10, pady=10)

        warning_frame = ctk.CTkFrame(main_frame, fg_color="orange")
        warning_frame.pack(fill="x", pady=(0, 20))
        ctk.CTkLabel(
            warning_frame,
            text="⚠️ This action cannot be undone.",
            font=ctk.CTkFont(size=10)
        ).pack(pady=5)

        button_frame = ctk.CTkFrame(main_frame)
        button_frame.pack(fill="x", pady=(10, 0))

        ctk.CTkButton(
            button_frame,
            text="Cancel",
            command=lambda: self._finish("cancel"),
            width=90
        ).pack(side="right", padx=(10, 0))

        ctk.CTkButton(
            button_frame,
            text="Everything",
            command=lambda: self._finish(CLEAR_ALL),
            width=110,
            fg_color="red"
        ).pack(side="right", padx=(10, 0))

        ctk.CTkButton(
            button_frame,
            text="Generated only",
            command=lambda: self._finish(CLEAR_GENERATED),
            width=130,
            fg_color="orange"
        ).pack(side="right")

    def _finish(self, result: str):
        self.result = result
        if self.callback:
            self.callback(self.result)
        self.destroy()


class EmployeeDialog(ctk.CTkToplevel):
    """Dialog for adding/editing employees"""

    def __init__(self, parent, employee: Optional[Employee] = None, callback: Callable = None):
        super().__init__(parent)
        self.employee = employee
        self.callback = callback
        self.result = None

        self.title("Add Employee" if employee is None else "Edit Employee")
        self.geometry("400x260")
        self.transient(parent)
        self.grab_set()

        self._create_widgets()
        self._populate_fields()

        # Center on parent
        self.update_idletasks()
        x = parent.winfo_x() + (parent.winfo_width() // 2) - (self.winfo_width() // 2)
        y = parent.winfo_y() + (parent.winfo_height() // 2) - (self.winfo_height() // 2)
        self.geometry(f"+{x}+{y}")

    def _create_widgets(self):
        main_frame = ctk.CTkFrame(self)
        main_frame.pack(fill="both", expand=True, padx=20, pady=20)

        ctk.CTkLabel(main_frame, text="Name:").pack(anchor="w", pady=(0, 5))
        self.name_entry = ctk.CTkEntry(main_frame, width=300)
        self.name_entry.pack(pady=(0, 15))

        ctk.CTkLabel(main_frame, text="Custom monthly target (blank = calculated):").pack(anchor="w", pady=(0, 5))
        self.target_entry = ctk.CTkEntry(main_frame, width=300)
        self.target_entry.pack(pady=(0, 15))

        button_frame = ctk.CTkFrame(main_frame)
        button_frame.pack(fill="x", pady=(10, 0))

        ctk.CTkButton(
            button_frame,
            text="Cancel",
            command=self._cancel,
            width=100
        ).pack(side="right", padx=(10, 0))

        ctk.CTkButton(
            button_frame,
            text="Save",
            command=self._save,
            width=100
        ).pack(side="right")

    def _populate_fields(self):
        if self.employee:
            self.name_entry.insert(0, self.employee.name)
            if self.employee.custom_target is not None:
                self.target_entry.insert(0, str(self.employee.custom_target))

    def _save(self):
        name = self.name_entry.get().strip()
        if not name:
            messagebox.showerror("Error", "Name is required")
            return

        target_text = self.target_entry.get().strip()
        custom_target = None
        if target_text:
            try:
                custom_target = int(target_text)
            except ValueError:
                messagebox.showerror("Error", "Target must be a whole number")
                return
            if custom_target < 0:
                messagebox.showerror("Error", "Target cannot be negative")
                return

        self.result = {"name": name, "custom_target": custom_target}

        if self.callback:
            self.callback(self.result)

        self.destroy()

    def _cancel(self):
        self.destroy()


class SettingsPanel(ctk.CTkFrame):
    """Staffing requirements, Thursday mode and exemption settings for the month"""

    def __init__(self, parent, on_apply: Callable):
        super().__init__(parent)
        self.on_apply = on_apply
        self.requirement_entries = {}

        self._create_widgets()

    def _create_widgets(self):
        ctk.CTkLabel(self, text="Staffing:", font=ctk.CTkFont(weight="bold")).pack(side="left", padx=(10, 5))

        for field_name, label in (("standard_a", "A"), ("standard_b", "B"),
                                  ("standard_c", "C"), ("saturday_a", "Sat A")):
            ctk.CTkLabel(self, text=label).pack(side="left", padx=(5, 2))
            entry = ctk.CTkEntry(self, width=36)
            entry.pack(side="left")
            self.requirement_entries[field_name] = entry

        ctk.CTkLabel(self, text="Thursday:").pack(side="left", padx=(15, 5))
        self.thursday_var = ctk.StringVar(value=ThursdayMode.AUTO.value)
        ctk.CTkOptionMenu(
            self,
            values=[mode.value for mode in ThursdayMode],
            variable=self.thursday_var,
            width=80
        ).pack(side="left")

        ctk.CTkLabel(self, text="Closed from").pack(side="left", padx=(15, 5))
        self.holiday_start_entry = ctk.CTkEntry(self, width=95, placeholder_text="YYYY-MM-DD")
        self.holiday_start_entry.pack(side="left")
        ctk.CTkLabel(self, text="to").pack(side="left", padx=5)
        self.holiday_end_entry = ctk.CTkEntry(self, width=95, placeholder_text="YYYY-MM-DD")
        self.holiday_end_entry.pack(side="left")

        self.jan1_var = ctk.BooleanVar(value=False)
        ctk.CTkCheckBox(self, text="Work on Jan 1", variable=self.jan1_var).pack(side="left", padx=15)

        ctk.CTkButton(self, text="Apply", command=self._apply, width=70).pack(side="left", padx=10)

    def load(self, config: MonthConfig):
        reqs = config.requirements
        for field_name, entry in self.requirement_entries.items():
            entry.delete(0, "end")
            entry.insert(0, str(getattr(reqs, field_name)))
        self.thursday_var.set(config.thursday_mode.value)
        for entry, value in ((self.holiday_start_entry, config.holiday_start),
                             (self.holiday_end_entry, config.holiday_end)):
            entry.delete(0, "end")
            if value:
                entry.insert(0, value.isoformat())
        self.jan1_var.set(config.jan1_workday)

    def _apply(self):
        try:
            values = {name: int(entry.get().strip()) for name, entry in self.requirement_entries.items()}
        except ValueError:
            messagebox.showerror("Invalid Settings", "Staffing requirements must be whole numbers")
            return
        if any(v < 0 for v in values.values()):
            messagebox.showerror("Invalid Settings", "Staffing requirements cannot be negative")
            return

        try:
            start_text = self.holiday_start_entry.get().strip()
            end_text = self.holiday_end_entry.get().strip()
            holiday_start = date.fromisoformat(start_text) if start_text else None
            holiday_end = date.fromisoformat(end_text) if end_text else None
        except ValueError:
            messagebox.showerror("Invalid Settings", "Dates must use the YYYY-MM-DD format")
            return
        if (holiday_start is None) != (holiday_end is None):
            messagebox.showerror("Invalid Settings", "Enter both ends of the closed range, or neither")
            return
        if holiday_start and holiday_end and holiday_start > holiday_end:
            messagebox.showerror("Invalid Settings", "The closed range ends before it starts")
            return

        self.on_apply({
            "requirements": StaffingRequirements(**values),
            "thursday_mode": ThursdayMode(self.thursday_var.get()),
            "holiday_start": holiday_start,
            "holiday_end": holiday_end,
            "jan1_workday": self.jan1_var.get(),
        })


class RosterGrid(ctk.CTkScrollableFrame):
    """Employee by day grid; each cell has one button per slot"""

    def __init__(self, parent, main_window):
        super().__init__(parent, orientation="horizontal")
        self.main_window = main_window
        self.slot_buttons: Dict[tuple, ctk.CTkButton] = {}

    def render(self, config: MonthConfig, employees: List[Employee]):
        """Rebuild the grid for the configured month"""
        for widget in self.winfo_children():
            widget.destroy()
        self.slot_buttons = {}

        days = month_dates(config.year, config.month)
        base_target = config_base_target(config)

        ctk.CTkLabel(self, text="Employee", font=ctk.CTkFont(weight="bold")).grid(
            row=0, column=0, padx=2, pady=2, sticky="w")

        for col, day in enumerate(days, 1):
            header = f"{day.day}\n{WEEKDAY_NAMES[day.weekday()]}"
            holiday = get_special_holiday_name(day.year, day.month, day.day, config.jan1_workday)
            text_color = "red" if holiday or not is_working_day(day, config) else None
            label = ctk.CTkLabel(self, text=header, width=40, font=ctk.CTkFont(size=11, weight="bold"))
            if text_color:
                label.configure(text_color=text_color)
            label.grid(row=0, column=col, padx=1, pady=2)

        ctk.CTkLabel(self, text="Pts / Tgt", font=ctk.CTkFont(weight="bold")).grid(
            row=0, column=len(days) + 1, padx=5, pady=2)

        for row, emp in enumerate(employees, 1):
            ctk.CTkButton(
                self,
                text=emp.name,
                width=110,
                fg_color="transparent",
                text_color=("gray10", "gray90"),
                command=lambda e=emp: self.main_window.edit_employee(e)
            ).grid(row=row, column=0, padx=2, pady=1, sticky="w")

            for col, day in enumerate(days, 1):
                self._create_cell(row, col, emp, day, config)

            target = emp.effective_target(base_target)
            ctk.CTkLabel(self, text=f"{emp.assigned_duty_count} / {target}").grid(
                row=row, column=len(days) + 1, padx=5, pady=1)

    def _create_cell(self, row: int, col: int, emp: Employee, day: date, config: MonthConfig):
        key = date_key(day)
        cell = emp.shifts.get(key)
        manual = emp.is_manual(key)

        frame = ctk.CTkFrame(self, fg_color="transparent")
        frame.grid(row=row, column=col, padx=1, pady=1)

        for slot in SLOTS:
            if cell is None:
                text, color = "", CELL_COLORS["empty" if is_working_day(day, config) else "closed_day"]
            elif cell.is_leave:
                text = cell.label() if slot is SLOTS[0] else ""
                color = CELL_COLORS["leave"]
            elif cell.covers(slot):
                text = slot.value
                color = CELL_COLORS["manual" if manual else "duty"]
            elif cell.covers(slot.exemption):
                text = slot.exemption.value
                color = CELL_COLORS["exempt"]
            else:
                text, color = "", CELL_COLORS["empty"]

            button = ctk.CTkButton(
                frame,
                text=text,
                width=40,
                height=14,
                corner_radius=2,
                font=ctk.CTkFont(size=9),
                fg_color=color,
                text_color="black",
                hover_color="#b6d4fe",
                command=lambda e=emp.id, d=day, s=slot.value: self.main_window.on_cell_click(e, d, s)
            )
            button.pack(pady=0)
            self.slot_buttons[(emp.id, key, slot.value)] = button


class DashboardPanel(ctk.CTkFrame):
    """Dashboard showing demand statistics, holidays and coverage warnings"""

    def __init__(self, parent):
        super().__init__(parent, width=320)

        self._create_widgets()

    def _create_widgets(self):
        ctk.CTkLabel(
            self,
            text="Dashboard",
            font=ctk.CTkFont(size=18, weight="bold")
        ).pack(pady=(10, 10))

        self.stats_label = ctk.CTkLabel(self, text="", justify="left")
        self.stats_label.pack(anchor="w", padx=10, pady=5)

        ctk.CTkLabel(self, text="Holidays", font=ctk.CTkFont(weight="bold")).pack(anchor="w", padx=10)
        self.holidays_label = ctk.CTkLabel(self, text="", justify="left", wraplength=300)
        self.holidays_label.pack(anchor="w", padx=10, pady=5)

        ctk.CTkLabel(self, text="Coverage", font=ctk.CTkFont(weight="bold")).pack(anchor="w", padx=10)
        self.warnings_frame = ctk.CTkFrame(self)
        self.warnings_frame.pack(fill="x", padx=10, pady=5)
        self.warnings_label = ctk.CTkLabel(self.warnings_frame, text="", justify="left", wraplength=290)
        self.warnings_label.pack(anchor="w", padx=5, pady=5)

    def update_dashboard(self, config: MonthConfig, employees: List[Employee], scenario, warnings: List[str]):
        """Refresh figures for the displayed month"""
        stats = calculate_overview_stats(config, employees, scenario)

        stats_text = (
            f"Base target: {config_base_target(config)}\n"
            f"Scenario: {scenario.describe()}\n"
            f"Total demand: {stats.total_demand}\n"
            f"Total capacity: {stats.total_capacity}\n"
            f"Surplus: {stats.surplus:+d}\n"
            f"Suggested special leaves: {stats.suggested_special_leaves}"
        )
        self.stats_label.configure(text=stats_text)

        holidays = get_monthly_special_holidays(config.year, config.month, config.jan1_workday)
        self.holidays_label.configure(text="\n".join(holidays) if holidays else "None")

        self.warnings_label.configure(text=format_warning_lines(warnings))
        self.warnings_frame.configure(fg_color="lightgreen" if not warnings else "lightcoral")


class MainWindow(ctk.CTk):
    """Main application window"""

    def __init__(self, data_manager: DataManager, scheduler: ShiftScheduler,
                 export_manager: Optional[ExportManager] = None):
        super().__init__()

        self.title("Duty Roster Planner")
        self.geometry("1500x900")

        self.data_manager = data_manager
        self.scheduler = scheduler
        self.export_manager = export_manager or ExportManager(data_manager)
        self.last_result: Optional[GenerationResult] = None
        self.generating = False

        config = self.data_manager.get_config()
        self.current_year = config.year
        self.current_month = config.month

        self._create_widgets()
        self._load_initial_data()

    def _create_widgets(self):
        control_frame = ctk.CTkFrame(self, height=60)
        control_frame.pack(fill="x", padx=10, pady=(10, 5))
        control_frame.pack_propagate(False)

        ctk.CTkLabel(control_frame, text="Month:").pack(side="left", padx=10)
        self.month_var = ctk.StringVar(value=str(self.current_month))
        ctk.CTkOptionMenu(
            control_frame,
            values=[str(i) for i in range(1, 13)],
            variable=self.month_var,
            command=self._on_month_change,
            width=70
        ).pack(side="left", padx=5)

        ctk.CTkLabel(control_frame, text="Year:").pack(side="left", padx=10)
        self.year_var = ctk.StringVar(value=str(self.current_year))
        ctk.CTkOptionMenu(
            control_frame,
            values=[str(i) for i in range(2024, 2031)],
            variable=self.year_var,
            command=self._on_year_change,
            width=80
        ).pack(side="left", padx=5)

        ctk.CTkLabel(control_frame, text="Tool:").pack(side="left", padx=(20, 5))
        self.tool_var = ctk.StringVar(value=NO_TOOL)
        ctk.CTkOptionMenu(
            control_frame,
            values=list(TOOL_LABELS.keys()),
            variable=self.tool_var,
            width=110
        ).pack(side="left", padx=5)

        self.generate_button = ctk.CTkButton(
            control_frame,
            text="Generate Roster",
            command=self._generate_roster,
            width=140
        )
        self.generate_button.pack(side="left", padx=20)

        ctk.CTkButton(
            control_frame,
            text="Clear",
            command=self._clear_roster,
            width=80,
            fg_color="orange"
        ).pack(side="left", padx=5)

        ctk.CTkButton(
            control_frame,
            text="+ Employee",
            command=self._add_employee,
            width=100
        ).pack(side="left", padx=5)

        ctk.CTkButton(
            control_frame,
            text="Export",
            command=self._export_roster,
            width=80
        ).pack(side="left", padx=5)

        ctk.CTkButton(
            control_frame,
            text="Backup",
            command=self._export_backup,
            width=80
        ).pack(side="left", padx=5)

        ctk.CTkButton(
            control_frame,
            text="Restore",
            command=self._import_backup,
            width=80
        ).pack(side="left", padx=5)

        self.settings_panel = SettingsPanel(self, on_apply=self._apply_settings)
        self.settings_panel.pack(fill="x", padx=10, pady=(0, 5))

        content_frame = ctk.CTkFrame(self)
        content_frame.pack(fill="both", expand=True, padx=10, pady=(0, 10))

        self.roster_grid = RosterGrid(content_frame, self)
        self.roster_grid.pack(side="left", fill="both", expand=True, padx=(0, 5))

        self.dashboard = DashboardPanel(content_frame)
        self.dashboard.pack(side="right", fill="y", padx=(5, 0))

        self.status_var = ctk.StringVar(value="Ready")
        ctk.CTkLabel(self, textvariable=self.status_var).pack(side="bottom", fill="x", padx=10, pady=5)

    def _load_initial_data(self):
        """Load initial data and update displays"""
        self.settings_panel.load(self.data_manager.get_config())
        self.refresh()
        self.status_var.set("Data loaded successfully")

    def _roster_employees(self, config: MonthConfig) -> List[Employee]:
        by_id = {emp.id: emp for emp in self.data_manager.get_employees(config.year, config.month)}
        return [by_id[emp_id] for emp_id in config.staff_ids if emp_id in by_id]

    def refresh(self):
        """Redraw grid and dashboard from stored data"""
        config = self.data_manager.get_config()
        employees = self._roster_employees(config)
        scenario = self.data_manager.get_active_scenario()
        warnings = validate_schedule(employees, config, scenario)

        self.roster_grid.render(config, employees)
        self.dashboard.update_dashboard(config, employees, scenario, warnings)

    def _save(self) -> bool:
        try:
            self.data_manager.save_data()
            return True
        except DataManagerError as e:
            logger.error(f"Failed to save data: {e}")
            messagebox.showerror("Save Failed", f"Changes could not be saved:\n{e}")
            return False

    def _change_month(self, year: int, month: int):
        config = self.data_manager.get_config()
        config.year = year
        config.month = month
        self.data_manager.set_config(config)
        self.current_year = year
        self.current_month = month
        self.last_result = None
        self._save()
        self.refresh()

    def _on_month_change(self, value):
        """Handle month selection change"""
        self._change_month(self.current_year, int(value))

    def _on_year_change(self, value):
        """Handle year selection change"""
        self._change_month(int(value), self.current_month)

    def _apply_settings(self, values: Dict):
        config = self.data_manager.get_config()
        config.requirements = values["requirements"]
        config.thursday_mode = values["thursday_mode"]
        config.holiday_start = values["holiday_start"]
        config.holiday_end = values["holiday_end"]
        config.jan1_workday = values["jan1_workday"]
        self.data_manager.set_config(config)
        if self._save():
            self.status_var.set("Settings applied")
        self.refresh()

    def on_cell_click(self, emp_id: str, day: date, slot: str):
        """Apply the selected tool to one roster cell"""
        if self.generating:
            return
        tool = TOOL_LABELS[self.tool_var.get()]
        employee = self.data_manager.apply_tool(emp_id, day, tool, slot)
        if employee is None:
            return
        self.last_result = None
        self._save()
        self.refresh()

    def _generate_roster(self):
        """Generate the displayed month on a background thread"""
        if self.generating:
            return

        config = self.data_manager.get_config()
        employees = self.data_manager.get_employees(config.year, config.month)

        self.generating = True
        self.generate_button.configure(state="disabled")
        self.status_var.set("Generating roster...")
        self.update()

        def generate():
            try:
                result = self.scheduler.generate_schedule(config, employees)
                self.after(0, self._update_after_generation, result)
            except Exception as e:
                logger.error(f"Roster generation failed: {e}", exc_info=True)
                self.after(0, self._generation_failed, str(e))

        threading.Thread(target=generate, daemon=True).start()

    def _generation_failed(self, error: str):
        self.generating = False
        self.generate_button.configure(state="normal")
        self.status_var.set(f"Error: {error}")
        messagebox.showerror("Roster Generation Failed", f"❌ {error}")

    def _update_after_generation(self, result: GenerationResult):
        """Store the result and update the UI"""
        self.generating = False
        self.generate_button.configure(state="normal")

        # Staff outside the configured list keep their stored records
        generated_ids = {emp.id for emp in result.employees}
        others = [emp for emp in self.data_manager.get_employees() if emp.id not in generated_ids]
        result.employees = result.employees + others

        try:
            self.data_manager.apply_generation_result(result)
        except DataManagerError as e:
            logger.error(f"Failed to store generated roster: {e}")
            messagebox.showerror("Save Failed", f"The generated roster could not be saved:\n{e}")
            return

        self.last_result = result
        self.refresh()
        self.status_var.set(result.message)

        feedback_message = f"✅ Roster Generation Complete\n\n{result.message}"
        if result.warnings:
            feedback_message += f"\n\n⚠️ Coverage warnings:\n{format_warning_lines(result.warnings)}"
        messagebox.showinfo("Roster Generation Complete", feedback_message)

    def _clear_roster(self):
        ClearRosterDialog(self, self.data_manager.get_config(), callback=self._handle_clear_choice)

    def _handle_clear_choice(self, choice: str):
        """Handle user's choice from the clear dialog"""
        if choice not in (CLEAR_GENERATED, CLEAR_ALL):
            self.status_var.set("Clear cancelled")
            return

        result = self.data_manager.clear_month(self.current_year, self.current_month, choice)
        self.last_result = None
        self._save()
        self.refresh()
        self.status_var.set(result["message"])

    def _add_employee(self):
        def on_save(values: Dict):
            self.data_manager.add_employee(values["name"], values["custom_target"])
            self._save()
            self.refresh()

        EmployeeDialog(self, callback=on_save)

    def edit_employee(self, employee: Employee):
        def on_save(values: Dict):
            self.data_manager.update_employee(employee.id, name=values["name"],
                                              custom_target=values["custom_target"])
            self._save()
            self.refresh()

        EmployeeDialog(self, employee=employee, callback=on_save)

    def _export_roster(self):
        """Export current roster to PDF, Excel, or CSV."""
        month_name = calendar.month_name[self.current_month].lower()
        initial_filename = f"duty_roster_{month_name}_{self.current_year}"

        output_path = filedialog.asksaveasfilename(
            initialfile=initial_filename,
            defaultextension=".pdf",
            filetypes=[
                ("PDF files", "*.pdf"),
                ("Excel files", "*.xlsx"),
                ("CSV files", "*.csv"),
                ("All files", "*.*")
            ],
            title="Export Roster"
        )

        if not output_path:
            return  # User cancelled

        file_extension = output_path.split('.')[-1].lower()
        if file_extension == "xlsx":
            format_type = "excel"
        elif file_extension == "csv":
            format_type = "csv"
        else:
            format_type = "pdf"

        success = self.export_manager.export_roster(format_type, output_path, self.last_result)

        if success:
            messagebox.showinfo("Export Successful", f"Roster exported successfully to:\n{output_path}")
        else:
            messagebox.showerror("Export Failed", "Failed to export roster. Please check the file path and try again.")

    def _export_backup(self):
        output_path = filedialog.asksaveasfilename(
            initialfile=f"roster_backup_{self.current_year}_{self.current_month:02d}",
            defaultextension=".json",
            filetypes=[("JSON files", "*.json")],
            title="Save Backup"
        )
        if not output_path:
            return
        if self.data_manager.export_backup(output_path):
            self.status_var.set(f"Backup written to {output_path}")
        else:
            messagebox.showerror("Backup Failed", "The backup file could not be written.")

    def _import_backup(self):
        input_path = filedialog.askopenfilename(
            filetypes=[("JSON files", "*.json")],
            title="Restore Backup"
        )
        if not input_path:
            return
        if not messagebox.askyesno("Restore Backup", "Replace the current roster with this backup?"):
            return

        try:
            self.data_manager.import_backup(input_path)
        except DataManagerError as e:
            messagebox.showerror("Restore Failed", f"The backup could not be loaded:\n{e}")
            return

        config = self.data_manager.get_config()
        self.current_year, self.current_month = config.year, config.month
        self.month_var.set(str(config.month))
        self.year_var.set(str(config.year))
        self.settings_panel.load(config)
        self.last_result = None
        self._save()
        self.refresh()
        self.status_var.set("Backup restored")
