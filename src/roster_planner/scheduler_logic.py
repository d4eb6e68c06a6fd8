"""
Scheduler Logic for Roster Planner

Greedy month generation: a Thursday/Tuesday demand ladder, most-constrained
days first, a CP-SAT enumerated slot decomposition per day, fairness-ranked
candidate selection and a guard against clustered triple-duty days.
"""

from datetime import date, timedelta
from typing import Dict, List, Optional, Any
from dataclasses import dataclass
import copy
import logging
import random
import time

from ortools.sat.python import cp_model

from .data_manager import (
    Cell,
    DutyCode,
    Employee,
    MonthConfig,
    ScenarioChoice,
    ThursdayScenario,
    SLOTS,
    TRIPLE_DUTY,
    DOUBLE_DUTY_BC,
    DOUBLE_DUTY_AB,
    SINGLE_DUTY_A,
    date_key,
    key_in_month,
)
from .calendar_rules import (
    SATURDAY,
    THURSDAY,
    WEEKDAY_NAMES,
    config_base_target,
    get_daily_requirements,
    is_working_day,
    month_dates,
    monthly_demand,
)

logger = logging.getLogger(__name__)


# Duty-point cost of each duty combination
TRIPLE_DUTY_COST = 3
DOUBLE_DUTY_COST = 2
SINGLE_DUTY_COST = 1

# Pools this small waive the adjacency guard and batch trimming
CRITICAL_POOL_SIZE = 5
# Batch size at which a final over-quota pick is dropped
TRIM_BATCH_SIZE = 5

PRIORITY_STAFF_WEIGHT = 100


@dataclass(frozen=True)
class SlotSolution:
    """One exact decomposition of a standard day's headcounts"""
    num_abc: int
    num_bc: int
    num_a: int

    @property
    def staff_needed(self) -> int:
        return self.num_abc + self.num_bc + self.num_a


@dataclass(frozen=True)
class ThursdayPlan:
    num_ab: int
    num_a: int
    cost: int


THURSDAY_PLANS = {
    ThursdayScenario.A: ThursdayPlan(num_ab=5, num_a=0, cost=10),
    ThursdayScenario.B: ThursdayPlan(num_ab=4, num_a=1, cost=9),
    ThursdayScenario.C: ThursdayPlan(num_ab=4, num_a=0, cost=8),
}


@dataclass(frozen=True)
class Candidate:
    employee_id: str
    deficit: int


@dataclass
class DutyCounter:
    """Per-run working counter for one employee"""
    effective_target: int
    assigned: int = 0

    @property
    def deficit(self) -> int:
        return self.effective_target - self.assigned


@dataclass
class DemandStats:
    """Aggregate demand and capacity of a month"""
    total_demand: int
    total_capacity: int

    @property
    def surplus(self) -> int:
        return self.total_capacity - self.total_demand

    @property
    def suggested_special_leaves(self) -> int:
        return max(0, self.surplus // 2)

    def to_dict(self) -> Dict[str, int]:
        return {
            "totalDemand": self.total_demand,
            "totalCapacity": self.total_capacity,
            "surplus": self.surplus,
            "suggestedSpecialLeaves": self.suggested_special_leaves
        }


@dataclass
class GenerationResult:
    """Result of one generation pass"""
    employees: List[Employee]
    warnings: List[str]
    statistics: DemandStats
    scenario: ScenarioChoice
    message: str

    @property
    def fully_covered(self) -> bool:
        return not self.warnings


class _DecompositionCollector(cp_model.CpSolverSolutionCallback):
    """Collects every feasible (num_abc, num_bc, num_a) assignment"""

    def __init__(self, num_abc, num_bc, num_a):
        cp_model.CpSolverSolutionCallback.__init__(self)
        self._num_abc = num_abc
        self._num_bc = num_bc
        self._num_a = num_a
        self.solutions: List[SlotSolution] = []

    def on_solution_callback(self):
        self.solutions.append(SlotSolution(
            num_abc=self.Value(self._num_abc),
            num_bc=self.Value(self._num_bc),
            num_a=self.Value(self._num_a)
        ))


def solve_standard_day(available_staff: int, req_a: int, req_b: int, req_c: int) -> List[SlotSolution]:
    """
    Enumerate exact decompositions of a standard day into triple-duty (ABC),
    double-duty (BC) and single-duty (A) assignments.

    Returns:
        Feasible solutions sorted by staff needed, most staff first.
        Empty when no decomposition meets all three headcounts exactly.
    """
    max_abc = max(0, min(available_staff, req_a, req_b, req_c))

    model = cp_model.CpModel()
    num_abc = model.NewIntVar(0, max_abc, "num_abc")
    num_bc = model.NewIntVar(0, max(0, req_c), "num_bc")
    num_a = model.NewIntVar(0, max(0, req_a), "num_a")

    # Late slot is covered only by ABC and BC
    model.Add(num_abc + num_bc == req_c)
    # Mid slot must come out exact from the same two combinations
    model.Add(num_abc + num_bc == req_b)
    model.Add(num_abc + num_a == req_a)
    model.Add(num_abc + num_bc + num_a <= available_staff)

    collector = _DecompositionCollector(num_abc, num_bc, num_a)
    solver = cp_model.CpSolver()
    solver.parameters.enumerate_all_solutions = True
    solver.parameters.num_workers = 1
    status = solver.Solve(model, collector)

    if status == cp_model.INFEASIBLE:
        logger.debug(f"No decomposition for staff={available_staff} A={req_a} B={req_b} C={req_c}")

    return sorted(collector.solutions, key=lambda s: s.staff_needed, reverse=True)


def solve_thursday(scenario: ThursdayScenario) -> ThursdayPlan:
    return THURSDAY_PLANS[scenario]


def passes_adjacency_guard(employee: Employee, day: date, force: bool = False) -> bool:
    """
    Whether an employee may take triple duty on a day.

    Blocks ABC-ABC-[day], [day]-ABC-ABC and ABC-[day]-ABC. Neighbours without a
    cell yet, or outside the month, do not count as triple duty.
    """
    if force:
        return True

    def triple_on(offset: int) -> bool:
        neighbour = day + timedelta(days=offset)
        if neighbour.month != day.month or neighbour.year != day.year:
            return False
        cell = employee.shifts.get(date_key(neighbour))
        return cell is not None and cell.is_triple_duty

    if triple_on(-1) and triple_on(-2):
        return False
    if triple_on(1) and triple_on(2):
        return False
    if triple_on(-1) and triple_on(1):
        return False
    return True


def total_capacity(employees: List[Employee], base_target: int) -> int:
    """Sum of effective targets, each clamped at zero"""
    return sum(max(0, emp.effective_target(base_target)) for emp in employees)


def count_working_weekdays(config: MonthConfig, weekday: int) -> int:
    return sum(1 for day in month_dates(config.year, config.month)
               if day.weekday() == weekday and is_working_day(day, config))


def select_scenario(config: MonthConfig, capacity: int) -> ScenarioChoice:
    """
    Pick the cheapest Thursday scenario (and Tuesday reduction) that closes
    the gap between baseline demand and capacity.
    """
    explicit = config.thursday_mode.as_scenario()
    if explicit is not None:
        return ScenarioChoice(thursday=explicit, tuesday_reduction=False)

    baseline = monthly_demand(config, ThursdayScenario.A, tuesday_reduction=False)
    gap = baseline - capacity
    if gap <= 0:
        return ScenarioChoice(thursday=ThursdayScenario.A)

    thursdays = count_working_weekdays(config, THURSDAY)
    save_b = thursdays * 1
    save_c = thursdays * 2
    if gap <= save_b:
        return ScenarioChoice(thursday=ThursdayScenario.B)
    if gap <= save_c:
        return ScenarioChoice(thursday=ThursdayScenario.C)
    return ScenarioChoice(thursday=ThursdayScenario.C, tuesday_reduction=True)


def calculate_day_priority(day: date, config: MonthConfig, employees: List[Employee],
                           scenario: ScenarioChoice) -> int:
    """Lower score means fewer free employees relative to demand"""
    key = date_key(day)
    available = sum(1 for emp in employees if key not in emp.shifts)
    requirement = get_daily_requirements(day, config, scenario.thursday, scenario.tuesday_reduction)
    return available * PRIORITY_STAFF_WEIGHT - requirement.total


def prioritize_days(config: MonthConfig, employees: List[Employee], scenario: ScenarioChoice) -> List[date]:
    """Working days of the month, most constrained first"""
    scored = [(calculate_day_priority(day, config, employees, scenario), day)
              for day in month_dates(config.year, config.month)
              if is_working_day(day, config)]
    scored.sort(key=lambda item: item[0])
    return [day for _, day in scored]


def format_warning(day: date, slot: DutyCode, actual: int, required: int) -> str:
    return f"{day.day} ({WEEKDAY_NAMES[day.weekday()]}): slot {slot.value} has {actual} (required {required})"


def validate_schedule(employees: List[Employee], config: MonthConfig, scenario: ScenarioChoice) -> List[str]:
    """Compare per-slot headcounts against demand for every day of the month"""
    warnings = []

    for day in month_dates(config.year, config.month):
        key = date_key(day)
        requirement = get_daily_requirements(day, config, scenario.thursday, scenario.tuesday_reduction)

        counts = {slot: 0 for slot in SLOTS}
        for emp in employees:
            cell = emp.shifts.get(key)
            if cell is None or cell.is_leave:
                continue
            for slot in SLOTS:
                if cell.covers(slot):
                    counts[slot] += 1

        for slot, required in zip(SLOTS, (requirement.a, requirement.b, requirement.c)):
            if counts[slot] != required:
                warnings.append(format_warning(day, slot, counts[slot], required))

    return warnings


def calculate_overview_stats(config: MonthConfig, employees: List[Employee],
                             scenario: ScenarioChoice) -> DemandStats:
    """Demand and capacity for the current cell content, independent of generation"""
    base_target = config_base_target(config)
    for emp in employees:
        emp.recalculate_stats(config.year, config.month)
    return DemandStats(
        total_demand=monthly_demand(config, scenario.thursday, scenario.tuesday_reduction),
        total_capacity=total_capacity(employees, base_target)
    )


class ShiftScheduler:
    """Greedy monthly roster generator"""

    def __init__(self, rng: Optional[random.Random] = None):
        self.random = rng if rng is not None else random.Random()

    def generate_schedule(self, config: MonthConfig, employees: List[Employee]) -> GenerationResult:
        """
        Generate duty assignments for the configured month.

        The input employees are not modified; the result holds working copies
        whose manual cells and other months are untouched.
        """
        start_time = time.time()
        logger.info(f"Starting roster generation for {config.month_key} with {len(config.staff_ids)} employees")

        base_target = config_base_target(config)
        roster = self._initialize_roster(config, employees)
        counters = {emp.id: DutyCounter(effective_target=emp.effective_target(base_target),
                                        assigned=emp.assigned_duty_count)
                    for emp in roster}

        capacity = total_capacity(roster, base_target)
        scenario = select_scenario(config, capacity)
        logger.info(f"Base target {base_target}, capacity {capacity}, using {scenario.describe()}")

        day_queue = prioritize_days(config, roster, scenario)
        logger.info(f"Scheduling {len(day_queue)} working days")

        for day in day_queue:
            self._solve_day(day, config, roster, counters, scenario)

        for emp in roster:
            emp.recalculate_stats(config.year, config.month)

        warnings = validate_schedule(roster, config, scenario)
        statistics = DemandStats(
            total_demand=monthly_demand(config, scenario.thursday, scenario.tuesday_reduction),
            total_capacity=capacity
        )

        message = f"Roster generated for {len(day_queue)} working days using {scenario.describe()}"
        if warnings:
            message += f" with {len(warnings)} coverage warnings"

        duration = time.time() - start_time
        logger.info(f"Roster generation completed in {duration:.2f}s with {len(warnings)} warnings")

        return GenerationResult(
            employees=roster,
            warnings=warnings,
            statistics=statistics,
            scenario=scenario,
            message=message
        )

    def _initialize_roster(self, config: MonthConfig, employees: List[Employee]) -> List[Employee]:
        """Working copies of the configured staff with generated cells of the month removed"""
        by_id = {emp.id: emp for emp in employees}
        roster = []

        for emp_id in config.staff_ids:
            existing = by_id.get(emp_id)
            if existing is not None:
                emp = copy.deepcopy(existing)
            else:
                emp = Employee(id=emp_id, name=f"Employee {emp_id}")

            for key in list(emp.shifts):
                if key_in_month(key, config.year, config.month) and not emp.is_manual(key):
                    del emp.shifts[key]

            emp.recalculate_stats(config.year, config.month)
            roster.append(emp)

        return roster

    def pick_best_candidates(self, pool: List[Employee], count_needed: int, cost: int,
                             counters: Dict[str, DutyCounter]) -> List[Candidate]:
        """
        Rank a pool by quota deficit and take the first count_needed.

        Employees whose deficit covers the cost come first; ties within each
        tier are broken randomly.
        """
        if count_needed <= 0:
            return []

        ranked = [Candidate(emp.id, counters[emp.id].deficit) for emp in pool]
        tier1 = [c for c in ranked if c.deficit >= cost]
        tier2 = [c for c in ranked if c.deficit < cost]

        self.random.shuffle(tier1)
        self.random.shuffle(tier2)

        # Stable sort keeps the shuffled order among equal deficits
        tier1.sort(key=lambda c: c.deficit, reverse=True)
        tier2.sort(key=lambda c: c.deficit, reverse=True)

        return (tier1 + tier2)[:count_needed]

    def _trim_batch(self, candidates: List[Candidate], batch_size: int, critical: bool) -> List[Candidate]:
        """Drop the last of a full five-person batch when that person is already at quota"""
        if critical or batch_size != TRIM_BATCH_SIZE or len(candidates) != TRIM_BATCH_SIZE:
            return candidates
        if candidates[-1].deficit <= 0:
            return candidates[:-1]
        return candidates

    def _apply(self, roster_by_id: Dict[str, Employee], candidates: List[Candidate], key: str,
               cell: Cell, cost: int, counters: Dict[str, DutyCounter]):
        for candidate in candidates:
            emp = roster_by_id[candidate.employee_id]
            emp.shifts[key] = cell
            emp.manual_entries.pop(key, None)
            counters[emp.id].assigned += cost

    def _solve_day(self, day: date, config: MonthConfig, roster: List[Employee],
                   counters: Dict[str, DutyCounter], scenario: ScenarioChoice):
        key = date_key(day)
        roster_by_id = {emp.id: emp for emp in roster}
        pool = [emp for emp in roster if key not in emp.shifts]
        weekday = day.weekday()

        requirement = get_daily_requirements(day, config, scenario.thursday, scenario.tuesday_reduction)

        if weekday == SATURDAY:
            chosen = self.pick_best_candidates(pool, requirement.a, SINGLE_DUTY_COST, counters)
            self._apply(roster_by_id, chosen, key, SINGLE_DUTY_A, SINGLE_DUTY_COST, counters)
            self._log_shortfall(day, "A", requirement.a, len(chosen))
            return

        if weekday == THURSDAY:
            plan = solve_thursday(scenario.thursday)
            chosen_ab = self.pick_best_candidates(pool, plan.num_ab, DOUBLE_DUTY_COST, counters)
            self._apply(roster_by_id, chosen_ab, key, DOUBLE_DUTY_AB, DOUBLE_DUTY_COST, counters)
            self._log_shortfall(day, "AB", plan.num_ab, len(chosen_ab))

            assigned = {c.employee_id for c in chosen_ab}
            pool_a = [emp for emp in pool if emp.id not in assigned]
            chosen_a = self.pick_best_candidates(pool_a, plan.num_a, SINGLE_DUTY_COST, counters)
            self._apply(roster_by_id, chosen_a, key, SINGLE_DUTY_A, SINGLE_DUTY_COST, counters)
            self._log_shortfall(day, "A", plan.num_a, len(chosen_a))
            return

        critical = len(pool) <= CRITICAL_POOL_SIZE
        solutions = solve_standard_day(len(pool), requirement.a, requirement.b, requirement.c)
        best = next((s for s in solutions if s.staff_needed <= len(pool)), None)
        if best is None:
            logger.info(f"{key}: no exact decomposition for {len(pool)} available staff, day left unsolved")
            return

        assigned = set()

        pool_abc = [emp for emp in pool if passes_adjacency_guard(emp, day, force=critical)]
        chosen_abc = self.pick_best_candidates(pool_abc, best.num_abc, TRIPLE_DUTY_COST, counters)
        chosen_abc = self._trim_batch(chosen_abc, best.num_abc, critical)
        self._apply(roster_by_id, chosen_abc, key, TRIPLE_DUTY, TRIPLE_DUTY_COST, counters)
        self._log_shortfall(day, "ABC", best.num_abc, len(chosen_abc))
        assigned.update(c.employee_id for c in chosen_abc)

        pool_bc = [emp for emp in pool if emp.id not in assigned]
        chosen_bc = self.pick_best_candidates(pool_bc, best.num_bc, DOUBLE_DUTY_COST, counters)
        chosen_bc = self._trim_batch(chosen_bc, best.num_bc, critical)
        self._apply(roster_by_id, chosen_bc, key, DOUBLE_DUTY_BC, DOUBLE_DUTY_COST, counters)
        self._log_shortfall(day, "BC", best.num_bc, len(chosen_bc))
        assigned.update(c.employee_id for c in chosen_bc)

        pool_a = [emp for emp in pool if emp.id not in assigned]
        chosen_a = self.pick_best_candidates(pool_a, best.num_a, SINGLE_DUTY_COST, counters)
        self._apply(roster_by_id, chosen_a, key, SINGLE_DUTY_A, SINGLE_DUTY_COST, counters)
        self._log_shortfall(day, "A", best.num_a, len(chosen_a))

    def _log_shortfall(self, day: date, combination: str, needed: int, assigned: int):
        if assigned < needed:
            logger.debug(f"{date_key(day)}: assigned {assigned}/{needed} {combination}")

    def get_employee_summary(self, config: MonthConfig, employees: List[Employee]) -> List[Dict[str, Any]]:
        """Per-employee target, assigned points and remaining deficit for the month"""
        base_target = config_base_target(config)
        summary = []
        for emp in employees:
            emp.recalculate_stats(config.year, config.month)
            target = emp.effective_target(base_target)
            summary.append({
                "id": emp.id,
                "name": emp.name,
                "target": target,
                "assigned": emp.assigned_duty_count,
                "deduction": emp.quota_deduction,
                "deficit": target - emp.assigned_duty_count,
                "custom_target": emp.custom_target is not None
            })
        return summary
