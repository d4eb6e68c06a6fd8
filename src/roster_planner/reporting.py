"""
Reporting and Export Module for Roster Planner

Handles PDF, Excel, and CSV export of the monthly roster grid together with
quota statistics and coverage warnings.
"""

import pandas as pd
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer, PageBreak
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from openpyxl.styles import PatternFill, Font
from datetime import datetime
import calendar
from pathlib import Path
from typing import Dict, List, Optional, Any
import logging

from .data_manager import DataManager, Employee, MonthConfig, ScenarioChoice, date_key
from .calendar_rules import (
    WEEKDAY_NAMES,
    config_base_target,
    get_monthly_special_holidays,
    is_working_day,
    month_dates,
)
from .scheduler_logic import (
    GenerationResult,
    DemandStats,
    calculate_overview_stats,
    validate_schedule,
)


class RosterSnapshot:
    """Everything a report needs for one month, taken from a result or from storage"""

    def __init__(self, config: MonthConfig, employees: List[Employee], scenario: ScenarioChoice,
                 statistics: DemandStats, warnings: List[str]):
        self.config = config
        self.employees = employees
        self.scenario = scenario
        self.statistics = statistics
        self.warnings = warnings

    @property
    def base_target(self) -> int:
        return config_base_target(self.config)


class ReportGenerator:
    """Main class for generating reports and exports"""

    def __init__(self, data_manager: DataManager):
        self.data_manager = data_manager
        self.styles = getSampleStyleSheet()
        self._setup_custom_styles()

    def _setup_custom_styles(self):
        """Setup custom report styles"""
        self.styles.add(ParagraphStyle(
            name='CustomTitle',
            parent=self.styles['Heading1'],
            fontSize=18,
            spaceAfter=20,
            alignment=1  # Center alignment
        ))

        self.styles.add(ParagraphStyle(
            name='CustomHeading',
            parent=self.styles['Heading2'],
            fontSize=14,
            spaceAfter=12
        ))

        self.styles.add(ParagraphStyle(
            name='GridCell',
            parent=self.styles['Normal'],
            fontSize=6,
            leading=7,
            alignment=1
        ))

    def build_snapshot(self, generation_result: Optional[GenerationResult] = None) -> RosterSnapshot:
        """Collect the configured month's roster, preferring a fresh generation result"""
        config = self.data_manager.get_config()
        if generation_result:
            employees = generation_result.employees
            scenario = generation_result.scenario
            statistics = generation_result.statistics
            warnings = generation_result.warnings
        else:
            staff = set(config.staff_ids)
            employees = [emp for emp in self.data_manager.get_employees(config.year, config.month)
                         if emp.id in staff]
            scenario = self.data_manager.get_active_scenario()
            statistics = calculate_overview_stats(config, employees, scenario)
            warnings = validate_schedule(employees, config, scenario)
        return RosterSnapshot(config, employees, scenario, statistics, warnings)

    def export_roster_pdf(self, output_path: str,
                          generation_result: Optional[GenerationResult] = None) -> bool:
        """Export the monthly roster grid to PDF with a statistics page"""
        try:
            snapshot = self.build_snapshot(generation_result)
            config = snapshot.config

            doc = SimpleDocTemplate(
                output_path,
                pagesize=landscape(A4),
                rightMargin=0.3*inch,
                leftMargin=0.3*inch,
                topMargin=0.4*inch,
                bottomMargin=0.4*inch
            )

            story = []

            month_name = calendar.month_name[config.month]
            title_text = f"Duty Roster - {month_name} {config.year}"
            if snapshot.warnings:
                title_text += " (Incomplete)"
            story.append(Paragraph(title_text, self.styles['CustomTitle']))
            story.append(Paragraph(snapshot.scenario.describe(), self.styles['Normal']))
            story.append(Spacer(1, 12))

            story.append(self._create_roster_table(snapshot))

            story.append(Spacer(1, 12))
            story.append(self._create_legend())

            story.append(PageBreak())
            story.extend(self._create_statistics_content(snapshot))

            doc.build(story)
            return True

        except Exception as e:
            logging.error(f"Error creating PDF: {e}", exc_info=True)
            return False

    def _create_roster_table(self, snapshot: RosterSnapshot) -> Table:
        """Create the employee by day grid for PDF"""
        config = snapshot.config
        days = month_dates(config.year, config.month)

        header = ['Employee'] + [f"{d.day}\n{WEEKDAY_NAMES[d.weekday()]}" for d in days] + ['Pts', 'Tgt']
        data = [header]

        for emp in snapshot.employees:
            row = [emp.name]
            for day in days:
                cell = emp.shifts.get(date_key(day))
                row.append(cell.label() if cell else '')
            row.append(str(emp.assigned_duty_count))
            row.append(str(emp.effective_target(snapshot.base_target)))
            data.append(row)

        day_width = 0.29*inch
        col_widths = [1.0*inch] + [day_width] * len(days) + [0.35*inch, 0.35*inch]
        table = Table(data, colWidths=col_widths, repeatRows=1)

        style = [
            ('BACKGROUND', (0, 0), (-1, 0), colors.grey),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
            ('ALIGN', (0, 0), (-1, -1), 'CENTER'),
            ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 6),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.black),
        ]

        # Shade days that need no staffing
        for col, day in enumerate(days, 1):
            if not is_working_day(day, config):
                style.append(('BACKGROUND', (col, 1), (col, -1), colors.lightgrey))

        # Highlight manual cells and leave symbols
        for row_idx, emp in enumerate(snapshot.employees, 1):
            for col, day in enumerate(days, 1):
                key = date_key(day)
                cell = emp.shifts.get(key)
                if cell is None:
                    continue
                if cell.is_leave:
                    style.append(('BACKGROUND', (col, row_idx), (col, row_idx), colors.lightyellow))
                elif emp.is_manual(key):
                    style.append(('BACKGROUND', (col, row_idx), (col, row_idx), colors.lightblue))

        table.setStyle(TableStyle(style))
        return table

    def _create_legend(self) -> Table:
        """Create legend for PDF"""
        legend_data = [
            ['Legend'],
            ['A / B / C  early, mid and late duty'],
            ['Xa / Xb / Xc  slot closed for this employee'],
            ['X, O, SL, WL, ML, NY, BL  leave symbols (yellow)'],
            ['Blue cells were set manually; grey columns need no staffing'],
        ]

        legend_table = Table(legend_data, colWidths=[4*inch])
        legend_table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), colors.lightgrey),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('ALIGN', (0, 0), (-1, -1), 'LEFT'),
            ('FONTSIZE', (0, 0), (-1, -1), 8),
            ('GRID', (0, 0), (-1, -1), 1, colors.black),
        ]))

        return legend_table

    def _create_statistics_content(self, snapshot: RosterSnapshot) -> List:
        """Create statistics and warnings content for PDF"""
        content = []
        config = snapshot.config
        stats = snapshot.statistics

        content.append(Paragraph("Roster Statistics", self.styles['CustomTitle']))
        content.append(Spacer(1, 12))

        content.append(Paragraph("Demand Summary", self.styles['CustomHeading']))
        summary_data = [
            ['Metric', 'Value'],
            ['Base Target', str(snapshot.base_target)],
            ['Total Demand', str(stats.total_demand)],
            ['Total Capacity', str(stats.total_capacity)],
            ['Surplus', f"{stats.surplus:+d}"],
            ['Suggested Special Leaves', str(stats.suggested_special_leaves)],
            ['Scenario', snapshot.scenario.describe()],
            ['Coverage Warnings', str(len(snapshot.warnings))],
        ]
        holidays = get_monthly_special_holidays(config.year, config.month, config.jan1_workday)
        if holidays:
            summary_data.append(['Holidays', ', '.join(holidays)])

        summary_table = Table(summary_data, colWidths=[2.5*inch, 4*inch])
        summary_table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), colors.grey),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
            ('ALIGN', (0, 0), (-1, -1), 'LEFT'),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('GRID', (0, 0), (-1, -1), 1, colors.black),
        ]))
        content.append(summary_table)
        content.append(Spacer(1, 20))

        content.append(Paragraph("Individual Employee Statistics", self.styles['CustomHeading']))
        emp_rows = self._employee_rows(snapshot)
        emp_data = [['Employee', 'Target', 'Deduction', 'Assigned', 'Deficit']]
        for row in emp_rows:
            emp_data.append([row['Employee'], str(row['Target']), str(row['Deduction']),
                             str(row['Assigned']), f"{row['Deficit']:+d}"])

        emp_table = Table(emp_data, colWidths=[2.0*inch, 1.0*inch, 1.0*inch, 1.0*inch, 1.0*inch])
        emp_style = [
            ('BACKGROUND', (0, 0), (-1, 0), colors.grey),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
            ('ALIGN', (0, 0), (-1, -1), 'CENTER'),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('GRID', (0, 0), (-1, -1), 1, colors.black),
            ('FONTSIZE', (0, 0), (-1, -1), 9),
        ]
        # Over quota in red, under quota in yellow
        for i, row in enumerate(emp_rows, 1):
            if row['Deficit'] < 0:
                emp_style.append(('BACKGROUND', (0, i), (-1, i), colors.lightcoral))
            elif row['Deficit'] > 0:
                emp_style.append(('BACKGROUND', (0, i), (-1, i), colors.lightyellow))
        emp_table.setStyle(TableStyle(emp_style))
        content.append(emp_table)

        if snapshot.warnings:
            content.append(Spacer(1, 20))
            content.append(Paragraph("Coverage Warnings", self.styles['CustomHeading']))
            for warning in snapshot.warnings:
                content.append(Paragraph(warning, self.styles['Normal']))

        return content

    def _employee_rows(self, snapshot: RosterSnapshot) -> List[Dict[str, Any]]:
        rows = []
        for emp in snapshot.employees:
            emp.recalculate_stats(snapshot.config.year, snapshot.config.month)
            target = emp.effective_target(snapshot.base_target)
            rows.append({
                'Employee': emp.name,
                'Target': target,
                'Custom_Target': emp.custom_target if emp.custom_target is not None else '',
                'Deduction': emp.quota_deduction,
                'Assigned': emp.assigned_duty_count,
                'Deficit': target - emp.assigned_duty_count,
            })
        return rows

    def export_roster_excel(self, output_path: str,
                            generation_result: Optional[GenerationResult] = None) -> bool:
        """Export roster, summary and warnings to an Excel workbook"""
        try:
            snapshot = self.build_snapshot(generation_result)

            with pd.ExcelWriter(output_path, engine='openpyxl') as writer:
                self._create_roster_dataframe(snapshot).to_excel(writer, sheet_name='Roster', index=False)
                self._create_summary_dataframe(snapshot).to_excel(writer, sheet_name='Summary', index=False)
                self._create_warnings_dataframe(snapshot).to_excel(writer, sheet_name='Warnings', index=False)

                self._format_excel_worksheets(writer)

            return True

        except Exception as e:
            logging.error(f"Error exporting to Excel: {e}", exc_info=True)
            return False

    def _create_roster_dataframe(self, snapshot: RosterSnapshot) -> pd.DataFrame:
        """One row per employee, one column per day"""
        days = month_dates(snapshot.config.year, snapshot.config.month)
        data = []
        for emp in snapshot.employees:
            row = {'Employee': emp.name}
            for day in days:
                cell = emp.shifts.get(date_key(day))
                row[f"{day.day} {WEEKDAY_NAMES[day.weekday()]}"] = cell.label() if cell else ''
            row['Assigned'] = emp.assigned_duty_count
            row['Target'] = emp.effective_target(snapshot.base_target)
            data.append(row)

        columns = ['Employee'] + [f"{d.day} {WEEKDAY_NAMES[d.weekday()]}" for d in days] + ['Assigned', 'Target']
        return pd.DataFrame(data, columns=columns)

    def _create_summary_dataframe(self, snapshot: RosterSnapshot) -> pd.DataFrame:
        stats = snapshot.statistics
        data = [
            {'Metric': 'Month', 'Value': snapshot.config.month_key},
            {'Metric': 'Scenario', 'Value': snapshot.scenario.describe()},
            {'Metric': 'Base Target', 'Value': snapshot.base_target},
            {'Metric': 'Total Demand', 'Value': stats.total_demand},
            {'Metric': 'Total Capacity', 'Value': stats.total_capacity},
            {'Metric': 'Surplus', 'Value': stats.surplus},
            {'Metric': 'Suggested Special Leaves', 'Value': stats.suggested_special_leaves},
        ]
        summary_df = pd.DataFrame(data)
        employee_df = pd.DataFrame(self._employee_rows(snapshot))
        return pd.concat([summary_df, employee_df], ignore_index=True)

    def _create_warnings_dataframe(self, snapshot: RosterSnapshot) -> pd.DataFrame:
        return pd.DataFrame({'Warning': snapshot.warnings}, columns=['Warning'])

    def _format_excel_worksheets(self, writer):
        """Format Excel worksheets"""
        header_fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
        header_font = Font(color="FFFFFF", bold=True)

        for worksheet in writer.sheets.values():
            for cell in worksheet[1]:
                cell.fill = header_fill
                cell.font = header_font

            # Auto-adjust column widths
            for column in worksheet.columns:
                column_letter = column[0].column_letter
                max_length = max((len(str(cell.value)) for cell in column if cell.value is not None), default=0)
                worksheet.column_dimensions[column_letter].width = min(max_length + 2, 50)

    def export_roster_csv(self, output_path: str,
                          generation_result: Optional[GenerationResult] = None) -> bool:
        """Export roster grid to CSV format"""
        try:
            snapshot = self.build_snapshot(generation_result)
            self._create_roster_dataframe(snapshot).to_csv(output_path, index=False)
            return True

        except Exception as e:
            logging.error(f"Error exporting to CSV: {e}", exc_info=True)
            return False

    def create_dashboard_summary(self, generation_result: Optional[GenerationResult] = None) -> str:
        """Create text summary for dashboard display"""
        snapshot = self.build_snapshot(generation_result)
        config = snapshot.config
        stats = snapshot.statistics

        rows = self._employee_rows(snapshot)
        over_quota = [r['Employee'] for r in rows if r['Deficit'] < 0]
        under_quota = [r['Employee'] for r in rows if r['Deficit'] > 0]

        summary = f"""
ROSTER SUMMARY - {calendar.month_name[config.month]} {config.year}

Demand:
• Scenario: {snapshot.scenario.describe()}
• Base Target: {snapshot.base_target}
• Total Demand: {stats.total_demand}
• Total Capacity: {stats.total_capacity}
• Surplus: {stats.surplus:+d}
• Suggested Special Leaves: {stats.suggested_special_leaves}

Workload:
• Employees: {len(rows)}
• Over Quota: {len(over_quota)}
• Under Quota: {len(under_quota)}

Coverage Warnings: {len(snapshot.warnings)}
        """

        if over_quota:
            summary += "\nOVER QUOTA:"
            for name in over_quota:
                summary += f"\n• {name}"

        return summary.strip()


class ExportManager:
    """Manager class for handling all export operations"""

    FORMAT_EXTENSIONS = {'pdf': 'pdf', 'excel': 'xlsx', 'csv': 'csv'}

    def __init__(self, data_manager: DataManager):
        self.data_manager = data_manager
        self.report_generator = ReportGenerator(data_manager)

    def export_roster(self, format_type: str, output_path: str,
                      generation_result: Optional[GenerationResult] = None) -> bool:
        """Export the configured month in the specified format"""
        if format_type.lower() == 'pdf':
            return self.report_generator.export_roster_pdf(output_path, generation_result)
        elif format_type.lower() == 'excel':
            return self.report_generator.export_roster_excel(output_path, generation_result)
        elif format_type.lower() == 'csv':
            return self.report_generator.export_roster_csv(output_path, generation_result)
        else:
            raise ValueError(f"Unsupported format: {format_type}")

    def get_default_filename(self, year: int, month: int, format_type: str) -> str:
        """Generate default filename for export"""
        month_name = calendar.month_name[month].lower()
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        extension = self.FORMAT_EXTENSIONS.get(format_type.lower(), format_type.lower())

        return f"duty_roster_{month_name}_{year}_{timestamp}.{extension}"

    def batch_export(self, output_dir: str, formats: List[str] = None,
                     generation_result: Optional[GenerationResult] = None) -> Dict[str, bool]:
        """Export the roster in multiple formats"""
        if formats is None:
            formats = ['pdf', 'excel', 'csv']

        config = self.data_manager.get_config()
        results = {}
        output_path = Path(output_dir)
        output_path.mkdir(parents=True, exist_ok=True)

        for format_type in formats:
            filename = self.get_default_filename(config.year, config.month, format_type)
            file_path = output_path / filename

            try:
                results[format_type] = self.export_roster(format_type, str(file_path), generation_result)
            except ValueError as e:
                logging.error(f"Error exporting {format_type}: {e}", exc_info=True)
                results[format_type] = False

        return results
