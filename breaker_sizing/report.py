import io
from typing import Dict

import pandas as pd
from openpyxl.styles import Font, PatternFill

from breaker_sizing.models import CalculationResults

SHEET_NAMES = {
    "summary": "Summary",
    "alerts": "Alerts",
    "derating": "Derating",
    "voltage_drop": "Voltage Drop",
}
ALERT_COLUMNS = ["Type", "Code", "Severity", "Message", "Code Reference"]


def _summary_rows(results: CalculationResults) -> list:
    load = results.load_analysis
    sizing = results.breaker_sizing
    breaker = results.recommendations.primary_breaker
    rows = [
        ("Standard", sizing.recommended_standard.value),
        ("Load Current (A)", round(load.calculated_current_amps, 2)),
        ("Formula", load.formula),
        ("Safety Factor", sizing.safety_factor),
        ("Minimum Breaker Size (A)", round(sizing.minimum_breaker_size_amps, 2)),
        ("Recommended Breaker (A)", sizing.recommended_breaker_amps),
        ("Trip", breaker.trip.code),
        ("Breaking Capacity (kA)", breaker.breaking_capacity_ka),
        ("Safe", "Yes" if breaker.is_safe else "No"),
        ("Code Section", breaker.code_section),
    ]
    guidance = results.recommendations.cable_guidance
    if guidance is not None and guidance.recommended_size:
        rows.append(("Recommended Cable", guidance.recommended_size))
    rows.append(("Calculated At", results.calculated_at))
    rows.append(("Version", results.calculation_version))
    return rows


def results_to_frames(results: CalculationResults) -> Dict[str, pd.DataFrame]:
    """Tabular views of a calculation, one DataFrame per report section."""
    summary = pd.DataFrame(_summary_rows(results), columns=["Parameter", "Value"])

    alerts = pd.DataFrame(
        [[a.type.value, a.code, a.severity.value, a.message, a.code_reference or ""]
         for a in results.alerts],
        columns=ALERT_COLUMNS,
    )

    derating = pd.DataFrame(columns=["Parameter", "Value"])
    d = results.derating_factors
    if d is not None:
        derating = pd.DataFrame([
            {"Parameter": "Ambient Temperature (°C)", "Value": d.ambient_temperature},
            {"Parameter": "Grouped Conductors", "Value": d.grouped_conductors},
            {"Parameter": "Temperature Factor", "Value": d.temperature_factor},
            {"Parameter": "Grouping Factor", "Value": d.grouping_factor},
            {"Parameter": "Combined Factor", "Value": d.combined_factor},
            {"Parameter": "Adjusted Breaker Size (A)", "Value": round(d.adjusted_breaker_size_amps, 2)},
            {"Parameter": "Derated Ampacity (A)", "Value": d.adjusted_ampacity},
            {"Parameter": "Utilization (%)", "Value": d.utilization_percent},
            {"Parameter": "Code Reference", "Value": d.code_reference},
        ])

    voltage_drop = pd.DataFrame(columns=["Parameter", "Value"])
    vd = results.voltage_drop_analysis
    if vd is not None:
        voltage_drop = pd.DataFrame([
            {"Parameter": "Conductor", "Value": vd.conductor_size},
            {"Parameter": "Distance", "Value": vd.circuit_distance},
            {"Parameter": "Voltage Drop (V)", "Value": round(vd.voltage_drop_volts, 3)},
            {"Parameter": "Voltage Drop (%)", "Value": round(vd.voltage_drop_percent, 3)},
            {"Parameter": "Voltage at Load (V)", "Value": round(vd.voltage_at_load, 2)},
            {"Parameter": "Power Loss (W)", "Value": round(vd.power_loss_watts, 2)},
            {"Parameter": "Status", "Value": vd.status.value},
            {"Parameter": "Assessment", "Value": vd.assessment},
            {"Parameter": "Recommended Cable", "Value": vd.recommended_cable_size or ""},
        ])

    return {
        "summary": summary,
        "alerts": alerts,
        "derating": derating,
        "voltage_drop": voltage_drop,
    }


def export_results_to_excel(results: CalculationResults) -> bytes:
    """Workbook bytes with one sheet per report section."""
    output = io.BytesIO()
    header_fill = PatternFill(start_color="DDDDDD", end_color="DDDDDD", fill_type="solid")
    header_font = Font(bold=True)

    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        for key, frame in results_to_frames(results).items():
            sheet_name = SHEET_NAMES[key]
            frame.to_excel(writer, index=False, sheet_name=sheet_name)
            ws = writer.sheets[sheet_name]
            for cell in ws[1]:
                cell.font = header_font
                cell.fill = header_fill
            for col in ws.columns:
                ws.column_dimensions[col[0].column_letter].width = 15

    return output.getvalue()
