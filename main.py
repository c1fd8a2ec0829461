import sys
import datetime
import logging

from breaker_sizing.calculator import calculate_breaker_sizing
from breaker_sizing.errors import CapacityExceededError, InputValidationError
from breaker_sizing.models import (
    BreakerCalculationInput, CircuitConfiguration, ConductorMaterial, ConductorSize,
    EnvironmentalConditions, LoadMode, LoadType, Phase, SizeUnit, Standard, UnitSystem,
)
from breaker_sizing.report import export_results_to_excel


def ask_float(prompt, default=None):
    raw = input(prompt).strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        print(f"  Invalid number '{raw}', using default.")
        return default


def get_circuit_input():
    print("\n--- Circuit ---")
    std = input("Standard (1) NEC, (2) IEC [1]: ").strip()
    standard = Standard.IEC if std == "2" else Standard.NEC

    voltage = ask_float("Voltage (V) [240]: ", 240.0)
    phase = Phase.THREE if input("Phases (1 or 3) [1]: ").strip() == "3" else Phase.SINGLE

    mode = input("Load given in (1) kW, (2) A [1]: ").strip()
    load_mode = LoadMode.AMPS if mode == "2" else LoadMode.KW
    unit = "A" if load_mode is LoadMode.AMPS else "kW"
    load_value = ask_float(f"Load ({unit}): ", 0.0)
    power_factor = ask_float("Power factor [0.9]: ", 0.9)

    unit_system = UnitSystem.IMPERIAL if standard is Standard.NEC else UnitSystem.METRIC
    return CircuitConfiguration(
        standard=standard,
        voltage=voltage,
        phase=phase,
        load_mode=load_mode,
        load_value=load_value,
        power_factor=power_factor,
        unit_system=unit_system,
    )


def get_environment_input(circuit):
    print("\n--- Installation (leave blank to skip) ---")
    temp = ask_float("Ambient temperature (°C): ")
    grouped = ask_float("Current-carrying conductors in raceway: ")
    distance = ask_float("Circuit length (ft for NEC, m for IEC): ")

    material = None
    size = None
    if distance is not None:
        material = ConductorMaterial.ALUMINUM if input("Conductor (1) Cu, (2) Al [1]: ").strip() == "2" \
            else ConductorMaterial.COPPER
        if circuit.standard is Standard.IEC:
            size = ConductorSize(ask_float("Conductor size (mm²) [2.5]: ", 2.5), SizeUnit.MM2)
        else:
            awg = input("Conductor size (AWG or kcmil) [12]: ").strip() or "12"
            unit = SizeUnit.KCMIL if awg.isdigit() and int(awg) >= 250 else SizeUnit.AWG
            size = ConductorSize(awg, unit)

    if temp is None and grouped is None and distance is None:
        return None
    return EnvironmentalConditions(
        ambient_temperature=temp,
        grouped_cables=int(grouped) if grouped is not None else None,
        circuit_distance=distance,
        conductor_material=material,
        conductor_size=size,
    )


def print_results(results):
    load = results.load_analysis
    sizing = results.breaker_sizing
    breaker = results.recommendations.primary_breaker

    print("-" * 80)
    print(f"Load current:        {load.calculated_current_amps:.2f} A   ({load.formula})")
    print(f"Safety factor:       {sizing.safety_factor}  -> minimum {sizing.minimum_breaker_size_amps:.2f} A")
    if results.derating_factors:
        d = results.derating_factors
        print(f"Derating:            {d.temperature_factor} x {d.grouping_factor} = {d.combined_factor:.3f}"
              f"  -> {d.adjusted_breaker_size_amps:.2f} A")
    print(f"Breaker:             {breaker.rating_amps} A  {breaker.trip.code}  {breaker.breaking_capacity_ka:g} kA"
          f"  ({breaker.code_section})")
    if results.voltage_drop_analysis:
        vd = results.voltage_drop_analysis
        print(f"Voltage drop:        {vd.voltage_drop_percent:.2f}% ({vd.status.value})")
        if vd.recommended_cable_size:
            print(f"Recommended cable:   {vd.recommended_cable_size}")
    print("-" * 80)

    for alert in results.alerts:
        print(f"[{alert.type.value.upper():<7}] {alert.code}: {alert.message}")
    for note in results.recommendations.general_notes:
        print(f"  * {note}")


def export_to_excel(results):
    filename = f"Breaker_Sizing_{datetime.datetime.now().strftime('%Y%m%d_%H%M%S')}.xlsx"
    with open(filename, "wb") as f:
        f.write(export_results_to_excel(results))
    print(f"\n[INFO] Excel written: {filename}")


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")

    print("==========================================================")
    print(" BREAKER SIZING CALCULATOR (NEC / IEC)")
    print("==========================================================")

    circuit = get_circuit_input()
    environment = get_environment_input(circuit)
    load_type = input("Load type (resistive/inductive/mixed/capacitive) [mixed]: ").strip().lower() or "mixed"
    short_circuit = ask_float("Available fault current (kA) [skip]: ")

    try:
        calc_input = BreakerCalculationInput(
            circuit=circuit,
            environment=environment,
            short_circuit_current_ka=short_circuit,
            load_type=LoadType(load_type),
        )
        results = calculate_breaker_sizing(calc_input)
    except InputValidationError as e:
        print("\nInvalid input:")
        for err in e.errors:
            print(f"  - {err}")
        sys.exit(1)
    except CapacityExceededError as e:
        print(f"\n{e}")
        sys.exit(1)
    except ValueError as e:
        print(f"\nInvalid input: {e}")
        sys.exit(1)

    print_results(results)

    ask = input("\nExport report to Excel? (y/n): ").lower()
    if ask == "y":
        export_to_excel(results)


if __name__ == "__main__":
    main()
