import dataclasses
import unittest
from unittest import mock

from breaker_sizing.cache import CalculationCache
from breaker_sizing.calculator import (
    calculate_breaker_sizing, quick_breaker_lookup, recalculate_with_standard,
)
from breaker_sizing.config import CalculatorConfig
from breaker_sizing.errors import CapacityExceededError, InputValidationError
from breaker_sizing.models import (
    AlertType, BreakerCalculationInput, CircuitConfiguration, ConductorMaterial, ConductorSize,
    EnvironmentalConditions, FactorType, InstallationMethod, LoadMode, LoadType, NECTripType,
    Phase, Severity, SizeUnit, Standard, TripCurveType, VoltageDropStatus,
)
from breaker_sizing.stages import run_optional_stage


def nec_heater(**kwargs):
    # 10 kW, 240 V single-phase, PF 0.9 -> 46.296 A
    circuit = CircuitConfiguration(standard=Standard.NEC, voltage=240, phase=Phase.SINGLE,
                                   load_mode=LoadMode.KW, load_value=10, power_factor=0.9)
    return BreakerCalculationInput(circuit=circuit, **kwargs)


def iec_motor(**kwargs):
    # 50 kW, 400 V three-phase, PF 0.9 -> 80.19 A
    circuit = CircuitConfiguration(standard=Standard.IEC, voltage=400, phase=Phase.THREE,
                                   load_mode=LoadMode.KW, load_value=50, power_factor=0.9)
    return BreakerCalculationInput(circuit=circuit, **kwargs)


class TestPipeline(unittest.TestCase):
    def test_nec_basic(self):
        results = calculate_breaker_sizing(nec_heater())
        self.assertAlmostEqual(results.load_analysis.calculated_current_amps, 46.296296, places=5)
        self.assertEqual(results.load_analysis.continuous_load_factor, 1.25)
        self.assertEqual(results.load_analysis.input_power, 10)
        self.assertIsNone(results.load_analysis.input_current)
        sizing = results.breaker_sizing
        self.assertAlmostEqual(sizing.minimum_breaker_size_amps, 57.87037, places=4)
        self.assertEqual(sizing.safety_factor_type, FactorType.CONTINUOUS_LOAD)
        self.assertEqual(sizing.recommended_breaker_amps, 60)
        breaker = results.recommendations.primary_breaker
        self.assertEqual(breaker.trip_type, NECTripType.THERMAL_MAGNETIC)
        self.assertIsNone(breaker.trip_curve)
        self.assertEqual(breaker.breaking_capacity_ka, 10.0)
        self.assertTrue(breaker.is_safe)
        self.assertIsNone(results.derating_factors)
        self.assertIsNone(results.voltage_drop_analysis)
        self.assertEqual([a.code for a in results.alerts], ["BREAKING_CAPACITY_NOT_VERIFIED"])
        self.assertEqual(results.calculation_version, "1.0.0")

    def test_iec_three_phase(self):
        results = calculate_breaker_sizing(iec_motor(load_type=LoadType.INDUCTIVE))
        self.assertAlmostEqual(results.load_analysis.calculated_current_amps, 80.1875, places=3)
        self.assertEqual(results.breaker_sizing.safety_factor, 1.0)
        self.assertEqual(results.breaker_sizing.recommended_breaker_amps, 100)
        self.assertEqual(results.recommendations.primary_breaker.trip_curve, TripCurveType.D)
        self.assertNotIn("NEC 125% continuous load factor applied per Article 210.20(A)",
                         results.recommendations.general_notes)

    def test_amps_mode(self):
        circuit = CircuitConfiguration(standard=Standard.NEC, voltage=208, phase=Phase.THREE,
                                       load_mode=LoadMode.AMPS, load_value=32)
        results = calculate_breaker_sizing(BreakerCalculationInput(circuit=circuit))
        self.assertEqual(results.load_analysis.formula, "I = (user input)")
        self.assertEqual(results.load_analysis.input_current, 32)
        self.assertEqual(results.breaker_sizing.minimum_breaker_size_amps, 40.0)
        self.assertEqual(results.breaker_sizing.recommended_breaker_amps, 40)

    def test_dict_input(self):
        results = calculate_breaker_sizing({
            "circuit": {"standard": "IEC", "voltage": 230, "phase": "single",
                        "load_mode": "amps", "load_value": 14},
            "load_type": "resistive",
        })
        self.assertEqual(results.breaker_sizing.recommended_breaker_amps, 16)
        self.assertEqual(results.recommendations.primary_breaker.trip_curve, TripCurveType.B)

    def test_derating_raises_breaker(self):
        env = EnvironmentalConditions(ambient_temperature=40, grouped_cables=6,
                                      conductor_material=ConductorMaterial.COPPER,
                                      conductor_size=ConductorSize("6", SizeUnit.AWG))
        results = calculate_breaker_sizing(nec_heater(environment=env, short_circuit_current_ka=5))
        # 57.87 / 0.728 = 79.49 A -> 80 A
        self.assertAlmostEqual(results.derating_factors.adjusted_breaker_size_amps, 79.492, places=3)
        self.assertEqual(results.breaker_sizing.recommended_breaker_amps, 80)
        # Minimum size reported before derating
        self.assertAlmostEqual(results.breaker_sizing.minimum_breaker_size_amps, 57.87037, places=4)
        codes = [a.code for a in results.alerts]
        self.assertIn("HIGH_CONDUCTOR_UTILIZATION", codes)
        self.assertNotIn("BREAKING_CAPACITY_NOT_VERIFIED", codes)

    def test_iec_significant_derating(self):
        env = EnvironmentalConditions(ambient_temperature=45, grouped_cables=9,
                                      installation_method=InstallationMethod.B1)
        results = calculate_breaker_sizing(iec_motor(environment=env))
        self.assertAlmostEqual(results.derating_factors.combined_factor, 0.6873)
        # 80.19 / 0.6873 = 116.7 A -> 125 A
        self.assertEqual(results.breaker_sizing.recommended_breaker_amps, 125)
        self.assertIn("SIGNIFICANT_DERATING", [a.code for a in results.alerts])

    def test_capacity_exceeded(self):
        circuit = CircuitConfiguration(standard=Standard.NEC, voltage=480, phase=Phase.THREE,
                                       load_mode=LoadMode.AMPS, load_value=4000)
        with self.assertRaises(CapacityExceededError) as ctx:
            calculate_breaker_sizing(BreakerCalculationInput(circuit=circuit))
        err = ctx.exception
        self.assertEqual(err.alert.code, "BREAKER_SIZE_EXCEEDED")
        self.assertEqual(err.alert.severity, Severity.CRITICAL)
        self.assertIn("5000.0A", err.alert.message)
        self.assertIs(err.alerts[-1], err.alert)

    def test_invalid_input_lists_every_error(self):
        circuit = CircuitConfiguration(standard=Standard.NEC, voltage=50, phase=Phase.SINGLE,
                                       load_mode=LoadMode.KW, load_value=-1, power_factor=1.4)
        with self.assertRaises(InputValidationError) as ctx:
            calculate_breaker_sizing(BreakerCalculationInput(circuit=circuit))
        errors = ctx.exception.errors
        self.assertEqual(len(errors), 3)
        self.assertTrue(any(e.startswith("circuit.voltage") for e in errors))
        self.assertTrue(any(e.startswith("circuit.load_value") for e in errors))
        self.assertTrue(any(e.startswith("circuit.power_factor") for e in errors))

    def test_environment_validation(self):
        env = EnvironmentalConditions(ambient_temperature=90, circuit_distance=-5)
        with self.assertRaises(InputValidationError) as ctx:
            calculate_breaker_sizing(nec_heater(environment=env))
        self.assertEqual(len(ctx.exception.errors), 2)


class TestShortCircuit(unittest.TestCase):
    def test_insufficient_breaking_capacity(self):
        results = calculate_breaker_sizing(nec_heater(short_circuit_current_ka=25))
        breaker = results.recommendations.primary_breaker
        self.assertFalse(breaker.is_safe)
        self.assertEqual(breaker.warnings[0].code, "INSUFFICIENT_BREAKING_CAPACITY")
        alert = results.alerts[-1]
        self.assertEqual(alert.code, "SHORT_CIRCUIT_CAPACITY_LOW")
        self.assertEqual(alert.severity, Severity.MAJOR)
        self.assertEqual(alert.code_reference, "NEC 110.9")

    def test_higher_rated_breaker_chosen(self):
        results = calculate_breaker_sizing(nec_heater(short_circuit_current_ka=25,
                                                      breaking_capacity_ka=50))
        breaker = results.recommendations.primary_breaker
        self.assertTrue(breaker.is_safe)
        self.assertEqual(breaker.breaking_capacity_ka, 50)
        self.assertEqual(results.alerts, ())

    def test_default_capacity_from_config(self):
        config = CalculatorConfig(default_breaking_capacity_ka=35.0)
        results = calculate_breaker_sizing(nec_heater(short_circuit_current_ka=25), config)
        self.assertTrue(results.recommendations.primary_breaker.is_safe)


class TestOptionalStages(unittest.TestCase):
    def test_failing_derating_falls_back_to_minimum_size(self):
        env = EnvironmentalConditions(ambient_temperature=40, grouped_cables=6)
        with mock.patch("breaker_sizing.calculator.derate_breaker_size",
                        side_effect=ValueError("derated ampacity is zero")):
            with self.assertLogs("breaker_sizing.calculator", level="WARNING") as logs:
                results = calculate_breaker_sizing(nec_heater(environment=env))
        self.assertIsNone(results.derating_factors)
        # 57.87 A minimum, no derating -> 60 A
        self.assertAlmostEqual(results.breaker_sizing.minimum_breaker_size_amps, 57.87037, places=4)
        self.assertEqual(results.breaker_sizing.recommended_breaker_amps, 60)
        self.assertIsNotNone(results.recommendations)
        self.assertTrue(any("[derating] skipped: derated ampacity is zero" in line
                            for line in logs.output))

    def test_unknown_conductor_skips_voltage_drop(self):
        env = EnvironmentalConditions(circuit_distance=100, conductor_material=ConductorMaterial.COPPER,
                                      conductor_size=ConductorSize("7", SizeUnit.AWG))
        with self.assertLogs("breaker_sizing.calculator", level="WARNING") as logs:
            results = calculate_breaker_sizing(nec_heater(environment=env))
        self.assertIsNone(results.voltage_drop_analysis)
        self.assertIsNone(results.recommendations.cable_guidance)
        self.assertEqual(results.breaker_sizing.recommended_breaker_amps, 60)
        self.assertIn("[voltage-drop] skipped", logs.output[0])

    def test_voltage_drop_runs_with_distance_and_material(self):
        circuit = CircuitConfiguration(standard=Standard.NEC, voltage=240, phase=Phase.SINGLE,
                                       load_mode=LoadMode.AMPS, load_value=40, power_factor=1.0)
        env = EnvironmentalConditions(circuit_distance=100, conductor_material=ConductorMaterial.COPPER,
                                      conductor_size=ConductorSize("10", SizeUnit.AWG))
        results = calculate_breaker_sizing(BreakerCalculationInput(circuit=circuit, environment=env))
        vd = results.voltage_drop_analysis
        self.assertEqual(vd.status, VoltageDropStatus.ERROR)
        self.assertEqual(vd.recommended_cable_size, "#8 AWG")
        self.assertEqual(results.recommendations.cable_guidance.recommended_size, "#8 AWG")
        # No derating requested
        self.assertIsNone(results.derating_factors)

    def test_extreme_ambient_warns_before_derating(self):
        # 70°C is the validation ceiling; 90°C insulation still has 0.58 there
        env = EnvironmentalConditions(ambient_temperature=70)
        results = calculate_breaker_sizing(nec_heater(environment=env))
        self.assertAlmostEqual(results.derating_factors.temperature_factor, 0.58)
        codes = [a.code for a in results.alerts]
        self.assertEqual(codes[0], "INPUT_WARNING")

    def test_alert_order_follows_stages(self):
        circuit = CircuitConfiguration(standard=Standard.NEC, voltage=230, phase=Phase.SINGLE,
                                       load_mode=LoadMode.AMPS, load_value=40, power_factor=1.0)
        env = EnvironmentalConditions(ambient_temperature=40, grouped_cables=6,
                                      circuit_distance=100, conductor_material=ConductorMaterial.COPPER,
                                      conductor_size=ConductorSize("10", SizeUnit.AWG))
        results = calculate_breaker_sizing(BreakerCalculationInput(circuit=circuit, environment=env,
                                                                   short_circuit_current_ka=25))
        codes = [a.code for a in results.alerts]
        self.assertEqual(codes[0], "INPUT_WARNING")
        self.assertLess(codes.index("AMPACITY_EXCEEDED"), codes.index("SHORT_CIRCUIT_CAPACITY_LOW"))
        self.assertEqual(codes[-1], "VOLTAGE_DROP_ISSUE")

    def test_run_optional_stage(self):
        ok = run_optional_stage("double", lambda x: x * 2, 21)
        self.assertTrue(ok.ok)
        self.assertEqual(ok.value, 42)

        failed = run_optional_stage("divide", lambda x: 1 / x, 0)
        self.assertFalse(failed.ok)
        self.assertIsInstance(failed.error, ZeroDivisionError)

        with self.assertRaises(KeyError):
            run_optional_stage("lookup", lambda: {}["missing"])


class TestDeterminismAndHelpers(unittest.TestCase):
    def test_repeated_calls_identical(self):
        env = EnvironmentalConditions(ambient_temperature=35, grouped_cables=4, circuit_distance=60,
                                      conductor_material=ConductorMaterial.ALUMINUM,
                                      conductor_size=ConductorSize("4", SizeUnit.AWG))
        first = calculate_breaker_sizing(nec_heater(environment=env)).to_dict()
        second = calculate_breaker_sizing(nec_heater(environment=env)).to_dict()
        first.pop("calculated_at")
        second.pop("calculated_at")
        self.assertEqual(first, second)

    def test_to_dict_tags_trip_variant(self):
        data = calculate_breaker_sizing(nec_heater()).to_dict()
        trip = data["recommendations"]["primary_breaker"]["trip"]
        self.assertEqual(trip, {"trip_type": "thermal-magnetic", "kind": "TripType"})
        self.assertEqual(data["breaker_sizing"]["safety_factor_type"], "continuous-load")

    def test_quick_lookup(self):
        quick = quick_breaker_lookup(46.3, Standard.NEC)
        self.assertEqual(quick.minimum_breaker_size_amps, 57.875)
        self.assertEqual(quick.recommended_breaker_amps, 60)
        self.assertIsNone(quick_breaker_lookup(3500, Standard.NEC).recommended_breaker_amps)

    def test_recalculate_with_standard(self):
        data = nec_heater()
        iec = recalculate_with_standard(data, Standard.IEC)
        self.assertEqual(iec.breaker_sizing.recommended_standard, Standard.IEC)
        # 46.3 A with no multiplier -> 50 A
        self.assertEqual(iec.breaker_sizing.recommended_breaker_amps, 50)
        self.assertEqual(data.circuit.standard, Standard.NEC)

    def test_recalculate_accepts_dict(self):
        iec = recalculate_with_standard({
            "circuit": {"standard": "NEC", "voltage": 230, "phase": "single",
                        "load_mode": "amps", "load_value": 14},
        }, Standard.IEC)
        self.assertEqual(iec.breaker_sizing.recommended_standard, Standard.IEC)
        self.assertEqual(iec.breaker_sizing.recommended_breaker_amps, 16)

    def test_recalculate_rejects_invalid_dict(self):
        with self.assertRaises(InputValidationError):
            recalculate_with_standard({"circuit": {"standard": "NEC", "voltage": -1}}, Standard.IEC)

    def test_cache_returns_stored_result(self):
        cache = CalculationCache(max_size=4)
        first = calculate_breaker_sizing(nec_heater(), cache=cache)
        second = calculate_breaker_sizing(nec_heater(), cache=cache)
        self.assertIs(first, second)
        self.assertEqual(len(cache), 1)
        other = calculate_breaker_sizing(dataclasses.replace(nec_heater(), load_type=LoadType.RESISTIVE),
                                         cache=cache)
        self.assertIsNot(other, first)
        self.assertEqual(len(cache), 2)

    def test_results_are_frozen(self):
        results = calculate_breaker_sizing(nec_heater())
        with self.assertRaises(dataclasses.FrozenInstanceError):
            results.calculation_version = "2"
        self.assertEqual(results.alerts[0].type, AlertType.INFO)


if __name__ == '__main__':
    unittest.main()
