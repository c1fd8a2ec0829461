import math
import unittest

from breaker_sizing.config import DEFAULT_CONFIG
from breaker_sizing.errors import UnsupportedSizeError
from breaker_sizing.models import (
    AlertType, CircuitConfiguration, ConductorMaterial, ConductorSize, CostImpact,
    EnvironmentalConditions, InstallationDifficulty, LoadMode, Phase, SizeUnit, Standard,
    VoltageDropStatus,
)
from breaker_sizing.voltage_drop import (
    SINGLE_PHASE_FORMULA, THREE_PHASE_FORMULA, analyze_voltage_drop,
    assess_voltage_drop_compliance, calculate_enhanced_voltage_drop,
    calculate_minimum_cable_size_for_target_vd, recommend_cable_size_for_vd,
)

CU = ConductorMaterial.COPPER
AWG10 = ConductorSize("10", SizeUnit.AWG)


class TestEnhancedVoltageDrop(unittest.TestCase):
    def test_single_phase(self):
        # VD = 2 * 100 ft * 20 A * 1.24 ohm/kft / 1000 = 4.96 V -> 2.067% of 240 V
        vd = calculate_enhanced_voltage_drop(20, 240, 100, AWG10, CU, Phase.SINGLE)
        self.assertAlmostEqual(vd.voltage_drop_volts, 4.96)
        self.assertAlmostEqual(vd.voltage_drop_percent, 4.96 / 240 * 100)
        self.assertAlmostEqual(vd.voltage_at_load, 240 - 4.96)
        self.assertAlmostEqual(vd.power_loss_watts, 4.96 * 20)
        self.assertEqual(vd.formula, SINGLE_PHASE_FORMULA)
        self.assertEqual(vd.standard, "IEEE 835")

    def test_three_phase_and_power_factor(self):
        size = ConductorSize(2.5, SizeUnit.MM2)
        vd = calculate_enhanced_voltage_drop(16, 400, 50, size, CU, Phase.THREE, power_factor=0.85)
        expected = math.sqrt(3) * 50 * 16 * 2.81 / 1000 * 0.85
        self.assertAlmostEqual(vd.voltage_drop_volts, expected, places=9)
        self.assertEqual(vd.formula, THREE_PHASE_FORMULA)

    def test_invariants(self):
        vd = calculate_enhanced_voltage_drop(37.5, 208, 180, ConductorSize("6", SizeUnit.AWG),
                                             ConductorMaterial.ALUMINUM, Phase.THREE, 0.9, 40)
        self.assertAlmostEqual(vd.voltage_at_load, 208 - vd.voltage_drop_volts)
        self.assertAlmostEqual(vd.power_loss_watts, vd.voltage_drop_volts * 37.5)

    def test_temperature_adjusts_reported_resistance_only(self):
        # R_adj = 1.24 * (1 + 0.00393 * (50 - 75))
        hot = calculate_enhanced_voltage_drop(20, 240, 100, AWG10, CU, Phase.SINGLE, temperature=50)
        ref = calculate_enhanced_voltage_drop(20, 240, 100, AWG10, CU, Phase.SINGLE)
        self.assertAlmostEqual(hot.temp_adjusted_resistance, 1.24 * (1 + 0.00393 * -25))
        self.assertAlmostEqual(ref.temp_adjusted_resistance, 1.24)
        self.assertEqual(hot.voltage_drop_volts, ref.voltage_drop_volts)

    def test_kcmil_size(self):
        vd = calculate_enhanced_voltage_drop(200, 480, 300, ConductorSize(250, SizeUnit.KCMIL),
                                             CU, Phase.THREE)
        self.assertEqual(vd.conductor.size_awg, "250")

    def test_unknown_size(self):
        with self.assertRaises(UnsupportedSizeError) as ctx:
            calculate_enhanced_voltage_drop(20, 240, 100, ConductorSize("7", SizeUnit.AWG), CU,
                                            Phase.SINGLE)
        self.assertIn("#7 AWG", str(ctx.exception))

    def test_non_positive_inputs(self):
        with self.assertRaises(ValueError):
            calculate_enhanced_voltage_drop(0, 240, 100, AWG10, CU, Phase.SINGLE)
        with self.assertRaises(ValueError):
            calculate_enhanced_voltage_drop(20, 240, 0, AWG10, CU, Phase.SINGLE)


class TestCompliance(unittest.TestCase):
    def test_bands(self):
        cases = [
            (0.4, VoltageDropStatus.EXCELLENT, AlertType.INFO),
            (0.5, VoltageDropStatus.EXCELLENT, AlertType.INFO),
            (0.9, VoltageDropStatus.GOOD, AlertType.INFO),
            (1.5, VoltageDropStatus.ACCEPTABLE, AlertType.INFO),
            (3.0, VoltageDropStatus.WARNING, AlertType.WARNING),
            (3.01, VoltageDropStatus.ERROR, AlertType.ERROR),
            (5.0, VoltageDropStatus.ERROR, AlertType.ERROR),
            (5.01, VoltageDropStatus.EXCEED_LIMIT, AlertType.ERROR),
        ]
        for vd, status, level in cases:
            result = assess_voltage_drop_compliance(vd, 20, 240)
            self.assertEqual(result.status, status, vd)
            self.assertEqual(result.level, level, vd)

    def test_compliance_percentage(self):
        self.assertAlmostEqual(assess_voltage_drop_compliance(2.0, 20, 240).compliance_percentage, 60.0)
        self.assertEqual(assess_voltage_drop_compliance(7.5, 20, 240).compliance_percentage, 0.0)

    def test_messages_and_references(self):
        result = assess_voltage_drop_compliance(4.2, 40, 240)
        self.assertIn("4.20%", result.message)
        self.assertEqual(result.code_reference, "NEC 210.19(A) - 3% branch circuit limit")
        over = assess_voltage_drop_compliance(6, 40, 240)
        self.assertEqual(over.code_reference, "NEC 210.19(A) - 5% combined limit")


class TestCableUpsize(unittest.TestCase):
    def test_within_limit_needs_nothing(self):
        rec = recommend_cable_size_for_vd(20, 240, 100, AWG10, CU, Phase.SINGLE)
        self.assertIsNone(rec.recommended_size)
        self.assertIn("No larger cable needed", rec.message)

    def test_next_size_up(self):
        # 40 A on #10: 4.13%; #8 (0.778 ohm/kft) gives 6.224 V = 2.59%
        rec = recommend_cable_size_for_vd(40, 240, 100, AWG10, CU, Phase.SINGLE)
        self.assertEqual(rec.recommended_label, "#8 AWG")
        self.assertAlmostEqual(rec.predicted_voltage_drop_percent, 6.224 / 240 * 100)
        self.assertEqual(rec.cost_impact, CostImpact.LOW)
        self.assertEqual(rec.installation_difficulty, InstallationDifficulty.EASY)
        self.assertGreater(rec.savings_percent, 0)

    def test_largest_size_already(self):
        rec = recommend_cable_size_for_vd(600, 208, 5000, ConductorSize("1000", SizeUnit.KCMIL), CU,
                                          Phase.THREE)
        self.assertIsNone(rec.recommended_size)
        self.assertIn("already the largest", rec.message)
        self.assertEqual(rec.cost_impact, CostImpact.HIGH)

    def test_nothing_suffices(self):
        rec = recommend_cable_size_for_vd(100, 120, 9000, AWG10, CU, Phase.SINGLE)
        self.assertIsNone(rec.recommended_size)
        self.assertIn("Even the largest available cable", rec.message)
        self.assertEqual(rec.installation_difficulty, InstallationDifficulty.DIFFICULT)

    def test_minimum_size_for_target(self):
        entry = calculate_minimum_cable_size_for_target_vd(40, 240, 100, CU, Phase.SINGLE, 3.0)
        self.assertEqual(entry.size_awg, "8")
        largest = calculate_minimum_cable_size_for_target_vd(100, 120, 9000, CU, Phase.SINGLE, 3.0)
        self.assertEqual(largest.size_awg, "1000")
        iec = calculate_minimum_cable_size_for_target_vd(16, 230, 30, CU, Phase.SINGLE, 3.0,
                                                         standard=Standard.IEC)
        self.assertEqual(iec.standard, Standard.IEC)


class TestVoltageDropStage(unittest.TestCase):
    def _circuit(self, amps):
        return CircuitConfiguration(standard=Standard.NEC, voltage=240, phase=Phase.SINGLE,
                                    load_mode=LoadMode.AMPS, load_value=amps, power_factor=1.0)

    def test_warning_band_alert(self):
        env = EnvironmentalConditions(circuit_distance=100, conductor_material=CU, conductor_size=AWG10)
        analysis, alerts, guidance = analyze_voltage_drop(env, self._circuit(20), 20, DEFAULT_CONFIG)
        self.assertEqual(analysis.status, VoltageDropStatus.WARNING)
        self.assertEqual(analysis.conductor_size, "#10 AWG")
        self.assertIsNone(analysis.recommended_cable_size)
        self.assertEqual([a.code for a in alerts], ["VOLTAGE_DROP_ISSUE"])
        self.assertEqual(alerts[0].type, AlertType.WARNING)
        self.assertEqual(guidance.minimum_size, "#10 AWG")

    def test_error_band_recommends_cable(self):
        env = EnvironmentalConditions(circuit_distance=100, conductor_material=CU, conductor_size=AWG10)
        analysis, alerts, guidance = analyze_voltage_drop(env, self._circuit(40), 40, DEFAULT_CONFIG)
        self.assertEqual(analysis.status, VoltageDropStatus.ERROR)
        self.assertEqual(analysis.recommended_cable_size, "#8 AWG")
        self.assertEqual(analysis.cost_impact, CostImpact.LOW)
        self.assertEqual(guidance.recommended_size, "#8 AWG")
        self.assertEqual(alerts[0].type, AlertType.ERROR)

    def test_good_band_has_no_alert(self):
        env = EnvironmentalConditions(circuit_distance=20, conductor_material=CU, conductor_size=AWG10)
        analysis, alerts, _ = analyze_voltage_drop(env, self._circuit(20), 20, DEFAULT_CONFIG)
        self.assertEqual(analysis.status, VoltageDropStatus.EXCELLENT)
        self.assertEqual(alerts, [])

    def test_missing_size_raises(self):
        env = EnvironmentalConditions(circuit_distance=20, conductor_material=CU)
        with self.assertRaises(ValueError):
            analyze_voltage_drop(env, self._circuit(20), 20, DEFAULT_CONFIG)


if __name__ == '__main__':
    unittest.main()
