import streamlit as st

from breaker_sizing.cache import CalculationCache
from breaker_sizing.calculator import calculate_breaker_sizing
from breaker_sizing.errors import CapacityExceededError, InputValidationError
from breaker_sizing.models import (
    BreakerCalculationInput, CircuitConfiguration, ConductorMaterial, ConductorSize,
    EnvironmentalConditions, InstallationMethod, LoadMode, LoadType, Phase, SizeUnit,
    Standard, UnitSystem,
)
from breaker_sizing.report import export_results_to_excel, results_to_frames
from standards.cable_tables import list_size_keys

# --- Page Config ---
st.set_page_config(
    page_title="Breaker Sizing Calculator (NEC / IEC)",
    page_icon="⚡",
    layout="wide",
    initial_sidebar_state="expanded"
)

st.markdown("""
<style>
    .main-header { font-family: 'Inter', sans-serif; color: #1E3A8A; font-weight: 700; }
    .stDataFrame { border-radius: 10px; overflow: hidden; }
</style>
""", unsafe_allow_html=True)

# One cache per browser session
if 'calc_cache' not in st.session_state:
    st.session_state.calc_cache = CalculationCache(max_size=64)

ALERT_RENDERERS = {"info": st.info, "warning": st.warning, "error": st.error}

# --- Sidebar ---
with st.sidebar:
    st.header("⚙️ Standard")
    standard = Standard(st.radio("Electrical code", ["NEC", "IEC"], horizontal=True))
    st.caption("NEC: 125% continuous load factor (210.20(A)). IEC: correction factors only (60364-5-52).")
    load_type = LoadType(st.selectbox("Load type", [t.value for t in LoadType], index=2))
    sc_enabled = st.toggle("Verify breaking capacity", False)
    short_circuit = st.number_input("Fault current (kA)", 0.1, 200.0, 10.0, 0.5) if sc_enabled else None
    breaking_capacity = st.number_input("Breaker breaking capacity (kA)", 1.0, 200.0, 10.0, 1.0)

st.markdown("<h1 class='main-header'>⚡ Breaker Sizing Calculator</h1>", unsafe_allow_html=True)
st.markdown("---")

with st.expander("⚡ Circuit", expanded=True):
    c_v, c_ph, c_mode, c_load, c_pf = st.columns([1.2, 0.8, 0.8, 1.2, 1])
    default_voltage = 240.0 if standard is Standard.NEC else 230.0
    voltage = c_v.number_input("Voltage (V)", 100.0, 1000.0, default_voltage, 10.0)
    phase = Phase.THREE if c_ph.radio("Phases", [1, 3], horizontal=True) == 3 else Phase.SINGLE
    load_mode = LoadMode(c_mode.selectbox("Load in", ["kw", "amps"]))
    load_value = c_load.number_input("kW" if load_mode is LoadMode.KW else "A", 0.01, value=10.0, step=0.5)
    pf = c_pf.number_input("PF", 0.5, 1.0, 0.9, 0.05)

with st.expander("📏 Installation and Environment", expanded=False):
    c_T, c_G, c_M = st.columns(3)
    use_derating = c_T.toggle("Apply derating", False)
    temp = c_T.number_input("Ambient (°C)", -40.0, 70.0, 30.0, 1.0, disabled=not use_derating)
    group = c_G.number_input("Current-carrying conductors", 1, 100, 3, disabled=not use_derating)
    method = c_M.selectbox("Installation method", [m.value for m in InstallationMethod], index=2,
                           disabled=not use_derating or standard is Standard.NEC)

    st.markdown("##### Voltage drop")
    c_L, c_Mat, c_S = st.columns(3)
    use_vd = c_L.toggle("Check voltage drop", False)
    length_unit = "ft" if standard is Standard.NEC else "m"
    length = c_L.number_input(f"Length ({length_unit})", 1.0, 10000.0, 30.0, 1.0, disabled=not use_vd)
    material = ConductorMaterial(c_Mat.selectbox("Conductor", [m.value for m in ConductorMaterial],
                                                 disabled=not use_vd))
    sizes = list_size_keys(standard, material)
    size_key = c_S.selectbox("Size (mm²)" if standard is Standard.IEC else "Size (AWG/kcmil)", sizes,
                             disabled=not use_vd)


def build_input():
    circuit = CircuitConfiguration(
        standard=standard,
        voltage=voltage,
        phase=phase,
        load_mode=load_mode,
        load_value=load_value,
        power_factor=pf,
        unit_system=UnitSystem.IMPERIAL if standard is Standard.NEC else UnitSystem.METRIC,
    )
    environment = None
    if use_derating or use_vd:
        if standard is Standard.IEC:
            size = ConductorSize(float(size_key), SizeUnit.MM2)
        else:
            size = ConductorSize(size_key, SizeUnit.KCMIL if size_key.isdigit() and int(size_key) >= 250
                                 else SizeUnit.AWG)
        environment = EnvironmentalConditions(
            ambient_temperature=temp if use_derating else None,
            grouped_cables=int(group) if use_derating else None,
            installation_method=InstallationMethod(method) if use_derating else None,
            circuit_distance=length if use_vd else None,
            conductor_material=material if use_vd else None,
            conductor_size=size if use_vd else None,
        )
    return BreakerCalculationInput(
        circuit=circuit,
        environment=environment,
        short_circuit_current_ka=short_circuit,
        load_type=load_type,
        breaking_capacity_ka=breaking_capacity,
    )


if st.button("Calculate", type="primary", use_container_width=True):
    try:
        st.session_state.results = calculate_breaker_sizing(build_input(), cache=st.session_state.calc_cache)
        st.session_state.calc_error = None
    except InputValidationError as e:
        st.session_state.results = None
        st.session_state.calc_error = "\n".join(f"- {err}" for err in e.errors)
    except CapacityExceededError as e:
        st.session_state.results = None
        st.session_state.calc_error = str(e)

if st.session_state.get('calc_error'):
    st.error(st.session_state.calc_error)

results = st.session_state.get('results')
if results:
    sizing = results.breaker_sizing
    breaker = results.recommendations.primary_breaker

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Load Current", f"{results.load_analysis.calculated_current_amps:.2f} A")
    c2.metric("Minimum Size", f"{sizing.minimum_breaker_size_amps:.2f} A", f"x{sizing.safety_factor}")
    c3.metric("Breaker", f"{sizing.recommended_breaker_amps} A")
    c4.metric("Trip", breaker.trip.code.upper())

    st.markdown("### 🚨 Alerts")
    for alert in results.alerts:
        ALERT_RENDERERS[alert.type.value](f"**{alert.code}** ({alert.severity.value}): {alert.message}")

    frames = results_to_frames(results)
    tab_sum, tab_der, tab_vd = st.tabs(["Summary", "Derating", "Voltage Drop"])
    with tab_sum:
        st.dataframe(frames["summary"].astype(str), use_container_width=True, hide_index=True)
        guidance = results.recommendations.breaker_type_guidance
        st.markdown(f"**{guidance.recommended_type}**: {guidance.rationale}")
        for note in results.recommendations.general_notes:
            st.caption(note)
    with tab_der:
        if frames["derating"].empty:
            st.caption("Derating not applied.")
        else:
            st.dataframe(frames["derating"].astype(str), use_container_width=True, hide_index=True)
    with tab_vd:
        if frames["voltage_drop"].empty:
            st.caption("Voltage drop not analysed.")
        else:
            st.dataframe(frames["voltage_drop"].astype(str), use_container_width=True, hide_index=True)
            vd = results.voltage_drop_analysis
            st.progress(min(int(vd.compliance_percentage), 100) / 100, text=f"Compliance {vd.compliance_percentage:.0f}%")

    st.download_button(
        "📥 Download Results (Excel)",
        data=export_results_to_excel(results),
        file_name="breaker_sizing.xlsx",
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )
