"""Shared model descriptions."""

import pytest


def _flow_bc(name, q, t=None):
    values = {"Q": q}
    if t is not None:
        values["t"] = t
    return {"bc_name": name, "bc_type": "FLOW", "bc_values": values}


def _pressure_bc(name, p=0.0):
    return {"bc_name": name, "bc_type": "PRESSURE", "bc_values": {"P": p}}


def _resistive_vessel(vessel_id, resistance, boundary_conditions=None):
    vessel = {
        "vessel_id": vessel_id,
        "vessel_name": f"V{vessel_id}",
        "zero_d_element_type": "ResistiveVessel",
        "zero_d_element_values": {"R": resistance},
    }
    if boundary_conditions:
        vessel["boundary_conditions"] = boundary_conditions
    return vessel


@pytest.fixture
def ohm_description():
    """Constant inflow of 5 through R = 100 into zero pressure."""
    return {
        "simulation_parameters": {
            "number_of_cardiac_cycles": 1,
            "number_of_time_pts_per_cardiac_cycle": 11,
        },
        "boundary_conditions": [_flow_bc("INFLOW", 5.0), _pressure_bc("OUT")],
        "vessels": [_resistive_vessel(0, 100.0, {"inlet": "INFLOW", "outlet": "OUT"})],
    }


@pytest.fixture
def junction_description():
    """Inflow of 10 split by a junction into branches with R = 100 and R = 200."""
    return {
        "simulation_parameters": {"number_of_time_pts_per_cardiac_cycle": 11},
        "boundary_conditions": [
            _flow_bc("INFLOW", 10.0),
            _pressure_bc("OUT1"),
            _pressure_bc("OUT2"),
        ],
        "vessels": [
            _resistive_vessel(0, 50.0, {"inlet": "INFLOW"}),
            _resistive_vessel(1, 100.0, {"outlet": "OUT1"}),
            _resistive_vessel(2, 200.0, {"outlet": "OUT2"}),
        ],
        "junctions": [
            {"junction_name": "J0", "junction_type": "NORMAL_JUNCTION", "inlet_vessels": [0], "outlet_vessels": [1, 2]},
        ],
    }


@pytest.fixture
def windkessel_description():
    """Constant inflow of 10 through a blood vessel into an RCR outlet."""
    return {
        "simulation_parameters": {
            "number_of_cardiac_cycles": 2,
            "number_of_time_pts_per_cardiac_cycle": 21,
        },
        "boundary_conditions": [
            _flow_bc("INFLOW", 10.0),
            {"bc_name": "RCR", "bc_type": "RCR", "bc_values": {"Rp": 100.0, "C": 1e-4, "Rd": 1000.0, "Pd": 0.0}},
        ],
        "vessels": [
            {
                "vessel_id": 0,
                "vessel_name": "V0",
                "zero_d_element_type": "BloodVessel",
                "zero_d_element_values": {"R_poiseuille": 100.0, "C": 1e-4, "L": 1.0},
                "boundary_conditions": {"inlet": "INFLOW", "outlet": "RCR"},
            }
        ],
    }


@pytest.fixture
def pulsatile_description():
    """Periodic inflow through a blood vessel into an RCR outlet."""
    return {
        "simulation_parameters": {
            "number_of_cardiac_cycles": 2,
            "number_of_time_pts_per_cardiac_cycle": 51,
        },
        "boundary_conditions": [
            _flow_bc("INFLOW", [0.0, 10.0, 5.0, 2.0, 0.0], t=[0.0, 0.25, 0.5, 0.75, 1.0]),
            {"bc_name": "RCR", "bc_type": "RCR", "bc_values": {"Rp": 100.0, "C": 1e-4, "Rd": 1000.0, "Pd": 0.0}},
        ],
        "vessels": [
            {
                "vessel_id": 0,
                "vessel_name": "V0",
                "zero_d_element_type": "BloodVessel",
                "zero_d_element_values": {"R_poiseuille": 100.0, "C": 1e-4, "L": 1.0},
                "boundary_conditions": {"inlet": "INFLOW", "outlet": "RCR"},
            }
        ],
    }


HEART_PARAMETERS = {
    "Tsa": 0.4, "tpwave": 8.9, "Erv_s": 1.0, "Elv_s": 3.0, "iml": 0.3, "imr": 0.3,
    "Lra_v": 1e-3, "Rra_v": 0.01, "Lrv_a": 1e-3, "Rrv_a": 0.01,
    "Lla_v": 1e-3, "Rla_v": 0.01, "Llv_a": 1e-3, "Rlv_ao": 0.01,
    "Vrv_u": 10.0, "Vlv_u": 10.0, "Rpd": 0.1, "Cp": 1.0,
    "Kxp_ra": 0.1, "Kxv_ra": 0.01, "Kxp_la": 0.1, "Kxv_la": 0.01,
    "Emax_ra": 0.1, "Emax_la": 0.2, "Vaso_ra": 5.0, "Vaso_la": 5.0,
}


@pytest.fixture
def heart_description():
    """Heart -> aorta -> closed-loop RCR and coronary beds -> heart."""
    return {
        "simulation_parameters": {
            "cardiac_period": 1.0,
            "number_of_time_pts_per_cardiac_cycle": 101,
        },
        "vessels": [
            {
                "vessel_id": 0,
                "vessel_name": "aorta",
                "zero_d_element_type": "BloodVessel",
                "zero_d_element_values": {"R_poiseuille": 0.1, "C": 0.5, "L": 1e-3},
            },
            {
                "vessel_id": 1,
                "vessel_name": "systemic",
                "zero_d_element_type": "BloodVessel",
                "zero_d_element_values": {"R_poiseuille": 0.1},
                "boundary_conditions": {"outlet": "RCR_sys"},
            },
            {
                "vessel_id": 2,
                "vessel_name": "LCA",
                "zero_d_element_type": "BloodVessel",
                "zero_d_element_values": {"R_poiseuille": 1.0},
                "boundary_conditions": {"outlet": "COR_L"},
            },
        ],
        "junctions": [
            {"junction_name": "J0", "inlet_vessels": [0], "outlet_vessels": [1, 2]},
        ],
        "boundary_conditions": [
            {"bc_name": "RCR_sys", "bc_type": "ClosedLoopRCR", "bc_values": {"Rp": 0.1, "C": 1.0, "Rd": 1.0}},
            {
                "bc_name": "COR_L",
                "bc_type": "ClosedLoopCoronaryLeft",
                "bc_values": {"Ra": 1.0, "Ram": 1.0, "Rv": 1.0, "Ca": 0.01, "Cim": 0.1},
            },
        ],
        "closed_loop_blocks": [
            {
                "closed_loop_type": "ClosedLoopHeartAndPulmonary",
                "name": "heart",
                "outlet_blocks": ["aorta"],
                "parameters": dict(HEART_PARAMETERS),
            }
        ],
    }


@pytest.fixture
def chamber_description():
    """Constant inflow into an elastance chamber draining through a resistor."""
    return {
        "simulation_parameters": {
            "number_of_time_pts_per_cardiac_cycle": 101,
            "cardiac_period": 1.0,
            "steady_initial": False,
        },
        "boundary_conditions": [_flow_bc("INFLOW", 1.0), _pressure_bc("OUT")],
        "vessels": [_resistive_vessel(0, 10.0, {"outlet": "OUT"})],
        "chambers": [
            {
                "name": "LV",
                "type": "LinearElastanceChamber",
                "values": {"Emax": 2.0, "Epass": 0.5, "Vrest": 1.0},
                "activation_function": {"type": "half_cosine", "t_active": 0.2, "t_twitch": 0.3},
            }
        ],
        "connections": [["INFLOW", "LV"], ["LV", "V0"]],
    }
