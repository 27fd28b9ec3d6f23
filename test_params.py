import pytest

from gif_neuron.params import GIFParams, ConfigurationError, apply_updates, load_params, validate


def test_defaults_are_valid_and_tau_m():
    p = load_params(None)
    assert p == GIFParams()
    assert p.tau_m == pytest.approx(80.0 / 4.0)


def test_vectors_are_coerced_to_float_tuples():
    p = apply_updates(GIFParams(), {"tau_sfa": [10, 100], "q_sfa": [1, 2.5], "g_L": "10"})
    assert p.tau_sfa == (10.0, 100.0)
    assert p.q_sfa == (1.0, 2.5)
    assert p.g_L == 10.0


@pytest.mark.parametrize("updates", [
    {"tau_stc": [10.0, 20.0], "q_stc": [1.0]},
    {"tau_sfa": [10.0]},
    {"tau_sfa": [10.0, 0.0], "q_sfa": [1.0, 1.0]},
    {"tau_stc": [-5.0], "q_stc": [1.0]},
    {"delta_u": 0.0},
    {"delta_u": -1.0},
    {"C_m": 0.0},
    {"g_L": -4.0},
    {"tau_syn_ex": 0.0},
    {"tau_syn_in": -1.0},
    {"t_ref": -0.1},
    {"lambda0": -1.0},
    {"g_L": float("nan")},
    {"g_L": float("inf")},
    {"C_m": float("inf")},
    {"E_L": float("nan")},
    {"V_reset": float("-inf")},
    {"I_e": float("inf")},
    {"lambda0": float("inf")},
    {"tau_sfa": [10.0], "q_sfa": [float("nan")]},
    {"tau_stc": [float("inf")], "q_stc": [1.0]},
    {"tau_sfa": 5.0, "q_sfa": 1.0},
    {"no_such_param": 1.0},
])
def test_invalid_updates_rejected(updates):
    p = GIFParams(tau_stc=(10.0,), q_stc=(1.0,))
    with pytest.raises(ConfigurationError):
        apply_updates(p, updates)
    # original untouched (frozen, but also still the same values)
    assert p == GIFParams(tau_stc=(10.0,), q_stc=(1.0,))


def test_error_names_constraint():
    with pytest.raises(ConfigurationError, match="tau_stc and q_stc"):
        apply_updates(GIFParams(), {"tau_stc": [1.0, 2.0], "q_stc": [1.0]})
    with pytest.raises(ConfigurationError, match="delta_u"):
        apply_updates(GIFParams(), {"delta_u": 0.0})


def test_zero_refractory_and_zero_lambda_allowed():
    p = apply_updates(GIFParams(), {"t_ref": 0.0, "lambda0": 0.0})
    assert p.t_ref == 0.0 and p.lambda0 == 0.0


def test_configuration_error_is_value_error():
    assert issubclass(ConfigurationError, ValueError)


def test_non_finite_direct_params_rejected():
    with pytest.raises(ConfigurationError, match="q_sfa must be finite"):
        validate(GIFParams(tau_sfa=(10.0,), q_sfa=(float("nan"),)))
