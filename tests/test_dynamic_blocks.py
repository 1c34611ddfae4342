"""
Unit Tests for Dynamic Blocks Module

Tests the transfer-function and state-space engines and the plant model.
"""

import numpy as np
import pytest

from discsim.core_blocks import (InvalidCoefficients, InvalidDimensions,
                                 InvalidSamplingTime)
from discsim.dynamic_blocks import (DifferenceEquation, FirstOrderPlant,
                                    StateSpaceSystem, StateUpdate,
                                    TransferFunctionSystem)


# ============================================================================
# Transfer Function Tests
# ============================================================================


class TestTransferFunctionSystem:
    """Test difference-equation evaluation and normalization."""

    def test_step_response(self, first_order_tf):
        assert [first_order_tf.advance(1.0) for _ in range(3)] == [1.0, 1.5, 1.75]

    def test_converges_to_dc_gain(self, first_order_tf):
        for _ in range(60):
            y = first_order_tf.advance(1.0)
        assert y == pytest.approx(2.0)

    def test_normalizes_by_leading_denominator(self):
        tf = TransferFunctionSystem(b=[4.0], a=[2.0, -1.0], sampling_period=0.1)
        np.testing.assert_allclose(tf.numerator, [2.0])
        np.testing.assert_allclose(tf.denominator, [1.0, -0.5])
        assert tf.denominator[0] == 1.0

    def test_normalized_equals_unnormalized(self):
        scaled = TransferFunctionSystem([2.0, 1.0], [4.0, -2.0, 0.4], 0.1)
        plain = TransferFunctionSystem([0.5, 0.25], [1.0, -0.5, 0.1], 0.1)
        u = [1.0, 0.0, -2.0, 3.0, 0.5]
        np.testing.assert_allclose([scaled.advance(x) for x in u],
                                   [plain.advance(x) for x in u])

    def test_fir_impulse_response(self):
        fir = TransferFunctionSystem(b=[1.0, 2.0, 3.0], a=[1.0], sampling_period=0.1)
        y = [fir.advance(u) for u in (1.0, 0.0, 0.0, 0.0)]
        assert y == [1.0, 2.0, 3.0, 0.0]

    def test_pure_delay(self):
        delay = TransferFunctionSystem(b=[0.0, 1.0], a=[1.0], sampling_period=0.1)
        assert [delay.advance(u) for u in (5.0, 6.0, 7.0)] == [0.0, 5.0, 6.0]

    def test_reset_keeps_coefficients(self, first_order_tf):
        for _ in range(5):
            first_order_tf.advance(1.0)
        first_order_tf.reset()

        np.testing.assert_allclose(first_order_tf.denominator, [1.0, -0.5])
        assert first_order_tf.step_index == 0
        assert [first_order_tf.advance(1.0) for _ in range(3)] == [1.0, 1.5, 1.75]

    def test_coefficient_accessors_return_copies(self, first_order_tf):
        first_order_tf.denominator[1] = 99.0
        first_order_tf.numerator[0] = 99.0
        assert first_order_tf.advance(1.0) == 1.0

    def test_default_capacity(self, first_order_tf):
        assert first_order_tf.capacity == 100

    def test_str(self, first_order_tf):
        assert str(first_order_tf) == (
            "TransferFunctionSystem(m=0, n=1, Ts=0.1)\n"
            "b = [1]\n"
            "a = [1, -0.5]\n"
        )

    @pytest.mark.parametrize("b, a", [
        ([], [1.0]),
        ([1.0], []),
        ([1.0], [0.0, 1.0]),
    ])
    def test_invalid_coefficients(self, b, a):
        with pytest.raises(InvalidCoefficients):
            TransferFunctionSystem(b, a, sampling_period=0.1)

    def test_invalid_sampling_period_checked_first(self):
        with pytest.raises(InvalidSamplingTime):
            TransferFunctionSystem([], [0.0], sampling_period=0.0)

    def test_kernel_standalone(self):
        kernel = DifferenceEquation([1.0], [1.0, -0.5])
        assert kernel.step(1.0) == 1.0
        assert kernel.step(1.0) == 1.5
        kernel.clear_state()
        assert kernel.step(1.0) == 1.0


# ============================================================================
# State Space Tests
# ============================================================================


class TestStateSpaceSystem:
    """Test state propagation and dimension checks."""

    def test_zero_input_response_decays(self, decaying_ss):
        decaying_ss.advance(1.0)
        np.testing.assert_allclose(decaying_ss.state, [1.0, 1.0])

        outputs = [decaying_ss.advance(0.0) for _ in range(4)]
        expected = [0.5 ** k + 0.25 ** k for k in range(4)]
        np.testing.assert_allclose(outputs, expected)
        assert abs(outputs[-1]) < abs(outputs[0])

    def test_zero_state_zero_input_stays_at_rest(self):
        ss = StateSpaceSystem(A=[[0.5]], B=[0.0], C=[1.0], D=0.0, sampling_period=0.1)
        assert [ss.advance(0.0) for _ in range(20)] == [0.0] * 20
        np.testing.assert_array_equal(ss.state, [0.0])

    def test_output_uses_pre_update_state(self):
        ss = StateSpaceSystem(A=[[1.0]], B=[1.0], C=[1.0], D=0.0, sampling_period=0.1)
        assert [ss.advance(1.0) for _ in range(3)] == [0.0, 1.0, 2.0]

    def test_feedthrough(self):
        ss = StateSpaceSystem(A=[[0.0]], B=[0.0], C=[0.0], D=2.5, sampling_period=0.1)
        assert ss.advance(2.0) == 5.0

    def test_double_integrator(self):
        Ts = 0.1
        ss = StateSpaceSystem(A=[[1.0, Ts], [0.0, 1.0]], B=[0.5 * Ts ** 2, Ts],
                              C=[1.0, 0.0], D=0.0, sampling_period=Ts)
        for _ in range(10):
            ss.advance(1.0)
        # After 1 s of unit acceleration: position 0.5, velocity 1
        np.testing.assert_allclose(ss.state, [0.5, 1.0])

    def test_reset_zeroes_state_keeps_matrices(self, decaying_ss):
        decaying_ss.advance(3.0)
        decaying_ss.reset()

        np.testing.assert_array_equal(decaying_ss.state, [0.0, 0.0])
        np.testing.assert_array_equal(decaying_ss.A, [[0.5, 0.0], [0.0, 0.25]])
        assert decaying_ss.step_index == 0
        assert decaying_ss.count == 0

    def test_accessors(self, decaying_ss):
        assert decaying_ss.order == 2
        assert decaying_ss.D == 0.0
        np.testing.assert_array_equal(decaying_ss.B, [1.0, 1.0])
        np.testing.assert_array_equal(decaying_ss.C, [1.0, 1.0])

    def test_str_lists_model(self, decaying_ss):
        text = str(decaying_ss)
        assert text.startswith("StateSpaceSystem(n=2, D=0, Ts=0.1)\n")
        assert "B = [1, 1]" in text
        assert "x = [0, 0]" in text

    @pytest.mark.parametrize("A, B, C", [
        ([], [], []),
        ([[1.0, 0.0]], [1.0], [1.0]),
        ([[1.0, 0.0], [0.0]], [1.0, 1.0], [1.0, 1.0]),
        ([[1.0, 0.0], [0.0, 1.0]], [1.0], [1.0, 1.0]),
        ([[1.0, 0.0], [0.0, 1.0]], [1.0, 1.0], [1.0, 1.0, 1.0]),
    ])
    def test_invalid_dimensions(self, A, B, C):
        with pytest.raises(InvalidDimensions):
            StateSpaceSystem(A, B, C, D=0.0, sampling_period=0.1)

    def test_invalid_sampling_period(self):
        with pytest.raises(InvalidSamplingTime):
            StateSpaceSystem([[1.0]], [1.0], [1.0], 0.0, sampling_period=-1.0)

    def test_kernel_standalone(self):
        kernel = StateUpdate([[0.5]], [1.0], [1.0], 0.0)
        assert kernel.step(1.0) == 0.0
        assert kernel.step(0.0) == 1.0
        assert kernel.step(0.0) == 0.5


# ============================================================================
# Plant Tests
# ============================================================================


class TestFirstOrderPlant:
    def test_coefficients(self):
        plant = FirstOrderPlant()
        np.testing.assert_allclose(plant.numerator, [0.0099, 0.0099])
        np.testing.assert_allclose(plant.denominator, [1.0, -0.9802])
        assert plant.sampling_period == 0.01
        assert plant.capacity == 1024
        assert plant.name == "plant"

    def test_unit_dc_gain(self):
        plant = FirstOrderPlant()
        for _ in range(2000):
            y = plant.advance(1.0)
        assert y == pytest.approx(1.0, abs=1e-6)

    def test_first_samples(self):
        plant = FirstOrderPlant()
        y0 = plant.advance(1.0)
        y1 = plant.advance(1.0)
        assert y0 == pytest.approx(0.0099)
        assert y1 == pytest.approx(0.0198 + 0.9802 * 0.0099)
