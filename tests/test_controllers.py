"""
Unit Tests for Controllers Module

Tests the incremental PID: coefficient derivation, velocity-form output,
on-line retuning and reset.
"""

import logging

import pytest

from discsim.controllers import IncrementalPID, PIDController
from discsim.core_blocks import InvalidSamplingTime


def reference_pid(Kp, Ki, Kd, Ts, errors):
    """Direct evaluation of Δu(k) = a0·e(k) + a1·e(k-1) + a2·e(k-2)."""
    a0 = Kp + Ki * Ts + Kd / Ts
    a1 = -Kp - 2.0 * Kd / Ts
    a2 = Kd / Ts
    e1 = e2 = u = 0.0
    out = []
    for e in errors:
        u = u + a0 * e + a1 * e1 + a2 * e2
        e2, e1 = e1, e
        out.append(u)
    return out


# ============================================================================
# Coefficient Tests
# ============================================================================


class TestCoefficients:
    def test_derivation(self):
        pid = PIDController(Kp=2.0, Ki=1.0, Kd=0.2, sampling_period=0.1)
        a0, a1, a2 = pid.coefficients
        assert a0 == pytest.approx(2.0 + 0.1 + 2.0)
        assert a1 == pytest.approx(-2.0 - 4.0)
        assert a2 == pytest.approx(2.0)

    def test_gains_exposed(self):
        pid = PIDController(Kp=1.5, Ki=0.5, Kd=0.05, sampling_period=0.01)
        assert (pid.Kp, pid.Ki, pid.Kd) == (1.5, 0.5, 0.05)
        assert pid.sampling_period == 0.01

    def test_zero_gains_output_zero(self):
        pid = PIDController(0.0, 0.0, 0.0, sampling_period=0.1)
        assert [pid.advance(e) for e in (1.0, -2.0, 5.0)] == [0.0, 0.0, 0.0]


# ============================================================================
# Response Tests
# ============================================================================


class TestResponse:
    def test_proportional_only_constant_error(self, p_only_pid):
        assert [p_only_pid.advance(1.0) for _ in range(5)] == [1.0] * 5

    def test_integral_accumulates(self):
        pid = PIDController(Kp=0.0, Ki=2.0, Kd=0.0, sampling_period=0.5)
        assert [pid.advance(1.0) for _ in range(3)] == pytest.approx([1.0, 2.0, 3.0])

    def test_derivative_kick(self):
        pid = PIDController(Kp=0.0, Ki=0.0, Kd=0.1, sampling_period=0.1)
        # Step in error: derivative responds once, then returns to zero
        assert [pid.advance(1.0) for _ in range(3)] == pytest.approx([1.0, 0.0, 0.0])

    def test_matches_velocity_form(self):
        errors = [1.0, 0.8, 0.5, -0.2, 0.0, 0.3]
        pid = PIDController(Kp=1.2, Ki=0.7, Kd=0.05, sampling_period=0.02)
        assert [pid.advance(e) for e in errors] == pytest.approx(
            reference_pid(1.2, 0.7, 0.05, 0.02, errors))

    def test_history_tracks_last_samples(self, p_only_pid):
        p_only_pid.advance(3.0)
        p_only_pid.advance(2.0)
        assert p_only_pid.history == (2.0, 3.0, 2.0)

    def test_samples_record_error_and_action(self, p_only_pid):
        p_only_pid.advance(0.5)
        s = p_only_pid.samples()[0]
        assert (s.input, s.output, s.step) == (0.5, 0.5, 0)

    def test_default_capacity(self, p_only_pid):
        assert p_only_pid.capacity == 1024


# ============================================================================
# Retuning Tests
# ============================================================================


class TestRetuning:
    def test_retune_keeps_history(self):
        pid = PIDController(Kp=1.0, Ki=0.5, Kd=0.0, sampling_period=0.1)
        for e in (1.0, 0.5, 0.25):
            pid.advance(e)
        before = pid.history

        pid.set_gains(2.0, 1.0, 0.1)
        assert pid.history == before

    def test_retune_applies_on_next_sample(self):
        pid = PIDController(Kp=1.0, Ki=0.5, Kd=0.0, sampling_period=0.1)
        for e in (1.0, 0.5):
            pid.advance(e)
        e1, e2, u1 = pid.history

        pid.set_gains(2.0, 1.0, 0.1)
        a0, a1, a2 = pid.coefficients
        assert pid.advance(0.25) == pytest.approx(u1 + a0 * 0.25 + a1 * e1 + a2 * e2)

    def test_retune_does_not_jump_output(self, p_only_pid):
        for _ in range(3):
            p_only_pid.advance(1.0)
        p_only_pid.Kp = 4.0
        # Constant error: Δu depends only on e(k) - e(k-1), which is zero
        assert p_only_pid.advance(1.0) == pytest.approx(1.0)

    @pytest.mark.parametrize("attr, value", [("Kp", 3.0), ("Ki", 2.0), ("Kd", 0.3)])
    def test_single_gain_setters_recompute(self, attr, value):
        pid = PIDController(Kp=1.0, Ki=1.0, Kd=0.1, sampling_period=0.1)
        setattr(pid, attr, value)

        expected = PIDController(Kp=1.0, Ki=1.0, Kd=0.1, sampling_period=0.1)
        expected.set_gains(**{"Kp": 1.0, "Ki": 1.0, "Kd": 0.1, attr: value})
        assert getattr(pid, attr) == value
        assert pid.coefficients == pytest.approx(expected.coefficients)

    def test_retune_logged(self, p_only_pid, caplog):
        with caplog.at_level(logging.DEBUG, logger="discsim.controllers"):
            p_only_pid.set_gains(2.0, 0.0, 0.0)
        assert "pid: gains Kp=2" in caplog.text


# ============================================================================
# Reset and Validation Tests
# ============================================================================


class TestResetAndValidation:
    def test_reset_clears_history_keeps_gains(self):
        pid = PIDController(Kp=2.0, Ki=1.0, Kd=0.1, sampling_period=0.1)
        errors = [1.0, -0.5, 0.25]
        first = [pid.advance(e) for e in errors]

        pid.reset()
        assert pid.history == (0.0, 0.0, 0.0)
        assert (pid.Kp, pid.Ki, pid.Kd) == (2.0, 1.0, 0.1)
        assert pid.step_index == 0
        assert [pid.advance(e) for e in errors] == first

    @pytest.mark.parametrize("ts", [0.0, -0.01, float("nan")])
    def test_invalid_sampling_period(self, ts):
        with pytest.raises(InvalidSamplingTime):
            PIDController(1.0, 1.0, 1.0, sampling_period=ts)

    def test_str(self):
        pid = PIDController(Kp=2.0, Ki=1.0, Kd=0.2, sampling_period=0.1)
        assert str(pid).startswith("PIDController(Kp=2, Ki=1, Kd=0.2, Ts=0.1)\n")

    def test_kernel_standalone(self):
        kernel = IncrementalPID(1.0, 0.0, 0.0, 0.1)
        assert kernel.step(2.0) == 2.0
        kernel.clear_state()
        assert (kernel.e1, kernel.e2, kernel.u1) == (0.0, 0.0, 0.0)
