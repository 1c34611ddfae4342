"""
Test Configuration
==================

Pytest fixtures shared by the discsim test suite.
"""

import matplotlib

matplotlib.use("Agg")

import pytest

from discsim.controllers import PIDController
from discsim.dynamic_blocks import StateSpaceSystem, TransferFunctionSystem
from discsim.simulation_engine import LoopConfig


@pytest.fixture
def first_order_tf():
    """y(k) = u(k) + 0.5·y(k-1), steady-state gain 2."""
    return TransferFunctionSystem(b=[1.0], a=[1.0, -0.5], sampling_period=0.1, name="tf")


@pytest.fixture
def decaying_ss():
    """Two decoupled stable modes, C reads both."""
    return StateSpaceSystem(
        A=[[0.5, 0.0], [0.0, 0.25]],
        B=[1.0, 1.0],
        C=[1.0, 1.0],
        D=0.0,
        sampling_period=0.1,
        name="ss",
    )


@pytest.fixture
def p_only_pid():
    return PIDController(Kp=1.0, Ki=0.0, Kd=0.0, sampling_period=0.1, name="pid")


@pytest.fixture
def pi_loop_config():
    """Stable PI loop around the first-order plant."""
    return LoopConfig(Ts=0.1, N=10, Kp=1.0, Ki=0.5, Kd=0.0, capacity=64)
