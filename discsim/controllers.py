"""
controllers.py
==============

Digital regulators built on the DiscreteSystem contract.

Classes:
    IncrementalPID: Velocity-form PID kernel
    PIDController: Incremental PID regulator with on-line retuning

Author: Discrete Simulation Framework
Version: 1.0.0
"""

import logging
from typing import Tuple

from .core_blocks import (LOOP_BUFFER_SIZE, DiscreteKernel, DiscreteSystem,
                          validate_sampling_period)


logger = logging.getLogger(__name__)


# =========================
# Incremental PID Kernel
# =========================

class IncrementalPID(DiscreteKernel):
    """
    PID in incremental (velocity) form.

        Δu(k) = a0·e(k) + a1·e(k-1) + a2·e(k-2)
        u(k)  = u(k-1) + Δu(k)

    with

        a0 = Kp + Ki·Ts + Kd/Ts
        a1 = -Kp - 2·Kd/Ts
        a2 = Kd/Ts

    The coefficients are recomputed immediately whenever a gain changes.
    There is no integrator state, hence nothing to wind up; clamping the
    actuator command is left to a downstream block.

    Attributes:
        Kp, Ki, Kd (float): Current gains
        Ts (float): Sampling period the coefficients are derived with
        a0, a1, a2 (float): Derived coefficients
        e1, e2 (float): e(k-1), e(k-2)
        u1 (float): u(k-1)
    """

    def __init__(self, Kp: float, Ki: float, Kd: float, sampling_period: float) -> None:
        self.Ts: float = float(sampling_period)
        self.Kp: float = float(Kp)
        self.Ki: float = float(Ki)
        self.Kd: float = float(Kd)
        self.a0 = self.a1 = self.a2 = 0.0
        self.e1 = self.e2 = self.u1 = 0.0
        self.update_coefficients()

    def update_coefficients(self) -> None:
        Ts = self.Ts
        self.a0 = self.Kp + self.Ki * Ts + self.Kd / Ts
        self.a1 = -self.Kp - 2.0 * self.Kd / Ts
        self.a2 = self.Kd / Ts

    def step(self, e: float) -> float:
        du = self.a0 * e + self.a1 * self.e1 + self.a2 * self.e2
        u = self.u1 + du

        self.e2 = self.e1
        self.e1 = e
        self.u1 = u
        return u

    def clear_state(self) -> None:
        self.e1 = 0.0
        self.e2 = 0.0
        self.u1 = 0.0


# =========================
# PID Controller Block
# =========================

class PIDController(DiscreteSystem):
    """
    Incremental PID regulator.

    The input is the control error e(k) = r(k) - y(k), computed by the
    caller; the output is the control action u(k).

    Gains can be changed between any two samples. Retuning recomputes
    a0, a1, a2 from the current sampling period and leaves the stored
    history e(k-1), e(k-2), u(k-1) untouched, so the change acts on the
    very next sample without a jump in stored state. reset() clears the
    history but keeps the gains.

    Attributes:
        Kp, Ki, Kd (float): Gains (settable)
        coefficients (Tuple[float, float, float]): (a0, a1, a2)
        history (Tuple[float, float, float]): (e(k-1), e(k-2), u(k-1))

    Example:
        >>> pid = PIDController(Kp=1.0, Ki=0.0, Kd=0.0, sampling_period=0.1)
        >>> [pid.advance(1.0) for _ in range(3)]
        [1.0, 1.0, 1.0]
        >>> pid.set_gains(2.0, 1.0, 0.2)
        >>> pid.coefficients
        (4.1, -6.0, 2.0)
    """

    def __init__(self, Kp: float, Ki: float, Kd: float, sampling_period: float,
                 capacity: int = LOOP_BUFFER_SIZE, name: str = "") -> None:
        """
        Initialize a PIDController.

        Args:
            Kp: Proportional gain
            Ki: Integral gain
            Kd: Derivative gain
            sampling_period: Sampling period Ts in seconds. Must be > 0.
            capacity: Ring-buffer capacity. Default: 1024
            name: Optional identifier

        Raises:
            InvalidSamplingTime: If sampling_period <= 0
            InvalidDimensions: If capacity < 1
        """
        # Ts must be validated before Kd/Ts is evaluated.
        validate_sampling_period(sampling_period, name or self.__class__.__name__)
        kernel = IncrementalPID(Kp, Ki, Kd, sampling_period)
        super().__init__(kernel, sampling_period, capacity, name)

    # -- gains ---------------------------------------------------------------

    @property
    def Kp(self) -> float:
        return self.kernel.Kp

    @Kp.setter
    def Kp(self, value: float) -> None:
        self.kernel.Kp = float(value)
        self._retuned()

    @property
    def Ki(self) -> float:
        return self.kernel.Ki

    @Ki.setter
    def Ki(self, value: float) -> None:
        self.kernel.Ki = float(value)
        self._retuned()

    @property
    def Kd(self) -> float:
        return self.kernel.Kd

    @Kd.setter
    def Kd(self, value: float) -> None:
        self.kernel.Kd = float(value)
        self._retuned()

    def set_gains(self, Kp: float, Ki: float, Kd: float) -> None:
        """
        Set all three gains at once and recompute the coefficients.

        Args:
            Kp: Proportional gain
            Ki: Integral gain
            Kd: Derivative gain
        """
        self.kernel.Kp = float(Kp)
        self.kernel.Ki = float(Ki)
        self.kernel.Kd = float(Kd)
        self._retuned()

    def _retuned(self) -> None:
        self.kernel.update_coefficients()
        logger.debug("%s: gains Kp=%g Ki=%g Kd=%g at k=%d",
                     self.name, self.kernel.Kp, self.kernel.Ki, self.kernel.Kd,
                     self.step_index)

    # -- inspection ----------------------------------------------------------

    @property
    def coefficients(self) -> Tuple[float, float, float]:
        k = self.kernel
        return (k.a0, k.a1, k.a2)

    @property
    def history(self) -> Tuple[float, float, float]:
        k = self.kernel
        return (k.e1, k.e2, k.u1)

    def __str__(self) -> str:
        a0, a1, a2 = self.coefficients
        return (f"PIDController(Kp={self.Kp:g}, Ki={self.Ki:g}, Kd={self.Kd:g}, "
                f"Ts={self.sampling_period:g})\n"
                f"a = [{a0:g}, {a1:g}, {a2:g}]\n")


# =========================
# Module Metadata
# =========================

__all__ = [
    'IncrementalPID',
    'PIDController',
]

__version__ = '1.0.0'
__author__ = 'Discrete Simulation Framework'
