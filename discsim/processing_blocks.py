"""
processing_blocks.py
====================

Converter stand-ins and signal conditioning blocks for the control loop.

These blocks carry no design of their own: they exist so that every stage
of a loop (regulator, DAC, plant, ADC) can be driven through the same
DiscreteSystem.advance() contract and keeps its own sample history.

Classes:
    UnitDelay: z^-1 kernel
    Passthrough: Identity kernel
    Clamp: Saturation kernel
    ADConverter: Analog-to-digital conversion with one sample of delay
    DAConverter: Digital-to-analog conversion (passthrough)
    Saturation: Limits a signal to [lower, upper]

Author: Discrete Simulation Framework
Version: 1.0.0
"""

from .core_blocks import (LOOP_BUFFER_SIZE, DiscreteKernel, DiscreteSystem,
                          InvalidParameter)


# =========================
# Kernels
# =========================

class UnitDelay(DiscreteKernel):
    """
    One-sample delay: y(k) = u(k-1), y(0) = initial.

    Attributes:
        held (float): Input stored from the previous sample
    """

    def __init__(self, initial: float = 0.0) -> None:
        self.initial: float = float(initial)
        self.held: float = self.initial

    def step(self, u: float) -> float:
        y = self.held
        self.held = u
        return y

    def clear_state(self) -> None:
        self.held = self.initial


class Passthrough(DiscreteKernel):
    """Identity: y(k) = u(k)."""

    def step(self, u: float) -> float:
        return u

    def clear_state(self) -> None:
        pass


class Clamp(DiscreteKernel):
    """Clip every sample to [lower, upper]. Stateless."""

    def __init__(self, lower: float, upper: float) -> None:
        self.lower: float = float(lower)
        self.upper: float = float(upper)

    def step(self, u: float) -> float:
        return min(max(u, self.lower), self.upper)

    def clear_state(self) -> None:
        pass


# =========================
# ADC
# =========================

class ADConverter(DiscreteSystem):
    """
    Analog-to-digital converter with one sample of conversion delay.

        y_d(k) = y(k-1),   H(z) = z^-1

    The delay also keeps the measurement path of a loop free of direct
    algebraic dependence on the plant output of the same tick.

    Example:
        >>> adc = ADConverter(sampling_period=0.1)
        >>> [adc.advance(float(k + 1)) for k in range(4)]
        [0.0, 1.0, 2.0, 3.0]
    """

    def __init__(self, sampling_period: float, capacity: int = LOOP_BUFFER_SIZE,
                 name: str = "adc") -> None:
        """
        Initialize an ADConverter.

        Args:
            sampling_period: Sampling period Ts in seconds. Must be > 0.
            capacity: Ring-buffer capacity. Default: 1024
            name: Identifier. Default: "adc"
        """
        super().__init__(UnitDelay(), sampling_period, capacity, name)


# =========================
# DAC
# =========================

class DAConverter(DiscreteSystem):
    """
    Digital-to-analog converter, modelled as a direct passthrough.

        u(t) = u(k),   k·Ts <= t < (k+1)·Ts,   H(z) = 1

    Holding the value between controller samples (zero-order hold) is the
    caller's job; see ClosedLoop for a multi-rate example.

    Example:
        >>> dac = DAConverter(sampling_period=0.1)
        >>> dac.advance(10.0)
        10.0
    """

    def __init__(self, sampling_period: float, capacity: int = LOOP_BUFFER_SIZE,
                 name: str = "dac") -> None:
        """
        Initialize a DAConverter.

        Args:
            sampling_period: Sampling period Ts in seconds. Must be > 0.
            capacity: Ring-buffer capacity. Default: 1024
            name: Identifier. Default: "dac"
        """
        super().__init__(Passthrough(), sampling_period, capacity, name)


# =========================
# Saturation
# =========================

class Saturation(DiscreteSystem):
    """
    Limits each sample to [lower, upper].

    Useful for actuator limits downstream of an incremental PID, which has
    no clamping of its own.

    Attributes:
        lower (float): Lower limit
        upper (float): Upper limit

    Example:
        >>> sat = Saturation(lower=-24.0, upper=24.0, sampling_period=0.1)
        >>> sat.advance(30.0)
        24.0
    """

    def __init__(self, lower: float, upper: float, sampling_period: float,
                 capacity: int = LOOP_BUFFER_SIZE, name: str = "saturation") -> None:
        """
        Initialize a Saturation block.

        Args:
            lower: Lower limit
            upper: Upper limit
            sampling_period: Sampling period Ts in seconds. Must be > 0.
            capacity: Ring-buffer capacity. Default: 1024
            name: Identifier. Default: "saturation"

        Raises:
            InvalidParameter: If lower >= upper
            InvalidSamplingTime: If sampling_period <= 0
        """
        if not lower < upper:
            raise InvalidParameter(f"{name}: lower limit must be < upper limit")
        super().__init__(Clamp(lower, upper), sampling_period, capacity, name)

    @property
    def lower(self) -> float:
        return self.kernel.lower

    @property
    def upper(self) -> float:
        return self.kernel.upper


# =========================
# Module Metadata
# =========================

__all__ = [
    'UnitDelay',
    'Passthrough',
    'Clamp',
    'ADConverter',
    'DAConverter',
    'Saturation',
]

__version__ = '1.0.0'
__author__ = 'Discrete Simulation Framework'
