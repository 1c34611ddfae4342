"""
source_blocks.py
================

Reference-signal sources for driving a discrete control loop.

Each source evaluates a stateless formula of time and keeps its own bounded
(time, value) history for display. Sources have no input, so they are not
DiscreteSystems; they share the same sampling-period and capacity checks.

Classes:
    ReferenceSignal: Base class with sampling clock and history
    StepSignal: Step of given amplitude at a given time
    RampSignal: Linear ramp starting at a given time
    SineSignal: Sinusoid of given amplitude, frequency and phase

Author: Discrete Simulation Framework
Version: 1.0.0
"""

from collections import deque
from typing import Deque, Optional

import numpy as np

from .core_blocks import (DEFAULT_DTYPE, LOOP_BUFFER_SIZE, validate_capacity,
                          validate_sampling_period)


# =========================
# Base Source
# =========================

class ReferenceSignal:
    """
    Base class for sampled reference signals.

    ``next()`` evaluates the signal at the current time t, stores the pair
    (t, value) in a drop-oldest history and advances t by Ts.
    ``compute()`` evaluates without touching any state.

    Attributes:
        name (str): Identifier
        sampling_period (float): Ts in seconds
        offset (float): Constant added to the formula
        t (float): Time of the next sample
        capacity (int): Maximum history length

    Example:
        >>> ref = StepSignal(sampling_period=0.1, amplitude=1.0, step_time=0.2)
        >>> [ref.next() for _ in range(4)]
        [0.0, 0.0, 1.0, 1.0]
    """

    def __init__(self, sampling_period: float, offset: float = 0.0,
                 capacity: int = LOOP_BUFFER_SIZE, name: str = "") -> None:
        """
        Initialize a ReferenceSignal.

        Args:
            sampling_period: Sampling period Ts in seconds. Must be > 0.
            offset: Vertical offset added to the output. Default: 0.0
            capacity: Maximum number of (time, value) pairs kept. Default: 1024
            name: Optional identifier

        Raises:
            InvalidSamplingTime: If sampling_period <= 0
            InvalidDimensions: If capacity < 1
        """
        self.name: str = name or self.__class__.__name__
        validate_sampling_period(sampling_period, self.name)
        validate_capacity(capacity, self.name)
        self.sampling_period: float = float(sampling_period)
        self.offset: float = float(offset)
        self.capacity: int = int(capacity)
        self.t: float = 0.0
        self._times: Deque[float] = deque(maxlen=self.capacity)
        self._values: Deque[float] = deque(maxlen=self.capacity)

    def value_at(self, time: float) -> float:
        """
        Evaluate the signal at an arbitrary time.

        Args:
            time: Time in seconds

        Returns:
            float: Signal value, offset included

        Raises:
            NotImplementedError: If the subclass doesn't implement it
        """
        raise NotImplementedError(f"value_at() must be implemented by {self.__class__.__name__}")

    def compute(self, k: Optional[int] = None) -> float:
        """
        Evaluate at the current time, or at sample k (time k·Ts), without side effects.
        """
        if k is None:
            return self.value_at(self.t)
        return self.value_at(k * self.sampling_period)

    def next(self) -> float:
        """
        Produce the next sample, record it and advance the clock.

        Returns:
            float: The value at the time before advancing
        """
        value = self.value_at(self.t)
        self._times.append(self.t)
        self._values.append(value)
        self.t += self.sampling_period
        return value

    def reset(self) -> None:
        """Restart the clock at t = 0 and drop the history."""
        self.t = 0.0
        self._times.clear()
        self._values.clear()

    @property
    def times(self) -> np.ndarray:
        return np.array(self._times, dtype=DEFAULT_DTYPE)

    @property
    def values(self) -> np.ndarray:
        return np.array(self._values, dtype=DEFAULT_DTYPE)

    def to_csv(self) -> str:
        """Return the history as ``time,value`` lines, oldest first."""
        return "".join(f"{t:g},{v:g}\n" for t, v in zip(self._times, self._values))

    def __str__(self) -> str:
        return self.to_csv()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}('{self.name}')"


# =========================
# Step Source
# =========================

class StepSignal(ReferenceSignal):
    """
    Step reference.

        r(t) = offset                  for t < step_time
        r(t) = amplitude + offset      for t >= step_time

    Attributes:
        amplitude (float): Height of the step
        step_time (float): Time when the step occurs (seconds)

    Example:
        >>> # Unit setpoint change at t = 1 s
        >>> ref = StepSignal(sampling_period=0.1, amplitude=1.0, step_time=1.0)
    """

    def __init__(self, sampling_period: float, amplitude: float = 1.0,
                 step_time: float = 0.0, offset: float = 0.0,
                 capacity: int = LOOP_BUFFER_SIZE, name: str = "") -> None:
        super().__init__(sampling_period, offset, capacity, name)
        self.amplitude: float = float(amplitude)
        self.step_time: float = float(step_time)

    def value_at(self, time: float) -> float:
        if time >= self.step_time:
            return self.amplitude + self.offset
        return self.offset


# =========================
# Ramp Source
# =========================

class RampSignal(ReferenceSignal):
    """
    Ramp reference.

        r(t) = offset                                for t < start_time
        r(t) = slope · (t - start_time) + offset     for t >= start_time

    Attributes:
        slope (float): Rate of change (units per second)
        start_time (float): Time when the ramp begins (seconds)
    """

    def __init__(self, sampling_period: float, slope: float = 1.0,
                 start_time: float = 0.0, offset: float = 0.0,
                 capacity: int = LOOP_BUFFER_SIZE, name: str = "") -> None:
        super().__init__(sampling_period, offset, capacity, name)
        self.slope: float = float(slope)
        self.start_time: float = float(start_time)

    def value_at(self, time: float) -> float:
        if time < self.start_time:
            return self.offset
        return self.slope * (time - self.start_time) + self.offset


# =========================
# Sinusoidal Source
# =========================

class SineSignal(ReferenceSignal):
    """
    Sinusoidal reference.

        r(t) = amplitude · sin(2π · freq · t + phase) + offset

    Attributes:
        amplitude (float): Peak value
        freq (float): Frequency in Hz
        phase (float): Phase in radians

    Example:
        >>> ref = SineSignal(sampling_period=0.01, amplitude=2.0, freq=1.0)
        >>> round(ref.compute(k=25), 6)   # quarter period
        2.0
    """

    def __init__(self, sampling_period: float, amplitude: float = 1.0,
                 freq: float = 1.0, phase: float = 0.0, offset: float = 0.0,
                 capacity: int = LOOP_BUFFER_SIZE, name: str = "") -> None:
        super().__init__(sampling_period, offset, capacity, name)
        self.amplitude: float = float(amplitude)
        self.freq: float = float(freq)
        self.phase: float = float(phase)

    def value_at(self, time: float) -> float:
        omega = 2 * np.pi * self.freq
        return float(self.amplitude * np.sin(omega * time + self.phase)) + self.offset


# =========================
# Module Metadata
# =========================

__all__ = [
    'ReferenceSignal',
    'StepSignal',
    'RampSignal',
    'SineSignal',
]

__version__ = '1.0.0'
__author__ = 'Discrete Simulation Framework'
