"""
core_blocks.py
==============

Core base classes and fundamental structures for the discrete system framework.

This module provides the foundation every sampled block is built on: the
sample ring buffer, the construction-error taxonomy and the DiscreteSystem
wrapper that enforces the "compute, then store, then count" contract around
a pluggable computation kernel.

Classes:
    Sample: One accepted (input, output, step) triple
    ExportFormat: Textual layouts supported by DiscreteSystem.dump()
    SampleBuffer: Fixed-capacity circular store of samples (overwrite-oldest)
    DiscreteKernel: Base class for per-sample computation strategies
    DiscreteSystem: Sampling period, step counter and buffer around a kernel

Author: Discrete Simulation Framework
Version: 1.0.0
"""

import io
import logging
import sys
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, TextIO

import numpy as np


logger = logging.getLogger(__name__)

DEFAULT_DTYPE = np.float64

# Standalone blocks keep a short history; blocks wired into a loop keep more.
DEFAULT_BUFFER_SIZE = 100
LOOP_BUFFER_SIZE = 1024


# =========================
# Exceptions
# =========================

class InvalidParameter(ValueError):
    """Base class for every construction-time parameter error."""


class InvalidSamplingTime(InvalidParameter):
    """Raised when the sampling period is not a positive finite number."""


class InvalidCoefficients(InvalidParameter):
    """
    Raised when transfer-function coefficients cannot be normalized.

    Covers an empty numerator, an empty denominator, or a denominator whose
    leading coefficient is zero.
    """


class InvalidDimensions(InvalidParameter):
    """
    Raised when sizes are inconsistent.

    Covers state-space matrix/vector mismatches and a sample buffer
    capacity below one.
    """


# =========================
# Sample Representation
# =========================

@dataclass(frozen=True)
class Sample:
    """
    One accepted sample of a discrete system.

    Attributes:
        input (float): Input u(k) supplied to advance()
        output (float): Output y(k) returned by advance()
        step (int): Step index k at which the sample was accepted

    Example:
        >>> s = Sample(input=1.0, output=0.5, step=0)
        >>> s.output
        0.5
    """
    input: float
    output: float
    step: int


class ExportFormat(Enum):
    """
    Textual layouts for DiscreteSystem.dump().

    Members:
        TSV: ``k<TAB>u(k)<TAB>y(k)`` rows under a commented header
        MATLAB: a ``data = [k u y; ...];`` literal loadable by MATLAB/Octave
    """
    TSV = 'tsv'
    MATLAB = 'matlab'


# =========================
# Sample Ring Buffer
# =========================

class SampleBuffer:
    """
    Fixed-capacity circular store of (input, output, step) triples.

    While fewer than ``capacity`` samples are held, each store adds one
    valid sample. Once full, each store overwrites the slot at
    ``write_cursor``, which always holds the oldest surviving sample.

    Attributes:
        capacity (int): Number of slots (fixed at construction)
        write_cursor (int): Slot the next sample is written to
        count (int): Number of valid samples (0 <= count <= capacity)

    Example:
        >>> buf = SampleBuffer(2)
        >>> for k in range(3):
        ...     buf.store(float(k), 2.0 * k, k)
        >>> [s.step for s in buf.samples()]
        [1, 2]
    """

    def __init__(self, capacity: int = DEFAULT_BUFFER_SIZE, name: str = "") -> None:
        """
        Allocate the buffer.

        Args:
            capacity: Number of samples retained. Must be >= 1.
            name: Owner name used in error messages.

        Raises:
            InvalidDimensions: If capacity is below one or not an integer.
        """
        validate_capacity(capacity, name)
        self.capacity: int = int(capacity)
        self.write_cursor: int = 0
        self.count: int = 0
        self._inputs: np.ndarray = np.zeros(self.capacity, dtype=DEFAULT_DTYPE)
        self._outputs: np.ndarray = np.zeros(self.capacity, dtype=DEFAULT_DTYPE)
        self._steps: np.ndarray = np.zeros(self.capacity, dtype=np.int64)

    def __len__(self) -> int:
        return self.count

    @property
    def is_full(self) -> bool:
        return self.count == self.capacity

    def store(self, u: float, y: float, k: int) -> None:
        """
        Record one sample, overwriting the oldest one when full.

        Args:
            u: Input value u(k)
            y: Output value y(k)
            k: Step index of the sample
        """
        i = self.write_cursor
        self._inputs[i] = u
        self._outputs[i] = y
        self._steps[i] = k

        if self.count < self.capacity:
            self.count += 1
        self.write_cursor = (self.write_cursor + 1) % self.capacity

    def clear(self) -> None:
        """Forget every sample and zero the slots without reallocating."""
        self.write_cursor = 0
        self.count = 0
        self._inputs.fill(0.0)
        self._outputs.fill(0.0)
        self._steps.fill(0)

    def _chronological_indices(self) -> np.ndarray:
        # When full, the next slot to be overwritten holds the oldest sample.
        start = self.write_cursor if self.is_full else 0
        return (start + np.arange(self.count)) % self.capacity

    def samples(self) -> List[Sample]:
        """
        Return the valid samples from oldest to newest.

        Returns:
            List[Sample]: ``count`` samples in chronological order
        """
        return [
            Sample(float(self._inputs[i]), float(self._outputs[i]), int(self._steps[i]))
            for i in self._chronological_indices()
        ]

    def to_array(self) -> np.ndarray:
        """
        Return the valid samples as a ``(count, 3)`` array of ``[k, u, y]`` rows.

        Rows are in chronological order regardless of the circular layout.
        """
        idx = self._chronological_indices()
        return np.column_stack((self._steps[idx].astype(DEFAULT_DTYPE),
                                self._inputs[idx],
                                self._outputs[idx]))

    def __repr__(self) -> str:
        return (f"SampleBuffer(capacity={self.capacity}, count={self.count}, "
                f"write_cursor={self.write_cursor})")


# =========================
# Kernel Interface
# =========================

class DiscreteKernel:
    """
    Base class for the per-sample computation of a discrete system.

    A kernel owns only its private history/state and knows nothing about
    sampling bookkeeping. DiscreteSystem calls ``step`` exactly once per
    accepted sample and ``clear_state`` on reset.

    Example:
        >>> class Gain(DiscreteKernel):
        ...     def __init__(self, k):
        ...         self.k = k
        ...     def step(self, u):
        ...         return self.k * u
        ...     def clear_state(self):
        ...         pass
    """

    def step(self, u: float) -> float:
        """
        Compute y(k) from u(k) and the kernel's own history.

        Args:
            u: Input sample u(k)

        Returns:
            float: Output sample y(k)

        Raises:
            NotImplementedError: If the subclass doesn't implement it
        """
        raise NotImplementedError(f"step() must be implemented by {self.__class__.__name__}")

    def clear_state(self) -> None:
        """Return the kernel's history/state to its initial (zero) value."""
        raise NotImplementedError(f"clear_state() must be implemented by {self.__class__.__name__}")


# =========================
# Discrete System
# =========================

class DiscreteSystem:
    """
    Sampled SISO block: sampling period, step counter and sample buffer
    wrapped around a DiscreteKernel.

    ``advance()`` is the single entry point and always runs, in order:

        1. y = kernel.step(u)
        2. buffer.store(u, y, step_index)
        3. step_index += 1

    Concrete systems (transfer function, state space, PID, converters)
    subclass DiscreteSystem only to build their kernel and expose its
    parameters; they never override advance(), reset() or dump().

    Attributes:
        name (str): Identifier used in logs, errors and repr
        kernel (DiscreteKernel): The per-sample computation strategy
        buffer (SampleBuffer): The ring buffer of accepted samples

    Example:
        >>> sys_ = TransferFunctionSystem([1.0], [1.0, -0.5], sampling_period=0.1)
        >>> [sys_.advance(1.0) for _ in range(3)]
        [1.0, 1.5, 1.75]
        >>> sys_.step_index
        3
    """

    def __init__(self, kernel: DiscreteKernel, sampling_period: float,
                 capacity: int = DEFAULT_BUFFER_SIZE, name: str = "") -> None:
        """
        Initialize a DiscreteSystem.

        Args:
            kernel: Computation strategy producing y(k) from u(k)
            sampling_period: Sampling period Ts in seconds. Must be > 0.
            capacity: Number of samples kept in the ring buffer. Must be >= 1.
            name: Optional identifier. Defaults to the class name.

        Raises:
            InvalidSamplingTime: If sampling_period <= 0
            InvalidDimensions: If capacity < 1
        """
        self.name: str = name or self.__class__.__name__
        validate_sampling_period(sampling_period, self.name)
        self._sampling_period: float = float(sampling_period)
        self._step_index: int = 0
        self.buffer: SampleBuffer = SampleBuffer(capacity, self.name)
        self.kernel: DiscreteKernel = kernel
        logger.debug("%s: created (Ts=%g, capacity=%d)",
                     self.name, self._sampling_period, self.buffer.capacity)

    # -- read accessors ------------------------------------------------------

    @property
    def sampling_period(self) -> float:
        return self._sampling_period

    @property
    def step_index(self) -> int:
        """Index k that the next accepted sample will carry."""
        return self._step_index

    @property
    def count(self) -> int:
        """Number of valid samples currently held in the buffer."""
        return self.buffer.count

    @property
    def capacity(self) -> int:
        return self.buffer.capacity

    def samples(self) -> List[Sample]:
        return self.buffer.samples()

    def to_array(self) -> np.ndarray:
        return self.buffer.to_array()

    # -- sampling contract ---------------------------------------------------

    def advance(self, u: float) -> float:
        """
        Accept input u(k), return output y(k).

        Args:
            u: Input sample u(k)

        Returns:
            float: Output sample y(k)

        Example:
            >>> dac = DAConverter(0.1)
            >>> dac.advance(3.0)
            3.0
        """
        u = float(u)
        y = float(self.kernel.step(u))
        self.buffer.store(u, y, self._step_index)
        self._step_index += 1
        return y

    def reset(self) -> None:
        """
        Return to the freshly constructed condition.

        Restarts the step index at 0, empties the buffer and clears the
        kernel's internal history. Model parameters (coefficients, matrices,
        gains) are left untouched.
        """
        self._step_index = 0
        self.buffer.clear()
        self.kernel.clear_state()
        logger.debug("%s: reset", self.name)

    def dump(self, sink: Optional[TextIO] = None, fmt: ExportFormat = ExportFormat.TSV) -> None:
        """
        Write the valid samples, oldest first, to a text sink.

        Args:
            sink: Writable text stream. Defaults to sys.stdout.
            fmt: ExportFormat.TSV or ExportFormat.MATLAB

        Example:
            >>> tf = TransferFunctionSystem([1.0], [1.0, -0.5], 0.1)
            >>> tf.advance(1.0)
            1.0
            >>> tf.dump()
            # k	u(k)	y(k)
            0	1	1
        """
        if sink is None:
            sink = sys.stdout
        fmt = ExportFormat(fmt)
        rows = self.buffer.samples()

        if not rows:
            marker = '%' if fmt is ExportFormat.MATLAB else '#'
            sink.write(f"{marker} Empty buffer\n")
            return

        if fmt is ExportFormat.TSV:
            sink.write("# k\tu(k)\ty(k)\n")
            for s in rows:
                sink.write(f"{s.step}\t{s.input:g}\t{s.output:g}\n")
        else:
            sink.write("% Export format: MATLAB compatible\n")
            sink.write("% Columns: k u y\n")
            body = "; ".join(f"{s.step} {s.input:g} {s.output:g}" for s in rows)
            sink.write(f"data = [{body}];\n")
            sink.write("% Usage in MATLAB/Octave: k = data(:,1); u = data(:,2); y = data(:,3);\n")

    def dumps(self, fmt: ExportFormat = ExportFormat.TSV) -> str:
        """Return what dump() would write, as a string."""
        out = io.StringIO()
        self.dump(out, fmt)
        return out.getvalue()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}('{self.name}')"


# =========================
# Utility Functions
# =========================

def validate_sampling_period(sampling_period: float, block_name: str) -> None:
    """
    Validate that a sampling period is a positive finite number.

    Args:
        sampling_period: Candidate sampling period Ts (seconds)
        block_name: Name of the block performing validation (for error messages)

    Raises:
        InvalidSamplingTime: If Ts <= 0, NaN or infinite

    Example:
        >>> validate_sampling_period(0.01, "plant")   # OK
        >>> validate_sampling_period(0.0, "plant")    # Raises InvalidSamplingTime
    """
    try:
        ok = bool(np.isfinite(sampling_period)) and sampling_period > 0.0
    except TypeError:
        ok = False
    if not ok:
        raise InvalidSamplingTime(
            f"{block_name}: sampling period must be > 0 (got {sampling_period!r})"
        )


def validate_capacity(capacity: int, block_name: str) -> None:
    """
    Validate a ring-buffer capacity.

    Args:
        capacity: Requested number of slots
        block_name: Name of the block performing validation (for error messages)

    Raises:
        InvalidDimensions: If capacity is not an integer >= 1
    """
    try:
        ok = int(capacity) == capacity and capacity >= 1
    except (TypeError, ValueError, OverflowError):
        ok = False
    if not ok:
        raise InvalidDimensions(
            f"{block_name}: buffer capacity must be an integer >= 1 (got {capacity!r})"
        )


# =========================
# Module Metadata
# =========================

__all__ = [
    'DEFAULT_DTYPE',
    'DEFAULT_BUFFER_SIZE',
    'LOOP_BUFFER_SIZE',
    'InvalidParameter',
    'InvalidSamplingTime',
    'InvalidCoefficients',
    'InvalidDimensions',
    'Sample',
    'ExportFormat',
    'SampleBuffer',
    'DiscreteKernel',
    'DiscreteSystem',
    'validate_sampling_period',
    'validate_capacity',
]

__version__ = '1.0.0'
__author__ = 'Discrete Simulation Framework'
