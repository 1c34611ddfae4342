"""
dynamic_blocks.py
=================

Dynamic system blocks with discrete state evolution.

This module provides the two linear SISO engines of the framework. Both are
built as a kernel (the pure per-sample recurrence) plus a thin
DiscreteSystem subclass that validates parameters, owns the kernel and
exposes the model for inspection.

Classes:
    DifferenceEquation: Kernel evaluating a normalized difference equation
    TransferFunctionSystem: H(z) = B(z^-1) / A(z^-1) as a DiscreteSystem
    StateUpdate: Kernel evaluating x(k+1) = A·x(k) + B·u(k), y(k) = C·x(k) + D·u(k)
    StateSpaceSystem: Discrete state-space model as a DiscreteSystem
    FirstOrderPlant: Tustin-discretized first-order motor model

Author: Discrete Simulation Framework
Version: 1.0.0
"""

from typing import List, Sequence

import numpy as np

from .core_blocks import (DEFAULT_BUFFER_SIZE, DEFAULT_DTYPE, LOOP_BUFFER_SIZE,
                          DiscreteKernel, DiscreteSystem, InvalidCoefficients,
                          InvalidDimensions, validate_sampling_period)


def _format_vector(values: np.ndarray) -> str:
    return "[" + ", ".join(f"{v:g}" for v in values) + "]"


# =========================
# Transfer Function
# =========================

class DifferenceEquation(DiscreteKernel):
    """
    Difference-equation kernel of a rational transfer function.

    For

                b[0] + b[1]·z^-1 + ... + b[m]·z^-m
        H(z) = -----------------------------------
                a[0] + a[1]·z^-1 + ... + a[n]·z^-n

    both coefficient vectors are divided by a[0] once, at construction, so
    the per-sample recurrence needs no division:

        y(k) = Σ b[i]·u(k-i) - Σ a[j]·y(k-j),   i = 0..m, j = 1..n

    Attributes:
        b (np.ndarray): Normalized numerator coefficients
        a (np.ndarray): Normalized denominator coefficients (a[0] == 1)
        u_hist (np.ndarray): [u(k), u(k-1), ..., u(k-m)]
        y_hist (np.ndarray): [y(k-1), y(k-2), ..., y(k-n)]
    """

    def __init__(self, b: Sequence[float], a: Sequence[float], name: str = "") -> None:
        """
        Validate and normalize the coefficients.

        Args:
            b: Numerator coefficients [b0, b1, ..., bm] (ascending powers of z^-1)
            a: Denominator coefficients [a0, a1, ..., an]
            name: Owner name used in error messages

        Raises:
            InvalidCoefficients: If a or b is empty, or a[0] == 0
        """
        label = name or "DifferenceEquation"
        b = np.atleast_1d(np.asarray(b, dtype=DEFAULT_DTYPE)).ravel()
        a = np.atleast_1d(np.asarray(a, dtype=DEFAULT_DTYPE)).ravel()

        if a.size == 0:
            raise InvalidCoefficients(f"{label}: denominator 'a' must not be empty")
        if b.size == 0:
            raise InvalidCoefficients(f"{label}: numerator 'b' must not be empty")
        if a[0] == 0.0:
            raise InvalidCoefficients(
                f"{label}: a[0] must be non-zero so the coefficients can be normalized"
            )

        a0 = a[0]
        self.b: np.ndarray = b / a0
        self.a: np.ndarray = a / a0
        self.a[0] = 1.0

        self.u_hist: np.ndarray = np.zeros(self.b.size, dtype=DEFAULT_DTYPE)
        self.y_hist: np.ndarray = np.zeros(self.a.size - 1, dtype=DEFAULT_DTYPE)

    def step(self, u: float) -> float:
        # Shift input history right, newest first.
        self.u_hist[1:] = self.u_hist[:-1]
        self.u_hist[0] = u

        y_num = float(self.b @ self.u_hist)
        y_den = float(self.a[1:] @ self.y_hist)
        y = y_num - y_den

        if self.y_hist.size:
            self.y_hist[1:] = self.y_hist[:-1]
            self.y_hist[0] = y
        return y

    def clear_state(self) -> None:
        self.u_hist.fill(0.0)
        self.y_hist.fill(0.0)


class TransferFunctionSystem(DiscreteSystem):
    """
    Discrete SISO system defined by a transfer function in z^-1.

    Coefficients are normalized on construction so that the stored
    denominator starts with exactly 1. Input and output histories start at
    zero and are cleared again by reset(); the coefficients are model
    parameters and survive a reset.

    Attributes:
        numerator (np.ndarray): Normalized numerator (copy)
        denominator (np.ndarray): Normalized denominator (copy, [0] == 1)

    Example:
        >>> # y(k) = u(k) + 0.5·y(k-1), steady-state gain 2
        >>> tf = TransferFunctionSystem(b=[1.0], a=[1.0, -0.5], sampling_period=0.1)
        >>> [tf.advance(1.0) for _ in range(3)]
        [1.0, 1.5, 1.75]
        >>>
        >>> # Coefficients are normalized by a[0]
        >>> TransferFunctionSystem([4.0], [2.0, -1.0], 0.1).denominator
        array([ 1. , -0.5])
    """

    def __init__(self, b: Sequence[float], a: Sequence[float], sampling_period: float,
                 capacity: int = DEFAULT_BUFFER_SIZE, name: str = "") -> None:
        """
        Initialize a TransferFunctionSystem.

        Args:
            b: Numerator coefficients [b0, b1, ..., bm]
            a: Denominator coefficients [a0, a1, ..., an], a0 != 0
            sampling_period: Sampling period Ts in seconds. Must be > 0.
            capacity: Ring-buffer capacity. Default: 100
            name: Optional identifier

        Raises:
            InvalidSamplingTime: If sampling_period <= 0
            InvalidCoefficients: If a or b is empty, or a[0] == 0
            InvalidDimensions: If capacity < 1
        """
        label = name or self.__class__.__name__
        validate_sampling_period(sampling_period, label)
        kernel = DifferenceEquation(b, a, label)
        super().__init__(kernel, sampling_period, capacity, name)

    @property
    def numerator(self) -> np.ndarray:
        return self.kernel.b.copy()

    @property
    def denominator(self) -> np.ndarray:
        return self.kernel.a.copy()

    def __str__(self) -> str:
        b, a = self.kernel.b, self.kernel.a
        return (f"TransferFunctionSystem(m={b.size - 1}, n={a.size - 1}, "
                f"Ts={self.sampling_period:g})\n"
                f"b = {_format_vector(b)}\n"
                f"a = {_format_vector(a)}\n")


# =========================
# State Space
# =========================

class StateUpdate(DiscreteKernel):
    """
    Kernel of a discrete SISO state-space model.

        x(k+1) = A·x(k) + B·u(k)
        y(k)   = C·x(k) + D·u(k)

    The output and the next state are both computed from the pre-update
    state; x is replaced only after both are available.

    Attributes:
        A (np.ndarray): State matrix (n × n)
        B (np.ndarray): Input vector (n,)
        C (np.ndarray): Output vector (n,)
        D (float): Feed-through
        x (np.ndarray): Current state x(k)
    """

    def __init__(self, A: Sequence[Sequence[float]], B: Sequence[float],
                 C: Sequence[float], D: float, name: str = "") -> None:
        """
        Validate dimensions and zero the state.

        Args:
            A: State matrix, n rows of n entries each, n >= 1
            B: Input vector of length n
            C: Output vector of length n
            D: Scalar feed-through
            name: Owner name used in error messages

        Raises:
            InvalidDimensions: If A is empty or not square, or B/C don't have length n
        """
        label = name or "StateUpdate"
        rows = [np.atleast_1d(np.asarray(row, dtype=DEFAULT_DTYPE)).ravel() for row in A]
        n = len(rows)

        if n == 0:
            raise InvalidDimensions(f"{label}: A must be a non-empty square (n x n) matrix")
        for i, row in enumerate(rows):
            if row.size != n:
                raise InvalidDimensions(
                    f"{label}: A must be square, row {i} has {row.size} columns (expected {n})"
                )

        B = np.atleast_1d(np.asarray(B, dtype=DEFAULT_DTYPE)).ravel()
        C = np.atleast_1d(np.asarray(C, dtype=DEFAULT_DTYPE)).ravel()
        if B.size != n:
            raise InvalidDimensions(f"{label}: B has size {B.size}, expected {n}")
        if C.size != n:
            raise InvalidDimensions(f"{label}: C has size {C.size}, expected {n}")

        self.n: int = n
        self.A: np.ndarray = np.vstack(rows)
        self.B: np.ndarray = B
        self.C: np.ndarray = C
        self.D: float = float(D)
        self.x: np.ndarray = np.zeros(n, dtype=DEFAULT_DTYPE)

    def step(self, u: float) -> float:
        y = float(self.C @ self.x) + self.D * u
        x_next = self.A @ self.x + self.B * u
        self.x = x_next
        return y

    def clear_state(self) -> None:
        self.x.fill(0.0)


class StateSpaceSystem(DiscreteSystem):
    """
    Discrete SISO system in state-space form.

    The state vector starts at zero and is zeroed again by reset();
    A, B, C and D are immutable model parameters.

    Attributes:
        A, B, C (np.ndarray): Model matrices (copies)
        D (float): Feed-through
        state (np.ndarray): Current state x(k) (copy)
        order (int): State dimension n

    Example:
        >>> # Discretized double integrator, Ts = 0.1
        >>> Ts = 0.1
        >>> ss = StateSpaceSystem(A=[[1.0, Ts], [0.0, 1.0]],
        ...                       B=[0.5 * Ts**2, Ts], C=[1.0, 0.0], D=0.0,
        ...                       sampling_period=Ts)
        >>> ss.advance(1.0)   # output reads the pre-update state
        0.0
    """

    def __init__(self, A: Sequence[Sequence[float]], B: Sequence[float],
                 C: Sequence[float], D: float, sampling_period: float,
                 capacity: int = DEFAULT_BUFFER_SIZE, name: str = "") -> None:
        """
        Initialize a StateSpaceSystem.

        Args:
            A: State matrix (n × n)
            B: Input vector (n)
            C: Output vector (n)
            D: Scalar feed-through
            sampling_period: Sampling period Ts in seconds. Must be > 0.
            capacity: Ring-buffer capacity. Default: 100
            name: Optional identifier

        Raises:
            InvalidSamplingTime: If sampling_period <= 0
            InvalidDimensions: On any size mismatch, or capacity < 1
        """
        label = name or self.__class__.__name__
        validate_sampling_period(sampling_period, label)
        kernel = StateUpdate(A, B, C, D, label)
        super().__init__(kernel, sampling_period, capacity, name)

    @property
    def order(self) -> int:
        return self.kernel.n

    @property
    def A(self) -> np.ndarray:
        return self.kernel.A.copy()

    @property
    def B(self) -> np.ndarray:
        return self.kernel.B.copy()

    @property
    def C(self) -> np.ndarray:
        return self.kernel.C.copy()

    @property
    def D(self) -> float:
        return self.kernel.D

    @property
    def state(self) -> np.ndarray:
        return self.kernel.x.copy()

    def __str__(self) -> str:
        k = self.kernel
        rows: List[str] = [_format_vector(row) for row in k.A]
        lines = [f"StateSpaceSystem(n={k.n}, D={k.D:g}, Ts={self.sampling_period:g})",
                 "A = [" + (",\n      ".join(rows)) + "]",
                 f"B = {_format_vector(k.B)}",
                 f"C = {_format_vector(k.C)}",
                 f"x = {_format_vector(k.x)}"]
        return "\n".join(lines) + "\n"


# =========================
# Plant Model
# =========================

class FirstOrderPlant(TransferFunctionSystem):
    """
    First-order motor-like plant, pre-discretized.

    Continuous model G(s) = 1 / (0.5·s + 1), discretized with Tustin at
    Tp = 0.01 s:

                0.0099 + 0.0099·z^-1
        G(z) = ----------------------
                   1 - 0.9802·z^-1

    The coefficients correspond to Tp = 0.01 s; a different Tp only changes
    the time stamps, not the discrete dynamics.

    Example:
        >>> plant = FirstOrderPlant()
        >>> y = [plant.advance(1.0) for _ in range(500)]
        >>> round(y[-1], 3)   # unit DC gain
        1.0
    """

    NUMERATOR = (0.0099, 0.0099)
    DENOMINATOR = (1.0, -0.9802)

    def __init__(self, sampling_period: float = 0.01,
                 capacity: int = LOOP_BUFFER_SIZE, name: str = "plant") -> None:
        super().__init__(self.NUMERATOR, self.DENOMINATOR, sampling_period, capacity, name)


# =========================
# Module Metadata
# =========================

__all__ = [
    'DifferenceEquation',
    'TransferFunctionSystem',
    'StateUpdate',
    'StateSpaceSystem',
    'FirstOrderPlant',
]

__version__ = '1.0.0'
__author__ = 'Discrete Simulation Framework'
