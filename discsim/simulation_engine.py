"""
Closed-Loop Simulation Engine
=============================

Overview:
---------
Runs a sampled control loop assembled from independent DiscreteSystems.
The blocks never call each other; the engine wires them, one controller
tick at a time:

    reference ──► (+) ──► [PID] ──► [Saturation] ──► [DAC] ──► [Plant ×N] ──┐
                   ▲ -                                                       │
                   └──────────────────────── [ADC] ◄─────────────────────────┘

Multi-rate:
-----------
The controller, the converters and the reference run at the controller
period Ts. The plant runs N times faster (Tp = Ts / N) and sees the DAC
output held constant over the whole controller period (zero-order hold).

At tick k the ADC samples the plant output at t = k·Ts and, being a
one-sample delay, delivers the value it sampled at tick k-1. The regulator
therefore acts on y((k-1)·Ts), and the loop needs no algebraic-loop
handling.

Typical Workflow:
-----------------
1. Build a LoopConfig (or keep the defaults).
2. ``loop = ClosedLoop.from_config(cfg, reference=StepSignal(cfg.Ts))``
3. ``loop.run(n_steps=100)``
4. Read ``loop.scope.get_signal("y")`` or call ``loop.plot()``.

Author: Discrete Simulation Framework
Version: 1.0.0
"""
import logging
import time
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np
import matplotlib.pyplot as plt

from .controllers import PIDController
from .core_blocks import (DEFAULT_DTYPE, LOOP_BUFFER_SIZE, DiscreteSystem,
                          InvalidParameter, validate_sampling_period)
from .dynamic_blocks import FirstOrderPlant
from .processing_blocks import ADConverter, DAConverter, Saturation
from .source_blocks import ReferenceSignal, StepSignal


logger = logging.getLogger(__name__)


# =========================
# Configuration
# =========================

@dataclass
class LoopConfig:
    """
    All tunable parameters of a closed-loop run in one place.

    Attributes:
        Ts (float):        Controller sampling period (seconds).
        N (int):           Plant sub-steps per controller period; Tp = Ts / N.
        Kp, Ki, Kd (float): PID gains.
        u_min, u_max (Optional[float]):
                           Actuator limits. A Saturation block is inserted
                           only when both are given.
        capacity (int):    Ring-buffer capacity of every block.

    Example:
        >>> cfg = LoopConfig(Ts=0.1, N=10, Kp=2.0, Ki=1.0, Kd=0.05)
        >>> cfg.plant_period
        0.01
    """

    # Timing
    Ts: float = 0.1
    N: int = 10

    # PID gains
    Kp: float = 1.0
    Ki: float = 0.5
    Kd: float = 0.1

    # Actuator limits
    u_min: Optional[float] = None
    u_max: Optional[float] = None

    capacity: int = LOOP_BUFFER_SIZE

    @property
    def plant_period(self) -> float:
        return self.Ts / self.N


@dataclass
class SimulationStats:
    """
    Runtime statistics collected during a run.

    Attributes:
        total_steps (int):     Controller ticks executed.
        plant_steps (int):     Plant samples executed (total_steps · N).
        compute_time (float):  Wall-clock time of the loop (seconds).
        avg_step_time (float): compute_time / total_steps.
    """
    total_steps: int = 0
    plant_steps: int = 0
    compute_time: float = 0.0
    avg_step_time: float = 0.0


# =========================
# Signal Recorder
# =========================

class LoopScope:
    """
    Per-tick recorder of the loop signals.

    Channels:
        t       controller time of the tick
        r       reference r(k)
        y_meas  measured output (ADC output)
        e       error r(k) - y_meas(k)
        u       control action after optional saturation
        y       plant output at the end of the tick

    Example:
        >>> stats = loop.run(50)
        >>> y = loop.scope.get_signal("y")   # np.ndarray of shape (50,)
    """

    CHANNELS = ('t', 'r', 'y_meas', 'e', 'u', 'y')

    def __init__(self) -> None:
        self.data: Dict[str, List[float]] = {c: [] for c in self.CHANNELS}

    def record(self, **values: float) -> None:
        for channel in self.CHANNELS:
            self.data[channel].append(values[channel])

    def clear(self) -> None:
        for values in self.data.values():
            values.clear()

    def __len__(self) -> int:
        return len(self.data['t'])

    def get_signal(self, label: str) -> Optional[np.ndarray]:
        """
        Return a recorded channel as a NumPy array, or None for an unknown label.
        """
        if label not in self.data:
            return None
        return np.array(self.data[label], dtype=DEFAULT_DTYPE)


# =========================
# Closed Loop
# =========================

class ClosedLoop:
    """
    Multi-rate closed loop: reference, PID, optional saturation, DAC,
    plant, ADC.

    Attributes:
        reference (ReferenceSignal): Setpoint source, sampled at Ts
        controller (DiscreteSystem): Regulator fed with the error
        plant (DiscreteSystem):      Pre-discretized plant, sampled at Ts/N
        adc (DiscreteSystem):        Measurement path
        dac (DiscreteSystem):        Actuation path
        saturation (Optional[DiscreteSystem]): Actuator limits
        N (int):                     Plant sub-steps per controller tick
        scope (LoopScope):           Recorded signals
        stats (SimulationStats):     Populated by run()

    Example:
        >>> cfg = LoopConfig(Ts=0.1, N=10, Kp=1.0, Ki=0.5, Kd=0.0)
        >>> loop = ClosedLoop.from_config(cfg)
        >>> stats = loop.run(n_steps=300, verbose=False)
        >>> round(loop.scope.get_signal("y")[-1], 2)
        1.0
    """

    def __init__(self, reference: ReferenceSignal, controller: DiscreteSystem,
                 plant: DiscreteSystem, adc: DiscreteSystem, dac: DiscreteSystem,
                 N: int = 1, saturation: Optional[DiscreteSystem] = None,
                 name: str = "loop") -> None:
        """
        Wire the blocks.

        Args:
            reference:  Setpoint source
            controller: Regulator taking e(k) and returning u(k)
            plant:      Plant driven N times per tick with the held DAC output
            adc:        Measurement converter
            dac:        Actuation converter
            N:          Plant sub-steps per controller tick. Must be >= 1.
            saturation: Optional actuator limit between controller and DAC
            name:       Identifier used in logs

        Raises:
            InvalidParameter: If N < 1
        """
        if int(N) != N or N < 1:
            raise InvalidParameter(f"{name}: plant oversampling N must be an integer >= 1 (got {N!r})")
        self.name: str = name
        self.reference = reference
        self.controller = controller
        self.plant = plant
        self.adc = adc
        self.dac = dac
        self.saturation = saturation
        self.N: int = int(N)
        self.scope = LoopScope()
        self.stats = SimulationStats()
        self._y_plant: float = 0.0

    @classmethod
    def from_config(cls, config: Optional[LoopConfig] = None,
                    reference: Optional[ReferenceSignal] = None) -> "ClosedLoop":
        """
        Build the standard loop PID → DAC → FirstOrderPlant → ADC.

        Args:
            config:    Loop parameters. Defaults to LoopConfig().
            reference: Setpoint source. Defaults to a unit step at t = 0.

        Returns:
            ClosedLoop: A ready-to-run loop

        Raises:
            InvalidSamplingTime: If config.Ts <= 0
            InvalidParameter: If config.N < 1 or u_min >= u_max
        """
        cfg = config if config is not None else LoopConfig()
        validate_sampling_period(cfg.Ts, "loop")
        if int(cfg.N) != cfg.N or cfg.N < 1:
            raise InvalidParameter(f"loop: plant oversampling N must be an integer >= 1 (got {cfg.N!r})")

        if reference is None:
            reference = StepSignal(cfg.Ts, amplitude=1.0, step_time=0.0,
                                   capacity=cfg.capacity, name="reference")

        saturation = None
        if cfg.u_min is not None and cfg.u_max is not None:
            saturation = Saturation(cfg.u_min, cfg.u_max, cfg.Ts, cfg.capacity)

        return cls(
            reference=reference,
            controller=PIDController(cfg.Kp, cfg.Ki, cfg.Kd, cfg.Ts, cfg.capacity, name="pid"),
            plant=FirstOrderPlant(cfg.plant_period, cfg.capacity),
            adc=ADConverter(cfg.Ts, cfg.capacity),
            dac=DAConverter(cfg.Ts, cfg.capacity),
            N=cfg.N,
            saturation=saturation,
        )

    @property
    def blocks(self) -> List[DiscreteSystem]:
        """The sampled blocks in signal-flow order."""
        chain = [self.controller]
        if self.saturation is not None:
            chain.append(self.saturation)
        chain.extend([self.dac, self.plant, self.adc])
        return chain

    def reset(self) -> None:
        """Reset every block, the reference and the recorder."""
        self.reference.reset()
        for block in self.blocks:
            block.reset()
        self._y_plant = 0.0
        self.scope.clear()

    def step(self) -> float:
        """
        Execute one controller tick.

        Returns:
            float: Plant output at the end of the tick
        """
        t = self.reference.t
        r = self.reference.next()
        y_meas = self.adc.advance(self._y_plant)
        e = r - y_meas

        u = self.controller.advance(e)
        if self.saturation is not None:
            u = self.saturation.advance(u)
        u_held = self.dac.advance(u)

        # Zero-order hold over the controller period.
        for _ in range(self.N):
            self._y_plant = self.plant.advance(u_held)

        self.scope.record(t=t, r=r, y_meas=y_meas, e=e, u=u, y=self._y_plant)
        return self._y_plant

    def run(self, n_steps: int, verbose: bool = True) -> SimulationStats:
        """
        Reset everything and execute n_steps controller ticks.

        Args:
            n_steps: Number of controller ticks
            verbose: Log the configuration banner and completion at INFO
                     level (DEBUG otherwise)

        Returns:
            SimulationStats: Also stored in self.stats
        """
        level = logging.INFO if verbose else logging.DEBUG
        logger.log(level, "%s: %d ticks, Ts=%g, N=%d\n%s",
                   self.name, n_steps, self.controller.sampling_period, self.N,
                   self.describe())

        self.reset()
        start_time = time.time()

        for _ in range(n_steps):
            self.step()

        elapsed = time.time() - start_time
        self.stats = SimulationStats(
            total_steps=n_steps,
            plant_steps=n_steps * self.N,
            compute_time=elapsed,
            avg_step_time=elapsed / max(n_steps, 1),
        )
        logger.log(level, "%s: complete in %.3f s", self.name, elapsed)
        return self.stats

    def describe(self) -> str:
        """Return a one-line-per-block summary of the wiring."""
        lines = [f"  reference  {type(self.reference).__name__:22s} Ts={self.reference.sampling_period:g}"]
        for block in self.blocks:
            lines.append(f"  {block.name:10s} {type(block).__name__:22s} "
                         f"Ts={block.sampling_period:g} capacity={block.capacity}")
        return "\n".join(lines)

    def plot(self, title: str = "Closed-Loop Response",
             figsize: Tuple[float, float] = (12, 6)):
        """
        Plot reference, output and control action against time.

        Returns:
            matplotlib.figure.Figure, or None when nothing has been recorded
        """
        if len(self.scope) == 0:
            logger.warning("%s: no signals to plot, call run() first", self.name)
            return None

        t = self.scope.get_signal('t')
        fig, (ax_y, ax_u) = plt.subplots(2, 1, figsize=figsize, sharex=True)

        ax_y.step(t, self.scope.get_signal('r'), where='post', label='r(k)', linewidth=1.5)
        ax_y.plot(t, self.scope.get_signal('y'), label='y', linewidth=1.5)
        ax_y.plot(t, self.scope.get_signal('y_meas'), '.', label='y_meas(k)', markersize=4)
        ax_y.set_ylabel("Output")
        ax_y.set_title(title)
        ax_y.legend(loc='best')
        ax_y.grid(True, alpha=0.3)

        ax_u.step(t, self.scope.get_signal('u'), where='post', label='u(k)', linewidth=1.5)
        ax_u.set_xlabel("Time [s]")
        ax_u.set_ylabel("Control")
        ax_u.legend(loc='best')
        ax_u.grid(True, alpha=0.3)

        fig.tight_layout()
        return fig


# =========================
# Module Metadata
# =========================

__all__ = [
    'LoopConfig',
    'SimulationStats',
    'LoopScope',
    'ClosedLoop',
]

__version__ = '1.0.0'
__author__ = 'Discrete Simulation Framework'
