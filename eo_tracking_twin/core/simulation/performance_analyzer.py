"""
Performance Analyzer for the Airborne Tracking Twin

This module reduces a sequence of :class:`SystemState` snapshots (the
runner's bounded history, or every frame of a batch run) to tracking
performance metrics.

Key Metrics:
-----------
1. RMS LOS Error: Primary performance metric (mrad)
2. Peak / Mean / Std LOS Error (mrad)
3. Final LOS Error (mrad)
4. FSM Saturation: Fraction of samples with the mirror at its stroke (%)

Errors are reported in milliradians, the unit the operator display uses.
The default RMS requirement of 1 mrad matches the display's "fine
tracking" band.
"""

import numpy as np
import pandas as pd
import warnings
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional, Sequence

from eo_tracking_twin.core.simulation.parameters import FSM_ANGLE_LIMIT
from eo_tracking_twin.core.simulation.system_state import SystemState


@dataclass
class TrackingMetrics:
    """
    Container for computed tracking metrics.

    All angular errors in milliradians (mrad), times in seconds.
    """
    rms_error: float = 0.0
    peak_error: float = 0.0
    mean_error: float = 0.0
    std_error: float = 0.0
    final_error: float = 0.0

    fsm_saturation_percentage: float = 0.0
    rms_fsm_x: float = 0.0
    rms_fsm_y: float = 0.0
    rms_gimbal_residual: float = 0.0   # Residual left by the gimbal

    total_duration: float = 0.0
    sample_count: int = 0

    meets_rms_requirement: bool = False

    metadata: Dict[str, Any] = field(default_factory=dict)


def history_to_dataframe(history: Sequence[SystemState]) -> pd.DataFrame:
    """
    Tabulate snapshots, one row per state and one column per field.

    Parameters
    ----------
    history : Sequence[SystemState]
        Snapshots, oldest first

    Returns
    -------
    pd.DataFrame
        Indexed by position; columns follow SystemState field order
    """
    columns = [f.name for f in fields(SystemState)]
    rows = [[getattr(s, name) for name in columns] for s in history]
    return pd.DataFrame(rows, columns=columns)


class PerformanceAnalyzer:
    """
    Tracking performance analysis over a state history.

    Usage:
    ------
    >>> analyzer = PerformanceAnalyzer(rms_requirement_mrad=1.0)
    >>> metrics = analyzer.analyze(runner.get_history())
    >>> print(f"RMS Error: {metrics.rms_error:.3f} mrad")
    """

    def __init__(
        self,
        rms_requirement_mrad: float = 1.0,
        fsm_limit: float = FSM_ANGLE_LIMIT,
        saturation_tolerance: float = 1e-9
    ):
        """
        Parameters
        ----------
        rms_requirement_mrad : float
            Maximum allowed RMS LOS error [mrad]
        fsm_limit : float
            FSM mechanical stroke [rad]
        saturation_tolerance : float
            Distance from the stroke counted as saturated [rad]
        """
        self.rms_requirement_mrad = rms_requirement_mrad
        self.fsm_limit = fsm_limit
        self.saturation_tolerance = saturation_tolerance

    def analyze(
        self,
        history: Sequence[SystemState],
        start_time: float = 0.0,
        end_time: Optional[float] = None
    ) -> TrackingMetrics:
        """
        Compute tracking metrics over a time window.

        Parameters
        ----------
        history : Sequence[SystemState]
            Snapshots, oldest first
        start_time : float
            Start of analysis window [s]
        end_time : Optional[float]
            End of analysis window [s] (None = use all data)

        Returns
        -------
        TrackingMetrics
        """
        metrics = TrackingMetrics()

        df = history_to_dataframe(history)
        if df.empty:
            warnings.warn("Empty history, returning zero metrics")
            return metrics

        if end_time is None:
            end_time = df['time'].iloc[-1]
        window = df[(df['time'] >= start_time) & (df['time'] <= end_time)]

        if window.empty:
            warnings.warn("Empty time window, returning zero metrics")
            return metrics

        error_mrad = window['los_error'].to_numpy() * 1e3
        metrics.rms_error = float(np.sqrt(np.mean(error_mrad ** 2)))
        metrics.peak_error = float(np.max(error_mrad))
        metrics.mean_error = float(np.mean(error_mrad))
        metrics.std_error = float(np.std(error_mrad))
        metrics.final_error = float(error_mrad[-1])

        fsm = window[['fsm_x', 'fsm_y']].to_numpy()
        at_stroke = np.abs(fsm) >= (self.fsm_limit - self.saturation_tolerance)
        metrics.fsm_saturation_percentage = float(100.0 * np.mean(at_stroke.any(axis=1)))
        metrics.rms_fsm_x = float(np.sqrt(np.mean(fsm[:, 0] ** 2)) * 1e3)
        metrics.rms_fsm_y = float(np.sqrt(np.mean(fsm[:, 1] ** 2)) * 1e3)

        residual = np.hypot(
            window['gimbal_cmd_az'] - window['gimbal_az'],
            window['gimbal_cmd_el'] - window['gimbal_el'],
        ).to_numpy()
        metrics.rms_gimbal_residual = float(np.sqrt(np.mean(residual ** 2)) * 1e3)

        metrics.total_duration = float(window['time'].iloc[-1] - window['time'].iloc[0])
        metrics.sample_count = len(window)
        metrics.meets_rms_requirement = metrics.rms_error <= self.rms_requirement_mrad
        metrics.metadata = {
            'start_time': float(window['time'].iloc[0]),
            'end_time': float(window['time'].iloc[-1]),
            'rms_requirement_mrad': self.rms_requirement_mrad,
        }
        return metrics

    def generate_report(self, metrics: TrackingMetrics) -> str:
        """Human-readable summary of a metrics set."""
        status = "PASS" if metrics.meets_rms_requirement else "FAIL"
        lines = [
            "=" * 60,
            "TRACKING PERFORMANCE SUMMARY",
            "=" * 60,
            f"Samples:            {metrics.sample_count}",
            f"Duration:           {metrics.total_duration:.2f} s",
            f"RMS LOS error:      {metrics.rms_error:.4f} mrad  [{status}, req {self.rms_requirement_mrad:.2f}]",
            f"Peak LOS error:     {metrics.peak_error:.4f} mrad",
            f"Mean LOS error:     {metrics.mean_error:.4f} mrad",
            f"Final LOS error:    {metrics.final_error:.4f} mrad",
            f"Gimbal residual:    {metrics.rms_gimbal_residual:.4f} mrad RMS",
            f"FSM RMS (x/y):      {metrics.rms_fsm_x:.4f} / {metrics.rms_fsm_y:.4f} mrad",
            f"FSM saturation:     {metrics.fsm_saturation_percentage:.1f} %",
            "=" * 60,
        ]
        return "\n".join(lines)
