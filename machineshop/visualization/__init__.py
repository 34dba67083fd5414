"""
Plotting utilities for resampled performance.
"""

from .plots import plot_lift, plot_resamples, plot_tune

__all__ = ['plot_resamples', 'plot_lift', 'plot_tune']
