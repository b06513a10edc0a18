"""
Chart rendering for dashboard panels.
Reads chartType, axis labels, limits and the panel body and draws with matplotlib.
"""

from visualization.plotter import plot, plot_to_bytes

__all__ = ["plot", "plot_to_bytes"]
