"""
Figures for resampled performance, lift curves and tuning results.

All functions return the matplotlib figure and axes and optionally save the
figure to ``save_path``.
"""

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import seaborn as sns
from typing import List, Optional, Sequence, Tuple

from ..performance.resamples import Resamples

# Colorblind-friendly palette
DEFAULT_COLORS = [
    '#E64B35',
    '#4DBBD5',
    '#00A087',
    '#3C5488',
    '#F39B7F',
    '#91D1C2',
    '#808080',
]

DEFAULT_DPI = 300
DEFAULT_FONTSIZE = {
    'title': 12,
    'label': 10,
    'tick': 9,
    'legend': 9,
}


def _apply_base_style(ax: plt.Axes, grid: bool = False) -> None:
    ax.spines['top'].set_visible(False)
    ax.spines['right'].set_visible(False)
    if grid:
        ax.grid(True, alpha=0.3, linestyle='--', linewidth=0.5)


def plot_resamples(
    resamples: Resamples,
    metrics: Optional[Sequence[str]] = None,
    figsize: Optional[Tuple[float, float]] = None,
    title: Optional[str] = None,
    save_path: Optional[str] = None,
    show_points: bool = True
) -> Tuple[plt.Figure, List[plt.Axes]]:
    """
    Box plots of resampled metric values, one panel per metric.

    Parameters
    ----------
    resamples : Resamples
        Resampled performance of one or more models.
    metrics : sequence of str, optional
        Metrics to plot. Defaults to all metrics in ``resamples``.
    figsize : tuple, optional
        Figure size. Defaults to 4 inches wide per panel.
    title : str, optional
        Figure title.
    save_path : str, optional
        Path to save figure.
    show_points : bool, optional
        Whether to overlay individual partition values. Default is True.

    Returns
    -------
    fig : plt.Figure
        Matplotlib figure object.
    axes : list of plt.Axes
        One axes per metric.

    Examples
    --------
    >>> fig, axes = plot_resamples(res, metrics=['Accuracy', 'Kappa'])
    """
    frame = resamples.frame
    if metrics is None:
        metrics = resamples.metrics
    unknown = [m for m in metrics if m not in resamples.metrics]
    if unknown:
        raise ValueError(f"Metrics not found in resamples: {unknown}")

    if figsize is None:
        figsize = (4 * len(metrics), 5)
    fig, axes = plt.subplots(1, len(metrics), figsize=figsize, squeeze=False)
    axes = list(axes[0])

    models = resamples.models
    palette = {m: DEFAULT_COLORS[i % len(DEFAULT_COLORS)] for i, m in enumerate(models)}

    for ax, metric in zip(axes, metrics):
        plot_df = frame[(frame['Metric'] == metric) & ~frame['Missing']]
        sns.boxplot(data=plot_df, x='Model', y='Value', hue='Model', order=models,
                    palette=palette, legend=False, width=0.6, ax=ax)
        if show_points:
            sns.stripplot(data=plot_df, x='Model', y='Value', order=models,
                          color='black', size=3, alpha=0.4, jitter=0.15, ax=ax)
        ax.set_title(metric, fontsize=DEFAULT_FONTSIZE['title'], fontweight='bold')
        ax.set_xlabel('')
        ax.set_ylabel('Value', fontsize=DEFAULT_FONTSIZE['label'])
        ax.tick_params(axis='x', labelsize=DEFAULT_FONTSIZE['tick'], rotation=30)
        _apply_base_style(ax)

    if title:
        fig.suptitle(title, fontsize=DEFAULT_FONTSIZE['title'], fontweight='bold')
    fig.tight_layout()

    if save_path:
        fig.savefig(save_path, dpi=DEFAULT_DPI, bbox_inches='tight')

    return fig, axes


def plot_lift(
    curves: pd.DataFrame,
    figsize: Tuple[int, int] = (8, 8),
    title: Optional[str] = None,
    save_path: Optional[str] = None,
    ax: Optional[plt.Axes] = None
) -> Tuple[plt.Figure, plt.Axes]:
    """
    Plot lift curves with the random-selection reference line.

    Parameters
    ----------
    curves : pd.DataFrame
        Output of ``lift``: columns Model, Tested and Found.
    figsize : tuple, optional
        Figure size. Default is (8, 8).
    title : str, optional
        Plot title.
    save_path : str, optional
        Path to save figure.
    ax : plt.Axes, optional
        Existing axes to plot on.

    Returns
    -------
    fig : plt.Figure
        Matplotlib figure object.
    ax : plt.Axes
        Matplotlib axes object.
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.get_figure()

    ax.plot([0, 100], [0, 100], 'k--', lw=1.5, alpha=0.5, label='Random')
    for i, (model, group) in enumerate(curves.groupby('Model', sort=False)):
        ax.plot(group['Tested'], group['Found'], lw=2.5,
                color=DEFAULT_COLORS[i % len(DEFAULT_COLORS)], label=model)

    ax.set_xlim([-1, 101])
    ax.set_ylim([-1, 101])
    ax.set_xlabel('% Tested', fontsize=DEFAULT_FONTSIZE['label'])
    ax.set_ylabel('% Found', fontsize=DEFAULT_FONTSIZE['label'])
    ax.set_title(title or 'Lift Curve', fontsize=DEFAULT_FONTSIZE['title'], fontweight='bold')
    ax.legend(loc='lower right', fontsize=DEFAULT_FONTSIZE['legend'], frameon=True)
    ax.set_aspect('equal')
    _apply_base_style(ax, grid=True)

    if save_path:
        fig.savefig(save_path, dpi=DEFAULT_DPI, bbox_inches='tight')

    return fig, ax


def plot_tune(
    result,
    metric: Optional[str] = None,
    figsize: Tuple[int, int] = (8, 6),
    title: Optional[str] = None,
    save_path: Optional[str] = None,
    ax: Optional[plt.Axes] = None
) -> Tuple[plt.Figure, plt.Axes]:
    """
    Plot the mean resampled metric at each grid point of a tuning run.

    Error bars show one standard deviation across partitions and the
    selected grid point is highlighted.

    Parameters
    ----------
    result : TuneResult
        Output of ``tune``.
    metric : str, optional
        Metric to plot. Defaults to the selection metric.
    figsize : tuple, optional
        Figure size. Default is (8, 6).
    title : str, optional
        Plot title.
    save_path : str, optional
        Path to save figure.
    ax : plt.Axes, optional
        Existing axes to plot on.

    Returns
    -------
    fig : plt.Figure
        Matplotlib figure object.
    ax : plt.Axes
        Matplotlib axes object.
    """
    metric = metric or result.metric
    summary = result.resamples.summary().xs(metric, level='Metric')
    labels = list(result.grid.index)
    summary = summary.reindex(labels)

    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)
    else:
        fig = ax.get_figure()

    x = np.arange(len(labels))
    ax.errorbar(x, summary['Mean'], yerr=summary['SD'], fmt='o-', color=DEFAULT_COLORS[1],
                ecolor='gray', capsize=4, lw=1.5)
    best = labels.index(result.selected)
    ax.scatter([x[best]], [summary['Mean'].iloc[best]], s=150, color=DEFAULT_COLORS[0],
               zorder=3, label=f'Selected ({result.selected})')

    tick_labels = [', '.join(f'{k}={v}' for k, v in row.items())
                   for _, row in result.grid.iterrows()]
    ax.set_xticks(x)
    ax.set_xticklabels(tick_labels, rotation=45, ha='right', fontsize=DEFAULT_FONTSIZE['tick'])
    ax.set_ylabel(f'Mean {metric}', fontsize=DEFAULT_FONTSIZE['label'])
    ax.set_title(title or 'Tuning Results', fontsize=DEFAULT_FONTSIZE['title'], fontweight='bold')
    ax.legend(fontsize=DEFAULT_FONTSIZE['legend'])
    _apply_base_style(ax, grid=True)

    if save_path:
        fig.savefig(save_path, dpi=DEFAULT_DPI, bbox_inches='tight')

    return fig, ax
