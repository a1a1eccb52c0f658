"""Plotly figures of a clustered scan"""

import numpy as np
import plotly.graph_objects as go

from lidar_relay.clustering import NOISE

CLUSTER_COLORS = [
    "#e6194b", "#3cb44b", "#ffe119", "#4363d8", "#f58231",
    "#911eb4", "#42d4f4", "#f032e6", "#bfef45", "#fabed4",
    "#469990", "#dcbeff", "#9A6324", "#800000", "#aaffc3",
    "#808000", "#ffd8b1", "#000075", "#a9a9a9", "#ffffff",
]


def cluster_color(cluster_id: int) -> str:
    return CLUSTER_COLORS[cluster_id % len(CLUSTER_COLORS)]


def to_rgba(color: str, alpha: float) -> str:
    """#rrggbb to an rgba() string; anything else is returned unchanged."""
    if not color.startswith("#"):
        return color
    r = int(color[1:3], 16)
    g = int(color[3:5], 16)
    b = int(color[5:7], 16)
    return f"rgba({r},{g},{b},{alpha})"


def scatter_clusters_2d(points, labels):
    """Top-down scatter of a scan, one trace per cluster plus one for noise."""
    fig = go.Figure()
    for label in np.unique(labels):
        pts = points[labels == label]
        if label == NOISE:
            fig.add_trace(go.Scattergl(
                x=pts[:, 0], y=pts[:, 1],
                mode="markers",
                marker=dict(size=3, color="gray", opacity=0.3),
                name=f"Noise ({len(pts):,})",
            ))
        else:
            fig.add_trace(go.Scattergl(
                x=pts[:, 0], y=pts[:, 1],
                mode="markers",
                marker=dict(size=4, color=cluster_color(int(label)), opacity=0.8),
                name=f"Cluster {label} ({len(pts):,})",
            ))
    fig.update_layout(
        xaxis=dict(title="X (mm)", scaleanchor="y"),
        yaxis=dict(title="Y (mm)"),
        height=650,
        margin=dict(l=50, r=20, t=30, b=50),
    )
    return fig


def add_bounding_boxes(fig, bounding_boxes):
    """Outline each (cluster_id, BoundingBox) on an existing top-down figure."""
    for cluster_id, bbox in bounding_boxes:
        color = cluster_color(cluster_id)
        fig.add_trace(go.Scatter(
            x=[bbox.min_x, bbox.max_x, bbox.max_x, bbox.min_x, bbox.min_x],
            y=[bbox.min_y, bbox.min_y, bbox.max_y, bbox.max_y, bbox.min_y],
            mode="lines",
            line=dict(color=color, width=2),
            fill="toself",
            fillcolor=to_rgba(color, 0.15),
            name=f"Box {cluster_id}",
            showlegend=False,
            hovertemplate=(
                f"Cluster {cluster_id}<br>"
                f"{bbox.width:.1f} x {bbox.height:.1f}<extra></extra>"
            ),
        ))
    return fig


def scan_view(result):
    """
    Clustered scan with box outlines and the sensor at the origin.

    Args:
        result: ScanResult

    Returns:
        Plotly figure
    """
    fig = scatter_clusters_2d(result.points, result.labels)
    add_bounding_boxes(fig, result.bounding_boxes)

    fig.add_trace(go.Scatter(
        x=[0], y=[0],
        mode="markers",
        marker=dict(size=10, color="rgb(0, 150, 255)", symbol="x"),
        name="Sensor",
        hoverinfo="skip",
    ))
    return fig
