"""Streamlit inspector for recorded scans: tune clustering and preview what would be sent"""

from pathlib import Path
from typing import List, Optional

import streamlit as st

from lidar_relay.config import ClusterParams
from lidar_relay.data_loader import discover_scans, load_scan_txt
from lidar_relay.errors import ConfigurationError
from lidar_relay.pipeline import ScanResult, process_scan
from lidar_relay.point_cloud import Sample
from lidar_relay.visualizations import scan_view

DEFAULT_SCAN_DIR = "data/scans"


def get_params_from_sidebar() -> ClusterParams:
    """Render clustering controls in sidebar and return ClusterParams."""
    with st.popover("Clustering", use_container_width=True):
        tolerance = st.slider(
            "Tolerance, mm (larger = merges nearby objects)",
            10.0, 1000.0, 100.0, 10.0,
        )
        min_points = st.slider(
            "Min points (higher = more noise)",
            1, 30, 3,
        )
    return ClusterParams(min_points=min_points, tolerance=tolerance)


def render_boxes_tab(r: ScanResult):
    """Render per-cluster table."""
    counts = {cid: int((r.labels == cid).sum()) for cid, _ in r.bounding_boxes}
    rows = [
        {
            "cluster": cid,
            "points": counts[cid],
            "center x": round(bbox.center[0], 1),
            "center y": round(bbox.center[1], 1),
            "width": round(bbox.width, 1),
            "height": round(bbox.height, 1),
        }
        for cid, bbox in r.bounding_boxes
    ]
    if rows:
        st.dataframe(rows, use_container_width=True)
    else:
        st.info("No clusters at these settings.")


def load_scan(scan_path) -> Optional[List[Sample]]:
    """Read a recorded scan, reporting a bad file on the page instead of failing."""
    try:
        return load_scan_txt(scan_path)
    except (OSError, ValueError) as e:
        st.error(f"Could not read {Path(scan_path).name}: {e}")
        return None


def main():
    st.set_page_config(page_title="LiDAR Relay Inspector", layout="wide")
    st.title("LiDAR Relay Inspector")

    with st.sidebar:
        st.header("Input")
        scan_dir = st.text_input("Scan directory", value=DEFAULT_SCAN_DIR)
        paths = discover_scans(scan_dir)
        if not paths:
            st.error(f"No .txt scans found in {scan_dir}")
            return
        scan_path = st.selectbox("Scan", paths, format_func=lambda p: Path(p).name)

        st.header("Parameters")
        params = get_params_from_sidebar()

    try:
        params.validate()
    except ConfigurationError as e:
        st.error(str(e))
        return

    samples = load_scan(scan_path)
    if samples is None:
        return
    r = process_scan(samples, params)

    col1, col2, col3 = st.columns(3)
    col1.metric("Points", len(r.points))
    col2.metric("Clusters", r.num_clusters)
    col3.metric("Noise", r.noise_count)

    tab_scan, tab_boxes, tab_payload = st.tabs(["Scan", "Bounding Boxes", "Payload"])
    with tab_scan:
        st.plotly_chart(scan_view(r), use_container_width=True)
    with tab_boxes:
        render_boxes_tab(r)
    with tab_payload:
        st.json(r.to_payload(), expanded=False)


if __name__ == "__main__":
    main()
