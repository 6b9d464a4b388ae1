import folium
import streamlit as st
from streamlit_folium import st_folium

from lga_tracker import config
from lga_tracker.overpass import FileProvider, OverpassProvider
from lga_tracker.persistence import SQLiteStore
from lga_tracker.tracker import LGATracker, clicked_region_id

AUSTRALIA_CENTER = [-25.2744, 133.7751]

VISITED_FILL = "#22c55e"
UNVISITED_FILL = "#cbd5e1"


def leaflet_style(fill_state: dict) -> dict:
    return {
        "fillColor": VISITED_FILL if fill_state.get("visited") else UNVISITED_FILL,
        "weight": 1,
        "opacity": 1,
        "color": "white",
        "fillOpacity": 0.7,
    }


@st.cache_resource
def get_tracker() -> LGATracker:
    # Prefer the saved payload; fall back to a live Overpass query
    provider = FileProvider() if config.LGA_PAYLOAD_PATH.exists() else OverpassProvider()
    tracker = LGATracker(provider, SQLiteStore())
    tracker.start(background=True)
    return tracker


st.set_page_config(page_title="Australian LGA Visit Tracker", page_icon="🏆", layout="wide")

tracker = get_tracker()

st.title("🏆 LGA Progress")

stats = tracker.stats()
st.progress(stats.fraction)
st.caption(stats.label())

col1, col2, col3 = st.columns(3)
col1.metric("Visited", stats.visited)
col2.metric("Total LGAs", stats.total)
col3.metric("Progress", f"{stats.display_percentage:.1f}%")

if tracker.visits.last_write_error is not None:
    st.warning(f"Could not save your last change; it will be lost on reload. ({tracker.visits.last_write_error})")

st.divider()
st.header("🗺️ Australian LGA Visit Tracker")

registry = tracker.registry

if registry is None:
    if tracker.loader.error is not None:
        st.error(f"No boundary data: {tracker.loader.error}")
        if st.button("Retry", type="primary"):
            tracker.retry()
            st.rerun()
    else:
        st.info("Loading LGA boundaries… this can take a minute.")
        if st.button("Refresh"):
            st.rerun()
    st.stop()

m = folium.Map(location=AUSTRALIA_CENTER, zoom_start=4, control_scale=True)
folium.GeoJson(
    registry.to_geojson(),
    name="LGAs",
    style_function=lambda feat: leaflet_style(tracker.style_for(feat["properties"]["id"])),
    highlight_function=lambda feat: {"weight": 2, "fillOpacity": 0.9},
    tooltip=folium.GeoJsonTooltip(fields=["name"], labels=False),
).add_to(m)

# A fresh component key after every handled click: st_folium keeps
# re-reporting its last event until it is remounted, and two clicks on the same
# spot report identical coordinates.
click_count = st.session_state.setdefault("map_clicks", 0)
result = st_folium(m, height=600, use_container_width=True, key=f"lga_map_{click_count}", returned_objects=["last_active_drawing"])

region_id = clicked_region_id(result)
if region_id is not None:
    st.session_state["map_clicks"] = click_count + 1
    tracker.handle_click(region_id)
    st.rerun()

with st.expander("Visited LGAs"):
    visited = [r for r in registry.all() if tracker.visits.is_visited(r.id)]
    if visited:
        st.dataframe(
            [{"id": r.id, "name": r.name} for r in sorted(visited, key=lambda r: r.name)],
            use_container_width=True,
        )
    else:
        st.write("None yet. Click a region on the map to mark it visited.")
