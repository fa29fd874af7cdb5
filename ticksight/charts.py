from __future__ import annotations

from typing import Any, Dict, Optional

import altair as alt
import pandas as pd

from ticksight.lookups import MONTH_NAMES

alt.data_transformers.disable_max_rows()


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def monthly_counts_frame(buckets: Dict[int, int]) -> pd.DataFrame:
    return pd.DataFrame(
        [{"month": m, "month_name": MONTH_NAMES[m][:3], "sightings": int(buckets.get(m, 0))} for m in sorted(MONTH_NAMES)]
    )


def monthly_histogram_chart(buckets: Dict[int, int], title: Optional[str] = None) -> alt.Chart:
    df = monthly_counts_frame(buckets)
    month_order = df["month_name"].tolist()
    chart = (
        alt.Chart(df)
        .mark_bar(cornerRadiusTopLeft=3, cornerRadiusTopRight=3, color="#2e7d32")
        .encode(
            x=alt.X("month_name:N", title="Month", sort=month_order, axis=alt.Axis(labelAngle=0)),
            y=alt.Y("sightings:Q", title="Sightings", axis=alt.Axis(format="d", tickMinStep=1)),
            tooltip=[
                alt.Tooltip("month_name:N", title="Month"),
                alt.Tooltip("sightings:Q", title="Sightings", format=","),
            ],
        )
    )
    if title:
        chart = chart.properties(title=title)
    return chart
