"""Plotly 차트 모듈.

월별 버킷/잔여 추이 DataFrame(analytics.monthly)을 받아 Figure를 만들고
Streamlit에 렌더링합니다. Figure 생성 함수는 Streamlit에 의존하지 않습니다.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

PARTS_COLOR = "#3B82F6"
VALUE_COLOR = "#10B981"
DELAYED_COLOR = "#EF4444"
REMAINING_COLOR = "#6366F1"
STARTS_COLOR = "#F59E0B"

_PLOTLY_CONFIG = {"displaylogo": False}


def to_plot_list(values: Optional[Iterable]) -> List:
    """Series/Index/iterable을 NaN 없는 리스트로 변환합니다."""

    if values is None:
        return []
    if isinstance(values, (pd.Index, pd.Series)):
        return values.dropna().tolist()
    return [v for v in values if not pd.isna(v)]


def _base_layout(fig: go.Figure, *, title: str, yaxis_title: str) -> go.Figure:
    fig.update_layout(
        title=title,
        hovermode="x unified",
        yaxis_title=yaxis_title,
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1),
        margin=dict(l=20, r=20, t=60, b=20),
        height=360,
    )
    return fig


def completion_distribution_figure(buckets: pd.DataFrame) -> go.Figure:
    """완료 분포: 부품 수(막대, 왼쪽 축)와 금액(선, 오른쪽 축)."""

    fig = go.Figure()
    if not buckets.empty:
        fig.add_bar(
            x=to_plot_list(buckets["month"]),
            y=to_plot_list(buckets["count"]),
            name="Parts",
            marker_color=PARTS_COLOR,
            yaxis="y",
        )
        fig.add_trace(
            go.Scatter(
                x=to_plot_list(buckets["month"]),
                y=to_plot_list(buckets["total_value"]),
                name="Value",
                mode="lines+markers",
                line=dict(color=VALUE_COLOR, width=3),
                yaxis="y2",
            )
        )
    _base_layout(fig, title="Completion distribution", yaxis_title="Parts")
    fig.update_layout(
        yaxis2=dict(title="Value", overlaying="y", side="right", tickprefix="$", showgrid=False)
    )
    return fig


def decline_figure(trajectory: pd.DataFrame, *, title: str = "Remaining parts") -> go.Figure:
    """잔여 부품 감소 추이 (월 시작 전/후 잔여 수량)."""

    fig = go.Figure()
    fig.add_trace(
        go.Scatter(
            x=to_plot_list(trajectory["month"]),
            y=to_plot_list(trajectory["remaining_after"]),
            name="Remaining",
            mode="lines+markers",
            line=dict(color=REMAINING_COLOR, width=3),
        )
    )
    fig.add_bar(
        x=to_plot_list(trajectory["month"]),
        y=to_plot_list(trajectory["events"]),
        name="Closed this month",
        marker_color=PARTS_COLOR,
        opacity=0.35,
    )
    return _base_layout(fig, title=title, yaxis_title="Parts")


def plan_forecast_figure(buckets: pd.DataFrame) -> go.Figure:
    """완료 예정 분포: 예정 부품 수 중 지연 부품을 따로 표시합니다."""

    fig = go.Figure()
    if not buckets.empty:
        on_track = buckets["count"] - buckets["delayed_count"]
        fig.add_bar(
            x=to_plot_list(buckets["month"]),
            y=to_plot_list(on_track),
            name="Planned",
            marker_color=PARTS_COLOR,
        )
        fig.add_bar(
            x=to_plot_list(buckets["month"]),
            y=to_plot_list(buckets["delayed_count"]),
            name="Delayed",
            marker_color=DELAYED_COLOR,
        )
    _base_layout(fig, title="Plan forecast", yaxis_title="Parts")
    fig.update_layout(barmode="stack")
    return fig


def planned_start_figure(trajectory: pd.DataFrame) -> go.Figure:
    """착수 예정 추이: 월별 착수 건수와 남은 Current BoM 부품 수."""

    fig = go.Figure()
    fig.add_bar(
        x=to_plot_list(trajectory["month"]),
        y=to_plot_list(trajectory["events"]),
        name="Planned starts",
        marker_color=STARTS_COLOR,
    )
    fig.add_trace(
        go.Scatter(
            x=to_plot_list(trajectory["month"]),
            y=to_plot_list(trajectory["remaining_after"]),
            name="Remaining",
            mode="lines+markers",
            line=dict(color=REMAINING_COLOR, width=3),
        )
    )
    return _base_layout(fig, title="Planned start trajectory", yaxis_title="Parts")


def render_figure(fig: go.Figure, *, key: Optional[str] = None) -> None:
    st.plotly_chart(fig, use_container_width=True, config=_PLOTLY_CONFIG, key=key)
