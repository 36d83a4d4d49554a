from __future__ import annotations

import base64
import io
from typing import List, Mapping

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
from matplotlib.ticker import FuncFormatter  # noqa: E402

from tokenvest.models import AllocationEntry, ProjectScheduleRow  # noqa: E402

# Dark theme shared by every chart
BACKGROUND = "#0c0c14"
FOREGROUND = "#e8e8ea"
PALETTE = ["#FF6384", "#36A2EB", "#FFCE56", "#4BC0C0", "#9966FF", "#FF9F40", "#C9CBCF", "#00A86B"]


def format_tokens(value: float) -> str:
    """Compact token amount: 1.50M, 2.00K, 12.00."""
    if abs(value) >= 1_000_000:
        return f"{value / 1_000_000:.2f}M"
    if abs(value) >= 1_000:
        return f"{value / 1_000:.2f}K"
    return f"{value:.2f}"


def plot_to_data_uri(fig) -> str:
    buf = io.BytesIO()
    fig.savefig(
        buf,
        format="png",
        bbox_inches="tight",
        facecolor=fig.get_facecolor(),
        edgecolor="none",
    )
    buf.seek(0)
    b64 = base64.b64encode(buf.read()).decode("ascii")
    return f"data:image/png;base64,{b64}"


def render_project_chart(rows: List[ProjectScheduleRow], title: str = "Cumulative Unlocks") -> str:
    """Stacked area chart of each category's cumulative unlocked amount."""
    months = [row.month for row in rows]
    categories = list(rows[0].per_category_amounts) if rows else []
    series = [[row.per_category_amounts[c] for row in rows] for c in categories]
    colors = [PALETTE[i % len(PALETTE)] for i in range(len(categories))]

    fig, ax = plt.subplots(figsize=(8, 3), facecolor=BACKGROUND)
    ax.set_facecolor(BACKGROUND)
    if categories:
        ax.stackplot(months, series, labels=categories, colors=colors, alpha=0.6)
    ax.set_title(title, color=FOREGROUND)
    ax.set_xlabel("Month", color=FOREGROUND)
    ax.set_ylabel("Tokens", color=FOREGROUND)
    ax.yaxis.set_major_formatter(FuncFormatter(lambda value, _pos: format_tokens(value)))
    ax.tick_params(colors=FOREGROUND, labelcolor=FOREGROUND)
    for spine in ax.spines.values():
        spine.set_color((1, 1, 1, 0.12))
    ax.grid(True, color=(1, 1, 1, 0.15), linewidth=0.8)
    if categories:
        leg = ax.legend(loc="upper left")
        leg.get_frame().set_facecolor(BACKGROUND)
        leg.get_frame().set_edgecolor((1, 1, 1, 0.1))
        for text in leg.get_texts():
            text.set_color(FOREGROUND)
    data_uri = plot_to_data_uri(fig)
    plt.close(fig)
    return data_uri


def render_allocation_chart(entries: Mapping[str, AllocationEntry], title: str = "Token Allocation") -> str:
    """Pie chart of the supply split, one wedge per category."""
    categories = list(entries)
    amounts = [entries[c].amount for c in categories]
    labels = [f"{c} ({entries[c].percentage:g}%)" for c in categories]
    colors = [PALETTE[i % len(PALETTE)] for i in range(len(categories))]

    fig, ax = plt.subplots(figsize=(5, 5), facecolor=BACKGROUND)
    ax.set_facecolor(BACKGROUND)
    if sum(amounts) > 0:
        ax.pie(
            amounts,
            labels=labels,
            colors=colors,
            startangle=90,
            counterclock=False,
            wedgeprops={"edgecolor": BACKGROUND, "linewidth": 1.0},
            textprops={"color": FOREGROUND},
        )
    ax.set_title(title, color=FOREGROUND)
    ax.axis("equal")
    data_uri = plot_to_data_uri(fig)
    plt.close(fig)
    return data_uri
