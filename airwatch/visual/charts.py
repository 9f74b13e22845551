import matplotlib.pyplot as plt
import pandas as pd


def time_series_figure(df: pd.DataFrame, city: str, x: str = "year", y: str = "pm25", xlabel: str = "Year"):
    """Line chart of the PM2.5 proxy for one city (don't call plt.show() in Streamlit)."""
    fig, ax = plt.subplots(figsize=(8.5, 5.0))
    ax.plot(df[x], df[y], marker="o", markersize=5, linewidth=3)
    ax.set_title(f"PM2.5 Trend for {city}")
    ax.set_xlabel(xlabel)
    ax.set_ylabel("PM2.5 (µg/m³)")
    if x == "year":
        ax.set_xticks(list(df[x]))
    ax.grid(True, alpha=0.3)
    fig.tight_layout()
    return fig
