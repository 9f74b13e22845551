from typing import List, Tuple

from airwatch.config import LEGEND_NAMES, PM25_VIS

LEGEND_TITLE = "PM2.5 Levels (µmol/m²)"


def legend_items() -> List[Tuple[str, str]]:
    """(label, color) per palette class, lowest first."""
    palette = PM25_VIS["palette"]
    if len(palette) != len(LEGEND_NAMES):
        raise ValueError(f"Palette has {len(palette)} colors but {len(LEGEND_NAMES)} legend names")
    return list(zip(LEGEND_NAMES, palette))


def add_pm25_legend(m, position: str = "bottomleft"):
    items = legend_items()
    m.add_legend(
        title=LEGEND_TITLE,
        labels=[label for label, _ in items],
        colors=[color for _, color in items],
        position=position,
    )
    return m
