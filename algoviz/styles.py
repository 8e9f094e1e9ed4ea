from typing import Any, Dict, Mapping, Optional


DEFAULT_PALETTE: Dict[str, str] = {
    "background": "#1A1A1A",
    "text": "#FFFFFF",
    "muted": "#95A5A6",
    "border": "#666666",
    "primary": "#3498DB",
    "active": "#F39C12",
    "complete": "#2ECC71",
    "visited": "#8E44AD",
    "accent": "#E74C3C",
    "true": "#27AE60",
    "false": "#C0392B",
    "row_even": "#2C2C2C",
    "row_odd": "#383838",
    "header": "#34495E",
    "board_light": "#F0D9B5",
    "board_dark": "#B58863",
    "bit_off": "#2C2C2C",
}

NAMED_COLORS = {
    "red": "#FC6255", "blue": "#58C4DD", "green": "#83C167", "yellow": "#FFFF00",
    "orange": "#FF862F", "purple": "#9A72AC", "pink": "#D147BD",
    "gray": "#888888", "grey": "#888888", "white": "#FFFFFF", "black": "#000000",
    "lightgray": "#BBBBBB", "lightgrey": "#BBBBBB",
    "darkgray": "#444444", "darkgrey": "#444444",
}

# Actions whose highlights mean "this part is settled".
COMPLETE_ACTIONS = frozenset({"swap", "done", "complete", "sorted", "found"})


def parse_color(color_raw: Any, default: str = "#FFFFFF") -> str:
    """Normalize hex, #RGB, rgb()/rgba() and named colors to #RRGGBB."""
    if not isinstance(color_raw, str):
        return default

    s = color_raw.strip()
    if s.lower() in ("", "none", "transparent"):
        return default

    if s.startswith("#"):
        if len(s) == 7:
            return s.upper()
        if len(s) == 4:
            r, g, b = s[1], s[2], s[3]
            return f"#{r}{r}{g}{g}{b}{b}".upper()
        return default

    lowered = s.lower()
    if lowered.startswith("rgba(") or lowered.startswith("rgb("):
        try:
            parts = s[s.index("(") + 1:-1].split(",")
            r, g, b = (max(0, min(255, int(float(p)))) for p in parts[:3])
            return f"#{r:02X}{g:02X}{b:02X}"
        except (ValueError, TypeError):
            return default

    return NAMED_COLORS.get(lowered, default)


def highlight_tint(action: Optional[str], palette: Mapping[str, str]) -> str:
    """Pick the tint for highlighted elements from the step's action tag."""
    if action and action.strip().lower() in COMPLETE_ACTIONS:
        return palette["complete"]
    return palette["active"]
