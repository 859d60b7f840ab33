from dataclasses import dataclass


@dataclass(frozen=True)
class ThemeConfig:
    """
    Centralized UI styling constants.
    """

    # Fonts
    font_family: str = "Inter, Segoe UI, Roboto, sans-serif"
    font_size_base: int = 12
    font_size_small: int = 11
    font_size_header: int = 14

    # Colors
    bg_dark: str = "#0f0f0f"
    bg_panel: str = "#1a1a1a"
    border_color: str = "#333333"
    text_primary: str = "#eeeeee"
    text_secondary: str = "#aaaaaa"
    accent_primary: str = "#2e7d32"
    split_line: str = "#aaffffff"
    crosshair: str = "#8000ff00"

    # Component Sizes
    sidebar_width: int = 310
    slider_steps: int = 500


THEME = ThemeConfig()
