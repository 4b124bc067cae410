from .html import PLOT_DATA_PLACEHOLDER, render_index, render_plot_page

__all__ = ["PLOT_DATA_PLACEHOLDER", "render_index", "render_plot_page"]
