"""HTML rendering for the plot server index and standalone plot pages.

Both pages are static shells: the index fetches ``/api/plots`` in the browser
and no catalog data is templated on the server side.
"""

from __future__ import annotations

import html as _html

__all__ = ["render_index", "render_plot_page", "PLOT_DATA_PLACEHOLDER"]

# Replaced by the generated plot code with the base64 PNG payload
PLOT_DATA_PLACEHOLDER = "__SSH_VIZ_PLOT_DATA__"

REFRESH_MS = 30000

_INDEX_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
    <title>ssh-viz Plot Server</title>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <style>
        body { font-family: system-ui, sans-serif; margin: 20px; background: #f8f9fa; }
        .container { max-width: 1200px; margin: 0 auto; }
        .header { background: white; padding: 20px; border-radius: 8px; margin-bottom: 20px; }
        .plot-grid { display: grid; grid-template-columns: repeat(auto-fill, minmax(300px, 1fr)); gap: 20px; }
        .plot-card { background: white; border-radius: 8px; padding: 15px; box-shadow: 0 2px 4px rgba(0,0,0,0.1); }
        .plot-card img { max-width: 100%; height: auto; border-radius: 4px; }
        .plot-info { margin-top: 10px; font-size: 0.9em; color: #666; }
        .refresh-btn { background: #007bff; color: white; border: none; padding: 10px 20px; border-radius: 4px; cursor: pointer; }
        .refresh-btn:hover { background: #0056b3; }
        .status { background: #d4edda; padding: 10px; border-radius: 4px; margin-bottom: 20px; }
    </style>
    <script>
        function refreshPage() { location.reload(); }
        setInterval(refreshPage, __REFRESH_MS__);

        function escapeHtml(text) {
            const div = document.createElement('div');
            div.textContent = text;
            return div.innerHTML;
        }

        async function loadPlots() {
            const grid = document.getElementById('plot-grid');
            try {
                const response = await fetch('/api/plots');
                const plots = await response.json();
                if (plots.length === 0) {
                    grid.innerHTML = 'No plots yet.';
                    return;
                }
                grid.innerHTML = plots.map(plot => `
                    <div class="plot-card">
                        <h3>${escapeHtml(plot.name)}</h3>
                        <a href="${encodeURI(plot.html)}" target="_blank">
                            <img src="${encodeURI(plot.image)}" alt="${escapeHtml(plot.name)}" onerror="this.style.display='none'">
                        </a>
                        <div class="plot-info">
                            <div>Modified: ${escapeHtml(plot.modified)}</div>
                            <div>Size: ${escapeHtml(plot.size)}</div>
                        </div>
                    </div>
                `).join('');
            } catch (e) {
                console.error('Failed to load plots:', e);
                grid.innerHTML = 'Failed to load plots.';
            }
        }

        window.onload = loadPlots;
    </script>
</head>
<body>
    <div class="container">
        <div class="header">
            <h1>ssh-viz Plot Server</h1>
            <div class="status">
                Server running on port __PORT__ | Auto-refresh: 30s
                <button class="refresh-btn" onclick="refreshPage()">Refresh Now</button>
            </div>
        </div>
        <div id="plot-grid" class="plot-grid">
            Loading plots...
        </div>
    </div>
</body>
</html>
"""

_PLOT_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>__TITLE__</title>
    <style>
        body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
               margin: 0; padding: 20px; background-color: #f8f9fa; color: #212529; }
        .container { max-width: 1200px; margin: 0 auto; background: white; border-radius: 8px;
                     box-shadow: 0 2px 10px rgba(0,0,0,0.1); padding: 30px; }
        .header { border-bottom: 2px solid #e9ecef; margin-bottom: 20px; padding-bottom: 20px; }
        .plot-image { max-width: 100%; height: auto; border-radius: 4px; box-shadow: 0 1px 3px rgba(0,0,0,0.1); }
        .metadata { margin-top: 20px; padding: 15px; background-color: #f8f9fa; border-radius: 4px;
                    font-size: 0.9em; color: #6c757d; }
        .refresh-btn { background: #007bff; color: white; border: none; padding: 8px 16px;
                       border-radius: 4px; cursor: pointer; margin-top: 10px; }
        .refresh-btn:hover { background: #0056b3; }
    </style>
    <script>
        function refreshPlot() { location.reload(); }
        setTimeout(refreshPlot, __REFRESH_MS__);
    </script>
</head>
<body>
    <div class="container">
        <div class="header">
            <h1>__TITLE__</h1>
            <button class="refresh-btn" onclick="refreshPlot()">Refresh Plot</button>
        </div>
        <img src="data:image/png;base64,__IMAGE__" alt="Plot" class="plot-image">
        <div class="metadata">
            <strong>Generated:</strong> __GENERATED__<br>
            <strong>Auto-refresh:</strong> Every 30 seconds<br>
            <strong>Source:</strong> ssh-visualizer
        </div>
    </div>
</body>
</html>
"""


def render_index(port: int) -> str:
    """Return the index page served at ``/``."""
    return _INDEX_TEMPLATE.replace("__REFRESH_MS__", str(REFRESH_MS)).replace(
        "__PORT__", str(int(port))
    )


def render_plot_page(
    title: str, image_b64: str = PLOT_DATA_PLACEHOLDER, generated: str = ""
) -> str:
    """Return a standalone page embedding a base64 encoded PNG.

    Parameters
    ----------
    title : str
        Page and heading title (HTML escaped).
    image_b64 : str
        Base64 PNG payload. The default placeholder lets generated REPL code
        substitute the payload after rendering the figure.
    generated : str
        Human readable generation time shown in the metadata block.
    """
    page = _PLOT_TEMPLATE.replace("__REFRESH_MS__", str(REFRESH_MS))
    page = page.replace("__TITLE__", _html.escape(title))
    page = page.replace("__GENERATED__", _html.escape(generated))
    return page.replace("__IMAGE__", image_b64)
