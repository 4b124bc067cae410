"""Plot code generators.

Each generator returns Python source that, executed in a REPL holding the
variable, renders a matplotlib figure and writes the artifact pair
(``plot[_timestamp].png`` and its ``.html`` sibling) to the resolved output
directory. Artifact names are fixed at generation time, not when the REPL
gets around to computing the plot.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from string import Template

from ..config import VisualizerConfig
from ..naming import artifact_pair
from ..paths import resolve_output_dir
from ..rendering import PLOT_DATA_PLACEHOLDER, render_plot_page
from .support import escape_python_string

__all__ = [
    "PLOT_KINDS",
    "generate_ascii_plot",
    "generate_histogram",
    "generate_line_plot",
    "generate_plot",
    "generate_scatter_plot",
]

_BASE = Template(
    """\
# ssh-viz $kind plot
import matplotlib
matplotlib.use($backend)
import matplotlib.pyplot as plt
import numpy as np
from io import BytesIO
import base64
import os

output_dir = $output_dir
os.makedirs(output_dir, exist_ok=True)
data_label = '$label'

try:
    data = np.array($data_var)
    if data.size == 0:
        raise ValueError("Data array is empty")

    plt.figure(figsize=($fig_w, $fig_h))
    plt.rcParams['figure.dpi'] = $dpi

$body
    plt.grid(True, alpha=0.3)
    plt.tight_layout()

    saved = []
    if $save_png:
        png_path = os.path.join(output_dir, $image_name)
        plt.savefig(png_path, dpi=$dpi, bbox_inches='tight',
                    facecolor='white', edgecolor='none')
        saved.append(png_path)
    if $save_svg:
        svg_path = os.path.join(output_dir, $svg_name)
        plt.savefig(svg_path, bbox_inches='tight', facecolor='white', edgecolor='none')
        saved.append(svg_path)
    if $save_html:
        buffer = BytesIO()
        plt.savefig(buffer, format='png', dpi=$dpi, bbox_inches='tight',
                    facecolor='white', edgecolor='none')
        buffer.seek(0)
        plot_data = base64.b64encode(buffer.read()).decode()
        html_path = os.path.join(output_dir, $html_name)
        with open(html_path, 'w', encoding='utf-8') as f:
            f.write($page.replace($placeholder, plot_data))
        saved.append(html_path)
    plt.close()

    for path in saved:
        print(f"✓ Saved: {path}")
    if not saved:
        print("Auto-save disabled: nothing written")
    print("✓ View at: http://localhost:$port/" + $html_name)

except Exception as e:
    print(f"✗ Plot error: {e}")
    import traceback
    traceback.print_exc()
"""
)

_LINE_BODY = """\
    if data.ndim == 1:
        plt.plot(data, linewidth=2, alpha=0.8)
        plt.xlabel('Index')
        plt.ylabel('Value')
    elif data.ndim == 2 and data.shape[1] == 2:
        plt.plot(data[:, 0], data[:, 1], linewidth=2, alpha=0.8)
        plt.xlabel('X')
        plt.ylabel('Y')
    else:
        series = data.reshape(data.shape[0], -1)
        for i in range(min(series.shape[1], 10)):
            plt.plot(series[:, i], label=f'{data_label}[{i}]', linewidth=2, alpha=0.8)
        plt.legend()
        plt.xlabel('Index')
        plt.ylabel('Value')
    plt.title(f'Line Plot: {data_label}')
"""

_SCATTER_BODY = """\
    if data.ndim == 1:
        plt.scatter(range(len(data)), data, alpha=0.6, s=30)
        plt.xlabel('Index')
        plt.ylabel('Value')
    elif data.ndim == 2 and data.shape[1] >= 2:
        plt.scatter(data[:, 0], data[:, 1], alpha=0.6, s=30)
        plt.xlabel('X')
        plt.ylabel('Y')
    else:
        flat = data.flatten()
        plt.scatter(range(len(flat)), flat, alpha=0.6, s=30)
        plt.xlabel('Index')
        plt.ylabel('Value')
    plt.title(f'Scatter Plot: {data_label}')
"""

_HISTOGRAM_BODY = """\
    data_flat = data.flatten()
    plt.hist(data_flat, bins=min(30, max(5, len(data_flat) // 10)),
             alpha=0.7, edgecolor='black', linewidth=0.5)
    plt.title(f'Histogram: {data_label}')
    plt.xlabel('Value')
    plt.ylabel('Frequency')

    mean_val = np.mean(data_flat)
    std_val = np.std(data_flat)
    plt.axvline(mean_val, color='red', linestyle='--', alpha=0.8,
                label=f'Mean: {mean_val:.3f}')
    plt.axvline(mean_val + std_val, color='orange', linestyle='--', alpha=0.6,
                label=f'Mean + Std: {mean_val + std_val:.3f}')
    plt.axvline(mean_val - std_val, color='orange', linestyle='--', alpha=0.6,
                label=f'Mean - Std: {mean_val - std_val:.3f}')
    plt.legend()
"""

_ASCII = Template(
    """\
# ssh-viz ASCII plot
try:
    import numpy as np
    data = np.array($data_var)
    data_label = '$label'
    width, height = $width, $height

    try:
        import plotext as pltx
        pltx.clear_data()
        pltx.plotsize(width, height)
        pltx.plot(data.flatten().tolist())
        pltx.title(f'{data_label} - ASCII Plot')
        pltx.show()

    except ImportError:
        data_flat = data.flatten()
        min_val, max_val = float(np.min(data_flat)), float(np.max(data_flat))
        span = (max_val - min_val) or 1.0
        columns = data_flat[:width]
        marker = $marker

        print("\\n" + "=" * width)
        print(f"ASCII PLOT: {data_label}")
        print("=" * width)
        for i in range(height):
            row_val = max_val - (i / height) * span
            print("|" + "".join(
                marker if abs(val - row_val) < span / height else " "
                for val in columns
            ))
        print("+" + "-" * len(columns))
        print(f"Range: {min_val:.3f} to {max_val:.3f}")
        print("=" * width + "\\n")
        print("Install better ASCII plotting: pip install plotext")

except Exception as e:
    print(f"ASCII plot error: {e}")
"""
)

_MARKERS = {"braille": "⣿", "block": "█", "ascii": "*"}


def _image_plot(
    data_var: str,
    kind: str,
    body: str,
    config: VisualizerConfig,
    now: datetime | None = None,
    user: str | None = None,
) -> str:
    now = now or datetime.now()
    output_dir = resolve_output_dir(config)
    image_name, html_name = artifact_pair("plot", config, now=now, user=user)
    svg_name = Path(image_name).with_suffix(".svg").name
    auto_save = config.auto_save
    title = f"{kind.replace('_', ' ').title()} Plot"
    page = render_plot_page(title, generated=now.strftime("%Y-%m-%d %H:%M:%S"))
    mpl = config.matplotlib
    return _BASE.substitute(
        kind=kind,
        backend=repr(mpl.backend),
        output_dir=repr(str(output_dir)),
        label=escape_python_string(data_var),
        data_var=data_var,
        fig_w=mpl.figsize[0],
        fig_h=mpl.figsize[1],
        dpi=mpl.dpi,
        body=body,
        save_png=auto_save.enabled and "png" in auto_save.formats,
        save_svg=auto_save.enabled and "svg" in auto_save.formats,
        save_html=auto_save.enabled and "html" in auto_save.formats,
        image_name=repr(image_name),
        svg_name=repr(svg_name),
        html_name=repr(html_name),
        page=repr(page),
        placeholder=repr(PLOT_DATA_PLACEHOLDER),
        port=config.web_server.port,
    )


def generate_line_plot(data_var: str, config: VisualizerConfig, **kwargs) -> str:
    return _image_plot(data_var, "line", _LINE_BODY, config, **kwargs)


def generate_scatter_plot(data_var: str, config: VisualizerConfig, **kwargs) -> str:
    return _image_plot(data_var, "scatter", _SCATTER_BODY, config, **kwargs)


def generate_histogram(data_var: str, config: VisualizerConfig, **kwargs) -> str:
    return _image_plot(data_var, "histogram", _HISTOGRAM_BODY, config, **kwargs)


def generate_ascii_plot(data_var: str, config: VisualizerConfig) -> str:
    """Terminal plot: ``plotext`` when installed, else a plain-text fallback."""
    ascii_cfg = config.ascii
    marker = _MARKERS[ascii_cfg.style] if ascii_cfg.use_unicode else "#"
    return _ASCII.substitute(
        data_var=data_var,
        label=escape_python_string(data_var),
        width=ascii_cfg.width,
        height=ascii_cfg.height,
        marker=repr(marker),
    )


PLOT_KINDS = {
    "line": generate_line_plot,
    "scatter": generate_scatter_plot,
    "histogram": generate_histogram,
    "ascii": generate_ascii_plot,
}


def generate_plot(kind: str, data_var: str, config: VisualizerConfig) -> str:
    """Dispatch to the generator registered for ``kind``."""
    try:
        generator = PLOT_KINDS[kind]
    except KeyError:
        raise ValueError(
            f"Unknown plot kind '{kind}'. Expected one of: {', '.join(PLOT_KINDS)}"
        ) from None
    return generator(data_var, config)
