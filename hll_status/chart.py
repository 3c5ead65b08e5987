import io

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402

from .snapshot import ChartSpec  # noqa: E402

DPI = 100
LINE_COLOR = (75 / 255, 192 / 255, 192 / 255)


def render_chart(spec: ChartSpec) -> bytes:
    """Render a ping line chart to PNG bytes."""
    fig, ax = plt.subplots(figsize=(spec.width / DPI, spec.height / DPI), dpi=DPI)
    try:
        x = range(len(spec.values))
        ax.plot(x, spec.values, color=LINE_COLOR, label=spec.label, linewidth=1.5)
        ax.fill_between(x, spec.values, color=LINE_COLOR, alpha=0.2)
        if spec.begin_at_zero:
            ax.set_ylim(bottom=0)
        ax.set_ylabel(spec.y_title)
        ax.set_xlabel(spec.x_title)

        # keep the time axis readable with a full 50-point window
        step = max(1, len(spec.labels) // 10)
        ticks = list(range(0, len(spec.labels), step))
        ax.set_xticks(ticks)
        ax.set_xticklabels([spec.labels[i] for i in ticks], rotation=45, ha="right", fontsize=8)

        ax.legend(loc="upper left")
        ax.grid(True, alpha=0.3)
        fig.tight_layout()

        buf = io.BytesIO()
        fig.savefig(buf, format="png")
        return buf.getvalue()
    finally:
        plt.close(fig)
