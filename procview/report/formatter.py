"""Markdown rendering of statistics, incidents and the AI analysis."""

from collections.abc import Sequence

from procview.models import AnalysisResult, Incident, SampleStats

SEVERITY_LABELS = {"LOW": "Low", "MEDIUM": "Medium", "HIGH": "High"}


# (header, format alignment) per incident table column
INCIDENT_COLUMNS = (("Start", "<"), ("End", "<"), ("Samples", ">"), ("Peak", ">"))


def format_incident_table(incidents: Sequence[Incident]) -> str:
    """Fixed-width incident listing with counts and peaks right-aligned. Empty for no incidents."""
    if not incidents:
        return ""
    headers = tuple(name for name, _ in INCIDENT_COLUMNS)
    rows = [
        (inc.start.isoformat(), inc.end.isoformat(), str(inc.samples), f"{inc.peak:.1f}%")
        for inc in incidents
    ]
    widths = [max(len(cell) for cell in column) for column in zip(headers, *rows, strict=True)]

    def render(cells: Sequence[str]) -> str:
        return "  ".join(
            f"{cell:{align}{width}}" for cell, (_, align), width in zip(cells, INCIDENT_COLUMNS, widths, strict=True)
        )

    return "\n".join([render(headers), "  ".join("-" * w for w in widths), *(render(row) for row in rows)])


def format_avg_mem(stats: SampleStats) -> str:
    return "N/A" if stats["avg_mem"] is None else f"{stats['avg_mem']:.1f}%"


def format_analysis_markdown(
    stats: SampleStats,
    incidents: Sequence[Incident],
    threshold: int,
    analysis: AnalysisResult | None = None,
) -> str:
    """Convert statistics, incidents and an optional analysis into a markdown report."""
    lines: list[str] = []
    lines.append("# Process CPU Report")
    lines.append("")

    lines.append("## Summary Statistics")
    lines.append("")
    lines.append(f"- **Samples:** {stats['count']}")
    lines.append(f"- **Avg user CPU:** {stats['avg_user']:.1f}%")
    lines.append(f"- **Avg system CPU:** {stats['avg_sys']:.1f}%")
    lines.append(f"- **Peak total CPU:** {stats['max_total']:.1f}%")
    lines.append(f"- **Avg memory:** {format_avg_mem(stats)}")
    lines.append("")

    lines.append(f"## Threshold Incidents (> {threshold}%)")
    lines.append("")
    if incidents:
        lines.append("```")
        lines.append(format_incident_table(incidents))
        lines.append("```")
    else:
        lines.append("*No sustained threshold violations.*")
    lines.append("")

    if analysis is not None:
        lines.append("## AI Analysis")
        lines.append("")
        lines.append(f"**Severity:** {SEVERITY_LABELS[analysis.severity]}")
        lines.append("")
        lines.append(analysis.summary)
        lines.append("")
        if analysis.recommendations:
            lines.append("### Recommendations")
            lines.append("")
            for rec in analysis.recommendations:
                lines.append(f"- {rec}")
            lines.append("")

    return "\n".join(lines)
