import json

import yaml

from kubectl_explain_placement.verdict import FilterReport, Verdict

# ----------------------------
# Output formatting
# ----------------------------

OUTPUT_FORMATS = ("text", "json", "yaml")


def verdict_line(name: str, verdict: Verdict) -> str:
    if verdict.is_pass:
        return f"[Pass] {verdict.message}"
    if verdict.is_error:
        return f"[Error] {name}: {verdict.cause}"
    return f"[Fail] {name}: {', '.join(verdict.reasons)}"


def render_text(report: FilterReport) -> str:
    """
    One line per predicate in evaluation order, then the conclusion.
    Terminal outcomes (already scheduled) render a single sentence.
    """
    if report.terminal is not None:
        return report.message

    lines = [f"Pod {report.namespace}/{report.pod} on node {report.node}"]
    for name, verdict in report.entries:
        lines.append(verdict_line(name, verdict))

    if report.admitted:
        lines.append(f"[Success] Pod can be scheduled to node {report.node}")
    else:
        lines.append(f"[Fail] Pod cannot be scheduled to node {report.node}. Reasons are:")
        for name, verdict in report.failures:
            lines.append(f"  {name}: {verdict.describe()}")

    return "\n".join(lines)


def render(report: FilterReport, fmt: str = "text") -> str:
    if fmt == "json":
        return json.dumps(report.to_dict(), indent=2)
    if fmt == "yaml":
        return yaml.safe_dump(report.to_dict(), sort_keys=False).rstrip("\n")
    if fmt == "text":
        return render_text(report)
    raise ValueError(f"Unknown output format {fmt!r}, expected one of {OUTPUT_FORMATS}")


def output_result(report: FilterReport, fmt: str = "text") -> None:
    print(render(report, fmt))
