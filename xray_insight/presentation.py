"""Formatting helpers shared by the dashboard and the batch runner. They work on the API's camelCase JSON."""

from typing import Any, Dict, List

PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}
PRIORITY_LABELS = {"high": "🔴 High", "medium": "🟠 Medium", "low": "🟢 Low"}


def sort_diagnosis(diagnosis: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return sorted(diagnosis, key=lambda item: item.get("confidence", 0), reverse=True)


def sort_recommendations(recommendations: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    # sorted() is stable, so the producer's order survives within each priority
    return sorted(recommendations, key=lambda item: PRIORITY_ORDER.get(item.get("priority"), len(PRIORITY_ORDER)))


def format_report_text(analysis: Dict[str, Any], patient: Dict[str, Any]) -> str:
    """Plain-text version of a report, for download or pasting into a chart."""
    lines = [
        "X-RAY ANALYSIS REPORT",
        f"Patient: {patient.get('firstName', '')} {patient.get('lastName', '')}, age {patient.get('age', 'N/A')}",
        f"Doctor: {patient.get('doctorName', 'N/A')}",
        f"Date: {analysis.get('analysisDate', 'N/A')}",
        f"Overall confidence: {analysis.get('confidence', 0) * 100:.0f}%",
        "",
        "Diagnosis (by descending confidence):",
    ]
    for item in sort_diagnosis(analysis.get("diagnosis", [])):
        lines.append(f"- {item['text']} ({item['confidence'] * 100:.0f}%)")

    lines += ["", "Recommendations:"]
    for item in sort_recommendations(analysis.get("recommendations", [])):
        lines.append(f"- [{item['priority']}] {item['text']}")

    lines += ["", "Similar cases:"]
    for case in analysis.get("similarCases", []):
        lines.append(f"- {case['diagnosis']} ({case['match']}% match): {case['description']}")
    return "\n".join(lines)
