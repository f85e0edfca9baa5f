import os
import logging
from datetime import datetime
from typing import List, Optional, Sequence

FRACTURE_KEYWORDS = ("fracture", "перелом")
ARTHRITIS_KEYWORDS = ("arthritis", "остеоартрит", "артрит")

FRACTURE_SECTION = """RADIOLOGICAL FINDINGS:
• Disruption of bone integrity is visualized
• The fracture line is clearly traceable
• Displacement of bone fragments: minimal/absent
• Surrounding soft tissues: no visible changes

CLINICAL RECOMMENDATIONS:
1. Immediate immobilization of the injured area
2. Pain relief therapy as indicated
3. Follow-up X-ray in 7-10 days
4. Trauma surgeon consultation if required
5. Physiotherapy after immobilization is removed

PROGNOSIS: Favorable if recommendations are followed
TREATMENT DURATION: 4-6 weeks depending on location"""

ARTHRITIS_SECTION = """RADIOLOGICAL FINDINGS:
• Joint space narrowing
• Marginal bone growths (osteophytes)
• Subchondral sclerosis
• Deformation of articular surfaces

CLINICAL RECOMMENDATIONS:
1. Rheumatologist consultation to select therapy
2. NSAID courses as indicated
3. Long-term chondroprotector courses
4. Physiotherapy
5. Exercise therapy to maintain joint mobility
6. Body weight control

PROGNOSIS: Chronic progressive disease
FOLLOW-UP: Check-ups every 6 months"""

NORMAL_SECTION = """RADIOLOGICAL FINDINGS:
• Bone structures are properly formed
• Joint spaces are not narrowed
• Cortical layer is preserved
• No pathological formations detected

CLINICAL RECOMMENDATIONS:
1. Age-appropriate preventive check-ups
2. Maintain a healthy lifestyle
3. Adequate physical activity
4. Balanced nutrition

CONCLUSION: No pathological changes detected
RECOMMENDATION: Follow-up observation"""

FOOTER = "--- End of detailed analysis ---"


def select_section(findings: Sequence[str]) -> str:
    findings_text = ", ".join(findings).lower()
    if any(keyword in findings_text for keyword in FRACTURE_KEYWORDS):
        return FRACTURE_SECTION
    if any(keyword in findings_text for keyword in ARTHRITIS_KEYWORDS):
        return ARTHRITIS_SECTION
    return NORMAL_SECTION


def generate_detailed_analysis(image_path: str, findings: List[str], now: Optional[datetime] = None) -> str:
    """Fixed-template textual report for a set of findings."""
    now = now or datetime.now()
    logging.info(f"Detailed analysis requested for {image_path} with findings: {findings}")

    header = (
        "DETAILED MEDICAL REPORT\n\n"
        "Study: Radiography\n"
        f"Image file: {os.path.basename(image_path)}\n"
        f"Analysis date: {now.strftime('%d.%m.%Y')}\n"
        f"Analysis time: {now.strftime('%H:%M:%S')}\n\n"
    )
    return f"{header}{select_section(findings)}\n\n{FOOTER}"
