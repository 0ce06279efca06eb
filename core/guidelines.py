"""
Curated pregnancy guidelines and keyword search over them.

Static, read-only content (MoHFW, FOGSI, WHO recommendations) with two
lookups: ranked search by query and week, and a by-week listing.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple


@dataclass(frozen=True)
class Guideline:
    id: str
    title: str
    week_range: str
    priority: str
    purpose: str
    content: str
    organizations: Tuple[str, ...] = ()

    @property
    def week_bounds(self) -> Tuple[int, int]:
        start, end = self.week_range.split("-")
        return int(start), int(end)

    def covers_week(self, week: int) -> bool:
        start, end = self.week_bounds
        return start <= week <= end

    @property
    def search_text(self) -> str:
        return f"{self.title} {self.purpose} {self.content} week {self.week_range}".lower()


PREGNANCY_GUIDELINES: Tuple[Guideline, ...] = (
    Guideline("guideline_0", "Initial Registration & Prenatal Checkup", "6-8", "high",
              "Confirm pregnancy, estimate due date, record vitals",
              "During weeks 6-8, schedule your first prenatal visit to confirm pregnancy, estimate your "
              "due date, and record baseline vitals including weight, blood pressure, and medical history.",
              ("MoHFW", "FOGSI")),
    Guideline("guideline_1", "Hemoglobin & Blood Group Test", "8-12", "high",
              "Detect anemia and Rh factor",
              "Between weeks 8-12, get blood tests to check hemoglobin levels (to detect anemia) and "
              "determine your blood group including Rh factor. This is crucial for planning any "
              "interventions if needed.",
              ("MoHFW", "WHO")),
    Guideline("guideline_2", "Infectious Disease Screening (HIV, HBsAg, VDRL)", "8-12", "high",
              "Check for infectious diseases",
              "Screen for infectious diseases including HIV, Hepatitis B (HBsAg), and Syphilis (VDRL) "
              "during weeks 8-12. Early detection allows for appropriate management to protect both "
              "mother and baby.",
              ("NACO", "WHO", "ICMR")),
    Guideline("guideline_3", "NT Scan + Dual Marker Test", "11-14", "high",
              "Screen for chromosomal abnormalities",
              "The Nuchal Translucency (NT) scan combined with dual marker blood test during weeks 11-14 "
              "helps screen for chromosomal abnormalities like Down syndrome. This is a non-invasive "
              "first-trimester screening.",
              ("FOGSI",)),
    Guideline("guideline_4", "Iron & Folic Acid Supplementation", "12-40", "high",
              "Prevent anemia and neural defects",
              "Take daily iron and folic acid supplements from week 12 throughout pregnancy. This prevents "
              "anemia in the mother and neural tube defects in the baby. Folic acid is especially "
              "important in early pregnancy.",
              ("MoHFW", "WHO")),
    Guideline("guideline_5", "Tdap Vaccine - Dose 1", "13-24", "high",
              "Prevent neonatal tetanus and maternal diphtheria",
              "Get your first Tdap (Tetanus, Diphtheria, Pertussis) vaccine between weeks 13-24. This "
              "protects against neonatal tetanus and provides some immunity to the newborn through "
              "placental transfer.",
              ("MoHFW",)),
    Guideline("guideline_6", "Anomaly Scan (TIFFA)", "18-22", "high",
              "Detailed check of fetal organs",
              "The Targeted Imaging for Fetal Anomalies (TIFFA) scan during weeks 18-22 is a detailed "
              "ultrasound to check all fetal organs and structures. This is the most comprehensive scan "
              "during pregnancy.",
              ("FOGSI",)),
    Guideline("guideline_7", "Calcium Supplementation", "14-40", "medium",
              "Support bone health and prevent preeclampsia",
              "Calcium supplementation from week 14 onwards supports bone health for both mother and "
              "baby, and may help prevent pregnancy-related hypertension and preeclampsia.",
              ("MoHFW", "WHO")),
    Guideline("guideline_8", "Gestational Diabetes Screening", "24-28", "high",
              "Detect gestational diabetes",
              "A glucose tolerance test during weeks 24-28 screens for gestational diabetes mellitus "
              "(GDM). Early detection allows dietary management and monitoring to prevent complications.",
              ("MoHFW", "FOGSI")),
    Guideline("guideline_9", "Tdap Booster (if missed)", "28-32", "high",
              "Complete tetanus protection",
              "If the first Tdap dose was missed, get a booster between weeks 28-32. This ensures "
              "adequate protection against tetanus for both mother and newborn.",
              ("MoHFW",)),
    Guideline("guideline_10", "Growth Scan", "30-34", "high",
              "Monitor fetal growth and amniotic fluid",
              "A growth scan during weeks 30-34 monitors fetal growth, position, and amniotic fluid "
              "levels. This helps identify any growth restrictions or excess fluid that may need "
              "management.",
              ("FOGSI",)),
    Guideline("guideline_11", "Birth Preparedness & Counseling", "32-36", "medium",
              "Plan for delivery",
              "Between weeks 32-36, discuss birth preparedness with your healthcare provider. Learn "
              "about labor signs, create a delivery plan, identify your delivery hospital, and prepare "
              "your hospital bag.",
              ("MoHFW",)),
    Guideline("guideline_12", "Labor Signs Education", "36-40", "high",
              "Recognize when labor starts",
              "Learn to recognize labor signs: regular contractions, water breaking, bloody show, or "
              "reduced fetal movement. Know when to go to the hospital and have emergency contacts ready.",
              ("MoHFW", "WHO")),
    Guideline("guideline_13", "HIV Re-screening", "36-38", "medium",
              "Check for late seroconversion",
              "A repeat HIV test during weeks 36-38 checks for any seroconversion that may have occurred "
              "during pregnancy. This is important for preventing mother-to-child transmission.",
              ("NACO",)),
    Guideline("guideline_14", "Fetal Movement Monitoring", "28-40", "high",
              "Track baby's wellbeing",
              "Monitor fetal movements daily from week 28. A healthy baby typically moves 10 or more "
              "times in 2 hours. Report any significant decrease in movement to your healthcare "
              "provider immediately.",
              ("WHO",)),
    Guideline("guideline_15", "Third Trimester Blood Tests", "32-36", "medium",
              "Catch late anemia and complications",
              "Repeat blood tests in the third trimester to check hemoglobin levels and screen for any "
              "late-onset complications. Address any anemia before delivery.",
              ("MoHFW",)),
    Guideline("guideline_16", "Flu Vaccination", "14-40", "medium",
              "Prevent severe flu complications",
              "Get the seasonal flu vaccine during pregnancy, especially if pregnant during flu season. "
              "Pregnancy increases the risk of severe flu complications. The vaccine is safe and "
              "protects the newborn too.",
              ("WHO",)),
    Guideline("guideline_17", "Dental Checkup", "12-24", "medium",
              "Maintain gum health",
              "Schedule a dental checkup during the second trimester. Pregnancy hormones can affect gum "
              "health. Good oral hygiene is linked to better pregnancy outcomes.",
              ("FOGSI",)),
    Guideline("guideline_18", "Nutrition Counseling", "1-40", "high",
              "Balanced diet through pregnancy",
              "Maintain a balanced diet rich in protein, calcium, iron, and vitamins. Avoid "
              "raw/undercooked foods, unpasteurized dairy, and limit caffeine. Stay hydrated with 8-10 "
              "glasses of water daily.",
              ("MoHFW", "WHO")),
    Guideline("guideline_19", "Physical Activity Guidelines", "1-40", "medium",
              "Safe exercise during pregnancy",
              "Engage in 150 minutes of moderate exercise per week unless contraindicated. Walking, "
              "swimming, and prenatal yoga are excellent options. Avoid contact sports and lying flat "
              "on your back after the first trimester.",
              ("WHO",)),
)

PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}


def search_guidelines(query: str, week: Optional[int] = None, limit: int = 3,
                      guidelines: Sequence[Guideline] = PREGNANCY_GUIDELINES) -> List[Guideline]:
    """
    Rank guidelines by keyword overlap, week match and priority.

    Score: +1 per query word (longer than 2 chars) found in the guideline
    text, +2 when the week falls in its range, +0.5 for high priority.

    Args:
        query: Free-text query
        week: Current gestational week (optional)
        limit: Maximum number of results

    Returns:
        Guidelines with a positive score, best first
    """
    if not query:
        return []

    words = [w for w in re.split(r"\s+", query.lower()) if len(w) > 2]
    scored = []
    for position, guideline in enumerate(guidelines):
        text = guideline.search_text
        score = float(sum(1 for word in words if word in text))
        if week and guideline.covers_week(week):
            score += 2
        if guideline.priority == "high":
            score += 0.5
        if score > 0:
            scored.append((-score, position, guideline))

    scored.sort(key=lambda item: (item[0], item[1]))
    return [guideline for _, _, guideline in scored[:limit]]


def guidelines_for_week(week: int, limit: int = 5,
                        guidelines: Sequence[Guideline] = PREGNANCY_GUIDELINES) -> List[Guideline]:
    """Guidelines whose range covers `week`, high priority first."""
    matching = [g for g in guidelines if g.covers_week(week)]
    matching.sort(key=lambda g: PRIORITY_ORDER.get(g.priority, 2))
    return matching[:limit]


def format_guidelines_for_prompt(guidelines: Sequence[Guideline]) -> str:
    if not guidelines:
        return "No specific guidelines available for this query."
    return "\n\n".join(f"[{g.week_range} weeks] {g.title}: {g.content}" for g in guidelines)
