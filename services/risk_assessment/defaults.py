"""Built-in glaucoma questionnaire and advice bands.

Used as the last access path when the configuration store is unreachable or
empty, and by seed_questionnaire.py to populate a fresh database.
"""
import uuid

from services.risk_assessment.models import QuestionType
from services.risk_assessment.records import AdviceBandRecord, OptionRecord, QuestionRecord

# Identifiers are derived from the legacy keys so they stay stable across
# processes and still pass the well-formed identifier check.
DEFAULT_ID_NAMESPACE = uuid.UUID("6f1c2a54-8d0e-4c61-9a43-2b7e5d9f0c18")

PATIENT_INFO = "patient_info"
MEDICAL_HISTORY = "medical_history"
CLINICAL_MEASUREMENTS = "clinical_measurements"

YES_NO = [("yes", "Yes", 2), ("no", "No", 0)]
YES_NO_NA = YES_NO + [("not_available", "Not Available", 0)]

AGE_RANGES = [(v, v, 0) for v in ("0-50", "51-60", "61-70", "71-80", "81-90", "91+")]

RACES = [
    ("american_indian", "American Indian or Alaska Native", 0),
    ("asian", "Asian", 0),
    ("black", "Black or African American", 2),
    ("hispanic", "Hispanic or Latino", 1),
    ("pacific_islander", "Native Hawaiian or Pacific Islander", 0),
    ("white", "White", 0),
    ("other", "Other", 0),
]

OPHTHALMIC_STEROIDS = [
    ("prednisolone", "Prednisolone Acetate (Pred Forte, Omnipred)", None),
    ("dexamethasone", "Dexamethasone (Maxidex)", None),
    ("fluorometholone", "Fluorometholone (FML, FML Forte)", None),
    ("loteprednol", "Loteprednol Etabonate (Lotemax, Inveltys)", None),
    ("rimexolone", "Rimexolone (Vexol)", None),
    ("other", "Other not listed", None),
]

INTRAVITREAL_STEROIDS = [
    ("triamcinolone", "Triamcinolone Acetonide (Triesence, Kenalog)", None),
    ("dexamethasone", "Dexamethasone (Ozurdex)", None),
    ("fluocinolone", "Fluocinolone Acetonide (Iluvien)", None),
    ("other", "Other not listed", None),
]

SYSTEMIC_STEROIDS = [
    ("prednisone", "Prednisone (Deltasone, Sterapred)", None),
    ("dexamethasone", "Dexamethasone (Decadron, DexPak)", None),
    ("hydrocortisone", "Hydrocortisone (Cortef, Solu-Cortef)", None),
    ("methylprednisolone", "Methylprednisolone (Medrol, Depo-Medrol)", None),
    ("betamethasone", "Betamethasone (Betasone, Celestone)", None),
    ("triamcinolone", "Triamcinolone (Kenalog, Aromasin)", None),
    ("fludrocortisone", "Fludrocortisone (Florinef)", None),
    ("cortisone", "Cortisone (Cortone)", None),
    ("fluticasone", "Fluticasone (Vermamyst, Flonase, Flovent)", None),
    ("budesonide", "Budesonide (Pulmicort, Symbicort [with formoterol])", None),
    ("beclomethasone", "Beclomethasone (Qvar)", None),
    ("mometasone", "Mometasone (Asmanex, Dulera [with formoterol])", None),
    ("ciclesonide", "Ciclesonide (Alvesco)", None),
    ("other", "Other not listed", None),
]

IOP_READINGS = [("22_and_above", "22 and above", 2), ("21_and_under", "21 and under", 0), ("not_available", "Not Available", 0)]
ASYMMETRY_READINGS = [("0.2_and_above", "0.2 and above", 2), ("under_0.2", "Under 0.2", 0), ("not_available", "Not Available", 0)]
CD_RATIO_READINGS = [("0.6_and_above", "0.6 and above", 2), ("below_0.6", "Below 0.6", 0), ("not_available", "Not Available", 0)]

# (legacy key, text, type, category, options, (parent key, parent value))
DEFAULT_QUESTIONS = [
    ("firstName", "Patient First Name", QuestionType.text, PATIENT_INFO, [], None),
    ("lastName", "Patient Last Name", QuestionType.text, PATIENT_INFO, [], None),
    ("age", "Age", QuestionType.select, PATIENT_INFO, AGE_RANGES, None),
    ("race", "Race", QuestionType.select, PATIENT_INFO, RACES, None),
    (
        "familyGlaucoma",
        "Has anyone in your immediate family been diagnosed with open-angle glaucoma?",
        QuestionType.select,
        MEDICAL_HISTORY,
        YES_NO_NA,
        None,
    ),
    (
        "ocularSteroid",
        "Are you taking and have you ever taken any ophthalmic topical steroids?",
        QuestionType.select,
        MEDICAL_HISTORY,
        YES_NO,
        None,
    ),
    (
        "steroidType",
        "Which ophthalmic topical steroid are you taking or have taken?",
        QuestionType.select,
        MEDICAL_HISTORY,
        OPHTHALMIC_STEROIDS,
        ("ocularSteroid", "yes"),
    ),
    (
        "intravitreal",
        "Are you taking and have you ever taken any intravitreal steroids?",
        QuestionType.select,
        MEDICAL_HISTORY,
        YES_NO,
        None,
    ),
    (
        "intravitrealType",
        "Which intravitreal steroid are you taking or have taken?",
        QuestionType.select,
        MEDICAL_HISTORY,
        INTRAVITREAL_STEROIDS,
        ("intravitreal", "yes"),
    ),
    (
        "systemicSteroid",
        "Are you taking and have you ever taken any systemic steroids?",
        QuestionType.select,
        MEDICAL_HISTORY,
        YES_NO,
        None,
    ),
    (
        "systemicSteroidType",
        "Which systemic steroid are you taking or have taken?",
        QuestionType.select,
        MEDICAL_HISTORY,
        SYSTEMIC_STEROIDS,
        ("systemicSteroid", "yes"),
    ),
    ("iopBaseline", "IOP Baseline is >22 \\ Handheld Tonometer", QuestionType.select, CLINICAL_MEASUREMENTS, IOP_READINGS, None),
    (
        "verticalAsymmetry",
        "Vertical C:D disc asymmetry (>0.2) \\ Fundoscope",
        QuestionType.select,
        CLINICAL_MEASUREMENTS,
        ASYMMETRY_READINGS,
        None,
    ),
    ("verticalRatio", "Vertical C:D ratio (>0.6)", QuestionType.select, CLINICAL_MEASUREMENTS, CD_RATIO_READINGS, None),
]

LOW_ADVICE = "Low risk. Regular eye exams as recommended by your optometrist are sufficient."
MODERATE_ADVICE = (
    "Moderate risk. Consider more frequent eye exams and discuss with your doctor "
    "about potential preventive measures."
)
HIGH_ADVICE = (
    "High risk. Regular monitoring is strongly recommended. Discuss with your specialist "
    "about comprehensive eye exams and treatment options."
)
UNKNOWN_ADVICE = "Unable to calculate risk score due to an error. Please consult your eye care provider."

FALLBACK_ADVICE_BANDS = (
    AdviceBandRecord(min_score=0, max_score=2, risk_tier="Low", advice=LOW_ADVICE),
    AdviceBandRecord(min_score=3, max_score=5, risk_tier="Moderate", advice=MODERATE_ADVICE),
    AdviceBandRecord(min_score=6, max_score=None, risk_tier="High", advice=HIGH_ADVICE),
)

FALLBACK_ADVICE_BY_TIER = {band.risk_tier: band.advice for band in FALLBACK_ADVICE_BANDS}


def default_question_id(legacy_key: str) -> str:
    return str(uuid.uuid5(DEFAULT_ID_NAMESPACE, legacy_key))


def default_catalog() -> list[QuestionRecord]:
    questions = []
    counters: dict[str, int] = {}
    for key, text, question_type, category, options, parent in DEFAULT_QUESTIONS:
        question_id = default_question_id(key)
        counters[category] = counters.get(category, 0) + 1
        questions.append(
            QuestionRecord(
                id=question_id,
                text=text,
                question_type=question_type,
                category=category,
                display_order=counters[category],
                depends_on_question_id=default_question_id(parent[0]) if parent else None,
                depends_on_value=parent[1] if parent else None,
                options=tuple(
                    OptionRecord(question_id=question_id, value=value, label=label, score=score, display_order=i)
                    for i, (value, label, score) in enumerate(options, start=1)
                ),
            )
        )
    return questions
