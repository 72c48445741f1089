# Heuristic AI-likelihood scorer for long-form articles.
#
# Runs nine independent scoring layers over an article, cross-checks them with a
# confidence layer, and normalizes the total to a 0-100 score (higher = more
# AI-like) with a per-layer breakdown.

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from functools import partial, reduce
from typing import Callable, Optional

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Hyperparameters
# ---------------------------------------------------------------------------

_Table = tuple[tuple[float, int], ...]


@dataclass(frozen=True)
class Hyperparameters:
    """Thresholds and point tables used by the scoring layers.

    Tiered rules are ``(threshold, points)`` pairs evaluated top-down; the first
    matching row wins.
    """

    min_word_count: int = 200
    paragraph_min_words: int = 5

    artifact_points: int = 5

    vocabulary_density_points: _Table = ((5.0, 20), (3.0, 15), (2.0, 10), (1.0, 5), (0.5, 2))

    sentence_cv_min_sentences: int = 5
    sentence_cv_points: _Table = ((20.0, 8), (30.0, 5), (35.0, 2))
    starter_repeat_min: int = 3
    starter_points: _Table = ((3, 5), (2, 3), (1, 1))
    top_starters_limit: int = 5
    paragraph_cv_min_words: int = 10
    paragraph_cv_min_paragraphs: int = 4
    paragraph_cv_points: _Table = ((20.0, 2), (30.0, 1))

    puffery_points: _Table = ((8, 5), (4, 3), (2, 1))
    intro_points_per_match: int = 2
    intro_points_cap: int = 4
    conclusion_points: int = 2
    hedging_points: _Table = ((3, 4), (2, 2), (1, 1))

    vague_attribution_points: _Table = ((4, 4), (2, 2), (1, 1))
    unsourced_stat_min: int = 2
    unsourced_stat_points: int = 1

    title_case_min_words: int = 3
    title_case_word_ratio: float = 0.8
    title_case_points: _Table = ((0.8, 3), (0.5, 1))
    bold_density_points: _Table = ((5, 3), (3, 2), (2, 1))
    emoji_points: _Table = ((10, 2), (5, 1))
    heading_pattern_min_headings: int = 4
    heading_pattern_points: _Table = ((4, 2), (3, 1))

    pronoun_density_points: _Table = ((0.5, 4), (1.0, 2))
    corporate_plural_min: int = 5
    corporate_points: int = 2
    simple_sentence_max_words: int = 10
    complex_sentence_min_words: int = 25
    sentence_mix_points: _Table = ((0.05, 4), (0.10, 2))

    transition_density_points: _Table = ((2.0, 5), (1.0, 3), (0.5, 1))
    transition_opener_points: _Table = ((0.4, 5), (0.25, 3), (0.15, 1))

    faq_question_points: _Table = ((5, 3), (3, 2))
    image_placeholder_points: _Table = ((3, 4), (2, 3), (1, 2))
    image_placeholder_sample: int = 5
    # (min distinct labels, min total occurrences, points)
    callout_points: tuple[tuple[int, int, int], ...] = ((3, 4, 2), (2, 3, 1))
    # (min ratio, min sections, points)
    sandwich_min_sections: int = 3
    sandwich_points: tuple[tuple[float, int, int], ...] = ((0.7, 4, 2), (0.5, 3, 1))
    template_macro_points: int = 1
    meta_heading_points: _Table = ((4, 2), (3, 1))
    cta_heading_points: int = 1

    corroboration_ratio: float = 0.5
    confidence_points: _Table = ((5, 5), (3, 3))

    score_min: int = 0
    score_max: int = 100
    grade_minimal_max: int = 25
    grade_low_max: int = 50
    grade_moderate_max: int = 75
    fix_ratio_threshold: float = 0.5
    fix_limit: int = 5


DEFAULT_HYPERPARAMETERS = Hyperparameters()

LAYER_MAX: dict[str, int] = {
    "technical_artifacts": 10,
    "vocabulary_patterns": 20,
    "structural_analysis": 15,
    "content_patterns": 15,
    "citation_verification": 5,
    "formatting_analysis": 10,
    "stylometric": 10,
    "coherence": 10,
    "template_patterns": 15,
    "confidence_adjustment": 5,
}
LAYER_NAMES: tuple[str, ...] = tuple(LAYER_MAX)

# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LayerResult:
    score: int
    max: int
    details: dict[str, object] = field(default_factory=dict, hash=False)

    def to_payload(self) -> dict[str, object]:
        return {"score": self.score, "max": self.max, "details": self.details}


ScoreBreakdown = dict[str, LayerResult]


@dataclass(frozen=True)
class AnalyzedText:
    """Derived, read-only view of one article body. Line endings are normalized to ``\\n``."""

    raw_content: str
    plain_text: str
    word_count: int
    sentences: tuple[str, ...]
    paragraphs: tuple[str, ...]

    @classmethod
    def from_content(cls, content: Optional[str], hp: Hyperparameters = DEFAULT_HYPERPARAMETERS) -> AnalyzedText:
        raw = _NEWLINE_RE.sub("\n", content or "")
        plain = strip_tags(raw)
        return cls(
            raw_content=raw,
            plain_text=plain,
            word_count=count_words(plain),
            sentences=split_sentences(plain),
            paragraphs=split_paragraphs(plain, hp.paragraph_min_words),
        )


@dataclass(frozen=True)
class SlopScore:
    score: int
    breakdown: ScoreBreakdown = field(hash=False)

    @property
    def grade(self) -> str:
        return grade(self.score)

    def to_payload(self) -> dict[str, object]:
        return {
            "score": self.score,
            "grade": self.grade,
            "breakdown": {name: layer.to_payload() for name, layer in self.breakdown.items()},
        }


@dataclass(frozen=True)
class Fix:
    label: str
    points: int
    layer: str
    improvement_type: str


_LayerRule = Callable[[AnalyzedText, Hyperparameters], LayerResult]

# ---------------------------------------------------------------------------
# Word and phrase lists
# ---------------------------------------------------------------------------

FLAGGED_WORDS: tuple[str, ...] = (
    "delve", "tapestry", "multifaceted", "navigate", "landscape",
    "leverage", "crucial", "pivotal", "foster", "comprehensive",
    "robust", "streamline", "harness", "spearhead", "cutting-edge",
    "paradigm", "synergy", "holistic", "nuanced", "intricate",
    "underscore", "encompass", "embark", "elevate", "resonate",
    "captivate", "testament", "beacon", "cornerstone", "linchpin",
    "reimagine", "unwavering", "demystify", "juxtaposition",
    "meticulous", "bespoke", "myriad", "plethora", "paramount",
    "indispensable", "burgeoning", "commendable", "noteworthy",
    "groundbreaking", "transformative", "unparalleled", "unprecedented",
    "underpinning", "intricacies", "overarching", "interplay",
)

# Regex fragments, matched by plain containment.
FLAGGED_PHRASES: tuple[str, ...] = (
    "it's worth noting", "in the realm of", "at the end of the day",
    "in today's world", "in today's fast-paced", "in today's digital",
    "let's dive in", "let's delve into", "it is important to note",
    "in this comprehensive guide", "without further ado", "in the ever-evolving",
    "stands as a testament", "serves as a cornerstone", "plays a pivotal role",
    "shed light on", "the landscape of", "paves the way",
    "game-changing", "game changer", "a deep dive",
    "navigating the complexities", "unlock the full potential",
    "take your .+ to the next level", "whether you're a .+ or a",
    "in an era where", "the world of", "when it comes to",
)

PUFFERY_WORDS: tuple[str, ...] = (
    "revolutionize", "game-changing", "game changer", "transform",
    "skyrocket", "supercharge", "turbocharge", "unleash",
    "unlock", "empower", "amplify", "maximize",
    "unmatched", "unparalleled", "unrivaled", "best-in-class",
    "world-class", "state-of-the-art", "next-generation",
    "mission-critical", "industry-leading", "bleeding-edge",
)

GENERIC_TRANSITIONS: tuple[str, ...] = (
    "furthermore", "moreover", "additionally", "consequently",
    "nevertheless", "in addition", "as a result", "on the other hand",
    "in contrast", "similarly", "likewise", "in conclusion",
    "to summarize", "overall", "ultimately", "indeed",
    "notably", "significantly", "essentially", "fundamentally",
)

VAGUE_ATTRIBUTIONS: tuple[str, ...] = (
    "studies show", "research shows", "research indicates",
    "experts say", "experts agree", "experts recommend",
    "according to experts", "according to research",
    "statistics show", "data suggests", "evidence suggests",
    "it has been shown", "it is widely known",
    "it is well established", "many experts believe",
)

HEDGING_PHRASES: tuple[str, ...] = (
    "it's important to note", "it is important to note",
    "it's worth mentioning", "it should be noted",
    "it goes without saying", "needless to say",
)

# ---------------------------------------------------------------------------
# Compiled patterns
# ---------------------------------------------------------------------------


def _whole_word(term: str) -> re.Pattern[str]:
    return re.compile(r"\b" + re.escape(term) + r"\b", re.IGNORECASE)


_FLAGGED_WORD_RES = {w: _whole_word(w) for w in FLAGGED_WORDS}
_FLAGGED_PHRASE_RES = {p: re.compile(p, re.IGNORECASE) for p in FLAGGED_PHRASES}
_PUFFERY_RES = {w: _whole_word(w) for w in PUFFERY_WORDS}
_TRANSITION_RES = {t: _whole_word(t) for t in GENERIC_TRANSITIONS}

_NEWLINE_RE = re.compile(r"\r\n?")
_TAG_RE = re.compile(r"<[^>]*>")
_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")
_PARAGRAPH_SPLIT_RE = re.compile(r"\n\s*\n")

_ARTIFACT_PATTERNS = {
    "turn0search": re.compile(r"turn\d+search", re.IGNORECASE),
    "oaicite": re.compile(r"oaicite", re.IGNORECASE),
    "utm_chatgpt": re.compile(r"utm_source=chatgpt", re.IGNORECASE),
    "openai_ref": re.compile(r"\[.*?\]\(.*?openai\.com.*?\)", re.IGNORECASE),
    "chatgpt_ref": re.compile(r"as an ai language model|as a large language model", re.IGNORECASE),
    "model_disclaimer": re.compile(r"i (don't|cannot|can't) (access|browse|search) the internet", re.IGNORECASE),
}

_SENTENCE_START = r"(?:^|(?<=[.!?])\s+)"
_FORMULAIC_INTRO_RES = [
    re.compile(_SENTENCE_START + p, re.IGNORECASE | re.MULTILINE)
    for p in (
        r"in today's (fast-paced|digital|modern|ever-changing|competitive)",
        r"in (an|the) (era|age|world) (where|of)",
        r"(when it comes to|whether you're)",
        r"have you ever wondered",
        r"are you looking for",
    )
]
_FORMULAIC_CONCLUSION_RES = [
    re.compile(_SENTENCE_START + p, re.IGNORECASE | re.MULTILINE)
    for p in (
        r"in conclusion\b",
        r"to (sum up|summarize|wrap up)\b",
        r"(as we've (seen|discussed|explored))\b",
    )
]

_UNSOURCED_STAT_RE = re.compile(
    r"\b\d{1,3}(\.\d+)?%\s+(of\s+)?(people|users|businesses|companies|organizations|professionals|consumers|marketers)",
    re.IGNORECASE,
)

_HEADING_RE = re.compile(r"^#{1,6}[ \t]+(.+)$", re.MULTILINE)
_CAPITALIZED_RE = re.compile(r"^[A-Z]")
_BOLD_RE = re.compile(r"\*\*[^*]+\*\*")
_EMOJI_RE = re.compile(
    "[\U0001F600-\U0001F64F\U0001F300-\U0001F5FF\U0001F680-\U0001F6FF"
    "\U0001F1E0-\U0001F1FF\u2600-\u26FF\u2700-\u27BF]"
)
_HEADING_LEAD_RE = re.compile(r"^(how to|what is|why|the|top \d+|best|\d+)\s", re.IGNORECASE)

_PRONOUN_RES = {
    "first_person": re.compile(r"\b(i|me|my|mine|myself)\b", re.IGNORECASE),
    "second_person": re.compile(r"\b(you|your|yours|yourself)\b", re.IGNORECASE),
    "first_plural": re.compile(r"\b(we|us|our|ours|ourselves)\b", re.IGNORECASE),
}

_FAQ_HEADING_RE = re.compile(r"^#{1,3}\s+(?:Frequently Asked Questions|FAQ)[ \t]*$", re.IGNORECASE | re.MULTILINE)
_QUESTION_HEADING_RE = re.compile(r"^#{2,4}\s+.+\?\s*$", re.MULTILINE)
_IMAGE_PLACEHOLDER_RES = [
    re.compile(
        r"^(?:Featured image|Illustration|Infographic|Image|Photo|Diagram|Screenshot|Visual|Graphic|Banner|Hero image)"
        r"(?:\s*[:\u2014\-]\s*|\s+(?:of|showing|depicting|illustrating|with))\s*.{20,}",
        re.IGNORECASE | re.MULTILINE,
    ),
    re.compile(
        r"^(?:Simple|Detailed|Clean|Colorful|Annotated|Side-by-side|Split-screen|Screenshot-style|Promotional-style)\s+"
        r"(?:[\w-]+\s+){0,4}"
        r"(?:chart|graph|meter|diagram|infographic|illustration|table|timeline|flowchart|comparison|screenshot|mockup|wireframe|graphic)\b.{10,}",
        re.IGNORECASE | re.MULTILINE,
    ),
    re.compile(
        r"\[(?:Image|Photo|Illustration|Infographic|Diagram|Screenshot)\s+(?:of|showing|depicting)\s+[^\]]{15,}\](?!\()",
        re.IGNORECASE,
    ),
]
_CALLOUT_RES = {
    "key_takeaway": re.compile(r"^(?:\*\*)?Key Takeaway(?:\*\*)?[:\s]", re.IGNORECASE | re.MULTILINE),
    "pro_tip": re.compile(r"^(?:\*\*)?Pro Tip(?:\*\*)?[:\s]", re.IGNORECASE | re.MULTILINE),
    "quick_tip": re.compile(r"^(?:\*\*)?Quick Tip(?:\*\*)?[:\s]", re.IGNORECASE | re.MULTILINE),
    "did_you_know": re.compile(r"^(?:\*\*)?Did You Know(?:\*\*)?[:?]", re.IGNORECASE | re.MULTILINE),
    "bottom_line": re.compile(r"^(?:\*\*)?(?:The )?Bottom Line(?:\*\*)?[:\s]", re.IGNORECASE | re.MULTILINE),
    "expert_tip": re.compile(r"^(?:\*\*)?Expert Tip(?:\*\*)?[:\s]", re.IGNORECASE | re.MULTILINE),
    "action_item": re.compile(r"^(?:\*\*)?Action (?:Item|Step)(?:\*\*)?[:\s]", re.IGNORECASE | re.MULTILINE),
    "remember": re.compile(r"^(?:\*\*)?Remember(?:\*\*)?[:\s]", re.IGNORECASE | re.MULTILINE),
}
_H2_RE = re.compile(r"^##[ \t]+.+$", re.MULTILINE)
_H2_LINE_RE = re.compile(r"^##.*\n?")
_LIST_START_RE = re.compile(r"^\s*[-*\d]")
_LIST_ITEM_RE = re.compile(r"^\s*(?:[-*+]|\d+[.)])\s", re.MULTILINE)
_CTA_SECTION_RE = re.compile(
    r"^#{1,3}\s+(?:Where\s+\w+\s+(?:Fits|Comes In|Helps|Steps In)|How\s+\w+\s+(?:Can Help|Makes It|Simplifies)"
    r"|Why\s+(?:Choose|Use|Try)\s+\w+|(?:Get|Getting)\s+Started\s+(?:With|Using)\s+\w+)",
    re.IGNORECASE | re.MULTILINE,
)
_CONCLUSION_SECTION_RE = re.compile(
    r"^#{1,3}\s+(?:Conclusion|Final Thoughts|Wrapping Up|Summary|Key Takeaways|Your Next Steps)[ \t]*$",
    re.IGNORECASE | re.MULTILINE,
)
_META_ANNOTATION_RE = re.compile(
    r"\((?:\d+\s*(?:minutes?|mins?|hours?|hrs?|seconds?|secs?|steps?|ways?)"
    r"|beginner|intermediate|advanced|easy|moderate|hard|quick|free|paid|optional|recommended|updated|new)\)\s*$",
    re.IGNORECASE,
)
_CTA_HEADING_RES = [
    re.compile(r"^#{1,3}\s+Where\s+\w+\s+(?:Fits|Comes In|Helps|Steps In)\b", re.IGNORECASE | re.MULTILINE),
    re.compile(r"^#{1,3}\s+How\s+\w+\s+(?:Can Help|Makes It|Simplifies|Streamlines)\b", re.IGNORECASE | re.MULTILINE),
    re.compile(r"^#{1,3}\s+Why\s+(?:Choose|Use|Try|Consider)\s+\w+", re.IGNORECASE | re.MULTILINE),
    re.compile(r"^#{1,3}\s+(?:Get|Getting)\s+Started\s+(?:With|Using)\s+\w+", re.IGNORECASE | re.MULTILINE),
]

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def strip_tags(content: str) -> str:
    return _TAG_RE.sub("", content)


def count_words(text: str) -> int:
    return len(text.split())


def split_sentences(text: str) -> tuple[str, ...]:
    return tuple(s for s in _SENTENCE_SPLIT_RE.split(text) if s)


def split_paragraphs(text: str, min_words: int = 5) -> tuple[str, ...]:
    return tuple(p for p in _PARAGRAPH_SPLIT_RE.split(text) if count_words(p) >= min_words)


def _points_at_least(value: float, table: _Table) -> int:
    for threshold, points in table:
        if value >= threshold:
            return points
    return 0


def _points_below(value: float, table: _Table) -> int:
    for threshold, points in table:
        if value < threshold:
            return points
    return 0


def _coefficient_of_variation(lengths: list[int]) -> tuple[float, float]:
    """Return ``(cv_percent, mean)`` using the population standard deviation."""
    mean = sum(lengths) / len(lengths)
    if mean <= 0:
        return 0.0, mean
    variance = sum((x - mean) ** 2 for x in lengths) / len(lengths)
    return math.sqrt(variance) / mean * 100, mean


def _count_terms(patterns: dict[str, re.Pattern[str]], text: str) -> dict[str, int]:
    found: dict[str, int] = {}
    for term, pat in patterns.items():
        count = len(pat.findall(text))
        if count:
            found[term] = count
    return found


def _count_substrings(phrases: tuple[str, ...], text_lower: str) -> dict[str, int]:
    found: dict[str, int] = {}
    for phrase in phrases:
        count = text_lower.count(phrase)
        if count:
            found[phrase] = count
    return found


def _layer(name: str, score: int, details: dict[str, object]) -> LayerResult:
    cap = LAYER_MAX[name]
    return LayerResult(score=max(0, min(score, cap)), max=cap, details=details)


def _headings(content: str) -> list[str]:
    return _HEADING_RE.findall(content)


# ---------------------------------------------------------------------------
# Layers: each is a pure function of the analyzed text
# ---------------------------------------------------------------------------


def score_technical_artifacts(doc: AnalyzedText, hp: Hyperparameters = DEFAULT_HYPERPARAMETERS) -> LayerResult:
    """Residual chat-tool artifacts: citation markers, tracking params, model disclaimers."""
    found = [name for name, pat in _ARTIFACT_PATTERNS.items() if pat.search(doc.raw_content)]
    return _layer("technical_artifacts", len(found) * hp.artifact_points, {"found_artifacts": found})


def score_vocabulary_patterns(doc: AnalyzedText, hp: Hyperparameters = DEFAULT_HYPERPARAMETERS) -> LayerResult:
    flagged_words = _count_terms(_FLAGGED_WORD_RES, doc.plain_text)
    flagged_phrases = _count_terms(_FLAGGED_PHRASE_RES, doc.plain_text)
    total = sum(flagged_words.values()) + sum(flagged_phrases.values())
    density = total / doc.word_count * 100 if doc.word_count > 0 else 0.0
    return _layer("vocabulary_patterns", _points_at_least(density, hp.vocabulary_density_points), {
        "flagged_words": flagged_words,
        "flagged_phrases": flagged_phrases,
        "total_matches": total,
        "density": round(density, 2),
    })


def score_structural_analysis(doc: AnalyzedText, hp: Hyperparameters = DEFAULT_HYPERPARAMETERS) -> LayerResult:
    """Uniformity of sentence and paragraph lengths, plus repeated sentence openers."""
    score = 0
    details: dict[str, object] = {}

    sentence_lengths = [n for n in (count_words(s) for s in doc.sentences) if n > 0]
    if len(sentence_lengths) >= hp.sentence_cv_min_sentences:
        cv, mean = _coefficient_of_variation(sentence_lengths)
        details["sentence_length_cv"] = round(cv, 1)
        details["avg_sentence_length"] = round(mean, 1)
        score += _points_below(cv, hp.sentence_cv_points)

    starters: dict[str, int] = {}
    for sentence in doc.sentences:
        words = sentence.split()
        if len(words) >= 2:
            starter = f"{words[0]} {words[1]}".lower()
            starters[starter] = starters.get(starter, 0) + 1
    repetitive = sum(1 for c in starters.values() if c >= hp.starter_repeat_min)
    details["repetitive_starters"] = repetitive
    details["top_starters"] = [s for s, c in starters.items() if c >= 2][: hp.top_starters_limit]
    score += _points_at_least(repetitive, hp.starter_points)

    paragraph_lengths = [n for n in (count_words(p) for p in doc.paragraphs) if n > hp.paragraph_cv_min_words]
    if len(paragraph_lengths) >= hp.paragraph_cv_min_paragraphs:
        para_cv, _ = _coefficient_of_variation(paragraph_lengths)
        details["paragraph_length_cv"] = round(para_cv, 1)
        score += _points_below(para_cv, hp.paragraph_cv_points)

    return _layer("structural_analysis", score, details)


def score_content_patterns(doc: AnalyzedText, hp: Hyperparameters = DEFAULT_HYPERPARAMETERS) -> LayerResult:
    """Puffery, formulaic intros and conclusions, and hedging."""
    score = 0
    lower = doc.plain_text.lower()

    puffery = _count_terms(_PUFFERY_RES, doc.plain_text)
    puffery_count = sum(puffery.values())
    score += _points_at_least(puffery_count, hp.puffery_points)

    intros = sum(len(pat.findall(doc.plain_text)) for pat in _FORMULAIC_INTRO_RES)
    score += min(intros * hp.intro_points_per_match, hp.intro_points_cap)

    conclusions = sum(len(pat.findall(doc.plain_text)) for pat in _FORMULAIC_CONCLUSION_RES)
    if conclusions:
        score += hp.conclusion_points

    hedging = sum(lower.count(phrase) for phrase in HEDGING_PHRASES)
    score += _points_at_least(hedging, hp.hedging_points)

    return _layer("content_patterns", score, {
        "puffery_count": puffery_count,
        "puffery_words": puffery,
        "formulaic_intros": intros,
        "formulaic_conclusions": conclusions,
        "hedging_count": hedging,
    })


def score_citation_verification(doc: AnalyzedText, hp: Hyperparameters = DEFAULT_HYPERPARAMETERS) -> LayerResult:
    vague = _count_substrings(VAGUE_ATTRIBUTIONS, doc.plain_text.lower())
    vague_count = sum(vague.values())
    score = _points_at_least(vague_count, hp.vague_attribution_points)

    unsourced = len(_UNSOURCED_STAT_RE.findall(doc.plain_text))
    if unsourced >= hp.unsourced_stat_min:
        score += hp.unsourced_stat_points

    return _layer("citation_verification", score, {
        "vague_attributions": vague,
        "vague_count": vague_count,
        "unsourced_stats": unsourced,
    })


def _heading_lead(heading: str) -> Optional[str]:
    m = _HEADING_LEAD_RE.match(heading)
    if not m:
        return None
    lead = m.group(1).lower()
    if lead.startswith("top "):
        return "top n"
    if lead.isdigit():
        return "digit"
    return lead


def score_formatting_analysis(doc: AnalyzedText, hp: Hyperparameters = DEFAULT_HYPERPARAMETERS) -> LayerResult:
    """Title Case headings, bold density, emoji, and repeated heading templates."""
    score = 0
    details: dict[str, object] = {}
    headings = _headings(doc.raw_content)

    title_case = 0
    for heading in headings:
        words = heading.split()
        if len(words) >= hp.title_case_min_words:
            capitalized = sum(1 for w in words if _CAPITALIZED_RE.match(w))
            if capitalized / len(words) >= hp.title_case_word_ratio:
                title_case += 1
    details["title_case_headings"] = title_case
    details["total_headings"] = len(headings)
    if headings:
        score += _points_at_least(title_case / len(headings), hp.title_case_points)

    bold_count = len(_BOLD_RE.findall(doc.raw_content))
    bold_density = bold_count / (doc.word_count / 100) if doc.word_count > 0 else 0.0
    details["bold_count"] = bold_count
    details["bold_density"] = round(bold_density, 2)
    score += _points_at_least(bold_density, hp.bold_density_points)

    emoji_count = len(_EMOJI_RE.findall(doc.raw_content))
    details["emoji_count"] = emoji_count
    score += _points_at_least(emoji_count, hp.emoji_points)

    if len(headings) >= hp.heading_pattern_min_headings:
        leads: dict[str, int] = {}
        for heading in headings:
            lead = _heading_lead(heading)
            if lead:
                leads[lead] = leads.get(lead, 0) + 1
        max_repeat = max(leads.values(), default=0)
        details["heading_pattern_repeats"] = max_repeat
        score += _points_at_least(max_repeat, hp.heading_pattern_points)

    return _layer("formatting_analysis", score, details)


def score_stylometric(doc: AnalyzedText, hp: Hyperparameters = DEFAULT_HYPERPARAMETERS) -> LayerResult:
    """Impersonal voice and a missing mix of short and long sentences."""
    score = 0
    details: dict[str, object] = {}

    pronouns = {kind: len(pat.findall(doc.plain_text)) for kind, pat in _PRONOUN_RES.items()}
    details["pronouns"] = pronouns
    density = sum(pronouns.values()) / doc.word_count * 100 if doc.word_count > 0 else 0.0
    details["pronoun_density"] = round(density, 2)
    score += _points_below(density, hp.pronoun_density_points)

    if pronouns["first_plural"] > hp.corporate_plural_min and pronouns["first_person"] == 0:
        score += hp.corporate_points
        details["corporate_voice"] = True

    simple = complex_ = 0
    for sentence in doc.sentences:
        n = count_words(sentence)
        if 0 < n <= hp.simple_sentence_max_words:
            simple += 1
        elif n > hp.complex_sentence_min_words:
            complex_ += 1
    total = len(doc.sentences)
    simple_ratio = simple / total if total else 0.0
    complex_ratio = complex_ / total if total else 0.0
    details["simple_sentence_ratio"] = round(simple_ratio, 2)
    details["complex_sentence_ratio"] = round(complex_ratio, 2)
    for threshold, points in hp.sentence_mix_points:
        if simple_ratio < threshold and complex_ratio < threshold:
            score += points
            break

    return _layer("stylometric", score, details)


def score_coherence(doc: AnalyzedText, hp: Hyperparameters = DEFAULT_HYPERPARAMETERS) -> LayerResult:
    score = 0
    transitions = _count_terms(_TRANSITION_RES, doc.plain_text)
    transition_count = sum(transitions.values())
    density = transition_count / doc.word_count * 100 if doc.word_count > 0 else 0.0
    score += _points_at_least(density, hp.transition_density_points)

    # Paragraph openers compare exact space-separated tokens, so "Furthermore," does not count.
    openers = 0
    for para in doc.paragraphs:
        tokens = para.strip().lower().split(" ")
        first_word = tokens[0]
        first_two = " ".join(tokens[:2])
        if first_word in GENERIC_TRANSITIONS or first_two in GENERIC_TRANSITIONS:
            openers += 1
    if doc.paragraphs:
        score += _points_at_least(openers / len(doc.paragraphs), hp.transition_opener_points)

    return _layer("coherence", score, {
        "generic_transitions": transitions,
        "transition_count": transition_count,
        "transition_density": round(density, 2),
        "paragraphs_starting_with_transitions": openers,
    })


def _h2_sections(content: str) -> list[str]:
    starts = [m.start() for m in _H2_RE.finditer(content)]
    return [content[start:end] for start, end in zip(starts, starts[1:] + [len(content)])]


def _is_bullet_sandwich(section: str) -> bool:
    body = _H2_LINE_RE.sub("", section, count=1).strip()
    if not body:
        return False
    blocks = [b for b in _PARAGRAPH_SPLIT_RE.split(body) if len(b.strip()) > 10]
    if len(blocks) < 3:
        return False
    has_lead = not _LIST_START_RE.match(blocks[0])
    has_list_middle = any(_LIST_ITEM_RE.search(b) for b in blocks[1:-1])
    has_trailer = not _LIST_START_RE.match(blocks[-1])
    return has_lead and has_list_middle and has_trailer


def score_template_patterns(doc: AnalyzedText, hp: Hyperparameters = DEFAULT_HYPERPARAMETERS) -> LayerResult:
    """Document-level scaffolding typical of generated articles.

    Six sub-checks: FAQ block, image-prompt placeholders, callout labels,
    bullet-sandwich sections (plus the CTA + FAQ + conclusion macro shape),
    meta-annotated headings, and soft-sell CTA headings.
    """
    content = doc.raw_content
    score = 0
    details: dict[str, object] = {}

    faq = _FAQ_HEADING_RE.search(content)
    faq_questions = len(_QUESTION_HEADING_RE.findall(content[faq.end():])) if faq else 0
    details["faq_heading_found"] = faq is not None
    details["faq_question_count"] = faq_questions
    score += _points_at_least(faq_questions, hp.faq_question_points)

    placeholders: list[str] = []
    for pat in _IMAGE_PLACEHOLDER_RES:
        placeholders.extend(m.group(0) for m in pat.finditer(content))
    details["image_placeholder_count"] = len(placeholders)
    details["image_placeholders"] = placeholders[: hp.image_placeholder_sample]
    score += _points_at_least(len(placeholders), hp.image_placeholder_points)

    callouts = _count_terms(_CALLOUT_RES, content)
    callout_total = sum(callouts.values())
    details["callout_types"] = callouts
    details["callout_total_count"] = callout_total
    for min_distinct, min_total, points in hp.callout_points:
        if len(callouts) >= min_distinct or callout_total >= min_total:
            score += points
            break

    sections = _h2_sections(content)
    if len(sections) < hp.sandwich_min_sections:
        sections = []
    sandwiches = sum(1 for s in sections if _is_bullet_sandwich(s))
    details["sections_with_bullet_sandwich"] = sandwiches
    details["total_h2_sections"] = len(sections)
    if sections:
        ratio = sandwiches / len(sections)
        details["bullet_sandwich_ratio"] = round(ratio, 2)
        for min_ratio, min_sections, points in hp.sandwich_points:
            if ratio >= min_ratio and len(sections) >= min_sections:
                score += points
                break

    has_cta = _CTA_SECTION_RE.search(content) is not None
    has_conclusion = _CONCLUSION_SECTION_RE.search(content) is not None
    details["has_cta_section"] = has_cta
    details["has_conclusion_section"] = has_conclusion
    if has_cta and faq and has_conclusion:
        score += hp.template_macro_points

    meta_annotated = [h for h in _headings(content) if _META_ANNOTATION_RE.search(h)]
    details["meta_annotated_headings"] = meta_annotated
    details["meta_annotated_count"] = len(meta_annotated)
    score += _points_at_least(len(meta_annotated), hp.meta_heading_points)

    cta_headings = [m.group(0).strip() for m in (pat.search(content) for pat in _CTA_HEADING_RES) if m]
    details["cta_headings"] = cta_headings
    if cta_headings:
        score += hp.cta_heading_points

    return _layer("template_patterns", score, details)


def score_confidence(layers: ScoreBreakdown, hp: Hyperparameters = DEFAULT_HYPERPARAMETERS) -> LayerResult:
    """Reward agreement: a single strong layer is noise, several are a signal."""
    corroborating = sum(
        1 for name, layer in layers.items()
        if name != "confidence_adjustment" and layer.max > 0 and layer.score / layer.max >= hp.corroboration_ratio
    )
    return _layer(
        "confidence_adjustment",
        _points_at_least(corroborating, hp.confidence_points),
        {"corroborating_layers": corroborating},
    )


# ---------------------------------------------------------------------------
# Pipeline wiring
# ---------------------------------------------------------------------------

_PIPELINE: list[tuple[str, _LayerRule]] = [
    ("technical_artifacts", score_technical_artifacts),
    ("vocabulary_patterns", score_vocabulary_patterns),
    ("structural_analysis", score_structural_analysis),
    ("content_patterns", score_content_patterns),
    ("citation_verification", score_citation_verification),
    ("formatting_analysis", score_formatting_analysis),
    ("stylometric", score_stylometric),
    ("coherence", score_coherence),
    ("template_patterns", score_template_patterns),
]


def _run_pipeline(doc: AnalyzedText, hp: Hyperparameters, pipeline: list[tuple[str, _LayerRule]]) -> ScoreBreakdown:
    def _merge(breakdown: ScoreBreakdown, step: tuple[str, Callable[[], LayerResult]]) -> ScoreBreakdown:
        name, rule_fn = step
        return {**breakdown, name: rule_fn()}

    return reduce(_merge, [(name, partial(rule, doc, hp)) for name, rule in pipeline], {})


def empty_breakdown() -> ScoreBreakdown:
    return {
        name: LayerResult(score=0, max=cap, details={"insufficient_content": True})
        for name, cap in LAYER_MAX.items()
    }


def grade(score: int, hp: Hyperparameters = DEFAULT_HYPERPARAMETERS) -> str:
    if score <= hp.grade_minimal_max:
        return "Minimal"
    if score <= hp.grade_low_max:
        return "Low"
    if score <= hp.grade_moderate_max:
        return "Moderate"
    return "High"


# layer -> (label, improvement type)
_FIXES: dict[str, tuple[str, str]] = {
    "vocabulary_patterns": ("Replace AI-sounding vocabulary", "humanize_vocabulary"),
    "structural_analysis": ("Vary sentence structure", "vary_sentence_structure"),
    "content_patterns": ("Remove puffery language", "remove_puffery"),
    "stylometric": ("Add personal voice", "add_personal_voice"),
    "technical_artifacts": ("Clean AI artifacts", "clean_artifacts"),
    "coherence": ("Improve transitions", "improve_transitions"),
    "template_patterns": ("Restructure AI template patterns", "restructure_template"),
}


def suggest_fixes(breakdown: ScoreBreakdown, hp: Hyperparameters = DEFAULT_HYPERPARAMETERS) -> list[Fix]:
    """Map layers scoring above the fix threshold to improvement types, worst first."""
    fixes = [
        Fix(label=label, points=breakdown[name].score, layer=name, improvement_type=improvement_type)
        for name, (label, improvement_type) in _FIXES.items()
        if name in breakdown
        and breakdown[name].max > 0
        and breakdown[name].score / breakdown[name].max > hp.fix_ratio_threshold
    ]
    return sorted(fixes, key=lambda f: -f.points)[: hp.fix_limit]


def describe_layer(name: str, details: dict[str, object]) -> str:
    """One-line, human-readable summary of a layer's details."""
    if details.get("insufficient_content"):
        return "Insufficient content for analysis"

    parts: list[str] = []
    if name == "technical_artifacts":
        found = details.get("found_artifacts") or []
        return f"Found: {', '.join(found)}" if found else "No artifacts detected"
    if name == "vocabulary_patterns":
        parts = [f"{details.get('total_matches', 0)} matches", f"{details.get('density', 0.0):.1f}% density"]
        top_words = list(details.get("flagged_words") or {})[:5]
        if top_words:
            parts.append(", ".join(top_words))
        return " · ".join(parts)
    if name == "structural_analysis":
        cv = details.get("sentence_length_cv")
        if cv is not None:
            parts.append(f"CV: {cv}%" + (" (uniform)" if cv < 30 else ""))
        if details.get("repetitive_starters"):
            parts.append(f"{details['repetitive_starters']} repetitive starters")
        return " · ".join(parts) or "Good variation"
    if name == "content_patterns":
        for key, label in (("puffery_count", "puffery"), ("formulaic_intros", "formulaic intros"), ("hedging_count", "hedging phrases")):
            if details.get(key):
                parts.append(f"{details[key]} {label}")
        return " · ".join(parts) or "Natural patterns"
    if name == "citation_verification":
        if details.get("vague_count"):
            parts.append(f"{details['vague_count']} vague attributions")
        if details.get("unsourced_stats"):
            parts.append(f"{details['unsourced_stats']} unsourced stats")
        return " · ".join(parts) or "Citations look good"
    if name == "formatting_analysis":
        if details.get("title_case_headings"):
            parts.append(f"{details['title_case_headings']} Title Case headings")
        if details.get("bold_count", 0) > 5:
            parts.append(f"{details['bold_count']} bold phrases")
        if details.get("emoji_count"):
            parts.append(f"{details['emoji_count']} emojis")
        return " · ".join(parts) or "Formatting natural"
    if name == "stylometric":
        if details.get("pronoun_density") is not None:
            parts.append(f"Pronoun density: {details['pronoun_density']}%")
        if details.get("corporate_voice"):
            parts.append("Corporate voice detected")
        return " · ".join(parts) or "Voice sounds natural"
    if name == "coherence":
        count = details.get("transition_count", 0)
        if count:
            return f"{count} generic transitions · {details.get('transition_density', 0.0):.1f}% density"
        return "Transitions sound natural"
    if name == "template_patterns":
        for key, label in (
            ("faq_question_count", "FAQ questions"),
            ("image_placeholder_count", "image placeholders"),
            ("callout_total_count", "callout patterns"),
        ):
            if details.get(key):
                parts.append(f"{details[key]} {label}")
        ratio = details.get("bullet_sandwich_ratio", 0.0)
        if ratio > 0.5:
            parts.append(f"{round(ratio * 100)}% uniform sections")
        return " · ".join(parts) or "No template patterns"
    if name == "confidence_adjustment":
        layers = details.get("corroborating_layers", 0)
        return f"{layers} layer{'' if layers == 1 else 's'} flagged (3+ needed for confidence boost)"
    return ""


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def analyze(content: Optional[str], hyperparameters: Hyperparameters | None = None) -> SlopScore:
    """Score article text for AI-writing fingerprints.

    Args:
        content: Article body; markdown and inline HTML are accepted. ``None`` is
            treated as empty.
        hyperparameters: Optional tuning overrides. Uses the defaults if omitted.

    Returns:
        SlopScore with a 0-100 score and a ten-layer breakdown. Text under the
        minimum word count scores 0 with every layer marked
        ``insufficient_content``.
    """
    hp = hyperparameters or DEFAULT_HYPERPARAMETERS
    doc = AnalyzedText.from_content(content, hp)

    if doc.word_count < hp.min_word_count:
        logger.debug(f"Skipping analysis: {doc.word_count} words is below {hp.min_word_count}")
        return SlopScore(score=0, breakdown=empty_breakdown())

    breakdown = _run_pipeline(doc, hp, _PIPELINE)
    breakdown["confidence_adjustment"] = score_confidence(breakdown, hp)

    raw_total = sum(layer.score for layer in breakdown.values())
    raw_max = sum(layer.max for layer in breakdown.values())
    normalized = round(raw_total / raw_max * 100) if raw_max > 0 else 0
    score = max(hp.score_min, min(hp.score_max, normalized))
    return SlopScore(score=score, breakdown=breakdown)
