# Rewrite actions that lower an article's slop score.
#
# One rule-based action (artifact cleanup) runs locally; every other action
# builds an instruction and delegates the rewrite to an injected text generator.

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Literal, Protocol

from data_designer_slop_score.core import FLAGGED_WORDS, GENERIC_TRANSITIONS, PUFFERY_WORDS

logger = logging.getLogger(__name__)

ArticleField = Literal["title", "meta_description", "content"]


class ImprovementType(str, Enum):
    ADD_KEYWORD_TO_TITLE = "add_keyword_to_title"
    ADD_KEYWORD_TO_META = "add_keyword_to_meta"
    ADD_FAQ_SECTION = "add_faq_section"
    ADD_TABLE = "add_table"
    ADD_H2_HEADINGS = "add_h2_headings"
    ADD_LISTS = "add_lists"
    OPTIMIZE_TITLE_LENGTH = "optimize_title_length"
    OPTIMIZE_META_LENGTH = "optimize_meta_length"
    ADD_KEYWORD_TO_H2 = "add_keyword_to_h2"
    ADD_KEYWORD_TO_INTRO = "add_keyword_to_intro"
    HUMANIZE_VOCABULARY = "humanize_vocabulary"
    VARY_SENTENCE_STRUCTURE = "vary_sentence_structure"
    REMOVE_PUFFERY = "remove_puffery"
    ADD_PERSONAL_VOICE = "add_personal_voice"
    CLEAN_ARTIFACTS = "clean_artifacts"
    IMPROVE_TRANSITIONS = "improve_transitions"
    RESTRUCTURE_TEMPLATE = "restructure_template"


class UnknownImprovementType(ValueError):
    """Raised for an improvement type outside :class:`ImprovementType`. Not retryable."""


class GenerationError(RuntimeError):
    """The text generator failed, timed out, or returned nothing. Safe to retry."""

    def __init__(self, improvement_type: str, reason: str) -> None:
        super().__init__(f"{improvement_type} failed: {reason}")
        self.improvement_type = improvement_type
        self.reason = reason


class TextGenerator(Protocol):
    def __call__(self, system_prompt: str, user_prompt: str, max_tokens: int, timeout_seconds: int) -> str: ...


# ---------------------------------------------------------------------------
# Settings and dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GenerationSettings:
    """Limits passed through to the text generator on every delegated call."""

    max_tokens: int = 2000
    timeout_seconds: int = 60
    system_prompt: str = (
        "You are an SEO expert helping to optimize article content. "
        "Be concise and follow instructions exactly."
    )
    intro_word_count: int = 150
    title_target: tuple[int, int] = (50, 60)
    meta_target: tuple[int, int] = (150, 160)
    min_h2_sections: int = 3


DEFAULT_SETTINGS = GenerationSettings()


@dataclass(frozen=True)
class ImprovementResult:
    field: ArticleField
    value: str
    message: str

    def to_payload(self) -> dict[str, str]:
        return {"field": self.field, "value": self.value, "message": self.message}


@dataclass(frozen=True)
class ArticleDraft:
    """The article fields an improvement reads from and writes back to."""

    content: str = ""
    title: str = ""
    meta_description: str = ""
    keyword: str = ""

    def apply(self, result: ImprovementResult) -> ArticleDraft:
        return replace(self, **{result.field: result.value})


@dataclass
class BatchResult:
    draft: ArticleDraft
    applied: list[ImprovementResult] = field(default_factory=list)
    errors: list[dict[str, str]] = field(default_factory=list)


@dataclass(frozen=True)
class _Call:
    generator: TextGenerator
    settings: GenerationSettings
    improvement_type: ImprovementType

    def __call__(self, prompt: str) -> str:
        try:
            text = self.generator(
                self.settings.system_prompt,
                prompt,
                self.settings.max_tokens,
                self.settings.timeout_seconds,
            )
        except Exception as exc:
            raise GenerationError(self.improvement_type.value, str(exc) or type(exc).__name__) from exc
        if not text or not text.strip():
            raise GenerationError(self.improvement_type.value, "generator returned no content")
        return text


_Handler = Callable[[ArticleDraft, _Call, GenerationSettings], ImprovementResult]

# ---------------------------------------------------------------------------
# Text surgery
# ---------------------------------------------------------------------------

_ARTIFACT_CLEANUP_RES = [
    re.compile(r"turn\d+search\d*", re.IGNORECASE),
    re.compile(r"\[oaicite:[^\]]*\]", re.IGNORECASE),
    re.compile(r"utm_source=chatgpt[^\s)\"]*", re.IGNORECASE),
    re.compile(r"\bAs an AI (language )?model\b[^.]*\.", re.IGNORECASE),
    re.compile(r"\bAs a large language model\b[^.]*\.", re.IGNORECASE),
    re.compile(r"\bI (don't|cannot|can't) (access|browse|search) the internet\b[^.]*\.", re.IGNORECASE),
]
_DOUBLE_SPACE_RE = re.compile(r"  +")
_EXCESS_NEWLINES_RE = re.compile(r"\n{3,}")

_CONCLUSION_HEADING_RES = [
    re.compile(r"^##\s+(?:Final Thoughts|Wrapping Up|Summary|Key Takeaways).*", re.IGNORECASE | re.MULTILINE),
    re.compile(r"^##\s+FAQ.*", re.IGNORECASE | re.MULTILINE),
]
_FAQ_HEADING_RE = re.compile(r"^##\s+(?:FAQ|Frequently Asked Questions).*", re.IGNORECASE | re.MULTILINE)
_H2_TEXT_RE = re.compile(r"^##[ \t]+(.+)$", re.MULTILINE)
_WORD_RE = re.compile(r"\S+")


def clean_artifacts(content: str) -> str:
    for pat in _ARTIFACT_CLEANUP_RES:
        content = pat.sub("", content)
    content = _DOUBLE_SPACE_RE.sub(" ", content)
    content = _EXCESS_NEWLINES_RE.sub("\n\n", content)
    return content.strip()


def _splice(content: str, position: int, section: str) -> str:
    return content[:position].rstrip() + "\n\n" + section + "\n\n" + content[position:]


def _append(content: str, section: str) -> str:
    return content.rstrip() + "\n\n" + section


def insert_before_conclusion(content: str, section: str) -> str:
    """Insert before a closing heading (conclusion-style, then FAQ), else append."""
    for pat in _CONCLUSION_HEADING_RES:
        m = pat.search(content)
        if m:
            return _splice(content, m.start(), section)
    return _append(content, section)


def insert_before_faq(content: str, section: str) -> str:
    m = _FAQ_HEADING_RE.search(content)
    if m:
        return _splice(content, m.start(), section)
    return insert_before_conclusion(content, section)


def _intro_span_end(content: str, word_limit: int) -> int:
    end = 0
    for i, m in enumerate(_WORD_RE.finditer(content)):
        if i >= word_limit:
            break
        end = m.end()
    return end


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------

_NO_EM_DASH = "- Do not use em dashes"


def _article_rewrite(instructions: str, message: str) -> _Handler:
    def _handler(draft: ArticleDraft, call: _Call, _settings: GenerationSettings) -> ImprovementResult:
        text = call(f"{instructions}\n\nArticle content:\n{draft.content}")
        return ImprovementResult("content", text.strip(), message)
    return _handler


def _improve_title(draft: ArticleDraft, call: _Call, settings: GenerationSettings) -> ImprovementResult:
    low, high = settings.title_target
    prompt = (
        f'Rewrite this article title to naturally include the keyword "{draft.keyword}".\n\n'
        f"Current title: {draft.title}\n\n"
        "Rules:\n"
        f"- Keep it between {low}-{high} characters\n"
        "- Make it compelling and click-worthy\n"
        "- Include the keyword naturally (variations like plurals are OK)\n"
        f"{_NO_EM_DASH}\n"
        "- Return ONLY the new title, nothing else"
    )
    return ImprovementResult("title", call(prompt).strip(), "Title updated to include keyword")


def _improve_meta(draft: ArticleDraft, call: _Call, settings: GenerationSettings) -> ImprovementResult:
    low, high = settings.meta_target
    prompt = (
        f'Write a compelling meta description for this article that includes the keyword "{draft.keyword}".\n\n'
        f"Article title: {draft.title}\n"
        f"Current meta description: {draft.meta_description}\n\n"
        "Rules:\n"
        f"- Keep it between {low}-{high} characters exactly\n"
        "- Include the keyword naturally\n"
        "- Make it compelling to encourage clicks\n"
        "- Summarize what the reader will learn\n"
        f"{_NO_EM_DASH}\n"
        "- Return ONLY the meta description, nothing else"
    )
    return ImprovementResult("meta_description", call(prompt).strip(), "Meta description updated to include keyword")


def _add_faq_section(draft: ArticleDraft, call: _Call, _settings: GenerationSettings) -> ImprovementResult:
    prompt = (
        f'Generate a "Frequently Asked Questions" section for this article about "{draft.keyword}".\n\n'
        f"Article title: {draft.title}\n\n"
        "Rules:\n"
        "- Create 4-5 relevant questions and answers\n"
        "- Questions should be what real people would ask\n"
        "- Answers should be concise but helpful (2-3 sentences)\n"
        "- Include the keyword naturally in at least one question\n"
        "- Format as markdown with ## FAQ as the heading\n"
        "- Use ### for each question\n"
        f"{_NO_EM_DASH}\n"
        "- Return ONLY the FAQ section in markdown format"
    )
    faq = call(prompt).strip()
    return ImprovementResult("content", draft.content.strip() + "\n\n" + faq, "FAQ section added to content")


def _add_table(draft: ArticleDraft, call: _Call, _settings: GenerationSettings) -> ImprovementResult:
    prompt = (
        f'Generate a useful comparison or data table for this article about "{draft.keyword}".\n\n'
        f"Article title: {draft.title}\n\n"
        "Rules:\n"
        "- Create a markdown table with 3-5 columns and 4-6 rows\n"
        "- Make it informative and relevant to the topic\n"
        "- Include a brief introduction sentence before the table\n"
        "- Include a ## heading for the table section\n"
        f"{_NO_EM_DASH}\n"
        "- Return ONLY the table section (heading + intro + table) in markdown format"
    )
    section = call(prompt).strip()
    return ImprovementResult("content", insert_before_conclusion(draft.content, section), "Comparison table added to content")


def _add_h2_headings(draft: ArticleDraft, call: _Call, settings: GenerationSettings) -> ImprovementResult:
    existing = _H2_TEXT_RE.findall(draft.content)
    needed = max(1, settings.min_h2_sections - len(existing))
    prompt = (
        f'Generate {needed} new H2 section(s) with content for this article about "{draft.keyword}".\n\n'
        f"Article title: {draft.title}\n"
        f"Existing H2 headings: {', '.join(existing)}\n\n"
        "Rules:\n"
        f"- Create {needed} new section(s) with ## headings\n"
        "- Each section should have 2-3 paragraphs of useful content\n"
        "- Make headings different from existing ones\n"
        "- Include the keyword naturally in at least one heading\n"
        f"{_NO_EM_DASH}\n"
        "- Return ONLY the new sections in markdown format"
    )
    sections = call(prompt).strip()
    return ImprovementResult("content", insert_before_faq(draft.content, sections), f"{needed} new section(s) added to content")


def _add_lists(draft: ArticleDraft, call: _Call, _settings: GenerationSettings) -> ImprovementResult:
    prompt = (
        f'Generate a useful bulleted list section for this article about "{draft.keyword}".\n\n'
        f"Article title: {draft.title}\n\n"
        "Rules:\n"
        "- Create a section with a ## heading\n"
        "- Include 5-8 bullet points with helpful information\n"
        "- Each bullet should be a complete, useful point\n"
        f"{_NO_EM_DASH}\n"
        "- Return ONLY the list section in markdown format"
    )
    section = call(prompt).strip()
    return ImprovementResult("content", insert_before_conclusion(draft.content, section), "Bullet list section added to content")


def _optimize_title_length(draft: ArticleDraft, call: _Call, settings: GenerationSettings) -> ImprovementResult:
    low, high = settings.title_target
    length = len(draft.title)
    action = "longer" if length < low else "shorter"
    prompt = (
        f"Rewrite this title to be {action} (aim for {low}-{high} characters).\n\n"
        f"Current title ({length} chars): {draft.title}\n"
        f"Keyword: {draft.keyword}\n\n"
        "Rules:\n"
        "- Keep the same meaning and intent\n"
        f"- Target {low}-{high} characters\n"
        "- Include the keyword if possible\n"
        f"{_NO_EM_DASH}\n"
        "- Return ONLY the new title, nothing else"
    )
    return ImprovementResult("title", call(prompt).strip(), "Title optimized to ideal length")


def _optimize_meta_length(draft: ArticleDraft, call: _Call, settings: GenerationSettings) -> ImprovementResult:
    low, high = settings.meta_target
    length = len(draft.meta_description)
    action = "expand" if length < low else "shorten"
    prompt = (
        f"Rewrite this meta description to {action} it (aim for {low}-{high} characters).\n\n"
        f"Article title: {draft.title}\n"
        f"Current meta ({length} chars): {draft.meta_description}\n"
        f"Keyword: {draft.keyword}\n\n"
        "Rules:\n"
        "- Keep the same meaning and intent\n"
        f"- Target {low}-{high} characters exactly\n"
        "- Include the keyword naturally\n"
        f"{_NO_EM_DASH}\n"
        "- Return ONLY the meta description, nothing else"
    )
    return ImprovementResult("meta_description", call(prompt).strip(), "Meta description optimized to ideal length")


def _add_keyword_to_h2(draft: ArticleDraft, call: _Call, _settings: GenerationSettings) -> ImprovementResult:
    headings = _H2_TEXT_RE.findall(draft.content)
    prompt = (
        f'Rewrite one of these H2 headings to naturally include the keyword "{draft.keyword}".\n\n'
        "Current H2 headings:\n"
        + "\n".join(f"- {h}" for h in headings)
        + "\n\nRules:\n"
        "- Choose the most appropriate heading to modify\n"
        "- Keep the same meaning and intent\n"
        "- Include the keyword naturally (variations are OK)\n"
        f"{_NO_EM_DASH}\n"
        "- Return in format: OLD_HEADING|||NEW_HEADING"
    )
    response = call(prompt)
    content = draft.content
    parts = [p.strip() for p in response.split("|||")]
    if len(parts) == 2 and all(parts):
        old, new = parts
        # Whole H2 lines only; deeper headings and longer titles stay untouched.
        heading = re.compile(rf"^##[ \t]+{re.escape(old)}[ \t]*$", re.MULTILINE)
        content = heading.sub(lambda _m: f"## {new}", content, count=1)
    else:
        logger.warning(f"Ignoring malformed heading rewrite reply: {response[:80]!r}")
    return ImprovementResult("content", content, "H2 heading updated to include keyword")


def _add_keyword_to_intro(draft: ArticleDraft, call: _Call, settings: GenerationSettings) -> ImprovementResult:
    end = _intro_span_end(draft.content, settings.intro_word_count)
    intro = " ".join(draft.content[:end].split())
    prompt = (
        f'Rewrite the introduction of this article to include the keyword "{draft.keyword}" '
        f"within the first {settings.intro_word_count} words.\n\n"
        f"Current introduction:\n{intro}\n\n"
        "Rules:\n"
        "- Keep the same tone and style\n"
        "- Include the keyword naturally in the first 2-3 sentences\n"
        "- Make it engaging and informative\n"
        f"{_NO_EM_DASH}\n"
        "- Return ONLY the rewritten introduction (same approximate length)"
    )
    new_intro = call(prompt).strip()
    return ImprovementResult("content", new_intro + draft.content[end:], "Introduction updated to include keyword")


def _clean_artifacts(draft: ArticleDraft, _call: _Call, _settings: GenerationSettings) -> ImprovementResult:
    return ImprovementResult("content", clean_artifacts(draft.content), "Technical AI artifacts cleaned")


_HUMANIZE_WORDS = ", ".join(FLAGGED_WORDS)
_PUFFERY_LIST = ", ".join(PUFFERY_WORDS)
_TRANSITION_LIST = ", ".join(t.capitalize() for t in GENERIC_TRANSITIONS)

_HANDLERS: dict[ImprovementType, _Handler] = {
    ImprovementType.ADD_KEYWORD_TO_TITLE: _improve_title,
    ImprovementType.ADD_KEYWORD_TO_META: _improve_meta,
    ImprovementType.ADD_FAQ_SECTION: _add_faq_section,
    ImprovementType.ADD_TABLE: _add_table,
    ImprovementType.ADD_H2_HEADINGS: _add_h2_headings,
    ImprovementType.ADD_LISTS: _add_lists,
    ImprovementType.OPTIMIZE_TITLE_LENGTH: _optimize_title_length,
    ImprovementType.OPTIMIZE_META_LENGTH: _optimize_meta_length,
    ImprovementType.ADD_KEYWORD_TO_H2: _add_keyword_to_h2,
    ImprovementType.ADD_KEYWORD_TO_INTRO: _add_keyword_to_intro,
    ImprovementType.HUMANIZE_VOCABULARY: _article_rewrite(
        "Rewrite this article to replace AI-sounding vocabulary with natural, human alternatives.\n\n"
        f"Target words to replace (if present): {_HUMANIZE_WORDS}.\n\n"
        'Target phrases to replace (if present): "it\'s worth noting", "in the realm of", "in today\'s world", '
        '"let\'s dive in", "let\'s delve into", "in the ever-evolving", "stands as a testament", '
        '"plays a pivotal role", "navigating the complexities", "unlock the full potential".\n\n'
        "Rules:\n"
        "- Replace flagged words/phrases with simpler, more natural alternatives\n"
        "- Keep the same meaning and information\n"
        "- Maintain the article's tone and structure\n"
        "- Do NOT change headings, links, or formatting\n"
        "- Do NOT add or remove content, only replace vocabulary\n"
        "- Return the COMPLETE article content",
        "AI vocabulary replaced with natural alternatives",
    ),
    ImprovementType.VARY_SENTENCE_STRUCTURE: _article_rewrite(
        "Rewrite this article to have more varied sentence structure and rhythm.\n\n"
        "Problems to fix:\n"
        "- Sentences that are all similar length (12-18 words)\n"
        "- Paragraphs that start the same way repeatedly\n"
        "- Monotonous rhythm from uniform sentence patterns\n\n"
        "What to do:\n"
        "- Mix short punchy sentences (5-8 words) with longer complex ones (20-30 words)\n"
        "- Vary paragraph openings (don't start multiple paragraphs the same way)\n"
        "- Add occasional sentence fragments for emphasis\n"
        "- Use questions, exclamations, and varied punctuation naturally\n"
        "- Keep all information, headings, links, and formatting intact\n"
        "- Return the COMPLETE article content",
        "Sentence structure varied for natural rhythm",
    ),
    ImprovementType.REMOVE_PUFFERY: _article_rewrite(
        "Rewrite this article to remove hyperbolic, puffery language and replace it with concrete, specific claims.\n\n"
        f"Words/phrases to fix: {_PUFFERY_LIST}.\n\n"
        "Rules:\n"
        "- Replace vague superlatives with specific, measurable claims where possible\n"
        '- Instead of "revolutionize your workflow", say something like "cut your processing time in half"\n'
        '- Instead of "game-changing results", describe the actual results\n'
        '- If no specific claim is possible, just use simpler language ("helpful" instead of "game-changing")\n'
        "- Keep all headings, links, formatting, and structure intact\n"
        "- Return the COMPLETE article content",
        "Puffery language replaced with concrete claims",
    ),
    ImprovementType.ADD_PERSONAL_VOICE: _article_rewrite(
        "Rewrite this article to sound more personal and human. "
        "The current text reads too impersonal and corporate.\n\n"
        "What to add:\n"
        '- First-person perspective where appropriate ("I\'ve found that...", "In my experience...")\n'
        "- Conversational asides and observations\n"
        "- Occasional informal language and contractions\n"
        '- Brief anecdotes or "from what I\'ve seen" type insights\n'
        '- Direct address to the reader ("you" instead of "one" or passive voice)\n\n'
        "Rules:\n"
        "- Don't overdo it, aim for 3-5 personal touches throughout\n"
        "- Keep the article's expertise and authority intact\n"
        "- Maintain all headings, links, formatting, and structure\n"
        "- Don't make up specific personal stories, keep it general\n"
        "- Return the COMPLETE article content",
        "Personal voice and perspective added",
    ),
    ImprovementType.CLEAN_ARTIFACTS: _clean_artifacts,
    ImprovementType.IMPROVE_TRANSITIONS: _article_rewrite(
        "Rewrite this article to replace generic, AI-sounding transitions with natural, topic-specific connections.\n\n"
        f"Generic transitions to replace: {_TRANSITION_LIST}.\n\n"
        "What to do instead:\n"
        '- Connect ideas through the topic itself ("This pricing model also affects...")\n'
        '- Use cause-and-effect naturally ("This matters because...")\n'
        '- Reference previous points concretely ("Building on the setup process above...")\n'
        "- Sometimes just start a new thought without a transition at all\n"
        "- Keep all headings, links, formatting, and content intact\n"
        "- Return the COMPLETE article content",
        "Generic transitions replaced with natural connections",
    ),
    ImprovementType.RESTRUCTURE_TEMPLATE: _article_rewrite(
        "Rewrite this article to remove common AI-generated template patterns "
        "while keeping all the information intact.\n\n"
        "Specific patterns to fix:\n"
        "- Remove or rewrite the FAQ section at the end. Integrate the most useful answers into the main body.\n"
        '- Remove image placeholder descriptions (lines like "Featured image of..." or "Infographic showing...").\n'
        '- Remove formulaic callout labels like "Key Takeaway:", "Pro Tip:", "Quick Tip:", "Expert Tip:" '
        "and fold those insights into the surrounding paragraphs.\n"
        "- Break up the rigid intro paragraph, bullet list, closing paragraph template. "
        "Some sections can be all prose, some can lead with a list.\n"
        '- Rewrite soft-sell CTA sections (like "Where [Brand] Fits...") so they read less like product placement.\n\n'
        "Rules:\n"
        "- Keep ALL factual information and advice from the original\n"
        "- Maintain headings, links, and markdown formatting\n"
        "- The article should read as one writer's consistent voice, not an assembled template\n"
        "- Return the COMPLETE article content",
        "AI template patterns restructured for natural flow",
    ),
}

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_improvement_type(improvement_type: str | ImprovementType) -> ImprovementType:
    try:
        return ImprovementType(improvement_type)
    except ValueError:
        raise UnknownImprovementType(f"Unknown improvement type: {improvement_type}") from None


def improve(
    draft: ArticleDraft,
    improvement_type: str | ImprovementType,
    generator: TextGenerator,
    settings: GenerationSettings | None = None,
) -> ImprovementResult:
    """Run one improvement against ``draft``; the caller persists ``result.field``."""
    kind = parse_improvement_type(improvement_type)
    settings = settings or DEFAULT_SETTINGS
    logger.info(f"Applying improvement {kind.value!r}")
    return _HANDLERS[kind](draft, _Call(generator, settings, kind), settings)


def dispatch_improvement(
    content: str | None,
    title: str | None,
    meta_description: str | None,
    keyword: str | None,
    improvement_type: str | ImprovementType,
    generator: TextGenerator,
    settings: GenerationSettings | None = None,
) -> ImprovementResult:
    """Apply a single improvement to loose article fields.

    Raises:
        UnknownImprovementType: ``improvement_type`` is not recognized. The
            generator is never contacted.
        GenerationError: the generator failed or returned blank text.
    """
    draft = ArticleDraft(
        content=content or "",
        title=title or "",
        meta_description=meta_description or "",
        keyword=keyword or "",
    )
    return improve(draft, improvement_type, generator, settings)


def dispatch_batch(
    draft: ArticleDraft,
    improvement_types: list[str | ImprovementType],
    generator: TextGenerator,
    settings: GenerationSettings | None = None,
) -> BatchResult:
    """Apply improvements in order, feeding each result into the next.

    All types are validated before any work starts. A generation failure on one
    item is recorded in ``errors`` and the remaining items still run.
    """
    kinds = [parse_improvement_type(t) for t in improvement_types]
    result = BatchResult(draft=draft)
    for kind in kinds:
        try:
            applied = improve(result.draft, kind, generator, settings)
        except GenerationError as exc:
            logger.warning(f"Improvement {kind.value!r} failed: {exc.reason}")
            result.errors.append({"improvement_type": kind.value, "error": str(exc)})
            continue
        result.applied.append(applied)
        result.draft = result.draft.apply(applied)
    return result
