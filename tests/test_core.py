from data_designer_slop_score.core import (
    LAYER_MAX,
    LAYER_NAMES,
    AnalyzedText,
    Hyperparameters,
    LayerResult,
    analyze,
    describe_layer,
    grade,
    score_citation_verification,
    score_coherence,
    score_confidence,
    score_content_patterns,
    score_formatting_analysis,
    score_stylometric,
    score_technical_artifacts,
    score_template_patterns,
    score_vocabulary_patterns,
    suggest_fixes,
)


CLEAN_TEXT = (
    "I bought the old farmhouse in March, mostly because the kitchen had a wood stove and my budget had run out of patience. "
    "The roof leaked. "
    "My sister drove up from Albany the first weekend, and we spent two days pulling rotten boards off the porch while her dog chased every squirrel within a mile. "
    "You learn fast what you can fix yourself and what needs a professional with insurance.\n\n"
    "By June I had replaced the gutters, patched most of the plaster, and found a plumber named Ray who talked about trout for forty minutes before he ever looked at the pipes. "
    "He was worth every dollar. "
    "My neighbors kept bringing zucchini. "
    "I still don't know what to do with that much zucchini, so I started leaving bags of it on the porch of the church down the road.\n\n"
    "The hardest part was the barn. "
    "Half of it leaned east, and the beams were soft enough that I could push a screwdriver straight through them. "
    "I called three contractors. "
    "Two never called back, and the third quoted a number so high that I laughed on the phone and then apologized to him.\n\n"
    "If you ever buy a place like this, keep a notebook. "
    "Write down every strange noise, every stain on the ceiling, every name someone gives you at the hardware store. "
    "My notebook is full of crossed-out phone numbers and sketches of fuse boxes. "
    "I read it some nights when the wind gets loud, and it reminds me how much I have already done."
)

SLOPPY_TEXT = (
    "In today's fast-paced digital landscape, organizations must leverage robust and transformative tools to remain competitive. "
    "This approach helps teams delve into complex data and unlock the full potential of modern platforms. "
    "Furthermore, studies show that 73% of businesses achieve unprecedented growth after adopting these groundbreaking solutions.\n\n"
    "When it comes to digital strategy, experts agree that a comprehensive and holistic plan is paramount. "
    "This approach can moreover empower every department to maximize output and supercharge results across the organization. "
    "Moreover, research shows that 64% of marketers leverage robust analytics to delve deeper into customer behavior.\n\n"
    "It is important to note that a seamless workflow requires a meticulous and nuanced strategy today. "
    "This approach will transform operations, unleash creativity, and skyrocket engagement with world-class automation features. "
    "Furthermore, experts say that it is important to note the pivotal role of cutting-edge technology.\n\n"
    "Modern teams must also foster a culture that can elevate collaboration and streamline every single process. "
    "Moreover, it is important to note that robust frameworks help companies delve into market intricacies. "
    "Modern teams that leverage these tools will navigate change with unwavering focus and measurable confidence.\n\n"
    "In conclusion, organizations that embrace this transformative paradigm will achieve remarkable and sustainable results over time. "
    "Modern teams should additionally consider how each robust solution supports the overarching business strategy ahead. "
    "Ultimately, the most successful companies will harness innovation to remain a beacon of industry excellence.\n\n"
    "Furthermore, this approach ensures that every stakeholder can leverage a comprehensive view of critical metrics. "
    "It is clear that robust governance and meticulous planning remain indispensable for sustainable long-term growth. "
    "It is equally vital to delve into emerging trends and leverage every available strategic opportunity."
)

SHORT_TEXT = "Hello world."

FAQ_BLOCK = (
    "\n\n## FAQ\n\n"
    "### How long did the roof take?\n\nAbout three weekends.\n\n"
    "### Did you hire a plumber?\n\nYes, Ray did the pipes.\n\n"
    "### What happened to the barn?\n\nIt still leans east.\n\n"
    "### Is the wood stove safe?\n\nAfter a chimney sweep, yes.\n\n"
    "### Where did the zucchini go?\n\nTo the church porch.\n\n"
    "### Would you buy again?\n\nProbably, with a bigger budget."
)


def _doc(text: str) -> AnalyzedText:
    return AnalyzedText.from_content(text)


def _breakdown_with_flagged(flagged: int) -> dict[str, LayerResult]:
    names = [n for n in LAYER_NAMES if n != "confidence_adjustment"]
    return {
        name: LayerResult(score=LAYER_MAX[name] if i < flagged else 0, max=LAYER_MAX[name])
        for i, name in enumerate(names)
    }


class TestAnalyze:
    def test_clean_text_scores_minimal(self):
        result = analyze(CLEAN_TEXT)
        assert result.score == 2
        assert result.grade == "Minimal"
        assert result.breakdown["structural_analysis"].score == 2
        assert result.breakdown["vocabulary_patterns"].score == 0
        assert result.breakdown["confidence_adjustment"].score == 0

    def test_sloppy_text_scores_moderate(self):
        result = analyze(SLOPPY_TEXT)
        layers = {name: layer.score for name, layer in result.breakdown.items()}
        assert layers == {
            "technical_artifacts": 0,
            "vocabulary_patterns": 20,
            "structural_analysis": 15,
            "content_patterns": 15,
            "citation_verification": 5,
            "formatting_analysis": 0,
            "stylometric": 8,
            "coherence": 5,
            "template_patterns": 0,
            "confidence_adjustment": 5,
        }
        assert result.score == 63
        assert result.grade == "Moderate"

    def test_sloppy_details(self):
        breakdown = analyze(SLOPPY_TEXT).breakdown
        assert breakdown["vocabulary_patterns"].details["flagged_words"]["leverage"] == 5
        assert breakdown["structural_analysis"].details["repetitive_starters"] == 3
        assert breakdown["content_patterns"].details["puffery_count"] == 8
        assert breakdown["content_patterns"].details["formulaic_intros"] == 2
        assert breakdown["content_patterns"].details["hedging_count"] == 3
        assert breakdown["citation_verification"].details["unsourced_stats"] == 2
        assert breakdown["stylometric"].details["pronoun_density"] == 0.0
        assert breakdown["confidence_adjustment"].details["corroborating_layers"] == 6

    def test_short_text_is_insufficient(self):
        result = analyze(SHORT_TEXT)
        assert result.score == 0
        assert list(result.breakdown) == list(LAYER_NAMES)
        for name, layer in result.breakdown.items():
            assert layer.score == 0
            assert layer.max == LAYER_MAX[name]
            assert layer.details == {"insufficient_content": True}

    def test_empty_and_none(self):
        assert analyze("").score == 0
        assert analyze(None).score == 0
        assert analyze(None).breakdown["coherence"].details["insufficient_content"] is True

    def test_layer_order_and_caps(self):
        result = analyze(SLOPPY_TEXT)
        assert tuple(result.breakdown) == LAYER_NAMES
        for name, layer in result.breakdown.items():
            assert layer.max == LAYER_MAX[name]
            assert 0 <= layer.score <= layer.max
        assert sum(LAYER_MAX.values()) == 115

    def test_deterministic(self):
        assert analyze(SLOPPY_TEXT) == analyze(SLOPPY_TEXT)

    def test_custom_hyperparameters(self):
        text = "We fixed the roof. Ray did the pipes. The barn still leans."
        result = analyze(text, hyperparameters=Hyperparameters(min_word_count=5))
        assert "insufficient_content" not in result.breakdown["stylometric"].details
        assert analyze(text).breakdown["stylometric"].details == {"insufficient_content": True}

    def test_ai_disclaimer(self):
        text = CLEAN_TEXT + "\n\nAs an AI language model, I don't have access to real-time data."
        layer = analyze(text).breakdown["technical_artifacts"]
        assert layer.score >= 5
        assert "chatgpt_ref" in layer.details["found_artifacts"]

    def test_faq_block(self):
        layer = analyze(CLEAN_TEXT + FAQ_BLOCK).breakdown["template_patterns"]
        assert layer.details["faq_heading_found"] is True
        assert layer.details["faq_question_count"] == 6
        assert layer.score == 3

    def test_faq_block_with_crlf(self):
        text = (CLEAN_TEXT + FAQ_BLOCK).replace("\n", "\r\n")
        layer = analyze(text).breakdown["template_patterns"]
        assert layer.details["faq_heading_found"] is True
        assert layer.details["faq_question_count"] == 6
        assert layer.score == 3

    def test_results_are_hashable(self):
        result = analyze(SLOPPY_TEXT)
        assert hash(result) == hash(analyze(SLOPPY_TEXT))
        assert hash(result.breakdown["coherence"]) == hash(LayerResult(score=5, max=10))

    def test_payload_shape(self):
        payload = analyze(SLOPPY_TEXT).to_payload()
        assert set(payload) == {"score", "grade", "breakdown"}
        assert set(payload["breakdown"]["coherence"]) == {"score", "max", "details"}


class TestAnalyzedText:
    def test_strips_tags_and_splits(self):
        doc = _doc("<p>One two three four five.</p>\n\n<p>Six.</p>")
        assert doc.plain_text == "One two three four five.\n\nSix."
        assert doc.word_count == 6
        assert doc.sentences == ("One two three four five.", "Six.")
        assert doc.paragraphs == ("One two three four five.",)


class TestLayers:
    def test_technical_artifacts_capped(self):
        layer = score_technical_artifacts(_doc("Sources turn0search1 and [oaicite:2] plus https://x.com/?utm_source=chatgpt.com"))
        assert layer.details["found_artifacts"] == ["turn0search", "oaicite", "utm_chatgpt"]
        assert layer.score == 10

    def test_vocabulary_density_tier(self):
        layer = score_vocabulary_patterns(_doc("delve " + "word " * 99))
        assert layer.details["total_matches"] == 1
        assert layer.details["density"] == 1.0
        assert layer.score == 5

    def test_intro_only_at_sentence_start(self):
        mid = score_content_patterns(_doc("Some say when it comes to roofs, nobody agrees."))
        start = score_content_patterns(_doc("Nobody agrees. When it comes to roofs, call Ray."))
        assert mid.details["formulaic_intros"] == 0
        assert start.details["formulaic_intros"] == 1
        assert start.score == 2

    def test_repeated_line_start_intros_each_count(self):
        text = (
            "When it comes to roofs, call Ray.\n"
            "When it comes to pipes, call Ray.\n"
            "When it comes to barns, call nobody."
        )
        layer = score_content_patterns(_doc(text))
        assert layer.details["formulaic_intros"] == 3
        assert layer.score == 4

    def test_citation_verification(self):
        layer = score_citation_verification(
            _doc("Studies show this works. Experts say so too. About 40% of users agree and 55% of consumers concur.")
        )
        assert layer.details["vague_count"] == 2
        assert layer.details["unsourced_stats"] == 2
        assert layer.score == 3

    def test_formatting_title_case_and_repeated_leads(self):
        text = (
            "## How To Fix A Roof\n\nText.\n\n## How To Patch Plaster\n\nText.\n\n"
            "## How To Hire A Plumber\n\nText.\n\n## How To Save A Barn\n\nText."
        )
        layer = score_formatting_analysis(_doc(text))
        assert layer.details["title_case_headings"] == 4
        assert layer.details["heading_pattern_repeats"] == 4
        assert layer.score == 5

    def test_formatting_emoji(self):
        layer = score_formatting_analysis(_doc("Roof done " + "\U0001f680" * 10))
        assert layer.details["emoji_count"] == 10
        assert layer.score == 2

    def test_corporate_voice(self):
        layer = score_stylometric(_doc("We build tools. We ship them weekly. Our customers like us. We listen. We improve. We grow."))
        assert layer.details["corporate_voice"] is True
        assert layer.details["pronouns"]["first_plural"] == 7
        assert layer.score == 2

    def test_coherence_paragraph_openers(self):
        text = (
            "Moreover the barn needs new beams and paint.\n\n"
            "Indeed the roof still leaks after heavy rain.\n\n"
            "Overall the house is warmer than last winter."
        )
        layer = score_coherence(_doc(text))
        assert layer.details["paragraphs_starting_with_transitions"] == 3
        assert layer.score == 10

    def test_coherence_opener_with_comma_not_counted(self):
        layer = score_coherence(_doc("Moreover, the barn needs new beams and paint."))
        assert layer.details["paragraphs_starting_with_transitions"] == 0

    def test_image_placeholders(self):
        text = (
            "Featured image of a farmhouse kitchen with a wood stove and copper pots\n\n"
            "Infographic showing the cost of roof repairs across three seasons\n\n"
            "[Image of a barn leaning east against a grey autumn sky]"
        )
        layer = score_template_patterns(_doc(text))
        assert layer.details["image_placeholder_count"] == 3
        assert layer.score == 4

    def test_callouts(self):
        text = "**Key Takeaway:** Roofs need checks.\n\nPro Tip: Keep a notebook.\n\nQuick Tip: Call Ray."
        layer = score_template_patterns(_doc(text))
        assert set(layer.details["callout_types"]) == {"key_takeaway", "pro_tip", "quick_tip"}
        assert layer.score == 2

    def test_bullet_sandwich_sections(self):
        section = (
            "## {}\n\nA lead paragraph that explains things.\n\n"
            "{}\n\nA closing paragraph with a wrap up.\n\n"
        )
        bullets = "- first item here\n- second item here"
        numbered = "1. first item here\n2. second item here"
        text = "".join(
            section.format(name, numbered if name == "Barn" else bullets)
            for name in ("Roof", "Gutters", "Plaster", "Barn")
        )
        layer = score_template_patterns(_doc(text))
        assert layer.details["sections_with_bullet_sandwich"] == 4
        assert layer.details["bullet_sandwich_ratio"] == 1.0
        assert layer.score == 2

    def test_meta_annotations_and_cta(self):
        text = (
            "## Why Choose Acme\n\nText.\n\n### Setup (5 minutes)\n\nText.\n\n"
            "### Tuning (advanced)\n\nText.\n\n### Cleanup (optional)\n\nText.\n\n### Backups (free)\n\nText."
        )
        layer = score_template_patterns(_doc(text))
        assert layer.details["meta_annotated_count"] == 4
        assert layer.details["cta_headings"] == ["## Why Choose Acme"]
        assert layer.score == 3

    def test_template_macro(self):
        text = (
            "## Why Choose Acme\n\nText.\n\n## FAQ\n\n### Is it free?\n\nNo.\n\n"
            "## Conclusion\n\nText."
        )
        layer = score_template_patterns(_doc(text))
        assert layer.details["has_cta_section"] is True
        assert layer.details["has_conclusion_section"] is True
        assert layer.details["faq_question_count"] == 1
        assert layer.score == 2

    def test_template_macro_with_crlf(self):
        text = "## Why Choose Acme\r\n\r\nText.\r\n\r\n## FAQ\r\n\r\n### Is it free?\r\n\r\nNo.\r\n\r\n## Conclusion\r\n\r\nText."
        layer = score_template_patterns(_doc(text))
        assert layer.details["has_conclusion_section"] is True
        assert layer.score == 2


class TestConfidence:
    def test_three_layers(self):
        assert score_confidence(_breakdown_with_flagged(3)).score == 3

    def test_five_layers(self):
        assert score_confidence(_breakdown_with_flagged(5)).score == 5

    def test_two_layers(self):
        layer = score_confidence(_breakdown_with_flagged(2))
        assert layer.score == 0
        assert layer.details["corroborating_layers"] == 2

    def test_half_ratio_counts(self):
        breakdown = _breakdown_with_flagged(2)
        breakdown["coherence"] = LayerResult(score=5, max=10)
        assert score_confidence(breakdown).details["corroborating_layers"] == 3


class TestGradeAndFixes:
    def test_grade_boundaries(self):
        assert grade(0) == "Minimal"
        assert grade(25) == "Minimal"
        assert grade(26) == "Low"
        assert grade(50) == "Low"
        assert grade(51) == "Moderate"
        assert grade(75) == "Moderate"
        assert grade(76) == "High"

    def test_fixes_for_sloppy_text(self):
        fixes = suggest_fixes(analyze(SLOPPY_TEXT).breakdown)
        assert [f.improvement_type for f in fixes] == [
            "humanize_vocabulary",
            "vary_sentence_structure",
            "remove_puffery",
            "add_personal_voice",
        ]
        assert [f.points for f in fixes] == [20, 15, 15, 8]

    def test_no_fixes_for_clean_text(self):
        assert suggest_fixes(analyze(CLEAN_TEXT).breakdown) == []

    def test_fix_limit(self):
        fixes = suggest_fixes(_breakdown_with_flagged(9))
        assert len(fixes) == 5
        assert fixes[0].layer == "vocabulary_patterns"

    def test_describe_layer(self):
        assert describe_layer("coherence", {"insufficient_content": True}) == "Insufficient content for analysis"
        assert describe_layer("technical_artifacts", {"found_artifacts": ["chatgpt_ref"]}) == "Found: chatgpt_ref"
        assert describe_layer("technical_artifacts", {"found_artifacts": []}) == "No artifacts detected"
        assert describe_layer("confidence_adjustment", {"corroborating_layers": 1}).startswith("1 layer flagged")
