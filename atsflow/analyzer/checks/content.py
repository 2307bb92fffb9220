from __future__ import annotations

import re
from collections import Counter

from atsflow.schemas.analysis import CheckOutcome
from atsflow.schemas.resume import ResumeDocument, ScanOptions

from ..text import extract_all_text, extract_bullets, is_empty_content, is_skills_section, word_count
from .base import CheckModule, failed_check

ACTION_VERBS = (
    "achieved",
    "implemented",
    "developed",
    "managed",
    "led",
    "created",
    "designed",
    "built",
    "launched",
    "optimized",
    "increased",
    "decreased",
    "improved",
    "reduced",
    "streamlined",
    "automated",
    "coordinated",
    "established",
    "executed",
    "generated",
    "spearheaded",
    "delivered",
)
PERSONAL_PRONOUNS = ("i", "me", "my", "mine", "myself", "we", "us", "our", "ours")
COMMON_TYPOS = {
    "teh": "the",
    "recieve": "receive",
    "occured": "occurred",
    "seperate": "separate",
    "acheive": "achieve",
    "managment": "management",
    "experiance": "experience",
    "responsable": "responsible",
}
STOP_WORDS = frozenset(
    {"the", "and", "for", "with", "from", "this", "that", "have", "has", "been", "were", "was", "are", "will"}
)
PROPER_NOUNS = {
    "javascript": "JavaScript",
    "python": "Python",
    "java": "Java",
    "react": "React",
    "angular": "Angular",
    "vue": "Vue",
    "aws": "AWS",
    "azure": "Azure",
    "google cloud": "Google Cloud",
    "docker": "Docker",
    "kubernetes": "Kubernetes",
    "github": "GitHub",
    "sql": "SQL",
    "mongodb": "MongoDB",
    "postgresql": "PostgreSQL",
}
JARGON_PHRASES = (
    "synergy",
    "leverage",
    "paradigm",
    "disrupt",
    "innovate",
    "think outside the box",
    "game changer",
    "best of breed",
    "circle back",
    "touch base",
    "low-hanging fruit",
    "move the needle",
    "drill down",
    "bandwidth",
    "scalable",
    "robust solution",
)
INDUSTRY_SEEDS = {
    "software": ("software", "developer", "engineer", "code", "programming", "javascript", "python"),
    "marketing": ("marketing", "campaign", "brand", "seo", "content", "social media"),
    "finance": ("finance", "accounting", "investment", "trading", "financial", "banking"),
    "healthcare": ("healthcare", "medical", "patient", "clinical", "hospital", "nurse"),
    "sales": ("sales", "revenue", "client", "customer", "quota", "pipeline"),
    "data": ("data", "analytics", "machine learning", "statistics", "sql", "tableau"),
}
INDUSTRY_KEYWORDS = {
    "software": (
        "agile", "scrum", "git", "api", "rest", "microservices",
        "testing", "ci/cd", "cloud", "database", "frontend", "backend",
    ),
    "marketing": (
        "seo", "sem", "analytics", "conversion", "engagement",
        "roi", "campaign", "content strategy", "social media", "branding",
    ),
    "finance": (
        "financial analysis", "forecasting", "budgeting", "compliance",
        "risk management", "portfolio", "gaap", "financial modeling",
    ),
    "healthcare": (
        "patient care", "hipaa", "ehr", "clinical", "diagnosis",
        "treatment", "medical records", "healthcare compliance",
    ),
    "sales": (
        "b2b", "b2c", "crm", "pipeline", "quota", "negotiation",
        "prospecting", "client relations", "revenue growth", "forecasting",
    ),
    "data": (
        "python", "sql", "machine learning", "data visualization",
        "statistics", "etl", "data warehouse", "analytics", "reporting",
    ),
    "general": (
        "management", "leadership", "communication", "teamwork",
        "project management", "problem solving", "collaboration",
    ),
}

MIN_SKILLS = 5
MAX_SKILLS = 15
IDEAL_MIN_WORDS = 400
IDEAL_MAX_WORDS = 1400

_QUANTIFIED_PATTERNS = (
    re.compile(r"\d+%"),
    re.compile(r"\$[\d,]+"),
    re.compile(r"\d+[kKmMbB]"),
    re.compile(r"\d+x"),
    re.compile(r"\d+\+"),
    re.compile(r"\d+\s*(million|billion|thousand)", re.IGNORECASE),
    re.compile(r"\b\d+\b"),
)
_WORD_RE = re.compile(r"\w+")
_NON_ALPHA_RE = re.compile(r"[^a-z]")
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]\s+")


def is_quantified(bullet: str) -> bool:
    return any(pattern.search(bullet) for pattern in _QUANTIFIED_PATTERNS)


def starts_with_action_verb(bullet: str) -> bool:
    words = bullet.strip().split()
    first = _NON_ALPHA_RE.sub("", words[0].lower()) if words else ""
    return first in ACTION_VERBS or (first.endswith("ed") and len(first) > 3)


def density_score(density: float) -> int:
    if 2 <= density <= 8:
        return 100
    if density < 2:
        return int(round(max(50, density * 50)))
    return int(round(max(50, 100 - (density - 8) * 10)))


def detect_industry(text: str) -> str:
    """Pick the industry whose seed words appear most often; ties keep the earlier one."""
    lowered = text.lower()
    best, best_matches = "general", 0
    for industry, seeds in INDUSTRY_SEEDS.items():
        matches = sum(1 for seed in seeds if seed in lowered)
        if matches > best_matches:
            best, best_matches = industry, matches
    return best


def grammar_issues(text: str) -> list[dict[str, str]]:
    issues: list[dict[str, str]] = []
    if re.search(r"\s{2,}", text):
        issues.append({"type": "spacing", "message": "Multiple consecutive spaces found"})
    if re.search(r"\.[A-Z]", text):
        issues.append({"type": "spacing", "message": "Missing space after period"})
    for sentence in _SENTENCE_SPLIT_RE.split(text):
        if re.match(r"[a-z]", sentence):
            issues.append({"type": "capitalization", "message": "Sentence should start with capital letter"})
    return issues[:5]


def _percent(value: float, digits: int) -> str:
    return f"{value:.{digits}f}%"


class ContentChecks(CheckModule):
    category = "content"
    checks = (
        "keywordDensity",
        "dedicatedSkillsSection",
        "quantifiedAchievements",
        "noPersonalPronouns",
        "actionVerbBullets",
        "appropriateLength",
        "noTyposOrGrammar",
        "industryKeywords",
        "properNounCapitalization",
        "noExcessiveJargon",
    )

    def keyword_density(self, document: ResumeDocument, options: ScanOptions) -> CheckOutcome:
        words = [word for word in extract_all_text(document).lower().split() if len(word) > 3]
        total = len(words)
        frequencies = Counter(words)
        keywords = sorted(
            ((word, count) for word, count in frequencies.items() if count >= 2 and word not in STOP_WORDS),
            key=lambda entry: entry[1],
            reverse=True,
        )[:20]

        density = len(keywords) / total * 100 if total else 0.0
        passed = 2 <= density <= 8
        if density < 2:
            recommendation: str | None = "Include more relevant keywords naturally throughout your resume."
        elif density > 8:
            recommendation = "Reduce keyword stuffing. Focus on natural language and variety."
        else:
            recommendation = None

        return CheckOutcome(
            passed=passed,
            score=density_score(density),
            severity="pass" if passed else "medium",
            message=(
                f"Keyword density is optimal at {density:.2f}%."
                if passed
                else f"Keyword density is {density:.2f}%. Target: 2-8%."
            ),
            recommendation=recommendation,
            impact="medium",
            details={
                "keyword_density": _percent(density, 2),
                "top_keywords": [
                    {"word": word, "frequency": count, "density": _percent(count / total * 100, 2)}
                    for word, count in keywords[:10]
                ],
                "total_words": total,
            },
        )

    def dedicated_skills_section(self, document: ResumeDocument, options: ScanOptions) -> CheckOutcome:
        if not document.sections:
            return failed_check("No sections found")

        section = next((s for s in document.sections if is_skills_section(s)), None)
        has_section = section is not None
        has_content = has_section and not is_empty_content(section.content)
        skill_count = len(section.items) if has_content and section is not None else 0

        passed = has_section and has_content and skill_count >= MIN_SKILLS
        if passed:
            message = f"Skills section found with {skill_count} skills listed."
        elif has_section:
            message = f"Skills section found but needs more content ({skill_count} skills)."
        else:
            message = "No dedicated skills section found."

        return CheckOutcome(
            passed=passed,
            score=100 if passed else (50 if has_section else 0),
            severity="pass" if passed else "high",
            message=message,
            recommendation=(
                None
                if passed
                else 'Add a dedicated "Skills" or "Technical Skills" section with 5-15 relevant skills.'
            ),
            impact="high",
            details={
                "has_skills_section": has_section,
                "skill_count": skill_count,
                "minimum_recommended": MIN_SKILLS,
                "maximum_recommended": MAX_SKILLS,
            },
        )

    def quantified_achievements(self, document: ResumeDocument, options: ScanOptions) -> CheckOutcome:
        bullets = extract_bullets(document)
        quantified = [bullet for bullet in bullets if is_quantified(bullet)]
        unquantified = [bullet for bullet in bullets if not is_quantified(bullet)]

        rate = len(quantified) / len(bullets) * 100 if bullets else 0.0
        passed = rate >= 40
        return CheckOutcome(
            passed=passed,
            score=int(round(min(100, rate * 2))),
            severity="pass" if passed else "medium",
            message=(
                f"{rate:.0f}% of bullet points include quantifiable metrics."
                if passed
                else f"Only {rate:.0f}% of bullets are quantified. Target: 40%+."
            ),
            recommendation=(
                None
                if passed
                else 'Add numbers, percentages, and metrics to achievements. Examples: "Increased sales by 25%", '
                '"Managed team of 10".'
            ),
            impact="medium",
            details={
                "total_bullets": len(bullets),
                "quantified": len(quantified),
                "unquantified": len(unquantified),
                "quantification_rate": _percent(rate, 1),
                "examples": quantified[:3],
                "needs_work": unquantified[:3],
            },
        )

    def no_personal_pronouns(self, document: ResumeDocument, options: ScanOptions) -> CheckOutcome:
        counts = Counter(_WORD_RE.findall(extract_all_text(document).lower()))
        found = [{"pronoun": pronoun, "count": counts[pronoun]} for pronoun in PERSONAL_PRONOUNS if counts[pronoun]]
        total = sum(entry["count"] for entry in found)
        passed = total == 0
        return CheckOutcome(
            passed=passed,
            score=max(0, 100 - total * 10),
            severity="pass" if passed else "medium",
            message=(
                "No personal pronouns detected. Content is professional and objective."
                if passed
                else f"{total} personal pronouns found. Resumes should be written in third person."
            ),
            recommendation=(
                None
                if passed
                else 'Remove "I", "me", "my". Start bullets with action verbs: "Developed..." not "I developed..."'
            ),
            impact="medium",
            details={
                "pronouns_found": found,
                "total_count": total,
                "examples": ['Bad: "I managed a team"', 'Good: "Managed team of 10 engineers"'],
            },
        )

    def action_verb_bullets(self, document: ResumeDocument, options: ScanOptions) -> CheckOutcome:
        bullets = extract_bullets(document)
        strong = [bullet for bullet in bullets if starts_with_action_verb(bullet)]
        weak = [bullet for bullet in bullets if not starts_with_action_verb(bullet)]

        rate = len(strong) / len(bullets) * 100 if bullets else 100.0
        passed = rate >= 80
        return CheckOutcome(
            passed=passed,
            score=int(round(min(100, rate))),
            severity="pass" if passed else "medium",
            message=(
                f"{rate:.0f}% of bullet points start with strong action verbs."
                if passed
                else f"Only {rate:.0f}% of bullets start with action verbs. Target: 80%+."
            ),
            recommendation=(
                None if passed else f"Start bullets with action verbs like: {', '.join(ACTION_VERBS[:10])}."
            ),
            impact="medium",
            details={
                "total_bullets": len(bullets),
                "with_action_verbs": len(strong),
                "without_action_verbs": len(weak),
                "rate": _percent(rate, 1),
                "good_examples": strong[:3],
                "needs_improvement": weak[:3],
                "suggested_verbs": list(ACTION_VERBS[:15]),
            },
        )

    def appropriate_length(self, document: ResumeDocument, options: ScanOptions) -> CheckOutcome:
        words = word_count(extract_all_text(document))
        pages = words / 600
        too_short = words < IDEAL_MIN_WORDS
        too_long = words > IDEAL_MAX_WORDS
        ideal = not too_short and not too_long

        score = 100.0
        if too_short:
            score = max(50, words / IDEAL_MIN_WORDS * 100)
        elif too_long:
            score = max(50, 100 - (words - IDEAL_MAX_WORDS) / 10)

        if ideal:
            message = f"Resume length is appropriate at {words} words (~{pages:.1f} pages)."
            recommendation = None
        elif too_short:
            message = f"Resume is too short at {words} words. Add more detail to experiences."
            recommendation = "Add more detail to your experiences, skills, and achievements. Target: 400-1400 words."
        else:
            message = f"Resume is too long at {words} words (~{pages:.1f} pages). Consider trimming."
            recommendation = "Remove less relevant experiences or condense descriptions. Keep to 1-2 pages."

        return CheckOutcome(
            passed=ideal,
            score=int(round(score)),
            severity="pass" if ideal else "low",
            message=message,
            recommendation=recommendation,
            impact="low",
            details={
                "word_count": words,
                "estimated_pages": f"{pages:.1f}",
                "section_count": len(document.sections),
                "ideal_range": "400-1400 words (1-2 pages)",
                "status": "Too Short" if too_short else "Too Long" if too_long else "Ideal",
            },
        )

    def no_typos_or_grammar(self, document: ResumeDocument, options: ScanOptions) -> CheckOutcome:
        text = extract_all_text(document)
        typos = []
        for typo, correct in COMMON_TYPOS.items():
            matches = re.findall(rf"\b{typo}\b", text, re.IGNORECASE)
            if matches:
                typos.append({"typo": typo, "correct": correct, "count": len(matches)})
        grammar = grammar_issues(text)

        total = len(typos) + len(grammar)
        passed = total == 0
        return CheckOutcome(
            passed=passed,
            score=max(50, 100 - total * 10),
            severity="pass" if passed else "high",
            message=(
                "No obvious typos or grammar errors detected."
                if passed
                else f"{total} potential typos or grammar issues detected."
            ),
            recommendation=(
                None if passed else "Proofread carefully. Use spell-check and grammar tools. Have someone else review."
            ),
            impact="high",
            details={
                "typos": typos,
                "grammar_issues": grammar,
                "total_issues": total,
                "note": "This is a basic check. Use professional proofreading tools for comprehensive review.",
            },
        )

    def industry_keywords(self, document: ResumeDocument, options: ScanOptions) -> CheckOutcome:
        text = extract_all_text(document).lower()
        industry = options.industry or detect_industry(text)
        keywords = INDUSTRY_KEYWORDS.get(industry, INDUSTRY_KEYWORDS["general"])

        found = [keyword for keyword in keywords if keyword in text]
        missing = [keyword for keyword in keywords if keyword not in text]
        rate = len(found) / len(keywords) * 100 if keywords else 100.0
        passed = rate >= 40
        return CheckOutcome(
            passed=passed,
            score=int(round(min(100, rate * 2))),
            severity="pass" if passed else "medium",
            message=(
                f"{rate:.0f}% of key {industry} keywords found."
                if passed
                else f"Only {rate:.0f}% of {industry} keywords present. Add industry-specific terms."
            ),
            recommendation=None if passed else f"Include relevant {industry} keywords: {', '.join(missing[:5])}.",
            impact="medium",
            details={
                "detected_industry": industry,
                "total_keywords": len(keywords),
                "found_keywords": found[:10],
                "missing_keywords": missing[:10],
                "match_rate": _percent(rate, 1),
            },
        )

    def proper_noun_capitalization(self, document: ResumeDocument, options: ScanOptions) -> CheckOutcome:
        text = extract_all_text(document)
        issues = []
        for noun, correct in PROPER_NOUNS.items():
            matches = re.findall(rf"\b{re.escape(noun)}\b", text)
            if matches and correct not in text:
                issues.append({"found": noun, "should_be": correct, "count": len(matches)})

        passed = not issues
        return CheckOutcome(
            passed=passed,
            score=max(70, 100 - len(issues) * 5),
            severity="pass" if passed else "low",
            message=(
                "Proper nouns and technical terms are correctly capitalized."
                if passed
                else f"{len(issues)} capitalization issues found in technical terms."
            ),
            recommendation=(
                None
                if passed
                else "Capitalize proper nouns correctly (e.g., JavaScript not javascript, AWS not aws)."
            ),
            impact="low",
            details={"issues": issues, "note": "Correct capitalization shows attention to detail."},
        )

    def no_excessive_jargon(self, document: ResumeDocument, options: ScanOptions) -> CheckOutcome:
        text = extract_all_text(document)
        found = []
        for phrase in JARGON_PHRASES:
            matches = re.findall(re.escape(phrase), text, re.IGNORECASE)
            if matches:
                found.append({"phrase": phrase, "count": len(matches)})

        total = sum(entry["count"] for entry in found)
        words = word_count(text)
        rate = total / words * 100 if words else 0.0
        passed = rate < 2
        return CheckOutcome(
            passed=passed,
            score=max(50, 100 - total * 10),
            severity="pass" if passed else "low",
            message=(
                "Minimal jargon detected. Content is clear and professional."
                if passed
                else f"{total} instances of business jargon detected. Use specific, concrete language."
            ),
            recommendation=(
                None if passed else "Replace jargon with specific, measurable achievements. Be concrete, not vague."
            ),
            impact="low",
            details={
                "found_jargon": found,
                "total_instances": total,
                "jargon_rate": _percent(rate, 2),
                "examples": [
                    'Instead of "leveraged synergies" → "coordinated with 3 teams"',
                    'Instead of "thought leader" → "published 5 industry articles"',
                ],
            },
        )
