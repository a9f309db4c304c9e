"""Prompt templates for the Drafting module.

Every prompt states a role, a primary directive, the formatting rules and
the task, then frames the user's content between ``---`` lines so the model
cannot mistake resume or job text for instructions.
"""

from __future__ import annotations

from collections.abc import Sequence

from src.drafting.models import REWRITE_TONES, PreprocessContext, Tone

CHANGELOG_DELIMITER = "---CHANGELOG---"

DEFAULT_REFINE_FEEDBACK = "General review for clarity, impact, and tone consistency."

BEST_PRACTICES_PROMPT = (
    "Summarize the top 5-7 modern resume best practices for clarity, impact, "
    "and ATS optimization."
)

FORMATTING_RULES = """**MANDATORY FORMATTING RULES (NON-NEGOTIABLE):**
- **Plain Text Only:** The entire output must be plain UTF-8 text.
- **No Markdown:** You MUST NOT use any markdown formatting. This includes but is not limited to: asterisks for bolding (`**text**`), asterisks for lists (`* item`), hyphens for lists (`- item`), underscores for italics (`_text_`), or any other markdown syntax.
- **Indented Lists:** For any list (like skills or job responsibilities), every item MUST start on a new line and be indented with exactly two spaces. Do not use any bullet characters."""

NO_FABRICATION_DIRECTIVE = """**PRIMARY DIRECTIVE: NO FABRICATION**
- You MUST NOT invent, embellish, or assume any skills, experiences, or dates. Every single point in the generated resume must be directly verifiable from the provided "Consolidated Resume Source". This is the most critical instruction."""

FACTUAL_INTEGRITY_DIRECTIVE = """**PRIMARY DIRECTIVE: FACTUAL INTEGRITY**
- You MUST NOT add, remove, or alter any facts (skills, jobs, dates, accomplishments). Your sole purpose is to change the wording to match the tone."""

_TONE_DESCRIPTIONS = {
    Tone.CONFIDENT: "Standard professional, self-assured language.",
    Tone.EXPERT: "Authoritative language focusing on high-level achievements and impact.",
}

_JOB_DESCRIPTION_PREPROCESS_PROMPT = """
ROLE: Text Pre-processor for an AI Resume Writer.
TASK: Analyze the following "Job Description" and extract ONLY the essential information relevant for tailoring a resume.

**INSTRUCTIONS:**
1.  **Extract Core Content:** Focus exclusively on responsibilities, required skills (technical and soft), qualifications, and experience level.
2.  **Remove Boilerplate:** Aggressively remove all corporate fluff, "About Us" sections, marketing language, benefits descriptions, and legal disclaimers (e.g., EEO statements).
3.  **Preserve Key Terms:** Do not alter key technical terms, tool names, or specific qualifications.
4.  **Output:** Return only the cleaned, concise, and relevant text. If the input is already concise and free of boilerplate, return it as is.

---
**Job Description:**
{text}
---

Provide the cleaned text now.
"""

_FEEDBACK_PREPROCESS_PROMPT = """
ROLE: Text Pre-processor for an AI Resume Editor.
TASK: Clarify and distill the user's "Feedback" to make it as direct as possible for the editor AI.

**INSTRUCTIONS:**
1.  **Clarify Intent:** Rephrase ambiguous statements into clear, actionable commands.
2.  **Correct Errors:** Fix any obvious typos or grammatical mistakes.
3.  **Maintain Core Request:** Do not add new ideas or change the user's fundamental request.
4.  **Output:** Return only the refined feedback. If the feedback is already perfectly clear, return it as is.

---
**Feedback:**
{text}
---

Provide the refined feedback now.
"""


def build_preprocess_prompt(text: str, context: PreprocessContext | str) -> str:
    """Build the cleanup prompt for a job description or user feedback."""
    context = PreprocessContext(context)
    if context is PreprocessContext.JOB_DESCRIPTION:
        return _JOB_DESCRIPTION_PREPROCESS_PROMPT.format(text=text)
    return _FEEDBACK_PREPROCESS_PROMPT.format(text=text)


def format_resume_sources(resume_texts: Sequence[str]) -> str:
    """Label each resume in upload order so the model can tell them apart."""
    return "\n\n".join(
        f"--- RESUME {index} ---\n{text}"
        for index, text in enumerate(resume_texts, start=1)
    )


def build_initial_draft_prompt(resume_texts: Sequence[str], job_description: str) -> str:
    """Build the prompt for the first ('eager') tailored draft."""
    return f"""
ROLE: Expert resume writer.
TASK: Create a tailored resume using ONLY the "Consolidated Resume Source" as the source of truth.
TONE: Eager Learner (emphasize potential, learning, and enthusiasm).

{NO_FABRICATION_DIRECTIVE}

{FORMATTING_RULES}

**INSTRUCTIONS:**
1.  **Analyze Source:** Review the consolidated resume to understand the candidate's full history.
2.  **Align with Job Description:** Prioritize skills and experiences from the source resume that are most relevant to the "Job Description".
3.  **Skills Section Logic (Strictly Enforced):**
    -   First, identify skills explicitly listed in the "Consolidated Resume Source" that are relevant to the "Job Description". Rephrase these to tailor them.
    -   Second, if direct skills are limited, analyze work experiences in the source to infer transferable skills (e.g., "managed a project" implies 'Project Management') or soft skills (e.g., "trained new hires" implies 'Mentorship' and 'Communication').
    -   Third, if no relevant skills can be directly found or reasonably inferred, DO NOT invent a skills section or populate it with generic skills. It is better to have an empty skills section than a fabricated one.

---
**Consolidated Resume Source:**
{format_resume_sources(resume_texts)}

---
**Job Description:**
{job_description}
---

Generate the resume now.
"""


def build_tone_change_prompt(resume_text: str, tone: Tone | str) -> str:
    """Build the prompt that rewrites a draft in a different tone.

    Raises:
        ValueError: If ``tone`` is the base tone, which only the initial
            draft produces.
    """
    tone = Tone(tone)
    if tone not in REWRITE_TONES:
        raise ValueError(f"Tone '{tone.value}' cannot be produced by a tone change")

    tone_lines = "\n".join(
        f"- **{option.value}:** {_TONE_DESCRIPTIONS[option]}"
        for option in (Tone.CONFIDENT, Tone.EXPERT)
    )
    return f"""
ROLE: Resume editor.
TASK: Rewrite the "Current Resume" to adopt the specified "Requested Tone".

{FACTUAL_INTEGRITY_DIRECTIVE}

{FORMATTING_RULES}

**REQUESTED TONE: "{tone.value}"**
{tone_lines}

**INSTRUCTIONS:**
1.  Preserve the original structure.
2.  Output only the rewritten, full resume text.

---
**Current Resume:**
{resume_text}
---

Rewrite the resume in the "{tone.value}" tone now.
"""


def build_refine_prompt(
    draft: str,
    feedback: str,
    tone: Tone | str,
    best_practices_text: str = "",
    changelog_delimiter: str = CHANGELOG_DELIMITER,
) -> str:
    """Build the refinement prompt with its two-part output contract."""
    tone = Tone(tone)
    feedback_section = feedback if feedback.strip() else DEFAULT_REFINE_FEEDBACK

    best_practices_section = ""
    if best_practices_text.strip():
        best_practices_section = (
            f"---\n**Resume Best Practices to Incorporate:**\n{best_practices_text}\n---"
        )

    numbered_rules = FORMATTING_RULES.replace("\n- ", "\n    - ")
    return f"""
ROLE: Expert resume editor.
TASK: Refine the "Current Resume Draft".

**HIERARCHY OF INSTRUCTIONS (MOST IMPORTANT FIRST):**
1.  **USER FEEDBACK (ABSOLUTE PRIORITY):** You MUST precisely follow the user's feedback. This is your primary command.
2.  {numbered_rules}
3.  **BEST PRACTICES:** After applying the user's feedback, if any best practices are provided below, incorporate them.
4.  **TONE ADHERENCE:** All changes must strictly conform to the specified "{tone.value}" tone.
5.  **NO NEW INFORMATION:** Do not invent facts, skills, or experiences. All content must originate from the "Current Resume Draft".

---
**User Feedback:**
{feedback_section}
{best_practices_section}
---
**Current Resume Draft:**
{draft}
---

**OUTPUT FORMAT (ABSOLUTELY MANDATORY - FOLLOW THIS STRUCTURE EXACTLY):**
Your entire response must consist of exactly two parts separated by a specific delimiter. Do not add any conversational text, explanations, or preambles.

**Part 1: The Full Refined Resume**
Start your response with the first word of the refined resume. End this part with the last word of the refined resume.

**Part 2: The Delimiter and Changelog**
Immediately after the resume text, on a new line, you MUST include the exact delimiter:
{changelog_delimiter}
Immediately after the delimiter, provide a brief, high-level summary of the 3-5 most important changes made. Each point should be on its own line without any bullet characters.
---

Refine the resume now. Adhere strictly to all instructions and the two-part output format.
"""
