from __future__ import annotations

MATCH_SCORE_PROMPT = """
Analyze the following job description and user profile to determine if this is a good match.

Job Description:
{job_text}

User Profile:
- Skills: {skills}
- Experience: {experience_years} years
- Summary: {summary}
- Preferred Industries: {industries}
- Preferred Locations: {locations}
- Remote preferred: {remote}

Respond ONLY with a JSON object containing:
- is_match: boolean
- match_score: number (0-100)
- reasoning: string (brief explanation)
""".strip()

FORM_ANALYSIS_PROMPT = """
Analyze this job application form and identify all the form fields that need to be filled.
A screenshot of the rendered page may be attached.

Form markup (truncated):
{form_markup}

Respond ONLY with a JSON object containing:
- success: boolean
- fields: object mapping a CSS selector to a field type

Field types: "first_name", "last_name", "full_name", "email", "phone", "location",
"linkedin_url", "website_url", "resume_upload", "cover_letter", "submit_button".
Selectors must be usable with document.querySelector.
""".strip()
