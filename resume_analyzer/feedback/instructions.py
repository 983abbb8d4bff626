"""Prompt construction for résumé feedback."""

SECTIONS = ("toneAndStyle", "content", "structure", "skills")

_SECTION_FORMAT = """  {name}: {{
    score: number; // max 100
    tips: {{
      type: "good" | "improve";
      tip: string; // short title for the explanation
      explanation: string; // explain in detail here
    }}[]; // give 3-4 tips
  }};"""

RESPONSE_FORMAT = "\n".join(
    [
        "interface Feedback {",
        "  overallScore: number; // max 100",
        "  ATS: {",
        "    score: number; // rate based on ATS suitability",
        "    tips: {",
        '      type: "good" | "improve";',
        "      tip: string; // give 3-4 tips",
        "    }[];",
        "  };",
    ]
    + [_SECTION_FORMAT.format(name=name) for name in SECTIONS]
    + ["}"]
)


def prepare_instructions(job_title: str, job_description: str) -> str:
    """Build the review instructions sent alongside the résumé."""
    return f"""You are an expert in ATS (Applicant Tracking System) and resume analysis.
Please analyze and rate this resume and suggest how to improve it.
The rating can be low if the resume is bad.
Be thorough and detailed. Point out any mistakes or areas for improvement.
If there is a lot to improve, do not hesitate to give low scores.
If provided, take the job description into consideration.
The job title is: {job_title}
The job description is: {job_description}
Provide the feedback using the following format:
{RESPONSE_FORMAT}
Return the analysis as a JSON object, without any other text and without backticks.
Do not include any other text or comments."""
