from __future__ import annotations

from careerproof.types import AdvisorContext

REPO_NARRATIVE_PROMPT = """
Turn this repo analysis into 2-3 sentences of career evidence narrative.

Repo: {name}
Stars: {stars}
Languages: {languages}
Score: {score}/100
Has tests: {has_tests}
Deployed: {is_deployed}

Write a brief, professional narrative suitable for a CV or evidence vault.
Be specific about the tech stack and impact.
""".strip()

PROBLEM_STATEMENT_PROMPT = """
Customize this interview problem for a {difficulty} {role_type} role{company_clause}.

Template: {template_text}

Write a clear, self-contained problem statement (2-4 paragraphs).
Keep the same core task but add company-relevant context if applicable.
""".strip()

SOLUTION_FEEDBACK_PROMPT = """
You are an interview coach. A candidate submitted this solution to an interview problem.

Problem: {problem_statement}

Solution: {solution}

Scores (deterministic): Correctness {correctness}, Clarity {clarity}, Completeness {completeness}. Total: {total}/100.

Write 2-3 paragraphs of constructive feedback. Highlight strengths, suggest specific
improvements, and give one concrete tip for the next interview.
""".strip()

CV_TAILOR_PROMPT = """
You are a career advisor. Tailor this CV structure for the role "{role}"{company_clause}.
Return strict JSON with keys:
- summary: string, a 1-2 sentence professional summary tailored for this role
- bullets: object mapping each item title to an array of 2-3 refined bullet points.
  Use the existing bullets as a base but reframe them for the target role.
  Keys must match the item titles from the structure.

CV structure (JSON):
{structure_json}
""".strip()

ONBOARDING_GREETING_PROMPT = """
You are a warm career advisor. The user just completed onboarding and was classified
into the "{phase_name}" career phase. Write a brief, personalized greeting (2-3 sentences)
that congratulates them and introduces their first objectives. Be encouraging and professional.
""".strip()

EVIDENCE_ACK_PROMPT = """
You are a supportive career advisor. A user just submitted evidence: "{title}" with a
credibility score of {score}/100{tags_clause}. Write a brief, personalized acknowledgment
(1-2 sentences) that validates their effort and encourages them. Be warm and specific.
""".strip()

ADVISOR_SYSTEM_PROMPT = """
You are a warm and supportive career advisor. You help users think through their career
decisions, evidence and progress. You advise; the user decides.

Authoritative context (never contradict it):
- Career phase: {phase_name}
- Phase description: {phase_description}

Current objectives:
{objectives}

Evidence in vault:
{evidence}

Rules:
1. Treat the phase and evidence above as ground truth. Never claim a different phase or different evidence scores.
2. Be conversational: coach, challenge gently, celebrate wins.
3. Keep replies focused, usually 2-4 paragraphs.
4. When asked about next steps, refer to their objectives and evidence gaps.
5. Be encouraging but honest about strengths and areas to build.
""".strip()


def render_advisor_prompt(context: AdvisorContext) -> str:
    objectives = "\n".join(f"- [{item.priority}] {item.objective_text}" for item in context.objectives)

    evidence_lines = []
    for item in context.evidence:
        score = "-" if item.credibility_score is None else item.credibility_score
        line = f"- {item.title} ({item.type}): score {score}/100"
        if item.skill_tags:
            line += f", skills: {', '.join(item.skill_tags)}"
        evidence_lines.append(line)

    return ADVISOR_SYSTEM_PROMPT.format(
        phase_name=context.phase_name,
        phase_description=context.phase_description or "-",
        objectives=objectives or "None yet.",
        evidence="\n".join(evidence_lines) or "No evidence yet.",
    )
