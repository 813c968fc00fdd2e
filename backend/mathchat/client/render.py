import re
from typing import List, Optional

from mathchat.models.schemas import ChatMessage, MathSolution, MessageRole

# Display delimiters models tend to leave around expressions
_DELIMITER_RE = re.compile(r"\\\[|\\\]|\\\(|\\\)|\\begin\{equation\}|\\end\{equation\}|\$\$|\$")


def clean_latex(latex: Optional[str]) -> str:
    """Strip math delimiters so the expression can be typeset as-is"""
    return _DELIMITER_RE.sub("", latex or "").strip()


def render_formulas(solution: MathSolution) -> List[str]:
    return [clean_latex(formula) for formula in solution.related_formulas]


def summary_text(solution: MathSolution) -> str:
    return f"{solution.problem_summary}\n\nFinal Result: {solution.final_answer}"


def render_solution(solution: MathSolution) -> str:
    """Plain-text rendering of a solution card"""
    lines = ["INQUIRY RESOLVED", solution.problem_summary, ""]

    for idx, step in enumerate(solution.steps, start=1):
        lines.append(f"Step {idx}: {step.title}")
        lines.append(f"  {step.description}")
        latex = clean_latex(step.latex)
        if latex:
            lines.append(f"    {latex}")
        lines.append("")

    lines.append(f"DEFINITIVE RESULT: {clean_latex(solution.final_answer)}")
    lines.append("")
    lines.append("MATHEMATICAL INSIGHT")
    lines.append(f'  "{solution.concept_explanation}"')

    formulas = render_formulas(solution)
    if formulas:
        lines.append("")
        lines.append("RELATED CORE")
        lines.extend(f"  - {formula}" for formula in formulas)

    return "\n".join(lines)


def render_message(message: ChatMessage) -> str:
    if message.role == MessageRole.USER:
        text = f"> {message.content}" if message.content else ">"
        if message.image:
            text += " [image attached]"
        return text

    if message.solution is not None:
        return render_solution(message.solution)
    return message.content
