"""Prompt assembly — fixed instructions followed by the repository payload."""

from __future__ import annotations

from codelens.domain.entities import CodebasePayload

INSTRUCTIONS = """\
You are an elite software architect and systems analyst.
Analyze the provided codebase and generate a comprehensive response in JSON format.
The JSON must include:
1. "summary": A concise overview of the project's purpose and technology stack.
2. "documentation": A detailed technical documentation/README including \
architecture, key modules, and setup.
3. "mermaid": A VALID Mermaid.js diagram (strictly flowchart TD or architecture diagram).
   CRITICAL RULES for Mermaid:
   - DO NOT wrap the mermaid code in markdown code blocks (e.g., no ```mermaid).
   - ALWAYS wrap node labels in double quotes (e.g., A["Label Text"]).
   - Use only valid Mermaid syntax.
   - Avoid special characters like (), [], {}, <>, :, ; unless they are inside quotes.
4. "analysis": An array of objects each with "type" (security, performance, quality), \
"severity" (low, medium, high), and "description".
"""


def build_prompt(payload: CodebasePayload) -> str:
    """Return the full model request: instructions, then the serialised codebase."""
    return f"{INSTRUCTIONS}\nCODEBASE:\n{payload.render()}"
