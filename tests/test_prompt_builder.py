"""Tests for prompt assembly."""

from __future__ import annotations

from codelens.domain.entities import CodebasePayload, FileRecord
from codelens.services.prompt_builder import INSTRUCTIONS, build_prompt


def test_prompt_is_instructions_then_codebase() -> None:
    payload = CodebasePayload(
        records=(FileRecord("src/a.ts", "const a = 1;"), FileRecord("README", "hi"))
    )
    prompt = build_prompt(payload)

    assert prompt.startswith(INSTRUCTIONS)
    body = prompt[len(INSTRUCTIONS):]
    assert body.index("FILE: src/a.ts") < body.index("FILE: README")
    assert "---\nconst a = 1;" in body


def test_instructions_name_every_output_field() -> None:
    for field in ('"summary"', '"documentation"', '"mermaid"', '"analysis"'):
        assert field in INSTRUCTIONS
    assert "DO NOT wrap the mermaid code" in INSTRUCTIONS
