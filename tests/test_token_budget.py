"""Tests for the payload token budget."""

from __future__ import annotations

from codelens.domain.entities import CodebasePayload, FileRecord
from codelens.services.token_budget import count_tokens, fit_payload, truncate_to_budget


def _payload(*sizes: int) -> CodebasePayload:
    return CodebasePayload(
        records=tuple(
            FileRecord(f"f{i}.py", "\n".join(f"value_{i}_{n} = {n}" for n in range(size)))
            for i, size in enumerate(sizes)
        )
    )


def test_payload_within_budget_is_returned_unchanged() -> None:
    payload = _payload(5, 5)
    assert fit_payload(payload, 10_000) is payload


def test_overflowing_payload_is_truncated_in_walk_order() -> None:
    payload = _payload(50, 2_000, 50)
    first_cost = count_tokens(payload.records[0].render())

    fitted = fit_payload(payload, first_cost + 500)

    assert fitted.paths == ["f0.py", "f1.py"]
    assert fitted.records[0] == payload.records[0]
    assert fitted.records[1].content.endswith("[… truncated to fit token budget]")
    # small slack: BPE merges across record boundaries are not strictly additive
    assert count_tokens(fitted.render()) <= first_cost + 520


def test_tiny_remainder_drops_the_file() -> None:
    payload = _payload(50, 2_000)
    first_cost = count_tokens(payload.records[0].render())

    fitted = fit_payload(payload, first_cost + 10)
    assert fitted.paths == ["f0.py"]


def test_truncate_to_budget_short_text_untouched() -> None:
    assert truncate_to_budget("short", 100) == "short"


def test_unknown_model_falls_back_to_default_encoding() -> None:
    assert count_tokens("hello world", "some-future-model") == count_tokens("hello world")
