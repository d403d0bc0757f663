"""Deterministic token budget for the prompt payload.

Uses ``tiktoken`` for exact token counting so the concatenated repository
never overflows the model's context window.  Files are kept in walk order
until the budget is spent; the file that crosses the limit is truncated at
a line boundary and everything after it is dropped.
"""

from __future__ import annotations

import logging
from functools import lru_cache

import tiktoken

from codelens.domain.entities import CodebasePayload, FileRecord

logger = logging.getLogger(__name__)

_FALLBACK_ENCODING = "o200k_base"  # GPT-4o family
_TRUNCATION_NOTE = "\n[… truncated to fit token budget]"

# A truncated tail smaller than this is not worth sending.
_MIN_TAIL_TOKENS = 64


@lru_cache(maxsize=8)
def _get_encoder(model: str | None) -> tiktoken.Encoding:
    if model:
        try:
            return tiktoken.encoding_for_model(model)
        except KeyError:
            logger.debug("No tiktoken encoding registered for %s — using %s", model, _FALLBACK_ENCODING)
    return tiktoken.get_encoding(_FALLBACK_ENCODING)


def count_tokens(text: str, model: str | None = None) -> int:
    """Return the exact token count for *text*."""
    return len(_get_encoder(model).encode(text))


def truncate_to_budget(text: str, max_tokens: int, model: str | None = None) -> str:
    """Truncate *text* to fit within *max_tokens*, cutting at line boundaries."""
    encoder = _get_encoder(model)
    tokens = encoder.encode(text)
    if len(tokens) <= max_tokens:
        return text

    truncated = encoder.decode(tokens[:max_tokens])

    last_nl = truncated.rfind("\n")
    if last_nl > len(truncated) // 2:
        truncated = truncated[: last_nl + 1]

    return truncated + _TRUNCATION_NOTE


def fit_payload(
    payload: CodebasePayload,
    max_tokens: int,
    model: str | None = None,
) -> CodebasePayload:
    """Return a payload whose rendered form fits in *max_tokens*."""
    kept: list[FileRecord] = []
    remaining = max_tokens

    for record in payload.records:
        cost = count_tokens(record.render(), model)
        if cost <= remaining:
            kept.append(record)
            remaining -= cost
            continue

        # Marker line and separators also cost tokens.
        overhead = count_tokens(FileRecord(path=record.path, content="").render(), model)
        room = remaining - overhead - count_tokens(_TRUNCATION_NOTE, model)
        if room >= _MIN_TAIL_TOKENS:
            kept.append(
                FileRecord(
                    path=record.path,
                    content=truncate_to_budget(record.content, room, model),
                )
            )

        dropped = len(payload.records) - len(kept)
        logger.warning(
            "Payload exceeds %d tokens; truncated at %s, %d file(s) dropped",
            max_tokens,
            record.path,
            dropped,
        )
        break
    else:
        return payload

    return CodebasePayload(records=tuple(kept))
