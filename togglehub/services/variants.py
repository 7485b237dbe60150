"""
Variant selection for evaluated toggles.
"""

import hashlib
import random

from togglehub.schemas.frontend import DISABLED_VARIANT, EvaluatedVariant, EvaluationContext


DEFAULT_STICKINESS = "default"
STICKINESS_FALLBACK = ("userId", "sessionId", "remoteAddress")


def normalized_hash(identifier: str, group_id: str, normalizer: int = 100) -> int:
    """Map (group, identifier) onto 1..normalizer, stable across processes."""
    digest = hashlib.md5(f"{group_id}:{identifier}".encode("utf-8")).hexdigest()
    return int(digest[:8], 16) % normalizer + 1


def _stickiness_value(stickiness: str, context: EvaluationContext) -> str:
    if stickiness != DEFAULT_STICKINESS:
        value = context.get(stickiness)
        if value is not None:
            return str(value)
    for name in STICKINESS_FALLBACK:
        value = context.get(name)
        if value is not None:
            return str(value)
    return str(random.random())


def select_variant(
    toggle_name: str,
    variants: list[dict],
    context: EvaluationContext,
) -> EvaluatedVariant:
    """
    Pick a variant by weight.

    The same toggle and stickiness value always land on the same
    variant. Toggles without weighted variants get the disabled variant.
    """
    total_weight = sum(v.get("weight", 0) for v in variants)
    if not variants or total_weight <= 0:
        return DISABLED_VARIANT

    stickiness = variants[0].get("stickiness") or DEFAULT_STICKINESS
    target = normalized_hash(_stickiness_value(stickiness, context), toggle_name, total_weight)

    counter = 0
    for variant in variants:
        weight = variant.get("weight", 0)
        if weight <= 0:
            continue
        counter += weight
        if counter >= target:
            return EvaluatedVariant(
                name=variant["name"],
                enabled=True,
                payload=variant.get("payload"),
            )
    return DISABLED_VARIANT
