"""Turn an oracle's free-form text into a validated ``TradeDecision`` or ``TokenAnalysis``."""

from __future__ import annotations

import json
import re

from pydantic import ValidationError

from models.analysis import TokenAnalysis
from models.decision import TradeDecision
from models.market import PairSnapshot
from simulation.errors import InvalidDecision

_FENCED = re.compile(r"```(?:json)?\s*([\s\S]*?)```")


def extract_json_object(text: str) -> dict:
    """Parse the first JSON object in *text*, handling markdown code blocks.

    Raises ``InvalidDecision`` when no object can be decoded.
    """
    match = _FENCED.search(text)
    candidate = (match.group(1) if match else text).strip()

    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError:
        # Fall back to the outermost braces when the model wrapped the JSON in prose.
        start, end = candidate.find("{"), candidate.rfind("}")
        if start == -1 or end <= start:
            raise InvalidDecision("Oracle response contains no JSON object.") from None
        try:
            parsed = json.loads(candidate[start : end + 1])
        except json.JSONDecodeError as exc:
            raise InvalidDecision(f"Oracle response is not valid JSON: {exc.msg}.") from exc

    if not isinstance(parsed, dict):
        raise InvalidDecision(f"Expected a JSON object, got {type(parsed).__name__}.")
    return parsed


def parse_decision(text: str, expected_address: str | None = None) -> TradeDecision:
    """Validate *text* into a ``TradeDecision``.

    When *expected_address* is given the decision must be about that token;
    a missing ``address`` is filled in with it.
    """
    if not text or not text.strip():
        raise InvalidDecision("Oracle returned an empty response.")

    raw = extract_json_object(text)
    if expected_address is not None:
        raw.setdefault("address", expected_address)

    try:
        decision = TradeDecision.model_validate(raw)
    except ValidationError as exc:
        raise InvalidDecision(f"Oracle decision failed validation: {_describe(exc)}") from exc

    if expected_address is not None and decision.address != expected_address.lower():
        raise InvalidDecision(
            f"Oracle decided on {decision.address}, but {expected_address} was requested."
        )
    return decision


def parse_analysis(text: str, pair: PairSnapshot) -> TokenAnalysis:
    """Validate *text* into a ``TokenAnalysis`` of *pair*.

    Address and symbol always come from *pair*, whatever the oracle wrote.
    """
    if not text or not text.strip():
        raise InvalidDecision("Oracle returned an empty analysis.")

    raw = extract_json_object(text)
    raw["address"] = pair.address
    raw["symbol"] = pair.symbol

    try:
        return TokenAnalysis.model_validate(raw)
    except ValidationError as exc:
        raise InvalidDecision(f"Oracle analysis failed validation: {_describe(exc)}") from exc


def _describe(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or 'root'}: {err['msg']}"
        for err in exc.errors()
    )
