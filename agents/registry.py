"""Oracle catalogue: names in ``OracleConfig.oracle_system`` -> oracle classes.

Oracles announce themselves with ``@register``; the catalogue keeps a one-line
summary for the CLI and lets each class check its slice of ``OracleConfig``
before anything is built, so a bad provider or model is reported at startup
rather than on the first trade.

Usage::

    from agents.registry import create_oracle

    oracle = create_oracle(config.oracle)
"""

from __future__ import annotations

import importlib
from typing import NamedTuple, Type

from agents.base import DecisionOracle
from models.config import OracleConfig

_BUILTIN_MODULES = ("agents.llm_oracle", "agents.rule_based")


class OracleEntry(NamedTuple):
    cls: Type[DecisionOracle]
    summary: str


_CATALOGUE: dict[str, OracleEntry] = {}


def register(name: str):
    """Class decorator: file a ``DecisionOracle`` subclass under *name*."""

    def _decorator(cls: Type[DecisionOracle]) -> Type[DecisionOracle]:
        existing = _CATALOGUE.get(name)
        if existing is not None and existing.cls is not cls:
            raise ValueError(
                f"Oracle name '{name}' is taken by {existing.cls.__qualname__}."
            )
        cls.name = name
        summary = (cls.__doc__ or "").strip().splitlines()
        _CATALOGUE[name] = OracleEntry(cls, summary[0] if summary else "")
        return cls

    return _decorator


def available_oracles() -> list[str]:
    _load_builtins()
    return sorted(_CATALOGUE)


def describe_oracles() -> dict[str, str]:
    """Name -> one-line summary, for ``--help`` output."""
    _load_builtins()
    return {name: _CATALOGUE[name].summary for name in sorted(_CATALOGUE)}


def create_oracle(config: OracleConfig) -> DecisionOracle:
    """Check *config* against the selected oracle and instantiate it.

    Raises ``KeyError`` for an unregistered ``oracle_system`` and
    ``ValueError`` when the oracle rejects the rest of the config.
    """
    _load_builtins()

    entry = _CATALOGUE.get(config.oracle_system)
    if entry is None:
        raise KeyError(
            f"Unknown decision oracle '{config.oracle_system}'. "
            f"Available: {', '.join(sorted(_CATALOGUE)) or '(none)'}."
        )
    entry.cls.check_config(config)
    return entry.cls(config)


def _load_builtins() -> None:
    for module in _BUILTIN_MODULES:
        importlib.import_module(module)
