"""
Rule registry.

An explicit, ordered collection of rules handed to the engine. The default
registry is built fresh on every call so tests can substitute or extend rule
sets without touching shared state.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from alignment.links import Alignments
from documents.schema import CrossDocBundle
from .base import Category, Issue, RuleFunction
from .global_rules import GLOBAL_RULES
from .ib_protocol import IB_PROTOCOL_RULES
from .protocol_csr import PROTOCOL_CSR_RULES
from .protocol_icf import PROTOCOL_ICF_RULES
from .protocol_sap import PROTOCOL_SAP_RULES
from .sap_csr import SAP_CSR_RULES

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegisteredRule:
    """A rule plus the metadata used for logging."""
    name: str
    fn: RuleFunction
    category: Optional[Category] = None

    async def __call__(self, bundle: CrossDocBundle, alignments: Alignments) -> List[Issue]:
        return await self.fn(bundle, alignments)


class RuleRegistry:
    """
    Ordered registry of cross-document rules.

    Rules run in registration order; registering an existing name replaces
    the rule in place.
    """

    def __init__(self, rules: Optional[Iterable[RuleFunction]] = None):
        self._rules: Dict[str, RegisteredRule] = {}
        self._order: List[str] = []
        for rule in rules or []:
            self.register(rule)

    def register(
        self,
        rule: RuleFunction,
        name: Optional[str] = None,
        category: Optional[Category] = None,
    ) -> RegisteredRule:
        """
        Register a rule.

        Args:
            rule: Async callable ``(bundle, alignments) -> List[Issue]``
            name: Registry key; defaults to the function name
            category: Category used for log context

        Returns:
            The registered entry
        """
        key = (name or getattr(rule, '__name__', None) or repr(rule)).lower()
        if key in self._rules:
            logger.warning(f"Rule '{key}' already registered, replacing")
        entry = RegisteredRule(name=key, fn=rule, category=category)
        self._rules[key] = entry
        if key not in self._order:
            self._order.append(key)
        return entry

    def get(self, name: str) -> Optional[RegisteredRule]:
        """Get a rule by name."""
        return self._rules.get(name.lower())

    def get_all(self) -> List[RegisteredRule]:
        """Get all registered rules in order."""
        return [self._rules[name] for name in self._order]

    def names(self) -> List[str]:
        """Get all registered rule names in order."""
        return list(self._order)

    def has(self, name: str) -> bool:
        return name.lower() in self._rules

    def __contains__(self, name: str) -> bool:
        return self.has(name)

    def __len__(self) -> int:
        return len(self._rules)

    def reset(self) -> None:
        """Remove all rules."""
        self._rules.clear()
        self._order.clear()


DEFAULT_RULE_GROUPS = [
    (Category.IB_PROTOCOL, IB_PROTOCOL_RULES),
    (Category.PROTOCOL_SAP, PROTOCOL_SAP_RULES),
    (Category.PROTOCOL_ICF, PROTOCOL_ICF_RULES),
    (Category.PROTOCOL_CSR, PROTOCOL_CSR_RULES),
    (Category.SAP_CSR, SAP_CSR_RULES),
    (Category.GLOBAL, GLOBAL_RULES),
]


def create_default_registry() -> RuleRegistry:
    """Create a fresh registry holding the full rule library."""
    registry = RuleRegistry()
    for category, rules in DEFAULT_RULE_GROUPS:
        for rule in rules:
            registry.register(rule, category=category)
    return registry
