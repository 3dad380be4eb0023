"""
Cross-document validation engine.

Builds alignments once per bundle, runs every registered rule against them,
and aggregates the findings into a ValidationResult. A rule that raises or
times out is logged and contributes no issues; the run still completes.
"""

import asyncio
import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from alignment.builder import build_alignments
from alignment.links import Alignments
from core.config import EngineConfig
from core.errors import RuleExecutionError
from core.logging_config import RuleLoggerAdapter
from documents.schema import CrossDocBundle
from rules.base import Category, Issue, Severity
from rules.registry import RegisteredRule, RuleRegistry, create_default_registry

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    """Flat issue list plus severity counts and per-category buckets."""
    issues: List[Issue] = field(default_factory=list)
    summary: Dict[str, int] = field(default_factory=dict)
    by_category: Dict[Category, List[Issue]] = field(default_factory=dict)

    @property
    def critical_count(self) -> int:
        return self.summary.get(Severity.CRITICAL.value, 0)

    @property
    def has_critical(self) -> bool:
        return self.critical_count > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'summary': dict(self.summary),
            'issues': [i.to_dict() for i in self.issues],
            'byCategory': {
                category.value: [i.to_dict() for i in issues]
                for category, issues in self.by_category.items()
            },
        }


def build_validation_result(issues: Sequence[Issue]) -> ValidationResult:
    """
    Aggregate issues into a ValidationResult.

    Summary counts every issue by severity. ``by_category`` always holds all
    six categories; issues without a category stay in ``issues`` only.
    """
    issues = list(issues)

    summary = {severity.value: 0 for severity in Severity}
    for issue in issues:
        summary[Severity(issue.severity).value] += 1
    summary['total'] = len(issues)

    by_category: Dict[Category, List[Issue]] = {category: [] for category in Category}
    for issue in issues:
        if issue.category is not None:
            by_category[Category(issue.category)].append(issue)

    return ValidationResult(issues=issues, summary=summary, by_category=by_category)


class CrossDocEngine:
    """
    Runs a rule registry over a document bundle.

    Rules run sequentially in registry order unless ``config.parallel_rules``
    is set. Either way issues are concatenated in registry order.
    """

    def __init__(
        self,
        registry: Optional[RuleRegistry] = None,
        config: Optional[EngineConfig] = None,
    ):
        self.registry = registry if registry is not None else RuleRegistry()
        self.config = config or EngineConfig()

    @classmethod
    def create_default(cls, config: Optional[EngineConfig] = None) -> "CrossDocEngine":
        """Engine loaded with the full rule library."""
        return cls(registry=create_default_registry(), config=config)

    async def run(self, bundle: CrossDocBundle) -> ValidationResult:
        """Validate a bundle."""
        alignments = build_alignments(bundle, self.config)
        rules = self.registry.get_all()

        if self.config.parallel_rules:
            batches = await asyncio.gather(
                *(self._run_rule(rule, bundle, alignments) for rule in rules)
            )
        else:
            batches = []
            for rule in rules:
                batches.append(await self._run_rule(rule, bundle, alignments))

        issues: List[Issue] = []
        for batch in batches:
            issues.extend(batch or [])

        result = build_validation_result(issues)
        failed = sum(1 for batch in batches if batch is None)
        logger.info(
            f"Cross-document validation: {len(rules)} rules, {result.summary['total']} issues "
            f"({result.summary['critical']} critical, {result.summary['error']} errors, "
            f"{result.summary['warning']} warnings, {result.summary['info']} info)"
            + (f", {failed} rule(s) failed" if failed else "")
        )
        return result

    def run_sync(self, bundle: CrossDocBundle) -> ValidationResult:
        """Blocking wrapper around ``run`` for callers without an event loop."""
        return asyncio.run(self.run(bundle))

    async def _run_rule(
        self,
        rule: RegisteredRule,
        bundle: CrossDocBundle,
        alignments: Alignments,
    ) -> Optional[List[Issue]]:
        """Run one rule; None marks a rule that raised or timed out."""
        rule_logger = RuleLoggerAdapter(logger, {
            'rule': rule.name,
            'category': rule.category.value if rule.category else '',
        })
        try:
            if self.config.rule_timeout:
                issues = await asyncio.wait_for(rule(bundle, alignments), self.config.rule_timeout)
            else:
                issues = await rule(bundle, alignments)
            issues = list(issues or [])
            for item in issues:
                if not isinstance(item, Issue):
                    raise TypeError(f"expected Issue, got {type(item).__name__}")
        except asyncio.TimeoutError as e:
            error = RuleExecutionError(
                f"Rule {rule.name} timed out after {self.config.rule_timeout}s",
                rule=rule.name, cause=e,
            )
            rule_logger.error(str(error))
            return None
        except Exception as e:
            error = RuleExecutionError(f"Rule {rule.name} failed: {e}", rule=rule.name, cause=e)
            rule_logger.error(str(error), exc_info=error)
            return None

        rule_logger.debug(f"{rule.name}: {len(issues)} issue(s)")
        return issues


def save_validation_report(result: ValidationResult, output_dir: str) -> str:
    """Save validation result to output directory.

    Returns the path to the saved file.
    """
    os.makedirs(output_dir, exist_ok=True)
    path = os.path.join(output_dir, 'validation_report.json')
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(result.to_dict(), f, indent=2)
    logger.info(f"Saved validation report to {path}")
    return path
