"""
Categorizzazione automatica dei movimenti a parole chiave.

Le regole sono una LISTA ordinata (config.CATEGORY_RULES): si cerca ogni
parola chiave come sottostringa di descrizione + fornitore (minuscolo) e
vince la prima regola che trova qualcosa. Nessuna regola → OTHER / LOW.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from riconcilia.config import CATEGORY_RULES
from riconcilia.core.models import Category, Confidence


@dataclass(frozen=True)
class CategoryRule:
    keywords: Tuple[str, ...]
    category: Category
    confidence: Confidence


@dataclass(frozen=True)
class CategorisationResult:
    category: Category
    confidence: Confidence
    rule: str               # "keyword:<parola>" oppure "default"


DEFAULT_RESULT = CategorisationResult(Category.OTHER, Confidence.LOW, "default")


def build_rules(raw_rules: Iterable[Sequence]) -> List[CategoryRule]:
    """Converte le tuple di config in CategoryRule, mantenendo l'ordine."""
    rules = []
    for keywords, category, confidence in raw_rules:
        rules.append(CategoryRule(
            keywords=tuple(k.lower() for k in keywords),
            category=Category(category),
            confidence=Confidence(confidence),
        ))
    return rules


class RuleEngine:
    def __init__(self, rules: Optional[Iterable[Sequence]] = None):
        self.rules = build_rules(CATEGORY_RULES if rules is None else rules)

    def categorise(self, description: str, vendor_name: Optional[str] = None) -> CategorisationResult:
        haystack = " ".join([description or "", vendor_name or ""]).lower()
        for rule in self.rules:
            for keyword in rule.keywords:
                if keyword in haystack:
                    return CategorisationResult(rule.category, rule.confidence, f"keyword:{keyword}")
        return DEFAULT_RESULT


_default_engine = RuleEngine()


def categorise(description: str, vendor_name: Optional[str] = None) -> CategorisationResult:
    return _default_engine.categorise(description, vendor_name)
