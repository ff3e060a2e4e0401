from __future__ import annotations

from bs4 import BeautifulSoup
from soupsieve import SelectorSyntaxError

from modules.snapshot.adapters.schemas import RuleResult, ValidationMode, ValidationRule
from modules.snapshot.domain.errors import MalformedInputError


def parse_document(dom: str) -> BeautifulSoup:
    return BeautifulSoup(dom or "", "html.parser")


def selector_contains_text(document: BeautifulSoup, selector: str, expected_text: str) -> bool:
    """True when any element matched by ``selector`` has ``expected_text`` in its text.

    Matches are visited in document order and the first hit wins. A selector that
    matches nothing is simply not found.
    """
    try:
        matches = document.select(selector)
    except SelectorSyntaxError as exc:
        raise MalformedInputError(f"invalid selector {selector!r}: {exc}") from exc
    for element in matches:
        if expected_text in element.get_text():
            return True
    return False


def substring_contains_text(dom: str, selector: str, expected_text: str) -> bool:
    """Approximate check: both strings appear somewhere in the raw markup.

    This cannot tell whether the text lives inside the selected element, so text
    elsewhere in the page produces a false positive.
    """
    return selector in dom and expected_text in dom


def evaluate_rules(
    dom: str, rules: list[ValidationRule], mode: ValidationMode = ValidationMode.selector
) -> list[RuleResult]:
    results: list[RuleResult] = []
    if mode is ValidationMode.substring:
        for rule in rules:
            found = substring_contains_text(dom or "", rule.selector, rule.text)
            results.append(RuleResult(selector=rule.selector, expected_text=rule.text, found=found))
        return results

    document = parse_document(dom)
    for rule in rules:
        found = selector_contains_text(document, rule.selector, rule.text)
        results.append(RuleResult(selector=rule.selector, expected_text=rule.text, found=found))
    return results
