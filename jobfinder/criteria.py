"""
Best-effort extraction of structured filter criteria from a free-text query.

Each whitespace-separated token is classified on its own, so multi-word
values such as "New York" end up split across two classifications.
"""

from dataclasses import dataclass, asdict
from typing import Dict, List, Optional, Sequence

from rich.console import Console

from .errors import ServiceUnavailableError

console = Console()

CRITERIA_LABELS = ["location", "job title", "company", "job type", "salary"]

LABEL_TO_FIELD = {
    "location": "location",
    "job title": "job_title",
    "company": "company",
    "job type": "job_type",
    "salary": "salary",
}

# Criteria fields that can be matched against result fields; salary is free-form
FILTERABLE_FIELDS = ("location", "job_title", "job_type", "company")


@dataclass
class FilterCriteria:
    location: Optional[str] = None
    job_title: Optional[str] = None
    job_type: Optional[str] = None
    company: Optional[str] = None
    salary: Optional[str] = None

    def active(self) -> Dict[str, str]:
        """Only the fields that were assigned."""
        return {key: value for key, value in asdict(self).items() if value is not None}

    def is_empty(self) -> bool:
        return not self.active()


def extract_filter_criteria(query: str, classifier, threshold: float = 0.5,
                            labels: Sequence[str] = CRITERIA_LABELS) -> FilterCriteria:
    """
    Guess filter criteria by classifying each query token.

    A token is assigned to the field of its top label when the top score is
    strictly greater than `threshold`; later tokens overwrite earlier ones.
    If the classifier becomes unavailable, the criteria found so far are
    returned and the remaining tokens are not sent.
    """
    criteria = FilterCriteria()

    for token in (query or "").split():
        try:
            result = classifier.classify(token, labels)
        except ServiceUnavailableError as e:
            console.print(f"[yellow]Warning: Could not classify '{token}', skipping remaining criteria: {e}[/yellow]")
            break

        label, score = result.top()
        if label is None or score <= threshold:
            continue

        field_name = LABEL_TO_FIELD.get(label)
        if field_name:
            setattr(criteria, field_name, token)

    return criteria


def apply_filter_criteria(results: List, criteria: Optional[FilterCriteria]) -> List:
    """Keep results whose fields contain every assigned criterion (case-insensitive)."""
    if criteria is None:
        return list(results)

    wanted = {k: v.lower() for k, v in criteria.active().items() if k in FILTERABLE_FIELDS}
    if not wanted:
        return list(results)

    filtered = []
    for result in results:
        if all(value in str(getattr(result, field_name, "") or "").lower()
               for field_name, value in wanted.items()):
            filtered.append(result)
    return filtered
