from unittest import mock

from jobfinder.criteria import (
    CRITERIA_LABELS,
    FilterCriteria,
    apply_filter_criteria,
    extract_filter_criteria,
)
from jobfinder.errors import InferenceError
from jobfinder.inference import InferenceClient
from jobfinder.matching import SearchResult

from .conftest import FakeInferenceClient


def _result(job_id, **fields):
    defaults = dict(job_title="Engineer", job_description="", job_type="Full-time")
    defaults.update(fields)
    return SearchResult(id=job_id, score=0.1, **defaults)


def test_assigns_field_when_top_score_above_threshold():
    classifier = FakeInferenceClient(label_scores={
        "Berlin": ("location", 0.92),
        "Ledgerly": ("company", 0.81),
        "contract": ("job type", 0.7),
    })
    criteria = extract_filter_criteria("frontend Berlin Ledgerly contract", classifier)
    assert criteria.location == "Berlin"
    assert criteria.company == "Ledgerly"
    assert criteria.job_type == "contract"
    assert criteria.job_title is None
    assert criteria.salary is None
    assert classifier.classify_calls == ["frontend", "Berlin", "Ledgerly", "contract"]


def test_score_at_threshold_is_not_assigned():
    classifier = FakeInferenceClient(label_scores={"Berlin": ("location", 0.5)})
    assert extract_filter_criteria("Berlin", classifier).is_empty()


def test_later_token_overwrites_field():
    classifier = FakeInferenceClient(label_scores={
        "New": ("location", 0.6),
        "York": ("location", 0.7),
    })
    assert extract_filter_criteria("New York", classifier).location == "York"


def test_salary_and_title_labels_map_to_fields():
    classifier = FakeInferenceClient(label_scores={
        "100k": ("salary", 0.9),
        "nurse": ("job title", 0.8),
    })
    criteria = extract_filter_criteria("nurse 100k", classifier)
    assert criteria.active() == {"job_title": "nurse", "salary": "100k"}


def test_classifier_receives_all_labels():
    seen = []

    class RecordingClassifier(FakeInferenceClient):
        def classify(self, text, labels):
            seen.append(list(labels))
            return super().classify(text, labels)

    extract_filter_criteria("remote", RecordingClassifier())
    assert seen == [CRITERIA_LABELS]


def test_classifier_outage_keeps_criteria_found_so_far():
    class FlakyClassifier(FakeInferenceClient):
        def classify(self, text, labels):
            if text == "broken":
                self.classify_calls.append(text)
                raise InferenceError("timeout")
            return super().classify(text, labels)

    classifier = FlakyClassifier(label_scores={"Austin": ("location", 0.9), "nurse": ("job title", 0.9)})
    criteria = extract_filter_criteria("Austin broken nurse contract", classifier)
    assert criteria.active() == {"location": "Austin"}
    assert classifier.classify_calls == ["Austin", "broken"]


def test_service_outage_costs_one_retry_budget():
    session = mock.Mock()
    session.headers = {}
    unavailable = mock.Mock(status_code=503)
    session.post.return_value = unavailable
    client = InferenceClient(api_key="hf_test", base_url="https://inference.test/models",
                             timeout=5, max_retries=3, backoff_base=0, session=session)

    criteria = extract_filter_criteria("remote senior python engineer Berlin", client)

    assert criteria.is_empty()
    assert session.post.call_count == 4


def test_empty_query_yields_empty_criteria():
    classifier = FakeInferenceClient()
    assert extract_filter_criteria("   ", classifier).is_empty()
    assert classifier.classify_calls == []


def test_filter_matches_substring_case_insensitively():
    results = [
        _result("1", location="Remote", company="Northwind Labs"),
        _result("2", location="Austin, TX", company="Lakeside"),
        _result("3", location="remote (US only)", company="Ledgerly"),
    ]
    filtered = apply_filter_criteria(results, FilterCriteria(location="REMOTE"))
    assert [r.id for r in filtered] == ["1", "3"]


def test_filter_requires_every_field():
    results = [
        _result("1", location="Remote", company="Northwind Labs"),
        _result("2", location="Remote", company="Ledgerly"),
    ]
    filtered = apply_filter_criteria(results, FilterCriteria(location="remote", company="ledgerly"))
    assert [r.id for r in filtered] == ["2"]


def test_filter_ignores_salary_and_missing_criteria():
    results = [_result("1", salary="$50,000"), _result("2", salary=None)]
    assert apply_filter_criteria(results, FilterCriteria(salary="100k")) == results
    assert apply_filter_criteria(results, None) == results
