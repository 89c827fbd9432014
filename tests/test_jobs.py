import json
from pathlib import Path

import pytest

from jobfinder.errors import CorpusLoadError
from jobfinder.jobs import JobCorpus, JobPosting, deduplicate_job_ids, load_corpus

DATA_FILE = Path(__file__).resolve().parent.parent / "data" / "job_postings.json"


def _postings(*ids):
    return [JobPosting(job_id=job_id, job_title=f"Job {n}") for n, job_id in enumerate(ids)]


def test_deduplicate_appends_index_until_unique():
    unique = deduplicate_job_ids(_postings("1", "2", "1", "2", "1_2"))
    assert [p.job_id for p in unique] == ["1", "2", "1_2", "2_3", "1_2_4"]


def test_deduplicate_ids_are_pairwise_distinct():
    unique = deduplicate_job_ids(_postings("7", "7", "7", "7", "7_1", "7_2"))
    ids = [p.job_id for p in unique]
    assert len(ids) == len(set(ids))


def test_deduplicate_leaves_input_untouched():
    original = _postings("1", "1")
    deduplicate_job_ids(original)
    assert [p.job_id for p in original] == ["1", "1"]


def test_deduplicate_keeps_other_fields():
    unique = deduplicate_job_ids(_postings("1", "1"))
    assert unique[1].job_title == "Job 1"


def test_corpus_lookup_by_string_or_number(corpus):
    assert corpus.get("1").job_title == "Remote Software Engineer"
    assert corpus.get(5).job_title == "Frontend Developer"
    assert corpus.get("1_2").job_title == "Warehouse Associate"
    assert corpus.get("missing") is None


def test_corpus_documents_follow_ids(corpus):
    assert corpus.ids() == ["1", "2", "1_2", "4", "5"]
    assert corpus.documents()[0] == (
        "Remote Software Engineer. Build backend services for a distributed team. Full-time"
    )


def test_from_dict_accepts_camel_case_and_stringifies():
    posting = JobPosting.from_dict({
        "jobId": 12,
        "jobTitle": "Data Analyst",
        "jobDescription": "Dashboards",
        "jobType": "Contract",
        "salary": 50000,
        "jobResponsibilities": ["SQL"],
        "unknownField": "ignored",
    })
    assert posting.job_id == "12"
    assert posting.salary == "50000"
    assert posting.job_responsibilities == ["SQL"]


def test_from_dict_requires_id():
    with pytest.raises(ValueError):
        JobPosting.from_dict({"jobTitle": "No id"})


def test_load_bundled_corpus():
    corpus = load_corpus(DATA_FILE)
    ids = corpus.ids()
    assert len(corpus) == 8
    assert len(ids) == len(set(ids))
    assert corpus.get("2_3").job_title == "Marketing Coordinator"
    assert corpus.get("1_7").job_title == "Customer Support Specialist"


def test_load_corpus_with_jobs_key(tmp_path):
    path = tmp_path / "jobs.json"
    path.write_text(json.dumps({"jobs": [{"jobId": "a", "jobTitle": "A"}]}))
    corpus = load_corpus(path)
    assert isinstance(corpus, JobCorpus)
    assert corpus.ids() == ["a"]


def test_missing_corpus_file(tmp_path):
    with pytest.raises(CorpusLoadError, match="nope.json"):
        load_corpus(tmp_path / "nope.json")


@pytest.mark.parametrize("content", [
    "{not json",
    json.dumps({"jobs": "nurse"}),
    json.dumps(["nurse", "engineer"]),
    json.dumps([{"jobTitle": "No id"}]),
])
def test_malformed_corpus_file(tmp_path, content):
    path = tmp_path / "jobs.json"
    path.write_text(content)
    with pytest.raises(CorpusLoadError):
        load_corpus(path)
