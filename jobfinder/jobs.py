"""
Static job corpus for JobFinder.

Job postings are loaded once from a JSON file, their ids are made unique,
and the result is kept as an immutable corpus shared by every request.
"""

import json
import threading
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from rich.console import Console

from .config import get_config_manager
from .errors import CorpusLoadError

console = Console()

# camelCase keys used by the source dataset
FIELD_ALIASES = {
    "jobId": "job_id",
    "jobTitle": "job_title",
    "jobDescription": "job_description",
    "jobType": "job_type",
    "jobResponsibilities": "job_responsibilities",
    "preferredQualifications": "preferred_qualifications",
    "applicationDeadline": "application_deadline",
}

TextOrList = Union[str, List[str], None]


@dataclass(frozen=True)
class JobPosting:
    """A single job posting from the corpus."""
    job_id: str
    job_title: str = ""
    job_description: str = ""
    job_type: str = ""
    company: Optional[str] = None
    location: Optional[str] = None
    salary: Optional[str] = None
    job_responsibilities: TextOrList = None
    preferred_qualifications: TextOrList = None
    application_deadline: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict) -> "JobPosting":
        """Build a posting from a camelCase or snake_case record."""
        fields = {}
        for key, value in data.items():
            name = FIELD_ALIASES.get(key, key)
            if name in cls.__dataclass_fields__:
                fields[name] = value

        if fields.get("job_id") is None:
            raise ValueError(f"Job posting without an id: {data}")
        fields["job_id"] = str(fields["job_id"])
        if fields.get("salary") is not None:
            fields["salary"] = str(fields["salary"])

        return cls(**fields)

    def document_text(self) -> str:
        """Text embedded for this posting: title, description and type."""
        return f"{self.job_title}. {self.job_description}. {self.job_type}"


def deduplicate_job_ids(postings: Iterable[JobPosting]) -> List[JobPosting]:
    """
    Return postings whose ids are pairwise distinct.

    A colliding id gets `_<index>` appended (index = position in the input)
    until it is unique. The input postings are not modified.
    """
    seen = set()
    unique = []
    for index, posting in enumerate(postings):
        job_id = posting.job_id
        while job_id in seen:
            job_id = f"{job_id}_{index}"
        seen.add(job_id)
        unique.append(posting if job_id == posting.job_id else replace(posting, job_id=job_id))
    return unique


class JobCorpus:
    """Immutable, de-duplicated collection of job postings."""

    def __init__(self, postings: Iterable[JobPosting]):
        self._postings: Tuple[JobPosting, ...] = tuple(deduplicate_job_ids(postings))
        self._by_id: Dict[str, JobPosting] = {p.job_id: p for p in self._postings}

    def __len__(self) -> int:
        return len(self._postings)

    def __iter__(self):
        return iter(self._postings)

    def get(self, job_id) -> Optional[JobPosting]:
        """Look up a posting by id; None if the id is unknown."""
        return self._by_id.get(str(job_id))

    def ids(self) -> List[str]:
        return [p.job_id for p in self._postings]

    def documents(self) -> List[str]:
        return [p.document_text() for p in self._postings]


def load_corpus(path: Union[str, Path]) -> JobCorpus:
    """
    Load job postings from a JSON file (a list, or {"jobs": [...]}).

    Raises:
        CorpusLoadError: if the file cannot be read or holds no valid postings list
    """
    path = Path(path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        records = data.get("jobs", []) if isinstance(data, dict) else data
        if not isinstance(records, list) or not all(isinstance(r, dict) for r in records):
            raise ValueError("expected a list of job posting objects")
        corpus = JobCorpus(JobPosting.from_dict(record) for record in records)
    except (OSError, ValueError) as e:
        console.print(f"[red]Could not load job corpus from {path}: {e}[/red]")
        raise CorpusLoadError(f"Could not load job corpus from {path}: {e}") from e

    console.print(f"[dim]Loaded {len(corpus)} job postings from {path}[/dim]")
    return corpus


_corpus_lock = threading.Lock()


def get_job_corpus() -> JobCorpus:
    """Get the process-wide job corpus, loading it on first use."""
    with _corpus_lock:
        if not hasattr(get_job_corpus, '_instance'):
            config = get_config_manager()
            get_job_corpus._instance = load_corpus(config.get('corpus', 'path'))
        return get_job_corpus._instance
