"""
Retrieval engine for JobFinder - corpus indexing and nearest-neighbour job search.

Turns a free-text query or resume text into a ranked list of job postings by
embedding it and querying the vector store that holds the job corpus.
"""

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Union

from rich.console import Console

from .config import get_config_manager
from .criteria import FilterCriteria, apply_filter_criteria, extract_filter_criteria
from .inference import get_inference_client
from .jobs import JobCorpus, JobPosting, get_job_corpus
from .resumes import get_resume_processor
from .vector_store import QueryHit, get_vector_store

console = Console()


@dataclass
class SearchResult:
    """A job posting matched to a query, with its distance score (lower is closer)."""
    id: str
    score: float
    job_title: str
    job_description: str
    job_type: str
    company: Optional[str] = None
    location: Optional[str] = None
    salary: Optional[str] = None
    job_responsibilities: Union[str, List[str], None] = None
    preferred_qualifications: Union[str, List[str], None] = None
    application_deadline: Optional[str] = None

    @classmethod
    def from_posting(cls, posting: JobPosting, score: float) -> "SearchResult":
        return cls(
            id=posting.job_id,
            score=score,
            job_title=posting.job_title,
            job_description=posting.job_description,
            job_type=posting.job_type,
            company=posting.company,
            location=posting.location,
            salary=posting.salary,
            job_responsibilities=posting.job_responsibilities,
            preferred_qualifications=posting.preferred_qualifications,
            application_deadline=posting.application_deadline
        )

@dataclass
class SearchResponse:
    """Results of one search along with the criteria guessed from the query."""
    query: str
    results: List[SearchResult] = field(default_factory=list)
    criteria: Optional[FilterCriteria] = None


class JobSearchEngine:
    """High-level interface for corpus indexing and job retrieval."""

    def __init__(self, corpus: Optional[JobCorpus] = None, inference_client=None,
                 vector_store=None, top_k: Optional[int] = None,
                 classification_threshold: Optional[float] = None,
                 criteria_mode: Optional[str] = None, resume_processor=None):
        config = get_config_manager()

        if top_k is None:
            top_k = config.get('search', 'top_k')
        if classification_threshold is None:
            classification_threshold = config.get('search', 'classification_threshold')
        if criteria_mode is None:
            criteria_mode = config.get('search', 'criteria_mode')

        self.corpus = corpus if corpus is not None else get_job_corpus()
        self.inference_client = inference_client or get_inference_client()
        self.vector_store = vector_store or get_vector_store()
        self.resume_processor = resume_processor or get_resume_processor()
        self.top_k = top_k
        self.classification_threshold = classification_threshold
        self.criteria_mode = criteria_mode

        self._index_lock = threading.Lock()
        self._indexed = False

    @property
    def indexed(self) -> bool:
        return self._indexed

    def ensure_indexed(self) -> None:
        """Embed and upsert the job corpus once per process."""
        if self._indexed:
            return
        with self._index_lock:
            if not self._indexed:
                self._index()
                self._indexed = True

    def index_corpus(self, force: bool = False) -> int:
        """
        Index the job corpus into the vector store.

        Args:
            force: Re-embed and upsert even if already indexed this process

        Returns:
            Number of postings upserted (0 if nothing was done)
        """
        with self._index_lock:
            if self._indexed and not force:
                console.print("[green]Job corpus already indexed[/green]")
                return 0
            count = self._index()
            self._indexed = True
            return count

    def _index(self) -> int:
        self.vector_store.ensure_collection()

        if not len(self.corpus):
            console.print("[yellow]No job postings found to index[/yellow]")
            return 0

        console.print(f"[cyan]Generating embeddings for {len(self.corpus)} job postings...[/cyan]")
        documents = self.corpus.documents()
        embeddings = self.inference_client.embed(documents)
        count = self.vector_store.upsert(self.corpus.ids(), documents, embeddings)

        console.print(f"[green]Indexed {count} job postings[/green]")
        return count

    def search(self, query: str) -> SearchResponse:
        """Find the postings nearest to a free-text query."""
        query = (query or "").strip()
        if not query:
            return SearchResponse(query="")

        self.ensure_indexed()

        criteria = None
        if self.criteria_mode in ("display", "filter"):
            criteria = extract_filter_criteria(
                query, self.inference_client, self.classification_threshold
            )

        query_embedding = self.inference_client.embed([query])[0]
        results = self._nearest_jobs(query_embedding)

        if self.criteria_mode == "filter":
            results = apply_filter_criteria(results, criteria)

        return SearchResponse(query=query, results=results, criteria=criteria)

    def match_resume(self, resume_text: str) -> SearchResponse:
        """Find the postings nearest to the text of a resume."""
        resume_text = (resume_text or "").strip()
        if not resume_text:
            return SearchResponse(query="")

        resume_embedding = self.inference_client.embed([resume_text])[0]
        self.ensure_indexed()
        return SearchResponse(query="", results=self._nearest_jobs(resume_embedding))

    def match_resume_file(self, file_path: Union[str, Path]) -> SearchResponse:
        """Extract a resume PDF and find its nearest postings."""
        resume_text = self.resume_processor.extract_text(file_path)
        return self.match_resume(resume_text)

    def _nearest_jobs(self, embedding) -> List[SearchResult]:
        hits = self._query(embedding)
        if not hits and len(self.corpus) and self._reindex_if_empty():
            hits = self._query(embedding)
        return self._to_results(hits)

    def _query(self, embedding) -> List[QueryHit]:
        hits = self.vector_store.query([embedding], self.top_k)
        return hits[0] if hits else []

    def _reindex_if_empty(self) -> bool:
        """Re-upsert the corpus if the store lost it (e.g. a wiped or restarted server)."""
        with self._index_lock:
            if self.vector_store.count() > 0:
                return False
            console.print("[yellow]Vector collection is empty; re-indexing job corpus[/yellow]")
            self._index()
            self._indexed = True
            return True

    def _to_results(self, hits: Sequence[QueryHit]) -> List[SearchResult]:
        """Map hits to postings, skipping ids the corpus does not know, nearest first."""
        results = []
        for hit in hits:
            posting = self.corpus.get(hit.id)
            if posting is None:
                console.print(f"[yellow]Warning: No job posting for stored id {hit.id}; skipping[/yellow]")
                continue
            results.append(SearchResult.from_posting(posting, hit.distance))

        results.sort(key=lambda r: r.score)
        return results


_engine_lock = threading.Lock()


def get_search_engine() -> JobSearchEngine:
    """Get the process-wide search engine instance."""
    with _engine_lock:
        if not hasattr(get_search_engine, '_instance'):
            get_search_engine._instance = JobSearchEngine()
        return get_search_engine._instance
