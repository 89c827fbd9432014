import re

import numpy as np
import pytest

from jobfinder.errors import InferenceError, VectorStoreError
from jobfinder.inference import ClassificationResult
from jobfinder.jobs import JobCorpus, JobPosting
from jobfinder.matching import JobSearchEngine
from jobfinder.resumes import ResumeProcessor
from jobfinder.vector_store import QueryHit


class FakeInferenceClient:
    """Bag-of-words embeddings over a vocabulary that grows as texts arrive."""

    DIMENSIONS = 512

    def __init__(self, label_scores=None):
        self.vocab = {}
        self.label_scores = label_scores or {}
        self.embed_calls = []
        self.classify_calls = []
        self.fail_embed = False

    def embed(self, texts):
        if self.fail_embed:
            raise InferenceError("model is loading")
        self.embed_calls.append(list(texts))
        return [self._vector(text) for text in texts]

    def _vector(self, text):
        vector = np.zeros(self.DIMENSIONS, dtype=np.float32)
        for token in re.findall(r"[a-z0-9]+", text.lower()):
            index = self.vocab.setdefault(token, len(self.vocab))
            vector[index] += 1.0
        norm = np.linalg.norm(vector)
        return vector / norm if norm else vector

    def classify(self, text, labels):
        self.classify_calls.append(text)
        label, score = self.label_scores.get(text, (labels[0], 0.1))
        others = [l for l in labels if l != label]
        return ClassificationResult([label] + others, [score] + [score / 2] * len(others))


class FakeVectorStore:
    """In-memory store; returns hits farthest-first like an unsorted backend."""

    def __init__(self):
        self.collections = set()
        self.entries = {}
        self.documents = {}
        self.upsert_calls = 0
        self.stale_hits = []
        self.fail = False

    def ensure_collection(self, name=None):
        self.collections.add(name or "job_collection")

    def upsert(self, ids, documents, embeddings, collection_name=None):
        self.upsert_calls += 1
        for job_id, document, embedding in zip(ids, documents, embeddings):
            self.entries[job_id] = np.asarray(embedding, dtype=np.float32)
            self.documents[job_id] = document
        return len(ids)

    def count(self, collection_name=None):
        return len(self.entries)

    def query(self, query_embeddings, top_k=3, collection_name=None):
        if self.fail:
            raise VectorStoreError("connection refused")
        hits = []
        for query in query_embeddings:
            scored = sorted(
                (float(np.sum((embedding - query) ** 2)), job_id)
                for job_id, embedding in self.entries.items()
            )
            row = [QueryHit(job_id, distance) for distance, job_id in reversed(scored[:top_k])]
            hits.append((self.stale_hits + row)[:top_k])
        return hits


@pytest.fixture
def postings():
    return [
        JobPosting(job_id="1", job_title="Remote Software Engineer",
                   job_description="Build backend services for a distributed team",
                   job_type="Full-time", company="Northwind Labs", location="Remote",
                   salary="$130,000"),
        JobPosting(job_id="2", job_title="Registered Nurse",
                   job_description="Patient care on a surgical unit",
                   job_type="Part-time", company="Lakeside Hospital", location="Austin, TX"),
        JobPosting(job_id="1", job_title="Warehouse Associate",
                   job_description="Pick and pack customer orders",
                   job_type="Part-time", company="Parcel Point", location="Columbus, OH"),
        JobPosting(job_id="4", job_title="Marketing Coordinator",
                   job_description="Plan campaigns and events",
                   job_type="Contract", company="Brightside Media", location="New York, NY"),
        JobPosting(job_id="5", job_title="Frontend Developer",
                   job_description="Build user interfaces in React",
                   job_type="Full-time", company="Ledgerly", location="Berlin, Germany"),
    ]


@pytest.fixture
def corpus(postings):
    return JobCorpus(postings)


@pytest.fixture
def fake_client():
    return FakeInferenceClient()


@pytest.fixture
def fake_store():
    return FakeVectorStore()


@pytest.fixture
def make_engine(corpus, fake_client, fake_store):
    def factory(**overrides):
        options = dict(
            corpus=corpus,
            inference_client=fake_client,
            vector_store=fake_store,
            top_k=3,
            classification_threshold=0.5,
            criteria_mode="display",
            resume_processor=ResumeProcessor(max_file_size=1024 * 1024),
        )
        options.update(overrides)
        return JobSearchEngine(**options)
    return factory


@pytest.fixture
def engine(make_engine):
    return make_engine()
