"""
Vector store gateway for JobFinder backed by a ChromaDB server.
"""

from typing import Any, List, NamedTuple, Optional, Sequence

import chromadb
import httpx
import numpy as np
from chromadb.errors import InternalError, NotFoundError, RateLimitError
from rich.console import Console

from .config import get_config_manager
from .errors import VectorStoreError
from .retry import call_with_retries

console = Console()

# Errors worth another attempt; anything else fails on the first try
RETRYABLE_ERRORS = (ConnectionError, TimeoutError, httpx.TransportError, InternalError, RateLimitError)

# HttpClient reports an unreachable server as ValueError while connecting
CONNECT_RETRYABLE_ERRORS = RETRYABLE_ERRORS + (ValueError,)


class QueryHit(NamedTuple):
    """One nearest-neighbour match: stored id and its distance to the query."""
    id: str
    distance: float


def _as_list(embedding: Any) -> List[float]:
    if isinstance(embedding, np.ndarray):
        return embedding.astype(float).tolist()
    return [float(x) for x in embedding]


class JobVectorStore:
    """Collection-oriented access to the external vector store."""

    def __init__(self,
                 host: Optional[str] = None,
                 port: Optional[int] = None,
                 collection_name: Optional[str] = None,
                 max_retries: Optional[int] = None,
                 backoff_base: Optional[float] = None,
                 client: Any = None):
        config = get_config_manager()

        if host is None:
            host = config.get('chroma', 'host')
        if port is None:
            port = config.get('chroma', 'port')
        if collection_name is None:
            collection_name = config.get('chroma', 'collection')
        if max_retries is None:
            max_retries = config.get('chroma', 'max_retries')
        if backoff_base is None:
            backoff_base = config.get('chroma', 'backoff_base')

        self.host = host
        self.port = port
        self.collection_name = collection_name
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self._client = client
        self._collections = {}

    def _call(self, description: str, func, *args, retry_on=RETRYABLE_ERRORS, **kwargs):
        try:
            return call_with_retries(
                func, *args,
                retries=self.max_retries,
                backoff_base=self.backoff_base,
                retry_on=retry_on,
                description=description,
                **kwargs
            )
        except Exception as e:
            raise VectorStoreError(f"{description} failed: {e}") from e

    @property
    def client(self):
        """Chroma HTTP client, connected on first use."""
        if self._client is None:
            self._client = self._call(
                f"Connecting to Chroma at {self.host}:{self.port}",
                chromadb.HttpClient, host=self.host, port=self.port,
                retry_on=CONNECT_RETRYABLE_ERRORS
            )
        return self._client

    def ensure_collection(self, name: Optional[str] = None):
        """Get or create a collection (idempotent)."""
        name = name or self.collection_name
        if name not in self._collections:
            self._collections[name] = self._call(
                f"Opening collection '{name}'",
                self.client.get_or_create_collection, name=name
            )
        return self._collections[name]

    def _on_collection(self, description: str, collection_name: Optional[str], method: str, **kwargs):
        """Call a collection method, reopening the collection once if the server lost it."""
        name = collection_name or self.collection_name
        try:
            return self._call(description, getattr(self.ensure_collection(name), method), **kwargs)
        except VectorStoreError as e:
            if not isinstance(e.__cause__, NotFoundError):
                raise
            console.print(f"[yellow]Collection '{name}' no longer exists on the server; reopening it[/yellow]")
            self._collections.pop(name, None)
            return self._call(description, getattr(self.ensure_collection(name), method), **kwargs)

    def upsert(self, ids: Sequence[str], documents: Sequence[str],
               embeddings: Sequence[Any], collection_name: Optional[str] = None) -> int:
        """
        Insert or replace entries keyed by id.

        Returns:
            Number of entries written
        """
        if not (len(ids) == len(documents) == len(embeddings)):
            raise ValueError(
                f"ids, documents and embeddings must be the same length "
                f"({len(ids)}, {len(documents)}, {len(embeddings)})"
            )
        if not ids:
            return 0

        self._on_collection(
            f"Upserting {len(ids)} entries", collection_name, "upsert",
            ids=[str(i) for i in ids],
            documents=list(documents),
            embeddings=[_as_list(e) for e in embeddings]
        )
        return len(ids)

    def count(self, collection_name: Optional[str] = None) -> int:
        return self._on_collection("Counting collection entries", collection_name, "count")

    def query(self, query_embeddings: Sequence[Any], top_k: int = 3,
              collection_name: Optional[str] = None) -> List[List[QueryHit]]:
        """
        Find the `top_k` nearest stored entries for each query embedding.

        Hits are returned in the order the server reports them.
        """
        if not query_embeddings:
            return []

        if self.count(collection_name) == 0:
            console.print("[yellow]Vector collection is empty; no matches possible[/yellow]")
            return [[] for _ in query_embeddings]

        results = self._on_collection(
            f"Querying top {top_k} neighbours", collection_name, "query",
            query_embeddings=[_as_list(e) for e in query_embeddings],
            n_results=top_k,
            include=["distances"]
        )

        ids = results.get("ids") or []
        distances = results.get("distances") or []

        hits = []
        for i in range(len(query_embeddings)):
            row_ids = ids[i] if i < len(ids) else []
            row_distances = distances[i] if i < len(distances) else []
            hits.append([
                QueryHit(str(job_id), float(distance))
                for job_id, distance in zip(row_ids, row_distances)
            ][:top_k])
        return hits

    def heartbeat(self) -> bool:
        """Test if the vector store server is reachable."""
        try:
            self._call("Chroma heartbeat", self.client.heartbeat)
            return True
        except VectorStoreError as e:
            console.print(f"[red]Vector store connection failed: {e}[/red]")
            return False


def get_vector_store() -> JobVectorStore:
    """Get a vector store gateway instance."""
    return JobVectorStore()
