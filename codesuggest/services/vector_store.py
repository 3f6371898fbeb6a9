"""
ChromaDB-backed suggestion store.
"""
from datetime import datetime
from typing import Dict, List, Optional

import chromadb
from chromadb.config import Settings as ChromaSettings

from codesuggest.exceptions import SuggestionNotFoundError
from codesuggest.models import Category, Severity, Suggestion, SuggestionStatus
from codesuggest.services.suggestion_store import SuggestionStore

COLLECTION_NAME = "code_suggestions"


def _scope_filter(change_request_id: int, repository_id: int) -> Dict:
    return {
        "$and": [
            {"change_request_id": change_request_id},
            {"repository_id": repository_id},
        ]
    }


def _embedding(suggestion: Suggestion) -> List[float]:
    # Position in (severity, confidence) space; records are looked up by
    # metadata, never by similarity.
    return [float(suggestion.severity.rank), float(suggestion.confidence)]


def to_metadata(suggestion: Suggestion) -> Dict:
    """Flatten a suggestion into Chroma metadata (no None values allowed)."""
    return {
        "change_request_id": suggestion.change_request_id,
        "repository_id": suggestion.repository_id,
        "file_path": suggestion.file_path,
        "start_line": suggestion.start_line,
        "end_line": suggestion.end_line,
        "original_code": suggestion.original_code,
        "suggested_code": suggestion.suggested_code,
        "severity": suggestion.severity.value,
        "category": suggestion.category.value,
        "confidence": suggestion.confidence,
        "status": suggestion.status.value,
        "created_at": suggestion.created_at.isoformat() if suggestion.created_at else "",
        "resolved_by": suggestion.resolved_by or "",
        "resolved_at": suggestion.resolved_at.isoformat() if suggestion.resolved_at else "",
    }


def from_record(doc_id: str, metadata: Dict, document: Optional[str]) -> Suggestion:
    """Rebuild a suggestion from a stored Chroma record."""
    resolved_at = metadata.get("resolved_at") or None
    resolved_by = metadata.get("resolved_by") or None
    if resolved_at is None or resolved_by is None:
        resolved_at = resolved_by = None

    created_at = metadata.get("created_at") or None
    status = metadata.get("status", "PENDING")
    try:
        status = SuggestionStatus(status)
    except ValueError:
        status = SuggestionStatus.PENDING

    return Suggestion(
        id=doc_id,
        change_request_id=int(metadata.get("change_request_id", 0)),
        repository_id=int(metadata.get("repository_id", 0)),
        file_path=metadata.get("file_path", ""),
        start_line=int(metadata.get("start_line", 0)),
        end_line=int(metadata.get("end_line", 0)),
        original_code=metadata.get("original_code", ""),
        suggested_code=metadata.get("suggested_code", ""),
        explanation=document or "",
        severity=Severity.parse(metadata.get("severity")),
        category=Category.parse(metadata.get("category")),
        confidence=float(metadata.get("confidence", 0.5)),
        status=status,
        created_at=datetime.fromisoformat(created_at) if created_at else None,
        resolved_by=resolved_by,
        resolved_at=datetime.fromisoformat(resolved_at) if resolved_at else None,
    )


class ChromaSuggestionStore(SuggestionStore):
    """Suggestion store persisted in a ChromaDB collection."""

    def __init__(self, db_path: str = "./chroma_db", client=None, collection_name: str = COLLECTION_NAME):
        """
        Open (or create) the suggestion collection.

        Args:
            db_path: Directory for the persistent client.
            client: Existing Chroma client to use instead of a persistent one.
            collection_name: Collection holding the suggestions.
        """
        self.client = client or chromadb.PersistentClient(
            path=db_path, settings=ChromaSettings(anonymized_telemetry=False)
        )
        self.collection = self.client.get_or_create_collection(
            name=collection_name,
            metadata={"description": "Code suggestions by change request"},
        )

    def _records(self, results) -> List[Suggestion]:
        ids = results.get("ids") or []
        metadatas = results.get("metadatas") or []
        documents = results.get("documents") or []
        records = []
        for i, doc_id in enumerate(ids):
            metadata = metadatas[i] if i < len(metadatas) and metadatas[i] else {}
            document = documents[i] if i < len(documents) else ""
            records.append(from_record(doc_id, metadata, document))
        return records

    def _insert(self, suggestion: Suggestion) -> None:
        self.collection.add(
            ids=[suggestion.id],
            embeddings=[_embedding(suggestion)],
            documents=[suggestion.explanation],
            metadatas=[to_metadata(suggestion)],
        )

    def _find(self, change_request_id: int, repository_id: int) -> List[Suggestion]:
        results = self.collection.get(
            where=_scope_filter(change_request_id, repository_id),
            include=["metadatas", "documents"],
        )
        return self._records(results)

    def _get(self, suggestion_id: str) -> Optional[Suggestion]:
        results = self.collection.get(ids=[suggestion_id], include=["metadatas", "documents"])
        records = self._records(results)
        return records[0] if records else None

    def _replace(self, suggestion: Suggestion) -> None:
        if self._get(suggestion.id) is None:
            raise SuggestionNotFoundError(suggestion.id)
        self.collection.update(
            ids=[suggestion.id],
            metadatas=[to_metadata(suggestion)],
        )

    def _delete_scope(self, change_request_id: int, repository_id: int) -> int:
        where = _scope_filter(change_request_id, repository_id)
        existing = self.collection.get(where=where, include=[])
        ids = existing.get("ids") or []
        if ids:
            self.collection.delete(ids=ids)
        return len(ids)
