# sportlink/repositories/document_repo.py
from datetime import datetime, timezone
from typing import Any

from sqlmodel import Session, select

from sportlink.models.document import Document


class DocumentRepository:
    """
    Data access layer for collection documents.

    Responsibilities:
      - Pure DB operations (get / list / set)
      - No FastAPI, no HTTP, no business logic

    Every write commits on its own. Writes to two collections are two
    independent commits, never one transaction.
    """

    def get(self, session: Session, collection: str, doc_id: str) -> Document | None:
        """Return a document by (collection, id), or None if not found."""
        return session.get(Document, (collection, doc_id))

    def get_data(
        self,
        session: Session,
        collection: str,
        doc_id: str,
    ) -> dict[str, Any] | None:
        """Return only the document body, or None if not found."""
        doc = self.get(session, collection, doc_id)
        if doc is None:
            return None
        return dict(doc.data or {})

    def list(self, session: Session, collection: str) -> list[Document]:
        """
        All documents of a collection in id order.

        Callers filter on normalized profiles, so paging happens after
        filtering, not in SQL.
        """
        stmt = (
            select(Document)
            .where(Document.collection == collection)
            .order_by(Document.id)
        )
        return session.exec(stmt).all()

    def set(
        self,
        session: Session,
        collection: str,
        doc_id: str,
        data: dict[str, Any],
    ) -> Document:
        """Create or overwrite a document and return the persisted row."""
        doc = self.get(session, collection, doc_id)
        if doc is None:
            doc = Document(collection=collection, id=doc_id, data=dict(data))
        else:
            doc.data = dict(data)
            doc.updated_at = datetime.now(timezone.utc)
        session.add(doc)
        session.commit()
        session.refresh(doc)
        return doc
