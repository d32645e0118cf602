"""
Operator tool: create the schema and rebuild vector records.

    python scripts/rebuild_vectors.py --init-db
    python scripts/rebuild_vectors.py --user alice
    python scripts/rebuild_vectors.py --document 6f1c...
"""

import argparse
import asyncio
import uuid

from dotenv import load_dotenv
load_dotenv()

from sqlalchemy import text

from documet.db.models import Base
from documet.db.repository import DocumentRepository
from documet.db.session import AsyncSessionLocal, async_engine
from documet.db.vector_store import VectorStore
from documet.embeddings.embedder import Embedder
from documet.services.indexer import EmbeddingIndexer


async def init_db() -> None:
    print("Creating pgvector extension and tables...")
    async with async_engine.begin() as conn:
        await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
        await conn.run_sync(Base.metadata.create_all)
    print("Schema ready.")


async def rebuild(user_id: str = None, document_id: uuid.UUID = None) -> None:
    embedder = Embedder()

    async with AsyncSessionLocal() as session, AsyncSessionLocal() as vector_session:
        repository = DocumentRepository(session)
        indexer = EmbeddingIndexer(repository, VectorStore(vector_session), embedder)

        if document_id is not None:
            document = await repository.get_document(document_id)
            documents = [document] if document is not None else []
        else:
            documents = await repository.list_documents(user_id)

        if not documents:
            print("No documents to rebuild.")
            return

        for i, document in enumerate(documents):
            print(f"Rebuilding ({i+1}/{len(documents)}): {document.file_name or document.id}")
            outcome = await indexer.reindex_document(document)
            await repository.commit()
            print(
                f"  {outcome.vectors_written} written, {outcome.vectors_deleted} replaced, "
                f"{outcome.reembedded} re-embedded, {outcome.skipped} skipped"
            )

    print("Done! Vector index reconciled.")


async def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--init-db", action="store_true", help="create extension and tables")
    parser.add_argument("--user", help="rebuild every document of this user")
    parser.add_argument("--document", type=uuid.UUID, help="rebuild a single document")
    args = parser.parse_args()

    try:
        if args.init_db:
            await init_db()
        if args.user or args.document:
            await rebuild(user_id=args.user, document_id=args.document)
        elif not args.init_db:
            parser.error("one of --init-db, --user or --document is required")
    finally:
        await async_engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
