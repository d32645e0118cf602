"""
Embedding Client

This module implements the embedding client used at ingestion and query
time. It talks to the OpenAI embeddings API (or any compatible provider)
and is responsible for:

- Batching of text inputs
- Bounded retries on timeouts
- Strict response validation

The class is stateless and safe to reuse across requests. The same model
must be used for documents and questions or similarity scores are
meaningless, so the model is fixed at construction time.
"""

from __future__ import annotations

from typing import List, Sequence, Optional
import logging
import httpx

from ..config import settings
from ..core.errors import EmbeddingError

logger = logging.getLogger("documet.embedder")


class Embedder:
    """
    Asynchronous embedding generator for batches of text.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize an Embedder.

        Parameters
        ----------
        api_key : Optional[str]
            Optional override for OpenAI API key. Defaults to settings.openai_api_key.

        model : Optional[str]
            Optional override for embedding model. Defaults to settings.embedding_model.

        base_url : Optional[str]
            API root. Defaults to settings.openai_base_url.

        timeout : Optional[float]
            HTTP timeout for each request.

        max_retries : Optional[int]
            Additional attempts after a timed-out request.

        transport : Optional[httpx.AsyncBaseTransport]
            Custom transport, used by tests to stub the provider.
        """
        self.api_key = api_key or settings.openai_api_key.get_secret_value()
        self.model = model or settings.embedding_model
        self.url = (base_url or settings.openai_base_url).rstrip("/") + "/embeddings"
        self.timeout = timeout if timeout is not None else settings.embedding_timeout_seconds
        self.max_retries = (
            max_retries if max_retries is not None else settings.embedding_max_retries
        )
        self._transport = transport

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def embed(
        self,
        texts: Sequence[str],
        batch_size: int = 20,
    ) -> List[List[float]]:
        """
        Generate embeddings for a sequence of input texts.

        Parameters
        ----------
        texts : Sequence[str]
            List or sequence of input text strings.

        batch_size : int
            Maximum batch size per request. Helps avoid API token/size limits.

        Returns
        -------
        List[List[float]]
            One embedding per input, in input order.

        Raises
        ------
        EmbeddingError
            If any batch fails or the response is malformed.
        """
        if not texts:
            return []

        all_embeddings: List[List[float]] = []
        headers = {"Authorization": f"Bearer {self.api_key}"}

        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self._transport
        ) as client:
            for start in range(0, len(texts), batch_size):
                batch = list(texts[start : start + batch_size])
                payload = {
                    "model": self.model,
                    "input": batch,
                }

                response = await self._post_with_retries(client, payload, headers, len(batch))
                try:
                    data = response.json()
                except ValueError as exc:
                    logger.error("Embedding response is not JSON: batch size=%d", len(batch))
                    raise EmbeddingError("Embedding response is not valid JSON.") from exc

                embeddings = self._extract_embeddings(data)

                if len(embeddings) != len(batch):
                    raise EmbeddingError(
                        f"Expected {len(batch)} embeddings, got {len(embeddings)}."
                    )
                all_embeddings.extend(embeddings)

        return all_embeddings

    async def embed_one(self, text: str) -> List[float]:
        """
        Embed a single text.
        """
        embeddings = await self.embed([text])
        return embeddings[0]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _post_with_retries(
        self,
        client: httpx.AsyncClient,
        payload: dict,
        headers: dict,
        batch_size: int,
    ) -> httpx.Response:
        attempt = 0
        while True:
            try:
                response = await client.post(self.url, json=payload, headers=headers)
                response.raise_for_status()
                return response
            except httpx.TimeoutException as exc:
                if attempt < self.max_retries:
                    attempt += 1
                    logger.warning(
                        "Embedding request timed out, retrying (%d/%d)",
                        attempt,
                        self.max_retries,
                    )
                    continue
                logger.error("Embedding request timed out: batch size=%d", batch_size)
                raise EmbeddingError("Embedding generation timed out") from exc
            except httpx.HTTPError as exc:
                logger.error(
                    "Embedding request failed (%s): batch size=%d, error=%s",
                    type(exc).__name__,
                    batch_size,
                    str(exc),
                )
                raise EmbeddingError(
                    f"Embedding generation failed: {type(exc).__name__}"
                ) from exc

    @staticmethod
    def _extract_embeddings(data: dict) -> List[List[float]]:
        """
        Parse and validate embedding output format.

        OpenAI returns:
            { "data": [ {"embedding": [...]}, ... ] }

        Raises
        ------
        EmbeddingError
            If the API returns unexpected structure.
        """
        if not isinstance(data, dict) or "data" not in data:
            raise EmbeddingError("Embedding response missing 'data' field.")

        records = data["data"]
        if not isinstance(records, list):
            raise EmbeddingError("'data' field must be a list.")

        embeddings: List[List[float]] = []

        for index, record in enumerate(records):
            if not isinstance(record, dict) or "embedding" not in record:
                raise EmbeddingError(
                    f"Malformed embedding record at index {index}: {record!r}"
                )

            emb = record["embedding"]
            if not isinstance(emb, list) or not all(
                isinstance(x, (float, int)) for x in emb
            ):
                raise EmbeddingError(
                    f"Invalid embedding vector at index {index}: must be float list."
                )

            embeddings.append([float(x) for x in emb])

        return embeddings
