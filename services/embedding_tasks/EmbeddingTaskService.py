"""Embedding task service.

Runs one INDEX or DELETE task for a single capture: looks up the owner's
embedding credential, validates the capture text, and drives the indexing
service under an outer bounded retry. A task whose attempts are exhausted
marks the capture as failed.
"""

from services.rag_indexing.IndexingService import IndexingService
from shared.clients.store.StoreClientInterface import StoreClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.helper.retry_helper import TASK_RETRY_POLICY, RetryPolicy, do_with_retry
from shared.logging.logging_setup import mask_secret
from shared.models.document import ProcessingStatus
from shared.models.tasks import EmbeddingTaskError, EmbeddingTaskResult, EmbeddingTaskType

MIN_TEXT_LENGTH = 50


class EmbeddingTaskService:
    """Orchestrates embedding tasks for single captures."""

    def __init__(
        self,
        helper_config: HelperConfig,
        store_client: StoreClientInterface,
        indexing_service: IndexingService,
        retry_policy: RetryPolicy = TASK_RETRY_POLICY,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._store_client = store_client
        self._indexing_service = indexing_service
        self._retry_policy = retry_policy

    ##########################################
    ############### CORE #####################
    ##########################################

    async def do_run(self, document_id: str, user_id: str, task_type: EmbeddingTaskType) -> EmbeddingTaskResult:
        """Run one embedding task.

        Args:
            document_id (str): The capture to index or remove.
            user_id (str): Owner of the capture.
            task_type (EmbeddingTaskType): INDEX or DELETE.

        Returns:
            EmbeddingTaskResult: Success, or the reason the task did not complete.

        Raises:
            Exception: If a store lookup fails before the task starts.
        """
        self.logging.info("Embedding task %s for capture %s started.", task_type.value, document_id, color="cyan")

        api_key = await self._store_client.get_embedding_credential(user_id)
        if not api_key:
            self.logging.error("No embedding API key stored for user %s.", user_id)
            return self._failed(document_id, task_type, EmbeddingTaskError.API_KEY_NOT_FOUND)
        self.logging.debug("Embedding API key found: %s", mask_secret(api_key))

        document = await self._store_client.get_document(document_id)
        # a foreign capture is reported exactly like a missing one
        if document is None or document.owner_id != user_id:
            self.logging.error("Capture %s not found for user %s.", document_id, user_id)
            return self._failed(document_id, task_type, EmbeddingTaskError.CAPTURE_NOT_FOUND)

        if task_type == EmbeddingTaskType.DELETE:
            return await self._run_with_retry(
                document_id,
                task_type,
                lambda: self._indexing_service.do_delete_document(document_id, user_id),
            )

        text = (document.content or "").strip()
        if not text:
            self.logging.error("Capture %s has no text content.", document_id)
            return self._failed(document_id, task_type, EmbeddingTaskError.NO_TEXT_CONTENT)
        if len(text) < MIN_TEXT_LENGTH:
            self.logging.error("Capture %s text too short (%d chars, minimum %d).", document_id, len(text), MIN_TEXT_LENGTH)
            return self._failed(document_id, task_type, EmbeddingTaskError.TEXT_TOO_SHORT)

        await self._store_client.set_processing_status(document_id, ProcessingStatus.PROCESSING)
        result = await self._run_with_retry(
            document_id,
            task_type,
            lambda: self._indexing_service.do_index_text(text, document_id, user_id, api_key),
        )
        if result.success:
            await self._store_client.set_processing_status(document_id, ProcessingStatus.COMPLETED)
        return result

    async def _run_with_retry(self, document_id: str, task_type: EmbeddingTaskType, operation) -> EmbeddingTaskResult:
        try:
            outcome = await do_with_retry(
                operation,
                self._retry_policy,
                self.logging,
                label=f"Embedding task {task_type.value} for capture {document_id}",
            )
        except Exception as e:
            # attempts exhausted, terminal for this task
            await self._store_client.set_processing_status(document_id, ProcessingStatus.FAILED)
            return self._failed(document_id, task_type, EmbeddingTaskError.TASK_FAILED, detail=str(e))

        self.logging.info("Embedding task %s for capture %s completed.", task_type.value, document_id, color="green")
        return EmbeddingTaskResult(
            success=True,
            document_id=document_id,
            task_type=task_type,
            report=outcome if task_type == EmbeddingTaskType.INDEX else None,
        )

    def _failed(
        self,
        document_id: str,
        task_type: EmbeddingTaskType,
        error: EmbeddingTaskError,
        detail: str | None = None,
    ) -> EmbeddingTaskResult:
        return EmbeddingTaskResult(
            success=False,
            document_id=document_id,
            task_type=task_type,
            error=error,
            detail=detail,
        )
