from abc import abstractmethod

from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.context import DateRange
from shared.models.document import CaptureCollection, CaptureDocument, DocumentStatus, ProcessingStatus


class StoreClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "rag"
        """
        return "store"

    ##########################################
    ############### REQUESTS #################
    ##########################################

    @abstractmethod
    async def find_document_ids(
        self,
        owner_id: str,
        status: DocumentStatus | None = DocumentStatus.ACTIVE,
        bookmarked: bool | None = None,
        date_range: DateRange | None = None,
        content_types: list[str] | None = None,
        document_ids: list[str] | None = None,
        limit: int | None = None,
    ) -> list[str]:
        """
        Returns the ids of the captures owned by owner_id that match every given condition.

        Args:
            owner_id (str): Owner the captures must belong to. Always applied.
            status (DocumentStatus | None): Required lifecycle status, None for any.
            bookmarked (bool | None): Required bookmark flag, None for any.
            date_range (DateRange | None): Inclusive creation-date range.
            content_types (list[str] | None): Allow-list of content-type tags. Ignored when empty.
            document_ids (list[str] | None): Restrict to these ids. Malformed ids never match.
            limit (int | None): Maximum number of ids to return.

        Returns:
            list[str]: Matching capture ids. Empty if nothing matches.

        Raises:
            Exception: If the store query fails.
        """
        pass

    @abstractmethod
    async def find_collections(self, owner_id: str, collection_ids: list[str]) -> list[CaptureCollection]:
        """
        Returns the collections among collection_ids that are owned by owner_id.
        Collections owned by somebody else are left out without error.
        """
        pass

    @abstractmethod
    async def find_documents(self, document_ids: list[str]) -> list[CaptureDocument]:
        """
        Returns the captures with the given ids (metadata lookup, no ownership filter).
        """
        pass

    @abstractmethod
    async def get_document(self, document_id: str) -> CaptureDocument | None:
        """
        Returns a single capture, or None if it does not exist.
        """
        pass

    @abstractmethod
    async def set_processing_status(self, document_id: str, status: ProcessingStatus) -> None:
        """
        Records the state of the embedding pipeline on a capture.
        """
        pass

    @abstractmethod
    async def get_embedding_credential(self, user_id: str) -> str | None:
        """
        Returns the embedding provider credential stored for a user, or None if the user has none.
        """
        pass
