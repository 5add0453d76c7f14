"""
Key/value persistence for price catalog groups.

A group is stored under its catalog id as a JSON array of retail price items.
Two stores are provided: DynamoDB (production) and an in-memory store for
local runs and tests. Reads and writes are plain get/put; there is no
conditional write, so two concurrent syncs touching the same id can lose an
update.
"""
from typing import Dict, List, Optional
import json
import logging

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from azure_cost_estimator.core.config import config
from azure_cost_estimator.domain.catalog_models import PriceCatalogEntry


logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """Raised when a catalog group cannot be read or written."""

    def __init__(self, message: str, catalog_id: Optional[str] = None, code: Optional[str] = None):
        super().__init__(message)
        self.catalog_id = catalog_id
        self.code = code


class ThroughputExceededError(PersistenceError):
    """Store rejected the request because of provisioned or account limits."""
    pass


class StoreNotFoundError(PersistenceError):
    """The backing table does not exist."""
    pass


class WriteConflictError(PersistenceError):
    """A conditional check or transaction conflicted with another writer."""
    pass


class StoreInternalError(PersistenceError):
    """The store reported an internal failure."""
    pass


class SizeLimitExceededError(PersistenceError):
    """The serialized group is larger than the store accepts."""
    pass


class CorruptGroupError(PersistenceError):
    """A stored group could not be decoded."""
    pass


# DynamoDB error code -> persistence error class
_ERROR_CODES: Dict[str, type] = {
    "ProvisionedThroughputExceededException": ThroughputExceededError,
    "RequestLimitExceeded": ThroughputExceededError,
    "ThrottlingException": ThroughputExceededError,
    "ResourceNotFoundException": StoreNotFoundError,
    "ConditionalCheckFailedException": WriteConflictError,
    "TransactionConflictException": WriteConflictError,
    "InternalServerError": StoreInternalError,
    "ItemCollectionSizeLimitExceededException": SizeLimitExceededError,
}


def classify_client_error(error: ClientError, catalog_id: str) -> PersistenceError:
    """
    Map a botocore ClientError onto the persistence error taxonomy.

    Args:
        error: Error raised by the DynamoDB client
        catalog_id: Catalog id the request was for

    Returns:
        PersistenceError subclass instance (not raised)
    """
    details = error.response.get("Error", {})
    code = details.get("Code", "")
    message = details.get("Message", str(error))

    error_class = _ERROR_CODES.get(code, PersistenceError)
    # DynamoDB reports the 400 KB item limit as a generic validation error
    if code == "ValidationException" and "size" in message.lower():
        error_class = SizeLimitExceededError

    return error_class(f"{code or 'UnknownError'}: {message}", catalog_id=catalog_id, code=code)


def serialize_entries(entries: List[PriceCatalogEntry]) -> str:
    """Encode a group as a JSON array of retail price items."""
    return json.dumps([entry.to_dict() for entry in entries])


def deserialize_entries(blob: str, catalog_id: str) -> List[PriceCatalogEntry]:
    """
    Decode a stored JSON array back into entries.

    Raises:
        CorruptGroupError: If the blob is not a JSON array of price items
    """
    try:
        items = json.loads(blob)
        if not isinstance(items, list):
            raise ValueError("stored group is not a JSON array")
        return [PriceCatalogEntry.from_api_item(item) for item in items]
    except (TypeError, ValueError) as error:
        raise CorruptGroupError(
            f"Stored group could not be decoded: {error}",
            catalog_id=catalog_id
        ) from error


class PriceStore:
    """Interface for catalog group persistence."""

    def get(self, catalog_id: str) -> Optional[List[PriceCatalogEntry]]:
        """
        Load the group stored under a catalog id.

        Returns:
            Stored entries, or None if nothing is stored under the id

        Raises:
            PersistenceError: If the store cannot be read
        """
        raise NotImplementedError

    def put(self, catalog_id: str, entries: List[PriceCatalogEntry]) -> None:
        """
        Store a group under a catalog id, replacing what was there.

        Raises:
            PersistenceError: If the store rejects the write
        """
        raise NotImplementedError


class InMemoryPriceStore(PriceStore):
    """
    Process-local store holding serialized groups.

    Groups are kept as JSON so reads and writes go through the same
    encoding as the DynamoDB store.
    """

    def __init__(self):
        self._groups: Dict[str, str] = {}

    def get(self, catalog_id: str) -> Optional[List[PriceCatalogEntry]]:
        blob = self._groups.get(catalog_id)
        if blob is None:
            return None
        return deserialize_entries(blob, catalog_id)

    def put(self, catalog_id: str, entries: List[PriceCatalogEntry]) -> None:
        self._groups[catalog_id] = serialize_entries(entries)

    def catalog_ids(self) -> List[str]:
        """Return all stored catalog ids (for debugging/monitoring)."""
        return sorted(self._groups)


class DynamoPriceStore(PriceStore):
    """
    DynamoDB-backed store.

    Table layout: partition key ``id`` (S) and attribute ``priceItems`` (S)
    holding the JSON array of the group's items.
    """

    def __init__(self, table_name: Optional[str] = None, client=None):
        """
        Initialize DynamoDB store.

        Args:
            table_name: DynamoDB table (defaults to DYNAMO_TABLE)
            client: boto3 DynamoDB client (creates new if None)
        """
        self.table_name = table_name or config.DYNAMO_TABLE
        if client is None:
            boto_config = BotoConfig(
                connect_timeout=10,
                read_timeout=10,
                retries={'max_attempts': 0}  # Failures are reported per item, not retried
            )
            client = boto3.client("dynamodb", region_name=config.AWS_REGION, config=boto_config)
        self.client = client

    def get(self, catalog_id: str) -> Optional[List[PriceCatalogEntry]]:
        try:
            result = self.client.get_item(
                TableName=self.table_name,
                Key={"id": {"S": catalog_id}}
            )
        except ClientError as error:
            raise classify_client_error(error, catalog_id) from error
        except BotoCoreError as error:
            raise PersistenceError(f"DynamoDB read failed: {error}", catalog_id=catalog_id) from error

        item = result.get("Item")
        if not item:
            return None

        blob = item.get("priceItems", {}).get("S")
        if blob is None:
            raise CorruptGroupError("Stored group has no priceItems attribute", catalog_id=catalog_id)
        return deserialize_entries(blob, catalog_id)

    def put(self, catalog_id: str, entries: List[PriceCatalogEntry]) -> None:
        try:
            self.client.put_item(
                TableName=self.table_name,
                Item={
                    "id": {"S": catalog_id},
                    "priceItems": {"S": serialize_entries(entries)},
                }
            )
        except ClientError as error:
            raise classify_client_error(error, catalog_id) from error
        except BotoCoreError as error:
            raise PersistenceError(f"DynamoDB write failed: {error}", catalog_id=catalog_id) from error


def create_price_store() -> PriceStore:
    """
    Create the store selected by CATALOG_STORE.

    Returns:
        PriceStore instance
    """
    if config.CATALOG_STORE == "memory":
        logger.info("Using in-memory catalog store")
        return InMemoryPriceStore()
    logger.info(f"Using DynamoDB catalog store (table={config.DYNAMO_TABLE})")
    return DynamoPriceStore()


# Global store instance shared by API routes
_price_store: Optional[PriceStore] = None


def get_price_store() -> PriceStore:
    """
    Get the global catalog store instance.

    Returns:
        PriceStore instance
    """
    global _price_store
    if _price_store is None:
        _price_store = create_price_store()
    return _price_store
