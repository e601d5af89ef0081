"""
Document store for per-account documents.

Documents are keyed by account id and live in a DynamoDB table under
``PK = USER#<account_id>`` and ``SK = <collection>``. The store supports
point reads, merge-writes and live watches.

Watches are served by an in-process change feed. The feed is fed by the
store's own acknowledged writes and by ``refresh``/``poll``, which re-read
watched documents and publish the ones that changed. Listeners are called in
the order documents are published, which is the order the table committed
them for a single store instance.
"""

from botocore.exceptions import BotoCoreError, ClientError
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple
from aws_lambda_powertools import Logger

from .aws import get_dynamodb_resource
from ..models.plan import StoreUnavailableError

logger = Logger()

Document = Dict[str, Any]
ChangeCallback = Callable[[Optional[Document]], None]
ErrorCallback = Callable[[StoreUnavailableError], None]

KEY_ATTRIBUTES = ("PK", "SK")


class WatchHandle:
    """
    Handle for one live watch.

    The caller that opened the watch owns the handle and must release it.
    Releasing unregisters the listener immediately; calling it again is a no-op.
    """

    def __init__(self, key: str, unregister: Callable[[], None]):
        self.key = key
        self._unregister = unregister
        self._released = False

    @property
    def active(self) -> bool:
        return not self._released

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        self._unregister()


class ChangeFeed:
    """Registry of document listeners, keyed by account id"""

    def __init__(self):
        self._listeners: Dict[str, Dict[int, Tuple[ChangeCallback, Optional[ErrorCallback]]]] = {}
        self._next_token = 0
        self._idle_hooks: List[Callable[[str], None]] = []

    def on_idle(self, hook: Callable[[str], None]) -> None:
        """Call ``hook(key)`` whenever the last listener on a key goes away."""
        self._idle_hooks.append(hook)

    def register(
        self, key: str, on_change: ChangeCallback, on_error: Optional[ErrorCallback] = None
    ) -> WatchHandle:
        token = self._next_token
        self._next_token += 1
        self._listeners.setdefault(key, {})[token] = (on_change, on_error)
        return WatchHandle(key, lambda: self._unregister(key, token))

    def _unregister(self, key: str, token: int) -> None:
        listeners = self._listeners.get(key)
        if not listeners:
            return
        listeners.pop(token, None)
        if not listeners:
            del self._listeners[key]
            for hook in self._idle_hooks:
                hook(key)

    def _registered(self, key: str, token: int) -> bool:
        return token in self._listeners.get(key, {})

    def publish(self, key: str, document: Optional[Document]) -> None:
        # A listener may release itself or others while we dispatch
        for token, (on_change, _) in list(self._listeners.get(key, {}).items()):
            if self._registered(key, token):
                on_change(document)

    def publish_error(self, key: str, error: StoreUnavailableError) -> None:
        for token, (_, on_error) in list(self._listeners.get(key, {}).items()):
            if on_error is not None and self._registered(key, token):
                on_error(error)

    def listener_count(self, key: str) -> int:
        return len(self._listeners.get(key, {}))

    def watched_keys(self) -> List[str]:
        return list(self._listeners)


class DocumentStore(Protocol):
    def get(self, key: str) -> Optional[Document]:
        ...

    def merge(self, key: str, fields: Document) -> Document:
        ...

    def watch(
        self, key: str, on_change: ChangeCallback, on_error: Optional[ErrorCallback] = None
    ) -> WatchHandle:
        ...


class DynamoDocumentStore:
    """DynamoDB-backed document store"""

    def __init__(
        self,
        table_name: str,
        collection: str = "SUBSCRIPTION",
        dynamodb_resource=None,
        feed: Optional[ChangeFeed] = None,
    ):
        """
        Initialize the document store

        Args:
            table_name: DynamoDB table holding the documents
            collection: Sort key value naming the document kind
            dynamodb_resource: Optional boto3 DynamoDB resource
            feed: Optional change feed shared with other stores
        """
        self.table_name = table_name
        self.collection = collection
        self.feed = feed or ChangeFeed()
        self._dynamodb = dynamodb_resource
        self._table = None
        # Last published document per watched key, dropped when the key goes idle
        self._last_seen: Dict[str, Optional[Document]] = {}
        self.feed.on_idle(self._forget)

    @property
    def dynamodb(self):
        """Lazy initialization of DynamoDB resource"""
        if self._dynamodb is None:
            self._dynamodb = get_dynamodb_resource()
        return self._dynamodb

    @property
    def table(self):
        """Lazy initialization of DynamoDB table"""
        if self._table is None:
            self._table = self.dynamodb.Table(self.table_name)
        return self._table

    def _item_key(self, key: str) -> Dict[str, str]:
        return {"PK": f"USER#{key}", "SK": self.collection}

    @staticmethod
    def _strip_keys(item: Dict[str, Any]) -> Document:
        return {name: value for name, value in item.items() if name not in KEY_ATTRIBUTES}

    @staticmethod
    def _unavailable(action: str, key: str, exc: Exception) -> StoreUnavailableError:
        if isinstance(exc, ClientError):
            error_code = exc.response["Error"]["Code"]
            error_message = exc.response["Error"]["Message"]
            return StoreUnavailableError(
                f"DynamoDB error during {action} for {key}: {error_code} - {error_message}",
                error_code=error_code,
            )
        return StoreUnavailableError(f"AWS connection error during {action} for {key}: {str(exc)}")

    def _remember(self, key: str, document: Optional[Document]) -> None:
        if self.feed.listener_count(key):
            self._last_seen[key] = document

    def _forget(self, key: str) -> None:
        self._last_seen.pop(key, None)

    def get(self, key: str) -> Optional[Document]:
        """
        Point read of a document

        Args:
            key: Account id

        Returns:
            The document without its key attributes, or None if absent

        Raises:
            StoreUnavailableError: The table could not be read
        """
        try:
            response = self.table.get_item(Key=self._item_key(key))
        except (ClientError, BotoCoreError) as exc:
            raise self._unavailable("read", key, exc) from exc

        if "Item" not in response:
            return None
        return self._strip_keys(response["Item"])

    def merge(self, key: str, fields: Document) -> Document:
        """
        Merge fields into a document, creating it if absent.

        Fields not named are left untouched. Returns the full document once
        DynamoDB has acknowledged the write, after publishing it to watchers.
        """
        if not fields:
            raise ValueError("merge requires at least one field")

        names = {}
        values = {}
        assignments = []
        for index, (name, value) in enumerate(fields.items()):
            names[f"#f{index}"] = name
            values[f":v{index}"] = value
            assignments.append(f"#f{index} = :v{index}")

        try:
            response = self.table.update_item(
                Key=self._item_key(key),
                UpdateExpression="SET " + ", ".join(assignments),
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
                ReturnValues="ALL_NEW",
            )
        except (ClientError, BotoCoreError) as exc:
            raise self._unavailable("write", key, exc) from exc

        document = self._strip_keys(response.get("Attributes", {}))
        logger.info(f"Merged {sorted(fields)} into {self.collection} document for {key}")

        self._remember(key, document)
        self.feed.publish(key, document)
        return document

    def watch(
        self, key: str, on_change: ChangeCallback, on_error: Optional[ErrorCallback] = None
    ) -> WatchHandle:
        """
        Open a live watch on a document.

        ``on_change`` receives the initial read right away and then every
        published change. A failed initial read goes to ``on_error`` and the
        watch stays open for later changes.
        """
        handle = self.feed.register(key, on_change, on_error)

        try:
            document = self.get(key)
        except StoreUnavailableError as exc:
            logger.error(f"Initial read failed for watch on {key}: {str(exc)}")
            if on_error is not None:
                on_error(exc)
            return handle

        self._remember(key, document)
        on_change(document)
        return handle

    def refresh(self, key: str) -> bool:
        """
        Re-read a document and publish it if it changed since last seen.

        Returns:
            bool: Whether a change was published
        """
        try:
            document = self.get(key)
        except StoreUnavailableError as exc:
            logger.error(f"Refresh failed for {key}: {str(exc)}")
            self.feed.publish_error(key, exc)
            return False

        if key in self._last_seen and self._last_seen[key] == document:
            return False

        self._remember(key, document)
        self.feed.publish(key, document)
        return True

    def poll(self) -> int:
        """Refresh every watched document. Returns the number of changes published."""
        return sum(1 for key in self.feed.watched_keys() if self.refresh(key))
