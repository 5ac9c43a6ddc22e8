"""Commit: run staged storage actions, then persist the catalog."""

from typing import TYPE_CHECKING

from ..utils.logging import get_contextual_logger
from .actions import PhysicalAction
from .applier import Stage

if TYPE_CHECKING:
    from ..ensemble.base import CatalogStore, StorageBackend

logger = get_contextual_logger(__name__)


class CommitError(Exception):
    """A storage action failed during commit.

    Actions before ``action`` already ran; the catalog record was not saved.
    """

    def __init__(self, action: PhysicalAction, completed: int, error: Exception):
        self.action = action
        self.completed = completed
        self.error = error
        super().__init__(
            f"commit failed at '{action}' after {completed} actions: {error}"
        )


def commit(stage: Stage, storage: "StorageBackend", store: "CatalogStore") -> int:
    """Execute the stage's pending actions and save its catalog.

    Args:
        stage: Stage holding the target catalog and the actions to run
        storage: Backend the actions run against
        store: Where the catalog record is persisted

    Returns:
        Number of storage actions executed

    Raises:
        CommitError: On the first failing action. Nothing is retried and
            the catalog record keeps its previous contents.
    """
    completed = 0
    for action in stage.pending:
        logger.debug("Running storage action", context={"action": str(action)})
        try:
            action.run(storage)
        except Exception as e:
            logger.error(
                f"Commit failed: {e}",
                context={"action": str(action), "completed": completed},
            )
            raise CommitError(action, completed, e) from e
        completed += 1

    store.save(stage.catalog)
    stage.pending = []
    logger.info(f"Committed {completed} storage actions")
    return completed
