"""LinkWeaver facade wiring every component to one configuration value."""

import logging

from linkweaver.config import Settings
from linkweaver.core.batch import BatchOperations
from linkweaver.core.events import EventDispatcher
from linkweaver.core.index import MarkdownReferenceIndex
from linkweaver.core.links import LinkManager
from linkweaver.core.navigator import LinkInserter, Navigator
from linkweaver.core.preview import LinkPreviewManager
from linkweaver.core.sequence import SequenceDetector
from linkweaver.core.storage import FileVaultStore

logger = logging.getLogger(__name__)


class LinkWeaver:
    """Owns the store, index and engines for a single vault."""

    def __init__(self, settings: Settings, dispatcher: EventDispatcher | None = None):
        self.settings = settings
        self.dispatcher = dispatcher or EventDispatcher()
        self.store = FileVaultStore(settings.vault_dir, on_event=self.dispatcher.publish)
        self.index = MarkdownReferenceIndex(self.store)
        self.detector = SequenceDetector(self.store, settings)
        self.navigator = Navigator(self.detector, settings)
        self.inserter = LinkInserter(self.store, self.detector, settings)
        self.links = LinkManager(self.store, self.index, settings)
        self.batch = BatchOperations(self.store, settings)
        self.previews = LinkPreviewManager(self.store, self.index, settings)
        self.dispatcher.bind(self)

    async def start(self) -> None:
        """Index the vault and begin consuming vault events."""
        await self.index.rebuild()
        self.dispatcher.start_polling()

    def stop(self) -> None:
        self.dispatcher.stop_polling()

    def update_configuration(self, settings: Settings) -> None:
        """Propagate new settings to every component."""
        self.settings = settings
        for component in (
            self.detector,
            self.navigator,
            self.inserter,
            self.links,
            self.batch,
            self.previews,
        ):
            component.update_configuration(settings)
        logger.info("Configuration updated")
