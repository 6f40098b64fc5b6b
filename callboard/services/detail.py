import logging
from enum import StrEnum

from pydantic import BaseModel

from callboard.schemas.records import Record
from callboard.schemas.store import Collection, EqFilter, Order
from callboard.services.record_store import RecordStoreService

logger = logging.getLogger(__name__)


class EntityType(StrEnum):
    contact = "contact"
    customer = "customer"


class HistorySpec(BaseModel):
    entity_collection: Collection
    history_collection: Collection
    foreign_key: str
    time_field: str


HISTORY_SPECS: dict[EntityType, HistorySpec] = {
    EntityType.contact: HistorySpec(
        entity_collection=Collection.contacts,
        history_collection=Collection.calls,
        foreign_key="contact_id",
        time_field="call_time",
    ),
    EntityType.customer: HistorySpec(
        entity_collection=Collection.customers,
        history_collection=Collection.appointments,
        foreign_key="customer_id",
        time_field="appointment_time",
    ),
}


class DetailView(BaseModel):
    entity: Record
    history: list[Record]


class DetailAggregator:
    """An entity plus its related history, most recent first.

    The expanded-item set is pure view state: toggling never re-fetches.
    """

    def __init__(self, store: RecordStoreService) -> None:
        self._store = store
        self.entity_type: EntityType | None = None
        self.entity_id: str | None = None
        self.entity: Record | None = None
        self.history: list[Record] = []
        self.expanded: set[str] = set()

    @property
    def spec(self) -> HistorySpec | None:
        return HISTORY_SPECS[self.entity_type] if self.entity_type else None

    @property
    def collections(self) -> set[Collection]:
        if self.spec is None:
            return set()
        return {self.spec.entity_collection, self.spec.history_collection}

    async def load_detail(self, entity_type: EntityType | str, entity_id: str) -> DetailView:
        """Fetch the entity and its history. Raises NotFoundError if absent."""
        entity_type = EntityType(entity_type)
        spec = HISTORY_SPECS[entity_type]

        entity = await self._store.get(spec.entity_collection, entity_id)
        history = await self._store.query(
            spec.history_collection,
            [EqFilter(field=spec.foreign_key, value=entity_id)],
            Order(field=spec.time_field, ascending=False),
            select="*",
        )

        if (entity_type, entity_id) != (self.entity_type, self.entity_id):
            self.expanded = set()
        else:
            # Keep only ids still present in the history
            self.expanded &= {item.id for item in history}

        self.entity_type = entity_type
        self.entity_id = entity_id
        self.entity = entity
        self.history = history
        logger.info(
            "Loaded %s %s with %d %s",
            entity_type.value, entity_id, len(history), spec.history_collection.value,
        )
        return DetailView(entity=entity, history=history)

    async def reload(self) -> DetailView:
        if self.entity_type is None or self.entity_id is None:
            raise RuntimeError("reload() called before load_detail()")
        return await self.load_detail(self.entity_type, self.entity_id)

    @property
    def latest(self) -> Record | None:
        return self.history[0] if self.history else None

    @property
    def service_interest(self) -> str | None:
        """The entity's own value, else the latest history item's."""
        own = getattr(self.entity, "service_interest", None)
        if own:
            return own
        return getattr(self.latest, "service_interest", None)

    def toggle(self, item_id: str) -> bool:
        """Flip one item. Returns True if it is now expanded."""
        if item_id in self.expanded:
            self.expanded.discard(item_id)
            return False
        self.expanded.add(item_id)
        return True

    def expand_all(self) -> None:
        self.expanded = {item.id for item in self.history}

    def collapse_all(self) -> None:
        self.expanded.clear()

    def is_expanded(self, item_id: str) -> bool:
        return item_id in self.expanded
