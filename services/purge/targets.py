"""Dependent-record collections purged when a parent record is deleted."""

from pydantic import BaseModel, ConfigDict

from shared.models.record import PurgeQuery


class PurgeTarget(BaseModel):
    """A collection plus the field that references the deleted parent."""

    model_config = ConfigDict(frozen=True)

    collection: str
    field: str

    def to_query(self, value: str) -> PurgeQuery:
        return PurgeQuery(collection=self.collection, field=self.field, value=value)


# spaced repetition data of a deleted card
CARD_SPACED_REP_DATA = PurgeTarget(collection="spacedRepData", field="cardId")
# spaced repetition data of every card of a deleted deck
DECK_SPACED_REP_DATA = PurgeTarget(collection="spacedRepData", field="deckId")
# cards of a deleted deck
DECK_CARDS = PurgeTarget(collection="cards", field="deckId")
