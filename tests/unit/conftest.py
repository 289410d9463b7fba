"""Shared test fixtures."""

import pytest

from manuscript_binder.binder import Binder
from manuscript_binder.core.store.item_store import ItemStore
from manuscript_binder.core.tree.text import count_words
from manuscript_binder.models.item import Item, ItemKind, Label, Status

from tests.unit.fakes import FakeClock, SequentialIds

INCIDENT_CONTENT = "<p>It was a dark and stormy night...</p>"


def populate(store: ItemStore) -> None:
    """Fill a fresh store with a small manuscript.

    Draft
        Chapter 1: The Beginning
            The Incident
        Chapter 2: The Journey
    Research
        Historical Context
    Trash
    """
    store.insert(
        Item(
            id="ch-1",
            kind=ItemKind.FOLDER,
            title="Chapter 1: The Beginning",
            status=Status.DONE,
            label=Label.CHAPTER,
            word_count_target=3000,
        ),
        parent_id="root-draft",
    )
    store.insert(
        Item(
            id="scene-1-1",
            kind=ItemKind.DOCUMENT,
            title="The Incident",
            content=INCIDENT_CONTENT,
            synopsis="Hero meets the villain in a dimly lit tavern.",
            label=Label.SCENE,
            word_count=count_words(INCIDENT_CONTENT),
            custom_metadata={"pov": "Hero"},
        ),
        parent_id="ch-1",
    )
    store.insert(
        Item(
            id="ch-2",
            kind=ItemKind.FOLDER,
            title="Chapter 2: The Journey",
            status=Status.IN_PROGRESS,
            label=Label.CHAPTER,
            expanded=False,
        ),
        parent_id="root-draft",
    )
    store.insert(
        Item(
            id="res-1",
            kind=ItemKind.DOCUMENT,
            title="Historical Context",
            content="Notes on 1920s architecture.",
            label=Label.IDEA,
            word_count=4,
        ),
        parent_id="root-research",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> ItemStore:
    """Return a store holding the sample manuscript."""
    s = ItemStore(id_factory=SequentialIds(), clock=clock)
    populate(s)
    return s


@pytest.fixture
def binder(store: ItemStore) -> Binder:
    return Binder(store)
