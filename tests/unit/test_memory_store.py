import pytest

from evquote.core.errors import NotFoundError
from evquote.repositories.memory import MemoryStore


def test_records_are_copied_in_and_out():
    store = MemoryStore()
    fields = {"Tags": ["a"]}
    rec = store.create("PHOTOS", fields)

    fields["Tags"].append("b")
    rec["fields"]["Tags"].append("c")

    assert store.get("PHOTOS", rec["id"])["fields"]["Tags"] == ["a"]
    assert rec["id"].startswith("rec")


def test_list_filters_and_sorts():
    store = MemoryStore()
    store.seed("QUOTES", {"Quote ID": "EV-1", "Version": 1})
    store.seed("QUOTES", {"Quote ID": "EV-1", "Version": 3})
    store.seed("QUOTES", {"Quote ID": "EV-2", "Version": 2})
    store.seed("QUOTES", {"Quote ID": "EV-1", "Version": 2})

    rows = store.list("QUOTES", where={"Quote ID": "EV-1"}, sort=[("Version", "desc")])
    assert [r["fields"]["Version"] for r in rows] == [3, 2, 1]

    top = store.list("QUOTES", sort=[("Version", "desc")], max_records=1)
    assert top[0]["fields"]["Version"] == 3


def test_linked_filter_matches_record_links():
    store = MemoryStore()
    store.seed("PHOTOS", {"Project": ["recA"], "Photo Type": "Panel"})
    store.seed("PHOTOS", {"Project": ["recB"], "Photo Type": "Garage"})

    rows = store.list("PHOTOS", linked={"Project": "recA"})
    assert [r["fields"]["Photo Type"] for r in rows] == ["Panel"]


def test_missing_records_raise_not_found():
    store = MemoryStore()

    with pytest.raises(NotFoundError):
        store.get("PROJECTS", "recNope")
    with pytest.raises(NotFoundError):
        store.update("PROJECTS", "recNope", {"Project Status": "New"})
